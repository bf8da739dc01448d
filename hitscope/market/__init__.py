"""
Market trend signals consumed by the success scorer.
"""

from hitscope.market.providers import (
    ChartEntry,
    ChartMarketSignalProvider,
    FileMarketSignalProvider,
    MarketSignalProvider,
    StaticMarketSignalProvider,
    analyze_chart_trends,
    create_market_provider,
    fetch_market_trends,
)

__all__ = [
    "ChartEntry",
    "ChartMarketSignalProvider",
    "FileMarketSignalProvider",
    "MarketSignalProvider",
    "StaticMarketSignalProvider",
    "analyze_chart_trends",
    "create_market_provider",
    "fetch_market_trends",
]
