"""
Market signal providers for HitScope.

A provider produces a MarketTrendsSnapshot asynchronously. The engine
awaits it once per scoring request with a timeout and falls back to the
default snapshot when the provider is slow or fails.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    Union,
    runtime_checkable,
)

import yaml

from hitscope.core.models import PITCH_CLASSES, FeatureRange, MarketTrendsSnapshot
from hitscope.scoring.reference import DEFAULT_MARKET_SNAPSHOT, SEASONAL_FACTORS
from hitscope.utils.errors import ConfigurationError, MarketSignalError

logger = logging.getLogger("market")


@runtime_checkable
class MarketSignalProvider(Protocol):
    """Source of current market trends."""

    name: str

    async def get_current_trends(self) -> MarketTrendsSnapshot:
        ...


@dataclass(frozen=True)
class ChartEntry:
    """One chart position with the audio features needed for trend analysis."""

    title: str
    artist: str
    genre: str
    tempo: Optional[float] = None
    key: Optional[str] = None
    energy: Optional[float] = None
    danceability: Optional[float] = None
    valence: Optional[float] = None


def _chart_seasonal_factors(as_of: Optional[date]) -> Dict[int, float]:
    if as_of is None:
        return dict(SEASONAL_FACTORS)
    return {
        month: max(0.8, 1.0 - abs(month - as_of.month) * 0.1)
        for month in range(1, 13)
    }


def analyze_chart_trends(
    entries: Sequence[ChartEntry],
    as_of: Optional[date] = None,
) -> MarketTrendsSnapshot:
    """
    Aggregate chart entries into a market snapshot.

    Genre and key shares are relative frequencies. The tempo range spans
    the observed tempos with the median as its peak. Energy is bucketed
    into low (<0.4), medium (<0.7) and high tiers. Seasonal factors peak
    at the month of ``as_of`` and decay by 0.1 per month to a floor of 0.8.

    Empty ``entries`` return the default snapshot.
    """
    if not entries:
        return DEFAULT_MARKET_SNAPSHOT

    genre_counts: Dict[str, int] = {}
    for entry in entries:
        genre_counts[entry.genre] = genre_counts.get(entry.genre, 0) + 1
    trending_genres = {
        genre: count / len(entries) for genre, count in genre_counts.items()
    }

    tempos = sorted(entry.tempo for entry in entries if entry.tempo)
    if tempos:
        optimal_tempo = FeatureRange(tempos[0], tempos[-1], tempos[len(tempos) // 2])
    else:
        optimal_tempo = DEFAULT_MARKET_SNAPSHOT.optimal_tempo

    key_counts: Dict[str, int] = {}
    for entry in entries:
        if entry.key in PITCH_CLASSES:
            key_counts[entry.key] = key_counts.get(entry.key, 0) + 1
    total_keys = sum(key_counts.values())
    popular_keys = {key: count / total_keys for key, count in key_counts.items()}

    energies = [entry.energy for entry in entries if entry.energy is not None]
    if energies:
        energy_tiers = {
            "low": sum(1 for e in energies if e < 0.4) / len(energies),
            "medium": sum(1 for e in energies if 0.4 <= e < 0.7) / len(energies),
            "high": sum(1 for e in energies if e >= 0.7) / len(energies),
        }
    else:
        energy_tiers = {"low": 0.0, "medium": 0.0, "high": 0.0}

    return MarketTrendsSnapshot(
        trending_genres=trending_genres,
        optimal_tempo=optimal_tempo,
        popular_keys=popular_keys,
        energy_tiers=energy_tiers,
        seasonal_factors=_chart_seasonal_factors(as_of),
    )


class StaticMarketSignalProvider:
    """Returns a fixed snapshot; the default snapshot when none is given."""

    name = "static"

    def __init__(self, snapshot: Optional[MarketTrendsSnapshot] = None):
        self.snapshot = snapshot or DEFAULT_MARKET_SNAPSHOT

    async def get_current_trends(self) -> MarketTrendsSnapshot:
        return self.snapshot


class FileMarketSignalProvider:
    """Reads a snapshot from a YAML or JSON file on every request."""

    name = "file"

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.logger = logging.getLogger(f"market.{self.name}")

    def load(self) -> MarketTrendsSnapshot:
        """
        Parse the snapshot file.

        Raises:
            MarketSignalError: If the file is missing or malformed
        """
        if not self.path.exists():
            raise MarketSignalError(f"Snapshot file not found: {self.path}", provider=self.name)

        try:
            with open(self.path, 'r') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise MarketSignalError(
                f"Failed to read snapshot {self.path}: {e}", provider=self.name
            ) from e

        if not isinstance(data, dict):
            raise MarketSignalError(
                f"Snapshot {self.path} must contain a mapping", provider=self.name
            )

        try:
            snapshot = MarketTrendsSnapshot.from_dict(data)
        except ValueError as e:
            raise MarketSignalError(
                f"Invalid snapshot {self.path}: {e}", provider=self.name
            ) from e

        self.logger.debug(f"Loaded market snapshot from {self.path}")
        return snapshot

    async def get_current_trends(self) -> MarketTrendsSnapshot:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.load)


ChartSource = Callable[[], Awaitable[Sequence[ChartEntry]]]


class ChartMarketSignalProvider:
    """Builds a snapshot from chart entries fetched by an async source."""

    name = "chart"

    def __init__(self, chart_source: ChartSource, clock: Callable[[], date] = date.today):
        self.chart_source = chart_source
        self.clock = clock
        self.logger = logging.getLogger(f"market.{self.name}")

    async def get_current_trends(self) -> MarketTrendsSnapshot:
        try:
            entries = await self.chart_source()
        except MarketSignalError:
            raise
        except Exception as e:
            raise MarketSignalError(f"Chart source failed: {e}", provider=self.name) from e

        self.logger.debug(f"Aggregating {len(entries)} chart entries")
        return analyze_chart_trends(entries, as_of=self.clock())


async def fetch_market_trends(
    provider: Optional[MarketSignalProvider],
    timeout: float = 5.0,
) -> Tuple[Optional[MarketTrendsSnapshot], str]:
    """
    Await ``provider`` once, bounded by ``timeout`` seconds.

    Returns:
        (snapshot, source) where source is "live", "default" or "none".
        Any provider failure, a timeout or a result that is not a
        snapshot yields the default snapshot.
    """
    if provider is None:
        return None, "none"

    name = getattr(provider, "name", type(provider).__name__)
    try:
        snapshot = await asyncio.wait_for(provider.get_current_trends(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"Market provider '{name}' timed out after {timeout}s, using default trends")
        return DEFAULT_MARKET_SNAPSHOT, "default"
    except MarketSignalError as e:
        logger.warning(f"Market provider '{name}' failed: {e}, using default trends")
        return DEFAULT_MARKET_SNAPSHOT, "default"
    except Exception as e:
        logger.warning(
            f"Market provider '{name}' raised {type(e).__name__}: {e}, using default trends"
        )
        return DEFAULT_MARKET_SNAPSHOT, "default"

    if not isinstance(snapshot, MarketTrendsSnapshot):
        logger.warning(
            f"Market provider '{name}' returned {type(snapshot).__name__}, using default trends"
        )
        return DEFAULT_MARKET_SNAPSHOT, "default"

    return snapshot, "default" if snapshot.is_default else "live"


def create_market_provider(config: Dict[str, Any]) -> Optional[MarketSignalProvider]:
    """
    Factory function to create the configured market provider.

    Args:
        config: Configuration dictionary

    Returns:
        Provider instance, or None when market signals are disabled
    """
    market_config = config.get('market', {})
    kind = market_config.get('provider', 'none')

    if kind == 'none':
        return None
    if kind == 'static':
        return StaticMarketSignalProvider()
    if kind == 'file':
        path = market_config.get('snapshot_path')
        if not path:
            raise ConfigurationError(
                "market.snapshot_path is required for the file provider",
                config_key="market.snapshot_path",
            )
        return FileMarketSignalProvider(path)

    raise ConfigurationError(f"Unknown market provider: {kind}", config_key="market.provider")
