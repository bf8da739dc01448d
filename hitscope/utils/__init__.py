"""
Utility modules for configuration, logging, and error handling.
"""

from hitscope.utils.errors import (
    HitScopeError,
    DecodeError,
    UnsupportedFormatError,
    FileTooLargeError,
    AnalysisError,
    ConfigurationError,
    MarketSignalError,
    CacheError,
)
from hitscope.utils.logging import get_logger, setup_logging, JSONFormatter
from hitscope.utils.config import ConfigManager, load_config, get_default_config

__all__ = [
    "HitScopeError",
    "DecodeError",
    "UnsupportedFormatError",
    "FileTooLargeError",
    "AnalysisError",
    "ConfigurationError",
    "MarketSignalError",
    "CacheError",
    "get_logger",
    "setup_logging",
    "JSONFormatter",
    "ConfigManager",
    "load_config",
    "get_default_config",
]
