"""
Custom exceptions for HitScope.

This module defines a hierarchy of exceptions for handling the error
conditions raised by decoding, analysis, scoring and market signals.
"""

from typing import Any, Optional


class HitScopeError(Exception):
    """Base exception for all HitScope errors."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class DecodeError(HitScopeError):
    """Raised when encoded audio cannot be turned into PCM samples."""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message, details={"source": source})
        self.source = source


class UnsupportedFormatError(DecodeError):
    """Raised when an audio container is not supported."""

    def __init__(self, message: str, format: Optional[str] = None):
        super().__init__(message)
        self.format = format
        self.details = {"format": format}


class FileTooLargeError(DecodeError):
    """Raised when an audio file exceeds the configured size limit."""

    def __init__(
        self,
        message: str,
        file_size: Optional[int] = None,
        max_size: Optional[int] = None,
    ):
        super().__init__(message)
        self.file_size = file_size
        self.max_size = max_size
        self.details = {"file_size": file_size, "max_size": max_size}


class AnalysisError(HitScopeError):
    """Raised when a feature analyzer fails."""

    def __init__(
        self,
        message: str,
        analyzer_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.analyzer_name = analyzer_name
        self.original_error = original_error
        self.details = {
            "analyzer_name": analyzer_name,
            "original_error": str(original_error) if original_error else None,
        }


class ConfigurationError(HitScopeError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        super().__init__(message)
        self.config_key = config_key
        self.details = {"config_key": config_key}


class MarketSignalError(HitScopeError):
    """Raised when a market signal provider cannot deliver a snapshot."""

    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(message)
        self.provider = provider
        self.details = {"provider": provider}


class CacheError(HitScopeError):
    """Raised when cache operations fail."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        key: Optional[str] = None,
    ):
        super().__init__(message)
        self.operation = operation
        self.key = key
        self.details = {"operation": operation, "key": key}
