"""Tests for the HitScope error hierarchy."""

from hitscope.utils.errors import (
    AnalysisError,
    CacheError,
    ConfigurationError,
    DecodeError,
    FileTooLargeError,
    HitScopeError,
    MarketSignalError,
    UnsupportedFormatError,
)


class TestHitScopeError:
    def test_message_only(self):
        err = HitScopeError("something broke")
        assert str(err) == "something broke"
        assert err.details is None

    def test_message_with_details(self):
        err = HitScopeError("something broke", details={"step": 2})
        assert "something broke" in str(err)
        assert "step" in str(err)


class TestDecodeErrors:
    def test_decode_error_source(self):
        err = DecodeError("bad bytes", source="upload.wav")
        assert err.source == "upload.wav"
        assert isinstance(err, HitScopeError)

    def test_file_errors_are_decode_errors(self):
        assert isinstance(UnsupportedFormatError("nope", format=".txt"), DecodeError)
        assert isinstance(FileTooLargeError("big", file_size=10, max_size=5), DecodeError)

    def test_unsupported_format_details(self):
        err = UnsupportedFormatError("nope", format=".txt")
        assert err.format == ".txt"
        assert err.details == {"format": ".txt"}

    def test_file_too_large_details(self):
        err = FileTooLargeError("big", file_size=10, max_size=5)
        assert err.details == {"file_size": 10, "max_size": 5}


class TestOtherErrors:
    def test_analysis_error_keeps_original(self):
        cause = ZeroDivisionError("division by zero")
        err = AnalysisError("tonal failed", analyzer_name="tonal", original_error=cause)
        assert err.analyzer_name == "tonal"
        assert err.original_error is cause
        assert "division by zero" in str(err)

    def test_configuration_error_key(self):
        assert ConfigurationError("bad", config_key="cache.ttl").config_key == "cache.ttl"

    def test_market_signal_error_provider(self):
        assert MarketSignalError("down", provider="chart").provider == "chart"

    def test_cache_error_operation(self):
        err = CacheError("bad key", operation="get", key="")
        assert err.operation == "get"
        assert err.details == {"operation": "get", "key": ""}
