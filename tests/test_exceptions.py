"""Unit tests for launcher_icons.exceptions."""

import asyncio

import pytest

from launcher_icons.exceptions import (
    ConfigError,
    IconResolverError,
    ImageDecodeError,
    LocalIconError,
    RemoteResourceError,
    ResolutionCancelled,
    is_critical,
)


class TestExceptions:
    """Tests for the exception hierarchy."""

    @pytest.mark.parametrize(
        "exc",
        [
            RemoteResourceError("https://a.test"),
            ImageDecodeError("bad"),
            LocalIconError("/tmp/x"),
            ResolutionCancelled(),
            ConfigError("bad"),
        ],
    )
    def test_all_derive_from_base(self, exc):
        assert isinstance(exc, IconResolverError)

    def test_str_includes_details(self):
        exc = RemoteResourceError("https://a.test/x", status_code=404, details={"error": "gone"})
        text = str(exc)
        assert "https://a.test/x" in text
        assert "status=404" in text
        assert "error=gone" in text

    def test_str_without_details(self):
        assert str(ImageDecodeError("bad data")) == "bad data"

    def test_local_error_keeps_path(self):
        assert LocalIconError("/opt/app").path == "/opt/app"


class TestIsCritical:
    """Tests for is_critical()."""

    @pytest.mark.parametrize(
        "exc",
        [MemoryError(), RecursionError(), SystemError(), KeyboardInterrupt(), asyncio.CancelledError()],
    )
    def test_critical(self, exc):
        assert is_critical(exc) is True

    @pytest.mark.parametrize("exc", [OSError(), ValueError(), RuntimeError(), ImageDecodeError("x")])
    def test_not_critical(self, exc):
        assert is_critical(exc) is False
