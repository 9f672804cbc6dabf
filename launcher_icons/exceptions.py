"""Exception hierarchy for launcher-icons.

These exceptions are raised inside the resolver's building blocks and are
converted into plain failure results at the strategy boundary. They never
reach callers of ``IconResolver.resolve`` or ``IconResolver.set_custom_icon``.
"""

from __future__ import annotations

from typing import Any


class IconResolverError(Exception):
    """Base class for all launcher-icons errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if not self.details:
            return self.message
        extra = ", ".join(f"{key}={value}" for key, value in self.details.items())
        return f"{self.message} ({extra})"


class RemoteResourceError(IconResolverError):
    """A remote resource could not be fetched.

    Covers transport errors, timeouts, non-2xx responses and oversize bodies.
    """

    def __init__(
        self,
        url: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = dict(details or {})
        if status_code is not None:
            details.setdefault("status", status_code)
        super().__init__(f"Failed to fetch {url}", details)
        self.url = url
        self.status_code = status_code


class ImageDecodeError(IconResolverError):
    """Bytes could not be decoded as an image."""


class LocalIconError(IconResolverError):
    """The operating system did not provide an icon for a local path."""

    def __init__(self, path: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(f"No icon available for {path}", details)
        self.path = path


class ResolutionCancelled(IconResolverError):
    """The cancellation token fired while a resolution was in progress."""

    def __init__(self, message: str = "Icon resolution cancelled") -> None:
        super().__init__(message)


class ConfigError(IconResolverError):
    """Configuration file is missing, malformed or holds invalid values."""


_CRITICAL = (MemoryError, RecursionError, SystemError)


def is_critical(exc: BaseException) -> bool:
    """Return True for faults that must never be swallowed.

    Anything that is not an ``Exception`` (KeyboardInterrupt, SystemExit,
    asyncio.CancelledError) counts as critical as well.
    """
    return isinstance(exc, _CRITICAL) or not isinstance(exc, Exception)
