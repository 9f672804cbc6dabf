"""launcher-icons: resolve and cache icons for launcher items.

This library turns an item's source into a normalized PNG on disk:
- Local executables, files and folders via the operating system's icons
- Web addresses via favicon services, HTML icon links and /favicon.ico
- A per-source attempt throttle so dead sources are not hammered
- Asynchronous resolution with cancellation, plus a blocking wrapper

Example:
    >>> from launcher_icons import SyncIconResolver
    >>> with SyncIconResolver("~/.cache/launcher-icons/icons") as resolver:
    ...     success, path = resolver.resolve("docs", "https://docs.python.org")
"""

from launcher_icons.cache import IconCache
from launcher_icons.cancel_token import CancellationToken
from launcher_icons.config import Config
from launcher_icons.exceptions import (
    ConfigError,
    IconResolverError,
    ImageDecodeError,
    LocalIconError,
    RemoteResourceError,
    ResolutionCancelled,
)
from launcher_icons.resolver import (
    IconRequest,
    IconResolver,
    ResolveResult,
    SourceKind,
    classify_source,
)
from launcher_icons.sync import SyncIconResolver
from launcher_icons.throttle import AttemptThrottle

__version__ = "0.1.0"

__all__ = [
    # Main API
    "IconResolver",
    "SyncIconResolver",
    "ResolveResult",
    "IconRequest",
    "SourceKind",
    "classify_source",
    "CancellationToken",
    "Config",
    # Building blocks
    "IconCache",
    "AttemptThrottle",
    # Exceptions
    "IconResolverError",
    "RemoteResourceError",
    "ImageDecodeError",
    "LocalIconError",
    "ResolutionCancelled",
    "ConfigError",
    # Metadata
    "__version__",
]
