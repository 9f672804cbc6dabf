"""Icon resolver: the single entry point callers use.

Resolution order for ``resolve(identifier, source)``:

1. Cached PNG for the identifier exists -> return it, no other work.
2. Source failed too often already -> fail without any I/O.
3. Source is an existing file or directory -> local extraction.
   Source is an absolute http(s) URL -> provider, HTML and root strategies.
   Anything else -> fail.
4. First strategy that yields PNG bytes wins; the bytes are written
   atomically to the cache and the failure count is cleared.
5. All strategies failed -> the failure count for the source goes up.

Failures are reported as ``ResolveResult(False, "")``; errors are never
raised to the caller except for critical runtime faults.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import os
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, NamedTuple

import httpx

from launcher_icons.cache import IconCache
from launcher_icons.cancel_token import CancellationToken
from launcher_icons.config import Config
from launcher_icons.exceptions import ResolutionCancelled, is_critical
from launcher_icons.local import LocalIconStrategy
from launcher_icons.remote import (
    DEFAULT_PROVIDERS,
    HtmlLinkStrategy,
    HttpFetcher,
    ProviderStrategy,
    RootFaviconStrategy,
    split_http_url,
)
from launcher_icons.remote.http import DEFAULT_USER_AGENT
from launcher_icons.strategy import DiagnosticSink, IconStrategy
from launcher_icons.throttle import DEFAULT_MAX_ATTEMPTS, AttemptThrottle

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 8


class SourceKind(enum.Enum):
    LOCAL = "local"
    REMOTE = "remote"


def classify_source(source: str) -> SourceKind | None:
    """Classify ``source``; an existing path wins over URL parsing."""
    if not isinstance(source, str) or not source:
        return None
    if os.path.exists(source):
        return SourceKind.LOCAL
    if split_http_url(source) is not None:
        return SourceKind.REMOTE
    return None


class ResolveResult(NamedTuple):
    """Outcome of a resolution; unpacks as ``success, path``."""

    success: bool
    path: str = ""


FAILED = ResolveResult(False, "")


@dataclass(frozen=True)
class IconRequest:
    """An item to resolve: its identifier and icon source."""

    identifier: str
    source: str

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> IconRequest:
        """Build a request from an item record with ``id`` and ``source`` keys."""
        identifier = data.get("id", data.get("identifier"))
        source = data.get("source")
        if identifier is None or source is None:
            raise ValueError("item record needs 'id' and 'source'")
        return cls(str(identifier), str(source))


class IconResolver:
    """Resolve icons for launchable items and cache them as PNG files.

    One instance is meant to be shared by every concurrent caller in a
    process: it owns the cache, the attempt throttle and the HTTP client.
    Use it as an async context manager or call :meth:`aclose` when done.
    """

    def __init__(
        self,
        icon_folder: str | os.PathLike[str],
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        timeout: float = HttpFetcher.DEFAULT_TIMEOUT,
        max_download_size: int = HttpFetcher.MAX_SIZE,
        user_agent: str = DEFAULT_USER_AGENT,
        providers: Sequence[str] = DEFAULT_PROVIDERS,
        log: DiagnosticSink | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        local_strategy: IconStrategy | None = None,
        remote_strategies: Sequence[IconStrategy] | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            icon_folder: Folder for cached PNGs, created if missing.
            max_attempts: Failed resolutions allowed per source.
            timeout: HTTP request timeout in seconds.
            max_download_size: Largest accepted HTTP body in bytes.
            user_agent: Client signature for outbound requests.
            providers: Favicon provider URL templates, tried in order.
            log: Optional sink receiving human-readable diagnostic notes.
            transport: Optional httpx transport (tests, proxies).
            local_strategy: Replaces the default local extraction strategy.
            remote_strategies: Replaces the default remote strategy chain.
        """
        self.cache = IconCache(icon_folder)
        self.throttle = AttemptThrottle(max_attempts)
        self._log = log
        self.fetcher = HttpFetcher(
            timeout=timeout,
            max_size=max_download_size,
            user_agent=user_agent,
            transport=transport,
        )
        self.local_strategy = local_strategy or LocalIconStrategy(log=log)
        if remote_strategies is None:
            remote_strategies = [
                ProviderStrategy(self.fetcher, providers, log=log),
                HtmlLinkStrategy(self.fetcher, log=log),
                RootFaviconStrategy(self.fetcher, log=log),
            ]
        self.remote_strategies = list(remote_strategies)

    @classmethod
    def from_config(cls, config: Config, **overrides: Any) -> IconResolver:
        options = config.resolver_options()
        options.update(overrides)
        return cls(config.icon_folder, **options)

    async def __aenter__(self) -> IconResolver:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.fetcher.aclose()

    def strategies_for(self, kind: SourceKind) -> list[IconStrategy]:
        if kind is SourceKind.LOCAL:
            return [self.local_strategy]
        return list(self.remote_strategies)

    async def resolve(
        self,
        identifier: str,
        source: str,
        cancel: CancellationToken | None = None,
    ) -> ResolveResult:
        """Return the cached icon for ``identifier``, deriving it from ``source`` if needed.

        Args:
            identifier: Item identifier; determines the cache file name.
            source: Existing local path or absolute http(s) URL.
            cancel: Optional cancellation token.

        Returns:
            ``ResolveResult(True, path)`` on success, ``ResolveResult(False, "")``
            otherwise.
        """
        try:
            if cancel is not None and cancel.cancelled:
                self._note(f"Resolution of {identifier!r} cancelled before start")
                return FAILED

            target = self.cache.path_for(identifier)
            if target.is_file():
                return ResolveResult(True, str(target))

            return await self._derive(identifier, source, target, cancel)
        except Exception as e:
            if is_critical(e):
                raise
            self._note(
                f"Unexpected error resolving {identifier!r} from {source!r}: {e}",
                level=logging.WARNING,
            )
            return FAILED

    async def set_custom_icon(
        self,
        identifier: str,
        source: str,
        cancel: CancellationToken | None = None,
    ) -> str:
        """Replace the cached icon of ``identifier``.

        A local file is copied as-is over the entry without consulting the
        throttle. Any other source goes through the regular strategy chain and
        overwrites the entry on success.

        Returns:
            Path of the saved icon, or ``""`` on failure.
        """
        try:
            if cancel is not None and cancel.cancelled:
                return ""

            if os.path.isfile(source):
                path = await asyncio.to_thread(self.cache.copy_from, identifier, source)
                return str(path)

            target = self.cache.path_for(identifier)
            result = await self._derive(identifier, source, target, cancel)
            return result.path
        except Exception as e:
            if is_critical(e):
                raise
            self._note(
                f"Setting custom icon for {identifier!r} from {source!r} failed: {e}",
                level=logging.WARNING,
            )
            return ""

    async def resolve_many(
        self,
        requests: Iterable[IconRequest],
        cancel: CancellationToken | None = None,
        concurrency: int = DEFAULT_CONCURRENCY,
    ) -> dict[str, ResolveResult]:
        """Resolve a batch of items concurrently.

        Returns:
            Mapping of identifier to result.
        """
        semaphore = asyncio.Semaphore(max(1, concurrency))

        async def _one(request: IconRequest) -> tuple[str, ResolveResult]:
            async with semaphore:
                result = await self.resolve(request.identifier, request.source, cancel)
            return request.identifier, result

        pairs = await asyncio.gather(*(_one(r) for r in requests))
        return dict(pairs)

    async def _derive(
        self,
        identifier: str,
        source: str,
        target: Path,
        cancel: CancellationToken | None,
    ) -> ResolveResult:
        # Checked before classification: a blocked source costs no stat call.
        if self.throttle.is_blocked(source, target.name):
            self._note(f"Skipping {source!r}: too many failed attempts")
            return FAILED

        kind = classify_source(source)
        if kind is None:
            self._note(f"Cannot resolve {source!r}: not an existing path or http(s) URL")
            return FAILED

        try:
            png = await self._run_chain(source, kind, cancel)
            if png is None:
                count = self.throttle.record_failure(source, target.name)
                self._note(f"No icon found for {source!r} (attempt {count})")
                return FAILED

            if cancel is not None:
                cancel.raise_if_cancelled()
            path = await asyncio.to_thread(self.cache.write, identifier, png)
        except ResolutionCancelled:
            self._note(f"Resolution of {identifier!r} cancelled")
            return FAILED

        self.throttle.reset(source, target.name)
        return ResolveResult(True, str(path))

    async def _run_chain(
        self, source: str, kind: SourceKind, cancel: CancellationToken | None
    ) -> bytes | None:
        for strategy in self.strategies_for(kind):
            if cancel is not None:
                cancel.raise_if_cancelled()
            png = await strategy.attempt(source, cancel)
            if png:
                logger.debug("Strategy %s produced an icon for %r", strategy.name, source)
                return png
        return None

    def _note(self, message: str, level: int = logging.DEBUG) -> None:
        logger.log(level, message)
        if self._log is not None:
            self._log(message)
