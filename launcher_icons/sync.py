"""Blocking facade over :class:`IconResolver` for synchronous callers."""

from __future__ import annotations

import asyncio
import os
import threading
from collections.abc import Coroutine, Iterable
from typing import Any, TypeVar

from launcher_icons.cancel_token import CancellationToken
from launcher_icons.config import Config
from launcher_icons.resolver import IconRequest, IconResolver, ResolveResult

T = TypeVar("T")


class SyncIconResolver:
    """Run an :class:`IconResolver` on a private event loop thread.

    Every public method blocks the calling thread until the underlying
    coroutine finishes. All calls share one loop, so the resolver's HTTP
    connection pool stays bound to a single loop.
    """

    def __init__(self, icon_folder: str | os.PathLike[str], **options: Any) -> None:
        # Built before the loop thread so a failing constructor leaks nothing.
        self.resolver = IconResolver(icon_folder, **options)
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._loop.run_forever, name="launcher-icons", daemon=True
        )
        self._thread.start()
        self._closed = False

    @classmethod
    def from_config(cls, config: Config, **overrides: Any) -> SyncIconResolver:
        options = config.resolver_options()
        options.update(overrides)
        return cls(config.icon_folder, **options)

    def _run(self, coro: Coroutine[Any, Any, T]) -> T:
        if self._closed:
            coro.close()
            raise RuntimeError("SyncIconResolver is closed")
        return asyncio.run_coroutine_threadsafe(coro, self._loop).result()

    def resolve(
        self, identifier: str, source: str, cancel: CancellationToken | None = None
    ) -> ResolveResult:
        return self._run(self.resolver.resolve(identifier, source, cancel))

    def set_custom_icon(
        self, identifier: str, source: str, cancel: CancellationToken | None = None
    ) -> str:
        return self._run(self.resolver.set_custom_icon(identifier, source, cancel))

    def resolve_many(
        self,
        requests: Iterable[IconRequest],
        cancel: CancellationToken | None = None,
        concurrency: int = 8,
    ) -> dict[str, ResolveResult]:
        return self._run(self.resolver.resolve_many(list(requests), cancel, concurrency))

    def close(self) -> None:
        if self._closed:
            return
        try:
            self._run(self.resolver.aclose())
        finally:
            self._closed = True
            self._loop.call_soon_threadsafe(self._loop.stop)
            self._thread.join()
            self._loop.close()

    def __enter__(self) -> SyncIconResolver:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
