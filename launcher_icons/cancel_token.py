"""Thread-safe cancellation token usable from sync and async code."""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Awaitable, Callable
from contextlib import suppress
from typing import TypeVar

from launcher_icons.exceptions import ResolutionCancelled

T = TypeVar("T")


class CancellationToken:
    """Cooperative cancellation flag.

    ``cancel()`` may be called from any thread. Registered callbacks run once,
    on the cancelling thread, and must not block.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: dict[int, Callable[[], None]] = {}
        self._next_id = 0

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks.values())
            self._callbacks.clear()
        for callback in callbacks:
            callback()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ResolutionCancelled()

    def register(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Run ``callback`` on cancellation (immediately if already cancelled).

        Returns:
            A function that unregisters the callback.
        """
        with self._lock:
            if not self._event.is_set():
                handle = self._next_id
                self._next_id += 1
                self._callbacks[handle] = callback
                return lambda: self._unregister(handle)
        callback()
        return lambda: None

    def _unregister(self, handle: int) -> None:
        with self._lock:
            self._callbacks.pop(handle, None)


async def run_cancellable(awaitable: Awaitable[T], token: CancellationToken | None) -> T:
    """Await ``awaitable``, aborting it as soon as ``token`` is cancelled.

    Raises:
        ResolutionCancelled: If the token fired before or during the await.
    """
    if token is None:
        return await awaitable

    if token.cancelled:
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        raise ResolutionCancelled()

    loop = asyncio.get_running_loop()
    task = asyncio.ensure_future(awaitable)

    def _cancel_task() -> None:
        # The token may fire from another thread after this loop has closed.
        with suppress(RuntimeError):
            loop.call_soon_threadsafe(task.cancel)

    unregister = token.register(_cancel_task)
    try:
        return await task
    except asyncio.CancelledError:
        current = asyncio.current_task()
        if token.cancelled and not (current is not None and current.cancelling()):
            raise ResolutionCancelled() from None
        raise
    finally:
        unregister()
