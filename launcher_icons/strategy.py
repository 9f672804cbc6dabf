"""Common base for icon strategies.

A strategy is one self-contained way of turning a source string into
normalized PNG bytes. The resolver runs an ordered list of them and stops at
the first that returns bytes.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable

from launcher_icons.cancel_token import CancellationToken
from launcher_icons.exceptions import ResolutionCancelled, is_critical

logger = logging.getLogger(__name__)

DiagnosticSink = Callable[[str], None]


class IconStrategy(ABC):
    """Base class for local and remote icon strategies."""

    name: str = "strategy"

    def __init__(self, log: DiagnosticSink | None = None) -> None:
        self._log = log

    async def attempt(
        self, source: str, token: CancellationToken | None = None
    ) -> bytes | None:
        """Run the strategy, converting every non-critical error into None.

        Raises:
            ResolutionCancelled: If the token fired; cancellation is not a
                strategy failure and must reach the resolver.
        """
        try:
            return await self.fetch(source, token)
        except ResolutionCancelled:
            raise
        except Exception as e:
            if is_critical(e):
                raise
            self.note(f"{self.name} failed for {source!r}: {e}")
            return None

    @abstractmethod
    async def fetch(
        self, source: str, token: CancellationToken | None
    ) -> bytes | None:
        """Produce PNG bytes for ``source`` or None. May raise."""

    def note(self, message: str) -> None:
        logger.debug(message)
        if self._log is not None:
            self._log(message)
