"""Local extraction strategy: icons for existing files and directories."""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from PIL import Image

from launcher_icons.cancel_token import CancellationToken
from launcher_icons.exceptions import LocalIconError, is_critical
from launcher_icons.local.bundle import BundleIconProvider
from launcher_icons.local.shell import ShellIconProvider
from launcher_icons.local.theme import ThemeIconProvider
from launcher_icons.normalizer import normalize_image
from launcher_icons.strategy import DiagnosticSink, IconStrategy

logger = logging.getLogger(__name__)


class IconProvider(Protocol):
    name: str

    def extract(self, path: Path) -> Image.Image | None: ...


def default_providers(platform: str | None = None) -> list[IconProvider]:
    """Providers appropriate for the running operating system."""
    platform = platform or sys.platform
    if platform == "win32":
        return [ShellIconProvider()]
    if platform == "darwin":
        return [BundleIconProvider(), ThemeIconProvider()]
    return [ThemeIconProvider()]


class LocalIconStrategy(IconStrategy):
    """Ask the operating system for the icon of a file or directory.

    The OS calls are blocking, so they run in a worker thread.
    """

    name = "local"

    def __init__(
        self,
        providers: Sequence[IconProvider] | None = None,
        log: DiagnosticSink | None = None,
    ) -> None:
        super().__init__(log)
        self.providers = list(providers) if providers is not None else default_providers()

    async def fetch(self, source: str, token: CancellationToken | None) -> bytes | None:
        if token is not None:
            token.raise_if_cancelled()

        image = await asyncio.to_thread(self.extract, Path(source))
        if image is None:
            raise LocalIconError(source)
        return normalize_image(image)

    def extract(self, path: Path) -> Image.Image | None:
        """Return the first image any provider yields for ``path``."""
        for provider in self.providers:
            try:
                image = provider.extract(path)
            except Exception as e:
                if is_critical(e):
                    raise
                self.note(f"{provider.name} provider failed for {path}: {e}")
                continue
            if image is not None:
                return image
        return None
