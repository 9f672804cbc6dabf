"""Filesystem-backed icon cache: one PNG per item identifier."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path

from launcher_icons.naming import ICON_SUFFIX, icon_file_name

logger = logging.getLogger(__name__)


class IconCache:
    """Icons stored as ``<folder>/<safe identifier>.png``.

    Entries never expire. The owner of the item records deletes an entry when
    it deletes the item. Writes go through a temporary file in the same folder
    followed by ``os.replace`` so a reader never sees a half-written icon.
    """

    def __init__(self, folder: str | os.PathLike[str]) -> None:
        """Initialize the cache.

        Args:
            folder: Directory holding the icons. Created if it does not exist.
        """
        self.folder = Path(folder).expanduser().resolve()
        self.folder.mkdir(parents=True, exist_ok=True)

    def path_for(self, identifier: str) -> Path:
        return self.folder / icon_file_name(identifier)

    def lookup(self, identifier: str) -> Path | None:
        """Return the cached icon path if it exists."""
        path = self.path_for(identifier)
        return path if path.is_file() else None

    def contains(self, identifier: str) -> bool:
        return self.lookup(identifier) is not None

    def write(self, identifier: str, data: bytes) -> Path:
        """Atomically store encoded PNG bytes for ``identifier``.

        Returns:
            Path of the written icon.
        """
        target = self.path_for(identifier)
        self.folder.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{target.stem[:32]}-", suffix=".tmp", dir=self.folder
        )
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.debug("Cached icon for %r at %s", identifier, target)
        return target

    def copy_from(self, identifier: str, source: str | os.PathLike[str]) -> Path:
        """Copy an existing image file over the entry for ``identifier``."""
        target = self.path_for(identifier)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{target.stem[:32]}-", suffix=".tmp", dir=self.folder
        )
        os.close(fd)
        try:
            shutil.copyfile(source, tmp_name)
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.debug("Copied custom icon %s to %s", source, target)
        return target

    def remove(self, identifier: str) -> bool:
        """Delete the entry for ``identifier``. Returns True if a file was removed."""
        path = self.path_for(identifier)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True

    def entries(self) -> list[Path]:
        """List cached icon files, sorted by name."""
        return sorted(
            p
            for p in self.folder.iterdir()
            if p.is_file() and p.suffix == ICON_SUFFIX and not p.name.startswith(".")
        )
