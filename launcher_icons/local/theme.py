"""freedesktop.org icon-theme lookup for files and directories."""

from __future__ import annotations

import configparser
import logging
import mimetypes
import os
from collections.abc import Iterable, Sequence
from pathlib import Path

from PIL import Image

logger = logging.getLogger(__name__)

# Raster formats only; SVG theme entries are skipped.
ICON_EXTENSIONS = (".png", ".xpm")

PREFERRED_SIZES = ("48x48", "64x64", "32x32", "96x96", "128x128", "256x256", "24x24", "16x16")
ICON_CONTEXTS = ("places", "mimetypes", "apps", "devices", "categories")
PREFERRED_THEMES = ("hicolor", "Adwaita", "breeze", "Papirus", "gnome", "oxygen")

FOLDER_ICON_NAMES = ("folder", "inode-directory", "folder-open")
EXECUTABLE_ICON_NAMES = ("application-x-executable", "application-x-sharedlib")
FALLBACK_ICON_NAMES = ("text-x-generic", "unknown", "application-octet-stream")


def default_icon_dirs() -> list[Path]:
    """Icon base directories in XDG lookup order."""
    data_home = os.environ.get("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    data_dirs = os.environ.get("XDG_DATA_DIRS") or "/usr/local/share:/usr/share"

    dirs = [Path.home() / ".icons", Path(data_home) / "icons"]
    dirs.extend(Path(d) / "icons" for d in data_dirs.split(os.pathsep) if d)
    dirs.append(Path("/usr/share/pixmaps"))
    return dirs


def read_desktop_icon(desktop_file: Path) -> str | None:
    """Return the ``Icon=`` value of a ``.desktop`` entry."""
    parser = configparser.ConfigParser(interpolation=None, strict=False)
    parser.optionxform = str  # keys are case-sensitive
    try:
        parser.read(desktop_file, encoding="utf-8")
    except (configparser.Error, UnicodeDecodeError) as e:
        logger.debug("Unreadable desktop entry %s: %s", desktop_file, e)
        return None
    value = parser.get("Desktop Entry", "Icon", fallback="").strip()
    return value or None


def icon_names_for(path: Path) -> list[str]:
    """Candidate theme icon names for ``path``, most specific first."""
    if path.is_dir():
        return list(FOLDER_ICON_NAMES)

    names: list[str] = []
    mime, _ = mimetypes.guess_type(path.name)
    if mime:
        major = mime.split("/", 1)[0]
        names.append(mime.replace("/", "-"))
        names.append(f"{major}-x-generic")
    if os.access(path, os.X_OK):
        names.extend(EXECUTABLE_ICON_NAMES)
    names.extend(FALLBACK_ICON_NAMES)

    return list(dict.fromkeys(names))


class ThemeIconProvider:
    """Look up file-type and folder icons in installed icon themes."""

    name = "theme"

    def __init__(
        self,
        icon_dirs: Sequence[Path] | None = None,
        themes: Sequence[str] = PREFERRED_THEMES,
    ) -> None:
        self.icon_dirs = list(icon_dirs) if icon_dirs is not None else default_icon_dirs()
        self.themes = tuple(themes)

    def extract(self, path: Path) -> Image.Image | None:
        names: list[str] = []

        if path.suffix == ".desktop" and path.is_file():
            icon = read_desktop_icon(path)
            if icon and Path(icon).is_absolute():
                image = self._load(Path(icon))
                if image is not None:
                    return image
            elif icon:
                stem = Path(icon)
                names.append(stem.stem if stem.suffix in (*ICON_EXTENSIONS, ".svg") else icon)

        names.extend(icon_names_for(path))

        for name in names:
            found = self.find_icon(name)
            if found is not None:
                image = self._load(found)
                if image is not None:
                    logger.debug("Theme icon %s for %s", found, path)
                    return image
        return None

    def find_icon(self, name: str) -> Path | None:
        """Find a raster file for icon ``name``, or None."""
        for base in self.icon_dirs:
            if not base.is_dir():
                continue
            for theme_dir in self._theme_dirs(base):
                found = self._search_theme(theme_dir, name)
                if found is not None:
                    return found
            # Flat layouts such as /usr/share/pixmaps
            found = self._first_existing(base / name, ICON_EXTENSIONS)
            if found is not None:
                return found
        return None

    def _theme_dirs(self, base: Path) -> Iterable[Path]:
        preferred = [base / theme for theme in self.themes if (base / theme).is_dir()]
        try:
            others = sorted(
                p for p in base.iterdir() if p.is_dir() and p.name not in self.themes
            )
        except OSError:
            others = []
        return [*preferred, *others]

    @staticmethod
    def _search_theme(theme_dir: Path, name: str) -> Path | None:
        for size in PREFERRED_SIZES:
            for context in ICON_CONTEXTS:
                # Both theme/size/context and theme/context/size layouts exist.
                for directory in (theme_dir / size / context, theme_dir / context / size):
                    found = ThemeIconProvider._first_existing(directory / name, ICON_EXTENSIONS)
                    if found is not None:
                        return found
        return None

    @staticmethod
    def _first_existing(stem: Path, extensions: Sequence[str]) -> Path | None:
        for ext in extensions:
            candidate = stem.with_name(stem.name + ext)
            if candidate.is_file():
                return candidate
        return None

    @staticmethod
    def _load(path: Path) -> Image.Image | None:
        if path.suffix.lower() == ".svg" or not path.is_file():
            return None
        try:
            with Image.open(path) as image:
                image.load()
                return image.copy()
        except (OSError, ValueError, SyntaxError) as e:
            logger.debug("Cannot read icon file %s: %s", path, e)
            return None
