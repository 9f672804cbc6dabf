"""macOS application bundle icons (``Foo.app/Contents/Resources/*.icns``)."""

from __future__ import annotations

import logging
import plistlib
from pathlib import Path

from PIL import Image

logger = logging.getLogger(__name__)


def bundle_icon_path(bundle: Path) -> Path | None:
    """Locate the ``.icns`` file declared by a bundle's ``Info.plist``."""
    info_plist = bundle / "Contents" / "Info.plist"
    if not info_plist.is_file():
        return None

    try:
        with info_plist.open("rb") as f:
            info = plistlib.load(f)
    except (plistlib.InvalidFileException, ValueError, OSError) as e:
        logger.debug("Unreadable Info.plist in %s: %s", bundle, e)
        return None

    icon_name = info.get("CFBundleIconFile")
    if not isinstance(icon_name, str) or not icon_name:
        return None
    if not icon_name.endswith(".icns"):
        icon_name += ".icns"

    icon = bundle / "Contents" / "Resources" / icon_name
    return icon if icon.is_file() else None


class BundleIconProvider:
    """Icons of ``.app`` bundles, read from their ICNS resource."""

    name = "bundle"

    def extract(self, path: Path) -> Image.Image | None:
        if path.suffix != ".app" or not path.is_dir():
            return None

        icon = bundle_icon_path(path)
        if icon is None:
            return None

        with Image.open(icon) as image:
            image.load()
            return image.copy()
