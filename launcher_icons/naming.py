"""File-name helpers for cached icons."""

from __future__ import annotations

import hashlib
import re

ICON_SUFFIX = ".png"

# Characters Windows refuses in file names, plus both path separators.
_ILLEGAL_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f\x7f]')

_RESERVED_NAMES = {
    "CON", "PRN", "AUX", "NUL",
    *(f"COM{i}" for i in range(1, 10)),
    *(f"LPT{i}" for i in range(1, 10)),
}

MAX_STEM_LENGTH = 200


def safe_file_name(identifier: str) -> str:
    """Turn an arbitrary item identifier into a flat, filesystem-safe stem.

    Illegal characters and path separators are stripped, then leading and
    trailing dots and whitespace are trimmed. An identifier that sanitizes to
    nothing falls back to a stable hash so it still gets its own file.

    Args:
        identifier: Raw identifier of the launchable item.

    Returns:
        A non-empty name that never starts or ends with a dot.
    """
    text = str(identifier)
    stem = _ILLEGAL_CHARS.sub("", text).strip(" .")

    if len(stem) > MAX_STEM_LENGTH:
        stem = stem[:MAX_STEM_LENGTH].rstrip(" .")

    if not stem:
        digest = hashlib.sha256(text.encode("utf-8", "surrogatepass")).hexdigest()[:16]
        return f"icon-{digest}"

    if stem.split(".")[0].upper() in _RESERVED_NAMES:
        stem = f"_{stem}"

    return stem


def icon_file_name(identifier: str) -> str:
    """Return the PNG file name used to cache the icon of ``identifier``."""
    return safe_file_name(identifier) + ICON_SUFFIX
