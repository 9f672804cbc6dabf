"""Local icon extraction for launcher-icons.

This subpackage provides:
- Windows shell icons (SHGetFileInfoW via ctypes)
- freedesktop.org icon-theme lookup
- macOS application bundle icons
"""

from launcher_icons.local.bundle import BundleIconProvider
from launcher_icons.local.shell import ShellIconProvider
from launcher_icons.local.strategy import IconProvider, LocalIconStrategy, default_providers
from launcher_icons.local.theme import ThemeIconProvider

__all__ = [
    "BundleIconProvider",
    "IconProvider",
    "LocalIconStrategy",
    "ShellIconProvider",
    "ThemeIconProvider",
    "default_providers",
]
