"""Windows shell icons via ``SHGetFileInfoW``.

Every HICON handed out by the shell is owned by the caller. The handle is
held in :meth:`ShellIconProvider.native_icon`, cloned into a Pillow image and
destroyed on every exit path.
"""

from __future__ import annotations

import ctypes
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from functools import lru_cache
from pathlib import Path
from typing import Any

from PIL import Image

from launcher_icons.exceptions import LocalIconError

logger = logging.getLogger(__name__)

SHGFI_ICON = 0x000000100
SHGFI_LARGEICON = 0x000000000
SHGFI_SMALLICON = 0x000000001

DI_NORMAL = 0x0003
BI_RGB = 0
DIB_RGB_COLORS = 0

ICON_FLAGS = (SHGFI_ICON | SHGFI_LARGEICON, SHGFI_ICON | SHGFI_SMALLICON)


@lru_cache(maxsize=1)
def _win32_types() -> dict[str, Any]:
    # ctypes.wintypes is only imported on Windows code paths.
    from ctypes import wintypes

    class SHFILEINFOW(ctypes.Structure):
        _fields_ = [
            ("hIcon", wintypes.HICON),
            ("iIcon", ctypes.c_int),
            ("dwAttributes", wintypes.DWORD),
            ("szDisplayName", wintypes.WCHAR * 260),
            ("szTypeName", wintypes.WCHAR * 80),
        ]

    class ICONINFO(ctypes.Structure):
        _fields_ = [
            ("fIcon", wintypes.BOOL),
            ("xHotspot", wintypes.DWORD),
            ("yHotspot", wintypes.DWORD),
            ("hbmMask", wintypes.HBITMAP),
            ("hbmColor", wintypes.HBITMAP),
        ]

    class BITMAP(ctypes.Structure):
        _fields_ = [
            ("bmType", wintypes.LONG),
            ("bmWidth", wintypes.LONG),
            ("bmHeight", wintypes.LONG),
            ("bmWidthBytes", wintypes.LONG),
            ("bmPlanes", wintypes.WORD),
            ("bmBitsPixel", wintypes.WORD),
            ("bmBits", ctypes.c_void_p),
        ]

    class BITMAPINFOHEADER(ctypes.Structure):
        _fields_ = [
            ("biSize", wintypes.DWORD),
            ("biWidth", wintypes.LONG),
            ("biHeight", wintypes.LONG),
            ("biPlanes", wintypes.WORD),
            ("biBitCount", wintypes.WORD),
            ("biCompression", wintypes.DWORD),
            ("biSizeImage", wintypes.DWORD),
            ("biXPelsPerMeter", wintypes.LONG),
            ("biYPelsPerMeter", wintypes.LONG),
            ("biClrUsed", wintypes.DWORD),
            ("biClrImportant", wintypes.DWORD),
        ]

    class BITMAPINFO(ctypes.Structure):
        _fields_ = [
            ("bmiHeader", BITMAPINFOHEADER),
            ("bmiColors", wintypes.DWORD * 3),
        ]

    return {
        "wintypes": wintypes,
        "SHFILEINFOW": SHFILEINFOW,
        "ICONINFO": ICONINFO,
        "BITMAP": BITMAP,
        "BITMAPINFOHEADER": BITMAPINFOHEADER,
        "BITMAPINFO": BITMAPINFO,
    }


def _load_libraries() -> tuple[Any, Any, Any]:
    types = _win32_types()
    wintypes = types["wintypes"]
    handle = ctypes.c_void_p

    shell32 = ctypes.WinDLL("shell32", use_last_error=True)
    user32 = ctypes.WinDLL("user32", use_last_error=True)
    gdi32 = ctypes.WinDLL("gdi32", use_last_error=True)

    shell32.SHGetFileInfoW.argtypes = [
        wintypes.LPCWSTR, wintypes.DWORD, ctypes.c_void_p, wintypes.UINT, wintypes.UINT,
    ]
    shell32.SHGetFileInfoW.restype = ctypes.c_size_t

    user32.DestroyIcon.argtypes = [handle]
    user32.DestroyIcon.restype = wintypes.BOOL
    user32.GetIconInfo.argtypes = [handle, ctypes.c_void_p]
    user32.GetIconInfo.restype = wintypes.BOOL
    user32.DrawIconEx.argtypes = [
        handle, ctypes.c_int, ctypes.c_int, handle, ctypes.c_int, ctypes.c_int,
        wintypes.UINT, handle, wintypes.UINT,
    ]
    user32.DrawIconEx.restype = wintypes.BOOL

    gdi32.CreateCompatibleDC.argtypes = [handle]
    gdi32.CreateCompatibleDC.restype = handle
    gdi32.CreateDIBSection.argtypes = [
        handle, ctypes.c_void_p, wintypes.UINT, ctypes.c_void_p, handle, wintypes.DWORD,
    ]
    gdi32.CreateDIBSection.restype = handle
    gdi32.SelectObject.argtypes = [handle, handle]
    gdi32.SelectObject.restype = handle
    gdi32.DeleteObject.argtypes = [handle]
    gdi32.DeleteObject.restype = wintypes.BOOL
    gdi32.DeleteDC.argtypes = [handle]
    gdi32.DeleteDC.restype = wintypes.BOOL
    gdi32.GetObjectW.argtypes = [handle, ctypes.c_int, ctypes.c_void_p]
    gdi32.GetObjectW.restype = ctypes.c_int
    gdi32.GdiFlush.argtypes = []
    gdi32.GdiFlush.restype = wintypes.BOOL

    return shell32, user32, gdi32


class ShellIconProvider:
    """Associated-file and folder icons from the Windows shell."""

    name = "shell"

    def __init__(self, shell32: Any = None, user32: Any = None, gdi32: Any = None) -> None:
        self._shell32 = shell32
        self._user32 = user32
        self._gdi32 = gdi32

    def _libs(self) -> tuple[Any, Any, Any]:
        if self._shell32 is None or self._user32 is None or self._gdi32 is None:
            self._shell32, self._user32, self._gdi32 = _load_libraries()
        return self._shell32, self._user32, self._gdi32

    def extract(self, path: Path) -> Image.Image | None:
        """Return the shell icon for ``path``, large size first, then small."""
        for flags in ICON_FLAGS:
            with self.native_icon(path, flags) as hicon:
                if hicon:
                    return self._hicon_to_image(hicon)
        return None

    @contextmanager
    def native_icon(self, path: Path, flags: int) -> Iterator[int]:
        """Acquire a shell HICON for ``path`` and destroy it on exit."""
        hicon = self._query_shell_icon(path, flags)
        try:
            yield hicon
        finally:
            if hicon:
                _, user32, _ = self._libs()
                user32.DestroyIcon(hicon)

    def _query_shell_icon(self, path: Path, flags: int) -> int:
        shell32, _, _ = self._libs()
        info = _win32_types()["SHFILEINFOW"]()
        result = shell32.SHGetFileInfoW(
            str(path), 0, ctypes.byref(info), ctypes.sizeof(info), flags
        )
        if not result:
            return 0
        return info.hIcon or 0

    def _hicon_to_image(self, hicon: int) -> Image.Image:
        """Draw ``hicon`` into a 32-bit DIB and copy the pixels out."""
        _, user32, gdi32 = self._libs()
        types = _win32_types()

        icon_info = types["ICONINFO"]()
        if not user32.GetIconInfo(hicon, ctypes.byref(icon_info)):
            raise LocalIconError("<hicon>", details={"error": "GetIconInfo failed"})

        try:
            bitmap = types["BITMAP"]()
            source_bitmap = icon_info.hbmColor or icon_info.hbmMask
            gdi32.GetObjectW(source_bitmap, ctypes.sizeof(bitmap), ctypes.byref(bitmap))
            width = bitmap.bmWidth
            # Monochrome icons stack AND and XOR masks vertically.
            height = bitmap.bmHeight if icon_info.hbmColor else bitmap.bmHeight // 2
            if width <= 0 or height <= 0:
                raise LocalIconError("<hicon>", details={"error": "empty icon bitmap"})

            raw = self._render(user32, gdi32, types, hicon, width, height)
        finally:
            if icon_info.hbmColor:
                gdi32.DeleteObject(icon_info.hbmColor)
            if icon_info.hbmMask:
                gdi32.DeleteObject(icon_info.hbmMask)

        image = Image.frombuffer("RGBA", (width, height), raw, "raw", "BGRA", 0, 1).copy()
        if image.getextrema()[3] == (0, 0):
            # Legacy icons carry no alpha channel at all.
            image.putalpha(255)
        return image

    @staticmethod
    def _render(
        user32: Any, gdi32: Any, types: dict[str, Any], hicon: int, width: int, height: int
    ) -> bytes:
        hdc = gdi32.CreateCompatibleDC(None)
        if not hdc:
            raise LocalIconError("<hicon>", details={"error": "CreateCompatibleDC failed"})
        try:
            bmi = types["BITMAPINFO"]()
            bmi.bmiHeader.biSize = ctypes.sizeof(types["BITMAPINFOHEADER"])
            bmi.bmiHeader.biWidth = width
            bmi.bmiHeader.biHeight = -height  # top-down rows
            bmi.bmiHeader.biPlanes = 1
            bmi.bmiHeader.biBitCount = 32
            bmi.bmiHeader.biCompression = BI_RGB

            bits = ctypes.c_void_p()
            dib = gdi32.CreateDIBSection(
                hdc, ctypes.byref(bmi), DIB_RGB_COLORS, ctypes.byref(bits), None, 0
            )
            if not dib:
                raise LocalIconError("<hicon>", details={"error": "CreateDIBSection failed"})
            try:
                previous = gdi32.SelectObject(hdc, dib)
                try:
                    user32.DrawIconEx(hdc, 0, 0, hicon, width, height, 0, None, DI_NORMAL)
                    gdi32.GdiFlush()
                    return ctypes.string_at(bits, width * height * 4)
                finally:
                    gdi32.SelectObject(hdc, previous)
            finally:
                gdi32.DeleteObject(dib)
        finally:
            gdi32.DeleteDC(hdc)
