"""Tests for local icon extraction (theme, bundle, shell, strategy)."""

import asyncio
import os
import plistlib
import stat
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from PIL import Image

from launcher_icons.cancel_token import CancellationToken
from launcher_icons.exceptions import ResolutionCancelled
from launcher_icons.local import (
    BundleIconProvider,
    LocalIconStrategy,
    ShellIconProvider,
    ThemeIconProvider,
    default_providers,
)
from launcher_icons.local.bundle import bundle_icon_path
from launcher_icons.local.theme import default_icon_dirs, icon_names_for, read_desktop_icon

RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)


def save_icon(path: Path, color=RED, size=(48, 48)) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGBA", size, color).save(path, format="PNG")
    return path


@pytest.fixture
def icon_root(tmp_path):
    """An empty icon base directory."""
    root = tmp_path / "share" / "icons"
    root.mkdir(parents=True)
    return root


@pytest.fixture
def theme(icon_root):
    return ThemeIconProvider(icon_dirs=[icon_root])


class TestIconNames:
    """Tests for icon_names_for() and read_desktop_icon()."""

    def test_directory_names(self, tmp_path):
        assert icon_names_for(tmp_path)[0] == "folder"

    def test_mime_names_come_first(self, tmp_path):
        target = tmp_path / "notes.txt"
        target.write_text("x")
        names = icon_names_for(target)
        assert names[:2] == ["text-plain", "text-x-generic"]
        assert names.count("text-x-generic") == 1

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX execute bit")
    def test_executable_names(self, tmp_path):
        target = tmp_path / "tool"
        target.write_text("#!/bin/sh\n")
        target.chmod(target.stat().st_mode | stat.S_IXUSR)
        assert "application-x-executable" in icon_names_for(target)

    def test_desktop_icon_value(self, tmp_path):
        entry = tmp_path / "app.desktop"
        entry.write_text("[Desktop Entry]\nName=App\nIcon=my-app\n")
        assert read_desktop_icon(entry) == "my-app"

    def test_desktop_without_section(self, tmp_path):
        entry = tmp_path / "broken.desktop"
        entry.write_text("Icon=nope\n")
        assert read_desktop_icon(entry) is None

    def test_default_icon_dirs_follow_xdg(self, monkeypatch, tmp_path):
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "home"))
        monkeypatch.setenv("XDG_DATA_DIRS", os.pathsep.join([str(tmp_path / "a"), str(tmp_path / "b")]))
        dirs = default_icon_dirs()
        assert tmp_path / "home" / "icons" in dirs
        assert dirs.index(tmp_path / "a" / "icons") < dirs.index(tmp_path / "b" / "icons")


class TestThemeIconProvider:
    """Tests for ThemeIconProvider."""

    def test_folder_icon(self, theme, icon_root, tmp_path):
        save_icon(icon_root / "hicolor" / "48x48" / "places" / "folder.png")
        image = theme.extract(tmp_path)
        assert image is not None
        assert image.size == (48, 48)

    def test_mime_icon(self, theme, icon_root, tmp_path):
        save_icon(icon_root / "hicolor" / "32x32" / "mimetypes" / "text-plain.png", size=(32, 32))
        target = tmp_path / "readme.txt"
        target.write_text("x")
        assert theme.extract(target).size == (32, 32)

    def test_context_size_layout(self, theme, icon_root, tmp_path):
        """Themes laid out as <context>/<size> are searched too."""
        save_icon(icon_root / "Adwaita" / "places" / "48x48" / "folder.png")
        assert theme.extract(tmp_path) is not None

    def test_preferred_theme_wins(self, theme, icon_root, tmp_path):
        save_icon(icon_root / "aaa-theme" / "48x48" / "places" / "folder.png", color=RED)
        save_icon(icon_root / "hicolor" / "48x48" / "places" / "folder.png", color=BLUE)
        assert theme.extract(tmp_path).getpixel((0, 0)) == BLUE

    def test_flat_pixmaps_directory(self, theme, icon_root, tmp_path):
        save_icon(icon_root / "unknown.png")
        target = tmp_path / "blob.nothing"
        target.write_bytes(b"\x00")
        assert theme.extract(target) is not None

    def test_desktop_entry_icon_name(self, theme, icon_root, tmp_path):
        save_icon(icon_root / "hicolor" / "48x48" / "apps" / "my-app.png", color=BLUE)
        entry = tmp_path / "my.desktop"
        entry.write_text("[Desktop Entry]\nIcon=my-app.png\n")
        assert theme.extract(entry).getpixel((0, 0)) == BLUE

    def test_desktop_entry_absolute_icon(self, theme, tmp_path):
        icon = save_icon(tmp_path / "art" / "custom.png", color=BLUE, size=(20, 20))
        entry = tmp_path / "my.desktop"
        entry.write_text(f"[Desktop Entry]\nIcon={icon}\n")
        assert theme.extract(entry).size == (20, 20)

    def test_svg_only_theme_yields_nothing(self, theme, icon_root, tmp_path):
        svg = icon_root / "hicolor" / "48x48" / "places" / "folder.svg"
        svg.parent.mkdir(parents=True)
        svg.write_text("<svg/>")
        assert theme.extract(tmp_path) is None

    def test_corrupt_icon_file_is_skipped(self, theme, icon_root, tmp_path):
        bad = icon_root / "hicolor" / "48x48" / "places" / "folder.png"
        bad.parent.mkdir(parents=True)
        bad.write_bytes(b"not a png")
        save_icon(icon_root / "hicolor" / "48x48" / "places" / "inode-directory.png")
        assert theme.extract(tmp_path) is not None

    def test_missing_icon_dirs(self, tmp_path):
        provider = ThemeIconProvider(icon_dirs=[tmp_path / "does-not-exist"])
        assert provider.extract(tmp_path) is None


class TestBundleIconProvider:
    """Tests for macOS bundle icon lookup."""

    def make_bundle(self, root: Path, icon_file="AppIcon", png=True) -> Path:
        bundle = root / "Demo.app"
        contents = bundle / "Contents"
        (contents / "Resources").mkdir(parents=True)
        with (contents / "Info.plist").open("wb") as f:
            plistlib.dump({"CFBundleIconFile": icon_file}, f)
        if png:
            # Pillow identifies the file by content, not by extension.
            save_icon(contents / "Resources" / "AppIcon.icns", color=BLUE, size=(64, 64))
        return bundle

    def test_icon_from_bundle(self, tmp_path):
        bundle = self.make_bundle(tmp_path)
        image = BundleIconProvider().extract(bundle)
        assert image.size == (64, 64)

    def test_icns_suffix_optional(self, tmp_path):
        bundle = self.make_bundle(tmp_path, icon_file="AppIcon.icns")
        assert bundle_icon_path(bundle).name == "AppIcon.icns"

    def test_missing_resource(self, tmp_path):
        bundle = self.make_bundle(tmp_path, png=False)
        assert BundleIconProvider().extract(bundle) is None

    def test_not_a_bundle(self, tmp_path):
        plain = tmp_path / "plain"
        plain.mkdir()
        assert BundleIconProvider().extract(plain) is None

    def test_broken_plist(self, tmp_path):
        bundle = tmp_path / "Broken.app"
        (bundle / "Contents").mkdir(parents=True)
        (bundle / "Contents" / "Info.plist").write_bytes(b"garbage")
        assert bundle_icon_path(bundle) is None


class TestShellIconProvider:
    """Tests for the Windows shell provider with mocked Win32 libraries."""

    def make_provider(self):
        return ShellIconProvider(shell32=MagicMock(), user32=MagicMock(), gdi32=MagicMock())

    def test_icon_destroyed_after_conversion(self):
        provider = self.make_provider()
        image = Image.new("RGBA", (32, 32), RED)
        with patch.object(provider, "_query_shell_icon", return_value=1234), patch.object(
            provider, "_hicon_to_image", return_value=image
        ):
            assert provider.extract(Path("C:/app.exe")) is image
        provider._user32.DestroyIcon.assert_called_once_with(1234)

    def test_icon_destroyed_when_conversion_fails(self):
        """The HICON is released even if reading its pixels raises."""
        provider = self.make_provider()
        with patch.object(provider, "_query_shell_icon", return_value=99), patch.object(
            provider, "_hicon_to_image", side_effect=RuntimeError("GDI failure")
        ):
            with pytest.raises(RuntimeError):
                provider.extract(Path("C:/app.exe"))
        provider._user32.DestroyIcon.assert_called_once_with(99)

    def test_small_icon_fallback(self):
        provider = self.make_provider()
        image = Image.new("RGBA", (16, 16), RED)
        with patch.object(provider, "_query_shell_icon", side_effect=[0, 55]), patch.object(
            provider, "_hicon_to_image", return_value=image
        ):
            assert provider.extract(Path("C:/app.exe")) is image
        provider._user32.DestroyIcon.assert_called_once_with(55)

    def test_no_icon_at_all(self):
        provider = self.make_provider()
        with patch.object(provider, "_query_shell_icon", return_value=0):
            assert provider.extract(Path("C:/missing")) is None
        provider._user32.DestroyIcon.assert_not_called()

    @pytest.mark.skipif(sys.platform != "win32", reason="requires the Windows shell")
    def test_real_shell_icon(self):
        image = ShellIconProvider().extract(Path(sys.executable))
        assert image is not None
        assert image.mode == "RGBA"


class FakeProvider:
    def __init__(self, name, result=None, error=None):
        self.name = name
        self.result = result
        self.error = error
        self.calls = []

    def extract(self, path):
        self.calls.append(path)
        if self.error is not None:
            raise self.error
        return self.result


class TestLocalIconStrategy:
    """Tests for LocalIconStrategy."""

    def test_first_image_wins(self, tmp_path):
        first = FakeProvider("a", result=Image.new("RGB", (8, 8), (1, 2, 3)))
        second = FakeProvider("b", result=Image.new("RGB", (8, 8)))
        strategy = LocalIconStrategy([first, second])
        png = asyncio.run(strategy.attempt(str(tmp_path)))
        assert png.startswith(b"\x89PNG")
        assert second.calls == []

    def test_failing_provider_falls_through(self, tmp_path):
        logged = []
        broken = FakeProvider("broken", error=OSError("denied"))
        empty = FakeProvider("empty")
        good = FakeProvider("good", result=Image.new("RGBA", (4, 4), RED))
        strategy = LocalIconStrategy([broken, empty, good], log=logged.append)
        assert asyncio.run(strategy.attempt(str(tmp_path))) is not None
        assert any("broken provider failed" in line for line in logged)

    def test_no_provider_result_is_none(self, tmp_path):
        logged = []
        strategy = LocalIconStrategy([FakeProvider("empty")], log=logged.append)
        assert asyncio.run(strategy.attempt(str(tmp_path))) is None
        assert any("No icon available" in line for line in logged)

    def test_cancelled_before_extraction(self, tmp_path):
        provider = FakeProvider("a", result=Image.new("RGBA", (4, 4)))
        token = CancellationToken()
        token.cancel()
        with pytest.raises(ResolutionCancelled):
            asyncio.run(LocalIconStrategy([provider]).attempt(str(tmp_path), token))
        assert provider.calls == []

    @pytest.mark.parametrize(
        ("platform", "expected"),
        [
            ("win32", [ShellIconProvider]),
            ("darwin", [BundleIconProvider, ThemeIconProvider]),
            ("linux", [ThemeIconProvider]),
        ],
    )
    def test_default_providers(self, platform, expected):
        assert [type(p) for p in default_providers(platform)] == expected
