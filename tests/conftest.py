"""Pytest configuration and shared fixtures for launcher-icons tests."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path

import httpx
import pytest
from PIL import Image


def make_image_bytes(
    fmt: str = "PNG",
    size: tuple[int, int] = (16, 16),
    color: tuple[int, ...] = (255, 0, 0, 255),
) -> bytes:
    """Encode a solid-color image in ``fmt`` with Pillow."""
    mode = "RGBA" if fmt in ("PNG", "ICO") else "RGB"
    image = Image.new(mode, size, color[: len(mode)])
    buffer = BytesIO()
    if fmt == "ICO":
        image.save(buffer, format="ICO", sizes=[size])
    elif fmt == "GIF":
        image.convert("P").save(buffer, format="GIF")
    else:
        image.save(buffer, format=fmt)
    return buffer.getvalue()


def _route_key(url: str | httpx.URL) -> tuple[str, str, int | None, str]:
    u = httpx.URL(url)
    return (u.scheme, u.host, u.port, u.raw_path.decode("ascii"))


@dataclass
class FakeWeb:
    """In-memory web used as the httpx transport in tests.

    Unknown URLs answer 404. Every request is recorded in ``requests``.
    """

    routes: dict[tuple[str, str, int | None, str], Callable[[httpx.Request], httpx.Response]] = field(
        default_factory=dict
    )
    requests: list[httpx.Request] = field(default_factory=list)

    def add(
        self,
        url: str,
        content: bytes | str = b"",
        status: int = 200,
        content_type: str = "image/png",
        headers: dict[str, str] | None = None,
    ) -> None:
        body = content.encode("utf-8") if isinstance(content, str) else content
        all_headers = {"Content-Type": content_type, **(headers or {})}

        def respond(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status, content=body, headers=all_headers)

        self.routes[_route_key(url)] = respond

    def add_handler(self, url: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[_route_key(url)] = handler

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get(_route_key(request.url))
        if handler is None:
            return httpx.Response(404, content=b"not found")
        return handler(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    @property
    def urls(self) -> list[str]:
        return [str(r.url) for r in self.requests]

    def count(self, url: str) -> int:
        key = _route_key(url)
        return sum(1 for r in self.requests if _route_key(r.url) == key)


@pytest.fixture
def web() -> FakeWeb:
    """Return an empty fake web; register routes with ``web.add``."""
    return FakeWeb()


@pytest.fixture
def icon_folder(tmp_path: Path) -> Path:
    """Return a fresh icon folder path (not yet created)."""
    return tmp_path / "icons"


@pytest.fixture
def make_image() -> Callable[..., bytes]:
    """Return the image-bytes factory."""
    return make_image_bytes


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes("PNG")


@pytest.fixture
def ico_bytes() -> bytes:
    return make_image_bytes("ICO", size=(32, 32), color=(0, 128, 255, 200))


@pytest.fixture
def html_page() -> Callable[[str], str]:
    """Return a factory wrapping head markup into a minimal HTML page."""

    def _page(head: str) -> str:
        return f"<!DOCTYPE html><html><head>{head}</head><body>hi</body></html>"

    return _page
