"""Remote favicon strategies, tried in order by the resolver.

1. Known favicon providers (the site's own ``/favicon.ico`` plus third-party
   favicon services keyed by host).
2. The first ``<link rel="...icon...">`` of the page itself.
3. ``/favicon.ico`` at the root of the original URL.
"""

from __future__ import annotations

import asyncio
from urllib.parse import SplitResult, urljoin, urlsplit

from launcher_icons.cancel_token import CancellationToken
from launcher_icons.exceptions import RemoteResourceError
from launcher_icons.normalizer import normalize_bytes
from launcher_icons.remote.html import find_icon_href
from launcher_icons.remote.http import HttpFetcher
from launcher_icons.strategy import DiagnosticSink, IconStrategy

DEFAULT_PROVIDERS: tuple[str, ...] = (
    "{scheme}://{host}/favicon.ico",
    "https://icons.duckduckgo.com/ip2/{host}.ico",
    "https://www.google.com/s2/favicons?domain_url={host}",
)


def split_http_url(source: str) -> SplitResult | None:
    """Parse ``source`` as an absolute http(s) URL, or return None."""
    try:
        parts = urlsplit(source)
        host = parts.hostname
    except ValueError:
        return None
    if parts.scheme.lower() not in ("http", "https") or not host:
        return None
    return parts


class RemoteStrategy(IconStrategy):
    """Strategy backed by the shared :class:`HttpFetcher`."""

    def __init__(self, fetcher: HttpFetcher, log: DiagnosticSink | None = None) -> None:
        super().__init__(log)
        self.fetcher = fetcher

    async def download(self, url: str, token: CancellationToken | None) -> bytes | None:
        """Fetch ``url`` and normalize it; any fetch or decode failure gives None."""
        try:
            resource = await self.fetcher.fetch(url, token)
        except RemoteResourceError as e:
            self.note(f"{self.name}: {e}")
            return None

        if not resource.content:
            self.note(f"{self.name}: empty body from {url}")
            return None

        # Pillow decoding blocks; run it on a worker thread.
        png = await asyncio.to_thread(normalize_bytes, resource.content)
        if png is None:
            self.note(f"{self.name}: {url} is not a recognizable image")
        return png


class ProviderStrategy(RemoteStrategy):
    """Try each favicon provider template in order."""

    name = "providers"

    def __init__(
        self,
        fetcher: HttpFetcher,
        templates: tuple[str, ...] | list[str] = DEFAULT_PROVIDERS,
        log: DiagnosticSink | None = None,
    ) -> None:
        super().__init__(fetcher, log)
        self.templates = tuple(templates)

    def candidate_urls(self, source: str) -> list[str]:
        parts = split_http_url(source)
        if parts is None:
            return []

        urls = []
        for template in self.templates:
            try:
                url = template.format(
                    scheme=parts.scheme.lower(), host=parts.hostname, netloc=parts.netloc
                )
            except (KeyError, IndexError, ValueError):
                self.note(f"{self.name}: bad provider template {template!r}")
                continue
            if split_http_url(url) is not None:
                urls.append(url)
        return urls

    async def fetch(self, source: str, token: CancellationToken | None) -> bytes | None:
        for url in self.candidate_urls(source):
            png = await self.download(url, token)
            if png is not None:
                return png
        return None


class HtmlLinkStrategy(RemoteStrategy):
    """Scrape the page for an icon link and download it."""

    name = "html"

    async def fetch(self, source: str, token: CancellationToken | None) -> bytes | None:
        page = await self.fetcher.fetch(source, token)
        if not page.content:
            self.note(f"{self.name}: empty page at {source}")
            return None
        if page.content_type and not page.is_html:
            self.note(f"{self.name}: {source} is {page.content_type}, not HTML")
            return None

        href = find_icon_href(page.text, page.url)
        if href is None:
            self.note(f"{self.name}: no icon link on {source}")
            return None

        return await self.download(href, token)


class RootFaviconStrategy(RemoteStrategy):
    """Last resort: ``/favicon.ico`` on the original scheme, host and port."""

    name = "root"

    async def fetch(self, source: str, token: CancellationToken | None) -> bytes | None:
        if split_http_url(source) is None:
            return None
        return await self.download(urljoin(source, "/favicon.ico"), token)
