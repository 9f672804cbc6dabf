"""Shared HTTP fetcher for favicon downloads.

Handles fetching icon and page content from URLs with a bounded timeout, a
size cap, and no cookies.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from http.cookiejar import CookieJar, DefaultCookiePolicy

import httpx

from launcher_icons.cancel_token import CancellationToken, run_cancellable
from launcher_icons.exceptions import RemoteResourceError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "launcher-icons/0.1.0"


@dataclass(frozen=True)
class FetchedResource:
    """Body and metadata of a successful GET."""

    url: str
    content: bytes
    content_type: str = ""
    encoding: str | None = None

    @property
    def is_html(self) -> bool:
        return "html" in self.content_type.lower()

    @property
    def text(self) -> str:
        return self.content.decode(self.encoding or "utf-8", errors="replace")


class HttpFetcher:
    """GET-only client shared by every remote strategy of one resolver.

    Wraps a single ``httpx.AsyncClient`` so connections are pooled across
    concurrent resolutions.
    """

    # Default timeout for requests (seconds)
    DEFAULT_TIMEOUT = 5.0

    # Maximum body size to download (5MB)
    MAX_SIZE = 5 * 1024 * 1024

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        max_size: int = MAX_SIZE,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize fetcher.

        Args:
            timeout: Request timeout in seconds.
            max_size: Maximum body size to download.
            user_agent: Client signature sent with every request.
            transport: Optional transport, mainly for tests.
        """
        self.timeout = timeout
        self.max_size = max_size
        # An empty allow-list makes the jar refuse every Set-Cookie.
        no_cookies = CookieJar(policy=DefaultCookiePolicy(allowed_domains=[]))
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers={
                "User-Agent": user_agent,
                "Accept": "image/*, text/html;q=0.9, */*;q=0.8",
            },
            follow_redirects=True,
            cookies=no_cookies,
            transport=transport,
        )

    async def fetch(
        self, url: str, token: CancellationToken | None = None
    ) -> FetchedResource:
        """Download ``url``.

        Args:
            url: Absolute http(s) URL.
            token: Optional cancellation token; aborts the request when fired.

        Returns:
            The fetched resource.

        Raises:
            RemoteResourceError: On transport errors, non-2xx status or an
                oversize body.
            ResolutionCancelled: If the token fired.
        """
        return await run_cancellable(self._fetch(url), token)

    async def _fetch(self, url: str) -> FetchedResource:
        logger.debug("GET %s", url)
        try:
            async with self._client.stream("GET", url) as response:
                if not response.is_success:
                    raise RemoteResourceError(url, status_code=response.status_code)

                content_length = response.headers.get("Content-Length")
                if content_length and content_length.isdigit() and int(content_length) > self.max_size:
                    raise RemoteResourceError(
                        url,
                        details={"error": f"File too large: {content_length} bytes"},
                    )

                body = bytearray()
                async for chunk in response.aiter_bytes():
                    body.extend(chunk)
                    if len(body) > self.max_size:
                        raise RemoteResourceError(
                            url,
                            details={"error": f"File too large: >{self.max_size} bytes"},
                        )

                return FetchedResource(
                    url=str(response.url),
                    content=bytes(body),
                    content_type=response.headers.get("Content-Type", ""),
                    encoding=response.charset_encoding,
                )
        except httpx.HTTPError as e:
            raise RemoteResourceError(url, details={"error": str(e) or type(e).__name__}) from e
        except httpx.InvalidURL as e:
            raise RemoteResourceError(url, details={"error": str(e)}) from e

    async def aclose(self) -> None:
        await self._client.aclose()
