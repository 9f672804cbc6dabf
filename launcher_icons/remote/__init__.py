"""Remote icon resolution for launcher-icons.

This subpackage provides:
- A shared, cookie-less HTTP fetcher (httpx)
- HTML icon-link discovery (BeautifulSoup)
- The provider / HTML / root-favicon strategy chain
"""

from launcher_icons.remote.html import find_icon_href
from launcher_icons.remote.http import FetchedResource, HttpFetcher
from launcher_icons.remote.strategies import (
    DEFAULT_PROVIDERS,
    HtmlLinkStrategy,
    ProviderStrategy,
    RemoteStrategy,
    RootFaviconStrategy,
    split_http_url,
)

__all__ = [
    "DEFAULT_PROVIDERS",
    "FetchedResource",
    "HtmlLinkStrategy",
    "HttpFetcher",
    "ProviderStrategy",
    "RemoteStrategy",
    "RootFaviconStrategy",
    "find_icon_href",
    "split_http_url",
]
