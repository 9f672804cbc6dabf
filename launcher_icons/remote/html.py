"""Icon discovery in HTML pages."""

from __future__ import annotations

from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup


def _rel_text(value: str | list[str] | None) -> str:
    # bs4 splits multi-valued attributes such as rel into lists.
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return " ".join(value)
    return str(value)


def find_icon_href(html: str, page_url: str) -> str | None:
    """Find the first icon ``<link>`` of a page and resolve it.

    A link qualifies when its ``rel`` contains ``icon`` (case-insensitive)
    and its ``href`` is non-empty and not a ``data:`` URI. A ``<base href>``
    replaces ``page_url`` as the base for relative resolution.

    Args:
        html: Page markup.
        page_url: URL the page was served from.

    Returns:
        Absolute http(s) URL of the icon, or None.
    """
    if not html or not html.strip():
        return None

    soup = BeautifulSoup(html, "html.parser")

    base_url = page_url
    base = soup.find("base", href=True)
    if base is not None and base["href"].strip():
        base_url = urljoin(page_url, base["href"].strip())

    for link in soup.find_all("link", href=True):
        if "icon" not in _rel_text(link.get("rel")).lower():
            continue

        href = link["href"].strip()
        if not href or href.lower().startswith("data:"):
            continue

        resolved = urljoin(base_url, href)
        if urlsplit(resolved).scheme.lower() in ("http", "https"):
            return resolved

    return None
