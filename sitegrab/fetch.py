"""Plain HTTP fetching with httpx. Failures are logged and reported as None."""

import logging
from contextlib import nullcontext
from typing import Optional, Tuple

import httpx
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
DEFAULT_TIMEOUT = 30


def make_client(
    user_agent: str = DEFAULT_USER_AGENT, timeout: float = DEFAULT_TIMEOUT
) -> httpx.Client:
    return httpx.Client(
        headers={"User-Agent": user_agent},
        timeout=timeout,
        follow_redirects=True,
    )


def client_scope(
    client: Optional[httpx.Client] = None,
    user_agent: str = DEFAULT_USER_AGENT,
    timeout: float = DEFAULT_TIMEOUT,
):
    """Use the caller's client as-is, or open (and later close) a new one."""
    if client is not None:
        return nullcontext(client)
    return make_client(user_agent=user_agent, timeout=timeout)


def _get(client: httpx.Client, url: str) -> Optional[httpx.Response]:
    try:
        resp = client.get(url)
        resp.raise_for_status()
    except httpx.HTTPError as exc:
        logger.warning("Failed to fetch %s: %s", url, exc)
        return None
    return resp


def fetch_html(client: httpx.Client, url: str) -> Optional[str]:
    """Fetch a page and return its markup, or None if it is not HTML."""
    resp = _get(client, url)
    if resp is None:
        return None

    ctype = resp.headers.get("Content-Type", "").lower()
    if ctype and "html" not in ctype and "text" not in ctype:
        logger.debug("Skipping %s (content type %s)", url, ctype)
        return None
    return resp.text


def fetch_text(client: httpx.Client, url: str) -> Optional[str]:
    resp = _get(client, url)
    return resp.text if resp is not None else None


def fetch_bytes(client: httpx.Client, url: str) -> Optional[Tuple[bytes, str]]:
    """Return (content, content_type) for a binary asset."""
    resp = _get(client, url)
    if resp is None:
        return None
    return resp.content, resp.headers.get("Content-Type", "")


def fetch_soup(client: httpx.Client, url: str) -> Optional[Tuple[str, BeautifulSoup]]:
    html = fetch_html(client, url)
    if html is None:
        return None
    return html, BeautifulSoup(html, "html.parser")
