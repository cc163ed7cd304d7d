"""
Bounded breadth-first link following.

Every site scraper walks its target the same way: start at one URL, visit it,
queue the in-scope links it exposes, and stop once the page cap is reached.
What a "visit" does (static fetch, browser render, which data to pull out) is
up to the caller.
"""

import logging
from collections import deque
from typing import Callable, Iterable, List, Optional

from bs4 import BeautifulSoup

from .utils import in_scope, normalize_url, resolve_link

logger = logging.getLogger(__name__)

Visit = Callable[[str, int], Optional[Iterable[str]]]


def extract_links(soup: BeautifulSoup, page_url: str, base_url: str) -> List[str]:
    """Ordered, de-duplicated links from a[href] that stay under base_url."""
    links = []
    seen = set()
    for anchor in soup.select("a[href]"):
        href = resolve_link(anchor.get("href"), page_url)
        if href is None or href in seen or not in_scope(href, base_url):
            continue
        seen.add(href)
        links.append(href)
    return links


def crawl(
    start_url: str,
    visit: Visit,
    *,
    base_url: Optional[str] = None,
    max_pages: Optional[int] = 10,
    max_depth: Optional[int] = None,
    links_per_page: Optional[int] = None,
) -> List[str]:
    """
    Visit start_url and the pages it links to, breadth first.

    visit(url, depth) returns the links found on the page, or None when the
    page could not be loaded. Failed pages still count toward max_pages.
    Links are normalized (no fragment, no trailing slash) before the
    visited check. links_per_page caps how many not-yet-queued links are
    taken from each page; links already queued or out of scope are skipped
    without using up that allowance.

    Returns the visited URLs in visit order.
    """
    start_url = normalize_url(start_url)
    base_url = base_url or start_url
    queue = deque([(start_url, 0)])
    queued = {start_url}
    visited: List[str] = []

    while queue:
        if max_pages is not None and len(visited) >= max_pages:
            logger.debug("Page cap of %d reached", max_pages)
            break

        url, depth = queue.popleft()
        visited.append(url)
        logger.info("Crawling %s", url)

        links = visit(url, depth)
        if links is None:
            continue
        if max_depth is not None and depth >= max_depth:
            continue

        followed = 0
        for link in map(normalize_url, links):
            if links_per_page is not None and followed >= links_per_page:
                break
            if link in queued or not in_scope(link, base_url):
                continue
            queued.add(link)
            queue.append((link, depth + 1))
            followed += 1

    return visited
