"""
Headless browser rendering through crawl4ai.

render() runs a single AsyncWebCrawler pass over a URL. Callers that need to
drive the page (click a result, scroll a panel, read computed styles) pass an
``interact`` coroutine; it runs in crawl4ai's ``before_retrieve_html`` hook
with the live Playwright page, so the HTML returned reflects whatever state the
interaction left the page in.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

import click

from crawl4ai import AsyncWebCrawler, BrowserConfig, CacheMode, CrawlerRunConfig

logger = logging.getLogger(__name__)

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
PAGE_TIMEOUT = 60
BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-blink-features=AutomationControlled",
]

Interaction = Callable[[Any, Dict[str, Any]], Awaitable[None]]


@dataclass
class RenderedPage:
    url: str
    final_url: str
    html: str
    screenshot: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    network_requests: List[Dict[str, Any]] = field(default_factory=list)


async def pause(page, seconds: float) -> None:
    """Let the page settle (animations, lazy loading, XHR)."""
    await page.wait_for_timeout(int(seconds * 1000))


async def render_page(
    url: str,
    *,
    interact: Optional[Interaction] = None,
    screenshot: bool = False,
    scan_full_page: bool = False,
    capture_network: bool = False,
    settle: float = 0.0,
    wait_until: str = "networkidle",
    headless: bool = True,
    timeout: float = PAGE_TIMEOUT,
    viewport: Tuple[int, int] = (1920, 1080),
    user_agent: str = BROWSER_USER_AGENT,
) -> RenderedPage:
    browser_config = BrowserConfig(
        headless=headless,
        viewport_width=viewport[0],
        viewport_height=viewport[1],
        user_agent=user_agent,
        extra_args=BROWSER_ARGS,
        verbose=False,
    )

    crawler_config = CrawlerRunConfig(
        cache_mode=CacheMode.BYPASS,
        page_timeout=int(timeout * 1000),  # Convert to milliseconds
        wait_until=wait_until,
        screenshot=screenshot,
        scan_full_page=scan_full_page,
        capture_network_requests=capture_network,
        delay_before_return_html=settle,
        verbose=False,
    )

    data: Dict[str, Any] = {}

    async def before_retrieve_html(page, context=None, **kwargs):
        if interact is not None:
            await interact(page, data)
        data.setdefault("final_url", page.url)
        return page

    logger.debug("Rendering %s", url)
    async with AsyncWebCrawler(config=browser_config) as crawler:
        crawler.crawler_strategy.set_hook("before_retrieve_html", before_retrieve_html)
        result = await crawler.arun(url=url, config=crawler_config)

    if not result.success:
        raise click.ClickException(f"Crawl failed: {result.error_message}")

    return RenderedPage(
        url=url,
        final_url=data.get("final_url") or result.redirected_url or result.url,
        html=result.html or "",
        screenshot=result.screenshot,
        data=data,
        network_requests=list(getattr(result, "network_requests", None) or []),
    )


def render(url: str, **kwargs) -> RenderedPage:
    """Synchronous wrapper around render_page()."""
    return asyncio.run(render_page(url, **kwargs))
