"""Google Images search scraper: thumbnails, high-res previews, downloads."""

import functools
import logging
from pathlib import Path
from typing import Dict, List, Optional
from urllib.parse import quote_plus

import click
import httpx
from playwright.async_api import Error as PlaywrightError

from .. import browser
from ..fetch import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT, client_scope, fetch_bytes
from ..output import RunResult, prepare_output_dir, write_json
from ..utils import extension_for

logger = logging.getLogger(__name__)

MAX_SCROLLS = 10
SCROLL_PAUSE = 1.5
CLICK_PAUSE = 0.8
MIN_THUMBNAIL_SIZE = 50

THUMBNAIL_COUNT_JS = "() => document.querySelectorAll('img[data-src], img[src*=\"encrypted\"]').length"

THUMBNAILS_JS = """
([max, minSize]) => {
    const images = [];
    for (const img of document.querySelectorAll('img')) {
        if (images.length >= max) break;
        const src = img.src || img.dataset.src;
        if (!src || !src.startsWith('http') || src.includes('google.com/images')) continue;
        if (img.width > minSize && img.height > minSize) {
            images.push({
                src,
                alt: img.alt || '',
                width: img.naturalWidth || img.width,
                height: img.naturalHeight || img.height
            });
        }
    }
    return images;
}
"""

HIGH_RES_JS = """
() => {
    const preview = document.querySelector('img[data-noaft="1"]');
    if (preview && preview.src && preview.src.startsWith('http')) return preview.src;
    const large = document.querySelector('a[target="_blank"] img');
    return large && large.src ? large.src : null;
}
"""


def search_url(query: str) -> str:
    return f"https://www.google.com/search?q={quote_plus(query)}&tbm=isch"


def merge_image_urls(high_res: List[str], thumbnails: List[Dict], max_images: int) -> List[str]:
    """High-res URLs first, then thumbnail srcs; unique, capped at max_images."""
    merged = dict.fromkeys(high_res)
    merged.update(dict.fromkeys(t["src"] for t in thumbnails))
    return list(merged)[:max_images]


async def _scroll_results(page, max_images: int) -> None:
    previous_height = 0
    for _ in range(MAX_SCROLLS):
        await page.evaluate("() => window.scrollTo(0, document.body.scrollHeight)")
        await browser.pause(page, SCROLL_PAUSE)

        height = await page.evaluate("() => document.body.scrollHeight")
        if height == previous_height:
            break
        previous_height = height

        count = await page.evaluate(THUMBNAIL_COUNT_JS)
        if count >= max_images:
            break
        logger.info("Scrolling... (found %d images)", count)


async def collect_images(page, data, max_images: int = 50) -> None:
    await _scroll_results(page, max_images)
    data["thumbnails"] = await page.evaluate(THUMBNAILS_JS, [max_images, MIN_THUMBNAIL_SIZE])
    logger.info("Extracting high-res URLs from %d thumbnails", len(data["thumbnails"]))

    high_res = []
    thumbnails = await page.query_selector_all("img[data-src], div[data-id] img")
    for thumb in thumbnails[:max_images]:
        try:
            await thumb.click()
            await browser.pause(page, CLICK_PAUSE)
            url = await page.evaluate(HIGH_RES_JS)
        except PlaywrightError as exc:
            logger.debug("Thumbnail click failed: %s", exc)
            continue

        if url and "google.com" not in url and url not in high_res:
            high_res.append(url)
            logger.info("[%d/%d] Found high-res image", len(high_res), max_images)
        if len(high_res) >= max_images:
            break
    data["high_res"] = high_res


def download_images(client: httpx.Client, urls: List[str], dest: Path) -> int:
    dest.mkdir(parents=True, exist_ok=True)
    downloaded = 0
    for i, url in enumerate(urls, start=1):
        fetched = fetch_bytes(client, url)
        if fetched is None:
            continue
        content, content_type = fetched
        filename = f"image_{i}{extension_for(content_type, default='.jpg')}"
        (dest / filename).write_bytes(content)
        downloaded += 1
        logger.info("Saved %s", filename)
    return downloaded


def run(
    query: str,
    output_dir: Path,
    *,
    max_images: int = 50,
    keep: bool = False,
    headless: bool = True,
    timeout: float = DEFAULT_TIMEOUT,
    user_agent: str = DEFAULT_USER_AGENT,
    client: Optional[httpx.Client] = None,
) -> RunResult:
    if not query.strip():
        raise click.UsageError("A search query is required")

    prepare_output_dir(output_dir, keep)
    result = RunResult(output_dir)

    logger.info('Searching Google Images for "%s" (max %d)', query, max_images)
    rendered = browser.render(
        search_url(query),
        interact=functools.partial(collect_images, max_images=max_images),
        headless=headless,
        timeout=timeout,
    )
    data = rendered.data
    urls = merge_image_urls(data.get("high_res", []), data.get("thumbnails", []), max_images)
    result.saved(write_json(output_dir / "image-urls.json", urls))

    logger.info("Downloading %d images", len(urls))
    with client_scope(client, user_agent, timeout) as http:
        downloaded = download_images(http, urls, output_dir)

    result.summary = {
        "Query": query,
        "Image URLs": len(urls),
        "High-res previews": len(data.get("high_res", [])),
        "Downloaded": downloaded,
    }
    return result
