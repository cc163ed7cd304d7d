"""Image scraper: collect every <img> across a site, download and zip them."""

import logging
from pathlib import Path, PurePosixPath
from typing import List, Optional
from urllib.parse import urlparse

import click
import httpx
from bs4 import BeautifulSoup

from ..crawl import crawl, extract_links
from ..fetch import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT, client_scope, fetch_bytes, fetch_soup
from ..media import compress_image
from ..output import RunResult, build_zip, prepare_output_dir, write_json
from ..utils import extension_for, normalize_url, resolve_link, unique_filename

logger = logging.getLogger(__name__)


def extract_image_urls(soup: BeautifulSoup, page_url: str) -> List[str]:
    urls = []
    for img in soup.find_all("img"):
        src = resolve_link(img.get("src") or img.get("data-src"), page_url)
        if src and src not in urls:
            urls.append(src)
    return urls


def image_filename(url: str, content_type: str, taken: set, suffix: Optional[str] = None) -> str:
    """
    Basename of the URL path (query dropped), with an extension guaranteed.

    suffix replaces the extension (re-encoded images are always .jpg). The
    final name is reserved in taken.
    """
    name = PurePosixPath(urlparse(url).path).name or "image"
    if suffix:
        name = PurePosixPath(name).stem + suffix
    elif not PurePosixPath(name).suffix:
        name += extension_for(content_type, url, ".jpg")
    return unique_filename(name, taken)


def download_images(
    client: httpx.Client, urls: List[str], dest: Path, max_width: Optional[int] = None
) -> List[Path]:
    dest.mkdir(parents=True, exist_ok=True)
    taken = {p.name for p in dest.iterdir()}
    saved = []

    for img_url in urls:
        fetched = fetch_bytes(client, img_url)
        if fetched is None:
            continue
        content, content_type = fetched

        suffix = None
        if max_width and "svg" not in content_type:
            try:
                content = compress_image(content, max_width=max_width)
                suffix = ".jpg"
            except OSError as exc:
                logger.debug("Keeping original bytes for %s: %s", img_url, exc)

        filename = image_filename(img_url, content_type, taken, suffix)

        path = dest / filename
        path.write_bytes(content)
        saved.append(path)
        logger.debug("Saved %s", filename)

    return saved


def run(
    url: str,
    output_dir: Path,
    *,
    keep: bool = False,
    max_pages: Optional[int] = 50,
    links_per_page: Optional[int] = None,
    max_width: Optional[int] = None,
    timeout: float = DEFAULT_TIMEOUT,
    user_agent: str = DEFAULT_USER_AGENT,
    client: Optional[httpx.Client] = None,
) -> RunResult:
    start_url = normalize_url(url)
    prepare_output_dir(output_dir, keep)
    result = RunResult(output_dir)
    image_urls: List[str] = []
    loaded = []

    with client_scope(client, user_agent, timeout) as http:

        def visit(page_url, depth):
            fetched = fetch_soup(http, page_url)
            if fetched is None:
                return None
            _, soup = fetched
            loaded.append(page_url)
            for src in extract_image_urls(soup, page_url):
                if src not in image_urls:
                    image_urls.append(src)
            return extract_links(soup, page_url, start_url)

        crawl(start_url, visit, max_pages=max_pages, links_per_page=links_per_page)
        if not loaded:
            raise click.ClickException(f"Could not fetch {start_url}")

        logger.info("Downloading %d images", len(image_urls))
        images_dir = output_dir / "images"
        saved = download_images(http, image_urls, images_dir, max_width=max_width)

    result.saved(write_json(output_dir / "image-list.json", image_urls))

    entries = {path.name: path.read_bytes() for path in saved}
    result.saved(build_zip(output_dir / "website-images.zip", entries))

    result.summary = {
        "Pages crawled": len(loaded),
        "Images found": len(image_urls),
        "Images downloaded": len(saved),
        "ZIP archive": "website-images.zip",
    }
    return result
