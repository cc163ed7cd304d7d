"""Text scraper: readable text chunks per page plus a site-wide unique list."""

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional

import click
import httpx
from bs4 import BeautifulSoup

from ..crawl import crawl, extract_links
from ..fetch import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT, client_scope, fetch_soup
from ..output import RunResult, build_zip, json_text, prepare_output_dir, write_json
from ..utils import normalize_url

logger = logging.getLogger(__name__)

TEXT_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6", "p", "li", "span", "strong", "em", "blockquote"]
MIN_CHUNK_LENGTH = 5
BOILERPLATE_MARKERS = ("copyright",)

WHITESPACE_RE = re.compile(r"\s+")


def clean_text(text: str) -> str:
    return WHITESPACE_RE.sub(" ", text).strip()


def extract_text(soup: BeautifulSoup) -> List[str]:
    """
    Text chunks in tag-group order (all h1s, then h2s, ... then blockquotes).

    Chunks shorter than five characters and copyright lines are dropped.
    """
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()

    chunks = []
    for name in TEXT_TAGS:
        for el in soup.find_all(name):
            text = clean_text(el.get_text())
            if len(text) < MIN_CHUNK_LENGTH:
                continue
            if any(marker in text.lower() for marker in BOILERPLATE_MARKERS):
                continue
            chunks.append(text)
    return chunks


def run(
    url: str,
    output_dir: Path,
    *,
    keep: bool = False,
    max_pages: Optional[int] = 50,
    links_per_page: Optional[int] = None,
    timeout: float = DEFAULT_TIMEOUT,
    user_agent: str = DEFAULT_USER_AGENT,
    client: Optional[httpx.Client] = None,
) -> RunResult:
    start_url = normalize_url(url)
    prepare_output_dir(output_dir, keep)
    result = RunResult(output_dir)

    page_text: Dict[str, List[str]] = {}
    all_text: Dict[str, None] = {}

    with client_scope(client, user_agent, timeout) as http:

        def visit(page_url, depth):
            fetched = fetch_soup(http, page_url)
            if fetched is None:
                return None
            _, soup = fetched
            # Links first: extract_text strips script/style tags in place
            links = extract_links(soup, page_url, start_url)
            chunks = extract_text(soup)
            page_text[page_url] = chunks
            all_text.update(dict.fromkeys(chunks))
            return links

        crawl(start_url, visit, max_pages=max_pages, links_per_page=links_per_page)

    if not page_text:
        raise click.ClickException(f"Could not fetch {start_url}")

    unique_text = list(all_text)
    result.saved(write_json(output_dir / "page-text.json", page_text))
    result.saved(write_json(output_dir / "all-text.json", unique_text))
    result.saved(
        build_zip(
            output_dir / "website-text.zip",
            {"page-text.json": json_text(page_text), "all-text.json": json_text(unique_text)},
        )
    )

    result.summary = {
        "Pages crawled": len(page_text),
        "Text chunks": sum(len(chunks) for chunks in page_text.values()),
        "Unique chunks": len(unique_text),
        "ZIP archive": "website-text.zip",
    }
    return result
