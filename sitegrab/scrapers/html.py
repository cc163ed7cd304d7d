"""
HTML scraper.

Crawls a site and records, per page, its metadata, element counts, the
notable elements themselves (headings, links, images, forms, tables) and the
raw markup. The start page also gets a rendered pass for the post-JavaScript
DOM, page dimensions, visible text and navigation timings.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import click
import httpx
from bs4 import BeautifulSoup

from .. import browser
from ..crawl import crawl, extract_links
from ..fetch import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT, client_scope, fetch_soup
from ..output import RunResult, build_zip, json_text, prepare_output_dir, write_json, write_text
from ..reports import banner, or_default, section
from ..utils import domain_slug, normalize_url, unique_filename, url_to_slug, utc_timestamp

logger = logging.getLogger(__name__)

HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]
TEXT_CONTENT_LIMIT = 10000

PAGE_METRICS_JS = """
() => {
    const describe = (el) => ({
        tag: el.tagName.toLowerCase(),
        id: el.id || '',
        class: el.getAttribute('class') || '',
        children: Array.from(el.children).map(describe)
    });
    const timing = window.performance && window.performance.timing;
    return {
        dimensions: {
            width: document.documentElement.scrollWidth,
            height: document.documentElement.scrollHeight,
            viewport: {width: window.innerWidth, height: window.innerHeight}
        },
        textContent: document.body ? (document.body.innerText || '') : '',
        domStructure: document.body ? describe(document.body) : null,
        performance: timing ? {
            loadTime: timing.loadEventEnd - timing.navigationStart,
            domContentLoaded: timing.domContentLoadedEventEnd - timing.navigationStart,
            firstPaint: timing.responseStart - timing.navigationStart
        } : null
    };
}
"""


@dataclass
class HtmlPage:
    url: str
    metadata: Dict
    structure: Dict
    elements: Dict
    html: str

    def as_dict(self) -> Dict:
        return {
            "url": self.url,
            "metadata": self.metadata,
            "structure": self.structure,
            "elements": self.elements,
        }


def _meta(soup: BeautifulSoup, **attrs) -> str:
    tag = soup.find("meta", attrs=attrs)
    return (tag.get("content") or "").strip() if tag else ""


def page_metadata(soup: BeautifulSoup, url: str) -> Dict[str, str]:
    canonical = soup.select_one('link[rel~="canonical"]')
    charset = soup.find("meta", charset=True)
    html_tag = soup.find("html")
    return {
        "url": url,
        "title": soup.title.get_text(strip=True) if soup.title else "",
        "description": _meta(soup, name="description"),
        "keywords": _meta(soup, name="keywords"),
        "author": _meta(soup, name="author"),
        "ogTitle": _meta(soup, property="og:title"),
        "ogDescription": _meta(soup, property="og:description"),
        "ogImage": _meta(soup, property="og:image"),
        "canonical": canonical.get("href", "") if canonical else "",
        "lang": html_tag.get("lang", "") if html_tag else "",
        "charset": charset.get("charset", "") if charset else "",
    }


def page_structure(soup: BeautifulSoup) -> Dict:
    return {
        "headings": {tag: len(soup.find_all(tag)) for tag in HEADING_TAGS},
        "links": len(soup.find_all("a")),
        "images": len(soup.find_all("img")),
        "forms": len(soup.find_all("form")),
        "tables": len(soup.find_all("table")),
        "lists": len(soup.find_all(["ul", "ol"])),
        "scripts": len(soup.find_all("script")),
        "stylesheets": len(soup.select("link[rel~=stylesheet]")),
    }


def page_elements(soup: BeautifulSoup) -> Dict[str, List[Dict]]:
    headings = []
    for el in soup.find_all(HEADING_TAGS):
        text = el.get_text(" ", strip=True)
        if text:
            headings.append({
                "tag": el.name,
                "text": text[:200],
                "id": el.get("id", ""),
                "class": " ".join(el.get("class") or []),
            })

    links = []
    for el in soup.select("a[href]"):
        text = el.get_text(" ", strip=True)
        if text:
            links.append({"text": text[:100], "href": el["href"], "title": el.get("title", "")})

    images = [
        {
            "src": el.get("src", ""),
            "alt": el.get("alt", ""),
            "title": el.get("title", ""),
            "width": el.get("width", ""),
            "height": el.get("height", ""),
        }
        for el in soup.find_all("img")
    ]

    forms = []
    for form in soup.find_all("form"):
        forms.append({
            "action": form.get("action", ""),
            "method": form.get("method", "get"),
            "inputs": [
                {
                    "type": field.get("type", field.name),
                    "name": field.get("name", ""),
                    "id": field.get("id", ""),
                    "placeholder": field.get("placeholder", ""),
                    "required": field.has_attr("required"),
                }
                for field in form.find_all(["input", "textarea", "select"])
            ],
        })

    tables = [
        {
            "rows": len(table.find_all("tr")),
            "headers": [th.get_text(strip=True) for th in table.find_all("th")],
        }
        for table in soup.find_all("table")
    ]

    return {"headings": headings, "links": links, "images": images, "forms": forms, "tables": tables}


def parse_page(html: str, soup: BeautifulSoup, url: str) -> HtmlPage:
    return HtmlPage(
        url=url,
        metadata=page_metadata(soup, url),
        structure=page_structure(soup),
        elements=page_elements(soup),
        html=html,
    )


def summarize(pages: List[HtmlPage]) -> Dict[str, int]:
    return {
        "pagesScraped": len(pages),
        "totalHeadings": sum(sum(p.structure["headings"].values()) for p in pages),
        "totalLinks": sum(p.structure["links"] for p in pages),
        "totalImages": sum(p.structure["images"] for p in pages),
        "totalForms": sum(p.structure["forms"] for p in pages),
        "totalTables": sum(p.structure["tables"] for p in pages),
    }


async def _read_page_metrics(page, data):
    data.update(await page.evaluate(PAGE_METRICS_JS))


def rendered_snapshot(url: str, headless: bool = True, timeout: float = browser.PAGE_TIMEOUT) -> Optional[Dict]:
    """Rendered HTML plus browser-only measurements, or None if rendering failed."""
    try:
        rendered = browser.render(url, interact=_read_page_metrics, headless=headless, timeout=timeout)
    except click.ClickException as exc:
        logger.warning("Browser pass skipped: %s", exc.format_message())
        return None

    data = rendered.data
    return {
        "renderedHTML": rendered.html,
        "dimensions": data.get("dimensions"),
        "textContent": (data.get("textContent") or "")[:TEXT_CONTENT_LIMIT],
        "domStructure": data.get("domStructure"),
        "performance": data.get("performance"),
    }


def render_report(url: str, summary: Dict, pages: List[HtmlPage], snapshot: Optional[Dict], scraped_at: str) -> str:
    lines = [
        banner("HTML SCRAPER REPORT"),
        "",
        f"URL: {url}",
        f"Scraped At: {scraped_at}",
        "",
        section("SUMMARY"),
        f"Pages Scraped:   {summary['pagesScraped']}",
        f"Total Headings:  {summary['totalHeadings']}",
        f"Total Links:     {summary['totalLinks']}",
        f"Total Images:    {summary['totalImages']}",
        f"Total Forms:     {summary['totalForms']}",
        f"Total Tables:    {summary['totalTables']}",
        "",
        section("PAGE METADATA"),
    ]
    for i, page in enumerate(pages, start=1):
        meta = page.metadata
        lines += [
            f"Page #{i}: {page.url}",
            f"  Title: {or_default(meta['title'])}",
            f"  Description: {or_default(meta['description'])}",
            f"  Language: {or_default(meta['lang'])}",
            f"  Canonical: {or_default(meta['canonical'])}",
            "",
        ]

    lines.append(section("PAGE STRUCTURE"))
    for i, page in enumerate(pages, start=1):
        s = page.structure
        h = s["headings"]
        lines += [
            f"Page #{i}: {page.url}",
            f"  Headings: H1({h['h1']}) H2({h['h2']}) H3({h['h3']})",
            f"  Links: {s['links']}",
            f"  Images: {s['images']}",
            f"  Forms: {s['forms']}",
            f"  Tables: {s['tables']}",
            f"  Scripts: {s['scripts']}",
            f"  Stylesheets: {s['stylesheets']}",
            "",
        ]

    if snapshot and snapshot.get("dimensions"):
        dims = snapshot["dimensions"]
        lines += [
            section("PAGE DIMENSIONS"),
            f"Document Size: {dims['width']} x {dims['height']}px",
            f"Viewport Size: {dims['viewport']['width']} x {dims['viewport']['height']}px",
            "",
        ]

    if snapshot and snapshot.get("performance"):
        perf = snapshot["performance"]
        lines += [
            section("PERFORMANCE METRICS"),
            f"Load Time: {perf['loadTime']}ms",
            f"DOM Content Loaded: {perf['domContentLoaded']}ms",
            f"First Paint: {perf['firstPaint']}ms",
            "",
        ]

    return "\n".join(lines)


def run(
    url: str,
    output_dir: Path,
    *,
    keep: bool = False,
    max_pages: Optional[int] = 10,
    links_per_page: Optional[int] = 5,
    render: bool = True,
    headless: bool = True,
    timeout: float = DEFAULT_TIMEOUT,
    user_agent: str = DEFAULT_USER_AGENT,
    client: Optional[httpx.Client] = None,
) -> RunResult:
    start_url = normalize_url(url)
    prepare_output_dir(output_dir, keep)
    result = RunResult(output_dir)
    pages: List[HtmlPage] = []

    with client_scope(client, user_agent, timeout) as http:

        def visit(page_url, depth):
            fetched = fetch_soup(http, page_url)
            if fetched is None:
                return None
            html, soup = fetched
            pages.append(parse_page(html, soup, page_url))
            return extract_links(soup, page_url, start_url)

        crawl(start_url, visit, max_pages=max_pages, links_per_page=links_per_page)

    if not pages:
        raise click.ClickException(f"Could not fetch {start_url}")
    logger.info("Crawled %d pages for HTML", len(pages))

    snapshot = rendered_snapshot(start_url, headless=headless, timeout=timeout) if render else None

    scraped_at = utc_timestamp()
    summary = summarize(pages)
    data = {
        "url": url,
        "scrapedAt": scraped_at,
        "summary": summary,
        "pages": [p.as_dict() for p in pages],
        "rendered": snapshot,
    }
    report = render_report(url, summary, pages, snapshot, scraped_at)

    entries = {"html-data.json": json_text(data), "html-report.txt": report}
    result.saved(write_json(output_dir / "html-data.json", data))

    taken = set()
    for page in pages:
        filename = unique_filename(f"{url_to_slug(page.url)}.html", taken)
        write_text(output_dir / "pages" / filename, page.html)
        entries[f"pages/{filename}"] = page.html
    logger.info("Saved %d HTML files to %s", len(pages), output_dir / "pages")

    if snapshot and snapshot["renderedHTML"]:
        result.saved(write_text(output_dir / "rendered-html.html", snapshot["renderedHTML"]))
        entries["rendered-html.html"] = snapshot["renderedHTML"]
    if snapshot and snapshot["textContent"]:
        result.saved(write_text(output_dir / "text-content.txt", snapshot["textContent"]))
        entries["text-content.txt"] = snapshot["textContent"]

    result.saved(write_text(output_dir / "html-report.txt", report))

    zip_name = f"{domain_slug(start_url)}_html_data.zip"
    result.saved(
        build_zip(
            output_dir / zip_name, entries,
            extra_dir=output_dir, skip_suffixes=(".json", ".txt", ".html"),
        )
    )

    result.summary = {
        "Pages scraped": summary["pagesScraped"],
        "Total headings": summary["totalHeadings"],
        "Total links": summary["totalLinks"],
        "Total images": summary["totalImages"],
        "ZIP archive": zip_name,
    }
    return result
