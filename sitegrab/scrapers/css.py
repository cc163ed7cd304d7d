"""
CSS scraper.

Crawls a site collecting inline style attributes, <style> blocks and linked
stylesheets, then renders the start page in a browser to read computed styles
for common elements. Results land in css-data.json, a text report, flattened
.css files and a zip of everything.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional
from urllib.parse import urlparse

import click
import httpx
from bs4 import BeautifulSoup

from .. import browser
from ..crawl import crawl, extract_links
from ..fetch import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT, client_scope, fetch_soup, fetch_text
from ..output import RunResult, build_zip, json_text, prepare_output_dir, write_json, write_text
from ..reports import banner, numbered, section
from ..utils import domain_slug, normalize_url, resolve_link, unique_filename, utc_timestamp

logger = logging.getLogger(__name__)

COMPUTED_SELECTORS = [
    "body", "h1", "h2", "h3", "p", "a", "button", "input",
    ".container", "#header", "#footer",
]

INLINE_REPORT_LIMIT = 20

COMPUTED_STYLES_JS = """
(selectors) => {
    const styles = {};
    for (const selector of selectors) {
        let el = null;
        try { el = document.querySelector(selector); } catch (e) { continue; }
        if (!el) continue;
        const c = window.getComputedStyle(el);
        styles[selector] = {
            color: c.color,
            backgroundColor: c.backgroundColor,
            fontSize: c.fontSize,
            fontFamily: c.fontFamily,
            fontWeight: c.fontWeight,
            margin: c.margin,
            padding: c.padding,
            display: c.display,
            width: c.width,
            height: c.height
        };
    }
    return styles;
}
"""

RENDERED_STYLES_JS = """
() => {
    const selectorFor = (el) => {
        const cls = (el.getAttribute('class') || '').trim().split(/\\s+/)[0];
        return el.tagName.toLowerCase() + (el.id ? '#' + el.id : '') + (cls ? '.' + cls : '');
    };
    const internal = [];
    document.querySelectorAll('style').forEach((s) => {
        const css = (s.textContent || '').trim();
        if (css) internal.push(css);
    });
    const inline = [];
    document.querySelectorAll('[style]').forEach((el) => {
        const style = (el.getAttribute('style') || '').trim();
        if (style) inline.push({selector: selectorFor(el), styles: style});
    });
    return {internal, inline};
}
"""


@dataclass
class CssCollection:
    inline: List[Dict[str, str]] = field(default_factory=list)
    internal: List[Dict[str, str]] = field(default_factory=list)
    external: List[str] = field(default_factory=list)
    stylesheets: List[Dict] = field(default_factory=list)
    computed: Dict[str, Dict[str, str]] = field(default_factory=dict)

    def summary(self) -> Dict[str, int]:
        return {
            "inlineStyles": len(self.inline),
            "internalStyles": len(self.internal),
            "externalStylesheets": len(self.external),
            "downloadedStylesheets": len(self.stylesheets),
            "computedStyles": len(self.computed),
        }


def element_selector(tag) -> str:
    """tag#id.firstclass, the same shorthand the rendered pass uses."""
    selector = tag.name
    if tag.get("id"):
        selector += f"#{tag['id']}"
    classes = tag.get("class") or []
    if classes:
        selector += f".{classes[0]}"
    return selector


def extract_css(soup: BeautifulSoup, page_url: str, collection: CssCollection) -> None:
    for el in soup.select("[style]"):
        styles = (el.get("style") or "").strip()
        if styles:
            collection.inline.append(
                {"url": page_url, "selector": element_selector(el), "styles": styles}
            )

    for style in soup.find_all("style"):
        css = style.get_text().strip()
        if css:
            collection.internal.append({"url": page_url, "css": css})

    for link in soup.select("link[rel~=stylesheet], link[rel~=preload][as=style]"):
        href = resolve_link(link.get("href"), page_url)
        if href and href not in collection.external:
            collection.external.append(href)


async def _read_rendered_styles(page, data):
    data["computed"] = await page.evaluate(COMPUTED_STYLES_JS, COMPUTED_SELECTORS)
    data.update(await page.evaluate(RENDERED_STYLES_JS))


def apply_rendered(collection: CssCollection, url: str, data: Dict) -> None:
    """Swap the start page's static style data for what the browser saw."""
    collection.computed = data.get("computed") or {}

    internal = [{"url": url, "css": css} for css in data.get("internal", [])]
    inline = [
        {"url": url, "selector": item["selector"], "styles": item["styles"]}
        for item in data.get("inline", [])
    ]
    collection.internal = internal + [s for s in collection.internal if s["url"] != url]
    collection.inline = inline + [s for s in collection.inline if s["url"] != url]


def download_stylesheets(client: httpx.Client, collection: CssCollection) -> int:
    taken = set()
    for index, css_url in enumerate(collection.external):
        content = fetch_text(client, css_url)
        if content is None:
            continue
        name = PurePosixPath(urlparse(css_url).path).name or f"stylesheet_{index}.css"
        filename = unique_filename(name, taken)
        collection.stylesheets.append(
            {"url": css_url, "filename": filename, "content": content, "size": len(content)}
        )
        logger.debug("Downloaded %s", filename)
    return len(collection.stylesheets)


def internal_css_file(collection: CssCollection) -> str:
    return "\n\n".join(
        f"/* Internal Style Tag #{i} from {s['url']} */\n{s['css']}\n"
        for i, s in enumerate(collection.internal, start=1)
    )


def inline_css_file(collection: CssCollection) -> str:
    blocks = []
    for i, s in enumerate(collection.inline, start=1):
        body = "\n  ".join(d.strip() + ";" for d in s["styles"].split(";") if d.strip())
        blocks.append(
            f"/* Inline Style #{i} - {s['selector']} from {s['url']} */\n"
            f"{s['selector']} {{\n  {body}\n}}\n"
        )
    return "\n".join(blocks)


def css_data(url: str, collection: CssCollection, scraped_at: str) -> Dict:
    return {
        "url": url,
        "scrapedAt": scraped_at,
        "summary": collection.summary(),
        "inline": collection.inline,
        "internal": collection.internal,
        "external": collection.external,
        "stylesheets": [
            {"url": s["url"], "filename": s["filename"], "size": s["size"]}
            for s in collection.stylesheets
        ],
        "computed": collection.computed,
    }


def render_report(url: str, collection: CssCollection, scraped_at: str) -> str:
    summary = collection.summary()

    computed = "\n\n".join(
        f"{selector}:\n" + "\n".join(f"  {prop}: {val}" for prop, val in styles.items())
        for selector, styles in collection.computed.items()
    ) or "None extracted"

    internal = "\n\n".join(
        f"/* Style Tag #{i} from {s['url']} */\n{s['css']}"
        for i, s in enumerate(collection.internal, start=1)
    ) or "None found"

    inline = "\n\n".join(
        f"/* {s['selector']} from {s['url']} */\n{s['styles']}"
        for s in collection.inline[:INLINE_REPORT_LIMIT]
    ) or "None found"
    if len(collection.inline) > INLINE_REPORT_LIMIT:
        inline += f"\n\n... and {len(collection.inline) - INLINE_REPORT_LIMIT} more inline styles"

    return "\n".join([
        banner("CSS SCRAPER REPORT"),
        "",
        f"URL: {url}",
        f"Scraped At: {scraped_at}",
        "",
        section("SUMMARY"),
        f"Inline Styles:         {summary['inlineStyles']}",
        f"Internal <style> Tags: {summary['internalStyles']}",
        f"External Stylesheets:  {summary['externalStylesheets']}",
        f"Downloaded CSS Files:  {summary['downloadedStylesheets']}",
        f"Computed Styles:       {summary['computedStyles']}",
        "",
        section("EXTERNAL STYLESHEETS"),
        numbered(collection.external),
        "",
        section("COMPUTED STYLES"),
        computed,
        "",
        section("INTERNAL STYLES"),
        internal,
        "",
        section("INLINE STYLES"),
        inline,
        "",
    ])


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
    collection = CssCollection()
    loaded = []

    with client_scope(client, user_agent, timeout) as http:

        def visit(page_url, depth):
            fetched = fetch_soup(http, page_url)
            if fetched is None:
                return None
            _, soup = fetched
            loaded.append(page_url)
            extract_css(soup, page_url, collection)
            return extract_links(soup, page_url, start_url)

        crawl(start_url, visit, max_pages=max_pages, links_per_page=links_per_page)
        if not loaded:
            raise click.ClickException(f"Could not fetch {start_url}")
        logger.info("Crawled %d pages for CSS", len(loaded))

        if render:
            try:
                rendered = browser.render(
                    start_url, interact=_read_rendered_styles, headless=headless, timeout=timeout
                )
            except click.ClickException as exc:
                logger.warning("Browser pass skipped: %s", exc.format_message())
            else:
                apply_rendered(collection, start_url, rendered.data)

        logger.info("Downloading %d external stylesheets", len(collection.external))
        download_stylesheets(http, collection)

    scraped_at = utc_timestamp()
    data = css_data(url, collection, scraped_at)
    report = render_report(url, collection, scraped_at)

    result.saved(write_json(output_dir / "css-data.json", data))
    for sheet in collection.stylesheets:
        write_text(output_dir / "stylesheets" / sheet["filename"], sheet["content"])

    entries = {"css-data.json": json_text(data), "css-report.txt": report}
    if collection.internal:
        internal = internal_css_file(collection)
        result.saved(write_text(output_dir / "internal-styles.css", internal))
        entries["internal-styles.css"] = internal
    if collection.inline:
        inline = inline_css_file(collection)
        result.saved(write_text(output_dir / "inline-styles.css", inline))
        entries["inline-styles.css"] = inline
    result.saved(write_text(output_dir / "css-report.txt", report))

    for sheet in collection.stylesheets:
        entries[f"stylesheets/{sheet['filename']}"] = sheet["content"]

    zip_name = f"{domain_slug(start_url)}_css_data.zip"
    result.saved(
        build_zip(
            output_dir / zip_name, entries,
            extra_dir=output_dir, skip_suffixes=(".json", ".txt", ".css"),
        )
    )

    result.summary = {
        "Pages crawled": len(loaded),
        "Inline styles": len(collection.inline),
        "Internal styles": len(collection.internal),
        "External stylesheets": len(collection.external),
        "Downloaded CSS files": len(collection.stylesheets),
        "ZIP archive": zip_name,
    }
    return result
