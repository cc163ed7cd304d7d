"""
Website cloner.

``run_static`` crawls with plain HTTP, records assets and a rough component
map per page, and stores the browser-rendered markup of each page.
``run_dynamic`` is browser-only for JavaScript-heavy sites: every page is
rendered with a full-page scroll, network traffic is captured to catch assets
that never appear in the markup, and the result is written out as a
self-describing folder plus a zip.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional
from urllib.parse import urlparse

import click
import httpx
from bs4 import BeautifulSoup

from .. import browser
from ..crawl import crawl, extract_links
from ..fetch import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT, client_scope, fetch_soup
from ..media import download_assets, save_screenshot
from ..output import RunResult, prepare_output_dir, write_json, write_text, zip_directory
from ..utils import in_scope, normalize_url, resolve_link, unique_filename, url_to_slug, utc_timestamp

logger = logging.getLogger(__name__)

ASSET_KINDS = ("images", "css", "js", "fonts")
ASSET_PREFIXES = {"images": "image", "css": "style", "js": "script", "fonts": "font"}
ASSET_LABELS = {"images": "Images", "css": "CSS files", "js": "JS files", "fonts": "Fonts"}

LANDMARKS = "header, nav, main, section, article, aside, footer"

COMPONENT_PATTERNS = {
    "navbar": ["nav", ".navbar", ".navigation", "#nav"],
    "header": ["header", ".header", "#header"],
    "hero": [".hero", ".banner", ".jumbotron"],
    "footer": ["footer", ".footer", "#footer"],
    "card": [".card", ".product-card", ".item-card"],
    "button": ["button", ".btn", ".button"],
    "form": ["form", ".form", "#contact-form"],
}

NETWORK_RESOURCE_KINDS = {
    "image": "images",
    "stylesheet": "css",
    "script": "js",
    "font": "fonts",
}

DYNAMIC_PAGE_JS = """
async () => {
    await Promise.all(Array.from(document.images).map((img) => img.complete ? null :
        new Promise((resolve) => {
            img.onload = resolve;
            img.onerror = resolve;
            setTimeout(resolve, 2000);
        })));

    const selectorFor = (el) => {
        const cls = (el.getAttribute('class') || '').trim().split(/\\s+/).filter(Boolean);
        return el.tagName.toLowerCase() + (cls.length ? '.' + cls.join('.') : '');
    };

    const inlineStyles = [];
    document.querySelectorAll('[style]').forEach((el) => {
        inlineStyles.push({type: 'inline', selector: selectorFor(el), styles: el.getAttribute('style')});
    });

    const computedStyles = [];
    document.querySelectorAll('body, header, nav, main, footer, [class*="container"], [class*="wrapper"]')
        .forEach((el) => {
            const c = window.getComputedStyle(el);
            const styles = {};
            for (const prop of Array.from(c)) styles[prop] = c.getPropertyValue(prop);
            computedStyles.push({type: 'computed', selector: selectorFor(el), styles});
        });

    const images = [];
    document.querySelectorAll('img').forEach((el) => {
        const src = el.currentSrc || el.src || el.getAttribute('data-src');
        if (src) images.push({url: src, alt: el.alt || ''});
    });
    document.querySelectorAll('[style*="background"]').forEach((el) => {
        const m = (el.getAttribute('style') || '').match(/url\\(['"]?([^'")]+)['"]?\\)/);
        if (m) images.push({url: new URL(m[1], document.baseURI).href, alt: '', type: 'background'});
    });

    const attr = (selector, name) => {
        const el = document.querySelector(selector);
        return el ? (el[name] || el.getAttribute(name) || '') : '';
    };

    return {
        inlineStyles,
        computedStyles,
        images,
        stylesheets: Array.from(document.querySelectorAll('link[rel="stylesheet"]')).map((el) => el.href).filter(Boolean),
        inlineCss: Array.from(document.querySelectorAll('style')).map((el) => el.textContent || '').filter((css) => css.trim()),
        scripts: Array.from(document.querySelectorAll('script[src]')).map((el) => el.src),
        links: Array.from(new Set(Array.from(document.querySelectorAll('a[href]')).map((el) => el.href))),
        metadata: {
            title: document.title,
            description: attr('meta[name="description"]', 'content'),
            keywords: attr('meta[name="keywords"]', 'content'),
            ogTitle: attr('meta[property="og:title"]', 'content'),
            ogDescription: attr('meta[property="og:description"]', 'content'),
            ogImage: attr('meta[property="og:image"]', 'content'),
            ogUrl: attr('meta[property="og:url"]', 'content'),
            twitterCard: attr('meta[name="twitter:card"]', 'content'),
            canonical: attr('link[rel="canonical"]', 'href'),
            favicon: attr('link[rel="icon"]', 'href') || attr('link[rel="shortcut icon"]', 'href')
        }
    };
}
"""


@dataclass
class SiteData:
    pages: List[Dict] = field(default_factory=list)
    assets: Dict[str, List[Dict]] = field(
        default_factory=lambda: {kind: [] for kind in ASSET_KINDS}
    )
    components: Dict[str, int] = field(default_factory=dict)
    routes: List[Dict] = field(default_factory=list)

    def add_asset(self, kind: str, record: Dict) -> None:
        if not any(existing["url"] == record["url"] for existing in self.assets[kind]):
            self.assets[kind].append(record)

    def as_dict(self) -> Dict:
        return {
            "pages": self.pages,
            "assets": self.assets,
            "structure": {
                "components": [
                    {"name": name, "count": count} for name, count in self.components.items()
                ],
                "routes": self.routes,
            },
        }


def extract_assets(soup: BeautifulSoup, page_url: str, site: SiteData) -> None:
    for img in soup.select("img[src]"):
        src = resolve_link(img.get("src"), page_url)
        if src:
            site.add_asset("images", {"url": src, "alt": img.get("alt", ""), "page": page_url})

    for link in soup.select("link[rel~=stylesheet]"):
        href = resolve_link(link.get("href"), page_url)
        if href:
            site.add_asset("css", {"url": href, "page": page_url})

    for script in soup.select("script[src]"):
        src = resolve_link(script.get("src"), page_url)
        if src:
            site.add_asset("js", {"url": src, "page": page_url})


def _content(soup: BeautifulSoup, selector: str) -> str:
    tag = soup.select_one(selector)
    return (tag.get("content") or "").strip() if tag else ""


def analyze_structure(soup: BeautifulSoup, url: str) -> Dict:
    sections = [
        {
            "tag": el.name,
            "id": el.get("id", ""),
            "className": " ".join(el.get("class") or []),
            "text": el.get_text(" ", strip=True)[:200],
            "children": len(el.find_all(recursive=False)),
        }
        for el in soup.select(LANDMARKS)
    ]

    components = []
    for name, selectors in COMPONENT_PATTERNS.items():
        for selector in selectors:
            count = len(soup.select(selector))
            if count:
                components.append({"name": name, "selector": selector, "count": count})

    return {
        "url": url,
        "title": soup.title.get_text(strip=True) if soup.title else "",
        "meta": {
            "description": _content(soup, 'meta[name="description"]'),
            "keywords": _content(soup, 'meta[name="keywords"]'),
            "ogTitle": _content(soup, 'meta[property="og:title"]'),
            "ogDescription": _content(soup, 'meta[property="og:description"]'),
            "ogImage": _content(soup, 'meta[property="og:image"]'),
        },
        "sections": sections,
        "components": components,
    }


def save_pages(site: SiteData, pages_dir: Path, key: str = "renderedHTML") -> int:
    taken = set()
    for page in site.pages:
        filename = unique_filename(f"{url_to_slug(page['url'])}.html", taken)
        write_text(pages_dir / filename, page[key])
    return len(site.pages)


def run_static(
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
    site = SiteData()

    with client_scope(client, user_agent, timeout) as http:

        def visit(page_url, depth):
            fetched = fetch_soup(http, page_url)
            if fetched is None:
                return None
            html, soup = fetched

            extract_assets(soup, page_url, site)
            structure = analyze_structure(soup, page_url)
            for component in structure["components"]:
                site.components[component["name"]] = (
                    site.components.get(component["name"], 0) + component["count"]
                )

            rendered_html = html
            if render:
                try:
                    rendered_html = browser.render(page_url, headless=headless, timeout=timeout).html or html
                except click.ClickException as exc:
                    logger.warning("Browser error for %s: %s", page_url, exc.format_message())

            site.pages.append({
                "url": page_url,
                "originalHTML": html,
                "renderedHTML": rendered_html,
                "structure": structure,
            })
            site.routes.append({
                "url": page_url,
                "path": urlparse(page_url).path or "/",
                "title": structure["title"],
            })
            return extract_links(soup, page_url, start_url)

        crawl(start_url, visit, max_pages=max_pages, links_per_page=links_per_page)
        if not site.pages:
            raise click.ClickException(f"Could not fetch {start_url}")

        logger.info("Downloading assets")
        assets_dir = output_dir / "assets"
        images = download_assets(http, site.assets["images"], assets_dir / "images", "image", "images")
        stylesheets = download_assets(http, site.assets["css"], assets_dir / "css", "style", "css")

    result.saved(write_json(output_dir / "website-data.json", site.as_dict()))
    save_pages(site, output_dir / "pages")
    result.saved(output_dir / "pages")

    result.summary = {
        "Pages": len(site.pages),
        "Images": f"{images}/{len(site.assets['images'])} downloaded",
        "CSS files": f"{stylesheets}/{len(site.assets['css'])} downloaded",
        "JS files": len(site.assets["js"]),
    }
    return result


def classify_network(requests: List[Dict]) -> Dict[str, List[str]]:
    """Bucket captured browser traffic into asset kinds by resource or content type."""
    found = {kind: [] for kind in ASSET_KINDS}

    def add(kind, url):
        if url and url.startswith(("http://", "https://")) and url not in found[kind]:
            found[kind].append(url)

    for event in requests:
        url = event.get("url", "")
        kind = NETWORK_RESOURCE_KINDS.get(event.get("resource_type", ""))
        if event.get("event_type", "request") == "request" and kind:
            add(kind, url)
            continue

        if event.get("event_type") == "response":
            headers = {k.lower(): v for k, v in (event.get("headers") or {}).items()}
            ctype = headers.get("content-type", "").lower()
            if ctype.startswith("image/"):
                add("images", url)
            elif "text/css" in ctype:
                add("css", url)
            elif "javascript" in ctype:
                add("js", url)
            elif ctype.startswith("font/") or "application/font" in ctype:
                add("fonts", url)

    return found


def merge_dynamic_assets(site: SiteData, page_url: str, data: Dict, network: Dict[str, List[str]]) -> None:
    for img in data.get("images", []):
        site.add_asset("images", {"url": img["url"], "alt": img.get("alt", ""), "page": page_url})
    for css_url in data.get("stylesheets", []):
        site.add_asset("css", {"url": css_url, "page": page_url})
    for js_url in data.get("scripts", []):
        site.add_asset("js", {"url": js_url, "page": page_url})

    for kind, urls in network.items():
        for asset_url in urls:
            site.add_asset(kind, {"url": asset_url, "page": page_url})


async def _read_dynamic_page(page, data):
    data.update(await page.evaluate(DYNAMIC_PAGE_JS))


def image_type_counts(images: List[Dict]) -> Dict[str, int]:
    counts = {"svg": 0, "png": 0, "webp": 0, "jpg": 0}
    for img in images:
        name = (img.get("local_path") or urlparse(img["url"]).path).lower()
        for ext in counts:
            if name.endswith(f".{ext}") or (ext == "jpg" and name.endswith(".jpeg")):
                counts[ext] += 1
    return counts


def render_readme(url: str, site: SiteData, scraped_at: str) -> str:
    assets = site.assets
    counts = image_type_counts(assets["images"])
    return f"""# Scraped Website Data (Dynamic Site)

## Summary

**Website:** {url}
**Scraped Date:** {scraped_at}

- **Pages scraped:** {len(site.pages)}
- **Images:** {len(assets['images'])} (SVG: {counts['svg']}, PNG: {counts['png']}, WebP: {counts['webp']}, JPG: {counts['jpg']})
- **CSS files:** {len(assets['css'])}
- **JS files:** {len(assets['js'])}
- **Fonts:** {len(assets['fonts'])}

Pages were rendered in a headless browser after scrolling the full page, so
lazy-loaded content and assets requested by JavaScript are included. Inline
and computed styles of the main layout elements are stored per page.

## Not captured

- Interactive behaviour (forms, dropdowns, modals) still needs client-side code
- Content behind authentication
- Client-side routes that are not reachable through links
- Live data from external APIs or WebSocket connections

## Layout

```
website-data.json   # pages, assets and metadata
pages/              # rendered HTML per page
assets/images/      # images, extension from Content-Type
assets/css/         # stylesheets
assets/js/          # scripts
assets/fonts/       # fonts
screenshots/        # page screenshots (when requested)
README.md
```
"""


def run_dynamic(
    url: str,
    output_dir: Path,
    *,
    keep: bool = False,
    max_pages: Optional[int] = 10,
    max_depth: Optional[int] = 3,
    links_per_page: Optional[int] = 10,
    screenshots: bool = False,
    headless: bool = True,
    timeout: float = DEFAULT_TIMEOUT,
    user_agent: str = DEFAULT_USER_AGENT,
    client: Optional[httpx.Client] = None,
) -> RunResult:
    start_url = normalize_url(url)
    prepare_output_dir(output_dir, keep)
    result = RunResult(output_dir)
    site = SiteData()
    shot_names = set()

    def visit(page_url, depth):
        try:
            rendered = browser.render(
                page_url,
                interact=_read_dynamic_page,
                screenshot=screenshots,
                scan_full_page=True,
                capture_network=True,
                settle=2.0,
                headless=headless,
                timeout=timeout,
            )
        except click.ClickException as exc:
            logger.warning("Error scraping %s: %s", page_url, exc.format_message())
            return None

        data = rendered.data
        merge_dynamic_assets(site, page_url, data, classify_network(rendered.network_requests))
        site.pages.append({
            "url": page_url,
            "path": urlparse(page_url).path or "/",
            "renderedHTML": rendered.html,
            "metadata": data.get("metadata", {}),
            "inlineCSS": data.get("inlineCss", []),
            "inlineStyles": data.get("inlineStyles", []),
            "computedStyles": data.get("computedStyles", []),
        })
        site.routes.append({
            "url": page_url,
            "path": urlparse(page_url).path or "/",
            "title": data.get("metadata", {}).get("title", ""),
        })

        if screenshots and rendered.screenshot:
            shot = unique_filename(f"{url_to_slug(page_url)}.png", shot_names)
            save_screenshot(rendered.screenshot, output_dir / "screenshots" / shot)

        return [link for link in data.get("links", []) if in_scope(link, start_url)]

    crawl(start_url, visit, max_pages=max_pages, max_depth=max_depth, links_per_page=links_per_page)
    if not site.pages:
        raise click.ClickException(f"Could not render {start_url}")

    logger.info("Downloading assets")
    downloaded = {}
    with client_scope(client, user_agent, timeout) as http:
        for kind in ASSET_KINDS:
            downloaded[kind] = download_assets(
                http, site.assets[kind], output_dir / "assets" / kind, ASSET_PREFIXES[kind], kind
            )

    result.saved(write_json(output_dir / "website-data.json", site.as_dict()))
    save_pages(site, output_dir / "pages")
    result.saved(output_dir / "pages")
    result.saved(write_text(output_dir / "README.md", render_readme(url, site, utc_timestamp())))

    zip_path = output_dir.parent / f"{output_dir.name}.zip"
    result.saved(zip_directory(output_dir, zip_path))

    result.summary = {
        "Pages": len(site.pages),
        **{
            ASSET_LABELS[kind]: f"{downloaded[kind]}/{len(site.assets[kind])} downloaded"
            for kind in ASSET_KINDS
        },
        "ZIP archive": zip_path.name,
    }
    return result
