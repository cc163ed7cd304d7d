"""
Google Maps place scrapers.

All three commands share one flow: search Maps, dismiss the consent dialog,
open the first result, then drive the place panel (photos, about tab,
reviews tab) inside a single browser session. The browser side only
navigates and takes HTML snapshots; every field is parsed out of those
snapshots with BeautifulSoup so the parsing can be exercised offline.

Selectors follow Google's obfuscated class names and will drift over time.
"""

import functools
import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple
from urllib.parse import quote

import click
import httpx
from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError

from .. import browser
from ..fetch import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT, client_scope, fetch_bytes
from ..output import RunResult, build_zip, json_text, prepare_output_dir, write_json, write_text
from ..reports import banner, or_default, rule, section
from ..utils import extension_for, utc_timestamp

logger = logging.getLogger(__name__)

CONSENT_BUTTON = 'button[aria-label*="Accept"], form[action*="consent"] button'
FIRST_RESULT = 'div[role="feed"] > div:first-child a, a[href*="/maps/place/"]'
INFO_PANEL = "div.m6QErb.DxyBCb"
REVIEWS_PANEL = 'div.m6QErb.DxyBCb, div[role="feed"], div.section-scrollbox'
PHOTO_PANELS = 'div[role="img"], div.m6QErb, div[aria-label*="Photo"]'
PHOTO_BUTTON = 'button[aria-label*="photo" i], div.RZ66Rb img, img.Xo3Jjf'
REVIEW_TAB_SELECTORS = [
    'button[aria-label*="Reviews"]',
    'button[data-tab-index="1"]',
    'div[role="tablist"] button:nth-child(2)',
    'button[jsaction*="reviews"]',
]
REVIEW_ITEMS = "div[data-review-id], div.jftiEf"
EXPAND_BUTTONS = 'button[aria-label="See more"], button.w8nwRe, span.w8nwRe'

# (side, width, height) for =sNN and =wNN-hNN photo URLs
BUSINESS_PHOTO_SIZE = (1200, 1200, 900)
COMPLETE_PHOTO_SIZE = (1600, 1600, 1200)
REVIEW_PHOTO_SIDE = 800

URL_COORDS_RE = re.compile(r"@(-?\d+\.\d+),(-?\d+\.\d+)")
SCRIPT_COORDS_RE = re.compile(r"\[(-?\d+\.\d+),(-?\d+\.\d+)\]")
AVATAR_SIZE_RE = re.compile(r"=s(?:32|36|40)(?!\d)")
BACKGROUND_URL_RE = re.compile(r"url\([\"']?(.*?)[\"']?\)")
SIDE_RE = re.compile(r"=s\d+")
WIDTH_HEIGHT_RE = re.compile(r"=w\d+-h\d+")
COUNT_RE = re.compile(r"[\d,]+")

SCROLL_JS = """
(selector) => {
    document.querySelectorAll(selector).forEach((el) => {
        el.scrollTop = el.scrollHeight;
        el.scrollLeft = el.scrollWidth;
    });
    const main = document.querySelector('div[role="main"]');
    if (main) main.scrollTop = main.scrollHeight;
}
"""

CLICK_BY_TEXT_JS = """
([selector, words]) => {
    for (const el of document.querySelectorAll(selector)) {
        const text = (el.textContent || '').toLowerCase();
        if (words.some((w) => text.includes(w))) {
            el.click();
            return true;
        }
    }
    return false;
}
"""

CLICK_ALL_JS = "(selector) => document.querySelectorAll(selector).forEach((el) => el.click())"

COUNT_JS = "(selector) => document.querySelectorAll(selector).length"


def search_url(query: str) -> str:
    return f"https://www.google.com/maps/search/{quote(query, safe='')}"


def parse_coordinates(url: str) -> Optional[Dict[str, float]]:
    match = URL_COORDS_RE.search(url or "")
    if not match:
        return None
    return {"latitude": float(match.group(1)), "longitude": float(match.group(2))}


def coordinates_from_scripts(soup: BeautifulSoup) -> Optional[Dict[str, float]]:
    """First [lat,lng] pair found in an inline script."""
    for script in soup.find_all("script"):
        match = SCRIPT_COORDS_RE.search(script.get_text())
        if match:
            return {"latitude": float(match.group(1)), "longitude": float(match.group(2))}
    return None


def upscale_photo_url(url: str, size: Tuple[int, int, int] = BUSINESS_PHOTO_SIZE) -> str:
    side, width, height = size
    url = SIDE_RE.sub(f"=s{side}", url, count=1)
    return WIDTH_HEIGHT_RE.sub(f"=w{width}-h{height}", url, count=1)


def _text(scope, selector: str) -> str:
    el = scope.select_one(selector)
    return el.get_text().strip() if el else ""


def _texts(scope, selector: str, min_len: int = 1, max_len: Optional[int] = None) -> List[str]:
    found = []
    for el in scope.select(selector):
        text = el.get_text().strip()
        if len(text) < min_len or (max_len is not None and len(text) >= max_len):
            continue
        if text not in found:
            found.append(text)
    return found


def extract_business(soup: BeautifulSoup, detailed: bool = False) -> Dict:
    review_count_el = soup.select_one('span[aria-label*="reviews"]')
    review_count = "0"
    if review_count_el is not None:
        match = COUNT_RE.search(review_count_el.get_text()) or COUNT_RE.search(
            review_count_el.get("aria-label", "")
        )
        review_count = match.group(0) if match else "0"

    website = soup.select_one('a[data-item-id="authority"]')
    hours = soup.select_one('div[aria-label*="Hours"], button[data-item-id*="hours"]')

    info = {
        "name": _text(soup, "h1.DUwDvf, h1.fontHeadlineLarge, h1"),
        "rating": _text(soup, 'div.F7nice span[aria-hidden="true"], span.ceNzKf'),
        "reviewCount": review_count,
        "category": _text(soup, 'button[jsaction*="category"], span.DkEaL'),
        "address": _text(soup, 'button[data-item-id="address"], div[data-item-id="address"]'),
        "phone": _text(soup, 'button[data-item-id*="phone"], div[data-item-id*="phone"]'),
        "website": website.get("href", "") if website else "",
        "hours": (hours.get("aria-label") or hours.get_text().strip()) if hours else "",
        "plusCode": _text(soup, 'button[data-item-id="oloc"]'),
    }
    if not detailed:
        return info

    hours_detailed = []
    for row in soup.select("table.eK4R0e tr"):
        cells = row.find_all("td")
        if len(cells) >= 2:
            day, time = cells[0].get_text().strip(), cells[1].get_text().strip()
            if day and time:
                hours_detailed.append({"day": day, "time": time})

    all_items = {}
    for el in soup.select("button[data-item-id], div[data-item-id], a[data-item-id]"):
        item_id = el.get("data-item-id", "")
        text = el.get_text().strip()
        if item_id and text and "action" not in item_id:
            all_items[item_id] = text

    info.update({
        "priceLevel": _text(soup, 'span[aria-label*="Price"]'),
        "hoursDetailed": hours_detailed,
        "serviceOptions": _texts(soup, 'div[aria-label*="Service options"] span, div.LTs0Rc', 3, 50),
        "highlights": _texts(soup, 'div[aria-label*="Highlights"] span, div.RcCsl span', 3),
        "accessibility": _texts(soup, 'div[aria-label*="Accessibility"] span'),
        "about": _text(soup, 'div[aria-label*="About"] p, div.WeS02d, div.PYvSYb'),
        "ownerDescription": _text(soup, "div.HlvSq"),
        "allDataItems": all_items,
    })
    return info


def extract_about_sections(soup: BeautifulSoup) -> Dict[str, List[str]]:
    sections = {}
    for block in soup.select('div.iP2t7d, div[class*="section"]'):
        heading = _text(block, "h2, h3, div.fontTitleSmall")
        if not heading:
            continue
        items = _texts(block, "li, span.RcCsl, div.hpLkke span", 2, 100)
        if items:
            sections[heading] = items
    return sections


def extract_photo_categories(soup: BeautifulSoup) -> List[str]:
    return [c for c in _texts(soup, "button[data-tab-index]") if "Review" not in c]


def extract_photo_urls(soup: BeautifulSoup, size: Tuple[int, int, int] = BUSINESS_PHOTO_SIZE) -> List[str]:
    """Place photos (img src and inline background images), upscaled, avatars skipped."""
    sources = [img.get("src", "") for img in soup.find_all("img")]
    for el in soup.select('[style*="background-image"]'):
        match = BACKGROUND_URL_RE.search(el.get("style", ""))
        if match:
            sources.append(match.group(1))

    urls = []
    for src in sources:
        if "googleusercontent.com" not in src or AVATAR_SIZE_RE.search(src):
            continue
        large = upscale_photo_url(src, size)
        if large not in urls:
            urls.append(large)
    return urls


def extract_review_topics(soup: BeautifulSoup) -> List[str]:
    return [
        t for t in _texts(soup, "button.e2moi", 3, 50)
        if "Like" not in t and "Share" not in t
    ]


def extract_reviews(soup: BeautifulSoup) -> List[Dict]:
    reviews = []
    for el in soup.select(REVIEW_ITEMS):
        author_link = el.select_one('a[href*="/contrib/"]')
        rating = el.select_one('span[role="img"]')
        profile = el.select_one("img.NBa7we")

        review = {
            "author": _text(el, 'div.d4r55, button.WEBjve div, a[href*="/contrib/"]'),
            "authorUrl": author_link.get("href", "") if author_link else "",
            "authorInfo": _text(el, "div.RfnDt, span.A503be"),
            "rating": rating.get("aria-label", "") if rating else "",
            "date": _text(el, "span.rsqaWe, span.xRkPPb"),
            "text": _text(el, "span.wiI7pd, div.MyEned span"),
            "likes": _text(el, "span.pkWtMe") or "0",
            "profileImage": profile.get("src", "") if profile else "",
            "photos": [
                SIDE_RE.sub(f"=s{REVIEW_PHOTO_SIDE}", img["src"], count=1)
                for img in el.select("button[data-photo-index] img[src]")
                if "googleusercontent" in img["src"]
            ],
        }

        response = el.select_one("div.CDe7pd")
        if response is not None:
            review["ownerResponse"] = {
                "text": _text(response, "span.wiI7pd"),
                "date": _text(response, "span.rsqaWe"),
            }

        if review["author"] or review["text"]:
            reviews.append(review)
    return reviews


def dedupe_reviews(reviews: List[Dict]) -> List[Dict]:
    """Keep the first review for each (author, text) pair."""
    seen = set()
    unique = []
    for review in reviews:
        key = (review["author"], review["text"])
        if key not in seen:
            seen.add(key)
            unique.append(review)
    return unique


async def _screenshot(page, path: Path) -> None:
    try:
        await page.screenshot(path=str(path), full_page=False)
    except PlaywrightError as exc:
        logger.warning("Screenshot %s failed: %s", path.name, exc)
    else:
        logger.info("Saved screenshot %s", path.name)


async def _click(page, selector: str, settle: float) -> bool:
    try:
        el = await page.query_selector(selector)
        if el is None:
            return False
        await el.click()
    except PlaywrightError as exc:
        logger.debug("Click on %s failed: %s", selector, exc)
        return False
    await browser.pause(page, settle)
    return True


async def _scroll(page, selector: str, times: int, settle: float) -> None:
    for _ in range(times):
        await page.evaluate(SCROLL_JS, selector)
        await browser.pause(page, settle)


async def open_first_result(page, data, debug_dir: Optional[Path] = None) -> None:
    """Dismiss consent, open the first search result and record the place URL."""
    await _click(page, CONSENT_BUTTON, 2)
    await browser.pause(page, 4)
    if debug_dir is not None:
        await _screenshot(page, debug_dir / "debug-screenshot.png")

    if await _click(page, FIRST_RESULT, 4):
        logger.info("Opened first result")
    else:
        logger.info("Already on place page or no results")
    data["place_url"] = page.url


async def open_reviews(page) -> None:
    for selector in REVIEW_TAB_SELECTORS:
        if await _click(page, selector, 3):
            return
    if not await page.evaluate(CLICK_BY_TEXT_JS, ['button[role="tab"], button', ["review"]]):
        logger.warning("Reviews tab not found")
    await browser.pause(page, 2)


async def load_reviews(page, max_reviews: int, max_scrolls: int = 20) -> None:
    """Scroll the review list until max_reviews load or three scrolls add nothing."""
    previous = 0
    stalled = 0
    for _ in range(max_scrolls):
        await page.evaluate(SCROLL_JS, REVIEWS_PANEL)
        await browser.pause(page, 1.5)

        count = await page.evaluate(COUNT_JS, REVIEW_ITEMS)
        if count == previous:
            stalled += 1
            if stalled >= 3:
                break
        else:
            stalled = 0
            logger.info("Loaded %d reviews...", count)
        previous = count
        if count >= max_reviews:
            break

    await page.evaluate(CLICK_ALL_JS, EXPAND_BUTTONS)
    await browser.pause(page, 0.5)


async def open_photos(page, see_all: bool = False, scrolls: int = 5, settle: float = 1.5) -> List[str]:
    """Open the photo gallery and return HTML snapshots before and after scrolling it."""
    await _click(page, PHOTO_BUTTON, 3)
    if see_all and await page.evaluate(CLICK_BY_TEXT_JS, ["button, a", ["photo", "see all"]]):
        await browser.pause(page, 3)

    snapshots = [await page.content()]
    await _scroll(page, PHOTO_PANELS, scrolls, settle)
    snapshots.append(await page.content())
    return snapshots


async def reviews_session(page, data, output_dir: Path, max_reviews: int = 50) -> None:
    await open_first_result(page, data, debug_dir=output_dir)
    data["listing_html"] = await page.content()

    await open_reviews(page)
    await load_reviews(page, max_reviews)
    await _screenshot(page, output_dir / "debug-reviews.png")
    data["reviews_html"] = await page.content()


async def business_session(page, data, output_dir: Path) -> None:
    await open_first_result(page, data)
    data["listing_html"] = await page.content()
    await _screenshot(page, output_dir / "listing-screenshot.png")

    data["photo_html"] = await open_photos(page, see_all=True)

    await page.goto(data["place_url"], wait_until="domcontentloaded")
    await browser.pause(page, 3)
    await open_reviews(page)
    await load_reviews(page, max_reviews=1000, max_scrolls=5)
    data["reviews_html"] = await page.content()


async def complete_session(page, data, output_dir: Path) -> None:
    await open_first_result(page, data)
    await _scroll(page, INFO_PANEL, 5, 1)
    data["listing_html"] = await page.content()
    await _screenshot(page, output_dir / "listing-main.png")

    if await page.evaluate(CLICK_BY_TEXT_JS, ['button[role="tab"]', ["about", "overview"]]):
        await browser.pause(page, 2)
        data["about_html"] = await page.content()
        await _screenshot(page, output_dir / "listing-about.png")

    data["photo_html"] = await open_photos(page, scrolls=8, settle=1)

    await page.goto(data["place_url"], wait_until="domcontentloaded")
    await browser.pause(page, 3)
    await open_reviews(page)
    await load_reviews(page, max_reviews=1000, max_scrolls=10)
    data["reviews_html"] = await page.content()


def _open_place(
    query: str,
    session,
    output_dir: Path,
    headless: bool,
    viewport: Tuple[int, int],
    timeout: float = browser.PAGE_TIMEOUT,
) -> Dict:
    if not query.strip():
        raise click.UsageError("A business name is required")
    logger.info('Searching Google Maps for "%s"', query)
    rendered = browser.render(
        search_url(query),
        interact=functools.partial(session, output_dir=output_dir),
        wait_until="domcontentloaded",
        headless=headless,
        viewport=viewport,
        timeout=timeout,
    )
    data = rendered.data
    data.setdefault("place_url", rendered.final_url)
    return data


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")


def _photo_urls(snapshots: List[str], size: Tuple[int, int, int]) -> List[str]:
    urls = []
    for html in snapshots:
        for url in extract_photo_urls(_soup(html), size):
            if url not in urls:
                urls.append(url)
    return urls


def download_photos(client: httpx.Client, urls: List[str], dest: Path) -> int:
    downloaded = 0
    for i, url in enumerate(urls, start=1):
        fetched = fetch_bytes(client, url)
        if fetched is None:
            continue
        content, content_type = fetched
        filename = f"photo_{i}{extension_for(content_type, default='.jpg')}"
        (dest / filename).write_bytes(content)
        downloaded += 1
        logger.info("Saved %s", filename)
    return downloaded


def log_business(info: Dict) -> None:
    logger.info("Business: %s", or_default(info.get("name"), "(not found)"))
    logger.info("Rating: %s (%s reviews)", or_default(info.get("rating")), info.get("reviewCount"))
    logger.info("Category: %s", or_default(info.get("category")))
    logger.info("Address: %s", or_default(info.get("address")))
    logger.info("Phone: %s", or_default(info.get("phone")))


def render_reviews_text(query: str, info: Dict, reviews: List[Dict]) -> str:
    lines = [
        f"Search Query: {query}",
        f"Business: {info['name']}",
        f"Rating: {info['rating']}",
        f"Category: {info['category']}",
        f"Total Reviews Found: {len(reviews)}",
        f"Address: {info['address']}",
        f"Phone: {info['phone']}",
        f"Website: {info['website']}",
        "",
        "=" * 50,
        "",
    ]
    for i, review in enumerate(reviews, start=1):
        lines += [
            f"Review #{i}",
            f"Author: {review['author']}",
            f"Rating: {review['rating']}",
            f"Date: {review['date']}",
            f"Likes: {review['likes']}",
            "",
            review["text"],
        ]
        if review["photos"]:
            lines += ["", f"Images: {', '.join(review['photos'])}"]
        lines += ["", "-" * 40, ""]
    return "\n".join(lines)


def render_business_text(query: str, info: Dict, photo_count: int, reviews: List[Dict], scraped_at: str) -> str:
    lines = [
        "GOOGLE MAPS BUSINESS DATA",
        "=" * 50,
        "",
        f"Search Query: {query}",
        f"Scraped At: {scraped_at}",
        "",
        "BUSINESS INFORMATION",
        "-" * 30,
        f"Name: {info['name']}",
        f"Rating: {info['rating']} ({info['reviewCount']} reviews)",
        f"Category: {info['category']}",
        f"Address: {info['address']}",
        f"Phone: {info['phone']}",
        f"Website: {info['website']}",
        f"Hours: {info['hours']}",
        f"Plus Code: {info['plusCode']}",
        "",
        "PHOTOS",
        "-" * 30,
        f"Total Photos: {photo_count}",
        "",
        f"REVIEWS ({len(reviews)} total)",
        "-" * 30,
        "",
    ]
    for i, review in enumerate(reviews, start=1):
        lines += [
            f"Review #{i}",
            f"Author: {review['author']}",
            f"Rating: {review['rating']}",
            f"Date: {review['date']}",
            "",
            review["text"],
            "",
            "-" * 40,
            "",
        ]
    return "\n".join(lines)


def render_complete_report(output: Dict) -> str:
    info = output["business"]
    coords = output["location"]["coordinates"] or {}
    photos = output["photos"]
    reviews = output["reviews"]

    hours = [info["hours"]] + [f"   {h['day']}: {h['time']}" for h in info["hoursDetailed"]]
    extra = [f"   {k}: {v}" for k, v in info["allDataItems"].items()]

    lines = [
        banner("GOOGLE MAPS COMPLETE BUSINESS DATA"),
        "",
        f"Search Query: {output['query']}",
        f"Scraped At: {output['scrapedAt']}",
        f"Google Maps URL: {output['googleMapsUrl']}",
        "",
        section("BUSINESS INFORMATION"),
        f"Name:           {info['name']}",
        f"Rating:         {info['rating']} ({info['reviewCount']} reviews)",
        f"Category:       {info['category']}",
        f"Price Level:    {or_default(info['priceLevel'], 'Not specified')}",
        "",
        "LOCATION",
        f"Address:        {info['address']}",
        f"Plus Code:      {info['plusCode']}",
        f"Latitude:       {or_default(coords.get('latitude'), 'Not available')}",
        f"Longitude:      {or_default(coords.get('longitude'), 'Not available')}",
        f"Google Maps:    {output['googleMapsUrl']}",
        "",
        "CONTACT",
        f"Phone:          {info['phone']}",
        f"Website:        {info['website']}",
        "",
        "HOURS",
        *hours,
        "",
        "ABOUT",
        or_default(info["about"] or info["ownerDescription"], "No description available"),
        "",
        "SERVICE OPTIONS",
        or_default(", ".join(info["serviceOptions"]), "None listed"),
        "",
        "HIGHLIGHTS",
        or_default(", ".join(info["highlights"]), "None listed"),
        "",
        "ACCESSIBILITY",
        or_default(", ".join(info["accessibility"]), "None listed"),
        "",
        "ADDITIONAL DATA",
        "\n".join(extra) or "None",
        "",
        section("PHOTOS"),
        f"Categories: {or_default(', '.join(photos['categories']), 'All')}",
        f"Total Found: {photos['totalFound']}",
        f"Downloaded: {photos['downloaded']}",
        "",
        section("REVIEWS"),
        f"Total Reviews: {reviews['totalExtracted']}",
        "",
        f"Popular Topics: {or_default(', '.join(reviews['summary']['topics']), 'None')}",
        "",
        rule("─"),
    ]

    for i, review in enumerate(reviews["items"], start=1):
        lines += [
            "",
            f"Review #{i}",
            f"Author:     {review['author']}",
            f"Info:       {review['authorInfo']}",
            f"Rating:     {review['rating']}",
            f"Date:       {review['date']}",
            f"Likes:      {review['likes']}",
            "",
            review["text"],
        ]
        if review["photos"]:
            lines += ["", f"Photos: {len(review['photos'])} attached"]
        if review.get("ownerResponse"):
            response = review["ownerResponse"]
            lines += ["", f"Owner Response ({response['date']}):", response["text"]]
        lines.append(rule("─"))

    return "\n".join(lines) + "\n"


def business_zip_name(name: str) -> str:
    slug = re.sub(r"[^a-zA-Z0-9]", "_", name)[:30] or "business"
    return f"{slug}_google_maps_data.zip"


def run_reviews(
    query: str,
    output_dir: Path,
    *,
    max_reviews: int = 50,
    keep: bool = False,
    headless: bool = True,
) -> RunResult:
    prepare_output_dir(output_dir, keep)
    result = RunResult(output_dir)

    data = _open_place(
        query,
        functools.partial(reviews_session, max_reviews=max_reviews),
        output_dir, headless, viewport=(1280, 800),
    )
    info = extract_business(_soup(data.get("listing_html")))
    log_business(info)
    reviews = dedupe_reviews(extract_reviews(_soup(data.get("reviews_html"))))[:max_reviews]

    if not reviews:
        result.saved(write_text(output_dir / "debug-page.html", data.get("reviews_html", "")))
        logger.warning("No reviews found, saved debug HTML")

    output = {
        "query": query,
        "business": info,
        "totalReviews": len(reviews),
        "scrapedAt": utc_timestamp(),
        "reviews": reviews,
    }
    result.saved(write_json(output_dir / "reviews.json", output))
    result.saved(write_text(output_dir / "reviews.txt", render_reviews_text(query, info, reviews)))

    result.summary = {
        "Business": info["name"] or query,
        "Rating": or_default(info["rating"]),
        "Reviews extracted": len(reviews),
    }
    return result


def run_business(
    query: str,
    output_dir: Path,
    *,
    max_photos: Optional[int] = None,
    keep: bool = False,
    headless: bool = True,
    timeout: float = DEFAULT_TIMEOUT,
    user_agent: str = DEFAULT_USER_AGENT,
    client: Optional[httpx.Client] = None,
) -> RunResult:
    prepare_output_dir(output_dir, keep)
    result = RunResult(output_dir)

    data = _open_place(query, business_session, output_dir, headless, viewport=(1280, 900), timeout=timeout)
    info = extract_business(_soup(data.get("listing_html")))
    log_business(info)

    photo_urls = _photo_urls(data.get("photo_html", []), BUSINESS_PHOTO_SIZE)
    logger.info("Found %d photos", len(photo_urls))
    with client_scope(client, user_agent, timeout) as http:
        downloaded = download_photos(http, photo_urls[:max_photos], output_dir)

    reviews = dedupe_reviews(extract_reviews(_soup(data.get("reviews_html"))))
    scraped_at = utc_timestamp()
    output = {
        "query": query,
        "business": info,
        "photos": {"count": len(photo_urls), "downloaded": downloaded, "urls": photo_urls},
        "reviews": {"count": len(reviews), "items": reviews},
        "scrapedAt": scraped_at,
    }
    result.saved(write_json(output_dir / "business-data.json", output))
    result.saved(
        write_text(
            output_dir / "business-data.txt",
            render_business_text(query, info, len(photo_urls), reviews, scraped_at),
        )
    )

    result.summary = {
        "Business": info["name"] or query,
        "Photos": f"{downloaded}/{len(photo_urls)} downloaded",
        "Reviews": len(reviews),
    }
    return result


def run_complete(
    query: str,
    output_dir: Path,
    *,
    max_photos: Optional[int] = 30,
    keep: bool = False,
    headless: bool = True,
    timeout: float = DEFAULT_TIMEOUT,
    user_agent: str = DEFAULT_USER_AGENT,
    client: Optional[httpx.Client] = None,
) -> RunResult:
    prepare_output_dir(output_dir, keep)
    result = RunResult(output_dir)

    data = _open_place(query, complete_session, output_dir, headless, viewport=(1400, 900), timeout=timeout)
    place_url = data["place_url"]
    listing = _soup(data.get("listing_html"))

    info = extract_business(listing, detailed=True)
    info["coordinates"] = parse_coordinates(place_url) or coordinates_from_scripts(listing)
    info["aboutSections"] = extract_about_sections(_soup(data.get("about_html")))
    log_business(info)

    photo_html = data.get("photo_html", [])
    categories = extract_photo_categories(_soup(photo_html[0] if photo_html else ""))
    photo_urls = _photo_urls(photo_html, COMPLETE_PHOTO_SIZE)
    logger.info("Found %d photos in categories: %s", len(photo_urls), ", ".join(categories) or "All")
    with client_scope(client, user_agent, timeout) as http:
        downloaded = download_photos(http, photo_urls[:max_photos], output_dir)

    reviews_soup = _soup(data.get("reviews_html"))
    reviews = dedupe_reviews(extract_reviews(reviews_soup))
    logger.info("Extracted %d reviews", len(reviews))

    output = {
        "query": query,
        "scrapedAt": utc_timestamp(),
        "googleMapsUrl": place_url,
        "business": info,
        "location": {
            "address": info["address"],
            "plusCode": info["plusCode"],
            "coordinates": info["coordinates"],
            "googleMapsUrl": place_url,
        },
        "photos": {
            "categories": categories,
            "totalFound": len(photo_urls),
            "downloaded": downloaded,
            "urls": photo_urls,
        },
        "reviews": {
            "summary": {"topics": extract_review_topics(reviews_soup)},
            "totalExtracted": len(reviews),
            "items": reviews,
        },
    }
    report = render_complete_report(output)
    result.saved(write_json(output_dir / "complete-data.json", output))
    result.saved(write_text(output_dir / "complete-report.txt", report))

    zip_name = business_zip_name(info["name"])
    result.saved(
        build_zip(
            output_dir / zip_name,
            {"complete-data.json": json_text(output), "complete-report.txt": report},
            extra_dir=output_dir,
        )
    )

    coords = info["coordinates"] or {}
    result.summary = {
        "Business": info["name"] or query,
        "Coordinates": f"{coords.get('latitude')}, {coords.get('longitude')}",
        "Photos": f"{downloaded} downloaded",
        "Reviews": len(reviews),
        "ZIP archive": zip_name,
    }
    return result
