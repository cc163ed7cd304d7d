"""URL and filename helpers shared by the scrapers."""

import re
from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Optional
from urllib.parse import urldefrag, urljoin, urlparse

SKIPPED_SCHEMES = ("mailto:", "tel:", "javascript:", "data:")

CONTENT_TYPE_EXTENSIONS = [
    ("image/svg+xml", ".svg"),
    ("image/png", ".png"),
    ("image/jpeg", ".jpg"),
    ("image/jpg", ".jpg"),
    ("image/webp", ".webp"),
    ("image/gif", ".gif"),
    ("image/avif", ".avif"),
    ("image/x-icon", ".ico"),
    ("image/vnd.microsoft.icon", ".ico"),
    ("font/woff2", ".woff2"),
    ("font/woff", ".woff"),
    ("font/ttf", ".ttf"),
    ("font/otf", ".otf"),
    ("text/css", ".css"),
    ("javascript", ".js"),
]


def url_to_slug(url: str) -> str:
    """Generate a filesystem-safe filename from a URL."""
    parsed = urlparse(url)
    # Combine domain and path, removing protocol
    slug = parsed.netloc + parsed.path
    slug = re.sub(r"[^a-zA-Z0-9]+", "_", slug)
    slug = re.sub(r"_+", "_", slug).strip("_")
    return slug[:100] if slug else "page"


def normalize_url(url: str) -> str:
    """Add a scheme when missing, drop the fragment and any trailing slash."""
    url = url.strip()
    if not url.startswith(("http://", "https://")):
        url = "https://" + url.lstrip("/")
    url, _ = urldefrag(url)
    parsed = urlparse(url)
    path = parsed.path.rstrip("/")
    normalized = f"{parsed.scheme}://{parsed.netloc}{path}"
    if parsed.query:
        normalized += f"?{parsed.query}"
    return normalized


def resolve_link(href: Optional[str], page_url: str) -> Optional[str]:
    """
    Resolve an href/src against the page it was found on.

    Returns None for anything that is not a fetchable http(s) URL.
    """
    if not href:
        return None
    href = href.strip()
    if not href or href.startswith("#") or href.lower().startswith(SKIPPED_SCHEMES):
        return None

    absolute, _ = urldefrag(urljoin(page_url, href))
    if urlparse(absolute).scheme not in ("http", "https"):
        return None
    return absolute


def in_scope(url: str, base_url: str) -> bool:
    """True when url lives on the same host as base_url and under its path."""
    target = urlparse(url)
    base = urlparse(base_url)
    if target.scheme != base.scheme or target.netloc.lower() != base.netloc.lower():
        return False
    base_path = base.path.rstrip("/")
    if not base_path:
        return True
    return target.path == base_path or target.path.startswith(base_path + "/")


def domain_slug(url: str) -> str:
    host = urlparse(url).hostname or ""
    return re.sub(r"[^a-zA-Z0-9]", "_", host) or "site"


def extension_for(content_type: str, url: str = "", default: str = ".bin") -> str:
    """
    Pick a file extension for a downloaded asset.

    The Content-Type header wins; the URL path suffix is the fallback.
    """
    content_type = (content_type or "").lower()
    for marker, ext in CONTENT_TYPE_EXTENSIONS:
        if marker in content_type:
            return ext

    if url:
        suffix = PurePosixPath(urlparse(url).path).suffix.lower()
        if suffix and len(suffix) <= 6:
            return ".jpg" if suffix == ".jpeg" else suffix
    return default


def unique_filename(name: str, taken: set) -> str:
    """Return name, or name with a numeric suffix, not already in taken."""
    candidate = name
    stem = PurePosixPath(name).stem
    suffix = PurePosixPath(name).suffix
    counter = 1
    while candidate in taken:
        candidate = f"{stem}_{counter}{suffix}"
        counter += 1
    taken.add(candidate)
    return candidate


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")
