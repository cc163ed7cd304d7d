"""Screenshots, image compression and asset downloads."""

import base64
import logging
from io import BytesIO
from pathlib import Path
from typing import Dict, List, Optional

import httpx
from PIL import Image

from .fetch import fetch_bytes
from .utils import extension_for

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = {
    "images": ".jpg",
    "css": ".css",
    "js": ".js",
    "fonts": ".woff2",
}


def save_screenshot(
    screenshot_b64: str, output_path: Path, quality: int = 85, max_width: Optional[int] = None
) -> int:
    """
    Decode base64 screenshot, optionally compress, and save.

    Args:
        screenshot_b64: Base64 screenshot as returned by crawl4ai
        output_path: Where to save (extension determines format: .png or .jpg)
        quality: JPEG quality 1-100 (only used for .jpg)
        max_width: Resize to this width if set (maintains aspect ratio)

    Returns:
        File size in bytes
    """
    img = Image.open(BytesIO(base64.b64decode(screenshot_b64)))
    img = _fit_width(img, max_width)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    if output_path.suffix.lower() in (".jpg", ".jpeg"):
        # JPEG doesn't support alpha
        if img.mode in ("RGBA", "P"):
            img = img.convert("RGB")
        img.save(output_path, "JPEG", quality=quality, optimize=True)
    else:
        img.save(output_path, "PNG", optimize=True)

    return output_path.stat().st_size


def compress_image(content: bytes, max_width: int = 800, quality: int = 80) -> bytes:
    """Downscale an image to max_width and re-encode it as JPEG."""
    img = Image.open(BytesIO(content))
    if img.mode in ("RGBA", "P", "LA"):
        img = img.convert("RGB")
    img = _fit_width(img, max_width)

    buffer = BytesIO()
    img.save(buffer, "JPEG", quality=quality, optimize=True)
    return buffer.getvalue()


def _fit_width(img: Image.Image, max_width: Optional[int]) -> Image.Image:
    if max_width and img.width > max_width:
        ratio = max_width / img.width
        new_height = int(img.height * ratio)
        img = img.resize((max_width, new_height), Image.Resampling.LANCZOS)
    return img


def download_assets(
    client: httpx.Client,
    records: List[Dict],
    dest: Path,
    prefix: str,
    kind: str = "images",
    start: int = 0,
) -> int:
    """
    Download each record's "url" into dest as <prefix>_<i><ext>.

    On success the record gains a "local_path" relative to dest's parent.
    Failed downloads are logged and skipped. Returns the number saved.
    """
    dest.mkdir(parents=True, exist_ok=True)
    default_ext = DEFAULT_EXTENSIONS.get(kind, ".bin")
    saved = 0

    for i, record in enumerate(records, start=start):
        fetched = fetch_bytes(client, record["url"])
        if fetched is None:
            continue

        content, content_type = fetched
        filename = f"{prefix}_{i}{extension_for(content_type, record['url'], default_ext)}"
        (dest / filename).write_bytes(content)
        record["local_path"] = f"{dest.parent.name}/{dest.name}/{filename}"
        saved += 1
        logger.debug("Downloaded %s (%s)", filename, content_type or "unknown type")

    return saved
