from io import BytesIO

from PIL import Image

from sitegrab.media import compress_image, download_assets, save_screenshot


def test_compress_image_downscales_to_jpeg(jpeg_bytes):
    out = compress_image(jpeg_bytes, max_width=400)
    img = Image.open(BytesIO(out))
    assert img.format == "JPEG"
    assert img.size == (400, 200)


def test_save_screenshot_png_and_jpg(tmp_path, png_b64):
    size = save_screenshot(png_b64, tmp_path / "shots" / "page.png")
    assert size == (tmp_path / "shots" / "page.png").stat().st_size

    save_screenshot(png_b64, tmp_path / "page.jpg", max_width=32)
    assert Image.open(tmp_path / "page.jpg").size == (32, 32)


def test_download_assets_names_by_content_type(site_client, tmp_path):
    records = [
        {"url": "https://example.test/img/logo.png"},
        {"url": "https://example.test/missing.gif"},
        {"url": "https://example.test/img/photo"},
    ]
    dest = tmp_path / "assets" / "images"

    saved = download_assets(site_client, records, dest, "image")

    assert saved == 2
    assert sorted(p.name for p in dest.iterdir()) == ["image_0.png", "image_2.jpg"]
    assert records[0]["local_path"] == "assets/images/image_0.png"
    assert "local_path" not in records[1]


def test_download_assets_default_extension(site_client, tmp_path):
    records = [{"url": "https://example.test/css/site.css"}, {"url": "https://example.test/fonts/body.woff2"}]
    download_assets(site_client, records[:1], tmp_path / "css", "style", "css")
    download_assets(site_client, records[1:], tmp_path / "fonts", "font", "fonts")
    assert (tmp_path / "css" / "style_0.css").exists()
    assert (tmp_path / "fonts" / "font_0.woff2").read_bytes() == b"wOF2"
