import json
import zipfile

from bs4 import BeautifulSoup

from sitegrab.scrapers import website
from sitegrab.scrapers.website import SiteData, analyze_structure, classify_network, extract_assets, save_pages


def test_extract_assets_dedupes_by_url():
    site = SiteData()
    soup = BeautifulSoup(
        """
        <link rel="stylesheet" href="/s.css"><script src="app.js"></script><script>inline()</script>
        <img src="/a.png" alt="A"><img src="/a.png" alt="again"><img data-src="/lazy.png">
        """,
        "html.parser",
    )
    extract_assets(soup, "https://ex.test/p/", site)

    assert site.assets["images"] == [{"url": "https://ex.test/a.png", "alt": "A", "page": "https://ex.test/p/"}]
    assert site.assets["css"] == [{"url": "https://ex.test/s.css", "page": "https://ex.test/p/"}]
    assert site.assets["js"] == [{"url": "https://ex.test/p/app.js", "page": "https://ex.test/p/"}]


def test_analyze_structure(site_client):
    soup = BeautifulSoup(site_client.get("https://example.test/").text, "html.parser")
    structure = analyze_structure(soup, "https://example.test")

    assert structure["title"] == "Example Home"
    assert structure["meta"]["description"] == "An example site"
    assert [s["tag"] for s in structure["sections"]] == ["header", "nav", "main", "footer"]
    assert structure["sections"][0]["className"] == "header"

    found = {(c["name"], c["selector"]) for c in structure["components"]}
    assert ("navbar", ".navbar") in found
    assert ("button", ".btn") in found
    assert ("form", "form") in found
    assert not any(name == "hero" for name, _ in found)


def test_classify_network():
    found = classify_network([
        {"event_type": "request", "url": "https://ex.test/a.png", "resource_type": "image"},
        {"event_type": "request", "url": "https://ex.test/a.png", "resource_type": "image"},
        {"event_type": "request", "url": "https://ex.test/s.css", "resource_type": "stylesheet"},
        {"event_type": "request", "url": "https://ex.test/api", "resource_type": "fetch"},
        {"event_type": "response", "url": "https://cdn.test/f", "headers": {"Content-Type": "font/woff2"}},
        {"event_type": "response", "url": "https://cdn.test/x", "headers": {"content-type": "text/javascript"}},
        {"event_type": "request", "url": "data:image/png;base64,xx", "resource_type": "image"},
    ])
    assert found == {
        "images": ["https://ex.test/a.png"],
        "css": ["https://ex.test/s.css"],
        "js": ["https://cdn.test/x"],
        "fonts": ["https://cdn.test/f"],
    }


def test_run_static_without_browser(site_client, no_browser, tmp_path):
    result = website.run_static("https://example.test", tmp_path, client=site_client)

    data = json.loads((tmp_path / "website-data.json").read_text())
    assert len(data["pages"]) == 3
    home = data["pages"][0]
    assert home["renderedHTML"] == home["originalHTML"]
    assert data["structure"]["routes"][0] == {"url": "https://example.test", "path": "/", "title": "Example Home"}
    assert {"name": "navbar", "count": 2} in data["structure"]["components"]

    assert data["assets"]["images"][0]["local_path"] == "assets/images/image_0.png"
    assert (tmp_path / "assets" / "css" / "style_0.css").exists()
    assert (tmp_path / "pages" / "example_test_blog_post.html").exists()
    assert result.summary["Images"] == "1/1 downloaded"


def test_run_static_uses_rendered_html(site_client, fake_render, make_page, tmp_path):
    fake_render(lambda url, kw: make_page(url, html=f"<html>rendered {url}</html>"))
    website.run_static("https://example.test", tmp_path, max_pages=1, client=site_client)
    assert (tmp_path / "pages" / "example_test.html").read_text() == "<html>rendered https://example.test</html>"


def test_run_dynamic(site_client, fake_render, make_page, png_b64, tmp_path):
    pages = {
        "https://example.test": make_page(
            "https://example.test",
            html="<html>home</html>",
            data={
                "links": [
                    "https://example.test/about",
                    "https://example.test/about#team",
                    "https://other.test/x",
                ],
                "images": [{"url": "https://example.test/img/logo.png", "alt": "Logo"}],
                "stylesheets": ["https://example.test/css/site.css"],
                "scripts": ["https://example.test/js/app.js"],
                "inlineCss": [".a { color: red }"],
                "metadata": {"title": "Home", "twitterCard": "summary"},
            },
            network_requests=[
                {"event_type": "request", "url": "https://example.test/img/logo.png", "resource_type": "image"},
                {"event_type": "request", "url": "https://example.test/fonts/body.woff2", "resource_type": "font"},
                {"event_type": "response", "url": "https://images.example.test/hero", "headers": {"Content-Type": "image/jpeg"}},
            ],
        ),
        "https://example.test/about": make_page(
            "https://example.test/about",
            html="<html>about</html>",
            data={"links": ["https://example.test"], "metadata": {"title": "About"}},
            screenshot=png_b64,
        ),
    }
    calls = fake_render(lambda url, kw: pages[url])
    out = tmp_path / "scraped-data"

    result = website.run_dynamic("https://example.test", out, screenshots=True, client=site_client)

    assert [url for url, _ in calls] == ["https://example.test", "https://example.test/about"]
    assert calls[0][1]["scan_full_page"] and calls[0][1]["capture_network"]

    data = json.loads((out / "website-data.json").read_text())
    assert [p["path"] for p in data["pages"]] == ["/", "/about"]
    assert data["pages"][0]["metadata"]["twitterCard"] == "summary"
    assert [a["url"] for a in data["assets"]["images"]] == [
        "https://example.test/img/logo.png",
        "https://images.example.test/hero",
    ]
    assert data["assets"]["fonts"][0]["local_path"] == "assets/fonts/font_0.woff2"

    assert (out / "assets" / "js" / "script_0.js").exists()
    assert (out / "screenshots" / "example_test_about.png").exists()
    readme = (out / "README.md").read_text()
    assert "**Pages scraped:** 2" in readme
    assert "PNG: 1" in readme

    zip_path = tmp_path / "scraped-data.zip"
    assert zip_path in result.files
    with zipfile.ZipFile(zip_path) as zf:
        names = zf.namelist()
    assert "website-data.json" in names
    assert "pages/example_test_about.html" in names
    assert "assets/images/image_1.jpg" in names


def test_save_pages_keeps_query_variants_apart(tmp_path):
    site = SiteData()
    site.pages = [
        {"url": "https://ex.test/list?page=1", "renderedHTML": "one"},
        {"url": "https://ex.test/list?page=2", "renderedHTML": "two"},
    ]

    assert save_pages(site, tmp_path) == 2
    assert (tmp_path / "ex_test_list.html").read_text() == "one"
    assert (tmp_path / "ex_test_list_1.html").read_text() == "two"
