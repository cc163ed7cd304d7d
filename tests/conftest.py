"""Pytest configuration and shared fixtures."""

import base64
from io import BytesIO

import click
import httpx
import pytest
from PIL import Image

from sitegrab import browser
from sitegrab.browser import RenderedPage

HOME_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>Example Home</title>
  <meta name="description" content="An example site">
  <meta name="keywords" content="example, test">
  <meta property="og:title" content="Example OG">
  <link rel="canonical" href="https://example.test/">
  <link rel="stylesheet" href="/css/site.css">
  <style>body { margin: 0; }</style>
  <script src="/js/app.js"></script>
</head>
<body>
  <header class="header">
    <nav class="navbar">
      <a href="/about">About us</a>
      <a href="/blog/post#top">Blog</a>
      <a href="mailto:hi@example.test">Mail</a>
      <a href="https://other.test/page">Elsewhere</a>
    </nav>
  </header>
  <main>
    <h1 id="title" class="hero-title big">Welcome to Example</h1>
    <p style="color: red; font-weight: bold">A paragraph with enough text.</p>
    <p>Hi</p>
    <img src="/img/logo.png" alt="Logo" width="64" height="64">
    <img data-src="img/photo" alt="Lazy">
    <form action="/search" method="post">
      <input type="text" name="q" required>
      <button class="btn">Go</button>
    </form>
    <table><tr><th>Name</th><th>Value</th></tr><tr><td>a</td><td>1</td></tr></table>
  </main>
  <footer><p>Copyright 2024 Example</p></footer>
  <script>var x = 1;</script>
</body>
</html>
"""

ABOUT_HTML = """<html><head><title>About</title></head>
<body>
  <h1>About Example</h1>
  <ul><li>First list item</li><li>Welcome to Example</li></ul>
  <a href="/">Home</a>
  <a href="/missing">Broken</a>
  <img src="/img/logo.png" alt="Logo again">
</body></html>
"""

POST_HTML = """<html><head><title>Post</title></head>
<body>
  <article><h2>A blog post</h2><p>Posts have words in them.</p></article>
  <a href="/doc.pdf">Download</a>
</body></html>
"""

CSS_TEXT = "body { color: #333; }\n.btn { padding: 4px; }\n"
JS_TEXT = "console.log('hi');\n"


def _image_bytes(fmt: str, size=(64, 64)) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", size, (200, 30, 30)).save(buffer, fmt)
    return buffer.getvalue()


PNG_BYTES = _image_bytes("PNG")
JPEG_BYTES = _image_bytes("JPEG", (1600, 800))


def site_handler(request: httpx.Request) -> httpx.Response:
    host = request.url.host
    path = request.url.path

    if host.endswith("googleusercontent.com") or host == "images.example.test":
        return httpx.Response(200, content=JPEG_BYTES, headers={"Content-Type": "image/jpeg"})
    if host != "example.test":
        return httpx.Response(404)

    pages = {"/": HOME_HTML, "/about": ABOUT_HTML, "/blog/post": POST_HTML}
    if path in pages:
        return httpx.Response(200, text=pages[path], headers={"Content-Type": "text/html; charset=utf-8"})
    if path == "/css/site.css":
        return httpx.Response(200, text=CSS_TEXT, headers={"Content-Type": "text/css"})
    if path == "/js/app.js":
        return httpx.Response(200, text=JS_TEXT, headers={"Content-Type": "application/javascript"})
    if path == "/img/logo.png":
        return httpx.Response(200, content=PNG_BYTES, headers={"Content-Type": "image/png"})
    if path == "/img/photo":
        return httpx.Response(200, content=JPEG_BYTES, headers={"Content-Type": "image/jpeg"})
    if path == "/fonts/body.woff2":
        return httpx.Response(200, content=b"wOF2", headers={"Content-Type": "font/woff2"})
    if path == "/doc.pdf":
        return httpx.Response(200, content=b"%PDF-1.4", headers={"Content-Type": "application/pdf"})
    return httpx.Response(404, text="not found")


@pytest.fixture
def make_site_client():
    """Factory for httpx clients backed by a small in-memory site at https://example.test."""

    def make(**kwargs):
        return httpx.Client(transport=httpx.MockTransport(site_handler), follow_redirects=True)

    return make


@pytest.fixture
def site_client(make_site_client):
    with make_site_client() as client:
        yield client


@pytest.fixture
def jpeg_bytes():
    """A 1600x800 JPEG."""
    return JPEG_BYTES


@pytest.fixture
def png_b64():
    return base64.b64encode(PNG_BYTES).decode()


@pytest.fixture
def no_browser(monkeypatch):
    """Every browser render fails, as if Chromium were missing."""

    def fail(url, **kwargs):
        raise click.ClickException("Crawl failed: browser unavailable")

    monkeypatch.setattr(browser, "render", fail)


@pytest.fixture
def fake_render(monkeypatch):
    """
    Install a stand-in for browser.render.

    Call the fixture with a function (url, kwargs) -> RenderedPage; every call
    is recorded in the returned list.
    """
    calls = []

    def install(responder):
        def render(url, **kwargs):
            calls.append((url, kwargs))
            return responder(url, kwargs)

        monkeypatch.setattr(browser, "render", render)
        return calls

    return install


@pytest.fixture
def make_page():
    def make(url, html="<html></html>", data=None, network_requests=None, screenshot=None):
        return RenderedPage(
            url=url,
            final_url=url,
            html=html,
            screenshot=screenshot,
            data=data or {},
            network_requests=network_requests or [],
        )

    return make
