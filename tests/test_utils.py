import pytest

from sitegrab.utils import (
    domain_slug,
    extension_for,
    in_scope,
    normalize_url,
    resolve_link,
    unique_filename,
    url_to_slug,
)


def test_url_to_slug():
    assert url_to_slug("https://example.com/blog/post-1") == "example_com_blog_post_1"
    assert url_to_slug("https://example.com/") == "example_com"
    assert url_to_slug("") == "page"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("example.com", "https://example.com"),
        ("https://example.com/", "https://example.com"),
        ("https://example.com/docs/#intro", "https://example.com/docs"),
        ("http://example.com/a?b=1", "http://example.com/a?b=1"),
        ("  https://example.com/x  ", "https://example.com/x"),
    ],
)
def test_normalize_url(raw, expected):
    assert normalize_url(raw) == expected


def test_resolve_link_joins_relative_paths():
    page = "https://example.com/blog/post"
    assert resolve_link("other", page) == "https://example.com/blog/other"
    assert resolve_link("/img/a.png", page) == "https://example.com/img/a.png"
    assert resolve_link("../up", page) == "https://example.com/up"
    assert resolve_link("https://cdn.example.net/x.js", page) == "https://cdn.example.net/x.js"
    assert resolve_link("/page#section", page) == "https://example.com/page"


@pytest.mark.parametrize(
    "href", [None, "", "   ", "#top", "mailto:a@b.c", "tel:123", "javascript:void(0)", "data:image/png;base64,xx", "ftp://x/y"]
)
def test_resolve_link_skips_unfetchable(href):
    assert resolve_link(href, "https://example.com/") is None


def test_in_scope_host_and_path():
    assert in_scope("https://example.com/anything", "https://example.com")
    assert not in_scope("https://other.com/", "https://example.com")
    assert not in_scope("http://example.com/", "https://example.com")

    assert in_scope("https://example.com/docs", "https://example.com/docs")
    assert in_scope("https://example.com/docs/intro", "https://example.com/docs")
    # prefix match alone is not enough
    assert not in_scope("https://example.com/docs-old", "https://example.com/docs")


def test_domain_slug():
    assert domain_slug("https://www.example.com/path") == "www_example_com"


def test_extension_for_prefers_content_type():
    assert extension_for("image/png", "https://x/a.jpg") == ".png"
    assert extension_for("image/svg+xml; charset=utf-8") == ".svg"
    assert extension_for("application/javascript") == ".js"
    assert extension_for("", "https://x/photo.JPEG") == ".jpg"
    assert extension_for("", "https://x/noext", default=".jpg") == ".jpg"
    assert extension_for("application/octet-stream") == ".bin"


def test_unique_filename():
    taken = set()
    assert unique_filename("a.png", taken) == "a.png"
    assert unique_filename("a.png", taken) == "a_1.png"
    assert unique_filename("a.png", taken) == "a_2.png"
    assert taken == {"a.png", "a_1.png", "a_2.png"}
