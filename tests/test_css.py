import json
import zipfile

from bs4 import BeautifulSoup

from sitegrab.scrapers import css
from sitegrab.scrapers.css import CssCollection, apply_rendered, element_selector, extract_css, inline_css_file


def test_element_selector():
    soup = BeautifulSoup('<h1 id="title" class="hero-title big">x</h1><p>y</p>', "html.parser")
    assert element_selector(soup.h1) == "h1#title.hero-title"
    assert element_selector(soup.p) == "p"


def test_extract_css_collects_all_three_kinds():
    soup = BeautifulSoup(
        """
        <head>
          <link rel="stylesheet" href="/a.css">
          <link rel="preload" as="style" href="b.css">
          <link rel="stylesheet" href="/a.css">
          <style> .x { color: red } </style>
          <style>   </style>
        </head>
        <body><div class="box" style="margin: 0">x</div><span style="">y</span></body>
        """,
        "html.parser",
    )
    collection = CssCollection()
    extract_css(soup, "https://ex.test/dir/page", collection)

    assert collection.external == ["https://ex.test/a.css", "https://ex.test/dir/b.css"]
    assert collection.internal == [{"url": "https://ex.test/dir/page", "css": ".x { color: red }"}]
    assert collection.inline == [
        {"url": "https://ex.test/dir/page", "selector": "div.box", "styles": "margin: 0"}
    ]


def test_apply_rendered_replaces_only_the_start_page():
    collection = CssCollection(
        internal=[{"url": "https://ex.test", "css": "static"}, {"url": "https://ex.test/b", "css": "other"}],
        inline=[{"url": "https://ex.test", "selector": "p", "styles": "x: y"}],
    )
    apply_rendered(
        collection,
        "https://ex.test",
        {
            "computed": {"body": {"color": "rgb(0, 0, 0)"}},
            "internal": ["rendered"],
            "inline": [{"selector": "div#app", "styles": "display: none"}],
        },
    )

    assert collection.computed == {"body": {"color": "rgb(0, 0, 0)"}}
    assert [s["css"] for s in collection.internal] == ["rendered", "other"]
    assert collection.inline == [{"url": "https://ex.test", "selector": "div#app", "styles": "display: none"}]


def test_inline_css_file_formats_declarations():
    collection = CssCollection(
        inline=[{"url": "https://ex.test", "selector": "p", "styles": "color: red; font-weight: bold"}]
    )
    assert inline_css_file(collection) == (
        "/* Inline Style #1 - p from https://ex.test */\n"
        "p {\n  color: red;\n  font-weight: bold;\n}\n"
    )


def test_run_without_browser(site_client, no_browser, tmp_path):
    result = css.run("https://example.test", tmp_path, client=site_client)

    data = json.loads((tmp_path / "css-data.json").read_text())
    assert data["external"] == ["https://example.test/css/site.css"]
    assert data["summary"]["inlineStyles"] == 1
    assert data["summary"]["internalStyles"] == 1
    assert data["computed"] == {}
    assert data["stylesheets"][0]["filename"] == "site.css"

    assert (tmp_path / "stylesheets" / "site.css").read_text() == site_client.get(
        "https://example.test/css/site.css"
    ).text
    assert "color: red;" in (tmp_path / "inline-styles.css").read_text()
    assert "None extracted" in (tmp_path / "css-report.txt").read_text()

    zip_path = tmp_path / "example_test_css_data.zip"
    assert zip_path in result.files
    with zipfile.ZipFile(zip_path) as zf:
        assert sorted(zf.namelist()) == [
            "css-data.json",
            "css-report.txt",
            "inline-styles.css",
            "internal-styles.css",
            "stylesheets/site.css",
        ]
    assert result.summary["Pages crawled"] == 3


def test_run_uses_rendered_styles(site_client, fake_render, make_page, tmp_path):
    calls = fake_render(
        lambda url, kw: make_page(
            url,
            data={
                "computed": {"h1": {"fontSize": "32px"}},
                "internal": ["body { margin: 0; }", ".late { color: blue; }"],
                "inline": [],
            },
        )
    )

    css.run("https://example.test", tmp_path, max_pages=1, client=site_client)

    assert len(calls) == 1
    url, kwargs = calls[0]
    assert url == "https://example.test"
    assert kwargs["interact"] is not None

    data = json.loads((tmp_path / "css-data.json").read_text())
    assert data["computed"] == {"h1": {"fontSize": "32px"}}
    assert data["summary"]["internalStyles"] == 2
    assert data["summary"]["inlineStyles"] == 0
    assert not (tmp_path / "inline-styles.css").exists()
    assert "fontSize: 32px" in (tmp_path / "css-report.txt").read_text()
