import json

import pytest
from click.testing import CliRunner

from sitegrab import fetch
from sitegrab.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def mock_http(monkeypatch, make_site_client):
    """Scrapers that open their own client get the in-memory site instead."""
    monkeypatch.setattr(fetch, "make_client", make_site_client)


def test_help_lists_every_command(runner):
    result = runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    for command in (
        "css",
        "html",
        "images",
        "text",
        "clone",
        "clone-dynamic",
        "google-images",
        "google-reviews",
        "maps-business",
        "maps-complete",
    ):
        assert command in result.output


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_missing_url_is_a_usage_error(runner):
    result = runner.invoke(cli, ["text"])
    assert result.exit_code == 2
    assert "Missing argument 'URL'" in result.output


def test_text_command(runner, mock_http, tmp_path):
    out = tmp_path / "text-out"
    result = runner.invoke(cli, ["text", "https://example.test", "-o", str(out)])

    assert result.exit_code == 0, result.output
    assert "Saved:" in result.output
    assert "Text Scraper" in result.output
    assert len(json.loads((out / "page-text.json").read_text())) == 3


def test_options_from_environment(runner, mock_http, tmp_path):
    out = tmp_path / "text-out"
    result = runner.invoke(
        cli,
        ["text", "https://example.test", "-o", str(out)],
        env={"SITEGRAB_TEXT_MAX_PAGES": "1"},
    )

    assert result.exit_code == 0, result.output
    assert list(json.loads((out / "page-text.json").read_text())) == ["https://example.test"]


def test_keep_flag_preserves_old_files(runner, mock_http, tmp_path):
    out = tmp_path / "images-out"
    out.mkdir()
    (out / "old.txt").write_text("old")

    result = runner.invoke(cli, ["images", "https://example.test", "-o", str(out), "--keep", "--max-pages", "1"])

    assert result.exit_code == 0, result.output
    assert (out / "old.txt").exists()
    assert (out / "website-images.zip").exists()


def test_unreachable_site_fails_cleanly(runner, mock_http, tmp_path):
    result = runner.invoke(cli, ["text", "https://example.test/missing", "-o", str(tmp_path)])
    assert result.exit_code == 1
    assert "Could not fetch https://example.test/missing" in result.output


def test_css_without_render(runner, mock_http, fake_render, tmp_path):
    calls = fake_render(lambda url, kw: pytest.fail("browser should not run"))
    result = runner.invoke(cli, ["css", "https://example.test", "-o", str(tmp_path), "--no-render"])

    assert result.exit_code == 0, result.output
    assert calls == []
    assert (tmp_path / "example_test_css_data.zip").exists()


def test_google_reviews_positional_max(runner, fake_render, make_page, tmp_path):
    fake_render(lambda url, kw: make_page(url, data={"listing_html": "<h1>Cafe</h1>", "reviews_html": ""}))
    result = runner.invoke(cli, ["google-reviews", "Cafe", "5", "-o", str(tmp_path)])

    assert result.exit_code == 0, result.output
    assert json.loads((tmp_path / "reviews.json").read_text())["business"]["name"] == "Cafe"


def test_timeout_reaches_browser(runner, mock_http, fake_render, make_page, tmp_path):
    calls = fake_render(lambda url, kw: make_page(url, html="<html></html>"))
    result = runner.invoke(
        cli, ["clone", "https://example.test", "-o", str(tmp_path), "--max-pages", "2", "--timeout", "7"]
    )

    assert result.exit_code == 0, result.output
    assert len(calls) == 2
    assert all(kw["timeout"] == 7 for _, kw in calls)
