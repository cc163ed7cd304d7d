#!/usr/bin/env python3
"""
sitegrab - crawl websites and Google listings into JSON, text and zip files.

Usage:
    sitegrab css https://example.com
    sitegrab html https://example.com --max-pages 20 -o ./html-output
    sitegrab images https://example.com --max-width 1200
    sitegrab text https://example.com
    sitegrab clone https://example.com
    sitegrab clone-dynamic https://example.com --screenshots
    sitegrab google-images "cute cats" 20
    sitegrab google-reviews "Starbucks Times Square NYC" 30
    sitegrab maps-business "Starbucks Times Square NYC"
    sitegrab maps-complete "Coffee Shop" --keep

Every option can also be set from the environment, e.g. SITEGRAB_CSS_MAX_PAGES=20.
"""

import logging
from contextlib import contextmanager
from pathlib import Path

import click
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn

from . import __version__, console
from .fetch import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT
from .scrapers import css as css_scraper
from .scrapers import google_images, google_maps, website
from .scrapers import html as html_scraper
from .scrapers import images as images_scraper
from .scrapers import text as text_scraper


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=verbose, markup=False)],
        force=True,
    )
    # crawl4ai and httpx are chatty at INFO
    for name in ("httpx", "httpcore", "crawl4ai"):
        logging.getLogger(name).setLevel(logging.DEBUG if verbose else logging.WARNING)


@contextmanager
def spinner(description: str):
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task(description=description, total=None)
        yield


def report(title: str, result) -> None:
    for path in result.files:
        console.print(f"[green]Saved:[/green] {path}")
    lines = "\n".join(f"{key}: {value}" for key, value in result.summary.items())
    console.print(Panel(f"[bold]{title}[/bold]\n{lines}", expand=False))
    console.print(f"\n[bold green]Done![/bold green] All data saved to {result.output_dir}/")


def output_option(default: str):
    return click.option(
        "-o",
        "--output",
        type=click.Path(file_okay=False, path_type=Path),
        default=default,
        show_default=True,
        help="Output directory",
    )


def keep_option(f):
    return click.option(
        "--keep",
        is_flag=True,
        help="Keep old scraped data (don't empty the output directory)",
    )(f)


def headless_option(f):
    return click.option(
        "--no-headless",
        is_flag=True,
        help="Show browser window",
    )(f)


def http_options(f):
    f = click.option(
        "--user-agent",
        default=DEFAULT_USER_AGENT,
        help="User-Agent header for plain HTTP fetches",
    )(f)
    f = click.option(
        "--timeout",
        default=DEFAULT_TIMEOUT,
        type=click.FloatRange(min=1),
        show_default=True,
        help="Timeout in seconds for HTTP fetches and browser page loads",
    )(f)
    return f


def crawl_options(max_pages: int, links_per_page):
    """Options shared by every command that follows links from a start URL."""

    def decorator(f):
        f = click.option(
            "--links-per-page",
            default=links_per_page,
            type=click.IntRange(min=0),
            show_default=True,
            help="Max new links to follow from each page (unlimited if unset)",
        )(f)
        f = click.option(
            "--max-pages",
            default=max_pages,
            type=click.IntRange(min=1),
            show_default=True,
            help="Max pages to visit",
        )(f)
        f = http_options(f)
        return keep_option(f)

    return decorator


@click.group(context_settings={"auto_envvar_prefix": "SITEGRAB", "help_option_names": ["-h", "--help"]})
@click.version_option(__version__, prog_name="sitegrab")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
def cli(verbose: bool):
    """Website scrapers for CSS, HTML, images, text and Google Maps/Images."""
    setup_logging(verbose)


@cli.command()
@click.argument("url")
@output_option("./css-output")
@crawl_options(max_pages=10, links_per_page=5)
@click.option("--no-render", is_flag=True, help="Skip the browser pass for computed styles")
@headless_option
def css(url, output, keep, max_pages, links_per_page, timeout, user_agent, no_render, no_headless):
    """Extract inline, internal, external and computed CSS from a site."""
    with spinner(f"Scraping CSS from {url}..."):
        result = css_scraper.run(
            url,
            output,
            keep=keep,
            max_pages=max_pages,
            links_per_page=links_per_page,
            render=not no_render,
            headless=not no_headless,
            timeout=timeout,
            user_agent=user_agent,
        )
    report("CSS Scraper", result)


@cli.command()
@click.argument("url")
@output_option("./html-output")
@crawl_options(max_pages=10, links_per_page=5)
@click.option("--no-render", is_flag=True, help="Skip the rendered pass over the start page")
@headless_option
def html(url, output, keep, max_pages, links_per_page, timeout, user_agent, no_render, no_headless):
    """Extract page metadata, structure and elements from a site."""
    with spinner(f"Scraping HTML from {url}..."):
        result = html_scraper.run(
            url,
            output,
            keep=keep,
            max_pages=max_pages,
            links_per_page=links_per_page,
            render=not no_render,
            headless=not no_headless,
            timeout=timeout,
            user_agent=user_agent,
        )
    report("HTML Scraper", result)


@cli.command()
@click.argument("url")
@output_option("./images-output")
@crawl_options(max_pages=50, links_per_page=None)
@click.option(
    "--max-width",
    default=None,
    type=click.IntRange(min=1),
    help="Downscale and re-encode images wider than this as JPEG",
)
def images(url, output, keep, max_pages, links_per_page, timeout, user_agent, max_width):
    """Download every image found across a site."""
    with spinner(f"Scraping images from {url}..."):
        result = images_scraper.run(
            url,
            output,
            keep=keep,
            max_pages=max_pages,
            links_per_page=links_per_page,
            max_width=max_width,
            timeout=timeout,
            user_agent=user_agent,
        )
    report("Image Scraper", result)


@cli.command()
@click.argument("url")
@output_option("./text-output")
@crawl_options(max_pages=50, links_per_page=None)
def text(url, output, keep, max_pages, links_per_page, timeout, user_agent):
    """Collect readable text per page and a site-wide unique list."""
    with spinner(f"Scraping text from {url}..."):
        result = text_scraper.run(
            url,
            output,
            keep=keep,
            max_pages=max_pages,
            links_per_page=links_per_page,
            timeout=timeout,
            user_agent=user_agent,
        )
    report("Text Scraper", result)


@cli.command()
@click.argument("url")
@output_option("./scraped-data")
@crawl_options(max_pages=10, links_per_page=5)
@click.option("--no-render", is_flag=True, help="Store fetched HTML instead of rendering each page")
@headless_option
def clone(url, output, keep, max_pages, links_per_page, timeout, user_agent, no_render, no_headless):
    """Clone a static site: pages, structure and assets."""
    with spinner(f"Cloning {url}..."):
        result = website.run_static(
            url,
            output,
            keep=keep,
            max_pages=max_pages,
            links_per_page=links_per_page,
            render=not no_render,
            headless=not no_headless,
            timeout=timeout,
            user_agent=user_agent,
        )
    report("Website Cloner", result)


@cli.command("clone-dynamic")
@click.argument("url")
@output_option("./scraped-data")
@crawl_options(max_pages=10, links_per_page=10)
@click.option(
    "--max-depth",
    default=3,
    type=click.IntRange(min=0),
    show_default=True,
    help="How many links deep to follow from the start page",
)
@click.option("--screenshots", is_flag=True, help="Save a full-page screenshot of every page")
@headless_option
def clone_dynamic(url, output, keep, max_pages, links_per_page, timeout, user_agent, max_depth, screenshots, no_headless):
    """Clone a JavaScript-rendered site, capturing network-loaded assets."""
    with spinner(f"Cloning {url} (dynamic)..."):
        result = website.run_dynamic(
            url,
            output,
            keep=keep,
            max_pages=max_pages,
            max_depth=max_depth,
            links_per_page=links_per_page,
            screenshots=screenshots,
            headless=not no_headless,
            timeout=timeout,
            user_agent=user_agent,
        )
    report("Dynamic Website Cloner", result)


@cli.command("google-images")
@click.argument("query")
@click.argument("max_images", default=50, type=click.IntRange(min=1))
@output_option("./google-images")
@keep_option
@http_options
@headless_option
def google_images_cmd(query, max_images, output, keep, timeout, user_agent, no_headless):
    """Search Google Images for QUERY and download up to MAX_IMAGES results."""
    with spinner(f'Searching Google Images for "{query}"...'):
        result = google_images.run(
            query,
            output,
            max_images=max_images,
            keep=keep,
            headless=not no_headless,
            timeout=timeout,
            user_agent=user_agent,
        )
    report("Google Images Scraper", result)


@cli.command("google-reviews")
@click.argument("query")
@click.argument("max_reviews", default=50, type=click.IntRange(min=1))
@output_option("./google-reviews")
@keep_option
@headless_option
def google_reviews_cmd(query, max_reviews, output, keep, no_headless):
    """Extract up to MAX_REVIEWS Google Maps reviews for the business matching QUERY."""
    with spinner(f'Loading reviews for "{query}"...'):
        result = google_maps.run_reviews(
            query,
            output,
            max_reviews=max_reviews,
            keep=keep,
            headless=not no_headless,
        )
    report("Google Reviews Scraper", result)


@cli.command("maps-business")
@click.argument("query")
@output_option("./maps-business")
@click.option("--max-photos", default=None, type=click.IntRange(min=0), help="Max photos to download")
@keep_option
@http_options
@headless_option
def maps_business(query, output, max_photos, keep, timeout, user_agent, no_headless):
    """Business info, photos and reviews for the Google Maps listing matching QUERY."""
    with spinner(f'Scraping Google Maps listing for "{query}"...'):
        result = google_maps.run_business(
            query,
            output,
            max_photos=max_photos,
            keep=keep,
            headless=not no_headless,
            timeout=timeout,
            user_agent=user_agent,
        )
    report("Google Maps Business Scraper", result)


@cli.command("maps-complete")
@click.argument("query")
@output_option("./maps-complete")
@click.option("--max-photos", default=30, type=click.IntRange(min=0), show_default=True, help="Max photos to download")
@keep_option
@http_options
@headless_option
def maps_complete(query, output, max_photos, keep, timeout, user_agent, no_headless):
    """Everything Google Maps shows for QUERY, plus coordinates, screenshots and a zip."""
    with spinner(f'Scraping complete Google Maps data for "{query}"...'):
        result = google_maps.run_complete(
            query,
            output,
            max_photos=max_photos,
            keep=keep,
            headless=not no_headless,
            timeout=timeout,
            user_agent=user_agent,
        )
    report("Google Maps Complete Scraper", result)


if __name__ == "__main__":
    cli()
