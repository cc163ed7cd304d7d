"""
sitegrab - website scrapers for CSS, HTML, images, text and Google Maps/Images.

Each scraper is independent: fetch page, parse DOM, extract, optionally follow
links, then write JSON/text reports and a zip archive.
"""

from rich.console import Console

__version__ = "0.1.0"

console = Console()
