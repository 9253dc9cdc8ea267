"""Scraper package — fetch, throttle & page extraction."""

from gover.scraper.extractor import extract_change_categories, extract_release_dates
from gover.scraper.fetcher import build_client, fetch_url
from gover.scraper.models import RawPage
from gover.scraper.throttle import DomainThrottle

__all__ = [
    "build_client",
    "fetch_url",
    "extract_change_categories",
    "extract_release_dates",
    "DomainThrottle",
    "RawPage",
]
