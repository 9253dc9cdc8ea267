"""Release-history fetch: one page, one pass, ``version -> first release date``."""

from __future__ import annotations

import httpx

from gover.config import settings
from gover.errors import GoverError, HistoryFetchError, ReleaseHistoryNotFoundError
from gover.scraper.extractor import extract_release_dates
from gover.scraper.fetcher import fetch_url


def fetch_release_dates(client: httpx.Client | None = None) -> dict[str, str]:
    """Scrape ``settings.release_history_url`` for Go release dates.

    Returns:
        A mapping such as ``{"go1.24": "2025-02-11", ...}``.

    Raises:
        HistoryFetchError: If the page cannot be fetched.
        ReleaseHistoryNotFoundError: If the page has no release headings,
            which means its structure has changed.
    """
    url = settings.release_history_url
    print(f"[HISTORY] Scraping release history: {url}")
    try:
        raw = fetch_url(url, client=client)
    except (httpx.HTTPError, GoverError) as exc:
        raise HistoryFetchError(f"failed to visit release history page: {exc}") from exc

    dates = extract_release_dates(raw.text)
    if not dates:
        raise ReleaseHistoryNotFoundError(f"no release dates found on {url}")

    print(f"[HISTORY] Found release dates for {len(dates)} versions")
    return dates
