"""End-to-end scrape: resolve → release history → version pages → aggregate.

``scrape`` is the single public function in this module.  The two global
fetches are prerequisites: if either fails the whole run fails with its
error.  The per-version stage is best effort, so a run can succeed with
fewer versions than were requested.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

import httpx

from gover.aggregate import aggregate
from gover.config import settings
from gover.history import fetch_release_dates
from gover.models import VersionData
from gover.pages import fetch_all
from gover.scraper.fetcher import build_client
from gover.scraper.throttle import DomainThrottle
from gover.versions import resolve_versions


@dataclass
class ScrapeResult:
    requested: list[str] = field(default_factory=list)
    versions: list[VersionData] = field(default_factory=list)

    @property
    def missing(self) -> list[str]:
        """Requested versions with no record in the result."""
        found = {v.version for v in self.versions}
        return [v for v in self.requested if v not in found]


def _run_deadline() -> float | None:
    if settings.run_deadline <= 0:
        return None
    return time.monotonic() + settings.run_deadline


def scrape(client: httpx.Client | None = None) -> ScrapeResult:
    """Scrape every Go release-notes page up to the latest release.

    Args:
        client: Optional HTTP client to use for every request.  When
            ``None`` one is opened for the run and closed on exit.

    Returns:
        A :class:`ScrapeResult` whose ``versions`` are sorted newest first.

    Raises:
        ResolutionError: If the version range cannot be established.
        HistoryFetchError: If release dates cannot be scraped.
    """
    deadline = _run_deadline()
    owns_client = client is None
    http = client or build_client()

    try:
        _, versions = resolve_versions(http)

        print("[PIPELINE] Scraping release history for dates...")
        release_dates = fetch_release_dates(http)

        print("[PIPELINE] Starting scraping for version details...")
        collected = fetch_all(
            versions,
            release_dates,
            client=http,
            throttle=DomainThrottle(),
            deadline=deadline,
        )
    finally:
        if owns_client:
            http.close()

    result = ScrapeResult(requested=versions, versions=aggregate(collected))
    print(
        f"[PIPELINE] Finished scraping. Found data for {len(result.versions)} "
        f"of {len(versions)} versions."
    )
    if result.missing:
        print(f"[WARNING] No data for: {result.missing}")
    return result
