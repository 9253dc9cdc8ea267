"""Per-version release-notes fetch, fanned out over a worker pool.

Each version is one independent task: fetch its page through the shared
:class:`~gover.scraper.throttle.DomainThrottle`, extract its change
categories, and attach its release date.  Finished records are handed back
to the calling thread through their futures; only that thread touches the
result list, and it does not return until every task has completed, failed,
or been abandoned at the run deadline.

A failed version is logged and left out of the result.  It never fails the
call as a whole.
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from concurrent.futures import TimeoutError as FuturesTimeoutError

import httpx

from gover.config import settings
from gover.errors import GoverError, PerVersionFetchError
from gover.models import VersionData
from gover.scraper.extractor import extract_change_categories
from gover.scraper.fetcher import build_client, fetch_url
from gover.scraper.throttle import DomainThrottle
from gover.versions import extract_version_from_url


def version_page_url(version: str) -> str:
    """Return the release-notes URL for *version*, e.g. ``https://go.dev/doc/go1.22``."""
    return settings.doc_url_template.format(version=version)


def page_version_from_url(url: str) -> str:
    """Return the version a fetched release-notes URL belongs to, or ``""``.

    Any text the URL template puts after ``{version}`` (e.g. ``.html``) is
    removed before the version segment is read.
    """
    suffix = settings.doc_url_template.partition("{version}")[2]
    if suffix and url.endswith(suffix):
        url = url[: -len(suffix)]
    return extract_version_from_url(url)


def build_version_data(version: str, html: str, release_dates: dict[str, str]) -> VersionData:
    """Extract one release-notes page into a :class:`VersionData`."""
    print(f"[SCRAPING] Processing content for Go version: {version}")

    data = VersionData(version=version)
    date = release_dates.get(version)
    if date:
        data.release_date = date
    else:
        print(f"[WARNING] Release date not found for {version}")

    data.changes = extract_change_categories(html)
    for category in data.changes:
        print(f"[SCRAPING]   {version} category: {category.category}")
    return data


def fetch_version_page(
    version: str,
    release_dates: dict[str, str],
    *,
    client: httpx.Client,
    throttle: DomainThrottle,
    cancel: threading.Event | None = None,
    deadline: float | None = None,
) -> VersionData:
    """Fetch and extract the page for *version*.

    The version recorded in the result is read back from the fetched URL,
    so a redirect to another release's page is attributed to that release.

    Raises:
        PerVersionFetchError: If the page cannot be fetched or identified.
    """
    url = version_page_url(version)
    print(f"[VISIT] {url}")
    try:
        with throttle.acquire(url, cancel):
            raw = fetch_url(url, client=client, deadline=deadline)
    except (httpx.HTTPError, GoverError) as exc:
        raise PerVersionFetchError(version, str(exc)) from exc

    page_version = page_version_from_url(raw.url)
    if not page_version:
        raise PerVersionFetchError(version, f"could not extract version from URL: {raw.url}")

    return build_version_data(page_version, raw.text, release_dates)


def fetch_all(
    versions: list[str],
    release_dates: dict[str, str],
    *,
    client: httpx.Client | None = None,
    throttle: DomainThrottle | None = None,
    deadline: float | None = None,
) -> list[VersionData]:
    """Fetch every version page concurrently and return the successful records.

    Args:
        versions: Version identifiers to fetch, one task each.
        release_dates: ``version -> date`` index merged into each record.
        client: Shared HTTP client; a private one is opened when ``None``.
        throttle: Per-domain limiter; built from ``settings`` when ``None``.
        deadline: Absolute ``time.monotonic()`` value.  Tasks still queued or
            waiting on the throttle when it passes are cancelled, requests in
            flight are cut off by it, and their versions are dropped.

    Returns:
        Records in completion order.  Callers must sort them.
    """
    throttle = throttle or DomainThrottle()
    owns_client = client is None
    http = client or build_client()
    cancel = threading.Event()
    collected: list[VersionData] = []

    pool = ThreadPoolExecutor(max_workers=throttle.parallelism, thread_name_prefix="gover")
    try:
        future_to_version: dict[Future[VersionData], str] = {
            pool.submit(
                fetch_version_page,
                version,
                release_dates,
                client=http,
                throttle=throttle,
                cancel=cancel,
                deadline=deadline,
            ): version
            for version in versions
        }

        timeout = None if deadline is None else max(0.0, deadline - time.monotonic())
        try:
            for future in as_completed(future_to_version, timeout=timeout):
                version = future_to_version[future]
                try:
                    data = future.result()
                except Exception as exc:
                    print(f"[SCRAPING] ✗ Failed {version}: {exc}")
                    continue
                collected.append(data)
                print(f"[SCRAPING] ✓ {data.version} ({len(data.changes)} categories)")
        except FuturesTimeoutError:
            cancel.set()
            abandoned = sorted(
                (v for f, v in future_to_version.items() if not f.done()),
                key=versions.index,
            )
            print(
                f"[SCRAPING] Run deadline exceeded; abandoning {len(abandoned)} "
                f"version(s): {abandoned}"
            )
    finally:
        # In-flight requests end by the deadline, so waiting here is bounded
        # and the client is not closed under a running worker.
        pool.shutdown(wait=True, cancel_futures=True)
        if owns_client:
            http.close()

    return collected
