"""HTTP fetcher restricted to the configured allowed domains."""

from __future__ import annotations

import time
from urllib.parse import urlparse

import httpx

from gover.config import settings
from gover.errors import DomainNotAllowedError, FetchCancelledError
from gover.scraper.models import RawPage


def _check_allowed(url: str) -> None:
    """Raise :class:`DomainNotAllowedError` unless *url* targets an allowed host."""
    host = (urlparse(url).hostname or "").lower()
    if host not in settings.allowed_domains:
        raise DomainNotAllowedError(url, host)


def _check_request(request: httpx.Request) -> None:
    _check_allowed(str(request.url))


def build_client() -> httpx.Client:
    """Return an ``httpx.Client`` configured from ``settings``.

    Every request the client sends, including each hop of a redirect chain,
    is checked against ``settings.allowed_domains``.  A single client is
    shared by every stage of a run; ``httpx.Client`` is safe to use from the
    page fetcher's worker threads.
    """
    return httpx.Client(
        headers={"User-Agent": settings.user_agent},
        timeout=settings.request_timeout,
        follow_redirects=True,
        event_hooks={"request": [_check_request]},
    )


def _remaining(url: str, deadline: float) -> float:
    remaining = deadline - time.monotonic()
    if remaining <= 0:
        raise FetchCancelledError(f"run deadline passed before fetching {url}")
    return remaining


def _get(client: httpx.Client, url: str, deadline: float | None) -> RawPage:
    if deadline is None:
        response = client.get(url)
        response.raise_for_status()
        return RawPage(url=str(response.url), text=response.text, status_code=response.status_code)

    # Each network operation waits at most until the deadline, and the body
    # is read in chunks so a slowly trickling server is cut off too.
    timeout = httpx.Timeout(min(settings.request_timeout, _remaining(url, deadline)))
    with client.stream("GET", url, timeout=timeout) as response:
        response.raise_for_status()
        chunks: list[bytes] = []
        for chunk in response.iter_bytes():
            if time.monotonic() > deadline:
                raise FetchCancelledError(f"run deadline passed while reading {url}")
            chunks.append(chunk)
        text = b"".join(chunks).decode(response.encoding or "utf-8", errors="replace")
        return RawPage(url=str(response.url), text=text, status_code=response.status_code)


def fetch_url(
    url: str,
    client: httpx.Client | None = None,
    deadline: float | None = None,
) -> RawPage:
    """Fetch *url* and return a :class:`RawPage`.

    When *client* is ``None`` a short-lived client is opened for this one
    request.  Rate limiting is not applied here; callers that fan out go
    through :class:`~gover.scraper.throttle.DomainThrottle`.

    Args:
        url: Page to fetch.
        client: Shared HTTP client.
        deadline: Absolute ``time.monotonic()`` value.  The request timeout
            is shortened to end no later than this, and reading stops once
            it has passed.

    Raises:
        DomainNotAllowedError: If the host, or any redirect target, is not in
            ``settings.allowed_domains``.
        FetchCancelledError: If *deadline* passes before or during the fetch.
        httpx.HTTPStatusError: If the server returns a 4xx/5xx status code.
        httpx.HTTPError: On transport failures and timeouts.
    """
    _check_allowed(url)

    if client is not None:
        return _get(client, url, deadline)

    with build_client() as own_client:
        return _get(own_client, url, deadline)
