"""Data models for the fetch layer."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class RawPage:
    """The raw HTTP response for a single URL fetch.

    ``url`` is the final URL after redirects, which is what the page
    fetcher uses to identify a documentation page's version.
    """

    url: str
    text: str
    status_code: int
