"""Exception hierarchy for the gover scraping pipeline.

Failures split into two policies.  The two prerequisite global fetches
(version resolution and release history) are all-or-nothing: their errors
abort the run.  Per-version page failures are recovered inside the fan-out
and only ever surface as a missing entry in the result.
"""

from __future__ import annotations

__all__ = [
    "GoverError",
    "DomainNotAllowedError",
    "FetchCancelledError",
    "ResolutionError",
    "VersionParseError",
    "HistoryFetchError",
    "ReleaseHistoryNotFoundError",
    "PerVersionFetchError",
    "OutputError",
    "SerializationError",
    "OutputWriteError",
]


class GoverError(RuntimeError):
    """Base exception for all gover failures."""


class DomainNotAllowedError(GoverError):
    """Raised when a URL's host is outside the configured allowed domains."""

    def __init__(self, url: str, host: str) -> None:
        super().__init__(f"domain {host!r} is not allowed (url: {url})")
        self.url = url
        self.host = host


class FetchCancelledError(GoverError):
    """Raised when a pending fetch is abandoned because the run was cancelled."""


class ResolutionError(GoverError):
    """Raised when the latest Go version (and so the version range) cannot be established."""


class VersionParseError(ResolutionError):
    """Raised when a version string does not contain a ``go1.<digits>`` token."""


class HistoryFetchError(GoverError):
    """Raised when the release-history page cannot be fetched."""


class ReleaseHistoryNotFoundError(HistoryFetchError):
    """Raised when the release-history page yields no version/date headings."""


class PerVersionFetchError(GoverError):
    """Raised for a single version page; recovered by the page fetcher."""

    def __init__(self, version: str, message: str) -> None:
        super().__init__(f"{version}: {message}")
        self.version = version


class OutputError(GoverError):
    """Base for failures after the pipeline has produced its result."""


class SerializationError(OutputError):
    """Raised when the result cannot be rendered as JSON."""


class OutputWriteError(OutputError):
    """Raised when the JSON document cannot be written to disk."""
