"""Version resolution: find the latest Go release and enumerate ``go1.1 .. go1.N``.

Version identifiers are strings of the form ``go1.<minor>`` and are always
compared by their numeric minor component (``go1.9`` < ``go1.10``).
"""

from __future__ import annotations

import re

import httpx

from gover.config import settings
from gover.errors import GoverError, ResolutionError, VersionParseError
from gover.scraper.fetcher import fetch_url

_MAJOR_VERSION_RE = re.compile(r"go1\.(\d+)")
_PREFIX = "go1."


def fetch_latest_version(client: httpx.Client | None = None) -> str:
    """Return the first line of ``settings.version_url``, e.g. ``"go1.24.0"``.

    Raises:
        ResolutionError: On any transport or HTTP status failure.
    """
    try:
        raw = fetch_url(settings.version_url, client=client)
    except (httpx.HTTPError, GoverError) as exc:
        raise ResolutionError(f"failed to fetch Go versions: {exc}") from exc

    return raw.text.split("\n", 1)[0].strip()


def extract_major_version(version_string: str) -> int:
    """Return the minor number of the first ``go1.<digits>`` token.

    ``"go1.24.0\\n"`` gives ``24``.

    Raises:
        VersionParseError: If *version_string* has no such token.
    """
    match = _MAJOR_VERSION_RE.search(version_string)
    if match is None:
        raise VersionParseError(f"could not parse major version from: {version_string!r}")
    return int(match.group(1))


def generate_version_strings(major_version: int) -> list[str]:
    """Return ``["go1.1", ..., "go1.<major_version>"]`` in ascending order."""
    return [f"{_PREFIX}{i}" for i in range(1, major_version + 1)]


def parse_version_minor(version: str) -> int:
    """Return the minor number of ``go1.<minor>``, or ``0`` if *version* has another shape."""
    if not version.startswith(_PREFIX):
        return 0
    minor = version[len(_PREFIX):]
    if not minor.isdigit():
        return 0
    return int(minor)


def extract_version_from_url(url: str) -> str:
    """Return the ``go1.X`` segment at the end of a documentation URL.

    ``"https://go.dev/doc/go1.22"`` gives ``"go1.22"``.  Returns ``""`` when
    the URL is too short, ends in ``/``, or its last segment does not look
    like a Go version.
    """
    if len(url) < 4 or url.endswith("/"):
        return ""
    head, sep, segment = url.rpartition("/")
    if not sep or not head:
        return ""
    if len(segment) >= 3 and segment.startswith("go"):
        return segment
    return ""


def resolve_versions(client: httpx.Client | None = None) -> tuple[int, list[str]]:
    """Return the latest major version and every version identifier up to it.

    Raises:
        ResolutionError: If the latest version cannot be fetched or parsed.
    """
    latest = fetch_latest_version(client)
    print(f"[RESOLVE] Latest Go version: {latest}")

    major_version = extract_major_version(latest)
    print(f"[RESOLVE] Latest major version: {major_version}")

    versions = generate_version_strings(major_version)
    print(f"[RESOLVE] Will scrape versions: {versions}")
    return major_version, versions
