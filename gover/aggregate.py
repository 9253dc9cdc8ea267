"""Deterministic ordering of the fan-in result."""

from __future__ import annotations

from gover.models import VersionData
from gover.versions import parse_version_minor


def aggregate(items: list[VersionData]) -> list[VersionData]:
    """Return *items* newest first, by numeric minor version.

    Duplicate version identifiers keep the first record seen; later ones are
    dropped with a warning.  Records themselves are not modified.
    """
    seen: set[str] = set()
    unique: list[VersionData] = []
    for item in items:
        if item.version in seen:
            print(f"[WARNING] Duplicate record for {item.version} dropped")
            continue
        seen.add(item.version)
        unique.append(item)

    return sorted(unique, key=lambda d: parse_version_minor(d.version), reverse=True)
