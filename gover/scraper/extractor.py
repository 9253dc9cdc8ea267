"""Structured extraction from go.dev pages.

Every assumption about the markup of the release-history and release-notes
pages lives in this module, so a change in page structure only needs a fix
here.  The rest of the pipeline sees plain dicts and model objects.
"""

from __future__ import annotations

import re

from bs4 import BeautifulSoup, Tag

from gover.models import ChangeCategory

# Current format: <h2>go1.24.0 (released 2025-02-11)</h2>
# The patch component, if any, is matched but not captured.
_RELEASE_HEADING_RE = re.compile(
    r"(go1\.\d+)(?:\.\d+)?\s+\(released\s+(\d{4}-\d{2}-\d{2})\)"
)

OVERVIEW_CATEGORY = "Overview"


# ---------------------------------------------------------------------------
# DOM helpers
# ---------------------------------------------------------------------------

def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def _text(el: Tag) -> str:
    return el.get_text().strip()


def _first_text(soup: BeautifulSoup, tag: str) -> str:
    """Return the trimmed text of the first *tag* element, or empty string."""
    el = soup.find(tag)
    return _text(el) if el is not None else ""


def _next_sibling_text(el: Tag, tag: str) -> str:
    """Return the text of *el*'s next sibling element if it is a *tag*."""
    sibling = el.find_next_sibling()
    if sibling is not None and sibling.name == tag:
        return _text(sibling)
    return ""


# ---------------------------------------------------------------------------
# Release history
# ---------------------------------------------------------------------------

def parse_release_heading(text: str) -> tuple[str, str] | None:
    """Return ``(version, date)`` from a heading like ``go1.24.1 (released 2025-03-04)``.

    The version is truncated to ``go1.<minor>``.  ``None`` if *text* has no
    release marker.
    """
    match = _RELEASE_HEADING_RE.search(text)
    if match is None:
        return None
    return match.group(1), match.group(2)


def extract_release_dates(html: str) -> dict[str, str]:
    """Map each ``go1.<minor>`` to the date of its first listed release.

    Patch releases are listed under their own headings; only the first
    heading seen for a minor version contributes a date.
    """
    dates: dict[str, str] = {}
    for heading in _soup(html).find_all("h2"):
        parsed = parse_release_heading(heading.get_text())
        if parsed is None:
            continue
        version, date = parsed
        if version not in dates:
            dates[version] = date
            print(f"[HISTORY] Found release: {version}, Date: {date}")
    return dates


# ---------------------------------------------------------------------------
# Release notes
# ---------------------------------------------------------------------------

def extract_change_categories(html: str) -> list[ChangeCategory]:
    """Return the page's change categories in document order.

    The first entry is a synthetic ``Overview`` category holding the ``h1``
    text (omitted when the page has no ``h1``).  Each ``h2`` then becomes a
    category; its description is the immediately following ``<p>``, or empty
    when the next element is anything else.
    """
    soup = _soup(html)
    categories: list[ChangeCategory] = []

    main_title = _first_text(soup, "h1")
    if main_title:
        categories.append(ChangeCategory(category=OVERVIEW_CATEGORY, description=main_title))

    for heading in soup.find_all("h2"):
        categories.append(
            ChangeCategory(
                category=_text(heading),
                description=_next_sibling_text(heading, "p"),
            )
        )

    return categories
