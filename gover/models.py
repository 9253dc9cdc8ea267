"""Data models for scraped Go release information.

These are plain dataclasses.  ``to_dict`` produces the JSON-ready form with
the field names and omission rules of the output document: empty optional
fields are dropped, ``version``/``category`` and a version's ``changes`` list
are always present.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

ChangeType = Literal["added", "changed", "obsoleted"]

CHANGE_TYPES: tuple[str, ...] = ("added", "changed", "obsoleted")


@dataclass
class SymbolChange:
    """A change to one function, method or type within a package."""

    type: ChangeType
    symbol: str
    description: str

    def __post_init__(self) -> None:
        if self.type not in CHANGE_TYPES:
            raise ValueError(
                f"unknown change type {self.type!r}; expected one of {', '.join(CHANGE_TYPES)}"
            )

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "symbol": self.symbol, "description": self.description}


@dataclass
class ChangeCategory:
    """One section of a release-notes page (e.g. "Changes to the language")."""

    category: str
    title: str = ""
    description: str = ""
    examples: list[str] = field(default_factory=list)
    package: str = ""
    changes: list[SymbolChange] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"category": self.category}
        if self.title:
            out["title"] = self.title
        if self.description:
            out["description"] = self.description
        if self.examples:
            out["examples"] = list(self.examples)
        if self.package:
            out["package"] = self.package
        if self.changes:
            out["changes"] = [c.to_dict() for c in self.changes]
        return out


@dataclass
class VersionData:
    """Everything collected for a single ``go1.<minor>`` release."""

    version: str
    release_date: str = ""
    changes: list[ChangeCategory] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"version": self.version}
        if self.release_date:
            out["releaseDate"] = self.release_date
        out["changes"] = [c.to_dict() for c in self.changes]
        return out
