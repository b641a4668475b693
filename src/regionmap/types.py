"""Core types for source-to-derived region mapping."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias


LINE_WEIGHT = 10_000


@dataclass(frozen=True, slots=True, order=True)
class Location:
    """Zero-based line/column position in a text."""

    line: int
    column: int

    def __post_init__(self) -> None:
        if self.line < 0 or self.column < 0:
            raise ValueError(
                f"line/column must be >= 0, got ({self.line}, {self.column})",
            )

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass(frozen=True, slots=True)
class Region:
    """Span of text between two locations, begin <= end."""

    begin: Location
    end: Location

    def __post_init__(self) -> None:
        if not location_le(self.begin, self.end):
            raise ValueError(f"region end {self.end} precedes begin {self.begin}")

    def contains(self, location: Location) -> bool:
        """True when *location* lies in the region, both ends inclusive."""
        return location_le(self.begin, location) and location_le(location, self.end)

    def __str__(self) -> str:
        return f"[{self.begin}-{self.end}]"


def location_le(a: Location, b: Location) -> bool:
    """Total order on locations: line first, then column."""
    return a.line < b.line or (a.line == b.line and a.column <= b.column)


def distance(a: Location, b: Location, *, line_weight: int = LINE_WEIGHT) -> int:
    """Scalar proxy for the textual distance from *a* to *b*.

    Only the relative ordering of two distances is meaningful; a line break
    counts as *line_weight* columns.
    """
    return line_weight * (b.line - a.line) + (b.column - a.column)


def regions_touch(a: Region, b: Region) -> bool:
    """Default adjacency: nothing separates *a* from *b*."""
    return a.end == b.begin


# ---------------------------------------------------------------------------
# Correspondence markers
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Token:
    """Significant source text; everything between tokens is whitespace."""

    region: Region


@dataclass(frozen=True, slots=True)
class Open:
    """Start of a syntactic unit of derived text."""

    at: Location


@dataclass(frozen=True, slots=True)
class Close:
    """End of a syntactic unit of derived text."""

    at: Location


@dataclass(frozen=True, slots=True)
class Gap:
    """Derived text between two sibling units that must not be highlighted.

    The exclusion applies when the enclosing unit of a selection lies at
    most ``depth`` levels above the gap.
    """

    depth: int

    def __post_init__(self) -> None:
        if self.depth < 0:
            raise ValueError(f"gap depth must be >= 0, got {self.depth}")


Marker: TypeAlias = Token | Open | Close | Gap
