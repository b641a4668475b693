"""Correspondence sequence model: well-formedness checks and marker matching.

A correspondence sequence is an ordered list of markers produced by the
generator of the derived text. Open/Close markers nest like parentheses and
delimit syntactic units of derived text; Token markers carry the source
regions those units were generated from; Gap markers flag derived text
between two sibling units that a highlight must skip.

The sequence is validated once, at construction of ``CorrespondenceSequence``.
Queries then rely on the invariants without re-checking them:

1. It starts with an Open, nesting never goes negative, and the first Open
   is matched by the last marker (one top-level unit encloses everything).
2. Token regions are ordered: each token ends at or before the next begins.
3. Every matched Open/Close pair contains at least one Token.
4. Every Gap sits between a Close and a later Open of the same level.
5. Derived locations nest: a unit's Close is not before its Open, children
   lie inside their parent, and sibling units follow textual order.
"""

from __future__ import annotations

import bisect
import logging
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass

from regionmap.types import Close, Gap, Location, Marker, Open, Token, location_le

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Violations
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SequenceViolation:
    """Structured well-formedness failure."""

    code: str  # "empty" | "not_open_first" | "negative_depth" | "unbalanced" | ...
    position: int
    message: str

    def __str__(self) -> str:
        return f"{self.code}@{self.position}: {self.message}"


class MalformedCorrespondenceError(RuntimeError):
    """Correspondence data violates a structural precondition.

    This always points at a bug in the generator of the sequence (or in the
    caller), never at a transient condition.
    """

    def __init__(self, violations: Sequence[SequenceViolation] | str) -> None:
        if isinstance(violations, str):
            self.violations: tuple[SequenceViolation, ...] = ()
            super().__init__(violations)
            return
        self.violations = tuple(violations)
        summary = "; ".join(str(row) for row in self.violations[:5])
        more = len(self.violations) - 5
        if more > 0:
            summary += f"; ... {more} more"
        super().__init__(f"malformed correspondence sequence: {summary}")


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class _UnitFrame:
    """Bookkeeping for one Open whose Close has not been seen yet."""

    open_pos: int
    open_at: Location
    token_count: int = 0
    closed_children: int = 0
    last_child_close_at: Location | None = None
    max_child_close_at: Location | None = None
    pending_gap: int | None = None


def validate_markers(markers: Sequence[Marker]) -> list[SequenceViolation]:
    """Return every well-formedness violation in *markers* (empty when valid)."""

    if not markers:
        return [SequenceViolation("empty", 0, "sequence has no markers")]

    violations: list[SequenceViolation] = []
    if not isinstance(markers[0], Open):
        violations.append(
            SequenceViolation(
                "not_open_first", 0, f"first marker is {type(markers[0]).__name__}",
            ),
        )

    stack: list[_UnitFrame] = []
    previous_token: Token | None = None
    previous_token_pos = -1
    last_pos = len(markers) - 1
    split_reported = False

    for pos, marker in enumerate(markers):
        match marker:
            case Open(at=at):
                if stack:
                    parent = stack[-1]
                    parent.pending_gap = None
                    if not location_le(parent.open_at, at):
                        violations.append(
                            SequenceViolation(
                                "derived_order",
                                pos,
                                f"unit opens at {at} before its parent at {parent.open_at}",
                            ),
                        )
                    if parent.last_child_close_at is not None and not location_le(
                        parent.last_child_close_at, at,
                    ):
                        violations.append(
                            SequenceViolation(
                                "derived_order",
                                pos,
                                f"unit opens at {at} before previous sibling closes "
                                f"at {parent.last_child_close_at}",
                            ),
                        )
                stack.append(_UnitFrame(open_pos=pos, open_at=at))

            case Close(at=at):
                if not stack:
                    violations.append(
                        SequenceViolation("negative_depth", pos, "close without matching open"),
                    )
                    continue
                frame = stack.pop()
                if frame.token_count == 0:
                    violations.append(
                        SequenceViolation(
                            "empty_unit",
                            frame.open_pos,
                            f"unit {frame.open_pos}..{pos} contains no token",
                        ),
                    )
                if frame.pending_gap is not None:
                    violations.append(
                        SequenceViolation(
                            "gap_placement",
                            frame.pending_gap,
                            "gap is not followed by an open at the same level",
                        ),
                    )
                if not location_le(frame.open_at, at):
                    violations.append(
                        SequenceViolation(
                            "derived_order",
                            pos,
                            f"unit closes at {at} before it opens at {frame.open_at}",
                        ),
                    )
                if frame.max_child_close_at is not None and not location_le(
                    frame.max_child_close_at, at,
                ):
                    violations.append(
                        SequenceViolation(
                            "derived_order",
                            pos,
                            f"unit closes at {at} before a child closes "
                            f"at {frame.max_child_close_at}",
                        ),
                    )
                if stack:
                    parent = stack[-1]
                    parent.token_count += frame.token_count
                    parent.closed_children += 1
                    parent.last_child_close_at = at
                    if parent.max_child_close_at is None or location_le(
                        parent.max_child_close_at, at,
                    ):
                        parent.max_child_close_at = at
                elif pos != last_pos and not split_reported:
                    violations.append(
                        SequenceViolation(
                            "split_top_level",
                            pos,
                            "nesting returns to zero before the last marker",
                        ),
                    )
                    split_reported = True

            case Token(region=region):
                if stack:
                    stack[-1].token_count += 1
                if previous_token is not None and (
                    not location_le(previous_token.region.end, region.begin)
                    or previous_token.region == region
                ):
                    violations.append(
                        SequenceViolation(
                            "token_order",
                            pos,
                            f"token {region} does not follow token "
                            f"{previous_token.region} at {previous_token_pos}",
                        ),
                    )
                previous_token = marker
                previous_token_pos = pos

            case Gap():
                if not stack or stack[-1].closed_children == 0:
                    violations.append(
                        SequenceViolation(
                            "gap_placement", pos, "gap is not preceded by a close at its level",
                        ),
                    )
                else:
                    stack[-1].pending_gap = pos

            case _:
                violations.append(
                    SequenceViolation(
                        "unknown_marker", pos, f"unknown marker {type(marker).__name__}",
                    ),
                )

    for frame in stack:
        violations.append(
            SequenceViolation("unbalanced", frame.open_pos, "open is never closed"),
        )
    return violations


def is_well_formed(markers: Sequence[Marker]) -> bool:
    return not validate_markers(markers)


def nesting_depths(markers: Iterable[Marker]) -> tuple[int, ...]:
    """Nesting depth after each marker: unmatched Opens up to and including it."""

    depths: list[int] = []
    depth = 0
    for marker in markers:
        match marker:
            case Open():
                depth += 1
            case Close():
                depth -= 1
            case Token() | Gap():
                pass
            case _:
                raise TypeError(f"unknown marker {type(marker).__name__}")
        depths.append(depth)
    return tuple(depths)


# ---------------------------------------------------------------------------
# Validated sequence
# ---------------------------------------------------------------------------


class CorrespondenceSequence(Sequence[Marker]):
    """Immutable, validated correspondence sequence.

    Construction checks every invariant and precomputes what the mapping
    stages need: per-marker nesting depth, token positions with their
    boundaries, and the Open/Close matching table.

    Matching uses a stack. Because nesting is balanced and never negative,
    each Close pops exactly the most recent unmatched Open, which is the
    unique position where depth returns to the pre-Open level without
    dipping below it; the pairing is therefore total and one-to-one.
    """

    __slots__ = ("_markers", "_depths", "_partner", "_token_positions", "_token_begins", "_token_ends")

    def __init__(self, markers: Iterable[Marker]) -> None:
        rows = tuple(markers)
        violations = validate_markers(rows)
        if violations:
            log.debug("rejecting correspondence sequence: %d violation(s)", len(violations))
            raise MalformedCorrespondenceError(violations)

        partner = [-1] * len(rows)
        stack: list[int] = []
        token_positions: list[int] = []
        for pos, marker in enumerate(rows):
            match marker:
                case Open():
                    stack.append(pos)
                case Close():
                    open_pos = stack.pop()
                    partner[open_pos] = pos
                    partner[pos] = open_pos
                case Token():
                    token_positions.append(pos)
                case Gap():
                    pass
                case _:
                    raise TypeError(f"unknown marker {type(marker).__name__}")

        self._markers = rows
        self._depths = nesting_depths(rows)
        self._partner = tuple(partner)
        self._token_positions = tuple(token_positions)
        self._token_begins = tuple(self._token(pos).region.begin for pos in token_positions)
        self._token_ends = tuple(self._token(pos).region.end for pos in token_positions)

    # -- Sequence protocol --------------------------------------------------

    def __len__(self) -> int:
        return len(self._markers)

    def __getitem__(self, index: int) -> Marker:  # type: ignore[override]
        return self._markers[index]

    def __iter__(self) -> Iterator[Marker]:
        return iter(self._markers)

    def __repr__(self) -> str:
        return (
            f"CorrespondenceSequence(markers={len(self._markers)}, "
            f"tokens={len(self._token_positions)})"
        )

    @property
    def markers(self) -> tuple[Marker, ...]:
        return self._markers

    # -- Depth / tokens -----------------------------------------------------

    def depth_after(self, pos: int) -> int:
        """Nesting depth once the marker at *pos* has been applied."""
        return self._depths[pos]

    @property
    def token_positions(self) -> tuple[int, ...]:
        return self._token_positions

    @property
    def token_begins(self) -> tuple[Location, ...]:
        return self._token_begins

    @property
    def token_ends(self) -> tuple[Location, ...]:
        return self._token_ends

    def token_index(self, pos: int) -> int:
        """Ordinal of the token stored at sequence position *pos*."""
        idx = bisect.bisect_left(self._token_positions, pos)
        if idx == len(self._token_positions) or self._token_positions[idx] != pos:
            raise ValueError(f"position {pos} does not hold a token")
        return idx

    def _token(self, pos: int) -> Token:
        marker = self._markers[pos]
        if not isinstance(marker, Token):
            raise ValueError(f"position {pos} does not hold a token")
        return marker

    # -- Matching -----------------------------------------------------------

    def matching_close(self, open_pos: int) -> int:
        if not isinstance(self._markers[open_pos], Open):
            raise MalformedCorrespondenceError(f"position {open_pos} does not hold an open")
        return self._partner[open_pos]

    def matching_open(self, close_pos: int) -> int:
        if not isinstance(self._markers[close_pos], Close):
            raise MalformedCorrespondenceError(f"position {close_pos} does not hold a close")
        return self._partner[close_pos]
