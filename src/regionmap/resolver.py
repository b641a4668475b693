"""Resolve a source-text query region to a pair of anchor tokens."""

from __future__ import annotations

import bisect
import logging

from regionmap.sequence import CorrespondenceSequence, MalformedCorrespondenceError
from regionmap.types import LINE_WEIGHT, Location, Region, distance

log = logging.getLogger(__name__)


def _begin_anchor(begins: tuple[Location, ...], ends: tuple[Location, ...], at: Location) -> int:
    # Rightmost token overlapping `at`, else the nearest token to its right.
    hi = bisect.bisect_right(begins, at) - 1
    if hi >= 0 and ends[hi] >= at:
        return hi
    return min(hi + 1, len(begins) - 1)


def _end_anchor(begins: tuple[Location, ...], ends: tuple[Location, ...], at: Location) -> int:
    # Leftmost token overlapping `at`, else the nearest token to its left.
    lo = bisect.bisect_left(ends, at)
    if lo < len(ends) and begins[lo] <= at:
        return lo
    return max(lo - 1, 0)


def resolve_anchor_tokens(
    seq: CorrespondenceSequence,
    query: Region,
    *,
    line_weight: int = LINE_WEIGHT,
) -> tuple[int, int]:
    """Map *query* to ``(left, right)`` token positions in *seq*.

    The begin of the query anchors on the rightmost token overlapping it (both
    token ends inclusive) or, when it falls in whitespace, on the nearest token
    to its right. The end anchors symmetrically on the leftmost overlapping
    token or the nearest token to its left. A query entirely before the first
    token collapses onto it, one entirely after the last token onto the last.

    A query that covers no token text (strictly inside the whitespace between
    two tokens, or reduced to the point where two tokens touch) would produce
    crossed anchors; both then collapse onto whichever of the two tokens is
    closer by ``distance``, the left one on a tie.

    Known asymmetry: a query whose begin sits exactly on the end of a token
    that is followed by whitespace anchors on that token even though the
    query covers none of its text. The end side behaves the same way mirrored.
    """

    begins = seq.token_begins
    ends = seq.token_ends
    if not begins:
        raise MalformedCorrespondenceError("correspondence sequence contains no token")

    left_idx = _begin_anchor(begins, ends, query.begin)
    right_idx = _end_anchor(begins, ends, query.end)

    if left_idx > right_idx:
        before_gap = distance(ends[right_idx], query.begin, line_weight=line_weight)
        after_gap = distance(query.end, begins[left_idx], line_weight=line_weight)
        chosen = left_idx if after_gap < before_gap else right_idx
        log.debug(
            "query %s covers no token: tokens %d/%d at distance %d/%d, chose %d",
            query, right_idx, left_idx, before_gap, after_gap, chosen,
        )
        left_idx = right_idx = chosen

    positions = seq.token_positions
    return positions[left_idx], positions[right_idx]
