"""Find the smallest derived-text unit enclosing two anchor tokens."""

from __future__ import annotations

import logging

from regionmap.sequence import CorrespondenceSequence, MalformedCorrespondenceError
from regionmap.types import Open

log = logging.getLogger(__name__)


def find_enclosing_unit(
    seq: CorrespondenceSequence,
    left: int,
    right: int,
) -> tuple[int, int]:
    """Return the matched ``(open_pos, close_pos)`` pair enclosing both anchors.

    The shallowest nesting level reached anywhere from *left* to *right*
    (tokens and the Open/Close markers between them) fixes the depth of the
    unit. Its Open is the rightmost Open at or before *left* that starts that
    level: any Close dropping below the level in between would need a later
    Open back to it, which would be further right. Its Close is the match of
    that Open and necessarily lies after *right*.
    """

    seq.token_index(left)
    seq.token_index(right)
    if left > right:
        raise ValueError(f"left anchor {left} is after right anchor {right}")

    min_depth = min(seq.depth_after(pos) for pos in range(left, right + 1))

    open_pos = -1
    for pos in range(left - 1, -1, -1):
        if isinstance(seq[pos], Open) and seq.depth_after(pos) == min_depth:
            open_pos = pos
            break
    if open_pos < 0:
        raise MalformedCorrespondenceError(
            f"no open at depth {min_depth} encloses tokens {left}..{right}",
        )

    close_pos = seq.matching_close(open_pos)
    if close_pos <= right:
        raise MalformedCorrespondenceError(
            f"unit {open_pos}..{close_pos} does not enclose token {right}",
        )
    log.debug("tokens %d..%d enclosed by unit %d..%d (depth %d)", left, right, open_pos, close_pos, min_depth)
    return open_pos, close_pos
