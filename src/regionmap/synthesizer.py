"""Turn an enclosing unit into the derived-text regions to highlight."""

from __future__ import annotations

from collections.abc import Callable, Sequence

from regionmap.sequence import CorrespondenceSequence, MalformedCorrespondenceError
from regionmap.types import Close, Gap, Location, Open, Region, Token, regions_touch


def synthesize_regions(
    seq: CorrespondenceSequence,
    open_pos: int,
    close_pos: int,
) -> list[Region]:
    """Walk the unit ``open_pos..close_pos`` and emit its derived regions.

    Output starts at the unit's Open. A Gap whose depth reaches the current
    nesting level (relative to the unit) ends the region in progress at the
    most recent Close; markers up to the next Open are skipped and that Open
    starts the next region. The last region ends at the unit's Close.

    Regions come out in derived-text order and never overlap. Without a
    triggering Gap the result is the single region ``[open.at, close.at]``.
    """

    open_marker = seq[open_pos]
    close_marker = seq[close_pos]
    if not isinstance(open_marker, Open) or seq.matching_close(open_pos) != close_pos:
        raise MalformedCorrespondenceError(f"{open_pos}..{close_pos} is not a matched unit")
    assert isinstance(close_marker, Close)

    regions: list[Region] = []
    running_depth = 0
    current_begin = open_marker.at
    last_close: int | None = None

    pos = open_pos + 1
    while pos < close_pos:
        marker = seq[pos]
        match marker:
            case Open():
                running_depth += 1
            case Close():
                running_depth -= 1
                last_close = pos
            case Token():
                pass
            case Gap(depth=depth) if depth >= running_depth:
                if last_close is None:
                    raise MalformedCorrespondenceError(
                        f"gap at {pos} has no preceding close since {current_begin}",
                    )
                regions.append(Region(current_begin, _paren_location(seq, last_close)))
                last_close = None
                pos = _skip_to_open(seq, pos + 1, close_pos)
                running_depth += 1
                current_begin = _paren_location(seq, pos)
            case Gap():
                pass
            case _:
                raise TypeError(f"unknown marker {type(marker).__name__}")
        pos += 1

    regions.append(Region(current_begin, close_marker.at))
    return regions


def _paren_location(seq: CorrespondenceSequence, pos: int) -> Location:
    match seq[pos]:
        case Open(at=at) | Close(at=at):
            return at
        case other:
            raise MalformedCorrespondenceError(
                f"position {pos} holds {type(other).__name__}, expected open or close",
            )


def _skip_to_open(seq: CorrespondenceSequence, start: int, stop: int) -> int:
    for pos in range(start, stop):
        match seq[pos]:
            case Open():
                return pos
            case Close():
                raise MalformedCorrespondenceError(f"close at {pos} follows a gap before any open")
            case Token() | Gap():
                continue
            case other:
                raise TypeError(f"unknown marker {type(other).__name__}")
    raise MalformedCorrespondenceError(f"gap before {start} is not followed by an open")


def merge_adjacent_regions(
    regions: Sequence[Region],
    *,
    adjacent: Callable[[Region, Region], bool] = regions_touch,
) -> list[Region]:
    """Coalesce consecutive regions the host considers indistinguishable."""

    merged: list[Region] = []
    for region in regions:
        if merged and adjacent(merged[-1], region):
            merged[-1] = Region(merged[-1].begin, region.end)
        else:
            merged.append(region)
    return merged
