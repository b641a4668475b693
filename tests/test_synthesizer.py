"""Tests for emitting derived-text regions from an enclosing unit."""

from __future__ import annotations

import pytest

from regionmap.enclosure import find_enclosing_unit
from regionmap.sequence import CorrespondenceSequence, MalformedCorrespondenceError
from regionmap.synthesizer import merge_adjacent_regions, synthesize_regions
from regionmap.types import Close, Gap, Location, Marker, Open, Region, Token


def _src(column: int) -> Location:
    return Location(0, column)


def _dst(column: int) -> Location:
    return Location(1, column)


def _tok(begin: int, end: int) -> Token:
    return Token(Region(_src(begin), _src(end)))


def _region(begin: int, end: int) -> Region:
    return Region(_dst(begin), _dst(end))


def _gapped(depth: int) -> CorrespondenceSequence:
    # root { t0  A { B { t1 } <gap> C { t2 } } }
    markers: list[Marker] = [
        Open(_dst(0)),
        _tok(0, 1),
        Open(_dst(2)),
        Open(_dst(2)), _tok(2, 3), Close(_dst(5)),
        Gap(depth),
        Open(_dst(8)), _tok(4, 5), Close(_dst(12)),
        Close(_dst(12)),
        Close(_dst(20)),
    ]
    return CorrespondenceSequence(markers)


NESTED = CorrespondenceSequence([
    Open(_dst(0)), _tok(2, 3),
    Open(_dst(1)), _tok(3, 4),
    Open(_dst(2)), _tok(4, 5), Close(_dst(3)),
    _tok(6, 7), Close(_dst(4)),
    _tok(8, 9), Close(_dst(5)),
])

STATEMENTS = CorrespondenceSequence([
    Open(_dst(0)),
    Open(_dst(0)), _tok(0, 3), Close(_dst(5)),
    Gap(0),
    Open(_dst(10)), _tok(4, 7), Close(_dst(15)),
    Gap(0),
    Open(_dst(20)), _tok(8, 11), Close(_dst(25)),
    Close(_dst(25)),
])


class TestSynthesizeRegions:
    def test_without_gap_emits_whole_unit(self) -> None:
        assert synthesize_regions(NESTED, 0, 10) == [_region(0, 5)]
        assert synthesize_regions(NESTED, 2, 8) == [_region(1, 4)]
        assert synthesize_regions(NESTED, 4, 6) == [_region(2, 3)]

    def test_gap_splits_at_its_own_level(self) -> None:
        assert synthesize_regions(STATEMENTS, 0, 12) == [
            _region(0, 5),
            _region(10, 15),
            _region(20, 25),
        ]

    def test_gap_inside_child_unit_applies_within_depth(self) -> None:
        seq = _gapped(1)
        assert synthesize_regions(seq, 0, 11) == [_region(0, 5), _region(8, 20)]
        assert synthesize_regions(seq, 2, 10) == [_region(2, 5), _region(8, 12)]

    def test_shallow_gap_ignored_from_higher_unit(self) -> None:
        seq = _gapped(0)
        assert synthesize_regions(seq, 0, 11) == [_region(0, 20)]
        assert synthesize_regions(seq, 2, 10) == [_region(2, 5), _region(8, 12)]

    def test_unit_inside_one_sibling_is_not_split(self) -> None:
        assert synthesize_regions(_gapped(5), 7, 9) == [_region(8, 12)]

    def test_rejects_unmatched_pair(self) -> None:
        with pytest.raises(MalformedCorrespondenceError, match="not a matched unit"):
            synthesize_regions(NESTED, 0, 8)
        with pytest.raises(MalformedCorrespondenceError):
            synthesize_regions(NESTED, 1, 10)

    @pytest.mark.parametrize("depth", [0, 1, 2])
    def test_regions_cover_unit_in_order(self, depth: int) -> None:
        seq = _gapped(depth)
        tokens = seq.token_positions
        for i, left in enumerate(tokens):
            for right in tokens[i:]:
                open_pos, close_pos = find_enclosing_unit(seq, left, right)
                regions = synthesize_regions(seq, open_pos, close_pos)
                assert regions[0].begin == seq[open_pos].at
                assert regions[-1].end == seq[close_pos].at
                for before, after in zip(regions, regions[1:]):
                    assert before.end <= after.begin


class TestMergeAdjacentRegions:
    def test_touching_regions_merge(self) -> None:
        regions = [_region(0, 4), _region(4, 6), _region(8, 9)]
        assert merge_adjacent_regions(regions) == [_region(0, 6), _region(8, 9)]

    def test_custom_adjacency(self) -> None:
        regions = [_region(0, 5), _region(10, 15), _region(20, 25)]

        def within_five(a: Region, b: Region) -> bool:
            return a.end.line == b.begin.line and b.begin.column - a.end.column <= 5

        assert merge_adjacent_regions(regions, adjacent=within_five) == [_region(0, 25)]

    def test_empty_input(self) -> None:
        assert merge_adjacent_regions([]) == []
