"""Source-to-derived region mapping pipeline.

resolve anchors -> find enclosing unit -> synthesize regions. Every stage is
a pure function of the validated sequence and its inputs, so one
``CorrespondenceMap`` can serve concurrent queries without coordination.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from regionmap.codec import region_to_dict
from regionmap.enclosure import find_enclosing_unit
from regionmap.resolver import resolve_anchor_tokens
from regionmap.sequence import CorrespondenceSequence
from regionmap.synthesizer import merge_adjacent_regions, synthesize_regions
from regionmap.types import LINE_WEIGHT, Marker, Region, regions_touch

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MappingResult:
    """One query answer plus the intermediate decisions behind it."""

    query: Region
    left_token: int
    right_token: int
    open_pos: int
    close_pos: int
    regions: tuple[Region, ...]

    def __post_init__(self) -> None:
        if not self.regions:
            raise ValueError("mapping result must contain at least one region")
        if not self.open_pos < self.left_token <= self.right_token < self.close_pos:
            raise ValueError(
                "anchors must lie strictly inside the enclosing unit, got "
                f"{self.open_pos} < {self.left_token} <= {self.right_token} < {self.close_pos}",
            )


def _as_sequence(markers: CorrespondenceSequence | Iterable[Marker]) -> CorrespondenceSequence:
    if isinstance(markers, CorrespondenceSequence):
        return markers
    return CorrespondenceSequence(markers)


class CorrespondenceMap:
    """Validated correspondence data answering repeated selection queries."""

    __slots__ = ("_seq", "_line_weight", "_merge_adjacent", "_adjacent")

    def __init__(
        self,
        markers: CorrespondenceSequence | Iterable[Marker],
        *,
        line_weight: int = LINE_WEIGHT,
        merge_adjacent: bool = False,
        adjacent: Callable[[Region, Region], bool] = regions_touch,
    ) -> None:
        self._seq = _as_sequence(markers)
        self._line_weight = line_weight
        self._merge_adjacent = merge_adjacent
        self._adjacent = adjacent

    @property
    def sequence(self) -> CorrespondenceSequence:
        return self._seq

    def explain(self, query: Region) -> MappingResult:
        """Map *query* and keep the anchor and enclosure decisions."""

        left, right = resolve_anchor_tokens(self._seq, query, line_weight=self._line_weight)
        open_pos, close_pos = find_enclosing_unit(self._seq, left, right)
        regions = synthesize_regions(self._seq, open_pos, close_pos)
        if self._merge_adjacent:
            regions = merge_adjacent_regions(regions, adjacent=self._adjacent)
        log.debug(
            "query %s -> tokens %d..%d, unit %d..%d, %d region(s)",
            query, left, right, open_pos, close_pos, len(regions),
        )
        return MappingResult(
            query=query,
            left_token=left,
            right_token=right,
            open_pos=open_pos,
            close_pos=close_pos,
            regions=tuple(regions),
        )

    def map_region(self, query: Region) -> list[Region]:
        return list(self.explain(query).regions)


def map_source_region(
    markers: CorrespondenceSequence | Iterable[Marker],
    query: Region,
    *,
    line_weight: int = LINE_WEIGHT,
    merge_adjacent: bool = False,
    adjacent: Callable[[Region, Region], bool] = regions_touch,
) -> list[Region]:
    """Derived-text regions to highlight for the source selection *query*."""

    return CorrespondenceMap(
        markers,
        line_weight=line_weight,
        merge_adjacent=merge_adjacent,
        adjacent=adjacent,
    ).map_region(query)


def mapping_result_to_dict(result: MappingResult) -> dict[str, object]:
    """Serialize a mapping result to a deterministic JSON-safe dict."""

    return {
        "query": region_to_dict(result.query),
        "left_token": result.left_token,
        "right_token": result.right_token,
        "open_pos": result.open_pos,
        "close_pos": result.close_pos,
        "regions": [region_to_dict(region) for region in result.regions],
    }
