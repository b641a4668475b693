"""Map selections in a source text to regions of text generated from it."""

from regionmap.codec import (
    load_correspondence,
    marker_from_dict,
    marker_to_dict,
    markers_from_payload,
    markers_to_payload,
    save_correspondence,
)
from regionmap.enclosure import find_enclosing_unit
from regionmap.mapper import (
    CorrespondenceMap,
    MappingResult,
    map_source_region,
    mapping_result_to_dict,
)
from regionmap.resolver import resolve_anchor_tokens
from regionmap.sequence import (
    CorrespondenceSequence,
    MalformedCorrespondenceError,
    SequenceViolation,
    is_well_formed,
    nesting_depths,
    validate_markers,
)
from regionmap.synthesizer import merge_adjacent_regions, synthesize_regions
from regionmap.types import (
    Close,
    Gap,
    Location,
    Marker,
    Open,
    Region,
    Token,
    distance,
    location_le,
    regions_touch,
)

__all__ = [
    "Close",
    "CorrespondenceMap",
    "CorrespondenceSequence",
    "Gap",
    "Location",
    "MalformedCorrespondenceError",
    "MappingResult",
    "Marker",
    "Open",
    "Region",
    "SequenceViolation",
    "Token",
    "distance",
    "find_enclosing_unit",
    "is_well_formed",
    "load_correspondence",
    "location_le",
    "map_source_region",
    "mapping_result_to_dict",
    "marker_from_dict",
    "marker_to_dict",
    "markers_from_payload",
    "markers_to_payload",
    "merge_adjacent_regions",
    "nesting_depths",
    "regions_touch",
    "resolve_anchor_tokens",
    "save_correspondence",
    "synthesize_regions",
    "validate_markers",
]
