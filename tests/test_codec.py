"""Tests for the JSON encoding of correspondence sequences."""

from __future__ import annotations

from pathlib import Path

import orjson
import pytest

from regionmap.codec import (
    PAYLOAD_VERSION,
    load_correspondence,
    marker_from_dict,
    marker_to_dict,
    markers_from_payload,
    markers_to_payload,
    save_correspondence,
)
from regionmap.mapper import map_source_region
from regionmap.sequence import CorrespondenceSequence, validate_markers
from regionmap.types import Close, Gap, Location, Open, Region, Token

FIXTURES = Path(__file__).resolve().parent / "fixtures" / "correspondence"


class TestMarkerDicts:
    def test_encode_each_kind(self) -> None:
        token = Token(Region(Location(0, 1), Location(2, 3)))
        assert marker_to_dict(token) == {"kind": "token", "begin": [0, 1], "end": [2, 3]}
        assert marker_to_dict(Open(Location(4, 5))) == {"kind": "open", "at": [4, 5]}
        assert marker_to_dict(Close(Location(6, 7))) == {"kind": "close", "at": [6, 7]}
        assert marker_to_dict(Gap(2)) == {"kind": "gap", "depth": 2}

    def test_encode_unknown_marker(self) -> None:
        with pytest.raises(TypeError):
            marker_to_dict("open")  # type: ignore[arg-type]

    def test_decode_each_kind(self) -> None:
        assert marker_from_dict({"kind": "open", "at": [1, 2]}) == Open(Location(1, 2))
        assert marker_from_dict({"kind": "gap", "depth": 0}) == Gap(0)
        assert marker_from_dict({"kind": "token", "begin": [0, 0], "end": [0, 4]}) == Token(
            Region(Location(0, 0), Location(0, 4)),
        )

    @pytest.mark.parametrize(
        ("payload", "message"),
        [
            ({"kind": "paren", "at": [0, 0]}, "unknown marker kind"),
            ({"kind": "open", "at": [0]}, "line, column"),
            ({"kind": "open", "at": "0:0"}, "line, column"),
            ({"kind": "close", "at": [0, True]}, "line, column"),
            ({"kind": "gap", "depth": "1"}, "gap depth"),
            ({"kind": "gap", "depth": -1}, "gap depth"),
            ({"kind": "token", "begin": [0, 5], "end": [0, 1]}, "precedes"),
            (["open"], "must be an object"),
        ],
    )
    def test_decode_rejects_malformed_marker(self, payload: object, message: str) -> None:
        with pytest.raises(ValueError, match=message):
            marker_from_dict(payload)


class TestPayload:
    def test_fixture_decodes_to_valid_sequence(self) -> None:
        markers = load_correspondence(FIXTURES / "nested_gap.json")
        assert len(markers) == 12
        assert markers[6] == Gap(1)
        assert validate_markers(markers) == []

    def test_fixture_mapping(self) -> None:
        seq = CorrespondenceSequence(load_correspondence(FIXTURES / "nested_gap.json"))
        query = Region(Location(0, 0), Location(0, 5))
        assert map_source_region(seq, query) == [
            Region(Location(1, 0), Location(1, 5)),
            Region(Location(1, 8), Location(1, 20)),
        ]

    def test_malformed_fixture_decodes_but_fails_validation(self) -> None:
        markers = load_correspondence(FIXTURES / "unbalanced.json")
        codes = sorted(row.code for row in validate_markers(markers))
        assert codes == ["empty_unit", "unbalanced"]

    def test_save_then_load(self, tmp_path: Path) -> None:
        markers = load_correspondence(FIXTURES / "nested_gap.json")
        out = tmp_path / "nested" / "copy.json"
        save_correspondence(markers, out)
        assert load_correspondence(out) == markers
        assert orjson.loads(out.read_bytes())["version"] == PAYLOAD_VERSION

    def test_version_mismatch(self) -> None:
        with pytest.raises(ValueError, match="unsupported"):
            markers_from_payload({"version": 99, "markers": []})

    def test_markers_must_be_list(self) -> None:
        with pytest.raises(ValueError, match="must be a list"):
            markers_from_payload({"version": 1, "markers": {}})

    def test_error_names_marker_index(self) -> None:
        payload = markers_to_payload([Open(Location(0, 0))])
        payload["markers"].append({"kind": "bogus"})
        with pytest.raises(ValueError, match="marker 1"):
            markers_from_payload(payload)

    def test_invalid_json_file(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ValueError, match="not valid JSON"):
            load_correspondence(path)
