"""JSON encoding of correspondence sequences.

Payload shape::

    {"version": 1, "markers": [
        {"kind": "open", "at": [0, 0]},
        {"kind": "token", "begin": [0, 2], "end": [0, 3]},
        {"kind": "close", "at": [0, 5]},
        {"kind": "gap", "depth": 1}
    ]}

Locations are ``[line, column]`` pairs.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

import orjson

from regionmap.types import Close, Gap, Location, Marker, Open, Region, Token

PAYLOAD_VERSION = 1


def location_to_list(location: Location) -> list[int]:
    return [location.line, location.column]


def location_from_list(data: Any) -> Location:
    if (
        not isinstance(data, list | tuple)
        or len(data) != 2
        or not all(isinstance(v, int) and not isinstance(v, bool) for v in data)
    ):
        raise ValueError(f"location must be a [line, column] pair of ints, got {data!r}")
    return Location(data[0], data[1])


def region_to_dict(region: Region) -> dict[str, list[int]]:
    return {
        "begin": location_to_list(region.begin),
        "end": location_to_list(region.end),
    }


def marker_to_dict(marker: Marker) -> dict[str, Any]:
    match marker:
        case Token(region=region):
            return {"kind": "token", **region_to_dict(region)}
        case Open(at=at):
            return {"kind": "open", "at": location_to_list(at)}
        case Close(at=at):
            return {"kind": "close", "at": location_to_list(at)}
        case Gap(depth=depth):
            return {"kind": "gap", "depth": depth}
        case _:
            raise TypeError(f"unknown marker {type(marker).__name__}")


def marker_from_dict(data: Any) -> Marker:
    """Decode one marker object. Raises ``ValueError`` on malformed input."""
    if not isinstance(data, dict):
        raise ValueError("marker must be an object")
    kind = data.get("kind")
    match kind:
        case "token":
            begin = location_from_list(data.get("begin"))
            end = location_from_list(data.get("end"))
            return Token(Region(begin, end))
        case "open":
            return Open(location_from_list(data.get("at")))
        case "close":
            return Close(location_from_list(data.get("at")))
        case "gap":
            depth = data.get("depth")
            if not isinstance(depth, int) or isinstance(depth, bool):
                raise ValueError(f"gap depth must be an int, got {depth!r}")
            return Gap(depth)
        case _:
            raise ValueError(f"unknown marker kind: {kind!r}")


def markers_to_payload(markers: Iterable[Marker]) -> dict[str, Any]:
    return {
        "version": PAYLOAD_VERSION,
        "markers": [marker_to_dict(marker) for marker in markers],
    }


def markers_from_payload(payload: Any) -> list[Marker]:
    """Decode a payload object. Structural validity is checked separately."""
    if not isinstance(payload, dict):
        raise ValueError("correspondence payload must be an object")
    version = payload.get("version", PAYLOAD_VERSION)
    if version != PAYLOAD_VERSION:
        raise ValueError(f"unsupported correspondence payload version: {version!r}")
    rows = payload.get("markers")
    if not isinstance(rows, list):
        raise ValueError("correspondence payload 'markers' must be a list")
    markers: list[Marker] = []
    for idx, row in enumerate(rows):
        try:
            markers.append(marker_from_dict(row))
        except ValueError as exc:
            raise ValueError(f"marker {idx}: {exc}") from exc
    return markers


def load_correspondence(path: Path) -> list[Marker]:
    try:
        payload = orjson.loads(path.read_bytes())
    except orjson.JSONDecodeError as exc:
        raise ValueError(f"{path} is not valid JSON: {exc}") from exc
    return markers_from_payload(payload)


def save_correspondence(markers: Iterable[Marker], path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(
        orjson.dumps(markers_to_payload(markers), option=orjson.OPT_INDENT_2),
    )
