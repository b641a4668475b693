#!/usr/bin/env python3
"""Map a source-text selection to the derived-text regions to highlight.

Usage:
    python3 scripts/map_selection.py --correspondence build/module.map.json \
      --begin 12:4 --end 14:0

    python3 scripts/map_selection.py --correspondence build/module.map.json \
      --validate-only

Structured JSON output goes to stdout; human messages go to stderr.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

import orjson

from regionmap.codec import load_correspondence
from regionmap.mapper import CorrespondenceMap, mapping_result_to_dict
from regionmap.sequence import MalformedCorrespondenceError, validate_markers
from regionmap.types import Location, Region

log = logging.getLogger("map_selection")


def dump_json(obj: Any) -> None:
    sys.stdout.buffer.write(orjson.dumps(obj, option=orjson.OPT_INDENT_2))
    sys.stdout.buffer.write(b"\n")


def parse_location(value: str) -> Location:
    """Parse ``LINE:COLUMN`` (both zero-based)."""
    line, sep, column = value.partition(":")
    if not sep:
        raise argparse.ArgumentTypeError(f"expected LINE:COLUMN, got {value!r}")
    try:
        return Location(int(line), int(column))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid location {value!r}: {exc}") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--correspondence",
        type=Path,
        required=True,
        help="Correspondence JSON file emitted by the generator",
    )
    parser.add_argument("--begin", type=parse_location, help="Selection start, LINE:COLUMN")
    parser.add_argument("--end", type=parse_location, help="Selection end, LINE:COLUMN")
    parser.add_argument(
        "--merge-adjacent",
        action="store_true",
        help="Coalesce output regions that touch.",
    )
    parser.add_argument(
        "--validate-only",
        action="store_true",
        help="Only check the correspondence file and report violations.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    return parser


def run(args: argparse.Namespace) -> int:
    try:
        markers = load_correspondence(args.correspondence)
    except (OSError, ValueError) as exc:
        log.error("Cannot load %s: %s", args.correspondence, exc)
        return 2
    log.debug("Loaded %d markers from %s", len(markers), args.correspondence)

    if args.validate_only:
        violations = validate_markers(markers)
        dump_json({
            "correspondence": str(args.correspondence),
            "markers": len(markers),
            "well_formed": not violations,
            "violations": [
                {"code": row.code, "position": row.position, "message": row.message}
                for row in violations
            ],
        })
        return 1 if violations else 0

    if args.begin is None or args.end is None:
        log.error("--begin and --end are required unless --validate-only is given")
        return 2
    try:
        query = Region(args.begin, args.end)
    except ValueError as exc:
        log.error("Invalid selection: %s", exc)
        return 2

    try:
        mapping = CorrespondenceMap(markers, merge_adjacent=args.merge_adjacent)
    except MalformedCorrespondenceError as exc:
        log.error("%s", exc)
        return 1
    result = mapping.explain(query)
    log.info("Selection %s maps to %d region(s)", query, len(result.regions))
    dump_json(mapping_result_to_dict(result))
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
