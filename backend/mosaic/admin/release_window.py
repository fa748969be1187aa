"""
Release Window Tool
===================
Stamps the release window onto a complete metadata record produced by the
splitting pipeline, and recomputes segmentCount from its tracks.

Usage:
    python -m mosaic.admin.release_window \
        --release-start 2024-01-01T00:00:00Z --release-end 2024-01-08T00:00:00Z
    python -m mosaic.admin.release_window --path build/metadata.json ...
"""

from __future__ import annotations

import argparse
import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import orjson
import pydantic
from pydantic import AwareDatetime, TypeAdapter

logger = logging.getLogger("ReleaseWindow")

_TIMESTAMP = TypeAdapter(AwareDatetime)


def iso_timestamp(value: str) -> datetime:
    try:
        return _TIMESTAMP.validate_python(value)
    except pydantic.ValidationError:
        raise argparse.ArgumentTypeError(f"Not a valid timestamp: {value}") from None


def humanize(delta: timedelta) -> str:
    """7 days, 2 hours, 30 minutes, 1.5 seconds"""
    seconds = delta.total_seconds()
    parts = []
    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        count, seconds = divmod(seconds, size)
        if count:
            parts.append(f"{int(count)} {unit}{'s' if count != 1 else ''}")
    if seconds or not parts:
        shown = f"{seconds:.3f}".rstrip("0").rstrip(".")
        parts.append(f"{shown} second{'s' if shown != '1' else ''}")
    return ", ".join(parts)


def apply_release_window(raw: dict[str, Any], release_start: datetime, release_end: datetime) -> dict[str, Any]:
    """
    Return a copy of `raw` carrying the given window and a fresh segmentCount.
    """
    if release_end <= release_start:
        raise ValueError("releaseEnd must be after releaseStart")

    if not isinstance(raw, dict):
        raise ValueError("Metadata must be a JSON object")

    tracks = raw.get("tracks") or []
    if not isinstance(tracks, list) or not all(isinstance(t, dict) for t in tracks):
        raise ValueError("Metadata tracks must be a list of objects")
    segment_count = sum(len(t.get("segments") or []) for t in tracks)
    if segment_count < 1:
        raise ValueError("Metadata has no segments")

    out = dict(raw)
    out["releaseStart"] = release_start.isoformat()
    out["releaseEnd"] = release_end.isoformat()
    out["segmentCount"] = segment_count
    return out


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

    parser = argparse.ArgumentParser(description="Set the release window on album metadata")
    parser.add_argument(
        "--release-start",
        required=True,
        type=iso_timestamp,
        help="Start of release period (ISO 8601 timestamp)",
    )
    parser.add_argument(
        "--release-end",
        required=True,
        type=iso_timestamp,
        help="End of release period (ISO 8601 timestamp)",
    )
    parser.add_argument(
        "--path",
        type=Path,
        default=Path("build/metadata.json"),
        help="Metadata file to update in place",
    )
    args = parser.parse_args(argv)

    if args.release_end <= args.release_start:
        parser.error("releaseEnd must be after releaseStart")

    try:
        raw = orjson.loads(args.path.read_bytes())
    except OSError as e:
        parser.error(f"Cannot read {args.path}: {e.strerror or e}")
    except orjson.JSONDecodeError as e:
        parser.error(f"{args.path} is not valid JSON: {e}")

    try:
        updated = apply_release_window(raw, args.release_start, args.release_end)
    except ValueError as e:
        parser.error(str(e))

    duration = args.release_end - args.release_start
    logger.info(
        f"🗓️ Release period: {updated['releaseStart']} - {updated['releaseEnd']} ({humanize(duration)})"
    )
    logger.info(f"⏱️ Segment release interval: {humanize(duration / updated['segmentCount'])}")

    args.path.write_bytes(orjson.dumps(updated, option=orjson.OPT_INDENT_2))
    logger.info(f"💾 Saved: {args.path} ({updated['segmentCount']} segments)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
