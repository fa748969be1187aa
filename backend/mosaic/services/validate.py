from __future__ import annotations

from typing import Any

import pydantic

from mosaic.models.metadata import CompleteMetadata


class MetadataValidationError(RuntimeError):
    pass


def parse_complete(data: Any) -> CompleteMetadata:
    """
    Build a CompleteMetadata from decoded JSON and check its invariants.
    """
    if not isinstance(data, dict):
        raise MetadataValidationError("Metadata must be a JSON object.")
    try:
        metadata = CompleteMetadata.model_validate(data)
    except pydantic.ValidationError as e:
        raise MetadataValidationError(f"Metadata does not match schema: {e}") from e

    validate_metadata(metadata)
    return metadata


def validate_metadata(metadata: CompleteMetadata) -> None:
    if not metadata.tracks:
        raise MetadataValidationError("Metadata has no tracks.")

    for i, track in enumerate(metadata.tracks):
        if not track.segments:
            raise MetadataValidationError(f"Track {i} has no segments.")

        track_width = sum(s.width for s in track.segments)
        if track_width != metadata.totalWidth:
            raise MetadataValidationError(
                f"Track {i} segments are {track_width}px wide, expected totalWidth={metadata.totalWidth}"
            )

    flat_count = sum(len(t.segments) for t in metadata.tracks)
    if flat_count != metadata.segmentCount:
        raise MetadataValidationError(
            f"segmentCount={metadata.segmentCount} but tracks contain {flat_count} segments"
        )

    total_height = sum(t.height for t in metadata.tracks)
    if total_height != metadata.totalHeight:
        raise MetadataValidationError(
            f"Track heights add up to {total_height}px, expected totalHeight={metadata.totalHeight}"
        )

    if metadata.releaseEnd <= metadata.releaseStart:
        raise MetadataValidationError(
            f"releaseEnd ({metadata.releaseEnd.isoformat()}) must be after "
            f"releaseStart ({metadata.releaseStart.isoformat()})"
        )
