from __future__ import annotations

import math
import random
from functools import lru_cache

from mosaic.models.metadata import CompleteMetadata, PartialMetadata, Segment

# Fixed so that every process redacts the same tiles for the same progress.
REDACTION_SEED = 42


@lru_cache(maxsize=32)
def redaction_order(segment_count: int) -> tuple[int, ...]:
    """
    Deterministic permutation of segment indices; the first k entries are the
    tiles still hidden when k tiles must be hidden.

    Shuffling the whole range once (instead of drawing k elements) makes the
    hidden set for a smaller k a prefix, hence a subset, of the set for a larger k.
    """
    order = list(range(segment_count))
    random.Random(REDACTION_SEED).shuffle(order)
    return tuple(order)


def sample_size(segment_count: int, percent_released: float) -> int:
    """
    Number of segments still hidden at `percent_released`:
    ceil((1 - p/100) * n), written so integer percentages stay exact.
    """
    if math.isnan(percent_released):
        raise ValueError("percent_released must be a number")
    p = min(100.0, max(0.0, percent_released))
    return min(segment_count, max(0, math.ceil((100 - p) * segment_count / 100)))


def redacted_indices(segment_count: int, percent_released: float) -> frozenset[int]:
    k = sample_size(segment_count, percent_released)
    return frozenset(redaction_order(segment_count)[:k])


def flatten_segments(metadata: PartialMetadata) -> list[Segment]:
    return [segment for track in metadata.tracks for segment in track.segments]


def redact(metadata: CompleteMetadata, percent_released: float) -> PartialMetadata:
    """
    Returns a partial copy of `metadata` with the media URLs of not-yet-released
    segments removed. The input is left untouched.
    """
    partial = PartialMetadata.model_validate(metadata.model_dump())
    segments = flatten_segments(partial)

    for index in redacted_indices(len(segments), percent_released):
        segment = segments[index]
        segment.audioUrl = None
        segment.imageUrl = None

    return partial
