from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

_ONE_MS = timedelta(milliseconds=1)


@dataclass(frozen=True)
class Progress:
    percent_released: float
    # None = static until the window boundary; caller applies a long cache
    refresh_in_seconds: Optional[int]


def _millis(delta: timedelta) -> int:
    return delta // _ONE_MS


def _check_window(release_start: datetime, release_end: datetime, segment_count: int) -> int:
    if segment_count < 1:
        raise ValueError(f"segment_count must be >= 1, got {segment_count}")
    total_ms = _millis(release_end - release_start)
    if total_ms < 1:
        raise ValueError("release_end must be after release_start")
    return total_ms


def release_interval_ms(release_start: datetime, release_end: datetime, segment_count: int) -> int:
    """
    Width of one release tick: the window split into `segment_count` equal parts,
    rounded up to a whole millisecond.
    """
    total_ms = _check_window(release_start, release_end, segment_count)
    return math.ceil(total_ms / segment_count)


def release_tick(now: datetime, release_start: datetime, release_end: datetime, segment_count: int) -> int:
    """
    Index of the tick `now` falls in, clamped to [0, segment_count].
    """
    interval = release_interval_ms(release_start, release_end, segment_count)
    if now <= release_start:
        return 0
    if now >= release_end:
        return segment_count
    return min(segment_count, _millis(now - release_start) // interval)


def compute_progress(
    now: datetime,
    release_start: datetime,
    release_end: datetime,
    segment_count: int,
) -> Progress:
    """
    Linear release progress plus the number of seconds until the next tick
    boundary, i.e. how long a response computed at `now` may be cached.

    Outside the window the result is static and `refresh_in_seconds` is None.

    The refresh is aligned to tick boundaries, not to the points where the
    redactor's released count (n - ceil((100 - p) * n / 100)) changes. The two
    coincide when the window length in ms is a multiple of `segment_count`.
    Otherwise the tick width is rounded up, so the released count can step
    slightly before the tick boundary and a refresh may land on the same count.
    """
    total_ms = _check_window(release_start, release_end, segment_count)

    if now <= release_start:
        return Progress(percent_released=0.0, refresh_in_seconds=None)
    if now >= release_end:
        return Progress(percent_released=100.0, refresh_in_seconds=None)

    elapsed_ms = _millis(now - release_start)
    percent_released = 100 * (elapsed_ms / total_ms)

    interval = math.ceil(total_ms / segment_count)
    remaining_ms = interval - (elapsed_ms % interval)
    refresh_in_seconds = -(-remaining_ms // 1000)

    return Progress(percent_released=percent_released, refresh_in_seconds=refresh_in_seconds)
