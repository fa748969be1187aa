from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import pydantic
from fastapi import HTTPException, status
from pydantic import AwareDatetime, TypeAdapter

from mosaic.models.metadata import CompleteMetadata, PartialMetadata
from mosaic.services.links import gate_links, next_link_reveal
from mosaic.services.progress import Progress, compute_progress
from mosaic.services.redactor import redact

logger = logging.getLogger("ReleaseAPI")

# Used when the response cannot change until the next known reveal instant.
STEADY_STATE_MAX_AGE_SEC = 604800  # one week

_TIMESTAMP = TypeAdapter(AwareDatetime)


@dataclass(frozen=True)
class ReleaseOverrides:
    """
    Development-only knobs taken from the query string.
    `progress` wins over a window override when both are given.
    """
    progress: Optional[float] = None
    release_start: Optional[datetime] = None
    release_end: Optional[datetime] = None

    @property
    def has_window(self) -> bool:
        return self.release_start is not None and self.release_end is not None


@dataclass(frozen=True)
class ReleaseView:
    metadata: PartialMetadata
    progress: Progress
    cache_control: str


def _bad_request(detail: str) -> HTTPException:
    logger.warning(f"⚠️ Rejected override: {detail}")
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def _parse_timestamp(name: str, value: str) -> datetime:
    try:
        return _TIMESTAMP.validate_python(value)
    except pydantic.ValidationError:
        raise _bad_request(f"{name} must be an ISO-8601 timestamp with a timezone, got '{value}'") from None


def parse_overrides(
    progress: str | None,
    release_start: str | None,
    release_end: str | None,
    dev: bool,
) -> ReleaseOverrides:
    """
    Outside dev every override is ignored without being parsed.
    In dev a malformed override fails the request instead of falling back.
    """
    if not dev:
        return ReleaseOverrides()

    if progress is not None:
        try:
            value = float(progress)
        except ValueError:
            raise _bad_request(f"progress must be a number, got '{progress}'") from None
        if not math.isfinite(value) or not (0 <= value <= 100):
            raise _bad_request(f"progress must be between 0 and 100, got '{progress}'")
        return ReleaseOverrides(progress=value)

    if release_start is None and release_end is None:
        return ReleaseOverrides()
    if release_start is None or release_end is None:
        raise _bad_request("releaseStart and releaseEnd must be given together")

    start = _parse_timestamp("releaseStart", release_start)
    end = _parse_timestamp("releaseEnd", release_end)
    if end <= start:
        raise _bad_request("releaseEnd must be after releaseStart")
    return ReleaseOverrides(release_start=start, release_end=end)


def _seconds_until(moment: datetime, now: datetime) -> int:
    return max(1, math.ceil((moment - now).total_seconds()))


def cache_control(refresh_in_seconds: Optional[int], seconds_until_next_reveal: Optional[int] = None) -> str:
    """
    Cache-Control for a partial response.

    A live release expires at the next tick. Otherwise the response is cached
    with revalidation for a week, or until a known reveal if that comes sooner.
    """
    if refresh_in_seconds is not None:
        max_age = refresh_in_seconds
        if seconds_until_next_reveal is not None:
            max_age = min(max_age, seconds_until_next_reveal)
        return f"public, max-age={max_age}"

    if seconds_until_next_reveal is not None and seconds_until_next_reveal < STEADY_STATE_MAX_AGE_SEC:
        return f"public, max-age={seconds_until_next_reveal}, must-revalidate"
    return f"public, max-age={STEADY_STATE_MAX_AGE_SEC}, must-revalidate"


def build_release_view(
    metadata: CompleteMetadata,
    now: datetime,
    overrides: ReleaseOverrides = ReleaseOverrides(),
) -> ReleaseView:
    if overrides.has_window:
        metadata = metadata.model_copy(
            update={"releaseStart": overrides.release_start, "releaseEnd": overrides.release_end}
        )

    if overrides.progress is not None:
        progress = Progress(percent_released=overrides.progress, refresh_in_seconds=None)
    else:
        progress = compute_progress(now, metadata.releaseStart, metadata.releaseEnd, metadata.segmentCount)

    partial = redact(metadata, progress.percent_released)
    partial.links = gate_links(metadata.links, metadata.releaseEnd, now)

    reveals = []
    link_reveal = next_link_reveal(metadata.links, metadata.releaseEnd, now)
    if link_reveal is not None:
        reveals.append(link_reveal)
    if overrides.progress is None and now < metadata.releaseStart:
        reveals.append(metadata.releaseStart)
    until_reveal = _seconds_until(min(reveals), now) if reveals else None

    logger.debug(
        f"percentReleased={progress.percent_released:.4f} "
        f"refreshInSeconds={progress.refresh_in_seconds} nextRevealIn={until_reveal}"
    )
    return ReleaseView(
        metadata=partial,
        progress=progress,
        cache_control=cache_control(progress.refresh_in_seconds, until_reveal),
    )
