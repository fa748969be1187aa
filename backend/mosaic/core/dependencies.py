from __future__ import annotations

from datetime import datetime, timezone
from functools import lru_cache
from typing import Callable

from mosaic.core.config import settings
from mosaic.services.metadata_store import MetadataStore

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def get_clock() -> Clock:
    return utc_now


@lru_cache(maxsize=1)
def get_store() -> MetadataStore:
    # one store (and one raw-bytes cache) per process
    return MetadataStore(settings)
