"""Shared fixtures: a small complete record, a store on disk and an API client."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import orjson
import pytest
from fastapi.testclient import TestClient

from mosaic.core.config import Settings, get_settings
from mosaic.core.dependencies import get_clock, get_store
from mosaic.main import app
from mosaic.models.metadata import CompleteMetadata
from mosaic.services.metadata_store import MetadataStore

RELEASE_START = datetime(2024, 1, 1, tzinfo=timezone.utc)
RELEASE_END = datetime(2024, 1, 8, tzinfo=timezone.utc)

TOTAL_WIDTH = 120
TRACK_HEIGHT = 40


def _chunks(total: int, count: int) -> list[int]:
    starts = [total * n // count for n in range(count + 1)]
    return [b - a for a, b in zip(starts, starts[1:])]


def build_record(
    segments_per_track: tuple[int, ...] = (4, 3, 3),
    release_start: datetime = RELEASE_START,
    release_end: datetime = RELEASE_END,
    links: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Complete record as the splitting pipeline would emit it (JSON-ready)."""
    tracks = []
    for t, count in enumerate(segments_per_track):
        segments = [
            {
                "audioUrl": f"https://cdn.example.com/audio/{t}-{s}.mp3",
                "imageUrl": f"https://cdn.example.com/images/{t}-{s}.jpg",
                "width": width,
            }
            for s, width in enumerate(_chunks(TOTAL_WIDTH, count))
        ]
        tracks.append({"segments": segments, "height": TRACK_HEIGHT, "name": f"Track {t + 1}"})

    return {
        "tracks": tracks,
        "segmentCount": sum(segments_per_track),
        "totalWidth": TOTAL_WIDTH,
        "totalHeight": TRACK_HEIGHT * len(segments_per_track),
        "releaseStart": release_start.isoformat(),
        "releaseEnd": release_end.isoformat(),
        "links": links or {},
    }


@pytest.fixture
def record() -> dict[str, Any]:
    return build_record()


@pytest.fixture
def complete(record) -> CompleteMetadata:
    return CompleteMetadata.model_validate(record)


@pytest.fixture
def metadata_path(tmp_path: Path, record) -> Path:
    path = tmp_path / "build" / "metadata.json"
    path.parent.mkdir(parents=True)
    path.write_bytes(orjson.dumps(record))
    return path


def make_settings(metadata_path: Path, env: str = "dev", **extra: Any) -> Settings:
    return Settings(
        ENV=env,
        STORAGE_MODE="local",
        LOCAL_METADATA_PATH=str(metadata_path),
        METADATA_CACHE_TTL_SEC=0,
        **extra,
    )


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(RELEASE_START + timedelta(hours=12, minutes=20))


@pytest.fixture
def configure_api(metadata_path, clock):
    """
    Returns a function (env=..., **settings) -> TestClient wired to the
    on-disk record and the fake clock.
    """

    def _configure(env: str = "dev", **extra: Any) -> TestClient:
        cfg = make_settings(metadata_path, env=env, **extra)
        store = MetadataStore(cfg)
        app.dependency_overrides[get_settings] = lambda: cfg
        app.dependency_overrides[get_store] = lambda: store
        app.dependency_overrides[get_clock] = lambda: clock
        return TestClient(app)

    yield _configure
    app.dependency_overrides.clear()


@pytest.fixture
def api_client(configure_api) -> TestClient:
    return configure_api()
