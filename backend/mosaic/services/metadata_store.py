# backend/mosaic/services/metadata_store.py
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import orjson
from botocore.exceptions import BotoCoreError, ClientError

from mosaic.core.config import Settings
from mosaic.models.metadata import CompleteMetadata
from mosaic.services.storage_r2 import get_object_bytes, put_json_bytes
from mosaic.services.validate import MetadataValidationError, parse_complete, validate_metadata

logger = logging.getLogger("MetadataStore")


class MetadataUnavailableError(RuntimeError):
    pass


def _loads(data: bytes) -> Any:
    return orjson.loads(data)


def _dumps(obj: Any) -> bytes:
    return orjson.dumps(obj, option=orjson.OPT_INDENT_2)


@dataclass(frozen=True)
class _Snapshot:
    """Raw bytes and the record parsed from exactly those bytes."""
    raw: bytes
    parsed: CompleteMetadata
    ts: float


class MetadataStore:
    """
    The complete metadata record lives either in a local file (dev) or in R2
    under the env's metadata key:

    - prod  -> settings.metadata_key
    - other -> settings.metadata_preview_key

    This store:
    - caches the raw JSON bytes briefly, always together with their parsed record
    - validates shape and invariants before anything is served
    - never hands out an empty record as a fallback
    """

    def __init__(self, cfg: Settings):
        self.cfg = cfg
        self._snapshot: _Snapshot | None = None

    @property
    def key(self) -> str:
        return self.cfg.active_metadata_key

    # -------------------------
    # Read
    # -------------------------

    def get_complete(self) -> CompleteMetadata:
        snapshot = self._snapshot
        now = time.time()
        if snapshot is not None and (now - snapshot.ts) < self.cfg.metadata_cache_ttl_sec:
            return snapshot.parsed

        raw = self._read_raw()
        if snapshot is not None and raw == snapshot.raw:
            fresh = _Snapshot(raw=raw, parsed=snapshot.parsed, ts=now)
        else:
            fresh = _Snapshot(raw=raw, parsed=self._parse(raw), ts=now)

        # Requests run concurrently in the threadpool; a read that started
        # before another one finished must not overwrite the newer snapshot.
        if self._snapshot is snapshot:
            self._snapshot = fresh
        return fresh.parsed

    def _parse(self, raw: bytes) -> CompleteMetadata:
        try:
            return parse_complete(_loads(raw))
        except orjson.JSONDecodeError as e:
            logger.exception("Stored metadata is not valid JSON")
            raise MetadataUnavailableError(f"Stored metadata is not valid JSON: {e}") from e
        except MetadataValidationError as e:
            logger.exception("Stored metadata failed validation")
            raise MetadataUnavailableError(str(e)) from e

    # -------------------------
    # Write
    # -------------------------

    def publish(self, metadata: CompleteMetadata) -> str:
        """
        Validate and overwrite the stored record. Returns the key written.
        """
        validate_metadata(metadata)
        body = _dumps(metadata.model_dump(mode="json", exclude_none=True))

        if self.cfg.r2_required():
            written = put_json_bytes(self.cfg, self.key, body)
        else:
            path = Path(self.cfg.local_metadata_path)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(body)
            logger.info(f"💾 Saved local: {path}")
            written = str(path)

        self.invalidate()
        return written

    def invalidate(self) -> None:
        self._snapshot = None

    # -------------------------
    # Storage
    # -------------------------

    def _read_raw(self) -> bytes:
        if self.cfg.r2_required():
            try:
                raw = get_object_bytes(self.cfg, self.key)
            except (BotoCoreError, ClientError) as e:
                logger.exception("R2 read failed")
                raise MetadataUnavailableError(f"R2 read failed: {e}") from e
            except RuntimeError as e:
                logger.exception("R2 is not configured")
                raise MetadataUnavailableError(str(e)) from e
            if raw is None:
                raise MetadataUnavailableError(f"Metadata key not found: {self.key}")
        else:
            path = Path(self.cfg.local_metadata_path)
            if not path.is_file():
                logger.error(f"❌ Local metadata not found: {path}")
                raise MetadataUnavailableError(f"Local metadata not found: {path}")
            raw = path.read_bytes()

        if not raw:
            raise MetadataUnavailableError("Stored metadata is empty")
        return raw
