from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from mosaic.core.auth import require_admin
from mosaic.core.dependencies import get_store
from mosaic.models.metadata import CompleteMetadata
from mosaic.services.metadata_store import MetadataStore
from mosaic.services.validate import MetadataValidationError

logger = logging.getLogger("MetadataPublisher")

router = APIRouter()


@router.post("/publish")
def publish(
    metadata: CompleteMetadata,
    _: bool = Depends(require_admin),
    store: MetadataStore = Depends(get_store),
):
    """
    Overwrite the stored complete record for this environment.
    The body must satisfy the schema (422) and the record invariants (400).
    """
    try:
        key = store.publish(metadata)
    except MetadataValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    logger.info(f"📦 Published metadata: key='{key}' segments={metadata.segmentCount}")
    return {"ok": True, "key": key, "segmentCount": metadata.segmentCount}
