from __future__ import annotations

import logging

import orjson
import uvicorn
from fastapi import Depends, FastAPI, Query, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mosaic.admin.publish import router as admin_router
from mosaic.core.config import Settings, get_settings, settings
from mosaic.core.dependencies import Clock, get_clock, get_store
from mosaic.services.metadata_store import MetadataStore, MetadataUnavailableError
from mosaic.services.release import build_release_view, parse_overrides
from mosaic.services.validate import MetadataValidationError

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("ReleaseAPI")

app = FastAPI(title="Album Mosaic API", version="1.0.0")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(admin_router, prefix="/admin", tags=["admin"])


@app.exception_handler(MetadataUnavailableError)
@app.exception_handler(MetadataValidationError)
async def metadata_error_handler(request: Request, exc: RuntimeError) -> JSONResponse:
    logger.error(f"❌ Metadata unavailable for {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Album metadata is unavailable"},
    )


@app.get("/health")
def health():
    return {"ok": True, "service": "album-mosaic"}


@app.get("/api/metadata")
@app.get("/metadata", include_in_schema=False)
def metadata(
    progress: str | None = Query(default=None),
    release_start: str | None = Query(default=None, alias="releaseStart"),
    release_end: str | None = Query(default=None, alias="releaseEnd"),
    cfg: Settings = Depends(get_settings),
    store: MetadataStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    """
    Returns the partial album metadata for the current moment.

    Segments not yet released have no audioUrl/imageUrl. Cache-Control expires
    the response at the next point where the released set can change.

    Dev only (ENV=dev):
    - progress=<0..100> forces the released percentage
    - releaseStart=<iso>&releaseEnd=<iso> replaces the stored release window
    """
    overrides = parse_overrides(progress, release_start, release_end, dev=cfg.is_dev)
    view = build_release_view(store.get_complete(), clock(), overrides)

    return Response(
        content=orjson.dumps(view.metadata.to_json_dict()),
        media_type="application/json",
        headers={"Cache-Control": view.cache_control},
    )


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
