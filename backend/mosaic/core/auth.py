from __future__ import annotations

from fastapi import Depends, Header, HTTPException, status

from mosaic.core.config import Settings, get_settings


def require_admin(
    x_admin_key: str | None = Header(default=None),
    cfg: Settings = Depends(get_settings),
) -> bool:
    """
    Simple admin auth for the publish endpoint.
    """
    if not cfg.admin_api_key:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="ADMIN_API_KEY not configured",
        )
    if x_admin_key != cfg.admin_api_key:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid admin key")
    return True
