"""Scheme catalog API endpoint for AgriSahay."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, HTTPException, Request

from src.models.scheme import Scheme
from src.services.catalog import SchemeCatalog

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

router = APIRouter(prefix="/schemes", tags=["schemes"])


@router.get("", response_model=list[Scheme])
async def list_schemes(request: Request) -> list[Scheme]:
    """List every seeded scheme in catalog order.  No authentication required."""
    catalog: SchemeCatalog | None = getattr(request.app.state, "catalog", None)
    if catalog is None:
        raise HTTPException(status_code=503, detail="Scheme catalog not loaded")
    return catalog.list_schemes()
