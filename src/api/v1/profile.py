"""Farmer profile API endpoints for AgriSahay.

Each authenticated owner has exactly one profile.  ``GET`` returns it (or
``null`` before the first save); ``POST`` creates or updates it.  Field
validation happens on the request model, so a malformed land size or
income is rejected with a 400 naming the field before anything is
stored.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request

from src.middleware.auth import require_owner
from src.models.profile import Profile, ProfileInput
from src.services.profile_store import ProfileStore

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

router = APIRouter(prefix="/profile", tags=["profile"])


def _get_profile_store(request: Request) -> ProfileStore:
    store: ProfileStore | None = getattr(request.app.state, "profile_store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Profile storage not initialised")
    return store


@router.get("", response_model=Profile | None)
async def get_profile(
    request: Request,
    owner_id: str = Depends(require_owner),
) -> Profile | None:
    """Return the caller's profile, or ``null`` if none has been saved."""
    return await _get_profile_store(request).get(owner_id)


@router.post("", response_model=Profile)
async def save_profile(
    body: ProfileInput,
    request: Request,
    owner_id: str = Depends(require_owner),
) -> Profile:
    """Create the caller's profile, or replace its fields if one exists."""
    profile = await _get_profile_store(request).save(owner_id, body)
    logger.info("api.profile.saved", owner_id=owner_id, profile_id=profile.id)
    return profile
