"""Recommendation API endpoints for AgriSahay.

Provides endpoints for:
    * Generating scheme recommendations from the caller's stored profile
    * Reading the caller's recommendation history (when auditing is on)

Generation fails with 400 when the caller has no complete profile (no
inference is attempted) and with 500 when the inference backend fails or
answers with something unusable.  A failure is never reported as an
empty recommendation list.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request

from config.settings import settings
from src.middleware.auth import require_owner
from src.models.recommendation import RecommendationRecord, RecommendationResult
from src.services.audit import RecommendationAuditLog
from src.services.eligibility import EligibilityEngine
from src.services.errors import IncompleteProfileError, InferenceError, MissingProfileError
from src.services.recommendation import RecommendationService

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

router = APIRouter(prefix="/recommendations", tags=["recommendations"])

MISSING_PROFILE_MESSAGE = "Profile not found. Please complete your profile first."
INFERENCE_FAILURE_MESSAGE = "Failed to generate recommendations"


def _build_service(request: Request) -> RecommendationService:
    state = request.app.state
    profiles = getattr(state, "profile_store", None)
    catalog = getattr(state, "catalog", None)
    backend = getattr(state, "inference_backend", None)
    if profiles is None or catalog is None or backend is None:
        raise HTTPException(status_code=503, detail="Recommendation service not initialised")

    engine = EligibilityEngine(backend, timeout_seconds=settings.inference_timeout_seconds)
    return RecommendationService(
        profiles,
        catalog,
        engine,
        audit=getattr(state, "audit_log", None),
    )


@router.post("/generate", response_model=list[RecommendationResult])
async def generate_recommendations(
    request: Request,
    owner_id: str = Depends(require_owner),
) -> list[RecommendationResult]:
    """Match the caller's profile against every scheme in the catalog.

    Returns ``[{scheme, explanation}, ...]`` in the order the inference
    backend ranked them.  Every returned scheme exists in the catalog.
    """
    service = _build_service(request)

    try:
        return await service.generate_for_owner(owner_id)
    except MissingProfileError:
        raise HTTPException(status_code=400, detail=MISSING_PROFILE_MESSAGE) from None
    except IncompleteProfileError as exc:
        raise HTTPException(
            status_code=400,
            detail=f"Profile is incomplete. Please complete your profile first. Missing: {', '.join(exc.missing_fields)}",
        ) from None
    except InferenceError as exc:
        logger.error(
            "api.recommendations.inference_failed",
            owner_id=owner_id,
            error_type=type(exc).__name__,
            error=str(exc),
        )
        raise HTTPException(status_code=500, detail=INFERENCE_FAILURE_MESSAGE) from exc


@router.get("", response_model=list[RecommendationRecord])
async def recommendation_history(
    request: Request,
    owner_id: str = Depends(require_owner),
) -> list[RecommendationRecord]:
    """Return the caller's past recommendations, oldest first.

    Empty when auditing is disabled.
    """
    audit: RecommendationAuditLog | None = getattr(request.app.state, "audit_log", None)
    if audit is None:
        return []
    return await audit.history(owner_id)
