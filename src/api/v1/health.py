"""Health check endpoints for AgriSahay.

Provides liveness and readiness probes for Kubernetes / Cloud Run
deployments.  The readiness check reports storage mode, catalog size
and which inference backend is configured.
"""

from __future__ import annotations

import time

import structlog
from fastapi import APIRouter, Request
from pydantic import BaseModel

from src.services.inference import UnconfiguredInferenceBackend

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """Basic health check response."""

    status: str
    version: str
    uptime_seconds: float


class ReadinessResponse(BaseModel):
    """Readiness check response with individual component statuses."""

    status: str
    checks: dict[str, str]


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Liveness probe.

    Returns 200 if the application process is running and able to
    handle requests.  Does *not* check downstream dependencies.
    """
    start_time: float = getattr(request.app.state, "start_time", time.time())
    uptime = time.time() - start_time

    return HealthResponse(
        status="healthy",
        version=request.app.version,
        uptime_seconds=round(uptime, 2),
    )


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(request: Request) -> ReadinessResponse:
    """Readiness probe.

    Storage in in-memory fallback mode still counts as ready; a missing
    catalog or inference backend does not.
    """
    checks: dict[str, str] = {}
    all_ok = True

    # -- Storage -----------------------------------------------------------
    profile_kv = getattr(request.app.state, "profile_kv", None)
    if profile_kv is not None:
        try:
            await profile_kv.set("_health_check", "ok")
            if await profile_kv.get("_health_check") == "ok":
                checks["storage"] = "redis" if profile_kv.using_redis else "in_memory"
            else:
                checks["storage"] = "degraded"
                all_ok = False
            await profile_kv.delete("_health_check")
        except Exception as exc:
            checks["storage"] = f"error: {exc!s}"
            all_ok = False
    else:
        checks["storage"] = "not_configured"
        all_ok = False

    # -- Scheme catalog ----------------------------------------------------
    catalog = getattr(request.app.state, "catalog", None)
    if catalog is not None and len(catalog) > 0:
        checks["catalog"] = f"ok ({len(catalog)} schemes loaded)"
    else:
        checks["catalog"] = "no_data"
        all_ok = False

    # -- Inference backend -------------------------------------------------
    backend = getattr(request.app.state, "inference_backend", None)
    if backend is None or isinstance(backend, UnconfiguredInferenceBackend):
        checks["inference"] = "not_configured"
        all_ok = False
    else:
        checks["inference"] = backend.name

    status = "ready" if all_ok else "degraded"

    logger.info("health.readiness_check", status=status, checks=checks)

    return ReadinessResponse(status=status, checks=checks)
