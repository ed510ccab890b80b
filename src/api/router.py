"""Main API router combining all v1 route modules.

Aggregates all routers under the ``/api`` prefix so the FastAPI
application only needs to include a single router.

Includes:
    * Profile: read and save the caller's farmer profile
    * Schemes: the seeded scheme catalog
    * Recommendations: generation and per-owner history
    * Health: liveness and readiness probes
"""

from __future__ import annotations

from fastapi import APIRouter

from src.api.v1 import health, profile, recommendations, schemes

api_router = APIRouter(prefix="/api")

api_router.include_router(profile.router)
api_router.include_router(schemes.router)
api_router.include_router(recommendations.router)
api_router.include_router(health.router)
