"""AgriSahay FastAPI application entry point.

Creates the FastAPI app, configures middleware, includes routers, and
manages the lifecycle of the backend services (profile storage, scheme
catalog, inference backend, recommendation audit log).
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from config.settings import settings
from src.api.errors import install_error_handlers
from src.api.router import api_router

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Structured logging configuration
# ---------------------------------------------------------------------------


def _configure_logging() -> None:
    """Set up structlog with JSON or console rendering based on settings."""
    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            settings.log_level,
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Application lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage startup and shutdown of all AgriSahay services.

    On startup:
      1. Open the profile and audit key-value stores
      2. Load the scheme catalog from the bundled seed file
      3. Build the configured inference backend
      4. Store everything on ``app.state``

    On shutdown:
      - Close the inference HTTP client and the Redis pools gracefully.
    """
    _configure_logging()
    logger.info(
        "app.startup",
        env=settings.env,
        inference_provider=settings.inference_provider,
    )

    app.state.start_time = time.time()

    # -- 1. Storage ---------------------------------------------------------
    from src.services.audit import RecommendationAuditLog
    from src.services.profile_store import ProfileStore
    from src.services.store import KeyValueStore

    redis_url = settings.redis_url if settings.redis_url else None
    profile_kv = KeyValueStore.for_namespace("agrisahay:profile:", redis_url=redis_url)
    audit_kv = KeyValueStore.for_namespace("agrisahay:recommendations:", redis_url=redis_url)

    app.state.profile_kv = profile_kv
    app.state.profile_store = ProfileStore(profile_kv)
    app.state.audit_log = (
        RecommendationAuditLog(audit_kv, max_records=settings.audit_max_records_per_owner)
        if settings.audit_enabled
        else None
    )
    logger.info("app.storage_initialised", audit_enabled=settings.audit_enabled)

    # -- 2. Scheme catalog --------------------------------------------------
    from src.data.seed import build_catalog

    catalog = build_catalog()
    app.state.catalog = catalog
    logger.info("app.catalog_loaded", count=len(catalog))

    # -- 3. Inference backend -----------------------------------------------
    from src.services.inference import UnconfiguredInferenceBackend, build_inference_backend

    try:
        backend = build_inference_backend(settings)
    except Exception:
        logger.warning("app.inference_init_failed", exc_info=True)
        backend = UnconfiguredInferenceBackend()
    app.state.inference_backend = backend
    logger.info("app.inference_initialised", backend=backend.name)

    logger.info("app.startup_complete")

    yield

    # -- Shutdown -----------------------------------------------------------
    logger.info("app.shutdown_start")

    close = getattr(app.state.inference_backend, "close", None)
    if close is not None:
        await close()
    await profile_kv.close()
    await audit_kv.close()

    logger.info("app.shutdown_complete")


# ---------------------------------------------------------------------------
# FastAPI application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="AgriSahay API",
    description=(
        "AgriSahay -- matches an Indian farmer's profile against government "
        "agricultural schemes and explains why each recommended scheme applies."
    ),
    version="0.1.0",
    lifespan=lifespan,
    default_response_class=ORJSONResponse,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

# -- CORS middleware --------------------------------------------------------
# allow_credentials=True must NOT be combined with allow_origins=["*"].
if settings.is_production:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Authorization"],
    )
else:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS", "HEAD"],
        allow_headers=["Content-Type", "Accept", "Authorization"],
    )

install_error_handlers(app)

# -- Include routers -------------------------------------------------------
app.include_router(api_router)


@app.get("/", response_class=ORJSONResponse)
async def api_info() -> dict:
    """API information endpoint."""
    return {
        "name": "AgriSahay API",
        "version": app.version,
        "docs": "/docs",
        "health": "/api/health",
        "endpoints": {
            "profile": "/api/profile",
            "schemes": "/api/schemes",
            "generate_recommendations": "/api/recommendations/generate",
            "recommendation_history": "/api/recommendations",
        },
    }


def run() -> None:
    """Serve the app with uvicorn on the configured host and port."""
    import uvicorn

    uvicorn.run("src.main:app", host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    run()
