"""Session token authentication for owner-scoped endpoints.

A session token has the form ``<owner_id>.<signature>`` where the
signature is the hex HMAC-SHA256 of the owner id keyed with
``SESSION_SECRET``.  The identity provider integration mints tokens with
:func:`issue_session_token`; routes depend on :func:`require_owner` to
resolve the caller's owner id.  Signatures are compared in constant time.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Final

import structlog
from fastapi import HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config.settings import settings

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

_DEVELOPMENT_SECRET: Final[str] = "agrisahay-development-session-secret"

_bearer = HTTPBearer(auto_error=False)


def _session_secret() -> str | None:
    if settings.session_secret:
        return settings.session_secret
    if settings.is_production:
        return None
    return _DEVELOPMENT_SECRET


def _sign(owner_id: str, secret: str) -> str:
    return hmac.new(secret.encode(), owner_id.encode(), hashlib.sha256).hexdigest()


def issue_session_token(owner_id: str) -> str:
    """Mint a bearer token for *owner_id*.

    Raises
    ------
    ValueError
        If *owner_id* is empty.
    RuntimeError
        If no session secret is configured in production.
    """
    if not owner_id:
        raise ValueError("owner_id must not be empty")
    secret = _session_secret()
    if secret is None:
        raise RuntimeError("SESSION_SECRET is not configured")
    return f"{owner_id}.{_sign(owner_id, secret)}"


def verify_session_token(token: str) -> str | None:
    """Return the owner id carried by *token*, or *None* if it is not valid."""
    secret = _session_secret()
    if secret is None:
        return None
    owner_id, sep, signature = token.rpartition(".")
    if not sep or not owner_id or not signature:
        return None
    if not hmac.compare_digest(signature.encode(), _sign(owner_id, secret).encode()):
        return None
    return owner_id


async def require_owner(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
) -> str:
    """FastAPI dependency resolving the authenticated owner id.

    Raises 401 when the bearer token is missing or invalid, and 503 when
    production is running without a session secret.

    Usage::

        @router.get("/profile")
        async def get_profile(owner_id: str = Depends(require_owner)): ...
    """
    if not settings.session_secret:
        if settings.is_production:
            logger.error("auth.session_secret_not_configured_production")
            raise HTTPException(status_code=503, detail="Authentication is not configured.")
        logger.warning(
            "auth.session_secret_not_configured",
            note="Using the development session secret",
        )

    client_ip = request.client.host if request.client else "unknown"

    if credentials is None or not credentials.credentials:
        logger.info("auth.missing_token", path=request.url.path, client_ip=client_ip)
        raise HTTPException(
            status_code=401,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )

    owner_id = verify_session_token(credentials.credentials)
    if owner_id is None:
        logger.warning("auth.invalid_token", path=request.url.path, client_ip=client_ip)
        raise HTTPException(
            status_code=401,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return owner_id
