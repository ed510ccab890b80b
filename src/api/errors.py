"""Exception handlers shaping error responses as ``{"message", "field"}``.

Request validation failures become 400 with the first failing field and
its message; every ``HTTPException`` is rendered as ``{"message": detail}``.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

_PYDANTIC_PREFIXES: tuple[str, ...] = ("Value error, ", "Assertion failed, ")


def _first_error(errors: list[dict[str, Any]]) -> tuple[str, str | None]:
    if not errors:
        return "Invalid request", None

    error = errors[0]
    message = str(error.get("msg", "Invalid value"))
    for prefix in _PYDANTIC_PREFIXES:
        if message.startswith(prefix):
            message = message[len(prefix) :]
            break

    # loc looks like ("body", "land_size"); the request part is not a field.
    field_parts = [str(part) for part in error.get("loc", ())[1:] if isinstance(part, str)]
    field = ".".join(field_parts) or None
    return message, field


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> ORJSONResponse:
        message, field = _first_error(list(exc.errors()))
        logger.info("api.validation_error", path=request.url.path, field=field, message=message)
        return ORJSONResponse({"message": message, "field": field}, status_code=400)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> ORJSONResponse:
        return ORJSONResponse(
            {"message": exc.detail},
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )
