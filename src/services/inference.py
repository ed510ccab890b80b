"""Inference backends for delegated eligibility matching.

Every backend implements the same narrow contract: take the composed
eligibility query text and return the model's raw answer text, or raise
:class:`~src.services.errors.InferenceUnavailableError`.  Parsing and
validating that text is the engine's job, so the backend can be swapped
between a hosted model, a local rules engine, or a test fake without
touching the engine or the validator.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Final, Protocol, runtime_checkable

import httpx
import structlog
from google import genai
from google.genai import types

from src.models.enums import InferenceProvider
from src.services.errors import InferenceMalformedError, InferenceUnavailableError

if TYPE_CHECKING:
    from config.settings import Settings

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

SYSTEM_PROMPT: Final[str] = (
    "You are an expert Indian agricultural scheme advisor. "
    "You evaluate farmer eligibility strictly by the rules you are given "
    "and you only ever answer with a single JSON object."
)


@runtime_checkable
class InferenceBackend(Protocol):
    """``infer(query) -> answer text`` or raise ``InferenceUnavailableError``."""

    @property
    def name(self) -> str: ...

    async def infer(self, query: str) -> str: ...


# ---------------------------------------------------------------------------
# Gemini (Vertex AI or Gemini API key)
# ---------------------------------------------------------------------------


class GeminiInferenceBackend:
    """Gemini via the ``google-genai`` SDK with JSON-only output.

    Uses Vertex AI when *project_id* is given, otherwise the Gemini API
    with *api_key*.  The client is created lazily on first use so that a
    missing credential surfaces as an inference failure, not a startup
    crash.
    """

    def __init__(
        self,
        *,
        model_name: str = "gemini-2.0-flash",
        project_id: str = "",
        location: str = "asia-south1",
        api_key: str = "",
        temperature: float = 0.1,
        max_output_tokens: int = 2048,
    ) -> None:
        self._model_name = model_name
        self._project_id = project_id
        self._location = location
        self._api_key = api_key
        self._temperature = temperature
        self._max_output_tokens = max_output_tokens
        self._client: genai.Client | None = None

    @property
    def name(self) -> str:
        return f"{InferenceProvider.GEMINI}:{self._model_name}"

    def _get_client(self) -> genai.Client:
        if self._client is None:
            if self._project_id:
                self._client = genai.Client(
                    vertexai=True,
                    project=self._project_id,
                    location=self._location,
                )
            else:
                self._client = genai.Client(api_key=self._api_key)
            logger.info(
                "inference.gemini_initialised",
                model=self._model_name,
                vertexai=bool(self._project_id),
            )
        return self._client

    async def infer(self, query: str) -> str:
        start = time.perf_counter()
        config = types.GenerateContentConfig(
            system_instruction=SYSTEM_PROMPT,
            temperature=self._temperature,
            max_output_tokens=self._max_output_tokens,
            response_mime_type="application/json",
        )

        try:
            response = await self._get_client().aio.models.generate_content(
                model=self._model_name,
                contents=query,
                config=config,
            )
        except Exception as exc:
            logger.error("inference.gemini_failed", model=self._model_name, error=str(exc))
            raise InferenceUnavailableError(f"Gemini request failed: {exc}") from exc

        text = response.text or ""
        usage = response.usage_metadata
        logger.info(
            "inference.gemini_completed",
            model=self._model_name,
            query_length=len(query),
            answer_length=len(text),
            input_tokens=usage.prompt_token_count if usage else None,
            output_tokens=usage.candidates_token_count if usage else None,
            processing_time_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return text


# ---------------------------------------------------------------------------
# OpenAI-compatible chat completions
# ---------------------------------------------------------------------------


class OpenAICompatibleInferenceBackend:
    """Any ``/chat/completions`` endpoint that honours ``response_format``.

    Works with OpenAI itself, OpenRouter and self-hosted gateways that
    speak the same protocol.
    """

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model_name: str = "gpt-4o",
        temperature: float = 0.1,
        timeout_seconds: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._model_name = model_name
        self._temperature = temperature
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=httpx.Timeout(timeout_seconds),
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            transport=transport,
        )

    @property
    def name(self) -> str:
        return f"{InferenceProvider.OPENAI}:{self._model_name}"

    async def close(self) -> None:
        await self._client.aclose()

    async def infer(self, query: str) -> str:
        start = time.perf_counter()
        payload = {
            "model": self._model_name,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": query},
            ],
            "temperature": self._temperature,
            "response_format": {"type": "json_object"},
        }

        try:
            response = await self._client.post("/chat/completions", json=payload)
        except httpx.TimeoutException as exc:
            logger.error("inference.openai_timeout", model=self._model_name)
            raise InferenceUnavailableError("Inference request timed out") from exc
        except httpx.HTTPError as exc:
            logger.error("inference.openai_request_failed", model=self._model_name, error=str(exc))
            raise InferenceUnavailableError(f"Inference request failed: {exc}") from exc

        if response.status_code != 200:
            logger.error(
                "inference.openai_bad_status",
                model=self._model_name,
                status=response.status_code,
                body=response.text[:500],
            )
            raise InferenceUnavailableError(
                f"Inference provider returned HTTP {response.status_code}"
            )

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise InferenceMalformedError(
                "Inference provider response has no message content",
                raw=response.text[:500],
            ) from exc

        logger.info(
            "inference.openai_completed",
            model=self._model_name,
            query_length=len(query),
            answer_length=len(content),
            total_tokens=(data.get("usage") or {}).get("total_tokens"),
            processing_time_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return content


# ---------------------------------------------------------------------------
# Unconfigured
# ---------------------------------------------------------------------------


class UnconfiguredInferenceBackend:
    """Placeholder used when no provider credentials are set.

    Every call fails as unavailable, so generation reports a server-side
    failure instead of an empty recommendation list.
    """

    @property
    def name(self) -> str:
        return str(InferenceProvider.UNCONFIGURED)

    async def infer(self, query: str) -> str:
        raise InferenceUnavailableError("No inference provider is configured")


def build_inference_backend(settings: Settings) -> InferenceBackend:
    """Pick the backend named by ``settings.inference_provider``."""
    if settings.inference_provider == InferenceProvider.OPENAI:
        if settings.openai_api_key:
            return OpenAICompatibleInferenceBackend(
                api_key=settings.openai_api_key,
                base_url=settings.openai_base_url,
                model_name=settings.openai_model,
                temperature=settings.inference_temperature,
                timeout_seconds=settings.inference_timeout_seconds,
            )
    elif settings.gcp_project_id or settings.gemini_api_key:
        return GeminiInferenceBackend(
            model_name=settings.gemini_model,
            project_id=settings.gcp_project_id,
            location=settings.vertex_ai_location,
            api_key=settings.gemini_api_key,
            temperature=settings.inference_temperature,
        )

    logger.warning(
        "inference.not_configured",
        provider=settings.inference_provider,
        note="generation requests will fail until credentials are set",
    )
    return UnconfiguredInferenceBackend()
