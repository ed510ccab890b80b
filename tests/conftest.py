"""Shared fixtures for the AgriSahay test suite.

Environment variables are set before any application module is imported
so the settings singleton never points at a real Redis server or a real
inference provider.
"""

from __future__ import annotations

import asyncio
import os

os.environ["REDIS_URL"] = ""
os.environ["GCP_PROJECT_ID"] = ""
os.environ["GEMINI_API_KEY"] = ""
os.environ["OPENAI_API_KEY"] = ""
os.environ["SESSION_SECRET"] = "test-session-secret"
os.environ["AGRISAHAY_ENV"] = "development"
os.environ["LOG_FORMAT"] = "console"

from collections.abc import Callable, Iterator  # noqa: E402
from decimal import Decimal  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from src.data.seed import build_catalog  # noqa: E402
from src.models.profile import Profile  # noqa: E402
from src.models.scheme import Scheme  # noqa: E402
from src.services.catalog import SchemeCatalog  # noqa: E402


class FakeInferenceBackend:
    """Inference backend double that records every query it receives."""

    def __init__(
        self,
        answer: str = '{"recommendations": []}',
        *,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.answer = answer
        self.error = error
        self.delay = delay
        self.queries: list[str] = []

    @property
    def name(self) -> str:
        return "fake"

    @property
    def call_count(self) -> int:
        return len(self.queries)

    async def infer(self, query: str) -> str:
        self.queries.append(query)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.answer


@pytest.fixture
def make_backend() -> type[FakeInferenceBackend]:
    return FakeInferenceBackend


@pytest.fixture
def fake_backend() -> FakeInferenceBackend:
    return FakeInferenceBackend()


@pytest.fixture
def catalog() -> SchemeCatalog:
    """The bundled ten-scheme catalog."""
    return build_catalog()


@pytest.fixture
def make_profile() -> Callable[..., Profile]:
    """Factory for a complete profile; keyword arguments override fields."""

    def _make(**overrides: Any) -> Profile:
        data: dict[str, Any] = {
            "owner_id": "farmer-1",
            "state": "Odisha",
            "land_size": "2",
            "income": 150000,
            "crop": "Rice",
            "category": "General",
        }
        data.update(overrides)
        return Profile(**data)

    return _make


@pytest.fixture
def make_scheme() -> Callable[..., Scheme]:
    """Factory for a scheme; keyword arguments override fields."""

    def _make(**overrides: Any) -> Scheme:
        data: dict[str, Any] = {
            "id": 1,
            "external_id": "T001",
            "name": "Test Scheme",
            "description": "Test eligibility.",
            "benefit_amount": 1000,
            "max_income": 200000,
            "min_land": Decimal("0"),
            "max_land": Decimal("10"),
            "supported_states": ["All"],
            "eligible_crops": ["All"],
        }
        data.update(overrides)
        return Scheme(**data)

    return _make


@pytest.fixture
def client(fake_backend: FakeInferenceBackend) -> Iterator[TestClient]:
    """Test client with a fresh in-memory store and the fake backend installed."""
    from src.main import app

    with TestClient(app) as test_client:
        app.state.inference_backend = fake_backend
        yield test_client


@pytest.fixture
def auth_headers() -> Callable[[str], dict[str, str]]:
    from src.middleware.auth import issue_session_token

    def _headers(owner_id: str = "farmer-1") -> dict[str, str]:
        return {"Authorization": f"Bearer {issue_session_token(owner_id)}"}

    return _headers
