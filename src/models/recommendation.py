from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from src.models.scheme import Scheme


class RawRecommendation(BaseModel):
    """One ``{scheme_id, explanation}`` entry as emitted by the inference backend."""

    scheme_id: int
    explanation: str


class RecommendationResult(BaseModel):
    """A catalog scheme paired with the reason the farmer qualifies."""

    scheme: Scheme
    explanation: str


class RecommendationRecord(BaseModel):
    """Audit-log entry for a recommendation that was returned to a farmer."""

    owner_id: str
    scheme_id: int
    scheme_name: str
    explanation: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
