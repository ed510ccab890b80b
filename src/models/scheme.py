from __future__ import annotations

from decimal import Decimal
from typing import Final

from pydantic import BaseModel, Field, field_validator, model_validator

# Allow-list value meaning "no restriction".
ALL_SENTINEL: Final[str] = "All"


def _is_unrestricted(values: list[str]) -> bool:
    return not values or any(v.strip().lower() == ALL_SENTINEL.lower() for v in values)


class Scheme(BaseModel):
    """A seeded government scheme with its eligibility limits.

    ``id`` is the primary identifier the inference backend refers to;
    ``external_id`` is the stable catalog key (``"S001"``...).  Absent
    numeric limits mean the scheme does not restrict on that dimension.
    """

    model_config = {"frozen": True}

    id: int = Field(ge=1)
    external_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str
    benefit_amount: int | None = Field(default=None, ge=0)
    max_income: int | None = Field(default=None, ge=0)
    min_land: Decimal | None = Field(default=None, ge=0)
    max_land: Decimal | None = Field(default=None, ge=0)
    supported_states: list[str] = Field(default_factory=list)
    eligible_crops: list[str] = Field(default_factory=list)
    required_documents: list[str] = Field(default_factory=list)

    @field_validator("supported_states", "eligible_crops", "required_documents")
    @classmethod
    def _strip_entries(cls, v: list[str]) -> list[str]:
        return [item.strip() for item in v if item and item.strip()]

    @model_validator(mode="after")
    def _check_land_range(self) -> Scheme:
        if self.min_land is not None and self.max_land is not None and self.min_land > self.max_land:
            raise ValueError(
                f"min_land ({self.min_land}) must not exceed max_land ({self.max_land})"
            )
        return self

    @property
    def all_states(self) -> bool:
        """True when the scheme applies in every state."""
        return _is_unrestricted(self.supported_states)

    @property
    def all_crops(self) -> bool:
        return _is_unrestricted(self.eligible_crops)

    @property
    def has_land_limit(self) -> bool:
        return self.min_land is not None or self.max_land is not None
