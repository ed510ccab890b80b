"""Farmer profile models.

A farmer owns exactly one profile.  ``ProfileInput`` is what the client
submits; ``Profile`` is the stored record with identity and timestamps.
Validation happens here so malformed numeric fields are rejected per
field before anything is persisted.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any, Final
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from src.models.enums import FarmerCategory

_LAND_SIZE_RE: Final[re.Pattern[str]] = re.compile(
    r"^\s*(\d+(?:\.\d+)?)\s*(?:acres?)?\s*$",
    re.IGNORECASE,
)


class ProfileInput(BaseModel):
    """Profile fields accepted from the client."""

    model_config = {"str_strip_whitespace": True}

    state: str
    land_size: str = Field(description="Land holding in acres, e.g. '2' or '2.5 acres'")
    income: int = Field(ge=0, description="Annual income in INR")
    crop: str
    category: FarmerCategory = FarmerCategory.GENERAL

    @field_validator("state", "crop")
    @classmethod
    def _require_text(cls, v: str) -> str:
        if not v:
            raise ValueError("This field is required")
        return v

    @field_validator("land_size", mode="before")
    @classmethod
    def _normalise_land_size(cls, v: Any) -> str:
        if isinstance(v, bool) or not isinstance(v, (str, int, float, Decimal)):
            raise ValueError("Land size must be a number of acres")
        match = _LAND_SIZE_RE.match(str(v))
        if match is None:
            raise ValueError("Land size must be a number of acres, e.g. 2 or 2.5")
        return format(Decimal(match.group(1)).normalize(), "f")

    @field_validator("income", mode="before")
    @classmethod
    def _normalise_income(cls, v: Any) -> Any:
        # "1,50,000" and "₹150000" are common ways of writing an amount.
        if isinstance(v, str):
            return v.replace(",", "").replace("₹", "").strip()
        return v

    @field_validator("category", mode="before")
    @classmethod
    def _normalise_category(cls, v: Any) -> Any:
        if v is None or v == "":
            return FarmerCategory.GENERAL
        if isinstance(v, str):
            for member in FarmerCategory:
                if member.value.lower() == v.strip().lower():
                    return member
        return v

    @property
    def land_size_acres(self) -> Decimal:
        return Decimal(self.land_size)


class Profile(ProfileInput):
    """Stored farmer profile, one per owner."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    owner_id: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def missing_fields(self) -> list[str]:
        """Names of the fields the eligibility query needs that are still empty."""
        missing = [name for name in ("state", "land_size", "crop") if not getattr(self, name)]
        if self.income is None:
            missing.append("income")
        return missing
