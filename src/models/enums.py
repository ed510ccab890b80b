from __future__ import annotations

from enum import StrEnum


class FarmerCategory(StrEnum):
    """Social category declared on a farmer profile."""

    __slots__ = ()

    GENERAL = "General"
    OBC = "OBC"
    SC = "SC"
    ST = "ST"


class InferenceProvider(StrEnum):
    __slots__ = ()

    GEMINI = "gemini"
    OPENAI = "openai"
    UNCONFIGURED = "unconfigured"
