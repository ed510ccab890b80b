"""Failure taxonomy for the recommendation pipeline."""

from __future__ import annotations


class RecommendationError(Exception):
    """Base class for recommendation pipeline failures."""


class MissingProfileError(RecommendationError):
    """The caller has no stored profile; generation cannot start."""

    def __init__(self, owner_id: str) -> None:
        super().__init__(f"No profile stored for owner '{owner_id}'")
        self.owner_id = owner_id


class IncompleteProfileError(RecommendationError):
    """A profile is missing one of the fields the eligibility query needs."""

    def __init__(self, missing_fields: list[str]) -> None:
        super().__init__(f"Profile is missing: {', '.join(missing_fields)}")
        self.missing_fields = missing_fields


class InferenceError(RecommendationError):
    """The inference backend did not produce a usable answer."""


class InferenceUnavailableError(InferenceError):
    """The backend could not be reached, failed, or timed out."""


class InferenceMalformedError(InferenceError):
    """The backend answered with text that is not the agreed JSON shape."""

    def __init__(self, message: str, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw
