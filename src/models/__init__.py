from src.models.enums import FarmerCategory, InferenceProvider
from src.models.profile import Profile, ProfileInput
from src.models.recommendation import (
    RawRecommendation,
    RecommendationRecord,
    RecommendationResult,
)
from src.models.scheme import ALL_SENTINEL, Scheme

__all__ = [
    "ALL_SENTINEL",
    "FarmerCategory",
    "InferenceProvider",
    "Profile",
    "ProfileInput",
    "RawRecommendation",
    "RecommendationRecord",
    "RecommendationResult",
    "Scheme",
]
