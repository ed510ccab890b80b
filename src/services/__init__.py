"""AgriSahay service layer -- storage, catalog, inference and recommendation."""

from __future__ import annotations

from src.services.audit import RecommendationAuditLog
from src.services.catalog import SchemeCatalog
from src.services.eligibility import (
    EligibilityEngine,
    RuleCheck,
    build_query,
    evaluate_rules,
    parse_response,
)
from src.services.errors import (
    IncompleteProfileError,
    InferenceError,
    InferenceMalformedError,
    InferenceUnavailableError,
    MissingProfileError,
    RecommendationError,
)
from src.services.inference import (
    GeminiInferenceBackend,
    InferenceBackend,
    OpenAICompatibleInferenceBackend,
    UnconfiguredInferenceBackend,
    build_inference_backend,
)
from src.services.profile_store import ProfileStore
from src.services.recommendation import RecommendationService
from src.services.store import InMemoryStoreBackend, KeyValueStore, RedisStoreBackend
from src.services.validator import reconcile

__all__ = [
    "EligibilityEngine",
    "GeminiInferenceBackend",
    "InMemoryStoreBackend",
    "IncompleteProfileError",
    "InferenceBackend",
    "InferenceError",
    "InferenceMalformedError",
    "InferenceUnavailableError",
    "KeyValueStore",
    "MissingProfileError",
    "OpenAICompatibleInferenceBackend",
    "ProfileStore",
    "RecommendationAuditLog",
    "RecommendationError",
    "RecommendationService",
    "RedisStoreBackend",
    "RuleCheck",
    "SchemeCatalog",
    "UnconfiguredInferenceBackend",
    "build_inference_backend",
    "build_query",
    "evaluate_rules",
    "parse_response",
    "reconcile",
]
