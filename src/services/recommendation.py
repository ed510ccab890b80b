"""Recommendation service: profile lookup, engine call and audit append."""

from __future__ import annotations

import structlog

from src.models.recommendation import RecommendationResult
from src.services.audit import RecommendationAuditLog
from src.services.catalog import SchemeCatalog
from src.services.eligibility import EligibilityEngine
from src.services.errors import MissingProfileError
from src.services.profile_store import ProfileStore

logger = structlog.get_logger(__name__)


class RecommendationService:
    """Runs one recommendation generation for an authenticated owner.

    The profile is loaded first; when the owner has none,
    :class:`MissingProfileError` is raised and the inference backend is
    never called.  On success the results are appended to the audit log
    when one is configured.  An audit failure is logged and does not
    fail the request, since the farmer already has a valid answer.
    """

    def __init__(
        self,
        profiles: ProfileStore,
        catalog: SchemeCatalog,
        engine: EligibilityEngine,
        audit: RecommendationAuditLog | None = None,
    ) -> None:
        self._profiles = profiles
        self._catalog = catalog
        self._engine = engine
        self._audit = audit

    async def generate_for_owner(self, owner_id: str) -> list[RecommendationResult]:
        profile = await self._profiles.get(owner_id)
        if profile is None:
            logger.info("recommendation.missing_profile", owner_id=owner_id)
            raise MissingProfileError(owner_id)

        results = await self._engine.generate(profile, self._catalog)

        if self._audit is not None:
            try:
                await self._audit.append(owner_id, results)
            except Exception:
                logger.warning("recommendation.audit_failed", owner_id=owner_id, exc_info=True)

        logger.info("recommendation.generated", owner_id=owner_id, count=len(results))
        return results
