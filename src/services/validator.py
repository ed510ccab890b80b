"""Reconciliation of inferred matches against the scheme catalog."""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from src.models.recommendation import RawRecommendation, RecommendationResult
from src.services.catalog import SchemeCatalog

logger = structlog.get_logger(__name__)


def reconcile(
    raw_entries: Iterable[RawRecommendation],
    catalog: SchemeCatalog,
) -> list[RecommendationResult]:
    """Resolve each entry's ``scheme_id`` against *catalog*.

    Entries whose id is not in the catalog are dropped; the rest keep the
    order the backend emitted them in.  The function has no side effects
    beyond a debug log line per dropped entry, so running it again on its
    own output's ids yields the same list.
    """
    results: list[RecommendationResult] = []
    for entry in raw_entries:
        scheme = catalog.get(entry.scheme_id)
        if scheme is None:
            logger.debug("recommendation.unresolved_scheme", scheme_id=entry.scheme_id)
            continue
        results.append(RecommendationResult(scheme=scheme, explanation=entry.explanation))
    return results
