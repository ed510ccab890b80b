"""Per-owner history of recommendations returned to farmers."""

from __future__ import annotations

import structlog
from pydantic import ValidationError

from src.models.recommendation import RecommendationRecord, RecommendationResult
from src.services.store import KeyValueStore

logger = structlog.get_logger(__name__)


class RecommendationAuditLog:
    """Append-only log of ``(owner, scheme, explanation, time)`` records.

    Each owner's records are stored as one list, newest last, and capped
    at *max_records*; the oldest records are discarded first.  Appends go
    through the store's atomic list append, so two generations finishing
    at once both land in the history.
    """

    def __init__(self, store: KeyValueStore, *, max_records: int = 200) -> None:
        self._store = store
        self._max_records = max_records

    async def append(self, owner_id: str, results: list[RecommendationResult]) -> int:
        """Record *results* for *owner_id* and return the number appended."""
        if not results:
            return 0

        new_records = [
            RecommendationRecord(
                owner_id=owner_id,
                scheme_id=r.scheme.id,
                scheme_name=r.scheme.name,
                explanation=r.explanation,
            ).model_dump(mode="json")
            for r in results
        ]
        total = await self._store.append_to_list(owner_id, new_records, max_len=self._max_records)

        logger.info("audit.appended", owner_id=owner_id, appended=len(new_records), total=total)
        return len(new_records)

    async def history(self, owner_id: str) -> list[RecommendationRecord]:
        """Return the stored records for *owner_id*, oldest first."""
        raw = await self._store.get_list(owner_id)
        records: list[RecommendationRecord] = []
        for item in raw:
            try:
                records.append(RecommendationRecord.model_validate(item))
            except ValidationError:
                logger.warning("audit.invalid_record", owner_id=owner_id)
        return records
