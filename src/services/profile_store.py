"""One-profile-per-owner storage on top of :class:`KeyValueStore`."""

from __future__ import annotations

from datetime import UTC, datetime

import structlog
from pydantic import ValidationError

from src.models.profile import Profile, ProfileInput
from src.services.store import KeyValueStore

logger = structlog.get_logger(__name__)


class ProfileStore:
    """Reads and upserts farmer profiles keyed by owner id.

    The owner id is the storage key, so an owner can never hold more than
    one profile.  Saving an existing profile keeps its ``id`` and
    ``created_at`` and refreshes ``updated_at``.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    async def get(self, owner_id: str) -> Profile | None:
        raw = await self._store.get(owner_id)
        if raw is None:
            return None
        try:
            return Profile.model_validate(raw)
        except ValidationError:
            logger.error("profile_store.invalid_document", owner_id=owner_id, exc_info=True)
            raise

    async def save(self, owner_id: str, data: ProfileInput) -> Profile:
        existing = await self.get(owner_id)
        fields = data.model_dump()

        if existing is None:
            profile = Profile(owner_id=owner_id, **fields)
            logger.info("profile_store.created", owner_id=owner_id, state=profile.state)
        else:
            profile = Profile(
                id=existing.id,
                owner_id=owner_id,
                created_at=existing.created_at,
                updated_at=datetime.now(UTC),
                **fields,
            )
            logger.info("profile_store.updated", owner_id=owner_id, state=profile.state)

        await self._store.set(owner_id, profile.model_dump(mode="json"))
        return profile
