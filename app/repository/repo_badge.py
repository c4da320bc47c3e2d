import json
import logging
from datetime import datetime, timezone
from typing import List

from fastapi import Depends
from pydantic import ValidationError

from app.posture_engine.modules import UserBadge, get_initial_badges
from app.repository.repo_storage import StorageBackend, StorageError, get_storage
from app.schemas.sche_badge import BadgeStoragePayload, StoredBadge

logger = logging.getLogger(__name__)


def badge_storage_key(user_id: str) -> str:
    return f"user_badges:{user_id}"


class BadgeRepository:
    def __init__(self, storage: StorageBackend):
        self.storage = storage

    def load_badges(self, user_id: str) -> List[UserBadge]:
        """
        Stored badges of a user.

        Absent, unreadable, corrupt or foreign records all fall back to the
        initial (unearned) badge list.
        """
        key = badge_storage_key(user_id)
        try:
            raw = self.storage.load(key)
        except StorageError as e:
            logger.warning(f"load_badges: storage unavailable for user_id={user_id}: {str(e)}")
            return get_initial_badges()

        if raw is None:
            return get_initial_badges()

        try:
            payload = BadgeStoragePayload.model_validate(json.loads(raw))
        except (ValueError, ValidationError) as e:
            logger.warning(f"load_badges: corrupt badge record for user_id={user_id}: {str(e)}")
            return get_initial_badges()

        if payload.user_id != user_id:
            logger.warning(f"load_badges: record owner mismatch, expected {user_id}, got {payload.user_id}")
            return get_initial_badges()

        return [UserBadge(id=b.id, earned_at=b.earned_at) for b in payload.badges]

    def save_badges(self, user_id: str, badges: List[UserBadge]) -> bool:
        payload = BadgeStoragePayload(
            user_id=user_id,
            badges=[StoredBadge(id=b.id, earned_at=b.earned_at) for b in badges],
            last_updated=datetime.now(timezone.utc).isoformat(),
        )
        data = payload.model_dump_json(by_alias=True).encode('utf-8')
        saved = self.storage.save(badge_storage_key(user_id), data)
        if not saved:
            logger.warning(f"save_badges: write failed for user_id={user_id}")
        return saved


def get_badge_repository(storage: StorageBackend = Depends(get_storage)) -> BadgeRepository:
    return BadgeRepository(storage)
