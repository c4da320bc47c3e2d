import logging
from typing import Optional

from fastapi import Depends

from app.posture_engine.modules import (
    BadgeCheckContext, UserBadge, get_earned_badge_count, update_badges,
)
from app.repository.repo_badge import BadgeRepository, get_badge_repository
from app.schemas.sche_badge import BadgeUpdateResponse, UserBadgeSchema

BADGE_SAVE_WARNING = "Badges could not be saved, they will be evaluated again on the next analysis"


def _to_response(badges, newly_earned, persisted: bool = True, warning: Optional[str] = None) -> BadgeUpdateResponse:
    return BadgeUpdateResponse(
        badges=[UserBadgeSchema(id=b.id, earned_at=b.earned_at) for b in badges],
        newly_earned=list(newly_earned),
        earned_count=get_earned_badge_count(badges),
        persisted=persisted,
        warning=warning,
    )


class BadgeService:
    def __init__(self, badge_repo: BadgeRepository = Depends(get_badge_repository)):
        self.badge_repo = badge_repo
        self.logger = logging.getLogger(__name__)

    def get_badges(self, user_id: str) -> BadgeUpdateResponse:
        badges = self.badge_repo.load_badges(user_id)
        return _to_response(badges, [])

    def evaluate(self, user_id: str, context: BadgeCheckContext, now: Optional[str] = None) -> BadgeUpdateResponse:
        """
        Evaluate badges for a user and store newly earned ones.

        A failed write is reported through ``persisted`` and ``warning``; the
        newly earned ids are still returned.
        """
        current = self.badge_repo.load_badges(user_id)
        update = update_badges(current, context, now=now)

        persisted = True
        warning = None
        if update.newly_earned:
            self.logger.info(f"evaluate: user_id={user_id} earned {update.newly_earned}")
            persisted = self.badge_repo.save_badges(user_id, update.badges)
            if not persisted:
                warning = BADGE_SAVE_WARNING
                self.logger.warning(f"evaluate: badges of user_id={user_id} not persisted")

        return _to_response(update.badges, update.newly_earned, persisted, warning)
