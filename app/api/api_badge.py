from typing import Any
from fastapi import APIRouter, Depends
import logging

from app.schemas.sche_badge import BadgeCheckContextRequest, BadgeUpdateResponse
from app.schemas.sche_base import DataResponse
from app.services.srv_badge import BadgeService

router = APIRouter()

logger = logging.getLogger(__name__)


@router.get('/{user_id}', response_model=DataResponse[BadgeUpdateResponse])
def get_badges(
    user_id: str,
    badge_service: BadgeService = Depends()
) -> Any:
    """Current badges of a user, unearned ones included."""
    return DataResponse().success_response(data=badge_service.get_badges(user_id))


@router.post('/{user_id}/evaluate', response_model=DataResponse[BadgeUpdateResponse])
def evaluate_badges(
    user_id: str,
    context: BadgeCheckContextRequest,
    badge_service: BadgeService = Depends()
) -> Any:
    """
    Evaluate badges against an explicit history snapshot.

    Earned badges are never revoked. When saving fails the response still
    lists the newly earned badges with `persisted` set to false.
    """
    logger.info(f"evaluate_badges request: user_id={user_id}")
    return DataResponse().success_response(data=badge_service.evaluate(user_id, context.to_context()))
