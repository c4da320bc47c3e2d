"""
Badge Evaluator Module for Posture Coach.

Evaluates achievement badges against a history snapshot. Earning is
permanent: once ``earned_at`` is set it is copied forward unchanged and the
badge condition is never checked again.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from .badge_catalog import BADGE_DEFINITIONS, BadgeDefinition, BadgeId


IMPROVEMENT_MIN_DELTA = 5
NORMAL_RANGE_SCORE = 75
PERFECT_POSTURE_SCORE = 90


@dataclass(frozen=True)
class UserBadge:
    """
    Badge state of one user.

    Attributes:
        id: Badge id.
        earned_at: ISO timestamp when earned, None if not earned.
    """
    id: str
    earned_at: Optional[str] = None

    @property
    def is_earned(self) -> bool:
        return self.earned_at is not None

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "earned_at": self.earned_at}


@dataclass(frozen=True)
class BadgeCheckContext:
    """History snapshot used to check badge conditions."""
    total_analyses: int = 0
    current_streak: int = 0
    latest_score: float = 0.0
    previous_score: Optional[float] = None
    head_forward_score: float = 0.0
    shoulder_balance_score: float = 0.0
    overall_score: float = 0.0


@dataclass(frozen=True)
class BadgeUpdate:
    """Result of one evaluation."""
    badges: List[UserBadge]
    newly_earned: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "badges": [b.to_dict() for b in self.badges],
            "newly_earned": list(self.newly_earned),
        }


def _first_improvement(context: BadgeCheckContext) -> bool:
    if context.previous_score is None:
        return False
    return context.latest_score - context.previous_score >= IMPROVEMENT_MIN_DELTA


BADGE_CONDITIONS: Mapping[BadgeId, Callable[[BadgeCheckContext], bool]] = {
    BadgeId.FIRST_ANALYSIS: lambda c: c.total_analyses >= 1,
    BadgeId.STREAK_3: lambda c: c.current_streak >= 3,
    BadgeId.STREAK_7: lambda c: c.current_streak >= 7,
    BadgeId.STREAK_30: lambda c: c.current_streak >= 30,
    BadgeId.FIRST_IMPROVEMENT: _first_improvement,
    # 75 and above is the normal range for both item scores
    BadgeId.TURTLE_NECK_ESCAPE: lambda c: c.head_forward_score >= NORMAL_RANGE_SCORE,
    BadgeId.SHOULDER_BALANCE: lambda c: c.shoulder_balance_score >= NORMAL_RANGE_SCORE,
    BadgeId.PERFECT_POSTURE: lambda c: c.overall_score >= PERFECT_POSTURE_SCORE,
}


def check_badge_condition(badge_id: str, context: BadgeCheckContext) -> bool:
    """True if the badge condition holds for ``context``. Unknown ids never hold."""
    try:
        condition = BADGE_CONDITIONS[BadgeId(badge_id)]
    except ValueError:
        return False
    return condition(context)


def get_initial_badges(catalog: Sequence[BadgeDefinition] = BADGE_DEFINITIONS) -> List[UserBadge]:
    """All badges, none earned."""
    return [UserBadge(id=d.id.value) for d in catalog]


def get_earned_badge_count(badges: Sequence[UserBadge]) -> int:
    return sum(1 for b in badges if b.is_earned)


def update_badges(
    current_badges: Sequence[UserBadge],
    context: BadgeCheckContext,
    now: Optional[str] = None,
    catalog: Sequence[BadgeDefinition] = BADGE_DEFINITIONS
) -> BadgeUpdate:
    """
    Evaluate every catalog badge.

    Args:
        current_badges: Previous badge states (any order, may be partial).
        context: History snapshot.
        now: ISO timestamp to stamp new badges with, None for current UTC time.
        catalog: Badge definitions, output follows this order.

    Returns:
        BadgeUpdate with one entry per definition and the ids earned by this
        call.
    """
    if now is None:
        now = datetime.now(timezone.utc).isoformat()

    existing: Dict[str, UserBadge] = {}
    for badge in current_badges:
        existing.setdefault(badge.id, badge)

    badges: List[UserBadge] = []
    newly_earned: List[str] = []

    for definition in catalog:
        badge_id = definition.id.value
        previous = existing.get(badge_id)

        if previous is not None and previous.is_earned:
            badges.append(previous)
            continue

        if check_badge_condition(badge_id, context):
            badges.append(UserBadge(id=badge_id, earned_at=now))
            newly_earned.append(badge_id)
        else:
            badges.append(UserBadge(id=badge_id, earned_at=None))

    return BadgeUpdate(badges=badges, newly_earned=newly_earned)
