"""
Badge Catalog Module for Posture Coach.

Achievement badges. Only ids and categories live here; names, icons and
colors belong to the client.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


class BadgeCategory(str, Enum):
    """Badge categories."""
    MILESTONE = "milestone"
    STREAK = "streak"
    IMPROVEMENT = "improvement"
    ACHIEVEMENT = "achievement"


class BadgeId(str, Enum):
    """Badge ids."""
    FIRST_ANALYSIS = "first_analysis"
    STREAK_3 = "streak_3"
    STREAK_7 = "streak_7"
    STREAK_30 = "streak_30"
    FIRST_IMPROVEMENT = "first_improvement"
    TURTLE_NECK_ESCAPE = "turtle_neck_escape"
    SHOULDER_BALANCE = "shoulder_balance"
    PERFECT_POSTURE = "perfect_posture"


@dataclass(frozen=True)
class BadgeDefinition:
    """Static catalog entry."""
    id: BadgeId
    category: BadgeCategory


BADGE_DEFINITIONS: List[BadgeDefinition] = [
    BadgeDefinition(BadgeId.FIRST_ANALYSIS, BadgeCategory.MILESTONE),
    BadgeDefinition(BadgeId.STREAK_3, BadgeCategory.STREAK),
    BadgeDefinition(BadgeId.STREAK_7, BadgeCategory.STREAK),
    BadgeDefinition(BadgeId.STREAK_30, BadgeCategory.STREAK),
    BadgeDefinition(BadgeId.FIRST_IMPROVEMENT, BadgeCategory.IMPROVEMENT),
    BadgeDefinition(BadgeId.TURTLE_NECK_ESCAPE, BadgeCategory.ACHIEVEMENT),
    BadgeDefinition(BadgeId.SHOULDER_BALANCE, BadgeCategory.ACHIEVEMENT),
    BadgeDefinition(BadgeId.PERFECT_POSTURE, BadgeCategory.ACHIEVEMENT),
]


def get_badge_definition(badge_id: str) -> Optional[BadgeDefinition]:
    """Find a badge definition by id."""
    for definition in BADGE_DEFINITIONS:
        if definition.id.value == badge_id:
            return definition
    return None
