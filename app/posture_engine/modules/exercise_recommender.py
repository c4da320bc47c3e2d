"""
Exercise Recommender Module for Posture Coach.

Turns a risk analysis into an exercise program. Conditions are visited in
descending risk and their catalog exercises (matched by
``target_condition``) are sorted into three tiers by risk level:

    critical / high -> urgent       (at most 3 exercises)
    medium          -> recommended  (at most 3 exercises)
    low             -> preventive   (at most 2 exercises)

A condition with no matching exercise falls back to the daily posture
routine. Every exercise appears at most once across the tiers.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from ..core.exercise_config import ExerciseConfig
from .exercise_catalog import EXERCISE_CATALOG, get_exercises_by_condition
from .risk_scorer import DiseaseRiskAnalysis, RiskLevel


MAX_URGENT = 3
MAX_RECOMMENDED = 3
MAX_PREVENTIVE = 2
MAX_DAILY_ROUTINE = 6

# Whole-body routine, also the fallback for unmapped conditions
DAILY_POSTURE_EXERCISES = (
    "chin-tuck", "shoulder-blade-squeeze", "neck-side-stretch",
    "shoulder-squeeze", "arm-raise", "squat",
)

# Overall risk lower bound -> weekly goal
WEEKLY_GOALS = {
    70: "Start with light stretching at least 3 times a week",
    50: "Follow the recommended program at least 4 times a week",
    25: "Keep exercising at least 5 times a week to stay healthy",
    0: "Maintain your current posture and exercise at least 3 times a week",
}


@dataclass
class ExerciseRecommendation:
    """Exercise program built from one risk analysis."""
    urgent: List[ExerciseConfig] = field(default_factory=list)
    recommended: List[ExerciseConfig] = field(default_factory=list)
    preventive: List[ExerciseConfig] = field(default_factory=list)
    daily_routine: List[str] = field(default_factory=list)
    weekly_goal: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "urgent": [c.to_dict() for c in self.urgent],
            "recommended": [c.to_dict() for c in self.recommended],
            "preventive": [c.to_dict() for c in self.preventive],
            "daily_routine": list(self.daily_routine),
            "weekly_goal": self.weekly_goal,
        }


def get_weekly_goal(overall_risk: float) -> str:
    for lower_bound in sorted(WEEKLY_GOALS, reverse=True):
        if overall_risk >= lower_bound:
            return WEEKLY_GOALS[lower_bound]
    return WEEKLY_GOALS[0]


def _daily_posture(catalog: Mapping[str, ExerciseConfig]) -> List[ExerciseConfig]:
    return [catalog[i] for i in DAILY_POSTURE_EXERCISES if i in catalog]


def recommend_exercises(
    analysis: DiseaseRiskAnalysis,
    catalog: Optional[Mapping[str, ExerciseConfig]] = None
) -> ExerciseRecommendation:
    """
    Recommend exercises for a risk analysis.

    Args:
        analysis: Risk analysis, conditions in descending risk.
        catalog: Exercise catalog, defaults to the built-in one.

    Returns:
        ExerciseRecommendation with urgent, recommended and preventive
        tiers, a daily routine of up to six exercise ids and a weekly goal.
    """
    catalog = EXERCISE_CATALOG if catalog is None else catalog
    recommendation = ExerciseRecommendation(weekly_goal=get_weekly_goal(analysis.overall_risk))
    used = set()

    for disease in analysis.diseases:
        configs = get_exercises_by_condition(disease.id, catalog) or _daily_posture(catalog)

        if disease.level in (RiskLevel.CRITICAL, RiskLevel.HIGH):
            tier, limit = recommendation.urgent, MAX_URGENT
        elif disease.level == RiskLevel.MEDIUM:
            tier, limit = recommendation.recommended, MAX_RECOMMENDED
        else:
            tier, limit = recommendation.preventive, MAX_PREVENTIVE

        for config in configs:
            if config.id in used or len(tier) >= limit:
                continue
            tier.append(config)
            used.add(config.id)

    # Routine: selected exercises first, topped up from the daily routine
    routine = recommendation.urgent + recommendation.recommended + recommendation.preventive
    for config in routine + _daily_posture(catalog):
        if config.id not in recommendation.daily_routine:
            recommendation.daily_routine.append(config.id)
    del recommendation.daily_routine[MAX_DAILY_ROUTINE:]

    return recommendation
