"""
Modules Package for Posture Coach.

Contains the catalogs, posture analysis, the risk scorer, exercise
recommendation, the badge evaluator and streak calculation.
"""

from .exercise_catalog import (
    EXERCISE_CATALOG, EXERCISE_RECORDS, load_exercise_catalog, load_exercise_catalog_file,
    get_exercise_config, get_exercises_by_condition,
)
from .disease_catalog import (
    DISEASE_DEFINITIONS, DiseaseDefinition, DiseaseConfigError, ItemThreshold,
    MeasurementKind, item_threshold, get_disease_definition,
)
from .risk_scorer import (
    AnalysisItem, DiseaseRisk, DiseaseRiskAnalysis, RiskLevel,
    analyze_disease_risk, calculate_item_risk, calculate_disease_risk, get_risk_level,
)
from .badge_catalog import BADGE_DEFINITIONS, BadgeCategory, BadgeDefinition, BadgeId, get_badge_definition
from .badge_evaluator import (
    UserBadge, BadgeCheckContext, BadgeUpdate, update_badges, check_badge_condition,
    get_initial_badges, get_earned_badge_count,
)
from .streak import StreakSummary, calculate_streak
from .posture_analysis import (
    PostureAnalysis, PostureGrade, PostureItem, analyze_posture, calculate_overall_score,
    overall_score_from_scores,
)
from .exercise_recommender import ExerciseRecommendation, recommend_exercises

__all__ = [
    # Exercise catalog
    'EXERCISE_CATALOG', 'EXERCISE_RECORDS', 'load_exercise_catalog', 'load_exercise_catalog_file',
    'get_exercise_config', 'get_exercises_by_condition',

    # Disease catalog
    'DISEASE_DEFINITIONS', 'DiseaseDefinition', 'DiseaseConfigError', 'ItemThreshold',
    'MeasurementKind', 'item_threshold', 'get_disease_definition',

    # Risk scoring
    'AnalysisItem', 'DiseaseRisk', 'DiseaseRiskAnalysis', 'RiskLevel',
    'analyze_disease_risk', 'calculate_item_risk', 'calculate_disease_risk', 'get_risk_level',

    # Badges
    'BADGE_DEFINITIONS', 'BadgeCategory', 'BadgeDefinition', 'BadgeId', 'get_badge_definition',
    'UserBadge', 'BadgeCheckContext', 'BadgeUpdate', 'update_badges', 'check_badge_condition',
    'get_initial_badges', 'get_earned_badge_count',

    # Streak
    'StreakSummary', 'calculate_streak',

    # Posture analysis and exercise recommendation
    'PostureAnalysis', 'PostureGrade', 'PostureItem', 'analyze_posture', 'calculate_overall_score',
    'overall_score_from_scores',
    'ExerciseRecommendation', 'recommend_exercises',
]
