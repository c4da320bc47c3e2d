# Posture Engine Package
# Landmark -> joint value -> repetition counting, risk scoring and badges

from .core import ExerciseConfig, ExerciseConfigError, RepetitionCounter, project_joint_value
from .modules import analyze_disease_risk, update_badges, calculate_streak
from .utils import SessionLogger

__all__ = [
    'ExerciseConfig',
    'ExerciseConfigError',
    'RepetitionCounter',
    'project_joint_value',
    'analyze_disease_risk',
    'update_badges',
    'calculate_streak',
    'SessionLogger'
]
