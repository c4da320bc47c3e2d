"""
Core Module for Posture Coach.

Contains landmark types, the joint value projector and the repetition
state machine.
"""

from .data_types import (
    Axis, RepPhase, LandmarkPoint, PoseLandmarkIndex, JOINT_INDEX_MAP,
    VISIBILITY_THRESHOLD, parse_landmarks,
)
from .exercise_config import ExerciseConfig, ExerciseConfigError, validate_exercise_config
from .projector import project_joint_value, project_for_config
from .rep_counter import (
    RepetitionCounter, CounterState, CounterUpdate, ExerciseResult,
    calculate_accuracy, monotonic_ms,
)
from .smoothing import ValueSmoother

__all__ = [
    # Data types
    'Axis', 'RepPhase', 'LandmarkPoint', 'PoseLandmarkIndex', 'JOINT_INDEX_MAP',
    'VISIBILITY_THRESHOLD', 'parse_landmarks',

    # Exercise config
    'ExerciseConfig', 'ExerciseConfigError', 'validate_exercise_config',

    # Projector
    'project_joint_value', 'project_for_config',

    # Repetition counter
    'RepetitionCounter', 'CounterState', 'CounterUpdate', 'ExerciseResult',
    'calculate_accuracy', 'monotonic_ms',

    # Smoothing
    'ValueSmoother',
]
