"""
Exercise Catalog Module for Posture Coach.

Static catalog of countable exercises. Thresholds are normalized image
coordinates measured on a front-facing camera.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from ..core.exercise_config import ExerciseConfig, ExerciseConfigError

logger = logging.getLogger(__name__)


EXERCISE_RECORDS: List[Dict[str, Any]] = [
    # Forward head
    {
        "id": "chin-tuck",
        "name": "Chin Tuck",
        "target_condition": "forward_head",
        "joint": "nose",
        "axis": "y",
        "threshold_up": 0.28,    # chin pulled back, nose slightly higher
        "threshold_down": 0.32,  # neutral head position
        "cooldown_ms": 500,
        "sets_target": 3,
        "reps_per_set_target": 10,
        "rest_time_sec": 15,
    },
    {
        "id": "neck-side-stretch",
        "name": "Neck Side Stretch",
        "target_condition": "forward_head",
        "joint": "nose",
        "axis": "x",
        "mirror": True,
        "threshold_up": 0.45,
        "threshold_down": 0.55,
        "cooldown_ms": 800,
        "sets_target": 2,
        "reps_per_set_target": 8,
        "rest_time_sec": 10,
    },

    # Round shoulder
    {
        "id": "shoulder-squeeze",
        "name": "Shoulder Shrug",
        "target_condition": "round_shoulder",
        "joint": "shoulder",
        "axis": "y",
        "threshold_up": 0.32,    # shoulders raised
        "threshold_down": 0.38,  # shoulders lowered
        "cooldown_ms": 400,
        "sets_target": 3,
        "reps_per_set_target": 12,
        "rest_time_sec": 15,
    },
    {
        "id": "shoulder-blade-squeeze",
        "name": "Shoulder Blade Squeeze",
        "target_condition": "round_shoulder",
        "joint": "shoulder",
        "axis": "x",
        "threshold_up": 0.35,
        "threshold_down": 0.42,
        "cooldown_ms": 600,
        "sets_target": 3,
        "reps_per_set_target": 10,
        "rest_time_sec": 15,
    },

    # Lower body
    {
        "id": "squat",
        "name": "Squat",
        "target_condition": "knee_pelvis",
        "joint": "hip",
        "axis": "y",
        "threshold_up": 0.50,    # standing
        "threshold_down": 0.65,  # seated
        "cooldown_ms": 500,
        "sets_target": 3,
        "reps_per_set_target": 10,
        "rest_time_sec": 30,
    },
    {
        "id": "knee-lift",
        "name": "Knee Lift",
        "target_condition": "hip_pelvis",
        "joint": "knee",
        "axis": "y",
        "threshold_up": 0.55,
        "threshold_down": 0.75,
        "cooldown_ms": 400,
        "sets_target": 2,
        "reps_per_set_target": 10,
        "rest_time_sec": 15,
    },

    # Arms
    {
        "id": "arm-raise",
        "name": "Arm Raise",
        "target_condition": "shoulder_mobility",
        "joint": "wrist",
        "axis": "y",
        "threshold_up": 0.25,    # arms raised
        "threshold_down": 0.55,  # arms lowered
        "cooldown_ms": 500,
        "sets_target": 2,
        "reps_per_set_target": 10,
        "rest_time_sec": 15,
    },
    {
        "id": "elbow-flex",
        "name": "Elbow Flex",
        "target_condition": "arm_strength",
        "joint": "wrist",
        "axis": "y",
        "threshold_up": 0.30,
        "threshold_down": 0.50,
        "cooldown_ms": 400,
        "sets_target": 3,
        "reps_per_set_target": 12,
        "rest_time_sec": 15,
    },
]


def load_exercise_catalog(
    records: Iterable[Mapping[str, Any]],
    strict: bool = False
) -> Dict[str, ExerciseConfig]:
    """
    Validate exercise records and build the catalog.

    Invalid records are never offered to a session: in strict mode the first
    one raises, otherwise it is logged and left out.

    Args:
        records: Raw exercise records.
        strict: Raise instead of skipping invalid records.

    Returns:
        Mapping exercise id -> config, in record order.

    Raises:
        ExerciseConfigError: Invalid or duplicate record in strict mode.
    """
    catalog: Dict[str, ExerciseConfig] = {}
    for record in records:
        try:
            config = ExerciseConfig.from_dict(record)
            if config.id in catalog:
                raise ExerciseConfigError(f"{config.id}: duplicate exercise id")
        except ExerciseConfigError as e:
            if strict:
                raise
            logger.error(f"load_exercise_catalog: rejected exercise config: {e}")
            continue
        catalog[config.id] = config

    logger.info(f"load_exercise_catalog: {len(catalog)} exercises loaded")
    return catalog


def load_exercise_catalog_file(path: Union[str, Path], strict: bool = False) -> Dict[str, ExerciseConfig]:
    """
    Load the catalog from a JSON file holding a list of exercise records.

    Raises:
        ExerciseConfigError: File is not a JSON list.
    """
    path = Path(path)
    with open(path, 'r', encoding='utf-8') as f:
        records = json.load(f)

    if not isinstance(records, list):
        raise ExerciseConfigError(f"{path}: expected a list of exercise records")

    return load_exercise_catalog(records, strict=strict)


EXERCISE_CATALOG: Dict[str, ExerciseConfig] = load_exercise_catalog(EXERCISE_RECORDS, strict=True)


def get_exercise_config(exercise_id: str, catalog: Optional[Mapping[str, ExerciseConfig]] = None) -> Optional[ExerciseConfig]:
    """Find an exercise by id."""
    catalog = EXERCISE_CATALOG if catalog is None else catalog
    return catalog.get(exercise_id)


def get_exercises_by_condition(condition: str, catalog: Optional[Mapping[str, ExerciseConfig]] = None) -> List[ExerciseConfig]:
    """Exercises addressing a postural condition (case-insensitive substring match)."""
    catalog = EXERCISE_CATALOG if catalog is None else catalog
    needle = condition.lower()
    return [c for c in catalog.values() if needle in c.target_condition.lower()]
