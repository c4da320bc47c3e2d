"""
Exercise configuration records for repetition counting.

Each countable exercise tracks one coordinate of one joint. The value moves
between a released ("rest") position and an engaged position; two distinct
thresholds form the hysteresis band:

    value >= threshold_down  -> ENGAGED
    value <= threshold_up    -> back to REST, one repetition

All configurations use threshold_up < threshold_down.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping

from .data_types import Axis, JOINT_INDEX_MAP


class ExerciseConfigError(ValueError):
    """Raised when an exercise configuration cannot be used for counting."""


def _bool_field(data: Mapping[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ExerciseConfigError(f"{data.get('id', '<unknown>')}: {key} must be a boolean, got {value!r}")
    return value


def _int_field(data: Mapping[str, Any], key: str, default: int) -> int:
    """Integer field; integral floats such as 500.0 are accepted, bools and fractions are not."""
    value = data.get(key, default)
    if isinstance(value, bool) or not (isinstance(value, int) or (isinstance(value, float) and value.is_integer())):
        raise ExerciseConfigError(f"{data.get('id', '<unknown>')}: {key} must be an integer, got {value!r}")
    return int(value)


@dataclass(frozen=True)
class ExerciseConfig:
    """
    Immutable counting configuration for one exercise.

    Attributes:
        id: Unique exercise id.
        name: Display name.
        joint: Joint selector ('nose', 'shoulder', 'hip', 'knee', 'wrist', 'elbow').
        axis: Axis of the tracked coordinate.
        mirror: Flip the x axis (front-facing camera).
        threshold_up: Release threshold (rest side of the band).
        threshold_down: Engage threshold.
        cooldown_ms: Minimum time between two counted repetitions.
        sets_target: Number of sets in a session.
        reps_per_set_target: Repetitions per set.
        rest_time_sec: Rest between sets.
        target_condition: Postural condition the exercise addresses.
    """
    id: str
    name: str
    joint: str
    axis: Axis
    threshold_up: float
    threshold_down: float
    mirror: bool = False
    cooldown_ms: int = 300
    sets_target: int = 1
    reps_per_set_target: int = 10
    rest_time_sec: int = 15
    target_condition: str = ""

    def __post_init__(self):
        try:
            object.__setattr__(self, "axis", Axis(self.axis))
        except ValueError:
            raise ExerciseConfigError(f"{self.id}: unknown axis {self.axis!r}")
        validate_exercise_config(self)

    @property
    def target_total_reps(self) -> int:
        return self.sets_target * self.reps_per_set_target

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ExerciseConfig":
        """
        Build a config from a plain record.

        Raises:
            ExerciseConfigError: Missing fields or invalid values.
        """
        try:
            return cls(
                id=str(data["id"]),
                name=str(data.get("name", data["id"])),
                joint=str(data["joint"]),
                axis=data["axis"],
                threshold_up=float(data["threshold_up"]),
                threshold_down=float(data["threshold_down"]),
                mirror=_bool_field(data, "mirror", False),
                cooldown_ms=_int_field(data, "cooldown_ms", 300),
                sets_target=_int_field(data, "sets_target", 1),
                reps_per_set_target=_int_field(data, "reps_per_set_target", 10),
                rest_time_sec=_int_field(data, "rest_time_sec", 15),
                target_condition=str(data.get("target_condition", "")),
            )
        except KeyError as e:
            raise ExerciseConfigError(f"{data.get('id', '<unknown>')}: missing field {e.args[0]}")
        except (TypeError, ValueError) as e:
            if isinstance(e, ExerciseConfigError):
                raise
            raise ExerciseConfigError(f"{data.get('id', '<unknown>')}: {e}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "joint": self.joint,
            "axis": self.axis.value,
            "mirror": self.mirror,
            "threshold_up": self.threshold_up,
            "threshold_down": self.threshold_down,
            "cooldown_ms": self.cooldown_ms,
            "sets_target": self.sets_target,
            "reps_per_set_target": self.reps_per_set_target,
            "rest_time_sec": self.rest_time_sec,
            "target_condition": self.target_condition,
        }


def validate_exercise_config(config: ExerciseConfig) -> None:
    """
    Check a configuration before it is offered to a session.

    Raises:
        ExerciseConfigError: On the first violated constraint.
    """
    if config.joint not in JOINT_INDEX_MAP:
        raise ExerciseConfigError(f"{config.id}: unknown joint {config.joint!r}")

    for label, value in (("threshold_up", config.threshold_up),
                         ("threshold_down", config.threshold_down)):
        if not 0.0 <= value <= 1.0:
            raise ExerciseConfigError(f"{config.id}: {label}={value} outside [0, 1]")

    if config.threshold_up == config.threshold_down:
        raise ExerciseConfigError(
            f"{config.id}: degenerate hysteresis band (threshold_up == threshold_down == {config.threshold_up})"
        )
    # Inverted bands are ambiguous, only up < down is supported
    if config.threshold_up > config.threshold_down:
        raise ExerciseConfigError(
            f"{config.id}: threshold_up ({config.threshold_up}) must be below threshold_down ({config.threshold_down})"
        )

    if config.cooldown_ms < 0:
        raise ExerciseConfigError(f"{config.id}: cooldown_ms must be >= 0")
    if config.sets_target < 1:
        raise ExerciseConfigError(f"{config.id}: sets_target must be >= 1")
    if config.reps_per_set_target < 1:
        raise ExerciseConfigError(f"{config.id}: reps_per_set_target must be >= 1")
    if config.rest_time_sec < 0:
        raise ExerciseConfigError(f"{config.id}: rest_time_sec must be >= 0")
