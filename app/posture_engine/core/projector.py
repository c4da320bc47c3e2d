"""
Joint Value Projector for Posture Coach.

Reduces a full landmark frame to the single scalar a repetition counter
tracks: one coordinate of one joint (or the midpoint of a left/right pair).
"""

from typing import Optional, TYPE_CHECKING

from .data_types import (
    Axis, JOINT_INDEX_MAP, LandmarkList, LandmarkPoint, VISIBILITY_THRESHOLD,
)

if TYPE_CHECKING:
    from .exercise_config import ExerciseConfig


def _usable_point(
    landmarks: LandmarkList,
    index: int,
    visibility_threshold: float
) -> Optional[LandmarkPoint]:
    """Return the landmark at ``index`` if present and visible enough."""
    if index < 0 or index >= len(landmarks):
        return None
    point = landmarks[index]
    if point is None or not point.is_visible(visibility_threshold):
        return None
    return point


def project_joint_value(
    landmarks: LandmarkList,
    joint: str,
    axis: Axis,
    mirror: bool = False,
    visibility_threshold: float = VISIBILITY_THRESHOLD
) -> Optional[float]:
    """
    Extract the normalized coordinate of a joint.

    For paired joints:
        - both sides visible -> midpoint
        - one side visible -> that side
        - neither visible -> None

    Args:
        landmarks: Pose landmarks of one frame (33 points).
        joint: Joint selector name (see ``JOINT_INDEX_MAP``).
        axis: Axis to read.
        mirror: Flip the x axis for a front-facing camera.
        visibility_threshold: Minimum visibility for a usable landmark.

    Returns:
        Coordinate in [0, 1], or None when the joint is occluded.

    Raises:
        KeyError: Unknown joint selector.
    """
    axis = Axis(axis)
    indices = JOINT_INDEX_MAP[joint]

    if isinstance(indices, int):
        point = _usable_point(landmarks, indices, visibility_threshold)
        if point is None:
            return None
        value = point.coordinate(axis)
    else:
        left = _usable_point(landmarks, indices[0], visibility_threshold)
        right = _usable_point(landmarks, indices[1], visibility_threshold)

        if left is not None and right is not None:
            value = (left.coordinate(axis) + right.coordinate(axis)) / 2
        elif left is not None:
            value = left.coordinate(axis)
        elif right is not None:
            value = right.coordinate(axis)
        else:
            return None

    if mirror and axis == Axis.X:
        value = 1.0 - value

    return value


def project_for_config(
    landmarks: LandmarkList,
    config: "ExerciseConfig",
    visibility_threshold: float = VISIBILITY_THRESHOLD
) -> Optional[float]:
    """Project a frame using the joint, axis and mirror flag of an exercise."""
    return project_joint_value(
        landmarks,
        config.joint,
        config.axis,
        mirror=config.mirror,
        visibility_threshold=visibility_threshold,
    )
