"""
Data Types Module for Posture Coach.

Standard data classes and type definitions shared by the projector,
the repetition counter and the exercise catalog.

Author: Posture Coach Team
Version: 1.0.0
"""

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union
from enum import Enum

# Landmarks below this visibility are treated as occluded
VISIBILITY_THRESHOLD = 0.5


class Axis(str, Enum):
    """Normalized image axis a joint value is read from."""
    X = "x"
    Y = "y"


class RepPhase(str, Enum):
    """
    Phase of the repetition state machine.

    REST is the initial, released position. ENGAGED is entered once the
    tracked value crosses the engage threshold and left again on release.
    """
    REST = "rest"
    ENGAGED = "engaged"


@dataclass(frozen=True)
class LandmarkPoint:
    """
    One tracked body point.

    Attributes:
        x: Horizontal coordinate, normalized 0-1.
        y: Vertical coordinate, normalized 0-1 (grows downwards).
        z: Depth, not normalized.
        visibility: Detection confidence 0-1; None means unknown and is
            treated as 0.
    """
    x: float
    y: float
    z: float = 0.0
    visibility: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Mapping) -> "LandmarkPoint":
        """Build a point from a ``{x, y, z, visibility}`` mapping."""
        return cls(
            x=float(data["x"]),
            y=float(data["y"]),
            z=float(data.get("z", 0.0) or 0.0),
            visibility=data.get("visibility"),
        )

    @property
    def confidence(self) -> float:
        return self.visibility if self.visibility is not None else 0.0

    def is_visible(self, threshold: float = VISIBILITY_THRESHOLD) -> bool:
        """True if the point is confident enough to be used."""
        return self.confidence >= threshold

    def coordinate(self, axis: Axis) -> float:
        """Coordinate along ``axis``."""
        return self.x if Axis(axis) == Axis.X else self.y


LandmarkList = Sequence[Optional[LandmarkPoint]]


class PoseLandmarkIndex:
    """
    Indices of the 33 MediaPipe Pose landmarks.
    """
    # Face
    NOSE = 0
    LEFT_EYE_INNER = 1
    LEFT_EYE = 2
    LEFT_EYE_OUTER = 3
    RIGHT_EYE_INNER = 4
    RIGHT_EYE = 5
    RIGHT_EYE_OUTER = 6
    LEFT_EAR = 7
    RIGHT_EAR = 8
    MOUTH_LEFT = 9
    MOUTH_RIGHT = 10

    # Upper body
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16
    LEFT_PINKY = 17
    RIGHT_PINKY = 18
    LEFT_INDEX = 19
    RIGHT_INDEX = 20
    LEFT_THUMB = 21
    RIGHT_THUMB = 22

    # Lower body
    LEFT_HIP = 23
    RIGHT_HIP = 24
    LEFT_KNEE = 25
    RIGHT_KNEE = 26
    LEFT_ANKLE = 27
    RIGHT_ANKLE = 28
    LEFT_HEEL = 29
    RIGHT_HEEL = 30
    LEFT_FOOT_INDEX = 31
    RIGHT_FOOT_INDEX = 32

    COUNT = 33


JointIndices = Union[int, Tuple[int, int]]

# Joint selector name -> single index or (left, right) pair
JOINT_INDEX_MAP: Dict[str, JointIndices] = {
    "nose": PoseLandmarkIndex.NOSE,
    "shoulder": (PoseLandmarkIndex.LEFT_SHOULDER, PoseLandmarkIndex.RIGHT_SHOULDER),
    "hip": (PoseLandmarkIndex.LEFT_HIP, PoseLandmarkIndex.RIGHT_HIP),
    "knee": (PoseLandmarkIndex.LEFT_KNEE, PoseLandmarkIndex.RIGHT_KNEE),
    "wrist": (PoseLandmarkIndex.LEFT_WRIST, PoseLandmarkIndex.RIGHT_WRIST),
    "elbow": (PoseLandmarkIndex.LEFT_ELBOW, PoseLandmarkIndex.RIGHT_ELBOW),
}


def parse_landmarks(raw: Sequence[Optional[Mapping]]) -> List[Optional[LandmarkPoint]]:
    """
    Convert a list of landmark mappings to ``LandmarkPoint`` objects.

    Missing entries (None) are preserved so indices stay aligned.
    """
    return [LandmarkPoint.from_dict(item) if item is not None else None for item in raw]
