"""
Disease Catalog Module for Posture Coach.

Postural conditions tracked by the risk scorer. Each condition weights a
few posture measurements and maps each measurement onto a risk through a
warning / danger threshold pair.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Mapping


class DiseaseConfigError(ValueError):
    """Raised when a disease definition cannot be scored."""


class MeasurementKind(str, Enum):
    """
    Direction of a posture measurement.

    ANGLE: larger is healthier (e.g. knee angle, 180 is straight).
    DISTANCE: larger is worse (forward offsets, tilts).
    """
    ANGLE = "angle"
    DISTANCE = "distance"


# Measurements scored as angles, everything else is a distance/tilt
ANGLE_ITEM_IDS = frozenset({"knee_angle"})


@dataclass(frozen=True)
class ItemThreshold:
    """
    Warning / danger pair for one measurement.

    Attributes:
        warning: Boundary where risk starts rising from 0.
        danger: Boundary where risk reaches 50.
        kind: Measurement direction.
    """
    warning: float
    danger: float
    kind: MeasurementKind = MeasurementKind.DISTANCE

    def __post_init__(self):
        object.__setattr__(self, "kind", MeasurementKind(self.kind))
        if self.warning == self.danger:
            raise DiseaseConfigError(
                f"zero-width threshold range (warning == danger == {self.warning})"
            )
        if self.kind == MeasurementKind.DISTANCE and self.danger < self.warning:
            raise DiseaseConfigError(
                f"distance threshold needs danger > warning (got {self.warning}, {self.danger})"
            )
        if self.kind == MeasurementKind.ANGLE and self.danger > self.warning:
            raise DiseaseConfigError(
                f"angle threshold needs danger < warning (got {self.warning}, {self.danger})"
            )


def item_threshold(item_id: str, warning: float, danger: float) -> ItemThreshold:
    """Build a threshold, choosing the kind from the measurement id."""
    kind = MeasurementKind.ANGLE if item_id in ANGLE_ITEM_IDS else MeasurementKind.DISTANCE
    return ItemThreshold(warning=warning, danger=danger, kind=kind)


@dataclass(frozen=True)
class DiseaseDefinition:
    """
    Static definition of one postural condition.

    Attributes:
        id: Condition id.
        weights: Measurement id -> weight within this condition.
        thresholds: Measurement id -> threshold pair.
        overall_weight: Weight of this condition in the overall risk.
        tip: Specific recommendation when the condition's risk is high.
    """
    id: str
    weights: Mapping[str, float]
    thresholds: Mapping[str, ItemThreshold]
    overall_weight: float = 0.5
    tip: str = ""

    def __post_init__(self):
        for item_id, weight in self.weights.items():
            if weight < 0:
                raise DiseaseConfigError(f"{self.id}: negative weight for {item_id}")
            if item_id not in self.thresholds:
                raise DiseaseConfigError(f"{self.id}: no threshold for weighted item {item_id}")
        if self.overall_weight < 0:
            raise DiseaseConfigError(f"{self.id}: negative overall weight")


DISEASE_DEFINITIONS: List[DiseaseDefinition] = [
    DiseaseDefinition(
        id="forward_head",
        weights={"forward_head": 0.8, "shoulder_tilt": 0.2},
        thresholds={
            "forward_head": item_threshold("forward_head", warning=2, danger=3.5),
            "shoulder_tilt": item_threshold("shoulder_tilt", warning=1.5, danger=3),
        },
        overall_weight=0.5,
        tip="Do chin tucks and neck stretches every day.",
    ),
    DiseaseDefinition(
        id="round_shoulder",
        weights={"shoulder_tilt": 0.7, "forward_head": 0.3},
        thresholds={
            "shoulder_tilt": item_threshold("shoulder_tilt", warning=1.5, danger=2.5),
            "forward_head": item_threshold("forward_head", warning=3, danger=5),
        },
        overall_weight=0.5,
        tip="Shoulder blade squeezes and shoulder stretches are recommended.",
    ),
]


def get_disease_definition(disease_id: str) -> DiseaseDefinition:
    """
    Raises:
        KeyError: Unknown condition id.
    """
    for definition in DISEASE_DEFINITIONS:
        if definition.id == disease_id:
            return definition
    raise KeyError(disease_id)


# Bracket lower bound -> generic recommendation pair, highest bracket first
GENERIC_RECOMMENDATIONS: Dict[int, List[str]] = {
    75: [
        "A consultation with a medical professional is strongly recommended.",
        "Avoid strenuous exercise and start training under professional guidance.",
    ],
    50: [
        "Regular posture correction exercises are needed.",
        "Consider seeing a specialist if the symptoms persist.",
    ],
    25: [
        "Keep up preventive stretching.",
        "Avoid holding the same posture for long periods and move often.",
    ],
    0: [
        "Your posture is currently in good shape.",
        "Keep exercising regularly to maintain a good posture.",
    ],
}
