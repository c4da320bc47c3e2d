import os
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

# Settings are read on first import of app.core.config
os.environ["STORAGE_BACKEND"] = "memory"
os.environ.pop("EXERCISE_CATALOG_FILE", None)
os.environ.pop("SESSION_LOG_DIR", None)

from app.posture_engine.core import ExerciseConfig  # noqa: E402
from app.repository.repo_storage import InMemoryStorage, StorageBackend, StorageError  # noqa: E402


class FailingStorage(StorageBackend):
    """Reads raise, writes fail."""

    def load(self, key):
        raise StorageError("backend down")

    def save(self, key, data):
        return False


class ReadOnlyStorage(InMemoryStorage):
    """Reads work, writes fail."""

    def save(self, key, data):
        return False


def standing_pose(visibility=0.9):
    """
    Front-facing standing frame: ears over the shoulder midpoint, level
    shoulders and hips, straight legs (180 degree knees).
    """
    landmarks = [{"x": 0.5, "y": 0.5, "visibility": visibility} for _ in range(33)]
    points = {
        7: (0.55, 0.2), 8: (0.45, 0.2),      # ears
        11: (0.6, 0.3), 12: (0.4, 0.3),      # shoulders, width 0.2
        23: (0.57, 0.6), 24: (0.43, 0.6),    # hips
        25: (0.57, 0.75), 26: (0.43, 0.75),  # knees
        27: (0.57, 0.9), 28: (0.43, 0.9),    # ankles
    }
    for index, (x, y) in points.items():
        landmarks[index] = {"x": x, "y": y, "visibility": visibility}
    return landmarks


@pytest.fixture
def memory_storage():
    return InMemoryStorage()


@pytest.fixture
def failing_storage():
    return FailingStorage()


@pytest.fixture
def read_only_storage():
    return ReadOnlyStorage()


@pytest.fixture
def chin_tuck_config():
    return ExerciseConfig(
        id="chin-tuck",
        name="Chin Tuck",
        joint="nose",
        axis="y",
        threshold_up=0.28,
        threshold_down=0.32,
        cooldown_ms=500,
        sets_target=3,
        reps_per_set_target=10,
        rest_time_sec=15,
    )


@pytest.fixture
def short_config():
    """Two sets of two reps."""
    return ExerciseConfig(
        id="short",
        name="Short",
        joint="nose",
        axis="y",
        threshold_up=0.28,
        threshold_down=0.32,
        cooldown_ms=500,
        sets_target=2,
        reps_per_set_target=2,
        rest_time_sec=10,
    )
