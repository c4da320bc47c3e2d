"""
Utils Package for Posture Coach.

- logger: per-session event log
- math_utils: rounding and clamping helpers
"""

from .logger import (
    SessionLogger,
    LogLevel,
    LogCategory,
    LogEntry,
    create_session_logger,
)
from .math_utils import round_half_up, clamp_score

__all__ = [
    "SessionLogger",
    "LogLevel",
    "LogCategory",
    "LogEntry",
    "create_session_logger",
    "round_half_up",
    "clamp_score",
]
