"""
Logger Module for Posture Coach.

Session event log for exercise sessions.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union
from enum import Enum
import json
import time
from pathlib import Path


class LogLevel(Enum):
    """Log levels."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogCategory(Enum):
    """Log categories."""
    REP = "rep"
    SET = "set"
    SESSION = "session"
    RISK = "risk"
    BADGE = "badge"
    SYSTEM = "system"


@dataclass
class LogEntry:
    """Log entry."""
    timestamp: float
    level: LogLevel
    category: LogCategory
    message: str
    data: Optional[Dict] = None

    def to_dict(self) -> Dict:
        return {
            'timestamp': self.timestamp,
            'level': self.level.value,
            'category': self.category.value,
            'message': self.message,
            'data': self.data
        }


@dataclass
class SessionLogger:
    """
    Logger for exercise sessions.

    Entries are kept in memory; ``save_session_log`` writes them as JSON
    when a log directory is configured.
    """

    session_id: str
    log_dir: Optional[Union[str, Path]] = None
    entries: List[LogEntry] = field(default_factory=list)

    def __post_init__(self):
        if self.log_dir is not None:
            self.log_dir = Path(self.log_dir)
            self.log_dir.mkdir(parents=True, exist_ok=True)

    def log(self, level: LogLevel, category: LogCategory, message: str, data: Optional[Dict] = None):
        """
        Log a message.

        Args:
            level: Log level
            category: Log category
            message: Log message
            data: Optional data
        """
        entry = LogEntry(
            timestamp=time.time(),
            level=level,
            category=category,
            message=message,
            data=data
        )
        self.entries.append(entry)

    def info(self, category: LogCategory, message: str, data: Optional[Dict] = None):
        """Log info message."""
        self.log(LogLevel.INFO, category, message, data)

    def warning(self, category: LogCategory, message: str, data: Optional[Dict] = None):
        """Log warning message."""
        self.log(LogLevel.WARNING, category, message, data)

    def error(self, category: LogCategory, message: str, data: Optional[Dict] = None):
        """Log error message."""
        self.log(LogLevel.ERROR, category, message, data)

    def log_rep(self, rep_in_set: int, set_number: int):
        """Log a counted repetition."""
        self.info(LogCategory.REP, f"Rep {rep_in_set} of set {set_number}",
                  {'rep_in_set': rep_in_set, 'set_number': set_number})

    def log_set_complete(self, completed_sets: int, reps: int):
        """Log a closed set."""
        self.info(LogCategory.SET, f"Set {completed_sets} complete",
                  {'completed_sets': completed_sets, 'reps': reps})

    def entries_for(self, category: LogCategory) -> List[LogEntry]:
        return [e for e in self.entries if e.category == category]

    def save_session_log(self) -> Optional[Path]:
        """
        Save session log to file.

        Returns:
            Path of the written file, None when no log directory is set.
        """
        if self.log_dir is None:
            return None

        log_file = self.log_dir / f"session_{self.session_id}_{int(time.time())}.json"

        log_data = {
            'session_id': self.session_id,
            'timestamp': time.time(),
            'entries': [entry.to_dict() for entry in self.entries]
        }

        with open(log_file, 'w', encoding='utf-8') as f:
            json.dump(log_data, f, indent=2, ensure_ascii=False)

        return log_file


def create_session_logger(session_id: str, log_dir: Optional[str] = None) -> SessionLogger:
    """
    Create a session logger.

    Args:
        session_id: Session ID
        log_dir: Log directory, None to keep entries in memory only

    Returns:
        SessionLogger instance
    """
    return SessionLogger(session_id, log_dir)
