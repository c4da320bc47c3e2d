"""
Streak Module for Posture Coach.

Counts consecutive activity days. The current streak only survives while
the latest activity is today or yesterday.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional, Union

DateLike = Union[str, date]


@dataclass(frozen=True)
class StreakSummary:
    """Current and best streak in days."""
    current: int = 0
    best: int = 0


def _to_date(value: DateLike) -> date:
    if isinstance(value, date):
        return value
    # Accept full ISO timestamps as well as YYYY-MM-DD
    return date.fromisoformat(str(value)[:10])


def calculate_streak(dates: Iterable[DateLike], today: Optional[date] = None) -> StreakSummary:
    """
    Streak summary for a set of activity dates.

    Args:
        dates: Activity dates (date or ISO string), duplicates allowed.
        today: Reference day, None for the local current date.
    """
    unique = sorted({_to_date(d) for d in dates}, reverse=True)
    if not unique:
        return StreakSummary()

    today = today or date.today()
    one_day = timedelta(days=1)

    best = run = 1
    for newer, older in zip(unique, unique[1:]):
        if newer - older == one_day:
            run += 1
        else:
            run = 1
        best = max(best, run)

    current = 0
    if unique[0] in (today, today - one_day):
        current = 1
        for newer, older in zip(unique, unique[1:]):
            if newer - older != one_day:
                break
            current += 1

    return StreakSummary(current=current, best=best)
