"""
Repetition Counter Module for Posture Coach.

Finite State Machine (FSM) that turns the per-frame joint value of one
exercise session into counted repetitions and completed sets.

FSM for one repetition:
    ┌──────────────────────────────────────────────────────┐
    │                                                      │
    │   REST ── v >= threshold_down ──► ENGAGED            │
    │     ▲                                │               │
    │     └──── v <= threshold_up ─────────┘               │
    │           (+1 rep if cooldown elapsed)               │
    │                                                      │
    └──────────────────────────────────────────────────────┘

Phases:
    - REST: released position, initial phase
    - ENGAGED: the tracked value went past the engage threshold

Returning to REST inside the cooldown window resets the phase without
counting, so jitter around the release threshold cannot double count while
a later, deliberate repetition is still registered.

After ``reps_per_set_target`` repetitions the set closes and the counter
rests; it ignores samples until the caller starts the next set. After
``sets_target`` sets the session is complete.

Author: Posture Coach Team
Version: 1.0.0
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
import time

from .data_types import RepPhase
from .exercise_config import ExerciseConfig
from ..utils.math_utils import round_half_up


def monotonic_ms() -> float:
    """Milliseconds from a monotonic clock."""
    return time.monotonic() * 1000.0


@dataclass
class CounterState:
    """
    Mutable counting state of one exercise session.

    Owned exclusively by one ``RepetitionCounter``.
    """
    phase: RepPhase = RepPhase.REST
    last_count_ms: Optional[float] = None
    reps_in_current_set: int = 0
    completed_sets: int = 0
    completed_reps_per_set: List[int] = field(default_factory=list)
    is_resting: bool = False
    is_complete: bool = False


@dataclass(frozen=True)
class CounterUpdate:
    """
    Snapshot returned after each sample.

    Attributes:
        phase: Phase after the sample.
        counted: A repetition was registered by this sample.
        suppressed: A release happened inside the cooldown window.
        rep_count: Repetitions in the current set.
        completed_sets: Closed sets so far.
        set_completed: This sample closed a set.
        session_completed: This sample closed the last set.
        is_resting: Counter waits for the next set.
        skipped: Sample was ignored (None, resting or complete).
    """
    phase: RepPhase
    counted: bool
    suppressed: bool
    rep_count: int
    completed_sets: int
    set_completed: bool
    session_completed: bool
    is_resting: bool
    skipped: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase.value,
            "counted": self.counted,
            "suppressed": self.suppressed,
            "rep_count": self.rep_count,
            "completed_sets": self.completed_sets,
            "set_completed": self.set_completed,
            "session_completed": self.session_completed,
            "is_resting": self.is_resting,
            "skipped": self.skipped,
        }


@dataclass(frozen=True)
class ExerciseResult:
    """
    Summary of a finished exercise session.

    Attributes:
        exercise_id: Exercise id.
        exercise_name: Exercise name.
        completed_sets: Number of sets in ``completed_reps``.
        completed_reps: Repetitions per set.
        total_reps: Sum of ``completed_reps``.
        duration: Elapsed seconds since the session started.
        accuracy: Completed / target repetitions in percent, capped at 100.
        date: Completion time, ISO-8601 UTC.
    """
    exercise_id: str
    exercise_name: str
    completed_sets: int
    completed_reps: List[int]
    total_reps: int
    duration: int
    accuracy: int
    date: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "exercise_id": self.exercise_id,
            "exercise_name": self.exercise_name,
            "completed_sets": self.completed_sets,
            "completed_reps": list(self.completed_reps),
            "total_reps": self.total_reps,
            "duration": self.duration,
            "accuracy": self.accuracy,
            "date": self.date,
        }


def calculate_accuracy(total_reps: int, config: ExerciseConfig) -> int:
    """Completed repetitions over target repetitions, in percent (0-100)."""
    target = config.target_total_reps
    if target <= 0:
        return 0
    return min(100, round_half_up(total_reps / target * 100))


class RepetitionCounter:
    """
    Hysteresis repetition counter with cooldown and set tracking.

    Example:
        >>> counter = RepetitionCounter(config)
        >>> for value, ts in samples:
        ...     update = counter.update(value, timestamp_ms=ts)
        ...     if update.session_completed:
        ...         result = counter.finalize()
    """

    def __init__(
        self,
        config: ExerciseConfig,
        start_time_ms: Optional[float] = None,
        clock: Callable[[], float] = monotonic_ms
    ):
        """
        Args:
            config: Validated exercise configuration.
            start_time_ms: Session start on the ``clock`` time base.
            clock: Monotonic millisecond clock used when no timestamp is given.
        """
        self._config = config
        self._clock = clock
        self._start_time_ms = start_time_ms if start_time_ms is not None else clock()
        self._state = CounterState()

        self._on_rep_complete: Optional[Callable[[int, int], None]] = None
        self._on_set_complete: Optional[Callable[[int, int], None]] = None

    @property
    def config(self) -> ExerciseConfig:
        return self._config

    @property
    def state(self) -> CounterState:
        """Current counting state."""
        return self._state

    @property
    def is_resting(self) -> bool:
        return self._state.is_resting

    @property
    def is_complete(self) -> bool:
        return self._state.is_complete

    @property
    def total_reps(self) -> int:
        return sum(self._state.completed_reps_per_set) + self._state.reps_in_current_set

    def update(self, value: Optional[float], timestamp_ms: Optional[float] = None) -> CounterUpdate:
        """
        Feed one sample.

        Called once per frame.

        Args:
            value: Projected joint value, None when occluded.
            timestamp_ms: Monotonic timestamp in milliseconds, None to read
                the clock.

        Returns:
            CounterUpdate: State after the sample.
        """
        state = self._state
        if value is None or state.is_resting or state.is_complete:
            return self._snapshot(skipped=True)

        now = timestamp_ms if timestamp_ms is not None else self._clock()
        counted = suppressed = set_completed = session_completed = False

        if state.phase == RepPhase.REST:
            if value >= self._config.threshold_down:
                state.phase = RepPhase.ENGAGED
        elif value <= self._config.threshold_up:
            state.phase = RepPhase.REST
            if self._cooldown_elapsed(now):
                counted = True
                state.last_count_ms = now
                state.reps_in_current_set += 1
                if self._on_rep_complete:
                    self._on_rep_complete(state.reps_in_current_set, state.completed_sets + 1)
                if state.reps_in_current_set >= self._config.reps_per_set_target:
                    set_completed = True
                    session_completed = self._complete_set()
            else:
                suppressed = True

        return self._snapshot(
            counted=counted,
            suppressed=suppressed,
            set_completed=set_completed,
            session_completed=session_completed,
        )

    def _cooldown_elapsed(self, now: float) -> bool:
        last = self._state.last_count_ms
        return last is None or (now - last) >= self._config.cooldown_ms

    def _complete_set(self) -> bool:
        """Close the current set. Returns True if the session is complete."""
        state = self._state
        reps = state.reps_in_current_set
        state.completed_reps_per_set.append(reps)
        state.completed_sets += 1
        state.reps_in_current_set = 0
        state.phase = RepPhase.REST

        if state.completed_sets >= self._config.sets_target:
            state.is_complete = True
        else:
            state.is_resting = True

        if self._on_set_complete:
            self._on_set_complete(state.completed_sets, reps)

        return state.is_complete

    def start_next_set(self) -> None:
        """End the rest interval and resume counting."""
        if self._state.is_complete:
            return
        self._state.is_resting = False
        self._state.phase = RepPhase.REST

    def finalize(self, timestamp_ms: Optional[float] = None, include_current_set: bool = False) -> ExerciseResult:
        """
        Build the session summary.

        Args:
            timestamp_ms: End time on the clock time base, None to read it.
            include_current_set: Append the unfinished set when it has reps.
        """
        now = timestamp_ms if timestamp_ms is not None else self._clock()
        reps = list(self._state.completed_reps_per_set)
        if include_current_set and self._state.reps_in_current_set > 0:
            reps.append(self._state.reps_in_current_set)

        total_reps = sum(reps)
        duration = max(0, round_half_up((now - self._start_time_ms) / 1000.0))

        return ExerciseResult(
            exercise_id=self._config.id,
            exercise_name=self._config.name,
            completed_sets=len(reps),
            completed_reps=reps,
            total_reps=total_reps,
            duration=duration,
            accuracy=calculate_accuracy(total_reps, self._config),
            date=datetime.now(timezone.utc).isoformat(),
        )

    def cancel(self, partial: bool = False, timestamp_ms: Optional[float] = None) -> Optional[ExerciseResult]:
        """
        Terminate the session and discard its state.

        Args:
            partial: Return a summary of what was done so far.
            timestamp_ms: End time for the partial summary.

        Returns:
            Partial ExerciseResult if requested, else None.
        """
        result = self.finalize(timestamp_ms, include_current_set=True) if partial else None
        self.reset()
        self._state.is_complete = True
        return result

    def reset(self) -> None:
        """Reset to the initial state."""
        self._state = CounterState()

    def set_on_rep_complete(self, callback: Callable[[int, int], None]) -> None:
        """Callback(rep_in_set, set_number) when a repetition is counted."""
        self._on_rep_complete = callback

    def set_on_set_complete(self, callback: Callable[[int, int], None]) -> None:
        """Callback(completed_sets, reps_in_set) when a set closes."""
        self._on_set_complete = callback

    def _snapshot(self, counted: bool = False, suppressed: bool = False,
                  set_completed: bool = False, session_completed: bool = False,
                  skipped: bool = False) -> CounterUpdate:
        state = self._state
        return CounterUpdate(
            phase=state.phase,
            counted=counted,
            suppressed=suppressed,
            rep_count=state.reps_in_current_set,
            completed_sets=state.completed_sets,
            set_completed=set_completed,
            session_completed=session_completed,
            is_resting=state.is_resting,
            skipped=skipped,
        )
