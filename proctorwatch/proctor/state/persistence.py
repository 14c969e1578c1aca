"""
Persistence State Machine - Debounces anomalies into critical incidents

    NORMAL --cause--> TRACKING(cause, since) --held >= duration--> CRITICAL(cause, since)

A change of primary cause restarts the timer under the new cause, and an
empty cause list returns to NORMAL. Time is always passed in (frame
timestamps in milliseconds); nothing here reads a clock.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class AnomalyPhase(str, Enum):
    NORMAL = "normal"
    TRACKING = "tracking"
    CRITICAL = "critical"


class TransitionKind(str, Enum):
    STARTED = "started"        # NORMAL -> TRACKING
    SWITCHED = "switched"      # primary cause changed, timer restarted
    ESCALATED = "escalated"    # TRACKING -> CRITICAL
    CLEARED = "cleared"        # back to NORMAL
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class AnomalyState:
    """Current incident, if any. since_ms is set iff primary_cause is set."""
    phase: AnomalyPhase = AnomalyPhase.NORMAL
    primary_cause: Optional[str] = None
    since_ms: Optional[float] = None

    @classmethod
    def normal(cls) -> "AnomalyState":
        return cls()

    @property
    def is_active(self) -> bool:
        return self.phase != AnomalyPhase.NORMAL

    def elapsed_seconds(self, now_ms: float) -> float:
        if self.since_ms is None:
            return 0.0
        return max(0.0, (now_ms - self.since_ms) / 1000.0)


@dataclass(frozen=True)
class Transition:
    """Result of one step of the state machine."""
    kind: TransitionKind
    state: AnomalyState
    elapsed_seconds: float = 0.0
    previous_cause: Optional[str] = None


def advance(
    state: AnomalyState,
    primary_cause: Optional[str],
    now_ms: float,
    duration_seconds: float,
) -> Transition:
    """
    Pure transition function.

    Args:
        state: State before this frame
        primary_cause: Highest-priority cause of this frame, or None
        now_ms: Frame timestamp in milliseconds
        duration_seconds: How long a cause must hold to become critical

    Returns:
        Transition carrying the new state
    """
    if primary_cause is None:
        if state.is_active:
            return Transition(
                TransitionKind.CLEARED,
                AnomalyState.normal(),
                previous_cause=state.primary_cause,
            )
        return Transition(TransitionKind.UNCHANGED, state)

    if not state.is_active:
        return Transition(
            TransitionKind.STARTED,
            AnomalyState(AnomalyPhase.TRACKING, primary_cause, now_ms),
        )

    if primary_cause != state.primary_cause:
        return Transition(
            TransitionKind.SWITCHED,
            AnomalyState(AnomalyPhase.TRACKING, primary_cause, now_ms),
            previous_cause=state.primary_cause,
        )

    elapsed = state.elapsed_seconds(now_ms)

    if state.phase == AnomalyPhase.TRACKING and elapsed >= duration_seconds:
        return Transition(
            TransitionKind.ESCALATED,
            AnomalyState(AnomalyPhase.CRITICAL, state.primary_cause, state.since_ms),
            elapsed_seconds=elapsed,
        )

    return Transition(TransitionKind.UNCHANGED, state, elapsed_seconds=elapsed)


class PersistenceTracker:
    """
    Owns the mutable AnomalyState for one detector.

    Not safe for concurrent use; drive it from a single frame loop.
    """

    def __init__(self, duration_seconds: float):
        self.duration_seconds = duration_seconds
        self.state = AnomalyState.normal()
        self.last_timestamp_ms: Optional[float] = None

    def update(self, primary_cause: Optional[str], now_ms: float) -> Transition:
        transition = advance(self.state, primary_cause, now_ms, self.duration_seconds)
        self.state = transition.state
        self.last_timestamp_ms = now_ms

        if transition.kind == TransitionKind.ESCALATED:
            logger.info(
                f"Anomaly escalated to critical: {self.state.primary_cause} "
                f"after {transition.elapsed_seconds:.1f}s"
            )
        return transition

    def elapsed_seconds(self) -> float:
        """Seconds the current incident has lasted, as of the last frame."""
        if self.last_timestamp_ms is None:
            return 0.0
        return self.state.elapsed_seconds(self.last_timestamp_ms)

    def reset(self):
        self.state = AnomalyState.normal()
        self.last_timestamp_ms = None
