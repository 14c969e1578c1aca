"""Anomaly persistence state machine"""

from .persistence import (
    AnomalyPhase,
    AnomalyState,
    PersistenceTracker,
    Transition,
    TransitionKind,
    advance,
)

__all__ = [
    "AnomalyPhase",
    "AnomalyState",
    "PersistenceTracker",
    "Transition",
    "TransitionKind",
    "advance",
]
