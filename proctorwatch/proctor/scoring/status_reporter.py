"""
Status Reporter - Builds the per-frame ProctoringStatus
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from .cause_aggregator import CauseSet
from ..state.persistence import AnomalyPhase, AnomalyState

logger = logging.getLogger(__name__)


SAFE_TEXT = "Monitoring (Safe)"
INITIALIZING_TEXT = "STATUS: Initializing..."
VIDEO_NOT_READY_TEXT = "STATUS: Video not ready"
DETECTION_ERROR_TEXT = "STATUS: Detection error"


@dataclass(frozen=True)
class ProctoringStatus:
    """
    Immutable result for one frame.

    is_critical implies is_anomalous, and causes is empty exactly when
    is_anomalous is False. debug_scores is a read-only view of a private copy.
    """
    is_anomalous: bool = False
    is_critical: bool = False
    causes: Tuple[str, ...] = ()
    status_text: str = SAFE_TEXT
    debug_scores: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "causes", tuple(self.causes))
        object.__setattr__(self, "debug_scores", MappingProxyType(dict(self.debug_scores)))

    @property
    def primary_cause(self) -> Optional[str]:
        return self.causes[0] if self.causes else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isAnomalous": self.is_anomalous,
            "isCritical": self.is_critical,
            "causes": list(self.causes),
            "statusText": self.status_text,
            "debugScores": dict(self.debug_scores),
        }


class StatusReporter:
    """Formats status text and assembles ProctoringStatus. No side effects."""

    def build(
        self,
        cause_set: CauseSet,
        state: AnomalyState,
        elapsed_seconds: float,
        debug_scores: Optional[Dict[str, Any]] = None,
    ) -> ProctoringStatus:
        """
        Args:
            cause_set: Aggregated causes for the frame
            state: Persistence state after this frame
            elapsed_seconds: How long the current incident has lasted
            debug_scores: Extracted feature scalars
        """
        debug = dict(debug_scores or {})

        if not cause_set.is_anomalous:
            return ProctoringStatus(status_text=SAFE_TEXT, debug_scores=debug)

        is_critical = state.phase == AnomalyPhase.CRITICAL
        debug["anomalyDuration"] = round(elapsed_seconds, 1)

        return ProctoringStatus(
            is_anomalous=True,
            is_critical=is_critical,
            causes=cause_set.causes,
            status_text=self.status_text(state, elapsed_seconds),
            debug_scores=debug,
        )

    def status_text(self, state: AnomalyState, elapsed_seconds: float) -> str:
        if state.phase == AnomalyPhase.CRITICAL:
            return f"CRITICAL: {state.primary_cause}"
        if state.phase == AnomalyPhase.TRACKING:
            return f"WARNING: {state.primary_cause} ({elapsed_seconds:.1f}s)"
        return SAFE_TEXT

    def neutral(self, status_text: str, debug_scores: Optional[Dict[str, Any]] = None) -> ProctoringStatus:
        """Non-anomalous status for frames that could not be evaluated."""
        return ProctoringStatus(status_text=status_text, debug_scores=dict(debug_scores or {}))
