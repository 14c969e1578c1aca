"""
Proctor Session - Manages a single proctoring session
"""

import uuid
import logging
import numpy as np
from collections import Counter
from datetime import datetime
from typing import Dict, Any, List, Optional

from .incidents import Incident, IncidentLogger
from .landmarks import Frame
from .monitor import LatestStatusCell, run_observation_loop
from .rule_config import RuleConfig
from .scoring import ProctoringStatus
from .state import TransitionKind
from .system import ProctoringSystem
from .utils.logging import log_session_start, log_session_end, log_anomaly_started

logger = logging.getLogger(__name__)


class ProctorSession:
    """
    Manages a single proctoring session.

    Owns one ProctoringSystem, publishes each status into a LatestStatusCell,
    counts per-cause frames, and forwards critical escalations to the
    incident logger.
    """

    def __init__(
        self,
        assessment_id: str,
        student_id: str,
        session_id: Optional[str] = None,
        rules: Optional[RuleConfig] = None,
        landmark_source=None,
        incident_logger: Optional[IncidentLogger] = None,
    ):
        """
        Initialize a new proctoring session.

        Args:
            assessment_id: ID of the assessment being proctored
            student_id: ID of the student being proctored
            session_id: Optional custom session ID (auto-generated if not provided)
            rules: Rule thresholds (defaults to service settings)
            landmark_source: Perception model adapter (defaults to MediaPipe)
            incident_logger: Receives critical incidents
        """
        self.id = session_id or f"EXM_{uuid.uuid4().hex[:6].upper()}"
        self.assessment_id = assessment_id
        self.student_id = student_id
        self.started_at = datetime.utcnow()
        self.is_active = True

        self.system = ProctoringSystem(rules=rules, landmark_source=landmark_source)
        self.incident_logger = incident_logger or IncidentLogger()

        self.frame_count = 0
        self.cause_counts: Counter = Counter()
        self.incidents: List[Incident] = []
        self.status_cell = LatestStatusCell()

        log_session_start(self.id, assessment_id, student_id)

        logger.info(f"Proctoring session started: {self.id}")

    async def start(self) -> bool:
        """
        Load the perception model.

        Returns:
            True if frames can be processed. Landmark-only processing
            works either way.
        """
        self.system.reset()
        try:
            await self.system.initialize()
            return True
        except Exception as e:
            logger.warning(f"Perception model unavailable for session {self.id}: {e}")
            return False

    def process_frame(self, frame: np.ndarray, timestamp_ms: float) -> ProctoringStatus:
        """
        Process a single video frame through the detection pipeline.

        Args:
            frame: BGR image from webcam
            timestamp_ms: Frame timestamp in milliseconds
        """
        status = self.system.process_frame(frame, timestamp_ms)
        return self._record(status)

    def process_landmarks(self, frame: Frame) -> ProctoringStatus:
        """Process landmarks computed client-side."""
        status = self.system.process_landmarks(frame)
        return self._record(status)

    def _record(self, status: ProctoringStatus) -> ProctoringStatus:
        self.frame_count += 1
        self.status_cell.publish(status)
        self.cause_counts.update(status.causes)

        transition = self.system.last_transition
        if transition is not None and transition.kind in (TransitionKind.STARTED, TransitionKind.SWITCHED):
            log_anomaly_started(self.id, transition.state.primary_cause, transition.previous_cause)

        incident = self.incident_logger.on_transition(self.id, transition)
        if incident is not None:
            self.incidents.append(incident)

        return status

    @property
    def latest_status(self) -> Optional[ProctoringStatus]:
        return self.status_cell.latest

    async def watch(self, callback, interval: Optional[float] = None, stop_event=None) -> int:
        """
        Hand the latest status to callback at the observation cadence
        until stop_event is set.
        """
        return await run_observation_loop(self.status_cell, callback, interval, stop_event)

    def reset(self):
        """Restart monitoring without ending the session"""
        self.system.reset()
        self.status_cell.clear()
        logger.info(f"Session {self.id} reset")

    @property
    def duration_seconds(self) -> float:
        return (datetime.utcnow() - self.started_at).total_seconds()

    def get_status(self) -> Dict[str, Any]:
        """Current status snapshot for pollers"""
        sequence, status = self.status_cell.read()
        status = status or ProctoringStatus()
        return {
            "session_id": self.id,
            "is_active": self.is_active,
            "frames_processed": self.frame_count,
            "status": status.to_dict(),
            "status_sequence": sequence,
            "anomaly_duration": round(self.system.get_anomaly_duration(), 1),
            "critical_incidents": len(self.incidents),
            "duration_seconds": self.duration_seconds,
        }

    def finalize(self) -> Dict[str, Any]:
        """
        Finalize the session and return final results.
        """
        self.is_active = False

        log_session_end(self.id, len(self.incidents), self.frame_count)

        self._cleanup()

        result = {
            "session_id": self.id,
            "assessment_id": self.assessment_id,
            "student_id": self.student_id,
            "frames_processed": self.frame_count,
            "critical_incidents": [i.to_dict() for i in self.incidents],
            "cause_frame_counts": dict(self.cause_counts),
            "review_required": len(self.incidents) > 0,
            "duration_seconds": self.duration_seconds,
        }

        logger.info(f"Session {self.id} finalized: incidents={len(self.incidents)}")

        return result

    def _cleanup(self):
        """Clean up resources"""
        try:
            self.system.destroy()
        except Exception as e:
            logger.warning(f"Error releasing perception model for {self.id}: {e}")
