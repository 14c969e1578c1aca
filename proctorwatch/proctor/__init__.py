"""
Proctorwatch Proctoring Module

Flags exam-integrity anomalies from face and hand landmarks:
- Face absence / multiple faces
- Head deviation (horizontal, vertical)
- Gaze shift
- Hand raised toward the face

Sustained anomalies escalate from warning to critical incidents.
"""

from .landmarks import Frame, HandLandmarkSet, LandmarkPoint
from .rule_config import ConfigurationError, FailurePolicy, RuleConfig
from .scoring import Cause, ProctoringStatus
from .system import ProctoringSystem

__all__ = [
    "Cause",
    "ConfigurationError",
    "FailurePolicy",
    "Frame",
    "HandLandmarkSet",
    "LandmarkPoint",
    "ProctoringStatus",
    "ProctoringSystem",
    "RuleConfig",
]
