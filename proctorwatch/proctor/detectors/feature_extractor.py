"""
Feature Extractor - Turns one frame of landmarks into rule inputs
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..landmarks import Frame
from .head_pose import HeadPoseEstimator, HeadOffset
from .gaze_tracker import GazeTracker, GazeResult, EyeGaze
from .hand_detector import HandDetector

logger = logging.getLogger(__name__)


def _pct(value: float) -> float:
    return round(value * 100, 2)


@dataclass
class FrameFeatures:
    """
    Scalars measured on a single frame.

    head and gaze are only measured when exactly one face is present.
    """
    face_count: int
    hands_detected: int = 0
    head: Optional[HeadOffset] = None
    gaze: Optional[GazeResult] = None
    fingertip_heights: List[float] = field(default_factory=list)

    def to_debug_scores(self) -> Dict[str, Any]:
        """Readable debug fields, scaled to percent."""
        scores: Dict[str, Any] = {
            "headCount": self.face_count,
            "handsDetected": self.hands_detected,
        }

        if self.head is not None:
            scores["headOffsetX"] = _pct(self.head.horizontal)
            scores["headOffsetY"] = _pct(self.head.vertical)

        if self.gaze is not None:
            for name, eye in self.gaze.eyes():
                if isinstance(eye, EyeGaze):
                    scores[f"{name}GazeH"] = _pct(eye.horizontal)
                    scores[f"{name}GazeV"] = _pct(eye.vertical)

        if self.fingertip_heights:
            # highest raised fingertip
            scores["handY"] = _pct(min(self.fingertip_heights))

        return scores


class FeatureExtractor:
    """
    Runs the geometric detectors over a frame.

    Only the first face is examined, and only when it is the sole face;
    with zero or several faces the identity rule decides the frame.
    """

    def __init__(self, min_hand_confidence: float = 0.5):
        self.head_pose = HeadPoseEstimator()
        self.gaze_tracker = GazeTracker()
        self.hand_detector = HandDetector(min_confidence=min_hand_confidence)

    def extract(self, frame: Frame) -> FrameFeatures:
        features = FrameFeatures(
            face_count=frame.num_faces,
            hands_detected=frame.num_hands,
        )

        if frame.num_faces == 1:
            landmarks = frame.face_landmark_sets[0]
            features.head = self.head_pose.estimate(landmarks)
            features.gaze = self.gaze_tracker.track(landmarks)

        features.fingertip_heights = self.hand_detector.fingertip_heights(
            frame.hand_landmark_sets
        )

        return features
