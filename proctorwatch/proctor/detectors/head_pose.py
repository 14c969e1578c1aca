"""
Head Pose Estimator - Measures head offset from the frame center

Uses the nose tip position in normalized coordinates, so the measure
does not depend on camera resolution.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from ..landmarks import NOSE_TIP, FaceLandmarkSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HeadOffset:
    """Absolute nose-tip offset from (0.5, 0.5), in fractions of the frame."""
    horizontal: float
    vertical: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "horizontal": round(self.horizontal, 4),
            "vertical": round(self.vertical, 4),
        }


class HeadPoseEstimator:
    """
    Estimates head deviation from the nose tip (Face Mesh index 1).

    A subject facing the camera keeps the nose near the frame center;
    turning or leaning away moves it off-center on one or both axes.
    """

    FRAME_CENTER = (0.5, 0.5)

    def estimate(self, landmarks: FaceLandmarkSet) -> Optional[HeadOffset]:
        """
        Measure the nose-tip offset for one face.

        Args:
            landmarks: Face Mesh landmarks for a single face

        Returns:
            HeadOffset, or None if the set has no nose tip
        """
        if landmarks is None or len(landmarks) <= NOSE_TIP:
            return None

        nose = landmarks[NOSE_TIP]
        cx, cy = self.FRAME_CENTER

        return HeadOffset(
            horizontal=abs(nose.x - cx),
            vertical=abs(nose.y - cy),
        )
