"""
Gaze Tracker - Measures iris displacement inside each eye box

Each eye is measured independently against the bounding box spanned by
its corner landmarks. Normalizing by the eye's own size keeps the ratio
stable regardless of how far the subject sits from the camera.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Union

from ..landmarks import (
    FaceLandmarkSet,
    L_IRIS_CENTER, L_EYE_LEFT, L_EYE_RIGHT, L_EYE_TOP, L_EYE_BOTTOM,
    R_IRIS_CENTER, R_EYE_LEFT, R_EYE_RIGHT, R_EYE_TOP, R_EYE_BOTTOM,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EyeIndices:
    """Face Mesh indices describing one eye."""
    iris: int
    left: int
    right: int
    top: int
    bottom: int


LEFT_EYE = EyeIndices(L_IRIS_CENTER, L_EYE_LEFT, L_EYE_RIGHT, L_EYE_TOP, L_EYE_BOTTOM)
RIGHT_EYE = EyeIndices(R_IRIS_CENTER, R_EYE_LEFT, R_EYE_RIGHT, R_EYE_TOP, R_EYE_BOTTOM)


@dataclass(frozen=True)
class EyeGaze:
    """Iris offset from the eye-box center as a fraction of box width/height."""
    horizontal: float
    vertical: float


@dataclass(frozen=True)
class GeometryError:
    """An eye that could not be measured (collapsed box or missing points)."""
    reason: str


EyeMeasurement = Union[EyeGaze, GeometryError]


@dataclass(frozen=True)
class GazeResult:
    """Per-eye measurements for one face."""
    left: EyeMeasurement
    right: EyeMeasurement

    def eyes(self):
        return (("left", self.left), ("right", self.right))

    def to_dict(self) -> Dict[str, Optional[Dict[str, float]]]:
        out = {}
        for name, eye in self.eyes():
            if isinstance(eye, EyeGaze):
                out[name] = {
                    "horizontal": round(eye.horizontal, 4),
                    "vertical": round(eye.vertical, 4),
                }
            else:
                out[name] = None
        return out


def measure_eye(landmarks: FaceLandmarkSet, eye: EyeIndices) -> EyeMeasurement:
    """
    Compute horizontal and vertical gaze ratios for one eye.

    Returns a GeometryError instead of raising when the eye box has zero
    width or height, or when the iris points are absent (unrefined mesh).
    """
    highest = max(eye.iris, eye.left, eye.right, eye.top, eye.bottom)
    if len(landmarks) <= highest:
        return GeometryError("missing iris landmarks")

    iris = landmarks[eye.iris]
    left = landmarks[eye.left]
    right = landmarks[eye.right]
    top = landmarks[eye.top]
    bottom = landmarks[eye.bottom]

    width = abs(left.x - right.x)
    height = abs(top.y - bottom.y)
    if width == 0 or height == 0:
        return GeometryError("degenerate eye box")

    center_x = (left.x + right.x) / 2
    center_y = (top.y + bottom.y) / 2

    return EyeGaze(
        horizontal=abs(iris.x - center_x) / width,
        vertical=abs(iris.y - center_y) / height,
    )


class GazeTracker:
    """
    Tracks gaze for both eyes of a single face.

    Uses iris centers (468/473) and the eye corner quartets around them.
    """

    def track(self, landmarks: FaceLandmarkSet) -> GazeResult:
        """
        Measure both eyes.

        Args:
            landmarks: Face Mesh landmarks for a single face

        Returns:
            GazeResult with an EyeGaze or GeometryError per eye
        """
        left = measure_eye(landmarks, LEFT_EYE)
        right = measure_eye(landmarks, RIGHT_EYE)

        for name, eye in (("left", left), ("right", right)):
            if isinstance(eye, GeometryError):
                logger.debug(f"Skipping {name} eye: {eye.reason}")

        return GazeResult(left=left, right=right)
