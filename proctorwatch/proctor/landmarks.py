"""
Landmark data model and the MediaPipe index scheme the detectors rely on.

Face sets follow the refined 478-point Face Mesh topology (iris points
468-477 are only present when iris refinement is enabled). Hand sets
follow the 21-point MediaPipe Hands topology.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence


# Face Mesh indices
NOSE_TIP = 1

L_IRIS_CENTER = 468
L_EYE_LEFT = 362
L_EYE_RIGHT = 263
L_EYE_TOP = 386
L_EYE_BOTTOM = 374

R_IRIS_CENTER = 473
R_EYE_LEFT = 33
R_EYE_RIGHT = 133
R_EYE_TOP = 159
R_EYE_BOTTOM = 145

# Hands indices
INDEX_FINGER_TIP = 8


@dataclass(frozen=True)
class LandmarkPoint:
    """A point normalized to [0, 1] of frame width (x) and height (y)."""
    x: float
    y: float
    z: float = 0.0


# One entry per Face Mesh index. Any object exposing .x/.y works
# (MediaPipe NormalizedLandmark included).
FaceLandmarkSet = Sequence[LandmarkPoint]


@dataclass
class HandLandmarkSet:
    """21 hand landmarks plus the model's handedness confidence, if known."""
    points: Sequence[LandmarkPoint]
    score: Optional[float] = None
    handedness: Optional[str] = None

    def __len__(self) -> int:
        return len(self.points)

    def __getitem__(self, idx: int) -> LandmarkPoint:
        return self.points[idx]


@dataclass
class Frame:
    """Landmarks produced by the perception stage for a single video frame."""
    timestamp_ms: float
    face_landmark_sets: List[FaceLandmarkSet] = field(default_factory=list)
    hand_landmark_sets: List[HandLandmarkSet] = field(default_factory=list)

    @property
    def num_faces(self) -> int:
        return len(self.face_landmark_sets)

    @property
    def num_hands(self) -> int:
        return len(self.hand_landmark_sets)
