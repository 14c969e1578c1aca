"""
Model Loader - MediaPipe face/hand landmarkers used as the landmark source
"""

import os
import logging
from typing import List, Optional, Tuple

import cv2
import numpy as np

from ..landmarks import FaceLandmarkSet, HandLandmarkSet

logger = logging.getLogger(__name__)

# Default model directory (relative to this file's directory)
MODELS_DIR = os.path.join(os.path.dirname(__file__), "weights")

FACE_LANDMARKER_FILE = "face_landmarker.task"
HAND_LANDMARKER_FILE = "hand_landmarker.task"


def get_model_path(filename: str, models_dir: Optional[str] = None) -> str:
    """
    Resolve a MediaPipe .task file.

    Download from:
        https://storage.googleapis.com/mediapipe-models/face_landmarker/face_landmarker/float16/1/face_landmarker.task
        https://storage.googleapis.com/mediapipe-models/hand_landmarker/hand_landmarker/float16/1/hand_landmarker.task
    """
    possible_paths = [
        os.path.join(models_dir, filename) if models_dir else None,
        os.path.join(MODELS_DIR, filename),
        filename,  # Current directory
    ]

    for path in possible_paths:
        if path and os.path.exists(path):
            return path

    raise FileNotFoundError(
        f"{filename} not found. Download it from the MediaPipe model registry "
        f"and place it in {models_dir or MODELS_DIR}"
    )


def check_models(models_dir: Optional[str] = None) -> dict:
    """
    Check which models are available.

    Returns:
        Dict with model status
    """
    status = {"mediapipe": False, "face_landmarker": False, "hand_landmarker": False}

    try:
        import mediapipe  # noqa: F401
        status["mediapipe"] = True
    except ImportError:
        pass

    for key, filename in (
        ("face_landmarker", FACE_LANDMARKER_FILE),
        ("hand_landmarker", HAND_LANDMARKER_FILE),
    ):
        try:
            get_model_path(filename, models_dir)
            status[key] = True
        except FileNotFoundError:
            pass

    return status


class MediaPipeLandmarkSource:
    """
    Produces face and hand landmark sets from BGR frames.

    Runs both landmarkers in VIDEO mode, which only accepts strictly
    increasing integer timestamps. Fractional or repeated timestamps are
    bumped to the next free millisecond before they reach the landmarker.
    """

    def __init__(
        self,
        models_dir: Optional[str] = None,
        num_faces: int = 2,
        num_hands: int = 2,
        min_hand_confidence: float = 0.5,
    ):
        """
        Args:
            models_dir: Directory holding the .task files
            num_faces: Max faces per frame (needs >1 to see extra people)
            num_hands: Max hands per frame
            min_hand_confidence: Minimum hand detection confidence
        """
        self.models_dir = models_dir
        self.num_faces = num_faces
        self.num_hands = num_hands
        self.min_hand_confidence = min_hand_confidence
        self.face_landmarker = None
        self.hand_landmarker = None
        self._mp = None
        self._last_face_ts = -1
        self._last_hand_ts = -1

    @property
    def is_initialized(self) -> bool:
        return self.face_landmarker is not None and self.hand_landmarker is not None

    def initialize(self):
        """Load both landmarkers. Safe to call more than once."""
        if self.is_initialized:
            return

        import mediapipe as mp
        from mediapipe.tasks import python
        from mediapipe.tasks.python import vision

        self._mp = mp

        face_options = vision.FaceLandmarkerOptions(
            base_options=python.BaseOptions(
                model_asset_path=get_model_path(FACE_LANDMARKER_FILE, self.models_dir)
            ),
            running_mode=vision.RunningMode.VIDEO,
            num_faces=self.num_faces,
            output_face_blendshapes=False,
            output_facial_transformation_matrixes=False,
        )
        self.face_landmarker = vision.FaceLandmarker.create_from_options(face_options)
        logger.info("FaceLandmarker initialized")

        hand_options = vision.HandLandmarkerOptions(
            base_options=python.BaseOptions(
                model_asset_path=get_model_path(HAND_LANDMARKER_FILE, self.models_dir)
            ),
            running_mode=vision.RunningMode.VIDEO,
            num_hands=self.num_hands,
            min_hand_detection_confidence=self.min_hand_confidence,
        )
        self.hand_landmarker = vision.HandLandmarker.create_from_options(hand_options)
        logger.info("HandLandmarker initialized")

    def _to_mp_image(self, frame: np.ndarray):
        code = cv2.COLOR_BGRA2RGB if frame.shape[2] == 4 else cv2.COLOR_BGR2RGB
        rgb = cv2.cvtColor(frame, code)
        return self._mp.Image(image_format=self._mp.ImageFormat.SRGB, data=rgb)

    def detect_faces(self, frame: np.ndarray, timestamp_ms: float) -> List[FaceLandmarkSet]:
        self._last_face_ts = max(int(timestamp_ms), self._last_face_ts + 1)
        result = self.face_landmarker.detect_for_video(self._to_mp_image(frame), self._last_face_ts)
        return list(result.face_landmarks or [])

    def detect_hands(self, frame: np.ndarray, timestamp_ms: float) -> List[HandLandmarkSet]:
        self._last_hand_ts = max(int(timestamp_ms), self._last_hand_ts + 1)
        result = self.hand_landmarker.detect_for_video(self._to_mp_image(frame), self._last_hand_ts)

        hands: List[HandLandmarkSet] = []
        for i, points in enumerate(result.hand_landmarks or []):
            score, label = None, None
            if result.handedness and i < len(result.handedness):
                category = result.handedness[i][0]
                score, label = category.score, category.category_name
            hands.append(HandLandmarkSet(points=points, score=score, handedness=label))
        return hands

    def detect(self, frame: np.ndarray, timestamp_ms: float) -> Tuple[List[FaceLandmarkSet], List[HandLandmarkSet]]:
        """Faces and hands for one frame."""
        return self.detect_faces(frame, timestamp_ms), self.detect_hands(frame, timestamp_ms)

    def close(self):
        """Release resources"""
        if self.face_landmarker is not None:
            self.face_landmarker.close()
            self.face_landmarker = None
        if self.hand_landmarker is not None:
            self.hand_landmarker.close()
            self.hand_landmarker = None
        self._last_face_ts = -1
        self._last_hand_ts = -1
