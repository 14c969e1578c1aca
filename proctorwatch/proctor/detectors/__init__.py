"""Geometric detectors for proctoring"""

from .head_pose import HeadPoseEstimator, HeadOffset
from .gaze_tracker import GazeTracker, GazeResult, EyeGaze, GeometryError
from .hand_detector import HandDetector
from .feature_extractor import FeatureExtractor, FrameFeatures

__all__ = [
    "HeadPoseEstimator",
    "HeadOffset",
    "GazeTracker",
    "GazeResult",
    "EyeGaze",
    "GeometryError",
    "HandDetector",
    "FeatureExtractor",
    "FrameFeatures",
]
