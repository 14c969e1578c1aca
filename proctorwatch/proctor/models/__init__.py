"""Perception model loading"""

from .model_loader import MediaPipeLandmarkSource, check_models, get_model_path

__all__ = ["MediaPipeLandmarkSource", "check_models", "get_model_path"]
