"""
Frame Readiness Checker - Validates a video frame before detection
"""

import numpy as np
import logging
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)


def check_frame_ready(frame: Optional[np.ndarray]) -> Dict[str, Any]:
    """
    Check that a frame has decodable pixels.

    Args:
        frame: BGR image from OpenCV (H x W x 3)

    Returns:
        Dict with:
            - is_ready: bool
            - issues: List of readiness issues
            - width: int
            - height: int
    """
    # size == 0 also covers zero width or height
    if frame is None or not isinstance(frame, np.ndarray) or frame.size == 0:
        return {"is_ready": False, "issues": ["empty_frame"], "width": 0, "height": 0}

    if frame.ndim != 3:
        return {"is_ready": False, "issues": ["bad_shape"], "width": 0, "height": 0}

    issues = []
    height, width = frame.shape[:2]

    if frame.shape[2] not in (3, 4):
        issues.append("unsupported_channels")

    return {
        "is_ready": len(issues) == 0,
        "issues": issues,
        "width": int(width),
        "height": int(height),
    }
