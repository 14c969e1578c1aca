"""
Pytest Configuration for Proctorwatch Tests
"""
import os
import sys
import pytest
from unittest.mock import MagicMock

import numpy as np

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from proctorwatch.proctor.landmarks import Frame
from proctorwatch.proctor.rule_config import RuleConfig
from proctorwatch.proctor.system import ProctoringSystem


RULE_VALUES = {
    "head_deviation_h": 0.15,
    "head_deviation_v": 0.20,
    "gaze_deviation_h": 0.25,
    "gaze_deviation_v": 0.35,
    "hand_proximity_y": 0.75,
    "persistence_seconds": 5.0,
    "min_hand_confidence": 0.5,
}


@pytest.fixture
def rule_values():
    """Raw threshold values (copy, safe to mutate)"""
    return dict(RULE_VALUES)


@pytest.fixture
def rules():
    """Default rule config used across tests"""
    return RuleConfig.build(**RULE_VALUES)


@pytest.fixture
def system(rules):
    """Detector without a perception model (landmark input only)"""
    return ProctoringSystem(rules=rules, landmark_source=MagicMock())


@pytest.fixture
def mock_source():
    """Perception model stub returning no faces and no hands"""
    source = MagicMock()
    source.detect_faces.return_value = []
    source.detect_hands.return_value = []
    return source


@pytest.fixture
def blank_frame():
    """Black 640x480 BGR frame"""
    return np.zeros((480, 640, 3), dtype=np.uint8)


@pytest.fixture
def make_frame():
    """Build a landmark Frame"""
    def _make(timestamp_ms=0.0, faces=None, hands=None):
        return Frame(
            timestamp_ms=timestamp_ms,
            face_landmark_sets=list(faces or []),
            hand_landmark_sets=list(hands or []),
        )
    return _make
