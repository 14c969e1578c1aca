"""
Rule Evaluator - Compares frame features against configured thresholds

Checks run in a fixed order, which is also their priority:
identity (face count) > head pose > gaze > hand activity.
"""

import logging
from dataclasses import dataclass, field
from typing import List

from ..detectors import FrameFeatures, EyeGaze
from ..rule_config import RuleConfig

logger = logging.getLogger(__name__)


class Cause:
    """Violation cause labels."""
    NO_FACE = "No Face"
    MULTIPLE_FACES = "Multiple Faces"
    HEAD_DEVIATION_H = "Head Deviation (H)"
    HEAD_DEVIATION_V = "Head Deviation (V)"
    GAZE_SHIFT = "Gaze Shift"
    HAND_PROXIMITY = "Hand Proximity"
    DETECTION_FAILURE = "Detection Failure"


@dataclass
class CheckResult:
    """Causes raised by one check on one frame."""
    check: str
    causes: List[str] = field(default_factory=list)

    @property
    def triggered(self) -> bool:
        return len(self.causes) > 0


class RuleEvaluator:
    """
    Stateless rule evaluation over FrameFeatures.

    Head and gaze checks only run when exactly one face is present; the
    hand check runs regardless of the face count.
    """

    CHECK_ORDER = ("face_count", "head_deviation", "gaze", "hand_proximity")

    def __init__(self, rules: RuleConfig):
        self.rules = rules

    def evaluate(self, features: FrameFeatures) -> List[CheckResult]:
        """
        Args:
            features: Output of FeatureExtractor.extract()

        Returns:
            One CheckResult per check, in CHECK_ORDER
        """
        single_face = features.face_count == 1

        results = [
            self._check_face_count(features),
            self._check_head(features) if single_face else CheckResult("head_deviation"),
            self._check_gaze(features) if single_face else CheckResult("gaze"),
            self._check_hands(features),
        ]

        for result in results:
            if result.triggered:
                logger.debug(f"Rule {result.check} triggered: {result.causes}")

        return results

    def _check_face_count(self, features: FrameFeatures) -> CheckResult:
        result = CheckResult("face_count")
        if features.face_count == 0:
            result.causes.append(Cause.NO_FACE)
        elif features.face_count > 1:
            result.causes.append(Cause.MULTIPLE_FACES)
        return result

    def _check_head(self, features: FrameFeatures) -> CheckResult:
        result = CheckResult("head_deviation")
        head = features.head
        if head is None:
            return result

        h_threshold = self.rules.head_deviation_h
        v_threshold = self.rules.head_deviation_v

        if RuleConfig.is_enabled(h_threshold) and head.horizontal > h_threshold:
            result.causes.append(Cause.HEAD_DEVIATION_H)
        if RuleConfig.is_enabled(v_threshold) and head.vertical > v_threshold:
            result.causes.append(Cause.HEAD_DEVIATION_V)

        return result

    def _check_gaze(self, features: FrameFeatures) -> CheckResult:
        result = CheckResult("gaze")
        if features.gaze is None:
            return result

        h_threshold = self.rules.gaze_deviation_h
        v_threshold = self.rules.gaze_deviation_v
        h_enabled = RuleConfig.is_enabled(h_threshold)
        v_enabled = RuleConfig.is_enabled(v_threshold)

        for _, eye in features.gaze.eyes():
            # GeometryError counts as no deviation
            if not isinstance(eye, EyeGaze):
                continue
            if (h_enabled and eye.horizontal > h_threshold) or \
               (v_enabled and eye.vertical > v_threshold):
                result.causes.append(Cause.GAZE_SHIFT)
                break

        return result

    def _check_hands(self, features: FrameFeatures) -> CheckResult:
        result = CheckResult("hand_proximity")
        threshold = self.rules.hand_proximity_y
        if not RuleConfig.is_enabled(threshold):
            return result

        for height in features.fingertip_heights:
            if height < threshold:
                result.causes.append(Cause.HAND_PROXIMITY)
                break

        return result
