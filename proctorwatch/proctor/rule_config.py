"""
Rule Config - Immutable thresholds for the anomaly rules

A threshold of 0 or infinity disables its check. The config is validated
once at construction; a detector can never run with partial settings.
"""

import math
import logging
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """Raised when rule thresholds are missing or invalid."""


class FailurePolicy(str, Enum):
    """What a perception-model failure counts as."""
    FAIL_OPEN = "fail_open"      # skip the frame, state untouched
    FAIL_CLOSED = "fail_closed"  # count as a "Detection Failure" anomaly


class RuleConfig(BaseModel):
    """Named, independently tunable rule thresholds."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    head_deviation_h: float
    head_deviation_v: float
    gaze_deviation_h: float
    gaze_deviation_v: float
    hand_proximity_y: float
    persistence_seconds: float
    min_hand_confidence: float
    failure_policy: FailurePolicy = FailurePolicy.FAIL_OPEN

    @field_validator(
        "head_deviation_h",
        "head_deviation_v",
        "gaze_deviation_h",
        "gaze_deviation_v",
        "hand_proximity_y",
    )
    @classmethod
    def _check_threshold(cls, value: float) -> float:
        if math.isnan(value):
            raise ValueError("threshold must be a number")
        if value < 0:
            raise ValueError("threshold must be >= 0")
        return value

    @field_validator("persistence_seconds")
    @classmethod
    def _check_duration(cls, value: float) -> float:
        if not math.isfinite(value) or value <= 0:
            raise ValueError("persistence duration must be a positive number of seconds")
        return value

    @field_validator("min_hand_confidence")
    @classmethod
    def _check_confidence(cls, value: float) -> float:
        if not 0.0 <= value <= 1.0:
            raise ValueError("confidence must be within [0, 1]")
        return value

    @staticmethod
    def is_enabled(threshold: float) -> bool:
        """0 and infinity switch a check off."""
        return 0 < threshold < math.inf

    @classmethod
    def build(cls, **values: Any) -> "RuleConfig":
        """Validate values, raising ConfigurationError on any problem."""
        try:
            return cls(**values)
        except ValidationError as e:
            logger.error(f"Invalid rule configuration: {e}")
            raise ConfigurationError(str(e)) from e

    @classmethod
    def from_settings(cls, settings) -> "RuleConfig":
        """Build from the service Settings (PROCTOR_* values)."""
        return cls.build(
            head_deviation_h=settings.PROCTOR_HEAD_DEVIATION_H,
            head_deviation_v=settings.PROCTOR_HEAD_DEVIATION_V,
            gaze_deviation_h=settings.PROCTOR_GAZE_DEVIATION_H,
            gaze_deviation_v=settings.PROCTOR_GAZE_DEVIATION_V,
            hand_proximity_y=settings.PROCTOR_HAND_PROXIMITY_Y,
            persistence_seconds=settings.PROCTOR_PERSISTENCE_SECONDS,
            min_hand_confidence=settings.PROCTOR_MIN_HAND_CONFIDENCE,
            failure_policy=settings.PROCTOR_FAILURE_POLICY,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = self.model_dump()
        data["failure_policy"] = self.failure_policy.value
        return data
