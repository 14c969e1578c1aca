"""
Proctoring System - Frame-by-frame anomaly detection

Pipeline per frame:
    landmarks -> features -> rule checks -> ranked causes
              -> persistence state machine -> ProctoringStatus

The pipeline is synchronous and never does I/O. A single instance keeps
mutable incident state and must be driven by one frame loop at a time.
"""

import asyncio
import logging
from typing import Optional, Tuple

import numpy as np

from .landmarks import Frame
from .rule_config import RuleConfig, FailurePolicy
from .detectors import FeatureExtractor
from .scoring import (
    Cause,
    CauseAggregator,
    CauseSet,
    ProctoringStatus,
    RuleEvaluator,
    StatusReporter,
)
from .scoring.status_reporter import (
    DETECTION_ERROR_TEXT,
    INITIALIZING_TEXT,
    VIDEO_NOT_READY_TEXT,
)
from .state import AnomalyState, PersistenceTracker, Transition, TransitionKind
from .utils.frame_quality import check_frame_ready

logger = logging.getLogger(__name__)


class ProctoringSystem:
    """
    Real-time behavioral-anomaly detector.

    Use process_frame() with raw video frames (requires a landmark source
    and initialize()), or process_landmarks() with landmarks computed
    elsewhere.
    """

    def __init__(self, rules: Optional[RuleConfig] = None, landmark_source=None):
        """
        Args:
            rules: Rule thresholds. Defaults to the service Settings.
            landmark_source: Object with initialize(), detect_faces(),
                             detect_hands() and close(). Defaults to
                             MediaPipeLandmarkSource.
        """
        if rules is None:
            from ..config import settings
            rules = RuleConfig.from_settings(settings)

        self.rules = rules
        self._source = landmark_source
        self._initialized = False

        self.extractor = FeatureExtractor(min_hand_confidence=rules.min_hand_confidence)
        self.evaluator = RuleEvaluator(rules)
        self.aggregator = CauseAggregator()
        self.tracker = PersistenceTracker(rules.persistence_seconds)
        self.reporter = StatusReporter()

        self.last_transition: Optional[Transition] = None

        # (timestamp_ms, faces, hands) of the last frame sent to the source
        self._last_detection: Optional[Tuple[float, list, list]] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def landmark_source(self):
        """Lazy create the default MediaPipe source"""
        if self._source is None:
            from ..config import settings
            from .models import MediaPipeLandmarkSource
            self._source = MediaPipeLandmarkSource(
                models_dir=settings.PROCTOR_MODELS_DIR,
                num_faces=settings.PROCTOR_NUM_FACES,
                num_hands=settings.PROCTOR_NUM_HANDS,
                min_hand_confidence=self.rules.min_hand_confidence,
            )
        return self._source

    async def initialize(self):
        """Acquire the perception model. Idempotent."""
        if self._initialized:
            return

        try:
            await asyncio.to_thread(self.landmark_source.initialize)
        except Exception as e:
            logger.error(f"Failed to initialize ProctoringSystem: {e}")
            raise

        self._initialized = True
        logger.info("ProctoringSystem initialized successfully")

    def destroy(self):
        """Release the perception model."""
        if self._source is not None:
            self._source.close()
        self._initialized = False
        self._last_detection = None

    def reset(self):
        """Forget any ongoing incident. Call when a monitoring session (re)starts."""
        self.tracker.reset()
        self._last_detection = None
        self.last_transition = None

    # ------------------------------------------------------------------
    # Per-frame processing
    # ------------------------------------------------------------------

    @property
    def anomaly_state(self) -> AnomalyState:
        return self.tracker.state

    def get_anomaly_duration(self) -> float:
        """Seconds the current incident has lasted, or 0."""
        return self.tracker.elapsed_seconds()

    def process_frame(self, frame: np.ndarray, timestamp_ms: float) -> ProctoringStatus:
        """
        Run perception and rules on one video frame.

        Args:
            frame: BGR image
            timestamp_ms: Monotonically increasing frame time in milliseconds

        Returns:
            ProctoringStatus for this frame
        """
        self.last_transition = None

        if not self._initialized:
            return self.reporter.neutral(INITIALIZING_TEXT)

        readiness = check_frame_ready(frame)
        if not readiness["is_ready"]:
            return self.reporter.neutral(
                VIDEO_NOT_READY_TEXT,
                {"width": readiness["width"], "height": readiness["height"]},
            )

        if self._last_detection is not None and timestamp_ms <= self._last_detection[0]:
            # video-mode models reject non-increasing timestamps
            _, faces, hands = self._last_detection
        else:
            try:
                faces = self._source.detect_faces(frame, timestamp_ms)
            except Exception as e:
                logger.error(f"Face detection error: {e}")
                return self._on_detection_failure(e, timestamp_ms)

            try:
                hands = self._source.detect_hands(frame, timestamp_ms)
            except Exception as e:
                logger.warning(f"Hand detection error: {e}")
                hands = []

            self._last_detection = (timestamp_ms, faces, hands)

        return self.process_landmarks(
            Frame(timestamp_ms=timestamp_ms, face_landmark_sets=faces, hand_landmark_sets=hands)
        )

    def process_landmarks(self, frame: Frame) -> ProctoringStatus:
        """
        Run the rules on landmarks that were already extracted.

        Args:
            frame: Face/hand landmark sets plus the frame timestamp

        Returns:
            ProctoringStatus for this frame
        """
        features = self.extractor.extract(frame)
        results = self.evaluator.evaluate(features)
        cause_set = self.aggregator.aggregate(results)

        return self._advance(cause_set, frame.timestamp_ms, features.to_debug_scores())

    def _on_detection_failure(self, error: Exception, timestamp_ms: float) -> ProctoringStatus:
        if self.rules.failure_policy == FailurePolicy.FAIL_CLOSED:
            return self._advance(
                self.aggregator.single(Cause.DETECTION_FAILURE),
                timestamp_ms,
                {"error": str(error)},
            )
        # fail open: leave incident state untouched
        return self.reporter.neutral(DETECTION_ERROR_TEXT, {"error": str(error)})

    def _advance(self, cause_set: CauseSet, timestamp_ms: float, debug_scores: dict) -> ProctoringStatus:
        transition = self.tracker.update(cause_set.primary, timestamp_ms)
        self.last_transition = transition

        if transition.kind in (TransitionKind.STARTED, TransitionKind.SWITCHED):
            logger.debug(
                f"Tracking anomaly: {transition.state.primary_cause} "
                f"(previous={transition.previous_cause})"
            )

        return self.reporter.build(
            cause_set,
            self.tracker.state,
            self.tracker.elapsed_seconds(),
            debug_scores,
        )
