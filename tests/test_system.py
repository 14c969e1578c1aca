"""
Tests for ProctoringSystem

End-to-end over synthetic landmarks, plus the video-frame path with a
mocked perception model.
"""

import asyncio

import pytest

from fixtures.synthetic_landmarks import make_face, make_hand


def _run(system, make_frame, frames):
    return [system.process_landmarks(make_frame(ts, faces, hands)) for ts, faces, hands in frames]


class TestProcessLandmarks:
    """Tests for the landmark pipeline"""

    def test_clean_frame_is_safe(self, system, make_frame):
        status = system.process_landmarks(make_frame(0, [make_face()]))

        assert status.is_anomalous is False
        assert status.is_critical is False
        assert status.causes == ()
        assert status.status_text == "Monitoring (Safe)"
        assert status.debug_scores["headCount"] == 1

    def test_no_face_warning_then_critical(self, system, make_frame):
        """No face held for the persistence duration escalates"""
        statuses = _run(system, make_frame, [(t * 1000, [], []) for t in range(7)])

        assert statuses[0].causes == ("No Face",)
        assert statuses[0].status_text == "WARNING: No Face (0.0s)"
        assert statuses[3].status_text == "WARNING: No Face (3.0s)"
        assert statuses[4].is_critical is False
        assert statuses[5].is_critical is True
        assert statuses[5].status_text == "CRITICAL: No Face"
        assert statuses[6].is_critical is True

    def test_critical_implies_anomalous(self, system, make_frame):
        frames = [(t * 500, [make_face(nose=(0.9, 0.5))], [make_hand(0.3)]) for t in range(15)]

        for status in _run(system, make_frame, frames):
            assert status.is_anomalous is True
            if status.is_critical:
                assert status.is_anomalous
            assert status.primary_cause == status.causes[0]

    def test_secondary_cause_does_not_restart(self, system, make_frame):
        """Adding a lower-priority cause keeps the primary timer running"""
        frames = [(0, [make_face(nose=(0.9, 0.5))], [])]
        frames += [(t * 1000, [make_face(nose=(0.9, 0.5))], [make_hand(0.3)]) for t in range(1, 6)]

        statuses = _run(system, make_frame, frames)

        assert statuses[-1].causes == ("Head Deviation (H)", "Hand Proximity")
        assert statuses[-1].is_critical is True

    def test_primary_cause_change_restarts(self, system, make_frame):
        """A higher-priority cause appearing restarts the timer"""
        frames = [(t * 1000, [make_face()], [make_hand(0.3)]) for t in range(4)]
        frames += [(t * 1000, [make_face(nose=(0.9, 0.5))], [make_hand(0.3)]) for t in range(4, 9)]

        statuses = _run(system, make_frame, frames)

        assert statuses[3].status_text == "WARNING: Hand Proximity (3.0s)"
        assert statuses[4].status_text == "WARNING: Head Deviation (H) (0.0s)"
        assert statuses[8].is_critical is False
        assert statuses[8].status_text == "WARNING: Head Deviation (H) (4.0s)"

    def test_anomaly_duration(self, system, make_frame):
        assert system.get_anomaly_duration() == 0.0

        _run(system, make_frame, [(1000, [], []), (2500, [], [])])
        assert system.get_anomaly_duration() == pytest.approx(1.5)

        system.process_landmarks(make_frame(3000, [make_face()]))
        assert system.get_anomaly_duration() == 0.0

    def test_same_input_same_output(self, rules, make_frame):
        """Two fresh detectors fed the same sequence agree"""
        from unittest.mock import MagicMock
        from proctorwatch.proctor import ProctoringSystem

        frames = [
            (0, [make_face(left_iris=(0.4, 0.0))], []),
            (2000, [make_face(left_iris=(0.4, 0.0))], []),
            (6000, [make_face(left_iris=(0.4, 0.0))], [make_hand(0.2)]),
            (6500, [], []),
        ]
        first = _run(ProctoringSystem(rules, MagicMock()), make_frame, frames)
        second = _run(ProctoringSystem(rules, MagicMock()), make_frame, frames)

        assert [s.to_dict() for s in first] == [s.to_dict() for s in second]

    @pytest.mark.parametrize("timestamp", [0, 3000, 5000, 8000])
    def test_repeated_frame_same_status(self, system, make_frame, timestamp):
        """Re-processing a frame at the same timestamp does not advance time"""
        for t in range(0, timestamp, 1000):
            system.process_landmarks(make_frame(t, []))

        first = system.process_landmarks(make_frame(timestamp, []))
        second = system.process_landmarks(make_frame(timestamp, []))

        assert first.to_dict() == second.to_dict()

    def test_reset_forgets_incident(self, system, make_frame):
        _run(system, make_frame, [(t * 1000, [], []) for t in range(6)])
        assert system.anomaly_state.is_active

        system.reset()

        assert system.anomaly_state.is_active is False
        assert system.get_anomaly_duration() == 0.0
        status = system.process_landmarks(make_frame(7000, []))
        assert status.status_text == "WARNING: No Face (0.0s)"

    def test_status_to_dict(self, system, make_frame):
        payload = system.process_landmarks(make_frame(0, [])).to_dict()

        assert payload["isAnomalous"] is True
        assert payload["isCritical"] is False
        assert payload["causes"] == ["No Face"]
        assert payload["debugScores"]["headCount"] == 0
        assert payload["debugScores"]["anomalyDuration"] == 0.0


class TestProcessFrame:
    """Tests for the video-frame path"""

    def _system(self, rules, source):
        from proctorwatch.proctor import ProctoringSystem

        system = ProctoringSystem(rules=rules, landmark_source=source)
        asyncio.run(system.initialize())
        return system

    def test_not_initialized(self, rules, mock_source, blank_frame):
        from proctorwatch.proctor import ProctoringSystem

        system = ProctoringSystem(rules=rules, landmark_source=mock_source)
        status = system.process_frame(blank_frame, 0)

        assert status.status_text == "STATUS: Initializing..."
        assert status.is_anomalous is False
        mock_source.detect_faces.assert_not_called()

    def test_initialize_idempotent(self, rules, mock_source):
        system = self._system(rules, mock_source)
        asyncio.run(system.initialize())

        assert system.is_initialized
        mock_source.initialize.assert_called_once()

    def test_initialize_failure_propagates(self, rules, mock_source):
        from proctorwatch.proctor import ProctoringSystem

        mock_source.initialize.side_effect = FileNotFoundError("face_landmarker.task")
        system = ProctoringSystem(rules=rules, landmark_source=mock_source)

        with pytest.raises(FileNotFoundError):
            asyncio.run(system.initialize())
        assert system.is_initialized is False

    @pytest.mark.parametrize("frame", [None, "not-an-image"])
    def test_video_not_ready(self, rules, mock_source, frame):
        import numpy as np

        system = self._system(rules, mock_source)

        for bad in (frame, np.zeros((0, 640, 3), dtype=np.uint8)):
            status = system.process_frame(bad, 0)
            assert status.status_text == "STATUS: Video not ready"
            assert status.causes == ()

        assert system.anomaly_state.is_active is False

    def test_frame_uses_source(self, rules, mock_source, blank_frame):
        """Detected landmarks flow through the rules"""
        mock_source.detect_faces.return_value = [make_face(nose=(0.9, 0.5))]
        mock_source.detect_hands.return_value = [make_hand(0.3)]
        system = self._system(rules, mock_source)

        status = system.process_frame(blank_frame, 1234)

        mock_source.detect_faces.assert_called_once_with(blank_frame, 1234)
        assert status.causes == ("Head Deviation (H)", "Hand Proximity")

    def test_empty_detection_is_no_face(self, rules, mock_source, blank_frame):
        system = self._system(rules, mock_source)

        assert system.process_frame(blank_frame, 0).causes == ("No Face",)

    def test_hand_failure_keeps_face_result(self, rules, mock_source, blank_frame):
        mock_source.detect_faces.return_value = [make_face()]
        mock_source.detect_hands.side_effect = RuntimeError("hand model crashed")
        system = self._system(rules, mock_source)

        status = system.process_frame(blank_frame, 0)

        assert status.is_anomalous is False
        assert status.debug_scores["handsDetected"] == 0

    def test_fail_open_leaves_state_untouched(self, rules, mock_source, blank_frame):
        system = self._system(rules, mock_source)
        system.process_frame(blank_frame, 0)
        before = system.anomaly_state

        mock_source.detect_faces.side_effect = RuntimeError("model crashed")
        status = system.process_frame(blank_frame, 1000)

        assert status.status_text == "STATUS: Detection error"
        assert status.is_anomalous is False
        assert system.anomaly_state == before

    def test_fail_closed_counts_as_anomaly(self, rule_values, mock_source, blank_frame):
        from proctorwatch.proctor import RuleConfig

        rules = RuleConfig.build(failure_policy="fail_closed", **rule_values)
        mock_source.detect_faces.side_effect = RuntimeError("model crashed")
        system = self._system(rules, mock_source)

        statuses = [system.process_frame(blank_frame, t * 1000) for t in range(6)]

        assert statuses[0].causes == ("Detection Failure",)
        assert statuses[0].status_text == "WARNING: Detection Failure (0.0s)"
        assert statuses[5].status_text == "CRITICAL: Detection Failure"

    def test_destroy(self, rules, mock_source, blank_frame):
        system = self._system(rules, mock_source)

        system.destroy()

        mock_source.close.assert_called_once()
        assert system.process_frame(blank_frame, 0).status_text == "STATUS: Initializing..."


class _VideoModeLandmarker:
    """Landmarker stand-in that rejects non-increasing timestamps like VIDEO mode"""

    def __init__(self, result):
        self.result = result
        self.timestamps = []

    def detect_for_video(self, image, timestamp_ms):
        if self.timestamps and timestamp_ms <= self.timestamps[-1]:
            raise ValueError(
                f"Input timestamp must be monotonically increasing: "
                f"{timestamp_ms} <= {self.timestamps[-1]}"
            )
        self.timestamps.append(timestamp_ms)
        return self.result

    def close(self):
        pass


class TestVideoModeTimestamps:
    """Frames whose timestamps a VIDEO-mode model would reject"""

    def _system(self, rules):
        from unittest.mock import MagicMock
        from proctorwatch.proctor import ProctoringSystem
        from proctorwatch.proctor.models import MediaPipeLandmarkSource

        source = MediaPipeLandmarkSource()
        source._mp = MagicMock()
        source.face_landmarker = _VideoModeLandmarker(
            MagicMock(face_landmarks=[make_face(nose=(0.9, 0.5))])
        )
        source.hand_landmarker = _VideoModeLandmarker(
            MagicMock(hand_landmarks=[], handedness=[])
        )

        system = ProctoringSystem(rules=rules, landmark_source=source)
        asyncio.run(system.initialize())
        return system, source

    def test_repeated_timestamp_keeps_detection(self, rules, blank_frame):
        system, source = self._system(rules)

        first = system.process_frame(blank_frame, 1000)
        second = system.process_frame(blank_frame, 1000)

        assert first.causes == ("Head Deviation (H)",)
        assert second.to_dict() == first.to_dict()
        assert source.face_landmarker.timestamps == [1000]

    def test_same_millisecond_frames(self, rules, blank_frame):
        """Fractional timestamps inside one millisecond are both evaluated"""
        system, source = self._system(rules)

        first = system.process_frame(blank_frame, 1000.2)
        second = system.process_frame(blank_frame, 1000.7)

        assert first.causes == ("Head Deviation (H)",)
        assert second.causes == ("Head Deviation (H)",)
        assert source.face_landmarker.timestamps == [1000, 1001]
        assert source.hand_landmarker.timestamps == [1000, 1001]

    def test_reset_allows_earlier_timestamps(self, rules, blank_frame):
        """After a reset a restarted clock still reaches the model"""
        system, source = self._system(rules)
        system.process_frame(blank_frame, 5000)

        system.reset()
        status = system.process_frame(blank_frame, 0)

        assert status.status_text == "WARNING: Head Deviation (H) (0.0s)"
        assert source.face_landmarker.timestamps == [5000, 5001]


class TestProctoringStatus:
    """ProctoringStatus immutability"""

    def test_debug_scores_read_only(self, system, make_frame):
        status = system.process_landmarks(make_frame(0, [make_face()]))

        with pytest.raises(TypeError):
            status.debug_scores["headCount"] = 5

    def test_debug_scores_copied(self):
        from proctorwatch.proctor import ProctoringStatus

        scores = {"headCount": 1}
        status = ProctoringStatus(debug_scores=scores)
        scores["headCount"] = 2

        assert status.debug_scores["headCount"] == 1
        assert status.to_dict()["debugScores"] == {"headCount": 1}
