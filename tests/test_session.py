"""
Tests for ProctorSession
"""

import asyncio

import pytest
from unittest.mock import MagicMock

from fixtures.synthetic_landmarks import make_face, make_hand


@pytest.fixture
def session(rules):
    from proctorwatch.proctor.session import ProctorSession
    from proctorwatch.proctor.incidents import IncidentLogger

    return ProctorSession(
        assessment_id="assess-1",
        student_id="student-1",
        rules=rules,
        landmark_source=MagicMock(),
        incident_logger=IncidentLogger(),
    )


class TestProctorSession:
    """Tests for session bookkeeping"""

    def test_generated_id(self, session):
        assert session.id.startswith("EXM_")
        assert len(session.id) == 10
        assert session.is_active

    def test_custom_id(self, rules):
        from proctorwatch.proctor.session import ProctorSession

        session = ProctorSession("a", "s", session_id="custom", rules=rules, landmark_source=MagicMock())

        assert session.id == "custom"

    def test_start_reports_model_failure(self, rules):
        from proctorwatch.proctor.session import ProctorSession

        source = MagicMock()
        source.initialize.side_effect = FileNotFoundError("face_landmarker.task")
        session = ProctorSession("a", "s", rules=rules, landmark_source=source)

        assert asyncio.run(session.start()) is False

    def test_counts_causes_and_incidents(self, session, make_frame):
        for t in range(8):
            session.process_landmarks(make_frame(t * 1000, [], [make_hand(0.3)]))

        assert session.frame_count == 8
        assert session.cause_counts["No Face"] == 8
        assert session.cause_counts["Hand Proximity"] == 8
        assert len(session.incidents) == 1
        assert session.incidents[0].cause == "No Face"

    def test_get_status(self, session, make_frame):
        empty = session.get_status()
        assert empty["status"]["statusText"] == "Monitoring (Safe)"

        session.process_landmarks(make_frame(0, [make_face(nose=(0.9, 0.5))]))
        session.process_landmarks(make_frame(1500, [make_face(nose=(0.9, 0.5))]))
        status = session.get_status()

        assert status["frames_processed"] == 2
        assert status["status"]["causes"] == ["Head Deviation (H)"]
        assert status["anomaly_duration"] == 1.5

    def test_reset(self, session, make_frame):
        session.process_landmarks(make_frame(0, []))
        session.reset()

        assert session.latest_status is None
        assert session.system.anomaly_state.is_active is False

    def test_finalize(self, session, make_frame):
        for t in range(6):
            session.process_landmarks(make_frame(t * 1000, []))

        result = session.finalize()

        assert session.is_active is False
        assert result["frames_processed"] == 6
        assert result["review_required"] is True
        assert result["critical_incidents"][0]["cause"] == "No Face"
        assert result["cause_frame_counts"] == {"No Face": 6}
        session.system.landmark_source.close.assert_called_once()

    def test_finalize_clean_session(self, session, make_frame):
        session.process_landmarks(make_frame(0, [make_face()]))

        result = session.finalize()

        assert result["review_required"] is False
        assert result["critical_incidents"] == []


class TestSessionStatusCell:
    """Status publication through the session's LatestStatusCell"""

    def test_every_frame_published(self, session, make_frame):
        for t in range(3):
            session.process_landmarks(make_frame(t * 100, [make_face()]))

        status = session.get_status()

        assert session.status_cell.sequence == 3
        assert status["status_sequence"] == 3
        assert session.latest_status is session.status_cell.latest

    def test_reset_clears_cell(self, session, make_frame):
        session.process_landmarks(make_frame(0, []))

        session.reset()

        assert session.status_cell.latest is None
        assert session.get_status()["status"]["causes"] == []

    @pytest.mark.asyncio
    async def test_watch_reads_latest(self, session, make_frame):
        seen = []
        stop = asyncio.Event()
        session.process_landmarks(make_frame(0, []))

        watcher = asyncio.create_task(session.watch(seen.append, interval=0.01, stop_event=stop))
        await asyncio.sleep(0.03)
        session.process_landmarks(make_frame(1000, [make_face()]))
        await asyncio.sleep(0.03)
        stop.set()
        await watcher

        assert seen[0].causes == ("No Face",)
        assert seen[-1].status_text == "Monitoring (Safe)"
