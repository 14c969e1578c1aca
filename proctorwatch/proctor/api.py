"""
Proctoring API - FastAPI endpoints for exam proctoring

Endpoints:
- POST /api/proctor/start - Start a proctoring session
- POST /api/proctor/stream - Stream a video frame for processing
- POST /api/proctor/landmarks - Submit client-side landmarks for a frame
- POST /api/proctor/reset - Restart monitoring for a session
- POST /api/proctor/stop - Stop session and get results
- GET /api/proctor/status/{session_id} - Get latest session status
- POST /api/proctor/log-anomaly - Incident log sink for critical anomalies
"""

import base64
import binascii
import logging
from typing import Any, Dict, List, Optional

import cv2
import numpy as np
from fastapi import APIRouter, HTTPException, BackgroundTasks
from pydantic import BaseModel, Field

from ..config import settings
from .incidents import IncidentLogger
from .landmarks import Frame, HandLandmarkSet, LandmarkPoint
from .scoring import ProctoringStatus
from .session import ProctorSession
from .utils.logging import log_critical_event

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/proctor", tags=["Proctoring"])

# In-memory session storage
_sessions: Dict[str, ProctorSession] = {}

# Shared by all sessions; drained on shutdown
incident_logger = IncidentLogger.from_settings(settings)


# ============== Request/Response Models ==============

class StartSessionRequest(BaseModel):
    """Request to start a proctoring session"""
    assessment_id: str = Field(..., description="ID of the assessment")
    student_id: str = Field(..., description="ID of the student")
    load_model: bool = Field(True, description="Load the perception model for /stream")


class StartSessionResponse(BaseModel):
    """Response after starting a session"""
    session_id: str
    status: str
    model_ready: bool
    message: str


class StreamFrameRequest(BaseModel):
    """Request to process a webcam frame"""
    session_id: str = Field(..., description="Session ID from /start")
    frame_base64: str = Field(..., description="Base64 encoded JPEG frame")
    timestamp_ms: float = Field(..., description="Frame timestamp in milliseconds")


class PointModel(BaseModel):
    x: float
    y: float
    z: float = 0.0


class HandModel(BaseModel):
    points: List[PointModel]
    score: Optional[float] = None
    handedness: Optional[str] = None


class LandmarksRequest(BaseModel):
    """Landmarks computed in the browser for one frame"""
    session_id: str
    timestamp_ms: float
    faces: List[List[PointModel]] = Field(default_factory=list)
    hands: List[HandModel] = Field(default_factory=list)

    def to_frame(self) -> Frame:
        return Frame(
            timestamp_ms=self.timestamp_ms,
            face_landmark_sets=[
                [LandmarkPoint(p.x, p.y, p.z) for p in face] for face in self.faces
            ],
            hand_landmark_sets=[
                HandLandmarkSet(
                    points=[LandmarkPoint(p.x, p.y, p.z) for p in hand.points],
                    score=hand.score,
                    handedness=hand.handedness,
                )
                for hand in self.hands
            ],
        )


class StatusResponse(BaseModel):
    """ProctoringStatus for one frame"""
    isAnomalous: bool
    isCritical: bool
    causes: List[str]
    statusText: str
    debugScores: Dict[str, Any]
    anomalyDuration: float

    @classmethod
    def from_status(cls, status: ProctoringStatus, duration: float) -> "StatusResponse":
        return cls(**status.to_dict(), anomalyDuration=round(duration, 1))


class SessionRequest(BaseModel):
    """Request referencing an existing session"""
    session_id: str


class StopSessionResponse(BaseModel):
    """Final proctoring results"""
    session_id: str
    frames_processed: int
    critical_incidents: List[Dict[str, Any]]
    cause_frame_counts: Dict[str, int]
    review_required: bool
    duration_seconds: float


class SessionStatusResponse(BaseModel):
    """Current session status"""
    session_id: str
    is_active: bool
    frames_processed: int
    status: Dict[str, Any]
    status_sequence: int
    anomaly_duration: float
    critical_incidents: int
    duration_seconds: float


class AnomalyLogRequest(BaseModel):
    """Critical incident reported by a detector"""
    cause: str
    duration: float
    timestamp: str


class AnomalyLogResponse(BaseModel):
    success: bool
    message: str


class ModelStatusResponse(BaseModel):
    """Model availability status"""
    mediapipe: bool
    face_landmarker: bool
    hand_landmarker: bool


# ============== Helpers ==============

def _get_active_session(session_id: str) -> ProctorSession:
    session = _sessions.get(session_id)

    if not session:
        raise HTTPException(status_code=404, detail="Session not found")

    if not session.is_active:
        raise HTTPException(status_code=400, detail="Session is not active")

    return session


def _decode_frame(frame_base64: str) -> np.ndarray:
    try:
        frame_bytes = base64.b64decode(frame_base64, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=400, detail="Invalid frame data")

    frame_array = np.frombuffer(frame_bytes, dtype=np.uint8)
    frame = cv2.imdecode(frame_array, cv2.IMREAD_COLOR) if frame_array.size else None

    if frame is None:
        raise HTTPException(status_code=400, detail="Invalid frame data")

    return frame


# ============== API Endpoints ==============

@router.post("/start", response_model=StartSessionResponse)
async def start_session(request: StartSessionRequest):
    """
    Start a new proctoring session.
    """
    try:
        session = ProctorSession(
            assessment_id=request.assessment_id,
            student_id=request.student_id,
            incident_logger=incident_logger,
        )
    except Exception as e:
        logger.error(f"Failed to start proctoring session: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    model_ready = await session.start() if request.load_model else False
    _sessions[session.id] = session

    logger.info(f"Started proctoring session: {session.id}")

    return StartSessionResponse(
        session_id=session.id,
        status="active",
        model_ready=model_ready,
        message="Proctoring session started successfully"
    )


@router.post("/stream", response_model=StatusResponse)
async def stream_frame(request: StreamFrameRequest):
    """
    Process a single webcam frame.

    Decodes the base64 frame and runs it through the perception model
    and the anomaly rules.
    """
    session = _get_active_session(request.session_id)
    frame = _decode_frame(request.frame_base64)

    status = session.process_frame(frame, request.timestamp_ms)
    return StatusResponse.from_status(status, session.system.get_anomaly_duration())


@router.post("/landmarks", response_model=StatusResponse)
async def submit_landmarks(request: LandmarksRequest):
    """
    Evaluate landmarks computed client-side (e.g. MediaPipe in the browser).
    """
    session = _get_active_session(request.session_id)

    status = session.process_landmarks(request.to_frame())
    return StatusResponse.from_status(status, session.system.get_anomaly_duration())


@router.post("/reset", response_model=SessionStatusResponse)
async def reset_session(request: SessionRequest):
    """
    Clear any ongoing incident, e.g. when the exam restarts.
    """
    session = _get_active_session(request.session_id)
    session.reset()
    return SessionStatusResponse(**session.get_status())


@router.post("/stop", response_model=StopSessionResponse)
async def stop_session(request: SessionRequest, background_tasks: BackgroundTasks):
    """
    Stop a proctoring session and get final results.
    """
    session = _sessions.get(request.session_id)

    if not session:
        raise HTTPException(status_code=404, detail="Session not found")

    try:
        result = session.finalize()
    except Exception as e:
        logger.error(f"Error stopping session: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    background_tasks.add_task(_cleanup_session, request.session_id)

    return StopSessionResponse(
        session_id=result["session_id"],
        frames_processed=result["frames_processed"],
        critical_incidents=result["critical_incidents"],
        cause_frame_counts=result["cause_frame_counts"],
        review_required=result["review_required"],
        duration_seconds=result["duration_seconds"]
    )


@router.get("/status/{session_id}", response_model=SessionStatusResponse)
async def get_session_status(session_id: str):
    """
    Get the latest status of a proctoring session.
    """
    session = _sessions.get(session_id)

    if not session:
        raise HTTPException(status_code=404, detail="Session not found")

    return SessionStatusResponse(**session.get_status())


@router.post("/log-anomaly", response_model=AnomalyLogResponse)
async def log_anomaly(request: AnomalyLogRequest):
    """
    Record a critical anomaly.
    """
    log_critical_event(
        "remote",
        "anomaly_logged",
        {"cause": request.cause, "duration": request.duration, "timestamp": request.timestamp}
    )

    return AnomalyLogResponse(success=True, message="Anomaly logged successfully")


@router.get("/models-status", response_model=ModelStatusResponse)
async def get_models_status():
    """
    Check which perception models are available.
    """
    from .models.model_loader import check_models

    return ModelStatusResponse(**check_models(settings.PROCTOR_MODELS_DIR))


# ============== Background Tasks ==============

async def _cleanup_session(session_id: str):
    """Drop a finalized session"""
    if session_id in _sessions:
        del _sessions[session_id]
        logger.info(f"Cleaned up session: {session_id}")


# ============== Health Check ==============

@router.get("/health")
async def health_check():
    """Health check for proctoring module"""
    return {
        "status": "healthy",
        "active_sessions": len(_sessions),
        "module": "proctoring"
    }
