"""
Proctoring Logger - Logs proctoring events and incidents
"""

import logging
from datetime import datetime
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)


def log_proctor_event(
    session_id: str,
    event_type: str,
    details: Optional[Dict[str, Any]] = None,
    level: str = "info"
):
    """
    Log a proctoring event.

    Args:
        session_id: Proctoring session ID
        event_type: Type of event (start, anomaly, critical, stop, etc.)
        details: Optional event details
        level: Log level (debug, info, warning, error)
    """
    message = f"[PROCTOR] session={session_id} event={event_type}"

    if details:
        detail_str = " ".join(f"{k}={v}" for k, v in details.items())
        message += f" {detail_str}"

    if level == "debug":
        logger.debug(message)
    elif level == "warning":
        logger.warning(message)
    elif level == "error":
        logger.error(message)
    else:
        logger.info(message)


def log_session_start(session_id: str, assessment_id: str, student_id: str):
    """Log session start event"""
    log_proctor_event(
        session_id=session_id,
        event_type="session_start",
        details={
            "assessment_id": assessment_id,
            "student_id": student_id,
            "at": datetime.utcnow().isoformat()
        }
    )


def log_session_end(session_id: str, incidents: int, frames: int):
    """Log session end event"""
    log_proctor_event(
        session_id=session_id,
        event_type="session_end",
        details={
            "critical_incidents": incidents,
            "frames_processed": frames
        }
    )


def log_anomaly_started(session_id: str, cause: str, previous: Optional[str] = None):
    """Log when a new anomaly starts being tracked"""
    details = {"cause": cause}
    if previous:
        details["replaces"] = previous
    log_proctor_event(
        session_id=session_id,
        event_type="anomaly_started",
        details=details,
        level="debug"
    )


def log_critical_event(session_id: str, event: str, details: Optional[Dict[str, Any]] = None):
    """Log a critical proctoring event"""
    log_proctor_event(
        session_id=session_id,
        event_type=f"critical_{event}",
        details=details,
        level="warning"
    )
