"""
Incident Logger - Reports confirmed (critical) incidents to the incident log

Reporting is fire-and-forget: the POST runs as a background task and any
failure is logged here without reaching the detector.
"""

import asyncio
import logging
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Dict, Optional, Set

import httpx

from .state import Transition, TransitionKind
from .utils.logging import log_critical_event

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Incident:
    """Payload sent to the incident log."""
    cause: str
    duration: float
    timestamp: str

    @classmethod
    def from_transition(cls, transition: Transition) -> "Incident":
        return cls(
            cause=transition.state.primary_cause,
            duration=round(transition.elapsed_seconds, 1),
            timestamp=datetime.utcnow().isoformat() + "Z",
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class IncidentLogger:
    """
    Posts incidents as JSON to INCIDENT_LOG_URL.

    Without a URL incidents are only written to the local log.
    """

    def __init__(self, url: Optional[str] = None, timeout: float = 5.0):
        self.url = url
        self.timeout = timeout
        self._pending: Set[asyncio.Task] = set()
        self.sent_count = 0
        self.failed_count = 0

    @classmethod
    def from_settings(cls, settings) -> "IncidentLogger":
        return cls(url=settings.INCIDENT_LOG_URL, timeout=settings.INCIDENT_LOG_TIMEOUT)

    def on_transition(self, session_id: str, transition: Optional[Transition]) -> Optional[Incident]:
        """Report the incident if this transition is an escalation."""
        if transition is None or transition.kind != TransitionKind.ESCALATED:
            return None
        incident = Incident.from_transition(transition)
        self.report(session_id, incident)
        return incident

    def report(self, session_id: str, incident: Incident):
        """Log locally and schedule the remote POST without waiting for it."""
        log_critical_event(session_id, "anomaly", incident.to_dict())

        if not self.url:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop; incident kept in local log only")
            return

        task = loop.create_task(self.send(incident))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def send(self, incident: Incident) -> bool:
        """POST one incident. Never raises."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.url, json=incident.to_dict())

            if response.status_code >= 400:
                logger.warning(
                    f"Incident log rejected incident: {response.status_code} - {response.text}"
                )
                self.failed_count += 1
                return False

            self.sent_count += 1
            return True

        except Exception as e:
            logger.warning(f"Failed to send incident to log: {e}")
            self.failed_count += 1
            return False

    async def drain(self):
        """Wait for in-flight reports (used on shutdown and in tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
