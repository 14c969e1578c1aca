"""
Monitor - Detection and observation loops around a ProctoringSystem

The detection loop runs as fast as frames arrive and publishes every
status into a LatestStatusCell. The observation loop (UI, reporting)
wakes at a fixed, slower cadence and reads only the newest status.
Stale reads are expected; nothing is queued.
"""

import asyncio
import inspect
import logging
from typing import Any, AsyncIterable, Callable, Iterable, Optional, Tuple, Union

import numpy as np

from .scoring import ProctoringStatus
from .system import ProctoringSystem
from .incidents import IncidentLogger

logger = logging.getLogger(__name__)

FrameItem = Tuple[np.ndarray, float]


class LatestStatusCell:
    """Last-value-wins holder for ProctoringStatus. One writer only."""

    def __init__(self):
        self._status: Optional[ProctoringStatus] = None
        self._sequence = 0

    def publish(self, status: ProctoringStatus) -> int:
        """Replace the held status. Returns the new sequence number."""
        self._status = status
        self._sequence += 1
        return self._sequence

    @property
    def latest(self) -> Optional[ProctoringStatus]:
        return self._status

    @property
    def sequence(self) -> int:
        return self._sequence

    def read(self) -> Tuple[int, Optional[ProctoringStatus]]:
        """Snapshot of (sequence, status)."""
        return self._sequence, self._status

    def clear(self) -> int:
        """Drop the held status (e.g. on reset). Readers see None until the next publish."""
        self._status = None
        self._sequence += 1
        return self._sequence


async def _iterate(frames: Union[Iterable[FrameItem], AsyncIterable[FrameItem]]):
    if hasattr(frames, "__aiter__"):
        async for item in frames:
            yield item
    else:
        for item in frames:
            yield item
            # let the observation loop run between synchronous frames
            await asyncio.sleep(0)


async def run_detection_loop(
    system: ProctoringSystem,
    frames: Union[Iterable[FrameItem], AsyncIterable[FrameItem]],
    cell: LatestStatusCell,
    incident_logger: Optional[IncidentLogger] = None,
    session_id: str = "local",
    stop_event: Optional[asyncio.Event] = None,
) -> int:
    """
    Process frames in arrival order and publish each status.

    Args:
        system: Initialized detector
        frames: (bgr_frame, timestamp_ms) pairs, sync or async
        cell: Where statuses are published
        incident_logger: Notified once per critical escalation
        session_id: Label used in incident logs
        stop_event: Stops the loop early when set

    Returns:
        Number of frames processed
    """
    processed = 0

    async for frame, timestamp_ms in _iterate(frames):
        if stop_event is not None and stop_event.is_set():
            break

        status = system.process_frame(frame, timestamp_ms)
        cell.publish(status)
        processed += 1

        if incident_logger is not None:
            incident_logger.on_transition(session_id, system.last_transition)

    logger.info(f"Detection loop finished after {processed} frames")
    return processed


async def run_observation_loop(
    cell: LatestStatusCell,
    callback: Callable[[ProctoringStatus], Any],
    interval: Optional[float] = None,
    stop_event: Optional[asyncio.Event] = None,
) -> int:
    """
    Hand the latest status to callback every `interval` seconds.

    Ticks before the first publish are skipped. The callback may be a
    coroutine function. A callback error is logged and the loop keeps
    ticking. interval defaults to OBSERVATION_INTERVAL_SECONDS.

    Returns:
        Number of callback invocations
    """
    if interval is None:
        from ..config import settings
        interval = settings.OBSERVATION_INTERVAL_SECONDS

    stop_event = stop_event or asyncio.Event()
    observed = 0

    while not stop_event.is_set():
        status = cell.latest
        if status is not None:
            observed += 1
            try:
                result = callback(status)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Status observer failed: {e}")

        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval)
        except asyncio.TimeoutError:
            pass

    return observed
