"""Utility modules"""

from .frame_quality import check_frame_ready
from .logging import log_proctor_event

__all__ = ["check_frame_ready", "log_proctor_event"]
