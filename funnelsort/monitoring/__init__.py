"""Monitoring module: run events and statistics."""

from .events import (
    EventEmitter,
    EventRecorder,
    PROCESSING_START,
    FILE_PROCESSING_STATUS,
    FILE_PROCESSED,
    FUNNEL_STATS,
    FILE_DUPLICATE_DETECTED,
    LOG_UPDATE,
    PROCESSING_COMPLETE,
)
from .stats import FunnelStats

__all__ = [
    "EventEmitter",
    "EventRecorder",
    "FunnelStats",
    "PROCESSING_START",
    "FILE_PROCESSING_STATUS",
    "FILE_PROCESSED",
    "FUNNEL_STATS",
    "FILE_DUPLICATE_DETECTED",
    "LOG_UPDATE",
    "PROCESSING_COMPLETE",
]
