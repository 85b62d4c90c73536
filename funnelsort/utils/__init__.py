"""Utilities module for funnelsort."""

from .logging_config import setup_logging, get_logger, LoggingConfig, Timer
from .exceptions import (
    ErrorCode,
    FunnelSortError,
    ConfigurationError,
    FileProcessingError,
    DirectoryAccessError,
    InferenceError,
    DeduplicationError,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "LoggingConfig",
    "Timer",
    "ErrorCode",
    "FunnelSortError",
    "ConfigurationError",
    "FileProcessingError",
    "DirectoryAccessError",
    "InferenceError",
    "DeduplicationError",
]
