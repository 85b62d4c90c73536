"""
Custom Exceptions
=================

Defines custom exception classes for funnelsort.
All exceptions include error codes for programmatic handling.
"""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """Error codes for programmatic error handling."""

    # General errors (1000-1099)
    UNKNOWN_ERROR = 1000
    CONFIGURATION_ERROR = 1001
    FILE_NOT_FOUND = 1002
    PERMISSION_DENIED = 1003
    DIRECTORY_UNREADABLE = 1004

    # Processing errors (1100-1199)
    PROCESSING_FAILED = 1100
    MOVE_FAILED = 1101
    DELETE_FAILED = 1102

    # Inference engine errors (1300-1399)
    INFERENCE_UNAVAILABLE = 1300
    INFERENCE_TIMEOUT = 1301
    INFERENCE_BAD_RESPONSE = 1302
    MODEL_LOAD_FAILED = 1303

    # Deduplication errors (1400-1499)
    DEDUPLICATION_FAILED = 1400
    HASH_COMPUTATION_FAILED = 1401


class FunnelSortError(Exception):
    """Base exception for all funnelsort errors.

    Attributes:
        message: Human-readable error message.
        error_code: Programmatic error code.
        details: Additional error context.
        cause: Original exception that caused this error.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        details: Optional[dict] = None,
        cause: Optional[Exception] = None
    ):
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Programmatic error code.
            details: Additional context as key-value pairs.
            cause: Original exception if wrapping another error.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        """Return a formatted error string."""
        result = f"[{self.error_code.name}] {self.message}"
        if self.details:
            result += f" | Details: {self.details}"
        if self.cause:
            result += f" | Caused by: {type(self.cause).__name__}: {self.cause}"
        return result

    def to_dict(self) -> dict:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "error_code": self.error_code.value,
            "error_name": self.error_code.name,
            "details": self.details,
            "cause": str(self.cause) if self.cause else None,
        }


class ConfigurationError(FunnelSortError):
    """Raised when there's a configuration problem.

    Examples:
        - Invalid configuration file format
        - Invalid configuration values
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        expected_type: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if config_key:
            details["config_key"] = config_key
        if expected_type:
            details["expected_type"] = expected_type
        super().__init__(
            message,
            error_code=ErrorCode.CONFIGURATION_ERROR,
            details=details,
            **kwargs
        )


class FileProcessingError(FunnelSortError):
    """Raised when a filesystem operation on a single file fails.

    Examples:
        - File vanished before it could be moved
        - Rename or delete rejected by the OS
    """

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.PROCESSING_FAILED,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if file_path:
            details["file_path"] = file_path
        super().__init__(
            message,
            error_code=error_code,
            details=details,
            **kwargs
        )


class DirectoryAccessError(FileProcessingError):
    """Raised when the root directory of a run cannot be listed."""

    def __init__(self, message: str, directory: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            file_path=directory,
            error_code=ErrorCode.DIRECTORY_UNREADABLE,
            **kwargs
        )


class InferenceError(FunnelSortError):
    """Raised when the external inference engine cannot serve a request.

    Examples:
        - Engine not reachable
        - Request timed out
        - Engine returned an error status
    """

    def __init__(
        self,
        message: str,
        model: Optional[str] = None,
        operation: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.INFERENCE_UNAVAILABLE,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if model:
            details["model"] = model
        if operation:
            details["operation"] = operation
        super().__init__(
            message,
            error_code=error_code,
            details=details,
            **kwargs
        )


class DeduplicationError(FunnelSortError):
    """Raised when deduplication operations fail.

    Examples:
        - Hash computation failure
        - File comparison error
    """

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        hash_type: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.DEDUPLICATION_FAILED,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if file_path:
            details["file_path"] = file_path
        if hash_type:
            details["hash_type"] = hash_type
        super().__init__(
            message,
            error_code=error_code,
            details=details,
            **kwargs
        )
