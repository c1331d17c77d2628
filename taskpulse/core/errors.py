"""Error taxonomy and user-facing classification for task operations."""

from enum import Enum

from pydantic import BaseModel


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCode:
    """Error codes for specific error conditions."""

    # Input errors
    ERR_VALIDATION = "ERR_VALIDATION"
    ERR_TASK_NOT_FOUND = "ERR_TASK_NOT_FOUND"
    ERR_IMPORT_FAILED = "ERR_IMPORT_FAILED"

    # Storage errors
    ERR_PERSISTENCE = "ERR_PERSISTENCE"

    # Generic errors
    ERR_UNKNOWN = "ERR_UNKNOWN"


class TaskPulseError(Exception):
    """Base class for recoverable task errors."""

    code: str = ErrorCode.ERR_UNKNOWN

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class TaskValidationError(TaskPulseError):
    """Bad input shape or content. Raised before any store write."""

    code = ErrorCode.ERR_VALIDATION


class TaskNotFoundError(TaskPulseError):
    """An operation referenced a task id that is not in the live collection."""

    code = ErrorCode.ERR_TASK_NOT_FOUND

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class PersistenceError(TaskPulseError):
    """A document store read or write failed.

    Local state has already been applied when this is raised.
    """

    code = ErrorCode.ERR_PERSISTENCE

    def __init__(self, message: str, *, operation: str, task_ids: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.operation = operation
        self.task_ids = task_ids


class TaskImportError(TaskPulseError):
    """Serialized payload is not a well-formed task collection."""

    code = ErrorCode.ERR_IMPORT_FAILED


class ErrorResponse(BaseModel):
    """Structured error response with user-friendly messaging."""

    code: str
    message: str
    suggestion: str
    severity: ErrorSeverity


def classify_error_with_response(exception: Exception) -> ErrorResponse:
    """Classify an error and return a structured response with recovery suggestions.

    Args:
        exception: The exception raised during a task operation

    Returns:
        ErrorResponse with code, message, suggestion, and severity
    """
    if isinstance(exception, TaskValidationError):
        return ErrorResponse(
            code=ErrorCode.ERR_VALIDATION,
            message=f"That task input isn't valid: {exception.message}",
            suggestion="Check the highlighted fields and try again.",
            severity=ErrorSeverity.LOW,
        )

    if isinstance(exception, TaskNotFoundError):
        return ErrorResponse(
            code=ErrorCode.ERR_TASK_NOT_FOUND,
            message="I couldn't find that task. It may have been deleted.",
            suggestion="Refresh your task list and try again.",
            severity=ErrorSeverity.LOW,
        )

    if isinstance(exception, PersistenceError):
        return ErrorResponse(
            code=ErrorCode.ERR_PERSISTENCE,
            message="Your change was applied locally but could not be saved.",
            suggestion="Check your connection and retry, or reload to see the saved state.",
            severity=ErrorSeverity.HIGH,
        )

    if isinstance(exception, TaskImportError):
        return ErrorResponse(
            code=ErrorCode.ERR_IMPORT_FAILED,
            message="Failed to import tasks. Please check the data format.",
            suggestion="Import a JSON array of tasks, such as one produced by export.",
            severity=ErrorSeverity.MEDIUM,
        )

    return ErrorResponse(
        code=ErrorCode.ERR_UNKNOWN,
        message="An unexpected error occurred.",
        suggestion="Please try again later. If the problem persists, contact support.",
        severity=ErrorSeverity.MEDIUM,
    )
