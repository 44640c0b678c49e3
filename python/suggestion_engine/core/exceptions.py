"""
Custom exception hierarchy for the engine.
All exceptions inherit from AppException for unified handling.
"""

from typing import Optional, Dict, Any


class AppException(Exception):
    """
    Base exception for all engine errors.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        status_code: HTTP status code reported by the backend (0 for local errors)
        details: Additional error details
    """

    def __init__(
        self,
        message: str,
        code: str = "ERROR",
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for display or logging."""
        result = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


# === Not Found Errors ===

class NotFoundError(AppException):
    """Resource not found."""

    def __init__(self, entity: str, identifier: str = None, message: str = None):
        if message is None:
            message = f"{entity} not found"
            if identifier:
                message = f"{entity} '{identifier}' not found"
        details = {"entity": entity}
        if identifier:
            details["id"] = identifier
        super().__init__(
            message=message,
            code="NOT_FOUND",
            status_code=404,
            details=details
        )


class SuggestionNotFoundError(NotFoundError):
    def __init__(self, suggestion_id: str):
        super().__init__("Suggestion", suggestion_id)


class FaceNotFoundError(NotFoundError):
    def __init__(self, face_id: str):
        super().__init__("Face", face_id)


class PersonNotFoundError(NotFoundError):
    def __init__(self, person_id: str):
        super().__init__("Person", person_id)


class JobNotFoundError(NotFoundError):
    def __init__(self, progress_key: str):
        super().__init__("Job", progress_key)


# === Conflict Errors ===

class ConflictError(AppException):
    """Request conflicts with the current server state."""

    def __init__(self, message: str, code: str = "CONFLICT", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            code=code,
            status_code=409,
            details=details
        )


class AlreadyReviewedError(ConflictError):
    """Suggestion is no longer pending."""

    def __init__(self, suggestion_id: str, status: str = None):
        message = f"Suggestion '{suggestion_id}' was already reviewed"
        details = {"suggestion_id": suggestion_id}
        if status:
            message = f"{message} ({status})"
            details["status"] = status
        super().__init__(message=message, code="ALREADY_REVIEWED", details=details)


# === Local Concurrency Errors ===

class BusyError(AppException):
    """An operation on the same face is still in flight."""

    def __init__(self, face_id: str):
        super().__init__(
            message=f"Assignment already in progress for face '{face_id}'",
            code="BUSY",
            status_code=0,
            details={"face_id": face_id}
        )


# === Validation Errors ===

class ValidationError(AppException):
    """Input validation failed."""

    def __init__(self, message: str, field: str = None, code: str = "VALIDATION_ERROR", status_code: int = 422):
        details = {"field": field} if field else {}
        super().__init__(
            message=message,
            code=code,
            status_code=status_code,
            details=details
        )


class DuplicatePersonError(ValidationError):
    def __init__(self, name: str):
        super().__init__(
            message=f"Person named '{name}' already exists",
            field="name",
            status_code=409
        )


class InsufficientLabeledFacesError(ValidationError):
    def __init__(self, person_id: str, reason: str = None):
        super().__init__(
            message=reason or f"Person '{person_id}' has too few labeled faces",
            field="person_id",
            status_code=400
        )


# === Quota Errors ===

class QuotaExceededError(AppException):
    """Backend refused the request because a quota is exhausted."""

    def __init__(self, message: str = "Quota exceeded"):
        super().__init__(
            message=message,
            code="QUOTA_EXCEEDED",
            status_code=429
        )


# === Transport Errors ===

class TransportError(AppException):
    """Network failure, request timeout or unusable server response."""

    def __init__(self, message: str, url: str = None, status_code: int = 0):
        details = {"url": url} if url else {}
        super().__init__(
            message=message,
            code="TRANSPORT_ERROR",
            status_code=status_code,
            details=details
        )


# === Job Errors ===

class JobFailedError(AppException):
    """Background job reported failure."""

    def __init__(self, message: str, progress_key: str = None):
        details = {"progress_key": progress_key} if progress_key else {}
        super().__init__(
            message=message,
            code="JOB_FAILED",
            status_code=0,
            details=details
        )


class JobTimeoutError(AppException):
    """Job monitor exceeded its ceiling without a terminal phase."""

    def __init__(self, progress_key: str, timeout: float):
        super().__init__(
            message=f"Job '{progress_key}' did not finish within {timeout:.0f}s",
            code="JOB_TIMEOUT",
            status_code=0,
            details={"progress_key": progress_key, "timeout": timeout}
        )
