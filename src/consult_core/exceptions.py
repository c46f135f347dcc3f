"""Error taxonomy for the consultation booking core.

Every rejection the core produces is one of these classes. Each carries a
machine-readable ``code`` (the error kind), a human message and structured
``details`` so the HTTP layer can map it to a response without guessing.
"""

from typing import Any, Dict, Optional


class APIException(Exception):
    """Base exception for all core errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        return {
            "error": {
                "message": self.message,
                "code": self.code,
                "status_code": self.status_code,
                "details": self.details,
            }
        }


class AuthenticationError(APIException):
    """Raised when the caller identity is missing or invalid."""

    def __init__(
        self,
        message: str = "Authentication failed",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            status_code=401,
            code="AUTHENTICATION_ERROR",
            details=details,
        )


class InvalidInputError(APIException):
    """Raised for malformed intervals, durations or request shapes."""

    def __init__(
        self,
        message: str = "Invalid input",
        errors: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        error_details = details or {}
        if errors:
            error_details["validation_errors"] = errors
        super().__init__(
            message=message,
            status_code=422,
            code="INVALID_INPUT",
            details=error_details,
        )


class NotFoundError(APIException):
    """Raised when a lawyer or consultation does not exist."""

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource} not found"
        if resource_id:
            message += f" with id: {resource_id}"
        error_details = details or {}
        error_details["resource"] = resource
        if resource_id:
            error_details["resource_id"] = resource_id
        super().__init__(
            message=message,
            status_code=404,
            code="NOT_FOUND",
            details=error_details,
        )


class ForbiddenError(APIException):
    """Raised when the actor is not a party to the consultation or lacks the role."""

    def __init__(
        self,
        message: str = "Not authorized to act on this consultation",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            status_code=403,
            code="FORBIDDEN",
            details=details,
        )


class SlotUnavailableError(APIException):
    """Raised when a proposed interval overlaps an active booking."""

    def __init__(
        self,
        message: str = "The selected time slot is not available",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            status_code=409,
            code="SLOT_UNAVAILABLE",
            details=details,
        )


class InvalidTransitionError(APIException):
    """Raised for a lifecycle move the state machine does not allow."""

    def __init__(
        self,
        current_status: str,
        target_status: str,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        error_details = details or {}
        error_details["current_status"] = current_status
        error_details["target_status"] = target_status
        super().__init__(
            message=message
            or f"Cannot move consultation from '{current_status}' to '{target_status}'",
            status_code=409,
            code="INVALID_TRANSITION",
            details=error_details,
        )


class NotEligibleError(APIException):
    """Raised when a session credential is requested outside eligible states."""

    def __init__(
        self,
        message: str = "Consultation is not eligible for a session credential",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            status_code=409,
            code="NOT_ELIGIBLE",
            details=details,
        )


class DatabaseError(APIException):
    """Raised for durable store failures."""

    def __init__(
        self,
        message: str = "Database operation failed",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            status_code=500,
            code="DATABASE_ERROR",
            details=details,
        )


class ExternalServiceError(APIException):
    """Raised when a collaborator (signaling provider) call fails."""

    def __init__(
        self,
        service: str,
        message: Optional[str] = None,
        status_code: int = 502,
        details: Optional[Dict[str, Any]] = None,
    ):
        error_message = message or f"External service '{service}' unavailable"
        error_details = details or {}
        error_details["service"] = service
        super().__init__(
            message=error_message,
            status_code=status_code,
            code="EXTERNAL_SERVICE_ERROR",
            details=error_details,
        )
