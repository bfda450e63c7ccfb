from typing import Optional, Any, List


class TopLawnsError(Exception):
    """
    Base exception for the booking service.
    """
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500, details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class ResourceNotFoundError(TopLawnsError):
    """
    Raised when a requested resource is not found.
    """
    def __init__(self, message: str = "Resource not found", details: Optional[Any] = None):
        super().__init__(message, code="NOT_FOUND", status_code=404, details=details)


class ValidationError(TopLawnsError):
    """
    Raised when input validation fails.
    """
    def __init__(self, message: str = "Validation error", details: Optional[Any] = None):
        super().__init__(message, code="VALIDATION_ERROR", status_code=422, details=details)


class AlreadyExistsError(TopLawnsError):
    """
    Raised when creating a record whose identifier is already taken.
    """
    def __init__(self, message: str = "Resource already exists", details: Optional[Any] = None):
        super().__init__(message, code="ALREADY_EXISTS", status_code=409, details=details)


class ConflictError(TopLawnsError):
    """
    Raised when a conditional update finds the record in an unexpected state.
    """
    def __init__(self, message: str = "Record state changed", details: Optional[Any] = None):
        super().__init__(message, code="CONFLICT", status_code=409, details=details)


class InvalidTransitionError(TopLawnsError):
    """
    Raised when a status change is not allowed by the booking lifecycle.
    """
    def __init__(self, message: str = "Invalid status transition", details: Optional[Any] = None):
        super().__init__(message, code="INVALID_TRANSITION", status_code=409, details=details)


class AmbiguousMatchError(TopLawnsError):
    """
    Raised when a reply code matches more than one pending booking.
    """
    def __init__(self, code: str, candidates: List[str]):
        self.candidates = candidates
        super().__init__(
            f"Code {code} matches {len(candidates)} pending bookings",
            code="AMBIGUOUS_MATCH",
            status_code=409,
            details={"code": code, "candidates": candidates},
        )


class ExternalServiceError(TopLawnsError):
    """
    Raised when an external service (e.g., Twilio) fails.
    """
    def __init__(self, message: str = "External service error", details: Optional[Any] = None, code: str = "EXTERNAL_SERVICE_ERROR"):
        super().__init__(message, code=code, status_code=502, details=details)


class TransportError(ExternalServiceError):
    """
    Raised when a single outbound message could not be handed to the SMS provider.
    """
    def __init__(self, message: str = "SMS transport error", details: Optional[Any] = None):
        super().__init__(message, details=details, code="TRANSPORT_ERROR")


class NotificationError(ExternalServiceError):
    """
    Raised by intake when the booking was stored but a notification leg failed.
    """
    def __init__(self, message: str = "Booking saved but notification failed", details: Optional[Any] = None):
        super().__init__(message, details=details, code="NOTIFICATION_FAILED")
