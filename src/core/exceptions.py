"""Custom exceptions and error codes."""

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for the API."""

    # Token errors (401)
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"

    # Not found errors (404)
    INVITATION_NOT_FOUND = "INVITATION_NOT_FOUND"
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"

    # Validation errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_CANDIDATES = "INVALID_CANDIDATES"
    INVALID_DECLINE_DETAIL = "INVALID_DECLINE_DETAIL"

    # Conflict errors (409)
    ALREADY_RESPONDED = "ALREADY_RESPONDED"

    # Gone (410)
    INVITATION_EXPIRED = "INVITATION_EXPIRED"

    # Delivery errors (per recipient, never returned by the API directly)
    DELIVERY_FAILED = "DELIVERY_FAILED"

    # Rate limiting (429)
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Server errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Any | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


# --- Validation ---


class ValidationError(AppException):
    """Input rejected before anything was persisted."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        details: Any | None = None,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=400,
            details=details,
        )


class InvalidCandidateError(ValidationError):
    """The candidate list of an issue request is malformed."""

    def __init__(self, message: str, details: Any | None = None) -> None:
        super().__init__(
            message=message,
            error_code=ErrorCode.INVALID_CANDIDATES,
            details=details,
        )


class InvalidDeclineDetailError(ValidationError):
    """Decline payload does not match its reason code."""

    def __init__(self, message: str, reason_code: str | None = None) -> None:
        super().__init__(
            message=message,
            error_code=ErrorCode.INVALID_DECLINE_DETAIL,
            details={"reason_code": reason_code} if reason_code else None,
        )


# --- Not found ---


class NotFoundError(AppException):
    """Referenced entity does not exist."""

    def __init__(self, error_code: ErrorCode, message: str, details: Any | None = None) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=404,
            details=details,
        )


class InvitationNotFoundError(NotFoundError):
    """Invitation not found."""

    def __init__(self, invitation_id: str = "") -> None:
        super().__init__(
            error_code=ErrorCode.INVITATION_NOT_FOUND,
            message=f"Invitation not found: {invitation_id}" if invitation_id else "Invitation not found",
            details={"invitation_id": invitation_id} if invitation_id else None,
        )


class EventNotFoundError(NotFoundError):
    """Event not found."""

    def __init__(self, event_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.EVENT_NOT_FOUND,
            message=f"Event not found: {event_id}",
            details={"event_id": event_id},
        )


class SessionNotFoundError(NotFoundError):
    """Session not found, or not part of the requested event."""

    def __init__(self, session_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.SESSION_NOT_FOUND,
            message=f"Session not found: {session_id}",
            details={"session_id": session_id},
        )


# --- Conflicts ---


class ConflictError(AppException):
    """The requested change was already made. Callers treat it as a no-op."""

    def __init__(self, error_code: ErrorCode, message: str, details: Any | None = None) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=409,
            details=details,
        )


class AlreadyRespondedError(ConflictError):
    """The invitation is no longer open for this transition."""

    def __init__(self, invitation_id: str, status: str | None = None) -> None:
        details: dict[str, Any] = {"invitation_id": invitation_id}
        if status:
            details["status"] = status
        super().__init__(
            error_code=ErrorCode.ALREADY_RESPONDED,
            message="This invitation has already been responded to",
            details=details,
        )


class InvitationExpiredError(AppException):
    """Invitation has expired."""

    def __init__(self, invitation_id: str = "") -> None:
        super().__init__(
            error_code=ErrorCode.INVITATION_EXPIRED,
            message="This invitation has expired",
            status_code=410,
            details={"invitation_id": invitation_id} if invitation_id else None,
        )


# --- Tokens ---


class TokenError(AppException):
    """Response token rejected before any state was touched."""

    def __init__(self, error_code: ErrorCode, message: str) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=401,
        )


class InvalidTokenError(TokenError):
    """Token is malformed, tampered with, or superseded."""

    def __init__(self, message: str = "Invalid invitation token") -> None:
        super().__init__(ErrorCode.INVALID_TOKEN, message)


class TokenExpiredError(TokenError):
    """Token is past its expiry."""

    def __init__(self) -> None:
        super().__init__(ErrorCode.TOKEN_EXPIRED, "This invitation link has expired")


# --- Delivery ---


class DeliveryError(AppException):
    """A notifier could not deliver one message."""

    def __init__(self, address: str, reason: str) -> None:
        self.address = address
        self.reason = reason
        super().__init__(
            error_code=ErrorCode.DELIVERY_FAILED,
            message=reason,
            status_code=502,
            details={"address": address},
        )
