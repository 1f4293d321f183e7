"""
Error hierarchy for the TrainerRoad bridge.

Every error carries an ``ErrorCode`` and the HTTP status the API answers
with, so route handlers can let them propagate to the exception handlers.
Login-flow errors are raised by the integration layer; the facade turns
everything else into a single ``IntegrationError``.
"""

from typing import Any, Dict, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Machine-readable ``code`` field of error responses."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    UNAUTHORIZED = "UNAUTHORIZED"
    RATE_LIMITED = "RATE_LIMITED"

    # Login flow
    SCRAPE_FAILED = "SCRAPE_FAILED"
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
    LOGIN_REJECTED = "LOGIN_REJECTED"

    # Calls made with a stored session
    TRAINERROAD_NOT_CONNECTED = "TRAINERROAD_NOT_CONNECTED"
    TRAINERROAD_SESSION_EXPIRED = "TRAINERROAD_SESSION_EXPIRED"
    TRAINERROAD_RATE_LIMITED = "TRAINERROAD_RATE_LIMITED"
    TRAINERROAD_UPSTREAM_ERROR = "TRAINERROAD_UPSTREAM_ERROR"
    TRAINERROAD_TIMEOUT = "TRAINERROAD_TIMEOUT"
    INVALID_UPSTREAM_SHAPE = "INVALID_UPSTREAM_SHAPE"

    DATABASE_ERROR = "DATABASE_ERROR"


class BridgeError(Exception):
    """
    Base class for bridge errors.

    Subclasses set ``default_code`` and ``default_status``; callers pass a
    message and, where useful, a ``details`` dict that ends up in the response.
    """

    default_code: ErrorCode = ErrorCode.INTERNAL_ERROR
    default_status: int = 500

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.default_code
        self.status_code = status_code or self.default_status
        self.details = dict(details or {})
        super().__init__(message)

    def _with_detail(self, key: str, value: Any) -> None:
        if value is not None:
            self.details[key] = value

    def to_dict(self) -> Dict[str, Any]:
        """Response body: ``{error, status, code[, details]}``."""
        body: Dict[str, Any] = {
            "error": self.message,
            "status": self.status_code,
            "code": self.code.value,
        }
        if self.details:
            body["details"] = self.details
        return body

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code.value}, message={self.message!r})"


# --- login flow -------------------------------------------------------------

class ScrapeError(BridgeError):
    """Expected markup (anti-forgery token, form) missing from a page."""

    default_code = ErrorCode.SCRAPE_FAILED
    default_status = 502

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details=details)


class UpstreamUnavailable(BridgeError):
    """The login page answered with a non-2xx status."""

    default_code = ErrorCode.UPSTREAM_UNAVAILABLE
    default_status = 503

    def __init__(
        self,
        message: str,
        upstream_status: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=details)
        self.upstream_status = upstream_status
        self._with_detail("upstream_status", upstream_status)


class LoginRejected(BridgeError):
    """TrainerRoad refused the submitted credentials."""

    default_code = ErrorCode.LOGIN_REJECTED
    default_status = 401

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details=details)


class InvalidUpstreamShape(BridgeError):
    """A payload held no list of records under any known wrapper key."""

    default_code = ErrorCode.INVALID_UPSTREAM_SHAPE
    default_status = 502

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details=details)


# --- facade -----------------------------------------------------------------

class IntegrationError(BridgeError):
    """What ``TrainerRoadClient`` raises for every failure.

    ``status_code`` is the status the API should answer with.
    """

    default_code = ErrorCode.TRAINERROAD_UPSTREAM_ERROR

    def __init__(
        self,
        status_code: int,
        message: str,
        code: Optional[ErrorCode] = None,
        retry_after: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code=code, status_code=status_code, details=details)
        self.retry_after = retry_after
        self._with_detail("retry_after", retry_after)


# --- API and persistence ----------------------------------------------------

class ValidationError(BridgeError):
    """Request input that passed schema validation but makes no sense."""

    default_code = ErrorCode.VALIDATION_ERROR
    default_status = 400

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=details)
        self._with_detail("field", field)


class ForbiddenError(BridgeError):
    """The caller may not act on the requested user."""

    default_code = ErrorCode.FORBIDDEN
    default_status = 403

    def __init__(self, message: str = "Access denied", details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details=details)


class DatabaseError(BridgeError):
    """A data store operation failed."""

    default_code = ErrorCode.DATABASE_ERROR

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=details)
        self._with_detail("operation", operation)
