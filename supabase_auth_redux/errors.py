"""
Supabase Auth Client Error Classes

Every failure surfaced by the client is one of the classes below. Each class
carries a ``kind`` from the closed ``AuthErrorKind`` enum so callers can
branch on the kind without importing every subclass.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class AuthErrorKind(str, Enum):
    """Closed set of error classifications."""

    INVALID_PARAMETERS = "invalid_parameters"
    NOT_AUTHORIZED = "not_authorized"
    MISSING_SERVICE_ROLE_KEY = "missing_service_role_key"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    RATE_LIMITED = "rate_limited"
    TRANSPORT_FAILURE = "transport_failure"
    SERVER_ERROR = "server_error"
    DECODE_ERROR = "decode_error"


@dataclass(frozen=True)
class ErrorBody:
    """Error payload returned by the Auth server.

    Older server versions use ``error`` / ``error_description``, newer ones
    ``code`` / ``error_code`` / ``msg``. All fields are optional.
    """

    code: Optional[Any] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    error_description: Optional[str] = None
    msg: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ErrorBody":
        """Create from a decoded JSON object, ignoring unknown keys."""
        return cls(
            code=data.get("code"),
            error=_str_or_none(data.get("error")),
            error_code=_str_or_none(data.get("error_code")),
            error_description=_str_or_none(data.get("error_description")),
            msg=_str_or_none(data.get("msg")),
            message=_str_or_none(data.get("message")),
        )

    @property
    def machine_code(self) -> Optional[str]:
        """Machine-readable error code, if the server sent one."""
        if self.error_code:
            return self.error_code
        if isinstance(self.code, str) and self.code:
            return self.code
        return self.error

    @property
    def text(self) -> Optional[str]:
        """Human-readable description, if the server sent one."""
        return self.msg or self.error_description or self.message or self.error

    def __str__(self) -> str:
        return self.text or ""


def _str_or_none(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


class AuthError(Exception):
    """Base error class for the Supabase Auth client."""

    kind: AuthErrorKind = AuthErrorKind.SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: int = 0,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.kind.value.upper()
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "name": self.__class__.__name__,
            "kind": self.kind.value,
            "code": self.code,
            "message": self.message,
            "status_code": self.status_code,
            "details": self.details,
            "timestamp": self.timestamp,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class InvalidParametersError(AuthError):
    """Malformed input detected locally, before any request is sent."""

    kind = AuthErrorKind.INVALID_PARAMETERS

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details=details)


class NotAuthorizedError(AuthError):
    """Invalid, expired or revoked credentials or token."""

    kind = AuthErrorKind.NOT_AUTHORIZED

    def __init__(
        self,
        message: str = "not authorized",
        code: Optional[str] = None,
        status_code: int = 401,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, code, status_code, details)


class MissingServiceRoleKeyError(AuthError):
    """Admin operation attempted on a client without a service-role key."""

    kind = AuthErrorKind.MISSING_SERVICE_ROLE_KEY

    def __init__(self, message: str = "service role key required for admin operations"):
        super().__init__(message)


class NotFoundError(AuthError):
    """The referenced user or resource does not exist."""

    kind = AuthErrorKind.NOT_FOUND

    def __init__(
        self,
        message: str = "resource not found",
        code: Optional[str] = None,
        status_code: int = 404,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, code, status_code, details)


class ConflictError(AuthError):
    """The identifier is already registered."""

    kind = AuthErrorKind.CONFLICT

    def __init__(
        self,
        message: str = "user already exists",
        code: Optional[str] = None,
        status_code: int = 409,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, code, status_code, details)


class RateLimitedError(AuthError):
    """The server is throttling requests."""

    kind = AuthErrorKind.RATE_LIMITED

    def __init__(
        self,
        message: str = "rate limit exceeded",
        retry_after: Optional[int] = None,
        code: Optional[str] = None,
        status_code: int = 429,
    ):
        super().__init__(
            message,
            code,
            status_code,
            {"retry_after": retry_after} if retry_after is not None else None,
        )
        self.retry_after = retry_after


class TransportError(AuthError):
    """No usable HTTP response (connection refused, timeout, TLS failure).

    The underlying httpx exception is kept on ``cause`` and chained as
    ``__cause__``. The server may or may not have processed the request.
    """

    kind = AuthErrorKind.TRANSPORT_FAILURE

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        details = {"cause": type(cause).__name__} if cause is not None else None
        super().__init__(message, details=details)
        self.cause = cause


class ServerError(AuthError):
    """Any other non-2xx response, carrying the status and raw body."""

    kind = AuthErrorKind.SERVER_ERROR

    def __init__(
        self,
        status_code: int,
        body: str,
        message: Optional[str] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message or f"HTTP {status_code}", code, status_code, {"body": body})
        self.body = body


class DecodeError(AuthError):
    """A 2xx response whose body does not match the expected shape."""

    kind = AuthErrorKind.DECODE_ERROR

    def __init__(self, message: str, status_code: int = 0, body: Optional[str] = None):
        super().__init__(message, status_code=status_code, details={"body": body} if body else None)
        self.body = body


# Server codes that mean the presented credentials were rejected.
NOT_AUTHORIZED_CODES = frozenset({
    "invalid_grant",
    "invalid_credentials",
    "bad_jwt",
    "no_authorization",
    "not_admin",
    "session_expired",
    "session_not_found",
    "refresh_token_not_found",
    "refresh_token_already_used",
    "user_banned",
    "email_not_confirmed",
    "phone_not_confirmed",
})

CONFLICT_CODES = frozenset({
    "user_already_exists",
    "email_exists",
    "phone_exists",
    "identity_already_exists",
})

NOT_FOUND_CODES = frozenset({
    "user_not_found",
    "identity_not_found",
})

RATE_LIMIT_CODES = frozenset({
    "over_request_rate_limit",
    "over_email_send_rate_limit",
    "over_sms_send_rate_limit",
})


def error_from_response(
    status_code: int,
    body_text: str,
    body: Optional[ErrorBody] = None,
    retry_after: Optional[int] = None,
) -> AuthError:
    """Map a non-2xx status and decoded error body to an AuthError."""
    body = body or ErrorBody()
    code = body.machine_code
    message = body.text or f"HTTP {status_code}"

    if code in RATE_LIMIT_CODES or status_code == 429:
        return RateLimitedError(message, retry_after, code, status_code)
    # 401/403 win over any code: a token whose user is gone is still rejected.
    if status_code in (401, 403) or (
        status_code in (400, 422) and code in NOT_AUTHORIZED_CODES
    ):
        return NotAuthorizedError(message, code, status_code)
    if code in CONFLICT_CODES or status_code == 409:
        return ConflictError(message, code, status_code)
    if code in NOT_FOUND_CODES or status_code in (404, 406):
        return NotFoundError(message, code, status_code)
    return ServerError(status_code, body_text, message, code)


def is_auth_error(error: Any) -> bool:
    """Check if error is an AuthError."""
    return isinstance(error, AuthError)


def is_retryable_error(error: Any) -> bool:
    """Check if a caller-side retry could succeed.

    The client itself never retries.
    """
    if isinstance(error, (TransportError, RateLimitedError)):
        return True
    if isinstance(error, ServerError):
        return 500 <= error.status_code < 600
    return False
