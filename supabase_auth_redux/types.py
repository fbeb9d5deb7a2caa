"""
Supabase Auth Client Type Definitions

Configuration, identifier and response types. Response types are frozen
snapshots built with ``from_dict``; a missing or mistyped required field
raises ``KeyError`` / ``TypeError`` / ``ValueError``, which the client
reports as ``DecodeError``.
"""

import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import (
    TYPE_CHECKING,
    Any,
    Dict,
    List,
    Literal,
    NamedTuple,
    Optional,
    Union,
)

import httpx

if TYPE_CHECKING:
    from .client import AsyncAuthClient, AuthClient


# RFC 3339 with an optional fraction of any length; Python only accepts up to 6 digits.
_TIMESTAMP_REGEX = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<fraction>\d+))?"
    r"(?P<tz>Z|z|[+-]\d{2}:?\d{2})?$"
)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp into an aware datetime (UTC if no offset)."""
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise TypeError(f"timestamp must be a string, got {type(value).__name__}")
    match = _TIMESTAMP_REGEX.match(value.strip())
    if not match:
        raise ValueError(f"invalid timestamp: {value!r}")

    text = match.group("base")
    fraction = match.group("fraction")
    if fraction:
        text += "." + fraction[:6].ljust(6, "0")
    tz = match.group("tz")
    if tz and tz not in ("Z", "z"):
        if ":" not in tz:
            tz = f"{tz[:3]}:{tz[3:]}"
        text += tz

    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class ServiceRoleKey:
    """Privileged credential that bypasses row level security.

    Kept apart from the anonymous key so it is never printed by accident.
    """

    __slots__ = ("_value",)

    def __init__(self, value: str) -> None:
        self._value = value

    def get_secret_value(self) -> str:
        return self._value

    def __bool__(self) -> bool:
        return bool(self._value)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ServiceRoleKey):
            return self._value == other._value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._value)

    def __repr__(self) -> str:
        return "ServiceRoleKey('**********')"

    __str__ = __repr__


@dataclass
class AuthConfig:
    """Client configuration.

    Every field is optional so the config can be filled in piece by piece;
    ``build()`` validates it once and returns a client.
    """

    # Project URL, e.g. https://xyzcompany.supabase.co
    api_url: Optional[str] = None
    # Anonymous (public) API key, sent with every request
    anon_key: Optional[str] = None
    # Service role key, required for admin operations only
    service_role_key: Optional[Union[str, ServiceRoleKey]] = None
    # Extra headers sent with every request
    headers: Optional[Dict[str, str]] = None
    # Transport timeout in seconds (None: httpx default)
    timeout: Optional[float] = None
    # Caller-owned httpx client; never closed by this library
    http_client: Optional[Union[httpx.Client, httpx.AsyncClient]] = None
    # Log request/response traces at DEBUG level
    debug: bool = False

    def build(self) -> "AuthClient":
        """Validate the configuration and create a synchronous client."""
        from .client import AuthClient

        return AuthClient.from_config(self)

    def build_async(self) -> "AsyncAuthClient":
        """Validate the configuration and create an asynchronous client."""
        from .client import AsyncAuthClient

        return AsyncAuthClient.from_config(self)


@dataclass(frozen=True)
class Email:
    """Email address identifier."""

    value: str


@dataclass(frozen=True)
class Phone:
    """Phone number identifier (E.164)."""

    value: str


IdType = Union[Email, Phone]


FactorStatus = Literal["verified", "unverified"]


@dataclass(frozen=True)
class Factor:
    """MFA factor enrolled for a user."""

    id: Optional[uuid.UUID] = None
    factor_type: Optional[str] = None
    friendly_name: Optional[str] = None
    status: FactorStatus = "unverified"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Factor":
        factor_id = data.get("id")
        return cls(
            id=_parse_uuid(factor_id) if factor_id else None,
            factor_type=data.get("factor_type"),
            friendly_name=data.get("friendly_name"),
            status=data.get("status") or "unverified",
        )


@dataclass(frozen=True)
class User:
    """User record as returned by the Auth server."""

    id: uuid.UUID
    aud: str = ""
    role: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    email_confirmed_at: Optional[datetime] = None
    phone_confirmed_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    confirmation_sent_at: Optional[datetime] = None
    recovery_sent_at: Optional[datetime] = None
    invited_at: Optional[datetime] = None
    new_email: Optional[str] = None
    email_change_sent_at: Optional[datetime] = None
    new_phone: Optional[str] = None
    phone_change_sent_at: Optional[datetime] = None
    reauthentication_sent_at: Optional[datetime] = None
    last_sign_in_at: Optional[datetime] = None
    user_metadata: Dict[str, Any] = field(default_factory=dict)
    app_metadata: Dict[str, Any] = field(default_factory=dict)
    identities: List[Dict[str, Any]] = field(default_factory=list)
    factors: List[Factor] = field(default_factory=list)
    banned_until: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    is_anonymous: bool = False

    @property
    def is_deleted(self) -> bool:
        """True if the user has been soft deleted."""
        return self.deleted_at is not None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        """Create from dictionary."""
        if not isinstance(data, dict):
            raise TypeError(f"user must be an object, got {type(data).__name__}")
        user_metadata = data.get("user_metadata") or {}
        app_metadata = data.get("app_metadata") or {}
        if not isinstance(user_metadata, dict) or not isinstance(app_metadata, dict):
            raise TypeError("user metadata must be an object")
        return cls(
            id=_parse_uuid(data["id"]),
            aud=data.get("aud") or "",
            role=data.get("role") or "",
            email=data.get("email") or None,
            phone=data.get("phone") or None,
            email_confirmed_at=parse_timestamp(data.get("email_confirmed_at")),
            phone_confirmed_at=parse_timestamp(data.get("phone_confirmed_at")),
            confirmed_at=parse_timestamp(data.get("confirmed_at")),
            confirmation_sent_at=parse_timestamp(data.get("confirmation_sent_at")),
            recovery_sent_at=parse_timestamp(data.get("recovery_sent_at")),
            invited_at=parse_timestamp(data.get("invited_at")),
            new_email=data.get("new_email") or None,
            email_change_sent_at=parse_timestamp(data.get("email_change_sent_at")),
            new_phone=data.get("new_phone") or None,
            phone_change_sent_at=parse_timestamp(data.get("phone_change_sent_at")),
            reauthentication_sent_at=parse_timestamp(data.get("reauthentication_sent_at")),
            last_sign_in_at=parse_timestamp(data.get("last_sign_in_at")),
            user_metadata=user_metadata,
            app_metadata=app_metadata,
            identities=list(data.get("identities") or []),
            factors=[Factor.from_dict(f) for f in data.get("factors") or []],
            banned_until=parse_timestamp(data.get("banned_until")),
            created_at=parse_timestamp(data.get("created_at")),
            updated_at=parse_timestamp(data.get("updated_at")),
            deleted_at=parse_timestamp(data.get("deleted_at")),
            is_anonymous=bool(data.get("is_anonymous", False)),
        )


@dataclass(frozen=True)
class WeakPassword:
    """Password strength warning attached to a successful sign in."""

    message: str = ""
    reasons: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WeakPassword":
        return cls(
            message=data.get("message") or "",
            reasons=list(data.get("reasons") or []),
        )


def _parse_uuid(value: Any) -> uuid.UUID:
    if not isinstance(value, str):
        raise TypeError(f"id must be a string, got {type(value).__name__}")
    return uuid.UUID(value)


def _required_str(data: Dict[str, Any], key: str) -> str:
    value = data[key]
    if not isinstance(value, str) or not value:
        raise ValueError(f"{key} must be a non-empty string")
    return value


@dataclass(frozen=True)
class TokenResponse:
    """Session tokens issued by sign in or refresh."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = 0
    expires_at: Optional[int] = None
    user: Optional[User] = None
    provider_token: Optional[str] = None
    provider_refresh_token: Optional[str] = None
    weak_password: Optional[WeakPassword] = None

    @property
    def expires_at_datetime(self) -> Optional[datetime]:
        """Absolute expiry as an aware datetime, if the server sent one."""
        if self.expires_at is None:
            return None
        return datetime.fromtimestamp(self.expires_at, tz=timezone.utc)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenResponse":
        """Create from dictionary."""
        if not isinstance(data, dict):
            raise TypeError(f"token response must be an object, got {type(data).__name__}")
        user_data = data.get("user")
        weak_password = data.get("weak_password")
        expires_at = data.get("expires_at")
        return cls(
            access_token=_required_str(data, "access_token"),
            refresh_token=_required_str(data, "refresh_token"),
            token_type=data.get("token_type") or "bearer",
            expires_in=int(data.get("expires_in") or 0),
            expires_at=int(expires_at) if expires_at is not None else None,
            user=User.from_dict(user_data) if user_data else None,
            provider_token=data.get("provider_token") or None,
            provider_refresh_token=data.get("provider_refresh_token") or None,
            weak_password=WeakPassword.from_dict(weak_password) if weak_password else None,
        )


class SignupResult(NamedTuple):
    """The created user and its first access token."""

    user: User
    access_token: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SignupResult":
        if not isinstance(data, dict):
            raise TypeError(f"signup response must be an object, got {type(data).__name__}")
        return cls(
            user=User.from_dict(data["user"]),
            access_token=_required_str(data, "access_token"),
        )
