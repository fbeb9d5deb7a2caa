"""
Supabase Auth Python Client
supabase-auth-redux

A Python client for the Supabase Auth (GoTrue) API with sync and async
support: password signup and signin, token refresh, token validation,
logout and admin user management with a service role key.
"""

from .client import (
    AuthClient,
    AsyncAuthClient,
    create_auth_client,
    create_async_auth_client,
)
from .types import (
    AuthConfig,
    ServiceRoleKey,
    Email,
    Phone,
    IdType,
    User,
    Factor,
    TokenResponse,
    WeakPassword,
    SignupResult,
)
from .errors import (
    AuthError,
    AuthErrorKind,
    ErrorBody,
    InvalidParametersError,
    NotAuthorizedError,
    MissingServiceRoleKeyError,
    NotFoundError,
    ConflictError,
    RateLimitedError,
    TransportError,
    ServerError,
    DecodeError,
    is_auth_error,
    is_retryable_error,
)

__version__ = "0.1.0"
__all__ = [
    # Clients
    "AuthClient",
    "AsyncAuthClient",
    "create_auth_client",
    "create_async_auth_client",
    # Types
    "AuthConfig",
    "ServiceRoleKey",
    "Email",
    "Phone",
    "IdType",
    "User",
    "Factor",
    "TokenResponse",
    "WeakPassword",
    "SignupResult",
    # Errors
    "AuthError",
    "AuthErrorKind",
    "ErrorBody",
    "InvalidParametersError",
    "NotAuthorizedError",
    "MissingServiceRoleKeyError",
    "NotFoundError",
    "ConflictError",
    "RateLimitedError",
    "TransportError",
    "ServerError",
    "DecodeError",
    "is_auth_error",
    "is_retryable_error",
]
