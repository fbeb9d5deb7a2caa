"""
Supabase Auth Client

Synchronous and asynchronous clients for the Supabase Auth (GoTrue) REST API.
Each method sends exactly one request and either returns a typed value or
raises an ``AuthError`` subclass. Nothing is cached between calls and no
request is ever retried.
"""

import json
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, Literal, Optional, Union
from urllib.parse import urlparse

import httpx

from .errors import (
    DecodeError,
    ErrorBody,
    InvalidParametersError,
    MissingServiceRoleKeyError,
    NotFoundError,
    TransportError,
    error_from_response,
)
from .types import (
    AuthConfig,
    Email,
    IdType,
    Phone,
    ServiceRoleKey,
    SignupResult,
    TokenResponse,
    User,
)


logger = logging.getLogger("supabase_auth_redux")

AUTH_PATH = "/auth/v1"

LogoutScope = Literal["global", "local", "others"]


@dataclass(frozen=True)
class _Call:
    """A fully validated request, ready to be sent by either client."""

    operation: str
    method: str
    path: str
    bearer: str
    body: Optional[Dict[str, Any]] = None
    params: Optional[Dict[str, str]] = None
    decode: Optional[Callable[[Any], Any]] = None
    # Treat 404 as success (logout of an already ended session)
    not_found_ok: bool = False


def _validate_url(url: Optional[str]) -> str:
    if not url:
        raise InvalidParametersError("api_url is required")
    try:
        parsed = urlparse(url)
        # Raises ValueError for a non-numeric or out of range port
        parsed.port
        httpx.URL(url)
    except (ValueError, httpx.InvalidURL) as e:
        raise InvalidParametersError(
            f"api_url is malformed: {e}", {"api_url": url}
        ) from e
    host = parsed.hostname
    if (
        parsed.scheme not in ("http", "https")
        or not host
        or any(c.isspace() for c in host)
    ):
        raise InvalidParametersError(
            "api_url must be an absolute http(s) URL", {"api_url": url}
        )
    return url.rstrip("/")


def _identifier_body(identifier: IdType) -> Dict[str, str]:
    """Serialize an IdType into the email/phone request field."""
    if isinstance(identifier, Email):
        key = "email"
    elif isinstance(identifier, Phone):
        key = "phone"
    else:
        raise InvalidParametersError(
            f"identifier must be Email or Phone, got {type(identifier).__name__}"
        )
    if not isinstance(identifier.value, str) or not identifier.value:
        raise InvalidParametersError(f"{key} must not be empty")
    return {key: identifier.value}


def _require(value: Any, name: str) -> str:
    if not isinstance(value, str) or not value:
        raise InvalidParametersError(f"{name} must not be empty")
    return value


def _user_id(user_id: Union[uuid.UUID, str]) -> str:
    if isinstance(user_id, uuid.UUID):
        return str(user_id)
    try:
        return str(uuid.UUID(user_id))
    except (TypeError, ValueError, AttributeError) as e:
        raise InvalidParametersError(
            "user_id must be a UUID", {"user_id": repr(user_id)}
        ) from e


def _parse_retry_after(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class _BaseAuthClient:
    """Configuration, request building and response mapping shared by both clients."""

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        service_role_key: Optional[Union[str, ServiceRoleKey]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        debug: bool = False,
    ) -> None:
        self._base_url = _validate_url(base_url)
        if not anon_key:
            raise InvalidParametersError("anon_key is required")
        self._anon_key = anon_key

        if isinstance(service_role_key, str):
            service_role_key = ServiceRoleKey(service_role_key)
        # An empty key counts as not configured; its content is left to the server.
        self._service_role_key = service_role_key if service_role_key else None

        self._custom_headers = dict(headers or {})
        self._timeout = timeout
        self._debug = debug

    @staticmethod
    def builder() -> AuthConfig:
        """Return an empty configuration to fill in and ``build()``."""
        return AuthConfig()

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def anon_key(self) -> str:
        return self._anon_key

    @property
    def service_role_key(self) -> Optional[ServiceRoleKey]:
        return self._service_role_key

    @property
    def has_service_role_key(self) -> bool:
        return self._service_role_key is not None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(base_url={self._base_url!r})"

    def _log(self, message: str, *args: Any) -> None:
        """Log debug message."""
        if self._debug:
            logger.debug(message, *args)

    def _transport_kwargs(self) -> Dict[str, Any]:
        if self._timeout is None:
            return {}
        return {"timeout": self._timeout}

    # =========================================================================
    # Request Building
    # =========================================================================

    def _signup_call(
        self,
        identifier: IdType,
        password: str,
        metadata: Optional[Dict[str, Any]],
    ) -> _Call:
        body: Dict[str, Any] = _identifier_body(identifier)
        body["password"] = _require(password, "password")
        if metadata is not None:
            if not isinstance(metadata, dict):
                raise InvalidParametersError("metadata must be a mapping")
            body["data"] = metadata
        return _Call(
            operation="signup",
            method="POST",
            path="/signup",
            bearer=self._anon_key,
            body=body,
            decode=SignupResult.from_dict,
        )

    def _signin_with_password_call(self, identifier: IdType, password: str) -> _Call:
        body: Dict[str, Any] = _identifier_body(identifier)
        body["password"] = _require(password, "password")
        return _Call(
            operation="signin_with_password",
            method="POST",
            path="/token",
            bearer=self._anon_key,
            body=body,
            params={"grant_type": "password"},
            decode=TokenResponse.from_dict,
        )

    def _refresh_token_call(self, refresh_token: str) -> _Call:
        return _Call(
            operation="refresh_token",
            method="POST",
            path="/token",
            bearer=self._anon_key,
            body={"refresh_token": _require(refresh_token, "refresh_token")},
            params={"grant_type": "refresh_token"},
            decode=TokenResponse.from_dict,
        )

    def _get_user_by_token_call(self, access_token: str) -> _Call:
        return _Call(
            operation="get_user_by_token",
            method="GET",
            path="/user",
            bearer=_require(access_token, "access_token"),
            decode=User.from_dict,
        )

    def _logout_call(self, access_token: str, scope: Optional[LogoutScope]) -> _Call:
        bearer = _require(access_token, "access_token")
        if scope is not None and scope not in ("global", "local", "others"):
            raise InvalidParametersError(f"invalid logout scope: {scope!r}")
        return _Call(
            operation="logout",
            method="POST",
            path="/logout",
            bearer=bearer,
            params={"scope": scope} if scope else None,
            not_found_ok=True,
        )

    def _admin_bearer(self) -> str:
        if self._service_role_key is None:
            raise MissingServiceRoleKeyError()
        return self._service_role_key.get_secret_value()

    def _get_user_by_id_call(self, user_id: Union[uuid.UUID, str]) -> _Call:
        bearer = self._admin_bearer()
        return _Call(
            operation="get_user_by_id",
            method="GET",
            path=f"/admin/users/{_user_id(user_id)}",
            bearer=bearer,
            decode=User.from_dict,
        )

    def _delete_user_call(self, user_id: Union[uuid.UUID, str], soft: bool) -> _Call:
        bearer = self._admin_bearer()
        return _Call(
            operation="soft_delete_user" if soft else "hard_delete_user",
            method="DELETE",
            path=f"/admin/users/{_user_id(user_id)}",
            bearer=bearer,
            body={"should_soft_delete": soft},
        )

    def _url(self, call: _Call) -> str:
        return f"{self._base_url}{AUTH_PATH}{call.path}"

    def _headers(self, call: _Call) -> Dict[str, str]:
        headers: Dict[str, str] = {
            "Accept": "application/json",
            **self._custom_headers,
            "apikey": self._anon_key,
            "Authorization": f"Bearer {call.bearer}",
        }
        if call.body is not None:
            headers["Content-Type"] = "application/json"
        return headers

    # =========================================================================
    # Response Handling
    # =========================================================================

    def _transport_error(self, call: _Call, error: httpx.RequestError) -> TransportError:
        if isinstance(error, httpx.TimeoutException):
            message = f"{call.operation}: request timed out ({error!r})"
        else:
            message = f"{call.operation}: {str(error) or type(error).__name__}"
        logger.warning("%s request failed: %s", call.operation, type(error).__name__)
        return TransportError(message, error)

    def _handle_response(self, call: _Call, response: httpx.Response) -> Any:
        """Convert an HTTP response into the call's result or raise an AuthError."""
        status = response.status_code
        text = response.text
        self._log("%s -> HTTP %d", call.operation, status)

        if response.is_success:
            if call.decode is None:
                return None
            try:
                data = response.json()
            except ValueError as e:
                raise DecodeError(
                    f"{call.operation}: response is not valid JSON", status, text
                ) from e
            try:
                return call.decode(data)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.error("%s: unexpected response shape: %s", call.operation, e)
                raise DecodeError(
                    f"{call.operation}: unexpected response shape: {e}", status, text
                ) from e

        body: Optional[ErrorBody] = None
        try:
            payload = json.loads(text) if text else None
        except ValueError:
            payload = None
        if isinstance(payload, dict):
            body = ErrorBody.from_dict(payload)

        error = error_from_response(
            status,
            text,
            body,
            retry_after=_parse_retry_after(response.headers.get("retry-after")),
        )
        if call.not_found_ok and isinstance(error, NotFoundError):
            self._log("%s: session already ended", call.operation)
            return None
        self._log("%s failed: %r", call.operation, error)
        raise error


class AuthClient(_BaseAuthClient):
    """
    Supabase Auth Client - synchronous entry point.

    Holds the project URL, the anonymous key and an optional service role
    key. Safe to share between threads: configuration never changes after
    construction.
    """

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        service_role_key: Optional[Union[str, ServiceRoleKey]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.Client] = None,
        debug: bool = False,
    ) -> None:
        super().__init__(base_url, anon_key, service_role_key, headers, timeout, debug)
        if http_client is not None and not isinstance(http_client, httpx.Client):
            raise InvalidParametersError("http_client must be an httpx.Client")
        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.Client(**self._transport_kwargs())
        self._log("AuthClient initialized for %s", self._base_url)

    @classmethod
    def from_config(cls, config: AuthConfig) -> "AuthClient":
        """Create a client from a validated AuthConfig."""
        return cls(
            config.api_url or "",
            config.anon_key or "",
            service_role_key=config.service_role_key,
            headers=config.headers,
            timeout=config.timeout,
            http_client=config.http_client,  # type: ignore[arg-type]
            debug=config.debug,
        )

    # =========================================================================
    # Authentication Methods
    # =========================================================================

    def signup(
        self,
        identifier: IdType,
        password: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> SignupResult:
        """
        Create a new user.

        Args:
            identifier: Email or Phone of the new user
            password: Password; strength rules are enforced by the server
            metadata: Optional user metadata stored as ``user_metadata``

        Returns:
            SignupResult with the created user and an access token

        Raises:
            ConflictError: If the identifier is already registered
        """
        return self._execute(self._signup_call(identifier, password, metadata))

    def signin_with_password(self, identifier: IdType, password: str) -> TokenResponse:
        """
        Sign in with email or phone and password.

        Raises:
            NotAuthorizedError: If the credentials are rejected. Wrong password
                and unknown identifier are not distinguished.
        """
        return self._execute(self._signin_with_password_call(identifier, password))

    def refresh_token(self, refresh_token: str) -> TokenResponse:
        """
        Exchange a refresh token for a new session.

        The server may rotate the refresh token; keep only the newest one.
        """
        return self._execute(self._refresh_token_call(refresh_token))

    def get_user_by_token(self, access_token: str) -> User:
        """Validate an access token with the server and return its user."""
        return self._execute(self._get_user_by_token_call(access_token))

    def logout(self, access_token: str, scope: Optional[LogoutScope] = None) -> None:
        """
        Revoke the session behind an access token.

        An already ended session is not an error; a rejected token raises
        NotAuthorizedError.
        """
        self._execute(self._logout_call(access_token, scope))

    # =========================================================================
    # Admin Methods (service role key required)
    # =========================================================================

    def get_user_by_id(self, user_id: Union[uuid.UUID, str]) -> User:
        """Look up a user by id."""
        return self._execute(self._get_user_by_id_call(user_id))

    def hard_delete_user(self, user_id: Union[uuid.UUID, str]) -> None:
        """Permanently delete a user. Not reversible."""
        self._execute(self._delete_user_call(user_id, soft=False))

    def soft_delete_user(self, user_id: Union[uuid.UUID, str]) -> None:
        """Mark a user as deleted while keeping their data."""
        self._execute(self._delete_user_call(user_id, soft=True))

    # =========================================================================
    # Internal Methods
    # =========================================================================

    def _execute(self, call: _Call) -> Any:
        """Send a single request."""
        self._log("%s %s%s", call.method, AUTH_PATH, call.path)
        try:
            response = self._http_client.request(
                call.method,
                self._url(call),
                headers=self._headers(call),
                params=call.params,
                json=call.body,
            )
        except httpx.RequestError as e:
            raise self._transport_error(call, e) from e
        return self._handle_response(call, response)

    def close(self) -> None:
        """Close the HTTP client if this client created it."""
        if self._owns_http_client:
            self._http_client.close()

    def __enter__(self) -> "AuthClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


class AsyncAuthClient(_BaseAuthClient):
    """
    Supabase Auth Client - asynchronous entry point.

    Same operations as AuthClient, awaited. The HTTP client is created on
    first use so the object can be built outside a running event loop.
    """

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        service_role_key: Optional[Union[str, ServiceRoleKey]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        debug: bool = False,
    ) -> None:
        super().__init__(base_url, anon_key, service_role_key, headers, timeout, debug)
        if http_client is not None and not isinstance(http_client, httpx.AsyncClient):
            raise InvalidParametersError("http_client must be an httpx.AsyncClient")
        self._owns_http_client = http_client is None
        self._http_client: Optional[httpx.AsyncClient] = http_client
        self._log("AsyncAuthClient initialized for %s", self._base_url)

    @classmethod
    def from_config(cls, config: AuthConfig) -> "AsyncAuthClient":
        """Create an async client from a validated AuthConfig."""
        return cls(
            config.api_url or "",
            config.anon_key or "",
            service_role_key=config.service_role_key,
            headers=config.headers,
            timeout=config.timeout,
            http_client=config.http_client,  # type: ignore[arg-type]
            debug=config.debug,
        )

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(**self._transport_kwargs())
        return self._http_client

    # =========================================================================
    # Authentication Methods
    # =========================================================================

    async def signup(
        self,
        identifier: IdType,
        password: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> SignupResult:
        """Create a new user."""
        return await self._execute(self._signup_call(identifier, password, metadata))

    async def signin_with_password(self, identifier: IdType, password: str) -> TokenResponse:
        """Sign in with email or phone and password."""
        return await self._execute(self._signin_with_password_call(identifier, password))

    async def refresh_token(self, refresh_token: str) -> TokenResponse:
        """Exchange a refresh token for a new session."""
        return await self._execute(self._refresh_token_call(refresh_token))

    async def get_user_by_token(self, access_token: str) -> User:
        """Validate an access token with the server and return its user."""
        return await self._execute(self._get_user_by_token_call(access_token))

    async def logout(self, access_token: str, scope: Optional[LogoutScope] = None) -> None:
        """Revoke the session behind an access token."""
        await self._execute(self._logout_call(access_token, scope))

    # =========================================================================
    # Admin Methods (service role key required)
    # =========================================================================

    async def get_user_by_id(self, user_id: Union[uuid.UUID, str]) -> User:
        """Look up a user by id."""
        return await self._execute(self._get_user_by_id_call(user_id))

    async def hard_delete_user(self, user_id: Union[uuid.UUID, str]) -> None:
        """Permanently delete a user."""
        await self._execute(self._delete_user_call(user_id, soft=False))

    async def soft_delete_user(self, user_id: Union[uuid.UUID, str]) -> None:
        """Mark a user as deleted while keeping their data."""
        await self._execute(self._delete_user_call(user_id, soft=True))

    # =========================================================================
    # Internal Methods
    # =========================================================================

    async def _execute(self, call: _Call) -> Any:
        """Send a single request."""
        self._log("%s %s%s", call.method, AUTH_PATH, call.path)
        try:
            client = self._get_client()
            response = await client.request(
                call.method,
                self._url(call),
                headers=self._headers(call),
                params=call.params,
                json=call.body,
            )
        except httpx.RequestError as e:
            raise self._transport_error(call, e) from e
        return self._handle_response(call, response)

    async def close(self) -> None:
        """Close the HTTP client if this client created it."""
        if self._http_client is not None and self._owns_http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "AsyncAuthClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()


# =============================================================================
# Factory Functions
# =============================================================================

def create_auth_client(config: AuthConfig) -> AuthClient:
    """Create a new synchronous client."""
    return AuthClient.from_config(config)


def create_async_auth_client(config: AuthConfig) -> AsyncAuthClient:
    """Create a new asynchronous client."""
    return AsyncAuthClient.from_config(config)
