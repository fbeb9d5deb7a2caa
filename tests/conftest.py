"""
Shared fixtures for the Supabase Auth client tests.
"""

from typing import Any, Dict

import pytest

from supabase_auth_redux import AsyncAuthClient, AuthClient


BASE_URL = "http://localhost:54321"
AUTH_URL = f"{BASE_URL}/auth/v1"
ANON_KEY = "anon-key-123"
SERVICE_ROLE_KEY = "service-role-key-456"
USER_ID = "8a7c2c8e-2f1b-4e8f-9a53-6b1f3f0d9c11"


@pytest.fixture
def user_payload() -> Dict[str, Any]:
    """User object as returned by the Auth server."""
    return {
        "id": USER_ID,
        "aud": "authenticated",
        "role": "authenticated",
        "email": "a@example.com",
        "phone": "",
        "email_confirmed_at": "2026-01-01T00:00:00.123456789Z",
        "confirmed_at": "2026-01-01T00:00:00Z",
        "last_sign_in_at": "2026-01-02T10:30:00.5+02:00",
        "app_metadata": {"provider": "email", "providers": ["email"]},
        "user_metadata": {"display_name": "Alice", "plan": {"tier": "pro"}},
        "identities": [{"provider": "email", "identity_id": "abc"}],
        "factors": [
            {
                "id": "0b5e0f0e-6d0a-4a37-8f62-2f9c8f6c1a10",
                "factor_type": "totp",
                "friendly_name": "phone app",
                "status": "verified",
            }
        ],
        "created_at": "2026-01-01T00:00:00Z",
        "updated_at": "2026-01-01T00:00:00Z",
        "is_anonymous": False,
    }


@pytest.fixture
def token_payload(user_payload: Dict[str, Any]) -> Dict[str, Any]:
    """Session returned by signin, refresh and signup."""
    return {
        "access_token": "access-token-abc",
        "token_type": "bearer",
        "expires_in": 3600,
        "expires_at": 1767229200,
        "refresh_token": "refresh-token-abc",
        "user": user_payload,
    }


@pytest.fixture
def client() -> AuthClient:
    """Client with only the anonymous key."""
    return AuthClient(BASE_URL, ANON_KEY)


@pytest.fixture
def admin_client() -> AuthClient:
    """Client with a service role key."""
    config = AuthClient.builder()
    config.api_url = BASE_URL
    config.anon_key = ANON_KEY
    config.service_role_key = SERVICE_ROLE_KEY
    return config.build()


@pytest.fixture
def async_client() -> AsyncAuthClient:
    """Async client with only the anonymous key."""
    return AsyncAuthClient(BASE_URL, ANON_KEY)


@pytest.fixture
def async_admin_client() -> AsyncAuthClient:
    """Async client with a service role key."""
    return AsyncAuthClient(BASE_URL, ANON_KEY, service_role_key=SERVICE_ROLE_KEY)
