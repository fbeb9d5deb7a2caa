"""
supabase-auth-redux - Basic Usage Example

Runs the full auth flow against a local Supabase (`supabase start`).

    SUPABASE_URL=http://127.0.0.1:54321 \\
    SUPABASE_ANON_KEY=... \\
    SUPABASE_SERVICE_ROLE_KEY=... \\
    python examples/basic_usage.py
"""

import asyncio
import logging
import os
import uuid

from supabase_auth_redux import (
    AuthConfig,
    AuthError,
    Email,
    NotAuthorizedError,
)


def load_config() -> AuthConfig:
    return AuthConfig(
        api_url=os.environ.get("SUPABASE_URL", "http://127.0.0.1:54321"),
        anon_key=os.environ.get("SUPABASE_ANON_KEY"),
        service_role_key=os.environ.get("SUPABASE_SERVICE_ROLE_KEY"),
        debug=True,
    )


def sync_example():
    """Synchronous client example."""
    print("=== Sync Client Example ===\n")

    email = f"test-{uuid.uuid4()}@example.com"
    password = "password123"

    with load_config().build() as client:
        print(f"Connecting to {client.base_url}")

        # 1. Sign up
        user, _ = client.signup(Email(email), password)
        print(f"User created: {user.id} ({user.email}, role={user.role})")

        # 2. Sign in
        tokens = client.signin_with_password(Email(email), password)
        print(f"Signed in, token expires in {tokens.expires_in}s")

        # 3. Validate the access token
        fetched = client.get_user_by_token(tokens.access_token)
        print(f"Token belongs to the new user: {fetched.id == user.id}")

        # 4. Refresh (keep only the newest refresh token)
        tokens = client.refresh_token(tokens.refresh_token)
        print("Token refreshed")

        # 5. An invalid token is rejected by the server
        try:
            client.get_user_by_token("invalid-token")
        except NotAuthorizedError as e:
            print(f"Invalid token rejected: {e.message}")

        client.logout(tokens.access_token)
        print("Logged out")

        # 6. Clean up (needs the service role key)
        try:
            client.hard_delete_user(user.id)
            print("Test user deleted")
        except AuthError as e:
            print(f"Could not delete user: {e!r}")


async def async_example():
    """Asynchronous client example."""
    print("\n=== Async Client Example ===\n")

    async with load_config().build_async() as client:
        try:
            await client.signin_with_password(Email("nobody@example.com"), "wrong-password")
        except NotAuthorizedError as e:
            print(f"Sign in failed as expected: {e.code}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)
    sync_example()
    asyncio.run(async_example())

    print("\nExamples completed!")
