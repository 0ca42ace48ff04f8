"""Unit test fixtures with mocked dependencies."""

from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from jose import jwt

TEST_SESSION_SECRET = "unit-test-session-secret"
TEST_AUDIENCE = "authenticated"


@pytest.fixture
def mock_db_settings():
    """Provide test database settings."""
    from infrastructure.settings import DatabaseSettings

    return DatabaseSettings(
        host="testhost",
        port=5432,
        database="testdb",
        username="testuser",
        password="testpass",
    )


@pytest.fixture
def session_secret() -> str:
    """Shared secret the test identity store signs access tokens with."""
    return TEST_SESSION_SECRET


@pytest.fixture
def make_access_token():
    """Factory for signed access tokens shaped like the identity store's."""

    def _make(
        sub: str = "user-123",
        email: str | None = "owner@example.com",
        phone: str | None = None,
        email_verified: bool = True,
        phone_verified: bool = False,
        expires_in: timedelta = timedelta(hours=1),
        audience: str | None = TEST_AUDIENCE,
        secret: str = TEST_SESSION_SECRET,
        user_metadata: dict[str, Any] | None = None,
    ) -> str:
        now = datetime.now(UTC)
        metadata = {
            "email_verified": email_verified,
            "phone_verified": phone_verified,
            **(user_metadata or {}),
        }
        claims = {
            "sub": sub,
            "aud": audience,
            "role": "authenticated",
            "iat": int(now.timestamp()),
            "exp": int((now + expires_in).timestamp()),
            "email": email or "",
            "phone": phone or "",
            "user_metadata": metadata,
        }
        if audience is None:
            del claims["aud"]
        return jwt.encode(claims, secret, algorithm="HS256")

    return _make

