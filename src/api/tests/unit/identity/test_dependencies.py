"""Unit tests for the identity session dependencies."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import HTTPException
from starlette.responses import Response

from identity.dependencies import get_resolved_session, get_session_credential
from shared_kernel.auth import (
    Channel,
    ResolvedSession,
    Session,
    SessionCookieJar,
    SessionCredential,
    SessionTokenCodec,
)
from shared_kernel.middleware import GateDecision, GateOutcome, RouteClass

SESSION = Session(
    subject="user-1",
    verified_channels=frozenset({Channel.EMAIL}),
    expires_at=datetime.now(UTC) + timedelta(hours=1),
)


def make_request(cookies=None, decision=None) -> SimpleNamespace:
    return SimpleNamespace(
        cookies=cookies or {},
        state=SimpleNamespace(gate_decision=decision),
    )


@pytest.fixture
def codec() -> MagicMock:
    codec = MagicMock(spec=SessionTokenCodec)
    codec.resolve = AsyncMock(return_value=ResolvedSession(session=SESSION))
    return codec


@pytest.fixture
def cookies() -> SessionCookieJar:
    return SessionCookieJar(secure=False)


class TestGetResolvedSession:
    """Tests for resolving the session once per request."""

    @pytest.mark.asyncio
    async def test_reuses_gate_resolution_on_protected_paths(self, codec, cookies):
        rotated = SessionCredential("at-2", "rt-2")
        decision = GateDecision(
            outcome=GateOutcome.ALLOW,
            route_class=RouteClass.PROTECTED,
            session=SESSION,
            rotated=rotated,
        )

        resolved = await get_resolved_session(
            make_request(decision=decision), Response(), codec, cookies
        )

        assert resolved == ResolvedSession(session=SESSION, rotated=rotated)
        codec.resolve.assert_not_called()

    @pytest.mark.asyncio
    async def test_public_path_resolves_and_writes_rotation(self, codec, cookies):
        rotated = SessionCredential("at-2", "rt-2")
        codec.resolve.return_value = ResolvedSession(session=SESSION, rotated=rotated)
        decision = GateDecision(
            outcome=GateOutcome.PASS_THROUGH, route_class=RouteClass.PUBLIC
        )
        response = Response()

        resolved = await get_resolved_session(
            make_request({"refresh_token": "rt-1"}, decision), response, codec, cookies
        )

        assert resolved.rotated == rotated
        codec.resolve.assert_awaited_once_with(SessionCredential("", "rt-1"))
        assert any(b"rt-2" in value for key, value in response.raw_headers)


class TestGetSessionCredential:
    """Tests for the credential handed to routes that call the identity store."""

    @pytest.mark.asyncio
    async def test_rotated_credential_replaces_spent_one(self, cookies):
        rotated = SessionCredential("at-2", "rt-2")
        request = make_request({"access_token": "at-1", "refresh_token": "rt-1"})

        credential = await get_session_credential(
            request, ResolvedSession(session=SESSION, rotated=rotated), cookies
        )

        assert credential == rotated

    @pytest.mark.asyncio
    async def test_unrotated_credential_comes_from_cookies(self, cookies):
        request = make_request({"access_token": "at-1", "refresh_token": "rt-1"})

        credential = await get_session_credential(
            request, ResolvedSession(session=SESSION), cookies
        )

        assert credential == SessionCredential("at-1", "rt-1")

    @pytest.mark.asyncio
    async def test_anonymous_request_is_rejected(self, cookies):
        request = make_request({"access_token": "garbage"})

        with pytest.raises(HTTPException) as exc_info:
            await get_session_credential(request, ResolvedSession.anonymous(), cookies)

        assert exc_info.value.status_code == 401
