"""Unit tests for the edge authorization gate and its middleware."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from shared_kernel.auth import (
    ResolvedSession,
    Session,
    SessionCookieJar,
    SessionCredential,
    SessionTokenCodec,
)
from shared_kernel.middleware import (
    EdgeAuthorizationGate,
    EdgeAuthorizationMiddleware,
    GateOutcome,
    RouteClass,
    RouteRules,
    get_request_session,
)
from shared_kernel.middleware.observability import EdgeGateProbe

RULES = RouteRules.from_lists(
    protected_prefixes=["/dashboard", "/api"],
    auth_only_paths=["/login", "/signup"],
)


def make_session(subject: str = "user-123") -> Session:
    return Session(
        subject=subject,
        verified_channels=frozenset(),
        expires_at=datetime.now(UTC) + timedelta(hours=1),
    )


@pytest.fixture
def codec() -> AsyncMock:
    codec = AsyncMock(spec=SessionTokenCodec)
    codec.resolve.return_value = ResolvedSession.anonymous()
    return codec


@pytest.fixture
def probe() -> MagicMock:
    probe = MagicMock(spec=EdgeGateProbe)
    probe.with_context.return_value = probe
    return probe


@pytest.fixture
def gate(codec: AsyncMock, probe: MagicMock) -> EdgeAuthorizationGate:
    return EdgeAuthorizationGate(codec=codec, rules=RULES, probe=probe)


class TestGateDecisions:
    """Tests for the gate decision table."""

    @pytest.mark.asyncio
    async def test_protected_without_session_rewrites_to_unauthorized(self, gate):
        decision = await gate.authorize("/dashboard", None)

        assert decision.outcome is GateOutcome.DENY_REWRITE
        assert decision.route_class is RouteClass.PROTECTED
        assert decision.target == "/unauthorized"

    @pytest.mark.asyncio
    async def test_protected_with_session_is_allowed(self, gate, codec):
        session = make_session()
        codec.resolve.return_value = ResolvedSession(session=session)

        decision = await gate.authorize("/dashboard/reports", SessionCredential("t"))

        assert decision.outcome is GateOutcome.ALLOW
        assert decision.session == session
        assert decision.target is None

    @pytest.mark.asyncio
    async def test_auth_only_with_session_rewrites_to_authorized(self, gate, codec):
        codec.resolve.return_value = ResolvedSession(session=make_session())

        decision = await gate.authorize("/login", SessionCredential("t"))

        assert decision.outcome is GateOutcome.DENY_REWRITE
        assert decision.target == "/authorized"

    @pytest.mark.asyncio
    async def test_auth_only_without_session_is_allowed(self, gate):
        decision = await gate.authorize("/signup", None)

        assert decision.outcome is GateOutcome.ALLOW
        assert decision.session is None

    @pytest.mark.asyncio
    async def test_public_passes_through_without_resolving(self, gate, codec):
        decision = await gate.authorize("/pricing", SessionCredential("t"))

        assert decision.outcome is GateOutcome.PASS_THROUGH
        assert decision.route_class is RouteClass.PUBLIC
        codec.resolve.assert_not_called()

    @pytest.mark.asyncio
    async def test_static_assets_pass_through(self, gate, codec):
        decision = await gate.authorize("/dashboard/logo.svg", None)

        assert decision.outcome is GateOutcome.PASS_THROUGH
        assert decision.route_class is RouteClass.EXCLUDED
        codec.resolve.assert_not_called()

    @pytest.mark.asyncio
    async def test_resolution_error_fails_closed(self, gate, codec, probe):
        codec.resolve.side_effect = RuntimeError("identity store down")

        decision = await gate.authorize("/dashboard", SessionCredential("t", "r"))

        assert decision.outcome is GateOutcome.DENY_REWRITE
        assert decision.target == "/unauthorized"
        probe.session_resolution_failed.assert_called_once()

    @pytest.mark.asyncio
    async def test_rotated_credential_is_carried(self, gate, codec):
        rotated = SessionCredential("new", "new-refresh")
        codec.resolve.return_value = ResolvedSession(session=make_session(), rotated=rotated)

        decision = await gate.authorize("/dashboard", SessionCredential("", "r"))

        assert decision.rotated == rotated

    @pytest.mark.asyncio
    async def test_custom_targets(self, codec, probe):
        gate = EdgeAuthorizationGate(
            codec=codec,
            rules=RULES,
            probe=probe,
            unauthorized_path="/auth/required",
            authorized_path="/home",
        )

        decision = await gate.authorize("/api/init_business", None)

        assert decision.target == "/auth/required"

    @pytest.mark.asyncio
    async def test_rewrite_is_observed(self, gate, probe):
        await gate.authorize("/dashboard", None)

        probe.request_rewritten.assert_called_once_with(
            path="/dashboard",
            route_class=RouteClass.PROTECTED,
            target="/unauthorized",
            subject=None,
        )

    @pytest.mark.asyncio
    async def test_request_probe_overrides_default(self, gate, probe):
        request_probe = MagicMock(spec=EdgeGateProbe)

        await gate.authorize("/dashboard", None, probe=request_probe)

        request_probe.request_rewritten.assert_called_once()
        probe.request_rewritten.assert_not_called()


@pytest.fixture
def app(gate: EdgeAuthorizationGate, probe: MagicMock) -> FastAPI:
    app = FastAPI()
    app.add_middleware(
        EdgeAuthorizationMiddleware,
        gate=gate,
        cookies=SessionCookieJar(secure=False),
        probe=probe,
    )

    @app.get("/dashboard")
    async def dashboard(request: Request):
        session = get_request_session(request)
        return {"page": "dashboard", "subject": session.subject}

    @app.get("/login")
    async def login():
        return {"page": "login"}

    @app.get("/pricing")
    async def pricing(request: Request):
        return {"page": "pricing", "session": get_request_session(request)}

    @app.api_route("/unauthorized", methods=["GET", "POST"])
    async def unauthorized(request: Request):
        return {"page": "unauthorized", "original": request.state.original_path}

    @app.get("/authorized")
    async def authorized():
        return {"page": "authorized"}

    return app


class TestMiddleware:
    """Tests for the ASGI middleware around the gate."""

    def test_protected_request_is_rewritten_not_redirected(self, app):
        client = TestClient(app)

        response = client.get("/dashboard", follow_redirects=False)

        assert response.status_code == 200
        assert response.json() == {"page": "unauthorized", "original": "/dashboard"}
        assert response.history == []

    def test_protected_request_with_session_reaches_route(self, app, codec):
        codec.resolve.return_value = ResolvedSession(session=make_session("user-9"))
        client = TestClient(app)
        client.cookies.set("access_token", "token")

        response = client.get("/dashboard")

        assert response.json() == {"page": "dashboard", "subject": "user-9"}
        codec.resolve.assert_awaited_once_with(SessionCredential("token", None))

    def test_auth_only_with_session_is_rewritten(self, app, codec):
        codec.resolve.return_value = ResolvedSession(session=make_session())
        client = TestClient(app)
        client.cookies.set("access_token", "token")

        response = client.get("/login")

        assert response.json() == {"page": "authorized"}

    def test_public_request_has_no_session(self, app):
        response = TestClient(app).get("/pricing")

        assert response.json() == {"page": "pricing", "session": None}

    def test_rotated_credential_written_on_allow(self, app, codec, probe):
        codec.resolve.return_value = ResolvedSession(
            session=make_session(), rotated=SessionCredential("new-at", "new-rt")
        )
        client = TestClient(app)
        client.cookies.set("refresh_token", "old-rt")

        response = client.get("/dashboard")

        assert response.cookies.get("access_token") == "new-at"
        assert response.cookies.get("refresh_token") == "new-rt"
        probe.credential_rotated.assert_called_once_with(
            path="/dashboard", subject="user-123"
        )

    def test_rotated_credential_written_on_rewrite(self, app, codec):
        codec.resolve.return_value = ResolvedSession(
            session=make_session(), rotated=SessionCredential("new-at", "new-rt")
        )
        client = TestClient(app)
        client.cookies.set("refresh_token", "old-rt")

        response = client.get("/login")

        assert response.json() == {"page": "authorized"}
        assert response.cookies.get("access_token") == "new-at"

    def test_request_id_header_is_bound(self, app, probe):
        TestClient(app).get("/dashboard", headers={"x-request-id": "req-1"})

        context = probe.with_context.call_args.args[0]
        assert context.request_id == "req-1"

    def test_request_id_is_generated(self, app, probe):
        TestClient(app).get("/dashboard")

        context = probe.with_context.call_args.args[0]
        assert context.request_id

    def test_rewrite_keeps_method(self, app):
        response = TestClient(app).post("/dashboard")

        assert response.json()["page"] == "unauthorized"
