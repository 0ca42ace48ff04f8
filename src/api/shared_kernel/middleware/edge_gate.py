"""Edge authorization gate.

Runs before any route handler. Every request path is classified, a
session is resolved for protected and auth-only paths, and the request
is either allowed, passed through, or internally rewritten to the
unauthorized/authorized targets. Rewrites change the ASGI path only; the
client sees no redirect.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp
from ulid import ULID

from shared_kernel.auth.session import ResolvedSession, Session, SessionCredential
from shared_kernel.middleware.route_classifier import (
    RouteClass,
    RouteRules,
    classify_route,
)
from shared_kernel.observability_context import ObservationContext

if TYPE_CHECKING:
    from shared_kernel.auth.cookies import SessionCookieJar
    from shared_kernel.auth.session_codec import SessionTokenCodec
    from shared_kernel.middleware.observability import EdgeGateProbe


class GateOutcome(StrEnum):
    """What the gate does with a request."""

    ALLOW = "allow"
    DENY_REWRITE = "deny_rewrite"
    PASS_THROUGH = "pass_through"


@dataclass(frozen=True)
class GateDecision:
    """Result of authorizing one request path.

    Attributes:
        outcome: Allow, rewrite or pass through.
        route_class: Classification of the requested path.
        target: Rewrite target, set only for DENY_REWRITE.
        session: The session resolved for the request, if any.
        rotated: A refreshed credential to write back to the client.
    """

    outcome: GateOutcome
    route_class: RouteClass
    target: str | None = None
    session: Session | None = None
    rotated: SessionCredential | None = None


class EdgeAuthorizationGate:
    """Decides, per request path, whether the request reaches its route."""

    def __init__(
        self,
        codec: SessionTokenCodec,
        rules: RouteRules,
        probe: EdgeGateProbe,
        unauthorized_path: str = "/unauthorized",
        authorized_path: str = "/authorized",
    ):
        self._codec = codec
        self._rules = rules
        self._probe = probe
        self._unauthorized_path = unauthorized_path
        self._authorized_path = authorized_path

    async def authorize(
        self,
        path: str,
        credential: SessionCredential | None,
        probe: EdgeGateProbe | None = None,
    ) -> GateDecision:
        """Authorize a request path.

        Never raises. Session resolution failures count as "no session".

        Args:
            path: Request path as received.
            credential: Session credential from the request cookies.
            probe: Optional request-scoped probe overriding the default.
        """
        probe = probe or self._probe
        route_class = classify_route(path, self._rules)

        if route_class in (RouteClass.PUBLIC, RouteClass.EXCLUDED):
            return GateDecision(outcome=GateOutcome.PASS_THROUGH, route_class=route_class)

        resolved = await self._resolve(path, credential, probe)
        session = resolved.session
        subject = session.subject if session is not None else None

        if route_class is RouteClass.PROTECTED and session is None:
            target = self._unauthorized_path
        elif route_class is RouteClass.AUTH_ONLY and session is not None:
            target = self._authorized_path
        else:
            probe.request_allowed(path=path, route_class=route_class, subject=subject)
            return GateDecision(
                outcome=GateOutcome.ALLOW,
                route_class=route_class,
                session=session,
                rotated=resolved.rotated,
            )

        probe.request_rewritten(
            path=path, route_class=route_class, target=target, subject=subject
        )
        return GateDecision(
            outcome=GateOutcome.DENY_REWRITE,
            route_class=route_class,
            target=target,
            session=session,
            rotated=resolved.rotated,
        )

    async def _resolve(
        self, path: str, credential: SessionCredential | None, probe: EdgeGateProbe
    ) -> ResolvedSession:
        try:
            return await self._codec.resolve(credential)
        except Exception as e:
            # Fail closed
            probe.session_resolution_failed(path=path, error=e)
            return ResolvedSession.anonymous()


class EdgeAuthorizationMiddleware(BaseHTTPMiddleware):
    """ASGI middleware applying the edge authorization gate.

    Stores the gate decision on ``request.state`` so route dependencies
    reuse the resolved session:

    - ``request.state.session``: ``Session | None``
    - ``request.state.original_path``: path before any rewrite
    - ``request.state.request_id``: id bound to the gate's log events
    """

    def __init__(
        self,
        app: ASGIApp,
        gate: EdgeAuthorizationGate,
        cookies: SessionCookieJar,
        probe: EdgeGateProbe,
    ):
        super().__init__(app)
        self._gate = gate
        self._cookies = cookies
        self._probe = probe

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        request_id = request.headers.get("x-request-id") or str(ULID())
        probe = self._probe.with_context(ObservationContext(request_id=request_id))

        credential = self._cookies.read(request.cookies)
        decision = await self._gate.authorize(path, credential, probe=probe)

        request.state.request_id = request_id
        request.state.original_path = path
        request.state.session = decision.session
        request.state.gate_decision = decision

        if decision.outcome is GateOutcome.DENY_REWRITE and decision.target:
            request.scope["path"] = decision.target
            request.scope["raw_path"] = decision.target.encode()

        response = await call_next(request)

        if decision.rotated is not None:
            self._cookies.write(response, decision.rotated)
            if decision.session is not None:
                probe.credential_rotated(path=path, subject=decision.session.subject)

        return response


def get_request_session(request: Request) -> Session | None:
    """Return the session the gate resolved for this request."""
    return getattr(request.state, "session", None)
