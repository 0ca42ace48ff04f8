"""FastAPI dependencies for the identity bounded context.

Also provides the session accessors other bounded contexts use to
require an authenticated caller.
"""

from datetime import timedelta
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, HTTPException, Request, Response, status

from identity.application.observability import (
    DefaultOtpChallengeProbe,
    OtpChallengeProbe,
)
from identity.application.services import OtpChallengeService, OtpChallengeStateMachine
from identity.infrastructure import CookieChallengeStore, GoTrueIdentityStore
from identity.infrastructure.observability import (
    DefaultIdentityStoreProbe,
    IdentityStoreProbe,
)
from infrastructure.settings import (
    CookieSettings,
    IdentitySettings,
    get_cookie_settings,
    get_identity_settings,
)
from shared_kernel.auth import (
    Channel,
    DefaultSessionCodecProbe,
    ResolvedSession,
    Session,
    SessionCookieJar,
    SessionCredential,
    SessionTokenCodec,
)
from shared_kernel.middleware import RouteClass
from shared_kernel.observability_context import ObservationContext


@lru_cache
def get_identity_store() -> GoTrueIdentityStore:
    """Get the identity store adapter.

    Returns:
        GoTrueIdentityStore configured from identity settings
    """
    settings = get_identity_settings()
    return GoTrueIdentityStore(
        base_url=settings.base_url,
        api_key=settings.api_key.get_secret_value(),
        service_role_key=settings.service_role_key.get_secret_value(),
        timeout=settings.request_timeout_seconds,
        probe=DefaultIdentityStoreProbe(),
    )


@lru_cache
def get_session_token_codec() -> SessionTokenCodec:
    """Get the session token codec.

    The codec holds only immutable configuration and is shared by the
    edge gate and request dependencies.
    """
    settings = get_identity_settings()
    return SessionTokenCodec(
        secret=settings.jwt_secret.get_secret_value(),
        audience=settings.jwt_audience,
        probe=DefaultSessionCodecProbe(),
        refresher=get_identity_store(),
        refresh_margin=timedelta(seconds=settings.refresh_margin_seconds),
    )


@lru_cache
def get_session_cookie_jar() -> SessionCookieJar:
    """Get the session credential cookie jar."""
    settings = get_cookie_settings()
    return SessionCookieJar(
        access_token_name=settings.access_token_name,
        refresh_token_name=settings.refresh_token_name,
        secure=settings.secure,
        samesite=settings.samesite,
        max_age_seconds=settings.refresh_max_age_seconds,
    )


async def get_resolved_session(
    request: Request,
    response: Response,
    codec: Annotated[SessionTokenCodec, Depends(get_session_token_codec)],
    cookies: Annotated[SessionCookieJar, Depends(get_session_cookie_jar)],
) -> ResolvedSession:
    """Resolve the request's session credential once per request.

    Reuses the session the edge gate resolved. Paths the gate does not
    resolve sessions for (public paths) are resolved here, and a rotated
    credential is written to the response.
    """
    decision = getattr(request.state, "gate_decision", None)
    if decision is not None and decision.route_class in (
        RouteClass.PROTECTED,
        RouteClass.AUTH_ONLY,
    ):
        return ResolvedSession(session=decision.session, rotated=decision.rotated)

    resolved = await codec.resolve(cookies.read(request.cookies))
    if resolved.rotated is not None:
        cookies.write(response, resolved.rotated)
    return resolved


async def get_optional_session(
    resolved: Annotated[ResolvedSession, Depends(get_resolved_session)],
) -> Session | None:
    """Get the session for the current request, if there is one."""
    return resolved.session


async def get_current_session(
    session: Annotated[Session | None, Depends(get_optional_session)],
) -> Session:
    """Require an authenticated session.

    Raises:
        HTTPException 401: If the request carries no valid session
    """
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return session


async def get_session_credential(
    request: Request,
    resolved: Annotated[ResolvedSession, Depends(get_resolved_session)],
    cookies: Annotated[SessionCookieJar, Depends(get_session_cookie_jar)],
) -> SessionCredential:
    """Get the credential behind the current session.

    When the credential was rotated while resolving the session, the
    rotated one is returned; the request's own refresh token is spent.

    Raises:
        HTTPException 401: If the request carries no valid session
    """
    if resolved.session is not None:
        if resolved.rotated is not None:
            return resolved.rotated
        credential = cookies.read(request.cookies)
        if credential is not None and credential.access_token:
            return credential
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
    )


def get_observation_context(request: Request) -> ObservationContext:
    """Get the observation context for the current request."""
    return ObservationContext(
        request_id=getattr(request.state, "request_id", None),
        path=getattr(request.state, "original_path", request.url.path),
    )


def get_identity_store_probe(
    context: Annotated[ObservationContext, Depends(get_observation_context)],
) -> IdentityStoreProbe:
    """Get IdentityStoreProbe instance bound to the request context."""
    return DefaultIdentityStoreProbe().with_context(context)


def get_otp_challenge_probe(
    context: Annotated[ObservationContext, Depends(get_observation_context)],
) -> OtpChallengeProbe:
    """Get OtpChallengeProbe instance bound to the request context."""
    return DefaultOtpChallengeProbe().with_context(context)


def get_challenge_store(
    request: Request,
    response: Response,
    settings: Annotated[CookieSettings, Depends(get_cookie_settings)],
) -> CookieChallengeStore:
    """Get the request-scoped challenge store.

    Args:
        request: Incoming request (cookies are read from here)
        response: Outgoing response (cookies are written here)
        settings: Cookie settings
    """
    return CookieChallengeStore(
        cookies=request.cookies,
        response=response,
        signing_key=settings.challenge_signing_key.get_secret_value(),
        cookie_prefix=settings.challenge_prefix,
        secure=settings.secure,
        samesite=settings.samesite,
    )


def get_otp_challenge_service(
    identity_store: Annotated[GoTrueIdentityStore, Depends(get_identity_store)],
    challenge_store: Annotated[CookieChallengeStore, Depends(get_challenge_store)],
    codec: Annotated[SessionTokenCodec, Depends(get_session_token_codec)],
    settings: Annotated[IdentitySettings, Depends(get_identity_settings)],
    probe: Annotated[OtpChallengeProbe, Depends(get_otp_challenge_probe)],
) -> OtpChallengeService:
    """Get OtpChallengeService with one state machine per channel.

    Both machines share the challenge store, which keeps one cookie per
    channel, so their state never mixes.
    """
    machines = {
        channel: OtpChallengeStateMachine(
            channel=channel,
            identity_store=identity_store,
            challenge_store=challenge_store,
            codec=codec,
            challenge_ttl=timedelta(seconds=settings.challenge_ttl_seconds),
            default_country_code=settings.default_country_code,
            probe=probe,
        )
        for channel in Channel
    }
    return OtpChallengeService(
        machines=machines,
        default_country_code=settings.default_country_code,
    )
