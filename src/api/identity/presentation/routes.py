"""HTTP API routes for identity verification and sessions."""

from __future__ import annotations

import base64
import hashlib
import secrets
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from fastapi.responses import JSONResponse, RedirectResponse

from identity.application.services import OtpChallengeService
from identity.dependencies import (
    get_current_session,
    get_identity_store,
    get_identity_store_probe,
    get_otp_challenge_service,
    get_session_cookie_jar,
    get_session_credential,
    get_session_token_codec,
)
from identity.domain.exceptions import (
    AccountNotFoundError,
    ChallengeExpiredError,
    IdentifierFormatError,
    IdentifierInUseError,
    InvalidCodeError,
    NoActiveChallengeError,
)
from identity.domain.value_objects import ChallengeMode
from identity.infrastructure import GoTrueIdentityStore
from identity.infrastructure.observability import IdentityStoreProbe
from identity.ports.exceptions import (
    IdentityLookupError,
    IdentityStoreError,
    SessionRefreshError,
)
from identity.presentation.models import (
    CancelChallengeRequest,
    ChallengeResponse,
    ChannelRequest,
    LinkChannelRequest,
    LoginRequest,
    SessionResponse,
    SignupRequest,
    UpdateUserRequest,
    VerifyChallengeRequest,
)
from infrastructure.settings import (
    CookieSettings,
    GateSettings,
    IdentitySettings,
    get_cookie_settings,
    get_gate_settings,
    get_identity_settings,
)
from shared_kernel.auth import (
    Channel,
    InvalidSessionError,
    Session,
    SessionCookieJar,
    SessionCredential,
    SessionTokenCodec,
)

router = APIRouter(prefix="/auth", tags=["auth"])
gate_router = APIRouter(tags=["auth"])

_DEFAULT_NEXT = "/dashboard"


def _challenge_error(e: Exception) -> HTTPException:
    """Translate an OTP flow error into an HTTP error."""
    if isinstance(e, IdentityLookupError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Identity service is unavailable",
        )
    if isinstance(e, AccountNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, IdentifierFormatError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT, detail=str(e)
        )
    if isinstance(e, IdentifierInUseError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if isinstance(e, InvalidCodeError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if isinstance(e, ChallengeExpiredError):
        return HTTPException(status_code=status.HTTP_410_GONE, detail=str(e))
    if isinstance(e, NoActiveChallengeError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Verification failed",
    )


_CHALLENGE_ERRORS = (
    IdentityLookupError,
    AccountNotFoundError,
    IdentifierFormatError,
    IdentifierInUseError,
    InvalidCodeError,
    ChallengeExpiredError,
    NoActiveChallengeError,
)


def _generate_pkce_pair() -> tuple[str, str]:
    """Generate PKCE code_verifier and code_challenge.

    Uses S256 challenge method as recommended by RFC 7636.

    Returns:
        Tuple of (code_verifier, code_challenge)
    """
    code_verifier = secrets.token_urlsafe(48)
    code_challenge = (
        base64.urlsafe_b64encode(hashlib.sha256(code_verifier.encode()).digest())
        .decode()
        .rstrip("=")
    )
    return code_verifier, code_challenge


def _safe_next(next_path: str | None) -> str:
    """Only allow same-site relative redirect targets."""
    if not next_path or not next_path.startswith("/") or next_path.startswith("//"):
        return _DEFAULT_NEXT
    return next_path


@router.post("/login", response_model=ChallengeResponse)
async def login(
    request: LoginRequest,
    service: Annotated[OtpChallengeService, Depends(get_otp_challenge_service)],
) -> ChallengeResponse:
    """Send a code to an existing account's email address or phone.

    Returns:
        The in-flight challenge

    Raises:
        HTTPException: 404 if no account exists, 422 on a malformed
            identifier, 503 if the identity store is unreachable
    """
    try:
        challenge = await service.start_challenge(request.identifier, ChallengeMode.LOGIN)
    except _CHALLENGE_ERRORS as e:
        raise _challenge_error(e) from e
    return ChallengeResponse.from_domain(challenge)


@router.post("/signup", response_model=ChallengeResponse)
async def signup(
    request: SignupRequest,
    service: Annotated[OtpChallengeService, Depends(get_otp_challenge_service)],
) -> ChallengeResponse:
    """Create an account if needed and send it a code."""
    try:
        challenge = await service.start_challenge(
            request.identifier, ChallengeMode.SIGNUP, full_name=request.full_name
        )
    except _CHALLENGE_ERRORS as e:
        raise _challenge_error(e) from e
    return ChallengeResponse.from_domain(challenge)


@router.post("/verify", response_model=SessionResponse)
async def verify(
    request: VerifyChallengeRequest,
    response: Response,
    service: Annotated[OtpChallengeService, Depends(get_otp_challenge_service)],
    cookies: Annotated[SessionCookieJar, Depends(get_session_cookie_jar)],
) -> SessionResponse:
    """Verify a code and start a session.

    The session credential is written to httponly cookies.

    Raises:
        HTTPException: 400 on a wrong or malformed code, 409 with no
            challenge in flight, 410 when the challenge expired
    """
    try:
        verified = await service.verify_challenge(request.channel, request.code)
    except _CHALLENGE_ERRORS as e:
        raise _challenge_error(e) from e

    cookies.write(response, verified.credential)
    return SessionResponse.from_domain(verified.session)


@router.post("/link", response_model=ChallengeResponse)
async def link_channel(
    request: LinkChannelRequest,
    session: Annotated[Session, Depends(get_current_session)],
    credential: Annotated[SessionCredential, Depends(get_session_credential)],
    service: Annotated[OtpChallengeService, Depends(get_otp_challenge_service)],
) -> ChallengeResponse:
    """Send a code to an email address or phone the user wants to add.

    Raises:
        HTTPException: 409 if another account uses the identifier, 422
            on a malformed identifier
    """
    try:
        challenge = await service.start_link_challenge(
            request.identifier, session, credential
        )
    except _CHALLENGE_ERRORS as e:
        raise _challenge_error(e) from e
    return ChallengeResponse.from_domain(challenge)


@router.post("/link/verify", response_model=SessionResponse)
async def verify_link(
    request: VerifyChallengeRequest,
    response: Response,
    session: Annotated[Session, Depends(get_current_session)],
    service: Annotated[OtpChallengeService, Depends(get_otp_challenge_service)],
    cookies: Annotated[SessionCookieJar, Depends(get_session_cookie_jar)],
) -> SessionResponse:
    """Verify the code for a linked identifier.

    The refreshed session, with the new channel verified, replaces the
    session cookies.
    """
    try:
        verified = await service.verify_link_challenge(
            request.channel, request.code, session
        )
    except _CHALLENGE_ERRORS as e:
        raise _challenge_error(e) from e

    cookies.write(response, verified.credential)
    return SessionResponse.from_domain(verified.session)


@router.post("/resend", response_model=ChallengeResponse)
async def resend(
    request: ChannelRequest,
    service: Annotated[OtpChallengeService, Depends(get_otp_challenge_service)],
) -> ChallengeResponse:
    """Send a fresh code for the in-flight challenge on a channel."""
    try:
        challenge = await service.resend(request.channel)
    except _CHALLENGE_ERRORS as e:
        raise _challenge_error(e) from e
    return ChallengeResponse.from_domain(challenge)


@router.post("/cancel", status_code=status.HTTP_204_NO_CONTENT)
async def cancel(
    request: CancelChallengeRequest,
    service: Annotated[OtpChallengeService, Depends(get_otp_challenge_service)],
) -> None:
    """Abandon the in-flight challenge on one channel, or on both."""
    service.cancel(request.channel)


@router.get("/federated/{provider}")
async def federated_sign_in(
    provider: str,
    request: Request,
    identity_store: Annotated[GoTrueIdentityStore, Depends(get_identity_store)],
    identity_settings: Annotated[IdentitySettings, Depends(get_identity_settings)],
    cookie_settings: Annotated[CookieSettings, Depends(get_cookie_settings)],
    next_path: str = Query(default=_DEFAULT_NEXT, alias="next"),
) -> RedirectResponse:
    """Start a federated sign-in with PKCE.

    The code verifier is kept in a short-lived httponly cookie for the
    callback.
    """
    if provider not in identity_settings.federated_providers:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown sign-in provider: {provider}",
        )

    code_verifier, code_challenge = _generate_pkce_pair()
    callback_url = request.url_for("federated_callback").include_query_params(
        next=_safe_next(next_path)
    )
    authorize_url = identity_store.sign_in_federated(
        provider=provider,
        redirect_to=str(callback_url),
        code_challenge=code_challenge,
    )

    response = RedirectResponse(url=authorize_url, status_code=status.HTTP_302_FOUND)
    response.set_cookie(
        key=cookie_settings.pkce_verifier_name,
        value=code_verifier,
        max_age=cookie_settings.pkce_max_age_seconds,
        httponly=True,
        secure=cookie_settings.secure,
        samesite=cookie_settings.samesite,
    )
    return response


@router.get("/callback", name="federated_callback")
async def federated_callback(
    request: Request,
    identity_store: Annotated[GoTrueIdentityStore, Depends(get_identity_store)],
    cookies: Annotated[SessionCookieJar, Depends(get_session_cookie_jar)],
    cookie_settings: Annotated[CookieSettings, Depends(get_cookie_settings)],
    gate_settings: Annotated[GateSettings, Depends(get_gate_settings)],
    code: str | None = Query(default=None),
    next_path: str = Query(default=_DEFAULT_NEXT, alias="next"),
) -> RedirectResponse:
    """Finish a federated sign-in.

    Exchanges the authorization code using the stored PKCE verifier and
    redirects to ``next`` with the session cookies set. Any failure
    redirects to the unauthorized page.
    """
    code_verifier = request.cookies.get(cookie_settings.pkce_verifier_name)
    credential = None
    if code and code_verifier:
        try:
            credential = await identity_store.exchange_federated_code(
                auth_code=code, code_verifier=code_verifier
            )
        except IdentityStoreError:
            credential = None

    target = _safe_next(next_path) if credential else gate_settings.unauthorized_path
    response = RedirectResponse(url=target, status_code=status.HTTP_302_FOUND)
    response.delete_cookie(
        key=cookie_settings.pkce_verifier_name,
        httponly=True,
        secure=cookie_settings.secure,
        samesite=cookie_settings.samesite,
    )
    if credential is not None:
        cookies.write(response, credential)
    return response


@router.post("/signout", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(
    request: Request,
    identity_store: Annotated[GoTrueIdentityStore, Depends(get_identity_store)],
    probe: Annotated[IdentityStoreProbe, Depends(get_identity_store_probe)],
    cookies: Annotated[SessionCookieJar, Depends(get_session_cookie_jar)],
    cookie_settings: Annotated[CookieSettings, Depends(get_cookie_settings)],
) -> Response:
    """End the session.

    Revocation at the identity store is best effort; the session,
    challenge and current-business cookies are always cleared.
    """
    credential = cookies.read(request.cookies)
    if credential is not None and credential.access_token:
        try:
            await identity_store.sign_out(credential.access_token)
        except IdentityStoreError as e:
            probe.request_failed(operation="sign_out", error=e)

    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    cookies.clear(response)
    for name in [
        f"{cookie_settings.challenge_prefix}{channel}" for channel in Channel
    ] + [cookie_settings.business_name]:
        response.delete_cookie(
            key=name,
            httponly=True,
            secure=cookie_settings.secure,
            samesite=cookie_settings.samesite,
        )
    return response


@router.get("/session", response_model=SessionResponse)
async def get_session(
    session: Annotated[Session, Depends(get_current_session)],
) -> SessionResponse:
    """Return the current session."""
    return SessionResponse.from_domain(session)


@router.post("/session/refresh", response_model=SessionResponse)
async def refresh_session(
    request: Request,
    response: Response,
    identity_store: Annotated[GoTrueIdentityStore, Depends(get_identity_store)],
    codec: Annotated[SessionTokenCodec, Depends(get_session_token_codec)],
    cookies: Annotated[SessionCookieJar, Depends(get_session_cookie_jar)],
) -> SessionResponse:
    """Rotate the session credential.

    Raises:
        HTTPException: 401 without a usable refresh token, 503 if the
            identity store is unreachable
    """
    credential = cookies.read(request.cookies)
    if credential is None or not credential.refresh_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated"
        )

    try:
        rotated = await identity_store.refresh_session(credential.refresh_token)
        session = codec.decode(rotated.access_token)
    except (SessionRefreshError, InvalidSessionError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Session expired"
        ) from e
    except IdentityLookupError as e:
        raise _challenge_error(e) from e

    cookies.write(response, rotated)
    return SessionResponse.from_domain(session)


@router.patch("/user", response_model=SessionResponse)
async def update_user(
    request: UpdateUserRequest,
    response: Response,
    session: Annotated[Session, Depends(get_current_session)],
    credential: Annotated[SessionCredential, Depends(get_session_credential)],
    identity_store: Annotated[GoTrueIdentityStore, Depends(get_identity_store)],
    probe: Annotated[IdentityStoreProbe, Depends(get_identity_store_probe)],
    codec: Annotated[SessionTokenCodec, Depends(get_session_token_codec)],
    cookies: Annotated[SessionCookieJar, Depends(get_session_cookie_jar)],
) -> SessionResponse:
    """Update the signed-in user's profile metadata.

    The session is refreshed afterwards so its claims carry the new
    metadata.
    """
    metadata = request.to_metadata()
    if not metadata:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail="No profile fields provided",
        )

    try:
        await identity_store.update_user_metadata(credential.access_token, metadata)
        if credential.refresh_token:
            rotated = await identity_store.refresh_session(credential.refresh_token)
            session = codec.decode(rotated.access_token)
            cookies.write(response, rotated)
    except (SessionRefreshError, InvalidSessionError) as e:
        # Metadata is saved; the claims catch up on the next rotation
        probe.request_failed(operation="refresh_session", error=e)
    except IdentityLookupError as e:
        raise _challenge_error(e) from e

    return SessionResponse.from_domain(session)


@gate_router.api_route("/unauthorized", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
async def unauthorized() -> JSONResponse:
    """Rewrite target for protected paths requested without a session."""
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": "Authentication required"},
    )


@gate_router.api_route("/authorized", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
async def authorized() -> JSONResponse:
    """Rewrite target for sign-in pages requested with a live session."""
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={"detail": "Already signed in"},
    )
