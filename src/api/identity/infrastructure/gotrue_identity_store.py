"""GoTrue (Supabase Auth) implementation of the identity store port.

Speaks the GoTrue REST API over httpx. Admin calls (account lookup and
creation) use the service role key; the rest use the public API key.
"""

from __future__ import annotations

import urllib.parse
from typing import Any

import httpx

from identity.domain.value_objects import Identifier
from identity.infrastructure.observability import (
    DefaultIdentityStoreProbe,
    IdentityStoreProbe,
)
from identity.ports.exceptions import (
    CodeRejectedError,
    IdentifierTakenError,
    IdentityLookupError,
    SessionRefreshError,
)
from identity.ports.identity_store import IdentityAccount
from shared_kernel.auth.session import Channel, SessionCredential

_EXPIRED_ERROR_CODES = frozenset({"otp_expired", "flow_state_expired"})


def _account_from_payload(payload: dict[str, Any]) -> IdentityAccount:
    return IdentityAccount(
        subject=str(payload["id"]),
        email=payload.get("email") or None,
        phone=_normalize_phone(payload.get("phone")),
        user_metadata=dict(payload.get("user_metadata") or {}),
    )


def _normalize_phone(phone: str | None) -> str | None:
    # GoTrue stores phone numbers without the leading "+"
    if not phone:
        return None
    return phone if phone.startswith("+") else f"+{phone}"


def _error_payload(response: httpx.Response) -> dict[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


def _credential_from_payload(payload: dict[str, Any]) -> SessionCredential:
    return SessionCredential(
        access_token=payload["access_token"],
        refresh_token=payload.get("refresh_token"),
    )


class GoTrueIdentityStore:
    """Identity store adapter for a GoTrue server."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        service_role_key: str,
        timeout: float = 10.0,
        probe: IdentityStoreProbe | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the adapter.

        Args:
            base_url: GoTrue API root, e.g. ``https://x.supabase.co/auth/v1``
            api_key: Public (anon) key
            service_role_key: Admin key for account management
            timeout: Per-request timeout in seconds
            probe: Optional domain probe for observability
            transport: Optional httpx transport (tests use MockTransport)
        """
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._service_role_key = service_role_key
        self._timeout = timeout
        self._probe = probe or DefaultIdentityStoreProbe()
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            headers={"apikey": self._api_key},
            transport=self._transport,
        )

    def _admin_headers(self) -> dict[str, str]:
        return {
            "apikey": self._service_role_key,
            "Authorization": f"Bearer {self._service_role_key}",
        }

    async def _request(
        self, operation: str, method: str, url: str, **kwargs: Any
    ) -> httpx.Response:
        try:
            async with self._client() as client:
                return await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            self._probe.request_failed(operation=operation, error=e)
            raise IdentityLookupError(f"Identity store unreachable: {e}") from e

    def _unexpected(self, operation: str, response: httpx.Response) -> IdentityLookupError:
        self._probe.unexpected_response(
            operation=operation, status_code=response.status_code
        )
        return IdentityLookupError(
            f"Identity store {operation} failed with status {response.status_code}"
        )

    async def create_or_lookup_account(
        self,
        identifier: Identifier,
        create: bool,
        metadata: dict[str, Any] | None = None,
    ) -> IdentityAccount | None:
        """Find the account for an identifier, creating it if asked to."""
        account = await self._find_account(identifier)
        if account is not None:
            self._probe.account_resolved(subject=account.subject, created=False)
            return account
        if not create:
            return None

        body: dict[str, Any] = {
            identifier.channel.value: identifier.value,
            "user_metadata": metadata or {},
        }
        response = await self._request(
            "create_account",
            "POST",
            "/admin/users",
            json=body,
            headers=self._admin_headers(),
        )
        if response.status_code == 422:
            # Created concurrently by another request
            account = await self._find_account(identifier)
            if account is not None:
                return account
        if response.status_code not in (200, 201):
            raise self._unexpected("create_account", response)

        account = _account_from_payload(response.json())
        self._probe.account_resolved(subject=account.subject, created=True)
        return account

    async def _find_account(self, identifier: Identifier) -> IdentityAccount | None:
        # The filter is a substring match, so results are checked exactly
        term = identifier.value.lstrip("+")
        response = await self._request(
            "lookup_account",
            "GET",
            "/admin/users",
            params={"filter": term, "per_page": 50},
            headers=self._admin_headers(),
        )
        if response.status_code != 200:
            raise self._unexpected("lookup_account", response)

        for payload in response.json().get("users", []):
            account = _account_from_payload(payload)
            if identifier.channel is Channel.EMAIL:
                if (account.email or "").lower() == identifier.value:
                    return account
            elif account.phone == identifier.value:
                return account
        return None

    async def send_otp(
        self, subject: str, channel: Channel, target: str, link: bool = False
    ) -> None:
        """Ask GoTrue to generate and deliver a new code."""
        if link:
            body: dict[str, Any] = {"type": f"{channel}_change", channel.value: target}
            response = await self._request("resend_otp", "POST", "/resend", json=body)
        else:
            body = {"create_user": False}
            if channel is Channel.EMAIL:
                body["email"] = target
            else:
                body["phone"] = target
                body["channel"] = "sms"
            response = await self._request("send_otp", "POST", "/otp", json=body)

        if response.status_code != 200:
            raise self._unexpected("send_otp", response)
        self._probe.otp_sent(channel=channel)

    async def verify_otp(
        self, subject: str, channel: Channel, target: str, code: str, link: bool = False
    ) -> SessionCredential:
        """Verify a code and return the credential of the new session."""
        body: dict[str, Any] = {"token": code}
        if link:
            body.update({"type": f"{channel}_change", channel.value: target})
        elif channel is Channel.EMAIL:
            body.update(type="email", email=target)
        else:
            body.update(type="sms", phone=target)

        response = await self._request("verify_otp", "POST", "/verify", json=body)
        if response.status_code == 200:
            return _credential_from_payload(response.json())
        if 400 <= response.status_code < 500:
            payload = _error_payload(response)
            error_code = payload.get("error_code") or payload.get("code")
            raise CodeRejectedError(
                payload.get("msg") or "Token has expired or is invalid",
                expired=error_code in _EXPIRED_ERROR_CODES,
            )
        raise self._unexpected("verify_otp", response)

    async def attach_channel(
        self, access_token: str, channel: Channel, target: str
    ) -> None:
        """Request an email or phone change; GoTrue sends the code."""
        response = await self._request(
            "attach_channel",
            "PUT",
            "/user",
            json={channel.value: target},
            headers={"Authorization": f"Bearer {access_token}"},
        )
        if response.status_code == 422:
            payload = _error_payload(response)
            raise IdentifierTakenError(
                payload.get("msg") or f"This {channel} is already registered"
            )
        if response.status_code != 200:
            raise self._unexpected("attach_channel", response)
        self._probe.otp_sent(channel=channel)

    async def refresh_session(self, refresh_token: str) -> SessionCredential:
        """Rotate a session credential."""
        response = await self._request(
            "refresh_session",
            "POST",
            "/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": refresh_token},
        )
        if response.status_code == 200:
            return _credential_from_payload(response.json())
        if 400 <= response.status_code < 500:
            raise SessionRefreshError("Refresh token was not accepted")
        raise self._unexpected("refresh_session", response)

    async def update_user_metadata(
        self, access_token: str, metadata: dict[str, Any]
    ) -> IdentityAccount:
        """Merge metadata into the signed-in user's account."""
        response = await self._request(
            "update_user",
            "PUT",
            "/user",
            json={"data": metadata},
            headers={"Authorization": f"Bearer {access_token}"},
        )
        if response.status_code != 200:
            raise self._unexpected("update_user", response)
        return _account_from_payload(response.json())

    def sign_in_federated(
        self, provider: str, redirect_to: str, code_challenge: str
    ) -> str:
        """Return the GoTrue authorize URL for a PKCE sign-in."""
        params = {
            "provider": provider,
            "redirect_to": redirect_to,
            "code_challenge": code_challenge,
            "code_challenge_method": "s256",
        }
        return f"{self._base_url}/authorize?{urllib.parse.urlencode(params)}"

    async def exchange_federated_code(
        self, auth_code: str, code_verifier: str
    ) -> SessionCredential:
        """Exchange a federated authorization code for a session credential."""
        response = await self._request(
            "exchange_code",
            "POST",
            "/token",
            params={"grant_type": "pkce"},
            json={"auth_code": auth_code, "code_verifier": code_verifier},
        )
        if response.status_code == 200:
            return _credential_from_payload(response.json())
        if 400 <= response.status_code < 500:
            raise SessionRefreshError("Authorization code was not accepted")
        raise self._unexpected("exchange_code", response)

    async def sign_out(self, access_token: str) -> None:
        """Revoke the session behind an access token."""
        response = await self._request(
            "sign_out",
            "POST",
            "/logout",
            headers={"Authorization": f"Bearer {access_token}"},
        )
        # 401 means the session is already gone
        if response.status_code not in (200, 204, 401):
            raise self._unexpected("sign_out", response)
