"""Reading and writing the session credential cookies."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal

from starlette.responses import Response

from shared_kernel.auth.session import SessionCredential


@dataclass(frozen=True)
class SessionCookieJar:
    """Cookie names and attributes for the session credential.

    Both cookies are httponly. The refresh cookie outlives the access
    cookie so an expired access token can still be rotated.
    """

    access_token_name: str = "access_token"
    refresh_token_name: str = "refresh_token"
    secure: bool = True
    samesite: Literal["lax", "strict", "none"] = "lax"
    max_age_seconds: int = 60 * 60 * 24 * 30

    def read(self, cookies: Mapping[str, str]) -> SessionCredential | None:
        """Extract the credential from request cookies, if present."""
        access_token = cookies.get(self.access_token_name, "")
        refresh_token = cookies.get(self.refresh_token_name) or None
        if not access_token and not refresh_token:
            return None
        return SessionCredential(access_token=access_token, refresh_token=refresh_token)

    def write(self, response: Response, credential: SessionCredential) -> None:
        """Attach the credential to an outgoing response."""
        response.set_cookie(
            key=self.access_token_name,
            value=credential.access_token,
            max_age=self.max_age_seconds,
            httponly=True,
            secure=self.secure,
            samesite=self.samesite,
        )
        if credential.refresh_token:
            response.set_cookie(
                key=self.refresh_token_name,
                value=credential.refresh_token,
                max_age=self.max_age_seconds,
                httponly=True,
                secure=self.secure,
                samesite=self.samesite,
            )

    def clear(self, response: Response) -> None:
        """Remove both credential cookies from the client."""
        for name in (self.access_token_name, self.refresh_token_name):
            response.delete_cookie(
                key=name,
                httponly=True,
                secure=self.secure,
                samesite=self.samesite,
            )
