"""Current-business pointer kept in an httponly cookie."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Literal

from starlette.responses import Response

from tenancy.domain.value_objects import BusinessId


class CookiePointerStore:
    """Request-scoped pointer store.

    Reads come from the request cookies; writes go to the outgoing
    response as a single Set-Cookie. A write is visible to later reads in
    the same request.
    """

    def __init__(
        self,
        cookies: Mapping[str, str],
        response: Response,
        cookie_name: str = "current_business_id",
        max_age_seconds: int = 60 * 60 * 24 * 30,
        secure: bool = True,
        samesite: Literal["lax", "strict", "none"] = "lax",
    ):
        self._cookies = cookies
        self._response = response
        self._cookie_name = cookie_name
        self._max_age_seconds = max_age_seconds
        self._secure = secure
        self._samesite = samesite
        self._written = False
        self._pending: str | None = None

    def get(self) -> str | None:
        if self._written:
            return self._pending
        return self._cookies.get(self._cookie_name) or None

    def set(self, business_id: BusinessId) -> None:
        self._drop_pending_header()
        self._response.set_cookie(
            key=self._cookie_name,
            value=business_id.value,
            max_age=self._max_age_seconds,
            httponly=True,
            secure=self._secure,
            samesite=self._samesite,
        )
        self._written = True
        self._pending = business_id.value

    def clear(self) -> None:
        self._drop_pending_header()
        self._response.delete_cookie(
            key=self._cookie_name,
            httponly=True,
            secure=self._secure,
            samesite=self._samesite,
        )
        self._written = True
        self._pending = None

    def _drop_pending_header(self) -> None:
        # Keep a single Set-Cookie for the pointer per response
        prefix = f"{self._cookie_name}=".encode("latin-1")
        self._response.raw_headers[:] = [
            (name, value)
            for name, value in self._response.raw_headers
            if not (name == b"set-cookie" and value.startswith(prefix))
        ]
