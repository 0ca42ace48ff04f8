"""Route classification for the edge authorization gate.

Pure functions only: classification depends on the path and the
configured route lists, never on the request or the session.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

_STATIC_PREFIXES = ("/_next/static/", "/_next/image", "/static/")
_STATIC_PATHS = frozenset({"/favicon.ico", "/_next/static"})
_STATIC_EXTENSIONS = (
    ".svg",
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".webp",
    ".ico",
    ".woff",
    ".woff2",
    ".ttf",
    ".otf",
)


class RouteClass(StrEnum):
    """How the gate treats a request path."""

    PROTECTED = "protected"
    AUTH_ONLY = "auth_only"
    PUBLIC = "public"
    EXCLUDED = "excluded"


@dataclass(frozen=True)
class RouteRules:
    """Configured route lists.

    Attributes:
        protected_prefixes: A path is protected if it equals one of these
            or continues it with a ``/`` segment.
        auth_only_paths: Exact paths only reachable without a session.
    """

    protected_prefixes: tuple[str, ...]
    auth_only_paths: frozenset[str]

    @classmethod
    def from_lists(
        cls, protected_prefixes: list[str], auth_only_paths: list[str]
    ) -> RouteRules:
        """Build rules from configuration lists, dropping trailing slashes."""
        prefixes = tuple(p.rstrip("/") or "/" for p in protected_prefixes)
        return cls(
            protected_prefixes=prefixes,
            auth_only_paths=frozenset(auth_only_paths),
        )


def is_static_asset(path: str) -> bool:
    """Return True for framework and static asset paths the gate never sees."""
    if path in _STATIC_PATHS or path.startswith(_STATIC_PREFIXES):
        return True
    return path.lower().endswith(_STATIC_EXTENSIONS)


def _matches_prefix(path: str, prefix: str) -> bool:
    if prefix == "/":
        return True
    return path == prefix or path.startswith(prefix + "/")


def classify_route(path: str, rules: RouteRules) -> RouteClass:
    """Classify a request path.

    Matching is case-sensitive. ``/dashboardx`` is not under ``/dashboard``.
    """
    if is_static_asset(path):
        return RouteClass.EXCLUDED
    if any(_matches_prefix(path, prefix) for prefix in rules.protected_prefixes):
        return RouteClass.PROTECTED
    if path in rules.auth_only_paths:
        return RouteClass.AUTH_ONLY
    return RouteClass.PUBLIC
