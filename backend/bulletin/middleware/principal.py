"""ASGI middleware that attributes each request to an acting principal.

Clients name the principal in a request header (``X-Acting-Principal`` by
default, see ``PRINCIPAL_HEADER``).  The middleware stores it in the
auditing context var for the duration of the request so every repository
write made while handling it is stamped with that identity.

When the header is **missing** nothing is set and the auditing layer falls
back to ``AUDIT_DEFAULT_PRINCIPAL`` (if configured).
"""

from __future__ import annotations

from starlette.types import ASGIApp
from starlette.types import Receive
from starlette.types import Scope
from starlette.types import Send

from bulletin.auditing.context import reset_principal
from bulletin.auditing.context import set_principal
from bulletin.config import get_settings


class PrincipalMiddleware:  # noqa: D401 – ASGI middleware
    """Copy the principal header into the request context."""

    def __init__(self, app: ASGIApp, header_name: str | None = None) -> None:  # noqa: D401 – ASGI signature
        self.app = app
        self.header_name = (header_name or get_settings().principal_header).lower().encode("latin-1")

    def _principal_from(self, scope: Scope) -> str | None:
        for raw_name, raw_value in scope.get("headers", []):
            if raw_name.lower() == self.header_name:
                value = raw_value.decode("utf-8", errors="replace").strip()
                return value or None
        return None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:  # noqa: D401 – ASGI
        principal = None
        if scope.get("type") == "http":
            principal = self._principal_from(scope)

        token = None
        if principal is not None:
            token = set_principal(principal)

        try:
            await self.app(scope, receive, send)
        finally:
            # Reset so later requests on the same worker do not inherit it.
            if token is not None:
                reset_principal(token)
