"""Acting-principal context.

The principal is the identity a write is attributed to.  It travels through
the call stack in a ``ContextVar`` so the auditing interceptor can read it
without every repository call threading it through explicitly.

Usage:
    with acting_as("alice"):
        repo.save(article)

    # HTTP requests: PrincipalMiddleware sets it from a request header.
    # Unattended work: AUDIT_DEFAULT_PRINCIPAL supplies a fallback.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from contextvars import Token
from typing import Iterator

from bulletin.config import get_settings

_current_principal: ContextVar[str | None] = ContextVar("current_principal", default=None)


def get_principal() -> str | None:
    """Return the principal set for the current context, if any."""
    return _current_principal.get()


def set_principal(principal: str | None) -> Token[str | None]:
    """Set the acting principal. Returns a token for reset.

    Must be paired with reset_principal() in a finally block.
    """
    return _current_principal.set(principal)


def reset_principal(token: Token[str | None]) -> None:
    """Reset the acting principal to its previous value."""
    _current_principal.reset(token)


@contextmanager
def acting_as(principal: str) -> Iterator[str]:
    """Attribute every write inside the block to *principal*."""

    token = set_principal(principal)
    try:
        yield principal
    finally:
        reset_principal(token)


def resolve_principal() -> str | None:
    """Return the context principal, else the configured system default."""

    principal = get_principal()
    if principal is not None and principal.strip():
        return principal
    return get_settings().default_principal


__all__ = [
    "acting_as",
    "get_principal",
    "reset_principal",
    "resolve_principal",
    "set_principal",
]
