"""Populate audit fields when auditable records are written.

:func:`stamp_audit_fields` holds the rules.  :class:`AuditingListener` runs
them from the ``before_flush`` hook of every session created by
:func:`bulletin.database.make_sessionmaker`, so each repository write (and
every child persisted through a cascade in the same flush) is stamped with a
single principal and a single "now".
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from sqlalchemy import event
from sqlalchemy import inspect
from sqlalchemy.orm import Session
from sqlalchemy.orm import sessionmaker

from bulletin.auditing.context import resolve_principal
from bulletin.config import PRINCIPAL_MAX_LENGTH
from bulletin.errors import PrincipalMissing
from bulletin.errors import ValidationError
from bulletin.models.auditing import AuditingFields
from bulletin.utils.log import get_logger
from bulletin.utils.time import advance_past
from bulletin.utils.time import utc_now_naive

log = get_logger(component="auditing")

# ``session.info`` key tests use to pin the clock of one session.
CLOCK_KEY = "audit_clock"

_CREATION_FIELDS = ("created_at", "created_by")


def _check_principal(entity: AuditingFields, principal: str | None) -> str:
    name = type(entity).__name__
    if principal is None or not principal.strip():
        raise PrincipalMissing(name)
    if len(principal) > PRINCIPAL_MAX_LENGTH:
        raise ValidationError(f"Acting principal for {name} exceeds {PRINCIPAL_MAX_LENGTH} characters")
    return principal


def stamp_audit_fields(entity: AuditingFields, *, is_new: bool, principal: str | None, now: datetime) -> None:
    """Apply creation/modification metadata to *entity* in place.

    New records get all four fields from (*principal*, *now*).  Existing
    records only get ``modified_*``; ``modified_at`` never moves backwards
    or repeats.  Raises :class:`ValidationError` before touching anything
    when *principal* is unusable.
    """

    principal = _check_principal(entity, principal)

    if is_new:
        entity.created_at = now
        entity.created_by = principal
        entity.modified_at = now
        entity.modified_by = principal
        return

    entity.modified_at = advance_past(now, entity.modified_at)
    entity.modified_by = principal


def _reject_creation_field_changes(entity: AuditingFields) -> None:
    state = inspect(entity)
    for field in _CREATION_FIELDS:
        history = state.attrs[field].history
        if history.deleted and history.added:
            raise ValidationError(f"{type(entity).__name__}.{field} cannot change after creation")


class AuditingListener:
    """``before_flush`` hook stamping new and modified auditable instances."""

    def __init__(self, clock: Callable[[], datetime] = utc_now_naive):
        self.clock = clock

    def __call__(self, session: Session, _flush_context, _instances) -> None:  # noqa: D401 – event hook
        created = [obj for obj in session.new if isinstance(obj, AuditingFields)]
        updated = [
            obj
            for obj in session.dirty
            if isinstance(obj, AuditingFields)
            and obj not in session.deleted
            and session.is_modified(obj, include_collections=False)
        ]
        if not created and not updated:
            return

        principal = resolve_principal()
        now = session.info.get(CLOCK_KEY, self.clock)()

        for obj in updated:
            _reject_creation_field_changes(obj)

        for obj in created:
            stamp_audit_fields(obj, is_new=True, principal=principal, now=now)
        for obj in updated:
            stamp_audit_fields(obj, is_new=False, principal=principal, now=now)

        log.debug("audit_stamped", created=len(created), updated=len(updated), principal=principal)


def install_auditing(factory: sessionmaker, clock: Callable[[], datetime] = utc_now_naive) -> AuditingListener:
    """Attach an :class:`AuditingListener` to every session *factory* creates."""

    listener = AuditingListener(clock)
    event.listen(factory, "before_flush", listener)
    return listener


__all__ = ["AuditingListener", "CLOCK_KEY", "install_auditing", "stamp_audit_fields"]
