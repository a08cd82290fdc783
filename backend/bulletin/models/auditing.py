"""Audit metadata columns shared by every persisted entity.

The columns are plain data; :mod:`bulletin.auditing.interceptor` fills them
in when a session flushes.  All four are NOT NULL, so a row can never be
written without them.
"""

from sqlalchemy import Column
from sqlalchemy import DateTime
from sqlalchemy import String

from bulletin.config import PRINCIPAL_MAX_LENGTH


class AuditingFields:
    """Mixin adding created/modified timestamps and principals."""

    created_at = Column(DateTime, nullable=False)
    created_by = Column(String(PRINCIPAL_MAX_LENGTH), nullable=False)
    modified_at = Column(DateTime, nullable=False)
    modified_by = Column(String(PRINCIPAL_MAX_LENGTH), nullable=False)

    def audit_repr(self) -> str:
        return (
            f"created_at={self.created_at!r}, created_by={self.created_by!r}, "
            f"modified_at={self.modified_at!r}, modified_by={self.modified_by!r}"
        )
