"""Audit metadata: who created / last modified a record, and when."""

from bulletin.auditing.context import acting_as
from bulletin.auditing.context import get_principal
from bulletin.auditing.context import reset_principal
from bulletin.auditing.context import resolve_principal
from bulletin.auditing.context import set_principal
from bulletin.auditing.interceptor import AuditingListener
from bulletin.auditing.interceptor import install_auditing
from bulletin.auditing.interceptor import stamp_audit_fields

__all__ = [
    "AuditingListener",
    "acting_as",
    "get_principal",
    "install_auditing",
    "reset_principal",
    "resolve_principal",
    "set_principal",
    "stamp_audit_fields",
]
