"""Exceptions raised across the repository boundary.

Every repository operation surfaces one of these to its immediate caller;
SQLAlchemy exceptions never leak past :pymod:`bulletin.repositories`.
"""

from typing import Any


class RepositoryError(Exception):
    """Base exception for all persistence-layer errors."""

    kind = "repository_error"

    def __init__(self, message: str, cause: Exception = None):
        self.cause = cause
        if cause:
            message += f": {cause}"
        super().__init__(message)


class NotFound(RepositoryError):
    """Raised when a lookup by identifier finds no record."""

    kind = "not_found"

    def __init__(self, entity_name: str, entity_id: Any):
        self.entity_name = entity_name
        self.entity_id = entity_id
        super().__init__(f"{entity_name} with id {entity_id!r} not found")


class ValidationError(RepositoryError):
    """Raised when a mandatory field is missing or malformed at write time."""

    kind = "validation_error"


class PrincipalMissing(ValidationError):
    """Raised when a write happens without an acting principal."""

    def __init__(self, entity_name: str):
        self.entity_name = entity_name
        super().__init__(f"No acting principal available to audit {entity_name}")


class ConflictError(RepositoryError):
    """Raised when a concurrent modification is detected via the version check."""

    kind = "conflict"

    def __init__(
        self,
        entity_name: str,
        entity_id: Any,
        expected: Any = None,
        actual: Any = None,
        cause: Exception = None,
    ):
        self.entity_name = entity_name
        self.entity_id = entity_id
        self.expected = expected
        self.actual = actual
        message = f"{entity_name} with id {entity_id!r} was modified concurrently"
        if expected is not None:
            message += f" (expected version {expected}, found {actual})"
        super().__init__(message, cause)


class CascadeFailure(RepositoryError):
    """Raised when deleting a record or one of its dependents fails.

    The whole delete has been rolled back when this is raised.
    """

    kind = "cascade_failure"

    def __init__(self, entity_name: str, entity_id: Any, cause: Exception = None):
        self.entity_name = entity_name
        self.entity_id = entity_id
        super().__init__(f"Deleting {entity_name} with id {entity_id!r} failed and was rolled back", cause)


class StorageTimeout(RepositoryError):
    """Raised when the storage engine gives up waiting for a lock or connection."""

    kind = "storage_timeout"
