"""Generic repository over one SQLAlchemy model.

``Repository[T]`` is the data-access boundary: callers get entities back or
one of the :mod:`bulletin.errors` exceptions, never a SQLAlchemy error.

Each public operation is its own scoped transaction on the wrapped session:
writes commit on success and roll back on *any* failure, including the
children removed by a cascading delete.  Reads flush pending changes first
so a caller always observes its own earlier writes.

Usage:
    repo = ArticleRepository(db)
    article = repo.save(Article.of("title", "content", "#tag"))
    repo.find_by_id(article.id)
    repo.delete(article)
"""

from __future__ import annotations

import math
from contextlib import contextmanager
from dataclasses import dataclass
from dataclasses import field
from typing import Any
from typing import ClassVar
from typing import Generic
from typing import Iterable
from typing import Iterator
from typing import List
from typing import Optional
from typing import Sequence
from typing import TypeVar

from sqlalchemy import String
from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session
from sqlalchemy.orm.interfaces import MANYTOONE
from sqlalchemy.orm.exc import StaleDataError

from bulletin.errors import CascadeFailure
from bulletin.errors import ConflictError
from bulletin.errors import NotFound
from bulletin.errors import RepositoryError
from bulletin.errors import StorageTimeout
from bulletin.errors import ValidationError
from bulletin.models.auditing import AuditingFields
from bulletin.utils.log import get_logger

log = get_logger(component="repository")

T = TypeVar("T")

# Columns owned by the auditing interceptor / optimistic locking, never by callers.
MANAGED_COLUMNS = frozenset({"created_at", "created_by", "modified_at", "modified_by", "version"})

_TIMEOUT_MARKERS = ("database is locked", "timeout", "timed out", "lock wait", "could not obtain lock")


# ---------------------------------------------------------------------------
# Paging
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PageRequest:
    """Zero-based page request with optional ``"field"`` / ``"field,desc"`` sort keys."""

    page: int = 0
    size: int = 20
    sort: Sequence[str] = field(default_factory=tuple)

    def __post_init__(self):
        if self.page < 0:
            raise ValidationError("Page index must not be negative")
        if self.size < 1:
            raise ValidationError("Page size must be at least one")

    @property
    def offset(self) -> int:
        return self.page * self.size


@dataclass
class Page(Generic[T]):
    content: List[T]
    number: int
    size: int
    total_elements: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_elements / self.size) if self.size else 0

    @property
    def has_next(self) -> bool:
        return self.number + 1 < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.number > 0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _is_timeout(exc: OperationalError) -> bool:
    message = str(exc.orig if exc.orig is not None else exc).lower()
    return any(marker in message for marker in _TIMEOUT_MARKERS)


def validate_columns(entity: Any) -> None:
    """Reject missing required values and over-long strings on *entity*.

    Primary keys, managed columns and foreign keys (usually filled from a
    relationship during flush) are left to the database constraints.
    """

    name = type(entity).__name__
    for column in entity.__table__.columns:
        if column.primary_key or column.name in MANAGED_COLUMNS or column.foreign_keys:
            continue
        value = getattr(entity, column.key)
        if value is None:
            if not column.nullable and column.default is None and column.server_default is None:
                raise ValidationError(f"{name}.{column.key} is required")
            continue
        if isinstance(column.type, String) and column.type.length and len(value) > column.type.length:
            raise ValidationError(f"{name}.{column.key} exceeds {column.type.length} characters")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class Repository(Generic[T]):
    """CRUD + count over one model class (set ``model`` on subclasses)."""

    model: ClassVar[type]

    def __init__(self, db: Session):
        self.db = db

    @property
    def entity_name(self) -> str:
        return self.model.__name__

    # ------------------------------------------------------------------
    # Transaction scope
    # ------------------------------------------------------------------

    @contextmanager
    def _transaction(self, entity_id: Any = None, *, cascade: bool = False) -> Iterator[None]:
        """Commit on success, roll back and translate on failure."""

        try:
            yield
            self.db.commit()
        except RepositoryError:
            self.db.rollback()
            raise
        except StaleDataError as exc:
            self.db.rollback()
            raise ConflictError(self.entity_name, entity_id, cause=exc) from exc
        except (PoolTimeoutError, OperationalError) as exc:
            self.db.rollback()
            if isinstance(exc, PoolTimeoutError) or _is_timeout(exc):
                raise StorageTimeout(f"Storage timed out while writing {self.entity_name}", exc) from exc
            if cascade:
                raise CascadeFailure(self.entity_name, entity_id, exc) from exc
            raise RepositoryError(f"Storage error while writing {self.entity_name}", exc) from exc
        except IntegrityError as exc:
            self.db.rollback()
            if cascade:
                raise CascadeFailure(self.entity_name, entity_id, exc) from exc
            raise ValidationError(f"{self.entity_name} violates a schema constraint", exc) from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            if cascade:
                raise CascadeFailure(self.entity_name, entity_id, exc) from exc
            raise RepositoryError(f"Storage error while writing {self.entity_name}", exc) from exc
        except Exception as exc:
            self.db.rollback()
            if cascade:
                raise CascadeFailure(self.entity_name, entity_id, exc) from exc
            raise

    @contextmanager
    def _reading(self) -> Iterator[None]:
        """Flush pending writes, then read; storage errors are translated."""

        try:
            self.db.flush()
            yield
        except (PoolTimeoutError, OperationalError) as exc:
            self.db.rollback()
            if isinstance(exc, PoolTimeoutError) or _is_timeout(exc):
                raise StorageTimeout(f"Storage timed out while reading {self.entity_name}", exc) from exc
            raise RepositoryError(f"Storage error while reading {self.entity_name}", exc) from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise RepositoryError(f"Storage error while reading {self.entity_name}", exc) from exc

    def _validate_pending(self) -> None:
        for obj in list(self.db.new) + list(self.db.dirty):
            if isinstance(obj, AuditingFields) and obj not in self.db.deleted:
                validate_columns(obj)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _query(self):
        return self.db.query(self.model)

    def _ordered(self, query, sort: Iterable[str]):
        columns = self.model.__table__.columns
        for key in sort:
            name, _, direction = key.partition(",")
            name = name.strip()
            direction = direction.strip().lower() or "asc"
            if name not in columns or direction not in {"asc", "desc"}:
                raise ValidationError(f"Cannot sort {self.entity_name} by {key!r}")
            column = getattr(self.model, name)
            query = query.order_by(column.desc() if direction == "desc" else column.asc())
        # Stable order for paging.
        return query.order_by(self.model.id.asc())

    def find_all(self, pageable: Optional[PageRequest] = None) -> List[T]:
        """Return every record, or one page of them when *pageable* is given."""

        with self._reading():
            query = self._ordered(self._query(), pageable.sort if pageable else ())
            if pageable is not None:
                query = query.offset(pageable.offset).limit(pageable.size)
            return query.all()

    def find_page(self, pageable: PageRequest) -> Page[T]:
        """Return one page plus the totals needed to navigate the rest."""

        with self._reading():
            total = self._query().count()
            query = self._ordered(self._query(), pageable.sort)
            content = query.offset(pageable.offset).limit(pageable.size).all()
        return Page(content=content, number=pageable.page, size=pageable.size, total_elements=total)

    def find_by_id(self, entity_id: Any) -> T:
        """Return the record with *entity_id* or raise :class:`NotFound`."""

        with self._reading():
            entity = self.db.get(self.model, entity_id)
        if entity is None:
            raise NotFound(self.entity_name, entity_id)
        return entity

    def find_all_by_id(self, ids: Iterable[Any]) -> List[T]:
        ids = list(ids)
        if not ids:
            return []
        with self._reading():
            return self._query().filter(self.model.id.in_(ids)).order_by(self.model.id).all()

    def exists_by_id(self, entity_id: Any) -> bool:
        with self._reading():
            return self.db.get(self.model, entity_id) is not None

    def count(self) -> int:
        with self._reading():
            return self._query().count()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _attach(self, entity: T, expected_version: Optional[int]) -> T:
        state = inspect(entity)
        if state.transient and entity.id is not None:
            # Detached copy built by the caller: update the stored row in place.
            current = self.db.get(self.model, entity.id)
            if current is None:
                raise NotFound(self.entity_name, entity.id)
            if entity.version is not None and entity.version != current.version:
                raise ConflictError(self.entity_name, entity.id, entity.version, current.version)
            for column in self.model.__table__.columns:
                if column.primary_key or column.name in MANAGED_COLUMNS:
                    continue
                setattr(current, column.key, getattr(entity, column.key))
            entity = current

        if expected_version is not None and entity.version != expected_version:
            raise ConflictError(self.entity_name, entity.id, expected_version, entity.version)

        self.db.add(entity)
        return entity

    def save(self, entity: T, *, expected_version: Optional[int] = None) -> T:
        """Insert *entity* when it has no id yet, otherwise update it.

        ``expected_version`` adds an explicit optimistic check on top of the
        one SQLAlchemy performs against the ``version`` column.
        """

        is_new = entity.id is None
        with self._transaction(entity.id):
            entity = self._attach(entity, expected_version)
            self._validate_pending()
            self.db.flush()

        log.info(
            "entity_saved",
            entity=self.entity_name,
            id=entity.id,
            created=is_new,
            version=entity.version,
            principal=entity.modified_by,
        )
        return entity

    def save_and_flush(self, entity: T, *, expected_version: Optional[int] = None) -> T:
        """Same as :meth:`save`; every save is already flushed and committed."""
        return self.save(entity, expected_version=expected_version)

    def save_all(self, entities: Iterable[T]) -> List[T]:
        """Save several entities in one transaction; all or none are written."""

        saved: List[T] = []
        with self._transaction():
            for entity in entities:
                saved.append(self._attach(entity, None))
            self._validate_pending()
            self.db.flush()
        log.info("entities_saved", entity=self.entity_name, count=len(saved))
        return saved

    def _owning_collections(self, entity: T) -> List[tuple]:
        """(parent, attribute) pairs whose loaded collection contains *entity*."""

        owners = []
        for relationship in inspect(self.model).relationships:
            if relationship.direction is not MANYTOONE or not relationship.back_populates:
                continue
            parent = getattr(entity, relationship.key)
            if parent is not None and relationship.back_populates in inspect(parent).dict:
                owners.append((parent, relationship.back_populates))
        return owners

    def delete(self, entity: T) -> None:
        """Delete *entity* together with every dependent record it owns."""

        entity_id = entity.id
        if entity_id is None or inspect(entity).transient:
            raise NotFound(self.entity_name, entity_id)

        with self._transaction(entity_id, cascade=True):
            owners = self._owning_collections(entity)
            self.db.delete(entity)
            self.db.flush()

        # The loaded parent collections still hold the deleted row.
        for parent, key in owners:
            self.db.expire(parent, [key])

        log.info("entity_deleted", entity=self.entity_name, id=entity_id)

    def delete_by_id(self, entity_id: Any) -> None:
        self.delete(self.find_by_id(entity_id))
