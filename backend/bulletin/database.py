import logging
from contextlib import contextmanager
from typing import Any
from typing import Iterator

from sqlalchemy import Engine
from sqlalchemy import create_engine
from sqlalchemy import event
from sqlalchemy.orm import Session
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import sessionmaker

from bulletin.auditing.interceptor import install_auditing
from bulletin.config import get_settings

logger = logging.getLogger(__name__)

_settings = get_settings()

# Create Base class
Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record):  # noqa: D401 – event hook
    """Turn on FK enforcement so ``ON DELETE CASCADE`` is honoured by SQLite."""

    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def make_engine(db_url: str, **kwargs) -> Engine:
    """Create a SQLAlchemy engine with the given URL and options.

    Args:
        db_url: Database connection URL
        **kwargs: Additional arguments for create_engine

    Returns:
        A SQLAlchemy Engine instance
    """
    connect_args = kwargs.pop("connect_args", {})
    if "sqlite" in db_url:
        if "check_same_thread" not in connect_args:
            connect_args["check_same_thread"] = False
        # Busy timeout – a locked database raises OperationalError instead of
        # blocking forever.
        connect_args.setdefault("timeout", _settings.db_timeout_seconds)
    else:
        kwargs.setdefault("pool_timeout", _settings.db_timeout_seconds)
        kwargs.setdefault("pool_pre_ping", True)

    engine = create_engine(db_url, connect_args=connect_args, **kwargs)

    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)

    return engine


def make_sessionmaker(engine: Engine) -> sessionmaker:
    """Create a sessionmaker bound to the given engine.

    Every session it produces stamps audit fields on flush.

    Args:
        engine: SQLAlchemy Engine instance

    Returns:
        A sessionmaker class
    """
    # Entities stay readable after the repository commits.
    factory = sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )
    install_auditing(factory)
    return factory


# Default engine and sessionmaker instances for app usage.  Tests overwrite
# these via ``bulletin.database.default_session_factory = …``.

default_engine = make_engine(_settings.resolved_database_url)
default_session_factory = make_sessionmaker(default_engine)


def get_session_factory() -> sessionmaker:
    """Return the session factory currently in effect for the application."""

    return default_session_factory


def get_db() -> Iterator[Session]:
    """Dependency provider for database sessions.

    Yields:
        SQLAlchemy Session object
    """
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def db_session(session_factory: Any = None):
    """Database session context manager for scripts and background work.

    1. Auto-commit on success
    2. Auto-rollback on error
    3. Always close session

    Usage:
        with db_session() as db:
            ArticleRepository(db).save(article)

    Args:
        session_factory: Optional custom session factory

    Yields:
        SQLAlchemy Session object with automatic lifecycle management
    """
    factory = session_factory or get_session_factory()
    session = factory()

    try:
        yield session
        session.commit()
        logger.debug("Database session committed successfully")

    except Exception as e:
        session.rollback()
        logger.error(f"Database session rolled back due to error: {e}")
        raise

    finally:
        session.close()
        logger.debug("Database session closed")


def initialize_database(engine: Engine = None) -> None:
    """Initialize database tables using the given engine.

    If no engine is provided, uses the default engine.

    Args:
        engine: Optional engine to use, defaults to default_engine
    """
    # Import models so they are registered with Base
    from bulletin.models.models import Article  # noqa: F401
    from bulletin.models.models import ArticleComment  # noqa: F401

    target_engine = engine or default_engine
    Base.metadata.create_all(bind=target_engine)
    logger.info("Database tables ensured: %s", sorted(Base.metadata.tables))
