import os

# Must be set before bulletin modules read their settings.
os.environ.setdefault("TESTING", "1")
os.environ.setdefault("NODE_ENV", "test")

from datetime import datetime  # noqa: E402
from datetime import timedelta  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import bulletin.database as _db_mod  # noqa: E402
from bulletin.auditing.context import reset_principal  # noqa: E402
from bulletin.auditing.context import set_principal  # noqa: E402
from bulletin.auditing.interceptor import CLOCK_KEY  # noqa: E402
from bulletin.database import Base  # noqa: E402
from bulletin.database import get_db  # noqa: E402
from bulletin.database import make_engine  # noqa: E402
from bulletin.database import make_sessionmaker  # noqa: E402
from bulletin.models.models import Article  # noqa: E402
from bulletin.models.models import ArticleComment  # noqa: E402,F401
from bulletin.seed import seed_sample_data  # noqa: E402

TEST_PRINCIPAL = "tester"

# Create a test database - using in-memory SQLite for tests
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

test_engine = make_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,  # Use StaticPool for in-memory database
)

TestingSessionLocal = make_sessionmaker(test_engine)

# Anything that asks the database module for a session gets the test one
_db_mod.default_session_factory = TestingSessionLocal

# Import app after engine setup is in place
from bulletin.main import app  # noqa: E402


class FakeClock:
    """Deterministic clock; each call returns the current reading."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 9, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def db_session():
    """
    Creates a fresh database for each test, then tears it down after the test is done.
    """
    Base.metadata.create_all(bind=test_engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(autouse=True)
def acting_principal():
    """Attribute writes made directly from a test to ``TEST_PRINCIPAL``."""
    token = set_principal(TEST_PRINCIPAL)
    try:
        yield TEST_PRINCIPAL
    finally:
        reset_principal(token)


@pytest.fixture
def no_principal(monkeypatch):
    """Run the test with neither a context principal nor a configured default."""
    monkeypatch.delenv("AUDIT_DEFAULT_PRINCIPAL", raising=False)
    token = set_principal(None)
    try:
        yield
    finally:
        reset_principal(token)


@pytest.fixture
def fake_clock(db_session):
    """Pin the auditing clock of ``db_session``."""
    clock = FakeClock()
    db_session.info[CLOCK_KEY] = clock
    return clock


@pytest.fixture
def sample_articles(db_session):
    """
    Five articles with three comments each, written by the ``seed`` principal.
    """
    return seed_sample_data(db_session, articles=5, comments_per_article=3)


@pytest.fixture
def sample_article(db_session):
    """
    A single article without comments
    """
    article = Article.of("Test Article", "Content of the test article", "#test")
    db_session.add(article)
    db_session.commit()
    db_session.refresh(article)
    return article


@pytest.fixture
def client(db_session):
    """
    Create a FastAPI TestClient with the test database dependency.

    Requests carry ``X-Acting-Principal: tester`` unless a test overrides it.
    """

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    client = TestClient(app, headers={"X-Acting-Principal": TEST_PRINCIPAL})
    yield client

    app.dependency_overrides = {}
