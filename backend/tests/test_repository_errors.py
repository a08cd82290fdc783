"""Failure paths: every failed operation rolls back and surfaces a typed error."""

import sqlite3
from typing import List

import pytest
from sqlalchemy import event
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from bulletin.errors import CascadeFailure
from bulletin.errors import ConflictError
from bulletin.errors import RepositoryError
from bulletin.errors import StorageTimeout
from bulletin.errors import ValidationError
from bulletin.models.models import Article
from bulletin.models.models import ArticleComment
from bulletin.repositories.articles import ArticleCommentRepository
from bulletin.repositories.articles import ArticleRepository


def _bump_version_behind_orm(db: Session, article_id: int) -> None:
    """Simulate another writer committing an update to the same row."""
    db.connection().execute(text("UPDATE articles SET version = version + 1 WHERE id = :id"), {"id": article_id})
    db.commit()


def test_required_field_missing(db_session: Session):
    repo = ArticleRepository(db_session)

    with pytest.raises(ValidationError, match="title is required"):
        repo.save(Article(content="no title"))

    assert repo.count() == 0


def test_over_long_field(db_session: Session):
    repo = ArticleRepository(db_session)

    with pytest.raises(ValidationError, match="hashtag exceeds 255"):
        repo.save(Article.of("title", "content", "#" * 300))

    assert repo.count() == 0


def test_comment_without_article_violates_constraint(db_session: Session):
    repo = ArticleCommentRepository(db_session)

    with pytest.raises(ValidationError):
        repo.save(ArticleComment(content="orphan"))

    assert repo.count() == 0


def test_comment_for_missing_article_violates_foreign_key(db_session: Session):
    repo = ArticleCommentRepository(db_session)

    with pytest.raises(ValidationError):
        repo.save(ArticleComment(article_id=404, content="dangling"))

    assert repo.count() == 0


def test_expected_version_mismatch(db_session: Session, sample_article: Article):
    repo = ArticleRepository(db_session)

    sample_article.title = "lost update"
    with pytest.raises(ConflictError) as exc_info:
        repo.save(sample_article, expected_version=sample_article.version + 1)

    assert exc_info.value.expected == 2
    assert exc_info.value.actual == 1
    assert repo.find_by_id(sample_article.id).title == "Test Article"


def test_concurrent_update_is_detected(db_session: Session, sample_article: Article):
    repo = ArticleRepository(db_session)
    _bump_version_behind_orm(db_session, sample_article.id)

    # expire_on_commit=False: the in-memory row still carries version 1
    sample_article.title = "stale write"
    with pytest.raises(ConflictError):
        repo.save(sample_article)

    stored = repo.find_by_id(sample_article.id)
    assert stored.title == "Test Article"
    assert stored.version == 2


def test_detached_copy_with_stale_version(db_session: Session, sample_article: Article):
    repo = ArticleRepository(db_session)

    copy = Article(id=sample_article.id, title="t", content="c", version=sample_article.version + 5)
    with pytest.raises(ConflictError):
        repo.save(copy)


def test_concurrent_delete_is_detected(db_session: Session, sample_article: Article):
    repo = ArticleRepository(db_session)
    _bump_version_behind_orm(db_session, sample_article.id)

    with pytest.raises(ConflictError):
        repo.delete(sample_article)

    assert repo.exists_by_id(sample_article.id)


@pytest.fixture
def failing_comment_delete():
    """Make the ORM fail after the first comment row has been deleted."""

    calls = []

    def _fail(_mapper, _connection, target):
        calls.append(target.id)
        if len(calls) == 2:
            raise RuntimeError("disk went away")

    event.listen(ArticleComment, "after_delete", _fail)
    try:
        yield calls
    finally:
        event.remove(ArticleComment, "after_delete", _fail)


def test_cascade_failure_rolls_back_parent_and_children(
    db_session: Session, sample_articles: List[Article], failing_comment_delete
):
    articles = ArticleRepository(db_session)
    comments = ArticleCommentRepository(db_session)
    article = articles.find_by_id(1)

    with pytest.raises(CascadeFailure) as exc_info:
        articles.delete(article)

    assert exc_info.value.entity_id == 1
    assert isinstance(exc_info.value.cause, RuntimeError)
    assert len(failing_comment_delete) == 2

    # Nothing observable changed
    assert articles.count() == 5
    assert comments.count() == 15
    assert comments.count_by_article_id(1) == 3


def test_lock_timeout_surfaces_as_storage_timeout(db_session: Session, monkeypatch):
    def _locked(*_args, **_kwargs):
        raise OperationalError("INSERT INTO articles", {}, sqlite3.OperationalError("database is locked"))

    monkeypatch.setattr(db_session, "flush", _locked)

    with pytest.raises(StorageTimeout):
        ArticleRepository(db_session).save(Article.of("title", "content"))


def test_other_storage_errors_are_wrapped(db_session: Session, monkeypatch):
    def _broken(*_args, **_kwargs):
        raise OperationalError("SELECT", {}, sqlite3.OperationalError("disk I/O error"))

    monkeypatch.setattr(db_session, "flush", _broken)

    with pytest.raises(RepositoryError) as exc_info:
        ArticleRepository(db_session).count()

    assert not isinstance(exc_info.value, StorageTimeout)
