"""Repository slice tests: select / insert / update / delete against a real session."""

from typing import List

import pytest
from sqlalchemy.orm import Session

from bulletin.errors import NotFound
from bulletin.errors import ValidationError
from bulletin.models.models import Article
from bulletin.models.models import ArticleComment
from bulletin.repositories.articles import ArticleCommentRepository
from bulletin.repositories.articles import ArticleRepository
from bulletin.repositories.base import PageRequest


def test_select(db_session: Session, sample_articles: List[Article]):
    """find_all returns every seeded article"""
    articles = ArticleRepository(db_session).find_all()

    assert articles is not None
    assert len(articles) == 5
    assert [a.id for a in articles] == sorted(a.id for a in sample_articles)


def test_insert(db_session: Session, acting_principal):
    """Saving a new article adds exactly one row, stamped by the acting principal"""
    repo = ArticleRepository(db_session)
    prev_count = repo.count()
    assert prev_count == 0

    article = repo.save(Article.of("제목", "내용", "해시태그"))

    assert repo.count() == prev_count + 1
    assert article.id is not None
    assert article.title == "제목"
    assert article.content == "내용"
    assert article.hashtag == "해시태그"
    assert article.created_by == acting_principal
    assert article.modified_by == acting_principal
    assert article.created_at == article.modified_at
    assert article.version == 1


def test_update(db_session: Session, sample_articles: List[Article]):
    """Changing the hashtag of article 1 persists and re-stamps modified_at"""
    repo = ArticleRepository(db_session)
    article = repo.find_by_id(1)
    created_at = article.created_at
    modified_at = article.modified_at
    version = article.version

    update_hashtag = "#abcd"
    article.hashtag = update_hashtag
    saved = repo.save_and_flush(article)

    assert saved.hashtag == update_hashtag
    reloaded = repo.find_by_id(1)
    assert reloaded.hashtag == update_hashtag
    assert reloaded.created_at == created_at
    assert reloaded.modified_at > modified_at
    assert reloaded.modified_by == "tester"
    assert reloaded.created_by == "seed"
    assert reloaded.version == version + 1


def test_delete_cascades_to_comments(db_session: Session, sample_articles: List[Article]):
    """Deleting article 1 removes it and its three comments in one operation"""
    articles = ArticleRepository(db_session)
    comments = ArticleCommentRepository(db_session)

    article = articles.find_by_id(1)
    prev_article_count = articles.count()
    prev_comment_count = comments.count()
    deleted_comment_size = len(article.article_comments)
    assert deleted_comment_size == 3

    articles.delete(article)

    assert articles.count() == prev_article_count - 1
    assert comments.count() == prev_comment_count - deleted_comment_size
    assert comments.count_by_article_id(1) == 0
    assert not articles.exists_by_id(1)


def test_delete_by_id(db_session: Session, sample_articles: List[Article]):
    articles = ArticleRepository(db_session)

    articles.delete_by_id(2)

    assert articles.count() == 4
    with pytest.raises(NotFound):
        articles.delete_by_id(2)


def test_delete_unsaved_article_is_not_found(db_session: Session):
    with pytest.raises(NotFound):
        ArticleRepository(db_session).delete(Article.of("never", "saved"))


def test_find_by_id_missing_raises(db_session: Session, sample_articles: List[Article]):
    with pytest.raises(NotFound) as exc_info:
        ArticleRepository(db_session).find_by_id(999)

    assert exc_info.value.entity_name == "Article"
    assert exc_info.value.entity_id == 999


def test_find_all_paging_and_sort(db_session: Session, sample_articles: List[Article]):
    repo = ArticleRepository(db_session)

    first = repo.find_all(PageRequest(page=0, size=2))
    second = repo.find_all(PageRequest(page=1, size=2))
    last = repo.find_all(PageRequest(page=2, size=2))
    assert [a.id for a in first] == [1, 2]
    assert [a.id for a in second] == [3, 4]
    assert [a.id for a in last] == [5]

    newest_first = repo.find_all(PageRequest(page=0, size=5, sort=("id,desc",)))
    assert [a.id for a in newest_first] == [5, 4, 3, 2, 1]


def test_find_page_totals(db_session: Session, sample_articles: List[Article]):
    page = ArticleRepository(db_session).find_page(PageRequest(page=1, size=2))

    assert page.total_elements == 5
    assert page.total_pages == 3
    assert page.has_previous
    assert page.has_next
    assert [a.id for a in page.content] == [3, 4]


def test_sort_by_unknown_field_is_rejected(db_session: Session, sample_articles: List[Article]):
    with pytest.raises(ValidationError):
        ArticleRepository(db_session).find_all(PageRequest(sort=("nope",)))


def test_invalid_page_request():
    with pytest.raises(ValidationError):
        PageRequest(page=-1)
    with pytest.raises(ValidationError):
        PageRequest(size=0)


def test_find_all_observes_pending_writes(db_session: Session, sample_articles: List[Article]):
    """Reads flush first, so unsaved changes in the same session are visible"""
    repo = ArticleRepository(db_session)
    db_session.add(Article.of("pending", "not saved through the repository"))

    assert repo.count() == 6
    assert [a.title for a in repo.find_by_hashtag("#abcd")] == []

    article = repo.find_by_id(3)
    article.hashtag = "#abcd"
    assert [a.id for a in repo.find_by_hashtag("#abcd")] == [3]


def test_find_all_by_id_and_exists(db_session: Session, sample_articles: List[Article]):
    repo = ArticleRepository(db_session)

    assert [a.id for a in repo.find_all_by_id([4, 2, 42])] == [2, 4]
    assert repo.find_all_by_id([]) == []
    assert repo.exists_by_id(1)
    assert not repo.exists_by_id(42)


def test_save_detached_copy_updates_stored_row(db_session: Session, sample_articles: List[Article]):
    repo = ArticleRepository(db_session)
    stored = repo.find_by_id(2)

    copy = Article(id=2, title="Replaced", content=stored.content, hashtag=None, version=stored.version)
    saved = repo.save(copy)

    assert saved is stored
    assert stored.title == "Replaced"
    assert stored.hashtag is None
    assert stored.version == 2


def test_save_detached_copy_of_missing_row(db_session: Session):
    with pytest.raises(NotFound):
        ArticleRepository(db_session).save(Article(id=77, title="t", content="c"))


def test_save_all_is_atomic(db_session: Session):
    repo = ArticleRepository(db_session)

    with pytest.raises(ValidationError):
        repo.save_all([Article.of("ok", "fine"), Article.of(None, "missing title")])

    assert repo.count() == 0


def test_comment_repository_by_article(db_session: Session, sample_articles: List[Article]):
    comments = ArticleCommentRepository(db_session)

    by_article = comments.find_by_article_id(2)
    assert len(by_article) == 3
    assert all(c.article_id == 2 for c in by_article)
    assert comments.count_by_article_id(2) == 3

    new_comment = comments.save(ArticleComment.of(by_article[0].article, "one more"))
    assert new_comment.article_id == 2
    assert comments.count_by_article_id(2) == 4
    assert comments.count() == 16


def test_deleting_a_comment_keeps_the_article(db_session: Session, sample_articles: List[Article]):
    comments = ArticleCommentRepository(db_session)
    comment = comments.find_by_article_id(1)[0]

    comments.delete(comment)

    assert comments.count_by_article_id(1) == 2
    assert ArticleRepository(db_session).exists_by_id(1)


def test_delete_comment_then_article_in_one_session(db_session: Session, sample_articles: List[Article]):
    articles = ArticleRepository(db_session)
    comments = ArticleCommentRepository(db_session)
    article = articles.find_by_id(1)
    assert len(article.article_comments) == 3

    comments.delete(article.article_comments[0])

    assert len(article.article_comments) == 2
    assert comments.count() == 14

    articles.delete(article)

    assert articles.count() == 4
    assert comments.count() == 12
    assert comments.count_by_article_id(1) == 0
