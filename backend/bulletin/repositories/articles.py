"""Repositories for articles and their comments."""

from typing import List

from bulletin.models.models import Article
from bulletin.models.models import ArticleComment
from bulletin.repositories.base import Repository


class ArticleRepository(Repository[Article]):
    model = Article

    def find_by_hashtag(self, hashtag: str) -> List[Article]:
        """Return articles tagged exactly *hashtag*, oldest first."""
        with self._reading():
            return self._query().filter(Article.hashtag == hashtag).order_by(Article.id).all()


class ArticleCommentRepository(Repository[ArticleComment]):
    model = ArticleComment

    def find_by_article_id(self, article_id: int) -> List[ArticleComment]:
        with self._reading():
            return self._query().filter(ArticleComment.article_id == article_id).order_by(ArticleComment.id).all()

    def count_by_article_id(self, article_id: int) -> int:
        with self._reading():
            return self._query().filter(ArticleComment.article_id == article_id).count()
