from bulletin.repositories.articles import ArticleCommentRepository
from bulletin.repositories.articles import ArticleRepository
from bulletin.repositories.base import Page
from bulletin.repositories.base import PageRequest
from bulletin.repositories.base import Repository

__all__ = [
    "ArticleCommentRepository",
    "ArticleRepository",
    "Page",
    "PageRequest",
    "Repository",
]
