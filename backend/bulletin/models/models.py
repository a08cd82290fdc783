from sqlalchemy import Column
from sqlalchemy import ForeignKey
from sqlalchemy import Integer
from sqlalchemy import String
from sqlalchemy.orm import relationship

from bulletin.database import Base
from bulletin.models.auditing import AuditingFields

# ---------------------------------------------------------------------------
# Articles
# ---------------------------------------------------------------------------

TITLE_MAX_LENGTH = 255
ARTICLE_CONTENT_MAX_LENGTH = 10000
HASHTAG_MAX_LENGTH = 255
COMMENT_CONTENT_MAX_LENGTH = 500


class Article(AuditingFields, Base):
    """A board post.

    Comments belong to exactly one article and never outlive it: deleting
    the article deletes them in the same flush (ORM cascade) and the FK
    carries ``ON DELETE CASCADE`` for deletes issued outside the ORM.
    """

    __tablename__ = "articles"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(TITLE_MAX_LENGTH), nullable=False)
    content = Column(String(ARTICLE_CONTENT_MAX_LENGTH), nullable=False)
    hashtag = Column(String(HASHTAG_MAX_LENGTH), nullable=True, index=True)

    # Optimistic locking – bumped by SQLAlchemy on every UPDATE.
    version = Column(Integer, nullable=False)

    article_comments = relationship(
        "ArticleComment",
        back_populates="article",
        cascade="all, delete-orphan",
        order_by="ArticleComment.id",
        passive_deletes=False,
    )

    __mapper_args__ = {"version_id_col": version}

    @classmethod
    def of(cls, title: str, content: str, hashtag: str | None = None) -> "Article":
        """Build an unsaved article."""
        return cls(title=title, content=content, hashtag=hashtag)

    def __repr__(self) -> str:
        return f"Article(id={self.id!r}, title={self.title!r}, hashtag={self.hashtag!r}, {self.audit_repr()})"


class ArticleComment(AuditingFields, Base):
    __tablename__ = "article_comments"

    id = Column(Integer, primary_key=True, index=True)
    article_id = Column(Integer, ForeignKey("articles.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(String(COMMENT_CONTENT_MAX_LENGTH), nullable=False)

    version = Column(Integer, nullable=False)

    article = relationship("Article", back_populates="article_comments")

    __mapper_args__ = {"version_id_col": version}

    @classmethod
    def of(cls, article: Article, content: str) -> "ArticleComment":
        """Build an unsaved comment attached to *article*."""
        return cls(article=article, content=content)

    def __repr__(self) -> str:
        return f"ArticleComment(id={self.id!r}, article_id={self.article_id!r}, {self.audit_repr()})"
