from datetime import datetime
from typing import Optional

from pydantic import BaseModel
from pydantic import Field

from bulletin.models.models import ARTICLE_CONTENT_MAX_LENGTH
from bulletin.models.models import COMMENT_CONTENT_MAX_LENGTH
from bulletin.models.models import HASHTAG_MAX_LENGTH
from bulletin.models.models import TITLE_MAX_LENGTH


# Audit metadata – read-only, filled in by the auditing interceptor
class AuditFieldsOut(BaseModel):
    created_at: datetime
    created_by: str
    modified_at: datetime
    modified_by: str


# Article schemas
class ArticleBase(BaseModel):
    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    content: str = Field(min_length=1, max_length=ARTICLE_CONTENT_MAX_LENGTH)
    hashtag: Optional[str] = Field(default=None, max_length=HASHTAG_MAX_LENGTH)


class ArticleCreate(ArticleBase):
    pass


class ArticleUpdate(ArticleBase):
    """Full replacement (PUT).  ``version`` enables the optimistic check."""

    version: Optional[int] = None


class ArticlePatch(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=TITLE_MAX_LENGTH)
    content: Optional[str] = Field(default=None, min_length=1, max_length=ARTICLE_CONTENT_MAX_LENGTH)
    hashtag: Optional[str] = Field(default=None, max_length=HASHTAG_MAX_LENGTH)
    version: Optional[int] = None


class ArticleOut(AuditFieldsOut):
    id: int
    title: str
    content: str
    hashtag: Optional[str] = None
    version: int

    class Config:
        from_attributes = True


# Article comment schemas
class ArticleCommentCreate(BaseModel):
    article_id: int
    content: str = Field(min_length=1, max_length=COMMENT_CONTENT_MAX_LENGTH)


class ArticleCommentUpdate(BaseModel):
    content: str = Field(min_length=1, max_length=COMMENT_CONTENT_MAX_LENGTH)
    version: Optional[int] = None


class ArticleCommentPatch(BaseModel):
    content: Optional[str] = Field(default=None, min_length=1, max_length=COMMENT_CONTENT_MAX_LENGTH)
    version: Optional[int] = None


class ArticleCommentOut(AuditFieldsOut):
    id: int
    article_id: int
    content: str
    version: int

    class Config:
        from_attributes = True
