"""REST descriptions of the article and comment repositories."""

from sqlalchemy.orm import Session

from bulletin.constants import ARTICLE_COMMENTS_PREFIX
from bulletin.constants import ARTICLE_COMMENTS_REL
from bulletin.constants import ARTICLES_PREFIX
from bulletin.constants import ARTICLES_REL
from bulletin.errors import NotFound
from bulletin.errors import ValidationError
from bulletin.models.models import Article
from bulletin.models.models import ArticleComment
from bulletin.repositories.articles import ArticleCommentRepository
from bulletin.repositories.articles import ArticleRepository
from bulletin.rest.resource import RestResource
from bulletin.schemas.schemas import ArticleCommentCreate
from bulletin.schemas.schemas import ArticleCommentOut
from bulletin.schemas.schemas import ArticleCommentPatch
from bulletin.schemas.schemas import ArticleCommentUpdate
from bulletin.schemas.schemas import ArticleCreate
from bulletin.schemas.schemas import ArticleOut
from bulletin.schemas.schemas import ArticlePatch
from bulletin.schemas.schemas import ArticleUpdate


def _build_article(_db: Session, payload: ArticleCreate) -> Article:
    return Article.of(payload.title, payload.content, payload.hashtag)


def _build_article_comment(db: Session, payload: ArticleCommentCreate) -> ArticleComment:
    try:
        article = ArticleRepository(db).find_by_id(payload.article_id)
    except NotFound as exc:
        raise ValidationError(f"Article {payload.article_id} does not exist") from exc
    return ArticleComment.of(article, payload.content)


def article_comments_path(article_id: int) -> str:
    return f"{ARTICLES_PREFIX}/{article_id}{ARTICLE_COMMENTS_PREFIX}"


article_resource = RestResource(
    rel=ARTICLES_REL,
    item_rel="article",
    path=ARTICLES_PREFIX,
    repository=ArticleRepository,
    out_schema=ArticleOut,
    create_schema=ArticleCreate,
    update_schema=ArticleUpdate,
    patch_schema=ArticlePatch,
    build=_build_article,
    links=lambda article: {ARTICLE_COMMENTS_REL: article_comments_path(article.id)},
)

article_comment_resource = RestResource(
    rel=ARTICLE_COMMENTS_REL,
    item_rel="article_comment",
    path=ARTICLE_COMMENTS_PREFIX,
    repository=ArticleCommentRepository,
    out_schema=ArticleCommentOut,
    create_schema=ArticleCommentCreate,
    update_schema=ArticleCommentUpdate,
    patch_schema=ArticleCommentPatch,
    build=_build_article_comment,
    links=lambda comment: {"article": f"{ARTICLE_COMMENTS_PREFIX}/{comment.id}/article"},
)
