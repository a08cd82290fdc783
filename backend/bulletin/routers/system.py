"""System endpoints: API index and health probe."""

import logging
from typing import Any
from typing import Dict

from fastapi import APIRouter
from fastapi import Depends
from fastapi import Request
from fastapi import status
from sqlalchemy.orm import Session

from bulletin.constants import ARTICLE_COMMENTS_PREFIX
from bulletin.constants import ARTICLE_COMMENTS_REL
from bulletin.constants import ARTICLES_PREFIX
from bulletin.constants import ARTICLES_REL
from bulletin.constants import SYSTEM_PREFIX
from bulletin.database import get_db
from bulletin.errors import RepositoryError
from bulletin.repositories.articles import ArticleCommentRepository
from bulletin.repositories.articles import ArticleRepository
from bulletin.rest.hal import HalJSONResponse
from bulletin.rest.hal import api_href
from bulletin.rest.hal import link

logger = logging.getLogger(__name__)

router = APIRouter(tags=["system"])


@router.get("", response_class=HalJSONResponse)
def api_index(request: Request):
    """List the exposed resources, like a HAL browser entry point."""

    return HalJSONResponse(
        {
            "_links": {
                ARTICLES_REL: link(api_href(request, ARTICLES_PREFIX)),
                ARTICLE_COMMENTS_REL: link(api_href(request, ARTICLE_COMMENTS_PREFIX)),
                "health": link(api_href(request, f"{SYSTEM_PREFIX}/health")),
            }
        }
    )


@router.get(f"{SYSTEM_PREFIX}/health", status_code=status.HTTP_200_OK)
def health(db: Session = Depends(get_db)) -> Dict[str, Any]:
    """Readiness probe with row counts; reports ``degraded`` when storage fails."""

    try:
        articles = ArticleRepository(db).count()
        article_comments = ArticleCommentRepository(db).count()
    except RepositoryError as exc:
        logger.warning(f"Health check failed: {exc}")
        return {"status": "degraded", "database": "error", "articles": None, "article_comments": None}

    return {"status": "ok", "database": "ok", "articles": articles, "article_comments": article_comments}
