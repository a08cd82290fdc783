"""
Router for article endpoints.

The CRUD surface is generated from the article repository; this module only
adds the association listing an article's comments.
"""

import logging

from fastapi import Depends
from fastapi import Request
from sqlalchemy.orm import Session

from bulletin.constants import ARTICLE_COMMENTS_REL
from bulletin.database import get_db
from bulletin.repositories.articles import ArticleCommentRepository
from bulletin.repositories.articles import ArticleRepository
from bulletin.rest.hal import HalJSONResponse
from bulletin.rest.hal import api_href
from bulletin.rest.hal import collection_document
from bulletin.rest.resource import repository_rest_router
from bulletin.rest.resources import article_comment_resource
from bulletin.rest.resources import article_comments_path
from bulletin.rest.resources import article_resource

logger = logging.getLogger(__name__)

router = repository_rest_router(article_resource)


@router.get("/{article_id}/article-comments", response_class=HalJSONResponse)
def read_article_comments(article_id: int, request: Request, db: Session = Depends(get_db)):
    """Get all comments of an article"""
    # 404 for a missing article rather than an empty list
    ArticleRepository(db).find_by_id(article_id)

    comments = ArticleCommentRepository(db).find_by_article_id(article_id)
    items = [article_comment_resource.to_document(request, comment) for comment in comments]
    return HalJSONResponse(
        collection_document(ARTICLE_COMMENTS_REL, items, api_href(request, article_comments_path(article_id)))
    )
