"""
Router for article comment endpoints.
"""

from fastapi import Depends
from fastapi import Request
from sqlalchemy.orm import Session

from bulletin.database import get_db
from bulletin.repositories.articles import ArticleCommentRepository
from bulletin.rest.hal import HalJSONResponse
from bulletin.rest.resource import etag
from bulletin.rest.resource import repository_rest_router
from bulletin.rest.resources import article_comment_resource
from bulletin.rest.resources import article_resource

router = repository_rest_router(article_comment_resource)


@router.get("/{comment_id}/article", response_class=HalJSONResponse)
def read_comment_article(comment_id: int, request: Request, db: Session = Depends(get_db)):
    """Get the article a comment belongs to"""
    comment = ArticleCommentRepository(db).find_by_id(comment_id)
    return HalJSONResponse(article_resource.to_document(request, comment.article), headers={"ETag": etag(comment.article)})
