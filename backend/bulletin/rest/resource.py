"""Generate CRUD endpoints from a repository description.

:func:`repository_rest_router` turns a :class:`RestResource` into an
``APIRouter`` exposing the collection and item endpoints of one entity kind.
Each endpoint is a thin translation of an HTTP verb into repository calls;
errors bubble up as :mod:`bulletin.errors` exceptions and are mapped to
status codes by :mod:`bulletin.rest.handlers`.

    GET    /{rel}        find_page
    POST   /{rel}        save (insert)
    GET    /{rel}/{id}   find_by_id
    PUT    /{rel}/{id}   find_by_id + save (full replace)
    PATCH  /{rel}/{id}   find_by_id + save (partial)
    DELETE /{rel}/{id}   find_by_id + delete

Writes honour ``If-Match: "<version>"`` (or a ``version`` body field) as an
optimistic concurrency check; item responses carry the matching ``ETag``.
"""

import logging
from dataclasses import dataclass
from dataclasses import field
from typing import Any
from typing import Callable
from typing import Dict
from typing import List
from typing import Optional
from typing import Type

from fastapi import APIRouter
from fastapi import Depends
from fastapi import Header
from fastapi import Query
from fastapi import Request
from fastapi import Response
from fastapi import status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from bulletin.config import get_settings
from bulletin.database import get_db
from bulletin.errors import ConflictError
from bulletin.errors import ValidationError
from bulletin.repositories.base import PageRequest
from bulletin.repositories.base import Repository
from bulletin.rest.hal import HalJSONResponse
from bulletin.rest.hal import api_href
from bulletin.rest.hal import collection_document
from bulletin.rest.hal import item_document

logger = logging.getLogger(__name__)

_settings = get_settings()


def _no_links(_entity: Any) -> Dict[str, str]:
    return {}


@dataclass
class RestResource:
    """Everything needed to expose one repository over HTTP."""

    rel: str  # collection rel, e.g. "articles"
    item_rel: str  # item rel, e.g. "article"
    path: str  # API-relative collection path, e.g. "/articles"
    repository: Callable[[Session], Repository]
    out_schema: Type[BaseModel]
    create_schema: Type[BaseModel]
    update_schema: Type[BaseModel]
    patch_schema: Type[BaseModel]
    # Builds an unsaved entity from a validated create payload.
    build: Callable[[Session, BaseModel], Any]
    # Extra item links: rel -> API-relative path.
    links: Callable[[Any], Dict[str, str]] = field(default=_no_links)

    def item_path(self, entity_id: Any) -> str:
        return f"{self.path}/{entity_id}"

    def to_document(self, request: Request, entity: Any) -> Dict[str, Any]:
        payload = self.out_schema.model_validate(entity).model_dump(mode="json")
        self_href = api_href(request, self.item_path(entity.id))
        links = {self.item_rel: self_href}
        links.update({rel: api_href(request, path) for rel, path in self.links(entity).items()})
        return item_document(payload, self_href, **links)


def etag(entity: Any) -> str:
    return f'"{entity.version}"'


def expected_version(if_match: Optional[str], body_version: Optional[int]) -> Optional[int]:
    """Version the client last saw: ``If-Match`` wins over the body field."""

    if if_match is None or not if_match.strip():
        return body_version
    raw = if_match.strip()
    if raw.startswith("W/"):
        raw = raw[2:]
    raw = raw.strip('"')
    try:
        return int(raw)
    except ValueError as exc:
        raise ValidationError(f"Malformed If-Match header: {if_match!r}") from exc


def _apply(entity: Any, data: Dict[str, Any]) -> None:
    for key, value in data.items():
        setattr(entity, key, value)


def repository_rest_router(resource: RestResource) -> APIRouter:
    """Return an ``APIRouter`` exposing *resource*; mount it at ``resource.path``."""

    router = APIRouter(tags=[resource.rel])

    def _item_response(request: Request, entity: Any, status_code: int = status.HTTP_200_OK) -> HalJSONResponse:
        document = resource.to_document(request, entity)
        headers = {"ETag": etag(entity)}
        if status_code == status.HTTP_201_CREATED:
            headers["Location"] = document["_links"]["self"]["href"]
        return HalJSONResponse(document, status_code=status_code, headers=headers)

    @router.get("", response_class=HalJSONResponse)
    def list_items(
        request: Request,
        page: int = Query(0, ge=0),
        size: Optional[int] = Query(None, ge=1),
        sort: List[str] = Query(default=[]),
        db: Session = Depends(get_db),
    ):
        """Page through the collection (``?page=0&size=20&sort=title,desc``)."""
        size = min(size or _settings.default_page_size, _settings.max_page_size)
        result = resource.repository(db).find_page(PageRequest(page=page, size=size, sort=tuple(sort)))
        items = [resource.to_document(request, entity) for entity in result.content]
        return HalJSONResponse(collection_document(resource.rel, items, api_href(request, resource.path), result, sort))

    @router.post("", response_class=HalJSONResponse, status_code=status.HTTP_201_CREATED)
    def create_item(request: Request, payload: resource.create_schema, db: Session = Depends(get_db)):
        """Create a new item"""
        entity = resource.repository(db).save(resource.build(db, payload))
        logger.info("Created %s %s", resource.item_rel, entity.id)
        return _item_response(request, entity, status.HTTP_201_CREATED)

    @router.get("/{entity_id}", response_class=HalJSONResponse)
    def read_item(entity_id: int, request: Request, db: Session = Depends(get_db)):
        """Get a specific item by ID"""
        return _item_response(request, resource.repository(db).find_by_id(entity_id))

    @router.put("/{entity_id}", response_class=HalJSONResponse)
    def replace_item(
        entity_id: int,
        request: Request,
        payload: resource.update_schema,
        if_match: Optional[str] = Header(None),
        db: Session = Depends(get_db),
    ):
        """Replace every writable field of an item"""
        repository = resource.repository(db)
        entity = repository.find_by_id(entity_id)
        version = expected_version(if_match, payload.version)
        _apply(entity, payload.model_dump(exclude={"version"}))
        return _item_response(request, repository.save(entity, expected_version=version))

    @router.patch("/{entity_id}", response_class=HalJSONResponse)
    def patch_item(
        entity_id: int,
        request: Request,
        payload: resource.patch_schema,
        if_match: Optional[str] = Header(None),
        db: Session = Depends(get_db),
    ):
        """Update only the fields present in the body"""
        repository = resource.repository(db)
        entity = repository.find_by_id(entity_id)
        version = expected_version(if_match, payload.version)
        _apply(entity, payload.model_dump(exclude_unset=True, exclude={"version"}))
        return _item_response(request, repository.save(entity, expected_version=version))

    @router.delete("/{entity_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_item(entity_id: int, if_match: Optional[str] = Header(None), db: Session = Depends(get_db)):
        """Delete an item and everything it owns"""
        repository = resource.repository(db)
        entity = repository.find_by_id(entity_id)
        version = expected_version(if_match, None)
        if version is not None and version != entity.version:
            raise ConflictError(repository.entity_name, entity_id, version, entity.version)
        repository.delete(entity)
        logger.info("Deleted %s %s", resource.item_rel, entity_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router


__all__ = ["RestResource", "etag", "expected_version", "repository_rest_router"]
