"""HAL document builders and the ``application/hal+json`` response class."""

from typing import Any
from typing import Dict
from typing import List
from typing import Optional
from typing import Sequence
from urllib.parse import urlencode

from fastapi import Request
from fastapi.responses import JSONResponse

from bulletin.constants import API_PREFIX
from bulletin.constants import HAL_MEDIA_TYPE
from bulletin.repositories.base import Page


class HalJSONResponse(JSONResponse):
    media_type = HAL_MEDIA_TYPE


def api_href(request: Request, path: str) -> str:
    """Absolute URL for an API-relative *path* (``/articles/1``)."""
    return f"{str(request.base_url).rstrip('/')}{API_PREFIX}{path}"


def link(href: str) -> Dict[str, str]:
    return {"href": href}


def item_document(payload: Dict[str, Any], self_href: str, **links: str) -> Dict[str, Any]:
    """Entity fields plus ``_links`` (``self`` first)."""

    document = dict(payload)
    document["_links"] = {"self": link(self_href), **{rel: link(href) for rel, href in links.items()}}
    return document


def _page_href(base_href: str, number: int, size: int, sort: List[str]) -> str:
    params: List[tuple] = [("page", number), ("size", size)]
    params.extend(("sort", key) for key in sort)
    return f"{base_href}?{urlencode(params)}"


def collection_document(
    rel: str,
    items: List[Dict[str, Any]],
    base_href: str,
    page: Optional[Page] = None,
    sort: Sequence[str] = (),
) -> Dict[str, Any]:
    """``_embedded`` collection with paging links and metadata.

    Without *page* the document describes an unpaged association listing.
    """

    document: Dict[str, Any] = {"_embedded": {rel: items}}

    if page is None:
        document["_links"] = {"self": link(base_href)}
        return document

    sort = list(sort)
    links = {"self": link(_page_href(base_href, page.number, page.size, sort))}
    if page.total_pages > 0:
        links["first"] = link(_page_href(base_href, 0, page.size, sort))
        links["last"] = link(_page_href(base_href, page.total_pages - 1, page.size, sort))
    if page.has_previous:
        links["prev"] = link(_page_href(base_href, page.number - 1, page.size, sort))
    if page.has_next:
        links["next"] = link(_page_href(base_href, page.number + 1, page.size, sort))

    document["_links"] = links
    document["page"] = {
        "size": page.size,
        "total_elements": page.total_elements,
        "total_pages": page.total_pages,
        "number": page.number,
    }
    return document
