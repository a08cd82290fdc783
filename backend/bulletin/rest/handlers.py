"""Map repository errors to HTTP responses."""

import logging

from fastapi import FastAPI
from fastapi import Request
from fastapi import status
from fastapi.responses import JSONResponse

from bulletin.errors import CascadeFailure
from bulletin.errors import ConflictError
from bulletin.errors import NotFound
from bulletin.errors import RepositoryError
from bulletin.errors import StorageTimeout
from bulletin.errors import ValidationError

logger = logging.getLogger(__name__)

# Most specific first – lookup walks the exception's MRO.
STATUS_BY_ERROR = {
    NotFound: status.HTTP_404_NOT_FOUND,
    ValidationError: 422,
    ConflictError: status.HTTP_409_CONFLICT,
    CascadeFailure: status.HTTP_500_INTERNAL_SERVER_ERROR,
    StorageTimeout: status.HTTP_503_SERVICE_UNAVAILABLE,
    RepositoryError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for(exc: RepositoryError) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def repository_error_handler(request: Request, exc: RepositoryError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}", exc_info=exc)
    else:
        logger.info(f"{request.method} {request.url.path} -> {status_code}: {exc}")
    return JSONResponse(status_code=status_code, content={"detail": str(exc), "error": exc.kind})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RepositoryError, repository_error_handler)
