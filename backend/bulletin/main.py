import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv

# Load environment variables FIRST - before any other imports
load_dotenv()

# ruff: noqa: E402
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bulletin.config import get_settings
from bulletin.constants import API_PREFIX
from bulletin.constants import ARTICLE_COMMENTS_PREFIX
from bulletin.constants import ARTICLES_PREFIX
from bulletin.database import initialize_database
from bulletin.middleware.principal import PrincipalMiddleware
from bulletin.rest.handlers import register_exception_handlers
from bulletin.routers.article_comments import router as article_comments_router
from bulletin.routers.articles import router as articles_router
from bulletin.routers.system import router as system_router

_settings = get_settings()

# --------------------------------------------------------------------------
# LOGGING CONFIGURATION:
# - Default log level: INFO
# - Can be set at runtime with LOG_LEVEL env (e.g. LOG_LEVEL=WARNING for CI)
# --------------------------------------------------------------------------
_log_level = getattr(logging, _settings.log_level.upper(), logging.INFO)
logging.basicConfig(level=_log_level, format="%(levelname)s - %(message)s", handlers=[logging.StreamHandler()])

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Tests create their own schema on a separate engine.
    if not _settings.testing:
        initialize_database()
    yield


app = FastAPI(title="Bulletin", redirect_slashes=True, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["ETag", "Location"],
)
app.add_middleware(PrincipalMiddleware, header_name=_settings.principal_header)

register_exception_handlers(app)

# Include our API routers with centralized prefixes
app.include_router(system_router, prefix=API_PREFIX)
app.include_router(articles_router, prefix=f"{API_PREFIX}{ARTICLES_PREFIX}")
app.include_router(article_comments_router, prefix=f"{API_PREFIX}{ARTICLE_COMMENTS_PREFIX}")

logger.info("Bulletin API ready (testing=%s)", _settings.testing)
