"""Centralised configuration helper.

This module eliminates scattered ``os.getenv`` calls by exposing a **single**
:class:`Settings` instance (retrieved via :func:`get_settings`).  Values come
from the process environment; ``.env`` (or ``.env.test`` when
``NODE_ENV=test``) at the repository root is loaded first through
*python-dotenv*.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# ``_REPO_ROOT`` points to the top-level repository directory.  This file is
# located at ``backend/bulletin/config/__init__.py``.

_REPO_ROOT = Path(__file__).resolve().parents[3]

# Same width as the ``created_by`` / ``modified_by`` columns.
PRINCIPAL_MAX_LENGTH = 100


def _truthy(value: str | None) -> bool:  # noqa: D401 – small helper
    """Return *True* when *value* looks like an affirmative string."""

    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _optional(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return value.strip()


@dataclass
class Settings:  # noqa: D401 – simple data container
    """Lightweight settings container populated from environment variables."""

    # Runtime flags -----------------------------------------------------
    testing: bool

    # Database ---------------------------------------------------------
    database_url: str
    db_timeout_seconds: float

    # Auditing ---------------------------------------------------------
    default_principal: str | None
    principal_header: str

    # HTTP -------------------------------------------------------------
    allowed_cors_origins: str
    default_page_size: int
    max_page_size: int

    # Misc
    log_level: str

    @property
    def resolved_database_url(self) -> str:
        """Return the configured URL, falling back to a local SQLite file."""

        if self.database_url:
            return self.database_url
        if self.testing:
            return "sqlite:///:memory:"
        return "sqlite:///./bulletin.db"

    @property
    def cors_origins(self) -> list[str]:
        if self.testing and not self.allowed_cors_origins.strip():
            return ["*"]
        return [o.strip() for o in self.allowed_cors_origins.split(",") if o.strip()]


def _load_settings() -> Settings:  # noqa: D401 – helper
    """Populate :class:`Settings` from environment variables."""

    node_env = os.getenv("NODE_ENV", "development")

    if node_env == "test":
        env_path = _REPO_ROOT / ".env.test"
        if not env_path.exists():
            env_path = _REPO_ROOT / ".env"
    else:
        env_path = _REPO_ROOT / ".env"

    if env_path.exists():
        # Explicit process environment wins over the file.
        load_dotenv(env_path, override=False)

    return Settings(
        testing=_truthy(os.getenv("TESTING")),
        database_url=os.getenv("DATABASE_URL", ""),
        db_timeout_seconds=float(os.getenv("DB_TIMEOUT_SECONDS", "30")),
        default_principal=_optional(os.getenv("AUDIT_DEFAULT_PRINCIPAL")),
        principal_header=os.getenv("PRINCIPAL_HEADER", "X-Acting-Principal"),
        allowed_cors_origins=os.getenv("ALLOWED_CORS_ORIGINS", ""),
        default_page_size=int(os.getenv("DEFAULT_PAGE_SIZE", "20")),
        max_page_size=int(os.getenv("MAX_PAGE_SIZE", "1000")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )


# ------------------------------------------------------------------
# Runtime validation – fail fast on nonsensical configuration.
# ------------------------------------------------------------------


def _validate_required(settings: Settings) -> None:  # noqa: D401 – helper
    """Abort startup when the configuration cannot work."""

    problems = []

    if settings.default_page_size <= 0:
        problems.append("DEFAULT_PAGE_SIZE must be positive")
    if settings.max_page_size < settings.default_page_size:
        problems.append("MAX_PAGE_SIZE must be >= DEFAULT_PAGE_SIZE")
    if settings.db_timeout_seconds <= 0:
        problems.append("DB_TIMEOUT_SECONDS must be positive")
    if settings.default_principal and len(settings.default_principal) > PRINCIPAL_MAX_LENGTH:
        problems.append(f"AUDIT_DEFAULT_PRINCIPAL must be at most {PRINCIPAL_MAX_LENGTH} characters")
    if not settings.principal_header.strip():
        problems.append("PRINCIPAL_HEADER must not be empty")

    if problems:
        raise RuntimeError("Invalid configuration: " + "; ".join(problems))


def get_settings() -> Settings:  # noqa: D401 – public accessor
    """Return :class:`Settings` instance loaded from environment."""

    settings = _load_settings()
    _validate_required(settings)
    return settings


__all__ = [
    "PRINCIPAL_MAX_LENGTH",
    "Settings",
    "get_settings",
]
