"""Structured logging entry point.

The rest of the codebase can ``from bulletin.utils.log import log`` (or
:func:`get_logger` for a bound child) and call ``log.info("event", key=value)``.
Events are rendered by *structlog* through the stdlib ``logging`` handlers
configured in :pymod:`bulletin.main`, so ``LOG_LEVEL`` applies to both.
"""

from __future__ import annotations

from typing import Any

import structlog

if not structlog.is_configured():
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

# Keep the logger global so every import shares the same base instance.
log = structlog.get_logger("bulletin")


def get_logger(**bindings: Any):  # noqa: D401 – factory helper
    """Return a child/bound logger with optional key/value bindings."""

    return log.bind(**bindings)


__all__ = ["get_logger", "log"]
