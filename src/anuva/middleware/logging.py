"""structlog configuration."""

import logging
from collections.abc import MutableMapping
from typing import Any

import structlog

from anuva.config import Settings

REDACTED = "[redacted]"
_SENSITIVE_KEYS = frozenset({"authorization", "token", "access_token", "password", "jwt_secret"})


def redact_sensitive(_logger: Any, _method: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:  # noqa: ANN401
    """Mask credential fields so bearer tokens never reach log storage."""
    for key in event_dict:
        if key.lower() in _SENSITIVE_KEYS:
            event_dict[key] = REDACTED
    return event_dict


def setup_logging(settings: Settings) -> None:
    """Route structlog through stdlib logging with JSON or console rendering.

    Modules using logging.getLogger(__name__) end up on the same root handler.
    """
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if settings.log_format == "json" else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            redact_sensitive,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    level = logging.getLevelName(settings.log_level.upper())
    logging.basicConfig(format="%(message)s", level=level if isinstance(level, int) else logging.INFO)
    # Statement logging stays off even at a DEBUG root level
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
