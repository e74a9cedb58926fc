"""Logging setup for the registry client.

The library only ever calls ``get_logger``; applications that want the
client's own handlers call ``setup_logging`` once with their Settings. Three
output styles are available: plain text, text with request context appended,
and one JSON object per line.
"""

import json
import logging
import logging.config
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from registry_client.core.config import Settings

ROOT_LOGGER = "registry_client"

# Fields attached through ``extra=get_log_context(...)``
CONTEXT_FIELDS = (
    "method",
    "url",
    "attempt",
    "status_code",
    "duration_ms",
    "query",
    "resource",
)

# Attributes every LogRecord carries; anything else came in through ``extra``
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime"}

_TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
_CONTEXT_FORMAT = _TEXT_FORMAT + " [method=%(method)s url=%(url)s attempt=%(attempt)s]"


class JSONFormatter(logging.Formatter):
    """Render each record as a single JSON line.

    Request context fields are promoted to top-level keys; any other
    ``extra`` values are nested under ``"extra"``.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "source": {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            },
        }

        extra: Dict[str, Any] = {}
        for key, value in vars(record).items():
            if key in CONTEXT_FIELDS:
                if value is not None:
                    payload[key] = value
            elif key not in _RECORD_ATTRS:
                extra[key] = value
        if extra:
            payload["extra"] = extra

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info).splitlines()

        return json.dumps(payload, default=str, ensure_ascii=False)


class ContextFilter(logging.Filter):
    """Give every record the context attributes the text formats reference."""

    def filter(self, record: logging.LogRecord) -> bool:
        for name in CONTEXT_FIELDS:
            if not hasattr(record, name):
                setattr(record, name, None)
        return True


def get_logging_config(settings: Optional["Settings"] = None) -> Dict[str, Any]:
    """Build a ``logging.config.dictConfig`` dictionary.

    Args:
        settings: Source of ``log_level`` and ``log_format``; INFO level
            plain text when omitted
    """
    style = settings.log_format.lower() if settings is not None else "text"
    level = settings.log_level.upper() if settings is not None else "INFO"

    formatter = {"text": "standard", "structured": "structured", "json": "json"}[style]
    handler = {
        "class": "logging.StreamHandler",
        "stream": sys.stderr,
        "level": level,
        "formatter": formatter,
        "filters": ["context"],
    }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {"format": _TEXT_FORMAT},
            "structured": {"format": _CONTEXT_FORMAT},
            "json": {"()": "registry_client.core.logging.JSONFormatter"},
        },
        "filters": {"context": {"()": "registry_client.core.logging.ContextFilter"}},
        "handlers": {"console": handler},
        "loggers": {
            ROOT_LOGGER: {"level": level, "handlers": ["console"], "propagate": False},
            # httpx logs every request at INFO; keep only its problems
            "httpx": {"level": "WARNING", "handlers": ["console"], "propagate": False},
        },
    }


def setup_logging(settings: Optional["Settings"] = None) -> None:
    logging.config.dictConfig(get_logging_config(settings))


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    return logging.getLogger(name)


def get_log_context(
    method: Optional[str] = None,
    url: Optional[str] = None,
    attempt: Optional[int] = None,
    **extra: Any,
) -> Dict[str, Any]:
    """Collect context fields for ``extra=``, leaving out unset ones.

    Example:
        logger.warning(
            "Retrying request",
            extra=get_log_context(method="GET", url="/v1/modules", attempt=2),
        )
    """
    fields = dict(extra, method=method, url=url, attempt=attempt)
    return {key: value for key, value in fields.items() if value is not None}
