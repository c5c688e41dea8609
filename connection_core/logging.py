"""
Logging for the connection engine.

One ``connection_core`` logger with up to three handlers:

- console, human readable, every level
- error file, one JSON document per line
- Loki (``LOKI_ENABLED``), JSON, INFO and above

Request-scoped fields (``request_id``, ``tenant_id``, ``entity``) live in a
context variable and are attached to every record emitted while they are
set. The correlation ID middleware sets ``request_id`` and clears the
context when the request ends.
"""

import json
import logging
import sys
from contextvars import ContextVar
from typing import Any

from connection_core.settings import app_settings

# Loki rejects entries above this size, messages are truncated to fit
LOKI_MAX_LOG_SIZE_BYTES = 256 * 1024

_log_context: ContextVar[dict[str, Any] | None] = ContextVar(
    "log_context", default=None
)

# Attributes every LogRecord carries; anything else came in through extra=
_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}


def set_log_context(**fields: Any) -> None:
    """
    Attach fields to every record logged from the current context.

    Example:
        >>> set_log_context(tenant_id="T1", entity="repairOrders")
        >>> logger.info("Resolving connection")  # carries tenant_id and entity
    """
    _log_context.set({**get_log_context(), **fields})


def get_log_context() -> dict[str, Any]:
    return _log_context.get() or {}


def clear_log_context() -> None:
    _log_context.set(None)


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _STANDARD_ATTRS
    }


class StructuredJSONFormatter(logging.Formatter):
    """
    Render records as single-line JSON for the file and Loki handlers.

    Context fields and ``extra=`` fields are merged into the top level.
    Oversized messages are cut so the document stays under the Loki limit.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
            "environment": app_settings.ENVIRONMENT,
            **get_log_context(),
            **_extra_fields(record),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        document = json.dumps(payload, default=str)
        if len(document) <= LOKI_MAX_LOG_SIZE_BYTES:
            return document

        overflow = len(document) - LOKI_MAX_LOG_SIZE_BYTES
        marker = "... [TRUNCATED]"
        payload["message"] = (
            payload["message"][: -(overflow + len(marker) + 64)] + marker
        )
        return json.dumps(payload, default=str)


class ConsoleFormatter(logging.Formatter):
    """
    Development output: one line per record, prefixed with the request id.

    Warnings and errors also show where they were logged from; tenant and
    entity are appended when the record was emitted inside a query.
    """

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        context = get_log_context()
        line = (
            f"{self.formatTime(record, self.datefmt)} - "
            f"[{context.get('request_id') or '-'}] {record.levelname}: "
        )
        if record.levelno >= logging.WARNING:
            line += f"{record.module}.{record.funcName}:{record.lineno} - "
        line += record.getMessage()

        scope = " ".join(
            f"{key}={context[key]}"
            for key in ("tenant_id", "entity")
            if context.get(key)
        )
        if scope:
            line += f" ({scope})"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _json_handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(StructuredJSONFormatter())
    return handler


def setup_logging() -> logging.Logger:
    """
    Configure the ``connection_core`` logger from settings.

    Safe to call more than once; existing handlers are replaced.
    """
    configured = logging.getLogger("connection_core")
    configured.setLevel(app_settings.LOG_LEVEL.upper())
    configured.propagate = False
    configured.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(ConsoleFormatter())
    configured.addHandler(console)

    try:
        configured.addHandler(
            _json_handler(
                logging.FileHandler(app_settings.LOG_FILE_PATH), logging.ERROR
            )
        )
    except OSError as e:
        configured.warning(f"Could not create file handler: {e}")

    if app_settings.LOKI_ENABLED:
        from logging_loki import LokiHandler

        loki = LokiHandler(
            url=f"{app_settings.LOKI_URL}/loki/api/v{app_settings.LOKI_VERSION}/push",
            tags={
                "application": "connection-core",
                "environment": app_settings.ENVIRONMENT,
            },
            version=app_settings.LOKI_VERSION,
        )
        configured.addHandler(_json_handler(loki, logging.INFO))
        configured.info("Loki handler configured")

    return configured


logger = setup_logging()
