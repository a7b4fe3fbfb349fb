"""
Structured logging for oraspine.

Every module logs through ``get_logger(__name__)`` and emits events as a
short snake_case name plus key/value pairs, so a failing statement shows
up as one searchable record::

    logger.warning("query_failed", error_code=972, query=query)

Manifesto:
    - **Structured:** JSON output for log aggregation, console for development
    - **Quiet by default:** rewriting and cache hits log at debug level only
    - **Correlated:** ``LogContext`` binds a connection or request id to
      every record emitted inside the block

Architecture:
    ::

        configure_logging(level="INFO", json_format=True, service="oraspine")
            ↓
        structlog processor chain:
          1. TimeStamper (iso)
          2. add_log_level / add_logger_name
          3. add_service_metadata, shorten_sql
          4. elasticsearch_compatible (json only)
          5. JSONRenderer | ConsoleRenderer

Examples:
    >>> from oraspine.core.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", json_format=False)
    >>> logger = get_logger(__name__)
    >>> logger.debug("statement_prepared", cache_key="9b1e...")

Tags:
    logging, structlog, observability, json-logging

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_SERVICE_NAME = "oraspine"

# Event fields holding SQL text; a rewritten statement can run to megabytes.
_SQL_FIELDS = ("query", "prepared", "native_message")
_DEFAULT_MAX_SQL_LENGTH = 2000
_max_sql_length = _DEFAULT_MAX_SQL_LENGTH


# ── Processors ───────────────────────────────────────────────────────────


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    event_dict.setdefault("service.name", _SERVICE_NAME)
    return event_dict


def _shorten(value: Any, limit: int) -> Any:
    if isinstance(value, str) and len(value) > limit:
        return f"{value[:limit]}... [{len(value)} chars]"
    if isinstance(value, (bytes, bytearray)):
        return f"<{len(value)} bytes>"
    return value


def _shorten_sql(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Cut SQL text and bound values down to ``_max_sql_length`` characters.

    Applies to top-level fields and to the ``context`` dict that
    ``OraSpineError.to_dict()`` produces.
    """
    targets = [event_dict]
    if isinstance(event_dict.get("context"), Mapping):
        event_dict["context"] = dict(event_dict["context"])
        targets.append(event_dict["context"])

    for target in targets:
        for key in _SQL_FIELDS:
            if key in target:
                target[key] = _shorten(target[key], _max_sql_length)
        args = target.get("args")
        if isinstance(args, Mapping):
            target["args"] = {k: _shorten(v, _max_sql_length) for k, v in args.items()}
        elif isinstance(args, (list, tuple)):
            target["args"] = [_shorten(v, _max_sql_length) for v in args]
    return event_dict


def _elasticsearch_compatible(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Rename fields to their ECS names (``@timestamp``, ``log.level``)."""
    if "timestamp" in event_dict:
        event_dict["@timestamp"] = event_dict.pop("timestamp")
    if "level" in event_dict:
        event_dict["log.level"] = event_dict.pop("level")
    return event_dict


# ── Configuration ────────────────────────────────────────────────────────


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "oraspine",
    add_timestamp: bool = True,
    max_sql_length: int = _DEFAULT_MAX_SQL_LENGTH,
) -> None:
    """Configure structured logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON, False for console, None for JSON unless stdout is a tty
        service: Value of the ``service.name`` field
        add_timestamp: Include an ISO timestamp
        max_sql_length: Longest SQL text or bound value written verbatim
    """
    global _SERVICE_NAME, _max_sql_length
    _SERVICE_NAME = service
    _max_sql_length = max_sql_length
    numeric_level = getattr(logging, level.upper())

    if json_format is None:
        json_format = not sys.stdout.isatty()

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service_metadata,
        _shorten_sql,
    ]
    if add_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        processors += [_elasticsearch_compatible, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric_level)


def configure_logging_from_settings(settings: Any) -> None:
    """Configure logging from ``OracleSettings.log_level`` and ``log_json``."""
    configure_logging(level=settings.log_level, json_format=settings.log_json)


# ── Loggers and context ──────────────────────────────────────────────────


def get_logger(name: str | None = None) -> Any:
    """Structured logger, usually ``get_logger(__name__)``."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


class LogContext:
    """Bind key/value pairs to every record logged inside the block.

    Example:
        with LogContext(schema="SITE1"):
            conn.execute("SELECT 1")
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs

    def __enter__(self) -> LogContext:
        bind_context(**self._context)
        return self

    def __exit__(self, *args) -> None:
        unbind_context(*self._context.keys())


__all__ = [
    "configure_logging",
    "configure_logging_from_settings",
    "get_logger",
    "bind_context",
    "unbind_context",
    "LogContext",
]
