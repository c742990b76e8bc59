"""
Structured logging for roster.

Every module logs snake_case events with key/value fields through
structlog.  The CLI picks coloured console lines or JSON lines with one
``configure_logging`` call; library code only ever calls ``get_logger``.

Manifesto:
    The reconciliation engine is a small state machine whose interesting
    moments (which source won at startup, which id a new record received,
    why a snapshot write failed) are exactly what an operator needs when
    the screen looks wrong.  Those moments are logged as events with
    fields, never as formatted sentences.

Architecture:
    ::

        configure_logging(level, json_format, service)
            │
            ├── structlog  (roster events, to stderr)
            │     TimeStamper(iso) → add_logger_name → merge_contextvars
            │     → add_log_level → ServiceStamp → JSONRenderer | ConsoleRenderer
            │
            └── stdlib logging  (httpx request lines, same level)

        LogContext(operation=..., record_id=...)
            binds fields for the duration of one mutation; nested
            contexts restore the outer values on exit

Examples:
    >>> configure_logging(level="DEBUG", json_format=False)
    >>> logger = get_logger(__name__)
    >>> logger.info("collection_loaded", source="cache", count=10)

Tags:
    logging, structlog, observability, roster

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# structlog reserves ``logger`` as a get_logger() keyword
_NAME_KEY = "logger_name"


class ServiceStamp:
    """Processor adding ``service=<name>`` to every event that lacks one."""

    def __init__(self, service: str):
        self.service = service

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", self.service)
        return event_dict


def add_logger_name(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Emit the name bound by ``get_logger`` as the ``logger`` field."""
    name = event_dict.pop(_NAME_KEY, None)
    if name is not None:
        event_dict.setdefault("logger", name)
    return event_dict


def _stderr_logger_factory(*args: Any) -> structlog.PrintLogger:
    # sys.stderr is looked up per logger; stdout carries CLI --json output
    return structlog.PrintLogger(sys.stderr)


def build_processors(*, json_format: bool, service: str = "roster") -> list[Processor]:
    """Processor chain shared by both output formats, renderer last."""
    processors: list[Processor] = [
        structlog.processors.TimeStamper(fmt="iso"),
        add_logger_name,
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        ServiceStamp(service),
    ]
    if json_format:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    return processors


def configure_logging(
    level: str = "WARNING",
    json_format: bool | None = None,
    service: str = "roster",
) -> None:
    """Configure roster's structlog output and the stdlib level for httpx.

    Args:
        level: One of ``LEVELS`` (case-insensitive).
        json_format: True for JSON lines, False for console, None to pick
            JSON whenever stderr is not a terminal.
        service: Value of the ``service`` field on every event.

    Raises:
        ValueError: If ``level`` is not a known level name.
    """
    level = level.upper()
    if level not in LEVELS:
        raise ValueError(f"unknown log level: {level}")
    numeric = logging.getLevelName(level)

    if json_format is None:
        json_format = not sys.stderr.isatty()

    structlog.configure(
        processors=build_processors(json_format=json_format, service=service),
        wrapper_class=structlog.make_filtering_bound_logger(numeric),
        context_class=dict,
        logger_factory=_stderr_logger_factory,
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(format="%(name)s %(levelname)s %(message)s", stream=sys.stderr)
    logging.getLogger("httpx").setLevel(numeric)


def get_logger(name: str | None = None) -> Any:
    """Structured logger; ``name`` (usually ``__name__``) becomes the ``logger`` field.

    The logger stays lazy, so module-level loggers pick up a later
    ``configure_logging`` call.
    """
    if name is None:
        return structlog.get_logger()
    return structlog.get_logger(name, **{_NAME_KEY: name})


class LogContext:
    """Bind fields to every event logged inside the block.

    Usable with ``with`` and ``async with``.  Values bound by an enclosing
    block are restored on exit.

    Example:
        async with LogContext(operation="update", record_id=3):
            logger.info("record_updated")
    """

    def __init__(self, **fields: Any):
        self.fields = fields
        self._bound: Any = None

    def __enter__(self) -> LogContext:
        self._bound = structlog.contextvars.bound_contextvars(**self.fields)
        self._bound.__enter__()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self._bound.__exit__(*exc_info)
        self._bound = None

    async def __aenter__(self) -> LogContext:
        return self.__enter__()

    async def __aexit__(self, *exc_info: Any) -> None:
        self.__exit__(*exc_info)


__all__ = [
    "LEVELS",
    "ServiceStamp",
    "build_processors",
    "configure_logging",
    "get_logger",
    "add_logger_name",
    "LogContext",
]
