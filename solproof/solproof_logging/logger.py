"""
Structured logging for audit runs.

Every record carries event_type, level, timestamp and the emitting logger;
pipeline records also carry the audited program, and records emitted while a
stage runs inside run_stage() carry the stage name (bound via contextvars).
Records go to stderr so the JSON report on stdout stays clean.

Env:
    SOLPROOF_LOG_LEVEL (or LOG_LEVEL): DEBUG | INFO | WARNING | ERROR, default INFO
    LOG_FORMAT: json (default) | console

No solproof imports here: every other module imports this one.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any, TextIO

import structlog

_METHOD_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "exception": logging.ERROR,
    "critical": logging.CRITICAL,
}

_min_level = logging.INFO


def _level_from_env() -> int:
    raw = (os.getenv("SOLPROOF_LOG_LEVEL") or os.getenv("LOG_LEVEL") or "INFO").strip().upper()
    return getattr(logging, raw, logging.INFO)


def _filter_level(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Drop records below the current minimum level; module loggers bound at import see level changes."""
    if _METHOD_LEVELS.get(method_name, logging.INFO) < _min_level:
        raise structlog.DropEvent
    return event_dict


def _rename_event(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """structlog's 'event' key becomes event_type."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    return event_dict


def _drop_none(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in event_dict.items() if v is not None}


def configure_logging(level: int | None = None, fmt: str | None = None, stream: TextIO | None = None) -> None:
    """
    (Re)configure structlog. Called once at import with env defaults;
    call again to override, e.g. from a CLI flag. The level applies to
    every logger, including those bound before the call.
    """
    global _min_level
    _min_level = level if level is not None else _level_from_env()

    renderer: Any
    out = stream or sys.stderr
    out_format = (fmt or os.getenv("LOG_FORMAT") or "json").strip().lower()
    if out_format == "json":
        renderer = structlog.processors.JSONRenderer(sort_keys=True)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=out.isatty())

    structlog.configure(
        processors=[
            _filter_level,
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            _rename_event,
            _drop_none,
            renderer,
        ],
        wrapper_class=structlog.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=out),
        cache_logger_on_first_use=False,
    )


if not structlog.is_configured():
    configure_logging()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Module logger:

        logger = get_logger(__name__)
        logger.warning("stage_degraded", error="rpc down")
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_program(program: str) -> structlog.BoundLogger:
    """Logger with the audited program bound to every record."""
    return get_logger("solproof.audit").bind(program=program)
