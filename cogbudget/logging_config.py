"""
Logging for the cognitive budget engine: structlog in front of stdlib.

Library modules log through ``logging.getLogger(__name__)`` and never
configure anything. Entry points (the CLI, an embedding service) call
``setup_logging()`` once; after that every record, stdlib or structlog,
goes through the same processor chain and lands on stderr so that
stdout stays free for JSON results.

    COGBUDGET_LOG_LEVEL   DEBUG / INFO / WARNING ... (default INFO)
    COGBUDGET_LOG_FORMAT  "json" for JSON lines, anything else for console

Per-user context is carried in contextvars: ``bind_user("alice")`` tags
every following line in the current context with ``user_id=alice``.
"""

from __future__ import annotations

import logging
import os
import sys

import structlog


def _level_from(name: str | None) -> int:
    name = name or os.environ.get("COGBUDGET_LOG_LEVEL", "INFO")
    return getattr(logging, name.upper(), logging.INFO)


def _wants_json(json_output: bool | None) -> bool:
    if json_output is not None:
        return json_output
    return os.environ.get("COGBUDGET_LOG_FORMAT", "").lower() == "json"


def _pre_chain() -> list[structlog.types.Processor]:
    # Applied to structlog events and, via foreign_pre_chain, to stdlib records
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def setup_logging(level: str | None = None, json_output: bool | None = None) -> None:
    """Route all engine logging to stderr through structlog."""
    pre_chain = _pre_chain()

    if _wants_json(json_output):
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(_level_from(level))


def bind_user(user_id: str) -> None:
    """Tag every log line in the current context with ``user_id``."""
    structlog.contextvars.bind_contextvars(user_id=user_id)


__all__ = ["bind_user", "setup_logging"]
