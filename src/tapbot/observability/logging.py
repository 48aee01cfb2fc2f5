"""Structured logging for the tap bot.

Modules log through the standard library (``logging.getLogger(__name__)``
with ``extra=`` fields). ``configure_logging`` routes those records through
structlog so every line, stdlib or structlog, gets:

- the ``extra`` fields as top-level keys
- the request ID of the chat message being handled
- redaction of signing material and chat credentials
- JSON or console rendering
"""

import logging
import sys
from contextvars import ContextVar
from typing import Any

import structlog

# Set for the duration of one inbound chat message
request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)

REDACTED_FIELDS = frozenset(
    {
        "private_key",
        "mnemonic",
        "secret",
        "password",
        "bot_token",
        "app_token",
        "signing_secret",
    }
)


def _add_request_id(
    _logger: logging.Logger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    request_id = request_id_var.get()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def _redact_sensitive(
    _logger: logging.Logger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    for key in event_dict:
        if key.lower() in REDACTED_FIELDS:
            event_dict[key] = "[REDACTED]"
    return event_dict


def _shared_processors() -> list[structlog.typing.Processor]:
    """Processors applied to both structlog and stdlib records."""
    return [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.ExtraAdder(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        _add_request_id,
        _redact_sensitive,
    ]


def _build_formatter(log_format: str) -> structlog.stdlib.ProcessorFormatter:
    """Formatter rendering every record on the root handler."""
    if log_format.lower() == "json":
        renderers = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        renderers = [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]

    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_shared_processors(),
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *renderers],
    )


def configure_logging(
    level: str = "INFO",
    log_format: str = "json",
) -> None:
    """Configure structured logging for the application.

    Installs one stdout handler on the root logger, replacing any handler a
    previous call installed. Calling it twice does not duplicate output.

    Parameters
    ----------
    level : str
        Log level (DEBUG, INFO, WARNING, ERROR).
    log_format : str
        Output format (json or text).

    Raises
    ------
    ValueError
        If the level name is unknown.
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        raise ValueError(
            f"Invalid log level: {level!r}. "
            "Valid levels are: DEBUG, INFO, WARNING, ERROR, CRITICAL."
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_build_formatter(log_format))

    root = logging.getLogger()
    for existing in list(root.handlers):
        if isinstance(existing.formatter, structlog.stdlib.ProcessorFormatter):
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(log_level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def set_request_id(request_id: str | None) -> None:
    """Set the request ID for the current context."""
    request_id_var.set(request_id)


def clear_request_id() -> None:
    """Clear the request ID for the current context."""
    request_id_var.set(None)
