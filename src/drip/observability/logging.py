"""Structured logging for DRIP faucet.

Log lines are emitted through stdlib ``logging`` and rendered by structlog,
either as one JSON object per line or as coloured console text. Each line
carries the current HTTP request ID when one is bound, and known secret fields
are masked before rendering.
"""

import logging
import sys
import uuid
from contextvars import ContextVar
from typing import Any

import structlog

# Bound per HTTP request by the web middleware
request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)

# Handler installed by configure_logging, replaced on reconfiguration
_handler: logging.Handler | None = None

# Specific names only: "token" is the faucet token symbol and must stay visible
REDACTED_FIELDS = frozenset(
    {
        "private_key",
        "wallet_private_key",
        "secondary_wallet_private_key",
        "secret",
        "password",
        "api_key",
        "auth_token",
        "bearer_token",
        "access_token",
    }
)


def _add_request_id(
    _logger: logging.Logger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Attach the bound request ID, if any."""
    request_id = request_id_var.get()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def _redact_sensitive(
    _logger: logging.Logger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Mask values of secret-bearing keys."""
    for key in event_dict:
        if key.lower() in REDACTED_FIELDS:
            event_dict[key] = "[REDACTED]"
    return event_dict


def configure_logging(
    level: str = "INFO",
    log_format: str = "json",
) -> None:
    """Install the DRIP log handler on the root logger.

    Parameters
    ----------
    level : str
        Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    log_format : str
        ``json`` for one object per line, anything else for console text.

    Raises
    ------
    ValueError
        If ``level`` is not a known log level.
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        raise ValueError(
            f"Invalid log level: {level!r}. "
            "Valid levels are: DEBUG, INFO, WARNING, ERROR, CRITICAL."
        )

    shared_processors: list[structlog.typing.Processor] = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.ExtraAdder(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _add_request_id,
        _redact_sensitive,
    ]

    renderer: structlog.typing.Processor
    if str(getattr(log_format, "value", log_format)).lower() == "json":
        renderer = structlog.processors.JSONRenderer()
        shared_processors.append(structlog.processors.format_exc_info)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    global _handler
    root = logging.getLogger()
    if _handler is not None:
        root.removeHandler(_handler)
    _handler = handler
    root.addHandler(handler)
    root.setLevel(log_level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to ``name``.

    Parameters
    ----------
    name : str | None
        Dotted logger name; structlog picks the caller's module when None.

    Returns
    -------
    structlog.stdlib.BoundLogger
        Logger sharing the processors set by ``configure_logging``.
    """
    return structlog.get_logger(name)


def new_request_id() -> str:
    """Generate a short random request ID."""
    return uuid.uuid4().hex[:16]


def set_request_id(request_id: str) -> None:
    """Bind ``request_id`` to the running task context.

    Parameters
    ----------
    request_id : str
        Identifier echoed in the ``X-Request-ID`` header.
    """
    request_id_var.set(request_id)


def clear_request_id() -> None:
    """Unbind the request ID once a request completes."""
    request_id_var.set(None)
