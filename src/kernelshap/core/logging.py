"""Structured logging for kernelshap, built on structlog.

Every explain call sets an explanation ID; the ``add_explanation_id``
processor stamps it on each event emitted while the call runs, including
events from per-instance tasks, which inherit the context.

Rendering is chosen once at startup: JSON lines for log shippers, or a
colored console view while developing. Events from libraries using the
standard ``logging`` module go through the same processor chain.
"""

from __future__ import annotations

import logging
import sys
import uuid
from contextvars import ContextVar

import structlog
from structlog.types import EventDict, Processor

SERVICE_NAME = "kernelshap"

# Third-party loggers kept at WARNING regardless of the configured level
NOISY_LOGGERS = ("asyncio",)

explanation_id_ctx: ContextVar[str | None] = ContextVar("explanation_id", default=None)


def get_explanation_id() -> str | None:
    """Explanation ID of the running explain call, if any."""
    return explanation_id_ctx.get()


def set_explanation_id(explanation_id: str | None = None) -> str:
    """Set the explanation ID, generating a UUID4 when none is given."""
    if explanation_id is None:
        explanation_id = str(uuid.uuid4())
    explanation_id_ctx.set(explanation_id)
    return explanation_id


def clear_explanation_id() -> None:
    explanation_id_ctx.set(None)


def add_explanation_id(
    _logger: logging.Logger,
    _method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """structlog processor adding ``explanation_id`` when one is set."""
    explanation_id = explanation_id_ctx.get()
    if explanation_id:
        event_dict["explanation_id"] = explanation_id
    return event_dict


def add_service_context(
    _logger: logging.Logger,
    _method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """structlog processor adding the service name."""
    event_dict["service"] = SERVICE_NAME
    return event_dict


def _processor_chain(json_logs: bool) -> list[Processor]:
    chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        add_explanation_id,
        add_service_context,
    ]
    if json_logs:
        chain.append(structlog.processors.format_exc_info)
    return chain


def configure_logging(
    *,
    json_logs: bool = False,
    log_level: str = "INFO",
) -> None:
    """Configure structlog and the root stdlib logger.

    Args:
        json_logs: Render events as JSON lines instead of colored console output.
        log_level: Minimum level name, case-insensitive.
    """
    chain = _processor_chain(json_logs)
    renderer: Processor = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    )

    structlog.configure(
        processors=[*chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level.upper())

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def configure_logging_from_settings() -> None:
    """Configure logging from the cached application settings.

    Production environments always log JSON.
    """
    from kernelshap.core.config import get_settings

    settings = get_settings()
    configure_logging(
        json_logs=settings.json_logs or settings.is_production,
        log_level=settings.log_level,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger, named after the module by convention."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
