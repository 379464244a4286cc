"""Structured logging for Pushboard.

Existing ``logging.getLogger(__name__)`` call sites are rendered through
structlog's ``ProcessorFormatter``; nothing changes at the call sites.

- ``text``: coloured console output for development
- ``json``: one JSON object per line for log shipping

Every entry carries the command that produced it (``service``, bound with
:func:`bind_service`) and, inside an OpenTelemetry span, its trace and span
ids.

With ``log_root`` set, JSON copies are also written to::

    logs/
      serve.log           # application loggers
      serve.access.log    # uvicorn, httpx and asyncpg
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import structlog
from opentelemetry import trace

from pushboard.config import LoggingConfig

# Third-party loggers held at WARNING on the console and split into the access log.
NOISY_LOGGERS = (
    "uvicorn.access",
    "uvicorn.error",
    "httpx",
    "httpcore",
    "asyncpg",
)


def bind_service(name: str) -> None:
    """Tag every log entry from the current context with ``service=name``."""
    structlog.contextvars.bind_contextvars(service=name)


def add_otel_context(
    logger: logging.Logger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: dict,
) -> dict:
    """Add ``trace_id``/``span_id`` when a valid span is active."""
    ctx = trace.get_current_span().get_span_context()
    if ctx.is_valid:
        event_dict["trace_id"] = format(ctx.trace_id, "032x")
        event_dict["span_id"] = format(ctx.span_id, "016x")
    return event_dict


def _pre_chain(timestamp_fmt: str) -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt=timestamp_fmt),
        add_otel_context,
        structlog.stdlib.ExtraAdder(),
    ]


def _formatter(
    renderer: structlog.types.Processor,
    pre_chain: list[structlog.types.Processor],
) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        foreign_pre_chain=pre_chain,
    )


def _json_file_handler(path: Path) -> logging.FileHandler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(_formatter(structlog.processors.JSONRenderer(), _pre_chain("iso")))
    handler.setLevel(logging.DEBUG)
    return handler


def configure_logging(
    config: LoggingConfig | None = None,
    service_name: str | None = None,
) -> None:
    """Install console (and optional file) handlers on the root logger.

    Safe to call more than once; previous root handlers are replaced.
    """
    config = config or LoggingConfig()
    if service_name:
        bind_service(service_name)

    if config.format == "json":
        pre_chain = _pre_chain("iso")
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        pre_chain = _pre_chain("%H:%M:%S")
        renderer = structlog.dev.ConsoleRenderer()

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(_formatter(renderer, pre_chain))

    root = logging.getLogger()
    for handler in root.handlers:
        handler.close()
    root.handlers = [console]
    root.setLevel(getattr(logging, config.level.upper(), logging.INFO))

    access_handler = None
    if config.log_root:
        log_root = Path(config.log_root)
        log_root.mkdir(parents=True, exist_ok=True)
        stem = service_name or "pushboard"
        root.addHandler(_json_file_handler(log_root / f"{stem}.log"))
        access_handler = _json_file_handler(log_root / f"{stem}.access.log")

    for name in NOISY_LOGGERS:
        noisy = logging.getLogger(name)
        noisy.setLevel(logging.WARNING)
        noisy.handlers = [access_handler] if access_handler is not None else []

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
