from __future__ import annotations

import atexit
import copy
import logging
import queue
import sys
from datetime import datetime, timezone
from logging.handlers import QueueHandler, QueueListener, TimedRotatingFileHandler
from typing import Any, Optional

import structlog

from linkaudit.infrastructure.config.schema import AppConfig

log = structlog.get_logger(__name__)

# Chatty transport loggers; their DEBUG output would drown the audit file.
_QUIET_LOGGERS: tuple[str, ...] = ("httpx", "httpcore", "sqlalchemy.engine")


def _add_record_created_timestamp_utc(
    _: Any, __: Any, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """
    Ensure timestamps for non-structlog (foreign) LogRecords match the time when the record
    was created, not the time when the background listener formats it.

    ProcessorFormatter sets event_dict["_record"] for foreign records.
    """
    record = event_dict.get("_record")
    if isinstance(record, logging.LogRecord):
        dt = datetime.fromtimestamp(record.created, tz=timezone.utc)
        event_dict["timestamp"] = dt.isoformat().replace("+00:00", "Z")
    return event_dict


_FOREIGN_PRE_CHAIN: list[structlog.typing.Processor] = [
    structlog.contextvars.merge_contextvars,
    _add_record_created_timestamp_utc,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
]

_QUEUE_LISTENER: Optional[QueueListener] = None


def _build_formatter(renderer: structlog.typing.Processor) -> logging.Formatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_FOREIGN_PRE_CHAIN,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )


def build_console_handler(config: AppConfig) -> logging.Handler:
    """stderr handler filtered at the configured (verbosity) level."""
    if config.log_format == "json":
        renderer: structlog.typing.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(_build_formatter(renderer))
    handler.setLevel(config.log_level)
    return handler


def build_file_handler(config: AppConfig) -> Optional[logging.Handler]:
    """Daily rolling JSON-lines file that records every severity.

    Returns None when ``log_dir`` is unset. Creates the directory.
    """
    if config.log_dir is None:
        return None

    config.log_dir.mkdir(parents=True, exist_ok=True)
    handler = TimedRotatingFileHandler(
        config.log_dir / config.log_file_name,
        when="midnight",
        encoding="utf-8",
        delay=True,
    )
    handler.setFormatter(_build_formatter(structlog.processors.JSONRenderer()))
    handler.setLevel(logging.DEBUG)
    return handler


def _stop_async_listener() -> None:
    global _QUEUE_LISTENER
    if _QUEUE_LISTENER is not None:
        try:
            _QUEUE_LISTENER.stop()
            for handler in _QUEUE_LISTENER.handlers:
                handler.close()
        finally:
            _QUEUE_LISTENER = None


class _StructlogPreservingQueueHandler(QueueHandler):
    """QueueHandler that leaves structlog event dicts (record.msg) intact."""

    def prepare(self, record: logging.LogRecord) -> logging.LogRecord:
        # QueueHandler.prepare() would normally do record.msg = record.getMessage(),
        # which breaks dict messages for ProcessorFormatter.
        return copy.copy(record)


def _enable_async_logging(handlers: list[logging.Handler]) -> None:
    """
    Route ALL stdlib logging through a QueueHandler; emit via QueueListener in a background thread.

    Keeps file and console I/O off the event loop thread while probes run.
    """
    global _QUEUE_LISTENER

    _stop_async_listener()

    q: queue.Queue[logging.LogRecord] = queue.Queue()  # unbounded; non-dropping
    queue_handler = _StructlogPreservingQueueHandler(q)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(queue_handler)
    # Root passes everything; each handler applies its own level.
    root.setLevel(logging.DEBUG)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _QUEUE_LISTENER = QueueListener(q, *handlers, respect_handler_level=True)
    _QUEUE_LISTENER.start()
    atexit.register(_stop_async_listener)


def shutdown_logging() -> None:
    """Flush queued records and close handlers (idempotent)."""
    _stop_async_listener()


def configure_logging(config: AppConfig) -> list[logging.Handler]:
    """
    Configure structlog + stdlib logging.

    The console shows ``config.log_level`` and above; the rolling log file
    (if ``config.log_dir`` is set) always receives every severity.
    Returns the installed output handlers.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            # Timestamp at log-call time for structlog-originated events
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handlers: list[logging.Handler] = [build_console_handler(config)]
    file_handler = build_file_handler(config)
    if file_handler is not None:
        handlers.append(file_handler)

    _enable_async_logging(handlers)

    log.debug(
        "logging_configured",
        log_format=config.log_format,
        log_level=config.log_level,
        log_dir=str(config.log_dir) if config.log_dir is not None else None,
    )
    return handlers
