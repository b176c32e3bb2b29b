"""Prometheus metrics and structured logging setup."""

import logging
import os

import structlog
from prometheus_client import Counter, Histogram

SYNC_RUNS = Counter(
    "noc_sync_runs_total",
    "Sync invocations by outcome",
    ["status"],  # completed, failed, disabled, rejected
)

SYNC_DURATION = Histogram(
    "noc_sync_duration_seconds",
    "Wall-clock duration of sync passes",
    buckets=(0.5, 1, 2.5, 5, 10, 30, 60, 120, 300),
)

# Libraries that log every request or job at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "apscheduler.executors.default")


def setup_structured_logging():
    """Configure structlog for JSON output in production, console in dev."""
    is_prod = os.getenv("ENVIRONMENT", "development") == "production"
    level = os.getenv("LOG_LEVEL", "INFO").upper()

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if is_prod:
        renderer = structlog.processors.JSONRenderer()
        shared_processors.append(structlog.processors.format_exc_info)
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
