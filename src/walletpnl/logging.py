"""Structured logging for the wallet P&L API.

One analysis fans out into many concurrent price lookups and ledger
batches. Their log lines are tied back to the request that caused them
through structlog.contextvars: PnlEngine binds the wallet address and time
range with request_context(), and merge_contextvars stamps those fields on
every event emitted while the analysis runs, whichever task emits it.

Event names are snake_case (price_unresolved, enrichment_batch_failed,
pnl_analyzed) with Decimal values passed as strings.
"""

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager

import structlog

# Third-party loggers that log every outbound request or access line at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def setup_logging(log_level: str = "INFO") -> None:
    """Route structlog and stdlib logging through one root handler.

    LOG_FORMAT=json renders one JSON object per line for log shipping;
    anything else uses the coloured console renderer. Timestamps are ISO
    8601 in UTC, matching the UTC day buckets of the timeline.
    """
    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(os.environ.get("LOG_FORMAT", "console").lower()),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger with the given name."""
    return structlog.get_logger(name)


@contextmanager
def request_context(**fields: object) -> Iterator[None]:
    """Bind fields to every log line emitted inside the block."""
    structlog.contextvars.bind_contextvars(**fields)
    try:
        yield
    finally:
        structlog.contextvars.unbind_contextvars(*fields)
