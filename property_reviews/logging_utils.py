"""
Logging setup and the per-request trace logger.

Each request gets a trace id (taken from the X-Trace-Id header or generated).
Handlers build a RequestContext once per request and hand its logger to the
service functions they call, so every line logged for that request carries the
same [trace-id] prefix.
"""

import logging
import uuid
from dataclasses import dataclass, field

from .config import LOG_FORMAT, LOG_LEVEL

APP_LOGGER_NAME = "property_reviews"
UNKNOWN_TRACE_ID = "unknown"


def configure_logging() -> None:
    """Attach a stream handler to the package logger (idempotent)."""
    logger = logging.getLogger(APP_LOGGER_NAME)
    logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    if not any(getattr(h, "_property_reviews", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._property_reviews = True
        logger.addHandler(handler)


def new_trace_id() -> str:
    return str(uuid.uuid4())


class TraceLoggerAdapter(logging.LoggerAdapter):
    """Prefixes every message with the trace id it was created for."""

    def process(self, msg, kwargs):
        return f"[{self.extra['trace_id']}] {msg}", kwargs

    @property
    def trace_id(self) -> str:
        return self.extra["trace_id"]


def get_request_logger(trace_id: str | None, name: str = APP_LOGGER_NAME) -> TraceLoggerAdapter:
    return TraceLoggerAdapter(
        logging.getLogger(name), {"trace_id": trace_id or UNKNOWN_TRACE_ID}
    )


@dataclass
class RequestContext:
    trace_id: str
    log: TraceLoggerAdapter = field(repr=False)

    @classmethod
    def create(cls, trace_id: str | None) -> "RequestContext":
        trace_id = trace_id or UNKNOWN_TRACE_ID
        return cls(trace_id=trace_id, log=get_request_logger(trace_id))
