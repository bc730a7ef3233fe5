"""Sender correlation logging context for tracing conversations across modules.

Provides a sender_id-aware logger that attaches the current conversation's
sender to every log message, making it easy to follow one customer (or
support agent) through dispatcher, handlers and relay.

Usage:
    from medrelay.logging_context import get_sender_logger, set_sender_id

    set_sender_id("2348012345678")
    logger = get_sender_logger(__name__)
    logger.info("Processing message")  # -> [2348012345678] Processing message
"""

import logging
from contextvars import ContextVar

_sender_id: ContextVar[str] = ContextVar("sender_id", default="-")


def set_sender_id(sender_id: str) -> None:
    """Set the correlation sender for the current async context."""
    _sender_id.set(sender_id)


class SenderIdFilter(logging.Filter):
    """Injects sender_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.sender_id = _sender_id.get()  # type: ignore[attr-defined]
        return True


def get_sender_logger(name: str) -> logging.Logger:
    """Return a logger with the SenderIdFilter attached.

    The filter adds ``sender_id`` to each record so formatters can
    include ``%(sender_id)s`` in their format string.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, SenderIdFilter) for f in logger.filters):
        logger.addFilter(SenderIdFilter())
    return logger
