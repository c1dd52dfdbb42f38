"""
Process logging setup.

One stdout handler on the root logger; each line carries the correlation
ID of the job or search that emitted it.

Dependencies: logging (stdlib)
System role: Logging bootstrap for the worker process and tests
"""

import logging
import sys

from docsearch.observability.correlation import get_correlation_id

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] %(message)s"

# Libraries that log every request or statement at INFO
_QUIET_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine", "redis")


class CorrelationIdFilter(logging.Filter):
    """Copy the current correlation ID onto the record as ``correlation_id``."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id()
        return True


def configure_logging(level: str = "INFO") -> None:
    """
    Install the docsearch handler on the root logger.

    Safe to call repeatedly: handlers left by an earlier call are removed
    first. Unknown level names fall back to INFO.
    """
    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(CorrelationIdFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
