"""
Helpers for attaching bulky values to log records.

Embedding vectors, queue payloads and chunk text would flood a log line,
so values are summarised (collections by size, long strings clipped)
before they go into ``extra``.

Dependencies: logging (stdlib)
System role: Structured logging helpers for workers and services
"""

import logging
from typing import Any


def safe_log_value(value: Any, max_length: int = 500) -> str:
    """
    Render a value as a short string for a log record.

    Lists and tuples become "list(N items)", dicts "dict(N keys)"; strings
    longer than max_length are clipped with a note of their full length.
    Never raises.
    """
    try:
        if value is None:
            return "None"
        if isinstance(value, (list, tuple)):
            return f"{type(value).__name__}({len(value)} items)"
        if isinstance(value, dict):
            return f"dict({len(value)} keys)"

        text = value if isinstance(value, str) else str(value)
        if len(text) <= max_length:
            return text
        return f"{text[:max_length]}... (truncated, {len(text)} total)"
    except Exception as e:
        return f"<unable to log: {type(e).__name__}>"


def log_exception_with_context(
    logger: logging.Logger,
    message: str,
    exc: BaseException,
    **context,
) -> None:
    """
    Log exc at ERROR with its traceback.

    Each context item is stored on the record as ``ctx_<key>``, next to
    ``error_type`` and ``error_msg``.

    Usage:
        log_exception_with_context(logger, "Embedding failed", e, document_id=doc_id)
    """
    fields = {f"ctx_{key}": safe_log_value(value) for key, value in context.items()}
    fields["error_type"] = type(exc).__name__
    fields["error_msg"] = safe_log_value(str(exc))
    logger.error(message, exc_info=exc, extra=fields)
