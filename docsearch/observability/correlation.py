"""
Per-task correlation IDs.

Workers set an ID derived from the document and attempt
("doc-1a2b3c4d-r1"); search calls get a random one. The value lives in a
ContextVar, so every asyncio task sees only its own ID.

Dependencies: contextvars
System role: Tying log lines to the job or search that produced them
"""

import uuid
from contextvars import ContextVar

_NO_ID = "-"

correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="")


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Use correlation_id (or a fresh 12-hex-digit ID) for the current task."""
    value = correlation_id or uuid.uuid4().hex[:12]
    correlation_id_ctx.set(value)
    return value


def get_correlation_id() -> str:
    """ID of the current task, "-" outside any job or search."""
    return correlation_id_ctx.get() or _NO_ID


def clear_correlation_id() -> None:
    correlation_id_ctx.set("")
