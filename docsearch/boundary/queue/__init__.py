"""Job queue boundary over a Redis list."""

from docsearch.boundary.queue.job_queue import JobQueue

__all__ = ["JobQueue"]
