"""Worker task modules."""

from docsearch.workers.tasks.document_ingestion import DocumentIngestionTask, TaskOutcome

__all__ = ["DocumentIngestionTask", "TaskOutcome"]
