"""
docsearch exception hierarchy.

Errors are grouped by the layer that raises them: input validation, the
model service, storage and queue, document processing and retrieval.
Each carries a ``details`` dict that ends up in the structured log
record, and the model-service branch is split into transient (retried)
and permanent (not retried) failures.

Dependencies: None (pure domain layer)
System role: Error contract between boundary, core and workers
"""

from typing import Any


def _with_context(details: dict[str, Any] | None, **context: Any) -> dict[str, Any]:
    merged = dict(details or {})
    merged.update({key: value for key, value in context.items() if value is not None})
    return merged


class DocSearchError(Exception):
    """
    Root of every docsearch error.

    Attributes:
        message: Text without the details suffix, safe for user-facing output
        details: Context for logs (ids, status codes, file types)
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if not self.details:
            return self.message
        return f"{self.message} | Details: {self.details}"


class ValidationError(DocSearchError):
    """Bad caller input; never retried. ``details["field"]`` names the culprit."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=_with_context(details, field=field))


class InvalidJobPayloadError(ValidationError):
    """Queue message that does not decode into an IngestionJob."""


# Model service


class ServiceError(DocSearchError):
    """Failed call to the model service; status_code is the HTTP status when one arrived."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.status_code = status_code
        super().__init__(message, details=_with_context(details, status_code=status_code))


class TransientServiceError(ServiceError):
    """Timeout, connection reset, 5xx or 429. Retried with backoff."""


class PermanentServiceError(ServiceError):
    """Auth failure, unknown model or unusable response. Never retried."""


class GenerationError(PermanentServiceError):
    """Text generation gave no usable answer."""


class EmbeddingError(DocSearchError):
    """Base class for embedding failures."""


class InvalidInputError(EmbeddingError, ValidationError):
    """Embedding input is empty or not a string."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, field="text", details=details)


class EmbeddingRejectedError(EmbeddingError, PermanentServiceError):
    """The service refused the request (400/401/403/422, or 404 on both routes)."""


class MalformedResponseError(EmbeddingError, PermanentServiceError):
    """The response body matches none of the known embedding shapes."""


class EmbeddingGenerationFailed(EmbeddingError):
    """
    Every attempt ended in a transient failure.

    Attributes:
        attempts: Requests made before giving up
        last_error: Error of the final attempt
    """

    def __init__(
        self,
        message: str,
        last_error: BaseException | None = None,
        attempts: int = 0,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.last_error = last_error
        self.attempts = attempts
        last = f"{type(last_error).__name__}: {last_error}" if last_error is not None else None
        super().__init__(
            message,
            details=_with_context(details, attempts=attempts, last_error=last),
        )


# Storage and queue


class StorageConstraintError(DocSearchError):
    """A write broke a unique or foreign key constraint; the transaction is rolled back."""

    def __init__(
        self,
        message: str,
        table: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=_with_context(details, table=table))


class QueueConnectionError(DocSearchError):
    """The Redis broker is unreachable. Fatal for the worker pool."""


class JobExhaustedError(DocSearchError):
    """A document failed again after its last permitted retry."""

    def __init__(
        self,
        document_id: str,
        retry_count: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.document_id = document_id
        self.retry_count = retry_count
        super().__init__(
            f"Document {document_id} exhausted retries after {retry_count} attempts",
            details=_with_context(details, document_id=document_id, retry_count=retry_count),
        )


# Document processing


class DocumentProcessingError(DocSearchError):
    """Ingestion of one document failed."""

    def __init__(
        self,
        message: str,
        document_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=_with_context(details, document_id=document_id))


class ParsingError(DocumentProcessingError):
    """
    Text could not be extracted from the stored file.

    Covers missing files, unsupported MIME types, loader errors and files
    that yield no text. ``details["file_type"]`` holds the MIME type.
    """

    def __init__(
        self,
        message: str,
        document_id: str | None = None,
        file_type: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            document_id=document_id,
            details=_with_context(details, file_type=file_type),
        )


# Retrieval


class RetrievalError(DocSearchError):
    """A search strategy failed; ``details["search_type"]`` says which."""

    def __init__(
        self,
        message: str,
        search_type: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=_with_context(details, search_type=search_type))


class SemanticUnavailableError(RetrievalError):
    """No query embedding could be produced, so semantic ranking is impossible."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, search_type="semantic", details=details)
