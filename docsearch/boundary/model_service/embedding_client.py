"""
Embedding client.

Turns text into embedding vectors through the model service. Transient
failures are retried with exponential backoff; permanent failures fail
fast without consuming retries; batches tolerate per-item failures.

Dependencies: httpx, tenacity, docsearch.configs
System role: Embedding generation for ingestion and semantic search
"""

import asyncio
import logging
from typing import Any, Sequence

from docsearch.boundary.model_service.http_base import ModelServiceHTTP
from docsearch.boundary.model_service.response_parsing import parse_embedding_response
from docsearch.core.exceptions import (
    EmbeddingError,
    EmbeddingGenerationFailed,
    EmbeddingRejectedError,
    InvalidInputError,
    MalformedResponseError,
    TransientServiceError,
)

logger = logging.getLogger(__name__)


class EmbeddingClient(ModelServiceHTTP):
    """
    Client for the embedding endpoint.

    A 404 on the primary route triggers one call to the alternate
    (OpenAI-compatible) route within the same attempt; a second 404 means
    the model or route does not exist and is treated as permanent.

    Usage:
        async with EmbeddingClient(settings.model_service) as client:
            vector = await client.embed("some text")
    """

    async def embed(self, text: Any) -> list[float]:
        """
        Embed one text.

        Args:
            text: Text to embed; truncated to max_text_length characters

        Returns:
            list[float]: Embedding vector

        Raises:
            InvalidInputError: Empty or non-string input (no request sent)
            EmbeddingRejectedError: Service rejected the request
            MalformedResponseError: Response shape not recognized
            EmbeddingGenerationFailed: Transient failures exhausted every attempt
        """
        if not isinstance(text, str) or not text.strip():
            raise InvalidInputError(
                "Embedding input must be a non-empty string",
                details={"type": type(text).__name__},
            )
        prompt = text[: self._settings.max_text_length]

        attempts = 0
        try:
            async for attempt in self._retrying("embed"):
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    return await self._embed_once(prompt)
        except TransientServiceError as e:
            logger.error(
                f"{__name__}:embed - Embedding failed after {attempts} attempts",
                extra={"attempts": attempts, "error": str(e)},
            )
            raise EmbeddingGenerationFailed(
                f"Embedding failed after {attempts} attempts",
                last_error=e,
                attempts=attempts,
            ) from e
        raise EmbeddingGenerationFailed("Embedding retry loop ended without a result", attempts=attempts)

    async def _embed_once(self, prompt: str) -> list[float]:
        model = self._settings.embedding_model
        response = await self._post(
            self._settings.embeddings_path,
            {"model": model, "prompt": prompt},
        )

        if response.status_code == 404:
            logger.warning(
                f"{__name__}:_embed_once - {self._settings.embeddings_path} returned 404, "
                f"trying {self._settings.alternate_embeddings_path}"
            )
            response = await self._post(
                self._settings.alternate_embeddings_path,
                {"model": model, "input": prompt},
            )
            if response.status_code == 404:
                raise EmbeddingRejectedError(
                    f"Embedding model or route not found: {model}",
                    status_code=404,
                    details={"model": model},
                )

        if response.status_code >= 400:
            raise EmbeddingRejectedError(
                f"Embedding request rejected with {response.status_code}",
                status_code=response.status_code,
                details={"model": model, "body": response.text[:200]},
            )

        data = self._json(response, MalformedResponseError)
        return parse_embedding_response(data)

    async def embed_batch(
        self,
        texts: Sequence[Any],
    ) -> tuple[list[list[float] | None], list[EmbeddingError | None]]:
        """
        Embed many texts, tolerating per-item failures.

        Args:
            texts: Texts to embed

        Returns:
            tuple: (vectors, errors), both the length of texts. A failed slot
            holds None in vectors and the exception in errors.
        """
        semaphore = asyncio.Semaphore(self._settings.batch_concurrency)

        async def _one(text: Any) -> tuple[list[float] | None, EmbeddingError | None]:
            async with semaphore:
                try:
                    return await self.embed(text), None
                except EmbeddingError as e:
                    return None, e

        outcomes = await asyncio.gather(*(_one(text) for text in texts))
        vectors = [vector for vector, _ in outcomes]
        errors = [error for _, error in outcomes]

        failed = sum(1 for e in errors if e is not None)
        if failed:
            logger.warning(
                f"{__name__}:embed_batch - {failed}/{len(texts)} embeddings failed",
                extra={"failed": failed, "total": len(texts)},
            )
        return vectors, errors
