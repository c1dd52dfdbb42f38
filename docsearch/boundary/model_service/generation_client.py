"""
Generation client.

Produces chat answers from a prompt through the model service's
non-streaming generate endpoint.

Dependencies: httpx, tenacity, docsearch.configs
System role: Text generation for retrieval-augmented chat
"""

import logging

from docsearch.boundary.model_service.http_base import ModelServiceHTTP
from docsearch.core.exceptions import GenerationError, TransientServiceError

logger = logging.getLogger(__name__)


class GenerationClient(ModelServiceHTTP):
    """Client for the generate endpoint."""

    async def generate(self, prompt: str) -> str:
        """
        Generate a completion.

        Args:
            prompt: Full prompt including any retrieved context

        Returns:
            str: Generated text

        Raises:
            GenerationError: On rejection, malformed output or exhausted retries
        """
        s = self._settings
        payload = {
            "model": s.chat_model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": s.temperature,
                "top_p": s.top_p,
                "max_tokens": s.max_tokens,
                "stop": list(s.stop),
            },
        }

        try:
            async for attempt in self._retrying("generate"):
                with attempt:
                    response = await self._post(s.generate_path, payload)
        except TransientServiceError as e:
            raise GenerationError(
                f"Generation failed after {s.max_retries} attempts",
                status_code=e.status_code,
                details={"last_error": str(e)},
            ) from e

        if response.status_code >= 400:
            raise GenerationError(
                f"Generation request rejected with {response.status_code}",
                status_code=response.status_code,
                details={"model": s.chat_model, "body": response.text[:200]},
            )

        data = self._json(response, GenerationError)
        text = data.get("response") if isinstance(data, dict) else None
        if not isinstance(text, str):
            raise GenerationError("Generation response has no text", details={"model": s.chat_model})

        logger.info(
            f"{__name__}:generate - Generated {len(text)} chars",
            extra={"model": s.chat_model, "prompt_chars": len(prompt)},
        )
        return text
