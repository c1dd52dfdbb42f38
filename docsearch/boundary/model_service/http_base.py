"""
Shared HTTP plumbing for model service clients.

Owns the httpx.AsyncClient, maps transport failures and status codes onto
the transient/permanent error split, and builds the tenacity retry policy.

Dependencies: httpx, tenacity, docsearch.configs
System role: Transport layer for the embedding and generation clients
"""

import logging
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from docsearch.configs.model_service import ModelServiceSettings
from docsearch.core.exceptions import PermanentServiceError, TransientServiceError

logger = logging.getLogger(__name__)


def is_transient_status(status_code: int) -> bool:
    """5xx, 429 and 408 are worth retrying."""
    return status_code >= 500 or status_code in (408, 429)


class ModelServiceHTTP:
    """
    Base class for clients of the model service.

    Subclasses call _post and receive either a 2xx/4xx response or a
    TransientServiceError for timeouts, transport errors and retryable
    status codes.
    """

    def __init__(
        self,
        settings: ModelServiceSettings,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the HTTP client.

        Args:
            settings: Model service settings
            client: Pre-built client (tests inject one with a MockTransport)
        """
        self._settings = settings
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=settings.base_url,
            timeout=httpx.Timeout(settings.timeout),
            headers=self._default_headers(settings),
        )

    @staticmethod
    def _default_headers(settings: ModelServiceSettings) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if settings.api_key:
            headers["Authorization"] = f"Bearer {settings.api_key}"
        return headers

    def _retrying(self, operation: str) -> AsyncRetrying:
        """Retry policy: transient errors only, exponential backoff, bounded attempts."""

        def _log_retry(retry_state: RetryCallState) -> None:
            exc = retry_state.outcome.exception() if retry_state.outcome else None
            logger.warning(
                f"{__name__}:{operation} - Retry {retry_state.attempt_number}/"
                f"{self._settings.max_retries} after transient error: {exc}"
            )

        return AsyncRetrying(
            stop=stop_after_attempt(self._settings.max_retries),
            wait=wait_exponential(
                multiplier=self._settings.retry_delay,
                max=self._settings.retry_delay_max,
            ),
            retry=retry_if_exception_type(TransientServiceError),
            before_sleep=_log_retry,
            reraise=True,
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise TransientServiceError(
                f"Model service timed out on {path}",
                details={"path": path, "error": type(e).__name__},
            ) from e
        except httpx.TransportError as e:
            raise TransientServiceError(
                f"Model service unreachable on {path}: {e}",
                details={"path": path, "error": type(e).__name__},
            ) from e

        if is_transient_status(response.status_code):
            raise TransientServiceError(
                f"Model service returned {response.status_code} on {path}",
                status_code=response.status_code,
                details={"path": path, "body": response.text[:200]},
            )
        return response

    async def _post(self, path: str, payload: dict[str, Any]) -> httpx.Response:
        return await self._request("POST", path, json=payload)

    @staticmethod
    def _json(response: httpx.Response, error_cls: type[PermanentServiceError]) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise error_cls(
                "Model service returned a non-JSON body",
                status_code=response.status_code,
                details={"body": response.text[:200]},
            ) from e

    async def is_available(self) -> bool:
        """
        Probe the service version endpoint.

        Returns:
            bool: True if the service answered 200
        """
        try:
            response = await self._client.get(self._settings.version_path, timeout=5.0)
        except httpx.HTTPError as e:
            logger.warning(f"{__name__}:is_available - Model service unreachable: {e}")
            return False
        return response.status_code == 200

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
