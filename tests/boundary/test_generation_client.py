"""
Test suite for GenerationClient.

System role: Verification of the generation boundary
"""

import json

import httpx
import pytest

from docsearch.boundary.model_service.generation_client import GenerationClient
from docsearch.configs.model_service import ModelServiceSettings
from docsearch.core.exceptions import GenerationError


def _client(settings: ModelServiceSettings, handler) -> GenerationClient:
    http = httpx.AsyncClient(base_url="http://model.test", transport=httpx.MockTransport(handler))
    return GenerationClient(settings, client=http)


class TestGenerate:
    """Test suite for GenerationClient.generate()."""

    @pytest.mark.asyncio
    async def test_should_send_non_streaming_request_with_options(
        self,
        model_service_settings: ModelServiceSettings,
    ) -> None:
        # Arrange
        requests: list[httpx.Request] = []

        def _handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"response": "Use the installer."})

        client = _client(model_service_settings, _handler)

        # Act
        answer = await client.generate("Human: how?\nAssistant: ")

        # Assert
        assert answer == "Use the installer."
        body = json.loads(requests[0].content)
        assert requests[0].url.path == "/api/generate"
        assert body["stream"] is False
        assert body["model"] == model_service_settings.chat_model
        assert body["options"]["stop"] == ["Human:", "User:"]
        assert body["options"]["temperature"] == model_service_settings.temperature

    @pytest.mark.asyncio
    async def test_server_errors_should_be_retried_then_raise(
        self,
        model_service_settings: ModelServiceSettings,
    ) -> None:
        # Arrange
        calls = []

        def _handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(502)

        client = _client(model_service_settings, _handler)

        # Act
        with pytest.raises(GenerationError) as exc_info:
            await client.generate("prompt")

        # Assert
        assert len(calls) == model_service_settings.max_retries
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_unknown_model_should_raise_without_retry(
        self,
        model_service_settings: ModelServiceSettings,
    ) -> None:
        calls = []

        def _handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(404, text="model not found")

        client = _client(model_service_settings, _handler)

        with pytest.raises(GenerationError):
            await client.generate("prompt")

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_missing_response_field_should_raise(
        self,
        model_service_settings: ModelServiceSettings,
    ) -> None:
        client = _client(model_service_settings, lambda request: httpx.Response(200, json={"done": True}))

        with pytest.raises(GenerationError):
            await client.generate("prompt")
