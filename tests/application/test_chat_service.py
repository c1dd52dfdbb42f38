"""
Test suite for ChatService and build_prompt.

System role: Verification of grounded chat answers
"""

import uuid
from unittest.mock import AsyncMock

import pytest

from docsearch.application.services.chat_service import (
    FALLBACK_ANSWER,
    ChatService,
    build_prompt,
)
from docsearch.boundary.model_service.generation_client import GenerationClient
from docsearch.core.exceptions import GenerationError
from docsearch.core.retrieval.context_assembler import ContextAssembler
from docsearch.core.retrieval.models import AssembledContext, SearchResult
from docsearch.models.chat import ChatContextRequest, ChatMessage, ChatRequest


def _source() -> SearchResult:
    return SearchResult(
        chunk_id=uuid.uuid4(),
        document_id=uuid.uuid4(),
        chunk_index=2,
        content="Backups run nightly at 02:00.",
        filename="ops.md",
        score=0.88,
        search_type="semantic",
    )


@pytest.fixture
def mock_assembler() -> AsyncMock:
    """Provide mock ContextAssembler."""
    return AsyncMock(spec=ContextAssembler)


@pytest.fixture
def mock_generation() -> AsyncMock:
    """Provide mock GenerationClient."""
    return AsyncMock(spec=GenerationClient)


@pytest.fixture
def service(mock_assembler, mock_generation) -> ChatService:
    """Provide ChatService with mocked collaborators."""
    return ChatService(mock_assembler, mock_generation)


class TestBuildPrompt:
    """Test suite for build_prompt()."""

    def test_without_context_or_history(self) -> None:
        prompt = build_prompt("When do backups run?", "", [])

        assert prompt == "You are a helpful AI assistant. Human: When do backups run?\nAssistant: "

    def test_should_include_context_block(self) -> None:
        prompt = build_prompt("When?", "[Source: ops.md - Chunk 2]\nNightly.", [])

        assert "CONTEXT:\n[Source: ops.md - Chunk 2]\nNightly.\n\n" in prompt
        assert prompt.endswith("Human: When?\nAssistant: ")

    def test_should_keep_last_five_history_messages(self) -> None:
        # Arrange
        history = [
            ChatMessage(role="user" if n % 2 == 0 else "assistant", content=f"msg-{n}")
            for n in range(7)
        ]

        # Act
        prompt = build_prompt("next", "", history)

        # Assert
        assert "msg-0" not in prompt
        assert "msg-1" not in prompt
        assert "Previous conversation for context:\nHuman: msg-2\nAssistant: msg-3\n" in prompt
        assert "Human: msg-6\n\nHuman: next\nAssistant: " in prompt


class TestAnswer:
    """Test suite for ChatService.answer()."""

    @pytest.mark.asyncio
    async def test_should_answer_with_sources(
        self,
        service: ChatService,
        mock_assembler: AsyncMock,
        mock_generation: AsyncMock,
    ) -> None:
        # Arrange
        source = _source()
        mock_assembler.build_context.return_value = AssembledContext(
            text="[Source: ops.md - Chunk 2]\nBackups run nightly at 02:00.",
            used_chunk_ids=[source.chunk_id],
            context_used=True,
            sources=[source],
        )
        mock_generation.generate.return_value = "  At 02:00.  "

        # Act
        response = await service.answer(ChatRequest(message="When do backups run?"))

        # Assert
        assert response.answer == "At 02:00."
        assert response.generated is True
        assert response.context_used is True
        assert [s.chunk_id for s in response.sources] == [source.chunk_id]
        prompt = mock_generation.generate.await_args.args[0]
        assert "Backups run nightly" in prompt

    @pytest.mark.asyncio
    async def test_generation_failure_should_return_fallback(
        self,
        service: ChatService,
        mock_assembler: AsyncMock,
        mock_generation: AsyncMock,
    ) -> None:
        mock_assembler.build_context.return_value = AssembledContext()
        mock_generation.generate.side_effect = GenerationError("model down", status_code=503)

        response = await service.answer(ChatRequest(message="hello"))

        assert response.answer == FALLBACK_ANSWER
        assert response.generated is False
        assert response.context_used is False

    @pytest.mark.asyncio
    async def test_blank_answer_should_be_replaced(
        self,
        service: ChatService,
        mock_assembler: AsyncMock,
        mock_generation: AsyncMock,
    ) -> None:
        mock_assembler.build_context.return_value = AssembledContext()
        mock_generation.generate.return_value = "   "

        response = await service.answer(ChatRequest(message="hello"))

        assert response.answer == FALLBACK_ANSWER


class TestGetContext:
    """Test suite for ChatService.get_context()."""

    @pytest.mark.asyncio
    async def test_should_pass_document_filter(
        self,
        service: ChatService,
        mock_assembler: AsyncMock,
    ) -> None:
        # Arrange
        document_id = uuid.uuid4()
        chunk_id = uuid.uuid4()
        mock_assembler.build_context.return_value = AssembledContext(
            text="block", used_chunk_ids=[chunk_id], context_used=True
        )

        # Act
        response = await service.get_context(
            ChatContextRequest(message="backups", document_ids=[document_id])
        )

        # Assert
        mock_assembler.build_context.assert_awaited_once_with("backups", [document_id])
        assert response.context_text == "block"
        assert response.used_chunk_ids == [chunk_id]
        assert response.context_used is True
