"""
Chat service.

Answers a message with the generation model, grounded in document context
selected by the context assembler.

Dependencies: docsearch.core.retrieval, docsearch.boundary.model_service
System role: Retrieval-augmented chat orchestration
"""

import logging
from typing import Sequence

from docsearch.boundary.model_service.generation_client import GenerationClient
from docsearch.core.exceptions import GenerationError
from docsearch.core.retrieval.context_assembler import ContextAssembler
from docsearch.models.chat import (
    ChatContextRequest,
    ChatContextResponse,
    ChatMessage,
    ChatRequest,
    ChatResponse,
)
from docsearch.models.search import SearchResultItem

logger = logging.getLogger(__name__)

HISTORY_WINDOW = 5
FALLBACK_ANSWER = "I apologize, but I couldn't generate a response. Please try again."


def build_prompt(message: str, context_text: str, history: Sequence[ChatMessage]) -> str:
    """
    Build the generation prompt.

    Layout: instructions, optional CONTEXT block, the last five history
    messages as Human/Assistant turns, then the new message.
    """
    prompt = "You are a helpful AI assistant. "

    if context_text.strip():
        prompt += (
            "Use the following document context to help answer questions, "
            "but also use your general knowledge when appropriate:\n\n"
        )
        prompt += f"CONTEXT:\n{context_text}\n\n"
        prompt += (
            "Please answer based on the context above, but if the context doesn't "
            "contain relevant information, you can use your general knowledge.\n\n"
        )

    recent = list(history)[-HISTORY_WINDOW:]
    if recent:
        prompt += "Previous conversation for context:\n"
        for msg in recent:
            speaker = "Human" if msg.role == "user" else "Assistant"
            prompt += f"{speaker}: {msg.content}\n"
        prompt += "\n"

    prompt += f"Human: {message}\nAssistant: "
    return prompt


class ChatService:
    """
    Chat service for grounded Q&A.

    Coordinates context assembly, prompt building and generation.
    """

    def __init__(self, assembler: ContextAssembler, generation_client: GenerationClient) -> None:
        """
        Initialize chat service.

        Args:
            assembler: Context assembler
            generation_client: Generation model client
        """
        self._assembler = assembler
        self._generation_client = generation_client

    async def get_context(self, request: ChatContextRequest) -> ChatContextResponse:
        """Context block for a message, without generating an answer."""
        context = await self._assembler.build_context(request.message, request.document_ids)
        return ChatContextResponse(
            context_text=context.text,
            used_chunk_ids=context.used_chunk_ids,
            context_used=context.context_used,
        )

    async def answer(self, request: ChatRequest) -> ChatResponse:
        """
        Answer a chat message.

        Flow:
        1. Assemble document context for the message
        2. Build the prompt with context and recent history
        3. Generate the answer

        A generation failure yields an apology answer with generated=False
        instead of an error.
        """
        context = await self._assembler.build_context(request.message, request.document_ids)
        prompt = build_prompt(request.message, context.text, request.history)
        sources = [SearchResultItem.from_result(r) for r in context.sources]

        try:
            answer = await self._generation_client.generate(prompt)
        except GenerationError as e:
            logger.error(
                f"{__name__}:answer - Generation failed: {e.message}",
                extra={"status_code": e.status_code},
            )
            return ChatResponse(
                answer=FALLBACK_ANSWER,
                sources=sources,
                context_used=context.context_used,
                generated=False,
            )

        logger.info(
            f"{__name__}:answer - Answer generated",
            extra={"context_used": context.context_used, "sources": len(sources)},
        )
        return ChatResponse(
            answer=answer.strip() or FALLBACK_ANSWER,
            sources=sources,
            context_used=context.context_used,
        )
