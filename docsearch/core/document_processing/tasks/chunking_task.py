"""
Sentence-aware text chunking.

Splits extracted text into overlapping, size-bounded fragments. Sentences
are accumulated until the next one would overflow chunk_size; each new
fragment is seeded with the tail of the previous one so that context
spanning a boundary stays retrievable.

Dependencies: re (stdlib), pydantic models
System role: Second stage of document ingestion pipeline
"""

import logging
import re

from docsearch.core.document_processing.models.fragment import Fragment

logger = logging.getLogger(__name__)

# Punctuation-terminated spans, plus a trailing span without punctuation
SENTENCE_PATTERN = re.compile(r"[^.!?]+[.!?]+|[^.!?]+$")

PAGE_PATTERN = re.compile(r"\b(?:page|p\.)\s*(\d+)", re.IGNORECASE)
TITLE_START_PATTERN = re.compile(r"^[A-Z0-9]")
IMAGE_PATTERN = re.compile(r"\b(?:figure|image|photo|diagram)\b", re.IGNORECASE)
TABLE_PATTERN = re.compile(r"\b(?:table|column|row)\b", re.IGNORECASE)


class ChunkingTask:
    """Split text into overlapping fragments with metadata hints."""

    def __init__(
        self,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
        min_chunk_length: int = 50,
    ) -> None:
        """
        Initialize chunking task.

        Args:
            chunk_size: Maximum fragment size in characters
            chunk_overlap: Trailing characters carried into the next fragment
            min_chunk_length: Shorter fragments are dropped

        Raises:
            ValueError: If overlap is not smaller than chunk_size
        """
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if not 0 <= chunk_overlap < chunk_size:
            raise ValueError("chunk_overlap must be in [0, chunk_size)")
        self._chunk_size = chunk_size
        self._chunk_overlap = chunk_overlap
        self._min_chunk_length = min_chunk_length

    def split(self, text: str) -> list[Fragment]:
        """
        Split text into fragments.

        Output is deterministic for identical input. Fragment indices are
        0-based and contiguous over the fragments that survive the minimum
        length filter.

        Args:
            text: Extracted document text

        Returns:
            list[Fragment]: Fragments in document order (possibly empty)
        """
        if not text or not text.strip():
            return []

        raw_chunks = self._accumulate(self._sentences(text))

        fragments: list[Fragment] = []
        for raw in raw_chunks:
            content = raw.strip()
            if len(content) < self._min_chunk_length:
                continue
            fragments.append(self._build_fragment(len(fragments), content))

        logger.debug(
            f"{__name__}:split - Produced {len(fragments)} fragments",
            extra={"raw_chunks": len(raw_chunks), "text_length": len(text)},
        )
        return fragments

    def _sentences(self, text: str) -> list[str]:
        sentences: list[str] = []
        for match in SENTENCE_PATTERN.finditer(text):
            sentence = match.group(0).strip()
            if not sentence:
                continue
            # A single sentence longer than a fragment is cut into fragment-sized pieces
            if len(sentence) > self._chunk_size:
                sentences.extend(
                    sentence[i : i + self._chunk_size]
                    for i in range(0, len(sentence), self._chunk_size)
                )
            else:
                sentences.append(sentence)
        return sentences

    def _accumulate(self, sentences: list[str]) -> list[str]:
        chunks: list[str] = []
        current = ""
        for sentence in sentences:
            candidate = f"{current} {sentence}" if current else sentence
            if len(candidate) <= self._chunk_size or not current:
                current = candidate
                continue

            chunks.append(current)
            current = self._seed(current, sentence)

        if current:
            chunks.append(current)
        return chunks

    def _seed(self, closed: str, sentence: str) -> str:
        """Start a fragment with the tail of the closed one, bounded by chunk_size."""
        if self._chunk_overlap == 0:
            return sentence
        room = self._chunk_size - len(sentence) - 1
        tail_length = min(self._chunk_overlap, room)
        if tail_length <= 0:
            return sentence
        tail = closed[-tail_length:].lstrip()
        return f"{tail} {sentence}" if tail else sentence

    def _build_fragment(self, index: int, content: str) -> Fragment:
        return Fragment(
            index=index,
            content=content,
            page_number=extract_page_number(content),
            section_title=extract_section_title(content),
            metadata={
                "word_count": len(content.split()),
                "has_images": bool(IMAGE_PATTERN.search(content)),
                "has_tables": bool(TABLE_PATTERN.search(content)),
            },
        )


def extract_page_number(content: str) -> int | None:
    """First 'page N' or 'p. N' hint in the text, if any."""
    match = PAGE_PATTERN.search(content)
    if not match:
        return None
    try:
        return int(match.group(1))
    except ValueError:
        return None


def extract_section_title(content: str) -> str | None:
    """
    Guess a section heading from the first three lines.

    A heading is 6-99 characters, starts with an uppercase letter or digit
    and does not end with a period.
    """
    for line in content.split("\n")[:3]:
        line = line.strip()
        if 5 < len(line) < 100 and TITLE_START_PATTERN.match(line) and not line.endswith("."):
            return line
    return None
