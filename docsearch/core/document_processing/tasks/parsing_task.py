"""
Text extraction task using LangChain document loaders.

Selects a loader by MIME type (PDF, DOCX, plain text) and returns the
concatenated page text.

Dependencies: langchain_community.document_loaders
System role: First stage of document ingestion pipeline
"""

from pathlib import Path

from langchain_community.document_loaders import Docx2txtLoader, PyPDFLoader, TextLoader
from langchain_core.documents import Document

from docsearch.core.exceptions import ParsingError

PDF_MIME_TYPES = frozenset({"application/pdf"})
DOCX_MIME_TYPES = frozenset({
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
})
TEXT_MIME_TYPES = frozenset({"text/plain", "text/markdown"})

SUPPORTED_MIME_TYPES = PDF_MIME_TYPES | DOCX_MIME_TYPES | TEXT_MIME_TYPES


class ParsingTask:
    """Extract text from PDF, DOCX and plain-text documents."""

    def load(self, file_path: str, mime_type: str) -> list[Document]:
        """
        Load a file into LangChain Documents.

        Args:
            file_path: Path to the raw document
            mime_type: Content type recorded at upload

        Returns:
            list[Document]: One document per page (PDF) or per file

        Raises:
            ParsingError: Missing file, unsupported type or loader failure
        """
        path = Path(file_path)
        if not path.exists():
            raise ParsingError(f"File not found: {file_path}", file_type=mime_type)

        mime = (mime_type or "").split(";")[0].strip().lower()
        if mime in PDF_MIME_TYPES:
            loader = PyPDFLoader(str(path))
        elif mime in DOCX_MIME_TYPES:
            loader = Docx2txtLoader(str(path))
        elif mime in TEXT_MIME_TYPES:
            loader = TextLoader(str(path), autodetect_encoding=True)
        else:
            raise ParsingError(
                f"Unsupported file type: {mime_type}",
                file_type=mime_type,
                details={"supported": sorted(SUPPORTED_MIME_TYPES)},
            )

        try:
            return loader.load()
        except Exception as e:
            raise ParsingError(
                f"Failed to extract text: {e}",
                file_type=mime_type,
                details={"file_path": file_path},
            ) from e

    def extract_text(self, file_path: str, mime_type: str) -> str:
        """
        Extract the full text of a document.

        Raises:
            ParsingError: When loading fails or no text is extractable
        """
        documents = self.load(file_path, mime_type)
        text = "\n\n".join(doc.page_content for doc in documents if doc.page_content)
        if not text.strip():
            raise ParsingError(
                "Document contains no extractable text",
                file_type=mime_type,
                details={"file_path": file_path},
            )
        return text
