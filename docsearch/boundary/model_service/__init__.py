"""
Model service boundary.

HTTP clients for the external embedding and generation service.
"""

from docsearch.boundary.model_service.embedding_client import EmbeddingClient
from docsearch.boundary.model_service.generation_client import GenerationClient

__all__ = ["EmbeddingClient", "GenerationClient"]
