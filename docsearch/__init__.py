"""
docsearch: document ingestion pipeline and hybrid retrieval engine.

Layers:
  - configs: pydantic-settings configuration
  - observability: logging and correlation ids
  - boundary: relational store, queue broker, model service adapters
  - core: chunking, embedding, retrieval and context assembly
  - application: service orchestration for the transport layer
  - workers: ingestion worker pool and stuck-job monitor
"""

__version__ = "0.1.0"
