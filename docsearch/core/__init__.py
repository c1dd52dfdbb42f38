"""Core domain logic: document processing, retrieval and shared errors."""
