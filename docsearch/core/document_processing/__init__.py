"""
Document processing pipeline.

Text extraction, chunking and embedding of uploaded documents.
"""
