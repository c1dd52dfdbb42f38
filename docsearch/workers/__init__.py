"""
Ingestion workers.

Asyncio worker pool consuming the Redis job queue, the per-job ingestion
task, the retry policy and the stuck-job monitor.

Dependencies: docsearch.boundary, docsearch.application
System role: Background document processing
"""
