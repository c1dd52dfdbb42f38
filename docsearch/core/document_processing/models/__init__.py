"""
Models for the document processing pipeline.

Exports: Fragment, PipelineResult, IngestionJob
"""

from .fragment import Fragment
from .job_message import IngestionJob
from .pipeline_result import PipelineResult

__all__ = [
    "Fragment",
    "IngestionJob",
    "PipelineResult",
]
