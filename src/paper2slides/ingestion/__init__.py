"""Ingestion module for document chunking and structure extraction."""

from paper2slides.ingestion.models import (
    ChunkMetadata,
    CodeBlock,
    DocumentChunk,
    ImageReference,
    TableData,
)

__all__ = [
    "ChunkMetadata",
    "DocumentChunk",
    "ImageReference",
    "TableData",
    "CodeBlock",
]
