"""Chunking strategies for document content."""

from paper2slides.ingestion.chunking.markdown_chunker import MarkdownChunker

__all__ = [
    "MarkdownChunker",
]
