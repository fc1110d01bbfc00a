"""Metadata extraction for document content."""

from paper2slides.ingestion.metadata.keyword_extractor import KeywordExtractor

__all__ = [
    "KeywordExtractor",
]
