"""Lexical retrieval over chunked documents."""

from paper2slides.retrieval.index import (
    IndexMetadata,
    RetrievalIndex,
    SearchResult,
    tokenize,
)

__all__ = [
    "IndexMetadata",
    "RetrievalIndex",
    "SearchResult",
    "tokenize",
]
