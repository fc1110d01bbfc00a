"""Lexical retrieval over document chunks using TF-IDF scoring."""

import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone

import structlog

from paper2slides.ingestion.models import DocumentChunk

logger = structlog.get_logger(__name__)

STOP_WORDS = frozenset(
    {
        "a", "an", "and", "are", "as", "at", "be", "by", "for", "from",
        "has", "he", "in", "is", "it", "its", "of", "on", "that", "the",
        "to", "was", "will", "with", "this", "but", "they", "have", "had",
        "what", "when", "where", "who", "which", "why", "how",
    }
)  # fmt: skip

HEADER_BOOST = 1.5
RICH_CONTENT_BOOST = 1.1

# Python's \w is Unicode-aware, so non-Latin scripts survive tokenization.
NON_WORD_PATTERN = re.compile(r"[^\w\s]")


def tokenize(text: str) -> list[str]:
    """Lowercase, strip punctuation and drop stop words."""
    cleaned = NON_WORD_PATTERN.sub(" ", text.lower())
    return [token for token in cleaned.split() if token not in STOP_WORDS]


@dataclass(frozen=True)
class SearchResult:
    """A single search result with its relevance score."""

    chunk: DocumentChunk
    score: float


@dataclass(frozen=True)
class IndexMetadata:
    """Summary statistics captured when an index is built."""

    total_chunks: int
    avg_chunk_size: int
    document_length: int
    created_at: datetime


@dataclass(frozen=True)
class RetrievalIndex:
    """Immutable searchable collection of chunks.

    Build with :meth:`build`; re-indexing or clearing yields a new instance,
    so an index can be shared freely once constructed.
    """

    chunks: tuple[DocumentChunk, ...]
    metadata: IndexMetadata
    _tokens: tuple[tuple[str, ...], ...] = field(default=(), repr=False, compare=False)
    _lowered: tuple[str, ...] = field(default=(), repr=False, compare=False)

    @classmethod
    def build(cls, chunks: list[DocumentChunk]) -> "RetrievalIndex":
        """Index chunks in the given order.

        Args:
            chunks: Chunks to index, kept verbatim.

        Returns:
            New index with computed metadata.
        """
        chunks = tuple(chunks)
        total_length = sum(len(chunk.content) for chunk in chunks)
        avg_size = round(total_length / len(chunks)) if chunks else 0

        metadata = IndexMetadata(
            total_chunks=len(chunks),
            avg_chunk_size=avg_size,
            document_length=total_length,
            created_at=datetime.now(timezone.utc),
        )

        lowered = tuple(chunk.content.lower() for chunk in chunks)
        tokens = tuple(tuple(tokenize(text)) for text in lowered)

        logger.info(
            "Retrieval index built",
            total_chunks=metadata.total_chunks,
            avg_chunk_size=metadata.avg_chunk_size,
            document_length=metadata.document_length,
        )
        return cls(chunks=chunks, metadata=metadata, _tokens=tokens, _lowered=lowered)

    @classmethod
    def empty(cls) -> "RetrievalIndex":
        """Index with no chunks."""
        return cls.build([])

    def clear(self) -> "RetrievalIndex":
        """Return a fresh empty index; this instance is left untouched."""
        return RetrievalIndex.empty()

    def __len__(self) -> int:
        return len(self.chunks)

    def search(self, query: str, top_k: int = 5) -> list[DocumentChunk]:
        """Return the ``top_k`` most relevant chunks for a query."""
        return [result.chunk for result in self.search_with_scores(query, top_k)]

    def search_with_scores(self, query: str, top_k: int = 5) -> list[SearchResult]:
        """Score every chunk against a query.

        Args:
            query: Free-text query.
            top_k: Maximum number of results.

        Returns:
            Results sorted by descending score; equal scores keep chunk order.
        """
        if not self.chunks:
            return []

        terms = tokenize(query)
        idf = {term: self._idf(term) for term in set(terms)}

        results = [
            SearchResult(chunk=chunk, score=self._score(position, terms, idf))
            for position, chunk in enumerate(self.chunks)
        ]
        results.sort(key=lambda result: result.score, reverse=True)
        return results[: max(top_k, 0)]

    def _idf(self, term: str) -> float:
        # Document frequency uses substring containment on the raw lowercased text.
        containing = sum(1 for text in self._lowered if term in text)
        return math.log(len(self.chunks) / (containing + 1))

    def _score(self, position: int, terms: list[str], idf: dict[str, float]) -> float:
        chunk = self.chunks[position]
        chunk_tokens = self._tokens[position]

        score = 0.0
        for term in terms:
            if not chunk_tokens:
                continue
            tf = chunk_tokens.count(term) / len(chunk_tokens)
            score += tf * idf[term]

        # Compounds once per matching (header, term) pair.
        for header in chunk.metadata.headers:
            header_lower = header.lower()
            for term in terms:
                if term in header_lower:
                    score *= HEADER_BOOST

        if chunk.metadata.contains_image:
            score *= RICH_CONTENT_BOOST
        if chunk.metadata.contains_table:
            score *= RICH_CONTENT_BOOST
        if chunk.metadata.contains_code:
            score *= RICH_CONTENT_BOOST

        return score
