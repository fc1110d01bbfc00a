"""Keyword extraction by term frequency."""

import re
from collections import Counter

import structlog

logger = structlog.get_logger(__name__)

# Letters only, any script; digits and underscores break words.
WORD_PATTERN = re.compile(r"\b[^\W\d_]{4,}\b")


class KeywordExtractor:
    """Extract the most frequent words from text.

    Words are lowercased runs of at least ``min_length`` letters in any
    script, so Latin and non-Latin documents are handled alike. Ties keep
    first-occurrence order.
    """

    def __init__(self, num_keywords: int = 10, min_length: int = 4):
        """Initialize keyword extractor.

        Args:
            num_keywords: Maximum number of keywords to extract.
            min_length: Minimum word length in characters.
        """
        self.num_keywords = num_keywords
        self.min_length = min_length
        self._pattern = (
            WORD_PATTERN
            if min_length == 4
            else re.compile(rf"\b[^\W\d_]{{{min_length},}}\b")
        )

    def extract(self, text: str, top_k: int | None = None) -> list[str]:
        """Extract keywords from text.

        Args:
            text: Text to extract keywords from.
            top_k: Number of keywords to return (overrides default).

        Returns:
            List of extracted keywords, most frequent first.
        """
        return [word for word, _ in self.extract_with_scores(text, top_k)]

    def extract_with_scores(self, text: str, top_k: int | None = None) -> list[tuple[str, int]]:
        """Extract keywords with their occurrence counts.

        Args:
            text: Text to extract keywords from.
            top_k: Number of keywords to return.

        Returns:
            List of (keyword, count) tuples. Higher counts = more important.
        """
        if not text or not text.strip():
            return []

        counts = Counter(self._pattern.findall(text.lower()))
        top_k = top_k or self.num_keywords
        keywords = counts.most_common(top_k)

        logger.debug("Keywords extracted", distinct_words=len(counts), returned=len(keywords))
        return keywords

    def extract_batch(self, texts: list[str], top_k: int | None = None) -> list[list[str]]:
        """Extract keywords from multiple texts.

        Args:
            texts: List of texts to process.
            top_k: Number of keywords per text.

        Returns:
            List of keyword lists.
        """
        return [self.extract(text, top_k) for text in texts]
