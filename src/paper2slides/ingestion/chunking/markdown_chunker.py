"""Sliding-window line chunker for Markdown documents."""

import structlog

from paper2slides.config.settings import get_settings
from paper2slides.ingestion import markdown
from paper2slides.ingestion.models import ChunkMetadata, DocumentChunk

logger = structlog.get_logger(__name__)


class MarkdownChunker:
    """Split text into overlapping windows of lines.

    Each window of ``chunk_size`` lines becomes a chunk tagged with its line
    range, the headings it contains and whether it holds code, tables or
    images. Consecutive windows share ``floor(chunk_size * overlap_ratio)``
    lines.
    """

    def __init__(
        self,
        chunk_size: int | None = None,
        overlap_ratio: float | None = None,
    ):
        """Initialize chunker with configuration.

        Args:
            chunk_size: Window size in lines.
            overlap_ratio: Share of each window repeated in the next (0-1).

        Raises:
            ValueError: If the window size or ratio is out of range.
        """
        settings = get_settings()

        self.chunk_size = chunk_size if chunk_size is not None else settings.chunking.size_lines
        self.overlap_ratio = (
            overlap_ratio if overlap_ratio is not None else settings.chunking.overlap_ratio
        )

        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be at least 1, got {self.chunk_size}")
        if not 0 <= self.overlap_ratio <= 1:
            raise ValueError(f"overlap_ratio must be between 0 and 1, got {self.overlap_ratio}")

    @property
    def overlap_lines(self) -> int:
        """Lines shared between consecutive windows."""
        return int(self.chunk_size * self.overlap_ratio)

    @property
    def step(self) -> int:
        """Window advance in lines, never below one."""
        step = self.chunk_size - self.overlap_lines
        if step < 1:
            logger.warning(
                "Overlap consumes the whole window, advancing one line at a time",
                chunk_size=self.chunk_size,
                overlap_lines=self.overlap_lines,
            )
            return 1
        return step

    def chunk(self, text: str) -> list[DocumentChunk]:
        """Chunk a document.

        Args:
            text: Full document text.

        Returns:
            Chunks in document order; whitespace-only windows are skipped.
        """
        lines = text.split("\n")
        total_lines = len(lines)
        step = self.step

        chunks: list[DocumentChunk] = []
        start = 0

        while start < total_lines:
            end = min(start + self.chunk_size, total_lines)
            content = "\n".join(lines[start:end])

            if content.strip():
                chunks.append(self._build_chunk(len(chunks), content, start, end))

            if end >= total_lines:
                break
            start += step

        logger.info(
            "Document chunking complete",
            total_lines=total_lines,
            num_chunks=len(chunks),
            chunk_size=self.chunk_size,
            overlap_lines=self.overlap_lines,
        )
        return chunks

    def _build_chunk(self, index: int, content: str, start: int, end: int) -> DocumentChunk:
        metadata = ChunkMetadata(
            chunk_index=index,
            start_line=start + 1,
            end_line=end,
            headers=tuple(markdown.extract_headers(content)),
            contains_code=markdown.contains_code(content),
            contains_table=markdown.contains_table(content),
            contains_image=markdown.contains_image(content),
        )
        return DocumentChunk(id=f"chunk-{index}", content=content, metadata=metadata)
