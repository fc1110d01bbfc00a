"""Data models for document ingestion."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ImageReference:
    """An image referenced from document or slide content."""

    src: str
    alt: str = "Image"
    caption: str | None = None
    width: int | None = None
    height: int | None = None


@dataclass(frozen=True)
class TableData:
    """A pipe-delimited table."""

    headers: list[str]
    rows: list[list[str]] = field(default_factory=list)
    caption: str | None = None


@dataclass(frozen=True)
class CodeBlock:
    """A fenced code block."""

    language: str
    code: str
    caption: str | None = None


@dataclass(frozen=True)
class ChunkMetadata:
    """Positional and structural metadata for a chunk."""

    chunk_index: int
    start_line: int  # 1-based
    end_line: int  # 1-based, inclusive
    headers: tuple[str, ...] = ()
    contains_code: bool = False
    contains_table: bool = False
    contains_image: bool = False


@dataclass(frozen=True)
class DocumentChunk:
    """A contiguous span of document lines ready for indexing."""

    id: str
    content: str
    metadata: ChunkMetadata
    embedding: tuple[float, ...] | None = None  # reserved, lexical retrieval only

    @property
    def line_count(self) -> int:
        """Number of document lines covered by the chunk."""
        return self.metadata.end_line - self.metadata.start_line + 1
