"""Data models for the generation pipeline."""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from paper2slides.config.settings import Settings, get_settings
from paper2slides.ingestion.models import CodeBlock, ImageReference, TableData
from paper2slides.retrieval.index import IndexMetadata


class LayoutType(str, Enum):
    """Slide layout templates."""

    TITLE = "title"
    CONTENT = "content"
    TWO_COLUMN = "two-column"
    IMAGE_FOCUS = "image-focus"
    QUOTE = "quote"
    COMPARISON = "comparison"


class Complexity(str, Enum):
    """Audience level of the source material."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class SlideLength(str, Enum):
    """Deck length bucket."""

    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


class Theme(str, Enum):
    """Visual theme applied to generated images."""

    ACADEMIC = "academic"
    DORAEMON = "doraemon"
    MINIMALIST = "minimalist"
    CORPORATE = "corporate"
    CREATIVE = "creative"


class Resolution(str, Enum):
    """Image resolution tier."""

    HD = "1K"
    QHD = "2K"
    UHD = "4K"


class PipelineMode(str, Enum):
    """Pipeline mode."""

    FAST = "fast"
    NORMAL = "normal"


class PipelineStage(str, Enum):
    """Stages reported through progress events."""

    INDEX = "index"
    SUMMARIZE = "summarize"
    PLAN = "plan"
    GENERATE = "generate"


@dataclass(frozen=True)
class OutlineSection:
    """A node of the document outline."""

    title: str
    level: int
    content: str = ""
    subsections: list["OutlineSection"] = field(default_factory=list)


@dataclass(frozen=True)
class ContentSummary:
    """Structured analysis of a document."""

    main_topics: list[str]
    key_points: list[str]
    suggested_slide_count: int
    estimated_duration: int  # minutes
    complexity: Complexity
    keywords: list[str]
    outline: list[OutlineSection] = field(default_factory=list)


@dataclass(frozen=True)
class SlideContent:
    """Body of a slide."""

    text: list[str] = field(default_factory=list)
    images: list[ImageReference] = field(default_factory=list)
    tables: list[TableData] = field(default_factory=list)
    code: list[CodeBlock] = field(default_factory=list)


@dataclass(frozen=True)
class SlideBlueprint:
    """Plan for a single slide."""

    slide_number: int
    title: str
    layout: LayoutType
    content: SlideContent = field(default_factory=SlideContent)
    notes: str = ""
    image_prompt: str | None = None
    estimated_tokens: int = 200


@dataclass(frozen=True)
class ImageGenerationRequest:
    """Image wanted for a slide."""

    prompt: str
    slide_number: int
    resolution: Resolution
    theme: Theme
    style: str | None = None


@dataclass(frozen=True)
class ImageMetadata:
    """Provenance of a generated image."""

    generated_at: datetime
    prompt: str
    resolution: Resolution
    retry_count: int


@dataclass(frozen=True)
class ImageGenerationResult:
    """Outcome for one image request; placeholders stand in for failures."""

    slide_number: int
    image_data: str  # base64
    mime_type: str
    metadata: ImageMetadata
    is_placeholder: bool = False


class PipelineConfig(BaseModel):
    """Options for a single pipeline run."""

    mode: PipelineMode = Field(default=PipelineMode.NORMAL, description="Pipeline mode")
    length: SlideLength = Field(default=SlideLength.MEDIUM, description="Deck length bucket")
    theme: Theme = Field(default=Theme.ACADEMIC, description="Image theme")
    resolution: Resolution = Field(default=Resolution.UHD, description="Image resolution")
    worker_count: int = Field(default=2, ge=1, description="Concurrent image requests per batch")
    embed_in_source: bool = Field(default=True, description="Embed output in the source document")
    generate_images: bool = Field(default=True, description="Run the image synthesis stage")

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "PipelineConfig":
        """Build a config from the generation defaults."""
        generation = (settings or get_settings()).generation
        return cls(
            mode=generation.default_mode,
            length=generation.default_length,
            theme=generation.default_theme,
            resolution=generation.default_resolution,
            worker_count=generation.parallel_workers,
            embed_in_source=generation.embed_in_source,
            generate_images=generation.generate_images,
        )


@dataclass(frozen=True)
class ProgressEvent:
    """Progress notification emitted by the orchestrator."""

    stage: PipelineStage
    progress: int  # 0-100
    message: str
    current_slide: int | None = None
    total_slides: int | None = None
    estimated_seconds_remaining: float | None = None


@dataclass(frozen=True)
class GenerationStats:
    """Counters for a completed run."""

    total_slides: int
    total_images: int
    total_tokens: int
    total_retries: int
    execution_seconds: float


@dataclass(frozen=True)
class GenerationResult:
    """Everything a successful run produces."""

    blueprints: list[SlideBlueprint]
    images: list[ImageGenerationResult]
    summary: ContentSummary
    index_metadata: IndexMetadata
    config: PipelineConfig
    stats: GenerationStats

    def to_dict(self) -> dict[str, Any]:
        """Plain-data form suitable for JSON encoding."""
        return {
            "blueprints": [asdict(blueprint) for blueprint in self.blueprints],
            "images": [asdict(image) for image in self.images],
            "summary": asdict(self.summary),
            "index_metadata": asdict(self.index_metadata),
            "config": self.config.model_dump(mode="json"),
            "stats": asdict(self.stats),
        }
