"""Slide generation pipeline stages and orchestration."""

from paper2slides.pipeline.image_synthesizer import ImageSynthesizer
from paper2slides.pipeline.models import (
    Complexity,
    ContentSummary,
    GenerationResult,
    GenerationStats,
    ImageGenerationRequest,
    ImageGenerationResult,
    ImageMetadata,
    LayoutType,
    OutlineSection,
    PipelineConfig,
    PipelineMode,
    PipelineStage,
    ProgressEvent,
    Resolution,
    SlideBlueprint,
    SlideContent,
    SlideLength,
    Theme,
)
from paper2slides.pipeline.orchestrator import PipelineOrchestrator
from paper2slides.pipeline.planner import Planner
from paper2slides.pipeline.summarizer import Summarizer

__all__ = [
    "Complexity",
    "ContentSummary",
    "GenerationResult",
    "GenerationStats",
    "ImageGenerationRequest",
    "ImageGenerationResult",
    "ImageMetadata",
    "ImageSynthesizer",
    "LayoutType",
    "OutlineSection",
    "PipelineConfig",
    "PipelineMode",
    "PipelineOrchestrator",
    "PipelineStage",
    "Planner",
    "ProgressEvent",
    "Resolution",
    "SlideBlueprint",
    "SlideContent",
    "SlideLength",
    "Summarizer",
]
