"""End-to-end pipeline: index, summarize, plan, confirm, synthesize images."""

import asyncio
import inspect
import time
from collections.abc import Awaitable, Callable

import structlog

from paper2slides.config.settings import Settings, get_settings
from paper2slides.errors import (
    CancellationError,
    ConfigurationError,
    EmptyInputError,
    Paper2SlidesError,
)
from paper2slides.ingestion.chunking import MarkdownChunker
from paper2slides.pipeline.image_synthesizer import ImageSynthesizer
from paper2slides.pipeline.models import (
    GenerationResult,
    GenerationStats,
    ImageGenerationRequest,
    PipelineConfig,
    PipelineStage,
    ProgressEvent,
    SlideBlueprint,
)
from paper2slides.pipeline.planner import Planner
from paper2slides.pipeline.retry import retry_async
from paper2slides.pipeline.summarizer import Summarizer
from paper2slides.providers.base import ImageBackend, TextBackend, UsageRecordingBackend
from paper2slides.providers.factory import create_image_provider, create_text_provider
from paper2slides.retrieval.index import RetrievalIndex

logger = structlog.get_logger(__name__)

ProgressCallback = Callable[[ProgressEvent], None]
ConfirmCallback = Callable[[list[SlideBlueprint]], bool | Awaitable[bool]]

IMAGE_PROGRESS_START = 75
IMAGE_PROGRESS_END = 85


class _ProgressReporter:
    """Forward progress events, never letting the percentage go backwards."""

    def __init__(self, callback: ProgressCallback | None):
        self._callback = callback
        self._last = 0

    def __call__(self, stage: PipelineStage, progress: int, message: str, **extra) -> None:
        progress = max(self._last, min(100, progress))
        self._last = progress
        logger.info("Pipeline progress", stage=stage.value, progress=progress, message=message)
        if self._callback is not None:
            self._callback(ProgressEvent(stage=stage, progress=progress, message=message, **extra))


class PipelineOrchestrator:
    """Run the generation pipeline for one document at a time.

    Summarize and plan are retried on transient provider errors; image
    failures are absorbed by the synthesizer. After planning, an optional
    confirmation callback can cancel the run before any image work starts.
    """

    def __init__(
        self,
        text_backend: TextBackend,
        image_backend: ImageBackend | None = None,
        chunker: MarkdownChunker | None = None,
        max_retries: int = 3,
        request_timeout: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize orchestrator.

        Args:
            text_backend: Backend for summarization and planning.
            image_backend: Backend for image synthesis; required only when
                images are enabled.
            chunker: Document chunker; settings defaults when omitted.
            max_retries: Re-invocations per stage and retries per image.
            request_timeout: Deadline per backend call in seconds.
            sleep: Awaitable sleep used for backoff, injectable for tests.
        """
        self.text_backend = text_backend
        self.image_backend = image_backend
        self.chunker = chunker or MarkdownChunker()
        self.max_retries = max_retries
        self.request_timeout = request_timeout
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "PipelineOrchestrator":
        """Wire providers and chunker from settings.

        Raises:
            ConfigurationError: A selected provider is unusable.
        """
        settings = settings or get_settings()
        generation = settings.generation

        return cls(
            text_backend=create_text_provider(settings),
            image_backend=create_image_provider(settings) if generation.generate_images else None,
            chunker=MarkdownChunker(
                chunk_size=settings.chunking.size_lines,
                overlap_ratio=settings.chunking.overlap_ratio,
            ),
            max_retries=generation.auto_retry_count,
            request_timeout=generation.request_timeout_seconds,
        )

    async def run(
        self,
        document_text: str,
        config: PipelineConfig | None = None,
        on_progress: ProgressCallback | None = None,
        confirm_plan: ConfirmCallback | None = None,
    ) -> GenerationResult:
        """Generate a slide deck from a document.

        Args:
            document_text: Markdown-flavoured source text.
            config: Run options; generation defaults when omitted.
            on_progress: Receives progress events in order.
            confirm_plan: Receives the planned slides and returns (or
                resolves to) False to cancel before image synthesis.

        Returns:
            Blueprints, images, summary and run statistics.

        Raises:
            EmptyInputError: The document is blank.
            CancellationError: ``confirm_plan`` rejected the plan.
            ConfigurationError: Images are enabled without an image backend.
            ProviderError: Summarize or plan failed after all retries.
        """
        if not document_text or not document_text.strip():
            raise EmptyInputError("Document is empty", stage=PipelineStage.INDEX.value)

        config = config or PipelineConfig.from_settings()
        if config.generate_images and self.image_backend is None:
            raise ConfigurationError("Image generation is enabled but no image backend is configured")

        started = time.monotonic()
        report = _ProgressReporter(on_progress)
        text_backend = UsageRecordingBackend(self.text_backend)
        stage_retries = 0

        def count_retry(_: int) -> None:
            nonlocal stage_retries
            stage_retries += 1

        log = logger.bind(mode=config.mode.value, length=config.length.value)
        log.info("Pipeline started", document_chars=len(document_text))

        # Index
        report(PipelineStage.INDEX, 10, "Analyzing document structure...")
        index = RetrievalIndex.build(self.chunker.chunk(document_text))
        report(PipelineStage.INDEX, 25, "Retrieval index created")

        # Summarize
        report(PipelineStage.SUMMARIZE, 35, "Analyzing content and extracting key points...")
        summarizer = Summarizer(text_backend, request_timeout=self.request_timeout)
        summary = await self._run_stage(
            PipelineStage.SUMMARIZE,
            lambda: summarizer.generate_summary(index),
            count_retry,
        )
        report(PipelineStage.SUMMARIZE, 50, "Content summary generated")

        # Plan
        report(PipelineStage.PLAN, 60, "Planning slide structure...")
        planner = Planner(text_backend, request_timeout=self.request_timeout)
        blueprints = await self._run_stage(
            PipelineStage.PLAN,
            lambda: planner.generate_blueprints(summary, config),
            count_retry,
        )
        report(PipelineStage.PLAN, 70, f"{len(blueprints)} slides planned", total_slides=len(blueprints))

        if confirm_plan is not None:
            answer = confirm_plan(blueprints)
            if inspect.isawaitable(answer):
                answer = await answer
            if not answer:
                log.info("Generation cancelled at plan confirmation", slide_count=len(blueprints))
                raise CancellationError("Generation cancelled by user", stage=PipelineStage.PLAN.value)

        # Generate
        images = []
        image_retries = 0
        if config.generate_images:
            report(PipelineStage.GENERATE, IMAGE_PROGRESS_START, "Generating AI images...")
            requests = [
                ImageGenerationRequest(
                    prompt=blueprint.image_prompt,
                    slide_number=blueprint.slide_number,
                    resolution=config.resolution,
                    theme=config.theme,
                )
                for blueprint in blueprints
                if blueprint.image_prompt
            ]

            if requests:
                synthesizer = ImageSynthesizer(
                    self.image_backend,
                    max_retries=self.max_retries,
                    worker_count=config.worker_count,
                    request_timeout=self.request_timeout,
                    sleep=self._sleep,
                )
                image_started = time.monotonic()

                def on_batch_complete(done: int, total: int) -> None:
                    elapsed = time.monotonic() - image_started
                    span = IMAGE_PROGRESS_END - IMAGE_PROGRESS_START
                    report(
                        PipelineStage.GENERATE,
                        IMAGE_PROGRESS_START + span * done // total,
                        f"Generated {done}/{total} images",
                        current_slide=done,
                        total_slides=total,
                        estimated_seconds_remaining=elapsed / done * (total - done),
                    )

                images = await synthesizer.generate_images(
                    requests,
                    parallel=config.worker_count > 1,
                    on_batch_complete=on_batch_complete,
                )
                image_retries = synthesizer.total_retries

            report(PipelineStage.GENERATE, IMAGE_PROGRESS_END, f"{len(images)} images generated")

        # Assemble
        report(PipelineStage.GENERATE, 90, "Assembling results")
        stats = GenerationStats(
            total_slides=len(blueprints),
            total_images=len(images),
            total_tokens=text_backend.total_tokens,
            total_retries=stage_retries + image_retries,
            execution_seconds=round(time.monotonic() - started, 3),
        )
        report(PipelineStage.GENERATE, 100, "Generation complete!")

        log.info(
            "Pipeline complete",
            slides=stats.total_slides,
            images=stats.total_images,
            tokens=stats.total_tokens,
            retries=stats.total_retries,
            seconds=stats.execution_seconds,
        )
        return GenerationResult(
            blueprints=blueprints,
            images=images,
            summary=summary,
            index_metadata=index.metadata,
            config=config,
            stats=stats,
        )

    async def _run_stage(self, stage: PipelineStage, operation, on_retry: Callable[[int], None]):
        try:
            return await retry_async(
                operation,
                max_retries=self.max_retries,
                stage=stage.value,
                sleep=self._sleep,
                on_retry=on_retry,
            )
        except Paper2SlidesError as e:
            if e.stage is None:
                e.stage = stage.value
            logger.error("Pipeline stage failed", stage=stage.value, code=e.code.value, error=e.message)
            raise
