"""Unit tests for the pipeline orchestrator."""

import asyncio
import json

import pytest

from paper2slides.config.settings import (
    GenerationSettings,
    ProviderSelectionSettings,
    Settings,
)
from paper2slides.errors import (
    CancellationError,
    ConfigurationError,
    EmptyInputError,
    ErrorCode,
    ProviderError,
)
from paper2slides.ingestion.chunking import MarkdownChunker
from paper2slides.pipeline import PipelineOrchestrator
from paper2slides.pipeline.models import (
    LayoutType,
    PipelineConfig,
    PipelineStage,
    Resolution,
    Theme,
)
from paper2slides.providers.bedrock_provider import BedrockProvider


@pytest.fixture
def chunker():
    return MarkdownChunker(chunk_size=8, overlap_ratio=0.25)


@pytest.fixture
def make_orchestrator(make_text_backend, make_image_backend, chunker, no_sleep):
    def _make(text_backend=None, image_backend=None, **kwargs):
        return PipelineOrchestrator(
            text_backend=text_backend or make_text_backend(),
            image_backend=image_backend if image_backend is not None else make_image_backend(),
            chunker=chunker,
            sleep=no_sleep,
            **kwargs,
        )

    return _make


def run(orchestrator, document, **kwargs):
    return asyncio.run(orchestrator.run(document, **kwargs))


class TestPipelineRun:
    """Tests for a complete run."""

    def test_full_run(self, make_orchestrator, make_image_backend, sample_markdown):
        images = make_image_backend()
        orchestrator = make_orchestrator(image_backend=images)
        config = PipelineConfig(theme=Theme.CORPORATE, resolution=Resolution.HD)

        result = run(orchestrator, sample_markdown, config=config)

        assert [b.slide_number for b in result.blueprints] == [1, 2, 3, 4]
        assert result.blueprints[0].layout == LayoutType.TITLE
        assert result.summary.suggested_slide_count == 12
        assert result.index_metadata.total_chunks == 4
        assert result.config == config

        # Slides 1, 3 (generated prompt) and 4 carry image prompts.
        assert [image.slide_number for image in result.images] == [1, 3, 4]
        assert not any(image.is_placeholder for image in result.images)
        assert all("professional, business-appropriate" in r.prompt for r in images.requests)

        assert result.stats.total_slides == 4
        assert result.stats.total_images == 3
        assert result.stats.total_tokens == 300
        assert result.stats.total_retries == 0
        assert result.stats.execution_seconds >= 0

    def test_progress_sequence(self, make_orchestrator, sample_markdown):
        events = []

        run(make_orchestrator(), sample_markdown, config=PipelineConfig(), on_progress=events.append)

        assert [(e.stage, e.progress) for e in events] == [
            (PipelineStage.INDEX, 10),
            (PipelineStage.INDEX, 25),
            (PipelineStage.SUMMARIZE, 35),
            (PipelineStage.SUMMARIZE, 50),
            (PipelineStage.PLAN, 60),
            (PipelineStage.PLAN, 70),
            (PipelineStage.GENERATE, 75),
            (PipelineStage.GENERATE, 81),
            (PipelineStage.GENERATE, 85),
            (PipelineStage.GENERATE, 85),
            (PipelineStage.GENERATE, 90),
            (PipelineStage.GENERATE, 100),
        ]
        assert events[5].message == "4 slides planned"
        assert events[5].total_slides == 4
        assert events[7].message == "Generated 2/3 images"
        assert (events[7].current_slide, events[7].total_slides) == (2, 3)
        assert events[7].estimated_seconds_remaining >= 0
        assert events[9].message == "3 images generated"
        assert events[-1].message == "Generation complete!"

    def test_without_images(self, make_text_backend, chunker, no_sleep, sample_markdown):
        orchestrator = PipelineOrchestrator(make_text_backend(), chunker=chunker, sleep=no_sleep)
        events = []

        result = run(
            orchestrator,
            sample_markdown,
            config=PipelineConfig(generate_images=False),
            on_progress=events.append,
        )

        assert result.images == []
        assert result.stats.total_images == 0
        assert [e.progress for e in events] == [10, 25, 35, 50, 60, 70, 90, 100]

    def test_single_worker_runs_sequentially(self, make_orchestrator, make_image_backend, sample_markdown):
        images = make_image_backend(delay=0.01)
        events = []

        run(
            make_orchestrator(image_backend=images),
            sample_markdown,
            config=PipelineConfig(worker_count=1),
            on_progress=events.append,
        )

        assert images.max_active == 1
        assert [e.message for e in events if e.message.startswith("Generated ")] == [
            "Generated 1/3 images",
            "Generated 2/3 images",
            "Generated 3/3 images",
        ]

    def test_failed_images_become_placeholders(self, make_orchestrator, make_image_backend, sample_markdown):
        orchestrator = make_orchestrator(image_backend=make_image_backend(always_fail=True), max_retries=1)

        result = run(orchestrator, sample_markdown, config=PipelineConfig())

        assert len(result.images) == 3
        assert all(image.is_placeholder for image in result.images)
        assert result.stats.total_retries == 3

    def test_result_serializes(self, make_orchestrator, sample_markdown):
        result = run(make_orchestrator(), sample_markdown, config=PipelineConfig())

        data = json.loads(json.dumps(result.to_dict(), default=str))

        assert data["config"]["resolution"] == "4K"
        assert data["blueprints"][0]["layout"] == "title"
        assert data["stats"]["total_slides"] == 4


class TestPipelineFailures:
    """Tests for errors, retries and cancellation."""

    @pytest.mark.parametrize("document", ["", "  \n\t\n  "])
    def test_empty_document(self, make_orchestrator, make_text_backend, document):
        backend = make_text_backend()

        with pytest.raises(EmptyInputError) as exc_info:
            run(make_orchestrator(text_backend=backend), document, config=PipelineConfig())

        assert exc_info.value.stage == "index"
        assert exc_info.value.code == ErrorCode.EMPTY_CONTENT
        assert backend.requests == []

    def test_images_without_backend(self, make_text_backend, chunker, sample_markdown):
        orchestrator = PipelineOrchestrator(make_text_backend(), chunker=chunker)

        with pytest.raises(ConfigurationError):
            run(orchestrator, sample_markdown, config=PipelineConfig(generate_images=True))

    def test_transient_stage_failure_is_retried(
        self, make_orchestrator, make_text_backend, sample_markdown, sleep_calls
    ):
        backend = make_text_backend(
            summary=[
                ProviderError("rate limited", provider="fake-text", code=ErrorCode.API_RATE_LIMIT),
                json.dumps({"complexity": "beginner"}),
            ]
        )

        result = run(
            make_orchestrator(text_backend=backend),
            sample_markdown,
            config=PipelineConfig(generate_images=False),
        )

        assert len(backend.calls("summary")) == 2
        assert sleep_calls == [1]
        assert result.stats.total_retries == 1
        assert result.summary.complexity.value == "beginner"

    def test_stage_gives_up_after_retries(self, make_orchestrator, make_text_backend, sample_markdown, sleep_calls):
        backend = make_text_backend(plan=[ProviderError("server error", provider="fake-text")])

        with pytest.raises(ProviderError) as exc_info:
            run(
                make_orchestrator(text_backend=backend, max_retries=2),
                sample_markdown,
                config=PipelineConfig(generate_images=False),
            )

        assert exc_info.value.stage == "plan"
        assert len(backend.calls("plan")) == 3
        assert sleep_calls == [1, 2]

    def test_non_retryable_failure_is_immediate(self, make_orchestrator, make_text_backend, sample_markdown):
        error = ProviderError("invalid key", provider="fake-text", code=ErrorCode.API_KEY_MISSING, retryable=False)
        backend = make_text_backend(summary=[error])

        with pytest.raises(ProviderError) as exc_info:
            run(make_orchestrator(text_backend=backend), sample_markdown, config=PipelineConfig())

        assert exc_info.value.stage == "summarize"
        assert len(backend.calls("summary")) == 1
        assert backend.calls("plan") == []

    def test_rejected_plan_cancels_before_images(self, make_orchestrator, make_image_backend, sample_markdown):
        images = make_image_backend()
        seen = []

        def reject(blueprints):
            seen.extend(blueprints)
            return False

        with pytest.raises(CancellationError) as exc_info:
            run(make_orchestrator(image_backend=images), sample_markdown, config=PipelineConfig(), confirm_plan=reject)

        assert exc_info.value.stage == "plan"
        assert exc_info.value.code == ErrorCode.GENERATION_CANCELLED
        assert len(seen) == 4
        assert images.requests == []

    def test_async_confirmation_accepted(self, make_orchestrator, sample_markdown):
        async def approve(blueprints):
            return True

        result = run(make_orchestrator(), sample_markdown, config=PipelineConfig(), confirm_plan=approve)

        assert len(result.images) == 3


class TestFromSettings:
    def test_wires_bedrock_and_chunking(self):
        settings = Settings(
            providers=ProviderSelectionSettings(text="bedrock", image="bedrock"),
            generation=GenerationSettings(auto_retry_count=5, request_timeout_seconds=30),
        )

        orchestrator = PipelineOrchestrator.from_settings(settings)

        assert isinstance(orchestrator.text_backend, BedrockProvider)
        assert isinstance(orchestrator.image_backend, BedrockProvider)
        assert orchestrator.max_retries == 5
        assert orchestrator.request_timeout == 30
        assert orchestrator.chunker.chunk_size == 512

    def test_no_image_backend_when_disabled(self):
        settings = Settings(
            providers=ProviderSelectionSettings(text="bedrock", image="grok"),
            generation=GenerationSettings(generate_images=False),
        )

        orchestrator = PipelineOrchestrator.from_settings(settings)

        assert orchestrator.image_backend is None
