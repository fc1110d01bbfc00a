"""Unit tests for image synthesis."""

import asyncio
import base64

import pytest

from paper2slides.pipeline.image_synthesizer import (
    ImageSynthesizer,
    build_prompt,
    dimensions,
    placeholder,
)
from paper2slides.pipeline.models import ImageGenerationRequest, Resolution, Theme


def make_request(slide_number=1, prompt="A lighthouse at dusk", **kwargs):
    kwargs.setdefault("resolution", Resolution.HD)
    kwargs.setdefault("theme", Theme.ACADEMIC)
    return ImageGenerationRequest(prompt=prompt, slide_number=slide_number, **kwargs)


class TestPromptEnhancement:
    def test_theme_style_appended(self):
        prompt = build_prompt(make_request(theme=Theme.MINIMALIST))

        assert prompt.startswith("A lighthouse at dusk\n\nStyle: minimalist, simple, clean lines")
        assert prompt.endswith("- Focus on visual storytelling")

    def test_custom_style_extends_theme(self):
        prompt = build_prompt(make_request(theme=Theme.CREATIVE, style="watercolor"))

        assert "innovative design, watercolor\n\nRequirements:" in prompt

    @pytest.mark.parametrize(
        "resolution,expected",
        [(Resolution.HD, (1280, 720)), (Resolution.QHD, (2560, 1440)), (Resolution.UHD, (3840, 2160))],
    )
    def test_dimensions(self, resolution, expected):
        assert dimensions(resolution) == expected


class TestPlaceholder:
    def test_placeholder_is_svg(self):
        result = placeholder(make_request(slide_number=4, resolution=Resolution.QHD), retries=3)
        svg = base64.b64decode(result.image_data).decode("utf-8")

        assert result.is_placeholder
        assert result.slide_number == 4
        assert result.mime_type == "image/svg+xml"
        assert 'width="2560" height="1440"' in svg
        assert "Image Placeholder" in svg
        assert "(Generation failed after 3 retries)" in svg
        assert result.metadata.prompt == "A lighthouse at dusk"
        assert result.metadata.retry_count == 3


class TestImageSynthesizer:
    """Tests for retry, placeholders and batching."""

    def test_success_first_try(self, make_image_backend, no_sleep, sleep_calls):
        backend = make_image_backend()
        synthesizer = ImageSynthesizer(backend, sleep=no_sleep)

        result = asyncio.run(synthesizer.generate_image(make_request()))

        assert not result.is_placeholder
        assert result.mime_type == "image/png"
        assert base64.b64decode(result.image_data) == b"png-bytes"
        assert result.metadata.retry_count == 0
        assert result.metadata.prompt == backend.requests[0].prompt
        assert "Style:" in result.metadata.prompt
        assert (backend.requests[0].width, backend.requests[0].height) == (1280, 720)
        assert backend.requests[0].quality == "hd"
        assert sleep_calls == []

    def test_transient_failures_are_retried(self, make_image_backend, no_sleep, sleep_calls):
        backend = make_image_backend(failures=2)
        synthesizer = ImageSynthesizer(backend, max_retries=3, sleep=no_sleep)

        result = asyncio.run(synthesizer.generate_image(make_request()))

        assert not result.is_placeholder
        assert result.metadata.retry_count == 2
        assert len(backend.requests) == 3
        assert sleep_calls == [1.0, 2.0]
        assert synthesizer.total_retries == 2

    def test_exhausted_retries_give_placeholder(self, make_image_backend, no_sleep, sleep_calls):
        backend = make_image_backend(always_fail=True)
        synthesizer = ImageSynthesizer(backend, max_retries=3, sleep=no_sleep)

        result = asyncio.run(synthesizer.generate_image(make_request(slide_number=2)))

        assert result.is_placeholder
        assert result.slide_number == 2
        assert result.metadata.retry_count == 3
        assert len(backend.requests) == 4
        assert sleep_calls == [1.0, 2.0, 4.0]

    def test_zero_retries_fails_fast(self, make_image_backend, no_sleep, sleep_calls):
        backend = make_image_backend(always_fail=True)
        synthesizer = ImageSynthesizer(backend, max_retries=0, sleep=no_sleep)

        result = asyncio.run(synthesizer.generate_image(make_request()))

        assert result.is_placeholder
        assert len(backend.requests) == 1
        assert sleep_calls == []

    def test_unexpected_exceptions_degrade_too(self, no_sleep):
        class BrokenBackend:
            provider_name = "broken"

            async def generate_image(self, request):
                raise KeyError("missing field in response")

        synthesizer = ImageSynthesizer(BrokenBackend(), max_retries=1, sleep=no_sleep)

        result = asyncio.run(synthesizer.generate_image(make_request()))

        assert result.is_placeholder

    def test_timeout_is_retried(self, no_sleep, sleep_calls):
        class SlowBackend:
            provider_name = "slow"

            async def generate_image(self, request):
                await asyncio.sleep(10)

        synthesizer = ImageSynthesizer(SlowBackend(), max_retries=1, request_timeout=0.01, sleep=no_sleep)

        result = asyncio.run(synthesizer.generate_image(make_request()))

        assert result.is_placeholder
        assert sleep_calls == [1.0]

    def test_sequential_order_and_progress(self, make_image_backend, no_sleep):
        backend = make_image_backend(delay=0.001)
        synthesizer = ImageSynthesizer(backend, sleep=no_sleep)
        requests = [make_request(number, f"prompt {number}") for number in (1, 3, 5)]
        progress = []

        results = asyncio.run(
            synthesizer.generate_images(requests, parallel=False, on_batch_complete=lambda d, t: progress.append((d, t)))
        )

        assert [r.slide_number for r in results] == [1, 3, 5]
        assert backend.max_active == 1
        assert progress == [(1, 3), (2, 3), (3, 3)]

    def test_parallel_batches_do_not_overlap(self, make_image_backend, no_sleep):
        backend = make_image_backend(delay=0.01)
        synthesizer = ImageSynthesizer(backend, worker_count=2, sleep=no_sleep)
        requests = [make_request(number, f"prompt {number}") for number in range(1, 6)]
        progress = []

        results = asyncio.run(
            synthesizer.generate_images(requests, parallel=True, on_batch_complete=lambda d, t: progress.append((d, t)))
        )

        assert [r.slide_number for r in results] == [1, 2, 3, 4, 5]
        assert backend.max_active == 2
        assert progress == [(2, 5), (4, 5), (5, 5)]

        # Every request of a batch ends before any request of the next batch starts.
        starts = {prompt: i for i, (kind, prompt) in enumerate(backend.events) if kind == "start"}
        ends = {prompt: i for i, (kind, prompt) in enumerate(backend.events) if kind == "end"}
        first_batch = [r.prompt for r in backend.requests if r.prompt.startswith(("prompt 1\n", "prompt 2\n"))]
        second_batch = [r.prompt for r in backend.requests if r.prompt.startswith(("prompt 3\n", "prompt 4\n"))]
        assert max(ends[p] for p in first_batch) < min(starts[p] for p in second_batch)

    def test_worker_count_override(self, make_image_backend, no_sleep):
        backend = make_image_backend(delay=0.01)
        synthesizer = ImageSynthesizer(backend, worker_count=1, sleep=no_sleep)
        requests = [make_request(number, f"prompt {number}") for number in range(1, 5)]

        asyncio.run(synthesizer.generate_images(requests, parallel=True, worker_count=4))

        assert backend.max_active == 4

    def test_failures_in_batch_become_placeholders(self, make_image_backend, no_sleep):
        backend = make_image_backend(always_fail=True)
        synthesizer = ImageSynthesizer(backend, max_retries=1, sleep=no_sleep)
        requests = [make_request(number) for number in (1, 2, 3)]

        results = asyncio.run(synthesizer.generate_images(requests, parallel=True))

        assert len(results) == 3
        assert all(result.is_placeholder for result in results)
        assert synthesizer.total_retries == 3

    def test_empty_request_list(self, make_image_backend):
        synthesizer = ImageSynthesizer(make_image_backend())

        assert asyncio.run(synthesizer.generate_images([], parallel=True)) == []

    def test_invalid_worker_count(self, make_image_backend):
        with pytest.raises(ValueError):
            ImageSynthesizer(make_image_backend(), worker_count=0)
