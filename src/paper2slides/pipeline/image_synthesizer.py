"""Image synthesis with per-image retry and placeholder degradation."""

import asyncio
import base64
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone

import structlog

from paper2slides.pipeline.models import (
    ImageGenerationRequest,
    ImageGenerationResult,
    ImageMetadata,
    Resolution,
    Theme,
)
from paper2slides.providers.base import ImageBackend, ImageBackendRequest, call_backend

logger = structlog.get_logger(__name__)

THEME_STYLES = {
    Theme.ACADEMIC: "professional, scholarly, clean design, muted colors, academic illustration style",
    Theme.DORAEMON: "cute, colorful, playful, cartoon-style, Doraemon-inspired aesthetics",
    Theme.MINIMALIST: "minimalist, simple, clean lines, modern, flat design, limited color palette",
    Theme.CORPORATE: "professional, business-appropriate, polished, corporate design, modern aesthetics",
    Theme.CREATIVE: "creative, artistic, vibrant colors, unique composition, innovative design",
}

IMAGE_REQUIREMENTS = """Requirements:
- High quality, professional illustration
- Suitable for presentation slides
- Clear visual hierarchy
- Avoid text overlays
- Focus on visual storytelling"""

# 16:9 at each resolution tier.
DIMENSIONS = {
    Resolution.HD: (1280, 720),
    Resolution.QHD: (2560, 1440),
    Resolution.UHD: (3840, 2160),
}

PLACEHOLDER_TEMPLATE = """
<svg width="{width}" height="{height}" xmlns="http://www.w3.org/2000/svg">
  <rect width="100%" height="100%" fill="#f0f0f0"/>
  <text x="50%" y="50%" font-family="Arial, sans-serif" font-size="48" fill="#666" text-anchor="middle">
    Image Placeholder
  </text>
  <text x="50%" y="60%" font-family="Arial, sans-serif" font-size="24" fill="#999" text-anchor="middle">
    (Generation failed after {retries} retries)
  </text>
</svg>"""

BatchCallback = Callable[[int, int], None]


def build_prompt(request: ImageGenerationRequest) -> str:
    """Append the theme style and composition requirements to a prompt."""
    style = THEME_STYLES.get(Theme(request.theme), THEME_STYLES[Theme.MINIMALIST])
    if request.style:
        style = f"{style}, {request.style}"
    return f"{request.prompt}\n\nStyle: {style}\n\n{IMAGE_REQUIREMENTS}"


def dimensions(resolution: Resolution) -> tuple[int, int]:
    """Pixel size for a resolution tier."""
    return DIMENSIONS.get(Resolution(resolution), DIMENSIONS[Resolution.HD])


def placeholder(request: ImageGenerationRequest, retries: int) -> ImageGenerationResult:
    """SVG stand-in for an image that could not be generated."""
    width, height = dimensions(request.resolution)
    svg = PLACEHOLDER_TEMPLATE.format(width=width, height=height, retries=retries)

    return ImageGenerationResult(
        slide_number=request.slide_number,
        image_data=base64.b64encode(svg.encode("utf-8")).decode("ascii"),
        mime_type="image/svg+xml",
        metadata=ImageMetadata(
            generated_at=datetime.now(timezone.utc),
            prompt=request.prompt,
            resolution=request.resolution,
            retry_count=retries,
        ),
        is_placeholder=True,
    )


class ImageSynthesizer:
    """Generate slide images through an image backend.

    Every request resolves to exactly one result: failed generations are
    retried with exponential backoff and finally replaced by a placeholder,
    so image problems never abort a run.
    """

    def __init__(
        self,
        image_backend: ImageBackend,
        max_retries: int = 3,
        worker_count: int = 2,
        request_timeout: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize synthesizer.

        Args:
            image_backend: Backend that renders images.
            max_retries: Retries per image after the first attempt.
            worker_count: Default batch size for parallel generation.
            request_timeout: Deadline per backend call in seconds.
            sleep: Awaitable sleep, injectable for tests.
        """
        if worker_count < 1:
            raise ValueError(f"worker_count must be at least 1, got {worker_count}")

        self.backend = image_backend
        self.max_retries = max_retries
        self.worker_count = worker_count
        self.request_timeout = request_timeout
        self._sleep = sleep
        self.total_retries = 0

    async def generate_image(self, request: ImageGenerationRequest) -> ImageGenerationResult:
        """Generate one image."""
        return await self.generate_with_retry(request, 0)

    async def generate_images(
        self,
        requests: list[ImageGenerationRequest],
        parallel: bool,
        worker_count: int | None = None,
        on_batch_complete: BatchCallback | None = None,
    ) -> list[ImageGenerationResult]:
        """Generate images for several requests.

        In parallel mode requests run in consecutive batches of
        ``worker_count``; each batch finishes entirely before the next starts.
        Otherwise requests run one at a time.

        Args:
            requests: Image requests.
            parallel: Whether to run batches concurrently.
            worker_count: Batch size override.
            on_batch_complete: Called with (completed, total) after each
                batch, or after each request when sequential.

        Returns:
            One result per request, in request order.
        """
        total = len(requests)
        results: list[ImageGenerationResult] = []

        if parallel:
            workers = worker_count or self.worker_count
            for start in range(0, total, workers):
                batch = requests[start : start + workers]
                results.extend(await asyncio.gather(*(self.generate_image(request) for request in batch)))
                logger.debug("Image batch complete", completed=len(results), total=total)
                if on_batch_complete is not None:
                    on_batch_complete(len(results), total)
        else:
            for request in requests:
                results.append(await self.generate_image(request))
                if on_batch_complete is not None:
                    on_batch_complete(len(results), total)

        placeholders = sum(1 for result in results if result.is_placeholder)
        logger.info("Images generated", total=total, placeholders=placeholders, parallel=parallel)
        return results

    async def generate_with_retry(
        self, request: ImageGenerationRequest, attempt: int = 0
    ) -> ImageGenerationResult:
        """Generate an image, retrying until ``max_retries`` is reached.

        Args:
            request: Image request.
            attempt: Retries already spent on this request.

        Returns:
            The generated image, or a placeholder once retries run out.
        """
        prompt = build_prompt(request)
        width, height = dimensions(request.resolution)
        backend_request = ImageBackendRequest(prompt=prompt, width=width, height=height, quality="hd")

        while True:
            try:
                response = await call_backend(
                    self.backend.generate_image(backend_request),
                    timeout=self.request_timeout,
                    provider=self.backend.provider_name,
                )
            except Exception as e:  # image failures never propagate
                error = str(e)
            else:
                return ImageGenerationResult(
                    slide_number=request.slide_number,
                    image_data=response.image_data,
                    mime_type=response.mime_type or "image/png",
                    metadata=ImageMetadata(
                        generated_at=datetime.now(timezone.utc),
                        prompt=prompt,
                        resolution=request.resolution,
                        retry_count=attempt,
                    ),
                )

            if attempt >= self.max_retries:
                logger.error(
                    "Image generation failed, using placeholder",
                    slide_number=request.slide_number,
                    retries=self.max_retries,
                    error=error,
                )
                return placeholder(request, self.max_retries)

            delay = float(2**attempt)
            logger.warning(
                "Image generation failed, retrying",
                slide_number=request.slide_number,
                attempt=attempt + 1,
                max_retries=self.max_retries,
                delay=delay,
                error=error,
            )
            self.total_retries += 1
            await self._sleep(delay)
            attempt += 1
