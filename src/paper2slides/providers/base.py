"""Capability protocols and shared plumbing for generative backends."""

import asyncio
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Protocol, TypeVar, runtime_checkable

import structlog

from paper2slides.errors import ErrorCode, ProviderError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class TokenUsage:
    """Token accounting reported by a text backend."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass(frozen=True)
class TextGenerationRequest:
    """A single prompt for a text backend."""

    prompt: str
    system_prompt: str | None = None
    temperature: float = 0.7
    max_tokens: int = 2048


@dataclass(frozen=True)
class TextGenerationResponse:
    """Generated text with optional usage."""

    text: str
    usage: TokenUsage | None = None


@dataclass(frozen=True)
class ImageBackendRequest:
    """A single prompt for an image backend."""

    prompt: str
    width: int | None = None
    height: int | None = None
    quality: str = "standard"  # "standard" or "hd"


@dataclass(frozen=True)
class ImageBackendResponse:
    """A generated image as base64 data."""

    image_data: str
    mime_type: str = "image/png"
    revised_prompt: str | None = None


@runtime_checkable
class TextBackend(Protocol):
    """Anything that can turn a prompt into text."""

    provider_name: str

    async def generate_text(self, request: TextGenerationRequest) -> TextGenerationResponse: ...

    async def validate_connection(self) -> bool: ...


@runtime_checkable
class ImageBackend(Protocol):
    """Anything that can turn a prompt into an image."""

    provider_name: str

    async def generate_image(self, request: ImageBackendRequest) -> ImageBackendResponse: ...


async def call_backend(awaitable: Awaitable[T], *, timeout: float | None, provider: str) -> T:
    """Await a backend call under a deadline.

    Args:
        awaitable: The pending backend call.
        timeout: Deadline in seconds, or None for no deadline.
        provider: Provider name used in the raised error.

    Returns:
        Whatever the backend call returns.

    Raises:
        ProviderError: Retryable ``API_TIMEOUT`` if the deadline passes.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as e:
        logger.warning("Backend call timed out", provider=provider, timeout=timeout)
        raise ProviderError(
            f"{provider} request timed out after {timeout}s",
            provider=provider,
            code=ErrorCode.API_TIMEOUT,
            retryable=True,
        ) from e


class UsageRecordingBackend:
    """Text backend wrapper that accumulates reported token usage."""

    def __init__(self, backend: TextBackend):
        self._backend = backend
        self.provider_name = backend.provider_name
        self.total_tokens = 0
        self.calls = 0

    async def generate_text(self, request: TextGenerationRequest) -> TextGenerationResponse:
        response = await self._backend.generate_text(request)
        self.calls += 1
        if response.usage is not None:
            self.total_tokens += response.usage.total_tokens
        return response

    async def validate_connection(self) -> bool:
        return await self._backend.validate_connection()
