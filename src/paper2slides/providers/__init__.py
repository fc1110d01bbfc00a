"""Generative text and image backends."""

from paper2slides.providers.base import (
    ImageBackend,
    ImageBackendRequest,
    ImageBackendResponse,
    TextBackend,
    TextGenerationRequest,
    TextGenerationResponse,
    TokenUsage,
    UsageRecordingBackend,
    call_backend,
)
from paper2slides.providers.factory import (
    create_image_provider,
    create_text_provider,
    validate_provider_settings,
)

__all__ = [
    "ImageBackend",
    "ImageBackendRequest",
    "ImageBackendResponse",
    "TextBackend",
    "TextGenerationRequest",
    "TextGenerationResponse",
    "TokenUsage",
    "UsageRecordingBackend",
    "call_backend",
    "create_image_provider",
    "create_text_provider",
    "validate_provider_settings",
]
