"""Provider construction keyed on the configured provider tags."""

import structlog

from paper2slides.config.settings import Settings, get_settings
from paper2slides.errors import ConfigurationError, ErrorCode
from paper2slides.providers.base import ImageBackend, TextBackend

logger = structlog.get_logger(__name__)

GROK_IMAGE_MESSAGE = "Grok does not support image generation. Please select Gemini, OpenAI or Bedrock."

_DISPLAY_NAMES = {
    "gemini": "Gemini",
    "grok": "Grok",
    "openai": "OpenAI",
    "bedrock": "Bedrock",
}


def _api_key(settings: Settings, provider: str) -> str | None:
    if provider == "bedrock":
        return None
    return getattr(settings, provider).api_key


def _require_api_key(settings: Settings, provider: str, purpose: str) -> str:
    api_key = _api_key(settings, provider)
    if not api_key:
        raise ConfigurationError(
            f"{_DISPLAY_NAMES[provider]} API key is required for {purpose}",
            code=ErrorCode.API_KEY_MISSING,
        )
    return api_key


def create_text_provider(settings: Settings | None = None) -> TextBackend:
    """Create the backend selected for text generation.

    Args:
        settings: Settings to read; the cached settings when omitted.

    Returns:
        Text backend for ``settings.providers.text``.

    Raises:
        ConfigurationError: Unknown provider or missing API key.
    """
    settings = settings or get_settings()
    provider = settings.providers.text

    if provider == "gemini":
        from paper2slides.providers.gemini_provider import GeminiProvider

        return GeminiProvider(
            api_key=_require_api_key(settings, provider, "text generation"),
            text_model=settings.gemini.text_model,
            image_model=settings.gemini.image_model,
        )
    if provider in ("grok", "openai"):
        from paper2slides.providers.openai_provider import OpenAIProvider

        section = getattr(settings, provider)
        return OpenAIProvider(
            api_key=_require_api_key(settings, provider, "text generation"),
            model=section.model,
            base_url=section.base_url,
            provider_name=provider,
        )
    if provider == "bedrock":
        from paper2slides.providers.bedrock_provider import BedrockProvider

        return BedrockProvider(
            llm_model_id=settings.bedrock.llm_model_id,
            image_model_id=settings.bedrock.image_model_id,
        )

    raise ConfigurationError(f"Unknown text provider: {provider}")


def create_image_provider(settings: Settings | None = None) -> ImageBackend:
    """Create the backend selected for image generation.

    Args:
        settings: Settings to read; the cached settings when omitted.

    Returns:
        Image backend for ``settings.providers.image``.

    Raises:
        ConfigurationError: Unknown provider, Grok, or missing API key.
    """
    settings = settings or get_settings()
    provider = settings.providers.image

    if provider == "gemini":
        from paper2slides.providers.gemini_provider import GeminiProvider

        return GeminiProvider(
            api_key=_require_api_key(settings, provider, "image generation"),
            text_model=settings.gemini.text_model,
            image_model=settings.gemini.image_model,
        )
    if provider == "openai":
        from paper2slides.providers.openai_provider import OpenAIProvider

        return OpenAIProvider(
            api_key=_require_api_key(settings, provider, "image generation"),
            model=settings.openai.model,
            base_url=settings.openai.base_url,
            image_model=settings.openai.image_model,
        )
    if provider == "bedrock":
        from paper2slides.providers.bedrock_provider import BedrockProvider

        return BedrockProvider(
            llm_model_id=settings.bedrock.llm_model_id,
            image_model_id=settings.bedrock.image_model_id,
        )
    if provider == "grok":
        raise ConfigurationError(GROK_IMAGE_MESSAGE)

    raise ConfigurationError(f"Unknown image generation provider: {provider}")


def validate_provider_settings(settings: Settings | None = None) -> list[str]:
    """List problems with the configured provider selection.

    Bedrock authenticates through the AWS credential chain and needs no key.
    The image provider is only checked when image generation is enabled.

    Returns:
        Human-readable errors; empty when the configuration is usable.
    """
    settings = settings or get_settings()
    errors: list[str] = []

    text_provider = settings.providers.text
    if text_provider != "bedrock" and not _api_key(settings, text_provider):
        errors.append(f"{_DISPLAY_NAMES[text_provider]} API key is required for prompt generation")

    image_provider = settings.providers.image
    if settings.generation.generate_images:
        if image_provider == "grok":
            errors.append(GROK_IMAGE_MESSAGE)
        elif image_provider != "bedrock" and not _api_key(settings, image_provider):
            errors.append(f"{_DISPLAY_NAMES[image_provider]} API key is required for image generation")

    if errors:
        logger.warning("Provider configuration incomplete", errors=errors)
    return errors
