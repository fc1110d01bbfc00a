"""OpenAI-compatible chat and image backend (OpenAI, xAI Grok)."""

import openai
import structlog
from openai import AsyncOpenAI

from paper2slides.errors import ErrorCode, ProviderError
from paper2slides.providers.base import (
    ImageBackendRequest,
    ImageBackendResponse,
    TextGenerationRequest,
    TextGenerationResponse,
    TokenUsage,
)

logger = structlog.get_logger(__name__)


def dalle_size(width: int | None, height: int | None) -> str:
    """Map requested dimensions onto a size DALL-E 3 accepts."""
    if not width and not height:
        return "1792x1024"

    aspect_ratio = (width or 1280) / (height or 720)
    if aspect_ratio > 1.5:
        return "1792x1024"
    if aspect_ratio < 0.67:
        return "1024x1792"
    return "1024x1024"


class OpenAIProvider:
    """Chat completions and image generation over the OpenAI API.

    The same client serves any OpenAI-compatible endpoint; Grok is this
    class pointed at the xAI base URL with no image model.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        image_model: str | None = None,
        provider_name: str = "openai",
        client: AsyncOpenAI | None = None,
    ):
        """Initialize provider.

        Args:
            api_key: API key for the endpoint.
            model: Chat model ID.
            base_url: Endpoint base URL; the SDK default when omitted.
            image_model: Image model ID, or None when the endpoint has none.
            provider_name: Name reported in logs and errors.
            client: Preconfigured client, mainly for tests.
        """
        self.model = model
        self.image_model = image_model
        self.provider_name = provider_name
        self._client = client or AsyncOpenAI(api_key=api_key, base_url=base_url)

    async def generate_text(self, request: TextGenerationRequest) -> TextGenerationResponse:
        messages = []
        if request.system_prompt:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.append({"role": "user", "content": request.prompt})

        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=request.temperature,
                max_tokens=request.max_tokens,
            )
        except openai.OpenAIError as e:
            raise self._to_provider_error(e, "text generation") from e

        if not response.choices:
            raise ProviderError(
                f"No response generated from {self.provider_name}",
                provider=self.provider_name,
                code=ErrorCode.INVALID_RESPONSE,
            )

        usage = None
        if response.usage is not None:
            usage = TokenUsage(
                prompt_tokens=response.usage.prompt_tokens or 0,
                completion_tokens=response.usage.completion_tokens or 0,
                total_tokens=response.usage.total_tokens or 0,
            )

        text = response.choices[0].message.content or ""
        logger.debug("Text generated", provider=self.provider_name, model=self.model, chars=len(text))
        return TextGenerationResponse(text=text, usage=usage)

    async def generate_image(self, request: ImageBackendRequest) -> ImageBackendResponse:
        if self.image_model is None:
            raise ProviderError(
                f"{self.provider_name} does not support image generation",
                provider=self.provider_name,
                code=ErrorCode.UNKNOWN_PROVIDER,
                retryable=False,
            )

        try:
            response = await self._client.images.generate(
                model=self.image_model,
                prompt=request.prompt,
                n=1,
                size=dalle_size(request.width, request.height),
                quality=request.quality,
                response_format="b64_json",
            )
        except openai.OpenAIError as e:
            raise self._to_provider_error(e, "image generation") from e

        if not response.data or not response.data[0].b64_json:
            raise ProviderError(
                f"No image generated from {self.provider_name}",
                provider=self.provider_name,
                code=ErrorCode.INVALID_RESPONSE,
            )

        image = response.data[0]
        return ImageBackendResponse(
            image_data=image.b64_json,
            mime_type="image/png",
            revised_prompt=image.revised_prompt,
        )

    async def validate_connection(self) -> bool:
        try:
            await self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": "Test connection"}],
                max_tokens=10,
            )
            return True
        except openai.OpenAIError as e:
            logger.warning("Connection validation failed", provider=self.provider_name, error=str(e))
            return False

    def _to_provider_error(self, error: openai.OpenAIError, operation: str) -> ProviderError:
        message = f"{self.provider_name} {operation} failed: {error}"
        logger.error("Provider request failed", provider=self.provider_name, operation=operation, error=str(error))

        if isinstance(error, openai.RateLimitError):
            return ProviderError(message, provider=self.provider_name, code=ErrorCode.API_RATE_LIMIT)
        if isinstance(error, openai.AuthenticationError):
            return ProviderError(
                message, provider=self.provider_name, code=ErrorCode.API_KEY_MISSING, retryable=False
            )
        if isinstance(error, openai.APITimeoutError):
            return ProviderError(message, provider=self.provider_name, code=ErrorCode.API_TIMEOUT)
        if isinstance(error, openai.APIStatusError):
            return ProviderError(message, provider=self.provider_name, retryable=error.status_code >= 500)
        return ProviderError(message, provider=self.provider_name)
