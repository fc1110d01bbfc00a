"""Google Gemini text and Imagen image backend."""

import base64

import structlog
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from paper2slides.errors import ErrorCode, ProviderError
from paper2slides.providers.base import (
    ImageBackendRequest,
    ImageBackendResponse,
    TextGenerationRequest,
    TextGenerationResponse,
    TokenUsage,
)

logger = structlog.get_logger(__name__)

# Aspect ratios accepted by Imagen.
ASPECT_RATIOS = {
    "1:1": 1.0,
    "4:3": 4 / 3,
    "3:4": 3 / 4,
    "16:9": 16 / 9,
    "9:16": 9 / 16,
}


def imagen_aspect_ratio(width: int | None, height: int | None) -> str:
    """Pick the supported aspect ratio closest to the requested size."""
    ratio = (width or 1280) / (height or 720)
    return min(ASPECT_RATIOS, key=lambda name: abs(ASPECT_RATIOS[name] - ratio))


class GeminiProvider:
    """Gemini content generation and Imagen image generation."""

    provider_name = "gemini"

    def __init__(
        self,
        api_key: str,
        text_model: str,
        image_model: str,
        client: genai.Client | None = None,
    ):
        """Initialize provider.

        Args:
            api_key: Gemini API key.
            text_model: Text model ID.
            image_model: Imagen model ID.
            client: Preconfigured client, mainly for tests.
        """
        self.text_model = text_model
        self.image_model = image_model
        self._client = client or genai.Client(api_key=api_key)

    async def generate_text(self, request: TextGenerationRequest) -> TextGenerationResponse:
        config = types.GenerateContentConfig(
            system_instruction=request.system_prompt,
            temperature=request.temperature,
            max_output_tokens=request.max_tokens,
        )

        try:
            response = await self._client.aio.models.generate_content(
                model=self.text_model,
                contents=request.prompt,
                config=config,
            )
        except genai_errors.APIError as e:
            raise self._to_provider_error(e, "text generation") from e

        if not response.text:
            raise ProviderError(
                "No response generated from Gemini",
                provider=self.provider_name,
                code=ErrorCode.INVALID_RESPONSE,
            )

        usage = None
        if response.usage_metadata is not None:
            usage = TokenUsage(
                prompt_tokens=response.usage_metadata.prompt_token_count or 0,
                completion_tokens=response.usage_metadata.candidates_token_count or 0,
                total_tokens=response.usage_metadata.total_token_count or 0,
            )

        return TextGenerationResponse(text=response.text, usage=usage)

    async def generate_image(self, request: ImageBackendRequest) -> ImageBackendResponse:
        config = types.GenerateImagesConfig(
            number_of_images=1,
            aspect_ratio=imagen_aspect_ratio(request.width, request.height),
        )

        try:
            response = await self._client.aio.models.generate_images(
                model=self.image_model,
                prompt=request.prompt,
                config=config,
            )
        except genai_errors.APIError as e:
            raise self._to_provider_error(e, "image generation") from e

        if not response.generated_images or response.generated_images[0].image is None:
            raise ProviderError(
                "No image generated from Gemini",
                provider=self.provider_name,
                code=ErrorCode.INVALID_RESPONSE,
            )

        image = response.generated_images[0].image
        return ImageBackendResponse(
            image_data=base64.b64encode(image.image_bytes).decode("ascii"),
            mime_type=image.mime_type or "image/png",
        )

    async def validate_connection(self) -> bool:
        try:
            await self._client.aio.models.generate_content(
                model=self.text_model,
                contents="Test connection",
            )
            return True
        except genai_errors.APIError as e:
            logger.warning("Connection validation failed", provider=self.provider_name, error=str(e))
            return False

    def _to_provider_error(self, error: genai_errors.APIError, operation: str) -> ProviderError:
        message = f"Gemini {operation} failed: {error}"
        logger.error("Provider request failed", provider=self.provider_name, operation=operation, error=str(error))

        if error.code == 429:
            return ProviderError(message, provider=self.provider_name, code=ErrorCode.API_RATE_LIMIT)
        if error.code in (401, 403):
            return ProviderError(
                message, provider=self.provider_name, code=ErrorCode.API_KEY_MISSING, retryable=False
            )
        if isinstance(error, genai_errors.ClientError):
            return ProviderError(message, provider=self.provider_name, retryable=False)
        return ProviderError(message, provider=self.provider_name)
