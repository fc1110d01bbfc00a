"""Amazon Bedrock backend: Converse for text, Titan for images."""

import asyncio
import json
from typing import Any

import structlog
from botocore.exceptions import BotoCoreError, ClientError

from paper2slides.config import get_bedrock_runtime_client
from paper2slides.errors import ErrorCode, ProviderError
from paper2slides.providers.base import (
    ImageBackendRequest,
    ImageBackendResponse,
    TextGenerationRequest,
    TextGenerationResponse,
    TokenUsage,
)

logger = structlog.get_logger(__name__)

# Titan Image Generator limits.
TITAN_MAX_PROMPT_CHARS = 512
TITAN_WIDTH = 1173  # closest supported 16:9 size
TITAN_HEIGHT = 640

THROTTLING_CODES = {"ThrottlingException", "TooManyRequestsException", "ServiceQuotaExceededException"}
AUTH_CODES = {"AccessDeniedException", "UnrecognizedClientException", "ExpiredTokenException"}
CLIENT_FAULT_CODES = {"ValidationException", "ResourceNotFoundException"}


class BedrockProvider:
    """Text and image generation through the Bedrock Runtime API.

    boto3 is synchronous, so every call runs in the default executor.
    """

    provider_name = "bedrock"

    def __init__(
        self,
        llm_model_id: str,
        image_model_id: str,
        client: Any | None = None,
    ):
        """Initialize provider.

        Args:
            llm_model_id: Bedrock model ID for Converse calls.
            image_model_id: Titan image model ID.
            client: Bedrock runtime client; the cached one when omitted.
        """
        self.llm_model_id = llm_model_id
        self.image_model_id = image_model_id
        self._client = client

    @property
    def client(self) -> Any:
        """Lazy-load Bedrock runtime client."""
        if self._client is None:
            self._client = get_bedrock_runtime_client()
        return self._client

    def _converse(self, request: TextGenerationRequest) -> TextGenerationResponse:
        kwargs: dict[str, Any] = {
            "modelId": self.llm_model_id,
            "messages": [{"role": "user", "content": [{"text": request.prompt}]}],
            "inferenceConfig": {
                "maxTokens": request.max_tokens,
                "temperature": request.temperature,
            },
        }
        if request.system_prompt:
            kwargs["system"] = [{"text": request.system_prompt}]

        try:
            response = self.client.converse(**kwargs)
        except (ClientError, BotoCoreError) as e:
            raise self._to_provider_error(e, "text generation") from e

        content = response.get("output", {}).get("message", {}).get("content", [])
        text = "".join(block.get("text", "") for block in content)
        if not text:
            raise ProviderError(
                "No response generated from Bedrock",
                provider=self.provider_name,
                code=ErrorCode.INVALID_RESPONSE,
            )

        usage = None
        if "usage" in response:
            usage = TokenUsage(
                prompt_tokens=response["usage"].get("inputTokens", 0),
                completion_tokens=response["usage"].get("outputTokens", 0),
                total_tokens=response["usage"].get("totalTokens", 0),
            )
        return TextGenerationResponse(text=text, usage=usage)

    def _invoke_titan(self, request: ImageBackendRequest) -> ImageBackendResponse:
        prompt = request.prompt
        if len(prompt) > TITAN_MAX_PROMPT_CHARS:
            prompt = prompt[:TITAN_MAX_PROMPT_CHARS]
            logger.warning("Image prompt truncated", max_chars=TITAN_MAX_PROMPT_CHARS)

        body = {
            "taskType": "TEXT_IMAGE",
            "textToImageParams": {"text": prompt},
            "imageGenerationConfig": {
                "numberOfImages": 1,
                "width": TITAN_WIDTH,
                "height": TITAN_HEIGHT,
                "quality": "premium" if request.quality == "hd" else "standard",
                "cfgScale": 8.0,
            },
        }

        try:
            response = self.client.invoke_model(
                modelId=self.image_model_id,
                body=json.dumps(body),
                contentType="application/json",
                accept="application/json",
            )
        except (ClientError, BotoCoreError) as e:
            raise self._to_provider_error(e, "image generation") from e

        response_body = json.loads(response["body"].read())
        images = response_body.get("images") or []
        if not images:
            raise ProviderError(
                f"No image generated from Bedrock: {response_body.get('error', 'empty response')}",
                provider=self.provider_name,
                code=ErrorCode.INVALID_RESPONSE,
            )
        return ImageBackendResponse(image_data=images[0], mime_type="image/png")

    async def generate_text(self, request: TextGenerationRequest) -> TextGenerationResponse:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._converse, request)

    async def generate_image(self, request: ImageBackendRequest) -> ImageBackendResponse:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._invoke_titan, request)

    async def validate_connection(self) -> bool:
        try:
            await self.generate_text(TextGenerationRequest(prompt="Test connection", max_tokens=10))
            return True
        except ProviderError as e:
            logger.warning("Connection validation failed", provider=self.provider_name, error=e.message)
            return False

    def _to_provider_error(self, error: Exception, operation: str) -> ProviderError:
        message = f"Bedrock {operation} failed: {error}"
        logger.error("Provider request failed", provider=self.provider_name, operation=operation, error=str(error))

        if isinstance(error, ClientError):
            code = error.response.get("Error", {}).get("Code", "")
            if code in THROTTLING_CODES:
                return ProviderError(message, provider=self.provider_name, code=ErrorCode.API_RATE_LIMIT)
            if code in AUTH_CODES:
                return ProviderError(
                    message, provider=self.provider_name, code=ErrorCode.API_KEY_MISSING, retryable=False
                )
            if code in CLIENT_FAULT_CODES:
                return ProviderError(message, provider=self.provider_name, retryable=False)
        return ProviderError(message, provider=self.provider_name)
