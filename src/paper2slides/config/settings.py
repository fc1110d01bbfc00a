"""Centralized settings management using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ProviderTag = Literal["gemini", "grok", "openai", "bedrock"]


class ProviderSelectionSettings(BaseSettings):
    """Which backend serves each generative capability."""

    model_config = SettingsConfigDict(env_prefix="PROVIDER_")

    text: ProviderTag = Field(default="grok", description="Provider for text generation")
    image: ProviderTag = Field(default="gemini", description="Provider for image generation")


class GeminiSettings(BaseSettings):
    """Google Gemini configuration."""

    model_config = SettingsConfigDict(env_prefix="GEMINI_")

    api_key: str | None = Field(default=None, description="Gemini API key")
    text_model: str = Field(default="gemini-2.5-flash", description="Text model ID")
    image_model: str = Field(default="imagen-3.0-generate-002", description="Image model ID")


class GrokSettings(BaseSettings):
    """xAI Grok configuration (OpenAI-compatible endpoint)."""

    model_config = SettingsConfigDict(env_prefix="GROK_")

    api_key: str | None = Field(default=None, description="Grok API key")
    base_url: str = Field(default="https://api.x.ai/v1", description="Grok API base URL")
    model: str = Field(default="grok-4-1-fast", description="Text model ID")


class OpenAISettings(BaseSettings):
    """OpenAI configuration."""

    model_config = SettingsConfigDict(env_prefix="OPENAI_")

    api_key: str | None = Field(default=None, description="OpenAI API key")
    base_url: str = Field(default="https://api.openai.com/v1", description="OpenAI API base URL")
    model: str = Field(default="gpt-4", description="Text model ID")
    image_model: str = Field(default="dall-e-3", description="Image model ID")


class BedrockSettings(BaseSettings):
    """AWS Bedrock configuration."""

    model_config = SettingsConfigDict(env_prefix="BEDROCK_")

    region: str = Field(default="us-east-1", description="Bedrock region")
    llm_model_id: str = Field(
        default="anthropic.claude-sonnet-4-20250514-v1:0",
        description="LLM model ID for text generation",
    )
    image_model_id: str = Field(
        default="amazon.titan-image-generator-v1",
        description="Image model ID",
    )


class GenerationSettings(BaseSettings):
    """Pipeline defaults and performance options."""

    model_config = SettingsConfigDict(env_prefix="GENERATION_")

    default_theme: Literal["academic", "doraemon", "minimalist", "corporate", "creative"] = Field(
        default="academic",
        description="Theme used when the caller does not pick one",
    )
    default_resolution: Literal["1K", "2K", "4K"] = Field(default="4K", description="Image resolution")
    default_mode: Literal["fast", "normal"] = Field(default="normal", description="Pipeline mode")
    default_length: Literal["short", "medium", "long"] = Field(default="medium", description="Deck length")
    generate_images: bool = Field(default=True, description="Run the image synthesis stage")
    embed_in_source: bool = Field(default=True, description="Embed output in the source document")

    auto_retry_count: int = Field(default=3, ge=0, description="Retries per image and per stage")
    parallel_workers: int = Field(default=2, ge=1, description="Concurrent image requests per batch")
    request_timeout_seconds: float = Field(default=120.0, gt=0, description="Deadline per backend call")


class ChunkingSettings(BaseSettings):
    """Chunking configuration."""

    model_config = SettingsConfigDict(env_prefix="CHUNK_")

    size_lines: int = Field(default=512, ge=1, description="Window size in lines")
    overlap_ratio: float = Field(default=0.1, description="Share of each window repeated in the next")

    @field_validator("overlap_ratio")
    @classmethod
    def validate_overlap(cls, v: float) -> float:
        if not 0 <= v <= 1:
            raise ValueError("Overlap ratio must be between 0 and 1")
        return v


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Log level",
    )
    format: Literal["json", "console"] = Field(default="console", description="Log format")


class Settings(BaseSettings):
    """Main settings class aggregating all configuration sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Nested settings
    providers: ProviderSelectionSettings = Field(default_factory=ProviderSelectionSettings)
    gemini: GeminiSettings = Field(default_factory=GeminiSettings)
    grok: GrokSettings = Field(default_factory=GrokSettings)
    openai: OpenAISettings = Field(default_factory=OpenAISettings)
    bedrock: BedrockSettings = Field(default_factory=BedrockSettings)
    generation: GenerationSettings = Field(default_factory=GenerationSettings)
    chunking: ChunkingSettings = Field(default_factory=ChunkingSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
