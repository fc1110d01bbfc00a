"""AWS client configuration and initialization."""

from functools import lru_cache
from typing import Any

import boto3
from botocore.config import Config

from paper2slides.config.settings import get_settings


def get_boto_config() -> Config:
    """Get boto3 config with retry settings and the per-call read timeout."""
    settings = get_settings()
    return Config(
        retries={
            "max_attempts": 3,
            "mode": "adaptive",
        },
        connect_timeout=10,
        read_timeout=settings.generation.request_timeout_seconds,
    )


@lru_cache
def get_bedrock_runtime_client() -> Any:
    """Get cached Bedrock Runtime client for model invocations."""
    settings = get_settings()
    return boto3.client(
        "bedrock-runtime",
        region_name=settings.bedrock.region,
        config=get_boto_config(),
    )


def clear_client_cache() -> None:
    """Clear all cached clients. Useful for testing."""
    get_bedrock_runtime_client.cache_clear()
