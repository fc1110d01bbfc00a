"""Configuration module for paper2slides."""

from paper2slides.config.aws_config import (
    clear_client_cache,
    get_bedrock_runtime_client,
)
from paper2slides.config.logging_config import configure_logging
from paper2slides.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "configure_logging",
    "get_bedrock_runtime_client",
    "clear_client_cache",
]
