"""Exception hierarchy for the generation pipeline."""

from enum import Enum


class ErrorCode(str, Enum):
    """Machine-readable failure codes."""

    API_KEY_MISSING = "API_KEY_MISSING"
    API_REQUEST_FAILED = "API_REQUEST_FAILED"
    API_RATE_LIMIT = "API_RATE_LIMIT"
    API_TIMEOUT = "API_TIMEOUT"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    EMPTY_CONTENT = "EMPTY_CONTENT"
    GENERATION_CANCELLED = "GENERATION_CANCELLED"
    GENERATION_FAILED = "GENERATION_FAILED"
    UNKNOWN_PROVIDER = "UNKNOWN_PROVIDER"


class Paper2SlidesError(Exception):
    """Base class for all pipeline errors."""

    code: ErrorCode = ErrorCode.GENERATION_FAILED
    retryable: bool = False

    def __init__(self, message: str, *, stage: str | None = None):
        super().__init__(message)
        self.message = message
        self.stage = stage

    def to_dict(self) -> dict:
        """Serialize for the presentation layer."""
        return {
            "code": self.code.value,
            "message": self.message,
            "stage": self.stage,
            "retryable": self.retryable,
        }


class ParseError(Paper2SlidesError):
    """A generative response could not be parsed as the expected JSON."""

    code = ErrorCode.INVALID_RESPONSE


class ValidationError(Paper2SlidesError):
    """A parsed response lacks the fields the stage cannot do without."""

    code = ErrorCode.INVALID_RESPONSE


class ProviderError(Paper2SlidesError):
    """Network, authentication, rate-limit or backend failure."""

    def __init__(
        self,
        message: str,
        *,
        provider: str,
        code: ErrorCode = ErrorCode.API_REQUEST_FAILED,
        retryable: bool = True,
        stage: str | None = None,
    ):
        super().__init__(message, stage=stage)
        self.provider = provider
        self.code = code
        self.retryable = retryable


class CancellationError(Paper2SlidesError):
    """The caller rejected the slide plan at the cancellation gate."""

    code = ErrorCode.GENERATION_CANCELLED


class EmptyInputError(Paper2SlidesError):
    """The input document is blank."""

    code = ErrorCode.EMPTY_CONTENT


class ConfigurationError(Paper2SlidesError):
    """Provider selection or credentials are unusable."""

    def __init__(self, message: str, *, code: ErrorCode = ErrorCode.UNKNOWN_PROVIDER):
        super().__init__(message)
        self.code = code
