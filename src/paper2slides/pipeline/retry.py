"""Stage-level retry with exponential backoff."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from paper2slides.errors import ProviderError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def backoff_delay(attempt: int) -> float:
    """Seconds to wait before re-invocation number ``attempt + 1``."""
    return float(2**attempt)


def is_retryable(error: BaseException) -> bool:
    """Only transient provider failures are worth another attempt."""
    return isinstance(error, ProviderError) and error.retryable


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    max_retries: int,
    stage: str,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    on_retry: Callable[[int], None] | None = None,
) -> T:
    """Run ``operation``, re-invoking it on retryable provider errors.

    Waits ``2**attempt`` seconds (1, 2, 4, ...) between attempts and makes
    at most ``max_retries`` re-invocations.

    Args:
        operation: Zero-argument coroutine factory.
        max_retries: Re-invocations allowed after the first attempt.
        stage: Stage name used in logs.
        sleep: Awaitable sleep, injectable for tests.
        on_retry: Called with the retry number before each re-invocation.

    Returns:
        The first successful result.

    Raises:
        The last error once retries are exhausted, or any non-retryable error.
    """

    def before_sleep(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "Stage attempt failed, retrying",
            stage=stage,
            attempt=retry_state.attempt_number,
            max_retries=max_retries,
            delay=retry_state.next_action.sleep if retry_state.next_action else None,
            error=str(error),
        )
        if on_retry is not None:
            on_retry(retry_state.attempt_number)

    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_exponential(multiplier=1, exp_base=2, min=0),
        retry=retry_if_exception(is_retryable),
        before_sleep=before_sleep,
        sleep=sleep,
        reraise=True,
    )

    async for attempt in retrying:
        with attempt:
            return await operation()

    raise AssertionError("unreachable")  # pragma: no cover
