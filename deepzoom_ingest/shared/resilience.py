# deepzoom_ingest/shared/resilience.py
import structlog
from typing import Any, Awaitable, Callable, Tuple, Type
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from deepzoom_ingest.core.domain.exceptions import NetworkError, StorageError

logger = structlog.get_logger()

# DuplicateError and FormatError are never retried.
RETRYABLE_ERRORS: Tuple[Type[BaseException], ...] = (NetworkError, StorageError)

def _log_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "retry_scheduled",
        attempt=retry_state.attempt_number,
        error_kind=type(error).__name__ if error else None,
        error=str(error) if error else None,
        sleep_s=retry_state.next_action.sleep if retry_state.next_action else None,
    )

class NoRetry:
    """Runs the call exactly once."""

    async def call(self, fn: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any) -> Any:
        return await fn(*args, **kwargs)

class FixedDelayRetry:
    """
    Bounded retry with a constant pause between attempts.

    Defaults mirror the single-image upload path of the ingestion job:
    3 attempts, 2 seconds apart, network and storage failures only.
    """

    def __init__(
        self,
        attempts: int = 3,
        delay_seconds: float = 2.0,
        retry_on: Tuple[Type[BaseException], ...] = RETRYABLE_ERRORS,
    ):
        if attempts < 1:
            raise ValueError("attempts must be >= 1")
        self.attempts = attempts
        self.delay_seconds = delay_seconds
        self.retry_on = retry_on

    async def call(self, fn: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any) -> Any:
        result = None
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.attempts),
            wait=wait_fixed(self.delay_seconds),
            retry=retry_if_exception_type(self.retry_on),
            before_sleep=_log_retry,
            reraise=True,
        ):
            with attempt:
                result = await fn(*args, **kwargs)
        return result

def build_retry_policy(enabled: bool, attempts: int = 3, delay_seconds: float = 2.0):
    """Factory used by the DI container."""
    if not enabled:
        return NoRetry()
    return FixedDelayRetry(attempts=attempts, delay_seconds=delay_seconds)
