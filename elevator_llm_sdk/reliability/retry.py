from __future__ import annotations

import asyncio
import logging
import random
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from ..config.constants import (
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_BASE_DELAY_MS,
    DEFAULT_JITTER_FACTOR,
    DEFAULT_MAX_RETRIES,
)
from ..models.result import Result
from ..providers.base import APIError, APIErrorCode, create_api_error, get_retry_delay_ms, is_retryable_error

logger = logging.getLogger(__name__)

T = TypeVar('T')

Sleep = Callable[[float], Awaitable[Any]]


@dataclass
class RetryConfig:
    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay_ms: float = DEFAULT_BASE_DELAY_MS
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR
    jitter_factor: float = DEFAULT_JITTER_FACTOR
    max_delay_ms: Optional[float] = None


@dataclass
class RetryState:
    """Tracks retry state for one logical call."""
    attempts: int = 0
    total_delay_ms: float = 0.0
    errors: List[APIError] = field(default_factory=list)
    start_time: float = field(default_factory=time.monotonic)

    def add_attempt(self, error: Optional[APIError] = None):
        """Record a finished attempt."""
        self.attempts += 1
        if error is not None:
            self.errors.append(error)

    def get_duration_ms(self) -> int:
        return int((time.monotonic() - self.start_time) * 1000)

    def get_last_error(self) -> Optional[APIError]:
        return self.errors[-1] if self.errors else None

    def to_metadata(self) -> Dict[str, Any]:
        return {
            'attempts': self.attempts,
            'total_duration_ms': self.get_duration_ms(),
            'last_attempt_error': self.get_last_error(),
        }


class RetryManager:
    """
    Manages retry logic for adapter operations.

    Operations return a ``Result``; a failed result is retried only while its
    error is flagged retryable and attempts remain. An operation that raises
    is treated as a programmer error: it becomes UNKNOWN_ERROR and ends the
    loop at once.

    This class handles:
    - Exponential backoff with jitter
    - Respect for retry hints carried by the error
    - Retry metadata on the final error
    """

    def __init__(self, sleep: Optional[Sleep] = None, rng: Optional[random.Random] = None):
        self._sleep = sleep or asyncio.sleep
        self._rng = rng or random.Random()

    async def execute_with_retry(
        self,
        operation: Callable[[], Awaitable[Result[T]]],
        config: Optional[RetryConfig] = None,
        request_id: Optional[str] = None
    ) -> Result[T]:
        """
        Execute an operation with retry logic.

        Args:
            operation: Zero-argument coroutine function returning a Result
            config: Retry configuration
            request_id: Identifier used in log records

        Returns:
            The first successful Result, or a failed Result whose error
            carries retry metadata when the loop ran to a classified end
        """
        config = config or RetryConfig()
        state = RetryState()
        last_error: Optional[APIError] = None

        for attempt in range(config.max_retries + 1):
            try:
                result = await operation()
            except Exception as e:  # noqa: BLE001
                last_error = create_api_error(
                    APIErrorCode.UNKNOWN_ERROR,
                    str(e) or "Unexpected error",
                    retryable=False,
                    original_error={"message": str(e), "name": type(e).__name__}
                )
                logger.error(
                    f"Request {request_id} raised unexpectedly, not retrying",
                    extra={"request_id": request_id, "attempt": attempt + 1, "error_type": type(e).__name__}
                )
                break

            if result.success:
                if state.attempts > 0:
                    logger.info(
                        f"Request {request_id} succeeded after {state.attempts} retries",
                        extra={
                            "request_id": request_id,
                            "attempts": state.attempts + 1,
                            "total_delay_ms": state.total_delay_ms
                        }
                    )
                return result

            last_error = result.error
            state.add_attempt(last_error)

            if attempt == config.max_retries or not is_retryable_error(last_error):
                if attempt > 0:
                    logger.error(
                        f"Request {request_id} failed after {state.attempts} attempts",
                        extra={
                            "request_id": request_id,
                            "attempts": state.attempts,
                            "error_code": last_error.code.value
                        }
                    )
                return Result.fail(self._with_retry_metadata(last_error, state))

            delay_ms = self.calculate_delay_ms(last_error, attempt, config)
            state.total_delay_ms += delay_ms
            self._log_retry(request_id, attempt, last_error, delay_ms)
            await self._sleep(delay_ms / 1000.0)

        return Result.fail(
            last_error or create_api_error(
                APIErrorCode.UNKNOWN_ERROR,
                "Retry logic failed unexpectedly",
                retryable=False
            )
        )

    def calculate_delay_ms(self, error: APIError, attempt: int, config: RetryConfig) -> float:
        """
        Delay before the next attempt.

        ``hint * factor**attempt`` perturbed by up to ``jitter_factor`` either
        way, where ``hint`` is the error's retry hint or the base delay.
        """
        base = get_retry_delay_ms(error, config.base_delay_ms)
        delay = base * (config.backoff_factor ** attempt)
        if config.max_delay_ms is not None:
            delay = min(delay, config.max_delay_ms)

        jitter = self._rng.uniform(-config.jitter_factor, config.jitter_factor) * delay
        return max(delay + jitter, 0.0)

    @staticmethod
    def _with_retry_metadata(error: APIError, state: RetryState) -> APIError:
        original = dict(error.details.original_error)
        original['retry_metadata'] = state.to_metadata()
        return error.with_details(original_error=original)

    def _log_retry(self, request_id: Optional[str], attempt: int, error: APIError, delay_ms: float):
        """Log retry attempt with context."""
        logger.warning(
            f"Retrying request {request_id} after {error.code.value}",
            extra={
                "request_id": request_id,
                "attempt": attempt + 1,
                "error_code": error.code.value,
                "error_message": error.message[:200],
                "delay_ms": delay_ms,
            }
        )
