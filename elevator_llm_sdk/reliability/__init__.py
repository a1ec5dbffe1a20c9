"""Reliability layer for timeouts, error classification, retries and hooks.

This layer handles:
- Deadline enforcement with real cancellation
- Error classification into the closed APIError taxonomy
- Retry logic with exponential backoff and jitter
- Lifecycle hook isolation
"""

from .timeout import OperationTimeoutError, with_timeout
from .error_classifier import (
    ErrorClassification,
    ErrorClassifier,
    extract_retry_after_ms,
    extract_status_code,
    get_error_message
)
from .retry import RetryConfig, RetryManager, RetryState
from .hooks import LifecycleHookRunner

__all__ = [
    "OperationTimeoutError",
    "with_timeout",
    "ErrorClassification",
    "ErrorClassifier",
    "extract_retry_after_ms",
    "extract_status_code",
    "get_error_message",
    "RetryConfig",
    "RetryManager",
    "RetryState",
    "LifecycleHookRunner"
]
