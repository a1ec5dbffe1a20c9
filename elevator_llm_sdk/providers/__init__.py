"""
Upstream Client Layer

This layer contains the contract with the upstream generation service and
the closed error taxonomy. The concrete Gemini client lives in
``providers.gemini`` and is imported from there explicitly.
"""

from .base import (
    APIError,
    APIErrorCode,
    APIErrorDetails,
    StreamHandle,
    UpstreamClient,
    create_api_error,
    get_retry_delay_ms,
    is_retryable_error
)

__all__ = [
    "APIError",
    "APIErrorCode",
    "APIErrorDetails",
    "StreamHandle",
    "UpstreamClient",
    "create_api_error",
    "get_retry_delay_ms",
    "is_retryable_error",
]
