"""
Error mapping utilities for the upstream adapter.

This module converts whatever the upstream raised into a standardized
APIError, using ErrorClassifier for the taxonomy decision.
"""

from typing import Any, Dict

from .base import APIError, APIErrorDetails
from ..reliability.error_classifier import ErrorClassifier, get_error_message


class ErrorMapper:
    """Maps upstream failures to standardized APIError."""

    @staticmethod
    def map_error(error: Any) -> APIError:
        """
        Map an arbitrary failure value to APIError.

        Args:
            error: The exception (or any other failure value)

        Returns:
            APIError with classification metadata and an original error snapshot
        """
        if isinstance(error, APIError):
            return error

        classification = ErrorClassifier.classify_error(error)

        return APIError(
            classification.code,
            classification.user_message,
            APIErrorDetails(
                retryable=classification.is_retryable,
                status_code=classification.status_code,
                retry_after_ms=classification.suggested_delay_ms,
                original_error=ErrorMapper.snapshot(error),
            ),
        )

    @staticmethod
    def snapshot(error: Any) -> Dict[str, Any]:
        """Opaque, serializable snapshot of the original failure."""
        if isinstance(error, BaseException):
            name = type(error).__name__
        elif isinstance(error, dict):
            name = error.get('name') or type(error).__name__
        else:
            name = getattr(error, 'name', None) or type(error).__name__
        return {
            'message': get_error_message(error),
            'name': name,
        }

    @staticmethod
    def get_error_classification(error: APIError) -> Dict[str, Any]:
        """
        Get error classification for logging.

        Args:
            error: The APIError to describe

        Returns:
            Dict with error classification details
        """
        return {
            'code': error.code.value,
            'status_code': error.details.status_code,
            'is_retryable': error.details.retryable,
            'retry_after_ms': error.details.retry_after_ms,
            'error_type': error.details.original_error.get('name'),
        }
