"""
Structured logging utility for the generation adapter.

This module provides a consistent logging interface for the executor, the
streaming generator and the hook runner, ensuring structured logging with
standard fields like provider, model, and request_id.
"""

import logging
import time
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Optional, Protocol

from ..models.generation import TokenUsage


class LogSink(Protocol):
    """Anything that can record a swallowed error."""

    def log(self, message: str, error: Optional[BaseException] = None) -> None:
        ...


class AdapterLogger:
    """Structured logger for the generation adapter."""

    def __init__(self, provider_name: str = "gemini"):
        """
        Initialize logger for a specific provider.

        Args:
            provider_name: Name of the upstream provider (e.g., "gemini")
        """
        self.provider = provider_name
        self.logger = logging.getLogger(f"elevator_llm_sdk.providers.{provider_name}")

    def _format_message(self, message: str, **kwargs) -> str:
        """Format message with structured fields."""
        fields = [f"provider={self.provider}"]

        for key, value in kwargs.items():
            if value is not None:
                fields.append(f"{key}={value}")

        return f"[{' '.join(fields)}] {message}"

    def debug(self, message: str, model: Optional[str] = None,
              request_id: Optional[str] = None, **kwargs):
        """Log debug message with structured fields."""
        self.logger.debug(
            self._format_message(message, model=model, request_id=request_id, **kwargs)
        )

    def info(self, message: str, model: Optional[str] = None,
             request_id: Optional[str] = None, **kwargs):
        """Log info message with structured fields."""
        self.logger.info(
            self._format_message(message, model=model, request_id=request_id, **kwargs)
        )

    def warning(self, message: str, model: Optional[str] = None,
                request_id: Optional[str] = None, **kwargs):
        """Log warning message with structured fields."""
        self.logger.warning(
            self._format_message(message, model=model, request_id=request_id, **kwargs)
        )

    def error(self, message: str, model: Optional[str] = None,
              request_id: Optional[str] = None, error: Optional[BaseException] = None, **kwargs):
        """Log error message with structured fields."""
        if error:
            kwargs['error_type'] = type(error).__name__
            kwargs['error_msg'] = str(error)

        self.logger.error(
            self._format_message(message, model=model, request_id=request_id, **kwargs)
        )

    def log(self, message: str, error: Optional[BaseException] = None) -> None:
        """Log sink entry point for errors the adapter recovers from silently."""
        fields: Dict[str, Any] = {}
        if error is not None:
            fields['error_type'] = type(error).__name__
            fields['error_msg'] = str(error)
        self.logger.warning(self._format_message(message, **fields))

    @contextmanager
    def track_request(self, method: str, model: str, request_id: Optional[str] = None):
        """
        Context manager to track request timing.

        The adapter reports failures through ``Result`` values rather than
        exceptions, so callers record the outcome on the yielded dict under
        ``error_code``; a set code is logged as a failure.

        Args:
            method: The method being called (e.g., "generate", "stream")
            model: The model being used
            request_id: Optional request ID (generated if not provided)

        Yields:
            Dict with request metadata including request_id
        """
        if request_id is None:
            request_id = str(uuid.uuid4())[:8]

        start_time = time.time()

        self.debug(
            f"Starting {method} request",
            model=model,
            request_id=request_id,
            method=method
        )

        metadata: Dict[str, Any] = {
            'request_id': request_id,
            'model': model,
            'method': method,
            'start_time': start_time,
            'error_code': None
        }

        try:
            yield metadata
        finally:
            duration_ms = int((time.time() - start_time) * 1000)
            if metadata['error_code']:
                self.warning(
                    f"Failed {method} request",
                    model=model,
                    request_id=request_id,
                    method=method,
                    duration_ms=duration_ms,
                    error_code=metadata['error_code']
                )
            else:
                self.info(
                    f"Completed {method} request",
                    model=model,
                    request_id=request_id,
                    method=method,
                    duration_ms=duration_ms
                )

    def log_usage(self, usage: TokenUsage, model: str, request_id: str):
        """Log token usage information."""
        self.info(
            "Token usage",
            model=model,
            request_id=request_id,
            prompt_tokens=usage.prompt_tokens,
            completion_tokens=usage.completion_tokens,
            total_tokens=usage.total_tokens
        )

    def log_streaming_metrics(self, chunks: int, total_chars: int, duration: float,
                              model: str, request_id: str):
        """Log streaming performance metrics."""
        chars_per_second = total_chars / duration if duration > 0 else 0

        self.info(
            "Streaming metrics",
            model=model,
            request_id=request_id,
            chunks=chunks,
            total_chars=total_chars,
            duration_ms=int(duration * 1000),
            chars_per_second=int(chars_per_second)
        )
