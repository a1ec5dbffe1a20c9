"""
Base Upstream Client Interface

This module defines the contract between the adapter and the upstream
generation service, plus the closed error taxonomy every failure is
normalized into before it reaches the caller.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, AsyncIterator, Dict, Optional


class UpstreamClient(ABC):
    """
    Abstract base class for the upstream generation client.

    The adapter treats the upstream as opaque: requests are plain dicts built
    by the payload helpers and responses are provider-shaped objects that the
    parsers read defensively.

    Upstream clients should NOT contain:
    - Retry logic
    - Timeout handling
    - Error classification
    """

    @abstractmethod
    async def generate_content(self, request: Dict[str, Any]) -> Any:
        """
        Issue a single-shot generation request.

        Args:
            request: Payload with ``contents``, ``generation_config`` and
                optionally ``safety_settings`` and ``model``

        Returns:
            Provider-shaped response exposing ``candidates``,
            ``usage_metadata`` and optionally ``prompt_feedback``

        Raises:
            Any exception; the adapter classifies whatever is raised.
        """
        pass

    @abstractmethod
    async def generate_content_stream(self, request: Dict[str, Any]) -> "StreamHandle":
        """
        Open a token-streamed generation connection.

        Args:
            request: Same payload shape as ``generate_content``

        Returns:
            StreamHandle yielding provider-shaped increments
        """
        pass

    def get_provider_name(self) -> str:
        """Return the provider name used in log fields."""
        class_name = self.__class__.__name__
        if class_name.endswith("Client"):
            return class_name[:-6].lower()
        return class_name.lower()


class StreamHandle(ABC):
    """An opened upstream stream."""

    @abstractmethod
    def __aiter__(self) -> AsyncIterator[Any]:
        """Iterate provider-shaped increments in arrival order."""
        pass

    @abstractmethod
    async def aggregate(self) -> Any:
        """
        Return the aggregated response once the stream has finished.

        Used only to read aggregate ``usage_metadata``; callers treat any
        failure here as "usage unavailable".
        """
        pass

    async def aclose(self) -> None:
        """Release the underlying connection."""
        return None


class APIErrorCode(str, Enum):
    """Closed set of adapter error codes."""
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
    RATE_LIMITED = "RATE_LIMITED"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    TIMEOUT = "TIMEOUT"
    NETWORK_ERROR = "NETWORK_ERROR"
    MODEL_NOT_FOUND = "MODEL_NOT_FOUND"
    INVALID_REQUEST = "INVALID_REQUEST"
    SERVER_ERROR = "SERVER_ERROR"
    CONTENT_FILTERED = "CONTENT_FILTERED"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


# Default retryability by code
RETRYABLE_CODES = frozenset({
    APIErrorCode.RATE_LIMITED,
    APIErrorCode.QUOTA_EXCEEDED,
    APIErrorCode.TIMEOUT,
    APIErrorCode.NETWORK_ERROR,
    APIErrorCode.SERVER_ERROR,
})


@dataclass(frozen=True)
class APIErrorDetails:
    """Structured details attached to every APIError."""
    retryable: bool = False
    status_code: Optional[int] = None
    retry_after_ms: Optional[float] = None
    original_error: Dict[str, Any] = field(default_factory=dict)

    @property
    def retry_metadata(self) -> Optional[Dict[str, Any]]:
        """Retry history recorded when retries were exhausted."""
        return self.original_error.get("retry_metadata")

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"retryable": self.retryable}
        if self.status_code is not None:
            data["status_code"] = self.status_code
        if self.retry_after_ms is not None:
            data["retry_after_ms"] = self.retry_after_ms
        if self.original_error:
            data["original_error"] = _snapshot(self.original_error)
        return data


class APIError(Exception):
    """
    Classified adapter failure.

    The adapter returns these inside a ``Result``; it never raises them
    across its public boundary. ``Result.unwrap()`` is the only place one is
    raised, and only when the caller asks for it.

    Attributes:
        code: One of the closed ``APIErrorCode`` values
        message: Human-readable description
        details: Retry flag, status code, retry hint and original error snapshot
    """

    type = "api"

    def __init__(
        self,
        code: APIErrorCode,
        message: str,
        details: Optional[APIErrorDetails] = None
    ):
        super().__init__(message)
        self.code = APIErrorCode(code)
        self.message = message
        self.details = details or APIErrorDetails(retryable=self.code in RETRYABLE_CODES)

    @property
    def retryable(self) -> bool:
        return self.details.retryable

    def with_details(self, **changes: Any) -> "APIError":
        """Return a copy with the given detail fields replaced."""
        return APIError(self.code, self.message, replace(self.details, **changes))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "code": self.code.value,
            "message": self.message,
            "details": self.details.to_dict(),
        }

    def __repr__(self) -> str:
        return f"APIError(code={self.code.value!r}, message={self.message!r}, retryable={self.retryable})"


def create_api_error(
    code: APIErrorCode,
    message: str,
    retryable: Optional[bool] = None,
    status_code: Optional[int] = None,
    retry_after_ms: Optional[float] = None,
    original_error: Optional[Dict[str, Any]] = None
) -> APIError:
    """Build an APIError, defaulting ``retryable`` from the code."""
    if retryable is None:
        retryable = APIErrorCode(code) in RETRYABLE_CODES
    return APIError(
        code,
        message,
        APIErrorDetails(
            retryable=retryable,
            status_code=status_code,
            retry_after_ms=retry_after_ms,
            original_error=dict(original_error or {}),
        ),
    )


def is_retryable_error(error: APIError) -> bool:
    """The ``retryable`` flag is the single source of truth."""
    return error.details.retryable


def get_retry_delay_ms(error: APIError, default_delay_ms: float = 1000.0) -> float:
    """Retry hint from the error, or the given default."""
    if error.details.retry_after_ms is not None:
        return error.details.retry_after_ms
    return default_delay_ms


def _snapshot(value: Any) -> Any:
    if isinstance(value, APIError):
        return value.to_dict()
    if isinstance(value, dict):
        return {k: _snapshot(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_snapshot(v) for v in value]
    return value
