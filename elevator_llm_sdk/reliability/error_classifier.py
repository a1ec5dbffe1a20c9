"""
Error classification for upstream failures.

This module maps arbitrary failure values onto the closed APIError taxonomy,
enabling retry decisions without any component downstream of the classifier
ever inspecting raw exceptions. Rules are evaluated top to bottom and the
first match wins.
"""

import asyncio
import re
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, FrozenSet, List, Optional

import httpx

from ..config.constants import DEFAULT_RATE_LIMIT_RETRY_MS
from ..providers.base import APIErrorCode
from .timeout import OperationTimeoutError


# Status codes embedded in free-text messages
STATUS_CODE_PATTERNS = (
    re.compile(r"status:\s*(\d{3})"),
    re.compile(r"http\s*(\d{3})"),
    re.compile(r"(\d{3})\s*error"),
    re.compile(r"error\s*(\d{3})"),
)

RETRY_AFTER_PATTERN = re.compile(
    r"retry[\s_-]*after\s*:?\s*(\d+(?:\.\d+)?)\s*"
    r"(milliseconds?|ms|seconds?|secs?|s|minutes?|mins?|m|hours?|hrs?|h)?\b"
)
RESET_RELATIVE_PATTERN = re.compile(
    r"resets?\s+in\s+(\d+(?:\.\d+)?)\s*"
    r"(milliseconds?|ms|seconds?|secs?|s|minutes?|mins?|m|hours?|hrs?|h)?\b"
)
RESET_ABSOLUTE_PATTERN = re.compile(
    r"resets?\s+at\s+(\d{4}-\d{2}-\d{2}[t ]\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?(?:z|[+-]\d{2}:?\d{2})?|\d{9,13})"
)

UNIT_MS = {
    "millisecond": 1.0, "milliseconds": 1.0, "ms": 1.0,
    "second": 1000.0, "seconds": 1000.0, "sec": 1000.0, "secs": 1000.0, "s": 1000.0,
    "minute": 60000.0, "minutes": 60000.0, "min": 60000.0, "mins": 60000.0, "m": 60000.0,
    "hour": 3600000.0, "hours": 3600000.0, "hr": 3600000.0, "hrs": 3600000.0, "h": 3600000.0,
}


@dataclass
class ErrorClassification:
    """Detailed error classification."""
    code: APIErrorCode
    is_retryable: bool
    user_message: str
    status_code: Optional[int] = None
    suggested_delay_ms: Optional[float] = None


@dataclass
class _FailureView:
    """Normalized view of an arbitrary failure value."""
    message: str
    lowered: str
    names: FrozenSet[str]
    status_code: Optional[int]


def _quota_without_rate(text: str) -> bool:
    return "quota" in text and "rate" not in text


def _model_not_found(text: str) -> bool:
    return "not found" in text and ("model" in text or "resource" in text)


class ErrorClassifier:
    """Priority-ordered rule based error classifier."""

    CLASSIFICATION_RULES: List[Dict[str, Any]] = [
        {
            'code': APIErrorCode.AUTHENTICATION_FAILED,
            'patterns': ['api key', 'authentication', 'unauthorized', 'forbidden'],
            'status_codes': {401, 403},
            'retryable': False,
            'message': 'Authentication failed'
        },
        {
            'code': APIErrorCode.RATE_LIMITED,
            'patterns': ['rate limit', 'resource exhausted', 'too many requests', '429'],
            'status_codes': {429},
            'retryable': True,
            'message': 'Rate limit exceeded'
        },
        {
            'code': APIErrorCode.QUOTA_EXCEEDED,
            'patterns': ['billing', 'usage limit'],
            'predicate': _quota_without_rate,
            'retryable': True,
            'message': 'API quota exceeded'
        },
        {
            'code': APIErrorCode.TIMEOUT,
            'patterns': ['timeout', 'deadline exceeded'],
            'names': {'TimeoutError', 'AbortError'},
            'status_codes': {408, 504},
            'retryable': True,
            'message': 'Request timed out'
        },
        {
            'code': APIErrorCode.NETWORK_ERROR,
            'patterns': ['fetch', 'network', 'connection', 'dns', 'refused'],
            'names': {'NetworkError'},
            'retryable': True,
            'message': 'Network error occurred'
        },
        {
            'code': APIErrorCode.MODEL_NOT_FOUND,
            'patterns': ['unknown model'],
            'predicate': _model_not_found,
            'status_codes': {404},
            'retryable': False,
            'message': 'Specified model not found'
        },
        {
            'code': APIErrorCode.INVALID_REQUEST,
            'patterns': ['invalid', 'malformed', 'bad request', 'validation'],
            'status_codes': {400, 422},
            'retryable': False,
            'message': 'Invalid request'
        },
        {
            'code': APIErrorCode.SERVER_ERROR,
            'patterns': ['server error', 'overloaded', 'capacity'],
            'status_range': (500, 600),
            'retryable': True,
            'message': 'Server error occurred'
        },
    ]

    # Exception types that count as a name marker for a rule
    TIMEOUT_TYPES = (TimeoutError, asyncio.TimeoutError, httpx.TimeoutException)
    NETWORK_TYPES = (ConnectionError, httpx.NetworkError)

    @classmethod
    def classify_error(cls, error: Any) -> ErrorClassification:
        """
        Classify a failure value.

        Args:
            error: Anything that was raised or returned as a failure

        Returns:
            ErrorClassification with code, retry flag and hints
        """
        # deadline digits in the message must not reach the status or 429 patterns
        if isinstance(error, OperationTimeoutError):
            return ErrorClassification(
                code=APIErrorCode.TIMEOUT,
                is_retryable=True,
                user_message="Request timed out"
            )

        view = cls._view(error)

        for rule in cls.CLASSIFICATION_RULES:
            if cls._matches(rule, view):
                code = rule['code']
                delay = None
                if rule['retryable']:
                    delay = cls._get_retry_delay(error, view.lowered)
                    if delay is None and code == APIErrorCode.RATE_LIMITED:
                        delay = DEFAULT_RATE_LIMIT_RETRY_MS
                return ErrorClassification(
                    code=code,
                    is_retryable=rule['retryable'],
                    user_message=rule['message'],
                    status_code=view.status_code,
                    suggested_delay_ms=delay
                )

        return ErrorClassification(
            code=APIErrorCode.UNKNOWN_ERROR,
            is_retryable=False,
            user_message=view.message or "An unknown error occurred",
            status_code=view.status_code
        )

    @classmethod
    def _matches(cls, rule: Dict[str, Any], view: _FailureView) -> bool:
        if any(pattern in view.lowered for pattern in rule.get('patterns', ())):
            return True
        predicate: Optional[Callable[[str], bool]] = rule.get('predicate')
        if predicate is not None and predicate(view.lowered):
            return True
        if view.names & rule.get('names', set()):
            return True
        if view.status_code is not None:
            if view.status_code in rule.get('status_codes', set()):
                return True
            status_range = rule.get('status_range')
            if status_range and status_range[0] <= view.status_code < status_range[1]:
                return True
        return False

    @classmethod
    def _view(cls, error: Any) -> _FailureView:
        message = get_error_message(error)
        lowered = message.lower()
        return _FailureView(
            message=message,
            lowered=lowered,
            names=cls._name_markers(error),
            status_code=extract_status_code(error, lowered)
        )

    @classmethod
    def _name_markers(cls, error: Any) -> FrozenSet[str]:
        if not isinstance(error, BaseException):
            name = error.get('name') if isinstance(error, dict) else getattr(error, 'name', None)
            return frozenset({name}) if isinstance(name, str) else frozenset()

        names = {klass.__name__ for klass in type(error).__mro__}
        explicit = getattr(error, 'name', None)
        if isinstance(explicit, str):
            names.add(explicit)
        if isinstance(error, cls.TIMEOUT_TYPES):
            names.add('TimeoutError')
        elif isinstance(error, cls.NETWORK_TYPES):
            names.add('NetworkError')
        return frozenset(names)

    @classmethod
    def _get_retry_delay(cls, error: Any, lowered: str) -> Optional[float]:
        """Extract retry delay in milliseconds from the error, if any."""
        # retry_after attribute (seconds) first, it is the most direct
        retry_after = getattr(error, 'retry_after', None)
        if isinstance(retry_after, (int, float)) and not isinstance(retry_after, bool):
            return max(float(retry_after) * 1000.0, 0.0)

        response = getattr(error, 'response', None)
        headers = getattr(response, 'headers', None)
        if headers is not None:
            try:
                header = headers.get('Retry-After')
            except Exception:
                header = None
            if header:
                try:
                    return max(float(header) * 1000.0, 0.0)
                except (TypeError, ValueError):
                    pass

        return extract_retry_after_ms(lowered)


def get_error_message(error: Any) -> str:
    """Best-effort message of an arbitrary failure value."""
    if error is None:
        return ""
    if isinstance(error, str):
        return error
    if isinstance(error, dict):
        message = error.get('message')
        return message if isinstance(message, str) else ""
    message = getattr(error, 'message', None)
    if isinstance(message, str) and message:
        return message
    try:
        return str(error)
    except Exception:
        return ""


def extract_status_code(error: Any, lowered_message: Optional[str] = None) -> Optional[int]:
    """
    Find an HTTP-like status code on a failure value.

    Checks ``status_code``, integer ``code``/``status`` attributes and
    ``response.status_code`` before scanning the message text.
    """
    candidates = []
    if isinstance(error, dict):
        candidates.extend(error.get(key) for key in ('status_code', 'statusCode', 'code', 'status'))
    else:
        candidates.extend(getattr(error, key, None) for key in ('status_code', 'code', 'status'))
        response = getattr(error, 'response', None)
        if response is not None:
            candidates.append(getattr(response, 'status_code', None))

    for candidate in candidates:
        if isinstance(candidate, int) and not isinstance(candidate, bool) and 100 <= candidate < 600:
            return candidate

    text = lowered_message if lowered_message is not None else get_error_message(error).lower()
    for pattern in STATUS_CODE_PATTERNS:
        match = pattern.search(text)
        if match:
            return int(match.group(1))
    return None


def extract_retry_after_ms(text: str, now: Optional[float] = None) -> Optional[float]:
    """
    Parse a retry hint from message text.

    Understands "retry after N seconds/minutes/hours", "resets in N ..." and
    "resets at <ISO timestamp | epoch>". A bare number defaults to seconds.

    Args:
        text: Message text (any case)
        now: Current epoch seconds, for absolute reset times

    Returns:
        Delay in milliseconds, or None if the text carries no hint
    """
    lowered = text.lower()

    for pattern in (RETRY_AFTER_PATTERN, RESET_RELATIVE_PATTERN):
        match = pattern.search(lowered)
        if match:
            return float(match.group(1)) * UNIT_MS.get(match.group(2) or "s", 1000.0)

    match = RESET_ABSOLUTE_PATTERN.search(lowered)
    if match:
        reset_at = _parse_reset_time(match.group(1))
        if reset_at is not None:
            current = time.time() if now is None else now
            return max((reset_at - current) * 1000.0, 0.0)

    return None


def _parse_reset_time(raw: str) -> Optional[float]:
    """Epoch seconds for an ISO timestamp or an epoch (seconds or ms)."""
    if raw.isdigit():
        value = float(raw)
        return value / 1000.0 if len(raw) > 10 else value

    normalized = raw.upper().replace("Z", "+00:00")
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()
