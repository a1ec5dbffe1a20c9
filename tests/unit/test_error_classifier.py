"""Unit tests for error classification and mapping."""

from datetime import datetime, timezone

import httpx
import pytest

from elevator_llm_sdk.providers.base import APIError, APIErrorCode, create_api_error
from elevator_llm_sdk.providers.errors import ErrorMapper
from elevator_llm_sdk.reliability.error_classifier import (
    ErrorClassifier,
    extract_retry_after_ms,
    extract_status_code,
)
from elevator_llm_sdk.reliability.timeout import OperationTimeoutError
from tests.helpers.mock_exceptions import (
    MockHTTPStatusError,
    MockInvalidArgument,
    MockNotFound,
    MockPermissionDenied,
    MockResourceExhausted,
    MockRetryAfterError,
    MockServiceUnavailable,
    mock_named_error,
)


@pytest.mark.unit
class TestClassificationRules:
    """Each rule of the taxonomy, in priority order."""

    @pytest.mark.parametrize("error,expected", [
        (Exception("API key not valid. Please pass a valid API key."), APIErrorCode.AUTHENTICATION_FAILED),
        (Exception("Request had invalid authentication credentials"), APIErrorCode.AUTHENTICATION_FAILED),
        (MockPermissionDenied(), APIErrorCode.AUTHENTICATION_FAILED),
        (Exception("429 Too Many Requests"), APIErrorCode.RATE_LIMITED),
        (Exception("Resource exhausted"), APIErrorCode.RATE_LIMITED),
        (MockResourceExhausted(), APIErrorCode.RATE_LIMITED),
        (Exception("Quota exceeded for this project"), APIErrorCode.QUOTA_EXCEEDED),
        (Exception("Billing account is disabled"), APIErrorCode.QUOTA_EXCEEDED),
        (Exception("Deadline exceeded while waiting"), APIErrorCode.TIMEOUT),
        (OperationTimeoutError("generate", 5), APIErrorCode.TIMEOUT),
        (Exception("Failed to fetch"), APIErrorCode.NETWORK_ERROR),
        (Exception("DNS lookup failed"), APIErrorCode.NETWORK_ERROR),
        (MockNotFound(), APIErrorCode.MODEL_NOT_FOUND),
        (Exception("Unknown model requested"), APIErrorCode.MODEL_NOT_FOUND),
        (MockInvalidArgument(), APIErrorCode.INVALID_REQUEST),
        (Exception("Malformed JSON payload"), APIErrorCode.INVALID_REQUEST),
        (Exception("Internal server error"), APIErrorCode.SERVER_ERROR),
        (Exception("The model is overloaded"), APIErrorCode.SERVER_ERROR),
        (MockServiceUnavailable(), APIErrorCode.SERVER_ERROR),
        (Exception("Something odd happened"), APIErrorCode.UNKNOWN_ERROR),
    ])
    def test_rule_codes(self, error, expected):
        """Messages, status codes and markers map to the expected code."""
        assert ErrorClassifier.classify_error(error).code == expected

    def test_first_match_wins(self):
        """'Invalid API key' is an authentication failure, not an invalid request."""
        classification = ErrorClassifier.classify_error(Exception("Invalid API key"))

        assert classification.code == APIErrorCode.AUTHENTICATION_FAILED
        assert classification.is_retryable is False

    def test_quota_with_rate_is_not_quota(self):
        """'quota' only counts when 'rate' is absent."""
        classification = ErrorClassifier.classify_error(Exception("Rate quota reached"))

        assert classification.code != APIErrorCode.QUOTA_EXCEEDED

    def test_retryable_flags(self):
        """Retryability follows the taxonomy."""
        assert ErrorClassifier.classify_error(Exception("Failed to fetch")).is_retryable
        assert ErrorClassifier.classify_error(Exception("Internal server error")).is_retryable
        assert not ErrorClassifier.classify_error(Exception("bad request")).is_retryable
        assert not ErrorClassifier.classify_error(Exception("???")).is_retryable

    def test_user_messages(self):
        assert ErrorClassifier.classify_error(Exception("Failed to fetch")).user_message == "Network error occurred"
        assert ErrorClassifier.classify_error(Exception("Something odd happened")).user_message == "Something odd happened"
        assert ErrorClassifier.classify_error(None).user_message == "An unknown error occurred"


@pytest.mark.unit
class TestClassificationInputs:
    """Arbitrary failure shapes."""

    def test_named_markers(self):
        """Explicit name markers select TIMEOUT and NETWORK_ERROR."""
        assert ErrorClassifier.classify_error(mock_named_error("AbortError", "aborted")).code == APIErrorCode.TIMEOUT
        assert ErrorClassifier.classify_error(mock_named_error("NetworkError", "boom")).code == APIErrorCode.NETWORK_ERROR

    def test_builtin_exception_types(self):
        assert ErrorClassifier.classify_error(TimeoutError()).code == APIErrorCode.TIMEOUT
        assert ErrorClassifier.classify_error(ConnectionRefusedError()).code == APIErrorCode.NETWORK_ERROR

    def test_httpx_exception_types(self):
        assert ErrorClassifier.classify_error(httpx.ReadTimeout("read")).code == APIErrorCode.TIMEOUT
        assert ErrorClassifier.classify_error(httpx.ConnectError("no route")).code == APIErrorCode.NETWORK_ERROR

    def test_dict_failure(self):
        classification = ErrorClassifier.classify_error({"message": "Failed to fetch", "name": "TypeError"})

        assert classification.code == APIErrorCode.NETWORK_ERROR

    def test_non_exception_values(self):
        assert ErrorClassifier.classify_error(None).code == APIErrorCode.UNKNOWN_ERROR
        assert ErrorClassifier.classify_error(42).code == APIErrorCode.UNKNOWN_ERROR
        assert ErrorClassifier.classify_error("rate limit exceeded").code == APIErrorCode.RATE_LIMITED

    def test_response_status_code(self):
        """A status on the attached response is enough to classify."""
        classification = ErrorClassifier.classify_error(MockHTTPStatusError("Upstream said no", 502))

        assert classification.code == APIErrorCode.SERVER_ERROR
        assert classification.status_code == 502


@pytest.mark.unit
class TestRetryHints:
    """Retry hints attached to classifications."""

    def test_rate_limit_default_delay(self):
        classification = ErrorClassifier.classify_error(Exception("429 Too Many Requests"))

        assert classification.suggested_delay_ms == 60000

    def test_rate_limit_hint_from_message(self):
        classification = ErrorClassifier.classify_error(Exception("Rate limit exceeded. Retry after 30 seconds"))

        assert classification.suggested_delay_ms == 30000

    def test_retry_after_header(self):
        classification = ErrorClassifier.classify_error(MockHTTPStatusError("Slow down", 429, retry_after=7))

        assert classification.code == APIErrorCode.RATE_LIMITED
        assert classification.suggested_delay_ms == 7000

    def test_retry_after_attribute(self):
        classification = ErrorClassifier.classify_error(MockRetryAfterError(retry_after=2))

        assert classification.suggested_delay_ms == 2000

    def test_non_rate_limit_without_hint(self):
        classification = ErrorClassifier.classify_error(Exception("Failed to fetch"))

        assert classification.suggested_delay_ms is None

    def test_non_retryable_ignores_hint(self):
        classification = ErrorClassifier.classify_error(Exception("Invalid API key, retry after 5 seconds"))

        assert classification.suggested_delay_ms is None


@pytest.mark.unit
class TestExtractors:
    """Status code and retry-after extraction from text."""

    @pytest.mark.parametrize("message,expected", [
        ("Request failed with status: 503", 503),
        ("HTTP 401 returned", 401),
        ("got 500 error from backend", 500),
        ("error 404 while loading", 404),
        ("nothing numeric here", None),
    ])
    def test_status_patterns(self, message, expected):
        assert extract_status_code(Exception(message)) == expected

    def test_status_attribute_wins(self):
        assert extract_status_code(MockPermissionDenied("status: 500")) == 403

    def test_out_of_range_code_ignored(self):
        error = Exception("plain")
        error.code = 7
        assert extract_status_code(error) is None

    @pytest.mark.parametrize("text,expected", [
        ("retry after 5 seconds", 5000),
        ("Retry-After: 120", 120000),
        ("please retry after 500ms", 500),
        ("retry after 2 minutes", 120000),
        ("retry after 1 hour", 3600000),
        ("limit resets in 10 minutes", 600000),
        ("no hint here", None),
    ])
    def test_relative_hints(self, text, expected):
        assert extract_retry_after_ms(text) == expected

    def test_absolute_iso_reset(self):
        now = datetime(2026, 1, 1, tzinfo=timezone.utc).timestamp()

        assert extract_retry_after_ms("quota resets at 2026-01-01T00:00:10Z", now=now) == pytest.approx(10000)

    def test_absolute_epoch_reset(self):
        assert extract_retry_after_ms("resets at 1700000010", now=1700000000) == pytest.approx(10000)
        assert extract_retry_after_ms("resets at 1700000010000", now=1700000000) == pytest.approx(10000)

    def test_reset_in_the_past(self):
        assert extract_retry_after_ms("resets at 1700000000", now=1700000100) == 0


@pytest.mark.unit
class TestErrorMapper:
    """Mapping raw failures to APIError."""

    def test_map_error_builds_details(self):
        error = ErrorMapper.map_error(MockResourceExhausted())

        assert isinstance(error, APIError)
        assert error.code == APIErrorCode.RATE_LIMITED
        assert error.message == "Rate limit exceeded"
        assert error.details.retryable is True
        assert error.details.status_code == 429
        assert error.details.retry_after_ms == 60000
        assert error.details.original_error == {
            "message": "429 Resource has been exhausted (e.g. check quota).",
            "name": "MockResourceExhausted",
        }

    def test_api_error_passes_through(self):
        original = create_api_error(APIErrorCode.CONTENT_FILTERED, "blocked")

        assert ErrorMapper.map_error(original) is original

    @pytest.mark.parametrize("timeout_ms", [429, 1429, 4290, 42900, 5030])
    def test_deadline_digits_do_not_leak_into_classification(self, timeout_ms):
        error = ErrorMapper.map_error(OperationTimeoutError("generate", timeout_ms))

        assert error.code == APIErrorCode.TIMEOUT
        assert error.retryable is True
        assert error.details.retry_after_ms is None
        assert error.details.status_code is None
        assert error.details.original_error["name"] == "OperationTimeoutError"

    def test_classification_summary(self):
        summary = ErrorMapper.get_error_classification(ErrorMapper.map_error(Exception("Failed to fetch")))

        assert summary["code"] == "NETWORK_ERROR"
        assert summary["is_retryable"] is True
        assert summary["error_type"] == "Exception"
