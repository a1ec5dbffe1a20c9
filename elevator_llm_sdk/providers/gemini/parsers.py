from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from ...config.constants import (
    BLOCK_REASON_BY_NUMBER,
    FINISH_REASON_BY_NUMBER,
    HARM_CATEGORY_PREFIX,
    HARM_PROBABILITY_BY_NUMBER,
    REPORTED_SAFETY_PROBABILITIES,
    UNSPECIFIED_BLOCK_REASONS,
    UNSPECIFIED_SAFETY_SUMMARY,
)
from ...models.generation import FinishReason, TokenUsage
from ..base import APIError, APIErrorCode, create_api_error


def get_field(obj: Any, *names: str) -> Any:
    """Read the first present field from a dict or an object.

    Callers pass both spellings (``usage_metadata``, ``usageMetadata``) so
    proto objects, plain dicts and JSON payloads all read the same way.
    """
    if obj is None:
        return None
    for name in names:
        if isinstance(obj, Mapping):
            value = obj.get(name)
        else:
            try:
                value = getattr(obj, name, None)
            except Exception:
                value = None
        if value is not None:
            return value
    return None


def enum_name(raw: Any, by_number: Optional[Dict[int, str]] = None) -> Optional[str]:
    """Upper-case name of an upstream enum given as member, int or str."""
    if raw is None:
        return None
    name = getattr(raw, "name", None)
    if isinstance(name, str) and name:
        return name.upper()
    if isinstance(raw, int) and not isinstance(raw, bool):
        return (by_number or {}).get(raw, str(raw))
    text = str(raw).strip()
    return text.upper() or None


def _first(items: Any) -> Any:
    try:
        return items[0] if items else None
    except (IndexError, KeyError, TypeError):
        return None


def first_candidate(response: Any) -> Any:
    return _first(get_field(response, "candidates"))


def finish_reason_name(candidate: Any) -> Optional[str]:
    return enum_name(get_field(candidate, "finish_reason", "finishReason"), FINISH_REASON_BY_NUMBER)


def map_finish_reason(reason: Optional[str]) -> FinishReason:
    """Map an upstream finish reason name onto the closed FinishReason set."""
    if reason == "STOP":
        return FinishReason.STOP
    if reason == "MAX_TOKENS":
        return FinishReason.LENGTH
    if reason in ("SAFETY", "RECITATION"):
        return FinishReason.SAFETY
    return FinishReason.OTHER


def extract_text(response: Any) -> str:
    """Concatenate the text parts of the first candidate.

    Reads the candidate content directly instead of the SDK's ``text``
    accessor, which raises when the candidate was blocked.
    """
    candidate = first_candidate(response)
    content = get_field(candidate, "content")
    parts = get_field(content, "parts") or []
    pieces: List[str] = []
    try:
        for part in parts:
            text = get_field(part, "text")
            if isinstance(text, str):
                pieces.append(text)
    except TypeError:
        return ""
    return "".join(pieces)


def extract_usage(response: Any) -> Optional[TokenUsage]:
    """Token usage from ``usage_metadata``, or None if the response has none."""
    metadata = get_field(response, "usage_metadata", "usageMetadata")
    if metadata is None:
        return None
    return TokenUsage(
        prompt_tokens=get_field(metadata, "prompt_token_count", "promptTokenCount"),
        completion_tokens=get_field(metadata, "candidates_token_count", "candidatesTokenCount"),
        total_tokens=get_field(metadata, "total_token_count", "totalTokenCount"),
    )


def normalize_safety_ratings(ratings: Any) -> List[Dict[str, Optional[str]]]:
    normalized = []
    try:
        for rating in ratings or []:
            normalized.append({
                "category": enum_name(get_field(rating, "category")),
                "probability": enum_name(get_field(rating, "probability"), HARM_PROBABILITY_BY_NUMBER),
            })
    except TypeError:
        return []
    return normalized


def summarize_safety_ratings(ratings: Any) -> str:
    """Readable summary of the HIGH/MEDIUM ratings, e.g. ``hate_speech (high)``."""
    triggered = []
    for rating in normalize_safety_ratings(ratings):
        category, probability = rating["category"], rating["probability"]
        if not category or probability not in REPORTED_SAFETY_PROBABILITIES:
            continue
        if category.startswith(HARM_CATEGORY_PREFIX):
            category = category[len(HARM_CATEGORY_PREFIX):]
        triggered.append(f"{category.lower()} ({probability.lower()})")
    return ", ".join(triggered) or UNSPECIFIED_SAFETY_SUMMARY


def safety_error(candidate: Any) -> APIError:
    ratings = get_field(candidate, "safety_ratings", "safetyRatings")
    return create_api_error(
        APIErrorCode.CONTENT_FILTERED,
        f"Content was blocked by safety filters: {summarize_safety_ratings(ratings)}",
        retryable=False,
        original_error={
            "name": "SafetyBlock",
            "finish_reason": "SAFETY",
            "safety_ratings": normalize_safety_ratings(ratings),
        },
    )


def recitation_error() -> APIError:
    return create_api_error(
        APIErrorCode.CONTENT_FILTERED,
        "Content was blocked due to recitation of existing material",
        retryable=False,
        original_error={"name": "RecitationBlock", "finish_reason": "RECITATION"},
    )


def prompt_block_error(block_reason: str, ratings: Any = None) -> APIError:
    return create_api_error(
        APIErrorCode.CONTENT_FILTERED,
        f"Prompt was blocked: {block_reason.lower()}",
        retryable=False,
        original_error={
            "name": "PromptBlock",
            "block_reason": block_reason,
            "safety_ratings": normalize_safety_ratings(ratings),
        },
    )


def check_blocked(response: Any) -> Optional[APIError]:
    """Return a CONTENT_FILTERED error if the response was blocked, else None."""
    candidate = first_candidate(response)

    if candidate is None:
        feedback = get_field(response, "prompt_feedback", "promptFeedback")
        reason = enum_name(get_field(feedback, "block_reason", "blockReason"), BLOCK_REASON_BY_NUMBER)
        if reason and reason not in UNSPECIFIED_BLOCK_REASONS:
            return prompt_block_error(reason, get_field(feedback, "safety_ratings", "safetyRatings"))
        return None

    return check_candidate_blocked(candidate)


def check_candidate_blocked(candidate: Any) -> Optional[APIError]:
    reason = finish_reason_name(candidate)
    if reason == "SAFETY":
        return safety_error(candidate)
    if reason == "RECITATION":
        return recitation_error()
    return None
