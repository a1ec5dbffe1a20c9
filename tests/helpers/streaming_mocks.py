"""Helper functions for creating Gemini-shaped responses and streams."""

from types import SimpleNamespace
from typing import Any, Dict, Iterable, List, Optional

from elevator_llm_sdk.providers.base import StreamHandle


def make_usage(prompt: int = 5, completion: int = 10, total: int = 15) -> SimpleNamespace:
    return SimpleNamespace(
        prompt_token_count=prompt,
        candidates_token_count=completion,
        total_token_count=total,
    )


def make_rating(category: str, probability: str) -> SimpleNamespace:
    return SimpleNamespace(category=category, probability=probability)


def make_response(
    text: Optional[str] = "Hello",
    finish_reason: Any = "STOP",
    safety_ratings: Optional[List[Any]] = None,
    usage: Optional[SimpleNamespace] = None,
    candidates: bool = True,
    prompt_feedback: Any = None,
) -> SimpleNamespace:
    """Build a response shaped like the SDK's GenerateContentResponse."""
    parts = [SimpleNamespace(text=text)] if text is not None else []
    candidate = SimpleNamespace(
        content=SimpleNamespace(parts=parts),
        finish_reason=finish_reason,
        safety_ratings=safety_ratings or [],
    )
    return SimpleNamespace(
        candidates=[candidate] if candidates else [],
        usage_metadata=usage,
        prompt_feedback=prompt_feedback,
    )


def make_dict_response(text: str, finish_reason: str = "STOP", usage: Optional[Dict[str, int]] = None) -> Dict[str, Any]:
    """JSON-shaped (camelCase) response."""
    return {
        "candidates": [{
            "content": {"parts": [{"text": text}]},
            "finishReason": finish_reason,
        }],
        "usageMetadata": usage,
    }


class FakeStreamHandle(StreamHandle):
    """Scripted stream: yields increments, optionally raising after some of them."""

    def __init__(
        self,
        increments: Iterable[Any],
        error: Optional[BaseException] = None,
        aggregate_response: Any = None,
        aggregate_error: Optional[BaseException] = None,
    ):
        self.increments = list(increments)
        self.error = error
        self.aggregate_response = aggregate_response
        self.aggregate_error = aggregate_error
        self.closed = False
        self.yielded = 0

    async def _iterate(self):
        for increment in self.increments:
            self.yielded += 1
            yield increment
        if self.error is not None:
            raise self.error

    def __aiter__(self):
        return self._iterate()

    async def aggregate(self) -> Any:
        if self.aggregate_error is not None:
            raise self.aggregate_error
        return self.aggregate_response

    async def aclose(self) -> None:
        self.closed = True


def text_chunks(texts: List[str], final_reason: str = "STOP", usage: Optional[SimpleNamespace] = None) -> List[Any]:
    """Increments for ``texts``; only the last carries a finish reason."""
    increments = []
    for index, text in enumerate(texts):
        last = index == len(texts) - 1
        increments.append(make_response(
            text=text,
            finish_reason=final_reason if last else None,
            usage=usage if last else None,
        ))
    return increments
