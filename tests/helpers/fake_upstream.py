"""Scripted upstream client for adapter tests."""

import asyncio
from typing import Any, Dict, List, Optional

from elevator_llm_sdk.providers.base import StreamHandle, UpstreamClient


class FakeUpstreamClient(UpstreamClient):
    """
    Upstream whose outcomes are scripted per call.

    Each outcome is either a value to return or an exception to raise. The
    last outcome repeats once the script runs out.
    """

    def __init__(
        self,
        outcomes: Optional[List[Any]] = None,
        stream_outcomes: Optional[List[Any]] = None,
        delay: Optional[float] = None,
    ):
        self.outcomes = list(outcomes or [])
        self.stream_outcomes = list(stream_outcomes or [])
        self.delay = delay
        self.requests: List[Dict[str, Any]] = []
        self.stream_requests: List[Dict[str, Any]] = []
        self.cancelled = 0

    @property
    def calls(self) -> int:
        return len(self.requests)

    @property
    def stream_calls(self) -> int:
        return len(self.stream_requests)

    @staticmethod
    def _next(script: List[Any], index: int) -> Any:
        outcome = script[min(index, len(script) - 1)]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def _wait(self) -> None:
        if self.delay is None:
            return
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled += 1
            raise

    async def generate_content(self, request: Dict[str, Any]) -> Any:
        self.requests.append(request)
        await self._wait()
        return self._next(self.outcomes, len(self.requests) - 1)

    async def generate_content_stream(self, request: Dict[str, Any]) -> StreamHandle:
        self.stream_requests.append(request)
        await self._wait()
        return self._next(self.stream_outcomes, len(self.stream_requests) - 1)
