"""
Progress-indicator integration.

Wraps a generation client so a progress display is shown while a call is in
flight. It relies only on the lifecycle hook contract: progress starts before
the caller's own ``on_start`` and stops after the caller's ``on_complete``.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, AsyncIterator, Callable, Optional, Protocol, Union

from ..models.generation import GenerationOptions, GenerationResult, HealthStatus, LifecycleHooks, Prompt
from ..models.result import Result
from ..models.streaming import StreamChunk

logger = logging.getLogger(__name__)

DEFAULT_PROGRESS_MESSAGE = "Thinking..."

MessageSource = Union[str, Callable[[Prompt], str]]


class ProgressSink(Protocol):
    """Display that can show and hide a progress indicator.

    Either method may be a coroutine function.
    """

    def start(self, message: str) -> Any:
        ...

    def stop(self, handle: Any) -> Any:
        ...


class GenerationApi(Protocol):
    async def generate(self, prompt: Prompt, options: Optional[GenerationOptions] = None) -> Result[GenerationResult]:
        ...

    def generate_streaming(
        self, prompt: Prompt, options: Optional[GenerationOptions] = None
    ) -> AsyncIterator[Result[StreamChunk]]:
        ...

    async def health_check(self) -> Result[HealthStatus]:
        ...


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class _ProgressLifecycle:
    """One progress indicator for one call."""

    def __init__(self, sink: ProgressSink, message: str):
        self.sink = sink
        self.message = message
        self.handle: Any = None
        self.active = False

    async def start(self) -> None:
        try:
            self.handle = await _resolve(self.sink.start(self.message))
            self.active = True
        except Exception as e:
            logger.warning(f"Progress indicator failed to start: {e}")

    async def stop(self) -> None:
        if not self.active:
            return
        self.active = False
        await _resolve(self.sink.stop(self.handle))
        self.handle = None


def merge_progress_hooks(
    options: Optional[GenerationOptions],
    sink: ProgressSink,
    message: str
) -> GenerationOptions:
    """Return options whose hooks drive the progress sink around the caller's hooks."""
    options = options or GenerationOptions()
    progress = _ProgressLifecycle(sink, message)
    original = options.lifecycle or LifecycleHooks()

    async def on_start() -> None:
        await progress.start()
        if original.on_start is not None:
            await _resolve(original.on_start())

    async def on_complete() -> None:
        try:
            if original.on_complete is not None:
                await _resolve(original.on_complete())
        finally:
            await progress.stop()

    return options.model_copy(update={"lifecycle": LifecycleHooks(on_start=on_start, on_complete=on_complete)})


class ProgressClient:
    """Client wrapper exposing the same three operations with progress display."""

    def __init__(self, client: GenerationApi, sink: ProgressSink, message: MessageSource = DEFAULT_PROGRESS_MESSAGE):
        self.client = client
        self.sink = sink
        self.message = message

    def _message_for(self, prompt: Prompt) -> str:
        if callable(self.message):
            return self.message(prompt)
        return self.message

    async def generate(
        self,
        prompt: Prompt,
        options: Optional[GenerationOptions] = None
    ) -> Result[GenerationResult]:
        wrapped = merge_progress_hooks(options, self.sink, self._message_for(prompt))
        return await self.client.generate(prompt, wrapped)

    def generate_streaming(
        self,
        prompt: Prompt,
        options: Optional[GenerationOptions] = None
    ) -> AsyncIterator[Result[StreamChunk]]:
        wrapped = merge_progress_hooks(options, self.sink, self._message_for(prompt))
        return self.client.generate_streaming(prompt, wrapped)

    async def health_check(self) -> Result[HealthStatus]:
        # No progress for health checks
        return await self.client.health_check()


def with_progress(
    client: GenerationApi,
    sink: ProgressSink,
    default_message: str = DEFAULT_PROGRESS_MESSAGE
) -> ProgressClient:
    """Wrap ``client`` so every generation shows ``default_message`` while running."""
    return ProgressClient(client, sink, default_message)


def with_dynamic_progress(
    client: GenerationApi,
    sink: ProgressSink,
    message_provider: Callable[[Prompt], str]
) -> ProgressClient:
    """Like ``with_progress`` but the message is derived from each prompt."""
    return ProgressClient(client, sink, message_provider)
