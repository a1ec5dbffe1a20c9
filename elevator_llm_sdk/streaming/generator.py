"""
Token-streamed generation.

Connection setup runs under the retry loop; once the first increment is
requested the stream is never retried, because replaying a partially
delivered stream would duplicate or drop text. A mid-stream failure is
yielded once as the terminal element.
"""

from __future__ import annotations

import time
from typing import Any, AsyncGenerator, AsyncIterator, Dict, Optional

from ..config.constants import BLOCKING_FINISH_REASONS, TERMINAL_FINISH_REASONS
from ..config.settings import AdapterConfig
from ..core.executor import retry_config_for
from ..models.generation import GenerationOptions, Prompt, ResponseMetadata, TokenUsage
from ..models.result import Result
from ..models.streaming import StreamChunk, StreamPhase
from ..observability.logging import AdapterLogger
from ..providers.base import StreamHandle, UpstreamClient
from ..providers.errors import ErrorMapper
from ..providers.gemini.parsers import (
    check_candidate_blocked,
    extract_text,
    extract_usage,
    finish_reason_name,
    first_candidate,
    map_finish_reason,
)
from ..providers.gemini.payloads import build_request
from ..reliability.hooks import LifecycleHookRunner
from ..reliability.retry import RetryManager
from ..reliability.timeout import with_timeout

_END = object()


async def _next_or_end(iterator: AsyncIterator[Any]) -> Any:
    """Next increment, or ``_END`` once the upstream is exhausted."""
    try:
        return await iterator.__anext__()
    except StopAsyncIteration:
        return _END


class StreamingGenerator:
    """
    Single-pass async iterator of ``Result[StreamChunk]`` for one prompt.

    Nothing happens until the first element is requested. ``phase`` moves
    CONNECTING -> STREAMING -> COMPLETED | FAILED. Closing the iterator early
    (``aclose`` or leaving an ``async with`` block) still fires ``on_complete``,
    releases the upstream stream and ends in COMPLETED.
    """

    def __init__(
        self,
        client: UpstreamClient,
        config: AdapterConfig,
        prompt: Prompt,
        options: Optional[GenerationOptions] = None,
        logger: Optional[AdapterLogger] = None,
        retry_manager: Optional[RetryManager] = None
    ):
        self.client = client
        self.config = config
        self.prompt = prompt
        self.options = options or GenerationOptions()
        self.logger = logger or AdapterLogger(client.get_provider_name())
        self.retry_manager = retry_manager or RetryManager()
        self.phase = StreamPhase.CONNECTING
        self._stream = self._run()

    def __aiter__(self) -> "StreamingGenerator":
        return self

    async def __anext__(self) -> Result[StreamChunk]:
        return await self._stream.__anext__()

    async def aclose(self) -> None:
        await self._stream.aclose()
        if not self.phase.is_terminal:
            self.phase = StreamPhase.COMPLETED

    async def __aenter__(self) -> "StreamingGenerator":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    @property
    def read_timeout_ms(self) -> Optional[float]:
        """Deadline for each increment; None waits indefinitely."""
        if self.config.stream_read_timeout_ms is not None:
            return self.config.stream_read_timeout_ms
        return self.options.timeout_ms

    async def _run(self) -> AsyncGenerator[Result[StreamChunk], None]:
        request = build_request(self.prompt.content, self.options, self.config)
        model = request["model"]
        connect_timeout_ms = self.options.timeout_ms or self.config.timeout_ms
        hooks = LifecycleHookRunner(self.options.lifecycle, self.logger)
        handle: Optional[StreamHandle] = None
        start = time.monotonic()
        chunks = 0
        total_chars = 0

        with self.logger.track_request("stream", model) as request_info:
            request_id = request_info['request_id']
            try:
                await hooks.run_start()
                connection = await self.retry_manager.execute_with_retry(
                    lambda: self._connect(request, connect_timeout_ms),
                    retry_config_for(self.config),
                    request_id
                )
                if not connection.success:
                    self.phase = StreamPhase.FAILED
                    request_info['error_code'] = connection.error.code.value
                    yield Result.fail(connection.error)
                    return

                handle = connection.value
                self.phase = StreamPhase.STREAMING
                iterator = handle.__aiter__()

                while True:
                    try:
                        increment = await with_timeout(
                            _next_or_end(iterator), self.read_timeout_ms, "stream_read"
                        )
                    except Exception as e:
                        error = ErrorMapper.map_error(e)
                        self.phase = StreamPhase.FAILED
                        request_info['error_code'] = error.code.value
                        yield Result.fail(error)
                        return

                    if increment is _END:
                        break

                    candidate = first_candidate(increment)
                    if candidate is None:
                        continue

                    reason = finish_reason_name(candidate)
                    text = extract_text(increment)
                    done = reason in TERMINAL_FINISH_REASONS

                    if text:
                        if done:
                            chunk = await self._terminal_chunk(handle, increment, text, reason, start)
                        else:
                            chunk = StreamChunk(text=text)
                        chunks += 1
                        total_chars += len(text)
                        yield Result.ok(chunk)

                    if reason in BLOCKING_FINISH_REASONS:
                        error = check_candidate_blocked(candidate)
                        self.phase = StreamPhase.FAILED
                        request_info['error_code'] = error.code.value
                        yield Result.fail(error)
                        return

                    if done and text:
                        break

                self.phase = StreamPhase.COMPLETED
            finally:
                if not self.phase.is_terminal:
                    self.phase = StreamPhase.COMPLETED
                if handle is not None:
                    await self._release(handle, request_id)
                await hooks.run_complete()
                if chunks:
                    self.logger.log_streaming_metrics(
                        chunks, total_chars, time.monotonic() - start, model, request_id
                    )

    async def _connect(self, request: Dict[str, Any], timeout_ms: float) -> Result[StreamHandle]:
        try:
            handle = await with_timeout(
                self.client.generate_content_stream(request), timeout_ms, "stream_connect"
            )
        except Exception as e:
            return Result.fail(ErrorMapper.map_error(e))
        return Result.ok(handle)

    async def _terminal_chunk(
        self,
        handle: StreamHandle,
        increment: Any,
        text: str,
        reason: Optional[str],
        start: float
    ) -> StreamChunk:
        usage: Optional[TokenUsage] = None
        try:
            aggregated = await with_timeout(handle.aggregate(), self.read_timeout_ms, "stream_usage")
            usage = extract_usage(aggregated)
        except Exception as e:
            self.logger.debug("Aggregate usage unavailable", error_type=type(e).__name__)
        if usage is None:
            usage = extract_usage(increment)

        return StreamChunk(
            text=text,
            done=True,
            usage=usage,
            metadata=ResponseMetadata(
                duration_ms=int((time.monotonic() - start) * 1000),
                finish_reason=map_finish_reason(reason)
            )
        )

    async def _release(self, handle: StreamHandle, request_id: str) -> None:
        try:
            await handle.aclose()
        except Exception as e:
            self.logger.warning("Failed to close upstream stream", request_id=request_id,
                                error_type=type(e).__name__)
