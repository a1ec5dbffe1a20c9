"""Main client interface for Elevator LLM SDK."""

import random
from typing import Any, Awaitable, Callable, Optional

from ..config.settings import AdapterConfig
from ..core.executor import RequestExecutor
from ..models.generation import GenerationOptions, GenerationResult, HealthStatus, Prompt
from ..models.result import Result
from ..observability.logging import AdapterLogger
from ..providers.base import UpstreamClient
from ..reliability.retry import RetryManager
from ..streaming.generator import StreamingGenerator


class GenerationClient:
    """High-level client for Elevator LLM SDK.

    Every operation returns ``Result`` values; classified upstream failures
    never raise out of this class.
    """

    def __init__(
        self,
        config: Optional[AdapterConfig] = None,
        upstream: Optional[UpstreamClient] = None,
        logger: Optional[AdapterLogger] = None,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
        rng: Optional[random.Random] = None
    ):
        """
        Initialize the client.

        Args:
            config: Adapter settings; read from the environment when omitted
            upstream: Upstream client; a GeminiClient for ``config`` when omitted
            logger: Structured logger, also the sink for hook errors
            sleep: Backoff sleep (seconds), injectable for tests
            rng: Random source for backoff jitter
        """
        self.config = config or AdapterConfig.from_env()
        if upstream is None:
            from ..providers.gemini.client import GeminiClient
            upstream = GeminiClient(self.config)
        self.upstream = upstream
        self.logger = logger or AdapterLogger(upstream.get_provider_name())
        self.retry_manager = RetryManager(sleep=sleep, rng=rng)
        self.executor = RequestExecutor(self.upstream, self.config, self.logger, self.retry_manager)

    async def generate(
        self,
        prompt: Prompt,
        options: Optional[GenerationOptions] = None
    ) -> Result[GenerationResult]:
        """Generate content for a prompt.

        Args:
            prompt: The prompt to send
            options: Per-call overrides and lifecycle hooks

        Returns:
            Result wrapping a GenerationResult or an APIError
        """
        return await self.executor.generate(prompt, options)

    def generate_streaming(
        self,
        prompt: Prompt,
        options: Optional[GenerationOptions] = None
    ) -> StreamingGenerator:
        """Stream content for a prompt.

        Returns a lazy, single-pass async iterator of ``Result[StreamChunk]``.
        Use it as an ``async with`` block (or call ``aclose``) when abandoning
        it early so ``on_complete`` fires promptly.
        """
        return StreamingGenerator(
            self.upstream,
            self.config,
            prompt,
            options,
            logger=self.logger,
            retry_manager=self.retry_manager
        )

    async def health_check(self) -> Result[HealthStatus]:
        """Check that the upstream is reachable and generating."""
        return await self.executor.health_check()
