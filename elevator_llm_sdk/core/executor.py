import time
from typing import Any, Dict, Optional

from ..config.settings import AdapterConfig
from ..models.generation import (
    GenerationOptions,
    GenerationResult,
    HealthStatus,
    Prompt,
    ResponseMetadata,
    TokenUsage,
)
from ..models.result import Result
from ..observability.logging import AdapterLogger
from ..providers.base import APIErrorCode, UpstreamClient, create_api_error
from ..providers.errors import ErrorMapper
from ..providers.gemini.parsers import (
    check_blocked,
    extract_text,
    extract_usage,
    finish_reason_name,
    first_candidate,
    map_finish_reason,
)
from ..providers.gemini.payloads import build_health_request, build_request
from ..reliability.hooks import LifecycleHookRunner
from ..reliability.retry import RetryConfig, RetryManager
from ..reliability.timeout import with_timeout


def retry_config_for(config: AdapterConfig) -> RetryConfig:
    return RetryConfig(
        max_retries=config.max_retries,
        base_delay_ms=config.base_delay_ms,
        jitter_factor=config.jitter_factor,
    )


class RequestExecutor:
    """
    Runs single-shot generation requests.

    Layering, outermost first: lifecycle hooks (once per logical call), the
    retry loop, then the deadline around each upstream call. Every failure
    comes back as a ``Result``.
    """

    def __init__(
        self,
        client: UpstreamClient,
        config: AdapterConfig,
        logger: Optional[AdapterLogger] = None,
        retry_manager: Optional[RetryManager] = None
    ):
        self.client = client
        self.config = config
        self.logger = logger or AdapterLogger(client.get_provider_name())
        self.retry_manager = retry_manager or RetryManager()

    async def generate(
        self,
        prompt: Prompt,
        options: Optional[GenerationOptions] = None
    ) -> Result[GenerationResult]:
        """
        Generate content for a prompt.

        Args:
            prompt: The prompt to send
            options: Per-call overrides and lifecycle hooks

        Returns:
            Result wrapping a GenerationResult or a classified APIError
        """
        options = options or GenerationOptions()
        request = build_request(prompt.content, options, self.config)
        timeout_ms = options.timeout_ms or self.config.timeout_ms
        hooks = LifecycleHookRunner(options.lifecycle, self.logger)

        with self.logger.track_request("generate", request["model"]) as request_info:
            async with hooks.guard():
                result = await self.retry_manager.execute_with_retry(
                    lambda: self._attempt(request, timeout_ms),
                    retry_config_for(self.config),
                    request_info['request_id']
                )

            if result.success:
                self.logger.log_usage(result.value.usage, request["model"], request_info['request_id'])
            else:
                request_info['error_code'] = result.error.code.value

        return result

    async def health_check(self) -> Result[HealthStatus]:
        """Send a minimal prompt through the same retry and timeout machinery."""
        request = build_health_request(self.config)

        with self.logger.track_request("health_check", request["model"]) as request_info:
            result = await self.retry_manager.execute_with_retry(
                lambda: self._health_attempt(request),
                retry_config_for(self.config),
                request_info['request_id']
            )
            if not result.success:
                request_info['error_code'] = result.error.code.value

        return result

    async def _call(self, request: Dict[str, Any], timeout_ms: float, operation: str) -> Any:
        return await with_timeout(self.client.generate_content(request), timeout_ms, operation)

    async def _attempt(self, request: Dict[str, Any], timeout_ms: float) -> Result[GenerationResult]:
        start = time.monotonic()
        try:
            response = await self._call(request, timeout_ms, "generate")
        except Exception as e:
            return Result.fail(ErrorMapper.map_error(e))
        return self._interpret(response, request["model"], start)

    async def _health_attempt(self, request: Dict[str, Any]) -> Result[HealthStatus]:
        try:
            response = await self._call(request, self.config.timeout_ms, "health_check")
        except Exception as e:
            return Result.fail(ErrorMapper.map_error(e))

        if extract_text(response):
            return Result.ok(HealthStatus())
        return Result.fail(
            create_api_error(APIErrorCode.UNKNOWN_ERROR, "Health check failed", retryable=False)
        )

    def _interpret(self, response: Any, model: str, start: float) -> Result[GenerationResult]:
        """Turn a provider-shaped response into a GenerationResult or a block error."""
        blocked = check_blocked(response)
        if blocked is not None:
            return Result.fail(blocked)

        text = extract_text(response)
        if not text:
            return Result.fail(
                create_api_error(APIErrorCode.UNKNOWN_ERROR, "No content generated", retryable=False)
            )

        finish_reason = map_finish_reason(finish_reason_name(first_candidate(response)))
        return Result.ok(GenerationResult(
            text=text,
            model=model,
            usage=extract_usage(response) or TokenUsage(),
            metadata=ResponseMetadata(
                duration_ms=int((time.monotonic() - start) * 1000),
                finish_reason=finish_reason
            )
        ))
