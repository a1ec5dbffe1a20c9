"""
Elevator LLM SDK - Resilient generation adapter for the Gemini API.

This package turns a single "generate content from a prompt" request into a
robust network operation:
- Per-attempt deadlines with real cancellation
- Closed error taxonomy with retry hints
- Retries with exponential backoff and jitter
- Token-streamed results that retry only before the first byte
- Lifecycle hooks isolated from the call's outcome

Every operation returns a ``Result``; classified failures never raise.
"""

__version__ = "0.1.0"

from .api.client import GenerationClient
from .config.settings import AdapterConfig, ConfigurationError
from .integrations.progress import ProgressSink, with_dynamic_progress, with_progress
from .models.generation import (
    FinishReason,
    GenerationOptions,
    GenerationResult,
    HealthStatus,
    LifecycleHooks,
    Prompt,
    PromptMetadata,
    ResponseMetadata,
    TokenUsage,
)
from .models.result import Result
from .models.streaming import StreamChunk, StreamPhase
from .providers.base import APIError, APIErrorCode, APIErrorDetails, StreamHandle, UpstreamClient
from .streaming.generator import StreamingGenerator

__all__ = [
    # Main client
    "GenerationClient",
    "StreamingGenerator",

    # Configuration
    "AdapterConfig",
    "ConfigurationError",

    # Progress
    "ProgressSink",
    "with_progress",
    "with_dynamic_progress",

    # Models
    "FinishReason",
    "GenerationOptions",
    "GenerationResult",
    "HealthStatus",
    "LifecycleHooks",
    "Prompt",
    "PromptMetadata",
    "ResponseMetadata",
    "TokenUsage",
    "StreamChunk",
    "StreamPhase",
    "Result",

    # Errors and upstream contract
    "APIError",
    "APIErrorCode",
    "APIErrorDetails",
    "StreamHandle",
    "UpstreamClient",
]
