"""Data models for the generation adapter."""

from .generation import (
    FinishReason,
    GenerationOptions,
    GenerationResult,
    HealthStatus,
    LifecycleHooks,
    Prompt,
    PromptMetadata,
    ResponseMetadata,
    TokenUsage
)
from .result import Result
from .streaming import StreamChunk, StreamPhase

__all__ = [
    # Generation models
    "FinishReason",
    "GenerationOptions",
    "GenerationResult",
    "HealthStatus",
    "LifecycleHooks",
    "Prompt",
    "PromptMetadata",
    "ResponseMetadata",
    "TokenUsage",

    # Streaming models
    "StreamChunk",
    "StreamPhase",

    "Result"
]
