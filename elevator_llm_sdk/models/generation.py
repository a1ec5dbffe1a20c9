import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


HookCallable = Callable[[], Union[None, Awaitable[None]]]


class FinishReason(str, Enum):
    """Normalized reasons a generation stopped."""
    STOP = "stop"
    LENGTH = "length"
    SAFETY = "safety"
    OTHER = "other"


@dataclass(frozen=True)
class LifecycleHooks:
    """
    Caller-supplied callbacks fired once per logical call.

    Either hook may be a plain function or a coroutine function. Errors raised
    by a hook are logged and otherwise ignored.
    """
    on_start: Optional[HookCallable] = None
    on_complete: Optional[HookCallable] = None


class PromptMetadata(BaseModel):
    """Metadata carried alongside a prompt."""
    model_config = ConfigDict(frozen=True, extra="allow")

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    user_id: Optional[str] = None
    session_id: Optional[str] = None


class Prompt(BaseModel):
    """Immutable prompt submitted by the caller."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    content: str
    metadata: PromptMetadata = Field(default_factory=PromptMetadata)


class GenerationOptions(BaseModel):
    """
    Per-call overrides for a generation request.

    Anything left as None falls back to the adapter configuration.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    temperature: Optional[float] = Field(None, ge=0.0, le=2.0, description="Sampling temperature")
    max_tokens: Optional[int] = Field(None, ge=1, description="Maximum output tokens")
    timeout_ms: Optional[float] = Field(None, gt=0, description="Per-attempt deadline in milliseconds")
    safety_settings: Optional[Dict[str, str]] = Field(
        None,
        description="Harm category to block threshold, e.g. {'hate_speech': 'BLOCK_ONLY_HIGH'}"
    )
    model: Optional[str] = Field(None, description="Model identifier override")
    lifecycle: Optional[LifecycleHooks] = None


class TokenUsage(BaseModel):
    """Token counters; missing upstream values default to 0."""
    model_config = ConfigDict(frozen=True)

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @field_validator("prompt_tokens", "completion_tokens", "total_tokens", mode="before")
    @classmethod
    def clamp_non_negative(cls, v: Any) -> int:
        try:
            return max(int(v or 0), 0)
        except (TypeError, ValueError):
            return 0


class ResponseMetadata(BaseModel):
    """Timing and finish information for a completed generation."""
    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    duration_ms: int = Field(0, ge=0)
    finish_reason: FinishReason = FinishReason.OTHER


class GenerationResult(BaseModel):
    """Successful single-shot generation."""
    model_config = ConfigDict(frozen=True)

    text: str
    model: str
    usage: TokenUsage = Field(default_factory=TokenUsage)
    metadata: ResponseMetadata = Field(default_factory=ResponseMetadata)


class HealthStatus(BaseModel):
    """Result of a successful health check."""
    model_config = ConfigDict(frozen=True)

    status: Literal["healthy"] = "healthy"
