"""
Streaming data models.

A stream is a sequence of ``Result[StreamChunk]`` elements. Only the terminal
chunk (``done=True``) carries usage and metadata.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from .generation import ResponseMetadata, TokenUsage


class StreamPhase(str, Enum):
    """Lifecycle of a single streaming generation."""
    CONNECTING = "connecting"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (StreamPhase.COMPLETED, StreamPhase.FAILED)


class StreamChunk(BaseModel):
    """One increment of streamed text."""
    model_config = ConfigDict(frozen=True)

    text: str
    done: bool = False
    usage: Optional[TokenUsage] = None
    metadata: Optional[ResponseMetadata] = None
