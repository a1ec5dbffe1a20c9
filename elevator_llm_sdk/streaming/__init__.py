"""Streaming layer for token-streamed generation.

This layer handles:
- Connection setup under the retry loop
- Per-increment read deadlines
- Terminal chunk usage and metadata
- Mid-stream content blocks as terminal failures
"""

from .generator import StreamingGenerator

__all__ = [
    "StreamingGenerator"
]
