"""Public API for Elevator LLM SDK."""

from .client import GenerationClient

__all__ = ["GenerationClient"]
