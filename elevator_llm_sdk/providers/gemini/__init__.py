"""Gemini upstream client, payload builders and response parsers."""

from .client import GeminiClient, GeminiStreamHandle

__all__ = ["GeminiClient", "GeminiStreamHandle"]
