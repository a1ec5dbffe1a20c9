"""Core request execution."""

from .executor import RequestExecutor

__all__ = ["RequestExecutor"]
