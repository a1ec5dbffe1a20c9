"""Observability helpers for the generation adapter."""

from .logging import AdapterLogger, LogSink

__all__ = [
    "AdapterLogger",
    "LogSink"
]
