"""Optional integrations with external collaborators.

This package contains adapters that wrap the generation client:
- Progress indicators driven by lifecycle hooks

These integrations are optional and not required for core SDK functionality.
"""

from .progress import ProgressClient, ProgressSink, merge_progress_hooks, with_dynamic_progress, with_progress

__all__ = [
    "ProgressClient",
    "ProgressSink",
    "merge_progress_hooks",
    "with_dynamic_progress",
    "with_progress"
]
