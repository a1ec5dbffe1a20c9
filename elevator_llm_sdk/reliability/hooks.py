from __future__ import annotations

import inspect
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from ..models.generation import HookCallable, LifecycleHooks
from ..observability.logging import LogSink

logger = logging.getLogger(__name__)


class LifecycleHookRunner:
    """
    Runs caller-supplied start/complete hooks around one logical call.

    Hooks may be plain functions or coroutine functions. A failing hook is
    reported to the log sink and otherwise ignored, so it can neither change
    the call's Result nor stop the paired hook from running.
    """

    def __init__(self, hooks: Optional[LifecycleHooks] = None, log_sink: Optional[LogSink] = None) -> None:
        self.hooks = hooks or LifecycleHooks()
        self.log_sink = log_sink
        self._started = False
        self._completed = False

    async def run_start(self) -> None:
        if self._started:
            return
        self._started = True
        await self._invoke(self.hooks.on_start, "on_start")

    async def run_complete(self) -> None:
        if self._completed:
            return
        self._completed = True
        await self._invoke(self.hooks.on_complete, "on_complete")

    @asynccontextmanager
    async def guard(self) -> AsyncIterator["LifecycleHookRunner"]:
        """Fire ``on_start`` now and ``on_complete`` on every exit path."""
        await self.run_start()
        try:
            yield self
        finally:
            await self.run_complete()

    async def _invoke(self, hook: Optional[HookCallable], name: str) -> None:
        if hook is None:
            return
        try:
            outcome = hook()
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            self._report(f"Lifecycle hook {name} failed", e)

    def _report(self, message: str, error: Exception) -> None:
        if self.log_sink is None:
            logger.warning(f"{message}: {error}")
            return
        try:
            self.log_sink.log(message, error)
        except Exception:
            logger.exception("Log sink failed while reporting a hook error")
