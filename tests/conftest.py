"""Shared pytest fixtures for Elevator LLM SDK tests."""

import random
from typing import List

import pytest

from elevator_llm_sdk.api.client import GenerationClient
from elevator_llm_sdk.config.settings import AdapterConfig
from elevator_llm_sdk.models.generation import GenerationOptions, LifecycleHooks, Prompt
from elevator_llm_sdk.observability.logging import AdapterLogger
from elevator_llm_sdk.reliability.retry import RetryManager
from tests.helpers.fake_upstream import FakeUpstreamClient


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast isolated tests")
    config.addinivalue_line("markers", "integration: end-to-end adapter scenarios")
    config.addinivalue_line("markers", "slow: tests that wait on real timers")


class SleepRecorder:
    """Stands in for asyncio.sleep and records requested delays (seconds)."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class RecordingLogSink:
    """Log sink that keeps every (message, error) pair."""

    def __init__(self):
        self.records = []

    def log(self, message, error=None):
        self.records.append((message, error))


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Mock environment variables for testing."""
    env_vars = {
        "GEMINI_API_KEY": "test-gemini-key",
        "GEMINI_MODEL": "gemini-1.5-pro",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture
def adapter_config():
    """Adapter configuration with the default retry budget."""
    return AdapterConfig(api_key="test-key", model_id="gemini-1.5-flash", max_retries=3)


@pytest.fixture
def sample_prompt():
    return Prompt(content="Explain backoff in one sentence.")


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()


@pytest.fixture
def log_sink():
    return RecordingLogSink()


@pytest.fixture
def retry_manager(sleep_recorder):
    return RetryManager(sleep=sleep_recorder, rng=random.Random(1234))


@pytest.fixture
def adapter_logger():
    return AdapterLogger("gemini")


@pytest.fixture
def hook_calls():
    """Hooks that record each call, plus the options carrying them."""
    calls = {"start": 0, "complete": 0}

    def on_start():
        calls["start"] += 1

    async def on_complete():
        calls["complete"] += 1

    options = GenerationOptions(lifecycle=LifecycleHooks(on_start=on_start, on_complete=on_complete))
    return calls, options


@pytest.fixture
def make_client(adapter_config, sleep_recorder):
    """Factory for a GenerationClient over a scripted upstream."""

    def _make(outcomes=None, stream_outcomes=None, config=None, delay=None):
        upstream = FakeUpstreamClient(outcomes, stream_outcomes, delay=delay)
        client = GenerationClient(
            config=config or adapter_config,
            upstream=upstream,
            sleep=sleep_recorder,
            rng=random.Random(42),
        )
        return client, upstream

    return _make
