"""
Adapter configuration.

Configuration is read once (usually from the environment) and treated as
read-only afterwards; per-call ``GenerationOptions`` override it.
"""

import logging
import os
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, TypeVar

from dotenv import load_dotenv

from .constants import (
    DEFAULT_BASE_DELAY_MS,
    DEFAULT_JITTER_FACTOR,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MODEL_ID,
    DEFAULT_TEMPERATURE,
    DEFAULT_TIMEOUT_MS,
    KNOWN_MODEL_IDS,
)

logger = logging.getLogger(__name__)

N = TypeVar("N", int, float)


class ConfigurationError(Exception):
    """Raised when configuration is missing or invalid."""

    def __init__(self, message: str, variable: Optional[str] = None):
        super().__init__(message)
        self.variable = variable


@dataclass(frozen=True)
class AdapterConfig:
    """Process-wide adapter settings."""
    api_key: str = ""
    model_id: str = DEFAULT_MODEL_ID
    temperature: float = DEFAULT_TEMPERATURE
    timeout_ms: float = DEFAULT_TIMEOUT_MS
    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay_ms: float = DEFAULT_BASE_DELAY_MS
    jitter_factor: float = DEFAULT_JITTER_FACTOR
    stream_read_timeout_ms: Optional[float] = None

    def __post_init__(self):
        if not 0.0 <= self.temperature <= 2.0:
            raise ConfigurationError(
                f"temperature must be between 0.0 and 2.0, got {self.temperature}",
                variable="temperature"
            )
        if self.timeout_ms <= 0:
            raise ConfigurationError(
                f"timeout_ms must be positive, got {self.timeout_ms}",
                variable="timeout_ms"
            )
        if self.max_retries < 0:
            raise ConfigurationError(
                f"max_retries must be non-negative, got {self.max_retries}",
                variable="max_retries"
            )
        if not 0.0 <= self.jitter_factor < 1.0:
            raise ConfigurationError(
                f"jitter_factor must be in [0, 1), got {self.jitter_factor}",
                variable="jitter_factor"
            )

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        load_dotenv_file: bool = True
    ) -> "AdapterConfig":
        """
        Build configuration from environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``
            load_dotenv_file: Load a ``.env`` file into ``os.environ`` first

        Returns:
            AdapterConfig

        Raises:
            ConfigurationError: If GEMINI_API_KEY is missing or a value is invalid
        """
        if environ is None:
            if load_dotenv_file:
                load_dotenv()
            environ = os.environ

        api_key = (environ.get("GEMINI_API_KEY") or "").strip()
        if not api_key:
            raise ConfigurationError("GEMINI_API_KEY required", variable="GEMINI_API_KEY")

        model_id = (environ.get("GEMINI_MODEL") or DEFAULT_MODEL_ID).strip()
        if model_id not in KNOWN_MODEL_IDS:
            logger.debug(f"Using unlisted model id {model_id}")

        return cls(
            api_key=api_key,
            model_id=model_id,
            temperature=_parse(environ, "GEMINI_TEMPERATURE", float, DEFAULT_TEMPERATURE),
            timeout_ms=_parse(environ, "GEMINI_TIMEOUT_MS", float, DEFAULT_TIMEOUT_MS),
            max_retries=_parse(environ, "GEMINI_MAX_RETRIES", int, DEFAULT_MAX_RETRIES),
        )


def _parse(environ: Mapping[str, str], name: str, convert: Callable[[str], N], default: N) -> N:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return convert(raw.strip())
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}", variable=name)
