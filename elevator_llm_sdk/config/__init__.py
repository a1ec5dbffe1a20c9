"""Configuration module for the generation adapter."""

from .settings import AdapterConfig, ConfigurationError

# Import all constants
from .constants import *

__all__ = [
    "AdapterConfig",
    "ConfigurationError"
]
