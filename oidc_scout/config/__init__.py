"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import DEFAULT_TIMEOUT_SECONDS, ScoutConfig, normalise_prefix

__all__ = [
    "ConfigLocator",
    "ConfigRepository",
    "DEFAULT_TIMEOUT_SECONDS",
    "ScoutConfig",
    "normalise_prefix",
]
