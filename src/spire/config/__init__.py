"""Configuration modules for Spire."""

from .build_config import BuildConfig, validate_build_config
from .ini_parser import SpireConfig, SpireConfigError, default_worker_count

__all__ = [
    "BuildConfig",
    "SpireConfig",
    "SpireConfigError",
    "default_worker_count",
    "validate_build_config",
]
