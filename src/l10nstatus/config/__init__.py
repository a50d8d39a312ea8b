"""Validated configuration for status runs.

Submodules:
    types   - frozen configuration dataclasses
    loading - YAML/JSON configuration file loader

Python 3.13+.
"""

from l10nstatus.config.loading import config_from_mapping, load_config
from l10nstatus.config.types import (
    FilesEntry,
    Locale,
    Pattern,
    RepositoryConfig,
    TrackerConfig,
    TrackingOptions,
)

__all__ = [
    "FilesEntry",
    "Locale",
    "Pattern",
    "RepositoryConfig",
    "TrackerConfig",
    "TrackingOptions",
    "config_from_mapping",
    "load_config",
]
