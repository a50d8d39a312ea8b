"""l10nstatus - localization status tracking from version-control history.

Computes, for every trackable file of a content tree, whether each locale's
copy is missing, outdated relative to the source, or up to date. Staleness
is decided from git history: a locale copy is outdated when the source file
has a tracked change newer than the locale file's latest tracked change.

Public API:
    load_config - Load and validate a YAML/JSON configuration file
    TrackerConfig - Validated configuration value
    create_tracker - Build a StatusTracker (reads the history cache)
    StatusTracker - get_full_status() / get_file_status(path)
    StatusEntry, LocalizationEntry - Report types
    LocalizationStatus - missing | outdated | up-to-date
    dump_status - Deterministic JSON rendering of a report

Exceptions:
    L10nStatusError - Base exception class
    ConfigurationError - Malformed configuration
    HistoryUnavailableError - Tracked file without commits
    VersionControlError - git subprocess failure
    MetadataParseError - Front matter or dictionary parse failure

Submodules:
    l10nstatus.config - Configuration types and loading
    l10nstatus.files - Path templates and files entry matching
    l10nstatus.status - History, cache, completion checks, orchestration
"""

from .config import FilesEntry, Locale, Pattern, TrackerConfig, TrackingOptions, load_config
from .diagnostics import (
    ConfigurationError,
    HistoryUnavailableError,
    L10nStatusError,
    MetadataParseError,
    VersionControlError,
)
from .enums import FileType, LocalizationStatus
from .status import LocalizationEntry, StatusEntry, StatusTracker, create_tracker, dump_status

# Version information - Auto-populated from package metadata
try:
    from importlib.metadata import PackageNotFoundError
    from importlib.metadata import version as _get_version
except ImportError as e:
    raise RuntimeError("importlib.metadata unavailable - Python version too old? " + str(e)) from e

try:
    __version__ = _get_version("l10nstatus")
except PackageNotFoundError:
    # Development mode: package not installed yet
    __version__ = "0.0.0+dev"

__all__ = [
    "ConfigurationError",
    "FileType",
    "FilesEntry",
    "HistoryUnavailableError",
    "L10nStatusError",
    "Locale",
    "LocalizationEntry",
    "LocalizationStatus",
    "MetadataParseError",
    "Pattern",
    "StatusEntry",
    "StatusTracker",
    "TrackerConfig",
    "TrackingOptions",
    "VersionControlError",
    "__version__",
    "create_tracker",
    "dump_status",
    "load_config",
]
