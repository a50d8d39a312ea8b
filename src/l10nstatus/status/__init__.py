"""Localization status computation.

Submodules:
    types    - ChangeRecord, FileHistory, StatusEntry, LocalizationEntry
    cache    - HistoryCache (persisted history) and fingerprinting
    git      - VersionControl protocol, GitClient, HistoryProvider
    checkers - localizable gate and dictionary completion
    tracker  - StatusTracker orchestration

Python 3.13+.
"""

# ruff: noqa: RUF022 - __all__ organized by category for readability

from l10nstatus.status.cache import HistoryCache, compute_fingerprint
from l10nstatus.status.checkers import (
    flatten_keys,
    get_missing_keys,
    is_file_localizable,
    load_dictionary,
    read_frontmatter,
)
from l10nstatus.status.git import GitClient, HistoryProvider, VersionControl, prepare_repository
from l10nstatus.status.tracker import StatusTracker, create_tracker
from l10nstatus.status.types import (
    ChangeRecord,
    FileHistory,
    LocalizationEntry,
    SourceEntry,
    StatusEntry,
    dump_status,
    status_to_dict,
)

__all__ = [
    # Orchestration
    "StatusTracker",
    "create_tracker",
    # History
    "VersionControl",
    "GitClient",
    "HistoryProvider",
    "HistoryCache",
    "compute_fingerprint",
    "prepare_repository",
    # Completion checks
    "is_file_localizable",
    "read_frontmatter",
    "get_missing_keys",
    "load_dictionary",
    "flatten_keys",
    # Report types
    "ChangeRecord",
    "FileHistory",
    "SourceEntry",
    "LocalizationEntry",
    "StatusEntry",
    "dump_status",
    "status_to_dict",
]
