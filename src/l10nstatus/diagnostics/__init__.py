"""Exception types and warnings raised by l10nstatus.

Python 3.13+.
"""

from .errors import (
    ConfigurationError,
    FilesEntryNotFoundError,
    GlobMismatchWarning,
    HistoryUnavailableError,
    L10nStatusError,
    MetadataParseError,
    PathNotFoundError,
    PathResolutionError,
    VersionControlError,
)

__all__ = [
    "ConfigurationError",
    "FilesEntryNotFoundError",
    "GlobMismatchWarning",
    "HistoryUnavailableError",
    "L10nStatusError",
    "MetadataParseError",
    "PathNotFoundError",
    "PathResolutionError",
    "VersionControlError",
]
