"""Enumerations for l10nstatus type-safe constants.

Uses StrEnum so members serialize as their plain string values.

Python 3.13+.
"""

from enum import StrEnum


class FileType(StrEnum):
    """How a tracked file's localizations are compared."""

    UNIVERSAL = "universal"
    """Compared by tracked change dates only."""

    DICTIONARY = "dictionary"
    """Key/value file, additionally compared by key completeness."""


class LocalizationStatus(StrEnum):
    """Status of one locale's copy of a source file.

    StrEnum provides automatic string conversion: str(LocalizationStatus.MISSING) == "missing"
    """

    MISSING = "missing"
    """Locale file does not exist on disk."""

    OUTDATED = "outdated"
    """Source has a tracked change newer than the locale's latest tracked change."""

    UP_TO_DATE = "up-to-date"
    """Locale's latest tracked change is at least as new as the source's."""


class GitHosting(StrEnum):
    """Supported git hosting services."""

    GITHUB = "github"
    GITLAB = "gitlab"


__all__ = [
    "FileType",
    "GitHosting",
    "LocalizationStatus",
]
