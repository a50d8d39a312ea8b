"""l10nstatus exception hierarchy.

Errors fall in two groups. Per-file errors (PathNotFoundError,
FilesEntryNotFoundError, PathResolutionError, and MetadataParseError from the
localizable gate) are logged and the file is skipped. Run-level errors
(ConfigurationError, HistoryUnavailableError, VersionControlError, and
MetadataParseError from dictionary completion) abort the run before the
history cache is written.

Hierarchy:
    L10nStatusError
    ├─ ConfigurationError
    ├─ PathResolutionError (also ValueError)
    ├─ PathNotFoundError
    ├─ FilesEntryNotFoundError
    ├─ HistoryUnavailableError
    ├─ VersionControlError
    └─ MetadataParseError

Python 3.13+.
"""

from __future__ import annotations

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


class L10nStatusError(Exception):
    """Base exception for all l10nstatus errors."""


class ConfigurationError(L10nStatusError):
    """Configuration is malformed (patterns, files groups, locales).

    Raised while validating configuration, before any I/O happens.
    """


class PathResolutionError(L10nStatusError, ValueError):
    """Path does not fit a files entry's source or locales template."""

    def __init__(self, path: str, template: str) -> None:
        self.path = path
        self.template = template
        super().__init__(f"Path '{path}' does not match the pattern '{template}'")


class PathNotFoundError(L10nStatusError):
    """Canonical source file of a tracked path does not exist on disk."""

    def __init__(self, source_path: str, requested_path: str) -> None:
        self.source_path = source_path
        self.requested_path = requested_path
        if source_path == requested_path:
            message = f"Source file '{source_path}' does not exist"
        else:
            message = (
                f"Source file '{source_path}' (resolved from '{requested_path}') "
                "does not exist"
            )
        super().__init__(message)


class FilesEntryNotFoundError(L10nStatusError):
    """No configured files entry owns the given path."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(
            f"Could not find a valid `files` entry for '{path}'. "
            "Make sure the path matches one of the `include` patterns, none of the "
            "`exclude` patterns, and the entry's `pattern`."
        )


class HistoryUnavailableError(L10nStatusError):
    """Version control has no commits for a tracked path."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(
            f"Failed to find commits for '{path}'. "
            "Have you made any commits in your branch yet?"
        )


class VersionControlError(L10nStatusError):
    """A version control subprocess failed.

    Attributes:
        command: The command line that failed
        stderr: Captured standard error output, if any
    """

    def __init__(self, message: str, command: tuple[str, ...] = (), stderr: str = "") -> None:
        self.command = command
        self.stderr = stderr
        super().__init__(message)


class MetadataParseError(L10nStatusError):
    """Front matter or dictionary content could not be parsed."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to parse '{path}': {reason}")


class GlobMismatchWarning(UserWarning):
    """Globbed path does not fit its files entry's source pattern.

    Informational only; the path is dropped from the status run.
    """
