"""History and report data structures.

ChangeRecord and FileHistory describe version-control history for one path;
they are immutable once created, so the history map can hand out shared
instances to concurrent tasks without copying. StatusEntry and
LocalizationEntry form the status report.

The ``to_dict``/``from_dict`` pairs define the JSON layout used by the
history cache and by ``dump_status``.

Python 3.13+.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

from l10nstatus.enums import LocalizationStatus

if TYPE_CHECKING:
    from l10nstatus.config import FilesEntry

__all__ = [
    "ChangeRecord",
    "FileHistory",
    "LocalizationEntry",
    "SourceEntry",
    "StatusEntry",
    "dump_status",
    "status_to_dict",
]

type JSONDict = dict[str, Any]


@dataclass(frozen=True, slots=True)
class ChangeRecord:
    """One commit touching a file.

    Attributes:
        hash: Commit identifier
        date: Author date (timezone-aware)
        message: Commit subject line
        body: Remaining commit message lines
        author_name: Commit author name
        author_email: Commit author email
    """

    hash: str
    date: datetime
    message: str
    body: str = ""
    author_name: str = ""
    author_email: str = ""

    @property
    def full_message(self) -> str:
        if not self.body:
            return self.message
        return f"{self.message}\n\n{self.body}"

    def to_dict(self) -> JSONDict:
        return {
            "hash": self.hash,
            "date": self.date.isoformat(),
            "message": self.message,
            "body": self.body,
            "author_name": self.author_name,
            "author_email": self.author_email,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ChangeRecord:
        """Rebuild a record from ``to_dict`` output.

        Raises:
            KeyError: If a required field is missing
            ValueError: If the date is not ISO-8601
        """
        return cls(
            hash=data["hash"],
            date=datetime.fromisoformat(data["date"]),
            message=data["message"],
            body=data.get("body", ""),
            author_name=data.get("author_name", ""),
            author_email=data.get("author_email", ""),
        )


@dataclass(frozen=True, slots=True)
class FileHistory:
    """Commit history of one path, newest first.

    Attributes:
        latest_tracked_change: Newest commit not excluded by an ignored
            keyword (the newest commit when every commit is excluded)
        all: Every commit touching the path
    """

    latest_tracked_change: ChangeRecord
    all: tuple[ChangeRecord, ...]

    @property
    def latest_change(self) -> ChangeRecord:
        return self.all[0] if self.all else self.latest_tracked_change

    def to_dict(self) -> JSONDict:
        return {
            "latest_tracked_change": self.latest_tracked_change.to_dict(),
            "all": [record.to_dict() for record in self.all],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FileHistory:
        return cls(
            latest_tracked_change=ChangeRecord.from_dict(data["latest_tracked_change"]),
            all=tuple(ChangeRecord.from_dict(record) for record in data["all"]),
        )


@dataclass(frozen=True, slots=True)
class SourceEntry:
    """The source-locale side of a status entry."""

    lang: str
    path: str
    history: FileHistory


@dataclass(frozen=True, slots=True)
class LocalizationEntry:
    """Status of one locale's copy of a source file.

    Attributes:
        lang: Locale identifier
        path: Resolved locale path
        status: missing, outdated or up-to-date
        history: Locale file history (None when missing)
        missing_keys: Dictionary keys absent from the locale copy, sorted
            (None for universal files and missing locale files)
    """

    lang: str
    path: str
    status: LocalizationStatus
    history: FileHistory | None = None
    missing_keys: tuple[str, ...] | None = None

    @property
    def is_complete(self) -> bool:
        return self.status is LocalizationStatus.UP_TO_DATE and not self.missing_keys


@dataclass(frozen=True, slots=True)
class StatusEntry:
    """Status report for one source file across every locale."""

    files_entry: FilesEntry
    source: SourceEntry
    localizations: tuple[LocalizationEntry, ...]

    def get_localization(self, lang: str) -> LocalizationEntry | None:
        for localization in self.localizations:
            if localization.lang == lang:
                return localization
        return None

    def to_dict(self) -> JSONDict:
        entry = self.files_entry
        return {
            "type": str(entry.type),
            "pattern": {"source": entry.pattern.source, "locales": entry.pattern.locales},
            "source": {
                "lang": self.source.lang,
                "path": self.source.path,
                "git": self.source.history.to_dict(),
            },
            "localizations": [
                {
                    "lang": localization.lang,
                    "path": localization.path,
                    "status": str(localization.status),
                    **(
                        {"git": localization.history.to_dict()}
                        if localization.history is not None
                        else {}
                    ),
                    **(
                        {"missing_keys": list(localization.missing_keys)}
                        if localization.missing_keys is not None
                        else {}
                    ),
                }
                for localization in self.localizations
            ],
        }


def status_to_dict(status: Sequence[StatusEntry]) -> list[JSONDict]:
    """Convert a status report into plain JSON-compatible data."""
    return [entry.to_dict() for entry in status]


def dump_status(status: Sequence[StatusEntry]) -> str:
    """Serialize a status report deterministically.

    Identical reports always produce identical text.
    """
    return json.dumps(status_to_dict(status), ensure_ascii=False, indent=2, sort_keys=True)
