"""Version-control history retrieval.

Components:
    VersionControl - Protocol for the version-control collaborator
    GitClient - ``git`` subprocess implementation with bounded concurrency
    HistoryProvider - per-path FileHistory with ignored-keyword filtering
    prepare_repository - clone handling for shallow and external repositories

Python 3.13+.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import threading
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Protocol

from l10nstatus.constants import DEFAULT_GIT_PROCESSES
from l10nstatus.diagnostics import HistoryUnavailableError, VersionControlError
from l10nstatus.status.types import ChangeRecord, FileHistory

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from l10nstatus.config import TrackerConfig, TrackingOptions

__all__ = [
    "GitClient",
    "HistoryProvider",
    "VersionControl",
    "prepare_repository",
]

logger = logging.getLogger(__name__)

# Unit separator between fields, record separator between commits.
_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"
_LOG_FORMAT = _FIELD_SEP.join(("%H", "%aI", "%an", "%ae", "%s", "%b")) + _RECORD_SEP
_NO_COMMITS_MARKERS = ("does not have any commits yet", "bad default revision")


class VersionControl(Protocol):
    """Protocol for the version-control collaborator.

    Only reads history; the repository is never modified. Implementations
    must be safe to call from several threads at once.
    """

    def log(self, path: str) -> tuple[ChangeRecord, ...]:
        """Return every commit touching ``path``, newest first.

        Raises:
            HistoryUnavailableError: If the current branch has no commits
            VersionControlError: If the history cannot be read
        """

    def is_shallow_repository(self) -> bool:
        """Check if the working repository is a shallow clone."""

    def clone(self, url: str, dest: Path, *, bare: bool = False, blobless: bool = False) -> None:
        """Clone ``url`` into ``dest``, replacing anything already there."""

    def set_working_directory(self, path: Path) -> None:
        """Run subsequent commands against the repository at ``path``."""


class GitClient:
    """``git`` command-line client.

    Thread-safe: concurrent calls are throttled by a semaphore so a large
    status run never spawns more than ``max_concurrent_processes``
    subprocesses at once.

    Example:
        >>> git = GitClient(Path("."))
        >>> records = git.log("docs/guide.md")
        >>> records[0].message
        'Update guide'
    """

    __slots__ = ("_cwd", "_executable", "_semaphore")

    def __init__(
        self,
        cwd: Path | None = None,
        *,
        max_concurrent_processes: int = DEFAULT_GIT_PROCESSES,
        executable: str = "git",
    ) -> None:
        if max_concurrent_processes <= 0:
            msg = "max_concurrent_processes must be positive"
            raise ValueError(msg)
        self._cwd = cwd
        self._executable = executable
        self._semaphore = threading.BoundedSemaphore(max_concurrent_processes)

    def __repr__(self) -> str:
        return f"GitClient(cwd={str(self._cwd) if self._cwd else None!r})"

    @property
    def working_directory(self) -> Path | None:
        return self._cwd

    def _run(self, *args: str) -> str:
        command = (self._executable, *args)
        with self._semaphore:
            try:
                completed = subprocess.run(
                    command,
                    cwd=self._cwd,
                    capture_output=True,
                    encoding="utf-8",
                    errors="replace",
                    check=False,
                )
            except OSError as e:
                msg = f"Could not run `{self._executable}`: {e}"
                raise VersionControlError(msg, command) from e

        if completed.returncode != 0:
            stderr = completed.stderr.strip()
            msg = f"`{' '.join(command)}` failed with exit code {completed.returncode}: {stderr}"
            raise VersionControlError(msg, command, stderr)
        return completed.stdout

    @staticmethod
    def _parse_log(output: str) -> tuple[ChangeRecord, ...]:
        records: list[ChangeRecord] = []
        for chunk in output.split(_RECORD_SEP):
            chunk = chunk.strip("\n")
            if not chunk:
                continue
            fields = chunk.split(_FIELD_SEP)
            if len(fields) != 6:
                msg = f"Unexpected `git log` record: {chunk!r}"
                raise VersionControlError(msg)
            commit_hash, date, author_name, author_email, subject, body = fields
            records.append(
                ChangeRecord(
                    hash=commit_hash,
                    date=datetime.fromisoformat(date),
                    message=subject,
                    body=body.strip(),
                    author_name=author_name,
                    author_email=author_email,
                )
            )
        return tuple(records)

    def log(self, path: str) -> tuple[ChangeRecord, ...]:
        try:
            output = self._run("log", f"--format={_LOG_FORMAT}", "--", path)
        except VersionControlError as e:
            if any(marker in e.stderr for marker in _NO_COMMITS_MARKERS):
                raise HistoryUnavailableError(path) from e
            raise
        return self._parse_log(output)

    def is_shallow_repository(self) -> bool:
        return self._run("rev-parse", "--is-shallow-repository").strip() == "true"

    def clone(self, url: str, dest: Path, *, bare: bool = False, blobless: bool = False) -> None:
        if dest.exists():
            shutil.rmtree(dest)
        args = ["clone"]
        if bare:
            args.append("--bare")
        if blobless:
            args.append("--filter=blob:none")
        args.extend((url, str(dest)))
        self._run(*args)

    def set_working_directory(self, path: Path) -> None:
        self._cwd = path


class HistoryProvider:
    """FileHistory lookup backed by an in-memory map.

    The map starts from the persisted cache contents (if any) and gains
    an entry for each path fetched during the run. Entries are immutable
    once inserted, so lookups of present entries need no lock; insertions
    are serialized so concurrent fetches of one path keep a single winner.

    Attributes:
        log_calls: Number of version-control log invocations so far
    """

    __slots__ = ("_entries", "_git", "_keywords", "_lock", "_path_prefix", "log_calls")

    def __init__(
        self,
        git: VersionControl,
        tracking: TrackingOptions,
        *,
        cached: Mapping[str, FileHistory] | None = None,
        path_prefix: str = "",
    ) -> None:
        """Initialize the provider.

        Args:
            git: Version-control collaborator
            tracking: Tracking options (ignored keywords)
            cached: Histories loaded from the persisted cache; pass None
                to fetch everything fresh
            path_prefix: Prefix joined to paths before querying version
                control (repository root directory when reading a clone)
        """
        self._git = git
        self._keywords = tuple(keyword.lower() for keyword in tracking.ignored_keywords)
        self._entries: dict[str, FileHistory] = dict(cached) if cached else {}
        self._lock = threading.Lock()
        self._path_prefix = path_prefix
        self.log_calls = 0

    def is_ignored(self, record: ChangeRecord) -> bool:
        """Check if a commit's message contains an ignored keyword."""
        message = record.full_message.lower()
        return any(keyword in message for keyword in self._keywords)

    def find_latest_tracked_change(self, records: Sequence[ChangeRecord]) -> ChangeRecord:
        """Return the newest tracked commit, or the newest commit if none is tracked.

        Raises:
            ValueError: If ``records`` is empty
        """
        if not records:
            msg = "records cannot be empty"
            raise ValueError(msg)
        for record in records:
            if not self.is_ignored(record):
                return record
        return records[0]

    def _vcs_path(self, path: str) -> str:
        if not self._path_prefix:
            return path
        return str(PurePosixPath(self._path_prefix) / path)

    def get_history(self, path: str) -> FileHistory:
        """Return the FileHistory of ``path``.

        Raises:
            HistoryUnavailableError: If ``path`` has no commits
            VersionControlError: If version control fails
        """
        history = self._entries.get(path)
        if history is not None:
            return history

        records = self._git.log(self._vcs_path(path))
        with self._lock:
            self.log_calls += 1
        if not records:
            raise HistoryUnavailableError(path)

        history = FileHistory(
            latest_tracked_change=self.find_latest_tracked_change(records),
            all=records,
        )
        with self._lock:
            return self._entries.setdefault(path, history)

    def snapshot(self) -> dict[str, FileHistory]:
        """Copy of every history known so far, for persistence."""
        with self._lock:
            return dict(self._entries)


def prepare_repository(git: VersionControl, config: TrackerConfig, cwd: Path) -> tuple[Path, str]:
    """Make the repository history available for a status run.

    External repositories are cloned (blobless) and become the working tree.
    Shallow repositories lack the history needed for status, so a bare,
    blobless clone of the full history is used for log calls while files
    are still read from ``cwd``.

    Returns:
        Directory tracked paths are relative to, and the prefix to join to
        those paths when querying version control
    """
    root_dir = PurePosixPath(config.repository.root_dir)
    prefix = "" if str(root_dir) == "." else root_dir.as_posix()

    if config.external:
        dest = (cwd / config.clone_dir).resolve()
        logger.info("Cloning external repository %s into %s", config.repository.clone_url, dest)
        git.clone(config.repository.clone_url, dest, blobless=True)
        content_root = dest / root_dir
        git.set_working_directory(content_root)
        return content_root, ""

    if git.is_shallow_repository():
        dest = (cwd / config.clone_dir).resolve()
        logger.info(
            "Shallow repository detected. A clone of the repository history will be "
            "downloaded to %s and used.",
            dest,
        )
        git.clone(config.repository.clone_url, dest, bare=True, blobless=True)
        git.set_working_directory(dest)
        return cwd, prefix

    return cwd, ""
