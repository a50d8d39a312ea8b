"""Status orchestration.

StatusTracker enumerates the source files of every files entry, computes
each file's status against every target locale, and assembles a report
grouped by files entry (configuration order) and sorted by source path
within each group.

Concurrency:
    Two nested, bounded thread pools: at most MAX_FILE_CONCURRENCY source
    file pipelines, each running at most MAX_LOCALE_CONCURRENCY locale
    checks. Completion order never leaks into the report: localizations keep
    the configured locale order and every group is sorted by source path.

Failure policy:
    Per-file problems (unmatched path, missing source file, unparseable
    front matter) are logged and the file is skipped. History failures and
    dictionary parse failures abort the run: pending pipelines are
    cancelled, running ones drain, the error propagates, and the history
    cache is left untouched.

Python 3.13+.
"""

from __future__ import annotations

import functools
import logging
import warnings
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from pathlib import Path
from typing import TYPE_CHECKING

from l10nstatus.constants import MAX_FILE_CONCURRENCY, MAX_LOCALE_CONCURRENCY
from l10nstatus.diagnostics import (
    FilesEntryNotFoundError,
    GlobMismatchWarning,
    MetadataParseError,
    PathNotFoundError,
)
from l10nstatus.enums import FileType, LocalizationStatus
from l10nstatus.files import FilesEntryMatcher, glob_files
from l10nstatus.status.cache import HistoryCache, compute_fingerprint
from l10nstatus.status.checkers import get_missing_keys, is_file_localizable
from l10nstatus.status.git import GitClient, HistoryProvider, VersionControl, prepare_repository
from l10nstatus.status.types import FileHistory, LocalizationEntry, SourceEntry, StatusEntry

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from l10nstatus.config import FilesEntry, Locale, TrackerConfig
    from l10nstatus.files import PathResolver

__all__ = ["StatusTracker", "create_tracker"]

logger = logging.getLogger(__name__)


def _map_bounded[T, R](
    func: Callable[[T], R], items: Iterable[T], max_workers: int, name: str
) -> list[R]:
    """Run ``func`` over ``items`` with bounded concurrency, keeping input order.

    On the first failure, tasks that have not started are cancelled and
    running tasks finish before the exception propagates.
    """
    pending = list(items)
    if not pending:
        return []
    with ThreadPoolExecutor(
        max_workers=min(max_workers, len(pending)), thread_name_prefix=name
    ) as executor:
        futures = [executor.submit(func, item) for item in pending]
        done, not_done = wait(futures, return_when=FIRST_EXCEPTION)
        for future in not_done:
            future.cancel()

    for future in futures:
        if future in done:
            error = future.exception()
            if error is not None:
                raise error
    return [future.result() for future in futures]


class StatusTracker:
    """Computes localization status for a configured content tree.

    Create instances with ``create_tracker()``, which loads the persisted
    history cache and prepares the repository.

    Example:
        >>> tracker = create_tracker(load_config("l10nstatus.yml"))
        >>> for entry in tracker.get_full_status():
        ...     for localization in entry.localizations:
        ...         print(entry.source.path, localization.lang, localization.status)
    """

    __slots__ = ("_cache", "_config", "_force", "_history", "_matcher", "_root")

    def __init__(
        self,
        config: TrackerConfig,
        history: HistoryProvider,
        *,
        root: Path,
        cache: HistoryCache,
        force: bool = False,
    ) -> None:
        """Initialize the tracker.

        Args:
            config: Validated configuration
            history: History provider (already seeded from the cache)
            root: Directory tracked paths are relative to
            cache: Persisted history cache
            force: Skip writing the history cache
        """
        self._config = config
        self._history = history
        self._root = root
        self._cache = cache
        self._force = force
        self._matcher = FilesEntryMatcher(config)

    def __repr__(self) -> str:
        return f"StatusTracker(root={str(self._root)!r}, force={self._force})"

    @property
    def config(self) -> TrackerConfig:
        return self._config

    @property
    def history(self) -> HistoryProvider:
        return self._history

    def find_files_entry(self, path: str) -> FilesEntry | None:
        """Find the files entry owning ``path`` (source or locale form)."""
        return self._matcher.find_entry(path)

    def get_path_resolver(self, entry: FilesEntry) -> PathResolver:
        """Return the compiled path resolver of a configured files entry."""
        return self._matcher.resolver_for(entry)

    def get_full_status(self) -> list[StatusEntry]:
        """Compute the status of every tracked source file.

        Returns:
            Status entries grouped by files entry in configuration order,
            sorted by source path within each group

        Raises:
            HistoryUnavailableError: If a tracked file has no commits
            VersionControlError: If version control fails
            MetadataParseError: If a dictionary file cannot be parsed
        """
        status: list[StatusEntry] = []

        for entry, resolver in self._matcher.entries():
            logger.debug("Processing files with pattern: %s", entry.pattern.describe())
            source_paths = self._collect_source_paths(entry, resolver)
            results = _map_bounded(
                functools.partial(self._compute_file_status, owner=entry),
                source_paths,
                MAX_FILE_CONCURRENCY,
                "l10nstatus-file",
            )
            group = [result for result in results if result is not None]
            group.sort(key=lambda result: result.source.path)
            status.extend(group)

        if not self._force:
            self._cache.write(self._history.snapshot())
        return status

    def get_file_status(self, path: str) -> StatusEntry | None:
        """Compute the status of a single file.

        ``path`` may be a source path or any locale's path. The history
        cache is written after the call unless the tracker was forced.

        Returns:
            The file's status entry, or None when the file is not tracked,
            missing, or not localizable
        """
        result = self._compute_file_status(path)
        if result is not None and not self._force:
            self._cache.write(self._history.snapshot())
        return result

    def _collect_source_paths(self, entry: FilesEntry, resolver: PathResolver) -> list[str]:
        candidates = glob_files(self._root, entry.include, entry.exclude)
        accepted: list[str] = []
        filtered_out: list[str] = []
        for path in candidates:
            if resolver.is_source_path(path) and not resolver.is_locales_path(path):
                accepted.append(path)
            else:
                filtered_out.append(path)

        if filtered_out:
            listing = "".join(f"\n- {path}" for path in filtered_out)
            logger.warning(
                "%d paths filtered out by not matching the source pattern '%s':%s",
                len(filtered_out),
                resolver.source_template,
                listing,
            )
            warnings.warn(
                "The following paths were filtered out by not matching the source pattern "
                f"'{resolver.source_template}':{listing}\n\n"
                "Verify that the entry's `pattern`, `include`, and `exclude` are set correctly.",
                GlobMismatchWarning,
                stacklevel=3,
            )
        return accepted

    def _compute_file_status(
        self, path: str, owner: FilesEntry | None = None
    ) -> StatusEntry | None:
        entry = self._matcher.find_entry(path)
        if entry is None:
            logger.error("%s", FilesEntryNotFoundError(path))
            return None
        if owner is not None and entry is not owner:
            logger.debug("'%s' is owned by an earlier files entry", path)
            return None

        resolver = self._matcher.resolver_for(entry)
        source_path = resolver.to_source_path(path)
        source_file = self._root / source_path

        if not source_file.is_file():
            logger.error("%s", PathNotFoundError(source_path, path))
            return None

        tracking = self._config.tracking
        try:
            localizable = is_file_localizable(
                source_file, tracking.localizable_property, tracking.localizable_default
            )
        except (MetadataParseError, OSError) as e:
            logger.error("%s", e)
            return None

        if not localizable:
            logger.debug(
                "'%s' is tracked but not localizable. Front matter property `%s` needs "
                "to be true to get a status for this file.",
                path,
                tracking.localizable_property,
            )
            return None

        source_history = self._history.get_history(source_path)
        localizations = _map_bounded(
            functools.partial(
                self._compute_localization,
                entry=entry,
                resolver=resolver,
                source_path=source_path,
                source_history=source_history,
            ),
            self._config.locales,
            MAX_LOCALE_CONCURRENCY,
            "l10nstatus-locale",
        )

        return StatusEntry(
            files_entry=entry,
            source=SourceEntry(
                lang=self._config.source_locale.lang,
                path=source_path,
                history=source_history,
            ),
            localizations=tuple(localizations),
        )

    def _compute_localization(
        self,
        locale: Locale,
        *,
        entry: FilesEntry,
        resolver: PathResolver,
        source_path: str,
        source_history: FileHistory,
    ) -> LocalizationEntry:
        locale_path = resolver.to_path(source_path, locale.lang)
        locale_file = self._root / locale_path

        if not locale_file.is_file():
            return LocalizationEntry(
                lang=locale.lang, path=locale_path, status=LocalizationStatus.MISSING
            )

        locale_history = self._history.get_history(locale_path)
        # Outdated only when the source changed strictly after the locale copy.
        is_outdated = (
            source_history.latest_tracked_change.date > locale_history.latest_tracked_change.date
        )

        missing_keys: tuple[str, ...] | None = None
        if entry.type is FileType.DICTIONARY:
            try:
                missing_keys = get_missing_keys(
                    self._root / source_path, locale_file, entry.optional_keys
                )
            except MetadataParseError as e:
                logger.error("Dictionary completion failed, aborting: %s", e)
                raise

        return LocalizationEntry(
            lang=locale.lang,
            path=locale_path,
            status=LocalizationStatus.OUTDATED if is_outdated else LocalizationStatus.UP_TO_DATE,
            history=locale_history,
            missing_keys=missing_keys,
        )


def create_tracker(
    config: TrackerConfig,
    *,
    force: bool = False,
    cwd: str | Path | None = None,
    git: VersionControl | None = None,
) -> StatusTracker:
    """Create a StatusTracker ready to compute status.

    Reads the persisted history cache (unless ``force``) and prepares the
    repository (shallow or external clones).

    Args:
        config: Validated configuration
        force: Ignore and do not write the history cache
        cwd: Working tree root (defaults to the current directory)
        git: Version-control collaborator (defaults to a GitClient on ``cwd``)

    Raises:
        VersionControlError: If the repository cannot be prepared
    """
    root = Path.cwd() if cwd is None else Path(cwd)
    vcs = git if git is not None else GitClient(root)
    cache = HistoryCache(root / config.cache_dir, compute_fingerprint(config.tracking))
    cached = None if force else cache.read()
    if cached:
        logger.debug("Loaded %d cached histories from %s", len(cached), cache.path)

    content_root, path_prefix = prepare_repository(vcs, config, root)
    history = HistoryProvider(vcs, config.tracking, cached=cached, path_prefix=path_prefix)
    return StatusTracker(config, history, root=content_root, cache=cache, force=force)
