"""Glob matching and files entry ownership.

Glob semantics follow ``PurePosixPath.full_match``: ``*`` matches within one
path segment, ``**`` across any number of segments, and matching is
case-sensitive. Alternations written as ``{md,mdx}`` or ``(md|mdx)`` are
expanded into separate patterns first.

Python 3.13+.
"""

from __future__ import annotations

import functools
import logging
import re
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from l10nstatus.diagnostics import PathResolutionError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from l10nstatus.config import FilesEntry, TrackerConfig
    from l10nstatus.files.paths import PathResolver

__all__ = [
    "FilesEntryMatcher",
    "expand_pattern",
    "glob_files",
    "matches_globs",
]

logger = logging.getLogger(__name__)

# Innermost alternation group: {a,b} or (a|b) without nested groups.
_ALTERNATION_RE = re.compile(r"\{([^{}]*,[^{}]*)\}|\(([^()]*\|[^()]*)\)")


@functools.lru_cache(maxsize=256)
def expand_pattern(pattern: str) -> tuple[str, ...]:
    """Expand alternation groups into plain glob patterns.

    Example:
        >>> expand_pattern("docs/**/*.(md|mdx)")
        ('docs/**/*.md', 'docs/**/*.mdx')
    """
    found = _ALTERNATION_RE.search(pattern)
    if found is None:
        return (pattern,)
    if found.group(1) is not None:
        options = found.group(1).split(",")
    else:
        options = found.group(2).split("|")
    expanded: list[str] = []
    for option in options:
        candidate = pattern[: found.start()] + option + pattern[found.end() :]
        expanded.extend(expand_pattern(candidate))
    return tuple(dict.fromkeys(expanded))


def matches_globs(path: str, patterns: Iterable[str]) -> bool:
    """Check if a relative POSIX path matches any of the glob patterns."""
    pure = PurePosixPath(path)
    return any(
        pure.full_match(expanded)
        for pattern in patterns
        for expanded in expand_pattern(pattern)
    )


def glob_files(root: Path, include: Iterable[str], exclude: Iterable[str] = ()) -> list[str]:
    """Enumerate files under ``root`` matching ``include`` but not ``exclude``.

    Returns:
        Sorted, deduplicated paths relative to ``root`` in POSIX form
    """
    exclude = tuple(exclude)
    found: set[str] = set()
    for pattern in include:
        for expanded in expand_pattern(pattern):
            for candidate in root.glob(expanded):
                if not candidate.is_file():
                    continue
                relative = candidate.relative_to(root).as_posix()
                if not matches_globs(relative, exclude):
                    found.add(relative)
    return sorted(found)


class FilesEntryMatcher:
    """Finds the files entry owning a path.

    Matching is always done on the path's source form: a locale path is
    converted first, so a file is never owned by two entries through its two
    forms. The first entry in configuration order wins.
    """

    __slots__ = ("_pairs",)

    def __init__(self, config: TrackerConfig) -> None:
        self._pairs: tuple[tuple[FilesEntry, PathResolver], ...] = tuple(
            zip(config.files, config.resolvers(), strict=True)
        )

    def entries(self) -> tuple[tuple[FilesEntry, PathResolver], ...]:
        """Files entries paired with their compiled resolvers, in config order."""
        return self._pairs

    def resolver_for(self, entry: FilesEntry) -> PathResolver:
        """Return the compiled resolver of a configured entry.

        Raises:
            KeyError: If ``entry`` is not part of the configuration
        """
        for candidate, resolver in self._pairs:
            if candidate is entry:
                return resolver
        for candidate, resolver in self._pairs:
            if candidate == entry:
                return resolver
        msg = f"Files entry is not configured: {entry!r}"
        raise KeyError(msg)

    def find_entry(self, path: str) -> FilesEntry | None:
        """Find the first files entry owning ``path``.

        Entries whose templates do not fit the path are skipped rather than
        treated as errors.
        """
        for entry, resolver in self._pairs:
            try:
                if not resolver.is_source_path(path) and not resolver.is_locales_path(path):
                    continue
                source_path = resolver.to_source_path(path)
            except PathResolutionError:
                continue
            if matches_globs(source_path, entry.include) and not matches_globs(
                source_path, entry.exclude
            ):
                return entry
        logger.debug("No files entry owns '%s'", path)
        return None
