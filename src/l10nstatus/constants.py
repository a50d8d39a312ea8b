"""Shared constants for l10nstatus.

Constants are grouped by domain:
- Concurrency limits: bounds for the status fan-out pools
- Tracking defaults: commit filtering and localizable marker policy
- Storage defaults: cache and clone locations

Python 3.13+.
"""

import os

# ruff: noqa: RUF022 - __all__ organized by category for readability
__all__ = [
    # Concurrency limits
    "MAX_FILE_CONCURRENCY",
    "MAX_LOCALE_CONCURRENCY",
    "DEFAULT_GIT_PROCESSES",
    # Tracking defaults
    "DEFAULT_IGNORED_KEYWORDS",
    "FRONTMATTER_EXTENSIONS",
    "DICTIONARY_EXTENSIONS",
    # Storage defaults
    "DEFAULT_CACHE_DIR",
    "DEFAULT_CLONE_DIR",
    "CACHE_FILE_NAME",
    "CACHE_FORMAT_VERSION",
]

# ============================================================================
# CONCURRENCY LIMITS
# ============================================================================

# Source-file pipelines running at once during a full status run.
MAX_FILE_CONCURRENCY: int = 10

# Locale checks running at once for a single source file.
MAX_LOCALE_CONCURRENCY: int = 5

# Concurrent `git` subprocesses, shared by every pipeline.
DEFAULT_GIT_PROCESSES: int = max(2, min(32, os.cpu_count() or 1))

# ============================================================================
# TRACKING DEFAULTS
# ============================================================================

# Commits whose message contains one of these (case-insensitive) are not
# considered content changes.
DEFAULT_IGNORED_KEYWORDS: tuple[str, ...] = (
    "l10n-ignore",
    "typo",
    "en-only",
    "broken link",
    "i18nReady",
    "i18nIgnore",
)

# File types carrying a YAML front matter block.
FRONTMATTER_EXTENSIONS: frozenset[str] = frozenset({".md", ".mdx", ".markdoc"})

# File types accepted by the dictionary completion check.
DICTIONARY_EXTENSIONS: frozenset[str] = frozenset({".json", ".yml", ".yaml"})

# ============================================================================
# STORAGE DEFAULTS
# ============================================================================

DEFAULT_CACHE_DIR: str = ".l10nstatus/cache"
DEFAULT_CLONE_DIR: str = ".l10nstatus/history"

CACHE_FILE_NAME: str = "history.json"

# Bump when the serialized FileHistory layout changes.
CACHE_FORMAT_VERSION: int = 1
