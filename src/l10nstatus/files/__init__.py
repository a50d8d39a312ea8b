"""Path templates and files entry matching.

Submodules:
    paths    - PathResolver (source <-> locale path conversion)
    matching - glob helpers and FilesEntryMatcher

Python 3.13+.
"""

from l10nstatus.files.matching import FilesEntryMatcher, expand_pattern, glob_files, matches_globs
from l10nstatus.files.paths import PathMatch, PathResolver

__all__ = [
    "FilesEntryMatcher",
    "PathMatch",
    "PathResolver",
    "expand_pattern",
    "glob_files",
    "matches_globs",
]
