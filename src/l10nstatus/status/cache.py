"""Persisted history cache.

Stores the FileHistory of every path seen during a run in a single JSON
document under the configured cache directory::

    {
      "version": 1,
      "fingerprint": "<md5 of the tracking options>",
      "entries": {"<path>": {"latest_tracked_change": {...}, "all": [...]}}
    }

The fingerprint covers every option that changes how history is
interpreted (ignored keywords, localizable property). A document written
under another fingerprint or format version is discarded as a whole.

Python 3.13+.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from l10nstatus.constants import CACHE_FILE_NAME, CACHE_FORMAT_VERSION
from l10nstatus.status.types import FileHistory

if TYPE_CHECKING:
    from collections.abc import Mapping

    from l10nstatus.config import TrackingOptions

__all__ = ["HistoryCache", "compute_fingerprint"]

logger = logging.getLogger(__name__)


def compute_fingerprint(tracking: TrackingOptions) -> str:
    """Hash the tracking options that affect history interpretation."""
    keywords = "|".join(tracking.ignored_keywords)
    prop = tracking.localizable_property or ""
    raw = f"ignoredKeywords::{keywords}:localizableProperty::{prop}"
    return hashlib.md5(raw.encode("utf-8"), usedforsecurity=False).hexdigest()


class HistoryCache:
    """On-disk history cache for one fingerprint.

    Read once at the start of a run and written at most once at its end;
    callers own the in-memory map in between.

    Attributes:
        path: Location of the cache document
        fingerprint: Fingerprint the document must carry to be trusted
    """

    __slots__ = ("fingerprint", "path")

    def __init__(self, cache_dir: str | Path, fingerprint: str) -> None:
        self.path = Path(cache_dir) / CACHE_FILE_NAME
        self.fingerprint = fingerprint

    def __repr__(self) -> str:
        return f"HistoryCache(path={str(self.path)!r}, fingerprint={self.fingerprint!r})"

    def read(self) -> dict[str, FileHistory]:
        """Load cached histories.

        Returns:
            Histories by path, or an empty mapping when the document is
            absent, unreadable, or written for another fingerprint
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            logger.warning("Could not read history cache %s: %s", self.path, e)
            return {}

        try:
            document = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Discarding corrupt history cache %s: %s", self.path, e)
            return {}

        if not isinstance(document, dict):
            logger.warning("Discarding malformed history cache %s", self.path)
            return {}
        if document.get("version") != CACHE_FORMAT_VERSION:
            logger.debug("Discarding history cache with format %r", document.get("version"))
            return {}
        if document.get("fingerprint") != self.fingerprint:
            logger.debug("Discarding history cache for fingerprint %r", document.get("fingerprint"))
            return {}

        try:
            return {
                path: FileHistory.from_dict(history)
                for path, history in document.get("entries", {}).items()
            }
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning("Discarding malformed history cache %s: %s", self.path, e)
            return {}

    def write(self, entries: Mapping[str, FileHistory]) -> None:
        """Replace the cache document atomically.

        The document is written to a temporary file in the same directory and
        moved into place, so readers never observe a partial write.

        Raises:
            OSError: If the cache directory cannot be created or written
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        document = {
            "version": CACHE_FORMAT_VERSION,
            "fingerprint": self.fingerprint,
            "entries": {path: entries[path].to_dict() for path in sorted(entries)},
        }
        fd, temp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(document, handle, ensure_ascii=False, indent=1)
            os.replace(temp_name, self.path)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise
        logger.info("Wrote %d history entries to %s", len(entries), self.path)
