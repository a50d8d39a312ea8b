"""Per-file-type completion checks.

Two independent checks run during status computation:

- The localizable gate reads a content file's YAML front matter and decides
  whether the file is ready to be tracked at all.
- Dictionary completion compares the key trees of a source dictionary and a
  locale dictionary and reports the keys the locale copy lacks.

Python 3.13+.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from l10nstatus.constants import DICTIONARY_EXTENSIONS, FRONTMATTER_EXTENSIONS
from l10nstatus.diagnostics import MetadataParseError

if TYPE_CHECKING:
    from collections.abc import Iterable

__all__ = [
    "flatten_keys",
    "get_missing_keys",
    "is_file_localizable",
    "load_dictionary",
    "read_frontmatter",
]

logger = logging.getLogger(__name__)

_FRONTMATTER_FENCE = "---"


def read_frontmatter(text: str, path: str = "<string>") -> dict[str, Any] | None:
    """Parse the leading ``---`` delimited YAML block of a document.

    Returns:
        Front matter mapping, or None when the document has no block

    Raises:
        MetadataParseError: If the block is unterminated, not valid YAML,
            or not a mapping
    """
    text = text.removeprefix("\ufeff")
    lines = text.splitlines()
    if not lines or lines[0].rstrip() != _FRONTMATTER_FENCE:
        return None

    for index, line in enumerate(lines[1:], start=1):
        if line.rstrip() == _FRONTMATTER_FENCE:
            block = "\n".join(lines[1:index])
            break
    else:
        raise MetadataParseError(path, "front matter block is not closed")

    try:
        data = yaml.safe_load(block)
    except yaml.YAMLError as e:
        raise MetadataParseError(path, f"invalid front matter: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise MetadataParseError(path, "front matter must be a mapping")
    return data


def is_file_localizable(
    path: str | Path,
    property_name: str | None,
    default: bool = False,
) -> bool:
    """Check if a source file is marked as ready for localization.

    Policy:
        - no property configured: every file is localizable
        - file type without front matter support: localizable
        - property absent (or no front matter block): ``default``
        - property present: its boolean value

    Raises:
        MetadataParseError: If the front matter is malformed or the property
            is not a boolean
        OSError: If the file cannot be read
    """
    if property_name is None:
        return True
    file_path = Path(path)
    if file_path.suffix.lower() not in FRONTMATTER_EXTENSIONS:
        return True

    frontmatter = read_frontmatter(file_path.read_text(encoding="utf-8"), str(file_path))
    if frontmatter is None or property_name not in frontmatter:
        return default

    value = frontmatter[property_name]
    if not isinstance(value, bool):
        raise MetadataParseError(
            str(file_path),
            f"front matter property `{property_name}` must be a boolean, got {value!r}",
        )
    return value


def load_dictionary(path: str | Path) -> Mapping[str, Any]:
    """Parse a JSON or YAML dictionary file.

    Raises:
        MetadataParseError: If the file type is unsupported, the content is
            not valid, or the root is not a mapping
    """
    file_path = Path(path)
    suffix = file_path.suffix.lower()
    if suffix not in DICTIONARY_EXTENSIONS:
        raise MetadataParseError(
            str(file_path),
            f"unsupported dictionary type '{suffix}', expected one of "
            f"{', '.join(sorted(DICTIONARY_EXTENSIONS))}",
        )

    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as e:
        raise MetadataParseError(str(file_path), str(e)) from e

    try:
        data = json.loads(text) if suffix == ".json" else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise MetadataParseError(str(file_path), str(e)) from e

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise MetadataParseError(str(file_path), "dictionary root must be a mapping")
    return data


def flatten_keys(tree: Mapping[str, Any], prefix: str = "") -> set[str]:
    """Flatten nested mappings into dotted key paths of their leaves.

    Empty mappings have no leaves and contribute no keys.

    Example:
        >>> sorted(flatten_keys({"nav": {"home": "Home", "docs": "Docs"}, "title": "T"}))
        ['nav.docs', 'nav.home', 'title']
    """
    keys: set[str] = set()
    for key, value in tree.items():
        dotted = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            keys |= flatten_keys(value, dotted)
        else:
            keys.add(dotted)
    return keys


def get_missing_keys(
    source_path: str | Path,
    locale_path: str | Path,
    optional_keys: Iterable[str] = (),
) -> tuple[str, ...]:
    """Keys present in the source dictionary but absent from the locale copy.

    An optional key also exempts every key nested below it.

    Returns:
        Sorted missing keys, excluding ``optional_keys``

    Raises:
        MetadataParseError: If either file is not a valid dictionary
    """
    source_keys = flatten_keys(load_dictionary(source_path))
    locale_keys = flatten_keys(load_dictionary(locale_path))
    optional = frozenset(optional_keys)

    def is_optional(key: str) -> bool:
        return key in optional or any(key.startswith(f"{name}.") for name in optional)

    missing = sorted(key for key in source_keys - locale_keys if not is_optional(key))
    if missing:
        logger.debug("%s is missing %d keys from %s", locale_path, len(missing), source_path)
    return tuple(missing)
