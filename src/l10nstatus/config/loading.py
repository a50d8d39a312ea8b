"""Configuration file loading.

Reads a YAML (or JSON) document and converts it into a validated
TrackerConfig. Example document::

    repository:
      name: example/docs
      root_dir: site
    source_locale: en
    locales:
      - pt
      - lang: zh-Hans
        label: 简体中文
    files:
      - include: ["src/content/docs/**/*.(md|mdx)"]
        exclude: ["src/content/docs/pt/**"]
        pattern:
          source: src/content/docs/@path
          locales: src/content/docs/@lang/@path
      - include: ["src/i18n/en.yml"]
        pattern: src/i18n/@lang.yml
        type: dictionary
        optional_keys: [nav.beta]
    tracking:
      localizable_property: i18nReady
      ignored_keywords: [typo, en-only]

Python 3.13+.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from l10nstatus.config.types import (
    FilesEntry,
    Locale,
    Pattern,
    RepositoryConfig,
    TrackerConfig,
    TrackingOptions,
)
from l10nstatus.diagnostics import ConfigurationError
from l10nstatus.enums import FileType, GitHosting

__all__ = ["config_from_mapping", "load_config"]

logger = logging.getLogger(__name__)

_TOP_LEVEL_KEYS = frozenset(
    {
        "repository",
        "source_locale",
        "locales",
        "files",
        "tracking",
        "cache_dir",
        "clone_dir",
        "external",
    }
)
_REPOSITORY_KEYS = frozenset({"name", "branch", "root_dir", "hosting"})
_FILES_KEYS = frozenset({"include", "exclude", "pattern", "type", "optional_keys"})
_TRACKING_KEYS = frozenset({"localizable_property", "ignored_keywords", "localizable_default"})
_LOCALE_KEYS = frozenset({"lang", "label"})


def _require_mapping(value: object, where: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        msg = f"`{where}` must be a mapping, got {type(value).__name__}"
        raise ConfigurationError(msg)
    return value


def _reject_unknown(data: Mapping[str, Any], allowed: frozenset[str], where: str) -> None:
    unknown = sorted(set(data) - allowed)
    if unknown:
        msg = f"Unknown keys in `{where}`: {', '.join(unknown)}"
        raise ConfigurationError(msg)


def _string_list(value: object, where: str) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        msg = f"`{where}` must be a string or a list of strings"
        raise ConfigurationError(msg)
    return tuple(value)


def _locale(value: object, where: str) -> Locale:
    if isinstance(value, str):
        return Locale(value)
    data = _require_mapping(value, where)
    _reject_unknown(data, _LOCALE_KEYS, where)
    if "lang" not in data:
        msg = f"`{where}` is missing `lang`"
        raise ConfigurationError(msg)
    label = data.get("label")
    return Locale(lang=str(data["lang"]), label=None if label is None else str(label))


def _pattern(value: object, where: str) -> Pattern:
    if isinstance(value, str):
        return Pattern.from_template(value)
    data = _require_mapping(value, where)
    _reject_unknown(data, frozenset({"source", "locales"}), where)
    try:
        return Pattern(source=str(data["source"]), locales=str(data["locales"]))
    except KeyError as e:
        msg = f"`{where}` is missing `{e.args[0]}`"
        raise ConfigurationError(msg) from e


def _files_entry(value: object, index: int) -> FilesEntry:
    where = f"files[{index}]"
    data = _require_mapping(value, where)
    _reject_unknown(data, _FILES_KEYS, where)
    for required in ("include", "pattern"):
        if required not in data:
            msg = f"`{where}` is missing `{required}`"
            raise ConfigurationError(msg)
    try:
        file_type = FileType(data.get("type", FileType.UNIVERSAL))
    except ValueError as e:
        msg = f"`{where}.type` must be one of: {', '.join(FileType)}"
        raise ConfigurationError(msg) from e
    return FilesEntry(
        include=_string_list(data["include"], f"{where}.include"),
        exclude=_string_list(data.get("exclude", []), f"{where}.exclude"),
        pattern=_pattern(data["pattern"], f"{where}.pattern"),
        type=file_type,
        optional_keys=frozenset(_string_list(data.get("optional_keys", []), f"{where}.optional_keys")),
    )


def _repository(value: object) -> RepositoryConfig:
    data = _require_mapping(value, "repository")
    _reject_unknown(data, _REPOSITORY_KEYS, "repository")
    if "name" not in data:
        msg = "`repository` is missing `name`"
        raise ConfigurationError(msg)
    try:
        hosting = GitHosting(data.get("hosting", GitHosting.GITHUB))
    except ValueError as e:
        msg = f"`repository.hosting` must be one of: {', '.join(GitHosting)}"
        raise ConfigurationError(msg) from e
    return RepositoryConfig(
        name=str(data["name"]),
        branch=str(data.get("branch", "main")),
        root_dir=str(data.get("root_dir", ".")),
        hosting=hosting,
    )


def _tracking(value: object) -> TrackingOptions:
    data = _require_mapping(value, "tracking")
    _reject_unknown(data, _TRACKING_KEYS, "tracking")
    defaults = TrackingOptions()
    localizable_property = data.get("localizable_property")
    if localizable_property is not None and not isinstance(localizable_property, str):
        msg = "`tracking.localizable_property` must be a string"
        raise ConfigurationError(msg)
    keywords = data.get("ignored_keywords")
    default_flag = data.get("localizable_default", defaults.localizable_default)
    if not isinstance(default_flag, bool):
        msg = "`tracking.localizable_default` must be a boolean"
        raise ConfigurationError(msg)
    return TrackingOptions(
        localizable_property=localizable_property,
        ignored_keywords=(
            defaults.ignored_keywords
            if keywords is None
            else _string_list(keywords, "tracking.ignored_keywords")
        ),
        localizable_default=default_flag,
    )


def config_from_mapping(data: Mapping[str, Any]) -> TrackerConfig:
    """Build a validated TrackerConfig from plain data.

    Raises:
        ConfigurationError: If the data is incomplete or invalid
    """
    data = _require_mapping(data, "<root>")
    _reject_unknown(data, _TOP_LEVEL_KEYS, "<root>")
    for required in ("repository", "source_locale", "locales", "files"):
        if required not in data:
            msg = f"Configuration is missing `{required}`"
            raise ConfigurationError(msg)

    locales = data["locales"]
    if not isinstance(locales, list):
        msg = "`locales` must be a list"
        raise ConfigurationError(msg)
    files = data["files"]
    if not isinstance(files, list):
        msg = "`files` must be a list"
        raise ConfigurationError(msg)

    optional: dict[str, Any] = {}
    for key in ("cache_dir", "clone_dir"):
        if key in data:
            optional[key] = str(data[key])
    if "external" in data:
        if not isinstance(data["external"], bool):
            msg = "`external` must be a boolean"
            raise ConfigurationError(msg)
        optional["external"] = data["external"]

    return TrackerConfig(
        repository=_repository(data["repository"]),
        source_locale=_locale(data["source_locale"], "source_locale"),
        locales=tuple(_locale(value, f"locales[{i}]") for i, value in enumerate(locales)),
        files=tuple(_files_entry(value, i) for i, value in enumerate(files)),
        tracking=_tracking(data.get("tracking", {})),
        **optional,
    )


def load_config(path: str | Path) -> TrackerConfig:
    """Load and validate a configuration file.

    Raises:
        ConfigurationError: If the file is missing, unparseable, or invalid
    """
    config_path = Path(path)
    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as e:
        msg = f"Could not read configuration file '{config_path}': {e}"
        raise ConfigurationError(msg) from e
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        msg = f"Configuration file '{config_path}' is not valid YAML: {e}"
        raise ConfigurationError(msg) from e

    logger.debug("Loaded configuration from %s", config_path)
    return config_from_mapping(data or {})
