"""Validated, immutable configuration values.

Every type is a frozen dataclass that checks its own invariants in
``__post_init__`` and raises ConfigurationError, so a constructed
TrackerConfig is always safe to hand to the status tracker: no I/O happens
before validation succeeds.

Python 3.13+.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from l10nstatus.constants import DEFAULT_CACHE_DIR, DEFAULT_CLONE_DIR, DEFAULT_IGNORED_KEYWORDS
from l10nstatus.diagnostics import ConfigurationError
from l10nstatus.enums import FileType, GitHosting
from l10nstatus.files.paths import PathResolver
from l10nstatus.locale_utils import get_display_name

__all__ = [
    "FilesEntry",
    "Locale",
    "Pattern",
    "RepositoryConfig",
    "TrackerConfig",
    "TrackingOptions",
]


@dataclass(frozen=True, slots=True)
class Pattern:
    """Source and locales path templates.

    Both templates use the ``@lang`` and ``@path`` placeholders, e.g.
    ``Pattern("docs/@path", "docs/@lang/@path")``.
    """

    source: str
    locales: str

    @classmethod
    def from_template(cls, template: str) -> Pattern:
        """Use one template for both forms; it must contain ``@lang``."""
        if "@lang" not in template:
            msg = f"A single-template pattern must contain '@lang', got: '{template}'"
            raise ConfigurationError(msg)
        return cls(source=template, locales=template)

    def describe(self) -> str:
        if self.source == self.locales:
            return self.source
        return f"{self.source} (source) - {self.locales} (locales)"


@dataclass(frozen=True, slots=True)
class FilesEntry:
    """A group of tracked files sharing one path pattern.

    Attributes:
        include: Glob patterns selecting source files
        pattern: Source/locales path templates
        type: How localizations are compared
        exclude: Glob patterns removed from ``include``
        optional_keys: Dictionary keys exempt from completion checks
    """

    include: tuple[str, ...]
    pattern: Pattern
    type: FileType = FileType.UNIVERSAL
    exclude: tuple[str, ...] = ()
    optional_keys: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        if not self.include:
            msg = "A files entry needs at least one `include` glob"
            raise ConfigurationError(msg)
        if self.optional_keys and self.type is not FileType.DICTIONARY:
            msg = (
                f"`optional_keys` is only valid for '{FileType.DICTIONARY}' entries, "
                f"got type '{self.type}'"
            )
            raise ConfigurationError(msg)


@dataclass(frozen=True, slots=True)
class Locale:
    """A language identifier plus display metadata."""

    lang: str
    label: str | None = None

    def __post_init__(self) -> None:
        if not self.lang or self.lang != self.lang.strip():
            msg = f"Invalid locale identifier: {self.lang!r}"
            raise ConfigurationError(msg)
        if "/" in self.lang or "\\" in self.lang or ".." in self.lang:
            msg = f"Path separators not allowed in locale: '{self.lang}'"
            raise ConfigurationError(msg)

    @property
    def display_name(self) -> str:
        """Explicit label, or the CLDR name of the language in itself."""
        return self.label if self.label else get_display_name(self.lang)


@dataclass(frozen=True, slots=True)
class TrackingOptions:
    """Options controlling which changes count as content changes.

    Attributes:
        localizable_property: Front matter property marking a file as ready
            for localization. ``None`` tracks every file.
        ignored_keywords: Commits whose message contains any of these
            (case-insensitive) are not tracked changes.
        localizable_default: Gate result when the property is absent from a
            file's front matter.
    """

    localizable_property: str | None = None
    ignored_keywords: tuple[str, ...] = DEFAULT_IGNORED_KEYWORDS
    localizable_default: bool = False

    def __post_init__(self) -> None:
        if self.localizable_property is not None and not self.localizable_property.strip():
            msg = "`localizable_property` cannot be blank"
            raise ConfigurationError(msg)
        if any(not keyword.strip() for keyword in self.ignored_keywords):
            msg = "`ignored_keywords` cannot contain blank keywords"
            raise ConfigurationError(msg)


@dataclass(frozen=True, slots=True)
class RepositoryConfig:
    """Identity of the repository holding the tracked content."""

    name: str
    branch: str = "main"
    root_dir: str = "."
    hosting: GitHosting = GitHosting.GITHUB

    def __post_init__(self) -> None:
        if self.name.count("/") < 1 or self.name.startswith("/") or self.name.endswith("/"):
            msg = f"Repository name must look like 'owner/name', got: '{self.name}'"
            raise ConfigurationError(msg)

    @property
    def clone_url(self) -> str:
        match self.hosting:
            case GitHosting.GITHUB:
                return f"https://github.com/{self.name}.git"
            case GitHosting.GITLAB:
                return f"https://gitlab.com/{self.name}.git"


@dataclass(frozen=True, slots=True)
class TrackerConfig:
    """Complete, validated configuration for a status run.

    Path resolvers for every files entry are compiled here once, so
    malformed templates fail before any repository access.

    Attributes:
        repository: Repository identity
        source_locale: Locale of the canonical files
        locales: Target locales, in report order
        files: Tracked file groups; earlier entries win on overlap
        tracking: Change tracking options
        cache_dir: Directory holding the persisted history cache
        clone_dir: Directory for history clones (shallow or external repos)
        external: Content lives in ``repository`` rather than the current
            working tree and must be cloned first
    """

    repository: RepositoryConfig
    source_locale: Locale
    locales: tuple[Locale, ...]
    files: tuple[FilesEntry, ...]
    tracking: TrackingOptions = field(default_factory=TrackingOptions)
    cache_dir: str = DEFAULT_CACHE_DIR
    clone_dir: str = DEFAULT_CLONE_DIR
    external: bool = False
    _resolvers: tuple[PathResolver, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.locales:
            msg = "At least one target locale is required"
            raise ConfigurationError(msg)
        langs = [locale.lang for locale in self.locales]
        duplicates = sorted({lang for lang in langs if langs.count(lang) > 1})
        if duplicates:
            msg = f"Duplicate locales: {', '.join(duplicates)}"
            raise ConfigurationError(msg)
        if self.source_locale.lang in langs:
            msg = f"Source locale '{self.source_locale.lang}' cannot also be a target locale"
            raise ConfigurationError(msg)
        if not self.files:
            msg = "At least one `files` entry is required"
            raise ConfigurationError(msg)

        resolvers = tuple(
            PathResolver(entry.pattern.source, entry.pattern.locales, self.source_locale.lang, langs)
            for entry in self.files
        )
        object.__setattr__(self, "_resolvers", resolvers)

    @property
    def all_locales(self) -> tuple[Locale, ...]:
        """Source locale followed by the target locales."""
        return (self.source_locale, *self.locales)

    def resolvers(self) -> tuple[PathResolver, ...]:
        """Compiled path resolvers, aligned with ``files``."""
        return self._resolvers
