"""Bidirectional resolution between source paths and locale paths.

A files entry describes where a file lives with two templates built from the
``@lang`` and ``@path`` placeholders:

    source:  "src/content/docs/@path"
    locales: "src/content/docs/@lang/@path"

PathResolver compiles both templates into regular expressions with named
groups once, then converts any path in either form to the path of any
configured locale. Resolution is pure: it never consults the filesystem.

Template rules (violations raise ConfigurationError):
    - each placeholder appears at most once per template
    - the locales template contains ``@lang``
    - ``@path`` appears in both templates or in neither
    - placeholders are never directly adjacent (capture would be ambiguous)

Python 3.13+.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from l10nstatus.diagnostics import ConfigurationError, PathResolutionError

__all__ = ["PathMatch", "PathResolver"]

_LANG = "@lang"
_PATH = "@path"
_PLACEHOLDER_RE = re.compile(r"@lang|@path")


@dataclass(frozen=True, slots=True)
class PathMatch:
    """Captures from a path matched against one of the templates.

    Attributes:
        lang: Locale the path belongs to
        path: ``@path`` capture ("" when the template has no ``@path``)
        is_source: Whether the source template matched
    """

    lang: str
    path: str
    is_source: bool


def _check_template(template: str, kind: str) -> None:
    for placeholder in (_LANG, _PATH):
        if template.count(placeholder) > 1:
            msg = f"The {kind} pattern '{template}' contains '{placeholder}' more than once"
            raise ConfigurationError(msg)
    tokens = list(_PLACEHOLDER_RE.finditer(template))
    for previous, current in zip(tokens, tokens[1:], strict=False):
        if previous.end() == current.start():
            msg = (
                f"The {kind} pattern '{template}' has adjacent placeholders; "
                "separate them with a literal such as '/'"
            )
            raise ConfigurationError(msg)


def _compile(template: str, lang_expr: str) -> re.Pattern[str]:
    parts: list[str] = []
    position = 0
    for token in _PLACEHOLDER_RE.finditer(template):
        parts.append(re.escape(template[position : token.start()]))
        if token.group() == _LANG:
            parts.append(f"(?P<lang>{lang_expr})")
        else:
            parts.append("(?P<path>.+)")
        position = token.end()
    parts.append(re.escape(template[position:]))
    return re.compile("".join(parts))


class PathResolver:
    """Compiled source/locales templates for one files entry.

    Example:
        >>> resolver = PathResolver("docs/@path", "docs/@lang/@path", "en", ["pt"])
        >>> resolver.to_path("docs/guide.md", "pt")
        'docs/pt/guide.md'
        >>> resolver.to_path("docs/pt/guide.md", "en")
        'docs/guide.md'
    """

    __slots__ = (
        "_has_path",
        "_locales_re",
        "_locales_template",
        "_source_lang",
        "_source_re",
        "_source_template",
        "_target_langs",
    )

    def __init__(
        self,
        source: str,
        locales: str,
        source_lang: str,
        target_langs: Iterable[str],
    ) -> None:
        """Compile both templates.

        Args:
            source: Source path template
            locales: Locale path template
            source_lang: Language of the source locale
            target_langs: Languages of the configured target locales

        Raises:
            ConfigurationError: If either template breaks the template rules
        """
        _check_template(source, "source")
        _check_template(locales, "locales")
        if _LANG not in locales:
            msg = f"The locales pattern '{locales}' must contain '{_LANG}'"
            raise ConfigurationError(msg)
        if (_PATH in source) != (_PATH in locales):
            msg = (
                f"'{_PATH}' must appear in both the source pattern '{source}' and the "
                f"locales pattern '{locales}', or in neither"
            )
            raise ConfigurationError(msg)
        if _PATH not in source and _LANG not in source:
            msg = f"The source pattern '{source}' must contain '{_PATH}' or '{_LANG}'"
            raise ConfigurationError(msg)

        self._source_template = source
        self._locales_template = locales
        self._source_lang = source_lang
        # Longest first so "pt-BR" is not shadowed by "pt" in the alternation.
        self._target_langs = tuple(sorted(dict.fromkeys(target_langs), key=len, reverse=True))
        self._has_path = _PATH in source

        self._source_re = _compile(source, re.escape(source_lang))
        if self._target_langs:
            lang_expr = "|".join(re.escape(lang) for lang in self._target_langs)
        else:
            lang_expr = "(?!)"
        self._locales_re = _compile(locales, lang_expr)

    def __repr__(self) -> str:
        return (
            f"PathResolver(source={self._source_template!r}, "
            f"locales={self._locales_template!r}, source_lang={self._source_lang!r})"
        )

    @property
    def source_template(self) -> str:
        return self._source_template

    @property
    def locales_template(self) -> str:
        return self._locales_template

    def _match_locales(self, path: str) -> PathMatch | None:
        found = self._locales_re.fullmatch(path)
        if found is None:
            return None
        groups = found.groupdict()
        return PathMatch(lang=groups["lang"], path=groups.get("path") or "", is_source=False)

    def _match_source(self, path: str) -> PathMatch | None:
        found = self._source_re.fullmatch(path)
        if found is None:
            return None
        return PathMatch(
            lang=self._source_lang, path=found.groupdict().get("path") or "", is_source=True
        )

    def match(self, path: str) -> PathMatch | None:
        """Match ``path`` against either template.

        The locales form is tried first: with templates such as
        ``docs/@path`` and ``docs/@lang/@path`` a locale path also fits the
        source template, with the language folder swallowed into ``@path``.
        """
        return self._match_locales(path) or self._match_source(path)

    def build(self, captured_path: str, lang: str) -> str:
        """Emit the path for ``lang`` from an ``@path`` capture.

        Raises:
            PathResolutionError: If ``lang`` is not a configured locale
        """
        if lang == self._source_lang:
            template = self._source_template
        elif lang in self._target_langs:
            template = self._locales_template
        else:
            raise PathResolutionError(lang, self._locales_template)
        return template.replace(_LANG, lang).replace(_PATH, captured_path)

    def is_source_path(self, path: str) -> bool:
        """Check if ``path`` matches the source template."""
        return self._match_source(path) is not None

    def is_locales_path(self, path: str) -> bool:
        """Check if ``path`` matches the locales template with a target locale."""
        return self._match_locales(path) is not None

    def to_path(self, path: str, lang: str) -> str:
        """Convert ``path`` (either form) into the path of ``lang``.

        Raises:
            PathResolutionError: If ``path`` fits neither template, or
                ``lang`` is not a configured locale
        """
        matched = self.match(path)
        if matched is None:
            raise PathResolutionError(path, f"{self._source_template} | {self._locales_template}")
        return self.build(matched.path, lang)

    def to_source_path(self, path: str) -> str:
        """Convert ``path`` (either form) into the source locale's path."""
        return self.to_path(path, self._source_lang)
