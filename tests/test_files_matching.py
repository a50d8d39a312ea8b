"""Tests for glob helpers and FilesEntryMatcher."""

from __future__ import annotations

from pathlib import Path

import pytest

from l10nstatus.config import FilesEntry, Locale, Pattern, RepositoryConfig, TrackerConfig
from l10nstatus.enums import FileType
from l10nstatus.files import FilesEntryMatcher, expand_pattern, glob_files, matches_globs


def make_config(*files: FilesEntry) -> TrackerConfig:
    return TrackerConfig(
        repository=RepositoryConfig(name="example/docs"),
        source_locale=Locale("en"),
        locales=(Locale("pt"), Locale("es")),
        files=files,
    )


DOCS_ENTRY = FilesEntry(
    include=("src/content/docs/**/*.(md|mdx)",),
    exclude=("src/content/docs/pt/**", "src/content/docs/es/**"),
    pattern=Pattern("src/content/docs/@path", "src/content/docs/@lang/@path"),
)
DICTIONARY_ENTRY = FilesEntry(
    include=("src/i18n/en.yml",),
    pattern=Pattern.from_template("src/i18n/@lang.yml"),
    type=FileType.DICTIONARY,
)


class TestExpandPattern:
    """Alternation expansion."""

    def test_plain_pattern_unchanged(self) -> None:
        assert expand_pattern("docs/**/*.md") == ("docs/**/*.md",)

    def test_parenthesized_alternation(self) -> None:
        assert expand_pattern("docs/*.(md|mdx)") == ("docs/*.md", "docs/*.mdx")

    def test_brace_alternation(self) -> None:
        assert expand_pattern("{docs,guides}/*.md") == ("docs/*.md", "guides/*.md")

    def test_multiple_groups(self) -> None:
        expanded = expand_pattern("{a,b}/*.(md|mdx)")
        assert set(expanded) == {"a/*.md", "a/*.mdx", "b/*.md", "b/*.mdx"}


class TestMatchesGlobs:
    """Glob semantics of matches_globs."""

    def test_single_star_stays_in_segment(self) -> None:
        assert matches_globs("docs/guide.md", ["docs/*.md"])
        assert not matches_globs("docs/nested/guide.md", ["docs/*.md"])

    def test_double_star_crosses_segments(self) -> None:
        assert matches_globs("docs/a/b/guide.md", ["docs/**/*.md"])
        assert matches_globs("docs/guide.md", ["docs/**/*.md"])

    def test_case_sensitive(self) -> None:
        assert not matches_globs("Docs/guide.md", ["docs/**/*.md"])

    def test_no_patterns_never_match(self) -> None:
        assert not matches_globs("docs/guide.md", [])


class TestGlobFiles:
    """Filesystem enumeration."""

    def test_include_and_exclude(self, tmp_path: Path) -> None:
        for name in (
            "src/content/docs/guide.md",
            "src/content/docs/nested/intro.mdx",
            "src/content/docs/pt/guide.md",
            "src/content/docs/notes.txt",
        ):
            (tmp_path / name).parent.mkdir(parents=True, exist_ok=True)
            (tmp_path / name).write_text("x", encoding="utf-8")

        found = glob_files(tmp_path, DOCS_ENTRY.include, DOCS_ENTRY.exclude)

        assert found == ["src/content/docs/guide.md", "src/content/docs/nested/intro.mdx"]

    def test_directories_are_skipped(self, tmp_path: Path) -> None:
        (tmp_path / "docs" / "folder.md").mkdir(parents=True)
        assert glob_files(tmp_path, ["docs/*.md"]) == []


class TestFilesEntryMatcher:
    """Ownership of paths by files entries."""

    def test_source_path_found(self) -> None:
        matcher = FilesEntryMatcher(make_config(DOCS_ENTRY, DICTIONARY_ENTRY))
        assert matcher.find_entry("src/content/docs/guide.md") is DOCS_ENTRY

    def test_locale_path_matched_on_source_form(self) -> None:
        """Locale paths are excluded by glob, but their source form is included."""
        matcher = FilesEntryMatcher(make_config(DOCS_ENTRY, DICTIONARY_ENTRY))
        assert matcher.find_entry("src/content/docs/pt/guide.md") is DOCS_ENTRY

    def test_dictionary_locale_path(self) -> None:
        matcher = FilesEntryMatcher(make_config(DOCS_ENTRY, DICTIONARY_ENTRY))
        assert matcher.find_entry("src/i18n/pt.yml") is DICTIONARY_ENTRY

    def test_unmatched_path_returns_none(self) -> None:
        matcher = FilesEntryMatcher(make_config(DOCS_ENTRY, DICTIONARY_ENTRY))
        assert matcher.find_entry("README.md") is None

    def test_excluded_source_form_returns_none(self) -> None:
        entry = FilesEntry(
            include=("docs/**/*.md",),
            exclude=("docs/drafts/**",),
            pattern=Pattern("docs/@path", "i18n/@lang/@path"),
        )
        matcher = FilesEntryMatcher(make_config(entry))
        assert matcher.find_entry("docs/drafts/wip.md") is None
        assert matcher.find_entry("i18n/pt/drafts/wip.md") is None

    def test_first_entry_wins(self) -> None:
        broad = FilesEntry(
            include=("docs/**/*.md",),
            pattern=Pattern("docs/@path", "i18n/@lang/@path"),
        )
        narrow = FilesEntry(
            include=("docs/guides/*.md",),
            pattern=Pattern("docs/@path", "i18n/@lang/@path"),
        )
        matcher = FilesEntryMatcher(make_config(broad, narrow))
        assert matcher.find_entry("docs/guides/setup.md") is broad

    def test_resolver_for_configured_entry(self) -> None:
        matcher = FilesEntryMatcher(make_config(DOCS_ENTRY, DICTIONARY_ENTRY))
        resolver = matcher.resolver_for(DICTIONARY_ENTRY)
        assert resolver.to_path("src/i18n/en.yml", "es") == "src/i18n/es.yml"

    def test_resolver_for_unknown_entry_raises(self) -> None:
        matcher = FilesEntryMatcher(make_config(DOCS_ENTRY))
        with pytest.raises(KeyError):
            matcher.resolver_for(DICTIONARY_ENTRY)
