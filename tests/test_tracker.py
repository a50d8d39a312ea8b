"""Tests for StatusTracker and create_tracker with an in-memory history."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

import pytest

from l10nstatus.config import (
    FilesEntry,
    Locale,
    Pattern,
    RepositoryConfig,
    TrackerConfig,
    TrackingOptions,
)
from l10nstatus.constants import CACHE_FILE_NAME, MAX_FILE_CONCURRENCY, MAX_LOCALE_CONCURRENCY
from l10nstatus.diagnostics import (
    GlobMismatchWarning,
    HistoryUnavailableError,
    MetadataParseError,
)
from l10nstatus.enums import FileType, LocalizationStatus
from l10nstatus.status import create_tracker, dump_status
from tests.helpers.repo import FakeVersionControl, SlowVersionControl, utc

DOCS = FilesEntry(
    include=("docs/**/*.md",),
    exclude=("docs/pt/**", "docs/es/**"),
    pattern=Pattern("docs/@path", "docs/@lang/@path"),
)
DICTIONARY = FilesEntry(
    include=("i18n/en.json",),
    pattern=Pattern.from_template("i18n/@lang.json"),
    type=FileType.DICTIONARY,
    optional_keys=frozenset({"b"}),
)


def make_config(
    *files: FilesEntry,
    tracking: TrackingOptions | None = None,
    repository: RepositoryConfig | None = None,
    external: bool = False,
) -> TrackerConfig:
    return TrackerConfig(
        repository=repository or RepositoryConfig(name="example/docs"),
        source_locale=Locale("en"),
        locales=(Locale("pt"), Locale("es")),
        files=files or (DOCS,),
        tracking=tracking or TrackingOptions(),
        external=external,
    )


@dataclass
class Project:
    """Working tree plus the commits recorded for each of its files."""

    root: Path
    vcs: FakeVersionControl = field(default_factory=FakeVersionControl)

    def add(
        self,
        path: str,
        content: str = "",
        *,
        date: datetime | None = None,
        message: str = "update",
        vcs_path: str | None = None,
    ) -> None:
        file_path = self.root / path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content, encoding="utf-8")
        if date is not None:
            self.vcs.add_commit(vcs_path or path, message, date)

    @property
    def cache_file(self) -> Path:
        return self.root / ".l10nstatus" / "cache" / CACHE_FILE_NAME


@pytest.fixture
def project(tmp_path: Path) -> Project:
    return Project(tmp_path)


class TestLocalizationStatus:
    """Status classification of locale files."""

    def test_ignored_commit_does_not_outdate(self, project: Project) -> None:
        project.add("docs/guide.md", date=utc(2024, 1, 1), message="update guide")
        project.vcs.add_commit("docs/guide.md", "fix typo", utc(2024, 1, 10))
        project.add("docs/pt/guide.md", date=utc(2024, 1, 2))
        project.add("docs/es/guide.md", date=utc(2023, 12, 31))

        (entry,) = create_tracker(make_config(), cwd=project.root, git=project.vcs).get_full_status()

        assert entry.source.path == "docs/guide.md"
        assert entry.source.lang == "en"
        assert entry.source.history.latest_change.message == "fix typo"
        assert entry.source.history.latest_tracked_change.message == "update guide"
        pt = entry.get_localization("pt")
        es = entry.get_localization("es")
        assert pt is not None and es is not None
        assert pt.status is LocalizationStatus.UP_TO_DATE
        assert pt.path == "docs/pt/guide.md"
        assert es.status is LocalizationStatus.OUTDATED

    def test_equal_timestamps_are_up_to_date(self, project: Project) -> None:
        project.add("docs/guide.md", date=utc(2024, 3, 1))
        project.add("docs/pt/guide.md", date=utc(2024, 3, 1))
        project.add("docs/es/guide.md", date=utc(2024, 3, 1))

        (entry,) = create_tracker(make_config(), cwd=project.root, git=project.vcs).get_full_status()

        assert all(loc.status is LocalizationStatus.UP_TO_DATE for loc in entry.localizations)

    def test_missing_locale_file(self, project: Project) -> None:
        project.add("docs/guide.md", date=utc(2024, 1, 1))
        project.add("docs/pt/guide.md", date=utc(2024, 1, 2))

        (entry,) = create_tracker(make_config(), cwd=project.root, git=project.vcs).get_full_status()

        es = entry.get_localization("es")
        assert es is not None
        assert es.status is LocalizationStatus.MISSING
        assert es.path == "docs/es/guide.md"
        assert es.history is None
        assert "docs/es/guide.md" not in project.vcs.log_calls

    def test_localizations_follow_configured_order(self, project: Project) -> None:
        project.add("docs/guide.md", date=utc(2024, 1, 1))

        (entry,) = create_tracker(make_config(), cwd=project.root, git=project.vcs).get_full_status()

        assert [loc.lang for loc in entry.localizations] == ["pt", "es"]
        assert entry.get_localization("fr") is None


class TestReportShape:
    """Grouping and ordering of the report."""

    def test_sorted_by_source_path(self, project: Project) -> None:
        project.add("docs/b.md", date=utc(2024, 1, 1))
        project.add("docs/a.md", date=utc(2024, 1, 1))
        project.add("docs/nested/c.md", date=utc(2024, 1, 1))

        status = create_tracker(make_config(), cwd=project.root, git=project.vcs).get_full_status()

        assert [entry.source.path for entry in status] == [
            "docs/a.md",
            "docs/b.md",
            "docs/nested/c.md",
        ]

    def test_grouped_by_files_entry(self, project: Project) -> None:
        project.add("i18n/en.json", json.dumps({"a": "A"}), date=utc(2024, 1, 1))
        project.add("docs/guide.md", date=utc(2024, 1, 1))
        config = make_config(DOCS, DICTIONARY)

        status = create_tracker(config, cwd=project.root, git=project.vcs).get_full_status()

        assert [entry.files_entry.type for entry in status] == [
            FileType.UNIVERSAL,
            FileType.DICTIONARY,
        ]

    def test_file_owned_by_earlier_entry_reported_once(self, project: Project) -> None:
        guides = FilesEntry(
            include=("docs/guides/*.md",),
            pattern=Pattern("docs/@path", "docs/@lang/@path"),
        )
        project.add("docs/guides/a.md", date=utc(2024, 1, 1))
        project.add("docs/b.md", date=utc(2024, 1, 1))

        status = create_tracker(
            make_config(guides, DOCS), cwd=project.root, git=project.vcs
        ).get_full_status()

        assert [(entry.files_entry is guides, entry.source.path) for entry in status] == [
            (True, "docs/guides/a.md"),
            (False, "docs/b.md"),
        ]

    def test_filtered_paths_warn(
        self, project: Project, caplog: pytest.LogCaptureFixture
    ) -> None:
        entry = FilesEntry(include=("docs/**/*.md",), pattern=DOCS.pattern)
        project.add("docs/guide.md", date=utc(2024, 1, 1))
        project.add("docs/pt/guide.md", date=utc(2024, 1, 1))
        tracker = create_tracker(make_config(entry), cwd=project.root, git=project.vcs)

        with (
            caplog.at_level(logging.WARNING, logger="l10nstatus"),
            pytest.warns(GlobMismatchWarning, match="docs/pt/guide.md"),
        ):
            status = tracker.get_full_status()

        assert [item.source.path for item in status] == ["docs/guide.md"]
        assert "docs/pt/guide.md" in caplog.text

    def test_dump_status_is_deterministic(self, project: Project) -> None:
        for name in ("a", "b", "c", "d"):
            project.add(f"docs/{name}.md", date=utc(2024, 1, 1))
            project.add(f"docs/pt/{name}.md", date=utc(2024, 1, 2))

        config = make_config()
        first = create_tracker(config, cwd=project.root, git=project.vcs, force=True)
        second = create_tracker(config, cwd=project.root, git=project.vcs, force=True)

        assert dump_status(first.get_full_status()) == dump_status(second.get_full_status())


class TestDictionaries:
    """Dictionary completion inside a status run."""

    def test_missing_keys_reported(self, project: Project) -> None:
        project.add("i18n/en.json", json.dumps({"a": "A", "b": "B", "c": "C"}), date=utc(2024, 1, 1))
        project.add("i18n/pt.json", json.dumps({"a": "A", "c": "C"}), date=utc(2024, 1, 2))
        project.add("i18n/es.json", json.dumps({"a": "A"}), date=utc(2024, 1, 2))

        (entry,) = create_tracker(
            make_config(DICTIONARY), cwd=project.root, git=project.vcs
        ).get_full_status()

        pt = entry.get_localization("pt")
        es = entry.get_localization("es")
        assert pt is not None and es is not None
        assert pt.missing_keys == ()
        assert pt.is_complete
        assert es.missing_keys == ("c",)
        assert not es.is_complete
        assert es.status is LocalizationStatus.UP_TO_DATE

    def test_universal_files_have_no_missing_keys(self, project: Project) -> None:
        project.add("docs/guide.md", date=utc(2024, 1, 1))
        project.add("docs/pt/guide.md", date=utc(2024, 1, 2))

        (entry,) = create_tracker(make_config(), cwd=project.root, git=project.vcs).get_full_status()

        pt = entry.get_localization("pt")
        assert pt is not None
        assert pt.missing_keys is None

    def test_unparseable_dictionary_aborts_run(self, project: Project) -> None:
        project.add("i18n/en.json", json.dumps({"a": "A"}), date=utc(2024, 1, 1))
        project.add("i18n/pt.json", "{broken", date=utc(2024, 1, 2))

        tracker = create_tracker(make_config(DICTIONARY), cwd=project.root, git=project.vcs)
        with pytest.raises(MetadataParseError, match="pt.json"):
            tracker.get_full_status()

        assert not project.cache_file.exists()


class TestLocalizableGate:
    """Front matter gating of source files."""

    def test_only_localizable_files_reported(self, project: Project) -> None:
        project.add("docs/ready.md", "---\ni18nReady: true\n---\n", date=utc(2024, 1, 1))
        project.add("docs/draft.md", "---\ni18nReady: false\n---\n", date=utc(2024, 1, 1))
        project.add("docs/plain.md", "# Plain\n", date=utc(2024, 1, 1))
        config = make_config(tracking=TrackingOptions(localizable_property="i18nReady"))

        status = create_tracker(config, cwd=project.root, git=project.vcs).get_full_status()

        assert [entry.source.path for entry in status] == ["docs/ready.md"]
        assert "docs/draft.md" not in project.vcs.log_calls

    def test_localizable_default(self, project: Project) -> None:
        project.add("docs/plain.md", "# Plain\n", date=utc(2024, 1, 1))
        config = make_config(
            tracking=TrackingOptions(localizable_property="i18nReady", localizable_default=True)
        )

        status = create_tracker(config, cwd=project.root, git=project.vcs).get_full_status()

        assert [entry.source.path for entry in status] == ["docs/plain.md"]

    def test_malformed_frontmatter_skips_file(
        self, project: Project, caplog: pytest.LogCaptureFixture
    ) -> None:
        project.add("docs/broken.md", "---\ni18nReady: true\n", date=utc(2024, 1, 1))
        project.add("docs/ok.md", "---\ni18nReady: true\n---\n", date=utc(2024, 1, 1))
        config = make_config(tracking=TrackingOptions(localizable_property="i18nReady"))

        with caplog.at_level(logging.ERROR, logger="l10nstatus"):
            status = create_tracker(config, cwd=project.root, git=project.vcs).get_full_status()

        assert [entry.source.path for entry in status] == ["docs/ok.md"]
        assert "docs/broken.md" in caplog.text


class TestHistoryCacheUse:
    """Interaction between status runs and the persisted cache."""

    def _populate(self, project: Project) -> None:
        project.add("docs/a.md", date=utc(2024, 1, 1))
        project.add("docs/b.md", date=utc(2024, 1, 5))
        project.add("docs/pt/a.md", date=utc(2024, 1, 2))
        project.add("docs/es/b.md", date=utc(2024, 1, 3))

    def test_second_run_served_from_cache(self, project: Project) -> None:
        self._populate(project)
        config = make_config()
        first = create_tracker(config, cwd=project.root, git=project.vcs).get_full_status()
        assert project.cache_file.is_file()

        offline = FakeVersionControl()
        second_tracker = create_tracker(config, cwd=project.root, git=offline)
        second = second_tracker.get_full_status()

        assert offline.log_calls == []
        assert second_tracker.history.log_calls == 0
        assert dump_status(second) == dump_status(first)

    def test_changed_keywords_invalidate_cache(self, project: Project) -> None:
        self._populate(project)
        create_tracker(make_config(), cwd=project.root, git=project.vcs).get_full_status()
        project.vcs.log_calls.clear()

        config = make_config(tracking=TrackingOptions(ignored_keywords=("typo", "en-only")))
        create_tracker(config, cwd=project.root, git=project.vcs).get_full_status()

        assert sorted(project.vcs.log_calls) == [
            "docs/a.md",
            "docs/b.md",
            "docs/es/b.md",
            "docs/pt/a.md",
        ]

    def test_force_neither_reads_nor_writes(self, project: Project) -> None:
        self._populate(project)
        create_tracker(make_config(), cwd=project.root, git=project.vcs, force=True).get_full_status()
        assert not project.cache_file.exists()

        create_tracker(make_config(), cwd=project.root, git=project.vcs).get_full_status()
        project.vcs.log_calls.clear()
        create_tracker(make_config(), cwd=project.root, git=project.vcs, force=True).get_full_status()

        assert len(project.vcs.log_calls) == 4

    def test_history_failure_aborts_without_writing(self, project: Project) -> None:
        project.add("docs/a.md", date=utc(2024, 1, 1))
        project.add("docs/untracked.md")

        tracker = create_tracker(make_config(), cwd=project.root, git=project.vcs)
        with pytest.raises(HistoryUnavailableError, match="docs/untracked.md"):
            tracker.get_full_status()

        assert not project.cache_file.exists()


class TestSingleFile:
    """get_file_status and the lookup helpers."""

    def test_locale_path_resolves_to_source(self, project: Project) -> None:
        project.add("docs/guide.md", date=utc(2024, 1, 1))
        project.add("docs/pt/guide.md", date=utc(2024, 1, 2))
        tracker = create_tracker(make_config(), cwd=project.root, git=project.vcs)

        entry = tracker.get_file_status("docs/pt/guide.md")

        assert entry is not None
        assert entry.source.path == "docs/guide.md"
        assert project.cache_file.is_file()

    def test_untracked_path(self, project: Project, caplog: pytest.LogCaptureFixture) -> None:
        tracker = create_tracker(make_config(), cwd=project.root, git=project.vcs)

        with caplog.at_level(logging.ERROR, logger="l10nstatus"):
            assert tracker.get_file_status("blog/post.md") is None

        assert "blog/post.md" in caplog.text
        assert not project.cache_file.exists()

    def test_missing_source_file(self, project: Project, caplog: pytest.LogCaptureFixture) -> None:
        project.add("docs/pt/orphan.md", date=utc(2024, 1, 1))
        tracker = create_tracker(make_config(), cwd=project.root, git=project.vcs)

        with caplog.at_level(logging.ERROR, logger="l10nstatus"):
            assert tracker.get_file_status("docs/pt/orphan.md") is None

        assert "docs/orphan.md" in caplog.text

    def test_lookup_helpers(self, project: Project) -> None:
        config = make_config(DOCS, DICTIONARY)
        tracker = create_tracker(config, cwd=project.root, git=project.vcs)

        assert tracker.find_files_entry("docs/pt/guide.md") is DOCS
        assert tracker.find_files_entry("i18n/es.json") is DICTIONARY
        assert tracker.find_files_entry("blog/post.md") is None
        resolver = tracker.get_path_resolver(DICTIONARY)
        assert resolver.to_path("i18n/en.json", "pt") == "i18n/pt.json"
        assert tracker.config is config


class TestRepositoryPreparation:
    """Shallow and external repositories."""

    def test_shallow_repository_uses_history_clone(self, project: Project) -> None:
        project.vcs.shallow = True
        project.add("docs/guide.md", date=utc(2024, 1, 1), vcs_path="site/docs/guide.md")
        project.add("docs/pt/guide.md", date=utc(2024, 1, 2), vcs_path="site/docs/pt/guide.md")
        config = make_config(repository=RepositoryConfig(name="example/docs", root_dir="site"))

        (entry,) = create_tracker(config, cwd=project.root, git=project.vcs).get_full_status()

        dest = (project.root / ".l10nstatus" / "history").resolve()
        assert project.vcs.clones == [("https://github.com/example/docs.git", dest, True, True)]
        assert project.vcs.working_directory == dest
        assert entry.source.path == "docs/guide.md"
        assert project.vcs.log_calls[0] == "site/docs/guide.md"

    def test_regular_repository_is_not_cloned(self, project: Project) -> None:
        project.add("docs/guide.md", date=utc(2024, 1, 1))

        create_tracker(make_config(), cwd=project.root, git=project.vcs).get_full_status()

        assert project.vcs.clones == []
        assert project.vcs.working_directory is None

    def test_external_repository(self, project: Project) -> None:
        clone_root = project.root / ".l10nstatus" / "history"
        content = Project(clone_root / "site", project.vcs)
        content.add("docs/guide.md", date=utc(2024, 1, 1))
        content.add("docs/pt/guide.md", date=utc(2024, 1, 2))
        config = make_config(
            repository=RepositoryConfig(name="example/docs", root_dir="site"),
            external=True,
        )

        (entry,) = create_tracker(config, cwd=project.root, git=project.vcs).get_full_status()

        assert project.vcs.clones == [
            ("https://github.com/example/docs.git", clone_root.resolve(), False, True)
        ]
        assert project.vcs.working_directory == clone_root.resolve() / "site"
        pt = entry.get_localization("pt")
        assert pt is not None
        assert pt.status is LocalizationStatus.UP_TO_DATE
        assert project.cache_file.is_file()


class TestConcurrency:
    """Bounded fan-out and early abort."""

    def test_file_pipelines_are_bounded(self, tmp_path: Path) -> None:
        project = Project(tmp_path, SlowVersionControl())
        for index in range(25):
            project.add(f"docs/{index:02}.md", date=utc(2024, 1, 1))

        status = create_tracker(make_config(), cwd=project.root, git=project.vcs).get_full_status()

        assert len(status) == 25
        assert 1 < project.vcs.peak_in_flight <= MAX_FILE_CONCURRENCY

    def test_locale_checks_are_bounded(self, tmp_path: Path) -> None:
        project = Project(tmp_path, SlowVersionControl())
        langs = ("pt", "es", "fr", "de", "it", "ja", "ko", "nl")
        config = TrackerConfig(
            repository=RepositoryConfig(name="example/docs"),
            source_locale=Locale("en"),
            locales=tuple(Locale(lang) for lang in langs),
            files=(FilesEntry(include=("docs/*.md",), pattern=DOCS.pattern),),
        )
        project.add("docs/guide.md", date=utc(2024, 1, 1))
        for lang in langs:
            project.add(f"docs/{lang}/guide.md", date=utc(2024, 1, 2))

        (entry,) = create_tracker(config, cwd=project.root, git=project.vcs).get_full_status()

        assert [loc.lang for loc in entry.localizations] == list(langs)
        assert 1 < project.vcs.peak_in_flight <= MAX_LOCALE_CONCURRENCY

    def test_failure_stops_scheduling_pipelines(self, tmp_path: Path) -> None:
        """A failing pipeline behind slower ones still cancels the queued rest."""
        project = Project(tmp_path, SlowVersionControl(delay=0.3))
        entry = FilesEntry(
            include=("i18n/en/*.json",),
            pattern=Pattern("i18n/en/@path", "i18n/@lang/@path"),
            type=FileType.DICTIONARY,
        )
        config = TrackerConfig(
            repository=RepositoryConfig(name="example/docs"),
            source_locale=Locale("en"),
            locales=(Locale("pt"),),
            files=(entry,),
        )
        for index in range(30):
            project.add(f"i18n/en/{index:02}.json", json.dumps({"a": "A"}), date=utc(2024, 1, 1))
        project.add("i18n/pt/05.json", "{broken", date=utc(2024, 1, 2))
        project.vcs.fast_paths.update({"i18n/en/05.json", "i18n/pt/05.json"})

        tracker = create_tracker(config, cwd=project.root, git=project.vcs)
        with pytest.raises(MetadataParseError, match="05.json"):
            tracker.get_full_status()

        sources_logged = [path for path in project.vcs.log_calls if path.startswith("i18n/en/")]
        assert len(sources_logged) <= MAX_FILE_CONCURRENCY + 2
        assert not project.cache_file.exists()
