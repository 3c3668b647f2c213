"""Tests for change message generation."""

from pathlib import Path

from git import Repo

from conftest import commit_files
from tag_syncer.changes import (
    ChangeSummary,
    dedupe_lines,
    find_start_tag,
    summarize_changes,
    with_asterisk,
)
from tag_syncer.git_ops import GitRepository


def test_dedupe_keeps_first_occurrence():
    lines = ["Fix bug", "Add feature", "Fix bug", "Docs", "Add feature"]
    assert dedupe_lines(lines) == ["Fix bug", "Add feature", "Docs"]


def test_with_asterisk_skips_blank_lines():
    assert with_asterisk("Fix bug\n\nAdd feature\n") == "* Fix bug\n* Add feature"


def test_summary_messages():
    summary = ChangeSummary(lines=["Fix bug", "Add feature"], start_tag="v1")
    assert summary.message == "Fix bug\nAdd feature"
    assert summary.message_with_asterisk == "* Fix bug\n* Add feature"


class TestFindStartTag:
    """Tests for resolving the common start tag."""

    def test_common_tag(self, source_repo: Path, local_target: Path):
        assert find_start_tag(GitRepository(source_repo), GitRepository(local_target)) == "v1.0.0"

    def test_target_without_tags(self, source_repo: Path, local_target: Path):
        Repo(local_target).delete_tag("v1.0.0")
        assert find_start_tag(GitRepository(source_repo), GitRepository(local_target)) == ""

    def test_tag_unknown_to_source(self, source_repo: Path, local_target: Path):
        commit_files(local_target, {"b.txt": "b"}, "Target only")
        Repo(local_target).create_tag("target-only")
        assert find_start_tag(GitRepository(source_repo), GitRepository(local_target)) == ""


class TestSummarizeChanges:
    """Tests for summarize_changes."""

    def test_range_from_common_tag(self, source_repo: Path, local_target: Path):
        summary = summarize_changes(
            GitRepository(source_repo), GitRepository(local_target), "v1.1.0"
        )
        assert summary.start_tag == "v1.0.0"
        assert summary.lines == ["Fix bug"]

    def test_no_common_tag_falls_back_to_release_subject(
        self, source_repo: Path, local_target: Path
    ):
        Repo(local_target).delete_tag("v1.0.0")
        commit_files(source_repo, {"c.txt": "c"}, "Unreleased work")

        summary = summarize_changes(
            GitRepository(source_repo), GitRepository(local_target), "v1.1.0"
        )
        assert summary.start_tag == ""
        assert summary.message == "Fix bug"

    def test_empty_range_falls_back(self, source_repo: Path, local_target: Path):
        """A valid start tag with nothing after it still yields a message."""
        summary = summarize_changes(
            GitRepository(source_repo), GitRepository(local_target), "v1.0.0"
        )
        assert summary.start_tag == ""
        assert summary.lines == ["Initial"]

    def test_duplicates_removed_in_order(self, source_repo: Path, local_target: Path):
        repo = Repo(source_repo)
        commit_files(source_repo, {"a.txt": "1"}, "Update deps")
        commit_files(source_repo, {"a.txt": "2"}, "Add feature")
        commit_files(source_repo, {"a.txt": "3"}, "Update deps")
        repo.create_tag("v1.2.0")

        summary = summarize_changes(
            GitRepository(source_repo), GitRepository(local_target), "v1.2.0"
        )
        assert summary.lines == ["Fix bug", "Update deps", "Add feature"]

    def test_show_author(self, source_repo: Path, local_target: Path):
        summary = summarize_changes(
            GitRepository(source_repo),
            GitRepository(local_target),
            "v1.1.0",
            show_author=True,
        )
        assert summary.lines == ["Fix bug (Test User)"]

    def test_merge_commits_excluded(self, source_repo: Path, local_target: Path):
        """Merged-in commits are listed, the merge commit itself is not."""
        repo = Repo(source_repo)
        repo.git.checkout("-b", "feature")
        commit_files(source_repo, {"feature.txt": "f"}, "Feature work")
        repo.git.checkout("main")
        commit_files(source_repo, {"main.txt": "m"}, "Main work")
        repo.git.merge("--no-ff", "-m", "Merge branch 'feature'", "feature")
        repo.create_tag("v1.2.0")

        summary = summarize_changes(
            GitRepository(source_repo), GitRepository(local_target), "v1.2.0"
        )
        assert "Merge branch 'feature'" not in summary.lines
        assert sorted(summary.lines) == ["Feature work", "Fix bug", "Main work"]
