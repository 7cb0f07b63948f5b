"""Unit tests for file_mapper.sync_state module."""

import json
import os

import pytest

from md_to_notion.file_mapper.sync_state import ChangeTracker, default_state_path


@pytest.fixture
def state_path(tmp_path):
    return str(tmp_path / "state" / "sync-state.json")


def _read(path):
    with open(path, encoding="utf-8") as f:
        return json.load(f)


class TestChangeTracker:
    """Test cases for ChangeTracker."""

    def test_new_file_is_changed(self, state_path):
        assert ChangeTracker(state_path).changed("a.md", "hello") is True

    def test_pending_until_commit(self, state_path):
        """changed() alone persists nothing."""
        tracker = ChangeTracker(state_path)
        tracker.changed("a.md", "hello")

        assert not os.path.exists(state_path)

    def test_commit_persists_fingerprint(self, state_path):
        tracker = ChangeTracker(state_path)
        tracker.changed("a.md", "hello")
        tracker.commit("a.md")

        assert _read(state_path) == {"a.md": ChangeTracker.fingerprint("hello")}
        assert ChangeTracker(state_path).changed("a.md", "hello") is False

    def test_commit_without_pending_does_no_io(self, state_path):
        tracker = ChangeTracker(state_path)
        tracker.commit("a.md")

        assert not os.path.exists(state_path)

    def test_unchanged_file_commit_writes_nothing(self, state_path):
        """An unchanged file has nothing pending, so commit() skips the write."""
        first = ChangeTracker(state_path)
        first.changed("a.md", "hello")
        first.flush_all()

        second = ChangeTracker(state_path)
        assert second.changed("a.md", "hello") is False
        os.remove(state_path)
        second.commit("a.md")
        assert not os.path.exists(state_path)

    def test_modified_content_is_changed(self, state_path):
        first = ChangeTracker(state_path)
        first.changed("a.md", "v1")
        first.flush_all()

        assert ChangeTracker(state_path).changed("a.md", "v2") is True

    def test_uncommitted_file_stays_changed_after_crash(self, state_path):
        """Only committed files are skipped by the next run."""
        tracker = ChangeTracker(state_path)
        tracker.changed("a.md", "a")
        tracker.changed("b.md", "b")
        tracker.commit("a.md")
        # No flush_all: the run died while syncing b.md

        rerun = ChangeTracker(state_path)
        assert rerun.changed("a.md", "a") is False
        assert rerun.changed("b.md", "b") is True

    @pytest.mark.parametrize("content", ["{not json", "[1, 2]", ""])
    def test_unreadable_state_means_everything_changed(self, state_path, content):
        os.makedirs(os.path.dirname(state_path))
        with open(state_path, "w", encoding="utf-8") as f:
            f.write(content)

        assert ChangeTracker(state_path).changed("a.md", "x") is True

    def test_save_failure_is_not_raised(self, tmp_path):
        """A state path that cannot be written does not abort the sync."""
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding="utf-8")
        tracker = ChangeTracker(str(blocker / "state.json"))
        tracker.changed("a.md", "x")

        tracker.commit("a.md")

    def test_default_state_path(self):
        assert default_state_path().endswith(os.path.join(".md-to-notion", "sync-state.json"))
