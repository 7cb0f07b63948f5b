"""Unit tests for file_mapper.tree_reconciler module."""

import dataclasses
from unittest.mock import MagicMock

import pytest

from md_to_notion.file_mapper.errors import PageSyncError
from md_to_notion.file_mapper.hierarchy_builder import HierarchyBuilder
from md_to_notion.file_mapper.models import LocalFile, LocalNode
from md_to_notion.file_mapper.tree_reconciler import TreeReconciler
from md_to_notion.notion_api.errors import APIAccessError, RemoteOverloadedError
from tests.helpers.fake_notion import paragraph


def _file(name, path, text=None, changed=True):
    return LocalFile(
        name=name,
        path=path,
        get_content=lambda link_map: [paragraph(text or f"{name} content")],
        changed=changed,
    )


@pytest.fixture
def tree():
    """./README.md and ./guide/intro.md"""
    return LocalNode(
        name=".",
        files=[_file("README", "README.md")],
        subfolders=[LocalNode(name="guide", files=[_file("intro", "guide/intro.md")])],
    )


async def _index(api, options):
    return await HierarchyBuilder(api, options).build_index(api.root_id)


class TestTreeReconcilerPages:
    """Test cases for page creation and reuse."""

    async def test_creates_missing_pages(self, fake_notion, fast_options, tree):
        """Folders and files become pages under the right parents."""
        index = await _index(fake_notion, fast_options)

        result = await TreeReconciler(fake_notion, fast_options).sync(tree, fake_notion.root_id, index)

        assert result.pages_created == 3
        assert fake_notion.child_titles(fake_notion.root_id) == ["README", "guide"]
        guide_id = fake_notion.find_page(fake_notion.root_id, "guide")
        assert fake_notion.child_titles(guide_id) == ["intro"]
        assert {"./README", "./guide", "./guide/intro"} <= set(index)
        assert fake_notion.texts(index["./guide/intro"].id) == ["intro content"]

    async def test_reuses_existing_pages(self, fake_notion, fast_options, tree):
        """Pages already in the index are not created again."""
        fake_notion.add_page(fake_notion.root_id, "README")
        index = await _index(fake_notion, fast_options)

        result = await TreeReconciler(fake_notion, fast_options).sync(tree, fake_notion.root_id, index)

        assert result.pages_created == 2
        assert fake_notion.child_titles(fake_notion.root_id).count("README") == 1

    async def test_create_failure_names_key(self, fake_notion, fast_options, tree):
        overloaded = RemoteOverloadedError("create_page", 429)
        fake_notion.fail_next("create_page", overloaded, overloaded, overloaded)
        index = await _index(fake_notion, fast_options)

        with pytest.raises(PageSyncError) as exc_info:
            await TreeReconciler(fake_notion, fast_options).sync(tree, fake_notion.root_id, index)

        assert exc_info.value.key == "./README"
        assert isinstance(exc_info.value.__cause__, APIAccessError)


class TestTreeReconcilerContent:
    """Test cases for content sync and change tracking."""

    async def test_unchanged_existing_file_is_skipped(self, fake_notion, fast_options):
        """No content calls for an unchanged file whose page exists."""
        fake_notion.add_page(fake_notion.root_id, "README")
        index = await _index(fake_notion, fast_options)
        root = LocalNode(name=".", files=[_file("README", "README.md", changed=False)])
        calls_before = fake_notion.calls["list_children"]

        result = await TreeReconciler(fake_notion, fast_options).sync(root, fake_notion.root_id, index)

        assert result.files_skipped == 1
        assert result.files_synced == 0
        assert fake_notion.calls["list_children"] == calls_before
        assert fake_notion.calls["append_children"] == 0

    async def test_created_page_is_synced_even_if_unchanged(self, fake_notion, fast_options):
        """A recreated page gets content although the fingerprint matches."""
        index = await _index(fake_notion, fast_options)
        root = LocalNode(name=".", files=[_file("README", "README.md", changed=False)])

        result = await TreeReconciler(fake_notion, fast_options).sync(root, fake_notion.root_id, index)

        assert result.files_synced == 1
        assert fake_notion.texts(index["./README"].id) == ["README content"]

    async def test_tracker_committed_per_file(self, fake_notion, fast_options, tree):
        tracker = MagicMock()
        index = await _index(fake_notion, fast_options)

        await TreeReconciler(fake_notion, fast_options).sync(tree, fake_notion.root_id, index, tracker)

        committed = [call.args[0] for call in tracker.commit.call_args_list]
        assert committed == ["README.md", "guide/intro.md"]
        tracker.flush_all.assert_called_once()

    async def test_content_failure_stops_before_commit(self, fake_notion, fast_options, tree):
        """A failing file is named in the error and its record stays pending."""
        tracker = MagicMock()
        index = await _index(fake_notion, fast_options)
        overloaded = RemoteOverloadedError("append_children", 429)
        fake_notion.fail_next("append_children", overloaded, overloaded, overloaded)

        with pytest.raises(PageSyncError) as exc_info:
            await TreeReconciler(fake_notion, fast_options).sync(
                tree, fake_notion.root_id, index, tracker
            )

        assert exc_info.value.key == "./README"
        tracker.commit.assert_not_called()
        tracker.flush_all.assert_not_called()

    async def test_internal_links_use_page_addresses(self, fake_notion, fast_options):
        """get_content receives every known page's URL."""
        seen = {}

        def get_content(link_map):
            seen.update(link_map)
            return []

        root = LocalNode(
            name=".",
            files=[LocalFile(name="a", path="a.md", get_content=get_content), _file("b", "b.md")],
        )
        index = await _index(fake_notion, fast_options)

        await TreeReconciler(fake_notion, fast_options).sync(root, fake_notion.root_id, index)

        assert seen["./b"] == index["./b"].address

    async def test_progress_ends_at_total(self, fake_notion, fast_options, tree):
        reports = []
        options = dataclasses.replace(fast_options, progress_callback=lambda p, t: reports.append((p, t)))
        index = await _index(fake_notion, options)
        reports.clear()

        await TreeReconciler(fake_notion, options).sync(tree, fake_notion.root_id, index)

        assert reports == [(0, 2), (1, 2), (2, 2)]


class TestTreeReconcilerOrphans:
    """Test cases for orphan archival after sync."""

    async def test_archives_untouched_pages(self, fake_notion, fast_options, tree):
        old = fake_notion.add_page(fake_notion.root_id, "old")
        fake_notion.add_page(old, "child")
        index = await _index(fake_notion, fast_options)

        result = await TreeReconciler(fake_notion, fast_options).sync(
            tree, fake_notion.root_id, index, delete_orphans=True
        )

        assert result.archived_keys == ["./old"]
        assert fake_notion.archived == [old]
        assert fake_notion.root_id not in fake_notion.archived

    async def test_orphans_kept_by_default(self, fake_notion, fast_options, tree):
        fake_notion.add_page(fake_notion.root_id, "old")
        index = await _index(fake_notion, fast_options)

        result = await TreeReconciler(fake_notion, fast_options).sync(tree, fake_notion.root_id, index)

        assert result.archived_keys == []
        assert fake_notion.calls["archive_page"] == 0
