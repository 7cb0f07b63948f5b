"""Unit tests for the models package (block helpers, page identity)."""

import pytest

from md_to_notion.models.notion_block import (
    block_children,
    content_key,
    max_nesting_depth,
    set_block_children,
    to_insertable,
)
from md_to_notion.models.notion_page import (
    get_page_title,
    normalize_page_id,
    page_key,
    page_ref_from_response,
)
from md_to_notion.notion_api.errors import MalformedPageError
from tests.helpers.fake_notion import bullet, paragraph


def _existing_paragraph(text, block_id="b1", has_children=False):
    """A paragraph as the Notion API returns it."""
    return {
        "object": "block",
        "id": block_id,
        "created_time": "2024-01-01T00:00:00.000Z",
        "has_children": has_children,
        "archived": False,
        "type": "paragraph",
        "paragraph": {
            "color": "default",
            "rich_text": [{
                "type": "text",
                "text": {"content": text, "link": None},
                "annotations": {
                    "bold": False, "italic": False, "strikethrough": False,
                    "underline": False, "code": False, "color": "default",
                },
                "plain_text": text,
                "href": None,
            }],
        },
    }


class TestContentKey:
    """Test cases for content_key."""

    def test_response_and_built_block_are_equal(self):
        """Ids, timestamps and defaults echoed by Notion do not matter."""
        assert content_key(_existing_paragraph("Hello")) == content_key(paragraph("Hello"))

    def test_different_text_differs(self):
        assert content_key(paragraph("Hello")) != content_key(paragraph("Hello!"))

    def test_different_type_differs(self):
        """Same text in a different block type is different content."""
        assert content_key(paragraph("Item")) != content_key(bullet("Item"))

    def test_children_are_ignored(self):
        """Nested children are compared separately by the merge engine."""
        assert content_key(bullet("a", [bullet("b")])) == content_key(bullet("a"))

    def test_annotation_change_differs(self):
        """Turning text bold changes the key."""
        bold = paragraph("Hello")
        bold["paragraph"]["rich_text"][0]["annotations"]["bold"] = True
        assert content_key(bold) != content_key(paragraph("Hello"))

    def test_text_reading_default_is_content(self):
        """Only a 'default' color is a filled-in default, not text saying so."""
        assert content_key(paragraph("default")) != content_key(paragraph(""))
        assert content_key(_existing_paragraph("default")) == content_key(paragraph("default"))

    def test_link_url_reading_default_is_kept(self):
        linked = paragraph("docs")
        linked["paragraph"]["rich_text"][0]["text"]["link"] = {"url": "default"}
        assert content_key(linked) != content_key(paragraph("docs"))


class TestBlockChildren:
    """Test cases for block_children and set_block_children."""

    def test_built_block_children(self):
        block = bullet("a", [bullet("b")])
        assert [child["type"] for child in block_children(block)] == ["bulleted_list_item"]

    def test_unloaded_children_are_none(self):
        """has_children without fetched children means unknown."""
        assert block_children(_existing_paragraph("x", has_children=True)) is None

    def test_leaf_has_no_children(self):
        assert block_children(_existing_paragraph("x")) == []

    def test_set_block_children(self):
        """Attached children are visible through block_children."""
        block = _existing_paragraph("x", has_children=True)
        set_block_children(block, [paragraph("y")])
        assert len(block_children(block)) == 1


class TestToInsertable:
    """Test cases for to_insertable."""

    def test_strips_identity_and_response_fields(self):
        """The copy has no id or response-only fields."""
        insertable = to_insertable(_existing_paragraph("Hi"))

        assert set(insertable) == {"object", "type", "paragraph"}
        rich_text = insertable["paragraph"]["rich_text"][0]
        assert "plain_text" not in rich_text
        assert "href" not in rich_text

    def test_copies_children_recursively(self):
        original = bullet("a", [bullet("b", [bullet("c")])])
        insertable = to_insertable(original)

        grandchild = insertable["bulleted_list_item"]["children"][0]["bulleted_list_item"]["children"][0]
        assert grandchild["bulleted_list_item"]["rich_text"][0]["text"]["content"] == "c"
        assert insertable is not original


class TestMaxNestingDepth:
    """Test cases for max_nesting_depth."""

    def test_flat_list(self):
        assert max_nesting_depth([paragraph("a"), paragraph("b")]) == 1

    def test_nested_list(self):
        blocks = [bullet("1", [bullet("2", [bullet("3", [bullet("4")])])])]
        assert max_nesting_depth(blocks) == 4

    def test_empty(self):
        assert max_nesting_depth([]) == 0


class TestPageIdentity:
    """Test cases for page keys, ids and titles."""

    def test_page_key(self):
        assert page_key(".", "docs") == "./docs"
        assert page_key("./docs", "intro") == "./docs/intro"

    @pytest.mark.parametrize("raw", [
        "1429989f-e8ac-4eff-bc8f-57f56486db54",
        "1429989fe8ac4effbc8f57f56486db54",
        "https://www.notion.so/workspace/My-Page-1429989fe8ac4effbc8f57f56486db54?pvs=4",
        "1429989FE8AC4EFFBC8F57F56486DB54",
    ])
    def test_normalize_page_id(self, raw):
        """Dashed, undashed, URL and uppercase forms normalize alike."""
        assert normalize_page_id(raw) == "1429989fe8ac4effbc8f57f56486db54"

    def test_get_page_title(self):
        page = {
            "id": "p1",
            "properties": {
                "Name": {"type": "title", "title": [{"plain_text": "Guide"}]},
                "Tags": {"type": "multi_select", "multi_select": []},
            },
        }
        assert get_page_title(page) == "Guide"

    def test_missing_title_is_malformed(self):
        """A page with an empty title raises MalformedPageError naming its URL."""
        page = {
            "id": "p1",
            "url": "https://www.notion.so/p1",
            "properties": {"title": {"type": "title", "title": []}},
        }
        with pytest.raises(MalformedPageError) as exc_info:
            get_page_title(page)

        assert exc_info.value.address == "https://www.notion.so/p1"
        assert "https://www.notion.so/p1" in str(exc_info.value)

    def test_page_ref_from_response(self):
        ref = page_ref_from_response({"id": "p1", "url": "https://x"})
        assert (ref.id, ref.address) == ("p1", "https://x")
