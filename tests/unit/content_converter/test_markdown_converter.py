"""Unit tests for content_converter.markdown_converter module."""

import pytest

from md_to_notion.content_converter.markdown_converter import MAX_TEXT_LENGTH, MarkdownConverter


def _text(block):
    payload = block[block["type"]]
    return "".join(item["text"]["content"] for item in payload["rich_text"])


@pytest.fixture
def converter():
    return MarkdownConverter()


class TestBlockTypes:
    """Test cases for block-level markdown constructs."""

    def test_headings(self, converter):
        """Levels 1-3 map directly; deeper levels collapse to heading_3."""
        blocks = converter.to_blocks("# One\n## Two\n### Three\n#### Four")

        assert [b["type"] for b in blocks] == ["heading_1", "heading_2", "heading_3", "heading_3"]
        assert _text(blocks[3]) == "Four"

    def test_heading_keeps_trailing_hash_in_words(self, converter):
        """'C#' is text, only a separated closing sequence is stripped."""
        blocks = converter.to_blocks("# Learn C#\n## Closed ##")

        assert _text(blocks[0]) == "Learn C#"
        assert _text(blocks[1]) == "Closed"

    def test_paragraph_lines_are_joined(self, converter):
        """Soft breaks become spaces; two trailing spaces force a newline."""
        blocks = converter.to_blocks("first line\nsecond line  \nthird line\n\nnext paragraph")

        assert len(blocks) == 2
        assert _text(blocks[0]) == "first line second line\nthird line"
        assert _text(blocks[1]) == "next paragraph"

    def test_fenced_code_with_language(self, converter):
        """Fenced code keeps its content verbatim and maps the language."""
        blocks = converter.to_blocks("```py\ndef f():\n    return '**x**'\n```")

        assert blocks[0]["type"] == "code"
        assert blocks[0]["code"]["language"] == "python"
        assert _text(blocks[0]) == "def f():\n    return '**x**'"

    def test_unknown_language_is_plain_text(self, converter):
        blocks = converter.to_blocks("```brainfuck\n+++\n```")

        assert blocks[0]["code"]["language"] == "plain text"

    def test_divider_and_quote(self, converter):
        blocks = converter.to_blocks("> quoted\n> text\n\n---")

        assert [b["type"] for b in blocks] == ["quote", "divider"]
        assert _text(blocks[0]) == "quoted\ntext"

    def test_nested_lists(self, converter):
        """Indented items become children of the previous item."""
        markdown = "- a\n  - a1\n    - a1x\n- b\n1. first\n2. second"
        blocks = converter.to_blocks(markdown)

        assert [b["type"] for b in blocks] == [
            "bulleted_list_item", "bulleted_list_item",
            "numbered_list_item", "numbered_list_item",
        ]
        a1 = blocks[0]["bulleted_list_item"]["children"][0]
        assert _text(a1) == "a1"
        assert _text(a1["bulleted_list_item"]["children"][0]) == "a1x"
        assert "children" not in blocks[1]["bulleted_list_item"]

    def test_todo_items(self, converter):
        blocks = converter.to_blocks("- [ ] open\n- [x] done")

        assert [b["type"] for b in blocks] == ["to_do", "to_do"]
        assert blocks[0]["to_do"]["checked"] is False
        assert blocks[1]["to_do"]["checked"] is True
        assert _text(blocks[1]) == "done"

    def test_table(self, converter):
        """Pipe tables become a table block with one table_row per row."""
        blocks = converter.to_blocks("| a | b |\n|---|---|\n| 1 | 2 |\n| 3 |")

        table = blocks[0]["table"]
        assert table["table_width"] == 2
        assert table["has_column_header"] is True
        rows = table["children"]
        assert len(rows) == 3
        # Short rows are padded to the table width
        assert rows[2]["table_row"]["cells"][1] == []

    def test_external_image(self, converter):
        blocks = converter.to_blocks("![Diagram](https://example.com/d.png)")

        assert blocks[0]["type"] == "image"
        assert blocks[0]["image"]["external"]["url"] == "https://example.com/d.png"
        assert blocks[0]["image"]["caption"][0]["text"]["content"] == "Diagram"

    def test_relative_image_becomes_alt_text(self, converter):
        """Notion cannot host local images; the alt text is kept."""
        blocks = converter.to_blocks("![Local diagram](./img/d.png)")

        assert blocks[0]["type"] == "paragraph"
        assert _text(blocks[0]) == "Local diagram"

    def test_empty_document(self, converter):
        assert converter.to_blocks("\n\n  \n") == []


class TestInlineFormatting:
    """Test cases for inline rich text."""

    def test_annotations(self, converter):
        """Bold, italic, strikethrough and code set annotations on their span."""
        rich_text = converter.to_blocks("a **b** *c* ~~d~~ `e`")[0]["paragraph"]["rich_text"]

        by_text = {item["text"]["content"]: item["annotations"] for item in rich_text}
        assert by_text["b"]["bold"] is True
        assert by_text["c"]["italic"] is True
        assert by_text["d"]["strikethrough"] is True
        assert by_text["e"]["code"] is True
        assert by_text["a "]["bold"] is False

    def test_nested_annotations(self, converter):
        rich_text = converter.to_blocks("**bold *both* end**")[0]["paragraph"]["rich_text"]

        both = rich_text[1]
        assert both["text"]["content"] == "both"
        assert both["annotations"]["bold"] is True
        assert both["annotations"]["italic"] is True

    def test_link(self, converter):
        """Absolute links become rich text links."""
        rich_text = converter.to_blocks("see [docs](https://example.com)")[0]["paragraph"]["rich_text"]

        assert rich_text[1]["text"] == {"content": "docs", "link": {"url": "https://example.com"}}

    def test_snake_case_is_not_italic(self, converter):
        rich_text = converter.to_blocks("call my_func_name now")[0]["paragraph"]["rich_text"]

        assert len(rich_text) == 1
        assert rich_text[0]["annotations"]["italic"] is False

    def test_long_text_is_split(self, converter):
        """Rich text items stay within Notion's length limit."""
        content = "x" * (MAX_TEXT_LENGTH * 2 + 10)
        rich_text = converter.to_blocks(content)[0]["paragraph"]["rich_text"]

        assert [len(item["text"]["content"]) for item in rich_text] == [
            MAX_TEXT_LENGTH, MAX_TEXT_LENGTH, 10
        ]
