"""Data models for Notion pages and blocks."""

from md_to_notion.models.notion_block import (
    Block,
    block_children,
    block_payload,
    block_type,
    content_key,
    to_insertable,
)
from md_to_notion.models.notion_page import (
    PageIndex,
    RemotePageRef,
    get_page_title,
    normalize_page_id,
    page_key,
)

__all__ = [
    'Block',
    'block_children',
    'block_payload',
    'block_type',
    'content_key',
    'to_insertable',
    'PageIndex',
    'RemotePageRef',
    'get_page_title',
    'normalize_page_id',
    'page_key',
]
