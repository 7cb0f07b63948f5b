"""Markdown to Notion content conversion."""

from .link_replacer import (
    make_github_replacer,
    make_template_replacer,
    remove_invalid_links,
    replace_internal_links,
)
from .markdown_converter import MarkdownConverter

__all__ = [
    'MarkdownConverter',
    'make_github_replacer',
    'make_template_replacer',
    'remove_invalid_links',
    'replace_internal_links',
]
