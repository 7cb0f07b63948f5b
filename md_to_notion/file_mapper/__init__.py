"""File mapper library for markdown to Notion sync.

This package maps a local tree of markdown files onto a Notion page tree:
reading the local tree, crawling the existing remote pages into an index,
and (in tree_reconciler) creating, reusing and archiving pages.
"""

from .models import LocalFile, LocalNode, SyncOptions, SyncResult
from .errors import (
    FileMapperError,
    FilesystemError,
    ConfigError,
    FrontmatterError,
    PageSyncError,
    ArchivalError,
)
from .frontmatter_handler import FrontmatterHandler
from .ignore_patterns import IgnorePatterns
from .markdown_reader import make_path_filter, print_folder_hierarchy, read_markdown_files
from .hierarchy_builder import HierarchyBuilder
from .sync_state import ChangeTracker

__all__ = [
    'LocalFile',
    'LocalNode',
    'SyncOptions',
    'SyncResult',
    'FileMapperError',
    'FilesystemError',
    'ConfigError',
    'FrontmatterError',
    'PageSyncError',
    'ArchivalError',
    'FrontmatterHandler',
    'IgnorePatterns',
    'make_path_filter',
    'print_folder_hierarchy',
    'read_markdown_files',
    'HierarchyBuilder',
    'ChangeTracker',
]
