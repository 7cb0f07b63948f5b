"""Data models for file mapper.

This module defines the local tree model and the sync options used by the
file mapper library. All models use dataclasses for clean, type-safe data
structures.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from md_to_notion.models.notion_block import Block

# (text, link_path_from_root) -> replacement markdown
LinkReplacer = Callable[[str, str], str]

# Maps PageIndex keys to page URLs; used to resolve internal links
LinkMap = Dict[str, str]

# (processed, total) observer
ProgressCallback = Callable[[int, int], None]


@dataclass
class LocalFile:
    """A local markdown file that maps to one Notion page.

    Content is produced lazily: get_content is only invoked for files that
    need syncing, with the link map of every known page so internal links can
    be resolved.

    Attributes:
        name: File name without the .md extension (the page title)
        path: Path relative to the synced root, '/'-separated (Change Tracker key)
        get_content: Producer turning a link map into the desired blocks
        changed: Whether the Change Tracker saw new content for this file
    """
    name: str
    path: str
    get_content: Callable[[LinkMap], List[Block]] = field(repr=False)
    changed: bool = True


@dataclass
class LocalNode:
    """A local folder containing markdown files and/or sub-folders.

    The root node of a tree is named '.'. Built once per run and not
    modified while syncing.

    Attributes:
        name: Folder name (the page title for non-root folders)
        files: Markdown files directly inside the folder, in listing order
        subfolders: Sub-folders containing markdown somewhere below them
    """
    name: str
    files: List[LocalFile] = field(default_factory=list)
    subfolders: List['LocalNode'] = field(default_factory=list)


@dataclass
class SyncOptions:
    """Tunables for the index crawl and the content sync.

    Attributes:
        parallel_limit: Maximum concurrent in-flight remote calls
        request_delay: Pacing delay in seconds between dispatches
        max_retry_attempts: Attempts per remote call on rate limiting
        initial_retry_delay: First backoff delay in seconds (doubles per attempt)
        max_depth: Maximum page depth crawled when building the index (None = unlimited)
        max_block_depth: Maximum nesting depth fetched for existing blocks
        delete_orphans: Archive Notion pages with no local counterpart
        progress_callback: Optional (processed, total) observer
    """
    parallel_limit: int = 25
    request_delay: float = 0.05
    max_retry_attempts: int = 3
    initial_retry_delay: float = 1.0
    max_depth: Optional[int] = None
    max_block_depth: int = 10
    delete_orphans: bool = False
    progress_callback: Optional[ProgressCallback] = None


@dataclass
class SyncResult:
    """Outcome of one Tree Reconciler run.

    Attributes:
        pages_created: Folder and file pages created this run
        files_synced: Files whose content was merged into their page
        files_skipped: Unchanged files whose page already existed
        blocks_appended: Blocks created across all pages
        blocks_deleted: Blocks deleted across all pages
        touched_ids: Ids of every folder and file page created or reused
        archived_keys: PageIndex keys of pages archived as orphans
    """
    pages_created: int = 0
    files_synced: int = 0
    files_skipped: int = 0
    blocks_appended: int = 0
    blocks_deleted: int = 0
    touched_ids: List[str] = field(default_factory=list)
    archived_keys: List[str] = field(default_factory=list)
