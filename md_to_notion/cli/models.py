"""Data models for CLI operations.

All models use dataclasses, following the patterns established in
md_to_notion/file_mapper/models.py.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Optional


class ExitCode(IntEnum):
    """Exit codes for CLI operations.

    - SUCCESS (0): Operation completed successfully
    - GENERAL_ERROR (1): General error (config issues, local I/O, archival)
    - AUTH_ERROR (3): Missing or rejected API token
    - NETWORK_ERROR (4): Notion unreachable or retries exhausted
    - DATA_ERROR (5): Malformed remote data (e.g. a page without title)

    Example:
        >>> exit_code = ExitCode.SUCCESS
        >>> sys.exit(exit_code)
    """
    SUCCESS = 0
    GENERAL_ERROR = 1
    AUTH_ERROR = 3
    NETWORK_ERROR = 4
    DATA_ERROR = 5


@dataclass
class SyncSummary:
    """Summary of sync operation results for display to user.

    Attributes:
        pages_found: Pages found in Notion by the index crawl
        pages_created: Folder and file pages created this run
        files_synced: Files whose content was merged into their page
        files_skipped: Files skipped because they did not change
        blocks_appended: Blocks created across all pages
        blocks_deleted: Blocks deleted across all pages
        archived_keys: PageIndex keys of archived orphan pages

    Example:
        >>> summary = SyncSummary(files_synced=5, files_skipped=3)
        >>> print(f"Synced {summary.files_synced} files")
    """
    pages_found: int = 0
    pages_created: int = 0
    files_synced: int = 0
    files_skipped: int = 0
    blocks_appended: int = 0
    blocks_deleted: int = 0
    archived_keys: List[str] = field(default_factory=list)

    @property
    def pages_archived(self) -> int:
        return len(self.archived_keys)


@dataclass
class FileConfig:
    """Values read from a YAML config file; None means "not set".

    Attributes:
        parallel_limit: Maximum concurrent remote calls
        request_delay_ms: Pacing delay between dispatches, in milliseconds
        max_retry_attempts: Attempts per remote call on rate limiting
        max_depth: Maximum depth for crawling pages and fetching nested blocks
        delete_orphans: Archive Notion pages with no local counterpart
        state_file: Path of the sync state file
        include: Sync only paths containing this text
        exclude: Skip paths containing this text
        link_replacer: Link template using ${text} and ${linkPathFromRoot}

    Example:
        >>> config = FileConfig(parallel_limit=10)
    """
    parallel_limit: Optional[int] = None
    request_delay_ms: Optional[int] = None
    max_retry_attempts: Optional[int] = None
    max_depth: Optional[int] = None
    delete_orphans: Optional[bool] = None
    state_file: Optional[str] = None
    include: Optional[str] = None
    exclude: Optional[str] = None
    link_replacer: Optional[str] = None
