"""Block-level content operations on Notion pages.

Fetching existing block trees, merging them with desired content, and
writing the resulting edits with chunked appends and deferred deletions.
"""

from .block_fetcher import BlockFetcher
from .block_merger import merge_blocks
from .block_writer import BlockWriter, NOTION_BLOCK_LIMIT
from .models import UpdateResult
from .page_updater import PageUpdater

__all__ = [
    'BlockFetcher',
    'BlockWriter',
    'NOTION_BLOCK_LIMIT',
    'PageUpdater',
    'UpdateResult',
    'merge_blocks',
]
