"""Per-page content synchronization.

PageUpdater fetches a page's existing block tree, runs the merge engine
against the desired blocks, performs the appends the merge requests (in
emission order) and finally deletes the blocks it scheduled for removal.
"""

import logging
from typing import Dict, List, Optional

from md_to_notion.file_mapper.models import SyncOptions
from md_to_notion.models.notion_block import Block, block_children
from md_to_notion.notion_api.api_wrapper import APIWrapper
from md_to_notion.notion_api.retry_logic import retry_with_backoff

from .block_fetcher import BlockFetcher
from .block_merger import merge_blocks
from .block_writer import BlockWriter
from .models import UpdateResult

logger = logging.getLogger(__name__)


class PageUpdater:
    """Applies desired block content to a Notion page with minimal writes.

    Example:
        >>> updater = PageUpdater(api, options)
        >>> result = await updater.update_page_blocks(page_id, blocks)
        >>> result.blocks_appended, result.blocks_deleted
        (1, 0)
    """

    def __init__(
        self,
        api: APIWrapper,
        options: Optional[SyncOptions] = None,
        fetcher: Optional[BlockFetcher] = None,
        writer: Optional[BlockWriter] = None,
    ):
        """Initialize the updater.

        Args:
            api: APIWrapper used for deletions
            options: Retry and concurrency settings
            fetcher: BlockFetcher (default: built from api/options)
            writer: BlockWriter (default: built from api/options)
        """
        self.api = api
        self.options = options or SyncOptions()
        self.fetcher = fetcher or BlockFetcher(api, self.options)
        self.writer = writer or BlockWriter(api, self.options)

    async def update_page_blocks(self, page_id: str, desired: List[Block]) -> UpdateResult:
        """Make the blocks of ``page_id`` match ``desired``.

        Deletions are deduplicated and only issued once every append for the
        page has completed, so no append ever anchors on a deleted block.

        Args:
            page_id: Page to update
            desired: Blocks the page should contain

        Returns:
            UpdateResult with append and delete counts

        Raises:
            APIAccessError: If a remote call fails after retries
            UnexpectedResponseError: If an append response is malformed
        """
        existing = await self.fetcher.get_existing_blocks(page_id)
        appended_before = self.writer.blocks_appended
        # Ordered by scheduling time, keyed by block id
        to_delete: Dict[str, Block] = {}

        async def append(blocks: List[Block], after: Optional[Block], parent: Optional[Block]) -> None:
            target_id = parent['id'] if parent else page_id
            siblings = (block_children(parent) or []) if parent else existing
            after_id = after['id'] if after else None

            if after is None and siblings:
                # Notion has no "insert at head". The merge always replaces
                # the first sibling in that case, so insert right after it;
                # it is deleted once all appends are done.
                after_id = siblings[0]['id']

            logger.info(f"Appending {len(blocks)} block(s) to {target_id} after {after_id or 'end'}")
            await self.writer.append_blocks_in_chunks(target_id, blocks, after_id)

        async def delete(block: Block) -> None:
            to_delete.setdefault(block['id'], block)

        await merge_blocks(existing, desired, append, delete)

        for block_id in to_delete:
            logger.info(f"Deleting block {block_id}")
            await retry_with_backoff(
                lambda: self.api.delete_block(block_id),
                max_attempts=self.options.max_retry_attempts,
                initial_delay=self.options.initial_retry_delay,
                description=f"delete_block({block_id})",
            )

        return UpdateResult(
            page_id=page_id,
            blocks_appended=self.writer.blocks_appended - appended_before,
            blocks_deleted=len(to_delete),
        )
