"""Existing block tree retrieval."""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from md_to_notion.file_mapper.models import SyncOptions
from md_to_notion.models.notion_block import Block, set_block_children
from md_to_notion.notion_api.api_wrapper import APIWrapper
from md_to_notion.notion_api.parallel import process_in_parallel
from md_to_notion.notion_api.retry_logic import retry_with_backoff

logger = logging.getLogger(__name__)


class BlockFetcher:
    """Fetches the existing block tree of a page.

    Children of each parent are listed following pagination cursors. Blocks
    reporting children get them attached under their payload's 'children'
    key, fetched in parallel, down to ``max_block_depth`` levels. Blocks
    below the limit keep ``has_children`` without a 'children' key, which the
    merge engine treats as "not loaded".

    One tree fetch shares a single semaphore of ``parallel_limit`` slots, so
    in-flight list_children calls stay bounded however deep the tree is.
    """

    def __init__(self, api: APIWrapper, options: Optional[SyncOptions] = None):
        self.api = api
        self.options = options or SyncOptions()

    async def get_existing_blocks(
        self,
        block_id: str,
        depth: int = 0,
        slots: Optional[asyncio.Semaphore] = None,
    ) -> List[Block]:
        """Return the blocks under ``block_id`` with nested children attached.

        Args:
            block_id: Page or block id
            depth: Current nesting depth (0 for the page's own children)
            slots: Call slots shared by the whole fetch (created when None)

        Raises:
            APIAccessError: If listing fails after retries
        """
        if slots is None:
            slots = asyncio.Semaphore(self.options.parallel_limit)
        blocks = await self.list_all_children(block_id, slots)

        if depth >= self.options.max_block_depth:
            logger.info(
                f"Reached max depth {self.options.max_block_depth}, "
                f"skipping child blocks for {block_id}"
            )
            return blocks

        parents = [block for block in blocks if block.get('has_children')]
        if parents:
            async def fetch_children(block: Block) -> None:
                children = await self.get_existing_blocks(block['id'], depth + 1, slots)
                set_block_children(block, children)

            await process_in_parallel(
                parents,
                fetch_children,
                limit=self.options.parallel_limit,
                request_delay=self.options.request_delay,
            )

        return blocks

    async def list_all_children(
        self,
        block_id: str,
        slots: Optional[asyncio.Semaphore] = None,
    ) -> List[Block]:
        """List every direct child block of ``block_id`` across all result pages."""
        blocks: List[Block] = []
        cursor: Optional[str] = None

        while True:
            response = await retry_with_backoff(
                lambda: self._list_page(block_id, cursor, slots),
                max_attempts=self.options.max_retry_attempts,
                initial_delay=self.options.initial_retry_delay,
                description=f"list_children({block_id})",
            )
            blocks.extend(
                block for block in response['results']
                if block.get('object') == 'block'
            )
            cursor = response.get('next_cursor') if response.get('has_more') else None
            if not cursor:
                break

        logger.debug(f"Fetched {len(blocks)} block(s) under {block_id}")
        return blocks

    async def _list_page(
        self,
        block_id: str,
        cursor: Optional[str],
        slots: Optional[asyncio.Semaphore],
    ) -> Dict[str, Any]:
        if slots is None:
            return await self.api.list_children(block_id, cursor)
        # Held only for the call itself, never across backoff sleeps
        async with slots:
            return await self.api.list_children(block_id, cursor)
