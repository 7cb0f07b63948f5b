"""Chunked block appends.

Notion accepts at most 100 blocks per append call and only shallow nesting
inline. BlockWriter splits appends into ordered chunks and, for deeply
nested content, creates nested children with follow-up calls targeting the
blocks just created.
"""

import logging
from typing import Dict, List, Optional

from md_to_notion.file_mapper.models import SyncOptions
from md_to_notion.models.notion_block import Block, max_nesting_depth, to_insertable
from md_to_notion.notion_api.api_wrapper import APIWrapper
from md_to_notion.notion_api.errors import UnexpectedResponseError
from md_to_notion.notion_api.retry_logic import retry_with_backoff

logger = logging.getLogger(__name__)

NOTION_BLOCK_LIMIT = 100

# Nesting deeper than this is split into follow-up appends
MAX_INLINE_DEPTH = 3

# Block types whose children must be sent in the creating call
INLINE_CHILDREN_TYPES = frozenset({'table'})


class BlockWriter:
    """Appends blocks under a page or block in order-preserving chunks.

    Attributes:
        blocks_appended: Running count of blocks created through this writer
    """

    def __init__(self, api: APIWrapper, options: Optional[SyncOptions] = None):
        self.api = api
        self.options = options or SyncOptions()
        self.blocks_appended = 0

    async def append_blocks_in_chunks(
        self,
        parent_id: str,
        blocks: List[Block],
        after_id: Optional[str] = None,
    ) -> List[Block]:
        """Append ``blocks`` under ``parent_id`` after block ``after_id``.

        Chunks after the first are anchored to the last block created by the
        previous chunk, so the whole list lands contiguously and in order.

        Args:
            parent_id: Page or block receiving the blocks
            blocks: Blocks to create (not modified)
            after_id: Existing sibling to insert after (None: append at the end)

        Returns:
            The created top-level blocks, in order

        Raises:
            UnexpectedResponseError: If Notion reports fewer created blocks than sent
            APIAccessError: If an append fails after retries
        """
        detach_children = max_nesting_depth(blocks) > MAX_INLINE_DEPTH
        created_blocks: List[Block] = []
        anchor = after_id

        for start in range(0, len(blocks), NOTION_BLOCK_LIMIT):
            chunk: List[Block] = []
            detached: Dict[int, List[Block]] = {}

            for index, block in enumerate(blocks[start:start + NOTION_BLOCK_LIMIT]):
                block = to_insertable(block)
                if detach_children and block['type'] not in INLINE_CHILDREN_TYPES:
                    children = block[block['type']].pop('children', None)
                    if children:
                        detached[index] = children
                chunk.append(block)

            try:
                response = await retry_with_backoff(
                    lambda: self.api.append_children(parent_id, chunk, anchor),
                    max_attempts=self.options.max_retry_attempts,
                    initial_delay=self.options.initial_retry_delay,
                    description=f"append_children({parent_id})",
                )
            except Exception as e:
                logger.error(f"Error appending {len(chunk)} block(s) to {parent_id}: {e}")
                raise

            created = response['results']
            if len(created) < len(chunk):
                raise UnexpectedResponseError(
                    'append_children',
                    f"sent {len(chunk)} block(s) to {parent_id} but {len(created)} were created",
                )
            created = created[:len(chunk)]
            created_blocks.extend(created)
            self.blocks_appended += len(chunk)
            anchor = created[-1]['id']
            logger.info(f"Appended {len(chunk)} block(s) to {parent_id}")

            for index, children in detached.items():
                await self.append_blocks_in_chunks(created[index]['id'], children)

        return created_blocks
