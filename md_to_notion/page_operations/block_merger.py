"""Block-level diff/merge between existing and desired Notion content.

The merge engine never talks to Notion itself. It compares the blocks that
exist on a page with the blocks the markdown converts to, and emits edit
instructions through two caller-supplied coroutines:

    append_fn(blocks, after, parent)  insert ``blocks`` after block ``after``
                                      (None: at the head) under ``parent``
                                      (None: the page itself)
    delete_fn(block)                  schedule ``block`` for deletion

Blocks are compared by content_key (type and payload, ignoring ids and
nested children). Sequences are aligned with difflib's longest matching
blocks, so unchanged runs produce no calls at all.
"""

import logging
from difflib import SequenceMatcher
from typing import Awaitable, Callable, List, Optional

from md_to_notion.models.notion_block import Block, block_children, content_key

logger = logging.getLogger(__name__)

AppendFn = Callable[[List[Block], Optional[Block], Optional[Block]], Awaitable[None]]
DeleteFn = Callable[[Block], Awaitable[None]]


async def merge_blocks(
    existing: List[Block],
    desired: List[Block],
    append_fn: AppendFn,
    delete_fn: DeleteFn,
    parent: Optional[Block] = None,
) -> None:
    """Merge ``desired`` into ``existing`` using the supplied edit callbacks.

    Matched blocks are kept in place and their children are merged
    recursively (under the matched existing block). Within a divergent
    region, existing-only blocks are deleted and desired-only blocks are
    appended after the last block preceding the region.

    Args:
        existing: Blocks currently under ``parent``, children attached where fetched
        desired: Blocks that should be under ``parent``
        append_fn: Coroutine inserting blocks after an anchor
        delete_fn: Coroutine scheduling a block for deletion
        parent: Existing block owning both lists, or None for the page

    Example:
        >>> await merge_blocks([a, b, c], [a, b, c, d], append, delete)
        # append([d], c, None) is the only call
    """
    matcher = SequenceMatcher(
        None,
        [content_key(block) for block in existing],
        [content_key(block) for block in desired],
        autojunk=False,
    )

    opcodes = matcher.get_opcodes()
    if existing and opcodes[0][0] == 'insert':
        opcodes = _rewrite_head_insert(opcodes)

    for tag, i1, i2, j1, j2 in opcodes:
        if tag == 'equal':
            for old, new in zip(existing[i1:i2], desired[j1:j2]):
                await _merge_children(old, new, append_fn, delete_fn)
            continue

        # Deletions are scheduled before the append so the anchor chosen
        # below is never a block being removed in this region
        if tag in ('delete', 'replace'):
            for block in existing[i1:i2]:
                await delete_fn(block)

        if tag in ('insert', 'replace'):
            anchor = existing[i1 - 1] if i1 > 0 else None
            logger.debug(
                f"Appending {j2 - j1} block(s) after "
                f"{anchor.get('id') if anchor else 'head'}"
            )
            await append_fn(desired[j1:j2], anchor, parent)


def _rewrite_head_insert(opcodes):
    """Turn a leading insert into a replace of the first existing block.

    Notion cannot insert before the first block, so the first existing block
    is replaced by the new head followed by its desired twin. An insert is
    always followed by an equal run; when that run is a single block, the
    next divergent region is folded in too, since its anchor would otherwise
    be the replaced block.
    """
    head_end = opcodes[0][4]
    _, _, i2, j1, j2 = opcodes[1]
    rest = opcodes[2:]
    if i2 > 1:
        return [('replace', 0, 1, 0, head_end + 1), ('equal', 1, i2, j1 + 1, j2)] + rest
    if rest:
        _, _, next_i2, _, next_j2 = rest[0]
        return [('replace', 0, next_i2, 0, next_j2)] + rest[1:]
    return [('replace', 0, 1, 0, head_end + 1)]


async def _merge_children(
    old: Block,
    new: Block,
    append_fn: AppendFn,
    delete_fn: DeleteFn,
) -> None:
    old_children = block_children(old)
    if old_children is None:
        # Children lie beyond the fetch depth limit; leave them untouched
        logger.debug(f"Children of block {old.get('id')} not loaded, skipping")
        return

    new_children = block_children(new) or []
    if not old_children and not new_children:
        return
    await merge_blocks(old_children, new_children, append_fn, delete_fn, parent=old)
