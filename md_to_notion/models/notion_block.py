"""Notion block helpers.

Blocks are plain dicts in the shape the Notion API uses: a ``type``
discriminator and a payload stored under the key named by that type. Nested
blocks live in the payload's ``children`` list, both for blocks we build from
markdown and for existing blocks once the fetcher has attached their children.
"""

import json
from typing import Any, Dict, List, Optional

Block = Dict[str, Any]

# Fields Notion adds to responses that never appear in blocks we build
RESPONSE_ONLY_KEYS = frozenset({'plain_text', 'href'})


def block_type(block: Block) -> str:
    """Return the block's type discriminator (e.g. 'paragraph')."""
    return block['type']


def block_payload(block: Block) -> Dict[str, Any]:
    """Return the type-specific payload of a block."""
    return block.get(block['type']) or {}


def block_children(block: Block) -> Optional[List[Block]]:
    """Return the nested children of a block, or None if they are unknown.

    An existing block reporting ``has_children`` whose children were not
    fetched (depth limit) yields None, so callers can tell "no children"
    from "children not loaded".
    """
    payload = block_payload(block)
    if 'children' in payload:
        return payload['children'] or []
    if block.get('has_children'):
        return None
    return []


def set_block_children(block: Block, children: List[Block]) -> None:
    """Attach fetched children to an existing block's payload."""
    block.setdefault(block['type'], {})['children'] = children


def _normalize(value: Any) -> Any:
    if isinstance(value, dict):
        normalized = {}
        for key, item in value.items():
            if key in RESPONSE_ONLY_KEYS:
                continue
            item = _normalize(item)
            # Defaults are omitted from built blocks but echoed by Notion
            if item is None or item is False or item == '' or item == [] or item == {}:
                continue
            if key == 'color' and item == 'default':
                continue
            normalized[key] = item
        return normalized
    if isinstance(value, list):
        return [_normalize(item) for item in value]
    return value


def content_key(block: Block) -> str:
    """Canonical, hashable form of a block's own content.

    Compares type and payload only. Identity fields (id, timestamps, parent)
    and nested children are ignored, as are defaults Notion fills in on
    responses (false flags, empty captions, 'default' colors, plain_text).
    Two blocks are content-equal exactly when their keys are equal.
    """
    payload = {
        key: value for key, value in block_payload(block).items()
        if key != 'children'
    }
    return json.dumps(
        [block_type(block), _normalize(payload)],
        sort_keys=True,
        ensure_ascii=False,
    )


def _strip_response_fields(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            key: _strip_response_fields(item)
            for key, item in value.items()
            if key not in RESPONSE_ONLY_KEYS
        }
    if isinstance(value, list):
        return [_strip_response_fields(item) for item in value]
    return value


def to_insertable(block: Block) -> Block:
    """Return a fresh copy of a block suitable for the append endpoint.

    Identity and response metadata (id, created_time, has_children, ...) are
    dropped so Notion treats the copy as a new block. Known children are
    copied recursively.
    """
    btype = block_type(block)
    payload = {
        key: _strip_response_fields(value)
        for key, value in block_payload(block).items()
        if key != 'children'
    }
    children = block_children(block)
    if children:
        payload['children'] = [to_insertable(child) for child in children]
    return {'object': 'block', 'type': btype, btype: payload}


def max_nesting_depth(blocks: List[Block], depth: int = 0) -> int:
    """Return the deepest level of nested children below ``blocks``.

    A flat list has depth 1; a list whose blocks have children has depth 2.
    """
    if not blocks:
        return depth
    deepest = depth + 1
    for block in blocks:
        children = block_children(block) or []
        if children:
            deepest = max(deepest, max_nesting_depth(children, depth + 1))
    return deepest
