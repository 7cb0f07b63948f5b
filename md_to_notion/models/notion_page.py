"""Notion page identity model and page index helpers."""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict

from md_to_notion.notion_api.errors import MalformedPageError

logger = logging.getLogger(__name__)

ROOT_PARENT_PATH = "."

_PAGE_ID_PATTERN = re.compile(r'([0-9a-f]{32})(?![0-9a-f])', re.IGNORECASE)


@dataclass(frozen=True)
class RemotePageRef:
    """Identity and address of a Notion page created or discovered in a run.

    Attributes:
        id: Notion page id
        address: Human-facing page URL
    """
    id: str
    address: str


# Maps "<parent path>/<title>" to the page it names. Each key is written by
# exactly one step per run: seeded once by the index crawl, or created once by
# the reconciler. No locking is needed under asyncio.
PageIndex = Dict[str, RemotePageRef]


def page_key(parent_path: str, title: str) -> str:
    """Build the PageIndex key for a page titled ``title`` under ``parent_path``.

    Example:
        >>> page_key(".", "docs")
        './docs'
        >>> page_key("./docs", "intro")
        './docs/intro'
    """
    return f"{parent_path}/{title}"


def normalize_page_id(page_id: str) -> str:
    """Normalize a page id or page URL to 32 lowercase hex characters.

    Notion accepts ids with or without dashes; comparing normalized ids avoids
    false mismatches between the two spellings.
    """
    cleaned = str(page_id).split('?')[0].split('#')[0].replace('-', '')
    matches = _PAGE_ID_PATTERN.findall(cleaned)
    if matches:
        return matches[-1].lower()
    return cleaned.lower()


def get_page_title(page: Dict[str, Any]) -> str:
    """Extract the title of a retrieved page from its title-type property.

    Args:
        page: Page object as returned by the pages.retrieve endpoint

    Returns:
        The plain text of the first title fragment

    Raises:
        MalformedPageError: If the page has no non-empty title property
    """
    properties = page.get('properties') or {}
    title_property = next(
        (prop for prop in properties.values()
         if isinstance(prop, dict) and prop.get('type') == 'title'),
        None,
    )
    if title_property and title_property.get('title'):
        first = title_property['title'][0] or {}
        title = first.get('plain_text') or (first.get('text') or {}).get('content')
        if title:
            return title

    logger.error(f"No title found for page {page.get('id')} ({page.get('url')})")
    raise MalformedPageError(
        page_id=str(page.get('id', 'unknown')),
        address=page.get('url'),
    )


def page_ref_from_response(page: Dict[str, Any]) -> RemotePageRef:
    """Build a RemotePageRef from a page object."""
    return RemotePageRef(id=page['id'], address=page.get('url', ''))
