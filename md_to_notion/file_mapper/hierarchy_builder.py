"""Remote page index builder.

This module crawls the Notion page tree below a root page and builds the
PageIndex: a map from "<parent path>/<title>" to the page's id and URL. The
Tree Reconciler uses it to reuse existing pages instead of creating
duplicates, and to resolve internal links.
"""

import asyncio
import logging
from collections import deque
from typing import Any, Deque, Dict, List, Optional, Set, Tuple

from md_to_notion.models.notion_page import (
    ROOT_PARENT_PATH,
    PageIndex,
    get_page_title,
    normalize_page_id,
    page_key,
    page_ref_from_response,
)
from md_to_notion.notion_api.api_wrapper import APIWrapper
from md_to_notion.notion_api.parallel import settle
from md_to_notion.notion_api.retry_logic import retry_with_backoff

from .models import SyncOptions

logger = logging.getLogger(__name__)

# (page id, parent path, depth)
PageVisit = Tuple[str, str, int]


class HierarchyBuilder:
    """Builds the PageIndex for a root page with a bounded concurrent crawl.

    Pages are visited breadth-first. Each visit retrieves the page and lists
    its child blocks concurrently (both calls retried on rate limiting),
    registers the page under its parent path, and queues its child_page
    blocks. At most ``parallel_limit`` visits are in flight; a new visit is
    dispatched only when a slot frees up, after the pacing delay.

    Keys follow the local tree layout: the root page itself is registered as
    './<root title>', its children as './<title>', grandchildren as
    './<child title>/<title>', and so on.

    Example:
        >>> builder = HierarchyBuilder(api, SyncOptions(max_depth=2))
        >>> index = await builder.build_index(root_page_id)
        >>> index['./docs/intro'].address
        'https://www.notion.so/...'
    """

    def __init__(self, api: APIWrapper, options: Optional[SyncOptions] = None):
        """Initialize the builder.

        Args:
            api: APIWrapper used for all remote calls
            options: Concurrency, pacing, retry and depth settings
        """
        self.api = api
        self.options = options or SyncOptions()

    async def build_index(self, root_id: str) -> PageIndex:
        """Crawl the page tree below ``root_id``.

        Args:
            root_id: Id of the page the local root folder maps to

        Returns:
            PageIndex of every page visited (root included)

        Raises:
            MalformedPageError: If a visited page has no title
            APIAccessError: If a remote call fails (after retries for rate limiting)
        """
        index: PageIndex = {}
        root_normalized = normalize_page_id(root_id)
        limit = max(1, self.options.parallel_limit)
        max_depth = self.options.max_depth

        seen: Set[str] = {root_normalized}
        queue: Deque[PageVisit] = deque([(root_id, ROOT_PARENT_PATH, 0)])
        in_flight: Set[asyncio.Task] = set()
        processed = 0
        discovered = 1

        try:
            while queue or in_flight:
                while queue and len(in_flight) < limit:
                    if self.options.request_delay > 0 and in_flight:
                        await asyncio.sleep(self.options.request_delay)
                    page_id, parent_path, depth = queue.popleft()
                    in_flight.add(asyncio.ensure_future(
                        self._visit(index, page_id, parent_path, depth, root_normalized)
                    ))

                done, pending = await asyncio.wait(in_flight, return_when=asyncio.FIRST_COMPLETED)
                in_flight = set(pending)

                errors = []
                for task in done:
                    processed += 1
                    self._report_progress(processed, discovered)
                    if task.exception() is not None:
                        errors.append(task.exception())
                if errors:
                    raise errors[0]

                for task in done:
                    for child in task.result():
                        child_id, _, child_depth = child
                        normalized = normalize_page_id(child_id)
                        if normalized in seen:
                            continue
                        if max_depth is not None and child_depth > max_depth:
                            continue
                        seen.add(normalized)
                        queue.append(child)
                        discovered += 1
        except BaseException:
            await settle(in_flight)
            raise

        logger.info(f"Collected {len(index)} pages total")
        return index

    def _report_progress(self, processed: int, discovered: int) -> None:
        if self.options.progress_callback:
            self.options.progress_callback(processed, max(discovered, processed))

    async def _visit(
        self,
        index: PageIndex,
        page_id: str,
        parent_path: str,
        depth: int,
        root_normalized: str,
    ) -> List[PageVisit]:
        """Register one page and return its child pages to visit."""
        logger.info(f"Collecting pages... (page_id={page_id}, parent={parent_path}, depth={depth})")

        try:
            page, listing = await self._retrieve_with_children(page_id)

            if page.get('object') != 'page':
                logger.debug(f"Skipping non-page object {page_id}")
                return []

            title = get_page_title(page)
            index[page_key(parent_path, title)] = page_ref_from_response(page)

            results = list(listing.get('results', []))
            cursor = listing.get('next_cursor') if listing.get('has_more') else None
            while cursor:
                more = await self._call(
                    lambda c=cursor: self.api.list_children(page_id, c),
                    f"list_children({page_id})",
                )
                results.extend(more.get('results', []))
                cursor = more.get('next_cursor') if more.get('has_more') else None
        except Exception as e:
            logger.error(f"Error processing page {page_id}: {e}")
            raise

        if normalize_page_id(page_id) == root_normalized:
            child_path = ROOT_PARENT_PATH
        else:
            child_path = page_key(parent_path, title)

        return [
            (block['id'], child_path, depth + 1)
            for block in results
            if block.get('object') == 'block' and block.get('type') == 'child_page'
        ]

    async def _retrieve_with_children(self, page_id: str) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        page, listing = await asyncio.gather(
            self._call(lambda: self.api.retrieve_page(page_id), f"retrieve_page({page_id})"),
            self._call(lambda: self.api.list_children(page_id), f"list_children({page_id})"),
            return_exceptions=True,
        )
        # Both calls have settled; surface the first failure
        for outcome in (page, listing):
            if isinstance(outcome, BaseException):
                raise outcome
        return page, listing

    async def _call(self, operation, description: str):
        return await retry_with_backoff(
            operation,
            max_attempts=self.options.max_retry_attempts,
            initial_delay=self.options.initial_retry_delay,
            description=description,
        )
