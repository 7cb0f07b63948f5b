"""Archival of Notion pages that no longer have a local counterpart.

Notion pages are soft-deleted (archived, recoverable from the trash), and
archiving a page archives its whole sub-tree. Candidates are therefore
processed shallowest first, and pages below an already-archived page are
skipped instead of being archived a second time.

Archival is used in two places:
- archive_orphans(): after a sync with --delete, for PageIndex entries the
  run did not touch
- archive_child_pages(): before a sync with --renew, for every child page of
  the root
"""

import logging
from typing import Iterable, List, Optional, Set

from md_to_notion.file_mapper.models import SyncOptions
from md_to_notion.models.notion_page import PageIndex, normalize_page_id
from md_to_notion.notion_api.api_wrapper import APIWrapper
from md_to_notion.notion_api.retry_logic import retry_with_backoff
from md_to_notion.page_operations.block_fetcher import BlockFetcher

from .errors import ArchivalError

logger = logging.getLogger(__name__)


class DeletionHandler:
    """Archives orphaned Notion pages.

    Archival failures are not swallowed: the first failure is raised as an
    ArchivalError naming the page, leaving earlier archives in place.

    Example:
        >>> handler = DeletionHandler(api, options)
        >>> archived = await handler.archive_orphans(index, touched_ids, root_id)
        >>> print(f"Archived {len(archived)} pages")
    """

    def __init__(self, api: APIWrapper, options: Optional[SyncOptions] = None):
        """Initialize deletion handler.

        Args:
            api: APIWrapper used to archive pages
            options: Retry settings
        """
        self.api = api
        self.options = options or SyncOptions()
        logger.debug("DeletionHandler initialized")

    async def archive_orphans(
        self,
        page_index: PageIndex,
        touched_ids: Iterable[str],
        root_page_id: str,
        dry_run: bool = False,
    ) -> List[str]:
        """Archive every PageIndex entry whose page was not touched this run.

        Args:
            page_index: Index of known pages (crawled and created)
            touched_ids: Ids of every folder and file page synced this run
            root_page_id: The run's root page, never archived
            dry_run: If True, log what would be archived without archiving

        Returns:
            Keys of archived pages (would-be archived keys in dry run mode),
            shallowest first

        Raises:
            ArchivalError: If archiving a page fails
        """
        touched = {normalize_page_id(page_id) for page_id in touched_ids}
        root = normalize_page_id(root_page_id)
        archived: List[str] = []
        archived_keys: Set[str] = set()

        logger.info(f"Checking {len(page_index)} known page(s) for orphans (dry_run={dry_run})")

        for key in sorted(page_index, key=len):
            page_id = page_index[key].id
            normalized = normalize_page_id(page_id)
            if normalized == root or normalized in touched:
                continue

            ancestor = self._archived_ancestor(key, archived_keys)
            if ancestor is not None:
                logger.info(f"Skipping page with archived ancestor: {key} (ancestor {ancestor})")
                continue

            if dry_run:
                logger.info(f"[DRYRUN] Would archive page: {key} ({page_id})")
            else:
                logger.info(f"Archiving page: {key} ({page_id})")
                await self._archive(key, page_id)

            archived_keys.add(key)
            archived.append(key)

        logger.info(f"Orphan archival complete: {len(archived)} page(s)")
        return archived

    async def archive_child_pages(self, page_id: str, dry_run: bool = False) -> List[str]:
        """Archive every child page directly under ``page_id``.

        Returns:
            Ids of the archived child pages

        Raises:
            ArchivalError: If archiving a page fails
        """
        logger.info(f"Archiving child pages of: {page_id}")
        fetcher = BlockFetcher(self.api, self.options)
        children = await fetcher.list_all_children(page_id)

        archived = []
        for block in children:
            if block.get('type') != 'child_page':
                continue
            title = (block.get('child_page') or {}).get('title', '')
            if dry_run:
                logger.info(f"[DRYRUN] Would archive child page: {title} ({block['id']})")
            else:
                await self._archive(title, block['id'])
            archived.append(block['id'])
        return archived

    @staticmethod
    def _archived_ancestor(key: str, archived_keys: Set[str]) -> Optional[str]:
        # './1/2/3/file' has ancestors '.', './1', './1/2', './1/2/3'
        parts = key.split('/')
        for end in range(1, len(parts)):
            ancestor = '/'.join(parts[:end])
            if ancestor in archived_keys:
                return ancestor
        return None

    async def _archive(self, key: str, page_id: str) -> None:
        try:
            await retry_with_backoff(
                lambda: self.api.archive_page(page_id),
                max_attempts=self.options.max_retry_attempts,
                initial_delay=self.options.initial_retry_delay,
                description=f"archive_page({page_id})",
            )
        except Exception as e:
            logger.error(f"Error archiving page {key} ({page_id}): {e}")
            raise ArchivalError(key, page_id, str(e)) from e
