"""Local tree to Notion page tree reconciliation.

TreeReconciler maps each local folder and markdown file to a Notion page,
reusing pages found by the index crawl and creating the missing ones, then
synchronizes the content of changed files one at a time and optionally
archives the pages that no longer have a local counterpart.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from md_to_notion.models.notion_page import ROOT_PARENT_PATH, PageIndex, page_key
from md_to_notion.notion_api.api_wrapper import APIWrapper
from md_to_notion.notion_api.errors import SyncError
from md_to_notion.notion_api.retry_logic import retry_with_backoff
from md_to_notion.page_operations.page_updater import PageUpdater

from .deletion_handler import DeletionHandler
from .errors import PageSyncError
from .models import LocalFile, LocalNode, SyncOptions, SyncResult
from .sync_state import ChangeTracker

logger = logging.getLogger(__name__)


@dataclass
class FilePage:
    """A local file paired with the Notion page it syncs to."""
    page_id: str
    key: str
    file: LocalFile
    created: bool


class TreeReconciler:
    """Synchronizes a LocalNode tree below a root Notion page.

    The walk is depth-first, pre-order. The root folder maps to the root
    page itself; every other folder and every file maps to a child page
    keyed by '<parent path>/<name>' in the PageIndex. All pages are
    resolved before any content is uploaded.

    Example:
        >>> reconciler = TreeReconciler(api, options)
        >>> result = await reconciler.sync(root, root_page_id, index, tracker)
        >>> print(f"Synced {result.files_synced} files")
    """

    def __init__(
        self,
        api: APIWrapper,
        options: Optional[SyncOptions] = None,
        updater: Optional[PageUpdater] = None,
        deletion_handler: Optional[DeletionHandler] = None,
    ):
        """Initialize the reconciler.

        Args:
            api: APIWrapper used to create pages
            options: Sync options (retries, orphan archival, progress callback)
            updater: PageUpdater for content sync (default: built from api/options)
            deletion_handler: DeletionHandler for archival (default: built from api/options)
        """
        self.api = api
        self.options = options or SyncOptions()
        self.updater = updater or PageUpdater(api, self.options)
        self.deletion_handler = deletion_handler or DeletionHandler(api, self.options)

    async def sync(
        self,
        root: LocalNode,
        root_page_id: str,
        page_index: PageIndex,
        change_tracker: Optional[ChangeTracker] = None,
        delete_orphans: Optional[bool] = None,
    ) -> SyncResult:
        """Sync ``root`` below ``root_page_id``.

        Args:
            root: Root of the local tree (named '.')
            root_page_id: Page the root folder maps to
            page_index: Index from the crawl; extended with created pages
            change_tracker: Tracker committed after each synced file
            delete_orphans: Archive untouched PageIndex pages
                            (default: options.delete_orphans)

        Returns:
            SyncResult with counts, touched page ids and archived keys

        Raises:
            PageSyncError: If creating a page or syncing a file's content fails
            ArchivalError: If archiving an orphan fails
        """
        if delete_orphans is None:
            delete_orphans = self.options.delete_orphans

        result = SyncResult()
        pages: List[FilePage] = []
        folder_page_ids: List[str] = []
        await self._sync_folder(
            root, root_page_id, ROOT_PARENT_PATH, True,
            page_index, pages, folder_page_ids, result,
        )

        link_map = {key: ref.address for key, ref in page_index.items()}
        total = len(pages)

        for position, page in enumerate(pages):
            self._report_progress(position, total)

            if not page.file.changed and not page.created:
                logger.info(f"Skipping unchanged file: {page.file.path}")
                result.files_skipped += 1
                continue

            try:
                blocks = page.file.get_content(link_map)
                logger.info(
                    f"Update blocks: {page.key} ({len(blocks)} block(s), "
                    f"{position + 1}/{total})"
                )
                update = await self.updater.update_page_blocks(page.page_id, blocks)
            except SyncError as e:
                logger.error(f"Error syncing {page.file.path} to page {page.page_id}: {e}")
                raise PageSyncError(page.key, 'sync content of', str(e)) from e

            result.files_synced += 1
            result.blocks_appended += update.blocks_appended
            result.blocks_deleted += update.blocks_deleted
            if change_tracker is not None:
                change_tracker.commit(page.file.path)

        self._report_progress(total, total)
        if change_tracker is not None:
            change_tracker.flush_all()

        result.touched_ids = [page.page_id for page in pages] + folder_page_ids

        if delete_orphans:
            result.archived_keys = await self.deletion_handler.archive_orphans(
                page_index, result.touched_ids, root_page_id
            )

        return result

    def _report_progress(self, processed: int, total: int) -> None:
        if self.options.progress_callback:
            self.options.progress_callback(processed, total)

    async def _sync_folder(
        self,
        node: LocalNode,
        parent_id: str,
        parent_path: str,
        is_root: bool,
        page_index: PageIndex,
        pages: List[FilePage],
        folder_page_ids: List[str],
        result: SyncResult,
    ) -> None:
        if is_root:
            folder_id = parent_id
            child_path = parent_path
        else:
            folder_id, _ = await self._create_or_reuse(
                node.name, parent_id, parent_path, page_index, result
            )
            child_path = page_key(parent_path, node.name)
        folder_page_ids.append(folder_id)

        for local_file in node.files:
            page_id, created = await self._create_or_reuse(
                local_file.name, folder_id, child_path, page_index, result
            )
            pages.append(FilePage(
                page_id=page_id,
                key=page_key(child_path, local_file.name),
                file=local_file,
                created=created,
            ))

        for subfolder in node.subfolders:
            await self._sync_folder(
                subfolder, folder_id, child_path, False,
                page_index, pages, folder_page_ids, result,
            )

    async def _create_or_reuse(
        self,
        title: str,
        parent_id: str,
        parent_path: str,
        page_index: PageIndex,
        result: SyncResult,
    ) -> Tuple[str, bool]:
        """Return (page id, created) for the page titled ``title`` under ``parent_path``."""
        key = page_key(parent_path, title)
        existing = page_index.get(key)
        if existing is not None:
            logger.debug(f"Reusing page {key} ({existing.id})")
            return existing.id, False

        logger.info(f"Create page: {key}")
        try:
            ref = await retry_with_backoff(
                lambda: self.api.create_page(parent_id, title),
                max_attempts=self.options.max_retry_attempts,
                initial_delay=self.options.initial_retry_delay,
                description=f"create_page({parent_id})",
            )
        except SyncError as e:
            logger.error(f"Error creating page {key}: {e}")
            raise PageSyncError(key, 'create page', str(e)) from e

        page_index[key] = ref
        result.pages_created += 1
        return ref.id, True
