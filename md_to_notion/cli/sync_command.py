"""Sync command orchestration for CLI.

This module provides the SyncCommand class that orchestrates the entire
sync workflow: read the local markdown tree, optionally archive the root's
child pages (--renew), crawl the existing Notion pages into an index, and
reconcile the local tree onto them. It translates failures into exit codes.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from md_to_notion.cli.errors import CLIError, ConfigNotFoundError
from md_to_notion.cli.models import ExitCode, SyncSummary
from md_to_notion.cli.output import OutputHandler
from md_to_notion.file_mapper.deletion_handler import DeletionHandler
from md_to_notion.file_mapper.errors import ConfigError, FileMapperError
from md_to_notion.file_mapper.hierarchy_builder import HierarchyBuilder
from md_to_notion.file_mapper.markdown_reader import make_path_filter, read_markdown_files
from md_to_notion.file_mapper.models import LinkReplacer, LocalNode, SyncOptions
from md_to_notion.file_mapper.sync_state import ChangeTracker
from md_to_notion.file_mapper.tree_reconciler import TreeReconciler
from md_to_notion.notion_api.api_wrapper import APIWrapper
from md_to_notion.notion_api.auth import PAGE_ID_ENV_VAR, TOKEN_ENV_VAR, Authenticator
from md_to_notion.notion_api.errors import (
    APIAccessError,
    APIUnreachableError,
    InvalidCredentialsError,
    MalformedPageError,
    PageNotFoundError,
    RemoteOverloadedError,
    SyncError,
)

logger = logging.getLogger(__name__)


@dataclass
class SyncRequest:
    """Everything one sync run needs besides credentials.

    Attributes:
        directory: Local directory holding the markdown tree
        page_id: Root Notion page id (default: MD_TO_NOTION_PAGE_ID)
        options: Concurrency, retry, depth and archival settings
        state_file: Sync state file (default: ~/.md-to-notion/sync-state.json)
        include: Sync only paths containing this text
        exclude: Skip paths containing this text (default: node_modules)
        replacer: Link replacer for relative links to non-page targets
        renew: Archive every child page of the root before syncing
    """
    directory: str
    page_id: Optional[str] = None
    options: Optional[SyncOptions] = None
    state_file: Optional[str] = None
    include: Optional[str] = None
    exclude: Optional[str] = None
    replacer: Optional[LinkReplacer] = None
    renew: bool = False


def exit_code_for(error: BaseException) -> ExitCode:
    """Map an error (or the first classifiable error in its cause chain) to an exit code."""
    current: Optional[BaseException] = error
    while current is not None:
        if isinstance(current, InvalidCredentialsError):
            return ExitCode.AUTH_ERROR
        if isinstance(current, MalformedPageError):
            return ExitCode.DATA_ERROR
        if isinstance(current, (APIAccessError, APIUnreachableError, RemoteOverloadedError)):
            return ExitCode.NETWORK_ERROR
        current = current.__cause__
    return ExitCode.GENERAL_ERROR


class SyncCommand:
    """Orchestrates the complete sync workflow for the CLI.

    The sync workflow:
        1. Resolve credentials and the root page id
        2. Read the local markdown tree (fingerprints via ChangeTracker)
        3. Archive the root's child pages when renewing
        4. Crawl existing Notion pages into a PageIndex (HierarchyBuilder)
        5. Create/reuse pages and sync changed content (TreeReconciler)
        6. Print the summary and return an exit code

    Example:
        >>> output = OutputHandler(verbosity=1)
        >>> sync_cmd = SyncCommand(output_handler=output)
        >>> exit_code = sync_cmd.run(SyncRequest(directory="./docs"))
        >>> sys.exit(exit_code)
    """

    def __init__(
        self,
        output_handler: Optional[OutputHandler] = None,
        authenticator: Optional[Authenticator] = None,
        api: Optional[APIWrapper] = None,
    ):
        """Initialize sync command with dependencies.

        Args:
            output_handler: OutputHandler for terminal output (optional)
            authenticator: Authenticator for the Notion API (optional)
            api: Pre-built APIWrapper (optional, used by tests)
        """
        self.output_handler = output_handler or OutputHandler()
        self.authenticator = authenticator or Authenticator()
        self.api = api

    def run(self, request: SyncRequest) -> ExitCode:
        """Execute a sync run.

        Args:
            request: What to sync and how

        Returns:
            ExitCode indicating success or specific failure type
        """
        options = request.options or SyncOptions()
        try:
            credentials = self.authenticator.get_credentials()
            root_page_id = request.page_id or credentials.page_id
            if not root_page_id:
                self.output_handler.error(
                    f"No root page id given (pass --page-id or set {PAGE_ID_ENV_VAR})"
                )
                return ExitCode.GENERAL_ERROR

            tracker = ChangeTracker(request.state_file)
            logger.info(f"Reading markdown files from {request.directory}")
            root = read_markdown_files(
                request.directory,
                make_path_filter(request.include, request.exclude),
                request.replacer,
                tracker,
            )
            if root is None:
                self.output_handler.warning(f"No markdown files found in {request.directory}")
                return ExitCode.SUCCESS

            summary = asyncio.run(
                self._sync(root, root_page_id, options, tracker, request.renew)
            )
            self.output_handler.print_summary(summary)
            return ExitCode.SUCCESS

        except InvalidCredentialsError as e:
            logger.error(f"Authentication failed: {e}")
            self.output_handler.error(f"Authentication failed: {e}")
            self.output_handler.info(f"Check the {TOKEN_ENV_VAR} environment variable")
            return ExitCode.AUTH_ERROR

        except PageNotFoundError as e:
            logger.error(f"Page not found: {e}")
            self.output_handler.error(f"{e}")
            self.output_handler.info("Check the page id and that the integration has access to it")
            return ExitCode.GENERAL_ERROR

        except (ConfigError, ConfigNotFoundError) as e:
            logger.error(f"Configuration error: {e}")
            self.output_handler.error(f"Configuration error: {e}")
            return ExitCode.GENERAL_ERROR

        except (FileMapperError, CLIError) as e:
            exit_code = exit_code_for(e)
            logger.error(f"Sync failed: {e}")
            self.output_handler.error(f"Sync failed: {e}")
            if exit_code == ExitCode.NETWORK_ERROR:
                self.output_handler.info("Re-run to resume; files already synced are skipped")
            return exit_code

        except SyncError as e:
            exit_code = exit_code_for(e)
            logger.error(f"Notion error: {e}")
            self.output_handler.error(f"Notion error: {e}")
            return exit_code

        except Exception as e:
            logger.exception("Unexpected error during sync")
            self.output_handler.error(f"Unexpected error: {e}")
            return ExitCode.GENERAL_ERROR

    async def _sync(
        self,
        root: LocalNode,
        root_page_id: str,
        options: SyncOptions,
        tracker: ChangeTracker,
        renew: bool,
    ) -> SyncSummary:
        api = self.api or APIWrapper(self.authenticator)
        try:
            if renew:
                archived = await DeletionHandler(api, options).archive_child_pages(root_page_id)
                self.output_handler.info(f"Archived {len(archived)} existing child page(s)")

            builder = HierarchyBuilder(api, options)
            if options.progress_callback:
                self.output_handler.print("Collecting existing pages from Notion...")
                page_index = await builder.build_index(root_page_id)
            else:
                with self.output_handler.spinner("Collecting existing pages from Notion..."):
                    page_index = await builder.build_index(root_page_id)
            self.output_handler.print(f"Found {len(page_index)} existing pages")
            pages_found = len(page_index)

            self.output_handler.print("Syncing content to Notion...")
            result = await TreeReconciler(api, options).sync(
                root, root_page_id, page_index, tracker
            )
        finally:
            await api.aclose()

        return SyncSummary(
            pages_found=pages_found,
            pages_created=result.pages_created,
            files_synced=result.files_synced,
            files_skipped=result.files_skipped,
            blocks_appended=result.blocks_appended,
            blocks_deleted=result.blocks_deleted,
            archived_keys=list(result.archived_keys),
        )
