"""API wrapper for the Notion REST API.

This module wraps the notion-client AsyncClient and provides error
translation from SDK exceptions to our typed exception hierarchy. It exposes
the small RPC surface the sync engine relies on: create/retrieve pages,
list/append/delete blocks and archive pages.

Retries are not applied here; callers wrap each call with
retry_logic.retry_with_backoff so attempts and delays stay configurable.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx
from notion_client import AsyncClient
from notion_client.errors import APIResponseError, RequestTimeoutError

from md_to_notion.models.notion_page import RemotePageRef, page_ref_from_response

from .auth import Authenticator
from .errors import (
    APIAccessError,
    APIUnreachableError,
    InvalidCredentialsError,
    PageNotFoundError,
    RemoteOverloadedError,
    UnexpectedResponseError,
)
from .retry_logic import TRANSIENT_ERROR_CODES, TRANSIENT_STATUS_CODES

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_MS = 60_000


class APIWrapper:
    """Wrapper around the notion-client AsyncClient with error translation.

    This class provides a thin wrapper over the Notion API client that:
    1. Handles authentication using the Authenticator
    2. Translates SDK errors to typed exceptions (transient overload,
       credentials, not found, unreachable, generic access failure)
    3. Checks response shapes the sync engine depends on

    Example:
        >>> api = APIWrapper(Authenticator())
        >>> ref = await api.create_page(parent_id, "Getting Started")
    """

    def __init__(self, authenticator: Authenticator, client: Optional[AsyncClient] = None):
        """Initialize the API wrapper with authentication credentials.

        Args:
            authenticator: Authenticator instance for loading credentials
            client: Pre-built AsyncClient (optional, used by tests)
        """
        self._authenticator = authenticator
        self._client: Optional[AsyncClient] = client

    def _get_client(self) -> AsyncClient:
        """Get or create the Notion API client.

        Raises:
            InvalidCredentialsError: If no token is configured
        """
        if self._client is None:
            creds = self._authenticator.get_credentials()
            self._client = AsyncClient(
                auth=creds.api_token,
                timeout_ms=REQUEST_TIMEOUT_MS,
            )
        return self._client

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _translate_error(self, exception: Exception, operation: str) -> Exception:
        """Translate SDK and HTTP exceptions to typed Notion exceptions.

        Args:
            exception: The original exception from the API client
            operation: Description of the operation that failed

        Returns:
            Exception: Translated exception (one of our typed exceptions)
        """
        if isinstance(exception, (RequestTimeoutError, httpx.TimeoutException, httpx.TransportError)):
            return APIUnreachableError(operation=operation)

        status = getattr(exception, 'status', None)
        code = getattr(exception, 'code', None)
        code = str(getattr(code, 'value', code)) if code is not None else ''

        if status in TRANSIENT_STATUS_CODES or code in TRANSIENT_ERROR_CODES:
            return RemoteOverloadedError(operation=operation, status=status)

        if status == 401 or code == 'unauthorized':
            return InvalidCredentialsError(
                f"Notion rejected the API token during {operation}"
            )

        if status == 404 or code == 'object_not_found':
            target = operation.partition('(')[2].rstrip(')') or 'unknown'
            return PageNotFoundError(page_id=target)

        if isinstance(exception, APIResponseError):
            logger.error(f"API operation failed: {operation} - {code or status}: {exception}")
        else:
            logger.error(f"API operation failed: {operation} - {exception!r}")
        return APIAccessError(f"Notion API failure during {operation}")

    async def _call(self, operation: str, request):
        try:
            return await request(self._get_client())
        except InvalidCredentialsError:
            raise
        except Exception as e:
            raise self._translate_error(e, operation) from e

    async def create_page(self, parent_id: str, title: str) -> RemotePageRef:
        """Create a child page titled ``title`` under ``parent_id``.

        Returns:
            RemotePageRef of the created page
        """
        logger.debug(f"Notion API: POST /pages parent={parent_id} title={title!r}")
        response = await self._call(
            f"create_page({parent_id})",
            lambda client: client.pages.create(
                parent={'page_id': parent_id},
                properties={'title': [{'text': {'content': title}}]},
            ),
        )
        if not isinstance(response, dict) or 'id' not in response:
            raise UnexpectedResponseError('create_page', 'missing page id')
        return page_ref_from_response(response)

    async def retrieve_page(self, page_id: str) -> Dict[str, Any]:
        """Fetch a page object (properties, url, archive flag)."""
        logger.debug(f"Notion API: GET /pages/{page_id}")
        return await self._call(
            f"retrieve_page({page_id})",
            lambda client: client.pages.retrieve(page_id=page_id),
        )

    async def list_children(self, block_id: str, cursor: Optional[str] = None) -> Dict[str, Any]:
        """List one page of child blocks of a page or block.

        Returns:
            Dict with 'results', 'has_more' and 'next_cursor'
        """
        logger.debug(f"Notion API: GET /blocks/{block_id}/children cursor={cursor}")
        kwargs: Dict[str, Any] = {'block_id': block_id}
        if cursor:
            kwargs['start_cursor'] = cursor
        response = await self._call(
            f"list_children({block_id})",
            lambda client: client.blocks.children.list(**kwargs),
        )
        if not isinstance(response, dict) or not isinstance(response.get('results'), list):
            raise UnexpectedResponseError('list_children', 'missing results list')
        return response

    async def append_children(
        self,
        block_id: str,
        blocks: List[Dict[str, Any]],
        after: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Append blocks under ``block_id``, optionally after the block ``after``.

        Returns:
            Dict whose 'results' lists the created top-level blocks in order
        """
        logger.debug(
            f"Notion API: PATCH /blocks/{block_id}/children "
            f"({len(blocks)} block(s), after={after})"
        )
        kwargs: Dict[str, Any] = {'block_id': block_id, 'children': blocks}
        if after:
            kwargs['after'] = after
        response = await self._call(
            f"append_children({block_id})",
            lambda client: client.blocks.children.append(**kwargs),
        )
        if not isinstance(response, dict) or not isinstance(response.get('results'), list):
            raise UnexpectedResponseError('append_children', 'missing results list')
        return response

    async def delete_block(self, block_id: str) -> None:
        """Delete (move to trash) a single block."""
        logger.debug(f"Notion API: DELETE /blocks/{block_id}")
        await self._call(
            f"delete_block({block_id})",
            lambda client: client.blocks.delete(block_id=block_id),
        )

    async def archive_page(self, page_id: str) -> None:
        """Archive a page; Notion archives its sub-pages with it."""
        logger.debug(f"Notion API: PATCH /pages/{page_id} archived=true")
        await self._call(
            f"archive_page({page_id})",
            lambda client: client.pages.update(page_id=page_id, archived=True),
        )
