"""Typed exception hierarchy for Notion-related errors.

This module defines all custom exceptions used by the Notion client layer.
All exceptions inherit from NotionError (itself a SyncError) for easy catching
and include descriptive messages with context to help with debugging.
"""

from typing import Optional


class SyncError(Exception):
    """Base exception for all md-to-notion errors.

    Use this to catch any application-level error from the sync tool.
    """
    pass


class NotionError(SyncError):
    """Base exception for all Notion-related errors."""
    pass


class RemoteOverloadedError(NotionError):
    """Raised when Notion signals rate limiting or temporary overload (429/503).

    This is the only transient error kind: the resilient call layer retries it
    with exponential backoff.
    """

    def __init__(self, operation: str, status: Optional[int] = None):
        if status:
            message = f"Notion is rate limiting or overloaded during {operation} (HTTP {status})"
        else:
            message = f"Notion is rate limiting or overloaded during {operation}"
        super().__init__(message)
        self.operation = operation
        self.status = status


class InvalidCredentialsError(NotionError):
    """Raised when the integration token is missing or rejected."""

    def __init__(self, reason: str = "Notion API token is missing or invalid"):
        super().__init__(reason)
        self.reason = reason


class PageNotFoundError(NotionError):
    """Raised when a requested page or block does not exist or is not shared."""

    def __init__(self, page_id: str):
        super().__init__(f"Page or block {page_id} not found")
        self.page_id = page_id


class APIUnreachableError(NotionError):
    """Raised when the Notion API cannot be reached (timeout, network failure)."""

    def __init__(self, operation: str):
        super().__init__(f"Notion API is not reachable during {operation}")
        self.operation = operation


class APIAccessError(NotionError):
    """Raised when an API call fails for good, including after exhausted retries."""

    def __init__(self, message: str = "Notion API failure"):
        super().__init__(message)


class MalformedPageError(NotionError):
    """Raised when remote page data is missing required fields (e.g. a title).

    Retrying cannot fix missing data, so this error is never retried.
    """

    def __init__(self, page_id: str, address: Optional[str] = None, reason: str = "no title found"):
        location = address or page_id
        super().__init__(
            f"Malformed page {location}: {reason}. "
            f"Please set a title for the page and try again."
        )
        self.page_id = page_id
        self.address = address
        self.reason = reason


class UnexpectedResponseError(NotionError):
    """Raised when a response does not have the shape the sync engine relies on."""

    def __init__(self, operation: str, detail: str):
        super().__init__(f"Unexpected response from {operation}: {detail}")
        self.operation = operation
        self.detail = detail
