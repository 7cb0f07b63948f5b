"""Notion client layer for md-to-notion.

This package wraps the official notion-client SDK behind a small RPC surface
(create/retrieve/list/append/delete/archive), translates SDK failures into a
typed exception hierarchy and provides the resilient call helpers used by
every remote call: retry with exponential backoff and bounded parallelism.
"""

from .errors import (
    SyncError,
    NotionError,
    RemoteOverloadedError,
    InvalidCredentialsError,
    PageNotFoundError,
    APIUnreachableError,
    APIAccessError,
    MalformedPageError,
    UnexpectedResponseError,
)
from .parallel import process_in_parallel
from .retry_logic import is_transient_error, retry_with_backoff

__all__ = [
    "SyncError",
    "NotionError",
    "RemoteOverloadedError",
    "InvalidCredentialsError",
    "PageNotFoundError",
    "APIUnreachableError",
    "APIAccessError",
    "MalformedPageError",
    "UnexpectedResponseError",
    "process_in_parallel",
    "is_transient_error",
    "retry_with_backoff",
]
