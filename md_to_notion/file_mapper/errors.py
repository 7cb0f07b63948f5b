"""Typed exception hierarchy for file mapper errors.

This module defines all custom exceptions used by the file mapper library.
All exceptions inherit from FileMapperError base class for easy catching and
include descriptive messages with context to help with debugging.
"""

from typing import Optional

from md_to_notion.notion_api.errors import SyncError


class FileMapperError(SyncError):
    """Base exception for all file mapper errors."""
    pass


class FilesystemError(FileMapperError):
    """Raised when filesystem operations fail (read, permissions, etc)."""

    def __init__(self, file_path: str, operation: str, reason: Optional[str] = None):
        message = f"Filesystem operation '{operation}' failed for {file_path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.file_path = file_path
        self.operation = operation
        self.reason = reason


class ConfigError(FileMapperError):
    """Raised when configuration validation fails."""

    def __init__(self, message: str, config_field: Optional[str] = None):
        if config_field:
            full_message = f"Configuration error in field '{config_field}': {message}"
        else:
            full_message = f"Configuration error: {message}"
        super().__init__(full_message)
        self.config_field = config_field
        self.original_message = message


class FrontmatterError(FileMapperError):
    """Raised when YAML frontmatter parsing fails."""

    def __init__(self, file_path: str, message: str):
        super().__init__(
            f"Frontmatter error in {file_path}: {message}"
        )
        self.file_path = file_path
        self.message = message


class PageSyncError(FileMapperError):
    """Raised when creating or updating the page for a local file or folder fails.

    Names the PageIndex key being processed so a failed run can be diagnosed
    and re-run; the original error is chained as __cause__.
    """

    def __init__(self, key: str, operation: str, reason: str):
        super().__init__(f"Failed to {operation} '{key}': {reason}")
        self.key = key
        self.operation = operation
        self.reason = reason


class ArchivalError(FileMapperError):
    """Raised when archiving an orphaned Notion page fails."""

    def __init__(self, key: str, page_id: str, reason: str):
        super().__init__(f"Failed to archive page '{key}' ({page_id}): {reason}")
        self.key = key
        self.page_id = page_id
        self.reason = reason
