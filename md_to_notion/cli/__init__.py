"""Command-line interface for markdown to Notion sync.

This package provides the `md-to-notion` CLI tool that reads a local
markdown tree, crawls the target Notion page and mirrors the tree onto it,
with progress indication and error handling. The entry point lives in
md_to_notion.cli.main.
"""

from .models import ExitCode, SyncSummary
from .errors import CLIError, ConfigNotFoundError

__all__ = [
    'ExitCode',
    'SyncSummary',
    'CLIError',
    'ConfigNotFoundError',
]
