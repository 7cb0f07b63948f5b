"""Mirror a local tree of markdown documents onto a Notion page hierarchy.

The package is split by concern:
- notion_api: transport wrapper, error taxonomy and resilient call helpers
- file_mapper: local tree model, remote page index and tree reconciliation
- page_operations: block fetching, merging and chunked writing
- content_converter: markdown to Notion block conversion
- cli: command-line entry point, sync state and orchestration
"""

__version__ = "0.1.0"
