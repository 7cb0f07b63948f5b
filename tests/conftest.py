"""Root pytest configuration for all tests.

This conftest applies to all test types (unit, integration).
"""

import logging

import pytest

from md_to_notion.file_mapper.models import SyncOptions
from tests.helpers.fake_notion import FakeNotion

# notion-client and httpx log every request at DEBUG/INFO; keep test output readable
logging.getLogger("notion_client").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)


@pytest.fixture
def fake_notion() -> FakeNotion:
    """Empty fake workspace with a root page titled 'Root'."""
    return FakeNotion()


@pytest.fixture
def fast_options() -> SyncOptions:
    """SyncOptions without pacing or backoff delays."""
    return SyncOptions(
        parallel_limit=4,
        request_delay=0,
        max_retry_attempts=3,
        initial_retry_delay=0,
    )
