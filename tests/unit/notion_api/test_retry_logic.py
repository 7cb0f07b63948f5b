"""Unit tests for notion_api.retry_logic module."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from md_to_notion.notion_api.errors import (
    APIAccessError,
    MalformedPageError,
    PageNotFoundError,
    RemoteOverloadedError,
)
from md_to_notion.notion_api.retry_logic import is_transient_error, retry_with_backoff


class TestIsTransientError:
    """Test cases for is_transient_error function."""

    def test_detects_remote_overloaded_error(self):
        """RemoteOverloadedError is always transient."""
        assert is_transient_error(RemoteOverloadedError("list_children", 429)) is True

    def test_detects_status_attribute(self):
        """An SDK-style error with status=429 is transient."""
        error = Exception("rate limited")
        error.status = 429
        assert is_transient_error(error) is True

    def test_detects_service_unavailable_code(self):
        """An error code of 'service_unavailable' is transient."""
        error = Exception("busy")
        error.code = "service_unavailable"
        assert is_transient_error(error) is True

    def test_detects_response_status_code(self):
        """An HTTP error whose response has status 503 is transient."""
        error = Exception("HTTP error")
        error.response = MagicMock()
        error.response.status_code = 503
        assert is_transient_error(error) is True

    def test_not_found_is_not_transient(self):
        """PageNotFoundError fails fast."""
        assert is_transient_error(PageNotFoundError("abc")) is False

    def test_malformed_page_is_not_transient(self):
        """Missing data cannot be fixed by retrying."""
        assert is_transient_error(MalformedPageError("abc")) is False

    def test_other_status_is_not_transient(self):
        """Status 400 is not retried."""
        error = Exception("bad request")
        error.status = 400
        assert is_transient_error(error) is False


class TestRetryWithBackoff:
    """Test cases for retry_with_backoff function."""

    async def test_success_on_first_attempt(self):
        """Returns the result without sleeping."""
        operation = AsyncMock(return_value="ok")

        with patch('md_to_notion.notion_api.retry_logic.asyncio.sleep', new_callable=AsyncMock) as sleep:
            result = await retry_with_backoff(operation)

        assert result == "ok"
        operation.assert_awaited_once()
        sleep.assert_not_awaited()

    async def test_retries_with_doubling_delays(self):
        """Two rate-limited attempts then success waits 1s then 2s."""
        overloaded = RemoteOverloadedError("retrieve_page", 429)
        operation = AsyncMock(side_effect=[overloaded, overloaded, "ok"])

        with patch('md_to_notion.notion_api.retry_logic.asyncio.sleep', new_callable=AsyncMock) as sleep:
            result = await retry_with_backoff(operation, max_attempts=3, initial_delay=1.0)

        assert result == "ok"
        assert operation.await_count == 3
        assert [call.args[0] for call in sleep.await_args_list] == [1.0, 2.0]

    async def test_exhausted_attempts_raise_api_access_error(self):
        """Persistent rate limiting gives up after max_attempts."""
        overloaded = RemoteOverloadedError("append_children", 429)
        operation = AsyncMock(side_effect=overloaded)

        with patch('md_to_notion.notion_api.retry_logic.asyncio.sleep', new_callable=AsyncMock) as sleep:
            with pytest.raises(APIAccessError) as exc_info:
                await retry_with_backoff(
                    operation, max_attempts=3, initial_delay=0.5, description="append_children(x)"
                )

        assert operation.await_count == 3
        assert [call.args[0] for call in sleep.await_args_list] == [0.5, 1.0]
        assert "append_children(x)" in str(exc_info.value)
        assert exc_info.value.__cause__ is overloaded

    async def test_non_retryable_error_propagates_immediately(self):
        """Non-transient errors are raised on the first attempt."""
        operation = AsyncMock(side_effect=PageNotFoundError("abc"))

        with patch('md_to_notion.notion_api.retry_logic.asyncio.sleep', new_callable=AsyncMock) as sleep:
            with pytest.raises(PageNotFoundError):
                await retry_with_backoff(operation, max_attempts=5)

        operation.assert_awaited_once()
        sleep.assert_not_awaited()

    async def test_custom_predicate(self):
        """is_retryable decides which errors are retried."""
        operation = AsyncMock(side_effect=[ValueError("flaky"), "ok"])

        result = await retry_with_backoff(
            operation,
            initial_delay=0,
            is_retryable=lambda e: isinstance(e, ValueError),
        )

        assert result == "ok"

    async def test_single_attempt_does_not_retry(self):
        """max_attempts=1 means one try and no sleep."""
        operation = AsyncMock(side_effect=RemoteOverloadedError("x"))

        with patch('md_to_notion.notion_api.retry_logic.asyncio.sleep', new_callable=AsyncMock) as sleep:
            with pytest.raises(APIAccessError):
                await retry_with_backoff(operation, max_attempts=1)

        operation.assert_awaited_once()
        sleep.assert_not_awaited()

    async def test_fresh_request_per_attempt(self):
        """The operation factory is invoked once per attempt."""
        factory = MagicMock(side_effect=[
            AsyncMock(side_effect=RemoteOverloadedError("x"))(),
            AsyncMock(return_value=42)(),
        ])

        result = await retry_with_backoff(factory, initial_delay=0)

        assert result == 42
        assert factory.call_count == 2
