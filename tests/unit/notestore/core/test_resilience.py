"""Unit tests for modules.notestore.core.resilience."""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from modules.notestore.core.exceptions import StorageError
from modules.notestore.core.resilience import (
    ResilienceLogger,
    create_circuit_breaker,
    log_retry,
    store_retrying,
)


class TestResilienceLogger:
    def test_state_change_open(self):
        """Opening the circuit should log at error level."""
        rl = ResilienceLogger("redis")
        mock_cb = MagicMock()
        mock_cb.fail_counter = 5

        with patch("modules.notestore.core.resilience.logger") as mock_logger:
            rl.state_change(mock_cb, "closed", "open")
            mock_logger.error.assert_called_once()
            assert "circuit_breaker_opened" in str(mock_logger.error.call_args)

    def test_state_change_half_open(self):
        """Half-open should log at info level."""
        rl = ResilienceLogger("redis")
        mock_cb = MagicMock()
        mock_cb.fail_counter = 3

        with patch("modules.notestore.core.resilience.logger") as mock_logger:
            rl.state_change(mock_cb, "open", "half-open")
            mock_logger.info.assert_called_once()
            assert "circuit_breaker_half_open" in str(mock_logger.info.call_args)

    def test_failure(self):
        """Recording a failure should log at warning level."""
        rl = ResilienceLogger("redis")
        mock_cb = MagicMock()
        mock_cb.fail_counter = 2

        with patch("modules.notestore.core.resilience.logger") as mock_logger:
            rl.failure(mock_cb, ConnectionError("timeout"))
            mock_logger.warning.assert_called_once()
            assert "circuit_breaker_failure" in str(mock_logger.warning.call_args)


class TestLogRetry:
    def test_emits_structured_event(self):
        """log_retry should emit a warning with retry metadata."""
        mock_state = MagicMock()
        mock_state.attempt_number = 2
        mock_state.fn.__name__ = "set"
        mock_state.outcome_timestamp = 1000.5
        mock_state.start_time = 1000.0
        mock_state.outcome.failed = True
        mock_state.outcome.exception.return_value = StorageError("disk full")

        with patch("modules.notestore.core.resilience.logger") as mock_logger:
            log_retry(mock_state)
            call_args = mock_logger.warning.call_args
            assert "set" in call_args[0][0]
            assert call_args[1]["extra"]["resilience_event"] == "retry_attempt"
            assert call_args[1]["extra"]["attempt"] == 2
            assert call_args[1]["extra"]["duration_ms"] == 500
            assert call_args[1]["extra"]["error"] == "disk full"

    def test_names_store_write_when_no_function(self):
        """AsyncRetrying used as an iterator has no wrapped function."""
        mock_state = MagicMock()
        mock_state.attempt_number = 1
        mock_state.fn = None
        mock_state.outcome_timestamp = None
        mock_state.start_time = None
        mock_state.outcome = None

        with patch("modules.notestore.core.resilience.logger") as mock_logger:
            log_retry(mock_state)
            call_args = mock_logger.warning.call_args
            assert call_args[1]["extra"]["dependency"] == "store_write"
            assert call_args[1]["extra"]["duration_ms"] is None
            assert call_args[1]["extra"]["error"] is None


class TestStoreRetrying:
    @pytest.mark.asyncio
    async def test_retries_storage_errors_until_success(self):
        write = AsyncMock(side_effect=[StorageError("blip"), None])

        async for attempt in store_retrying(max_attempts=3, wait_min=0, wait_max=0):
            with attempt:
                await write()

        assert write.await_count == 2

    @pytest.mark.asyncio
    async def test_reraises_last_storage_error(self):
        write = AsyncMock(side_effect=StorageError("down"))

        with pytest.raises(StorageError, match="down"):
            async for attempt in store_retrying(max_attempts=2, wait_min=0, wait_max=0):
                with attempt:
                    await write()

        assert write.await_count == 2

    @pytest.mark.asyncio
    async def test_does_not_retry_other_errors(self):
        write = AsyncMock(side_effect=ValueError("bug"))

        with pytest.raises(ValueError):
            async for attempt in store_retrying(max_attempts=3, wait_min=0, wait_max=0):
                with attempt:
                    await write()

        assert write.await_count == 1


class TestCreateCircuitBreaker:
    def test_returns_configured_breaker(self):
        """create_circuit_breaker should return a breaker with correct config."""
        cb = create_circuit_breaker("redis", fail_max=3, timeout_duration=15)
        assert cb.fail_max == 3
        assert cb.timeout_duration == timedelta(seconds=15)
        assert len(cb.listeners) == 1
        assert isinstance(cb.listeners[0], ResilienceLogger)
        assert cb.listeners[0].dependency == "redis"

    def test_default_values(self):
        """Default values should be fail_max=5, timeout_duration=30s."""
        cb = create_circuit_breaker("default-dep")
        assert cb.fail_max == 5
        assert cb.timeout_duration == timedelta(seconds=30)
