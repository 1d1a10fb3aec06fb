"""Tests for generation timeouts and cancellation tokens."""

import asyncio

import pytest

from screening_engine.core import (
    CancellationToken,
    GenerationCancelledError,
    GenerationTimeoutError,
    run_with_deadline,
)


class TestRunWithDeadline:
    """Tests for awaiting with a deadline."""

    def test_completes_in_time(self):
        async def work():
            await asyncio.sleep(0)
            return "done"

        assert asyncio.run(run_with_deadline(work(), 1.0, "work")) == "done"

    def test_no_timeout(self):
        async def work():
            return 42

        assert asyncio.run(run_with_deadline(work(), None, "work")) == 42

    def test_times_out(self):
        with pytest.raises(GenerationTimeoutError) as exc:
            asyncio.run(run_with_deadline(asyncio.sleep(1), 0.01, "Slow export"))
        assert exc.value.operation == "Slow export"
        assert exc.value.timeout == 0.01
        assert str(exc.value) == "Slow export timed out after 0.01 seconds"

    def test_timeout_error_is_builtin_timeout(self):
        with pytest.raises(TimeoutError):
            asyncio.run(run_with_deadline(asyncio.sleep(1), 0.01, "work"))

    def test_errors_propagate(self):
        async def broken():
            raise KeyError("missing")

        with pytest.raises(KeyError):
            asyncio.run(run_with_deadline(broken(), 1.0, "work"))


class TestCancellationToken:
    """Tests for cooperative cancellation."""

    def test_initially_active(self):
        token = CancellationToken()
        assert token.cancelled is False
        token.raise_if_cancelled("work")

    def test_cancel(self):
        token = CancellationToken()
        token.cancel("new screening submitted")
        assert token.cancelled is True
        with pytest.raises(GenerationCancelledError) as exc:
            token.raise_if_cancelled("Risk Assessment generation")
        assert exc.value.reason == "new screening submitted"
        assert str(exc.value) == (
            "Risk Assessment generation was cancelled: new screening submitted"
        )

    def test_cancel_without_reason(self):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(GenerationCancelledError, match="^work was cancelled$"):
            token.raise_if_cancelled("work")

    def test_stays_cancelled(self):
        token = CancellationToken()
        token.cancel("first")
        for _ in range(2):
            with pytest.raises(GenerationCancelledError):
                token.raise_if_cancelled("work")
