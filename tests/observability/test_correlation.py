"""
Test suite for trace context propagation and logging helpers.

System role: Verification of observability utilities
"""

import asyncio
import logging
import uuid

import pytest

from retrieval_backend.boundary.db.models.job_model import JobModel, JobStatus, JobType
from retrieval_backend.observability.correlation import (
    MAX_TRACE_ID_LENGTH,
    get_correlation_id,
    resolve_trace_id,
    trace_scope,
)
from retrieval_backend.observability.log_utils import (
    job_log_context,
    log_exception_with_context,
    safe_log_value,
)
from retrieval_backend.observability.logger import CorrelationIdFilter


class TestTraceScope:
    """Test suite for trace_scope() and get_correlation_id()."""

    def test_empty_outside_scope(self) -> None:
        assert get_correlation_id() == ""

    def test_binds_and_restores(self) -> None:
        # Act
        with trace_scope("abc") as bound:
            inside = get_correlation_id()

        # Assert
        assert bound == "abc"
        assert inside == "abc"
        assert get_correlation_id() == ""

    def test_nested_scopes_restore_outer(self) -> None:
        with trace_scope("outer"):
            with trace_scope("inner"):
                assert get_correlation_id() == "inner"
            assert get_correlation_id() == "outer"

    def test_generates_when_missing(self) -> None:
        with trace_scope() as generated:
            assert len(generated) == 32
            assert get_correlation_id() == generated

    def test_truncates_oversized_ids(self) -> None:
        with trace_scope("x" * 200) as bound:
            assert len(bound) == MAX_TRACE_ID_LENGTH

    @pytest.mark.asyncio
    async def test_tasks_inherit_scope(self) -> None:
        # Arrange
        async def read_id() -> str:
            await asyncio.sleep(0)
            return get_correlation_id()

        # Act
        with trace_scope("request-1"):
            task = asyncio.create_task(read_id())
        seen = await task

        # Assert
        assert seen == "request-1"


class TestResolveTraceId:
    """Test suite for resolve_trace_id()."""

    def test_explicit_wins(self) -> None:
        with trace_scope("ambient"):
            assert resolve_trace_id("explicit") == "explicit"

    def test_falls_back_to_ambient(self) -> None:
        with trace_scope("ambient"):
            assert resolve_trace_id() == "ambient"

    def test_generates_without_ambient(self) -> None:
        assert len(resolve_trace_id()) == 32


class TestCorrelationIdFilter:
    """Test suite for the log record filter."""

    def _record(self) -> logging.LogRecord:
        return logging.LogRecord("test", logging.INFO, __file__, 1, "msg", None, None)

    def test_stamps_current_id(self) -> None:
        # Arrange
        record = self._record()

        # Act
        with trace_scope("trace-42"):
            CorrelationIdFilter().filter(record)

        # Assert
        assert record.correlation_id == "trace-42"

    def test_placeholder_outside_scope(self) -> None:
        record = self._record()
        assert CorrelationIdFilter().filter(record) is True
        assert record.correlation_id == "-"


class TestLogUtils:
    """Test suite for log_utils helpers."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, "None"),
            ([1, 2, 3], "list(3 items)"),
            ({"a": 1}, "dict(1 keys)"),
            ("short", "short"),
            (JobStatus.QUEUED, "queued"),
        ],
    )
    def test_safe_log_value(self, value, expected: str) -> None:
        assert safe_log_value(value) == expected

    def test_truncates_long_strings(self) -> None:
        assert safe_log_value("x" * 20, max_length=5).startswith("xxxxx... (truncated")

    def test_job_log_context(self) -> None:
        # Arrange
        job_id = uuid.uuid4()
        job = JobModel(
            id=job_id,
            job_type=JobType.COMPARISON,
            status=JobStatus.PROCESSING,
            attempt_count=2,
            trace_id="trace-9",
        )

        # Act
        fields = job_log_context(job, retryable=True)

        # Assert
        assert fields == {
            "job_id": str(job_id),
            "job_type": "comparison",
            "status": "processing",
            "attempt": "2",
            "trace_id": "trace-9",
            "retryable": "True",
        }

    def test_log_exception_with_context(self, caplog: pytest.LogCaptureFixture) -> None:
        # Arrange
        logger = logging.getLogger("test.log_utils")
        caplog.set_level(logging.WARNING, logger="test.log_utils")

        # Act
        log_exception_with_context(logger, "write failed", ValueError("boom"), level=logging.WARNING, key="k1")

        # Assert
        assert "write failed" in caplog.text
        assert caplog.records[0].levelno == logging.WARNING
        assert caplog.records[0].error_type == "ValueError"
