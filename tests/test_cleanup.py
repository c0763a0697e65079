"""
Tests for the CleanupAgent
"""
import pytest

from calbridge.protocol import CleanupAgent
from tests.fakes import FakeTransport


class TestArchive:

    @pytest.mark.asyncio
    async def test_archives_ids_once(self):
        transport = FakeTransport()
        cleanup = CleanupAgent(transport)

        await cleanup.archive(["sent-1", None, "reply-1", "sent-1", ""])

        assert transport.archived == [["sent-1", "reply-1"]]
        assert cleanup.archived == 2
        assert cleanup.failures == 0

    @pytest.mark.asyncio
    async def test_nothing_to_archive(self):
        transport = FakeTransport()
        cleanup = CleanupAgent(transport)

        await cleanup.archive([None, ""])

        assert transport.archived == []

    @pytest.mark.asyncio
    async def test_failure_is_counted_not_raised(self):
        transport = FakeTransport()
        transport.archive_error = PermissionError("insufficient scope")
        cleanup = CleanupAgent(transport)

        await cleanup.archive(["sent-1"])

        assert cleanup.failures == 1
        assert cleanup.archived == 0


class TestSchedule:

    @pytest.mark.asyncio
    async def test_schedule_runs_in_background(self):
        transport = FakeTransport()
        cleanup = CleanupAgent(transport)

        task = cleanup.schedule(["sent-1", "reply-1"])
        assert task is not None

        await cleanup.drain()

        assert task.done()
        assert cleanup.pending == 0
        assert transport.archived == [["sent-1", "reply-1"]]

    @pytest.mark.asyncio
    async def test_failed_task_does_not_raise_on_drain(self):
        transport = FakeTransport()
        transport.archive_error = RuntimeError("boom")
        cleanup = CleanupAgent(transport)

        task = cleanup.schedule(["sent-1"])
        await cleanup.drain()

        assert task.exception() is None
        assert cleanup.failures == 1

    @pytest.mark.asyncio
    async def test_disabled_cleanup_does_nothing(self):
        transport = FakeTransport()
        cleanup = CleanupAgent(transport, enabled=False)

        assert cleanup.schedule(["sent-1"]) is None
        await cleanup.drain()

        assert transport.archived == []
