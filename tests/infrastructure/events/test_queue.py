"""Tests for EventQueue."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from continuum.domain.entities.event import Event, EventType
from continuum.infrastructure.events.queue import EventQueue


class TestEventQueue:
    """Tests for EventQueue."""

    @pytest.fixture
    def queue(self) -> EventQueue:
        """Create an EventQueue instance."""
        return EventQueue()

    @pytest.fixture
    def now(self) -> datetime:
        """Create a fixed current time for testing."""
        return datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

    def response_completed(self, session_id: str, created_at: datetime) -> Event:
        return Event(
            type=EventType.RESPONSE_COMPLETED,
            payload={"session_id": session_id, "tenant_id": "tenant-1"},
            created_at=created_at,
        )

    async def test_enqueue_and_dequeue(self, queue: EventQueue, now: datetime) -> None:
        """Test basic enqueue and dequeue."""
        event = self.response_completed("s-1", now)

        await queue.enqueue(event)

        assert await queue.dequeue() == event
        assert len(queue) == 0

    async def test_fifo_across_keys(self, queue: EventQueue, now: datetime) -> None:
        """Test that different keys come out in arrival order."""
        first = self.response_completed("s-1", now)
        second = self.response_completed("s-2", now)
        third = Event(type=EventType.PRESENCE_CHECK, payload={}, created_at=now)
        for event in (first, second, third):
            await queue.enqueue(event)

        assert [await queue.dequeue() for _ in range(3)] == [first, second, third]

    async def test_same_key_replaces_pending(
        self, queue: EventQueue, now: datetime
    ) -> None:
        """A burst for one session collapses into the newest event."""
        old = self.response_completed("s-1", now)
        new = self.response_completed("s-1", now + timedelta(seconds=1))

        await queue.enqueue(old)
        await queue.enqueue(new)

        assert len(queue) == 1
        assert await queue.dequeue() == new

    async def test_dequeue_blocks_until_event_available(
        self, queue: EventQueue, now: datetime
    ) -> None:
        """Test that dequeue blocks until an event is available."""
        task = asyncio.create_task(queue.dequeue())
        await asyncio.sleep(0.05)
        assert not task.done()

        event = self.response_completed("s-1", now)
        await queue.enqueue(event)

        assert await asyncio.wait_for(task, timeout=1.0) == event

    async def test_get_nowait(self, queue: EventQueue, now: datetime) -> None:
        assert queue.get_nowait() is None

        event = self.response_completed("s-1", now)
        await queue.enqueue(event)

        assert queue.get_nowait() == event
        assert queue.get_nowait() is None

    async def test_pending_and_processing_state(
        self, queue: EventQueue, now: datetime
    ) -> None:
        """Test is_pending / is_processing bookkeeping."""
        event = self.response_completed("s-1", now)
        key = event.get_identity_key()

        await queue.enqueue(event)
        assert queue.is_pending(key)

        dequeued = await queue.dequeue()
        queue.mark_processing(dequeued)
        assert not queue.is_pending(key)
        assert queue.is_processing(key)

        queue.mark_done(dequeued)
        assert not queue.is_processing(key)

    async def test_key_can_be_enqueued_while_processing(
        self, queue: EventQueue, now: datetime
    ) -> None:
        """A new event for a running key waits behind it."""
        running = self.response_completed("s-1", now)
        await queue.enqueue(running)
        queue.mark_processing(await queue.dequeue())

        follow_up = self.response_completed("s-1", now + timedelta(seconds=1))
        await queue.enqueue(follow_up)
        queue.mark_done(running)

        assert queue.is_pending(follow_up.get_identity_key())
        assert await queue.dequeue() == follow_up

    async def test_mark_done_ignores_newer_event(
        self, queue: EventQueue, now: datetime
    ) -> None:
        """mark_done of an older event keeps the newer processing entry."""
        older = self.response_completed("s-1", now)
        newer = self.response_completed("s-1", now + timedelta(seconds=1))
        queue.mark_processing(newer)

        queue.mark_done(older)

        assert queue.is_processing(newer.get_identity_key())

    async def test_clear(self, queue: EventQueue, now: datetime) -> None:
        await queue.enqueue(self.response_completed("s-1", now))
        await queue.enqueue(self.response_completed("s-2", now))

        queue.clear()

        assert len(queue) == 0
