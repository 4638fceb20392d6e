"""Tests for EventLoop."""

import asyncio

import pytest

from continuum.domain.entities.event import Event, EventType
from continuum.infrastructure.events.dispatcher import EventDispatcher
from continuum.infrastructure.events.loop import EventLoop
from continuum.infrastructure.events.queue import EventQueue


def response_completed(session_id: str) -> Event:
    return Event(
        type=EventType.RESPONSE_COMPLETED,
        payload={"session_id": session_id, "tenant_id": "tenant-1"},
    )


class TestEventLoop:
    """Tests for EventLoop."""

    @pytest.fixture
    def queue(self) -> EventQueue:
        """Create an EventQueue instance."""
        return EventQueue()

    @pytest.fixture
    def dispatcher(self) -> EventDispatcher:
        """Create an EventDispatcher instance."""
        return EventDispatcher()

    @pytest.fixture
    def loop(self, queue: EventQueue, dispatcher: EventDispatcher) -> EventLoop:
        """Create an EventLoop instance."""
        return EventLoop(queue, dispatcher)

    async def test_is_running_initially_false(self, loop: EventLoop) -> None:
        """Test that is_running is False initially."""
        assert not loop.is_running

    async def test_start_and_stop(self, loop: EventLoop) -> None:
        """Test that start/stop toggle is_running."""
        task = asyncio.create_task(loop.start())
        await asyncio.sleep(0.05)
        assert loop.is_running

        await loop.stop()
        await task

        assert not loop.is_running

    async def test_processes_events(
        self, loop: EventLoop, queue: EventQueue, dispatcher: EventDispatcher
    ) -> None:
        """Test that events are dispatched."""
        received: list[Event] = []

        async def handler(event: Event) -> None:
            received.append(event)

        dispatcher.register(EventType.RESPONSE_COMPLETED, handler)
        task = asyncio.create_task(loop.start())

        event = response_completed("s-1")
        await queue.enqueue(event)
        await asyncio.sleep(0.1)

        await loop.stop()
        await task

        assert received == [event]

    async def test_events_are_processed_sequentially(
        self, loop: EventLoop, queue: EventQueue, dispatcher: EventDispatcher
    ) -> None:
        """Only one handler runs at a time."""
        running = 0
        max_running = 0

        async def handler(event: Event) -> None:
            nonlocal running, max_running
            running += 1
            max_running = max(max_running, running)
            await asyncio.sleep(0.02)
            running -= 1

        dispatcher.register(EventType.RESPONSE_COMPLETED, handler)
        for i in range(3):
            await queue.enqueue(response_completed(f"s-{i}"))

        task = asyncio.create_task(loop.start())
        await asyncio.sleep(0.2)
        await loop.stop()
        await task

        assert max_running == 1
        assert len(queue) == 0

    async def test_handler_error_does_not_stop_loop(
        self, loop: EventLoop, queue: EventQueue, dispatcher: EventDispatcher
    ) -> None:
        received: list[str] = []

        async def handler(event: Event) -> None:
            if event.payload["session_id"] == "bad":
                raise RuntimeError("boom")
            received.append(event.payload["session_id"])

        dispatcher.register(EventType.RESPONSE_COMPLETED, handler)
        await queue.enqueue(response_completed("bad"))
        await queue.enqueue(response_completed("good"))

        task = asyncio.create_task(loop.start())
        await asyncio.sleep(0.1)
        await loop.stop()
        await task

        assert received == ["good"]

    async def test_drain_processes_waiting_events(
        self, loop: EventLoop, queue: EventQueue, dispatcher: EventDispatcher
    ) -> None:
        """drain runs every waiting event without starting the loop."""
        received: list[Event] = []

        async def handler(event: Event) -> None:
            received.append(event)

        dispatcher.register(EventType.RESPONSE_COMPLETED, handler)
        await queue.enqueue(response_completed("s-1"))
        await queue.enqueue(response_completed("s-2"))

        processed = await loop.drain()

        assert processed == 2
        assert len(received) == 2
        assert not queue.is_processing("response_completed:s-1")

    async def test_drain_picks_up_follow_up_events(
        self, loop: EventLoop, queue: EventQueue, dispatcher: EventDispatcher
    ) -> None:
        """Events enqueued by handlers during drain are processed too."""
        received: list[EventType] = []

        async def on_response(event: Event) -> None:
            received.append(event.type)
            await queue.enqueue(
                Event(type=EventType.CONVERSATION_CLOSED, payload={"conversation_id": "c"})
            )

        async def on_closed(event: Event) -> None:
            received.append(event.type)

        dispatcher.register(EventType.RESPONSE_COMPLETED, on_response)
        dispatcher.register(EventType.CONVERSATION_CLOSED, on_closed)
        await queue.enqueue(response_completed("s-1"))

        assert await loop.drain() == 2
        assert received == [EventType.RESPONSE_COMPLETED, EventType.CONVERSATION_CLOSED]
