"""Event queue keyed by event identity."""

import asyncio
import logging

from continuum.domain.entities import Event

logger = logging.getLogger(__name__)


class EventQueue:
    """In-memory FIFO queue that holds at most one waiting event per identity key.

    Enqueueing an event whose identity key is already waiting replaces the
    waiting event in place, so a burst of RESPONSE_COMPLETED events for one
    session collapses into a single boundary decision. A key that is being
    processed may be enqueued again; the new event runs after the current one
    because the event loop dispatches sequentially.
    """

    def __init__(self) -> None:
        """Initialize the event queue."""
        # Waiting events in arrival order (identity_key -> Event)
        self._pending: dict[str, Event] = {}
        # Events currently being processed (identity_key -> Event)
        self._processing: dict[str, Event] = {}
        self._available = asyncio.Event()

    async def enqueue(self, event: Event) -> None:
        """Add an event to the queue, replacing a waiting event with the same key.

        Args:
            event: The event to enqueue.
        """
        identity_key = event.get_identity_key()
        if identity_key in self._pending:
            logger.debug(
                "Replacing pending event: key=%s, old=%s, new=%s",
                identity_key,
                self._pending[identity_key].created_at,
                event.created_at,
            )
        self._pending[identity_key] = event
        self._available.set()

    async def dequeue(self) -> Event:
        """Get the oldest waiting event.

        Blocks until an event is available.

        Returns:
            The next event to process.
        """
        while not self._pending:
            self._available.clear()
            await self._available.wait()
        identity_key = next(iter(self._pending))
        return self._pending.pop(identity_key)

    def get_nowait(self) -> Event | None:
        """Get the oldest waiting event without blocking (None when empty)."""
        if not self._pending:
            return None
        identity_key = next(iter(self._pending))
        return self._pending.pop(identity_key)

    def mark_processing(self, event: Event) -> None:
        """Mark an event as being processed.

        Args:
            event: The event being processed.
        """
        identity_key = event.get_identity_key()
        self._processing[identity_key] = event
        logger.debug("Event marked as processing: %s", identity_key)

    def mark_done(self, event: Event) -> None:
        """Mark an event as done processing.

        Args:
            event: The event that finished processing.
        """
        identity_key = event.get_identity_key()
        if self._processing.get(identity_key) is event:
            self._processing.pop(identity_key)
        logger.debug("Event marked as done: %s", identity_key)

    def is_pending(self, identity_key: str) -> bool:
        return identity_key in self._pending

    def is_processing(self, identity_key: str) -> bool:
        return identity_key in self._processing

    def __len__(self) -> int:
        return len(self._pending)

    def clear(self) -> None:
        """Drop all waiting events."""
        dropped = len(self._pending)
        self._pending.clear()
        self._processing.clear()
        logger.info("EventQueue cleared (%d pending events dropped)", dropped)
