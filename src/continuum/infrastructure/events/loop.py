"""Sequential event processing loop."""

import asyncio
import logging

from continuum.domain.entities import Event
from continuum.infrastructure.events.dispatcher import EventDispatcher
from continuum.infrastructure.events.queue import EventQueue

logger = logging.getLogger(__name__)

# Poll interval used to notice stop() while the queue is empty
DEQUEUE_TIMEOUT_SECONDS = 1.0


class EventLoop:
    """Event processing loop.

    Dequeues events and dispatches them one at a time, so handlers for
    the same session never run concurrently.
    """

    def __init__(self, queue: EventQueue, dispatcher: EventDispatcher) -> None:
        """Initialize the event loop.

        Args:
            queue: The event queue to read from.
            dispatcher: The dispatcher to send events to.
        """
        self._queue = queue
        self._dispatcher = dispatcher
        self._stop_event = asyncio.Event()
        self._stop_event.set()  # Initially stopped

    async def start(self) -> None:
        """Run until stop() is called."""
        if not self._stop_event.is_set():
            logger.warning("EventLoop already running")
            return

        self._stop_event.clear()
        logger.info("EventLoop started")

        while not self._stop_event.is_set():
            try:
                try:
                    event = await asyncio.wait_for(
                        self._queue.dequeue(),
                        timeout=DEQUEUE_TIMEOUT_SECONDS,
                    )
                except asyncio.TimeoutError:
                    continue
                await self._process(event)
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("Error in event loop")

        logger.info("EventLoop stopped")

    async def drain(self) -> int:
        """Process every event that is already waiting, then return.

        Returns:
            Number of events processed.
        """
        processed = 0
        while (event := self._queue.get_nowait()) is not None:
            await self._process(event)
            processed += 1
        return processed

    async def _process(self, event: Event) -> None:
        logger.debug("Processing event: %s", event.get_identity_key())
        self._queue.mark_processing(event)
        try:
            await self._dispatcher.dispatch(event)
        finally:
            self._queue.mark_done(event)

    async def stop(self) -> None:
        """Stop the event loop.

        Waiting events stay queued so a final drain() can still run them.
        """
        logger.info("Stopping EventLoop")
        self._stop_event.set()

    @property
    def is_running(self) -> bool:
        """Check if the event loop is running."""
        return not self._stop_event.is_set()
