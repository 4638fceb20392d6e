"""Periodic presence-check scheduler."""

import asyncio
import logging

from continuum.domain.entities import Event, EventType
from continuum.infrastructure.events.queue import EventQueue

logger = logging.getLogger(__name__)


class EventScheduler:
    """Enqueues a PRESENCE_CHECK event every check interval.

    The first check fires immediately on start.
    """

    def __init__(self, queue: EventQueue, check_interval_seconds: float) -> None:
        """Initialize the scheduler.

        Args:
            queue: The event queue to enqueue events to.
            check_interval_seconds: Interval between PRESENCE_CHECK events.
        """
        self._queue = queue
        self._check_interval = check_interval_seconds
        self._stop_event = asyncio.Event()
        self._stop_event.set()  # Initially stopped

    async def start(self) -> None:
        """Run until stop() is called."""
        if not self._stop_event.is_set():
            logger.warning("EventScheduler already running")
            return

        self._stop_event.clear()
        logger.info(
            "EventScheduler started (presence check every %ss)", self._check_interval
        )

        while not self._stop_event.is_set():
            try:
                await self._enqueue_presence_check()
                try:
                    await asyncio.wait_for(
                        self._stop_event.wait(),
                        timeout=self._check_interval,
                    )
                except asyncio.TimeoutError:
                    pass
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("Error in event scheduler")

        logger.info("EventScheduler stopped")

    async def _enqueue_presence_check(self) -> None:
        await self._queue.enqueue(Event(type=EventType.PRESENCE_CHECK, payload={}))
        logger.debug("Enqueued presence check event")

    async def stop(self) -> None:
        """Stop the scheduler."""
        logger.info("Stopping EventScheduler")
        self._stop_event.set()

    @property
    def is_running(self) -> bool:
        """Check if the scheduler is running."""
        return not self._stop_event.is_set()
