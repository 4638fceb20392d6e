"""Event system infrastructure."""

from continuum.infrastructure.events.dispatcher import EventDispatcher, event_handler
from continuum.infrastructure.events.loop import EventLoop
from continuum.infrastructure.events.queue import EventQueue
from continuum.infrastructure.events.scheduler import EventScheduler

__all__ = [
    "EventDispatcher",
    "EventLoop",
    "EventQueue",
    "EventScheduler",
    "event_handler",
]
