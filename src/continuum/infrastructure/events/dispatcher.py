"""Routing of continuity events to their handlers."""

import logging
from collections.abc import Awaitable, Callable

from continuum.domain.entities import Event, EventType

logger = logging.getLogger(__name__)

EventHandler = Callable[[Event], Awaitable[None]]


def event_handler(event_type: EventType) -> Callable[[EventHandler], EventHandler]:
    """Mark a coroutine as the handler of one event type.

    The marker lets ``EventDispatcher.register_handler`` pick the type up
    from a bound handler method, e.g. ``ConversationClosedEventHandler.handle``
    for CONVERSATION_CLOSED.
    """

    def decorator(func: EventHandler) -> EventHandler:
        func._event_type = event_type  # type: ignore[attr-defined]
        return func

    return decorator


def _handler_name(handler: EventHandler) -> str:
    return getattr(handler, "__qualname__", None) or repr(handler)


class EventDispatcher:
    """Fans each event out to the handlers registered for its type.

    RESPONSE_COMPLETED drives the boundary decision, CONVERSATION_CLOSED the
    summarizer and PRESENCE_CHECK the engagement sweep. Handlers run one
    after another; an exception in one is logged and the next still runs,
    so a summarizer outage never blocks boundary decisions.
    """

    def __init__(self) -> None:
        self._handlers: dict[EventType, list[EventHandler]] = {}

    def register(self, event_type: EventType, handler: EventHandler) -> None:
        """Add a handler for event_type, after any already registered."""
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug("%s handles %s", _handler_name(handler), event_type.value)

    def register_handler(self, handler: EventHandler) -> None:
        """Register a handler marked with ``@event_handler``.

        Raises:
            ValueError: The handler carries no event type marker.
        """
        event_type = getattr(handler, "_event_type", None)
        if event_type is None:
            raise ValueError(
                f"{_handler_name(handler)} is not marked with @event_handler"
            )
        self.register(event_type, handler)

    def handlers_for(self, event_type: EventType) -> list[EventHandler]:
        return list(self._handlers.get(event_type, []))

    async def dispatch(self, event: Event) -> None:
        """Run every handler registered for the event's type."""
        handlers = self._handlers.get(event.type, [])
        if not handlers:
            logger.warning("Dropping %s event: no handler registered", event.type.value)
            return

        for handler in handlers:
            try:
                await handler(event)
            except Exception:
                logger.exception(
                    "Handler %s failed on %s",
                    _handler_name(handler),
                    event.get_identity_key(),
                )
