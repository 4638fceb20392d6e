"""RESPONSE_COMPLETED event handler."""

import logging

from continuum.application.use_cases.boundary_decision import BoundaryDecisionUseCase
from continuum.domain.entities import Event, EventType
from continuum.domain.repositories import PresenceRepository
from continuum.infrastructure.events.dispatcher import event_handler

logger = logging.getLogger(__name__)


class ResponseCompletedEventHandler:
    """Handler for RESPONSE_COMPLETED events.

    Records tenant activity and runs the boundary decision. A split closes
    the previous conversation through the conversation graph, which queues
    its CONVERSATION_CLOSED event.
    """

    def __init__(
        self,
        boundary_decision_use_case: BoundaryDecisionUseCase,
        presence_repository: PresenceRepository,
    ) -> None:
        """Initialize the handler.

        Args:
            boundary_decision_use_case: Use case deciding conversation boundaries.
            presence_repository: Repository for recording tenant activity.
        """
        self._boundary_decision = boundary_decision_use_case
        self._presence = presence_repository

    @event_handler(EventType.RESPONSE_COMPLETED)
    async def handle(self, event: Event) -> None:
        """Handle RESPONSE_COMPLETED event.

        Args:
            event: Event with "session_id" and "tenant_id" in its payload.
        """
        session_id = event.payload.get("session_id")
        tenant_id = event.payload.get("tenant_id")
        if not session_id or not tenant_id:
            logger.warning("RESPONSE_COMPLETED without session/tenant: %s", event.payload)
            return

        try:
            await self._presence.record_activity(tenant_id, event.created_at)
        except Exception:
            logger.exception("Failed to record activity for tenant %s", tenant_id)

        decision = await self._boundary_decision.execute(session_id, tenant_id)
        logger.debug(
            "Boundary decision for session %s: %s", session_id, decision.action.value
        )
