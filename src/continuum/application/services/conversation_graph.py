"""Conversation graph service."""

import logging
import uuid
from datetime import datetime, timezone

from continuum.domain.entities import (
    Conversation,
    ConversationClosure,
    ConversationRelation,
    ConversationStatus,
    Event,
    EventType,
    Session,
)
from continuum.domain.exceptions import (
    ConversationNotFoundError,
    MessageNotFoundError,
    SessionNotFoundError,
    TenantMismatchError,
)
from continuum.domain.repositories import ConversationRepository, SessionRepository
from continuum.infrastructure.events.queue import EventQueue

logger = logging.getLogger(__name__)

DEFAULT_CHAIN_DEPTH = 5


class ConversationGraph:
    """Maintains conversations, their links and session branches.

    Errors raised here are meant for the caller: explicit user actions
    (link, branch, close) surface them, while the boundary decider
    catches them.

    Every conversation closed through the graph, explicitly or by creating
    its successor, is announced as CONVERSATION_CLOSED on the event queue.
    """

    def __init__(
        self,
        session_repository: SessionRepository,
        conversation_repository: ConversationRepository,
        event_queue: EventQueue | None = None,
    ) -> None:
        """Initialize the graph service.

        Args:
            session_repository: Repository for sessions and messages.
            conversation_repository: Repository for conversations.
            event_queue: Queue receiving CONVERSATION_CLOSED events.
        """
        self._sessions = session_repository
        self._conversations = conversation_repository
        self._queue = event_queue

    async def create(
        self,
        session_id: str,
        tenant_id: str,
        start_seq: int,
        previous_conversation_id: str | None = None,
        relations: list[ConversationRelation] | None = None,
        closure: ConversationClosure | None = None,
    ) -> Conversation:
        """Create a new active conversation in a session.

        Any active conversation of the session is closed in the same
        transaction, using closure when given, and announced as closed.

        Args:
            session_id: Session the conversation belongs to.
            tenant_id: Tenant of the session.
            start_seq: First message seq of the conversation.
            previous_conversation_id: Conversation to continue from.
            relations: Initial relations.
            closure: Snapshot applied to the conversation being closed.

        Returns:
            The created conversation.

        Raises:
            ConversationNotFoundError: The previous conversation does not exist.
            TenantMismatchError: The previous conversation belongs to another tenant.
            ActiveConversationConflictError: Lost a race with another create.
        """
        relations = list(relations or [])
        depth = 1
        if previous_conversation_id is not None:
            previous = await self._conversations.find_by_id(previous_conversation_id)
            if previous is None:
                raise ConversationNotFoundError(previous_conversation_id)
            if previous.tenant_id != tenant_id:
                raise TenantMismatchError(tenant_id, previous.tenant_id)
            depth = previous.depth + 1
            if all(r.conversation_id != previous.id for r in relations):
                relations.append(ConversationRelation(conversation_id=previous.id))

        now = datetime.now(timezone.utc)
        conversation = Conversation(
            id=str(uuid.uuid4()),
            session_id=session_id,
            tenant_id=tenant_id,
            status=ConversationStatus.ACTIVE,
            start_seq=start_seq,
            depth=depth,
            created_at=now,
            updated_at=now,
            previous_conversation_id=previous_conversation_id,
            relations=relations,
        )
        replaced = await self._conversations.find_active(session_id)
        created = await self._conversations.create(conversation, closure)
        logger.info(
            "Created conversation %s in session %s (start_seq=%d, depth=%d)",
            created.id,
            session_id,
            start_seq,
            depth,
        )
        if replaced is not None:
            logger.info("Closed conversation %s", replaced.id)
            await self._announce_closed(replaced.id)
        return created

    async def advance_end(self, conversation_id: str, end_seq: int) -> Conversation:
        """Move the end of an active conversation.

        Raises:
            ConversationNotFoundError: The conversation does not exist.
            ConversationNotActiveError: The conversation is closed.
        """
        return await self._conversations.advance_end(conversation_id, end_seq)

    async def close(
        self,
        conversation_id: str,
        closure: ConversationClosure | None = None,
    ) -> Conversation:
        """Close a conversation. Closing a closed conversation changes nothing.

        Raises:
            ConversationNotFoundError: The conversation does not exist.
        """
        existing = await self._conversations.find_by_id(conversation_id)
        if existing is None:
            raise ConversationNotFoundError(conversation_id)
        conversation = await self._conversations.close(
            conversation_id, closure or ConversationClosure()
        )
        if existing.is_active:
            logger.info("Closed conversation %s", conversation_id)
            await self._announce_closed(conversation_id)
        return conversation

    async def link(self, session_id: str, target_conversation_id: str) -> Conversation:
        """Mark the session's current conversation as a continuation of another.

        If the session has an active conversation, its previous link is
        overwritten and its depth recomputed. Otherwise a new conversation
        starting at the session's next seq is created.

        Args:
            session_id: Session whose conversation continues the target.
            target_conversation_id: Conversation being continued.

        Returns:
            The linked conversation.

        Raises:
            SessionNotFoundError: The session does not exist.
            ConversationNotFoundError: The target does not exist.
            TenantMismatchError: The target belongs to another tenant.
            ValueError: The target is the session's active conversation.
        """
        session = await self._require_session(session_id)
        target = await self._conversations.find_by_id(target_conversation_id)
        if target is None:
            raise ConversationNotFoundError(target_conversation_id)
        if target.tenant_id != session.tenant_id:
            raise TenantMismatchError(session.tenant_id, target.tenant_id)

        active = await self._conversations.find_active(session_id)
        if active is None:
            return await self.create(
                session_id=session.id,
                tenant_id=session.tenant_id,
                start_seq=session.next_seq,
                previous_conversation_id=target.id,
            )

        if active.id == target.id:
            raise ValueError(f"Conversation {target.id} cannot continue itself")
        linked = await self._conversations.set_previous(
            active.id, target.id, target.depth + 1
        )
        logger.info("Linked conversation %s to %s", active.id, target.id)
        return linked

    async def get_chain(
        self,
        conversation_id: str,
        max_depth: int = DEFAULT_CHAIN_DEPTH,
    ) -> list[Conversation]:
        """Follow previous links starting from a conversation.

        Stops after max_depth entries, on a missing link, or when an id
        repeats.

        Returns:
            Conversations, the starting one first.
        """
        chain: list[Conversation] = []
        seen: set[str] = set()
        current_id: str | None = conversation_id
        while current_id is not None and len(chain) < max_depth:
            if current_id in seen:
                logger.warning("Cycle detected in chain at conversation %s", current_id)
                break
            seen.add(current_id)
            conversation = await self._conversations.find_by_id(current_id)
            if conversation is None:
                break
            chain.append(conversation)
            current_id = conversation.previous_conversation_id
        return chain

    async def branch(self, session_id: str, message_id: str) -> Session:
        """Fork a session at a message.

        Raises:
            SessionNotFoundError: The session does not exist.
            MessageNotFoundError: The message is not part of the session.
        """
        source = await self._require_session(session_id)
        message = await self._sessions.find_message(message_id)
        if message is None or message.session_id != source.id:
            raise MessageNotFoundError(message_id, session_id)
        return await self._sessions.create_branch(source, message)

    async def get(self, conversation_id: str) -> Conversation | None:
        return await self._conversations.find_by_id(conversation_id)

    async def get_active(self, session_id: str) -> Conversation | None:
        return await self._conversations.find_active(session_id)

    async def list_by_session(
        self,
        session_id: str,
        limit: int = 20,
    ) -> list[Conversation]:
        return await self._conversations.find_by_session(session_id, limit)

    async def _announce_closed(self, conversation_id: str) -> None:
        if self._queue is None:
            return
        await self._queue.enqueue(
            Event(
                type=EventType.CONVERSATION_CLOSED,
                payload={"conversation_id": conversation_id},
            )
        )

    async def _require_session(self, session_id: str) -> Session:
        session = await self._sessions.find_by_id(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session
