"""Conversation boundary decision use case."""

import asyncio
import logging

from continuum.application.services.conversation_graph import ConversationGraph
from continuum.config import BoundaryConfig
from continuum.domain.entities import (
    BoundaryAction,
    BoundaryDecision,
    Conversation,
    ConversationClosure,
    ConversationMetadata,
    ConversationRelation,
    Message,
)
from continuum.domain.repositories import SessionRepository
from continuum.domain.services import TopicClassifier, detect_new_conversation_intent

logger = logging.getLogger(__name__)

UNTITLED = "Untitled"


class BoundaryDecisionUseCase:
    """Decides after each response whether the active conversation continues.

    Processing flow:
    1. Read the most recent window of the session.
    2. No active conversation: create one starting at the oldest message.
    3. The latest user message explicitly asks for a new topic: split
       without classifying.
    4. Otherwise classify the window against the active conversation and
       either extend it or close it and start a new one.

    Every failure is logged and reported as FAILED without changing state.
    """

    def __init__(
        self,
        session_repository: SessionRepository,
        conversation_graph: ConversationGraph,
        topic_classifier: TopicClassifier,
        config: BoundaryConfig,
    ) -> None:
        """Initialize the use case.

        Args:
            session_repository: Repository for reading recent messages.
            conversation_graph: Service for creating/extending conversations.
            topic_classifier: Same-topic judgment.
            config: Window size, minimum messages and timeout.
        """
        self._sessions = session_repository
        self._graph = conversation_graph
        self._classifier = topic_classifier
        self._config = config

    async def execute(self, session_id: str, tenant_id: str) -> BoundaryDecision:
        """Run one boundary decision for a session.

        Args:
            session_id: Session that just received a response.
            tenant_id: Tenant of the session.

        Returns:
            What the decision did. Never raises.
        """
        try:
            decision = await self._decide(session_id, tenant_id)
        except asyncio.TimeoutError:
            logger.warning(
                "Topic classification timed out after %ss for session %s",
                self._config.classification_timeout_seconds,
                session_id,
            )
            decision = BoundaryDecision.failed("classification timed out")
        except Exception as e:
            logger.exception("Boundary decision failed for session %s", session_id)
            decision = BoundaryDecision.failed(str(e))

        logger.info(
            "Boundary decision for session %s: %s %s",
            session_id,
            decision.action.value,
            decision.reason,
        )
        return decision

    async def _decide(self, session_id: str, tenant_id: str) -> BoundaryDecision:
        messages = await self._sessions.get_recent_messages(
            session_id, self._config.window_size
        )
        if len(messages) < self._config.min_messages:
            return BoundaryDecision.skipped(
                f"{len(messages)} messages, need {self._config.min_messages}"
            )
        latest_seq = messages[-1].seq

        active = await self._graph.get_active(session_id)
        if active is None:
            created = await self._graph.create(
                session_id=session_id,
                tenant_id=tenant_id,
                start_seq=messages[0].seq,
            )
            return BoundaryDecision(
                action=BoundaryAction.CREATED,
                conversation_id=created.id,
                reason=f"started at seq {created.start_seq}",
            )

        intent_seq = self._new_conversation_intent_seq(messages, active)
        if intent_seq is not None:
            return await self._split(
                active,
                tenant_id,
                start_seq=intent_seq,
                end_seq=latest_seq - 1,
                tags=list(active.tags),
                title=active.title or UNTITLED,
                reason="explicit new conversation intent",
            )

        result = await asyncio.wait_for(
            self._classifier.classify(messages, self._metadata_of(active)),
            timeout=self._config.classification_timeout_seconds,
        )

        if result.same_topic:
            await self._graph.advance_end(active.id, latest_seq)
            return BoundaryDecision(
                action=BoundaryAction.EXTENDED,
                conversation_id=active.id,
                reason=f"end_seq={latest_seq}",
            )

        start_seq = self._split_start_seq(messages, latest_seq)
        return await self._split(
            active,
            tenant_id,
            start_seq=start_seq,
            end_seq=latest_seq - 1,
            tags=list(result.new_tags or active.tags or []),
            title=active.title or result.suggested_title or UNTITLED,
            reason=f"topic shift, new conversation starts at seq {start_seq}",
        )

    async def _split(
        self,
        active: Conversation,
        tenant_id: str,
        start_seq: int,
        end_seq: int,
        tags: list[str],
        title: str,
        reason: str,
    ) -> BoundaryDecision:
        """Close the active conversation and continue in a new one."""
        summary = active.summary or f"Conversation about: {', '.join(tags) or title}"
        closure = ConversationClosure(
            title=title,
            summary=summary,
            tags=tags,
            end_seq=end_seq,
        )
        created = await self._graph.create(
            session_id=active.session_id,
            tenant_id=tenant_id,
            start_seq=start_seq,
            relations=[ConversationRelation(conversation_id=active.id)],
            closure=closure,
        )
        return BoundaryDecision(
            action=BoundaryAction.SPLIT,
            conversation_id=created.id,
            closed_conversation_id=active.id,
            reason=reason,
        )

    @staticmethod
    def _metadata_of(conversation: Conversation) -> ConversationMetadata:
        return ConversationMetadata(
            title=conversation.title,
            tags=list(conversation.tags),
            summary=conversation.summary,
        )

    @staticmethod
    def _new_conversation_intent_seq(
        messages: list[Message], active: Conversation
    ) -> int | None:
        """Seq of the latest user message if it asks for a new conversation.

        A message that already starts the active conversation does not
        split again.
        """
        for message in reversed(messages):
            if message.is_from_user:
                if message.seq > active.start_seq and detect_new_conversation_intent(
                    message.content
                ):
                    return message.seq
                return None
        return None

    @staticmethod
    def _split_start_seq(messages: list[Message], latest_seq: int) -> int:
        """The new conversation starts at the most recent user message."""
        for message in reversed(messages):
            if message.is_from_user:
                return message.seq
        return latest_seq
