"""Conversation summarization use case."""

import logging

from continuum.domain.entities import Conversation, MessageRole
from continuum.domain.repositories import ConversationRepository, SessionRepository
from continuum.domain.services import ConversationSummarizer

logger = logging.getLogger(__name__)

MIN_MESSAGES_FOR_SUMMARY = 2


class SummarizeConversationUseCase:
    """Writes an LLM summary onto a closed conversation."""

    def __init__(
        self,
        session_repository: SessionRepository,
        conversation_repository: ConversationRepository,
        summarizer: ConversationSummarizer,
    ) -> None:
        """Initialize the use case.

        Args:
            session_repository: Repository for reading messages.
            conversation_repository: Repository for conversations.
            summarizer: Summary generator.
        """
        self._sessions = session_repository
        self._conversations = conversation_repository
        self._summarizer = summarizer

    async def execute(self, conversation_id: str) -> Conversation | None:
        """Summarize a closed conversation once.

        Processing flow:
        1. Skip conversations that are missing, active or already summarized.
        2. Load user/assistant messages in [start_seq, end_seq].
        3. Fewer than two messages: keep the closing snapshot and mark summarized.
        4. Otherwise store the generated summary and mark summarized.

        LLM failures are logged and leave the conversation untouched so the
        next close event can retry.

        Args:
            conversation_id: Conversation to summarize.

        Returns:
            The updated conversation, or None when nothing was done.
        """
        conversation = await self._conversations.find_by_id(conversation_id)
        if conversation is None:
            logger.warning("Conversation %s not found for summary", conversation_id)
            return None
        if not conversation.is_closed or conversation.summarized:
            logger.debug(
                "Skipping summary of %s (status=%s, summarized=%s)",
                conversation_id,
                conversation.status.value,
                conversation.summarized,
            )
            return None

        end_seq = conversation.end_seq
        if end_seq is None:
            end_seq = conversation.start_seq
        messages = await self._sessions.find_messages_in_range(
            conversation.session_id, conversation.start_seq, end_seq
        )
        messages = [
            m for m in messages if m.role in (MessageRole.USER, MessageRole.ASSISTANT)
        ]

        if len(messages) < MIN_MESSAGES_FOR_SUMMARY:
            return await self._conversations.apply_summary(conversation_id, None)

        try:
            summary = await self._summarizer.summarize(messages)
        except Exception:
            logger.exception("Failed to summarize conversation %s", conversation_id)
            return None

        updated = await self._conversations.apply_summary(conversation_id, summary)
        logger.info(
            "Summarized conversation %s: %s (%d decisions)",
            conversation_id,
            updated.title,
            len(updated.decisions),
        )
        return updated
