"""Tests for SummarizeConversationUseCase."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from continuum.application.services import ConversationGraph
from continuum.application.use_cases import SummarizeConversationUseCase
from continuum.domain.entities import (
    ConversationClosure,
    ConversationSummary,
    Decision,
    MessageRole,
    Session,
)
from continuum.infrastructure.llm import SummarizationError
from continuum.infrastructure.persistence import (
    SQLiteConversationRepository,
    SQLiteSessionRepository,
)


@pytest.fixture
def summarizer() -> MagicMock:
    """Create mock ConversationSummarizer."""
    mock = MagicMock()
    mock.summarize = AsyncMock(
        return_value=ConversationSummary(
            title="Deploy pipeline",
            summary="Set up CI with blue/green deploys.",
            tags=["ci", "deploy"],
            decisions=[Decision(what="use blue/green", reasoning="zero downtime")],
        )
    )
    return mock


@pytest.fixture
def use_case(
    session_repository: SQLiteSessionRepository,
    conversation_repository: SQLiteConversationRepository,
    summarizer: MagicMock,
) -> SummarizeConversationUseCase:
    """Create use case instance."""
    return SummarizeConversationUseCase(
        session_repository=session_repository,
        conversation_repository=conversation_repository,
        summarizer=summarizer,
    )


@pytest.fixture
def graph(
    session_repository: SQLiteSessionRepository,
    conversation_repository: SQLiteConversationRepository,
) -> ConversationGraph:
    """Create graph over in-memory repositories."""
    return ConversationGraph(session_repository, conversation_repository)


@pytest.fixture
async def session(session_repository: SQLiteSessionRepository) -> Session:
    """Create a session with a user/assistant exchange and a system note."""
    created = await session_repository.create("tenant-1", "web", "user-1")
    await session_repository.append_message(created.id, MessageRole.USER, "CI help")
    await session_repository.append_message(created.id, MessageRole.SYSTEM, "note")
    await session_repository.append_message(created.id, MessageRole.ASSISTANT, "sure")
    return created


class TestSummarize:
    """execute tests."""

    async def test_summarizes_closed_conversation(
        self,
        use_case: SummarizeConversationUseCase,
        graph: ConversationGraph,
        summarizer: MagicMock,
        session: Session,
    ) -> None:
        conversation = await graph.create(session.id, "tenant-1", start_seq=1)
        await graph.close(conversation.id, ConversationClosure(end_seq=3))

        updated = await use_case.execute(conversation.id)

        assert updated is not None
        assert updated.summarized
        assert updated.title == "Deploy pipeline"
        assert updated.tags == ["ci", "deploy"]
        assert updated.decisions == [
            Decision(what="use blue/green", reasoning="zero downtime")
        ]
        messages = summarizer.summarize.call_args.args[0]
        assert [m.role for m in messages] == [MessageRole.USER, MessageRole.ASSISTANT]

    async def test_summarizes_once(
        self,
        use_case: SummarizeConversationUseCase,
        graph: ConversationGraph,
        summarizer: MagicMock,
        session: Session,
    ) -> None:
        conversation = await graph.create(session.id, "tenant-1", start_seq=1)
        await graph.close(conversation.id, ConversationClosure(end_seq=3))

        await use_case.execute(conversation.id)

        assert await use_case.execute(conversation.id) is None
        summarizer.summarize.assert_awaited_once()

    async def test_short_conversation_keeps_snapshot(
        self,
        use_case: SummarizeConversationUseCase,
        graph: ConversationGraph,
        summarizer: MagicMock,
        session: Session,
    ) -> None:
        conversation = await graph.create(session.id, "tenant-1", start_seq=1)
        await graph.close(
            conversation.id, ConversationClosure(title="Short", end_seq=1)
        )

        updated = await use_case.execute(conversation.id)

        assert updated is not None
        assert updated.summarized
        assert updated.title == "Short"
        summarizer.summarize.assert_not_awaited()

    async def test_skips_active_conversation(
        self,
        use_case: SummarizeConversationUseCase,
        graph: ConversationGraph,
        summarizer: MagicMock,
        session: Session,
    ) -> None:
        conversation = await graph.create(session.id, "tenant-1", start_seq=1)

        assert await use_case.execute(conversation.id) is None
        summarizer.summarize.assert_not_awaited()

    async def test_missing_conversation(
        self, use_case: SummarizeConversationUseCase
    ) -> None:
        assert await use_case.execute("missing") is None

    async def test_summarizer_failure_leaves_conversation(
        self,
        use_case: SummarizeConversationUseCase,
        graph: ConversationGraph,
        conversation_repository: SQLiteConversationRepository,
        summarizer: MagicMock,
        session: Session,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        conversation = await graph.create(session.id, "tenant-1", start_seq=1)
        await graph.close(conversation.id, ConversationClosure(end_seq=3))
        summarizer.summarize.side_effect = SummarizationError("bad json")

        assert await use_case.execute(conversation.id) is None

        stored = await conversation_repository.find_by_id(conversation.id)
        assert stored is not None
        assert not stored.summarized
        assert "Failed to summarize conversation" in caplog.text
