"""Tests for LLMConversationSummarizer."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from continuum.domain.entities import Decision, Message
from continuum.infrastructure.llm import LLMError, SummarizationError
from continuum.infrastructure.llm.conversation_summarizer import (
    LLMConversationSummarizer,
)


@pytest.fixture
def summarizer(mock_client: MagicMock) -> LLMConversationSummarizer:
    """Create summarizer instance."""
    return LLMConversationSummarizer(client=mock_client)


class TestSummarize:
    """summarize tests."""

    async def test_parses_full_response(
        self,
        summarizer: LLMConversationSummarizer,
        mock_client: MagicMock,
        sample_messages: list[Message],
    ) -> None:
        mock_client.complete = AsyncMock(
            return_value="""{
  "title": "Kubernetes 1.30 upgrade plan",
  "summary": "User wants to move from 1.27 to 1.30 this month.",
  "tags": ["kubernetes", "upgrade", "planning"],
  "decisions": [
    {"what": "Upgrade to 1.30", "reasoning": "1.27 is end of life"},
    {"what": "Do it before month end"}
  ]
}"""
        )

        summary = await summarizer.summarize(sample_messages)

        assert summary.title == "Kubernetes 1.30 upgrade plan"
        assert summary.summary == "User wants to move from 1.27 to 1.30 this month."
        assert summary.tags == ["kubernetes", "upgrade", "planning"]
        assert summary.decisions == [
            Decision(what="Upgrade to 1.30", reasoning="1.27 is end of life"),
            Decision(what="Do it before month end"),
        ]

    async def test_prompt_contains_transcript(
        self,
        summarizer: LLMConversationSummarizer,
        mock_client: MagicMock,
        sample_messages: list[Message],
    ) -> None:
        mock_client.complete = AsyncMock(return_value='{"title": "x"}')

        await summarizer.summarize(sample_messages)

        llm_messages = mock_client.complete.call_args.args[0]
        assert llm_messages[0]["role"] == "system"
        assert '"decisions"' in llm_messages[0]["content"]
        assert "user: Can you help me plan the kubernetes upgrade?" in (
            llm_messages[1]["content"]
        )
        assert mock_client.complete.call_args.kwargs["max_tokens"] == 500

    async def test_limits_and_cleanup(
        self,
        summarizer: LLMConversationSummarizer,
        mock_client: MagicMock,
        sample_messages: list[Message],
    ) -> None:
        """Long titles are cut, tags capped, malformed decisions dropped."""
        mock_client.complete = AsyncMock(
            return_value=(
                '{"title": "' + "t" * 80 + '", "summary": "  ", '
                '"tags": ["a", "b", "c", "d", "e", "f", "g", "h", 3], '
                '"decisions": ["plain string", {"what": ""}, {"what": "Keep"}]}'
            )
        )

        summary = await summarizer.summarize(sample_messages)

        assert summary.title == "t" * 60
        assert summary.summary is None
        assert summary.tags == ["a", "b", "c", "d", "e", "f", "g"]
        assert summary.decisions == [Decision(what="Keep")]

    async def test_markdown_wrapped_json(
        self,
        summarizer: LLMConversationSummarizer,
        mock_client: MagicMock,
        sample_messages: list[Message],
    ) -> None:
        mock_client.complete = AsyncMock(
            return_value='```json\n{"title": "Wrapped", "decisions": []}\n```'
        )

        summary = await summarizer.summarize(sample_messages)

        assert summary.title == "Wrapped"
        assert summary.decisions == []

    async def test_invalid_json_raises(
        self,
        summarizer: LLMConversationSummarizer,
        mock_client: MagicMock,
        sample_messages: list[Message],
    ) -> None:
        mock_client.complete = AsyncMock(return_value="no json here")

        with pytest.raises(SummarizationError):
            await summarizer.summarize(sample_messages)

    async def test_llm_error_propagates(
        self,
        summarizer: LLMConversationSummarizer,
        mock_client: MagicMock,
        sample_messages: list[Message],
    ) -> None:
        mock_client.complete = AsyncMock(side_effect=LLMError("API error"))

        with pytest.raises(LLMError):
            await summarizer.summarize(sample_messages)
