"""Tests for LLMTopicClassifier."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from continuum.domain.entities import ConversationMetadata, Message
from continuum.infrastructure.llm import ClassificationError, LLMError
from continuum.infrastructure.llm.topic_classifier import LLMTopicClassifier


@pytest.fixture
def classifier(mock_client: MagicMock) -> LLMTopicClassifier:
    """Create classifier instance."""
    return LLMTopicClassifier(client=mock_client)


@pytest.fixture
def metadata() -> ConversationMetadata:
    """Create active conversation metadata."""
    return ConversationMetadata(
        title="Kubernetes upgrade",
        tags=["kubernetes", "upgrade"],
        summary="Planning the cluster upgrade.",
    )


class TestClassify:
    """classify tests."""

    async def test_same_topic(
        self,
        classifier: LLMTopicClassifier,
        mock_client: MagicMock,
        sample_messages: list[Message],
        metadata: ConversationMetadata,
    ) -> None:
        mock_client.complete = AsyncMock(
            return_value='{"same_topic": true, "new_tags": [], "suggested_title": ""}'
        )

        result = await classifier.classify(sample_messages, metadata)

        assert result.same_topic is True
        assert result.new_tags is None
        assert result.suggested_title is None

    async def test_topic_shift(
        self,
        classifier: LLMTopicClassifier,
        mock_client: MagicMock,
        sample_messages: list[Message],
        metadata: ConversationMetadata,
    ) -> None:
        mock_client.complete = AsyncMock(
            return_value=(
                '{"same_topic": false, "new_tags": [" baking ", "", "bread"], '
                '"suggested_title": " Sourdough starter "}'
            )
        )

        result = await classifier.classify(sample_messages, metadata)

        assert result.same_topic is False
        assert result.new_tags == ["baking", "bread"]
        assert result.suggested_title == "Sourdough starter"

    async def test_json_embedded_in_text(
        self,
        classifier: LLMTopicClassifier,
        mock_client: MagicMock,
        sample_messages: list[Message],
        metadata: ConversationMetadata,
    ) -> None:
        mock_client.complete = AsyncMock(
            return_value='Here you go:\n```json\n{"same_topic": false}\n```'
        )

        result = await classifier.classify(sample_messages, metadata)

        assert result.same_topic is False

    async def test_missing_same_topic_means_same(
        self,
        classifier: LLMTopicClassifier,
        mock_client: MagicMock,
        sample_messages: list[Message],
        metadata: ConversationMetadata,
    ) -> None:
        mock_client.complete = AsyncMock(return_value='{"new_tags": ["x"]}')

        result = await classifier.classify(sample_messages, metadata)

        assert result.same_topic is True

    async def test_invalid_json_raises(
        self,
        classifier: LLMTopicClassifier,
        mock_client: MagicMock,
        sample_messages: list[Message],
        metadata: ConversationMetadata,
    ) -> None:
        mock_client.complete = AsyncMock(return_value="I think it is the same topic")

        with pytest.raises(ClassificationError):
            await classifier.classify(sample_messages, metadata)

    @pytest.mark.parametrize(
        "value", ['"false"', '"true"', "0", "1", "null", "[]"]
    )
    async def test_non_boolean_same_topic_raises(
        self,
        classifier: LLMTopicClassifier,
        mock_client: MagicMock,
        sample_messages: list[Message],
        metadata: ConversationMetadata,
        value: str,
    ) -> None:
        mock_client.complete = AsyncMock(
            return_value=f'{{"same_topic": {value}, "new_tags": ["billing"]}}'
        )

        with pytest.raises(ClassificationError, match="same_topic must be a boolean"):
            await classifier.classify(sample_messages, metadata)

    async def test_llm_error_propagates(
        self,
        classifier: LLMTopicClassifier,
        mock_client: MagicMock,
        sample_messages: list[Message],
        metadata: ConversationMetadata,
    ) -> None:
        mock_client.complete = AsyncMock(side_effect=LLMError("API error"))

        with pytest.raises(LLMError):
            await classifier.classify(sample_messages, metadata)


class TestPrompt:
    """Prompt construction tests."""

    async def test_prompt_contains_metadata_and_transcript(
        self,
        classifier: LLMTopicClassifier,
        mock_client: MagicMock,
        sample_messages: list[Message],
        metadata: ConversationMetadata,
    ) -> None:
        mock_client.complete = AsyncMock(return_value='{"same_topic": true}')

        await classifier.classify(sample_messages, metadata)

        llm_messages = mock_client.complete.call_args.args[0]
        assert llm_messages[0]["role"] == "system"
        assert "topic classifier" in llm_messages[0]["content"]
        user_content = llm_messages[1]["content"]
        assert 'title="Kubernetes upgrade"' in user_content
        assert "kubernetes, upgrade" in user_content
        assert "[1] user: Can you help me plan the kubernetes upgrade?" in user_content
        assert "[2] assistant: Sure. Which version are you on?" in user_content
        assert mock_client.complete.call_args.kwargs["max_tokens"] == 256

    async def test_prompt_without_context(
        self,
        classifier: LLMTopicClassifier,
        mock_client: MagicMock,
        sample_messages: list[Message],
    ) -> None:
        mock_client.complete = AsyncMock(return_value='{"same_topic": true}')

        await classifier.classify(sample_messages, ConversationMetadata())

        user_content = mock_client.complete.call_args.args[0][1]["content"]
        assert "No current conversation context." in user_content

    async def test_long_messages_are_truncated(
        self,
        classifier: LLMTopicClassifier,
        mock_client: MagicMock,
        sample_messages: list[Message],
        metadata: ConversationMetadata,
    ) -> None:
        long_message = Message(
            id="m-9",
            session_id="s-1",
            tenant_id="t-1",
            seq=9,
            role=sample_messages[0].role,
            content="a" * 400 + "TAIL",
            created_at=sample_messages[0].created_at,
        )
        mock_client.complete = AsyncMock(return_value='{"same_topic": true}')

        await classifier.classify([long_message], metadata)

        user_content = mock_client.complete.call_args.args[0][1]["content"]
        assert "a" * 300 in user_content
        assert "TAIL" not in user_content
