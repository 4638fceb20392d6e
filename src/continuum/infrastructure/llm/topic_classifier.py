"""LLM-based topic classifier."""

import json
import logging
import re

from continuum.domain.entities import (
    ClassificationResult,
    ConversationMetadata,
    Message,
)
from continuum.infrastructure.llm.client import LLMClient
from continuum.infrastructure.llm.exceptions import ClassificationError
from continuum.infrastructure.llm.templates import create_jinja_env, format_message

logger = logging.getLogger(__name__)

MAX_CONTENT_CHARS = 300
CLASSIFIER_MAX_TOKENS = 256


class LLMTopicClassifier:
    """LLM-based topic classifier.

    Asks the model whether the recent window of a session still belongs
    to the active conversation.
    """

    def __init__(self, client: LLMClient) -> None:
        """Initialize the classifier.

        Args:
            client: LLM client for making API calls.
        """
        self._client = client
        self._jinja_env = create_jinja_env()
        self._system_template = self._jinja_env.get_template(
            "topic_classifier_system.j2"
        )
        self._user_template = self._jinja_env.get_template("topic_classifier_user.j2")

    async def classify(
        self,
        messages: list[Message],
        metadata: ConversationMetadata,
    ) -> ClassificationResult:
        """Classify messages against the active conversation.

        Args:
            messages: Recent messages (oldest first).
            metadata: Title, tags and summary of the active conversation.

        Returns:
            Classification result.

        Raises:
            LLMError: The LLM call failed.
            ClassificationError: The response was not valid JSON.
        """
        llm_messages = self._build_messages(messages, metadata)
        response = await self._client.complete(
            llm_messages, max_tokens=CLASSIFIER_MAX_TOKENS
        )
        result = self._parse_response(response)
        logger.info(
            "Topic classification: same_topic=%s, suggested_title=%s",
            result.same_topic,
            result.suggested_title,
        )
        return result

    def _build_messages(
        self,
        messages: list[Message],
        metadata: ConversationMetadata,
    ) -> list[dict[str, str]]:
        """Build messages for LLM.

        Args:
            messages: Recent messages.
            metadata: Active conversation metadata.

        Returns:
            OpenAI-format message list.
        """
        transcript = [
            format_message(message, MAX_CONTENT_CHARS) for message in messages
        ]
        has_context = bool(metadata.title or metadata.tags or metadata.summary)
        user_content = self._user_template.render(
            metadata=metadata,
            has_context=has_context,
            transcript=transcript,
        )
        return [
            {"role": "system", "content": self._system_template.render()},
            {"role": "user", "content": user_content},
        ]

    def _parse_response(self, response: str) -> ClassificationResult:
        """Parse LLM response to ClassificationResult.

        Attempts to extract JSON from the response. A missing same_topic
        key is read as "same topic"; any other non-boolean value is an error.

        Args:
            response: LLM response string.

        Returns:
            Parsed classification result.

        Raises:
            ClassificationError: No JSON object could be decoded, or
                same_topic is not a boolean.
        """
        try:
            # Try to extract JSON from response (may be embedded in text)
            json_match = re.search(r"\{[^{}]*\}", response)
            if json_match:
                data = json.loads(json_match.group())
            else:
                data = json.loads(response)
            if not isinstance(data, dict):
                raise TypeError(f"Expected a JSON object, got {type(data).__name__}")
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning("Failed to parse classification response: %s", e)
            raise ClassificationError(f"Failed to parse LLM response: {e}") from e

        same_topic = data.get("same_topic", True)
        if not isinstance(same_topic, bool):
            logger.warning("Non-boolean same_topic in classification: %r", same_topic)
            raise ClassificationError(
                f"same_topic must be a boolean, got {same_topic!r}"
            )

        new_tags = data.get("new_tags")
        if isinstance(new_tags, list):
            new_tags = [str(tag).strip() for tag in new_tags if str(tag).strip()]
        else:
            new_tags = None

        suggested_title = data.get("suggested_title")
        if not isinstance(suggested_title, str) or not suggested_title.strip():
            suggested_title = None

        return ClassificationResult(
            same_topic=same_topic,
            new_tags=new_tags or None,
            suggested_title=suggested_title.strip() if suggested_title else None,
        )
