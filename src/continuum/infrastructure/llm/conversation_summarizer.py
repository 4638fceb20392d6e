"""LLM-based conversation summarizer."""

import json
import logging
import re
from typing import Any

from continuum.domain.entities import ConversationSummary, Decision, Message
from continuum.infrastructure.llm.client import LLMClient
from continuum.infrastructure.llm.exceptions import SummarizationError
from continuum.infrastructure.llm.templates import create_jinja_env

logger = logging.getLogger(__name__)

SUMMARY_MAX_TOKENS = 500
MAX_TAGS = 7
MAX_TITLE_CHARS = 60


class LLMConversationSummarizer:
    """LLM-based conversation summarization service."""

    def __init__(self, client: LLMClient) -> None:
        """Initialize the summarizer.

        Args:
            client: LLM client for text generation.
        """
        self._client = client
        self._jinja_env = create_jinja_env()
        self._system_template = self._jinja_env.get_template(
            "conversation_summary_system.j2"
        )
        self._user_template = self._jinja_env.get_template(
            "conversation_summary_user.j2"
        )

    async def summarize(self, messages: list[Message]) -> ConversationSummary:
        """Summarize messages of one conversation.

        Args:
            messages: Messages of the conversation (oldest first).

        Returns:
            Title, summary, tags and decisions.

        Raises:
            LLMError: The LLM call failed.
            SummarizationError: The response was not valid JSON.
        """
        llm_messages = [
            {"role": "system", "content": self._system_template.render()},
            {"role": "user", "content": self._user_template.render(messages=messages)},
        ]
        response = await self._client.complete(
            llm_messages, max_tokens=SUMMARY_MAX_TOKENS
        )
        return self._parse_response(response)

    def _parse_response(self, response: str) -> ConversationSummary:
        """Parse LLM response to ConversationSummary.

        Decisions are nested objects, so the outermost braces are extracted.

        Args:
            response: LLM response string.

        Returns:
            Parsed summary. Malformed tags and decisions are dropped.

        Raises:
            SummarizationError: No JSON object could be decoded.
        """
        try:
            json_match = re.search(r"\{[\s\S]*\}", response)
            data = json.loads(json_match.group() if json_match else response)
            if not isinstance(data, dict):
                raise TypeError(f"Expected a JSON object, got {type(data).__name__}")
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning("Failed to parse summary response: %s", e)
            raise SummarizationError(f"Failed to parse LLM response: {e}") from e

        title = self._clean_text(data.get("title"))
        if title:
            title = title[:MAX_TITLE_CHARS]

        return ConversationSummary(
            title=title,
            summary=self._clean_text(data.get("summary")),
            tags=self._parse_tags(data.get("tags")),
            decisions=self._parse_decisions(data.get("decisions")),
        )

    @staticmethod
    def _clean_text(value: Any) -> str | None:
        if not isinstance(value, str) or not value.strip():
            return None
        return value.strip()

    @staticmethod
    def _parse_tags(value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        tags = [tag.strip() for tag in value if isinstance(tag, str) and tag.strip()]
        return tags[:MAX_TAGS]

    @staticmethod
    def _parse_decisions(value: Any) -> list[Decision]:
        if not isinstance(value, list):
            return []
        decisions = []
        for item in value:
            if not isinstance(item, dict):
                continue
            what = item.get("what")
            if not isinstance(what, str) or not what.strip():
                continue
            reasoning = item.get("reasoning")
            decisions.append(
                Decision(
                    what=what.strip(),
                    reasoning=reasoning.strip()
                    if isinstance(reasoning, str) and reasoning.strip()
                    else None,
                )
            )
        return decisions
