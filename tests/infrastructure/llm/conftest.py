"""Common fixtures for LLM infrastructure tests."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from continuum.domain.entities import Message, MessageRole
from continuum.infrastructure.llm import LLMClient


@pytest.fixture
def timestamp() -> datetime:
    """Create test timestamp."""
    return datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def mock_client() -> MagicMock:
    """Create mock LLMClient."""
    client = MagicMock(spec=LLMClient)
    client.complete = AsyncMock(return_value="{}")
    return client


@pytest.fixture
def sample_messages(timestamp: datetime) -> list[Message]:
    """Create a short user/assistant exchange."""
    contents = [
        (MessageRole.USER, "Can you help me plan the kubernetes upgrade?"),
        (MessageRole.ASSISTANT, "Sure. Which version are you on?"),
        (MessageRole.USER, "1.27, and we want 1.30 before the end of the month."),
    ]
    return [
        Message(
            id=f"m-{seq}",
            session_id="s-1",
            tenant_id="t-1",
            seq=seq,
            role=role,
            content=content,
            created_at=timestamp,
        )
        for seq, (role, content) in enumerate(contents, start=1)
    ]
