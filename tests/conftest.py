"""Shared fixtures: in-memory database and SQLite repositories."""

from collections.abc import AsyncGenerator

import pytest

from continuum.infrastructure.persistence import (
    DatabaseManager,
    SQLiteConversationRepository,
    SQLitePresenceRepository,
    SQLiteSessionRepository,
    SQLiteTopicRepository,
)


@pytest.fixture
async def db_manager() -> AsyncGenerator[DatabaseManager, None]:
    """Create in-memory database with all tables."""
    manager = DatabaseManager(":memory:")
    await manager.create_tables()
    yield manager
    await manager.close()


@pytest.fixture
def session_repository(db_manager: DatabaseManager) -> SQLiteSessionRepository:
    """Create session repository."""
    return SQLiteSessionRepository(db_manager.get_session)


@pytest.fixture
def conversation_repository(
    db_manager: DatabaseManager,
) -> SQLiteConversationRepository:
    """Create conversation repository."""
    return SQLiteConversationRepository(db_manager.get_session)


@pytest.fixture
def topic_repository(db_manager: DatabaseManager) -> SQLiteTopicRepository:
    """Create topic repository."""
    return SQLiteTopicRepository(db_manager.get_session)


@pytest.fixture
def presence_repository(db_manager: DatabaseManager) -> SQLitePresenceRepository:
    """Create presence repository."""
    return SQLitePresenceRepository(db_manager.get_session)
