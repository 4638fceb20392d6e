"""Tests for DatabaseManager."""

from pathlib import Path

from sqlalchemy import inspect

from continuum.infrastructure.persistence import DatabaseManager


class TestDatabaseManager:
    """DatabaseManager tests."""

    def test_get_engine_with_valid_path(self, tmp_path: Path) -> None:
        """Test engine creation with valid path."""
        manager = DatabaseManager(str(tmp_path / "test.db"))

        engine = manager.get_engine()

        assert "sqlite" in str(engine.url)
        assert manager.get_engine() is engine

    def test_get_engine_creates_parent_directory(self, tmp_path: Path) -> None:
        """Test that parent directory is created if not exists."""
        db_path = tmp_path / "subdir" / "nested" / "test.db"
        manager = DatabaseManager(str(db_path))

        manager.get_engine()

        assert db_path.parent.exists()

    async def test_create_tables(self, tmp_path: Path) -> None:
        """Test that all tables are created and a second call is a no-op."""
        manager = DatabaseManager(str(tmp_path / "test.db"))
        await manager.create_tables()
        await manager.create_tables()

        async with manager.get_engine().connect() as conn:
            tables = await conn.run_sync(
                lambda sync_conn: inspect(sync_conn).get_table_names()
            )
        await manager.close()

        assert {
            "sessions",
            "messages",
            "conversations",
            "topics",
            "presence_states",
        } <= set(tables)

    async def test_is_healthy(self) -> None:
        """Test health check on a working database."""
        manager = DatabaseManager(":memory:")
        await manager.create_tables()

        assert await manager.is_healthy() is True
        await manager.close()

    async def test_close_resets_engine(self) -> None:
        """Test that close disposes the engine and a new one can be created."""
        manager = DatabaseManager(":memory:")
        first = manager.get_engine()

        await manager.close()

        assert manager.get_engine() is not first
        await manager.close()
