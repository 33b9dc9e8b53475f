"""
Pytest will auto-discover / import this file called 'conftest.py'. ]
This file defines fixtures/variables required for testing multiple layers.
"""

from copy import deepcopy
from dataclasses import replace
from pathlib import Path
from typing import Generator, Optional
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.core.config import Settings
from src.core.exceptions import StaleStateError, StoreIOError
from src.core.models import GameModel
from src.db.schema import Base
from src.main import create_app

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def session_factory() -> Generator[sessionmaker[Session], None, None]:
    """Connection to a test database. Tables are removed at teardown to make unit tests of repository independent of each other."""
    Base.metadata.create_all(bind=engine)
    try:
        yield TestingSessionLocal
    finally:
        Base.metadata.drop_all(bind=engine)


class MockRepository:
    """Mock the GameRepository using a dictionary of game models."""

    def __init__(self) -> None:
        self._games: dict[UUID, GameModel] = {}
        # number of upcoming get_game calls that fail
        self.failing_reads = 0

    def create_game(self, game: GameModel) -> tuple[GameModel, UUID]:
        """Store new game and return the stored data + newly created game ID."""
        game_id = uuid4()
        stored = replace(deepcopy(game), revision=1)
        stored.win_count = stored.win_count or {"player1": 0, "player2": 0}
        self._games[game_id] = stored
        return deepcopy(stored), game_id

    def get_game(self, game_id: UUID) -> GameModel | None:
        """Get game by ID, if record exists."""
        if self.failing_reads > 0:
            self.failing_reads -= 1
            raise StoreIOError("mock store is down")
        return deepcopy(self._games.get(game_id))

    def update_game(
        self, game_id: UUID, game: GameModel, expected_revision: Optional[int] = None
    ) -> GameModel | None:
        """Add new info to existing record."""
        existing = self._games.get(game_id)
        if existing is None:
            return None
        if expected_revision is not None and existing.revision != expected_revision:
            raise StaleStateError(game_id, expected_revision, existing.revision)
        stored = replace(deepcopy(game), revision=existing.revision + 1)
        stored.win_count = stored.win_count or existing.win_count
        self._games[game_id] = stored
        return deepcopy(stored)

    def delete_game(self, game_id: UUID) -> GameModel | None:
        """Tombstone a game's record."""
        existing = self._games.get(game_id)
        if existing is None:
            return None
        existing.deleted = True
        existing.revision += 1
        return deepcopy(existing)

    def clear(self) -> None:
        """Clear the repository (useful in between tests)"""
        self._games.clear()


@pytest.fixture
def mock_repository() -> Generator[MockRepository, None, None]:
    """Ensures to clear the repository between tests"""
    repo = MockRepository()
    try:
        yield repo
    finally:
        repo.clear()


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings pointing at a throwaway SQLite file."""
    return Settings(
        store_backend="sql",
        database_url=f"sqlite:///{tmp_path / 'games.db'}",
        data_dir=str(tmp_path / "gameData"),
        poll_interval=0.01,
        max_backoff=0.05,
    )


@pytest.fixture
def client(test_settings: Settings) -> Generator[TestClient, None, None]:
    """Test client with lifespan (the State Store is built at startup)."""
    with TestClient(create_app(test_settings)) as client:
        yield client
