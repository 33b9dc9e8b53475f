"""Protocol repository (implemented with SQLAlchemy and with date-bucketed JSON files)"""

from typing import Optional, Protocol
from uuid import UUID

from src.core.models import GameModel


class GameRepository(Protocol):
    """Persistence layer orchestration"""

    def get_game(self, game_id: UUID) -> GameModel | None:
        """Get game by ID, if record exists. Tombstoned records are returned too."""
        ...

    def create_game(self, game: GameModel) -> tuple[GameModel, UUID]:
        """Store new game and return the stored data + newly created game ID."""
        ...

    def update_game(
        self, game_id: UUID, game: GameModel, expected_revision: Optional[int] = None
    ) -> GameModel | None:
        """
        Replace an existing record as a whole.
        ----
        Raises StaleStateError if `expected_revision` is given and the stored record moved on.
        A missing win count is back-filled from the stored record.
        """
        ...

    def delete_game(self, game_id: UUID) -> GameModel | None:
        """Tombstone a game's record (it is never purged)."""
        ...
