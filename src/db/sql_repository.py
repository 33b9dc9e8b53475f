"""Implementation of (Game)Repository using SQLAlchemy"""

import logging
from typing import Any, Optional
from uuid import UUID, uuid4

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from src.core.exceptions import StaleStateError, StoreIOError
from src.core.models import GameModel
from src.db.schema import DBGame, utc_now

logger = logging.getLogger(__name__)


class SQLGameRepository:
    """
    Data stored using SQL / methods implemented using SQLAlchemy
    ----
    Every call opens its own short-lived session: calls arrive from different worker threads.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory

    def get_game(self, game_id: UUID) -> GameModel | None:
        """Get game by ID, if record exists."""
        try:
            with self.session_factory() as db:
                game_db = self._fetch_game(db, game_id)
                if game_db:
                    return self._to_model(game_db)
                return None
        except SQLAlchemyError as e:
            raise self._store_error("read", game_id, e) from e

    def create_game(self, game: GameModel) -> tuple[GameModel, UUID]:
        """Store new game and return the stored data + newly created game ID."""

        new_id = uuid4()
        try:
            with self.session_factory() as db:
                game_db = DBGame(
                    id=new_id,
                    **self._to_columns(game, fallback_win_count=None),
                    revision=1,
                )
                db.add(game_db)
                db.commit()
                db.refresh(game_db)
                return self._to_model(game_db), new_id
        except SQLAlchemyError as e:
            raise self._store_error("create", new_id, e) from e

    def update_game(
        self, game_id: UUID, game: GameModel, expected_revision: Optional[int] = None
    ) -> GameModel | None:
        """
        Replace an existing record.
        ----
        With `expected_revision` the write is a compare-and-swap: the UPDATE only matches the row
        while it still carries that revision.
        """
        try:
            with self.session_factory() as db:
                game_db = self._fetch_game(db, game_id)
                if not game_db:
                    return None
                if expected_revision is not None and game_db.revision != expected_revision:
                    raise StaleStateError(game_id, expected_revision, game_db.revision)

                query = update(DBGame).where(DBGame.id == game_id)
                if expected_revision is not None:
                    query = query.where(DBGame.revision == expected_revision)
                query = query.values(
                    **self._to_columns(game, fallback_win_count=game_db.win_count),
                    revision=DBGame.revision + 1,
                    updated_at=utc_now(),
                )
                result = db.execute(query)
                if result.rowcount == 0:
                    # lost the race between the read above and the UPDATE
                    db.rollback()
                    current = self._fetch_game(db, game_id)
                    raise StaleStateError(
                        game_id,
                        expected_revision if expected_revision is not None else -1,
                        current.revision if current else -1,
                    )
                db.commit()
                db.refresh(game_db)
                return self._to_model(game_db)
        except SQLAlchemyError as e:
            raise self._store_error("update", game_id, e) from e

    def delete_game(self, game_id: UUID) -> GameModel | None:
        """Tombstone a game's record."""
        try:
            with self.session_factory() as db:
                game_db = self._fetch_game(db, game_id)
                if not game_db:
                    return None
                # increment in SQL: a write that landed after the load above still counts
                db.execute(
                    update(DBGame)
                    .where(DBGame.id == game_id)
                    .values(deleted=True, revision=DBGame.revision + 1, updated_at=utc_now())
                )
                db.commit()
                db.refresh(game_db)
                return self._to_model(game_db)
        except SQLAlchemyError as e:
            raise self._store_error("delete", game_id, e) from e

    def _fetch_game(self, db: Session, game_id: UUID) -> DBGame | None:
        query = select(DBGame).where(DBGame.id == game_id)
        return db.scalar(query)

    def _to_columns(
        self, game: GameModel, fallback_win_count: Optional[dict[str, int]]
    ) -> dict[str, Any]:
        """Column values for a GameModel. The revision is owned by the repository."""
        win_count = game.win_count or fallback_win_count or {"player1": 0, "player2": 0}
        return {
            "board": list(game.board),
            "move_history": list(game.move_history),
            "current_player": game.current_player,
            "player_turn": game.player_turn,
            "winner": game.winner,
            "players": dict(game.players),
            "player_count": game.player_count,
            "win_count": dict(win_count),
            "is_draw": game.is_draw,
            "deleted": game.deleted,
        }

    def _to_model(self, game_db: DBGame) -> GameModel:
        """Convert SQLAlchemy model to data transfer model."""
        return GameModel(
            board=list(game_db.board),
            move_history=list(game_db.move_history),
            current_player=game_db.current_player,
            player_turn=game_db.player_turn,
            winner=game_db.winner,
            players=dict(game_db.players),
            player_count=game_db.player_count,
            win_count=dict(game_db.win_count),
            is_draw=game_db.is_draw,
            deleted=game_db.deleted,
            revision=game_db.revision,
        )

    @staticmethod
    def _store_error(operation: str, game_id: UUID, error: Exception) -> StoreIOError:
        logger.error("Database %s of game %s failed: %s", operation, game_id, error)
        return StoreIOError(f"Database {operation} failed for game {game_id}.")
