"""Orchestration of communication from API router to business logic and persistence layers (and the reverse direction)."""

import logging
from uuid import UUID

from src.api.models import (
    CreateGameRequest,
    DeleteGameRequest,
    GameState,
    GetGameRequest,
    JoinGameRequest,
    LeaveGameRequest,
    MoveRequest,
    MoveResponse,
    NewGameResponse,
    ReplaceGameRequest,
    ResetGameRequest,
    SeatResponse,
    SuccessResponse,
)
from src.core.exceptions import GameNotFoundError, StaleStateError
from src.core.models import GameModel
from src.core.shared_types import Symbol
from src.db.repository import GameRepository
from src.tictactoe.game import Game

logger = logging.getLogger(__name__)


class GameService:
    """Orchestration of layers for vanishing tic-tac-toe."""

    def __init__(self, repository: GameRepository, join_retries: int = 3) -> None:
        self.repo = repository
        self.join_retries = join_retries

    # -- API routes logic ---
    def create_blank_game(self) -> NewGameResponse:
        """Mint a game identifier with an unclaimed game behind it. The first join takes X."""
        blank = Game.new_game(player_count=0)
        _, game_id = self.repo.create_game(blank.to_model())
        logger.info("Created blank game %s", game_id)
        return NewGameResponse(game_id=game_id)

    def create_new_game(self, request: CreateGameRequest) -> SeatResponse:
        """First player requested to create a new game. The creator always plays X."""

        players = request.players.by_side() if request.players else {}
        new_game = Game.new_game(players=players, player_count=1)

        stored_game, game_id = self.repo.create_game(new_game.to_model())
        logger.info("Created game %s", game_id)

        return SeatResponse(
            game_id=game_id, symbol=Symbol.X, state=GameState.from_model(stored_game)
        )

    def join_game(self, request: JoinGameRequest) -> SeatResponse:
        """
        A player requested to join a game.
        ----
        The claim is written with the revision it was computed from. A concurrent joiner makes that write
        fail; the claim is then recomputed from the fresh state, so two joiners of an unclaimed game end up
        with different symbols.
        """
        players = request.players.by_side() if request.players else None

        attempt = 0
        while True:
            game = self._load_game(request.game_id)
            symbol = game.claim_seat(players, request.preferred_symbol)
            try:
                stored = self._save_game(request.game_id, game)
            except StaleStateError:
                if attempt >= self.join_retries:
                    raise
                attempt += 1
                logger.warning(
                    "Join of game %s lost a race, claiming again (attempt %d)",
                    request.game_id,
                    attempt,
                )
                continue

            logger.info("Player joined game %s as %s", request.game_id, symbol)
            return SeatResponse(
                game_id=request.game_id, symbol=symbol, state=GameState.from_model(stored)
            )

    def get_game_state(self, request: GetGameRequest) -> GameState:
        """
        Retrieve current game state.
        ----
        Clients normally follow the update stream instead of polling this.
        """
        game_model = self._fetch_game(request.game_id)
        return GameState.from_model(game_model)

    def replace_game_state(self, request: ReplaceGameRequest) -> SuccessResponse:
        """
        Overwrite the stored state with the one supplied by the client.
        ----
        Last writer wins, unless the body carries the revision it was based on.
        """
        updated = self.repo.update_game(
            request.game_id,
            request.state.to_model(),
            expected_revision=request.state.revision,
        )
        if updated is None:
            raise GameNotFoundError(request.game_id)
        return SuccessResponse()

    def make_move(self, request: MoveRequest) -> MoveResponse:
        """Make a move attempt."""

        game = self._load_game(request.game_id)

        # Illegal moves raise before anything is written
        outcome = game.make_move(request.index, request.symbol)

        after_move = self._save_game(request.game_id, game)
        if outcome.winner is not None:
            logger.info("Game %s won by %s", request.game_id, outcome.winner)

        return MoveResponse(
            placed=outcome.placed,
            vanished=outcome.vanished,
            winner=outcome.winner,
            state=GameState.from_model(after_move),
        )

    def reset_game(self, request: ResetGameRequest) -> GameState:
        """Clear the board for the next round (names and win counts are kept)."""
        game = self._load_game(request.game_id)
        game.reset()
        after_reset = self._save_game(request.game_id, game)
        logger.info("Game %s reset, %s opens", request.game_id, game.player_turn)
        return GameState.from_model(after_reset)

    def leave_game(self, request: LeaveGameRequest) -> GameState:
        """A player leaves. The returned state lets the client snapshot names and win counts."""
        game = self._load_game(request.game_id)
        game.release_seat()
        after_leave = self._save_game(request.game_id, game)
        return GameState.from_model(after_leave)

    def delete_game(self, request: DeleteGameRequest) -> SuccessResponse:
        """Handle a request to abandon a game: its record is tombstoned, watchers are told it is gone."""
        deleted = self.repo.delete_game(request.game_id)
        if deleted is None:
            raise GameNotFoundError(request.game_id)
        logger.info("Game %s deleted", request.game_id)
        return SuccessResponse()

    # -- Internal helpers --
    def _fetch_game(self, game_id: UUID) -> GameModel:
        """Attempt to find the game in the repository and raise error if it fails (a tombstone counts as gone)."""
        game_model = self.repo.get_game(game_id)
        if game_model is None or game_model.deleted:
            raise GameNotFoundError(game_id)
        return game_model

    def _load_game(self, game_id: UUID) -> Game:
        return Game.from_model(self._fetch_game(game_id))

    def _save_game(self, game_id: UUID, game: Game) -> GameModel:
        """Write back with the revision the game was loaded at."""
        stored = self.repo.update_game(
            game_id, game.to_model(), expected_revision=game.revision
        )
        if stored is None:
            raise GameNotFoundError(game_id)
        return stored
