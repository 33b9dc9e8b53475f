"""
The Game class will be the entrypoint into the domain layer for the service layer.
It is responsible for orchestrating the rules required to play a turn of vanishing tic-tac-toe -->
passes this information to the service layer, which can then pass it onwards to the API layer.
"""

from dataclasses import dataclass, field
from typing import Optional, Self

from src.core.exceptions import (
    CellOccupiedError,
    GameOverError,
    GameStateError,
    NotYourTurnError,
)
from src.core.models import GameModel
from src.core.shared_types import Side, Symbol
from src.tictactoe.board import Board

MAX_PLAYERS = 2


@dataclass
class MoveOutcome:
    """What happened on the board during an accepted move."""

    placed: int
    symbol: Symbol
    vanished: Optional[int] = None
    winner: Optional[Symbol] = None


@dataclass
class Game:
    # --- DOMAIN LAYER API CALLED BY SERVICE---

    board: Board
    move_history: list[int]
    player_turn: Symbol
    winner: Optional[Symbol]
    players: dict[Side, str]
    player_count: int
    win_count: dict[Side, int] = field(
        default_factory=lambda: {Side.PLAYER1: 0, Side.PLAYER2: 0}
    )
    deleted: bool = False
    revision: int = 0

    @classmethod
    def from_model(cls, model: GameModel) -> Self:
        """Define how to construct a Game from the information the Service layer actually has"""

        # Validation
        if model.current_player != model.player_turn:
            raise GameStateError(
                f"Corrupted state: currentPlayer {model.current_player!r} does not match playerTurn {model.player_turn!r}."
            )
        try:
            board = Board.from_cells(model.board)
            player_turn = Symbol(model.player_turn)
            winner = Symbol(model.winner) if model.winner else None
        except ValueError as e:
            raise GameStateError(f"Cannot interpret stored state: {e}") from e

        if len(model.move_history) != board.occupied_count():
            raise GameStateError(
                f"Corrupted state: {len(model.move_history)} moves recorded for {board.occupied_count()} marks on the board."
            )

        players = {side: model.players.get(side.value, "") for side in Side}
        # records written before win counts existed start from zero
        stored_count = model.win_count or {}
        win_count = {side: int(stored_count.get(side.value, 0)) for side in Side}

        return cls(
            board=board,
            move_history=list(model.move_history),
            player_turn=player_turn,
            winner=winner,
            players=players,
            player_count=model.player_count,
            win_count=win_count,
            deleted=model.deleted,
            revision=model.revision,
        )

    def to_model(self) -> GameModel:
        """Encode back into a format the Service layer uses"""

        return GameModel(
            board=self.board.to_cells(),
            move_history=list(self.move_history),
            current_player=str(self.player_turn),
            player_turn=str(self.player_turn),
            winner=str(self.winner) if self.winner else None,
            players={side.value: name for side, name in self.players.items()},
            player_count=self.player_count,
            win_count={side.value: count for side, count in self.win_count.items()},
            is_draw=False,
            deleted=self.deleted,
            revision=self.revision,
        )

    @classmethod
    def new_game(
        cls, players: Optional[dict[Side, str]] = None, player_count: int = 0
    ) -> Self:
        """
        Fresh board, X to open, zero win counts.
        ----
        With no names given the game is "blank": the first join fills in the names.
        """
        names = {side: "" for side in Side}
        if players is not None:
            names.update(
                {side: players.get(side) or side.default_name for side in Side}
            )
        return cls(
            board=Board(),
            move_history=[],
            player_turn=Symbol.X,
            winner=None,
            players=names,
            player_count=player_count,
        )

    @property
    def current_player(self) -> Symbol:
        """Symbol that places the next mark. Always equal to `player_turn`."""
        return self.player_turn

    def make_move(self, index: int, symbol: Symbol) -> MoveOutcome:
        """
        Attempt to place `symbol` on the cell `index`
        -----

        1. reject if the round is over, it is not your turn, or the cell is taken (state stays untouched)
        2. place the mark and record the move
        3. a completed line wins the round: count the win and stop (no vanishing, no turn change)
        4. a full board loses its oldest mark (the vanishing rule)
        5. hand the turn to the opponent
        """
        self._assert_playable(index, symbol)

        self.board.place(index, symbol)
        self.move_history.append(index)
        outcome = MoveOutcome(placed=index, symbol=symbol)

        winner = self.board.winner()
        if winner is not None:
            self.winner = winner
            self.win_count[winner.side] += 1
            outcome.winner = winner
            return outcome

        if self.board.is_full():
            outcome.vanished = self._vanish_oldest_move()

        self.player_turn = self.player_turn.opponent
        return outcome

    def reset(self) -> None:
        """
        Start the next round with the same players.
        The loser of the previous round opens; without a winner X opens.
        Win counts and names survive.
        """
        opener = self.winner.opponent if self.winner is not None else Symbol.X
        self.board = Board()
        self.move_history = []
        self.winner = None
        self.player_turn = opener

    def claim_seat(
        self,
        players: Optional[dict[Side, str]] = None,
        preferred_symbol: Optional[Symbol] = None,
    ) -> Symbol:
        """
        A client joins this game. Returns the symbol it plays.
        -----

        * names: only empty slots are filled, with the supplied name or the side's default name
        * the player count becomes 2 (no hard seat limit)
        * symbol: the preferred one (a returning client), otherwise X on an unclaimed game and O once someone claimed it
        """
        if self.deleted:
            raise GameStateError("Cannot join a game that was abandoned.")

        supplied = players or {}
        for side in Side:
            if not self.players.get(side):
                self.players[side] = supplied.get(side) or side.default_name

        count_before = self.player_count
        self.player_count = MAX_PLAYERS

        if preferred_symbol is not None:
            return preferred_symbol
        return Symbol.X if count_before == 0 else Symbol.O

    def release_seat(self) -> None:
        """A client left. Keep at least one seat claimed so the game stays easy to rejoin."""
        self.player_count = max(1, self.player_count - 1)

    # -- PRIVATE HELPERS ---
    def _assert_playable(self, index: int, symbol: Symbol) -> None:
        if self.winner is not None:
            raise GameOverError(
                f"Round is over, {self.winner} won. Reset the game to play again."
            )
        if symbol != self.player_turn:
            raise NotYourTurnError(
                f"It is not your turn. Waiting for {self.player_turn} to make a move first."
            )
        if not self.board.is_empty(index):
            raise CellOccupiedError(f"Cell {index} is already taken.")

    def _vanish_oldest_move(self) -> int:
        """The head of the move history is always the oldest mark still on the board."""
        oldest = self.move_history.pop(0)
        self.board.clear(oldest)
        return oldest
