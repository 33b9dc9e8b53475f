"""Requests and Response models"""

from typing import Optional, Self
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from src.core.exceptions import InvalidRequestError
from src.core.models import GameModel
from src.core.shared_types import Side, Symbol
from src.tictactoe.board import BOARD_SIZE


class CamelModel(BaseModel):
    """JSON field names are camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PlayerNames(CamelModel):
    player1: str = ""
    player2: str = ""

    def by_side(self) -> dict[Side, str]:
        return {Side.PLAYER1: self.player1, Side.PLAYER2: self.player2}


class WinCount(CamelModel):
    player1: int = Field(default=0, ge=0)
    player2: int = Field(default=0, ge=0)


class GameState(CamelModel):
    """The full state of one game as exchanged with clients."""

    board: list[Optional[Symbol]]
    move_history: list[int]
    current_player: Symbol
    winner: Optional[Symbol] = None
    players: PlayerNames
    is_draw: bool = False
    player_turn: Symbol
    player_count: int = Field(ge=0)
    deleted: bool = False
    win_count: Optional[WinCount] = None
    revision: Optional[int] = None

    @field_validator("board")
    @classmethod
    def validate_board(cls, value: list[Optional[Symbol]]) -> list[Optional[Symbol]]:
        if len(value) != BOARD_SIZE:
            raise InvalidRequestError(
                f"Board must contain {BOARD_SIZE} cells, got {len(value)}."
            )
        return value

    @field_validator("move_history")
    @classmethod
    def validate_move_history(cls, value: list[int]) -> list[int]:
        if any(not 0 <= index < BOARD_SIZE for index in value):
            raise InvalidRequestError(
                f"Move history may only contain cell indices 0..{BOARD_SIZE - 1}."
            )
        return value

    @classmethod
    def from_model(cls, model: GameModel) -> Self:
        return cls(
            board=model.board,
            move_history=model.move_history,
            current_player=model.current_player,
            winner=model.winner,
            players=PlayerNames(**model.players),
            is_draw=model.is_draw,
            player_turn=model.player_turn,
            player_count=model.player_count,
            deleted=model.deleted,
            win_count=WinCount(**model.win_count) if model.win_count else None,
            revision=model.revision,
        )

    def to_model(self) -> GameModel:
        return GameModel(
            board=[str(cell) if cell else None for cell in self.board],
            move_history=list(self.move_history),
            current_player=str(self.current_player),
            player_turn=str(self.player_turn),
            winner=str(self.winner) if self.winner else None,
            players=self.players.model_dump(),
            player_count=self.player_count,
            win_count=self.win_count.model_dump() if self.win_count else None,
            is_draw=self.is_draw,
            deleted=self.deleted,
            revision=self.revision or 0,
        )


# --- REQUEST BODIES ---
class CreateGameRequest(CamelModel):
    players: Optional[PlayerNames] = None


class JoinGameBody(CamelModel):
    players: Optional[PlayerNames] = None
    preferred_symbol: Optional[Symbol] = None


class MoveBody(CamelModel):
    index: int
    symbol: Symbol

    @field_validator("index")
    @classmethod
    def validate_index(cls, value: int) -> int:
        if not 0 <= value < BOARD_SIZE:
            raise InvalidRequestError(
                f"Cannot interpret index: {value!r} as a cell (0..{BOARD_SIZE - 1})."
            )
        return value


# --- REQUEST MODELS (body + game id from the path) ---
class GetGameRequest(CamelModel):
    game_id: UUID


class DeleteGameRequest(CamelModel):
    game_id: UUID


class ResetGameRequest(CamelModel):
    game_id: UUID


class LeaveGameRequest(CamelModel):
    game_id: UUID


class ReplaceGameRequest(CamelModel):
    game_id: UUID
    state: GameState


class JoinGameRequest(JoinGameBody):
    game_id: UUID


class MoveRequest(MoveBody):
    game_id: UUID


# --- RESPONSE MODELS ---
class NewGameResponse(CamelModel):
    game_id: UUID


class SeatResponse(CamelModel):
    """A client created or joined a game: which symbol it plays and the state it starts from."""

    game_id: UUID
    symbol: Symbol
    state: GameState


class MoveResponse(CamelModel):
    accepted: bool = True
    placed: int
    vanished: Optional[int] = None
    winner: Optional[Symbol] = None
    state: GameState


class SuccessResponse(CamelModel):
    success: bool = True


class ErrorResponse(CamelModel):
    error: str
    code: str
