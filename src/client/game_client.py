"""
HTTP client for the game server.

Implements the client side of a session: which symbol to ask for when joining, what to remember locally,
and how to follow a game's update stream.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Iterator, Optional

import httpx

from src.api.models import GameState, MoveResponse, PlayerNames, SeatResponse
from src.client.recent_games import RecentGames
from src.core.exceptions import (
    CellOccupiedError,
    GameError,
    GameNotFoundError,
    GameOverError,
    GameStateError,
    IllegalMoveError,
    InvalidCellError,
    InvalidRequestError,
    NotYourTurnError,
)
from src.core.shared_types import Symbol

logger = logging.getLogger(__name__)

EVENT_PREFIX = "data:"

# error codes the server sends back, rebuilt into the matching exception
_ERRORS_BY_CODE: dict[str, type[GameError]] = {
    error.code: error
    for error in (
        IllegalMoveError,
        InvalidCellError,
        CellOccupiedError,
        GameOverError,
        NotYourTurnError,
        GameStateError,
        InvalidRequestError,
    )
}


class ServerError(GameError):
    """An error response without a more specific local counterpart."""

    def __init__(self, message: str, status_code: int, code: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code


@dataclass
class Session:
    """A game this client takes part in."""

    game_id: str
    symbol: Symbol
    state: GameState


class GameClient:
    def __init__(self, http: httpx.Client, recent_games: RecentGames) -> None:
        self.http = http
        self.recent_games = recent_games

    # -- Session ---
    def create_game(self, player1: str = "", player2: str = "") -> Session:
        """Start a new game. The creator plays X and the game is remembered right away so it can be shared."""
        response = self.http.post(
            "/new-game", json={"players": {"player1": player1, "player2": player2}}
        )
        seat = SeatResponse.model_validate(self._json(response))
        return self._remember(seat)

    def join_game(self, game_id: str, players: Optional[PlayerNames] = None) -> Session:
        """
        Join an existing game.
        ----
        A client that played this game before asks for its old symbol; otherwise the server assigns one.
        """
        saved = self.recent_games.get(game_id)
        body: dict[str, Any] = {}
        if players is not None:
            body["players"] = players.model_dump(by_alias=True)
        if saved is not None and saved.symbol is not None:
            body["preferredSymbol"] = str(saved.symbol)

        response = self.http.post(f"/game/{game_id}/join", json=body)
        seat = SeatResponse.model_validate(self._json(response, game_id))
        return self._remember(seat)

    def leave_game(self, session: Session) -> GameState:
        """Detach from the game, keeping a snapshot of names and win counts locally."""
        response = self.http.post(f"/game/{session.game_id}/leave")
        state = GameState.model_validate(self._json(response, session.game_id))
        self.recent_games.remember(
            session.game_id, state.players, state.win_count, session.symbol
        )
        return state

    def abandon_game(self, game_id: str) -> None:
        """Delete the game for everyone. Watchers are told it is gone."""
        response = self.http.delete(f"/game/{game_id}")
        self._json(response, game_id)
        self.recent_games.forget(game_id)

    # -- Play ---
    def fetch_state(self, game_id: str) -> GameState:
        response = self.http.get(f"/game/{game_id}")
        return GameState.model_validate(self._json(response, game_id))

    def make_move(self, session: Session, index: int) -> MoveResponse:
        response = self.http.post(
            f"/game/{session.game_id}/move",
            json={"index": index, "symbol": str(session.symbol)},
        )
        result = MoveResponse.model_validate(self._json(response, session.game_id))
        session.state = result.state
        return result

    def reset_game(self, session: Session) -> GameState:
        response = self.http.post(f"/game/{session.game_id}/reset")
        session.state = GameState.model_validate(self._json(response, session.game_id))
        return session.state

    def updates(self, game_id: str) -> Iterator[dict[str, Any]]:
        """Follow the update stream. Ends when the server closes it (game not found or deleted)."""
        with self.http.stream("GET", f"/game/{game_id}/updates") as response:
            if response.status_code >= 400:
                response.read()
                self._json(response, game_id)
            for line in response.iter_lines():
                if line.startswith(EVENT_PREFIX):
                    yield json.loads(line[len(EVENT_PREFIX):].strip())

    # -- Internal helpers --
    def _remember(self, seat: SeatResponse) -> Session:
        game_id = str(seat.game_id)
        self.recent_games.remember(
            game_id, seat.state.players, seat.state.win_count, seat.symbol
        )
        return Session(game_id=game_id, symbol=seat.symbol, state=seat.state)

    def _json(self, response: httpx.Response, game_id: Optional[str] = None) -> Any:
        """Decoded body of a successful response; error responses are raised as exceptions."""
        if response.is_success:
            return response.json()

        try:
            body = response.json()
        except ValueError:
            body = {}
        message = body.get("error") or response.reason_phrase
        code = body.get("code", "")
        logger.warning("Server answered %d (%s): %s", response.status_code, code, message)

        if response.status_code == 404:
            raise GameNotFoundError(game_id)
        if code in _ERRORS_BY_CODE:
            raise _ERRORS_BY_CODE[code](message)
        raise ServerError(message, response.status_code, code)
