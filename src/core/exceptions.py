"""
Exceptions shared by all layers.

Every exception carries the HTTP status code and a short machine-readable code, so the API layer
can render any of them with a single handler.
"""


class GameError(Exception):
    """Top-level exception of the project."""

    status_code: int = 500
    code: str = "game_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


# --- Persistence ---
class RepositoryError(GameError):
    code = "repository_error"


class GameNotFoundError(RepositoryError):
    """Identifier has no record, or the record is tombstoned."""

    status_code = 404
    code = "game_not_found"

    def __init__(self, game_id: object) -> None:
        self.game_id = game_id
        super().__init__("Game not found")


class StaleStateError(RepositoryError):
    """Another writer replaced the record after it was read."""

    status_code = 409
    code = "stale_state"

    def __init__(self, game_id: object, expected: int, actual: int) -> None:
        self.game_id = game_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Game {game_id} changed concurrently (expected revision {expected}, found {actual})."
        )


class StoreIOError(RepositoryError):
    """Reading from or writing to the underlying store failed."""

    status_code = 500
    code = "store_io"


# --- Domain ---
class GameStateError(GameError):
    """The stored state is inconsistent, or the requested action does not fit the state."""

    status_code = 409
    code = "invalid_state"


class IllegalMoveError(GameError):
    status_code = 422
    code = "illegal_move"


class InvalidCellError(IllegalMoveError):
    code = "invalid_cell"


class CellOccupiedError(IllegalMoveError):
    code = "cell_occupied"


class GameOverError(IllegalMoveError):
    code = "game_over"


class NotYourTurnError(IllegalMoveError):
    code = "not_your_turn"


# --- API ---
class InvalidRequestError(GameError):
    status_code = 422
    code = "invalid_request"
