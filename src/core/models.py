"""
Boundary layer data model(s).

These objects can be used to communicate with the Service.
Hence, both the API layer (higher) and domain/db layers (lower) will use model(s) defined here to send to/receive from the Service
(Decouples the data model specific to the DB layer, API layer, or domain layer from the information needed to send across boundaries)
"""

from dataclasses import asdict, dataclass
from typing import Any, Optional

# Type aliases to make GameModel easier to read
Cell = Optional[str]
SideName = str
PlayerName = str


@dataclass
class GameModel:
    """Transport-safe representation of one game's state used between API, Service, DB, and Game layers."""

    board: list[Cell]
    move_history: list[int]
    current_player: str
    player_turn: str
    winner: Optional[str]
    players: dict[SideName, PlayerName]
    player_count: int
    win_count: Optional[dict[SideName, int]] = None
    is_draw: bool = False
    deleted: bool = False
    revision: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Serialized form shared by the JSON file store and the event stream."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GameModel":
        return cls(
            board=list(data["board"]),
            move_history=list(data["move_history"]),
            current_player=data["current_player"],
            player_turn=data["player_turn"],
            winner=data.get("winner"),
            players=dict(data["players"]),
            player_count=data["player_count"],
            win_count=dict(data["win_count"]) if data.get("win_count") else None,
            is_draw=data.get("is_draw", False),
            deleted=data.get("deleted", False),
            revision=data.get("revision", 0),
        )
