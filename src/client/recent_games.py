"""
Client-local list of recently played games.

Never authoritative: it only lets a returning client resume the symbol it played, and offers shortcuts back into
recent games. Kept as a small JSON file, most recently played first.
"""

import json
import logging
import time
from pathlib import Path
from typing import Callable, Optional

from pydantic import Field, TypeAdapter, ValidationError

from src.api.models import CamelModel, PlayerNames, WinCount
from src.core.shared_types import Symbol

logger = logging.getLogger(__name__)

MAX_SAVED_GAMES = 10


def now_ms() -> int:
    return int(time.time() * 1000)


class SavedGame(CamelModel):
    id: str
    players: PlayerNames
    last_played: int  # epoch milliseconds
    win_count: WinCount = Field(default_factory=WinCount)
    symbol: Optional[Symbol] = None


_saved_games_adapter = TypeAdapter(list[SavedGame])


class RecentGames:
    """Capped, most-recent-first list of SavedGame records backed by a JSON file."""

    def __init__(self, path: Path | str, clock: Callable[[], int] = now_ms) -> None:
        self.path = Path(path)
        self._clock = clock

    def load(self) -> list[SavedGame]:
        """Saved games, most recent first. An unreadable file counts as empty."""
        if not self.path.exists():
            return []
        try:
            return _saved_games_adapter.validate_json(self.path.read_bytes())
        except (OSError, ValidationError) as e:
            logger.error("Error reading saved games from %s: %s", self.path, e)
            return []

    def get(self, game_id: str) -> Optional[SavedGame]:
        return next((game for game in self.load() if game.id == game_id), None)

    def remember(
        self,
        game_id: str,
        players: PlayerNames,
        win_count: Optional[WinCount] = None,
        symbol: Optional[Symbol] = None,
    ) -> SavedGame:
        """Record (or refresh) a game and move it to the front of the list."""
        previous = self.get(game_id)
        saved = SavedGame(
            id=game_id,
            players=players,
            last_played=self._clock(),
            win_count=win_count or WinCount(),
            symbol=symbol or (previous.symbol if previous else None),
        )
        others = [game for game in self.load() if game.id != game_id]
        # Keep only the most recent games
        self._store([saved, *others][:MAX_SAVED_GAMES])
        return saved

    def forget(self, game_id: str) -> None:
        self._store([game for game in self.load() if game.id != game_id])

    def _store(self, games: list[SavedGame]) -> None:
        """Best effort: a failing write only costs the shortcut, never the game."""
        payload = [game.model_dump(mode="json", by_alias=True) for game in games]
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as e:
            logger.error("Error saving games to %s: %s", self.path, e)
