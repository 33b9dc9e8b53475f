"""
Implementation of (Game)Repository using one JSON file per game.

Files are grouped in one folder per day (YYYY-MM-DD) so old games can be archived by folder.
Writing a game always moves it into today's folder, so a lookup checks today's folder first and only
falls back to scanning all folders for games that were not touched today.
"""

import json
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import date
from pathlib import Path
from typing import Callable, Iterator, Optional
from uuid import UUID, uuid4

from src.core.exceptions import StaleStateError, StoreIOError
from src.core.models import GameModel

logger = logging.getLogger(__name__)


@dataclass
class _GameLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    # threads holding or waiting for the lock
    users: int = 0


class FileGameRepository:
    """Data stored as JSON files in date folders"""

    def __init__(self, base_path: Path | str, today: Callable[[], date] = date.today) -> None:
        self.base_path = Path(base_path)
        self._today = today
        # serializes read-compare-write cycles per game within this process
        self._locks: dict[UUID, _GameLock] = {}
        self._locks_guard = threading.Lock()

    def get_game(self, game_id: UUID) -> GameModel | None:
        """Get game by ID, if record exists."""
        path = self._find_game_path(game_id)
        if path is None:
            return None
        return self._read(path)

    def create_game(self, game: GameModel) -> tuple[GameModel, UUID]:
        """Store new game and return the stored data + newly created game ID."""
        new_id = uuid4()
        stored = GameModel.from_dict(game.to_dict())
        stored.win_count = stored.win_count or {"player1": 0, "player2": 0}
        stored.revision = 1
        self._write(self._today_path(new_id), stored)
        return stored, new_id

    def update_game(
        self, game_id: UUID, game: GameModel, expected_revision: Optional[int] = None
    ) -> GameModel | None:
        """Replace an existing record, relocating it into today's folder."""
        with self._locked(game_id):
            return self._replace(game_id, lambda existing: game, expected_revision)

    def delete_game(self, game_id: UUID) -> GameModel | None:
        """Never actually delete the game, just mark it as deleted"""
        with self._locked(game_id):
            return self._replace(game_id, lambda existing: replace(existing, deleted=True))

    # -- Internal helpers --
    @contextmanager
    def _locked(self, game_id: UUID) -> Iterator[None]:
        """Hold the game's lock. The entry is dropped once no thread holds or waits for it."""
        with self._locks_guard:
            entry = self._locks.setdefault(game_id, _GameLock())
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._locks_guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._locks[game_id]

    def _replace(
        self,
        game_id: UUID,
        change: Callable[[GameModel], GameModel],
        expected_revision: Optional[int] = None,
    ) -> GameModel | None:
        """Read-compare-write of one record. Callers hold the game's lock."""
        old_path = self._find_game_path(game_id)
        if old_path is None:
            return None
        existing = self._read(old_path)
        if expected_revision is not None and existing.revision != expected_revision:
            raise StaleStateError(game_id, expected_revision, existing.revision)

        stored = GameModel.from_dict(change(existing).to_dict())
        # Ensure we keep the existing win count if the new state has none
        stored.win_count = stored.win_count or existing.win_count or {"player1": 0, "player2": 0}
        stored.revision = existing.revision + 1

        new_path = self._today_path(game_id)
        self._write(new_path, stored)
        if old_path != new_path:
            self._remove(old_path)
        return stored

    def _date_folder(self) -> Path:
        return self.base_path / self._today().isoformat()

    def _today_path(self, game_id: UUID) -> Path:
        return self._date_folder() / f"{game_id}.json"

    def _find_game_path(self, game_id: UUID) -> Path | None:
        """Search for a game ID: first in today's folder, then across all date folders."""
        today_path = self._today_path(game_id)
        if today_path.exists():
            return today_path

        if not self.base_path.exists():
            return None
        try:
            # newest folders first, YYYY-MM-DD sorts chronologically
            folders = sorted(
                (p for p in self.base_path.iterdir() if p.is_dir()), reverse=True
            )
        except OSError as e:
            logger.error("Error finding game %s: %s", game_id, e)
            raise StoreIOError(f"Cannot list game folders in {self.base_path}.") from e

        for folder in folders:
            file_path = folder / f"{game_id}.json"
            if file_path.exists():
                return file_path
        return None

    def _read(self, path: Path) -> GameModel:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return GameModel.from_dict(data)
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error("Error getting game state from %s: %s", path, e)
            raise StoreIOError(f"Cannot read game file {path.name}.") from e

    def _write(self, path: Path, game: GameModel) -> None:
        tmp_path = path.with_suffix(".json.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(game.to_dict(), indent=2), encoding="utf-8")
            # readers never see a half written file
            tmp_path.replace(path)
        except OSError as e:
            logger.error("Error setting game state in %s: %s", path, e)
            raise StoreIOError(f"Cannot write game file {path.name}.") from e

    def _remove(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.error("Error removing outdated copy %s: %s", path, e)
            raise StoreIOError(f"Cannot remove outdated game file {path.name}.") from e
