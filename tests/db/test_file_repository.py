"""Unit tests for src/db/file_repository.py"""

import json
import threading
import time
from datetime import date
from pathlib import Path
from uuid import uuid4

import pytest

from src.core.exceptions import StaleStateError, StoreIOError
from src.core.models import GameModel
from src.db.file_repository import FileGameRepository

MONDAY = date(2026, 10, 19)
TUESDAY = date(2026, 10, 20)


class Calendar:
    """Controllable `today` for the date folders."""

    def __init__(self, day: date) -> None:
        self.day = day

    def __call__(self) -> date:
        return self.day


def make_model(**changes) -> GameModel:
    model = GameModel(
        board=[None] * 9,
        move_history=[],
        current_player="X",
        player_turn="X",
        winner=None,
        players={"player1": "Ann", "player2": "Bob"},
        player_count=1,
        win_count={"player1": 0, "player2": 0},
    )
    for key, value in changes.items():
        setattr(model, key, value)
    return model


@pytest.fixture
def calendar() -> Calendar:
    return Calendar(MONDAY)


@pytest.fixture
def repo(tmp_path: Path, calendar: Calendar) -> FileGameRepository:
    return FileGameRepository(tmp_path, today=calendar)


def test_create_writes_into_todays_folder(repo: FileGameRepository, tmp_path: Path) -> None:
    stored, game_id = repo.create_game(make_model())
    path = tmp_path / "2026-10-19" / f"{game_id}.json"
    assert path.exists()
    assert stored.revision == 1
    assert json.loads(path.read_text(encoding="utf-8"))["players"] == {"player1": "Ann", "player2": "Bob"}


def test_get_roundtrip(repo: FileGameRepository) -> None:
    stored, game_id = repo.create_game(make_model(win_count=None))
    found = repo.get_game(game_id)
    assert found == stored
    # back-filled on creation
    assert found is not None and found.win_count == {"player1": 0, "player2": 0}


def test_get_unknown_game(repo: FileGameRepository) -> None:
    assert repo.get_game(uuid4()) is None


def test_game_from_older_folder_is_found(repo: FileGameRepository, calendar: Calendar) -> None:
    stored, game_id = repo.create_game(make_model())
    calendar.day = TUESDAY
    assert repo.get_game(game_id) == stored


def test_update_moves_game_into_todays_folder(
    repo: FileGameRepository, calendar: Calendar, tmp_path: Path
) -> None:
    _, game_id = repo.create_game(make_model())
    calendar.day = TUESDAY
    updated = repo.update_game(game_id, make_model(player_count=2))

    assert updated is not None and updated.revision == 2
    assert not (tmp_path / "2026-10-19" / f"{game_id}.json").exists()
    assert (tmp_path / "2026-10-20" / f"{game_id}.json").exists()
    assert repo.get_game(game_id) == updated


def test_update_keeps_stored_win_count(repo: FileGameRepository) -> None:
    _, game_id = repo.create_game(make_model(win_count={"player1": 4, "player2": 1}))
    updated = repo.update_game(game_id, make_model(win_count=None))
    assert updated is not None
    assert updated.win_count == {"player1": 4, "player2": 1}


def test_stale_update_is_refused(repo: FileGameRepository) -> None:
    _, game_id = repo.create_game(make_model())
    repo.update_game(game_id, make_model(player_count=2), expected_revision=1)
    with pytest.raises(StaleStateError):
        repo.update_game(game_id, make_model(player_count=0), expected_revision=1)
    stored = repo.get_game(game_id)
    assert stored is not None and stored.player_count == 2


def test_attempt_updating_unknown_game(repo: FileGameRepository) -> None:
    assert repo.update_game(uuid4(), make_model()) is None


def test_delete_leaves_tombstone(repo: FileGameRepository) -> None:
    _, game_id = repo.create_game(make_model())
    deleted = repo.delete_game(game_id)
    assert deleted is not None and deleted.deleted
    stored = repo.get_game(game_id)
    assert stored is not None and stored.deleted


def test_attempt_deleting_unknown_game(repo: FileGameRepository) -> None:
    assert repo.delete_game(uuid4()) is None


def test_corrupted_file_is_a_store_error(repo: FileGameRepository, tmp_path: Path) -> None:
    _, game_id = repo.create_game(make_model())
    (tmp_path / "2026-10-19" / f"{game_id}.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(StoreIOError):
        repo.get_game(game_id)


def test_delete_does_not_lose_a_concurrent_move(tmp_path: Path, calendar: Calendar) -> None:
    """A move racing the delete is either stored under the tombstone or refused as stale, never dropped."""
    record_loaded = threading.Event()

    class SlowDeleteReads(FileGameRepository):
        def _read(self, path: Path) -> GameModel:
            game = super()._read(path)
            if threading.current_thread().name == "deleter":
                record_loaded.set()
                time.sleep(0.2)
            return game

    repo = SlowDeleteReads(tmp_path, today=calendar)
    _, game_id = repo.create_game(make_model())
    deleter = threading.Thread(target=repo.delete_game, args=(game_id,), name="deleter")
    deleter.start()
    assert record_loaded.wait(timeout=5)

    moved = make_model(board=[None] * 4 + ["X"] + [None] * 4, move_history=[4], player_turn="O", current_player="O")
    try:
        repo.update_game(game_id, moved, expected_revision=1)
        move_stored = True
    except StaleStateError:
        move_stored = False
    deleter.join(timeout=5)

    stored = repo.get_game(game_id)
    assert stored is not None
    assert stored.deleted
    assert stored.revision == (3 if move_stored else 2)
    if move_stored:
        assert stored.board[4] == "X"


def test_locks_are_released_after_writes(repo: FileGameRepository) -> None:
    _, game_id = repo.create_game(make_model())
    repo.update_game(game_id, make_model(player_count=2))
    repo.delete_game(game_id)
    assert repo._locks == {}
