"""Unit tests for src/services/sync.py"""

from uuid import uuid4

import pytest

from src.core.shared_types import Symbol
from src.services.game_service import (
    CreateGameRequest,
    DeleteGameRequest,
    GameService,
    MoveRequest,
)
from src.services.sync import (
    DELETED_EVENT,
    NOT_FOUND_EVENT,
    STORE_ERROR_EVENT,
    GameWatcher,
    backoff_delay,
)


def new_watcher(repository) -> GameWatcher:
    return GameWatcher(repository, poll_interval=0.001, max_backoff=0.01)


@pytest.mark.anyio
async def test_unknown_game_ends_stream(mock_repository) -> None:
    events = [event async for event in new_watcher(mock_repository).watch(uuid4())]
    assert events == [NOT_FOUND_EVENT]


@pytest.mark.anyio
async def test_deleted_game_counts_as_unknown(mock_repository) -> None:
    service = GameService(mock_repository)
    game_id = service.create_new_game(CreateGameRequest()).game_id
    service.delete_game(DeleteGameRequest(game_id=game_id))

    events = [event async for event in new_watcher(mock_repository).watch(game_id)]
    assert events == [NOT_FOUND_EVENT]


@pytest.mark.anyio
async def test_state_on_open_then_changes(mock_repository) -> None:
    service = GameService(mock_repository)
    game_id = service.create_new_game(CreateGameRequest()).game_id
    stream = new_watcher(mock_repository).watch(game_id)

    first = await stream.__anext__()
    assert first["board"] == [None] * 9
    assert first["playerTurn"] == "X"
    assert first["revision"] == 1

    service.make_move(MoveRequest(game_id=game_id, index=4, symbol=Symbol.X))
    second = await stream.__anext__()
    assert second["board"][4] == "X"
    assert second["moveHistory"] == [4]
    assert second["revision"] == 2

    service.delete_game(DeleteGameRequest(game_id=game_id))
    assert await stream.__anext__() == DELETED_EVENT
    with pytest.raises(StopAsyncIteration):
        await stream.__anext__()


@pytest.mark.anyio
async def test_rewrite_with_same_content_is_still_announced(mock_repository) -> None:
    """Change detection follows the revision, so a state that returns to an earlier value is not missed."""
    service = GameService(mock_repository)
    game_id = service.create_new_game(CreateGameRequest()).game_id
    stream = new_watcher(mock_repository).watch(game_id)
    first = await stream.__anext__()

    same_content = mock_repository.get_game(game_id)
    mock_repository.update_game(game_id, same_content)

    second = await stream.__anext__()
    assert second["board"] == first["board"]
    assert second["revision"] == first["revision"] + 1
    await stream.aclose()


@pytest.mark.anyio
async def test_read_failures_are_retried(mock_repository) -> None:
    service = GameService(mock_repository)
    game_id = service.create_new_game(CreateGameRequest()).game_id
    stream = new_watcher(mock_repository).watch(game_id)
    await stream.__anext__()

    mock_repository.failing_reads = 3
    service.delete_game(DeleteGameRequest(game_id=game_id))
    assert await stream.__anext__() == DELETED_EVENT
    assert mock_repository.failing_reads == 0


@pytest.mark.anyio
async def test_store_down_on_open(mock_repository) -> None:
    mock_repository.failing_reads = 1
    events = [event async for event in new_watcher(mock_repository).watch(uuid4())]
    assert events == [STORE_ERROR_EVENT]


@pytest.mark.anyio
async def test_disconnect_stops_polling(mock_repository) -> None:
    service = GameService(mock_repository)
    game_id = service.create_new_game(CreateGameRequest()).game_id

    async def disconnected() -> bool:
        return True

    events = [
        event
        async for event in new_watcher(mock_repository).watch(game_id, disconnected)
    ]
    assert len(events) == 1
    assert events[0]["revision"] == 1


@pytest.mark.parametrize(
    "failures, expected",
    [(0, 1.0), (1, 2.0), (2, 4.0), (3, 8.0), (10, 30.0)],
)
def test_backoff_delay(failures: int, expected: float) -> None:
    assert backoff_delay(1.0, failures, 30.0) == expected
