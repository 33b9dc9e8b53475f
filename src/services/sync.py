"""
Update stream of one game.

A watcher re-reads the stored state on a fixed cadence and emits it whenever its revision changed.
This keeps the server free of per-game state: any process with access to the store can serve a stream.
Staleness is bounded by one polling interval.
"""

import asyncio
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Optional
from uuid import UUID

from starlette.concurrency import run_in_threadpool

from src.api.models import GameState
from src.core.exceptions import StoreIOError
from src.core.models import GameModel
from src.db.repository import GameRepository

logger = logging.getLogger(__name__)

NOT_FOUND_EVENT: dict[str, Any] = {"error": "Game not found"}
DELETED_EVENT: dict[str, Any] = {"deleted": True}
STORE_ERROR_EVENT: dict[str, Any] = {"error": "Game unavailable"}

DisconnectCheck = Callable[[], Awaitable[bool]]


async def _never_disconnected() -> bool:
    return False


def backoff_delay(interval: float, failures: int, max_backoff: float) -> float:
    """Delay before the next read after `failures` consecutive failed reads."""
    if failures <= 0:
        return interval
    return min(interval * 2**failures, max_backoff)


def state_event(model: GameModel) -> dict[str, Any]:
    return GameState.from_model(model).model_dump(mode="json", by_alias=True)


class GameWatcher:
    """Polls the repository for one game per `watch` call."""

    def __init__(
        self,
        repository: GameRepository,
        poll_interval: float = 1.0,
        max_backoff: float = 30.0,
    ) -> None:
        self.repo = repository
        self.poll_interval = poll_interval
        self.max_backoff = max_backoff

    async def watch(
        self, game_id: UUID, is_disconnected: Optional[DisconnectCheck] = None
    ) -> AsyncIterator[dict[str, Any]]:
        """
        Yield event payloads for `game_id` until the game is gone or the client went away.
        ----

        1. the current state right away (or the not-found payload, which ends the stream)
        2. the state again, each time its revision changed
        3. the deleted payload once the record vanished or was tombstoned, which ends the stream
        """
        is_disconnected = is_disconnected or _never_disconnected
        logger.debug("Watching game %s", game_id)
        try:
            try:
                current = await self._read(game_id)
            except StoreIOError as e:
                logger.error("Cannot open update stream of game %s: %s", game_id, e)
                yield STORE_ERROR_EVENT
                return
            if current is None or current.deleted:
                yield NOT_FOUND_EVENT
                return

            yield state_event(current)
            last_revision = current.revision
            failures = 0

            while True:
                await asyncio.sleep(
                    backoff_delay(self.poll_interval, failures, self.max_backoff)
                )
                if await is_disconnected():
                    return

                try:
                    current = await self._read(game_id)
                except StoreIOError as e:
                    failures += 1
                    logger.warning(
                        "Reading game %s failed (%d in a row): %s",
                        game_id,
                        failures,
                        e,
                    )
                    continue
                failures = 0

                if current is None or current.deleted:
                    yield DELETED_EVENT
                    return
                if current.revision != last_revision:
                    last_revision = current.revision
                    yield state_event(current)
        finally:
            # also reached when the transport cancels the stream
            logger.debug("Stopped watching game %s", game_id)

    async def _read(self, game_id: UUID) -> GameModel | None:
        """Repositories block; keep the event loop free."""
        return await run_in_threadpool(self.repo.get_game, game_id)
