"""FastAPI dependencies for dependency injection."""

from uuid import UUID

from fastapi import Request

from src.core.config import Settings
from src.core.exceptions import GameNotFoundError
from src.db.repository import GameRepository
from src.services.game_service import GameService
from src.services.sync import GameWatcher


def get_settings_from_app(request: Request) -> Settings:
    return request.app.state.settings


def get_repository(request: Request) -> GameRepository:
    """The State Store is built once at startup and shared by all requests."""
    return request.app.state.repository


def get_game_service(request: Request) -> GameService:
    settings = get_settings_from_app(request)
    return GameService(get_repository(request), join_retries=settings.join_retries)


def get_game_watcher(request: Request) -> GameWatcher:
    settings = get_settings_from_app(request)
    return GameWatcher(
        get_repository(request),
        poll_interval=settings.poll_interval,
        max_backoff=settings.max_backoff,
    )


def parse_game_id(game_id: str) -> UUID:
    """An identifier that is not a UUID cannot name any game."""
    try:
        return UUID(game_id)
    except ValueError as e:
        raise GameNotFoundError(game_id) from e
