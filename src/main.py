"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.models import ErrorResponse
from src.api.routes import router
from src.core.config import Settings, get_settings
from src.core.exceptions import GameError
from src.db.database import build_session_factory
from src.db.file_repository import FileGameRepository
from src.db.repository import GameRepository
from src.db.sql_repository import SQLGameRepository

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def build_repository(settings: Settings) -> GameRepository:
    """Pick the State Store implementation named in the settings."""
    if settings.store_backend == "file":
        logger.info("Storing games as JSON files in %s", settings.data_dir)
        return FileGameRepository(settings.data_dir)
    return SQLGameRepository(build_session_factory(settings))


def create_lifespan(settings: Settings):
    """Create a lifespan context manager.

    Args:
        settings: Settings the State Store is built from.

    Returns:
        Lifespan context manager.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        app.state.settings = settings
        app.state.repository = build_repository(settings)
        logger.info("Game server started (%s store)", settings.store_backend)

        yield

        logger.info("Game server stopped")

    return lifespan


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings override.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="Vanishing Tic-Tac-Toe",
        description="Two-player tic-tac-toe where the oldest mark vanishes once the board is full.",
        version="0.1.0",
        lifespan=create_lifespan(settings),
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(GameError)
    async def game_error_handler(request: Request, exc: GameError) -> JSONResponse:
        """Render every project exception as {error, code} with its own status code."""
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(error=exc.message, code=exc.code).model_dump(),
        )

    app.include_router(router)
    return app


# Create default application instance
app = create_app()


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)
