"""HTTP routes of the game server"""

import json
from typing import Annotated, Any, AsyncIterator
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import StreamingResponse

from src.api.deps import get_game_service, get_game_watcher, parse_game_id
from src.api.models import (
    CreateGameRequest,
    DeleteGameRequest,
    ErrorResponse,
    GameState,
    GetGameRequest,
    JoinGameBody,
    JoinGameRequest,
    LeaveGameRequest,
    MoveBody,
    MoveRequest,
    MoveResponse,
    NewGameResponse,
    ReplaceGameRequest,
    ResetGameRequest,
    SeatResponse,
    SuccessResponse,
)
from src.core.exceptions import GameNotFoundError
from src.services.game_service import GameService
from src.services.sync import NOT_FOUND_EVENT, GameWatcher

router = APIRouter()

Service = Annotated[GameService, Depends(get_game_service)]
GameId = Annotated[UUID, Depends(parse_game_id)]

NOT_FOUND = {404: {"model": ErrorResponse}}


def format_event(payload: dict[str, Any]) -> str:
    """One server-sent event carrying a JSON payload."""
    return f"data: {json.dumps(payload)}\n\n"


@router.get("/health", tags=["health"])
def health() -> dict[str, str]:
    return {"status": "ok"}


# --- Game creation ---
@router.get("/new-game", response_model=NewGameResponse, tags=["games"])
def new_game(service: Service) -> NewGameResponse:
    """Mint a new game identifier. Nobody has claimed a seat yet."""
    return service.create_blank_game()


@router.post("/new-game", response_model=SeatResponse, tags=["games"])
def create_game(
    service: Service, request: Annotated[CreateGameRequest, Body()] = CreateGameRequest()
) -> SeatResponse:
    """Create a game and take the first seat (X)."""
    return service.create_new_game(request)


# --- One game ---
@router.get("/game/{game_id}", response_model=GameState, responses=NOT_FOUND, tags=["games"])
def get_game(game_id: GameId, service: Service) -> GameState:
    return service.get_game_state(GetGameRequest(game_id=game_id))


@router.post("/game/{game_id}", response_model=SuccessResponse, responses=NOT_FOUND, tags=["games"])
def replace_game(game_id: GameId, state: GameState, service: Service) -> SuccessResponse:
    """Replace the stored state wholesale."""
    return service.replace_game_state(ReplaceGameRequest(game_id=game_id, state=state))


@router.delete("/game/{game_id}", response_model=SuccessResponse, responses=NOT_FOUND, tags=["games"])
def delete_game(game_id: GameId, service: Service) -> SuccessResponse:
    """Abandon the game. The record stays, marked as deleted."""
    return service.delete_game(DeleteGameRequest(game_id=game_id))


@router.post("/game/{game_id}/join", response_model=SeatResponse, responses=NOT_FOUND, tags=["session"])
def join_game(
    game_id: GameId, service: Service, body: Annotated[JoinGameBody, Body()] = JoinGameBody()
) -> SeatResponse:
    return service.join_game(
        JoinGameRequest(
            game_id=game_id,
            players=body.players,
            preferred_symbol=body.preferred_symbol,
        )
    )


@router.post("/game/{game_id}/leave", response_model=GameState, responses=NOT_FOUND, tags=["session"])
def leave_game(game_id: GameId, service: Service) -> GameState:
    return service.leave_game(LeaveGameRequest(game_id=game_id))


@router.post("/game/{game_id}/move", response_model=MoveResponse, responses=NOT_FOUND, tags=["play"])
def make_move(game_id: GameId, body: MoveBody, service: Service) -> MoveResponse:
    return service.make_move(MoveRequest(game_id=game_id, index=body.index, symbol=body.symbol))


@router.post("/game/{game_id}/reset", response_model=GameState, responses=NOT_FOUND, tags=["play"])
def reset_game(game_id: GameId, service: Service) -> GameState:
    """Start the next round. The loser of the last round opens."""
    return service.reset_game(ResetGameRequest(game_id=game_id))


# --- Update stream ---
@router.get("/game/{game_id}/updates", tags=["sync"])
async def game_updates(
    game_id: str,
    request: Request,
    watcher: Annotated[GameWatcher, Depends(get_game_watcher)],
) -> StreamingResponse:
    """
    Server-sent events: the state on open, then again after every change.
    The stream ends after a not-found or deleted payload, or when the client disconnects.
    """

    async def event_stream() -> AsyncIterator[str]:
        try:
            parsed_id = parse_game_id(game_id)
        except GameNotFoundError:
            yield format_event(NOT_FOUND_EVENT)
            return
        async for payload in watcher.watch(parsed_id, request.is_disconnected):
            yield format_event(payload)

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )
