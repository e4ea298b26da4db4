# hitmaker/webapp.py
from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from hitmaker.charts import top10
from hitmaker.errors import (
    CampaignCompletedError,
    GameNotFoundError,
    PersistenceError,
    ValidationError,
)
from hitmaker.schemas import (
    AdvanceRequest,
    AdvanceResponse,
    CreateGameRequest,
    Top10Response,
    advance_response,
    chart_entry_out,
)
from hitmaker.service import GameService
from hitmaker.store import JsonGameStore, MemoryGameStore, state_to_dict

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ValidationError: 400,
    GameNotFoundError: 404,
    CampaignCompletedError: 409,
    PersistenceError: 503,
}


def default_service() -> GameService:
    # Set HITMAKER_GAMES_DIR to keep games on disk; otherwise they live in memory.
    games_dir = os.environ.get("HITMAKER_GAMES_DIR")
    store = JsonGameStore(games_dir) if games_dir else MemoryGameStore()
    return GameService(store)


def create_app(service: Optional[GameService] = None) -> FastAPI:
    app = FastAPI(title="hitmaker")
    app.state.service = service or default_service()

    def error_handler(status: int):
        def handle(request: Request, exc: Exception) -> JSONResponse:
            if status >= 500:
                logger.error("%s %s failed: %s", request.method, request.url.path, exc)
            body: Dict[str, Any] = {"error": type(exc).__name__, "detail": str(exc)}
            if isinstance(exc, ValidationError):
                body["errors"] = exc.errors
            return JSONResponse(status_code=status, content=body)
        return handle

    for exc_type, status in ERROR_STATUS.items():
        app.add_exception_handler(exc_type, error_handler(status))

    @app.post("/games", status_code=201)
    def create_game(body: CreateGameRequest) -> Dict[str, Any]:
        state = app.state.service.create_game(
            seed=body.seed,
            allow_negative_money=body.allow_negative_money,
            artists=[a.to_action() for a in body.artists],
        )
        return state_to_dict(state)

    @app.get("/games/{game_id}")
    def get_game(game_id: str) -> Dict[str, Any]:
        return state_to_dict(app.state.service.get_game(game_id))

    @app.post("/games/{game_id}/advance", response_model=AdvanceResponse)
    def advance(game_id: str, body: AdvanceRequest) -> AdvanceResponse:
        outcome = app.state.service.advance(game_id, [a.to_action() for a in body.actions])
        return advance_response(outcome, state_to_dict(outcome.state))

    @app.get("/games/{game_id}/charts/top10", response_model=Top10Response)
    def chart_top10(game_id: str) -> Top10Response:
        state = app.state.service.get_game(game_id)
        entries = []
        for entry in top10(state.charts):
            song = state.songs.get(entry.song_id)
            entries.append(chart_entry_out(
                entry,
                title=entry.title or (song.title if song else entry.song_id),
                artist_id=entry.artist_id or (song.artist_id if song else ""),
            ))
        month = state.charts[-1].month if state.charts else state.game.current_month
        return Top10Response(game_id=game_id, month=month, entries=entries)

    return app


app = create_app()
