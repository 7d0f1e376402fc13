"""
Gold Maze - Maze Game Backend
HTTP API for maps and leaderboards, WebSocket endpoint for play sessions
"""
import logging
from contextlib import asynccontextmanager
from typing import List, Optional

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Query, Request, WebSocket, WebSocketDisconnect, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from goldmaze.config import Settings
from goldmaze.database import ScoreStore, create_score_store, seed_sample_scores
from goldmaze.engine.grid import Grid, Position
from goldmaze.errors import MapValidationError, NotFound
from goldmaze.leaderboard import DEFAULT_TOP_LIMIT, ScoreQuery, SortOrder
from goldmaze.models import CHARACTER_DESCRIPTIONS, Character
from goldmaze.server.game_server import SessionManager
from goldmaze.server.protocol import Message, MessageBuilder
from goldmaze.world.maps import MapCatalog
from goldmaze.world.seed_maps import create_seeded_catalog

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


# ============================================================================
# REQUEST MODELS
# ============================================================================

class PositionModel(BaseModel):
    x: int
    y: int


class MapCreateRequest(BaseModel):
    name: str = ""
    difficulty: str = "easy"
    time_limit_seconds: int = 60
    grid: List[str] = Field(..., description="Rows using '#', '.', 'G' and 'E'")
    start: Optional[PositionModel] = None
    exit: Optional[PositionModel] = None


class ScoreCreateRequest(BaseModel):
    map_id: str
    player_name: str = Field(..., min_length=1)
    character: str
    gold_score: int = Field(..., ge=0)
    time_completed: int = Field(..., ge=0)
    completed_in_time: bool


# ============================================================================
# DEPENDENCIES
# ============================================================================

def get_catalog(request: Request) -> MapCatalog:
    return request.app.state.catalog


def get_store(request: Request) -> ScoreStore:
    return request.app.state.store


def get_sessions(request: Request) -> SessionManager:
    return request.app.state.sessions


def is_known_character(character: str) -> bool:
    return character in {c.value for c in Character}


def _to_position(model: Optional[PositionModel]) -> Optional[Position]:
    return Position(model.x, model.y) if model is not None else None


# ============================================================================
# APPLICATION
# ============================================================================

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Build the catalog, store and session manager for this process"""
        store = create_score_store(settings.store_backend, settings.db_path)
        await store.init()
        if settings.seed_sample_scores:
            added = await seed_sample_scores(store)
            logger.info(f"Seeded {added} sample scores")

        catalog = create_seeded_catalog()
        app.state.settings = settings
        app.state.catalog = catalog
        app.state.store = store
        app.state.sessions = SessionManager(catalog, store, tick_seconds=settings.tick_seconds)

        logger.info(f"Gold Maze server starting ({settings.store_backend} score store)")
        yield
        logger.info("Gold Maze server shutting down...")
        await app.state.sessions.close_all()
        await store.close()

    app = FastAPI(
        title="Gold Maze API",
        description="Backend for Gold Maze - collect the gold and reach the exit before time runs out",
        version=VERSION,
        lifespan=lifespan,
    )

    # CORS configuration for local development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(MapValidationError)
    async def map_validation_handler(request: Request, exc: MapValidationError):
        return JSONResponse(
            status_code=422,
            content={"code": exc.code, "message": exc.message},
        )

    @app.exception_handler(NotFound)
    async def not_found_handler(request: Request, exc: NotFound):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"code": exc.code, "message": exc.message},
        )

    @app.get("/")
    async def root(sessions: SessionManager = Depends(get_sessions)):
        """API health check"""
        return {
            "name": "Gold Maze API",
            "version": VERSION,
            "status": "running",
            **sessions.get_stats(),
        }

    @app.get("/characters")
    async def list_characters():
        return [
            {"id": c.value, "name": c.display_name, "description": CHARACTER_DESCRIPTIONS[c]}
            for c in Character
        ]

    # Maps

    @app.get("/maps")
    async def list_maps(catalog: MapCatalog = Depends(get_catalog)):
        return [m.to_dict() for m in catalog.list_maps()]

    @app.get("/maps/{map_id}")
    async def get_map(map_id: str, catalog: MapCatalog = Depends(get_catalog)):
        return catalog.get_map(map_id).to_dict()

    @app.post("/maps", status_code=status.HTTP_201_CREATED)
    async def create_map(body: MapCreateRequest, catalog: MapCatalog = Depends(get_catalog)):
        """Save a map drawn in the editor"""
        try:
            grid = Grid.from_rows(body.grid)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))

        map_def = catalog.create_map(
            name=body.name,
            difficulty=body.difficulty,
            time_limit_seconds=body.time_limit_seconds,
            grid=grid,
            start=_to_position(body.start),
            exit=_to_position(body.exit),
        )
        return map_def.to_dict()

    # Scores

    @app.get("/scores")
    async def list_scores(
        map_id: Optional[str] = None,
        name: Optional[str] = None,
        sort: SortOrder = SortOrder.RANK,
        limit: Optional[int] = Query(None, ge=1),
        store: ScoreStore = Depends(get_store),
    ):
        records = await store.query_scores(
            ScoreQuery(map_id=map_id, name_contains=name, sort_by=sort, limit=limit)
        )
        return [r.to_dict() for r in records]

    @app.get("/scores/top")
    async def list_top_scores(
        limit: int = Query(DEFAULT_TOP_LIMIT, ge=1),
        store: ScoreStore = Depends(get_store),
    ):
        return [r.to_dict() for r in await store.top_scores(limit)]

    @app.post("/scores", status_code=status.HTTP_201_CREATED)
    async def create_score(
        body: ScoreCreateRequest,
        catalog: MapCatalog = Depends(get_catalog),
        store: ScoreStore = Depends(get_store),
    ):
        """Record a result from a client-side engine"""
        catalog.get_map(body.map_id)
        if not is_known_character(body.character):
            raise HTTPException(
                status_code=422,
                detail=f"Unknown character: {body.character}",
            )
        record = await store.record_score(
            map_id=body.map_id,
            player_name=body.player_name,
            character=body.character,
            gold_score=body.gold_score,
            time_completed=body.time_completed,
            completed_in_time=body.completed_in_time,
        )
        return record.to_dict()

    # Play

    @app.websocket("/ws/play")
    async def play(websocket: WebSocket, map_id: str, player_name: str = "",
                   character: str = Character.EXPLORER.value):
        """
        WebSocket endpoint for one play session
        Client connects with /ws/play?map_id=map1&player_name=Alice&character=ninja
        """
        await websocket.accept()

        async def send(msg: Message) -> None:
            await websocket.send_text(msg.to_json())

        player_name = player_name.strip()
        if not player_name:
            await send(MessageBuilder.error("MISSING_NAME", "Please enter your name"))
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return
        if not is_known_character(character):
            await send(MessageBuilder.error("UNKNOWN_CHARACTER", f"Unknown character: {character}"))
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return

        sessions: SessionManager = websocket.app.state.sessions
        try:
            session = await sessions.open_session(map_id, player_name, character, send)
        except NotFound as e:
            await send(MessageBuilder.error(e.code, e.message))
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return

        try:
            while True:
                raw = await websocket.receive_text()
                await session.handle_raw(raw)
        except WebSocketDisconnect:
            logger.info(f"Session {session.session_id} disconnected")
        except Exception as e:
            logger.error(f"WebSocket error for session {session.session_id}: {e}", exc_info=True)
        finally:
            await sessions.close_session(session)

    return app


def run() -> None:
    settings = Settings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
