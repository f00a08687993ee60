import logging
import uuid
from typing import Any, Dict, Literal

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from lunar.logger_config import configure_logging
from lunar.models import MISSION_CONFIG, OutpostType, Position, ServiceSettings
from lunar.session import GameOverError, GameSession, UnknownOutpostError
from lunar.state_utils import (
    cell_or_none_payload,
    constraints_payload,
    map_layer_payload,
    snapshot_from_evaluated,
)

_CONFIG = ServiceSettings()
configure_logging(_CONFIG.log_level)
logger = logging.getLogger(__name__)

# In-memory sessions; they do not survive a restart.
sessions: Dict[str, GameSession] = {}

app = FastAPI(title="Lunar Outpost API", version="0.1.0")

cors_origins = _CONFIG.cors_allow_origins
origins = [origin.strip() for origin in cors_origins.split(",") if origin.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class SessionIn(BaseModel):
    """Start a new game."""

    seed: int | str | None = Field(
        None, description="Crater layout seed; random when omitted"
    )


class PlacementIn(BaseModel):
    type: OutpostType = Field(..., description="Outpost type, e.g. 'command'")
    x: int = Field(..., description="Grid column")
    y: int = Field(..., description="Grid row")


class MoveIn(BaseModel):
    x: int = Field(..., description="New grid column")
    y: int = Field(..., description="New grid row")


def _get_session(session_id: str) -> GameSession:
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="unknown session")
    return session


def _snapshot(session_id: str, session: GameSession) -> Dict[str, Any]:
    return snapshot_from_evaluated(
        session.evaluated, session.lunar_map, session.phase.value, session_id=session_id
    )


@app.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/mission")
async def mission() -> Dict[str, Any]:
    return {
        "mission": MISSION_CONFIG.mission.model_dump(mode="json"),
        "outposts": {
            outpost_type.value: metadata.model_dump(mode="json")
            for outpost_type, metadata in MISSION_CONFIG.outposts.items()
        },
        "map": {
            "width": MISSION_CONFIG.map_modifiers.width,
            "height": MISSION_CONFIG.map_modifiers.height,
            "day_cycle": MISSION_CONFIG.solar_modifiers.day_cycle,
        },
    }


@app.post("/sessions", status_code=201)
async def create_session(payload: SessionIn | None = None) -> Dict[str, Any]:
    seed = payload.seed if payload and payload.seed is not None else _CONFIG.terrain_seed
    if len(sessions) >= _CONFIG.max_sessions:
        oldest = next(iter(sessions))
        sessions.pop(oldest, None)
        logger.info("session limit reached; dropped %s", oldest)
    session_id = uuid.uuid4().hex
    session = GameSession(seed=seed)
    sessions[session_id] = session
    return _snapshot(session_id, session)


@app.get("/sessions/{session_id}")
async def get_session(session_id: str) -> Dict[str, Any]:
    return _snapshot(session_id, _get_session(session_id))


@app.delete("/sessions/{session_id}", status_code=204)
async def delete_session(session_id: str) -> None:
    if sessions.pop(session_id, None) is None:
        raise HTTPException(status_code=404, detail="unknown session")


@app.get("/sessions/{session_id}/map")
async def get_map(
    session_id: str, layer: Literal["terrain", "solar", "resource"] = "terrain"
) -> Dict[str, Any]:
    session = _get_session(session_id)
    return map_layer_payload(session.lunar_map, layer)


@app.get("/sessions/{session_id}/cells/{x}/{y}")
async def get_cell(session_id: str, x: int, y: int) -> Dict[str, Any]:
    session = _get_session(session_id)
    cell = cell_or_none_payload(session.lunar_map, x, y)
    if cell is None:
        raise HTTPException(status_code=404, detail="cell out of bounds")
    return cell


@app.post("/sessions/{session_id}/outposts", status_code=201)
async def place_outpost(session_id: str, payload: PlacementIn) -> Dict[str, Any]:
    session = _get_session(session_id)
    try:
        evaluated = session.place(payload.type, Position(payload.x, payload.y))
    except GameOverError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    if evaluated is None:
        raise HTTPException(status_code=409, detail="insufficient budget")
    return _snapshot(session_id, session)


@app.post("/sessions/{session_id}/outposts/preview")
async def preview_place(session_id: str, payload: PlacementIn) -> Dict[str, Any]:
    session = _get_session(session_id)
    try:
        result = session.preview_place(payload.type, Position(payload.x, payload.y))
    except GameOverError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return constraints_payload(result)


@app.patch("/sessions/{session_id}/outposts/{outpost_id}")
async def move_outpost(session_id: str, outpost_id: str, payload: MoveIn) -> Dict[str, Any]:
    session = _get_session(session_id)
    try:
        session.move(outpost_id, Position(payload.x, payload.y))
    except UnknownOutpostError as exc:
        raise HTTPException(status_code=404, detail="unknown outpost") from exc
    except GameOverError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return _snapshot(session_id, session)


@app.post("/sessions/{session_id}/outposts/{outpost_id}/preview")
async def preview_move(session_id: str, outpost_id: str, payload: MoveIn) -> Dict[str, Any]:
    session = _get_session(session_id)
    try:
        result = session.preview_move(outpost_id, Position(payload.x, payload.y))
    except UnknownOutpostError as exc:
        raise HTTPException(status_code=404, detail="unknown outpost") from exc
    except GameOverError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return constraints_payload(result)


@app.delete("/sessions/{session_id}/outposts/{outpost_id}")
async def remove_outpost(session_id: str, outpost_id: str) -> Dict[str, Any]:
    session = _get_session(session_id)
    try:
        session.remove(outpost_id)
    except UnknownOutpostError as exc:
        raise HTTPException(status_code=404, detail="unknown outpost") from exc
    except GameOverError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return _snapshot(session_id, session)


@app.post("/sessions/{session_id}/turn")
async def end_turn(session_id: str) -> Dict[str, Any]:
    session = _get_session(session_id)
    try:
        session.end_turn()
    except GameOverError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return _snapshot(session_id, session)


@app.post("/sessions/{session_id}/undo")
async def undo(session_id: str) -> Dict[str, Any]:
    session = _get_session(session_id)
    if session.undo() is None:
        raise HTTPException(status_code=409, detail="nothing to undo")
    return _snapshot(session_id, session)


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=_CONFIG.port)
