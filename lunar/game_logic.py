#!/usr/bin/env python3
"""
Pure game-state transitions. Every function returns a new GameState and
leaves its input untouched; map regeneration and re-evaluation are left to
the caller (see lunar.session).
"""
from __future__ import annotations

import uuid
from dataclasses import replace
from typing import List, Optional

from lunar.models import MISSION_CONFIG, MVP_MISSION
from lunar.models import (
    GameState,
    Mission,
    MissionCheck,
    Outpost,
    OutpostStatus,
    OutpostType,
    Position,
)

REMOVAL_REFUND = MISSION_CONFIG.removal_refund
HISTORY_LIMIT = MISSION_CONFIG.history_limit


def new_outpost_id() -> str:
    return f"outpost-{uuid.uuid4().hex}"


def initialize_game_state(mission: Mission = MVP_MISSION) -> GameState:
    return GameState(mission=mission, day=0, budget=float(mission.budget))


def add_outpost(state: GameState, outpost_type: OutpostType, position: Position) -> GameState:
    """
    Place a provisional outpost and charge its base cost. Affordability is
    not checked here: the budget may go negative and the light evaluation
    reports it.
    """
    outpost_type = OutpostType(outpost_type)
    metadata = MISSION_CONFIG.metadata_for(outpost_type)
    outpost = Outpost(
        id=new_outpost_id(),
        type=outpost_type,
        position=position,
        status=OutpostStatus.PROVISIONAL,
    )
    return replace(
        state,
        outposts=(*state.outposts, outpost),
        budget=state.budget - metadata.cost,
    )


def move_outpost(state: GameState, outpost_id: str, new_position: Position) -> GameState:
    """Moving always puts the outpost back into the provisional stage."""
    return replace(
        state,
        outposts=tuple(
            replace(o, position=new_position, status=OutpostStatus.PROVISIONAL)
            if o.id == outpost_id
            else o
            for o in state.outposts
        ),
    )


def remove_outpost(state: GameState, outpost_id: str) -> GameState:
    """
    Delete an outpost and refund half of its base cost (terrain surcharge is
    not refunded). Comm links are derived per evaluation, so links touching
    the removed outpost disappear with it. Transport flows touching it are dropped.
    """
    outpost = get_outpost(state, outpost_id)
    if outpost is None:
        return state

    metadata = MISSION_CONFIG.metadata_for(outpost.type)
    return replace(
        state,
        outposts=tuple(o for o in state.outposts if o.id != outpost_id),
        budget=state.budget + metadata.cost * REMOVAL_REFUND,
        transport_flows=tuple(
            f
            for f in state.transport_flows
            if f.source != outpost_id and f.target != outpost_id
        ),
    )


def confirm_outpost(state: GameState, outpost_id: str) -> GameState:
    return replace(
        state,
        outposts=tuple(
            replace(o, status=OutpostStatus.CONFIRMED) if o.id == outpost_id else o
            for o in state.outposts
        ),
    )


def confirm_all_outposts(state: GameState) -> GameState:
    return replace(
        state,
        outposts=tuple(replace(o, status=OutpostStatus.CONFIRMED) for o in state.outposts),
    )


def advance_turn(state: GameState, history_limit: Optional[int] = HISTORY_LIMIT) -> GameState:
    """
    Push the pre-advance state onto history and move to the next day.
    Stored snapshots carry no history of their own; undo re-attaches the
    remaining stack. With a history_limit the oldest snapshots are dropped.
    """
    snapshot = replace(state, history=())
    history = (*state.history, snapshot)
    if history_limit is not None and len(history) > history_limit:
        history = history[-history_limit:]
    return replace(state, day=state.day + 1, history=history)


def undo_turn(state: GameState) -> Optional[GameState]:
    """Previous turn's state, or None when there is nothing to undo."""
    if not state.history:
        return None
    previous = state.history[-1]
    return replace(previous, history=state.history[:-1])


# ---------- Queries ----------


def get_outpost(state: GameState, outpost_id: str) -> Optional[Outpost]:
    return next((o for o in state.outposts if o.id == outpost_id), None)


def count_outposts_by_type(state: GameState, outpost_type: OutpostType) -> int:
    return sum(1 for o in state.outposts if o.type == outpost_type)


def can_afford(state: GameState, outpost_type: OutpostType) -> bool:
    return state.budget >= MISSION_CONFIG.metadata_for(outpost_type).cost


def check_mission_constraints(state: GameState) -> MissionCheck:
    """Informational only; nothing here blocks an action."""
    messages: List[str] = []
    constraints = state.mission.constraints

    if len(state.outposts) > constraints.max_outposts:
        messages.append(f"outpost count exceeds the limit ({constraints.max_outposts})")

    for required in constraints.required_types:
        if count_outposts_by_type(state, required) == 0:
            messages.append(f"{MISSION_CONFIG.metadata_for(required).name} is required")

    return MissionCheck(is_valid=not messages, messages=tuple(messages))
