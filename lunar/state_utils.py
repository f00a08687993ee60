#!/usr/bin/env python3
"""
Helpers that fold evaluation results into outposts and build public-facing
snapshots of a game for API consumers.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Optional, Tuple

import numpy as np

from lunar.constraints import evaluate_constraints_full
from lunar.game_logic import can_afford, check_mission_constraints
from lunar.map_generator import get_cell, is_daytime
from lunar.models import MISSION_CONFIG
from lunar.models import (
    Cell,
    CommLink,
    ConstraintResult,
    Evaluation,
    EvaluatedState,
    GameState,
    LunarMap,
    Outpost,
    OutpostType,
    Position,
    Scores,
)
from lunar.scoring import calculate_scores

MAP_LAYERS = ("terrain", "solar", "resource")


def annotate_outposts(
    outposts: Tuple[Outpost, ...], constraints: ConstraintResult
) -> Tuple[Outpost, ...]:
    """
    Copies of `outposts` with is_unstable/warnings filled in.
    An outpost is unstable when a warning names it or one of its links is unstable.
    """
    by_outpost: Dict[str, List[str]] = {}
    for warning in constraints.warnings:
        if warning.outpost_id is not None:
            by_outpost.setdefault(warning.outpost_id, []).append(warning.detail)

    on_unstable_link = set()
    for link in constraints.links:
        if link.is_unstable:
            on_unstable_link.update((link.source, link.target))

    return tuple(
        replace(
            o,
            is_unstable=o.id in by_outpost or o.id in on_unstable_link,
            warnings=tuple(by_outpost.get(o.id, ())),
        )
        for o in outposts
    )


def evaluate_state(state: GameState, lunar_map: LunarMap) -> EvaluatedState:
    """Run the full evaluation and scoring for a state on its day's map."""
    constraints = evaluate_constraints_full(state, lunar_map)
    scores = calculate_scores(state, lunar_map, constraints)
    evaluation = Evaluation(
        constraints=constraints,
        scores=scores,
        outposts=annotate_outposts(state.outposts, constraints),
    )
    return EvaluatedState(state=state, evaluation=evaluation)


# ---------- Payloads ----------


def _round(value: float) -> float:
    return round(float(value), 4)


def outpost_payload(outpost: Outpost) -> dict:
    return {
        "id": outpost.id,
        "type": outpost.type.value,
        "name": MISSION_CONFIG.metadata_for(outpost.type).name,
        "x": outpost.position.x,
        "y": outpost.position.y,
        "status": outpost.status.value,
        "is_unstable": outpost.is_unstable,
        "warnings": list(outpost.warnings),
    }


def link_payload(link: CommLink) -> dict:
    return {
        "source": link.source,
        "target": link.target,
        "distance": _round(link.distance),
        "quality": _round(link.quality),
        "is_unstable": link.is_unstable,
    }


def scores_payload(scores: Scores) -> dict:
    return {
        "cost": _round(scores.cost),
        "survival": _round(scores.survival),
        "science": _round(scores.science),
        "stability": _round(scores.stability),
        "overall": _round(scores.overall),
    }


def constraints_payload(constraints: ConstraintResult) -> dict:
    return {
        "is_valid": constraints.is_valid,
        "power_balance": _round(constraints.power_balance),
        "comm_connectivity": constraints.comm_connectivity,
        "buildability": constraints.buildability,
        "stability": _round(constraints.stability),
        "warnings": [
            {"code": w.code.value, "detail": w.detail, "outpost_id": w.outpost_id}
            for w in constraints.warnings
        ],
    }


def cell_payload(cell: Cell) -> dict:
    return {
        "x": cell.position.x,
        "y": cell.position.y,
        "terrain": {
            "build_cost": _round(cell.terrain.build_cost),
            "roughness": _round(cell.terrain.roughness),
            "slope": _round(cell.terrain.slope),
        },
        "solar": {
            "current_power": _round(cell.solar.current_power),
            "average_power": _round(cell.solar.average_power),
            "min_power": _round(cell.solar.min_power),
            "visibility": _round(cell.solar.visibility),
        },
        "resource": {
            "expected_value": _round(cell.resource.expected_value),
            "uncertainty": _round(cell.resource.uncertainty),
        },
    }


def map_layer_payload(lunar_map: LunarMap, layer: str) -> dict:
    """
    One overlay grid as nested rows, the shape a canvas renderer draws from.
    terrain -> roughness, solar -> current power, resource -> expected value.
    """
    if layer not in MAP_LAYERS:
        raise ValueError(f"unknown map layer: {layer}")
    grid: np.ndarray = {
        "terrain": lunar_map.roughness,
        "solar": lunar_map.current_power,
        "resource": lunar_map.expected_value,
    }[layer]
    return {
        "layer": layer,
        "day": lunar_map.day,
        "width": lunar_map.width,
        "height": lunar_map.height,
        "values": np.round(grid, 4).tolist(),
    }


def snapshot_from_evaluated(
    evaluated: EvaluatedState,
    lunar_map: LunarMap,
    phase: str,
    session_id: Optional[str] = None,
) -> dict:
    """
    Generate a snapshot payload suitable for API consumers.
    """
    state = evaluated.state
    evaluation = evaluated.evaluation
    mission_check = check_mission_constraints(state)

    return {
        "session_id": session_id,
        "phase": phase,
        "day": state.day,
        "is_daytime": is_daytime(state.day),
        "budget": _round(state.budget),
        "affordable": {t.value: can_afford(state, t) for t in OutpostType},
        "mission": {
            "id": state.mission.id,
            "name": state.mission.name,
            "budget": state.mission.budget,
            "duration": state.mission.duration,
            "target_science": state.mission.target_science,
        },
        "terrain_seed": lunar_map.terrain_seed.seed,
        "outposts": [outpost_payload(o) for o in evaluation.outposts],
        "links": [link_payload(link) for link in evaluation.links],
        "constraints": constraints_payload(evaluation.constraints),
        "scores": scores_payload(evaluation.scores),
        "mission_check": {
            "is_valid": mission_check.is_valid,
            "messages": list(mission_check.messages),
        },
        "can_undo": bool(state.history),
        "history_depth": len(state.history),
    }


def cell_or_none_payload(lunar_map: LunarMap, x: int, y: int) -> Optional[dict]:
    cell = get_cell(lunar_map, Position(x, y))
    return cell_payload(cell) if cell is not None else None
