#!/usr/bin/env python3
"""
Constraint evaluation: power balance, comm connectivity and buildability.

Two passes share the same inputs:
- light: provisional outposts' buildability only, cheap enough to run on
  every drag update;
- full: power, connectivity, terrain of every outpost, aggregated into a
  0..1 stability score. Used when the player confirms a turn.
"""
from __future__ import annotations

import logging
import math
from collections import deque
from typing import Dict, List, Optional

import numpy as np
from scipy.spatial import cKDTree  # type: ignore

from lunar.map_generator import calculate_distance, get_cell
from lunar.models import MISSION_CONFIG
from lunar.models import (
    BuildCheck,
    CommLink,
    ConnectivityResult,
    ConstraintResult,
    ConstraintWarning,
    GameState,
    LunarMap,
    Outpost,
    OutpostStatus,
    OutpostType,
    WarningCode,
)

logger = logging.getLogger(__name__)

MAX_COMM_DISTANCE = MISSION_CONFIG.comm_modifiers.max_distance
RELAY_MULTIPLIER = MISSION_CONFIG.comm_modifiers.relay_multiplier
UNSTABLE_QUALITY = MISSION_CONFIG.comm_modifiers.unstable_quality

PENALTIES = MISSION_CONFIG.stability_penalties
HARSH_TERRAIN = PENALTIES.harsh_terrain_threshold

REASON_TEXT: Dict[WarningCode, str] = {
    WarningCode.OUT_OF_BOUNDS: "outside the map",
    WarningCode.INSUFFICIENT_BUDGET: "insufficient budget",
    WarningCode.TERRAIN_TOO_HARSH: "terrain too harsh",
}


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def _outpost_label(outpost: Outpost) -> str:
    return f"{MISSION_CONFIG.metadata_for(outpost.type).name} {outpost.id}"


# ---------- Power ----------


def calculate_power_balance(state: GameState, lunar_map: LunarMap) -> float:
    """
    Solar generation minus flat consumption. Generators produce the current
    solar output of their own cell; outposts off the map count for nothing.
    """
    generation = 0.0
    consumption = 0.0
    for outpost in state.outposts:
        cell = get_cell(lunar_map, outpost.position)
        if cell is None:
            continue
        metadata = MISSION_CONFIG.metadata_for(outpost.type)
        if metadata.power_generation > 0:
            generation += cell.solar.current_power
        consumption += metadata.power_consumption
    return generation - consumption


# ---------- Communication ----------


def link_range(a: Outpost, b: Outpost) -> float:
    """Comm range for a pair; a comm outpost at either end acts as a relay."""
    if a.type == OutpostType.COMM or b.type == OutpostType.COMM:
        return MAX_COMM_DISTANCE * RELAY_MULTIPLIER
    return MAX_COMM_DISTANCE


def build_comm_links(outposts: List[Outpost]) -> List[CommLink]:
    """Every pair of outposts within range of each other, in outpost order."""
    if len(outposts) < 2:
        return []
    points = np.array([(o.position.x, o.position.y) for o in outposts], dtype=float)
    tree = cKDTree(points)  # type: ignore
    candidates = tree.query_pairs(r=MAX_COMM_DISTANCE * RELAY_MULTIPLIER)  # type: ignore

    links: List[CommLink] = []
    for i, j in sorted(candidates):  # type: ignore
        a, b = outposts[i], outposts[j]
        distance = calculate_distance(a.position, b.position)
        max_distance = link_range(a, b)
        if distance > max_distance:
            continue
        quality = 1.0 - distance / max_distance
        links.append(
            CommLink(
                source=a.id,
                target=b.id,
                distance=distance,
                quality=quality,
                is_unstable=quality < UNSTABLE_QUALITY,
            )
        )
    return links


def check_comm_connectivity(state: GameState) -> ConnectivityResult:
    """
    Breadth-first search over comm links starting at the command outpost.
    Connected only if every outpost is reached. An empty base is trivially
    connected; a base without a command outpost never is.
    """
    outposts = list(state.outposts)
    if not outposts:
        return ConnectivityResult(is_connected=True, links=())

    command = next((o for o in outposts if o.type == OutpostType.COMMAND), None)
    if command is None:
        return ConnectivityResult(is_connected=False, links=())

    links = build_comm_links(outposts)
    neighbors: Dict[str, List[str]] = {o.id: [] for o in outposts}
    for link in links:
        neighbors[link.source].append(link.target)
        neighbors[link.target].append(link.source)

    visited = {command.id}
    q = deque([command.id])
    while q:
        node = q.popleft()
        for neigh in neighbors[node]:
            if neigh in visited:
                continue
            visited.add(neigh)
            q.append(neigh)

    return ConnectivityResult(
        is_connected=len(visited) == len(outposts), links=tuple(links)
    )


# ---------- Buildability ----------


def check_buildability(
    outpost: Outpost, lunar_map: LunarMap, budget: float
) -> BuildCheck:
    cell = get_cell(lunar_map, outpost.position)
    if cell is None:
        return BuildCheck(can_build=False, reason=WarningCode.OUT_OF_BOUNDS)

    metadata = MISSION_CONFIG.metadata_for(outpost.type)
    actual_cost = metadata.cost * cell.terrain.build_cost
    if actual_cost > budget:
        return BuildCheck(can_build=False, reason=WarningCode.INSUFFICIENT_BUDGET)

    if cell.terrain.roughness > HARSH_TERRAIN or cell.terrain.slope > HARSH_TERRAIN:
        return BuildCheck(can_build=False, reason=WarningCode.TERRAIN_TOO_HARSH)

    return BuildCheck(can_build=True)


def _build_warning(outpost: Outpost, reason: Optional[WarningCode]) -> ConstraintWarning:
    code = reason or WarningCode.TERRAIN_TOO_HARSH
    return ConstraintWarning(
        code=code,
        detail=f"{_outpost_label(outpost)}: {REASON_TEXT.get(code, code.value)}",
        outpost_id=outpost.id,
    )


# ---------- Evaluation passes ----------


def evaluate_constraints_light(state: GameState, lunar_map: LunarMap) -> ConstraintResult:
    """Buildability of provisional outposts only; power and comms are not computed."""
    warnings: List[ConstraintWarning] = []
    stability = 1.0

    for outpost in state.outposts:
        if outpost.status != OutpostStatus.PROVISIONAL:
            continue
        check = check_buildability(outpost, lunar_map, state.budget)
        if not check.can_build:
            warnings.append(_build_warning(outpost, check.reason))
            stability -= PENALTIES.unbuildable

    ok = not warnings
    return ConstraintResult(
        is_valid=ok,
        power_balance=0.0,
        comm_connectivity=True,
        buildability=ok,
        warnings=tuple(warnings),
        stability=max(0.0, stability),
    )


def evaluate_constraints_full(state: GameState, lunar_map: LunarMap) -> ConstraintResult:
    """Full pass run at turn confirmation."""
    warnings: List[ConstraintWarning] = []
    stability = 1.0

    power_balance = calculate_power_balance(state, lunar_map)
    if power_balance < 0:
        warnings.append(
            ConstraintWarning(
                code=WarningCode.POWER_DEFICIT,
                detail=f"power deficit: {abs(power_balance):.0f} kW",
            )
        )
        stability -= PENALTIES.power_deficit
    elif power_balance < PENALTIES.power_margin_threshold:
        warnings.append(
            ConstraintWarning(
                code=WarningCode.POWER_MARGIN_LOW,
                detail=f"power margin is thin: {power_balance:.0f} kW",
            )
        )
        stability -= PENALTIES.power_margin

    connectivity = check_comm_connectivity(state)
    if not connectivity.is_connected and len(state.outposts) > 1:
        warnings.append(
            ConstraintWarning(
                code=WarningCode.DISCONNECTED_NETWORK,
                detail="not every outpost is reachable from the command outpost",
            )
        )
        stability -= PENALTIES.disconnected

    for link in connectivity.links:
        if not link.is_unstable:
            continue
        warnings.append(
            ConstraintWarning(
                code=WarningCode.UNSTABLE_LINK,
                detail=f"unstable link {link.source} <-> {link.target} (quality {link.quality:.2f})",
                outpost_id=link.source,
            )
        )
        stability -= PENALTIES.unstable_link

    # budget was already charged at placement, so only the terrain matters here
    for outpost in state.outposts:
        check = check_buildability(outpost, lunar_map, math.inf)
        if not check.can_build and check.reason != WarningCode.INSUFFICIENT_BUDGET:
            warnings.append(_build_warning(outpost, check.reason))
            stability -= PENALTIES.unbuildable

    result = ConstraintResult(
        is_valid=power_balance >= 0 and connectivity.is_connected,
        power_balance=power_balance,
        comm_connectivity=connectivity.is_connected,
        buildability=True,
        warnings=tuple(warnings),
        stability=_clamp(stability, 0.0, 1.0),
        links=connectivity.links,
    )
    logger.debug(
        "full evaluation day=%d outposts=%d power=%.1f connected=%s stability=%.2f",
        state.day,
        len(state.outposts),
        power_balance,
        connectivity.is_connected,
        result.stability,
    )
    return result
