#!/usr/bin/env python3
from __future__ import annotations

from lunar.models import MISSION_CONFIG
from lunar.models import ConstraintResult, GameState, LunarMap, OutpostType, Scores

SCORE_WEIGHTS = MISSION_CONFIG.score_weights
RESEARCH_POINTS = MISSION_CONFIG.science_points.research
MINING_POINTS = MISSION_CONFIG.science_points.mining


def initial_scores() -> Scores:
    """Scores shown before the first evaluation: full budget, nothing else."""
    return Scores(cost=100.0, survival=0.0, science=0.0, stability=0.0, overall=0.0)


def calculate_scores(
    state: GameState, lunar_map: LunarMap, constraints: ConstraintResult
) -> Scores:
    """
    Four sub-scores and their weighted blend.
    cost can leave 0..100 when the budget grows or goes negative, and science
    has no cap. survival and stability both come from constraint stability.
    """
    cost = (state.budget / state.mission.budget) * 100.0
    survival = constraints.stability * 100.0

    research = sum(1 for o in state.outposts if o.type == OutpostType.RESEARCH)
    mining = sum(1 for o in state.outposts if o.type == OutpostType.MINING)
    science = research * RESEARCH_POINTS + mining * MINING_POINTS

    stability = constraints.stability * 100.0
    overall = (
        cost * SCORE_WEIGHTS.cost
        + survival * SCORE_WEIGHTS.survival
        + science * SCORE_WEIGHTS.science
        + stability * SCORE_WEIGHTS.stability
    )
    return Scores(
        cost=cost,
        survival=survival,
        science=float(science),
        stability=stability,
        overall=overall,
    )
