#!/usr/bin/env python3
"""
One game in progress: owns the terrain seed, the current state and the map
for the current day, and re-runs evaluation after every transition.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from enum import Enum
from typing import Optional

from lunar.constraints import evaluate_constraints_light
from lunar.game_logic import (
    HISTORY_LIMIT,
    advance_turn,
    add_outpost,
    can_afford,
    confirm_all_outposts,
    get_outpost,
    initialize_game_state,
    move_outpost,
    remove_outpost,
    undo_turn,
)
from lunar.helper.noise_helpers import generate_terrain_seed
from lunar.map_generator import generate_lunar_map
from lunar.models import MISSION_CONFIG, MVP_MISSION
from lunar.models import (
    ConstraintResult,
    EvaluatedState,
    GameState,
    LunarMap,
    Mission,
    OutpostType,
    Position,
    TerrainSeed,
)
from lunar.state_utils import evaluate_state

logger = logging.getLogger(__name__)

ENFORCE_BUDGET = MISSION_CONFIG.enforce_budget


class GamePhase(str, Enum):
    PLAY = "play"
    RESULT = "result"


class UnknownOutpostError(KeyError):
    pass


class GameOverError(RuntimeError):
    pass


class GameSession:
    def __init__(
        self,
        mission: Mission = MVP_MISSION,
        terrain_seed: Optional[TerrainSeed] = None,
        seed: Optional[object] = None,
        enforce_budget: bool = ENFORCE_BUDGET,
    ) -> None:
        self.enforce_budget = enforce_budget
        self.terrain_seed: TerrainSeed = terrain_seed or generate_terrain_seed(seed)
        initial = initialize_game_state(mission)
        self.lunar_map: LunarMap = generate_lunar_map(initial.day, self.terrain_seed)
        self.evaluated: EvaluatedState = evaluate_state(initial, self.lunar_map)
        self.phase = GamePhase.PLAY
        logger.info(
            "new session mission=%s terrain_seed=%d budget=%.0f",
            initial.mission.id,
            self.terrain_seed.seed,
            initial.budget,
        )

    @property
    def state(self) -> GameState:
        return self.evaluated.state

    def _commit(self, state: GameState) -> EvaluatedState:
        if state.day != self.lunar_map.day:
            self.lunar_map = generate_lunar_map(state.day, self.terrain_seed)
        self.evaluated = evaluate_state(state, self.lunar_map)
        return self.evaluated

    def _ensure_playing(self) -> None:
        if self.phase == GamePhase.RESULT:
            raise GameOverError("mission is over")

    def _ensure_outpost(self, outpost_id: str) -> None:
        if get_outpost(self.state, outpost_id) is None:
            raise UnknownOutpostError(outpost_id)

    # ---------- Player actions ----------

    def place(self, outpost_type: OutpostType, position: Position) -> Optional[EvaluatedState]:
        """
        Place a provisional outpost. Returns None when the session enforces the
        budget and the base cost is not affordable; otherwise the budget may
        go negative.
        """
        self._ensure_playing()
        if self.enforce_budget and not can_afford(self.state, outpost_type):
            logger.info("placement of %s rejected: budget %.0f", outpost_type, self.state.budget)
            return None
        return self._commit(add_outpost(self.state, outpost_type, position))

    def move(self, outpost_id: str, position: Position) -> EvaluatedState:
        self._ensure_playing()
        self._ensure_outpost(outpost_id)
        return self._commit(move_outpost(self.state, outpost_id, position))

    def remove(self, outpost_id: str) -> EvaluatedState:
        self._ensure_playing()
        self._ensure_outpost(outpost_id)
        return self._commit(remove_outpost(self.state, outpost_id))

    def preview_move(self, outpost_id: str, position: Position) -> ConstraintResult:
        """Light evaluation of a move that is not committed (drag feedback)."""
        self._ensure_playing()
        self._ensure_outpost(outpost_id)
        return evaluate_constraints_light(
            move_outpost(self.state, outpost_id, position), self.lunar_map
        )

    def preview_place(self, outpost_type: OutpostType, position: Position) -> ConstraintResult:
        """
        Light evaluation of a placement that is not committed. The candidate is
        checked against the budget before its cost is charged.
        """
        self._ensure_playing()
        candidate = add_outpost(self.state, outpost_type, position)
        return evaluate_constraints_light(
            replace(candidate, budget=self.state.budget), self.lunar_map
        )

    def end_turn(self) -> EvaluatedState:
        """
        Confirm every outpost, store the pre-advance state in history, move
        to the next day and evaluate on that day's map.
        """
        self._ensure_playing()
        advanced = advance_turn(
            confirm_all_outposts(self.state), history_limit=HISTORY_LIMIT
        )
        evaluated = self._commit(advanced)
        if advanced.day >= advanced.mission.duration:
            self.phase = GamePhase.RESULT
        logger.info(
            "turn ended day=%d overall=%.1f valid=%s phase=%s",
            advanced.day,
            evaluated.evaluation.scores.overall,
            evaluated.evaluation.constraints.is_valid,
            self.phase.value,
        )
        return evaluated

    def undo(self) -> Optional[EvaluatedState]:
        """Step back one turn; None when history is empty."""
        previous = undo_turn(self.state)
        if previous is None:
            return None
        self.phase = GamePhase.PLAY
        logger.info("undo to day=%d", previous.day)
        return self._commit(previous)
