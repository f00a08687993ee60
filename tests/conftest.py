from typing import Iterable

import numpy as np
import pytest

from lunar.helper.noise_helpers import generate_terrain_seed
from lunar.map_generator import generate_lunar_map
from lunar.models import (
    MVP_MISSION,
    GameState,
    LunarMap,
    Outpost,
    OutpostStatus,
    OutpostType,
    Position,
    TerrainSeed,
)

WIDTH = 80
HEIGHT = 60


@pytest.fixture(scope="session")
def terrain_seed() -> TerrainSeed:
    return generate_terrain_seed(42)


@pytest.fixture(scope="session")
def day_map(terrain_seed: TerrainSeed) -> LunarMap:
    return generate_lunar_map(0, terrain_seed)


@pytest.fixture(scope="session")
def night_map(terrain_seed: TerrainSeed) -> LunarMap:
    return generate_lunar_map(7, terrain_seed)


def uniform_map(
    roughness: float = 0.2,
    slope: float = 0.1,
    current_power: float = 80.0,
    visibility: float = 0.8,
    width: int = WIDTH,
    height: int = HEIGHT,
) -> LunarMap:
    """Flat map with the same values in every cell."""

    def full(value: float) -> np.ndarray:
        return np.full((height, width), value, dtype=float)

    return LunarMap(
        width=width,
        height=height,
        day=0,
        terrain_seed=TerrainSeed(seed=0),
        build_cost=full(1.0 + roughness * 1.5 + slope * 0.5),
        roughness=full(roughness),
        slope=full(slope),
        visibility=full(visibility),
        current_power=full(current_power),
        average_power=full(visibility * 55.0),
        min_power=full(visibility * 10.0),
        expected_value=full(50.0),
        uncertainty=full(0.75),
    )


def outpost(
    outpost_id: str,
    outpost_type: OutpostType,
    x: int,
    y: int,
    status: OutpostStatus = OutpostStatus.CONFIRMED,
) -> Outpost:
    return Outpost(id=outpost_id, type=outpost_type, position=Position(x, y), status=status)


def make_state(outposts: Iterable[Outpost] = (), budget: float = 500.0, day: int = 0) -> GameState:
    return GameState(mission=MVP_MISSION, day=day, budget=budget, outposts=tuple(outposts))
