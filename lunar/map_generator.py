#!/usr/bin/env python3
from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np

from lunar.helper.noise_helpers import (
    MAP_HEIGHT,
    MAP_WIDTH,
    crater_influence,
    generate_terrain_seed,
    octave_noise,
)
from lunar.models import MISSION_CONFIG
from lunar.models import Cell, LunarMap, Position, TerrainSeed

logger = logging.getLogger(__name__)

# Lunar day/night cycle in mission days
LUNAR_DAY_CYCLE = MISSION_CONFIG.solar_modifiers.day_cycle
NIGHT_FACTOR = MISSION_CONFIG.solar_modifiers.night_factor
PEAK_POWER = MISSION_CONFIG.solar_modifiers.peak_power
AVERAGE_POWER = MISSION_CONFIG.solar_modifiers.average_power  # day/night mean
MINIMUM_POWER = MISSION_CONFIG.solar_modifiers.minimum_power  # night floor

# Noise seeds per field; changing one reshuffles only that field
SOLAR_SEED = 100
ROUGHNESS_SEED = 200
SLOPE_SEED = 300
RESOURCE_SEED = 400
UNCERTAINTY_SEED = 500


def day_phase(day: int) -> float:
    return (day % LUNAR_DAY_CYCLE) / LUNAR_DAY_CYCLE


def is_daytime(day: int) -> bool:
    return day_phase(day) < 0.5


def day_factor(day: int) -> float:
    return 1.0 if is_daytime(day) else NIGHT_FACTOR


def _freeze(arr: np.ndarray) -> np.ndarray:
    arr.setflags(write=False)
    return arr


# ---------- Map generation ----------


def generate_lunar_map(
    day: int = 0,
    terrain_seed: Optional[TerrainSeed] = None,
    width: int = MAP_WIDTH,
    height: int = MAP_HEIGHT,
) -> LunarMap:
    """
    Build the grid for a mission day. Terrain and resources depend only on the
    coordinates and the crater layout; solar output also depends on `day`.
    Callers own the TerrainSeed and must pass the same one every turn,
    otherwise craters move. Without one a fresh layout is generated.
    """
    if terrain_seed is None:
        terrain_seed = generate_terrain_seed(width=width, height=height)

    ys, xs = np.mgrid[0:height, 0:width].astype(float)
    u = xs / width
    v = ys / height

    # Terrain
    base_roughness = octave_noise(u, v, 4, ROUGHNESS_SEED)
    slope = octave_noise(u, v, 2, SLOPE_SEED) * 0.8
    influence = crater_influence(xs, ys, terrain_seed.craters)
    roughness = np.clip(base_roughness + np.abs(influence) * 0.5, 0.0, 1.0)
    build_cost = 1.0 + roughness * 1.5 + slope * 0.5

    # Solar (poles get less light)
    base_visibility = octave_noise(u, v, 3, SOLAR_SEED)
    latitude_factor = 1.0 - np.abs(v - 0.5) * 0.5
    visibility = base_visibility * latitude_factor
    current_power = visibility * day_factor(day) * PEAK_POWER
    average_power = visibility * AVERAGE_POWER
    min_power = visibility * MINIMUM_POWER

    # Resources (uncertainty stays high until surveyed)
    expected_value = octave_noise(u, v, 3, RESOURCE_SEED) * 100.0
    uncertainty = 0.5 + octave_noise(u, v, 2, UNCERTAINTY_SEED) * 0.5

    logger.debug(
        "generated %dx%d map for day %d (daytime=%s, craters=%d)",
        width,
        height,
        day,
        is_daytime(day),
        len(terrain_seed.craters),
    )

    return LunarMap(
        width=width,
        height=height,
        day=day,
        terrain_seed=terrain_seed,
        build_cost=_freeze(build_cost),
        roughness=_freeze(roughness),
        slope=_freeze(slope),
        visibility=_freeze(visibility),
        current_power=_freeze(current_power),
        average_power=_freeze(average_power),
        min_power=_freeze(min_power),
        expected_value=_freeze(expected_value),
        uncertainty=_freeze(uncertainty),
    )


def get_cell(lunar_map: LunarMap, position: Position) -> Optional[Cell]:
    """Cell at `position`, or None when it lies outside the grid."""
    if not lunar_map.in_bounds(position):
        return None
    return lunar_map.cell_at(position.x, position.y)


def calculate_distance(p1: Position, p2: Position) -> float:
    return math.hypot(p2.x - p1.x, p2.y - p1.y)
