import hashlib
import logging
import numpy as np
from typing import Iterable, Optional, Union
import random

# simulation config import
from lunar.models import MISSION_CONFIG
from lunar.models import Crater, TerrainSeed

logger = logging.getLogger(__name__)

ArrayLike = Union[float, np.ndarray]

# Map-level config from JSON
MAP_WIDTH: int = MISSION_CONFIG.map_modifiers.width
MAP_HEIGHT: int = MISSION_CONFIG.map_modifiers.height
CRATER_DENSITY: int = MISSION_CONFIG.map_modifiers.crater_density
CRATER_MIN_RADIUS: float = MISSION_CONFIG.map_modifiers.crater_min_radius
CRATER_RADIUS_SPREAD: float = MISSION_CONFIG.map_modifiers.crater_radius_spread
CRATER_MIN_DEPTH: float = MISSION_CONFIG.map_modifiers.crater_min_depth
CRATER_DEPTH_SPREAD: float = MISSION_CONFIG.map_modifiers.crater_depth_spread
# Optional deterministic seed for crater layout
RAW_TERRAIN_SEED = MISSION_CONFIG.map_modifiers.terrain_seed

# crater rim extends to this multiple of the radius
RIM_EXTENT = 1.5
RIM_HEIGHT = 0.2


# ---------- Noise ----------


def noise(x: ArrayLike, y: ArrayLike, seed: float) -> ArrayLike:
    """Sine-hash pseudo random value in [0, 1). Same inputs give the same output."""
    n = np.sin(np.multiply(x, 12.9898) + np.multiply(y, 78.233) + seed) * 43758.5453
    return n - np.floor(n)


def octave_noise(x: ArrayLike, y: ArrayLike, octaves: int, seed: float) -> ArrayLike:
    """
    Fractal sum of `octaves` noise layers. Each layer doubles the frequency and
    halves the amplitude; the sum is normalized back into [0, 1).
    """
    value: ArrayLike = 0.0
    amplitude = 1.0
    frequency = 1.0
    max_value = 0.0
    for i in range(octaves):
        value = value + noise(np.multiply(x, frequency), np.multiply(y, frequency), seed + i) * amplitude
        max_value += amplitude
        amplitude *= 0.5
        frequency *= 2.0
    return value / max_value


# ---------- Craters ----------

SEED_BITS = 48
SEED_MASK = (1 << SEED_BITS) - 1


def normalize_seed(value: Optional[object]) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        cleaned = value.strip()
        if not cleaned:
            return None
        try:
            return int(cleaned, 0) & SEED_MASK
        except ValueError:
            digest = hashlib.sha256(cleaned.encode("utf-8")).hexdigest()
            return int(digest, 16) & SEED_MASK
    if isinstance(value, (bytes, bytearray)):
        digest = hashlib.sha256(value).hexdigest()
        return int(digest, 16) & SEED_MASK
    try:
        return int(value) & SEED_MASK  # type: ignore[arg-type]
    except (TypeError, ValueError):
        digest = hashlib.sha256(str(value).encode("utf-8")).hexdigest()
        return int(digest, 16) & SEED_MASK


def generate_terrain_seed(
    seed: Optional[object] = None,
    width: int = MAP_WIDTH,
    height: int = MAP_HEIGHT,
) -> TerrainSeed:
    """
    Lay out the craters for one session. When a seed (or the configured
    map_modifiers.terrain_seed) is provided the layout is deterministic.
    """
    effective_seed = normalize_seed(seed if seed is not None else RAW_TERRAIN_SEED)
    if effective_seed is None:
        effective_seed = random.SystemRandom().randrange(1 << SEED_BITS)
    rng = random.Random(effective_seed)

    crater_count = (width * height) // CRATER_DENSITY
    craters = []
    for _ in range(crater_count):
        craters.append(
            Crater(
                x=rng.random() * width,
                y=rng.random() * height,
                radius=CRATER_MIN_RADIUS + rng.random() * CRATER_RADIUS_SPREAD,
                depth=CRATER_MIN_DEPTH + rng.random() * CRATER_DEPTH_SPREAD,
            )
        )

    logger.debug("terrain seed %d: %d craters on %dx%d", effective_seed, len(craters), width, height)
    return TerrainSeed(seed=effective_seed, craters=tuple(craters))


def crater_influence(x: ArrayLike, y: ArrayLike, craters: Iterable[Crater]) -> ArrayLike:
    """
    Signed roughness influence of every crater at (x, y).
    Inside a crater the floor is depressed (quadratic falloff toward the rim);
    between 1.0 and 1.5 radii the rim is raised slightly (linear falloff).
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    influence = np.zeros(np.broadcast(x, y).shape)
    for crater in craters:
        dist = np.hypot(x - crater.x, y - crater.y)
        inside = dist < crater.radius
        rim = ~inside & (dist < crater.radius * RIM_EXTENT)

        normalized = dist / crater.radius
        influence -= np.where(inside, crater.depth * (1.0 - normalized * normalized), 0.0)

        rim_normalized = (dist - crater.radius) / (crater.radius * (RIM_EXTENT - 1.0))
        influence += np.where(rim, RIM_HEIGHT * (1.0 - rim_normalized), 0.0)
    return influence
