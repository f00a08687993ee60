from lunar.helper.noise_helpers import (
    noise,
    octave_noise,
    normalize_seed,
    generate_terrain_seed,
    crater_influence,
)


__all__ = [
    "noise",
    "octave_noise",
    "normalize_seed",
    "generate_terrain_seed",
    "crater_influence",
]
