import os
from pathlib import Path
from pydantic import BaseModel, NonNegativeFloat, PositiveInt, PositiveFloat, field_validator
from pydantic import Field  # type: ignore
from typing import Annotated, List, Dict, Optional

from .world_config import OutpostType

# # NOTE: The mission config is loaded once per process and treated as a
# # read-only reference table. Nothing in the core writes back to it.


class MissionConstraints(BaseModel):
    max_outposts: PositiveInt
    required_types: Annotated[List[OutpostType], Field(default_factory=list)]


class Mission(BaseModel):
    id: Annotated[str, Field(min_length=1)]
    name: Annotated[str, Field(min_length=1)]
    description: str = ""
    budget: PositiveFloat
    target_science: NonNegativeFloat
    duration: PositiveInt  # turns (mission days)
    constraints: MissionConstraints


class OutpostMetadata(BaseModel):
    name: Annotated[str, Field(min_length=1)]
    power_consumption: NonNegativeFloat
    power_generation: NonNegativeFloat
    cost: PositiveFloat
    description: str = ""


class MapModifiers(BaseModel):
    width: PositiveInt
    height: PositiveInt
    crater_density: PositiveInt  # one crater per this many cells
    crater_min_radius: PositiveFloat
    crater_radius_spread: NonNegativeFloat
    crater_min_depth: PositiveFloat
    crater_depth_spread: NonNegativeFloat
    terrain_seed: int | str | None = None


class SolarModifiers(BaseModel):
    day_cycle: PositiveInt
    night_factor: Annotated[float, Field(ge=0, le=1)]
    peak_power: PositiveFloat
    average_power: PositiveFloat
    minimum_power: NonNegativeFloat


class CommModifiers(BaseModel):
    max_distance: PositiveFloat
    relay_multiplier: Annotated[float, Field(ge=1)]
    unstable_quality: Annotated[float, Field(ge=0, le=1)]


class StabilityPenalties(BaseModel):
    power_deficit: NonNegativeFloat
    power_margin: NonNegativeFloat
    power_margin_threshold: NonNegativeFloat
    disconnected: NonNegativeFloat
    unstable_link: NonNegativeFloat
    unbuildable: NonNegativeFloat
    harsh_terrain_threshold: Annotated[float, Field(ge=0, le=1)]


class ScoreWeights(BaseModel):
    cost: NonNegativeFloat
    survival: NonNegativeFloat
    science: NonNegativeFloat
    stability: NonNegativeFloat


class SciencePoints(BaseModel):
    research: NonNegativeFloat
    mining: NonNegativeFloat


class GameSettings(BaseModel):
    mission: Mission
    outposts: Dict[OutpostType, OutpostMetadata]

    map_modifiers: MapModifiers
    solar_modifiers: SolarModifiers
    comm_modifiers: CommModifiers
    stability_penalties: StabilityPenalties
    score_weights: ScoreWeights
    science_points: SciencePoints

    removal_refund: Annotated[float, Field(ge=0, le=1)]
    history_limit: Optional[PositiveInt] = None
    enforce_budget: bool = True

    @field_validator("outposts")
    @classmethod
    def _every_type_listed(
        cls, value: Dict[OutpostType, OutpostMetadata]
    ) -> Dict[OutpostType, OutpostMetadata]:
        missing = [t.value for t in OutpostType if t not in value]
        if missing:
            raise ValueError(f"outpost metadata missing for: {', '.join(missing)}")
        return value

    def metadata_for(self, outpost_type: OutpostType) -> OutpostMetadata:
        return self.outposts[OutpostType(outpost_type)]


_BASE_DIR = Path(__file__).resolve().parents[1]
_CONFIG_PATH = Path(
    os.environ.get("LUNAR_MISSION_CONFIG", _BASE_DIR / "config" / "mission_config.json")
)

MISSION_CONFIG = GameSettings.model_validate_json(
    _CONFIG_PATH.read_text(encoding="utf-8")
)
MVP_MISSION: Mission = MISSION_CONFIG.mission
