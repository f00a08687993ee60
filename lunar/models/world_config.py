from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Iterator, List, Optional, Tuple

import numpy as np

if TYPE_CHECKING:
    from .mission_config import Mission


class OutpostType(str, Enum):
    COMMAND = "command"
    POWER = "power"
    MINING = "mining"
    RESEARCH = "research"
    COMM = "comm"


class OutpostStatus(str, Enum):
    PROVISIONAL = "provisional"
    CONFIRMED = "confirmed"


class WarningCode(str, Enum):
    OUT_OF_BOUNDS = "out_of_bounds"
    INSUFFICIENT_BUDGET = "insufficient_budget"
    TERRAIN_TOO_HARSH = "terrain_too_harsh"
    POWER_DEFICIT = "power_deficit"
    POWER_MARGIN_LOW = "power_margin_low"
    DISCONNECTED_NETWORK = "disconnected_network"
    UNSTABLE_LINK = "unstable_link"


@dataclass(frozen=True)
class Position:
    x: int
    y: int


@dataclass(frozen=True)
class TerrainEvaluation:
    build_cost: float  # 1.0 .. 3.0 multiplier on base cost
    roughness: float  # 0..1
    slope: float  # 0..1


@dataclass(frozen=True)
class SolarEvaluation:
    current_power: float
    average_power: float
    min_power: float
    visibility: float  # 0..1


@dataclass(frozen=True)
class ResourceEvaluation:
    expected_value: float
    uncertainty: float  # 0..1, high before survey
    actual_value: Optional[float] = None  # known only after survey


@dataclass(frozen=True)
class Cell:
    position: Position
    terrain: TerrainEvaluation
    solar: SolarEvaluation
    resource: ResourceEvaluation


@dataclass(frozen=True)
class Crater:
    x: float
    y: float
    radius: float
    depth: float


@dataclass(frozen=True)
class TerrainSeed:
    """Crater layout for one game session.

    Generated once per session and passed into every map generation so that
    craters never move between turns.
    """

    seed: int
    craters: Tuple[Crater, ...] = ()


@dataclass(frozen=True, eq=False)
class LunarMap:
    """Grid of cells for one mission day, stored as read-only (height, width) arrays."""

    width: int
    height: int
    day: int
    terrain_seed: TerrainSeed
    build_cost: np.ndarray
    roughness: np.ndarray
    slope: np.ndarray
    visibility: np.ndarray
    current_power: np.ndarray
    average_power: np.ndarray
    min_power: np.ndarray
    expected_value: np.ndarray
    uncertainty: np.ndarray

    def in_bounds(self, position: Position) -> bool:
        return 0 <= position.x < self.width and 0 <= position.y < self.height

    def cell_at(self, x: int, y: int) -> Cell:
        return Cell(
            position=Position(x, y),
            terrain=TerrainEvaluation(
                build_cost=float(self.build_cost[y, x]),
                roughness=float(self.roughness[y, x]),
                slope=float(self.slope[y, x]),
            ),
            solar=SolarEvaluation(
                current_power=float(self.current_power[y, x]),
                average_power=float(self.average_power[y, x]),
                min_power=float(self.min_power[y, x]),
                visibility=float(self.visibility[y, x]),
            ),
            resource=ResourceEvaluation(
                expected_value=float(self.expected_value[y, x]),
                uncertainty=float(self.uncertainty[y, x]),
            ),
        )

    @property
    def cells(self) -> Iterator[List[Cell]]:
        """Rows of cells, top to bottom."""
        for y in range(self.height):
            yield [self.cell_at(x, y) for x in range(self.width)]


@dataclass(frozen=True)
class Outpost:
    id: str
    type: OutpostType
    position: Position
    status: OutpostStatus = OutpostStatus.PROVISIONAL
    # derived by evaluation; the authoritative state always carries the defaults
    is_unstable: bool = False
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CommLink:
    source: str  # outpost id
    target: str  # outpost id
    distance: float
    quality: float  # 0..1
    is_unstable: bool = False


@dataclass(frozen=True)
class TransportFlow:
    """Material flow between two outposts. Carried in the state, not evaluated yet."""

    source: str
    target: str
    amount: float
    capacity: float
    cost: float


@dataclass(frozen=True)
class ConstraintWarning:
    code: WarningCode
    detail: str
    outpost_id: Optional[str] = None


@dataclass(frozen=True)
class BuildCheck:
    can_build: bool
    reason: Optional[WarningCode] = None


@dataclass(frozen=True)
class ConnectivityResult:
    is_connected: bool
    links: Tuple[CommLink, ...] = ()


@dataclass(frozen=True)
class ConstraintResult:
    is_valid: bool
    power_balance: float
    comm_connectivity: bool
    buildability: bool
    warnings: Tuple[ConstraintWarning, ...]
    stability: float  # 0..1
    links: Tuple[CommLink, ...] = ()


@dataclass(frozen=True)
class Scores:
    cost: float
    survival: float
    science: float
    stability: float
    overall: float


@dataclass(frozen=True)
class MissionCheck:
    is_valid: bool
    messages: Tuple[str, ...] = ()


@dataclass(frozen=True)
class GameState:
    mission: "Mission"
    day: int
    budget: float
    outposts: Tuple[Outpost, ...] = ()
    transport_flows: Tuple[TransportFlow, ...] = ()
    history: Tuple["GameState", ...] = field(default=(), repr=False)


@dataclass(frozen=True)
class Evaluation:
    """Everything derived from a (state, map) pair in one evaluation pass."""

    constraints: ConstraintResult
    scores: Scores
    outposts: Tuple[Outpost, ...]  # annotated copies of state.outposts

    @property
    def links(self) -> Tuple[CommLink, ...]:
        return self.constraints.links


@dataclass(frozen=True)
class EvaluatedState:
    state: GameState
    evaluation: Evaluation
