from .world_config import (
    BuildCheck,
    Cell,
    CommLink,
    ConnectivityResult,
    ConstraintResult,
    ConstraintWarning,
    Crater,
    EvaluatedState,
    Evaluation,
    GameState,
    LunarMap,
    MissionCheck,
    Outpost,
    OutpostStatus,
    OutpostType,
    Position,
    ResourceEvaluation,
    Scores,
    SolarEvaluation,
    TerrainEvaluation,
    TerrainSeed,
    TransportFlow,
    WarningCode,
)
from .mission_config import MISSION_CONFIG, MVP_MISSION, GameSettings, Mission, OutpostMetadata
from .service_config import ServiceSettings

__all__ = [
    "MISSION_CONFIG",
    "MVP_MISSION",
    "GameSettings",
    "Mission",
    "OutpostMetadata",
    "ServiceSettings",
    "BuildCheck",
    "Cell",
    "CommLink",
    "ConnectivityResult",
    "ConstraintResult",
    "ConstraintWarning",
    "Crater",
    "EvaluatedState",
    "Evaluation",
    "GameState",
    "LunarMap",
    "MissionCheck",
    "Outpost",
    "OutpostStatus",
    "OutpostType",
    "Position",
    "ResourceEvaluation",
    "Scores",
    "SolarEvaluation",
    "TerrainEvaluation",
    "TerrainSeed",
    "TransportFlow",
    "WarningCode",
]
