"""Data models for multi-objective selection."""

from .candidate import INFINITY, Candidate
from .config import (
    PROFILE_PRESETS,
    SUPPORTED_PROFILES,
    EliteStrategy,
    NicheRadiusStrategy,
    SelectionConfig,
    TournamentStrategy,
)
from .objectives import (
    DEFAULT_FITNESS_WEIGHTS,
    DEFAULT_OBJECTIVE_DIRECTIONS,
    DominanceRelation,
    ObjectiveDirection,
)
from .frontier import Frontier
from .result import GenerationReport

__all__ = [
    "Candidate",
    "INFINITY",
    "SelectionConfig",
    "TournamentStrategy",
    "EliteStrategy",
    "NicheRadiusStrategy",
    "ObjectiveDirection",
    "DominanceRelation",
    "GenerationReport",
    "Frontier",
    "DEFAULT_OBJECTIVE_DIRECTIONS",
    "DEFAULT_FITNESS_WEIGHTS",
]
