"""GEPA Selection - multi-objective selection core for prompt evolution."""

from .config import Settings, configure_logging, get_settings
from .core import (
    DominanceComparator,
    EliteSelector,
    EnvironmentalSelector,
    FitnessSharing,
    FrontierManager,
    HypervolumeCalculator,
    ObjectiveNormalizer,
    SelectionEngine,
    TournamentSelector,
)
from .errors import (
    EmptyPopulation,
    IncompleteCandidate,
    InvalidFitnessValue,
    InvalidObjectiveValue,
    InvalidSelectionParameter,
    ObjectiveSchemaMismatch,
    SelectionError,
    UnknownCandidate,
    UnrankedCandidate,
)
from .models import (
    Candidate,
    DominanceRelation,
    EliteStrategy,
    Frontier,
    GenerationReport,
    NicheRadiusStrategy,
    ObjectiveDirection,
    SelectionConfig,
    TournamentStrategy,
)

__version__ = "0.1.0"

__all__ = [
    "SelectionEngine",
    "DominanceComparator",
    "ObjectiveNormalizer",
    "TournamentSelector",
    "EliteSelector",
    "EnvironmentalSelector",
    "FitnessSharing",
    "FrontierManager",
    "HypervolumeCalculator",
    "Settings",
    "get_settings",
    "configure_logging",
    "Candidate",
    "SelectionConfig",
    "GenerationReport",
    "Frontier",
    "ObjectiveDirection",
    "DominanceRelation",
    "TournamentStrategy",
    "EliteStrategy",
    "NicheRadiusStrategy",
    "SelectionError",
    "EmptyPopulation",
    "IncompleteCandidate",
    "InvalidObjectiveValue",
    "ObjectiveSchemaMismatch",
    "UnrankedCandidate",
    "UnknownCandidate",
    "InvalidSelectionParameter",
    "InvalidFitnessValue",
]
