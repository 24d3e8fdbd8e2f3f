"""Multi-objective selection core."""

from .dominance import DominanceComparator, crowded_comparison_key, group_fronts
from .elite import EliteSelector, elite_count_for
from .engine.selection_engine import SelectionEngine
from .environmental import EnvironmentalSelector
from .frontier import FrontierManager
from .hypervolume import HypervolumeCalculator
from .normalization import ObjectiveNormalizer, aggregate_fitness
from .sharing import FitnessSharing
from .tournament import TournamentSelector, clamp_tournament_size

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
    "aggregate_fitness",
    "clamp_tournament_size",
    "crowded_comparison_key",
    "elite_count_for",
    "group_fronts",
]
