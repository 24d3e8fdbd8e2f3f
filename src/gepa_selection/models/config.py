"""Selection configuration models."""

from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Union

import yaml
from pydantic import BaseModel, Field, model_validator

from .objectives import (
    DEFAULT_FITNESS_WEIGHTS,
    DEFAULT_OBJECTIVE_DIRECTIONS,
    ObjectiveDirection,
)

DEFAULT_POPULATION_SIZE = 20
DEFAULT_TOURNAMENT_SIZE = 3
DEFAULT_MIN_TOURNAMENT_SIZE = 2
DEFAULT_MAX_TOURNAMENT_SIZE = 7
DEFAULT_ELITE_RATIO = 0.15
DEFAULT_MIN_ELITES = 1
DEFAULT_SIMILARITY_THRESHOLD = 0.01
DEFAULT_NICHE_RADIUS = 0.1
DEFAULT_NICHE_BASE_RADIUS = 0.3
DEFAULT_NICHE_FRACTION = 0.1
DEFAULT_TARGET_DIVERSITY = 0.3
DEFAULT_SHARING_ALPHA = 1.0
DEFAULT_SHARING_DIVERSITY_THRESHOLD = 0.3
PROFILE_KEY = "profile"


class TournamentStrategy(str, Enum):
    """Tournament comparison strategy."""

    PARETO = "pareto"
    DIVERSITY = "diversity"
    ADAPTIVE = "adaptive"


class EliteStrategy(str, Enum):
    """Elite preservation strategy."""

    STANDARD = "standard"
    PRESERVE_FRONTIER = "preserve_frontier"
    DIVERSE = "diverse"


class NicheRadiusStrategy(str, Enum):
    """Niche radius calculation strategy for fitness sharing."""

    FIXED = "fixed"
    POPULATION_BASED = "population_based"
    OBJECTIVE_RANGE = "objective_range"
    ADAPTIVE = "adaptive"


SUPPORTED_PROFILES: Set[str] = {"exploratory", "balanced", "exploitative", "advanced"}

PROFILE_PRESETS: Dict[str, Dict[str, Any]] = {
    "exploratory": {
        "tournament_strategy": TournamentStrategy.DIVERSITY,
        "tournament_size": 2,
        "elite_strategy": EliteStrategy.DIVERSE,
        "elite_ratio": 0.1,
        "similarity_threshold": 0.05,
        "sharing_enabled": True,
        "niche_strategy": NicheRadiusStrategy.ADAPTIVE,
        "sharing_alpha": 1.0,
    },
    "balanced": {
        "tournament_strategy": TournamentStrategy.PARETO,
        "tournament_size": 3,
        "elite_strategy": EliteStrategy.PRESERVE_FRONTIER,
        "elite_ratio": 0.15,
        "sharing_enabled": False,
    },
    "exploitative": {
        "tournament_strategy": TournamentStrategy.ADAPTIVE,
        "min_tournament_size": 4,
        "max_tournament_size": 7,
        "elite_strategy": EliteStrategy.STANDARD,
        "elite_ratio": 0.25,
        "sharing_enabled": False,
    },
    "advanced": {},
}


class SelectionConfig(BaseModel):
    """Multi-objective selection configuration."""

    objective_directions: Dict[str, ObjectiveDirection] = Field(
        default_factory=lambda: dict(DEFAULT_OBJECTIVE_DIRECTIONS)
    )
    fitness_weights: Dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_FITNESS_WEIGHTS)
    )
    keep_existing_fitness: bool = False
    population_size: int = Field(default=DEFAULT_POPULATION_SIZE, ge=1, le=1000)
    offspring_count: Optional[int] = Field(default=None, ge=0)
    tournament_strategy: TournamentStrategy = TournamentStrategy.PARETO
    tournament_size: int = Field(default=DEFAULT_TOURNAMENT_SIZE, ge=1)
    min_tournament_size: int = Field(default=DEFAULT_MIN_TOURNAMENT_SIZE, ge=1)
    max_tournament_size: int = Field(default=DEFAULT_MAX_TOURNAMENT_SIZE, ge=1)
    elite_strategy: EliteStrategy = EliteStrategy.PRESERVE_FRONTIER
    elite_ratio: float = Field(default=DEFAULT_ELITE_RATIO, ge=0.0, le=1.0)
    elite_count: Optional[int] = Field(default=None, ge=0)
    min_elites: int = Field(default=DEFAULT_MIN_ELITES, ge=0)
    similarity_threshold: float = Field(default=DEFAULT_SIMILARITY_THRESHOLD, ge=0.0)
    sharing_enabled: bool = False
    niche_strategy: NicheRadiusStrategy = NicheRadiusStrategy.FIXED
    niche_radius: float = Field(default=DEFAULT_NICHE_RADIUS, gt=0.0)
    niche_base_radius: float = Field(default=DEFAULT_NICHE_BASE_RADIUS, gt=0.0)
    niche_fraction: float = Field(default=DEFAULT_NICHE_FRACTION, gt=0.0)
    target_diversity: float = Field(default=DEFAULT_TARGET_DIVERSITY, gt=0.0)
    sharing_alpha: float = Field(default=DEFAULT_SHARING_ALPHA, gt=0.0)
    sharing_objectives: Optional[List[str]] = None
    seed: Optional[int] = None

    @model_validator(mode="after")
    def _check_consistency(self) -> "SelectionConfig":
        if self.min_tournament_size > self.max_tournament_size:
            raise ValueError(
                f"min_tournament_size ({self.min_tournament_size}) exceeds "
                f"max_tournament_size ({self.max_tournament_size})"
            )
        if self.sharing_objectives is not None:
            unknown = set(self.sharing_objectives) - set(self.objective_directions)
            if unknown:
                raise ValueError(
                    f"sharing_objectives not in objective_directions: {sorted(unknown)}"
                )
            if not self.sharing_objectives:
                raise ValueError("sharing_objectives must not be empty")
        return self

    @property
    def effective_offspring_count(self) -> int:
        """Number of parents to select per generation."""
        if self.offspring_count is None:
            return self.population_size
        return self.offspring_count

    @classmethod
    def from_profile(cls, profile: str, **overrides: Any) -> "SelectionConfig":
        """Create config from a named profile with optional overrides."""
        if profile not in SUPPORTED_PROFILES:
            raise ValueError(
                f"Unknown profile '{profile}'. "
                f"Supported: {', '.join(sorted(SUPPORTED_PROFILES))}"
            )
        defaults = dict(PROFILE_PRESETS.get(profile, {}))
        defaults.update(overrides)
        return cls(**defaults)

    @classmethod
    def from_yaml(cls, path: Union[str, Path], **overrides: Any) -> "SelectionConfig":
        """Load config from a YAML mapping, resolving an optional profile key."""
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        data.update(overrides)
        profile = data.pop(PROFILE_KEY, None)
        if profile is not None:
            return cls.from_profile(profile, **data)
        return cls(**data)
