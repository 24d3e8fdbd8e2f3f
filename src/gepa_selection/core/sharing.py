"""Niche-based fitness sharing in normalized objective space."""

import math
from typing import List, Optional, Sequence, Tuple

import numpy as np
from loguru import logger

from ..errors import (
    EmptyPopulation,
    IncompleteCandidate,
    InvalidFitnessValue,
    InvalidSelectionParameter,
)
from ..models import Candidate, NicheRadiusStrategy
from ..models.config import (
    DEFAULT_NICHE_BASE_RADIUS,
    DEFAULT_NICHE_FRACTION,
    DEFAULT_NICHE_RADIUS,
    DEFAULT_SHARING_ALPHA,
    DEFAULT_SHARING_DIVERSITY_THRESHOLD,
    DEFAULT_TARGET_DIVERSITY,
)
from .normalization import (
    NICHE_COUNT_KEY,
    RAW_FITNESS_KEY,
    aggregate_fitness,
    objective_matrix,
    pairwise_distances,
)

DIVERSITY_METRICS = ("crowding", "pairwise_distance")


def sharing_function(distance: float, niche_radius: float, sharing_alpha: float) -> float:
    """sh(d) = 1 - (d / r)^alpha inside the niche, 0 outside."""
    if distance < niche_radius:
        return 1.0 - (distance / niche_radius) ** sharing_alpha
    return 0.0


def _sharing_matrix(distances: np.ndarray, niche_radius: float, sharing_alpha: float) -> np.ndarray:
    inside = distances < niche_radius
    shares = np.zeros_like(distances)
    shares[inside] = 1.0 - np.power(distances[inside] / niche_radius, sharing_alpha)
    return shares


def raw_fitness_of(candidate: Candidate) -> float:
    """Fitness before sharing.

    A previously recorded raw fitness wins over ``fitness`` so sharing never
    compounds across generations. Candidates with no fitness fall back to the
    weighted aggregate of their normalized objectives.
    """
    if RAW_FITNESS_KEY in candidate.metadata:
        value = candidate.metadata[RAW_FITNESS_KEY]
    elif candidate.fitness is not None:
        value = candidate.fitness
    elif candidate.normalized_objectives is not None:
        value = aggregate_fitness(candidate.normalized_objectives)
    else:
        raise IncompleteCandidate(candidate.id)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidFitnessValue(candidate.id, value)
    if not math.isfinite(value) or value < 0:
        raise InvalidFitnessValue(candidate.id, value)
    return float(value)


def _validate_sharing_parameters(niche_radius: float, sharing_alpha: float) -> None:
    if not niche_radius > 0:
        raise InvalidSelectionParameter("niche_radius", niche_radius, "must be > 0")
    if not sharing_alpha > 0:
        raise InvalidSelectionParameter("sharing_alpha", sharing_alpha, "must be > 0")


def average_pairwise_distance(population: Sequence[Candidate]) -> float:
    """Mean Euclidean distance over all distinct pairs (0.0 below two candidates)."""
    if len(population) < 2:
        return 0.0
    distances = pairwise_distances(objective_matrix(population))
    upper = np.triu_indices(len(population), k=1)
    return float(distances[upper].mean())


class FitnessSharing:
    """Penalize candidates clustered in objective space.

    Each candidate's fitness is divided by its niche count: the sum of the
    sharing function over its distances to every candidate, itself included.
    Isolated candidates keep their fitness, crowded ones are penalized.
    """

    def __init__(
        self,
        niche_radius: float = DEFAULT_NICHE_RADIUS,
        sharing_alpha: float = DEFAULT_SHARING_ALPHA,
        preserve_raw_fitness: bool = True
    ):
        """Initialize fitness sharing with default niche parameters."""
        _validate_sharing_parameters(niche_radius, sharing_alpha)
        self.niche_radius = niche_radius
        self.sharing_alpha = sharing_alpha
        self.preserve_raw_fitness = preserve_raw_fitness

    def apply_sharing(
        self,
        population: Sequence[Candidate],
        niche_radius: Optional[float] = None,
        sharing_alpha: Optional[float] = None,
        preserve_raw_fitness: Optional[bool] = None
    ) -> List[Candidate]:
        """Return copies whose fitness is divided by their niche count."""
        return self._share(population, None, niche_radius, sharing_alpha, preserve_raw_fitness)

    def apply_objective_specific_sharing(
        self,
        population: Sequence[Candidate],
        objectives_subset: Sequence[str],
        niche_radius: Optional[float] = None,
        sharing_alpha: Optional[float] = None
    ) -> List[Candidate]:
        """Fitness sharing with distances measured over a subset of objectives."""
        if not objectives_subset:
            raise InvalidSelectionParameter(
                "objectives_subset", list(objectives_subset), "must name at least one objective"
            )
        return self._share(population, list(objectives_subset), niche_radius, sharing_alpha, None)

    def niche_count(
        self,
        candidate: Candidate,
        population: Sequence[Candidate],
        niche_radius: Optional[float] = None,
        sharing_alpha: Optional[float] = None,
        objectives: Optional[Sequence[str]] = None
    ) -> float:
        """Sum of the sharing function between ``candidate`` and ``population``.

        ``population`` is expected to contain ``candidate``; the self term
        contributes 1.0.
        """
        radius = self.niche_radius if niche_radius is None else niche_radius
        alpha = self.sharing_alpha if sharing_alpha is None else sharing_alpha
        _validate_sharing_parameters(radius, alpha)
        if not population:
            raise EmptyPopulation("niche_count")

        names = list(objectives) if objectives is not None else None
        if names is None and candidate.normalized_objectives is not None:
            names = list(candidate.normalized_objectives)
        own = objective_matrix([candidate], names)[0]
        others = objective_matrix(population, names)
        distances = np.linalg.norm(others - own, axis=1)
        return float(_sharing_matrix(distances, radius, alpha).sum())

    def calculate_niche_radius(
        self,
        population: Sequence[Candidate],
        strategy: NicheRadiusStrategy = NicheRadiusStrategy.FIXED,
        radius: float = DEFAULT_NICHE_RADIUS,
        base_radius: float = DEFAULT_NICHE_BASE_RADIUS,
        fraction: float = DEFAULT_NICHE_FRACTION,
        target_diversity: float = DEFAULT_TARGET_DIVERSITY
    ) -> float:
        """Niche radius for a population under the given strategy.

        - ``fixed``: ``radius`` as given.
        - ``population_based``: ``base_radius / sqrt(N)``.
        - ``objective_range``: ``fraction`` of the normalized space diagonal
          (``sqrt(M)``).
        - ``adaptive``: scaled from the mean pairwise distance; crowded
          populations get a wider radius, spread ones a narrower one.
        """
        try:
            strategy = NicheRadiusStrategy(strategy)
        except ValueError:
            raise InvalidSelectionParameter(
                "niche_strategy", strategy,
                f"supported: {', '.join(s.value for s in NicheRadiusStrategy)}"
            )
        if not population:
            return DEFAULT_NICHE_RADIUS

        if strategy == NicheRadiusStrategy.FIXED:
            value = radius
        elif strategy == NicheRadiusStrategy.POPULATION_BASED:
            value = base_radius / math.sqrt(len(population))
        elif strategy == NicheRadiusStrategy.OBJECTIVE_RANGE:
            first = population[0]
            objectives = first.normalized_objectives or first.objectives or {}
            diagonal = math.sqrt(len(objectives)) if objectives else 1.0
            value = fraction * diagonal
        else:
            value = self._adaptive_radius(population, target_diversity)

        if not value > 0:
            raise InvalidSelectionParameter(
                "niche_radius", value, f"{strategy.value} strategy produced a non-positive radius"
            )
        logger.debug(f"Niche radius ({strategy.value}): {value:.4f}")
        return value

    def adaptive_apply_sharing(
        self,
        population: Sequence[Candidate],
        diversity_threshold: float = DEFAULT_SHARING_DIVERSITY_THRESHOLD,
        metric: str = "crowding",
        niche_radius: Optional[float] = None,
        sharing_alpha: Optional[float] = None
    ) -> Tuple[List[Candidate], bool]:
        """Apply sharing only while diversity is below ``diversity_threshold``.

        Returns the (possibly shared) population and whether sharing ran.
        """
        if metric not in DIVERSITY_METRICS:
            raise InvalidSelectionParameter(
                "metric", metric, f"supported: {', '.join(DIVERSITY_METRICS)}"
            )
        if not population:
            return [], False

        diversity = self.population_diversity(population, metric)
        if diversity < diversity_threshold:
            logger.debug(
                f"Applying fitness sharing (diversity {diversity:.3f} < {diversity_threshold})"
            )
            return self.apply_sharing(population, niche_radius, sharing_alpha), True

        logger.debug(
            f"Skipping fitness sharing (diversity {diversity:.3f} >= {diversity_threshold})"
        )
        return list(population), False

    @staticmethod
    def population_diversity(population: Sequence[Candidate], metric: str = "crowding") -> float:
        """Mean finite crowding distance, or mean pairwise objective distance."""
        if metric == "pairwise_distance":
            return average_pairwise_distance(population)
        finite = [
            c.crowding_distance for c in population
            if c.crowding_distance is not None and math.isfinite(c.crowding_distance)
        ]
        if not finite:
            return 0.0
        return sum(finite) / len(finite)

    def _adaptive_radius(self, population: Sequence[Candidate], target_diversity: float) -> float:
        average = average_pairwise_distance(population)
        if average < target_diversity * 0.5:
            return max(average * 2.0, DEFAULT_NICHE_RADIUS)
        if average < target_diversity:
            return average * 1.5
        return average * 0.5

    def _share(
        self,
        population: Sequence[Candidate],
        objectives: Optional[List[str]],
        niche_radius: Optional[float],
        sharing_alpha: Optional[float],
        preserve_raw_fitness: Optional[bool]
    ) -> List[Candidate]:
        if not population:
            return []
        radius = self.niche_radius if niche_radius is None else niche_radius
        alpha = self.sharing_alpha if sharing_alpha is None else sharing_alpha
        preserve = self.preserve_raw_fitness if preserve_raw_fitness is None else preserve_raw_fitness
        _validate_sharing_parameters(radius, alpha)

        raw = [raw_fitness_of(c) for c in population]
        distances = pairwise_distances(objective_matrix(population, objectives))
        niche_counts = _sharing_matrix(distances, radius, alpha).sum(axis=1)

        shared_population: List[Candidate] = []
        for candidate, raw_fitness, count in zip(population, raw, niche_counts):
            shared = raw_fitness / count if count > 0 else raw_fitness
            update = {"fitness": float(shared)}
            if preserve:
                metadata = dict(candidate.metadata)
                metadata[RAW_FITNESS_KEY] = raw_fitness
                metadata[NICHE_COUNT_KEY] = float(count)
                update["metadata"] = metadata
            shared_population.append(candidate.with_annotations(**update))

        crowded = int(np.sum(niche_counts > 1.0))
        logger.debug(
            f"Fitness sharing (r={radius:.4f}, alpha={alpha}): "
            f"{crowded}/{len(population)} candidates share a niche"
        )
        return shared_population
