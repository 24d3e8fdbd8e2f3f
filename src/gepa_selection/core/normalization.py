"""Population-relative objective normalization."""

import math
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set

import numpy as np
from loguru import logger

from ..errors import (
    EmptyPopulation,
    IncompleteCandidate,
    InvalidObjectiveValue,
    InvalidSelectionParameter,
    ObjectiveSchemaMismatch,
)
from ..models import (
    DEFAULT_FITNESS_WEIGHTS,
    DEFAULT_OBJECTIVE_DIRECTIONS,
    Candidate,
    ObjectiveDirection,
)

FLAT_OBJECTIVE_VALUE = 0.5
FITNESS_PRECISION = 4
RAW_FITNESS_KEY = "raw_fitness"
NICHE_COUNT_KEY = "niche_count"
SHARING_METADATA_KEYS = (RAW_FITNESS_KEY, NICHE_COUNT_KEY)


def aggregate_fitness(
    normalized_objectives: Mapping[str, float],
    weights: Optional[Mapping[str, float]] = None
) -> float:
    """Weighted score in [0, 1] from lower-is-better normalized objectives.

    Objectives without a weight do not contribute. When none of the
    objectives has a positive weight every objective counts equally.
    """
    if not normalized_objectives:
        return 0.0
    weights = DEFAULT_FITNESS_WEIGHTS if weights is None else weights
    applied = {name: weights.get(name, 0.0) for name in normalized_objectives}
    total_weight = sum(applied.values())
    if total_weight <= 0.0:
        applied = {name: 1.0 for name in normalized_objectives}
        total_weight = float(len(applied))
    score = sum(
        weight * (1.0 - normalized_objectives[name])
        for name, weight in applied.items()
    )
    return round(score / total_weight, FITNESS_PRECISION)


class ObjectiveNormalizer:
    """Validate raw objectives and min-max scale them across a population."""

    def __init__(
        self,
        directions: Optional[Mapping[str, ObjectiveDirection]] = None,
        fitness_weights: Optional[Mapping[str, float]] = None,
        keep_existing_fitness: bool = False
    ):
        """Initialize normalizer with objective directions and fitness weights."""
        self.directions: Dict[str, ObjectiveDirection] = {
            name: ObjectiveDirection(direction)
            for name, direction in (
                DEFAULT_OBJECTIVE_DIRECTIONS if directions is None else directions
            ).items()
        }
        self.fitness_weights = fitness_weights
        self.keep_existing_fitness = keep_existing_fitness
        self._warned_objectives: Set[str] = set()

    def validate(self, population: Sequence[Candidate]) -> List[str]:
        """Check the population boundary and return the shared objective names."""
        if not population:
            raise EmptyPopulation("normalize")

        seen_ids = set()
        expected: Optional[List[str]] = None
        for candidate in population:
            if candidate.id in seen_ids:
                raise InvalidSelectionParameter(
                    "candidate_id", candidate.id, "ids must be unique within a population"
                )
            seen_ids.add(candidate.id)

            if not candidate.objectives:
                raise IncompleteCandidate(candidate.id)

            if expected is None:
                expected = list(candidate.objectives)
            elif set(candidate.objectives) != set(expected):
                raise ObjectiveSchemaMismatch(candidate.id, expected, candidate.objectives)

            for name, value in candidate.objectives.items():
                if isinstance(value, bool) or not isinstance(value, (int, float)):
                    raise InvalidObjectiveValue(candidate.id, name, value)
                if not math.isfinite(value):
                    raise InvalidObjectiveValue(candidate.id, name, value)

        return expected or []

    def direction(self, objective: str) -> ObjectiveDirection:
        """Configured direction of an objective, maximize when unconfigured."""
        direction = self.directions.get(objective)
        if direction is not None:
            return direction
        if objective not in self._warned_objectives:
            self._warned_objectives.add(objective)
            logger.warning(f"No direction configured for objective '{objective}', assuming maximize")
        return ObjectiveDirection.MAXIMIZE

    def normalize(self, population: Sequence[Candidate]) -> List[Candidate]:
        """Return copies with normalized objectives (lower is better).

        ``fitness`` is recomputed as the weighted aggregate against this
        population and sharing annotations left in ``metadata`` are dropped.
        With ``keep_existing_fitness`` a caller-supplied fitness (or its
        pre-sharing value) is kept instead.
        """
        names = self.validate(population)
        raw = np.array(
            [[float(c.objectives[name]) for name in names] for c in population],
            dtype=float,
        )
        mins = raw.min(axis=0)
        spans = raw.max(axis=0) - mins

        scaled = np.full_like(raw, FLAT_OBJECTIVE_VALUE)
        varying = spans > 0.0
        scaled[:, varying] = (raw[:, varying] - mins[varying]) / spans[varying]

        for column, name in enumerate(names):
            if self.direction(name) == ObjectiveDirection.MAXIMIZE:
                scaled[:, column] = 1.0 - scaled[:, column]
        np.clip(scaled, 0.0, 1.0, out=scaled)

        if not varying.any() and len(population) > 1:
            logger.warning(f"All {len(population)} candidates have identical objectives")

        normalized_population: List[Candidate] = []
        for row, candidate in zip(scaled, population):
            normalized = {name: float(row[column]) for column, name in enumerate(names)}
            normalized_population.append(
                candidate.with_annotations(
                    normalized_objectives=normalized,
                    fitness=self._fitness_for(candidate, normalized),
                    metadata=_without_sharing_annotations(candidate.metadata),
                )
            )
        logger.debug(f"Normalized {len(population)} candidates over objectives {names}")
        return normalized_population

    def _fitness_for(self, candidate: Candidate, normalized: Mapping[str, float]) -> float:
        if self.keep_existing_fitness:
            existing = candidate.metadata.get(RAW_FITNESS_KEY, candidate.fitness)
            if existing is not None:
                return existing
        return aggregate_fitness(normalized, self.fitness_weights)


def _without_sharing_annotations(metadata: Dict[str, Any]) -> Dict[str, Any]:
    if not any(key in metadata for key in SHARING_METADATA_KEYS):
        return metadata
    return {key: value for key, value in metadata.items() if key not in SHARING_METADATA_KEYS}


def objective_matrix(
    population: Sequence[Candidate],
    objectives: Optional[Sequence[str]] = None
) -> np.ndarray:
    """Stack normalized objectives into an ``(N, M)`` array."""
    if not population:
        return np.empty((0, len(objectives or [])), dtype=float)
    names = list(objectives) if objectives is not None else None
    rows = []
    for candidate in population:
        normalized = candidate.normalized_objectives
        if normalized is None:
            raise IncompleteCandidate(candidate.id)
        if names is None:
            names = list(normalized)
        missing = [name for name in names if name not in normalized]
        if missing:
            raise ObjectiveSchemaMismatch(candidate.id, names, normalized)
        rows.append([normalized[name] for name in names])
    return np.asarray(rows, dtype=float)


def pairwise_distances(matrix: np.ndarray) -> np.ndarray:
    """Euclidean distance between every pair of rows."""
    diffs = matrix[:, np.newaxis, :] - matrix[np.newaxis, :, :]
    return np.sqrt(np.sum(diffs * diffs, axis=-1))
