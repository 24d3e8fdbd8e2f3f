"""Elite preservation for multi-objective selection."""

import math
from typing import List, Optional, Sequence

import numpy as np
from loguru import logger

from ..errors import EmptyPopulation, InvalidSelectionParameter
from ..models import Candidate
from ..models.config import (
    DEFAULT_ELITE_RATIO,
    DEFAULT_MIN_ELITES,
    DEFAULT_SIMILARITY_THRESHOLD,
)
from .dominance import DominanceComparator, crowded_comparison_key, require_ranked
from .normalization import objective_matrix


def elite_count_for(
    population_size: int,
    elite_ratio: float = DEFAULT_ELITE_RATIO,
    elite_count: Optional[int] = None,
    min_elites: int = DEFAULT_MIN_ELITES
) -> int:
    """Number of elites for a population, capped at its size.

    An explicit ``elite_count`` overrides the ratio; ``min_elites`` is a floor
    in both cases. Ratios round half up.
    """
    if not 0.0 <= elite_ratio <= 1.0:
        raise InvalidSelectionParameter("elite_ratio", elite_ratio, "must be within [0, 1]")
    if elite_count is not None and elite_count < 0:
        raise InvalidSelectionParameter("elite_count", elite_count, "must be >= 0")
    if min_elites < 0:
        raise InvalidSelectionParameter("min_elites", min_elites, "must be >= 0")
    if elite_count is None:
        elite_count = int(math.floor(population_size * elite_ratio + 0.5))
    return min(population_size, max(min_elites, elite_count))


def _by_distance(candidate: Candidate) -> tuple:
    return (-candidate.crowding_distance, candidate.id)


def _by_rank_distance_age(candidate: Candidate) -> tuple:
    return (
        candidate.pareto_rank,
        -candidate.crowding_distance,
        candidate.generation,
        candidate.id,
    )


class EliteSelector:
    """Choose candidates preserved unconditionally into the next generation."""

    def __init__(self, comparator: Optional[DominanceComparator] = None):
        """Initialize elite selector with the comparator used for re-ranking."""
        self.comparator = comparator or DominanceComparator()

    def select_elites(
        self,
        population: Sequence[Candidate],
        elite_ratio: float = DEFAULT_ELITE_RATIO,
        elite_count: Optional[int] = None,
        min_elites: int = DEFAULT_MIN_ELITES
    ) -> List[Candidate]:
        """Top candidates by ``(pareto_rank asc, crowding_distance desc)``."""
        if not population:
            raise EmptyPopulation("select_elites")
        require_ranked(population)
        k = elite_count_for(len(population), elite_ratio, elite_count, min_elites)
        elites = sorted(population, key=crowded_comparison_key)[:k]
        logger.debug(f"Selected {len(elites)} elites from {len(population)} candidates")
        return elites

    def select_pareto_front_1(self, population: Sequence[Candidate]) -> List[Candidate]:
        """All non-dominated candidates of the current snapshot."""
        if not population:
            raise EmptyPopulation("select_pareto_front_1")
        ranked = self.comparator.rank_and_measure(population)
        return [c for c in ranked if c.pareto_rank == 1]

    def select_elites_preserve_frontier(
        self,
        population: Sequence[Candidate],
        elite_ratio: float = DEFAULT_ELITE_RATIO,
        elite_count: Optional[int] = None,
        min_elites: int = DEFAULT_MIN_ELITES
    ) -> List[Candidate]:
        """Elites that keep the non-dominated frontier intact.

        The population is re-ranked first. Front 1 is kept whole when it fits;
        a Front 1 larger than ``k`` is trimmed by crowding distance, so its
        boundary candidates survive first. Remaining slots are filled from
        later fronts by ``(rank, crowding_distance)``.
        """
        if not population:
            raise EmptyPopulation("select_elites_preserve_frontier")
        ranked = self.comparator.rank_and_measure(population)
        k = elite_count_for(len(ranked), elite_ratio, elite_count, min_elites)

        front_1 = [c for c in ranked if c.pareto_rank == 1]
        if len(front_1) >= k:
            if len(front_1) > k:
                logger.debug(f"Trimming front 1 from {len(front_1)} to {k} elites by crowding distance")
            return sorted(front_1, key=_by_distance)[:k]

        lower_fronts = sorted(
            (c for c in ranked if c.pareto_rank > 1),
            key=crowded_comparison_key
        )
        elites = front_1 + lower_fronts[:k - len(front_1)]
        logger.debug(
            f"Frontier-preserving elites: {len(front_1)} from front 1 + "
            f"{len(elites) - len(front_1)} from lower fronts"
        )
        return elites

    def select_diverse_elites(
        self,
        population: Sequence[Candidate],
        elite_count: int,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD
    ) -> List[Candidate]:
        """Elites without near-duplicates in normalized objective space.

        Walks candidates by ``(rank, crowding_distance, generation)`` and skips
        any candidate closer than ``similarity_threshold`` to an elite already
        chosen. May return fewer than ``elite_count`` candidates.
        """
        if elite_count < 0:
            raise InvalidSelectionParameter("elite_count", elite_count, "must be >= 0")
        if similarity_threshold < 0:
            raise InvalidSelectionParameter(
                "similarity_threshold", similarity_threshold, "must be >= 0"
            )
        if not population:
            raise EmptyPopulation("select_diverse_elites")
        require_ranked(population)

        ordered = sorted(population, key=_by_rank_distance_age)
        vectors = objective_matrix(ordered)
        selected_rows: List[int] = []
        for row in range(len(ordered)):
            if len(selected_rows) >= elite_count:
                break
            if selected_rows:
                gaps = np.linalg.norm(vectors[selected_rows] - vectors[row], axis=1)
                if np.any(gaps < similarity_threshold):
                    continue
            selected_rows.append(row)

        skipped = min(len(ordered), elite_count) - len(selected_rows)
        if skipped > 0:
            logger.debug(f"Diverse elites: {skipped} slots left empty by near-duplicates")
        return [ordered[row] for row in selected_rows]
