"""Pareto dominance, non-dominated sorting and crowding distance."""

from typing import Dict, List, Mapping, Optional, Sequence

from loguru import logger

from ..errors import (
    EmptyPopulation,
    IncompleteCandidate,
    InvalidSelectionParameter,
    ObjectiveSchemaMismatch,
    UnrankedCandidate,
)
from ..models import INFINITY, Candidate, DominanceRelation, ObjectiveDirection
from .normalization import ObjectiveNormalizer

DEFAULT_EPSILON = 0.01
SMALL_FRONT_SIZE = 2


def _normalized(candidate: Candidate) -> Dict[str, float]:
    if candidate.normalized_objectives is None:
        raise IncompleteCandidate(candidate.id)
    return candidate.normalized_objectives


def _normalized_only(candidate: Candidate) -> bool:
    return not candidate.objectives and candidate.normalized_objectives is not None


def _paired_values(a: Candidate, b: Candidate) -> List[tuple]:
    a_objectives = _normalized(a)
    b_objectives = _normalized(b)
    if set(a_objectives) != set(b_objectives):
        raise ObjectiveSchemaMismatch(b.id, a_objectives, b_objectives)
    return [(a_objectives[name], b_objectives[name]) for name in a_objectives]


class DominanceComparator:
    """Pareto dominance over normalized objectives (lower is better).

    The comparator also owns the population snapshot step: raw objectives are
    validated and normalized before any ranking, so ranks and distances always
    describe the population they were computed on.
    """

    def __init__(
        self,
        directions: Optional[Mapping[str, ObjectiveDirection]] = None,
        fitness_weights: Optional[Mapping[str, float]] = None,
        keep_existing_fitness: bool = False
    ):
        """Initialize comparator with objective directions."""
        self.normalizer = ObjectiveNormalizer(directions, fitness_weights, keep_existing_fitness)

    def compare(self, a: Candidate, b: Candidate) -> DominanceRelation:
        """Classify the dominance relation between two candidates."""
        return self._relation(*self._ensure_normalized_pair(a, b))

    @staticmethod
    def _relation(a: Candidate, b: Candidate) -> DominanceRelation:
        a_better = False
        b_better = False
        for a_value, b_value in _paired_values(a, b):
            if a_value < b_value:
                a_better = True
            elif b_value < a_value:
                b_better = True
            if a_better and b_better:
                return DominanceRelation.NON_DOMINATED
        if a_better:
            return DominanceRelation.DOMINATES
        if b_better:
            return DominanceRelation.DOMINATED_BY
        return DominanceRelation.NON_DOMINATED

    def dominates(self, a: Candidate, b: Candidate) -> bool:
        """Check whether ``a`` Pareto-dominates ``b``."""
        return self.compare(a, b) == DominanceRelation.DOMINATES

    def epsilon_dominates(
        self,
        a: Candidate,
        b: Candidate,
        epsilon: float = DEFAULT_EPSILON
    ) -> bool:
        """Relaxed dominance for noisy objectives.

        ``a`` must be within ``epsilon`` of ``b`` on every objective and better
        than ``b`` by more than ``epsilon`` on at least one. Existing normalized
        objectives are reused, so both candidates should come from one ranked
        population.
        """
        if epsilon < 0:
            raise InvalidSelectionParameter("epsilon", epsilon, "must be >= 0")
        a, b = self._ensure_normalized_pair(a, b, reuse_normalized=True)
        pairs = _paired_values(a, b)
        if not pairs:
            return False
        within = all(a_value <= b_value + epsilon for a_value, b_value in pairs)
        clearly_better = any(a_value < b_value - epsilon for a_value, b_value in pairs)
        return within and clearly_better

    def fast_non_dominated_sort(self, population: Sequence[Candidate]) -> Dict[int, List[str]]:
        """Classify candidates into Pareto fronts (NSGA-II).

        Returns ``{rank: [candidate_id, ...]}`` with contiguous ranks starting
        at 1. Ids inside a front keep population order.
        """
        if not population:
            return {}
        return self._sort_fronts(self.ensure_normalized(population))

    def crowding_distance(self, front: Sequence[Candidate]) -> Dict[str, float]:
        """Crowding distance of each candidate within one front."""
        if not front:
            return {}
        if len(front) <= SMALL_FRONT_SIZE:
            return {c.id: INFINITY for c in front}
        return self._front_crowding(self.ensure_normalized(front))

    def _sort_fronts(self, population: Sequence[Candidate]) -> Dict[int, List[str]]:
        size = len(population)
        domination_count = [0] * size
        dominated_sets: List[List[int]] = [[] for _ in range(size)]

        for i in range(size):
            for j in range(i + 1, size):
                relation = self._relation(population[i], population[j])
                if relation == DominanceRelation.DOMINATES:
                    dominated_sets[i].append(j)
                    domination_count[j] += 1
                elif relation == DominanceRelation.DOMINATED_BY:
                    dominated_sets[j].append(i)
                    domination_count[i] += 1

        fronts: Dict[int, List[str]] = {}
        current = [i for i in range(size) if domination_count[i] == 0]
        rank = 1
        while current:
            fronts[rank] = [population[i].id for i in current]
            next_front: List[int] = []
            for i in current:
                for j in dominated_sets[i]:
                    domination_count[j] -= 1
                    if domination_count[j] == 0:
                        next_front.append(j)
            current = sorted(next_front)
            rank += 1

        logger.debug(
            f"Non-dominated sort: {size} candidates into {len(fronts)} fronts "
            f"(front 1 size {len(fronts.get(1, []))})"
        )
        return fronts

    def _front_crowding(self, front: Sequence[Candidate]) -> Dict[str, float]:
        if len(front) <= SMALL_FRONT_SIZE:
            return {c.id: INFINITY for c in front}

        objectives = list(_normalized(front[0]))
        distances: Dict[str, float] = {c.id: 0.0 for c in front}

        for objective in objectives:
            ordered = sorted(front, key=lambda c: (_normalized(c)[objective], c.id))
            low = _normalized(ordered[0])[objective]
            high = _normalized(ordered[-1])[objective]
            value_range = high - low
            if value_range <= 0.0:
                continue
            distances[ordered[0].id] = INFINITY
            distances[ordered[-1].id] = INFINITY
            for position in range(1, len(ordered) - 1):
                candidate_id = ordered[position].id
                if distances[candidate_id] == INFINITY:
                    continue
                prev_value = _normalized(ordered[position - 1])[objective]
                next_value = _normalized(ordered[position + 1])[objective]
                distances[candidate_id] += (next_value - prev_value) / value_range

        return distances

    def prepare(self, population: Sequence[Candidate]) -> List[Candidate]:
        """Validate and normalize a population snapshot."""
        return self.normalizer.normalize(population)

    def ensure_normalized(self, population: Sequence[Candidate]) -> List[Candidate]:
        """Normalized snapshot of exactly this population.

        Candidates with raw objectives are always re-normalized, so values left
        over from another population are never reused. Candidates that only
        carry normalized objectives are taken as given.
        """
        if all(_normalized_only(c) for c in population):
            return list(population)
        return self.prepare(population)

    def _ensure_normalized_pair(
        self,
        a: Candidate,
        b: Candidate,
        reuse_normalized: bool = False
    ) -> tuple:
        if _normalized_only(a) and _normalized_only(b):
            return a, b
        if reuse_normalized and a.normalized_objectives is not None and b.normalized_objectives is not None:
            return a, b
        if a.id == b.id:
            (single,) = self.prepare([a])
            return single, single
        return tuple(self.prepare([a, b]))

    def rank_and_measure(self, population: Sequence[Candidate]) -> List[Candidate]:
        """Normalize, rank and measure crowding distance for a population.

        Returns new candidates in input order; the input is left untouched.
        """
        if not population:
            raise EmptyPopulation("rank_and_measure")
        normalized = self.prepare(population)
        return self.assign_ranks(normalized)

    def assign_ranks(self, population: Sequence[Candidate]) -> List[Candidate]:
        """Attach rank and per-front crowding distance to normalized candidates."""
        if not population:
            return []
        fronts = self._sort_fronts(population)
        by_id = {c.id: c for c in population}
        annotations: Dict[str, tuple] = {}
        for rank, front_ids in fronts.items():
            front = [by_id[candidate_id] for candidate_id in front_ids]
            distances = self._front_crowding(front)
            for candidate_id in front_ids:
                annotations[candidate_id] = (rank, distances[candidate_id])
        return [
            c.with_annotations(
                pareto_rank=annotations[c.id][0],
                crowding_distance=annotations[c.id][1],
            )
            for c in population
        ]


def group_fronts(population: Sequence[Candidate]) -> Dict[int, List[Candidate]]:
    """Group ranked candidates by ``pareto_rank`` in ascending rank order."""
    fronts: Dict[int, List[Candidate]] = {}
    for candidate in population:
        if candidate.pareto_rank is None:
            continue
        fronts.setdefault(candidate.pareto_rank, []).append(candidate)
    return dict(sorted(fronts.items()))


def require_ranked(population: Sequence[Candidate]) -> None:
    """Raise when any candidate lacks rank or crowding distance."""
    for candidate in population:
        if candidate.pareto_rank is None:
            raise UnrankedCandidate(candidate.id, "pareto_rank")
        if candidate.crowding_distance is None:
            raise UnrankedCandidate(candidate.id, "crowding_distance")


def crowded_comparison_key(candidate: Candidate) -> tuple:
    """Sort key for the crowded-comparison operator (smallest wins).

    Lower rank first, then higher crowding distance, then ``id``.
    """
    return (candidate.pareto_rank, -candidate.crowding_distance, candidate.id)
