"""Environmental (survivor) selection and crowding-distance helpers."""

from typing import List, Optional, Sequence

from loguru import logger

from ..errors import EmptyPopulation, InvalidSelectionParameter
from ..models import Candidate
from .dominance import DominanceComparator, crowded_comparison_key, group_fronts, require_ranked


def _by_distance(candidate: Candidate) -> tuple:
    return (-candidate.crowding_distance, candidate.id)


class EnvironmentalSelector:
    """NSGA-II survivor selection over parents plus offspring."""

    def __init__(self, comparator: Optional[DominanceComparator] = None):
        """Initialize selector with the comparator used for ranking."""
        self.comparator = comparator or DominanceComparator()

    def select(self, combined_population: Sequence[Candidate], target_size: int) -> List[Candidate]:
        """Trim a combined population to exactly ``min(target_size, len(combined))``.

        Whole fronts are taken in rank order while they fit; the front that
        would overflow contributes its most isolated candidates (highest
        crowding distance, ``id`` as tie-break) until the target is reached.
        """
        if target_size < 0:
            raise InvalidSelectionParameter("target_size", target_size, "must be >= 0")
        if target_size == 0:
            return []
        if not combined_population:
            raise EmptyPopulation("environmental_select")
        if len(combined_population) <= target_size:
            logger.debug(
                f"Combined population ({len(combined_population)}) fits target {target_size}, "
                "keeping all candidates"
            )
            return list(combined_population)

        ranked = self.comparator.rank_and_measure(combined_population)
        survivors: List[Candidate] = []
        for rank, front in group_fronts(ranked).items():
            remaining = target_size - len(survivors)
            if len(front) <= remaining:
                survivors.extend(front)
                if len(survivors) == target_size:
                    break
                continue
            chosen = sorted(front, key=_by_distance)[:remaining]
            survivors.extend(chosen)
            logger.debug(
                f"Cutoff front {rank}: kept {len(chosen)} of {len(front)} by crowding distance"
            )
            break

        logger.debug(
            f"Environmental selection: {len(combined_population)} -> {len(survivors)} survivors"
        )
        return survivors

    def select_by_crowding_distance(
        self,
        population: Sequence[Candidate],
        count: int
    ) -> List[Candidate]:
        """Best ``count`` ranked candidates by ``(rank, crowding_distance)``."""
        if count < 0:
            raise InvalidSelectionParameter("count", count, "must be >= 0")
        if not population:
            raise EmptyPopulation("select_by_crowding_distance")
        if count > len(population):
            raise InvalidSelectionParameter(
                "count", count, f"exceeds population size {len(population)}"
            )
        require_ranked(population)
        return sorted(population, key=crowded_comparison_key)[:count]

    def identify_boundary_solutions(self, population: Sequence[Candidate]) -> List[str]:
        """Ids of candidates holding the min or max of any objective.

        Extremes are taken over the whole population, not per front; ties go to
        the smallest ``id``.
        """
        if not population:
            return []
        normalized = self.comparator.ensure_normalized(population)
        objectives = list(normalized[0].normalized_objectives)
        boundary_ids: List[str] = []
        for objective in objectives:
            ordered = sorted(
                normalized,
                key=lambda c: (c.normalized_objectives[objective], c.id)
            )
            highest = max(c.normalized_objectives[objective] for c in ordered)
            max_candidate = next(
                c for c in ordered if c.normalized_objectives[objective] == highest
            )
            for candidate_id in (ordered[0].id, max_candidate.id):
                if candidate_id not in boundary_ids:
                    boundary_ids.append(candidate_id)
        return boundary_ids
