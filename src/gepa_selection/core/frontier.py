"""Pareto frontier archive maintained across generations."""

from typing import List, Mapping, Optional, Sequence

from loguru import logger

from ..errors import (
    IncompleteCandidate,
    InvalidSelectionParameter,
    ObjectiveSchemaMismatch,
    UnknownCandidate,
)
from ..models import Candidate, DominanceRelation, Frontier, ObjectiveDirection
from .dominance import DominanceComparator
from .hypervolume import HypervolumeCalculator

DEFAULT_MAX_FRONTIER_SIZE = 100
DEFAULT_MAX_ARCHIVE_SIZE = 500


def _archive_key(candidate: Candidate) -> tuple:
    return (-(candidate.fitness or 0.0), candidate.id)


class FrontierManager:
    """Keep the best non-dominated solutions seen so far.

    Frontiers are immutable: every operation returns an updated copy with its
    hypervolume recomputed. A candidate dominated by any solution is rejected;
    an accepted one evicts the solutions it dominates. Past the size limit the
    most crowded solutions are dropped, boundary solutions last.
    """

    def __init__(
        self,
        directions: Optional[Mapping[str, ObjectiveDirection]] = None,
        max_size: int = DEFAULT_MAX_FRONTIER_SIZE,
        max_archive_size: int = DEFAULT_MAX_ARCHIVE_SIZE
    ):
        """Initialize manager with objective directions and size limits."""
        if max_size < 1:
            raise InvalidSelectionParameter("max_size", max_size, "must be >= 1")
        if max_archive_size < 0:
            raise InvalidSelectionParameter("max_archive_size", max_archive_size, "must be >= 0")
        self.comparator = DominanceComparator(directions)
        self.hypervolume = HypervolumeCalculator(directions)
        self.max_size = max_size
        self.max_archive_size = max_archive_size

    def new(
        self,
        reference_point: Mapping[str, float],
        objectives: Optional[Sequence[str]] = None
    ) -> Frontier:
        """Empty frontier over ``objectives`` (all configured ones by default)."""
        names = list(objectives) if objectives is not None else list(self.comparator.normalizer.directions)
        if not names:
            raise InvalidSelectionParameter("objectives", names, "must name at least one objective")
        missing = [name for name in names if name not in reference_point]
        if missing:
            raise InvalidSelectionParameter(
                "reference_point", dict(reference_point), f"missing objectives {missing}"
            )
        return Frontier(
            objectives=names,
            objective_directions={name: self.comparator.normalizer.direction(name) for name in names},
            reference_point={name: float(reference_point[name]) for name in names},
        )

    def add_solution(self, frontier: Frontier, candidate: Candidate) -> Frontier:
        """Offer ``candidate`` to the frontier.

        A solution with the same id is replaced. The frontier is returned
        unchanged when an existing solution dominates the candidate.
        """
        if not candidate.objectives:
            raise IncompleteCandidate(candidate.id)
        if set(candidate.objectives) != set(frontier.objectives):
            raise ObjectiveSchemaMismatch(candidate.id, frontier.objectives, candidate.objectives)

        others = [c for c in frontier.solutions if c.id != candidate.id]
        self.comparator.normalizer.validate(others + [candidate])

        relations = [(other, self.comparator.compare(candidate, other)) for other in others]
        if any(relation == DominanceRelation.DOMINATED_BY for _, relation in relations):
            logger.debug(f"Candidate {candidate.id} is dominated, not adding to frontier")
            return frontier

        kept = [other for other, relation in relations if relation != DominanceRelation.DOMINATES]
        evicted = len(others) - len(kept)
        solutions = kept + [candidate]
        logger.debug(
            f"Added candidate {candidate.id} to frontier ({len(solutions)} solutions, "
            f"{evicted} dominated removed)"
        )
        updated = self._with_solutions(frontier, solutions)
        if updated.size > self.max_size:
            return self.trim(updated)
        return updated

    def add_solutions(self, frontier: Frontier, candidates: Sequence[Candidate]) -> Frontier:
        """Offer several candidates in order."""
        for candidate in candidates:
            frontier = self.add_solution(frontier, candidate)
        return frontier

    def remove_solution(self, frontier: Frontier, candidate_id: str) -> Frontier:
        """Frontier without the solution ``candidate_id``."""
        if frontier.get(candidate_id) is None:
            raise UnknownCandidate(candidate_id, "frontier")
        logger.debug(f"Removed candidate {candidate_id} from frontier")
        return self._with_solutions(
            frontier, [c for c in frontier.solutions if c.id != candidate_id]
        )

    def trim(self, frontier: Frontier, max_size: Optional[int] = None) -> Frontier:
        """Keep the ``max_size`` least crowded solutions.

        Boundary solutions have infinite crowding distance and go last; ties
        between equal distances keep the smaller ``id``.
        """
        limit = self.max_size if max_size is None else max_size
        if limit < 1:
            raise InvalidSelectionParameter("max_size", limit, "must be >= 1")
        if frontier.size <= limit:
            return frontier
        distances = self.comparator.crowding_distance(frontier.solutions)
        kept = sorted(frontier.solutions, key=lambda c: (-distances[c.id], c.id))[:limit]
        logger.debug(f"Trimmed frontier from {frontier.size} to {len(kept)} solutions")
        return self._with_solutions(frontier, kept)

    def archive_solution(self, frontier: Frontier, candidate: Candidate) -> Frontier:
        """Keep ``candidate`` in the historical archive.

        Archived ids are unique. Over ``max_archive_size`` the archive keeps
        the highest fitness first (missing fitness counts as 0.0).
        """
        if any(c.id == candidate.id for c in frontier.archive):
            return frontier
        archive = [candidate] + list(frontier.archive)
        if len(archive) > self.max_archive_size:
            archive = sorted(archive, key=_archive_key)[:self.max_archive_size]
        logger.debug(f"Archived candidate {candidate.id} (archive size: {len(archive)})")
        return frontier.model_copy(update={"archive": archive})

    def get_pareto_optimal(self, frontier: Frontier) -> List[Candidate]:
        """All non-dominated solutions held by the frontier."""
        return list(frontier.solutions)

    def get_front(self, frontier: Frontier, rank: int) -> List[Candidate]:
        """Solutions of front ``rank`` as of the last ``update_fronts``."""
        if rank < 1:
            raise InvalidSelectionParameter("rank", rank, "must be >= 1")
        ids = set(frontier.fronts.get(rank, []))
        return [c for c in frontier.solutions if c.id in ids]

    def update_fronts(self, frontier: Frontier) -> Frontier:
        """Re-run non-dominated sorting over the held solutions."""
        fronts = self.comparator.fast_non_dominated_sort(frontier.solutions)
        return frontier.model_copy(update={"fronts": fronts})

    def advance(self, frontier: Frontier, population: Sequence[Candidate], generation: int) -> Frontier:
        """Offer a whole generation, archive accepted solutions and stamp ``generation``."""
        updated = self.add_solutions(frontier, population)
        for candidate in updated.solutions:
            if frontier.get(candidate.id) is None:
                updated = self.archive_solution(updated, candidate)
        logger.debug(
            f"Frontier after generation {generation}: {updated.size} solutions, "
            f"hypervolume {updated.hypervolume:.6f}"
        )
        return updated.model_copy(update={"generation": generation})

    def _with_solutions(self, frontier: Frontier, solutions: List[Candidate]) -> Frontier:
        volume = self.hypervolume.calculate(solutions, frontier.reference_point)
        return frontier.model_copy(
            update={"solutions": solutions, "hypervolume": volume, "fronts": {}}
        )
