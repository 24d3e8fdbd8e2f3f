"""Tournament selection for parent selection."""

import math
import random
from typing import Callable, List, Optional, Sequence, Tuple

from loguru import logger

from ..errors import EmptyPopulation, InvalidSelectionParameter
from ..models import Candidate, TournamentStrategy
from ..models.config import (
    DEFAULT_MAX_TOURNAMENT_SIZE,
    DEFAULT_MIN_TOURNAMENT_SIZE,
    DEFAULT_TOURNAMENT_SIZE,
)
from .dominance import crowded_comparison_key, require_ranked

SortKey = Callable[[Candidate], Tuple]


def diversity_comparison_key(candidate: Candidate) -> Tuple:
    """Sort key favoring isolated candidates, rank as tie-break."""
    return (-candidate.crowding_distance, candidate.pareto_rank, candidate.id)


def clamp_tournament_size(tournament_size: int, population_size: int) -> int:
    """Clamp a tournament size to ``population_size - 1`` (minimum 1)."""
    if tournament_size < 1:
        raise InvalidSelectionParameter("tournament_size", tournament_size, "must be >= 1")
    if tournament_size >= population_size:
        clamped = max(1, population_size - 1)
        logger.debug(
            f"Tournament size {tournament_size} clamped to {clamped} "
            f"for population of {population_size}"
        )
        return clamped
    return tournament_size


class TournamentSelector:
    """Pick parents through k-way tournaments.

    Sampling uses an injected ``random.Random`` so runs are reproducible;
    winners are decided by a total, deterministic ordering.
    """

    def __init__(
        self,
        tournament_size: int = DEFAULT_TOURNAMENT_SIZE,
        strategy: TournamentStrategy = TournamentStrategy.PARETO,
        min_tournament_size: int = DEFAULT_MIN_TOURNAMENT_SIZE,
        max_tournament_size: int = DEFAULT_MAX_TOURNAMENT_SIZE,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None
    ):
        """Initialize selector with tournament settings and random source."""
        if tournament_size < 1:
            raise InvalidSelectionParameter("tournament_size", tournament_size, "must be >= 1")
        self.tournament_size = tournament_size
        self.strategy = TournamentStrategy(strategy)
        self.min_tournament_size = min_tournament_size
        self.max_tournament_size = max_tournament_size
        self.rng = rng or random.Random(seed)

    def select_one(
        self,
        population: Sequence[Candidate],
        tournament_size: Optional[int] = None
    ) -> Candidate:
        """Run one tournament and return its winner."""
        self._validate(population, "select_one")
        size = self._resolve_size(population, tournament_size)
        return self.run_tournament(population, size, self._comparison_key())

    def select_many(
        self,
        population: Sequence[Candidate],
        count: int,
        tournament_size: Optional[int] = None
    ) -> List[Candidate]:
        """Run ``count`` independent tournaments (with replacement across runs)."""
        if count < 0:
            raise InvalidSelectionParameter("count", count, "must be >= 0")
        self._validate(population, "select_many")
        size = self._resolve_size(population, tournament_size)
        key = self._comparison_key()
        winners = [self.run_tournament(population, size, key) for _ in range(count)]
        logger.debug(
            f"Selected {len(winners)} parents via {self.strategy.value} tournaments of size {size}"
        )
        return winners

    def run_tournament(
        self,
        population: Sequence[Candidate],
        tournament_size: int,
        key: SortKey = crowded_comparison_key
    ) -> Candidate:
        """Sample distinct contenders and return the best under ``key``."""
        contenders = self.rng.sample(list(population), tournament_size)
        return min(contenders, key=key)

    def adaptive_tournament_size(
        self,
        population: Sequence[Candidate],
        min_size: Optional[int] = None,
        max_size: Optional[int] = None
    ) -> int:
        """Map population diversity linearly into ``[min_size, max_size]``.

        Low diversity gives weak selection pressure (small tournaments), high
        diversity gives strong pressure.
        """
        min_size = self.min_tournament_size if min_size is None else min_size
        max_size = self.max_tournament_size if max_size is None else max_size
        if min_size < 1:
            raise InvalidSelectionParameter("min_tournament_size", min_size, "must be >= 1")
        if min_size > max_size:
            raise InvalidSelectionParameter(
                "min_tournament_size", min_size, f"exceeds max_tournament_size {max_size}"
            )
        if not population:
            raise EmptyPopulation("adaptive_tournament_size")

        diversity = self.diversity_signal(population)
        size = min_size + int(math.floor(diversity * (max_size - min_size) + 0.5))
        logger.debug(f"Adaptive tournament: diversity={diversity:.3f}, size={size}")
        return size

    @staticmethod
    def diversity_signal(population: Sequence[Candidate]) -> float:
        """Mean finite crowding distance scaled to ``[0, 1]``.

        Interior crowding distances are bounded by the number of objectives,
        which is used as the scale. Populations without finite distances
        report 0.0.
        """
        require_ranked(population)
        finite = [
            c.crowding_distance for c in population
            if math.isfinite(c.crowding_distance)
        ]
        if not finite:
            return 0.0
        first = population[0]
        objectives = first.normalized_objectives or first.objectives or {}
        scale = max(1, len(objectives))
        mean_distance = sum(finite) / len(finite)
        return min(1.0, max(0.0, mean_distance / scale))

    def _validate(self, population: Sequence[Candidate], operation: str) -> None:
        if not population:
            raise EmptyPopulation(operation)
        require_ranked(population)

    def _resolve_size(
        self,
        population: Sequence[Candidate],
        tournament_size: Optional[int]
    ) -> int:
        if tournament_size is None:
            if self.strategy == TournamentStrategy.ADAPTIVE:
                tournament_size = self.adaptive_tournament_size(population)
            else:
                tournament_size = self.tournament_size
        return clamp_tournament_size(tournament_size, len(population))

    def _comparison_key(self) -> SortKey:
        if self.strategy == TournamentStrategy.DIVERSITY:
            return diversity_comparison_key
        return crowded_comparison_key
