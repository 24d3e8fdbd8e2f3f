"""Selection engine wiring ranking, elitism, parent and survivor selection."""

import random
from collections import Counter
from typing import Callable, Dict, List, Optional, Sequence

from loguru import logger

from ...errors import EmptyPopulation
from ...models import (
    Candidate,
    EliteStrategy,
    GenerationReport,
    ObjectiveDirection,
    SelectionConfig,
)
from ..dominance import DominanceComparator
from ..elite import EliteSelector, elite_count_for
from ..environmental import EnvironmentalSelector
from ..sharing import FitnessSharing
from ..tournament import TournamentSelector

ReproduceFn = Callable[[List[Candidate], int], Sequence[Candidate]]


class SelectionEngine:
    """Run the multi-objective selection steps of one GEPA generation.

    Each generation: rank and measure the population, optionally apply fitness
    sharing, extract elites, pick parents by tournament, hand them to the
    injected reproduction callable and trim parents plus offspring back to
    ``population_size`` with environmental selection.
    """

    def __init__(
        self,
        config: Optional[SelectionConfig] = None,
        rng: Optional[random.Random] = None
    ):
        """Initialize engine components from a selection config."""
        self.config = config or SelectionConfig()
        self.rng = rng or random.Random(self.config.seed)
        self.comparator = DominanceComparator(
            self.config.objective_directions,
            self.config.fitness_weights,
            keep_existing_fitness=self.config.keep_existing_fitness
        )
        self.tournament_selector = TournamentSelector(
            tournament_size=self.config.tournament_size,
            strategy=self.config.tournament_strategy,
            min_tournament_size=self.config.min_tournament_size,
            max_tournament_size=self.config.max_tournament_size,
            rng=self.rng
        )
        self.elite_selector = EliteSelector(self.comparator)
        self.environmental_selector = EnvironmentalSelector(self.comparator)
        self.fitness_sharing = FitnessSharing(
            niche_radius=self.config.niche_radius,
            sharing_alpha=self.config.sharing_alpha
        )

    def rank_and_measure(self, population: Sequence[Candidate]) -> List[Candidate]:
        """Normalize, rank and attach crowding distance to a population."""
        return self.comparator.rank_and_measure(population)

    def select_elites(self, population: Sequence[Candidate]) -> List[Candidate]:
        """Elites under the configured elite strategy.

        The population is always re-ranked, so rank and crowding distance left
        over from another population are ignored.
        """
        if not population:
            raise EmptyPopulation("select_elites")
        return self._elites_from(self.rank_and_measure(population))

    def _elites_from(self, ranked: List[Candidate]) -> List[Candidate]:
        config = self.config
        if config.elite_strategy == EliteStrategy.PRESERVE_FRONTIER:
            by_id = {c.id: c for c in ranked}
            elites = self.elite_selector.select_elites_preserve_frontier(
                ranked,
                elite_ratio=config.elite_ratio,
                elite_count=config.elite_count,
                min_elites=config.min_elites
            )
            return [by_id[c.id] for c in elites]

        if config.elite_strategy == EliteStrategy.DIVERSE:
            k = elite_count_for(len(ranked), config.elite_ratio, config.elite_count, config.min_elites)
            return self.elite_selector.select_diverse_elites(
                ranked, k, similarity_threshold=config.similarity_threshold
            )
        return self.elite_selector.select_elites(
            ranked,
            elite_ratio=config.elite_ratio,
            elite_count=config.elite_count,
            min_elites=config.min_elites
        )

    def select_parents(
        self,
        population: Sequence[Candidate],
        count: Optional[int] = None
    ) -> List[Candidate]:
        """Parents for reproduction, one tournament per parent.

        Tournaments run on a fresh ranking of ``population``.
        """
        if not population:
            raise EmptyPopulation("select_parents")
        return self._parents_from(self.rank_and_measure(population), count)

    def _parents_from(self, ranked: List[Candidate], count: Optional[int]) -> List[Candidate]:
        if count is None:
            count = self.config.effective_offspring_count
        return self.tournament_selector.select_many(ranked, count)

    def select_survivors(
        self,
        combined_population: Sequence[Candidate],
        target_size: Optional[int] = None
    ) -> List[Candidate]:
        """Next generation from parents plus offspring."""
        if target_size is None:
            target_size = self.config.population_size
        return self.environmental_selector.select(combined_population, target_size)

    def apply_sharing(self, population: Sequence[Candidate]) -> List[Candidate]:
        """Fitness sharing when enabled, population copy otherwise."""
        if not self.config.sharing_enabled or not population:
            return list(population)
        config = self.config
        radius = self.fitness_sharing.calculate_niche_radius(
            population,
            strategy=config.niche_strategy,
            radius=config.niche_radius,
            base_radius=config.niche_base_radius,
            fraction=config.niche_fraction,
            target_diversity=config.target_diversity
        )
        if config.sharing_objectives:
            return self.fitness_sharing.apply_objective_specific_sharing(
                population, config.sharing_objectives, niche_radius=radius
            )
        return self.fitness_sharing.apply_sharing(population, niche_radius=radius)

    def run_generation(
        self,
        population: Sequence[Candidate],
        reproduce: ReproduceFn,
        generation: int = 0
    ) -> GenerationReport:
        """Run one generation transition and report its intermediate results.

        ``reproduce`` receives the selected parents and the current generation
        number and must return evaluated offspring with fresh ids.

        Elites always survive: they take the first seats of the next
        generation and environmental selection fills the remaining
        ``population_size - len(elites)`` seats from the other parents and the
        offspring. Survivors are re-ranked as a population of their own.
        """
        if not population:
            raise EmptyPopulation("run_generation")

        ranked = self.apply_sharing(self.rank_and_measure(population))
        elites = self._elites_from(ranked)
        parents = self._parents_from(ranked, None)
        offspring = list(reproduce(parents, generation))

        survivors = self.rank_and_measure(self._seat_survivors(elites, ranked + offspring))

        front_sizes = dict(sorted(Counter(c.pareto_rank for c in ranked).items()))
        best = self.best_objectives(survivors)
        logger.info(
            f"Generation {generation}: {len(ranked)} candidates, {len(front_sizes)} fronts "
            f"(front 1 size {front_sizes.get(1, 0)}), {len(elites)} elites, "
            f"{len(offspring)} offspring -> {len(survivors)} survivors"
        )
        logger.debug(f"Generation {generation} best objectives: {best}")

        return GenerationReport(
            generation=generation,
            ranked_population=ranked,
            elites=elites,
            parents=parents,
            offspring_ids=[c.id for c in offspring],
            survivors=survivors,
            front_sizes=front_sizes,
            best_objectives=best
        )

    def best_objectives(self, population: Sequence[Candidate]) -> Dict[str, float]:
        """Best raw value of every objective, honoring its direction."""
        best: Dict[str, float] = {}
        for candidate in population:
            for name, value in (candidate.objectives or {}).items():
                if name not in best:
                    best[name] = value
                elif self.comparator.normalizer.direction(name) == ObjectiveDirection.MINIMIZE:
                    best[name] = min(best[name], value)
                else:
                    best[name] = max(best[name], value)
        return best

    def _seat_survivors(
        self,
        elites: Sequence[Candidate],
        combined: Sequence[Candidate]
    ) -> List[Candidate]:
        seated = list(elites[:self.config.population_size])
        seated_ids = {c.id for c in seated}
        pool = [c for c in _unique_by_id(combined) if c.id not in seated_ids]
        remaining = self.config.population_size - len(seated)
        if remaining > 0 and pool:
            seated.extend(self.select_survivors(pool, remaining))
        return seated


def _unique_by_id(population: Sequence[Candidate]) -> List[Candidate]:
    seen = set()
    unique: List[Candidate] = []
    for candidate in population:
        if candidate.id in seen:
            continue
        seen.add(candidate.id)
        unique.append(candidate)
    return unique
