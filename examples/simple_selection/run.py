"""Minimal selection example: evolve synthetic prompt candidates for a few generations."""

import random
from typing import List

from gepa_selection import Candidate, FrontierManager, SelectionConfig, SelectionEngine
from gepa_selection.config import Settings, configure_logging

GENERATIONS = 10

settings = Settings(log_level="INFO", seed=7)
configure_logging(settings.log_level)

config = SelectionConfig.from_profile(
    settings.profile,
    population_size=12,
    seed=settings.seed,
)
engine = SelectionEngine(config)
frontier_manager = FrontierManager(config.objective_directions)
rng = random.Random(settings.seed)


def evaluate(candidate_id: str, generation: int, parent_ids: List[str]) -> Candidate:
    """Stand-in evaluator: random scores for accuracy, latency, cost and robustness."""
    return Candidate(
        id=candidate_id,
        generation=generation,
        parent_ids=parent_ids,
        objectives={
            "accuracy": round(rng.uniform(0.5, 1.0), 3),
            "latency": round(rng.uniform(0.2, 3.0), 3),
            "cost": round(rng.uniform(0.001, 0.05), 4),
            "robustness": round(rng.uniform(0.3, 1.0), 3),
        },
    )


def reproduce(parents: List[Candidate], generation: int) -> List[Candidate]:
    """Pair parents and produce one evaluated child per pair."""
    children = []
    for index in range(0, len(parents) - 1, 2):
        pair = [parents[index].id, parents[index + 1].id]
        children.append(evaluate(f"g{generation + 1}-c{index // 2}", generation + 1, pair))
    return children


population = [evaluate(f"g0-c{i}", 0, []) for i in range(config.population_size)]
frontier = frontier_manager.new(frontier_manager.hypervolume.auto_reference_point(population))
frontier = frontier_manager.advance(frontier, population, 0)
for generation in range(GENERATIONS):
    report = engine.run_generation(population, reproduce, generation)
    population = report.survivors
    frontier = frontier_manager.advance(frontier, population, generation + 1)
    print(f"Generation {generation + 1}: frontier {frontier.size}, hypervolume {frontier.hypervolume:.6f}")

final = engine.rank_and_measure(population)
print(f"\nFront 1 after {GENERATIONS} generations:")
for candidate in sorted(final, key=lambda c: (c.pareto_rank, c.id)):
    if candidate.pareto_rank == 1:
        print(f"  {candidate}  {candidate.objectives}")
