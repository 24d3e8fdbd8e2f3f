"""Shared fixtures for the selection test suite."""

import random

import pytest

from gepa_selection import Candidate, DominanceComparator, ObjectiveDirection

DIRECTIONS = {
    "accuracy": ObjectiveDirection.MAXIMIZE,
    "cost": ObjectiveDirection.MINIMIZE,
}


@pytest.fixture
def directions():
    return dict(DIRECTIONS)


@pytest.fixture
def comparator():
    return DominanceComparator(DIRECTIONS)


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def make_candidate():
    """Candidate with raw objectives given as keyword arguments."""
    def _make(candidate_id, generation=0, **objectives):
        return Candidate(id=candidate_id, generation=generation, objectives=objectives)
    return _make


@pytest.fixture
def make_normalized():
    """Candidate carrying normalized objectives and optional selection annotations."""
    def _make(candidate_id, rank=None, distance=None, fitness=None, generation=0, **normalized):
        return Candidate(
            id=candidate_id,
            normalized_objectives=normalized,
            pareto_rank=rank,
            crowding_distance=distance,
            fitness=fitness,
            generation=generation,
        )
    return _make


@pytest.fixture
def random_population(rng):
    """Builder for seeded populations over accuracy (max) and cost (min)."""
    def _build(size, prefix="c", generation=0):
        return [
            Candidate(
                id=f"{prefix}{i:03d}",
                generation=generation,
                objectives={
                    "accuracy": round(rng.uniform(0.5, 1.0), 3),
                    "cost": round(rng.uniform(0.001, 0.05), 4),
                },
            )
            for i in range(size)
        ]
    return _build
