import math

import numpy as np
import pytest

from gepa_selection import (
    Candidate,
    EmptyPopulation,
    IncompleteCandidate,
    InvalidObjectiveValue,
    InvalidSelectionParameter,
    ObjectiveDirection,
    ObjectiveNormalizer,
    ObjectiveSchemaMismatch,
)
from gepa_selection.core.normalization import (
    NICHE_COUNT_KEY,
    RAW_FITNESS_KEY,
    aggregate_fitness,
    objective_matrix,
    pairwise_distances,
)


def test_normalize_scales_into_unit_range_lower_is_better(directions, make_candidate):
    normalizer = ObjectiveNormalizer(directions)
    population = [
        make_candidate("a", accuracy=0.9, cost=0.01),
        make_candidate("b", accuracy=0.7, cost=0.03),
        make_candidate("c", accuracy=0.8, cost=0.02),
    ]

    normalized = {c.id: c.normalized_objectives for c in normalizer.normalize(population)}

    assert normalized["a"]["accuracy"] == pytest.approx(0.0)
    assert normalized["b"]["accuracy"] == pytest.approx(1.0)
    assert normalized["c"]["accuracy"] == pytest.approx(0.5)
    assert normalized["a"]["cost"] == pytest.approx(0.0)
    assert normalized["b"]["cost"] == pytest.approx(1.0)
    for values in normalized.values():
        assert all(0.0 <= v <= 1.0 for v in values.values())


def test_flat_objective_maps_to_midpoint(directions, make_candidate):
    normalizer = ObjectiveNormalizer(directions)
    population = [
        make_candidate("a", accuracy=0.8, cost=0.01),
        make_candidate("b", accuracy=0.8, cost=0.02),
    ]

    result = normalizer.normalize(population)

    assert [c.normalized_objectives["accuracy"] for c in result] == [0.5, 0.5]


def test_normalize_leaves_input_untouched(directions, make_candidate):
    original = make_candidate("a", accuracy=0.8, cost=0.01)
    ObjectiveNormalizer(directions).normalize([original])

    assert original.normalized_objectives is None
    assert original.fitness is None


def test_normalize_recomputes_fitness_for_each_population(directions, make_candidate):
    normalizer = ObjectiveNormalizer(directions)
    a, _ = normalizer.normalize([
        make_candidate("a", accuracy=0.8, cost=0.02),
        make_candidate("b", accuracy=0.6, cost=0.04),
    ])
    assert a.fitness == pytest.approx(1.0)

    rescored = {
        c.id: c for c in normalizer.normalize([a, make_candidate("c", accuracy=0.9, cost=0.01)])
    }

    assert rescored["a"].fitness == pytest.approx(0.0)
    assert rescored["c"].fitness == pytest.approx(1.0)
    assert rescored["a"].fitness < rescored["c"].fitness


def test_normalize_drops_sharing_annotations(directions):
    shared = Candidate(
        id="s",
        objectives={"accuracy": 0.9, "cost": 0.01},
        fitness=0.1,
        metadata={RAW_FITNESS_KEY: 0.9, NICHE_COUNT_KEY: 9.0, "source": "mutation"},
    )

    (result,) = ObjectiveNormalizer(directions).normalize([shared])

    assert result.metadata == {"source": "mutation"}
    assert result.fitness == pytest.approx(0.5)


def test_keep_existing_fitness_is_opt_in(directions, make_candidate):
    scored = Candidate(id="s", objectives={"accuracy": 0.9, "cost": 0.01}, fitness=0.42)
    shared = Candidate(
        id="h", objectives={"accuracy": 0.8, "cost": 0.02},
        fitness=0.1, metadata={RAW_FITNESS_KEY: 0.3},
    )
    unscored = make_candidate("u", accuracy=0.7, cost=0.03)
    population = [scored, shared, unscored]

    kept = {
        c.id: c
        for c in ObjectiveNormalizer(directions, keep_existing_fitness=True).normalize(population)
    }
    recomputed = {c.id: c for c in ObjectiveNormalizer(directions).normalize(population)}

    assert kept["s"].fitness == 0.42
    assert kept["h"].fitness == 0.3
    assert kept["u"].fitness == pytest.approx(0.0)
    assert recomputed["s"].fitness == pytest.approx(1.0)
    assert recomputed["h"].fitness == pytest.approx(0.5)


@pytest.mark.parametrize("bad_value", [math.nan, math.inf, -math.inf])
def test_non_finite_objective_is_rejected(directions, make_candidate, bad_value):
    population = [
        make_candidate("ok", accuracy=0.8, cost=0.01),
        make_candidate("bad", accuracy=bad_value, cost=0.01),
    ]

    with pytest.raises(InvalidObjectiveValue) as excinfo:
        ObjectiveNormalizer(directions).normalize(population)
    assert excinfo.value.candidate_id == "bad"
    assert excinfo.value.objective == "accuracy"


def test_boundary_errors(directions, make_candidate):
    normalizer = ObjectiveNormalizer(directions)

    with pytest.raises(EmptyPopulation):
        normalizer.normalize([])
    with pytest.raises(IncompleteCandidate):
        normalizer.normalize([Candidate(id="empty")])
    with pytest.raises(ObjectiveSchemaMismatch) as excinfo:
        normalizer.normalize([
            make_candidate("a", accuracy=0.8, cost=0.01),
            make_candidate("b", accuracy=0.8),
        ])
    assert excinfo.value.candidate_id == "b"
    with pytest.raises(InvalidSelectionParameter):
        normalizer.normalize([
            make_candidate("a", accuracy=0.8, cost=0.01),
            make_candidate("a", accuracy=0.7, cost=0.02),
        ])


def test_unknown_objective_defaults_to_maximize(make_candidate):
    normalizer = ObjectiveNormalizer({"cost": ObjectiveDirection.MINIMIZE})

    result = normalizer.normalize([
        make_candidate("a", quality=10.0, cost=1.0),
        make_candidate("b", quality=20.0, cost=1.0),
    ])

    assert result[1].normalized_objectives["quality"] == pytest.approx(0.0)
    assert normalizer.direction("quality") == ObjectiveDirection.MAXIMIZE
    assert normalizer.directions == {"cost": ObjectiveDirection.MINIMIZE}


def test_unknown_objective_leaves_shared_directions_untouched(make_candidate):
    directions = {"cost": ObjectiveDirection.MINIMIZE}
    normalizer = ObjectiveNormalizer(directions)

    for _ in range(2):
        normalizer.normalize([
            make_candidate("a", quality=10.0, cost=1.0),
            make_candidate("b", quality=20.0, cost=2.0),
        ])

    assert directions == {"cost": ObjectiveDirection.MINIMIZE}
    assert "quality" not in normalizer.directions


def test_aggregate_fitness_weights():
    normalized = {"accuracy": 0.0, "latency": 1.0, "cost": 1.0, "robustness": 0.0}

    assert aggregate_fitness(normalized) == pytest.approx(0.6)
    assert aggregate_fitness({"x": 0.25, "y": 0.75}) == pytest.approx(0.5)
    assert aggregate_fitness({}) == 0.0


def test_objective_matrix_and_distances(make_normalized):
    population = [make_normalized("a", x=0.0, y=0.0), make_normalized("b", x=0.3, y=0.4)]

    matrix = objective_matrix(population)
    distances = pairwise_distances(matrix)

    assert matrix.shape == (2, 2)
    assert np.allclose(distances, [[0.0, 0.5], [0.5, 0.0]])
    assert objective_matrix(population, ["y"]).tolist() == [[0.0], [0.4]]
