import itertools
import math

import pytest

from gepa_selection import (
    Candidate,
    DominanceComparator,
    DominanceRelation,
    EmptyPopulation,
    ObjectiveDirection,
    ObjectiveSchemaMismatch,
    UnrankedCandidate,
)
from gepa_selection.core.dominance import crowded_comparison_key, group_fronts, require_ranked


@pytest.fixture
def scenario_population(make_candidate):
    accuracy = [0.9, 0.8, 0.95, 0.7]
    cost = [0.1, 0.2, 0.05, 0.3]
    return [
        make_candidate(str(i + 1), acc=acc, cost=c)
        for i, (acc, c) in enumerate(zip(accuracy, cost))
    ]


@pytest.fixture
def scenario_comparator():
    return DominanceComparator({
        "acc": ObjectiveDirection.MAXIMIZE,
        "cost": ObjectiveDirection.MINIMIZE,
    })


def test_fronts_of_totally_ordered_population(scenario_comparator, scenario_population):
    fronts = scenario_comparator.fast_non_dominated_sort(scenario_population)

    assert fronts == {1: ["3"], 2: ["1"], 3: ["2"], 4: ["4"]}


def test_dominance_relations_on_raw_candidates(scenario_comparator, scenario_population):
    by_id = {c.id: c for c in scenario_population}

    assert scenario_comparator.dominates(by_id["3"], by_id["1"])
    assert scenario_comparator.dominates(by_id["1"], by_id["4"])
    assert not scenario_comparator.dominates(by_id["4"], by_id["2"])
    assert scenario_comparator.compare(by_id["2"], by_id["1"]) == DominanceRelation.DOMINATED_BY


def test_ties_and_trade_offs_are_non_dominated(comparator, make_normalized):
    a = make_normalized("a", accuracy=0.2, cost=0.5)
    same = make_normalized("b", accuracy=0.2, cost=0.5)
    trade = make_normalized("c", accuracy=0.1, cost=0.9)

    assert comparator.compare(a, same) == DominanceRelation.NON_DOMINATED
    assert comparator.compare(a, trade) == DominanceRelation.NON_DOMINATED
    assert not comparator.dominates(a, a)


def test_compare_rejects_mismatched_objectives(comparator, make_normalized):
    with pytest.raises(ObjectiveSchemaMismatch):
        comparator.compare(make_normalized("a", x=0.1), make_normalized("b", y=0.1))


def test_epsilon_dominance(comparator, make_normalized):
    a = make_normalized("a", accuracy=0.10, cost=0.50)
    b = make_normalized("b", accuracy=0.20, cost=0.505)

    assert comparator.epsilon_dominates(a, b, epsilon=0.01)
    assert not comparator.epsilon_dominates(a, b, epsilon=0.2)
    assert not comparator.epsilon_dominates(b, a, epsilon=0.01)


def test_dominance_is_a_strict_partial_order(comparator, random_population):
    population = comparator.prepare(random_population(25))

    for a in population:
        assert not comparator.dominates(a, a)
    for a, b in itertools.permutations(population, 2):
        if comparator.dominates(a, b):
            assert not comparator.dominates(b, a)
    for a, b, c in itertools.permutations(population[:12], 3):
        if comparator.dominates(a, b) and comparator.dominates(b, c):
            assert comparator.dominates(a, c)


def test_sort_assigns_each_candidate_one_contiguous_rank(comparator, random_population):
    population = random_population(40)

    fronts = comparator.fast_non_dominated_sort(population)

    assert list(fronts) == list(range(1, len(fronts) + 1))
    ids = [candidate_id for front in fronts.values() for candidate_id in front]
    assert sorted(ids) == sorted(c.id for c in population)


def test_front_1_is_non_dominated_and_ranks_are_monotone(comparator, random_population):
    ranked = comparator.rank_and_measure(random_population(40))

    front_1 = [c for c in ranked if c.pareto_rank == 1]
    for winner in front_1:
        assert not any(comparator.dominates(other, winner) for other in ranked)
    for a, b in itertools.permutations(ranked, 2):
        if comparator.dominates(a, b):
            assert a.pareto_rank < b.pareto_rank


def test_front_of_two_is_all_infinite(comparator, make_candidate):
    front = [
        make_candidate("a", accuracy=0.9, cost=0.02),
        make_candidate("b", accuracy=0.8, cost=0.01),
    ]

    assert comparator.crowding_distance(front) == {"a": math.inf, "b": math.inf}


def test_crowding_distance_interior_values(comparator, make_normalized):
    front = [
        make_normalized("a", accuracy=0.0, cost=1.0),
        make_normalized("b", accuracy=0.2, cost=0.6),
        make_normalized("c", accuracy=0.5, cost=0.3),
        make_normalized("d", accuracy=1.0, cost=0.0),
    ]

    distances = comparator.crowding_distance(front)

    assert distances["a"] == math.inf
    assert distances["d"] == math.inf
    assert distances["b"] == pytest.approx(1.2)
    assert distances["c"] == pytest.approx(1.4)


def test_boundary_candidates_get_infinity(comparator, random_population):
    ranked = comparator.rank_and_measure(random_population(30))

    for front in group_fronts(ranked).values():
        if len(front) < 3:
            continue
        for objective in ("accuracy", "cost"):
            values = [c.normalized_objectives[objective] for c in front]
            if max(values) == min(values):
                continue
            extremes = [
                c for c in front
                if c.normalized_objectives[objective] in (min(values), max(values))
            ]
            assert any(c.crowding_distance == math.inf for c in extremes)
            lowest = min(front, key=lambda c: (c.normalized_objectives[objective], c.id))
            highest = max(front, key=lambda c: (c.normalized_objectives[objective], c.id))
            assert lowest.crowding_distance == math.inf
            assert highest.crowding_distance == math.inf


def test_identical_candidates_share_front_with_zero_distance(comparator, make_candidate):
    population = [make_candidate(f"c{i}", accuracy=0.8, cost=0.01) for i in range(4)]

    ranked = comparator.rank_and_measure(population)

    assert {c.pareto_rank for c in ranked} == {1}
    assert {c.crowding_distance for c in ranked} == {0.0}


def test_rank_and_measure_returns_copies_in_input_order(comparator, random_population):
    population = random_population(10)

    ranked = comparator.rank_and_measure(population)

    assert [c.id for c in ranked] == [c.id for c in population]
    assert all(c.is_ranked for c in ranked)
    assert all(c.pareto_rank is None for c in population)
    with pytest.raises(EmptyPopulation):
        comparator.rank_and_measure([])


def test_crowded_comparison_key_orders_rank_then_distance_then_id(make_normalized):
    population = [
        make_normalized("b", rank=1, distance=math.inf, x=0.0),
        make_normalized("a", rank=1, distance=math.inf, x=0.0),
        make_normalized("c", rank=1, distance=0.5, x=0.0),
        make_normalized("d", rank=2, distance=math.inf, x=0.0),
    ]

    ordered = sorted(population, key=crowded_comparison_key)

    assert [c.id for c in ordered] == ["a", "b", "c", "d"]


def test_require_ranked_names_missing_field(make_normalized):
    with pytest.raises(UnrankedCandidate) as excinfo:
        require_ranked([make_normalized("a", rank=1, x=0.0)])
    assert excinfo.value.field == "crowding_distance"


def test_stale_normalized_objectives_are_recomputed(comparator):
    stale = Candidate(
        id="a",
        objectives={"accuracy": 0.9, "cost": 0.01},
        normalized_objectives={"accuracy": 1.0, "cost": 1.0},
    )
    other = Candidate(
        id="b",
        objectives={"accuracy": 0.7, "cost": 0.03},
        normalized_objectives={"accuracy": 0.0, "cost": 0.0},
    )

    refreshed = {c.id: c for c in comparator.ensure_normalized([stale, other])}

    assert refreshed["a"].normalized_objectives == pytest.approx({"accuracy": 0.0, "cost": 0.0})
    assert refreshed["b"].normalized_objectives == pytest.approx({"accuracy": 1.0, "cost": 1.0})
    assert comparator.fast_non_dominated_sort([stale, other]) == {1: ["a"], 2: ["b"]}
    assert comparator.dominates(stale, other)
