"""Objective directions and dominance relations."""

from enum import Enum
from typing import Dict


class ObjectiveDirection(str, Enum):
    """Optimization direction of a raw objective."""

    MINIMIZE = "minimize"
    MAXIMIZE = "maximize"


class DominanceRelation(str, Enum):
    """Outcome of a pairwise Pareto comparison."""

    DOMINATES = "dominates"
    DOMINATED_BY = "dominated_by"
    NON_DOMINATED = "non_dominated"


DEFAULT_OBJECTIVE_DIRECTIONS: Dict[str, ObjectiveDirection] = {
    "accuracy": ObjectiveDirection.MAXIMIZE,
    "latency": ObjectiveDirection.MINIMIZE,
    "cost": ObjectiveDirection.MINIMIZE,
    "robustness": ObjectiveDirection.MAXIMIZE,
}

DEFAULT_FITNESS_WEIGHTS: Dict[str, float] = {
    "accuracy": 0.5,
    "latency": 0.2,
    "cost": 0.2,
    "robustness": 0.1,
}
