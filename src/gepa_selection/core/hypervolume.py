"""Hypervolume indicator over raw objective values."""

import math
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np
from loguru import logger

from ..errors import EmptyPopulation, InvalidSelectionParameter
from ..models import Candidate, ObjectiveDirection
from .normalization import ObjectiveNormalizer

HYPERVOLUME_PRECISION = 6
IMPROVEMENT_PRECISION = 4
DEFAULT_REFERENCE_MARGIN = 0.1


def _hypervolume_2d(points: np.ndarray, reference: np.ndarray) -> float:
    order = np.lexsort((points[:, 1], points[:, 0]))
    volume = 0.0
    current_y = reference[1]
    for x, y in points[order]:
        if y < current_y:
            volume += (reference[0] - x) * (current_y - y)
            current_y = y
    return volume


def _hypervolume(points: np.ndarray, reference: np.ndarray) -> float:
    """Dominated volume of minimization ``points`` bounded by ``reference``.

    Every point must be strictly better than ``reference`` on every axis.
    Above two objectives the space is sliced along the last axis and each
    slab is measured one dimension lower.
    """
    if len(points) == 0:
        return 0.0
    dimensions = points.shape[1]
    if dimensions == 1:
        return float(reference[0] - points[:, 0].min())
    if dimensions == 2:
        return _hypervolume_2d(points, reference)

    ordered = points[np.argsort(points[:, -1], kind="stable")]
    volume = 0.0
    for index in range(len(ordered)):
        upper = ordered[index + 1, -1] if index + 1 < len(ordered) else reference[-1]
        depth = upper - ordered[index, -1]
        if depth <= 0:
            continue
        volume += depth * _hypervolume(ordered[:index + 1, :-1], reference[:-1])
    return volume


class HypervolumeCalculator:
    """Measure the objective space a set of solutions dominates.

    Works on raw objectives. Maximized objectives are negated so every axis is
    minimized, which makes the indicator independent of direction. Solutions
    that are not strictly better than the reference point on every objective
    contribute nothing.
    """

    def __init__(self, directions: Optional[Mapping[str, ObjectiveDirection]] = None):
        """Initialize calculator with objective directions."""
        self.normalizer = ObjectiveNormalizer(directions)

    def calculate(
        self,
        solutions: Sequence[Candidate],
        reference_point: Mapping[str, float]
    ) -> float:
        """Hypervolume of ``solutions`` relative to ``reference_point``."""
        if not solutions:
            return 0.0
        objectives = self.normalizer.validate(solutions)
        points, reference = self._minimization_space(solutions, reference_point, objectives)
        inside = np.all(points < reference, axis=1)
        if not inside.all():
            logger.debug(
                f"Hypervolume: {int((~inside).sum())} of {len(solutions)} solutions "
                "do not dominate the reference point"
            )
        return round(float(_hypervolume(points[inside], reference)), HYPERVOLUME_PRECISION)

    def contribution(
        self,
        solutions: Sequence[Candidate],
        reference_point: Mapping[str, float]
    ) -> Dict[str, float]:
        """Volume each solution alone adds to the set."""
        total = self.calculate(solutions, reference_point)
        contributions: Dict[str, float] = {}
        for index, candidate in enumerate(solutions):
            rest = list(solutions[:index]) + list(solutions[index + 1:])
            without = self.calculate(rest, reference_point)
            contributions[candidate.id] = round(max(0.0, total - without), HYPERVOLUME_PRECISION)
        return contributions

    def auto_reference_point(
        self,
        candidates: Sequence[Candidate],
        margin: float = DEFAULT_REFERENCE_MARGIN
    ) -> Dict[str, float]:
        """Reference point just beyond the worst observed value of each objective.

        The offset is ``margin`` times the observed span, or ``margin`` times
        the worst magnitude (at least 1.0) when all values coincide.
        """
        if margin <= 0:
            raise InvalidSelectionParameter("margin", margin, "must be > 0")
        if not candidates:
            raise EmptyPopulation("auto_reference_point")
        objectives = self.normalizer.validate(candidates)

        reference: Dict[str, float] = {}
        for name in objectives:
            values = [c.objectives[name] for c in candidates]
            low, high = min(values), max(values)
            maximize = self.normalizer.direction(name) == ObjectiveDirection.MAXIMIZE
            worst = low if maximize else high
            span = high - low
            offset = margin * span if span > 0 else margin * max(abs(worst), 1.0)
            reference[name] = worst - offset if maximize else worst + offset
        return reference

    def improvement(
        self,
        current: Sequence[Candidate],
        previous: Sequence[Candidate],
        reference_point: Mapping[str, float]
    ) -> Tuple[float, float]:
        """Ratio of current to previous hypervolume, and the current hypervolume.

        A previous hypervolume of zero gives ``inf`` when the current one is
        positive and ``1.0`` when both are zero.
        """
        current_volume = self.calculate(current, reference_point)
        previous_volume = self.calculate(previous, reference_point)
        if previous_volume > 0:
            ratio = round(current_volume / previous_volume, IMPROVEMENT_PRECISION)
        elif current_volume > 0:
            ratio = math.inf
        else:
            ratio = 1.0
        return ratio, current_volume

    def _minimization_space(
        self,
        solutions: Sequence[Candidate],
        reference_point: Mapping[str, float],
        objectives: List[str]
    ) -> Tuple[np.ndarray, np.ndarray]:
        missing = [name for name in objectives if name not in reference_point]
        if missing:
            raise InvalidSelectionParameter(
                "reference_point", dict(reference_point), f"missing objectives {missing}"
            )
        signs = np.array([
            -1.0 if self.normalizer.direction(name) == ObjectiveDirection.MAXIMIZE else 1.0
            for name in objectives
        ])
        points = np.array(
            [[c.objectives[name] for name in objectives] for c in solutions], dtype=float
        )
        reference = np.array([reference_point[name] for name in objectives], dtype=float)
        for name, value in zip(objectives, reference):
            if not math.isfinite(value):
                raise InvalidSelectionParameter("reference_point", dict(reference_point),
                                                f"value for '{name}' must be finite")
        return points * signs, reference * signs
