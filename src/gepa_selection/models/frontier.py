"""Pareto frontier archive model."""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .candidate import Candidate
from .objectives import ObjectiveDirection


class Frontier(BaseModel):
    """Non-dominated solutions found so far, plus an archive of past elites.

    ``solutions`` only ever holds mutually non-dominated candidates.
    ``fronts`` maps rank to candidate ids of the last ``update_fronts`` call.
    ``hypervolume`` is measured against ``reference_point`` in raw objective
    units.
    """

    model_config = ConfigDict(frozen=True)

    objectives: List[str]
    objective_directions: Dict[str, ObjectiveDirection]
    reference_point: Dict[str, float]
    solutions: List[Candidate] = Field(default_factory=list)
    fronts: Dict[int, List[str]] = Field(default_factory=dict)
    archive: List[Candidate] = Field(default_factory=list)
    hypervolume: float = 0.0
    generation: int = Field(default=0, ge=0)

    @property
    def size(self) -> int:
        """Number of non-dominated solutions."""
        return len(self.solutions)

    @property
    def solution_ids(self) -> List[str]:
        return [c.id for c in self.solutions]

    def get(self, candidate_id: str) -> Optional[Candidate]:
        """Solution with ``candidate_id`` or None."""
        return next((c for c in self.solutions if c.id == candidate_id), None)
