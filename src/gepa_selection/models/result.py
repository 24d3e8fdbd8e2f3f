"""Generation transition result models."""

from typing import Dict, List

from pydantic import BaseModel, Field

from .candidate import Candidate


class GenerationReport(BaseModel):
    """Outcome of one generation transition."""

    generation: int
    ranked_population: List[Candidate]
    elites: List[Candidate]
    parents: List[Candidate]
    offspring_ids: List[str] = Field(default_factory=list)
    survivors: List[Candidate]
    front_sizes: Dict[int, int] = Field(default_factory=dict)
    best_objectives: Dict[str, float] = Field(default_factory=dict)

    @property
    def front_1(self) -> List[Candidate]:
        """Non-dominated candidates of the ranked population."""
        return [c for c in self.ranked_population if c.pareto_rank == 1]

    @property
    def survivor_ids(self) -> List[str]:
        """Ids of the next generation in selection order."""
        return [c.id for c in self.survivors]
