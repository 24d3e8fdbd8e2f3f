"""Prompt candidate model for multi-objective selection."""

import math
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

INFINITY = math.inf


class Candidate(BaseModel):
    """Prompt candidate annotated with objective scores and selection metrics.

    Raw ``objectives`` are never modified by selection. Every selection step
    returns new candidate values carrying fresh ``normalized_objectives``,
    ``pareto_rank``, ``crowding_distance`` and ``fitness`` annotations.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    objectives: Optional[Dict[str, float]] = None
    normalized_objectives: Optional[Dict[str, float]] = None
    pareto_rank: Optional[int] = Field(default=None, ge=1)
    crowding_distance: Optional[float] = Field(default=None, ge=0.0)
    fitness: Optional[float] = None
    generation: int = Field(default=0, ge=0, description="Birth generation")
    parent_ids: List[str] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def is_ranked(self) -> bool:
        """Whether rank and crowding distance are attached."""
        return self.pareto_rank is not None and self.crowding_distance is not None

    @property
    def is_boundary(self) -> bool:
        """Whether the candidate sits on a boundary of its front."""
        return self.crowding_distance == INFINITY

    def with_annotations(self, **annotations: Any) -> "Candidate":
        """Return a copy with selection annotations replaced."""
        return self.model_copy(update=annotations)

    def __str__(self) -> str:
        rank = self.pareto_rank if self.pareto_rank is not None else "-"
        distance = (
            "inf" if self.is_boundary
            else f"{self.crowding_distance:.3f}" if self.crowding_distance is not None
            else "-"
        )
        return f"Candidate({self.id}, gen={self.generation}, rank={rank}, cd={distance})"
