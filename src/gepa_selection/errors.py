"""Typed errors raised by the selection core."""

from typing import Iterable, Optional


class SelectionError(ValueError):
    """Base class for all selection core errors."""


class EmptyPopulation(SelectionError):
    """Raised when a selector receives an empty population."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"{operation}: population is empty")


class IncompleteCandidate(SelectionError):
    """Raised when a candidate has no raw objectives."""

    def __init__(self, candidate_id: str):
        self.candidate_id = candidate_id
        super().__init__(f"Candidate {candidate_id} has no objectives")


class InvalidObjectiveValue(SelectionError):
    """Raised for NaN or infinite raw objective values."""

    def __init__(self, candidate_id: str, objective: str, value: float):
        self.candidate_id = candidate_id
        self.objective = objective
        self.value = value
        super().__init__(
            f"Candidate {candidate_id} has invalid value {value!r} for objective '{objective}'"
        )


class ObjectiveSchemaMismatch(SelectionError):
    """Raised when candidates do not share the same objective keys."""

    def __init__(
        self,
        candidate_id: str,
        expected: Iterable[str],
        actual: Iterable[str]
    ):
        self.candidate_id = candidate_id
        self.expected = sorted(expected)
        self.actual = sorted(actual)
        super().__init__(
            f"Candidate {candidate_id} has objectives {self.actual}, expected {self.expected}"
        )


class UnrankedCandidate(SelectionError):
    """Raised when rank or crowding distance is required but missing."""

    def __init__(self, candidate_id: str, field: str):
        self.candidate_id = candidate_id
        self.field = field
        super().__init__(f"Candidate {candidate_id} is missing {field}")


class InvalidSelectionParameter(SelectionError):
    """Raised for out-of-range selection parameters."""

    def __init__(self, name: str, value: object, reason: Optional[str] = None):
        self.name = name
        self.value = value
        message = f"Invalid {name}={value!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class InvalidFitnessValue(SelectionError):
    """Raised when fitness sharing sees a negative or non-finite fitness."""

    def __init__(self, candidate_id: str, value: float):
        self.candidate_id = candidate_id
        self.value = value
        super().__init__(
            f"Candidate {candidate_id} has fitness {value!r}; sharing requires a finite value >= 0"
        )


class UnknownCandidate(SelectionError):
    """Raised when a candidate id is not held where it was looked up."""

    def __init__(self, candidate_id: str, where: str):
        self.candidate_id = candidate_id
        self.where = where
        super().__init__(f"Candidate {candidate_id} is not in the {where}")
