"""Hook through which job specs may validate and transform solutions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

from .types import WinnerSummary


class QuantumVm(ABC):
    """Program hooks consulted by the marketplace.

    Implementations signal rejection by raising an exception; the marketplace
    lets it propagate unchanged.
    """

    @abstractmethod
    def validate_programs(
        self, validation_program: Optional[Any], transform_program: Optional[Any]
    ) -> None:
        """Check the programs a job spec refers to when it is registered."""

    @abstractmethod
    def transform_solutions(
        self,
        spec_id: Any,
        validation_program: Optional[Any],
        transform_program: Optional[Any],
        solver: Any,
        solutions: Sequence[Sequence[int]],
    ) -> list[list[int]]:
        """Transform submitted solutions before they are scored."""

    @abstractmethod
    def validate_result(
        self,
        spec_id: Any,
        validation_program: Optional[Any],
        transform_program: Optional[Any],
        winners: Sequence[WinnerSummary],
    ) -> None:
        """Check the final winner payload before settlement."""


class NoOpVm(QuantumVm):
    """Accepts every program and passes solutions through unchanged."""

    def validate_programs(self, validation_program, transform_program) -> None:
        return None

    def transform_solutions(
        self, spec_id, validation_program, transform_program, solver, solutions
    ) -> list[list[int]]:
        return [list(solution) for solution in solutions]

    def validate_result(
        self, spec_id, validation_program, transform_program, winners
    ) -> None:
        return None