"""Scoring and consistency checks for Ising problems and their solutions."""

from __future__ import annotations

from enum import Enum
from itertools import combinations
from typing import Any, Sequence

from .errors import ErrorKind, MempoolError

I64_MIN = -(2**63)
I64_MAX = 2**63 - 1
SPIN_VALUES = (-1, 1)


class ValidationIssue(Enum):
    """Ways an Ising problem or solution can be inconsistent."""

    INVALID_SPIN_VALUE = "invalid_spin_value"
    SOLUTION_LENGTH_MISMATCH = "solution_length_mismatch"
    EMPTY_NODES = "empty_nodes"
    FIELD_LENGTH_MISMATCH = "field_length_mismatch"
    EDGE_WEIGHT_LENGTH_MISMATCH = "edge_weight_length_mismatch"
    DUPLICATE_NODE = "duplicate_node"
    UNKNOWN_NODE_IN_EDGE = "unknown_node_in_edge"
    EMPTY_FIELD_VALUES = "empty_field_values"
    ARITHMETIC_OVERFLOW = "arithmetic_overflow"


class ValidationFailure(Exception):
    """An Ising problem or solution failed a check."""

    def __init__(self, issue: ValidationIssue, **details: Any) -> None:
        text = ", ".join(f"{key}={value!r}" for key, value in details.items())
        super().__init__(f"{issue.value}: {text}" if text else issue.value)
        self.issue = issue
        self.details = details


def _checked(value: int) -> int:
    if not I64_MIN <= value <= I64_MAX:
        raise ValidationFailure(ValidationIssue.ARITHMETIC_OVERFLOW)
    return value


def _uniform_length(solutions: Sequence[Sequence[int]]) -> int:
    if not solutions:
        return 0
    expected = len(solutions[0])
    for index, solution in enumerate(solutions):
        if len(solution) != expected:
            raise ValidationFailure(
                ValidationIssue.SOLUTION_LENGTH_MISMATCH,
                index=index,
                expected=expected,
                actual=len(solution),
            )
    return expected


def _hamming(first: Sequence[int], second: Sequence[int]) -> int:
    return sum(1 for a, b in zip(first, second) if a != b)


class IsingValidator:
    """Checks Ising topologies and scores spin solutions in milli-units."""

    def validate_topology_consistency(
        self,
        nodes: Sequence[int],
        edges: Sequence[tuple[int, int]],
        h_values: Sequence[int],
        j_values: Sequence[int],
    ) -> list[ValidationFailure]:
        """Return every inconsistency found; an empty list means valid."""
        issues: list[ValidationFailure] = []
        if not nodes:
            issues.append(ValidationFailure(ValidationIssue.EMPTY_NODES))
        if nodes and not h_values:
            issues.append(ValidationFailure(ValidationIssue.EMPTY_FIELD_VALUES))
        elif len(h_values) != len(nodes):
            issues.append(
                ValidationFailure(
                    ValidationIssue.FIELD_LENGTH_MISMATCH,
                    expected=len(nodes),
                    actual=len(h_values),
                )
            )
        if len(j_values) != len(edges):
            issues.append(
                ValidationFailure(
                    ValidationIssue.EDGE_WEIGHT_LENGTH_MISMATCH,
                    expected=len(edges),
                    actual=len(j_values),
                )
            )
        seen: set[int] = set()
        for node in nodes:
            if node in seen:
                issues.append(ValidationFailure(ValidationIssue.DUPLICATE_NODE, node=node))
            seen.add(node)
        for edge in edges:
            for end in edge:
                if end not in seen:
                    issues.append(
                        ValidationFailure(
                            ValidationIssue.UNKNOWN_NODE_IN_EDGE,
                            node=end,
                            edge=tuple(edge),
                        )
                    )
        return issues

    def energy_of_solution(
        self,
        solution: Sequence[int],
        h_values: Sequence[int],
        edges: Sequence[tuple[int, int]],
        j_values: Sequence[int],
        nodes: Sequence[int],
    ) -> int:
        """Return the Ising energy of ``solution``: sum h*s plus sum J*s*s."""
        issues = self.validate_topology_consistency(nodes, edges, h_values, j_values)
        if issues:
            raise issues[0]
        if len(solution) != len(nodes):
            raise ValidationFailure(
                ValidationIssue.SOLUTION_LENGTH_MISMATCH,
                expected=len(nodes),
                actual=len(solution),
            )
        for position, spin in enumerate(solution):
            if spin not in SPIN_VALUES:
                raise ValidationFailure(
                    ValidationIssue.INVALID_SPIN_VALUE, position=position, value=spin
                )

        spin_of = dict(zip(nodes, solution))
        energy = 0
        for field, spin in zip(h_values, solution):
            energy = _checked(energy + _checked(field * spin))
        for (a, b), coupling in zip(edges, j_values):
            energy = _checked(energy + _checked(coupling * spin_of[a] * spin_of[b]))
        return energy

    def select_diverse(
        self, solutions: Sequence[Sequence[int]], target_count: int
    ) -> list[int]:
        """Pick ``target_count`` mutually distant solutions; return sorted indices.

        Starts from the first solution and repeatedly adds the one farthest (by
        Hamming distance) from those already chosen, preferring lower indices
        on ties.
        """
        if target_count < 0:
            raise ValueError(f"target_count must not be negative, got {target_count}")
        _uniform_length(solutions)
        if target_count >= len(solutions):
            return list(range(len(solutions)))
        if target_count == 0:
            return []

        selected = [0]
        distance = [_hamming(solution, solutions[0]) for solution in solutions]
        remaining = set(range(1, len(solutions)))
        while len(selected) < target_count:
            best = max(remaining, key=lambda index: (distance[index], -index))
            remaining.discard(best)
            selected.append(best)
            distance = [
                min(current, _hamming(solution, solutions[best]))
                for current, solution in zip(distance, solutions)
            ]
        return sorted(selected)

    def calculate_diversity(self, solutions: Sequence[Sequence[int]]) -> int:
        """Mean pairwise normalised Hamming distance, in milli-units (0..1000)."""
        length = _uniform_length(solutions)
        if len(solutions) < 2 or length == 0:
            return 0
        pairs = list(combinations(solutions, 2))
        total = sum(_hamming(first, second) for first, second in pairs)
        return total * 1000 // (len(pairs) * length)


_ISSUE_TO_KIND = {
    ValidationIssue.INVALID_SPIN_VALUE: ErrorKind.INVALID_SPIN_VALUES,
    ValidationIssue.SOLUTION_LENGTH_MISMATCH: ErrorKind.SOLUTION_LENGTH_MISMATCH,
}


def map_validation_error(error: ValidationFailure) -> MempoolError:
    """Translate a validation failure into the marketplace error to raise."""
    kind = _ISSUE_TO_KIND.get(error.issue, ErrorKind.INVALID_TOPOLOGY)
    return MempoolError(kind, str(error))