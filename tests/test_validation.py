import pytest

from isingmarket.errors import ErrorKind, MempoolError
from isingmarket.validation import (
    IsingValidator,
    ValidationFailure,
    ValidationIssue,
    map_validation_error,
)

NODES = [0, 1]
EDGES = [(0, 1)]
H_VALUES = [0, 0]
J_VALUES = [-1_000]


@pytest.fixture
def validator():
    return IsingValidator()


def energy(validator, solution, h_values=H_VALUES):
    return validator.energy_of_solution(solution, h_values, EDGES, J_VALUES, NODES)


def test_aligned_spins_energy(validator):
    assert energy(validator, [1, 1]) == -1_000


def test_opposed_spins_energy(validator):
    assert energy(validator, [1, -1]) == 1_000


@pytest.mark.parametrize("solution", [[1, 1], [1, -1], [-1, 1], [-1, -1]])
def test_flipping_all_spins_keeps_energy_without_fields(validator, solution):
    flipped = [-spin for spin in solution]
    assert energy(validator, solution) == energy(validator, flipped)


def test_field_contribution_adds_linearly(validator):
    with_field = energy(validator, [1, 1], h_values=[-500, 0])
    assert with_field - energy(validator, [1, 1]) == -500


def test_invalid_spin_raises(validator):
    with pytest.raises(ValidationFailure) as info:
        energy(validator, [1, 0])
    assert info.value.issue is ValidationIssue.INVALID_SPIN_VALUE
    assert info.value.details["position"] == 1


def test_solution_length_mismatch_raises(validator):
    with pytest.raises(ValidationFailure) as info:
        energy(validator, [1, 1, 1])
    assert info.value.issue is ValidationIssue.SOLUTION_LENGTH_MISMATCH


def test_energy_overflow_raises(validator):
    huge = 2**62
    with pytest.raises(ValidationFailure) as info:
        validator.energy_of_solution([1, 1], [huge, huge], EDGES, [0], NODES)
    assert info.value.issue is ValidationIssue.ARITHMETIC_OVERFLOW


def test_consistent_topology_has_no_issues(validator):
    assert validator.validate_topology_consistency(NODES, EDGES, H_VALUES, J_VALUES) == []


def issues_of(validator, nodes, edges, h_values, j_values):
    return [
        failure.issue
        for failure in validator.validate_topology_consistency(
            nodes, edges, h_values, j_values
        )
    ]


def test_empty_nodes_reported(validator):
    assert ValidationIssue.EMPTY_NODES in issues_of(validator, [], [], [], [])


def test_duplicate_node_reported(validator):
    found = issues_of(validator, [0, 0], [], [0, 0], [])
    assert found == [ValidationIssue.DUPLICATE_NODE]


def test_unknown_node_in_edge_reported(validator):
    found = issues_of(validator, [0, 1], [(0, 5)], [0, 0], [1])
    assert found == [ValidationIssue.UNKNOWN_NODE_IN_EDGE]


def test_length_mismatches_reported(validator):
    found = issues_of(validator, [0, 1], [(0, 1)], [0], [])
    assert ValidationIssue.FIELD_LENGTH_MISMATCH in found
    assert ValidationIssue.EDGE_WEIGHT_LENGTH_MISMATCH in found


def test_empty_field_values_reported(validator):
    assert ValidationIssue.EMPTY_FIELD_VALUES in issues_of(
        validator, [0, 1], [(0, 1)], [], [1]
    )


def test_energy_rejects_bad_topology(validator):
    with pytest.raises(ValidationFailure) as info:
        validator.energy_of_solution([1, 1], [0, 0], [(0, 9)], [1], [0, 1])
    assert info.value.issue is ValidationIssue.UNKNOWN_NODE_IN_EDGE


def test_identical_solutions_have_no_diversity(validator):
    assert validator.calculate_diversity([[1, -1, 1], [1, -1, 1]]) == 0


def test_opposite_solutions_have_full_diversity(validator):
    assert validator.calculate_diversity([[1, 1], [-1, -1]]) == 1000


def test_diversity_is_bounded(validator):
    solutions = [[1, 1, -1], [1, -1, -1], [-1, 1, 1], [1, 1, 1]]
    assert 0 <= validator.calculate_diversity(solutions) <= 1000


def test_diversity_rejects_ragged_solutions(validator):
    with pytest.raises(ValidationFailure) as info:
        validator.calculate_diversity([[1, 1], [1]])
    assert info.value.issue is ValidationIssue.SOLUTION_LENGTH_MISMATCH


def test_select_diverse_prefers_distant_solution(validator):
    solutions = [[1, 1], [1, 1], [-1, -1]]
    assert validator.select_diverse(solutions, 2) == [0, 2]


def test_select_diverse_returns_all_when_target_covers_everything(validator):
    solutions = [[1, 1], [1, -1], [-1, -1]]
    assert validator.select_diverse(solutions, 3) == list(range(3))
    assert validator.select_diverse(solutions, 10) == list(range(3))


def test_select_diverse_returns_requested_count_of_distinct_indices(validator):
    solutions = [[1, 1, 1], [1, 1, -1], [1, -1, -1], [-1, -1, -1], [-1, 1, 1]]
    chosen = validator.select_diverse(solutions, 3)
    assert len(set(chosen)) == 3
    assert chosen == sorted(chosen)
    assert all(0 <= index < len(solutions) for index in chosen)


def test_select_diverse_does_not_lower_diversity(validator):
    solutions = [[1, 1, 1], [1, 1, 1], [1, 1, -1], [-1, -1, -1]]
    chosen = [solutions[i] for i in validator.select_diverse(solutions, 2)]
    assert validator.calculate_diversity(chosen) >= validator.calculate_diversity(
        solutions[:2]
    )


def test_select_diverse_rejects_negative_target(validator):
    with pytest.raises(ValueError):
        validator.select_diverse([[1]], -1)


def test_spin_error_maps_to_invalid_spin_values():
    error = map_validation_error(ValidationFailure(ValidationIssue.INVALID_SPIN_VALUE))
    assert isinstance(error, MempoolError)
    assert error.kind is ErrorKind.INVALID_SPIN_VALUES


def test_length_error_maps_to_solution_length_mismatch():
    error = map_validation_error(
        ValidationFailure(ValidationIssue.SOLUTION_LENGTH_MISMATCH)
    )
    assert error.kind is ErrorKind.SOLUTION_LENGTH_MISMATCH


@pytest.mark.parametrize(
    "issue",
    [
        ValidationIssue.EMPTY_NODES,
        ValidationIssue.FIELD_LENGTH_MISMATCH,
        ValidationIssue.EDGE_WEIGHT_LENGTH_MISMATCH,
        ValidationIssue.DUPLICATE_NODE,
        ValidationIssue.UNKNOWN_NODE_IN_EDGE,
        ValidationIssue.EMPTY_FIELD_VALUES,
        ValidationIssue.ARITHMETIC_OVERFLOW,
    ],
)
def test_structural_errors_map_to_invalid_topology(issue):
    assert map_validation_error(ValidationFailure(issue)).kind is ErrorKind.INVALID_TOPOLOGY