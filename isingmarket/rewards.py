"""Ranking and payout rules for the reward resolution strategies."""

from __future__ import annotations

from typing import Any, Sequence

from .types import FrontRunner, RankedSolver

Payout = tuple[Any, int, int]


def update_ranked_solvers(
    current: Sequence[RankedSolver], candidate: RankedSolver, limit: int
) -> list[RankedSolver]:
    """Merge ``candidate`` into a ranked top-N set and return the new set.

    A solver already present is only replaced when the candidate's energy is
    lower. The result is ordered by ascending energy and cut to ``limit``.
    """
    ranked = list(current)
    position = next(
        (i for i, entry in enumerate(ranked) if entry.solver == candidate.solver), None
    )
    if position is None:
        ranked.append(candidate)
    elif candidate.energy_milli < ranked[position].energy_milli:
        ranked[position] = candidate
    ranked.sort(key=lambda entry: entry.energy_milli)
    return ranked[:limit]


def single_best_payouts(front_runner: FrontRunner, reward: int) -> list[Payout]:
    """The front runner takes the whole reward."""
    return [(front_runner.solver, reward, front_runner.energy_milli)]


def top_n_equal_payouts(ranked: Sequence[RankedSolver], reward: int) -> list[Payout]:
    """Split equally; any remainder goes to the best-ranked solver."""
    if not ranked:
        return []
    base, remainder = divmod(reward, len(ranked))
    return [
        (entry.solver, base + (remainder if index == 0 else 0), entry.energy_milli)
        for index, entry in enumerate(ranked)
    ]


def top_n_weighted_payouts(ranked: Sequence[RankedSolver], reward: int) -> list[Payout]:
    """Split in proportion to absolute energies.

    Falls back to an equal split when every absolute energy is zero. Rounding
    leftovers go to the best-ranked solver.
    """
    if not ranked:
        return []
    total_weight = sum(abs(entry.energy_milli) for entry in ranked)
    if total_weight == 0:
        return top_n_equal_payouts(ranked, reward)

    payouts = [
        (entry.solver, reward * abs(entry.energy_milli) // total_weight, entry.energy_milli)
        for entry in ranked
    ]
    remainder = max(reward - sum(amount for _, amount, _ in payouts), 0)
    solver, amount, energy = payouts[0]
    payouts[0] = (solver, amount + remainder, energy)
    return payouts