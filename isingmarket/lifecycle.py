"""Two-phase order timing: a hard deadline and a wait after the first solution."""

from __future__ import annotations

from typing import Optional

from .types import OrderTiming


def effective_expiry(
    created_at: int, first_solution_at: Optional[int], timing: OrderTiming
) -> int:
    """Return the block at which the order stops accepting solutions."""
    hard_deadline = created_at + timing.deadline_blocks
    if first_solution_at is None:
        return hard_deadline
    return min(hard_deadline, first_solution_at + timing.block_wait)


def is_expired(
    now: int, created_at: int, first_solution_at: Optional[int], timing: OrderTiming
) -> bool:
    """Return ``True`` when ``now`` is at or past the effective expiry."""
    return now >= effective_expiry(created_at, first_solution_at, timing)