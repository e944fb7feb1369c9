"""Events recorded by the Ising job marketplace."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .types import MAX_ENDPOINT_LEN, MAX_WINNERS, MinerType, WinnerSummary


@dataclass(frozen=True)
class Event:
    """Base of every marketplace event."""


@dataclass(frozen=True)
class SolverRegistered(Event):
    who: Any
    solver_type: MinerType


@dataclass(frozen=True)
class SolverDeregistered(Event):
    who: Any


@dataclass(frozen=True)
class JobSpecRegistered(Event):
    spec_id: Any
    builder: Any


@dataclass(frozen=True)
class JobProposed(Event):
    order_id: int
    spec_id: Any
    proposer: Any
    reward: int
    deadline_blocks: int
    block_wait: int


@dataclass(frozen=True)
class SolutionAccepted(Event):
    order_id: int
    solver: Any
    energy_milli: int
    diversity_milli: int


@dataclass(frozen=True)
class FirstSolutionReceived(Event):
    order_id: int
    solver: Any
    effective_expiry: int


@dataclass(frozen=True)
class BlockWaitStarted(Event):
    order_id: int
    first_solution_at: int
    closes_at: int


@dataclass(frozen=True)
class FrontRunnerChanged(Event):
    order_id: int
    solver: Any
    energy_milli: int


@dataclass(frozen=True)
class OrderExpired(Event):
    order_id: int


@dataclass(frozen=True)
class RewardClaimed(Event):
    order_id: int
    solver: Any
    amount: int


@dataclass(frozen=True)
class RewardReclaimed(Event):
    order_id: int
    proposer: Any
    amount: int


@dataclass(frozen=True)
class OrderClosed(Event):
    order_id: int
    successful: bool


@dataclass(frozen=True)
class ResultPurged(Event):
    order_id: int


@dataclass(frozen=True)
class ResultReady(Event):
    """Final delivery payload for off-chain consumers.

    A single winner is a one-element ``winners`` tuple, so consumers see one
    shape for every reward resolution.
    """

    order_id: int
    endpoint: bytes
    winners: tuple[WinnerSummary, ...]

    def __post_init__(self) -> None:
        endpoint = (
            self.endpoint.encode("utf-8")
            if isinstance(self.endpoint, str)
            else bytes(self.endpoint)
        )
        if len(endpoint) > MAX_ENDPOINT_LEN:
            raise ValueError(
                f"endpoint is {len(endpoint)} bytes long, at most {MAX_ENDPOINT_LEN} allowed"
            )
        winners = tuple(self.winners)
        if len(winners) > MAX_WINNERS:
            raise ValueError(f"at most {MAX_WINNERS} winners allowed")
        object.__setattr__(self, "endpoint", endpoint)
        object.__setattr__(self, "winners", winners)