"""Domain types for the Ising job marketplace."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

MAX_NAME_LEN = 128
MAX_ENDPOINT_LEN = 256
MAX_WINNERS = 32
MAX_MINER_TYPES = 8


class Formulation(Enum):
    """Registered problem families. Only Ising is supported."""

    ISING = "ising"


class MinerType(Enum):
    """Registered solver hardware families."""

    CPU = "cpu"
    GPU = "gpu"
    QPU_DWAVE = "qpu_dwave"
    QPU_IBM = "qpu_ibm"
    QPU_IONQ = "qpu_ionq"
    QPU_PASQAL = "qpu_pasqal"
    ASIC = "asic"


class OrderStatus(Enum):
    """Order lifecycle status."""

    OPENED = "opened"
    EXPIRED = "expired"
    CLOSED = "closed"


class ResolutionKind(Enum):
    """Reward distribution strategies."""

    SINGLE_BEST = "single_best"
    TOP_N_WEIGHTED = "top_n_weighted"
    TOP_N_EQUAL = "top_n_equal"


@dataclass(frozen=True)
class RewardResolution:
    """Reward distribution strategy for a job order."""

    kind: ResolutionKind
    n: Optional[int] = None

    @classmethod
    def single_best(cls) -> RewardResolution:
        """Winner takes all."""
        return cls(ResolutionKind.SINGLE_BEST)

    @classmethod
    def top_n_weighted(cls, n: int) -> RewardResolution:
        """Split proportionally among the top ``n`` solvers."""
        return cls(ResolutionKind.TOP_N_WEIGHTED, n)

    @classmethod
    def top_n_equal(cls, n: int) -> RewardResolution:
        """Split equally among the top ``n`` solvers."""
        return cls(ResolutionKind.TOP_N_EQUAL, n)

    @property
    def is_top_n(self) -> bool:
        return self.kind is not ResolutionKind.SINGLE_BEST


class DeliveryKind(Enum):
    """How final results are handed to the proposer."""

    ON_CHAIN_ONLY = "on_chain_only"
    CALLBACK = "callback"
    CALLBACK_WITH_POLL = "callback_with_poll"


def _bounded_bytes(value: bytes | str, limit: int, what: str) -> bytes:
    data = value.encode("utf-8") if isinstance(value, str) else bytes(value)
    if len(data) > limit:
        raise ValueError(f"{what} is {len(data)} bytes long, at most {limit} allowed")
    return data


@dataclass(frozen=True)
class ResultDelivery:
    """How the proposer expects to consume final results."""

    kind: DeliveryKind
    endpoint: Optional[bytes] = None

    @classmethod
    def on_chain_only(cls) -> ResultDelivery:
        return cls(DeliveryKind.ON_CHAIN_ONLY)

    @classmethod
    def callback(cls, endpoint: bytes | str) -> ResultDelivery:
        return cls(
            DeliveryKind.CALLBACK,
            _bounded_bytes(endpoint, MAX_ENDPOINT_LEN, "endpoint"),
        )

    @classmethod
    def callback_with_poll(cls, endpoint: bytes | str) -> ResultDelivery:
        return cls(
            DeliveryKind.CALLBACK_WITH_POLL,
            _bounded_bytes(endpoint, MAX_ENDPOINT_LEN, "endpoint"),
        )


@dataclass(frozen=True)
class JobMode:
    """Solver access policy for a job order."""

    is_bid: bool = False
    miners: Optional[tuple] = None
    miner_types: Optional[tuple] = None

    @classmethod
    def open(cls) -> JobMode:
        """Any registered solver may submit."""
        return cls()

    @classmethod
    def bid(cls, miners=None, miner_types=None) -> JobMode:
        """Only the listed accounts or hardware families may submit."""
        types_tuple = None if miner_types is None else tuple(miner_types)
        if types_tuple is not None and len(types_tuple) > MAX_MINER_TYPES:
            raise ValueError(f"at most {MAX_MINER_TYPES} miner types allowed")
        return cls(
            is_bid=True,
            miners=None if miners is None else tuple(miners),
            miner_types=types_tuple,
        )


@dataclass
class IsingParams:
    """Ising problem parameters and optional quality floors."""

    nodes: list[int]
    edges: list[tuple[int, int]]
    h_values: list[int]
    j_values: list[int]
    min_energy_milli: Optional[int] = None
    min_diversity_milli: Optional[int] = None
    min_solutions: Optional[int] = None


@dataclass
class JobSpec:
    """Registered job specification template."""

    builder: Any
    name: bytes
    formulation: Formulation
    validation_program: Any
    transform_program: Any
    registered_at: int
    total_orders: int = 0
    successful_orders: int = 0

    def __post_init__(self) -> None:
        self.name = _bounded_bytes(self.name, MAX_NAME_LEN, "name")


@dataclass(frozen=True)
class OrderTiming:
    """Order timing parameters, in blocks."""

    deadline_blocks: int
    block_wait: int


@dataclass
class JobOrder:
    """Specific job instance to be solved."""

    spec_id: Any
    proposer: Any
    ising_params: IsingParams
    reward: int
    mode: JobMode
    resolution: RewardResolution
    timing: OrderTiming
    delivery: ResultDelivery
    status: OrderStatus
    created_at: int
    first_solution_at: Optional[int] = None
    solution_count: int = 0


@dataclass
class JobSolution:
    """Accepted solver submission for an order."""

    solver: Any
    solver_type: MinerType
    solutions: list[list[int]]
    best_energy_milli: int
    diversity_milli: int
    num_valid: int
    submitted_at: int


@dataclass
class SolverInfo:
    """Registered solver metadata."""

    account: Any
    solver_type: MinerType
    registered_at: int
    solutions_submitted: int = 0
    rewards_earned: int = 0


@dataclass(frozen=True)
class RankedSolver:
    """Ranked-solver entry used for top-N order tracking."""

    solver: Any
    energy_milli: int


@dataclass(frozen=True)
class FrontRunner:
    """Single-best front runner state."""

    solver: Any
    energy_milli: int


@dataclass(frozen=True)
class WinnerSummary:
    """Summary of a settled winner used for off-chain result delivery."""

    solver: Any
    energy_milli: int
    amount: int


@dataclass
class StoredResult:
    """Persisted settlement payload for poll-based result retrieval."""

    endpoint: bytes
    resolution: RewardResolution
    settled_at: int
    winners: list[WinnerSummary]

    def __post_init__(self) -> None:
        self.endpoint = _bounded_bytes(self.endpoint, MAX_ENDPOINT_LEN, "endpoint")
        self.winners = list(self.winners)
        if len(self.winners) > MAX_WINNERS:
            raise ValueError(f"at most {MAX_WINNERS} winners allowed")