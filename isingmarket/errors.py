"""Errors raised by the Ising job marketplace."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Every reason the marketplace can reject a call."""

    SOLVER_ALREADY_REGISTERED = "SolverAlreadyRegistered"
    SOLVER_NOT_REGISTERED = "SolverNotRegistered"
    JOB_SPEC_ALREADY_EXISTS = "JobSpecAlreadyExists"
    JOB_SPEC_NOT_FOUND = "JobSpecNotFound"
    ORDER_NOT_FOUND = "OrderNotFound"
    ORDER_NOT_OPEN = "OrderNotOpen"
    NOT_ELIGIBLE_SOLVER = "NotEligibleSolver"
    INVALID_SPIN_VALUES = "InvalidSpinValues"
    SOLUTION_LENGTH_MISMATCH = "SolutionLengthMismatch"
    INSUFFICIENT_ENERGY = "InsufficientEnergy"
    INSUFFICIENT_DIVERSITY = "InsufficientDiversity"
    INSUFFICIENT_SOLUTIONS = "InsufficientSolutions"
    NO_SOLUTIONS_SUBMITTED = "NoSolutionsSubmitted"
    REWARD_TOO_LOW = "RewardTooLow"
    TOO_MANY_SOLUTIONS = "TooManySolutions"
    ORDER_LIMIT_REACHED = "OrderLimitReached"
    INVALID_DELIVERY_MODE = "InvalidDeliveryMode"
    INVALID_TOPOLOGY = "InvalidTopology"
    INVALID_REWARD_RESOLUTION = "InvalidRewardResolution"
    EMPTY_BID_CRITERIA = "EmptyBidCriteria"
    DEADLINE_TOO_LONG = "DeadlineTooLong"
    BLOCK_WAIT_TOO_LONG = "BlockWaitTooLong"
    ORDER_NOT_EXPIRED = "OrderNotExpired"
    NOT_PROPOSER = "NotProposer"
    NOT_WINNER = "NotWinner"
    ALREADY_CLAIMED = "AlreadyClaimed"
    NO_SOLUTIONS_ACCEPTED = "NoSolutionsAccepted"
    RESULT_NOT_FOUND = "ResultNotFound"
    RESULT_TTL_NOT_ELAPSED = "ResultTtlNotElapsed"


class MempoolError(Exception):
    """A marketplace call was rejected for the reason given by ``kind``."""

    def __init__(self, kind: ErrorKind, detail: Optional[str] = None) -> None:
        message = kind.value if detail is None else f"{kind.value}: {detail}"
        super().__init__(message)
        self.kind = kind
        self.detail = detail


class VmError(Exception):
    """A program hook refused a spec, a submission or a result."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message