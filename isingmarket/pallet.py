"""The Ising job marketplace: solvers, job specs, orders, solutions and payouts."""

from __future__ import annotations

import copy
import functools
import hashlib
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence, TypeVar

from . import events as ev
from . import lifecycle, rewards
from .balances import Balances
from .delivery import validate_delivery_mode
from .errors import ErrorKind, MempoolError
from .types import (
    MAX_NAME_LEN,
    MAX_WINNERS,
    DeliveryKind,
    Formulation,
    FrontRunner,
    IsingParams,
    JobMode,
    JobOrder,
    JobSolution,
    JobSpec,
    MinerType,
    OrderStatus,
    OrderTiming,
    RankedSolver,
    ResolutionKind,
    ResultDelivery,
    RewardResolution,
    SolverInfo,
    StoredResult,
    WinnerSummary,
)
from .validation import IsingValidator, ValidationFailure, map_validation_error
from .xqvm import NoOpVm, QuantumVm

_F = TypeVar("_F", bound=Callable[..., Any])


@dataclass(frozen=True)
class MempoolConfig:
    """Limits and constants of a marketplace instance."""

    max_nodes: int = 16
    max_edges: int = 32
    max_solutions: int = 8
    max_bid_miners: int = 4
    max_orders_per_proposer: int = 8
    max_deadline_blocks: int = 100
    max_block_wait: int = 20
    min_reward: int = 10
    result_ttl_blocks: int = 10


def _name_bytes(name: bytes | str) -> bytes:
    data = name.encode("utf-8") if isinstance(name, str) else bytes(name)
    if len(data) > MAX_NAME_LEN:
        raise ValueError(f"name is {len(data)} bytes long, at most {MAX_NAME_LEN} allowed")
    return data


def spec_id_for(
    name: bytes | str,
    formulation: Formulation,
    validation_program: Optional[Any] = None,
    transform_program: Optional[Any] = None,
) -> bytes:
    """Return the identifier of the job spec built from these parts."""
    digest = hashlib.blake2b(digest_size=32)
    parts = (
        _name_bytes(name),
        formulation.value.encode("utf-8"),
        repr(validation_program).encode("utf-8"),
        repr(transform_program).encode("utf-8"),
    )
    for part in parts:
        digest.update(len(part).to_bytes(4, "little"))
        digest.update(part)
    return digest.digest()


@dataclass
class _State:
    job_specs: dict = field(default_factory=dict)
    job_orders: dict = field(default_factory=dict)
    next_order_id: int = 0
    order_solutions: dict = field(default_factory=dict)
    order_front_runner: dict = field(default_factory=dict)
    order_top_solvers: dict = field(default_factory=dict)
    solvers: dict = field(default_factory=dict)
    proposer_orders: dict = field(default_factory=dict)
    order_results: dict = field(default_factory=dict)
    events: list = field(default_factory=list)


def _transactional(method: _F) -> _F:
    """Undo every state and balance change when the call raises."""

    @functools.wraps(method)
    def wrapper(self: "QuantumComputeMempool", *args: Any, **kwargs: Any) -> Any:
        saved_state = copy.deepcopy(self._state)
        saved_ledger = copy.deepcopy(vars(self.balances))
        try:
            return method(self, *args, **kwargs)
        except BaseException:
            self._state = saved_state
            ledger = vars(self.balances)
            ledger.clear()
            ledger.update(saved_ledger)
            raise

    return wrapper  # type: ignore[return-value]


def _fail(kind: ErrorKind) -> MempoolError:
    return MempoolError(kind)


class QuantumComputeMempool:
    """A marketplace in which proposers post Ising jobs and solvers compete."""

    def __init__(
        self,
        config: Optional[MempoolConfig] = None,
        vm: Optional[QuantumVm] = None,
        balances: Optional[Balances] = None,
        validator: Optional[IsingValidator] = None,
        block_number: int = 0,
    ) -> None:
        self.config = config or MempoolConfig()
        self.vm = vm if vm is not None else NoOpVm()
        self.balances = balances if balances is not None else Balances()
        self.validator = validator or IsingValidator()
        self.block_number = block_number
        self._state = _State()

    # ---- storage views -------------------------------------------------

    @property
    def job_specs(self) -> dict:
        return self._state.job_specs

    @property
    def job_orders(self) -> dict:
        return self._state.job_orders

    @property
    def next_order_id(self) -> int:
        return self._state.next_order_id

    @property
    def order_solutions(self) -> dict:
        """Accepted submissions keyed by ``(order_id, solver)``."""
        return self._state.order_solutions

    @property
    def order_front_runner(self) -> dict:
        return self._state.order_front_runner

    @property
    def order_top_solvers(self) -> dict:
        return self._state.order_top_solvers

    @property
    def solvers(self) -> dict:
        return self._state.solvers

    @property
    def proposer_orders(self) -> dict:
        return self._state.proposer_orders

    @property
    def order_results(self) -> dict:
        return self._state.order_results

    @property
    def events(self) -> list:
        return self._state.events

    def set_block_number(self, number: int) -> None:
        """Move the marketplace clock to block ``number``."""
        self.block_number = number

    def _emit(self, event: ev.Event) -> None:
        self._state.events.append(event)

    # ---- calls ---------------------------------------------------------

    @_transactional
    def register_solver(self, who: Any, solver_type: MinerType) -> None:
        if who in self.solvers:
            raise _fail(ErrorKind.SOLVER_ALREADY_REGISTERED)
        self.solvers[who] = SolverInfo(
            account=who, solver_type=solver_type, registered_at=self.block_number
        )
        self._emit(ev.SolverRegistered(who=who, solver_type=solver_type))

    @_transactional
    def deregister_solver(self, who: Any) -> None:
        if who not in self.solvers:
            raise _fail(ErrorKind.SOLVER_NOT_REGISTERED)
        del self.solvers[who]
        self._emit(ev.SolverDeregistered(who=who))

    @_transactional
    def register_job_spec(
        self,
        builder: Any,
        name: bytes | str,
        formulation: Formulation,
        validation_program: Optional[Any] = None,
        transform_program: Optional[Any] = None,
    ) -> bytes:
        """Register a job spec and return its identifier."""
        spec_id = spec_id_for(name, formulation, validation_program, transform_program)
        if spec_id in self.job_specs:
            raise _fail(ErrorKind.JOB_SPEC_ALREADY_EXISTS)
        self.vm.validate_programs(validation_program, transform_program)
        self.job_specs[spec_id] = JobSpec(
            builder=builder,
            name=_name_bytes(name),
            formulation=formulation,
            validation_program=validation_program,
            transform_program=transform_program,
            registered_at=self.block_number,
        )
        self._emit(ev.JobSpecRegistered(spec_id=spec_id, builder=builder))
        return spec_id

    def _check_param_bounds(self, params: IsingParams, mode: JobMode) -> None:
        cfg = self.config
        if len(params.nodes) > cfg.max_nodes or len(params.h_values) > cfg.max_nodes:
            raise ValueError(f"at most {cfg.max_nodes} nodes allowed")
        if len(params.edges) > cfg.max_edges or len(params.j_values) > cfg.max_edges:
            raise ValueError(f"at most {cfg.max_edges} edges allowed")
        if mode.miners is not None and len(mode.miners) > cfg.max_bid_miners:
            raise ValueError(f"at most {cfg.max_bid_miners} bid miners allowed")

    @_transactional
    def propose_job(
        self,
        proposer: Any,
        spec_id: bytes,
        ising_params: IsingParams,
        reward: int,
        mode: JobMode,
        resolution: RewardResolution,
        deadline_blocks: int,
        block_wait: int,
        delivery: ResultDelivery,
    ) -> int:
        """Post a job, reserving ``reward`` from the proposer; return its order id."""
        cfg = self.config
        self._check_param_bounds(ising_params, mode)
        if reward < cfg.min_reward:
            raise _fail(ErrorKind.REWARD_TOO_LOW)
        if deadline_blocks > cfg.max_deadline_blocks:
            raise _fail(ErrorKind.DEADLINE_TOO_LONG)
        if block_wait > cfg.max_block_wait:
            raise _fail(ErrorKind.BLOCK_WAIT_TOO_LONG)
        if spec_id not in self.job_specs:
            raise _fail(ErrorKind.JOB_SPEC_NOT_FOUND)
        if (
            ising_params.min_solutions is not None
            and ising_params.min_solutions > cfg.max_solutions
        ):
            raise _fail(ErrorKind.TOO_MANY_SOLUTIONS)
        if self.validator.validate_topology_consistency(
            ising_params.nodes,
            ising_params.edges,
            ising_params.h_values,
            ising_params.j_values,
        ):
            raise _fail(ErrorKind.INVALID_TOPOLOGY)
        if not validate_delivery_mode(delivery, mode):
            raise _fail(ErrorKind.INVALID_DELIVERY_MODE)
        if mode.is_bid and mode.miners is None and mode.miner_types is None:
            raise _fail(ErrorKind.EMPTY_BID_CRITERIA)
        if resolution.is_top_n and not (
            resolution.n is not None and 0 < resolution.n <= MAX_WINNERS
        ):
            raise _fail(ErrorKind.INVALID_REWARD_RESOLUTION)

        order_id = self._state.next_order_id
        existing = self.proposer_orders.get(proposer, [])
        if len(existing) >= cfg.max_orders_per_proposer:
            raise _fail(ErrorKind.ORDER_LIMIT_REACHED)

        self.balances.reserve(proposer, reward)

        self._state.next_order_id = order_id + 1
        self.job_orders[order_id] = JobOrder(
            spec_id=spec_id,
            proposer=proposer,
            ising_params=ising_params,
            reward=reward,
            mode=mode,
            resolution=resolution,
            timing=OrderTiming(deadline_blocks=deadline_blocks, block_wait=block_wait),
            delivery=delivery,
            status=OrderStatus.OPENED,
            created_at=self.block_number,
        )
        self.proposer_orders[proposer] = [*existing, order_id]
        self.job_specs[spec_id].total_orders += 1

        self._emit(
            ev.JobProposed(
                order_id=order_id,
                spec_id=spec_id,
                proposer=proposer,
                reward=reward,
                deadline_blocks=deadline_blocks,
                block_wait=block_wait,
            )
        )
        return order_id

    @_transactional
    def submit_solution(
        self, solver: Any, order_id: int, solutions: Sequence[Sequence[int]]
    ) -> None:
        cfg = self.config
        solver_info = self.solvers.get(solver)
        if solver_info is None:
            raise _fail(ErrorKind.SOLVER_NOT_REGISTERED)
        if len(solutions) > cfg.max_solutions:
            raise ValueError(f"at most {cfg.max_solutions} solutions allowed")
        if any(len(solution) > cfg.max_nodes for solution in solutions):
            raise ValueError(f"a solution holds at most {cfg.max_nodes} spins")
        if not solutions:
            raise _fail(ErrorKind.NO_SOLUTIONS_SUBMITTED)

        order = self.job_orders.get(order_id)
        if order is None:
            raise _fail(ErrorKind.ORDER_NOT_FOUND)
        spec = self.job_specs.get(order.spec_id)
        if spec is None:
            raise _fail(ErrorKind.JOB_SPEC_NOT_FOUND)
        self._expire_order_if_needed(order_id, order)
        if order.status is not OrderStatus.OPENED:
            raise _fail(ErrorKind.ORDER_NOT_OPEN)
        if not self._solver_is_eligible(solver, solver_info.solver_type, order.mode):
            raise _fail(ErrorKind.NOT_ELIGIBLE_SOLVER)

        params = order.ising_params
        transformed = self.vm.transform_solutions(
            order.spec_id,
            spec.validation_program,
            spec.transform_program,
            solver,
            [list(solution) for solution in solutions],
        )
        if not transformed:
            raise _fail(ErrorKind.NO_SOLUTIONS_SUBMITTED)
        if len(transformed) > cfg.max_solutions:
            raise _fail(ErrorKind.TOO_MANY_SOLUTIONS)

        try:
            valid: list[list[int]] = []
            energies: list[int] = []
            for solution in transformed:
                energy = self.validator.energy_of_solution(
                    solution, params.h_values, params.edges, params.j_values, params.nodes
                )
                if params.min_energy_milli is not None and energy > params.min_energy_milli:
                    continue
                energies.append(energy)
                valid.append(list(solution))
            if not valid:
                raise _fail(ErrorKind.INSUFFICIENT_ENERGY)
            best_energy = min(energies)

            wanted = params.min_solutions if params.min_solutions is not None else len(valid)
            target_count = min(wanted, len(valid))
            if len(valid) < max(target_count, 1):
                raise _fail(ErrorKind.INSUFFICIENT_SOLUTIONS)

            selected = [
                valid[index] for index in self.validator.select_diverse(valid, target_count)
            ]
            if params.min_solutions is not None and len(selected) < params.min_solutions:
                raise _fail(ErrorKind.INSUFFICIENT_SOLUTIONS)

            diversity_milli = self.validator.calculate_diversity(selected)
        except ValidationFailure as failure:
            raise map_validation_error(failure) from failure

        if (
            params.min_diversity_milli is not None
            and diversity_milli < params.min_diversity_milli
        ):
            raise _fail(ErrorKind.INSUFFICIENT_DIVERSITY)

        key = (order_id, solver)
        is_new_solver = key not in self.order_solutions
        now = self.block_number
        self.order_solutions[key] = JobSolution(
            solver=solver,
            solver_type=solver_info.solver_type,
            solutions=selected,
            best_energy_milli=best_energy,
            diversity_milli=diversity_milli,
            num_valid=len(selected),
            submitted_at=now,
        )
        if is_new_solver:
            order.solution_count += 1

        if order.first_solution_at is None:
            order.first_solution_at = now
            closes_at = lifecycle.effective_expiry(
                order.created_at, order.first_solution_at, order.timing
            )
            self._emit(
                ev.FirstSolutionReceived(
                    order_id=order_id, solver=solver, effective_expiry=closes_at
                )
            )
            self._emit(
                ev.BlockWaitStarted(
                    order_id=order_id, first_solution_at=now, closes_at=closes_at
                )
            )

        self._update_ranking(order_id, order.resolution, solver, best_energy)
        solver_info.solutions_submitted += 1
        self.job_orders[order_id] = order

        self._emit(
            ev.SolutionAccepted(
                order_id=order_id,
                solver=solver,
                energy_milli=best_energy,
                diversity_milli=diversity_milli,
            )
        )

    @_transactional
    def claim_reward(self, caller: Any, order_id: int) -> None:
        order = self.job_orders.get(order_id)
        if order is None:
            raise _fail(ErrorKind.ORDER_NOT_FOUND)
        spec = self.job_specs.get(order.spec_id)
        if spec is None:
            raise _fail(ErrorKind.JOB_SPEC_NOT_FOUND)
        self._expire_order_if_needed(order_id, order)
        if order.status is OrderStatus.CLOSED:
            raise _fail(ErrorKind.ALREADY_CLAIMED)
        if order.status is not OrderStatus.EXPIRED:
            raise _fail(ErrorKind.ORDER_NOT_EXPIRED)
        if order.solution_count == 0:
            raise _fail(ErrorKind.NO_SOLUTIONS_ACCEPTED)

        payouts = self._compute_payouts(order_id, order)
        if not any(winner == caller for winner, _, _ in payouts):
            raise _fail(ErrorKind.NOT_WINNER)
        winners = [
            WinnerSummary(solver=winner, energy_milli=energy, amount=amount)
            for winner, amount, energy in payouts
        ]
        if len(winners) > MAX_WINNERS:
            raise _fail(ErrorKind.INVALID_REWARD_RESOLUTION)
        self.vm.validate_result(
            order.spec_id, spec.validation_program, spec.transform_program, winners
        )

        self.balances.unreserve(order.proposer, order.reward)
        for winner, amount, _ in payouts:
            if amount == 0:
                continue
            self.balances.transfer(order.proposer, winner, amount)
            info = self.solvers.get(winner)
            if info is not None:
                info.rewards_earned += amount
            self._emit(ev.RewardClaimed(order_id=order_id, solver=winner, amount=amount))

        order.status = OrderStatus.CLOSED
        self.job_orders[order_id] = order
        spec.successful_orders += 1

        if order.delivery.kind is DeliveryKind.CALLBACK_WITH_POLL:
            self.order_results[order_id] = StoredResult(
                endpoint=order.delivery.endpoint,
                resolution=order.resolution,
                settled_at=self.block_number,
                winners=list(winners),
            )
        if order.delivery.kind is not DeliveryKind.ON_CHAIN_ONLY:
            self._emit(
                ev.ResultReady(
                    order_id=order_id,
                    endpoint=order.delivery.endpoint,
                    winners=tuple(winners),
                )
            )
        self._emit(ev.OrderClosed(order_id=order_id, successful=True))

    @_transactional
    def reclaim_order(self, caller: Any, order_id: int) -> None:
        order = self.job_orders.get(order_id)
        if order is None:
            raise _fail(ErrorKind.ORDER_NOT_FOUND)
        if order.proposer != caller:
            raise _fail(ErrorKind.NOT_PROPOSER)
        self._expire_order_if_needed(order_id, order)
        if order.status is OrderStatus.CLOSED:
            raise _fail(ErrorKind.ALREADY_CLAIMED)
        if order.status is not OrderStatus.EXPIRED:
            raise _fail(ErrorKind.ORDER_NOT_EXPIRED)
        if order.solution_count != 0:
            raise _fail(ErrorKind.NO_SOLUTIONS_ACCEPTED)

        self.balances.unreserve(caller, order.reward)
        order.status = OrderStatus.CLOSED
        self.job_orders[order_id] = order
        self._emit(
            ev.RewardReclaimed(order_id=order_id, proposer=caller, amount=order.reward)
        )
        self._emit(ev.OrderClosed(order_id=order_id, successful=False))

    @_transactional
    def purge_result(self, caller: Any, order_id: int) -> None:
        """Drop a stored poll result once its retention window has passed."""
        stored = self.order_results.get(order_id)
        if stored is None:
            raise _fail(ErrorKind.RESULT_NOT_FOUND)
        if self.block_number < stored.settled_at + self.config.result_ttl_blocks:
            raise _fail(ErrorKind.RESULT_TTL_NOT_ELAPSED)
        del self.order_results[order_id]
        self._emit(ev.ResultPurged(order_id=order_id))

    def result_for_order(self, order_id: int) -> Optional[StoredResult]:
        """Return the persisted poll result of an order, if any."""
        return self.order_results.get(order_id)

    # ---- helpers -------------------------------------------------------

    @staticmethod
    def _solver_is_eligible(solver: Any, solver_type: MinerType, mode: JobMode) -> bool:
        if not mode.is_bid:
            return True
        account_match = mode.miners is not None and solver in mode.miners
        type_match = mode.miner_types is not None and solver_type in mode.miner_types
        return account_match or type_match

    def _expire_order_if_needed(self, order_id: int, order: JobOrder) -> None:
        if order.status is OrderStatus.OPENED and lifecycle.is_expired(
            self.block_number, order.created_at, order.first_solution_at, order.timing
        ):
            order.status = OrderStatus.EXPIRED
            self.job_orders[order_id] = order
            self._emit(ev.OrderExpired(order_id=order_id))

    def _update_ranking(
        self,
        order_id: int,
        resolution: RewardResolution,
        solver: Any,
        best_energy: int,
    ) -> None:
        if resolution.kind is ResolutionKind.SINGLE_BEST:
            current = self.order_front_runner.get(order_id)
            if current is None or best_energy < current.energy_milli:
                self.order_front_runner[order_id] = FrontRunner(
                    solver=solver, energy_milli=best_energy
                )
                self._emit(
                    ev.FrontRunnerChanged(
                        order_id=order_id, solver=solver, energy_milli=best_energy
                    )
                )
            return

        current_ranked = self.order_top_solvers.get(order_id, [])
        previous_front = (
            (current_ranked[0].solver, current_ranked[0].energy_milli)
            if current_ranked
            else None
        )
        updated = rewards.update_ranked_solvers(
            current_ranked,
            RankedSolver(solver=solver, energy_milli=best_energy),
            resolution.n or 0,
        )
        if len(updated) > MAX_WINNERS:
            raise _fail(ErrorKind.INVALID_REWARD_RESOLUTION)
        next_front = (updated[0].solver, updated[0].energy_milli) if updated else None
        self.order_top_solvers[order_id] = updated
        if previous_front != next_front and next_front is not None:
            leader, energy = next_front
            self._emit(
                ev.FrontRunnerChanged(order_id=order_id, solver=leader, energy_milli=energy)
            )

    def _compute_payouts(self, order_id: int, order: JobOrder) -> list[rewards.Payout]:
        kind = order.resolution.kind
        if kind is ResolutionKind.SINGLE_BEST:
            front = self.order_front_runner.get(order_id)
            if front is None:
                raise _fail(ErrorKind.NO_SOLUTIONS_ACCEPTED)
            return rewards.single_best_payouts(front, order.reward)
        ranked = self.order_top_solvers.get(order_id, [])
        if not ranked:
            raise _fail(ErrorKind.NO_SOLUTIONS_ACCEPTED)
        if kind is ResolutionKind.TOP_N_EQUAL:
            return rewards.top_n_equal_payouts(ranked, order.reward)
        return rewards.top_n_weighted_payouts(ranked, order.reward)