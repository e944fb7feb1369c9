# isingmarket

An in-memory marketplace for Ising optimisation jobs. Proposers register job
specifications and post orders with a reserved reward; registered solvers
submit spin configurations; once an order expires, the reward is settled
among the best solvers.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Modules

- `isingmarket.types`: the domain types. Enums `Formulation`, `MinerType`,
  `OrderStatus`, `ResolutionKind`, `DeliveryKind`; value types
  `RewardResolution` (`single_best()`, `top_n_weighted(n)`, `top_n_equal(n)`),
  `ResultDelivery` (`on_chain_only()`, `callback(endpoint)`,
  `callback_with_poll(endpoint)`), `JobMode` (`open()`,
  `bid(miners, miner_types)`); records `IsingParams`, `JobSpec`,
  `OrderTiming`, `JobOrder`, `JobSolution`, `SolverInfo`, `RankedSolver`,
  `FrontRunner`, `WinnerSummary`, `StoredResult`. Endpoints are limited to 256
  bytes, spec names to 128 bytes, winner lists to 32 entries.
- `isingmarket.delivery`: `validate_delivery_mode(delivery, mode)`. On-chain
  delivery is always allowed; a plain callback is allowed for open jobs and
  for bids restricted by miner type only; callback-with-poll only for bids
  restricted by account only.
- `isingmarket.lifecycle`: `effective_expiry(...)` and `is_expired(...)`. An
  order closes at `created_at + deadline_blocks`, or `block_wait` blocks after
  the first accepted solution, whichever comes first.
- `isingmarket.rewards`: `update_ranked_solvers(...)` keeps a top-N list
  ordered by ascending energy; `single_best_payouts`, `top_n_equal_payouts`
  (remainder to the best solver) and `top_n_weighted_payouts` (in proportion
  to absolute energy, equal split when all energies are zero, rounding
  leftovers to the best solver).
- `isingmarket.validation`: `IsingValidator` with
  `validate_topology_consistency`, `energy_of_solution` (sum of `h*s` plus sum
  of `J*s_a*s_b`, spins must be -1 or 1), `select_diverse` (greedy
  farthest-first by Hamming distance) and `calculate_diversity` (mean pairwise
  normalised Hamming distance in milli-units). Failures are
  `ValidationFailure`s carrying a `ValidationIssue`; `map_validation_error`
  turns them into a `MempoolError`.
- `isingmarket.balances`: `Balances`, a ledger of free and reserved balances
  with `set_balance`, `reserve`, `unreserve`, `transfer`; overdrafts raise
  `InsufficientBalance`.
- `isingmarket.xqvm`: the `QuantumVm` hook interface (`validate_programs`,
  `transform_solutions`, `validate_result`) and the pass-through `NoOpVm`.
- `isingmarket.errors`: `ErrorKind`, `MempoolError` (has `.kind`) and
  `VmError` for hook implementations to raise.
- `isingmarket.events`: one frozen dataclass per event (`SolverRegistered`,
  `JobProposed`, `SolutionAccepted`, `FrontRunnerChanged`, `OrderExpired`,
  `RewardClaimed`, `RewardReclaimed`, `OrderClosed`, `ResultReady`,
  `ResultPurged` and others).
- `isingmarket.pallet`: `MempoolConfig` (limits, defaults: 16 nodes, 32 edges,
  8 solutions, 4 bid miners, 8 orders per proposer, deadline at most 100
  blocks, block wait at most 20, minimum reward 10, result TTL 10 blocks),
  `spec_id_for(...)` and the `QuantumComputeMempool` itself.

## Example

```python
from isingmarket.balances import Balances
from isingmarket.pallet import MempoolConfig, QuantumComputeMempool
from isingmarket.types import (
    Formulation, IsingParams, JobMode, MinerType, ResultDelivery, RewardResolution,
)

balances = Balances({1: 1_000_000, 2: 1_000_000})
market = QuantumComputeMempool(MempoolConfig(), balances=balances)
market.set_block_number(1)

market.register_solver(2, MinerType.CPU)
spec_id = market.register_job_spec(1, b"max-cut", Formulation.ISING, None, None)

params = IsingParams(nodes=[0, 1], edges=[(0, 1)], h_values=[0, 0], j_values=[-1_000])
order_id = market.propose_job(
    1, spec_id, params, 100,
    JobMode.open(), RewardResolution.single_best(),
    2, 1, ResultDelivery.on_chain_only(),
)

market.submit_solution(2, order_id, [[1, 1]])
market.set_block_number(2)
market.claim_reward(2, order_id)

print(balances.free_balance(2))  # 1000100
```

The market's state is exposed through `job_specs`, `job_orders`,
`order_solutions`, `order_front_runner`, `order_top_solvers`, `solvers`,
`proposer_orders`, `order_results` and the `events` list.
`result_for_order(order_id)` returns the stored result of a
callback-with-poll order, and `purge_result` lets anyone remove it once
`result_ttl_blocks` have passed since settlement.

## Errors

Rejected calls raise `MempoolError` with an `ErrorKind`; inputs larger than
the configured limits raise `ValueError`; exceptions raised by a `QuantumVm`
pass through unchanged. In every case the market's state and the balances
are rolled back to what they were before the call.

## What it does not do

Everything lives in memory: there is no persistence, no network service and
no command-line tool. Callback delivery only records a `ResultReady` event;
nothing is sent to the endpoint. Block numbers advance only when
`set_block_number` is called.