import pytest

from isingmarket.types import (
    MAX_ENDPOINT_LEN,
    MAX_NAME_LEN,
    MAX_WINNERS,
    DeliveryKind,
    Formulation,
    JobMode,
    JobSpec,
    MinerType,
    OrderTiming,
    ResolutionKind,
    ResultDelivery,
    RewardResolution,
    StoredResult,
    WinnerSummary,
)


def test_reward_resolution_factories():
    assert RewardResolution.single_best().kind is ResolutionKind.SINGLE_BEST
    weighted = RewardResolution.top_n_weighted(2)
    assert weighted.kind is ResolutionKind.TOP_N_WEIGHTED
    assert weighted.n == 2
    equal = RewardResolution.top_n_equal(3)
    assert equal.kind is ResolutionKind.TOP_N_EQUAL
    assert equal.n == 3


def test_reward_resolution_is_top_n():
    assert RewardResolution.single_best().is_top_n is False
    assert RewardResolution.top_n_equal(2).is_top_n is True


def test_reward_resolution_equality():
    assert RewardResolution.single_best() == RewardResolution.single_best()
    assert RewardResolution.top_n_equal(2) == RewardResolution.top_n_equal(2)
    assert RewardResolution.top_n_equal(2) != RewardResolution.top_n_weighted(2)


def test_result_delivery_endpoint_from_str():
    delivery = ResultDelivery.callback("https://solver.example/callback")
    assert delivery.kind is DeliveryKind.CALLBACK
    assert delivery.endpoint == b"https://solver.example/callback"


def test_result_delivery_poll_keeps_bytes():
    delivery = ResultDelivery.callback_with_poll(b"https://solver.example/poll")
    assert delivery.kind is DeliveryKind.CALLBACK_WITH_POLL
    assert delivery.endpoint == b"https://solver.example/poll"


def test_on_chain_only_has_no_endpoint():
    delivery = ResultDelivery.on_chain_only()
    assert delivery.kind is DeliveryKind.ON_CHAIN_ONLY
    assert delivery.endpoint is None


def test_endpoint_length_limit():
    assert len(ResultDelivery.callback(b"a" * MAX_ENDPOINT_LEN).endpoint) == MAX_ENDPOINT_LEN
    with pytest.raises(ValueError):
        ResultDelivery.callback(b"a" * (MAX_ENDPOINT_LEN + 1))


def test_job_mode_open_and_bid():
    assert JobMode.open().is_bid is False
    mode = JobMode.bid(miners=[3], miner_types=None)
    assert mode.is_bid is True
    assert mode.miners == (3,)
    assert mode.miner_types is None


def test_job_mode_bid_is_hashable_and_comparable():
    a = JobMode.bid(miners=None, miner_types=[MinerType.GPU])
    b = JobMode.bid(miners=None, miner_types=(MinerType.GPU,))
    assert a == b
    assert hash(a) == hash(b)


def test_job_mode_miner_types_limit():
    with pytest.raises(ValueError):
        JobMode.bid(miners=None, miner_types=[MinerType.CPU] * 9)


def test_job_spec_name_limit_and_defaults():
    spec = JobSpec(1, "max-cut", Formulation.ISING, None, None, 1)
    assert spec.name == b"max-cut"
    assert spec.total_orders == 0
    assert spec.successful_orders == 0
    with pytest.raises(ValueError):
        JobSpec(1, b"x" * (MAX_NAME_LEN + 1), Formulation.ISING, None, None, 1)


def test_order_timing_is_frozen():
    timing = OrderTiming(deadline_blocks=10, block_wait=5)
    with pytest.raises(AttributeError):
        timing.block_wait = 6
    assert timing.deadline_blocks == 10


def test_stored_result_winner_limit():
    winner = WinnerSummary(solver=2, energy_milli=-1_000, amount=100)
    stored = StoredResult(b"https://solver.example/poll", RewardResolution.single_best(), 2, (winner,))
    assert stored.winners == [winner]
    with pytest.raises(ValueError):
        StoredResult(b"e", RewardResolution.single_best(), 2, [winner] * (MAX_WINNERS + 1))