import dataclasses

import pytest

from isingmarket.events import (
    Event,
    FrontRunnerChanged,
    OrderClosed,
    ResultReady,
    SolverRegistered,
)
from isingmarket.types import MAX_ENDPOINT_LEN, MAX_WINNERS, MinerType, WinnerSummary


def test_events_compare_by_value():
    first = FrontRunnerChanged(order_id=0, solver=2, energy_milli=-1_000)
    second = FrontRunnerChanged(order_id=0, solver=2, energy_milli=-1_000)
    assert first == second
    assert first != FrontRunnerChanged(order_id=0, solver=3, energy_milli=-1_000)


def test_events_share_a_base():
    event = SolverRegistered(who=2, solver_type=MinerType.CPU)
    assert isinstance(event, Event)
    assert event.solver_type is MinerType.CPU


def test_events_are_immutable():
    event = OrderClosed(order_id=0, successful=True)
    with pytest.raises(dataclasses.FrozenInstanceError):
        event.successful = False
    assert event.successful is True


def test_result_ready_normalises_winners_and_endpoint():
    winner = WinnerSummary(solver=2, energy_milli=-1_000, amount=100)
    event = ResultReady(
        order_id=0, endpoint="https://solver.example/callback", winners=[winner]
    )
    assert event.endpoint == b"https://solver.example/callback"
    assert event.winners == (winner,)
    assert event == ResultReady(0, b"https://solver.example/callback", (winner,))


def test_result_ready_rejects_long_endpoint():
    with pytest.raises(ValueError):
        ResultReady(order_id=0, endpoint=b"x" * (MAX_ENDPOINT_LEN + 1), winners=())


def test_result_ready_rejects_too_many_winners():
    winners = [
        WinnerSummary(solver=i, energy_milli=0, amount=1)
        for i in range(MAX_WINNERS + 1)
    ]
    with pytest.raises(ValueError):
        ResultReady(order_id=0, endpoint=b"e", winners=winners)


def test_result_ready_accepts_winner_limit():
    winners = [
        WinnerSummary(solver=i, energy_milli=0, amount=1) for i in range(MAX_WINNERS)
    ]
    event = ResultReady(order_id=1, endpoint=b"e", winners=winners)
    assert len(event.winners) == MAX_WINNERS