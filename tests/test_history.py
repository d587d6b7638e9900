import pytest

from pendulum_lab import physics
from pendulum_lab.errors import InvalidParameterError
from pendulum_lab.history import BoundedHistory, EnergyTracker, TrailBuffer
from pendulum_lab.state import DynamicState, PhysicalParameters, TrailPoint


def test_bounded_history_evicts_oldest_first():
    h = BoundedHistory(3)
    for i in range(5):
        h.append(i)
    assert list(h) == [2, 3, 4]
    assert h.latest() == 4
    assert len(h) == 3


def test_shrinking_capacity_truncates_from_the_front():
    h = BoundedHistory(10)
    for i in range(10):
        h.append(i)
    h.set_capacity(4)
    assert list(h) == [6, 7, 8, 9]
    h.set_capacity(8)
    assert list(h) == [6, 7, 8, 9]


def test_capacity_must_be_positive():
    with pytest.raises(InvalidParameterError):
        BoundedHistory(0)
    h = BoundedHistory(2)
    with pytest.raises(InvalidParameterError):
        h.set_capacity(-1)
    assert h.capacity == 2


def test_tail_and_clear():
    h = BoundedHistory(5)
    assert h.tail(3) == []
    for i in range(5):
        h.append(i)
    assert h.tail(2) == [3, 4]
    assert h.tail(0) == []
    h.clear()
    assert not h


def test_trail_records_terminal_bob():
    params = PhysicalParameters(l1=100.0, l2=50.0)
    trail = TrailBuffer(10)
    point = trail.record(DynamicState(0.0, 0.0, 0.0, 0.0), params)
    assert point == TrailPoint(0.0, 150.0)
    assert list(trail) == [point]


def test_energy_tracker_seeds_only_when_empty():
    params = PhysicalParameters()
    state = DynamicState(0.5, 0.3, 0.0, 0.0)
    tracker = EnergyTracker(10)
    tracker.ensure_seeded(state, params)
    tracker.ensure_seeded(state, params)
    assert len(tracker) == 1
    assert tracker.latest() == physics.energy(state, params)


def test_energy_drift():
    params = PhysicalParameters(g=10.0, l1=1.0, l2=1.0)
    tracker = EnergyTracker(10)
    assert tracker.drift() == 0.0
    tracker.record(DynamicState(0.0, 0.0, 0.0, 0.0), params)  # total = -30
    tracker.record(DynamicState(0.0, 0.0, 0.0, 0.0), params)
    assert tracker.drift() == 0.0
    tracker.record(DynamicState(0.0, 0.0, 1.0, 0.0), params)  # adds KE 0.5 + 0.5
    assert tracker.drift() == pytest.approx(1.0 / 30.0)
