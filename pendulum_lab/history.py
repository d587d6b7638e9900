"""
Bounded diagnostic histories.

Both the trail and the energy history are capped FIFOs sharing the
instance's ``trail_length``; appending past the cap evicts the oldest
entries. Neither is ever read back by the physics.
"""

from __future__ import annotations

from typing import Generic, Iterator, List, TypeVar

from pendulum_lab import physics
from pendulum_lab.state import DynamicState, EnergySample, PhysicalParameters, TrailPoint, validate_trail_length

T = TypeVar("T")


class BoundedHistory(Generic[T]):
    def __init__(self, capacity: int) -> None:
        self._capacity = validate_trail_length(capacity)
        self._items: List[T] = []

    @property
    def capacity(self) -> int:
        return self._capacity

    def set_capacity(self, capacity: int) -> None:
        """Change the cap and drop the oldest entries that no longer fit."""
        self._capacity = validate_trail_length(capacity)
        self._truncate()

    def append(self, item: T) -> None:
        self._items.append(item)
        self._truncate()

    def clear(self) -> None:
        self._items.clear()

    def latest(self) -> T:
        return self._items[-1]

    def tail(self, n: int) -> List[T]:
        return self._items[-n:] if n > 0 else []

    def _truncate(self) -> None:
        excess = len(self._items) - self._capacity
        if excess > 0:
            del self._items[:excess]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def __getitem__(self, index):
        return self._items[index]

    def __bool__(self) -> bool:
        return bool(self._items)


class TrailBuffer(BoundedHistory[TrailPoint]):
    """Recent positions of the terminal bob."""

    def record(self, state: DynamicState, params: PhysicalParameters) -> TrailPoint:
        _, (x2, y2) = physics.positions_from_state(state, params)
        point = TrailPoint(x2, y2)
        self.append(point)
        return point


class EnergyTracker(BoundedHistory[EnergySample]):
    """Recent kinetic/potential energy samples."""

    def record(self, state: DynamicState, params: PhysicalParameters) -> EnergySample:
        sample = physics.energy(state, params)
        self.append(sample)
        return sample

    def ensure_seeded(self, state: DynamicState, params: PhysicalParameters) -> None:
        if not self:
            self.record(state, params)

    def drift(self) -> float:
        """Relative change in total energy between the oldest and newest sample."""
        if len(self) < 2:
            return 0.0
        e0 = self[0].total
        return abs(self.latest().total - e0) / max(1e-9, abs(e0))
