"""
Typed records for the double pendulum.

Parameters and initial conditions are frozen dataclasses: a change goes
through ``dataclasses.replace`` so the validation in ``__post_init__``
runs again. ``DynamicState`` is frozen as well; the integrator returns a
new value on every step.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Union

from pendulum_lab.errors import InvalidParameterError


def _require_finite(name: str, value: float) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidParameterError(f"{name} must be a number, got {value!r}") from exc
    if not math.isfinite(value):
        raise InvalidParameterError(f"{name} must be finite, got {value!r}")
    return value


def _require_positive(name: str, value: float) -> float:
    value = _require_finite(name, value)
    if value <= 0.0:
        raise InvalidParameterError(f"{name} must be > 0, got {value!r}")
    return value


class PhysicalField(str, Enum):
    M1 = "m1"
    M2 = "m2"
    L1 = "l1"
    L2 = "l2"
    G = "g"
    DAMPING = "damping"

    @property
    def resets_state(self) -> bool:
        """Mass and length changes invalidate the trail and the energy baseline."""
        return self in (PhysicalField.M1, PhysicalField.M2, PhysicalField.L1, PhysicalField.L2)


class InitialField(str, Enum):
    THETA1 = "theta1"
    THETA2 = "theta2"
    OMEGA1 = "omega1"
    OMEGA2 = "omega2"


def coerce_field(enum_cls, field: Union[str, Enum]):
    """Return ``field`` as a member of ``enum_cls``, accepting its string value."""
    if isinstance(field, enum_cls):
        return field
    try:
        return enum_cls(field)
    except ValueError as exc:
        names = ", ".join(m.value for m in enum_cls)
        raise InvalidParameterError(f"unknown field {field!r}, expected one of: {names}") from exc


@dataclass(frozen=True)
class PhysicalParameters:
    m1: float = 1.0
    m2: float = 1.0
    l1: float = 100.0
    l2: float = 100.0
    g: float = 9.81
    damping: float = 1.0

    def __post_init__(self) -> None:
        for name in ("m1", "m2", "l1", "l2"):
            object.__setattr__(self, name, _require_positive(name, getattr(self, name)))
        object.__setattr__(self, "g", _require_finite("g", self.g))
        damping = _require_finite("damping", self.damping)
        if not 0.0 < damping <= 1.0:
            raise InvalidParameterError(f"damping must be in (0, 1], got {damping!r}")
        object.__setattr__(self, "damping", damping)

    def with_value(self, field: Union[str, PhysicalField], value: float) -> "PhysicalParameters":
        field = coerce_field(PhysicalField, field)
        return replace(self, **{field.value: value})


@dataclass(frozen=True)
class InitialConditions:
    theta1: float = math.pi * 0.8
    theta2: float = -math.pi * 0.5
    omega1: float = 2.0
    omega2: float = -1.0

    def __post_init__(self) -> None:
        for name in ("theta1", "theta2", "omega1", "omega2"):
            object.__setattr__(self, name, _require_finite(name, getattr(self, name)))

    def with_value(self, field: Union[str, InitialField], value: float) -> "InitialConditions":
        field = coerce_field(InitialField, field)
        return replace(self, **{field.value: value})


@dataclass(frozen=True)
class DynamicState:
    """Generalized coordinates [theta1, theta2, omega1, omega2]."""

    theta1: float
    theta2: float
    omega1: float
    omega2: float

    @classmethod
    def from_initial(cls, initial: InitialConditions) -> "DynamicState":
        return cls(initial.theta1, initial.theta2, initial.omega1, initial.omega2)

    def matches(self, initial: InitialConditions) -> bool:
        return (
            self.theta1 == initial.theta1
            and self.theta2 == initial.theta2
            and self.omega1 == initial.omega1
            and self.omega2 == initial.omega2
        )

    def as_tuple(self):
        return (self.theta1, self.theta2, self.omega1, self.omega2)


@dataclass(frozen=True)
class EnergySample:
    kinetic: float
    potential: float

    @property
    def total(self) -> float:
        return self.kinetic + self.potential


@dataclass(frozen=True)
class TrailPoint:
    x: float
    y: float


def validate_trail_length(value) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidParameterError(f"trail_length must be an integer, got {value!r}")
    if isinstance(value, float):
        if not value.is_integer():
            raise InvalidParameterError(f"trail_length must be an integer, got {value!r}")
        value = int(value)
    if value <= 0:
        raise InvalidParameterError(f"trail_length must be > 0, got {value!r}")
    return value


def validate_time_scale(value) -> float:
    value = _require_finite("time_scale", value)
    if value < 0.0:
        raise InvalidParameterError(f"time_scale must be >= 0, got {value!r}")
    return value


@dataclass(frozen=True)
class VisualizationSettings:
    """The display flags kept in sync across every instance of a manager."""

    show_trail: bool = True
    show_minimal: bool = False
    show_energy: bool = False
    show_phase_space: bool = False
    trail_length: int = 1000

    def __post_init__(self) -> None:
        object.__setattr__(self, "trail_length", validate_trail_length(self.trail_length))
