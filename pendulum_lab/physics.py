"""
Numerical physics for the double pendulum.

This module provides:
- Closed-form angular accelerations from the Lagrangian equations of motion
- A semi-implicit Euler step with multiplicative velocity damping
- Kinetic and potential energy computation
- Position helpers for visualization
- Fixed-step sub-step counting for the host loop

Angles are measured from the vertical (downwards is 0 rad). Positions use
screen orientation: the pivot is at (0, 0) and y grows downwards.
"""

from __future__ import annotations

import math
from typing import Tuple

from pendulum_lab.state import DynamicState, EnergySample, PhysicalParameters


def accelerations(state: DynamicState, params: PhysicalParameters) -> Tuple[float, float]:
    """Return angular accelerations (theta1_acc, theta2_acc).

    The shared denominator is l * (2*m1 + m2 - m2*cos(2*th1 - 2*th2)). It is
    not clamped; a near-singular configuration yields huge or non-finite values
    which the caller is expected to detect.
    """
    th1, th2, w1, w2 = state.theta1, state.theta2, state.omega1, state.omega2
    m1, m2 = params.m1, params.m2
    l1, l2 = params.l1, params.l2
    g = params.g

    delta = th1 - th2
    sin_delta = math.sin(delta)
    cos_delta = math.cos(delta)
    denom = 2.0 * m1 + m2 - m2 * math.cos(2.0 * th1 - 2.0 * th2)

    # First mass angular acceleration
    num1 = -g * (2.0 * m1 + m2) * math.sin(th1)
    num1 -= m2 * g * math.sin(th1 - 2.0 * th2)
    num1 -= 2.0 * sin_delta * m2 * (w2 * w2 * l2 + w1 * w1 * l1 * cos_delta)
    a1 = _divide(num1, l1 * denom)

    # Second mass angular acceleration
    num2 = 2.0 * sin_delta * (
        w1 * w1 * l1 * (m1 + m2)
        + g * (m1 + m2) * math.cos(th1)
        + w2 * w2 * l2 * m2 * cos_delta
    )
    a2 = _divide(num2, l2 * denom)

    return a1, a2


def _divide(num: float, den: float) -> float:
    if den == 0.0:
        if num == 0.0 or math.isnan(num):
            return math.nan
        return math.copysign(math.inf, num)
    return num / den


def step(state: DynamicState, params: PhysicalParameters, dt: float) -> DynamicState:
    """Semi-implicit Euler step.

    Angular velocities are updated from accelerations evaluated at the old
    state, angles are then advanced with the new velocities, and finally the
    velocities are scaled by ``params.damping``.
    """
    a1, a2 = accelerations(state, params)
    w1 = state.omega1 + a1 * dt
    w2 = state.omega2 + a2 * dt
    th1 = state.theta1 + w1 * dt
    th2 = state.theta2 + w2 * dt
    w1 *= params.damping
    w2 *= params.damping
    return DynamicState(th1, th2, w1, w2)


def is_finite(state: DynamicState) -> bool:
    return all(math.isfinite(v) for v in state.as_tuple())


def kinetic_energy(state: DynamicState, params: PhysicalParameters) -> float:
    """Kinetic energy from the full cartesian velocity of both bobs."""
    th1, th2, w1, w2 = state.theta1, state.theta2, state.omega1, state.omega2
    l1, l2 = params.l1, params.l2
    v1x = l1 * w1 * math.cos(th1)
    v1y = l1 * w1 * math.sin(th1)
    v2x = v1x + l2 * w2 * math.cos(th2)
    v2y = v1y + l2 * w2 * math.sin(th2)
    return 0.5 * params.m1 * (v1x * v1x + v1y * v1y) + 0.5 * params.m2 * (v2x * v2x + v2y * v2y)


def potential_energy(state: DynamicState, params: PhysicalParameters) -> float:
    """Potential energy with heights measured from the pivot (upwards positive)."""
    h1 = -params.l1 * math.cos(state.theta1)
    h2 = h1 - params.l2 * math.cos(state.theta2)
    return params.m1 * params.g * h1 + params.m2 * params.g * h2


def energy(state: DynamicState, params: PhysicalParameters) -> EnergySample:
    return EnergySample(kinetic_energy(state, params), potential_energy(state, params))


def positions_from_state(state: DynamicState, params: PhysicalParameters) -> Tuple[Tuple[float, float], Tuple[float, float]]:
    """Compute bob positions relative to the pivot at (0, 0).

    Returns ((x1, y1), (x2, y2)) with y growing downwards.
    """
    x1 = params.l1 * math.sin(state.theta1)
    y1 = params.l1 * math.cos(state.theta1)
    x2 = x1 + params.l2 * math.sin(state.theta2)
    y2 = y1 + params.l2 * math.cos(state.theta2)
    return (x1, y1), (x2, y2)


def substep_count(frame_dt: float, time_scale: float, fixed_step: float) -> int:
    """Number of fixed-size steps needed to cover ``frame_dt`` scaled by ``time_scale``."""
    if frame_dt <= 0.0 or time_scale <= 0.0:
        return 0
    return int(math.ceil(frame_dt * time_scale / fixed_step))


def wrap_angle(angle: float) -> float:
    """Map an angle to [-pi, pi). Used for display only; the state is never wrapped."""
    two_pi = 2.0 * math.pi
    a = (angle + math.pi) % two_pi
    return a - math.pi
