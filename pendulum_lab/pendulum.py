from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, Optional, Protocol, Sequence, Tuple, Union

from pendulum_lab import physics
from pendulum_lab.history import EnergyTracker, TrailBuffer
from pendulum_lab.state import (
    DynamicState,
    InitialConditions,
    InitialField,
    PhysicalField,
    PhysicalParameters,
    VisualizationSettings,
    coerce_field,
    validate_time_scale,
)

logger = logging.getLogger(__name__)

BOB_DIAMETER = 20.0
DEFAULT_TRAIL_COLOR = "rgba(100,100,255,0.6)"
DEFAULT_BOB1_COLOR = "rgb(0,0,255)"
DEFAULT_BOB2_COLOR = "rgb(255,0,0)"
ARM_COLOR = "rgb(0,0,0)"


class Lifecycle(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    DEGENERATE = "degenerate"


class RenderTarget(Protocol):
    """Drawing surface owned by the host. Coordinates are relative to the pivot, y down."""

    def line(self, x0: float, y0: float, x1: float, y1: float, color: str, width: float) -> None:
        ...

    def circle(self, x: float, y: float, diameter: float, color: str) -> None:
        ...

    def polyline(self, points: Sequence[Tuple[float, float]], color: str, width: float) -> None:
        ...


class Drawable(Protocol):
    def draw(self, target: RenderTarget, color: Optional[str] = None) -> None:
        ...


class PendulumInstance:
    """One double pendulum: parameters, state, flags and its bounded histories."""

    def __init__(
        self,
        params: Optional[PhysicalParameters] = None,
        initial: Optional[InitialConditions] = None,
        visualization: Optional[VisualizationSettings] = None,
        time_scale: float = 1.0,
        name: str = "pendulum",
    ) -> None:
        self.name = name
        visualization = visualization or VisualizationSettings()
        self.params = params or PhysicalParameters()
        self.initial = initial or InitialConditions()
        self.state = DynamicState.from_initial(self.initial)
        self.time_scale = validate_time_scale(time_scale)

        self.is_running = False
        self.is_degenerate = False

        self.show_trail = visualization.show_trail
        self.show_minimal = visualization.show_minimal
        self.show_energy = visualization.show_energy
        self.show_phase_space = visualization.show_phase_space
        self.trail = TrailBuffer(visualization.trail_length)
        self.energy_history = EnergyTracker(visualization.trail_length)

    # ------------------------------------------------------------------
    # Lifecycle

    @property
    def lifecycle(self) -> Lifecycle:
        if self.is_degenerate:
            return Lifecycle.DEGENERATE
        return Lifecycle.RUNNING if self.is_running else Lifecycle.IDLE

    def init(self) -> None:
        self.reset()

    def start(self) -> None:
        """Run from the initial conditions, starting a fresh trail.

        Calling it while running changes nothing.
        """
        if self.is_running:
            return
        self.state = DynamicState.from_initial(self.initial)
        self.is_degenerate = False
        self.is_running = True
        self.trail.clear()
        if self.show_trail:
            self.trail.record(self.state, self.params)
        self.energy_history.ensure_seeded(self.state, self.params)
        logger.debug("%s started", self.name)

    def stop(self) -> None:
        self.is_running = False
        self.energy_history.ensure_seeded(self.state, self.params)

    def reset(self) -> None:
        self.state = DynamicState.from_initial(self.initial)
        self.trail.clear()
        self.energy_history.clear()
        self.is_running = False
        self.is_degenerate = False
        self.energy_history.record(self.state, self.params)
        if self.show_trail:
            self.trail.record(self.state, self.params)

    def update(self, dt: float) -> None:
        if not self.is_running:
            return

        new_state = physics.step(self.state, self.params, dt)
        if not physics.is_finite(new_state):
            # keep the last finite state and halt
            self.is_degenerate = True
            self.is_running = False
            logger.warning(
                "%s diverged (theta1=%.6g, theta2=%.6g, omega1=%.6g, omega2=%.6g); halted",
                self.name, *self.state.as_tuple(),
            )
            return
        self.state = new_state

        if self.show_trail:
            self.trail.record(self.state, self.params)
        if self.show_energy:
            self.energy_history.record(self.state, self.params)

    # ------------------------------------------------------------------
    # Mutation API

    @property
    def trail_length(self) -> int:
        return self.trail.capacity

    def set_time_scale(self, value: float) -> None:
        self.time_scale = validate_time_scale(value)

    def set_initial_condition(self, field: Union[str, InitialField], value: float) -> None:
        self.initial = self.initial.with_value(field, value)
        self.reset()

    def set_initial_conditions(self, initial: InitialConditions) -> None:
        self.initial = initial
        self.reset()

    def set_physical_parameter(self, field: Union[str, PhysicalField], value: float) -> None:
        field = coerce_field(PhysicalField, field)
        self.params = self.params.with_value(field, value)
        if field.resets_state:
            self.reset()

    def set_trail_length(self, value: int) -> None:
        self.trail.set_capacity(value)
        self.energy_history.set_capacity(value)

    def toggle_trail(self) -> None:
        self._set_show_trail(not self.show_trail)

    def toggle_minimal(self) -> None:
        self.show_minimal = not self.show_minimal

    def toggle_energy(self) -> None:
        self._set_show_energy(not self.show_energy)

    def toggle_phase_space(self) -> None:
        self.show_phase_space = not self.show_phase_space

    @property
    def visualization(self) -> VisualizationSettings:
        return VisualizationSettings(
            show_trail=self.show_trail,
            show_minimal=self.show_minimal,
            show_energy=self.show_energy,
            show_phase_space=self.show_phase_space,
            trail_length=self.trail_length,
        )

    def apply_visualization(self, settings: VisualizationSettings) -> None:
        self.set_trail_length(settings.trail_length)
        self._set_show_trail(settings.show_trail)
        self._set_show_energy(settings.show_energy)
        self.show_minimal = settings.show_minimal
        self.show_phase_space = settings.show_phase_space

    def _set_show_trail(self, enabled: bool) -> None:
        if enabled == self.show_trail:
            return
        self.show_trail = enabled
        if enabled:
            self.trail.record(self.state, self.params)
        else:
            self.trail.clear()

    def _set_show_energy(self, enabled: bool) -> None:
        if enabled == self.show_energy:
            return
        self.show_energy = enabled
        if enabled:
            self.energy_history.ensure_seeded(self.state, self.params)

    # ------------------------------------------------------------------
    # Read-only views

    def positions(self) -> Tuple[Tuple[float, float], Tuple[float, float]]:
        return physics.positions_from_state(self.state, self.params)

    def get_current_state(self) -> Dict[str, object]:
        sample = physics.energy(self.state, self.params)
        return {
            "theta1": self.state.theta1,
            "theta2": self.state.theta2,
            "omega1": self.state.omega1,
            "omega2": self.state.omega2,
            "energy": {
                "kinetic": sample.kinetic,
                "potential": sample.potential,
                "total": sample.total,
            },
        }

    def draw(self, target: RenderTarget, color: Optional[str] = None) -> None:
        (x1, y1), (x2, y2) = self.positions()

        if self.show_trail and self.trail:
            points = [(p.x, p.y) for p in self.trail]
            target.polyline(points, color or DEFAULT_TRAIL_COLOR, 2.5)

        if not self.show_minimal:
            target.line(0.0, 0.0, x1, y1, ARM_COLOR, 2.0)
            target.line(x1, y1, x2, y2, ARM_COLOR, 2.0)
            target.circle(x1, y1, BOB_DIAMETER, color or DEFAULT_BOB1_COLOR)

        # the terminal bob is drawn in every mode
        target.circle(x2, y2, BOB_DIAMETER, color or DEFAULT_BOB2_COLOR)
