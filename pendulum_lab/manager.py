"""
Orchestration of several pendulums sharing one canvas.

The manager owns an ordered list of ``PendulumInstance`` objects. New
instances start from randomized initial conditions so their trajectories
visibly diverge, and they inherit the display flags of the first instance
so the set stays visually consistent.
"""

from __future__ import annotations

import logging
import random
from typing import Iterator, List, Optional, Tuple

from pendulum_lab import physics
from pendulum_lab.config import SimulatorConfig
from pendulum_lab.pendulum import PendulumInstance
from pendulum_lab.state import InitialConditions, VisualizationSettings

logger = logging.getLogger(__name__)


class SimulationManager:
    def __init__(self, config: Optional[SimulatorConfig] = None, rng: Optional[random.Random] = None) -> None:
        self.config = config or SimulatorConfig()
        self.rng = rng or random.Random(self.config.seed)
        self._instances: List[PendulumInstance] = []
        self._created = 0
        for _ in range(self.config.initial_instances):
            self.add_instance()

    @property
    def instances(self) -> Tuple[PendulumInstance, ...]:
        return tuple(self._instances)

    @property
    def primary(self) -> PendulumInstance:
        """The first instance; UI controls read their values from it."""
        return self._instances[0]

    @property
    def any_running(self) -> bool:
        return any(p.is_running for p in self._instances)

    @property
    def can_add(self) -> bool:
        return len(self._instances) < self.config.max_instances

    @property
    def can_remove(self) -> bool:
        return len(self._instances) > 1

    def __len__(self) -> int:
        return len(self._instances)

    def __iter__(self) -> Iterator[PendulumInstance]:
        return iter(self._instances)

    def random_initial_conditions(self) -> InitialConditions:
        t_lo, t_hi = self.config.theta_range
        w_lo, w_hi = self.config.omega_range
        return InitialConditions(
            theta1=self.rng.uniform(t_lo, t_hi),
            theta2=self.rng.uniform(t_lo, t_hi),
            omega1=self.rng.uniform(w_lo, w_hi),
            omega2=self.rng.uniform(w_lo, w_hi),
        )

    def add_instance(self) -> Optional[PendulumInstance]:
        """Add a pendulum; returns None once ``max_instances`` is reached."""
        if not self.can_add:
            logger.debug("instance limit %d reached", self.config.max_instances)
            return None

        if self._instances:
            visualization = self.primary.visualization
        else:
            visualization = VisualizationSettings(trail_length=self.config.trail_length)

        self._created += 1
        pendulum = PendulumInstance(
            params=self.config.physical,
            initial=self.random_initial_conditions(),
            visualization=visualization,
            name=f"pendulum-{self._created}",
        )
        pendulum.init()

        if self.any_running:
            pendulum.start()
        self._instances.append(pendulum)
        logger.info("added %s (%d/%d)", pendulum.name, len(self._instances), self.config.max_instances)
        return pendulum

    def remove_instance(self) -> Optional[PendulumInstance]:
        """Remove the most recently added pendulum, never the last one left."""
        if not self.can_remove:
            return None
        pendulum = self._instances.pop()
        logger.info("removed %s (%d left)", pendulum.name, len(self._instances))
        return pendulum

    def broadcast_visualization(self, source: PendulumInstance) -> None:
        settings = source.visualization
        for p in self._instances:
            p.apply_visualization(settings)

    def start_all(self) -> None:
        for p in self._instances:
            p.start()

    def stop_all(self) -> None:
        for p in self._instances:
            p.stop()

    def reset_all(self) -> None:
        for p in self._instances:
            p.reset()

    def step_all(self, frame_dt: float) -> int:
        """Advance every running pendulum by ``frame_dt`` of wall time in fixed sub-steps."""
        fixed_step = self.config.fixed_step
        total = 0
        for p in self._instances:
            if not p.is_running:
                continue
            steps = physics.substep_count(frame_dt, p.time_scale, fixed_step)
            for _ in range(steps):
                p.update(fixed_step)
            total += steps
        return total
