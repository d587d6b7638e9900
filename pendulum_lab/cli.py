#!/usr/bin/env python3
"""
Headless runner.

Steps a set of pendulums at the fixed timestep without any rendering and
logs how far each one's total energy drifted. Useful for checking a
config before opening the interactive app.

Usage:
    python -m pendulum_lab.cli [--config configs/default.yaml] [--instances 3] [--seconds 20]
"""

from __future__ import annotations

import argparse
import logging
import sys

from pendulum_lab import physics
from pendulum_lab.config import SimulatorConfig, load_config
from pendulum_lab.errors import PendulumError
from pendulum_lab.manager import SimulationManager

logger = logging.getLogger("pendulum_lab.cli")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Run double pendulums headless and report energy drift")
    parser.add_argument("--config", help="Path to YAML config file")
    parser.add_argument("--instances", type=int, default=None, help="Number of pendulums to simulate")
    parser.add_argument("--seconds", type=float, default=10.0, help="Simulated time per pendulum")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the randomized initial conditions")
    return parser.parse_args(argv)


def run(cfg: SimulatorConfig, instances: int, seconds: float) -> SimulationManager:
    manager = SimulationManager(cfg)
    while len(manager) < instances and manager.add_instance() is not None:
        pass

    for p in manager:
        if not p.show_energy:
            p.toggle_energy()
    baseline = {p.name: physics.energy(p.state, p.params).total for p in manager}

    manager.start_all()
    steps = physics.substep_count(seconds, 1.0, cfg.fixed_step)
    for _ in range(steps):
        manager.step_all(cfg.fixed_step)

    for p in manager:
        e0 = baseline[p.name]
        e1 = physics.energy(p.state, p.params).total
        drift = abs(e1 - e0) / max(1e-9, abs(e0))
        logger.info("%s: %s, E0=%.4f E=%.4f drift=%.3f%%", p.name, p.lifecycle.value, e0, e1, drift * 100.0)
    return manager


def main(argv=None) -> int:
    args = parse_args(argv)
    try:
        cfg = load_config(args.config) if args.config else SimulatorConfig()
    except PendulumError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    if args.seed is not None:
        cfg.seed = args.seed
    logging.basicConfig(level=cfg.log_level, format="%(levelname)s %(name)s: %(message)s")

    instances = args.instances if args.instances is not None else cfg.initial_instances
    logger.info("simulating %d pendulum(s) for %.1f s at dt=%.5f", instances, args.seconds, cfg.fixed_step)
    run(cfg, instances, args.seconds)
    return 0


if __name__ == "__main__":
    sys.exit(main())
