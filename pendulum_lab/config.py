"""
Simulator configuration.

Defaults live on ``SimulatorConfig``; ``load_config`` overlays a YAML file
on top of them. The nested ``physical`` mapping is validated
through the same record the engine uses.
"""

from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml

from pendulum_lab.errors import ConfigError, InvalidParameterError
from pendulum_lab.state import PhysicalParameters, validate_trail_length


@dataclass
class SimulatorConfig:
    fixed_step: float = 1.0 / 60.0
    max_instances: int = 9
    initial_instances: int = 1
    trail_length: int = 1000
    max_frame_delta: float = 0.05
    frame_interval: float = 1.0 / 30.0
    theta_range: Tuple[float, float] = (-math.pi / 2.0, math.pi / 2.0)
    omega_range: Tuple[float, float] = (-1.0, 1.0)
    physical: PhysicalParameters = field(default_factory=PhysicalParameters)
    seed: Optional[int] = None
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not (self.fixed_step > 0.0 and math.isfinite(self.fixed_step)):
            raise ConfigError(f"fixed_step must be a positive number, got {self.fixed_step!r}")
        if self.max_instances < 1:
            raise ConfigError(f"max_instances must be >= 1, got {self.max_instances!r}")
        if not 1 <= self.initial_instances <= self.max_instances:
            raise ConfigError(
                f"initial_instances must be between 1 and max_instances ({self.max_instances}), "
                f"got {self.initial_instances!r}"
            )
        if self.max_frame_delta <= 0.0:
            raise ConfigError(f"max_frame_delta must be > 0, got {self.max_frame_delta!r}")
        if self.frame_interval <= 0.0:
            raise ConfigError(f"frame_interval must be > 0, got {self.frame_interval!r}")
        try:
            self.trail_length = validate_trail_length(self.trail_length)
        except InvalidParameterError as exc:
            raise ConfigError(str(exc)) from exc
        self.theta_range = _as_range("theta_range", self.theta_range)
        self.omega_range = _as_range("omega_range", self.omega_range)


def _as_range(name: str, value: Any) -> Tuple[float, float]:
    try:
        lo, hi = (float(v) for v in value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be a [low, high] pair, got {value!r}") from exc
    if not lo <= hi:
        raise ConfigError(f"{name} low bound exceeds high bound: {value!r}")
    return lo, hi


def config_from_dict(data: Dict[str, Any]) -> SimulatorConfig:
    known = {f.name for f in dataclasses.fields(SimulatorConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"unknown config keys: {', '.join(unknown)}")

    kwargs = dict(data)
    try:
        if "physical" in kwargs:
            kwargs["physical"] = PhysicalParameters(**(kwargs["physical"] or {}))
    except TypeError as exc:
        raise ConfigError(f"invalid parameter block: {exc}") from exc
    except InvalidParameterError as exc:
        raise ConfigError(str(exc)) from exc
    try:
        return SimulatorConfig(**kwargs)
    except TypeError as exc:
        raise ConfigError(f"invalid config value: {exc}") from exc


def load_config(path: Union[str, Path]) -> SimulatorConfig:
    """Read a YAML config file. An empty file yields the defaults."""
    path = Path(path)
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except OSError as exc:
        raise ConfigError(f"cannot read config {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc

    if data is None:
        return SimulatorConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"config {path} must contain a mapping at the top level")
    return config_from_dict(data)
