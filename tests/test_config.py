import math
from pathlib import Path

import pytest

from pendulum_lab.config import SimulatorConfig, config_from_dict, load_config
from pendulum_lab.errors import ConfigError
from pendulum_lab.state import PhysicalParameters

DEFAULT_YAML = Path(__file__).resolve().parent.parent / "configs" / "default.yaml"


def test_defaults():
    cfg = SimulatorConfig()
    assert cfg.fixed_step == pytest.approx(1.0 / 60.0)
    assert cfg.max_instances == 9
    assert cfg.initial_instances == 1
    assert cfg.trail_length == 1000
    assert cfg.physical == PhysicalParameters()
    assert cfg.theta_range == pytest.approx((-math.pi / 2, math.pi / 2))


def test_shipped_default_file_matches_defaults():
    cfg = load_config(DEFAULT_YAML)
    defaults = SimulatorConfig()
    assert cfg.fixed_step == pytest.approx(defaults.fixed_step)
    assert cfg.max_instances == defaults.max_instances
    assert cfg.physical == defaults.physical
    assert cfg.theta_range == pytest.approx(defaults.theta_range)
    assert cfg.omega_range == defaults.omega_range
    assert cfg.seed is None


def test_partial_file_overrides(tmp_path):
    path = tmp_path / "cfg.yaml"
    path.write_text("max_instances: 4\nseed: 3\nphysical:\n  l1: 50\n  damping: 0.9995\n")
    cfg = load_config(path)
    assert cfg.max_instances == 4
    assert cfg.seed == 3
    assert cfg.physical.l1 == 50.0
    assert cfg.physical.damping == 0.9995
    assert cfg.physical.m1 == 1.0


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_config(path) == SimulatorConfig()


@pytest.mark.parametrize(
    "text",
    [
        "unknown_key: 1\n",
        "physical:\n  damping: 2.0\n",
        "physical:\n  mass: 1.0\n",
        "trail_length: 0\n",
        "fixed_step: -0.1\n",
        "initial_instances: 12\n",
        "theta_range: [1.0, -1.0]\n",
        "omega_range: 5\n",
        "- a\n- b\n",
        "max_instances: [1, 2\n",
    ],
)
def test_invalid_files_raise_config_error(tmp_path, text):
    path = tmp_path / "bad.yaml"
    path.write_text(text)
    with pytest.raises(ConfigError):
        load_config(path)


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="cannot read"):
        load_config(tmp_path / "nope.yaml")


def test_config_from_dict_ranges_become_tuples():
    cfg = config_from_dict({"omega_range": [-2, 2]})
    assert cfg.omega_range == (-2.0, 2.0)
