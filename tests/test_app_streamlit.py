from pathlib import Path

import pytest
from streamlit.testing.v1 import AppTest

from pendulum_lab.app_streamlit import CONFIG_ENV
from pendulum_lab.pendulum import Lifecycle
from pendulum_lab.state import InitialConditions

APP = Path(__file__).resolve().parent.parent / "pendulum_lab" / "app_streamlit.py"

# =============================================================================
# Fixtures
# =============================================================================


def start_app(monkeypatch, config_path=None):
    if config_path is None:
        monkeypatch.delenv(CONFIG_ENV, raising=False)
    else:
        monkeypatch.setenv(CONFIG_ENV, str(config_path))
    at = AppTest.from_file(str(APP), default_timeout=30)
    # step once per interaction instead of rerunning on a timer
    at.session_state["live"] = False
    at.run()
    assert not at.exception
    return at


@pytest.fixture
def app(monkeypatch):
    return start_app(monkeypatch)


def manager_of(at):
    return at.session_state["manager"]


def labelled(widgets, label):
    return next(w for w in widgets if w.label == label)


def click(at, label):
    labelled(at.button, label).click()
    at.run()
    assert not at.exception


# =============================================================================
# Sidebar controls
# =============================================================================


def test_first_render_builds_one_idle_pendulum(app):
    manager = manager_of(app)
    assert len(manager) == 1
    assert manager.primary.lifecycle is Lifecycle.IDLE
    assert labelled(app.button, "Start") is not None


def test_physics_sliders_apply_to_every_pendulum(app):
    click(app, "Add pendulum")
    labelled(app.slider, "Gravity (g)").set_value(3.0)
    labelled(app.slider, "Damping").set_value(0.9995)
    app.run()
    for p in manager_of(app):
        assert p.params.g == pytest.approx(3.0)
        assert p.params.damping == pytest.approx(0.9995)


def test_time_scale_slider_applies_to_every_pendulum(app):
    click(app, "Add pendulum")
    labelled(app.slider, "Time scale").set_value(2.5)
    app.run()
    assert [p.time_scale for p in manager_of(app)] == pytest.approx([2.5, 2.5])


def test_initial_condition_slider_only_touches_first_pendulum(app):
    click(app, "Add pendulum")
    second = manager_of(app).instances[1]
    before = second.initial
    labelled(app.slider, "θ₁ (rad)").set_value(1.2)
    app.run()
    manager = manager_of(app)
    assert manager.primary.initial.theta1 == pytest.approx(1.2)
    assert manager.primary.state.matches(manager.primary.initial)
    assert second.initial == before


def test_toggle_is_broadcast(app):
    click(app, "Add pendulum")
    labelled(app.checkbox, "Show energy").check()
    labelled(app.checkbox, "Minimal view").check()
    app.run()
    assert not app.exception
    for p in manager_of(app):
        assert p.show_energy
        assert p.show_minimal
        assert len(p.energy_history) >= 1


def test_trail_length_slider_is_broadcast(app):
    click(app, "Add pendulum")
    labelled(app.slider, "Trail length").set_value(300)
    app.run()
    assert [p.trail_length for p in manager_of(app)] == [300, 300]


def test_configured_trail_length_below_slider_range_survives(monkeypatch, tmp_path):
    path = tmp_path / "short.yaml"
    path.write_text("trail_length: 50\n")
    at = start_app(monkeypatch, path)
    assert manager_of(at).primary.trail_length == 50
    # an unrelated interaction must not push the slider value
    labelled(at.slider, "Gravity (g)").set_value(5.0)
    at.run()
    assert manager_of(at).primary.trail_length == 50


# =============================================================================
# Buttons
# =============================================================================


def test_start_stop_reset(app):
    click(app, "Start")
    manager = manager_of(app)
    assert manager.any_running
    click(app, "Stop")
    assert not manager.any_running
    click(app, "Reset")
    for p in manager:
        assert p.lifecycle is Lifecycle.IDLE
        assert p.state.matches(p.initial)


def test_add_and_remove(app):
    click(app, "Add pendulum")
    click(app, "Add pendulum")
    assert len(manager_of(app)) == 3
    click(app, "Remove pendulum")
    assert len(manager_of(app)) == 2


def test_added_pendulum_shares_sidebar_physics_and_time_scale(app):
    labelled(app.slider, "Gravity (g)").set_value(3.0)
    labelled(app.slider, "Length 1 (L₁)").set_value(50.0)
    labelled(app.slider, "Time scale").set_value(4.0)
    app.run()
    click(app, "Add pendulum")
    manager = manager_of(app)
    assert len(manager) == 2
    first, added = manager.instances
    assert added.params == first.params
    assert added.time_scale == pytest.approx(4.0)


def test_added_pendulum_joins_a_running_set(app):
    labelled(app.slider, "Mass 2 (m₂)").set_value(2.0)
    app.run()
    click(app, "Start")
    click(app, "Add pendulum")
    added = manager_of(app).instances[1]
    assert added.params.m2 == pytest.approx(2.0)
    assert added.is_running


# =============================================================================
# Status
# =============================================================================


def test_degenerate_pendulum_is_reported(app):
    first = manager_of(app).primary
    first.set_initial_conditions(InitialConditions(theta1=1.0, theta2=0.0, omega1=1e200, omega2=0.0))
    first.start()
    first.update(1.0 / 60.0)
    assert first.is_degenerate
    app.run()
    assert any("pendulum-1" in w.value for w in app.warning)
