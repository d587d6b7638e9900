from __future__ import annotations

import logging
import math
import os
import time
from typing import Optional

import streamlit as st

from pendulum_lab.config import SimulatorConfig, load_config
from pendulum_lab.errors import PendulumError
from pendulum_lab.manager import SimulationManager
from pendulum_lab.pendulum import PendulumInstance
from pendulum_lab.render import build_energy_figure, build_pendulum_figure, build_phase_figure, canvas_extent
from pendulum_lab.state import InitialField, PhysicalField

logger = logging.getLogger(__name__)

CONFIG_ENV = "PENDULUM_LAB_CONFIG"


def _load_config() -> SimulatorConfig:
    path = os.environ.get(CONFIG_ENV)
    return load_config(path) if path else SimulatorConfig()


def _ensure_manager() -> SimulationManager:
    if "manager" not in st.session_state:
        cfg = _load_config()
        logging.basicConfig(level=cfg.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
        st.session_state.manager = SimulationManager(cfg)
    if "last_time" not in st.session_state:
        st.session_state.last_time = time.time()
    st.session_state.setdefault("live", True)
    return st.session_state.manager


def _clamp(value: float, lo: float, hi: float) -> float:
    return float(min(max(value, lo), hi))


def _changed(old: float, new: float) -> bool:
    return not math.isclose(float(old), float(new), rel_tol=0.0, abs_tol=1e-12)


def _physical_controls(manager: SimulationManager) -> None:
    p = manager.primary.params
    st.sidebar.subheader("Physical parameters")
    values = {
        PhysicalField.M1: st.sidebar.slider("Mass 1 (m₁)", 0.1, 10.0, float(p.m1), 0.1),
        PhysicalField.M2: st.sidebar.slider("Mass 2 (m₂)", 0.1, 10.0, float(p.m2), 0.1),
        PhysicalField.L1: st.sidebar.slider("Length 1 (L₁)", 10.0, 200.0, float(p.l1), 5.0),
        PhysicalField.L2: st.sidebar.slider("Length 2 (L₂)", 10.0, 200.0, float(p.l2), 5.0),
        PhysicalField.G: st.sidebar.slider("Gravity (g)", 0.0, 30.0, float(p.g), 0.01),
        PhysicalField.DAMPING: st.sidebar.slider("Damping", 0.999, 1.0, float(p.damping), 0.0001, format="%.4f"),
    }
    for field, value in values.items():
        if _changed(getattr(p, field.value), value):
            for pendulum in manager:
                pendulum.set_physical_parameter(field, value)


def _initial_controls(pendulum: PendulumInstance) -> None:
    ic = pendulum.initial
    st.sidebar.subheader("Initial conditions (first pendulum)")
    values = {
        InitialField.THETA1: st.sidebar.slider("θ₁ (rad)", -math.pi, math.pi, _clamp(ic.theta1, -math.pi, math.pi), 0.1),
        InitialField.THETA2: st.sidebar.slider("θ₂ (rad)", -math.pi, math.pi, _clamp(ic.theta2, -math.pi, math.pi), 0.1),
        InitialField.OMEGA1: st.sidebar.slider("ω₁ (rad/s)", -10.0, 10.0, _clamp(ic.omega1, -10.0, 10.0), 0.1),
        InitialField.OMEGA2: st.sidebar.slider("ω₂ (rad/s)", -10.0, 10.0, _clamp(ic.omega2, -10.0, 10.0), 0.1),
    }
    for field, value in values.items():
        if _changed(getattr(ic, field.value), value):
            pendulum.set_initial_condition(field, value)


def _visualization_controls(manager: SimulationManager) -> None:
    first = manager.primary
    st.sidebar.subheader("Visualization")
    time_scale = st.sidebar.slider("Time scale", 0.0, 10.0, float(first.time_scale), 0.1)
    if _changed(first.time_scale, time_scale):
        for pendulum in manager:
            pendulum.set_time_scale(time_scale)

    shown_length = int(_clamp(first.trail_length, 100, 10000))
    trail_length = st.sidebar.slider("Trail length", 100, 10000, shown_length, 100)
    toggles = {
        "toggle_trail": st.sidebar.checkbox("Show trail", value=first.show_trail) != first.show_trail,
        "toggle_minimal": st.sidebar.checkbox("Minimal view", value=first.show_minimal) != first.show_minimal,
        "toggle_energy": st.sidebar.checkbox("Show energy", value=first.show_energy) != first.show_energy,
        "toggle_phase_space": st.sidebar.checkbox("Show phase space", value=first.show_phase_space) != first.show_phase_space,
    }

    # a config cap outside the slider range stays until the slider is moved
    dirty = trail_length != shown_length
    if dirty:
        first.set_trail_length(trail_length)
    for name, flip in toggles.items():
        if flip:
            getattr(first, name)()
            dirty = True
    if dirty:
        manager.broadcast_visualization(first)


def _add_pendulum(manager: SimulationManager) -> Optional[PendulumInstance]:
    """Add a pendulum that shares the sidebar physics and time scale of the first one."""
    added = manager.add_instance()
    if added is None:
        return None
    first = manager.primary
    was_running = added.is_running
    for field in PhysicalField:
        value = getattr(first.params, field.value)
        if _changed(getattr(added.params, field.value), value):
            added.set_physical_parameter(field, value)
    added.set_time_scale(first.time_scale)
    if was_running and not added.is_running:
        added.start()
    return added


def _buttons(manager: SimulationManager) -> None:
    col_a, col_b, col_c, col_d = st.columns([1, 1, 1, 1])
    with col_a:
        if not manager.any_running:
            if st.button("Start", type="primary"):
                manager.start_all()
                st.session_state.last_time = time.time()
        else:
            if st.button("Stop", type="secondary"):
                manager.stop_all()
    with col_b:
        if st.button("Reset"):
            manager.reset_all()
            st.session_state.last_time = time.time()
    with col_c:
        if st.button("Add pendulum", disabled=not manager.can_add):
            _add_pendulum(manager)
    with col_d:
        if st.button("Remove pendulum", disabled=not manager.can_remove):
            manager.remove_instance()


def main() -> None:
    st.set_page_config(page_title="Double Pendulum", layout="wide")
    manager = _ensure_manager()
    cfg = manager.config

    st.title("Double Pendulum")
    st.caption("Chaotic two-link pendulum, semi-implicit Euler at a fixed step")

    try:
        _physical_controls(manager)
        _initial_controls(manager.primary)
        _visualization_controls(manager)
    except PendulumError as exc:
        st.sidebar.error(str(exc))
    _buttons(manager)
    st.sidebar.checkbox("Animate", key="live")

    # step with the capped wall-clock delta
    now = time.time()
    dt = max(0.0, now - float(st.session_state.get("last_time", now)))
    st.session_state.last_time = now
    if manager.any_running:
        try:
            manager.step_all(min(dt, cfg.max_frame_delta))
        except Exception as exc:
            logger.exception("simulation step failed")
            manager.stop_all()
            st.error(f"Simulation paused: {exc}")

    degenerate = [p.name for p in manager if p.is_degenerate]
    if degenerate:
        st.warning(f"Diverged and halted: {', '.join(degenerate)}. Reset to continue.")

    pendulums = list(manager)
    st.plotly_chart(build_pendulum_figure(pendulums, canvas_extent(pendulums)), use_container_width=True,
                    config={"staticPlot": False, "displayModeBar": False})

    first = manager.primary
    state = first.get_current_state()
    c1, c2, c3 = st.columns(3)
    c1.metric("Kinetic", f"{state['energy']['kinetic']:.1f}")
    c2.metric("Potential", f"{state['energy']['potential']:.1f}")
    c3.metric("Total", f"{state['energy']['total']:.1f}")

    if first.show_energy:
        st.subheader("Energy analysis")
        st.plotly_chart(build_energy_figure(first, cfg.fixed_step), use_container_width=True)
    if first.show_phase_space:
        st.subheader("Phase space")
        st.plotly_chart(build_phase_figure(pendulums), use_container_width=True)

    with st.expander("Details (State)", expanded=False):
        st.write({
            "pendulums": len(manager),
            "state": {k: v for k, v in state.items() if k != "energy"},
            "params": first.params,
            "initial": first.initial,
            "lifecycle": first.lifecycle.value,
            "trail_len": len(first.trail),
            "energy_samples": len(first.energy_history),
            "energy_drift": first.energy_history.drift(),
        })

    if manager.any_running and st.session_state.live:
        time.sleep(cfg.frame_interval)
        st.rerun()


if __name__ == "__main__":
    main()
