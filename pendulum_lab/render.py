"""
Plotly rendering for the pendulum canvas and the diagnostic graphs.

``FigureCanvas`` implements the ``RenderTarget`` protocol on top of a
``plotly.graph_objects.Figure``. Pendulum coordinates have y growing
downwards, so every y is inverted before plotting.
"""

from __future__ import annotations

from typing import Iterable, Sequence, Tuple

import plotly.graph_objects as go

from pendulum_lab import physics
from pendulum_lab.pendulum import Drawable, PendulumInstance

# bob diameter in canvas pixels -> marker size
MARKER_SCALE = 0.8
ENERGY_DISPLAY_POINTS = 300


def instance_color(index: int, count: int, alpha: float = 0.7) -> str:
    hue = (index * (360 / max(9, count))) % 360
    return f"hsla({hue:.0f},80%,50%,{alpha})"


class FigureCanvas:
    def __init__(self, fig: go.Figure) -> None:
        self.fig = fig

    def line(self, x0: float, y0: float, x1: float, y1: float, color: str, width: float) -> None:
        self.fig.add_trace(go.Scatter(
            x=[x0, x1], y=[-y0, -y1], mode="lines",
            line=dict(color=color, width=width), hoverinfo="skip", showlegend=False,
        ))

    def circle(self, x: float, y: float, diameter: float, color: str) -> None:
        self.fig.add_trace(go.Scatter(
            x=[x], y=[-y], mode="markers",
            marker=dict(size=diameter * MARKER_SCALE, color=color), hoverinfo="skip", showlegend=False,
        ))

    def polyline(self, points: Sequence[Tuple[float, float]], color: str, width: float) -> None:
        if len(points) < 2:
            return
        self.fig.add_trace(go.Scatter(
            x=[p[0] for p in points], y=[-p[1] for p in points], mode="lines",
            line=dict(color=color, width=width), hoverinfo="skip", showlegend=False,
        ))


def build_pendulum_figure(pendulums: Sequence[Drawable], extent: float) -> go.Figure:
    """Draw every pendulum around a pivot at the origin."""
    fig = go.Figure()
    canvas = FigureCanvas(fig)
    for i, pendulum in enumerate(pendulums):
        pendulum.draw(canvas, instance_color(i, len(pendulums)))

    # pivot
    fig.add_trace(go.Scatter(x=[0.0], y=[0.0], mode="markers", marker=dict(size=8, color="#1F2937"),
                             hoverinfo="skip", showlegend=False))

    pad = extent * 0.2
    fig.update_layout(
        template="plotly_white",
        margin=dict(l=20, r=20, t=20, b=20),
        xaxis=dict(scaleanchor="y", scaleratio=1.0, range=[-extent - pad, extent + pad], showgrid=True, zeroline=False),
        yaxis=dict(range=[-extent - pad, extent + pad], showgrid=True, zeroline=False),
        dragmode=False,
    )
    return fig


def canvas_extent(pendulums: Iterable[PendulumInstance]) -> float:
    return max((p.params.l1 + p.params.l2 for p in pendulums), default=1.0)


def build_energy_figure(pendulum: PendulumInstance, fixed_step: float) -> go.Figure:
    """Kinetic, potential and total energy over the most recent samples."""
    samples = pendulum.energy_history.tail(ENERGY_DISPLAY_POINTS)
    t = [i * fixed_step for i in range(len(samples))]
    fig = go.Figure()
    fig.add_trace(go.Scatter(x=t, y=[s.total for s in samples], mode="lines", name="Total",
                             line=dict(color="#111827", width=2)))
    fig.add_trace(go.Scatter(x=t, y=[s.kinetic for s in samples], mode="lines", name="Kinetic",
                             line=dict(color="#DC2626", width=1.5)))
    fig.add_trace(go.Scatter(x=t, y=[s.potential for s in samples], mode="lines", name="Potential",
                             line=dict(color="#2563EB", width=1.5)))
    fig.update_layout(
        template="plotly_white",
        margin=dict(l=40, r=20, t=30, b=40),
        xaxis_title="Time (s)",
        yaxis_title="Energy",
    )
    return fig


def build_phase_figure(pendulums: Sequence[PendulumInstance]) -> go.Figure:
    """Current (theta, omega) of both arms of every pendulum."""
    fig = go.Figure()
    for i, p in enumerate(pendulums):
        color = instance_color(i, len(pendulums), alpha=1.0)
        s = p.state
        fig.add_trace(go.Scatter(
            x=[physics.wrap_angle(s.theta1), physics.wrap_angle(s.theta2)],
            y=[s.omega1, s.omega2],
            mode="markers+text",
            text=["1", "2"],
            textposition="top center",
            marker=dict(size=10, color=color),
            name=p.name,
        ))
    fig.update_layout(
        template="plotly_white",
        margin=dict(l=40, r=20, t=30, b=40),
        xaxis=dict(title="θ (rad)", range=[-3.3, 3.3]),
        yaxis_title="ω (rad/s)",
    )
    return fig
