import logging
import math
from typing import Callable, Optional, Protocol, Sequence

import numpy as np
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from .camera import Camera
from .config import DEFAULT_CONFIG, Config
from .curve import CurveData, ManualInputs
from .station import OffsetWell, QualityStatus, TargetLine, TrajectoryPoint
from .target import evaluate_target_line

logger = logging.getLogger(__name__)

QUALITY_COLORS = {
    QualityStatus.PASS: '#22c55e',
    QualityStatus.WARNING: '#eab308',
    QualityStatus.FAIL: '#ef4444',
}


class Surface(Protocol):
    """
    A 2D drawing surface in screen coordinates, y down.
    """
    def clear(self, color: str) -> None: ...

    def polyline(self, xy, color: str, width: float) -> None: ...

    def circle(self, x: float, y: float, radius: float, color: str) -> None:
        ...

    def text(self, x: float, y: float, string: str, color: str) -> None: ...


class FigureSurface:
    def __init__(self, width, height):
        """
        A ``Surface`` drawing onto a plotly figure, with the axes fixed to
        the pixel extent so that a rendered frame can be shown or exported
        with plotly.

        Parameters
        ----------
        width, height: int
            The frame size in pixels.
        """
        self.width = width
        self.height = height
        self.fig = go.Figure()
        self.clear(DEFAULT_CONFIG.render.background)

    def clear(self, color):
        self.fig = go.Figure()
        self.fig.update_layout(
            width=self.width,
            height=self.height,
            paper_bgcolor=color,
            plot_bgcolor=color,
            showlegend=False,
            margin=dict(l=0, r=0, t=0, b=0),
            xaxis=dict(range=[0, self.width], visible=False),
            yaxis=dict(range=[self.height, 0], visible=False),
        )

    def polyline(self, xy, color, width):
        x, y = np.asarray(xy, dtype=float).reshape(-1, 2).T
        self.fig.add_trace(
            go.Scatter(
                x=x, y=y,
                mode='lines',
                line=dict(color=color, width=width),
                hoverinfo='skip'
            )
        )

    def circle(self, x, y, radius, color):
        self.fig.add_shape(
            type='circle',
            x0=x - radius, y0=y - radius,
            x1=x + radius, y1=y + radius,
            line=dict(color=color),
            fillcolor=color,
        )

    def text(self, x, y, string, color):
        self.fig.add_annotation(
            x=x, y=y,
            text=string,
            showarrow=False,
            xanchor='left',
            font=dict(color=color, family='monospace'),
        )


def get_band(value, bands):
    """
    Returns the (label, color) of the first band whose upper limit exceeds
    the value, or None for a missing reading.
    """
    if value is None or not math.isfinite(value):
        return None
    for limit, label, color in bands:
        if value < limit:
            return (label, color)
    return bands[-1][1:]


def gamma_band(value, config=None):
    """
    Classify a gamma ray reading.

    >>> gamma_band(55)
    ('medium', '#ffaa00')
    """
    config = DEFAULT_CONFIG.render if config is None else config
    return get_band(value, config.gamma_bands)


def vibration_band(value, config=None):
    config = DEFAULT_CONFIG.render if config is None else config
    return get_band(value, config.vibration_bands)


def _visible_runs(xy, visible):
    """
    Yield the runs of consecutive visible points that form a line.
    """
    start = None
    for i, v in enumerate(list(visible) + [False]):
        if v and start is None:
            start = i
        elif not v and start is not None:
            if i - start > 1:
                yield xy[start:i]
            start = None


def hud_lines(point, curve=None, manual=None, target=None, config=None):
    """
    The text lines of the heads up display for the focused station. Manual
    overrides take precedence over the calculated curve values.
    """
    config = DEFAULT_CONFIG if config is None else config
    lines = [
        f"MD: {point.md:.1f}",
        f"Inc: {point.inc:.2f}\xb0",
        f"Az: {point.azi:.2f}\xb0",
        f"TVD: {point.tvd:.1f}",
    ]

    if curve is not None:
        if manual is not None:
            curve = manual.apply(curve)
        lines.extend([
            f"Motor Yield: {curve.motor_yield:.2f}\xb0/100",
            f"Dogleg Needed: {curve.dogleg_needed:.2f}\xb0/100",
            f"Slide Seen: {curve.slide_seen:.2f}\xb0",
            f"Slide Ahead: {curve.slide_ahead:.2f}\xb0",
            f"Proj Inc: {curve.projected_inc:.2f}\xb0",
            f"Proj Az: {curve.projected_azi:.2f}\xb0",
            "Rotating" if curve.is_rotating else "Sliding",
        ])

    if target is not None:
        result = evaluate_target_line(
            point.tvd, point.n, point.e, point.azi, target,
            inc=point.inc, config=config
        )
        lines.extend([
            f"{result.position.capitalize()}: {abs(result.above_below):.1f}",
            f"Left/Right: {result.left_right:.1f}",
            f"Distance: {result.distance_to_target:.1f}",
            result.status,
        ])

    return lines


def render(
    points: Sequence[TrajectoryPoint],
    offset_wells: Sequence[OffsetWell],
    camera: Camera,
    surface: Surface,
    width: float,
    height: float,
    curve: Optional[CurveData] = None,
    manual: Optional[ManualInputs] = None,
    target: Optional[TargetLine] = None,
    config: Optional[Config] = None
):
    """
    Draw one frame of the trajectory viewer.

    Parameters
    ----------
    points: list of TrajectoryPoint
        The integrated primary well.
    offset_wells: list of OffsetWell
    camera: Camera
        The view state, which is read but not changed.
    surface: Surface
        The drawing surface.
    width, height: float
        The frame size in pixels.
    curve: CurveData (default: None)
        Steering numbers shown in the heads up display.
    manual: ManualInputs (default: None)
        Operator overrides, shown in place of the calculated values.
    target: TargetLine (default: None)
        If given, the deviation of the focused station from the target line
        is shown.
    config: Config (default: None)

    Returns
    -------
    xy: (n, 2) array of floats
        The screen coordinates of the drawn primary well points.
    """
    config = DEFAULT_CONFIG if config is None else config
    rc = config.render

    surface.clear(rc.background)

    for well in offset_wells:
        xy, visible = camera.project(well.points, width, height)
        for run in _visible_runs(xy, visible):
            surface.polyline(run, well.color, rc.offset_width)

    focused = camera.get_focused_index(points)
    if focused is None:
        surface.text(10, 20, "No surveys", rc.text_color)
        return np.zeros((0, 2))

    drawn = points[:focused + 1]
    xy, visible = camera.project(drawn, width, height)

    for i in range(1, len(drawn)):
        if not (visible[i - 1] and visible[i]):
            continue
        band = gamma_band(drawn[i].gamma, rc)
        color = rc.well_color if band is None else band[1]
        surface.polyline(xy[i - 1:i + 1], color, rc.well_width)

    if visible[-1]:
        surface.circle(*xy[-1], rc.focus_radius, rc.focus_color)

    for k, line in enumerate(
        hud_lines(drawn[-1], curve, manual, target, config)
    ):
        surface.text(10, 20 + 16 * k, line, rc.text_color)

    return xy


class RenderLoop:
    def __init__(
        self,
        draw: Callable[[], None],
        schedule: Callable[[Callable], None],
        redraw: str = 'always',
        camera: Optional[Camera] = None,
        snapshot: Optional[Callable] = None
    ):
        """
        A cooperative draw loop: each frame draws and then asks ``schedule``
        to call it again, e.g. a GUI toolkit's request-animation-frame.

        Parameters
        ----------
        draw: callable
            Draws a frame, typically a closure over ``render``.
        schedule: callable
            Called with the next frame callback.
        redraw: str (default: 'always')
            Either "always", drawing every frame, or "dirty", drawing only
            when the camera version or the input snapshot has changed.
        camera: Camera (default: None)
            If given, its animation is advanced once per frame.
        snapshot: callable (default: None)
            Returns a comparable snapshot of the inputs, e.g. the list of
            stations and the manual inputs.
        """
        assert redraw in ('always', 'dirty'), (
            'Unknown redraw policy, please select "always" or "dirty"'
        )
        self.draw = draw
        self.schedule = schedule
        self.redraw = redraw
        self.camera = camera
        self.snapshot = snapshot
        self.running = False
        self.frames_drawn = 0
        self._last = None

    def _key(self):
        return (
            None if self.camera is None else self.camera.version,
            None if self.snapshot is None else self.snapshot(),
        )

    def frame(self) -> bool:
        """
        Run one frame, returning True if it was drawn.
        """
        if self.camera is not None:
            self.camera.update()

        key = self._key()
        if (
            self.redraw == 'dirty'
            and self.frames_drawn
            and key == self._last
        ):
            return False

        self.draw()
        self._last = key
        self.frames_drawn += 1
        return True

    def _tick(self):
        if not self.running:
            return
        self.frame()
        if self.running:
            self.schedule(self._tick)

    def start(self):
        if self.running:
            return
        self.running = True
        logger.debug("Render loop started")
        self._tick()

    def stop(self):
        self.running = False
        logger.debug(f"Render loop stopped after {self.frames_drawn} frames")

    def run(self, frames: int) -> int:
        """
        Drive a number of frames synchronously, returning the number drawn.
        """
        drawn = 0
        for _ in range(frames):
            drawn += self.frame()
        return drawn


def figure(trajectory, type='scatter3d', offset_wells=None, **kwargs):
    """
    Create a static plotly figure of a trajectory.

    Parameters
    ----------
    trajectory: Trajectory
    type: str (default: 'scatter3d')
        Either "scatter3d" or "panel" for plan and section views.
    offset_wells: list of OffsetWell (default: None)
    layout, traces: dict
        Passed to ``fig.update_layout`` and ``fig.update_traces``.

    Returns
    -------
    fig: plotly.graph_objects.Figure
    """
    func = {
        'scatter3d': _scatter3d,
        'panel': _panel
    }
    fig = func[type](trajectory, offset_wells or [], **kwargs)
    return fig


def _unit(trajectory):
    return 'ft' if trajectory.unit == 'feet' else 'm'


def _panel(trajectory, offset_wells, **kwargs):
    fig = make_subplots(
        rows=2, cols=2,
        subplot_titles=(
            "Plan",
            "Vertical Section: "
            f"{trajectory.vertical_section_azimuth:.1f} deg",
            "WE Section", "NS Section"
        )
    )

    wells = [(trajectory.name or 'well', None, trajectory.n, trajectory.e,
              trajectory.tvd, trajectory.vertical_section)]
    azi = math.radians(trajectory.vertical_section_azimuth)
    for well in offset_wells:
        n = np.array([p.n for p in well.points])
        e = np.array([p.e for p in well.points])
        tvd = np.array([p.tvd for p in well.points])
        wells.append(
            (well.name, well.color, n, e, tvd,
             n * math.cos(azi) + e * math.sin(azi))
        )

    for name, color, n, e, tvd, vs in wells:
        line = dict(color=color) if color else None
        for x, y, row, col in (
            (e, n, 1, 1),
            (vs, tvd, 1, 2),
            (e, tvd, 2, 1),
            (n, tvd, 2, 2),
        ):
            fig.add_trace(
                go.Scatter(
                    x=x, y=y,
                    mode='lines',
                    name=name,
                    line=line,
                    showlegend=(row, col) == (1, 1),
                ),
                row=row, col=col
            )

    fig.update_layout(
        xaxis=dict(
            title='West-East'
        ),
        yaxis=dict(
            title='North-South'
        ),
        xaxis2=dict(
            title='Vertical Section'
        ),
        yaxis2=dict(
            title='TVD',
            autorange="reversed",
            matches='y3'
        ),
        xaxis3=dict(
            title='West-East',
            matches='x'
        ),
        yaxis3=dict(
            title='TVD',
            autorange="reversed"
        ),
        xaxis4=dict(
            title='North-South',
            matches='y'
        ),
        yaxis4=dict(
            title='TVD',
            autorange="reversed",
            matches='y3'
        ),
    )
    fig = _update_fig(fig, kwargs, _unit(trajectory), scenes=False)

    return fig


def _scatter3d(trajectory, offset_wells, **kwargs):
    unit = _unit(trajectory)
    fig = go.Figure()
    fig.add_trace(
        go.Scatter3d(
            x=trajectory.e,
            y=trajectory.n,
            z=trajectory.tvd,
            name=trajectory.name or 'well',
            mode='lines',
            hoverinfo='skip'
        )
    )

    text = [
        f"N: {p.n:.2f}{unit}<br>E: {p.e:.2f}{unit}<br>TVD: {p.tvd:.2f}{unit}<br>"
        + f"MD: {p.md:.2f}{unit}<br>INC: {p.inc:.2f}\xb0<br>AZI: {p.azi:.2f}\xb0"
        + ("" if p.quality is None else f"<br>{p.quality.message}")
        for p in trajectory.points
    ]
    colors = [
        'red' if p.quality is None else QUALITY_COLORS[p.quality.status]
        for p in trajectory.points
    ]
    fig.add_trace(
        go.Scatter3d(
            x=trajectory.e,
            y=trajectory.n,
            z=trajectory.tvd,
            name='survey_point',
            mode='markers',
            marker=dict(
                size=5,
                color=colors,
            ),
            text=text,
            hoverinfo='text'
        )
    )

    for well in offset_wells:
        fig.add_trace(
            go.Scatter3d(
                x=[p.e for p in well.points],
                y=[p.n for p in well.points],
                z=[p.tvd for p in well.points],
                name=well.name,
                mode='lines',
                line=dict(color=well.color),
                hoverinfo='skip'
            )
        )

    fig = _update_fig(fig, kwargs, unit)

    return fig


def _update_fig(fig, kwargs, unit='ft', scenes=True):
    """
    Update the fig axis along with any user defined kwargs.
    """
    if scenes:
        fig.update_scenes(
            zaxis_autorange="reversed",
            aspectmode='data',
            xaxis=dict(
                title=f'East ({unit})'
            ),
            yaxis=dict(
                title=f'North ({unit})',
            ),
            zaxis=dict(
                title=f"TVD ({unit})"
            )
        )
    for k, v in kwargs.items():
        if k == "layout":
            fig.update_layout(v)
        elif k == "traces":
            fig.update_traces(v)
        else:
            continue

    return fig
