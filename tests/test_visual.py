import plotly.graph_objects as go
import pytest

from wellsteer.camera import Camera
from wellsteer.curve import CurveData, ManualInputs
from wellsteer.station import OffsetWell, TargetLine
from wellsteer.survey import Trajectory, integrate
from wellsteer.visual import (
    FigureSurface,
    RenderLoop,
    figure,
    gamma_band,
    render,
    vibration_band,
)

WIDTH, HEIGHT = 400, 300

STATIONS = [
    {'md': 0, 'inc': 0, 'azi': 0},
    {'md': 100, 'inc': 5, 'azi': 90, 'gamma': 30},
    {'md': 200, 'inc': 10, 'azi': 90, 'gamma': 80},
]


class RecordingSurface:
    def __init__(self):
        self.calls = []

    def clear(self, color):
        self.calls.append(('clear', color))

    def polyline(self, xy, color, width):
        self.calls.append(('polyline', color, len(xy)))

    def circle(self, x, y, radius, color):
        self.calls.append(('circle', x, y))

    def text(self, x, y, string, color):
        self.calls.append(('text', string))

    def of(self, kind):
        return [c for c in self.calls if c[0] == kind]

    @property
    def texts(self):
        return [c[1] for c in self.of('text')]


def _camera_2d():
    camera = Camera()
    camera.set_view_mode('2D')
    return camera


def test_bands():
    assert gamma_band(30) == ('low', '#00ff88')
    assert gamma_band(55) == ('medium', '#ffaa00')
    assert gamma_band(90) == ('high', '#ff0088')
    assert gamma_band(None) is None

    assert vibration_band(10)[0] == 'normal'
    assert vibration_band(45)[0] == 'moderate'
    assert vibration_band(75)[0] == 'severe'


def test_render():
    points = integrate(STATIONS)
    surface = RecordingSurface()
    xy = render(points, [], _camera_2d(), surface, WIDTH, HEIGHT)

    assert surface.calls[0] == ('clear', '#111827')
    assert [c[1] for c in surface.of('polyline')] == ['#00ff88', '#ff0088']
    assert len(surface.of('circle')) == 1
    assert "MD: 200.0" in surface.texts
    assert xy.shape == (3, 2)


def test_render_focused_station():
    points = integrate(STATIONS)
    camera = _camera_2d()
    camera.focus(1, points)
    surface = RecordingSurface()
    render(points, [], camera, surface, WIDTH, HEIGHT)

    assert len(surface.of('polyline')) == 1
    assert "MD: 100.0" in surface.texts


def test_render_offset_wells():
    points = integrate(STATIONS)
    offset = OffsetWell(name='B-2', color='#123456', points=tuple(points))
    surface = RecordingSurface()
    render(points, [offset], _camera_2d(), surface, WIDTH, HEIGHT)

    assert surface.of('polyline')[0] == ('polyline', '#123456', 3)


def test_render_manual_overrides():
    points = integrate(STATIONS)
    surface = RecordingSurface()
    render(
        points, [], _camera_2d(), surface, WIDTH, HEIGHT,
        curve=CurveData(motor_yield=2., slide_seen=0.6),
        manual=ManualInputs(motor_yield=4.)
    )

    assert "Motor Yield: 4.00\xb0/100" in surface.texts
    assert "Motor Yield: 2.00\xb0/100" not in surface.texts
    assert "Slide Seen: 0.60\xb0" in surface.texts


def test_render_target():
    points = integrate(STATIONS)
    surface = RecordingSurface()
    render(
        points, [], _camera_2d(), surface, WIDTH, HEIGHT,
        target=TargetLine(tvd=points[-1].tvd + 50)
    )

    assert "Above: 50.0" in surface.texts
    assert "Off Target" in surface.texts


def test_render_no_surveys():
    surface = RecordingSurface()
    xy = render([], [], Camera(), surface, WIDTH, HEIGHT)

    assert surface.texts == ["No surveys"]
    assert len(xy) == 0


def test_figure_surface():
    points = integrate(STATIONS)
    surface = FigureSurface(WIDTH, HEIGHT)
    render(points, [], _camera_2d(), surface, WIDTH, HEIGHT)

    assert isinstance(surface.fig, go.Figure)
    assert len(surface.fig.data) == 2
    assert len(surface.fig.layout.shapes) == 1
    assert len(surface.fig.layout.annotations) == 4


def test_render_loop_always():
    scheduled = []
    drawn = []
    loop = RenderLoop(lambda: drawn.append(1), scheduled.append)

    loop.start()
    assert len(drawn) == 1
    assert len(scheduled) == 1

    scheduled.pop()()
    assert len(drawn) == 2

    loop.stop()
    scheduled.pop()()
    assert len(drawn) == 2
    assert not scheduled

    assert loop.run(5) == 5


def test_render_loop_dirty():
    stations = list(STATIONS)
    points = integrate(stations)
    camera = Camera()
    drawn = []
    loop = RenderLoop(
        lambda: drawn.append(1), lambda f: None, redraw='dirty',
        camera=camera, snapshot=lambda: len(stations)
    )

    assert loop.run(5) == 1

    camera.drag(1, 1)
    assert loop.run(3) == 1

    stations.append({'md': 300, 'inc': 15, 'azi': 90})
    assert loop.run(3) == 1

    # the follow animation redraws every frame until it settles
    camera.focus(1, points)
    assert loop.run(3) == 3


def test_render_loop_redraw_policy():
    with pytest.raises(AssertionError):
        RenderLoop(lambda: None, lambda f: None, redraw='sometimes')


def test_figure():
    trajectory = Trajectory(STATIONS, name='A-1')
    offset = OffsetWell(name='B-2', points=tuple(trajectory.points))

    fig = figure(trajectory)
    assert isinstance(fig, go.Figure)
    assert len(fig.data) == 2

    fig = figure(trajectory, offset_wells=[offset])
    assert len(fig.data) == 3

    fig = figure(trajectory, type='panel', offset_wells=[offset])
    assert len(fig.data) == 8
