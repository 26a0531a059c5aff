import math

import numpy as np
import pytest

from wellsteer.camera import Camera, ViewMode, follow_zoom
from wellsteer.config import DEFAULT_CONFIG
from wellsteer.station import TrajectoryPoint
from wellsteer.survey import integrate

WIDTH, HEIGHT = 200, 100

POINTS = integrate([
    (0, 0, 0),
    (500, 0, 0),
    (1000, 30, 90),
    (1500, 60, 90),
])


def _point(n=0., e=0., tvd=0., md=0.):
    return TrajectoryPoint(md=md, inc=0, azi=0, n=n, e=e, tvd=tvd)


def _flat_camera():
    camera = Camera()
    camera.state.pitch = 0.
    camera.state.yaw = 0.
    return camera


def test_initial_state():
    camera = Camera()

    assert camera.state.pitch == 0.5
    assert camera.state.yaw == 0.3
    assert camera.state.zoom == 1.
    assert camera.state.view_mode == ViewMode.VIEW_3D
    assert camera.version == 0
    assert not camera.following


def test_project_3d():
    camera = _flat_camera()
    xy, visible = camera.project(
        [_point(), _point(e=100), _point(tvd=100)], WIDTH, HEIGHT
    )

    # s = min(200, 100) * 0.4 * 1
    assert np.allclose(xy, [[100, 50], [140, 50], [100, 50 + 40 * 1.5]])
    assert visible.all()


def test_project_3d_perspective():
    camera = _flat_camera()
    xy, visible = camera.project(
        [_point(n=2000, e=100), _point(n=-5000)], WIDTH, HEIGHT
    )

    # z = 20 so the factor is 40 / 60
    assert xy[0][0] == pytest.approx(100 + 1 * 40 / 60 * 40)
    assert visible.tolist() == [True, False]


def test_project_3d_yaw():
    camera = _flat_camera()
    camera.state.yaw = math.pi / 2
    xy, visible = camera.project([_point(e=100)], WIDTH, HEIGHT)

    assert xy[0][0] == pytest.approx(100)
    assert visible.all()


def test_rotation_direction():
    camera = Camera()
    yaw, pitch = camera.state.yaw, camera.state.pitch
    x, y, z = 0.4, 1.2, -0.7

    # yaw then pitch, as the viewer has always rotated the scene
    rotated_x = x * math.cos(yaw) - z * math.sin(yaw)
    rotated_z = x * math.sin(yaw) + z * math.cos(yaw)
    rotated_y = y * math.cos(pitch) + rotated_z * math.sin(pitch)

    result = camera.get_rotation().apply([x, y, z])
    assert result[0] == pytest.approx(rotated_x)
    assert result[1] == pytest.approx(rotated_y)


def test_project_2d():
    camera = Camera()
    camera.set_view_mode('2D')
    xy, visible = camera.project([_point(n=20, e=10)], WIDTH, HEIGHT)

    assert np.allclose(xy, [[110, 30]])
    assert visible.all()


def test_project_empty():
    xy, visible = Camera().project([], WIDTH, HEIGHT)
    assert xy.shape == (0, 2)
    assert len(visible) == 0


def test_drag():
    camera = Camera()
    camera.drag(10, 20)

    assert camera.state.yaw == pytest.approx(0.4)
    assert camera.state.pitch == pytest.approx(0.7)
    assert camera.version == 1

    camera.set_view_mode(ViewMode.VIEW_2D)
    camera.drag(10, 20)
    assert (camera.state.pan_x, camera.state.pan_y) == (10, 20)
    assert camera.state.yaw == pytest.approx(0.4)


def test_drag_cancels_follow():
    camera = Camera()
    camera.focus(2, POINTS)
    assert camera.following

    camera.drag(1, 1)
    assert not camera.following
    assert not camera.update()


def test_zoom_clamped():
    camera = Camera()
    for _ in range(30):
        camera.zoom_in()
    assert camera.state.zoom == 3.

    for _ in range(30):
        camera.zoom_out()
    assert camera.state.zoom == 0.5


def test_zoom_2d():
    camera = Camera()
    camera.set_view_mode('2D')
    camera.zoom_in()

    assert camera.state.scale_2d == pytest.approx(1.1)
    assert camera.state.zoom == 1.

    camera.drag(5, 5)
    camera.reset_pan()
    assert (camera.state.pan_x, camera.state.pan_y) == (0, 0)
    assert camera.state.scale_2d == 1.


def test_focus_2d_recentres():
    camera = Camera()
    camera.set_view_mode('2D')
    camera.focus(3, POINTS)
    xy, _ = camera.project(POINTS, WIDTH, HEIGHT)

    assert np.allclose(xy[3], [WIDTH / 2, HEIGHT / 2])
    assert not camera.following


def test_focus_3d_follow():
    camera = Camera()
    camera.focus(2, POINTS)

    prev, curr = POINTS[1], POINTS[2]
    dx, dy, dz = curr.e - prev.e, curr.tvd - prev.tvd, curr.n - prev.n
    yaw = math.atan2(dx, dz)
    pitch = math.atan2(dy, math.hypot(dx, dz))
    zoom = follow_zoom(curr.md, POINTS[-1].md, camera.config)

    for _ in range(200):
        if not camera.update():
            break
    else:
        pytest.fail("Camera did not converge.")

    assert camera.state.yaw == pytest.approx(yaw)
    assert camera.state.pitch == pytest.approx(pitch)
    assert camera.state.zoom == pytest.approx(zoom)
    assert not camera.following


def test_update_smooths():
    camera = Camera()
    camera.focus(2, POINTS)
    target = camera._target['pitch']
    before = camera.state.pitch

    assert camera.update()
    assert camera.state.pitch == pytest.approx(before * 0.7 + target * 0.3)


def test_yaw_takes_short_way():
    camera = Camera()
    camera.state.yaw = math.radians(170)
    points = [_point(), _point(n=-100, e=-10, md=100)]
    camera.focus(1, points)

    camera.update()
    # the target is at about -174 degrees, so yaw increases through 180
    assert camera.state.yaw > math.radians(170)


def test_follow_zoom():
    config = DEFAULT_CONFIG.camera

    assert follow_zoom(0, 1000, config) == pytest.approx(1.5)
    assert follow_zoom(500, 1000, config) == pytest.approx(1.15)
    assert follow_zoom(1000, 1000, config) == pytest.approx(0.8)
    assert follow_zoom(100, 0, config) == pytest.approx(1.5)


def test_station_stepping():
    camera = Camera()
    assert camera.get_focused_index(POINTS) == 3

    camera.next_station(POINTS)
    assert camera.state.focused_index == 3

    camera.previous_station(POINTS)
    camera.previous_station(POINTS)
    assert camera.state.focused_index == 1

    camera.focus(-5, POINTS)
    assert camera.state.focused_index == 0
    camera.focus(99, POINTS)
    assert camera.state.focused_index == 3


def test_focus_empty():
    camera = Camera()
    camera.focus(1, [])
    camera.next_station([])

    assert camera.state.focused_index is None
    assert camera.version == 0


def test_version():
    camera = Camera()
    camera.set_view_mode('3D')
    assert camera.version == 0

    camera.set_view_mode('2D')
    camera.zoom_in()
    camera.reset_pan()
    assert camera.version == 3
