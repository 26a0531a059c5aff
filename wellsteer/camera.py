"""
View state and screen projection for the interactive trajectory viewer.

World coordinates are ordered (x, y, z) = (east, tvd, north), so that y points
down the screen before rotation.
"""
import logging
import math
from enum import Enum
from typing import Optional, Sequence

import numpy as np
from pydantic import BaseModel
from scipy.spatial.transform import Rotation as R

from .config import DEFAULT_CONFIG, CameraConfig
from .station import TrajectoryPoint
from .utils import wrap_angle_difference

logger = logging.getLogger(__name__)


class ViewMode(Enum):
    VIEW_3D: str = "3D"
    VIEW_2D: str = "2D"


class CameraState(BaseModel):
    """
    Mutable view state, angles in radians. A ``focused_index`` of None
    focuses the latest station.
    """
    pitch: float
    yaw: float
    zoom: float
    pan_x: float = 0.
    pan_y: float = 0.
    scale_2d: float = 1.
    view_mode: ViewMode = ViewMode.VIEW_3D
    focused_index: Optional[int] = None


def get_world(points: Sequence[TrajectoryPoint], world_scale=1.) -> np.ndarray:
    """
    Returns an (n, 3) array of (east, tvd, north) world coordinates.
    """
    if len(points) == 0:
        return np.zeros((0, 3))
    return np.array([[p.e, p.tvd, p.n] for p in points]) / world_scale


def follow_rotation(prev: np.ndarray, curr: np.ndarray) -> tuple:
    """
    Returns the (pitch, yaw) in radians that looks along the direction from
    ``prev`` to ``curr`` world points.
    """
    dx, dy, dz = np.asarray(curr, dtype=float) - np.asarray(prev, dtype=float)
    azi = math.atan2(dx, dz)
    inc = math.atan2(dy, math.hypot(dx, dz))
    return (inc, azi)


def follow_zoom(md: float, md_max: float, config: CameraConfig) -> float:
    """
    Zoom out with depth, from ``follow_zoom_max`` at surface to
    ``follow_zoom_min`` at the deepest station.
    """
    ratio = md / md_max if md_max > 0 else 0.
    zoom = (
        config.follow_zoom_max
        - (config.follow_zoom_max - config.follow_zoom_min) * ratio
    )
    return float(np.clip(zoom, config.follow_zoom_min, config.follow_zoom_max))


class Camera:
    def __init__(self, config: Optional[CameraConfig] = None):
        """
        Owns a ``CameraState`` and applies user input, auto-follow and
        smoothing to it.

        Parameters
        ----------
        config: CameraConfig (default: None)
            The camera constants, defaults to the packaged config.

        Attributes
        ----------
        state: CameraState
        version: int
            Incremented on every change of state, so a renderer can skip
            frames when nothing has changed.
        """
        self.config = DEFAULT_CONFIG.camera if config is None else config
        self.state = CameraState(
            pitch=self.config.initial_pitch,
            yaw=self.config.initial_yaw,
            zoom=self.config.initial_zoom,
            scale_2d=self.config.scale_2d,
        )
        self.version = 0
        self._target = None

    @property
    def following(self) -> bool:
        return self._target is not None

    def _changed(self):
        self.version += 1

    def _clamp_zoom(self, value):
        return float(np.clip(value, self.config.zoom_min, self.config.zoom_max))

    def get_rotation(self) -> R:
        # yaw about y first, then pitch about x, both rotating the scene the
        # opposite way to scipy's right handed convention:
        # x' = x cos(yaw) - z sin(yaw), y' = y cos(pitch) + z' sin(pitch)
        return R.from_euler('yx', [-self.state.yaw, -self.state.pitch])

    def get_scale(self, width, height) -> float:
        return min(width, height) * self.config.viewport_fraction * (
            self.state.zoom
        )

    def project(self, points, width, height) -> tuple:
        """
        Project trajectory points to screen coordinates.

        Parameters
        ----------
        points: list of TrajectoryPoint
        width, height: float
            The size of the drawing surface in pixels.

        Returns
        -------
        xy: (n, 2) array of floats
            Screen coordinates with y down.
        visible: (n,) array of bools
            False where a point is behind the viewer in the perspective view.
        """
        cx, cy = width / 2, height / 2

        if self.state.view_mode == ViewMode.VIEW_2D:
            e = np.array([p.e for p in points], dtype=float)
            n = np.array([p.n for p in points], dtype=float)
            xy = np.stack([
                cx + e * self.state.scale_2d + self.state.pan_x,
                cy - n * self.state.scale_2d + self.state.pan_y,
            ], axis=-1).reshape(-1, 2)
            return (xy, np.ones(len(xy), dtype=bool))

        world = get_world(points, self.config.world_scale)
        if len(world) == 0:
            return (np.zeros((0, 2)), np.zeros(0, dtype=bool))

        x, y, z = self.get_rotation().apply(world).T
        s = self.get_scale(width, height)

        depth = s + z
        visible = depth > 0
        with np.errstate(divide='ignore', invalid='ignore'):
            factor = np.where(visible, s / depth, 0.)

        xy = np.stack([
            cx + x * factor * s,
            cy + y * factor * s * self.config.vertical_emphasis,
        ], axis=-1)

        return (xy, visible)

    def set_view_mode(self, mode):
        mode = ViewMode(mode)
        if mode != self.state.view_mode:
            self.state.view_mode = mode
            self._target = None
            logger.debug(f"View mode set to {mode.value}")
            self._changed()

    def drag(self, dx: float, dy: float):
        """
        Rotate the 3D view or pan the 2D view by a pointer movement in
        pixels. Dragging cancels auto-follow.
        """
        if self.state.view_mode == ViewMode.VIEW_2D:
            self.state.pan_x += dx
            self.state.pan_y += dy
        else:
            k = self.config.drag_sensitivity
            self.state.pitch += dy * k
            self.state.yaw += dx * k
            self._target = None
        self._changed()

    def _zoom(self, step):
        if self.state.view_mode == ViewMode.VIEW_2D:
            self.state.scale_2d = self._clamp_zoom(self.state.scale_2d + step)
        else:
            self.state.zoom = self._clamp_zoom(self.state.zoom + step)
            if self._target is not None:
                # the operator's zoom wins over the follow zoom
                self._target['zoom'] = self.state.zoom
        self._changed()

    def zoom_in(self):
        self._zoom(self.config.zoom_step)

    def zoom_out(self):
        self._zoom(-self.config.zoom_step)

    def reset_pan(self):
        self.state.pan_x = 0.
        self.state.pan_y = 0.
        self.state.scale_2d = self.config.scale_2d
        self._changed()

    def get_focused_index(self, points) -> Optional[int]:
        if len(points) == 0:
            return None
        if self.state.focused_index is None:
            return len(points) - 1
        return min(self.state.focused_index, len(points) - 1)

    def focus(self, index: int, points: Sequence[TrajectoryPoint]):
        """
        Focus a station and adjust the view to it; the index is clamped to
        the available points.

        In 2D the pan is recentred on the station immediately. In 3D a follow
        target is set which ``update`` smooths toward, looking along the
        interval ending at the station and zooming out with depth.
        """
        if len(points) == 0:
            return
        index = int(np.clip(index, 0, len(points) - 1))
        self.state.focused_index = index
        point = points[index]

        if self.state.view_mode == ViewMode.VIEW_2D:
            self.state.pan_x = -point.e * self.state.scale_2d
            self.state.pan_y = point.n * self.state.scale_2d
        else:
            world = get_world(
                [points[max(index - 1, 0)], point], self.config.world_scale
            )
            if index > 0 and np.any(world[1] != world[0]):
                pitch, yaw = follow_rotation(*world)
            else:
                pitch, yaw = self.state.pitch, self.state.yaw
            self._target = dict(
                pitch=pitch,
                yaw=yaw,
                zoom=follow_zoom(point.md, points[-1].md, self.config)
            )
            logger.debug(f"Following station {index} at md {point.md}")

        self._changed()

    def next_station(self, points):
        current = self.get_focused_index(points)
        if current is not None:
            self.focus(current + 1, points)

    def previous_station(self, points):
        current = self.get_focused_index(points)
        if current is not None:
            self.focus(current - 1, points)

    def update(self) -> bool:
        """
        Advance the follow animation by one frame.

        Returns
        -------
        changed: bool
            True if the state was changed by this tick.
        """
        if self._target is None:
            return False

        keep, blend = self.config.smoothing_keep, self.config.smoothing_blend
        target = self._target
        state = self.state

        yaw_diff = wrap_angle_difference(target['yaw'] - state.yaw, 2 * math.pi)
        pitch_diff = target['pitch'] - state.pitch
        zoom_diff = target['zoom'] - state.zoom

        tol = self.config.convergence_tolerance
        if max(abs(yaw_diff), abs(pitch_diff), abs(zoom_diff)) < tol:
            state.yaw += yaw_diff
            state.pitch = target['pitch']
            state.zoom = target['zoom']
            self._target = None
        else:
            state.yaw += yaw_diff * blend
            state.pitch = state.pitch * keep + target['pitch'] * blend
            state.zoom = state.zoom * keep + target['zoom'] * blend

        self._changed()
        return True
