import logging
import os
from copy import deepcopy
from typing import Dict, List, Optional, Tuple

import yaml
from pydantic import BaseModel, field_validator, model_validator

logger = logging.getLogger(__name__)

PATH = os.path.dirname(__file__)
DEFAULTS_FILENAME = os.path.join('', *[PATH, 'defaults.yaml'])

# number of course length units that dls, build and turn rates are quoted per
COURSE_LENGTH = {
    'feet': 100.,
    'meters': 30.,
}


def get_course_length(unit: str) -> float:
    assert unit in COURSE_LENGTH, (
        'Unknown unit, please select "meters" or "feet"'
    )
    return COURSE_LENGTH[unit]


class QualityLimits(BaseModel):
    """
    Named, overridable limits used by the survey quality classifier.

    Angles are in degrees, ``max_dls`` is in degrees per course length
    normaliser (100 ft or 30 m) and the tool temperatures are in the unit the
    MWD tool reports. Values come from ``defaults.yaml``, use ``get_config``
    to build an instance.
    """
    min_depth: float
    inc_min: float
    inc_max: float
    azi_min: float
    azi_max: float
    high_inc: float
    near_vertical_inc: float
    max_dls: float
    max_inc_jump: float
    max_azi_jump: float
    tool_temp_warning: float
    tool_temp_max: float

    @model_validator(mode='after')
    def _check_ranges(self):
        if self.inc_min >= self.inc_max:
            raise ValueError("inc_min must be less than inc_max")
        if self.azi_min >= self.azi_max:
            raise ValueError("azi_min must be less than azi_max")
        if self.tool_temp_warning > self.tool_temp_max:
            raise ValueError("tool_temp_warning exceeds tool_temp_max")
        return self


class CurveConfig(BaseModel):
    rotation_rpm_threshold: float
    min_distance_threshold: float
    moving_average_count: int
    debounce_interval: float
    default_build_rate: float
    default_turn_rate: float
    default_motor_yield: float
    manual_input_constraints: Dict[str, Tuple[float, float]]

    @field_validator('moving_average_count')
    @classmethod
    def _at_least_two(cls, v):
        if v < 2:
            raise ValueError("moving_average_count needs at least two surveys")
        return v

    @field_validator('manual_input_constraints')
    @classmethod
    def _ordered_constraints(cls, v):
        for field, (lo, hi) in v.items():
            if lo > hi:
                raise ValueError(f"constraint for {field} has min > max")
        return v


class TargetConfig(BaseModel):
    on_target: float
    near_target: float
    indicator_threshold: float


class CameraConfig(BaseModel):
    """
    Constants for the interactive camera. The smoothing blend, clamp ranges
    and the 1.5 vertical emphasis are empirical values carried over as is.
    """
    initial_pitch: float
    initial_yaw: float
    initial_zoom: float
    smoothing_keep: float
    smoothing_blend: float
    follow_zoom_min: float
    follow_zoom_max: float
    zoom_min: float
    zoom_max: float
    zoom_step: float
    drag_sensitivity: float
    vertical_emphasis: float
    world_scale: float
    viewport_fraction: float
    scale_2d: float
    convergence_tolerance: float

    @model_validator(mode='after')
    def _check_smoothing(self):
        if abs(self.smoothing_keep + self.smoothing_blend - 1.) > 1e-9:
            raise ValueError("smoothing_keep and smoothing_blend must sum to 1")
        if self.zoom_min > self.zoom_max:
            raise ValueError("zoom_min exceeds zoom_max")
        if self.follow_zoom_min > self.follow_zoom_max:
            raise ValueError("follow_zoom_min exceeds follow_zoom_max")
        return self


class RenderConfig(BaseModel):
    background: str
    well_color: str
    well_width: float
    offset_width: float
    focus_color: str
    focus_radius: float
    text_color: str
    gamma_bands: List[Tuple[float, str, str]]
    vibration_bands: List[Tuple[float, str, str]]


class Config(BaseModel):
    """
    Every section and value is required, ``defaults.yaml`` holds the
    packaged defaults.
    """
    quality: QualityLimits
    curve: CurveConfig
    target: TargetConfig
    camera: CameraConfig
    render: RenderConfig


def _merge(base: dict, update: dict) -> dict:
    merged = deepcopy(base)
    for k, v in update.items():
        if isinstance(v, dict) and isinstance(merged.get(k), dict):
            merged[k] = _merge(merged[k], v)
        else:
            merged[k] = v
    return merged


def load_yaml(filename: str) -> dict:
    with open(filename, 'r') as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(
            f"{filename} must contain a mapping of config sections"
        )
    unknown = set(data) - set(Config.model_fields)
    if unknown:
        raise ValueError(f"Unknown config sections: {sorted(unknown)}")
    return data


def get_config(filename: Optional[str] = None, **overrides) -> Config:
    """
    Build a ``Config`` from the packaged defaults, an optional user file and
    keyword overrides, in that order of precedence.

    Parameters
    ----------
    filename: str (default: None)
        Path to a YAML file with any of the sections ``quality``, ``curve``,
        ``target``, ``camera`` and ``render``.
    overrides: dict
        Section overrides, e.g. ``curve={'rotation_rpm_threshold': 10}``.

    Returns
    -------
    config: Config

    Examples
    --------
    >>> from wellsteer.config import get_config
    >>> config = get_config(quality={'max_dls': 10.0})
    >>> config.quality.max_dls
    10.0
    """
    data = load_yaml(DEFAULTS_FILENAME)
    if filename is not None:
        logger.info(f"Loading config from {filename}")
        data = _merge(data, load_yaml(filename))
    if overrides:
        data = _merge(data, overrides)

    return Config(**data)


DEFAULT_CONFIG = get_config()
