"""
Deviation of the bit from a planned target line.

The vertical sign convention is ``above_below = target.tvd - tvd``: a positive
value means the target line lies deeper than the bit, so the bit is above
plan.
"""
import math
from typing import Optional

from pydantic import BaseModel

from .config import DEFAULT_CONFIG, Config
from .curve import dogleg_needed as _dogleg_needed
from .station import TargetLine


class TargetLineResult(BaseModel):
    above_below: float
    position: str
    left_right: float
    cross_track: float
    distance_to_target: float
    dogleg_needed: Optional[float] = None
    status: str
    indicator: str


def target_horizontal(target: TargetLine) -> tuple:
    """
    Returns the (north, east) location of the target vertical section along
    the target azimuth.
    """
    azi = math.radians(target.azi)
    return (
        target.vertical_section * math.cos(azi),
        target.vertical_section * math.sin(azi)
    )


def get_status(distance: float, config=None) -> str:
    config = DEFAULT_CONFIG.target if config is None else config
    if distance < config.on_target:
        return "On Target"
    if distance < config.near_target:
        return "Near Target"
    return "Off Target"


def get_indicator(above_below: float, cross_track: float, config=None) -> str:
    config = DEFAULT_CONFIG.target if config is None else config
    threshold = config.indicator_threshold
    if above_below > threshold:
        return "down"
    if above_below < -threshold:
        return "up"
    if cross_track > threshold:
        return "right"
    if cross_track < -threshold:
        return "left"
    return "on"


def evaluate_target_line(
    tvd: float,
    n: float,
    e: float,
    azi: float,
    target: TargetLine,
    inc: Optional[float] = None,
    config: Optional[Config] = None
) -> TargetLineResult:
    """
    Compare the bit position with the target line.

    Parameters
    ----------
    tvd, n, e: float
        Current true vertical depth and north/east displacements.
    azi: float
        Current azimuth in degrees.
    target: TargetLine
    inc: float (default: None)
        Current inclination in degrees; if given, the dogleg severity needed
        to reach the target attitude over the distance to target is included.
    config: Config (default: None)

    Returns
    -------
    result: TargetLineResult
        ``left_right`` is the unsigned horizontal distance to the target
        location, ``cross_track`` the signed offset from the target azimuth
        line (positive to the right looking along the target azimuth).

    Examples
    --------
    >>> from wellsteer.station import TargetLine
    >>> result = evaluate_target_line(7950, 0, 0, 0, TargetLine(tvd=8000))
    >>> result.above_below, result.position
    (50.0, 'above')
    """
    config = DEFAULT_CONFIG if config is None else config

    above_below = float(target.tvd - tvd)
    if above_below > 0:
        position = "above"
    elif above_below < 0:
        position = "below"
    else:
        position = "on"

    target_n, target_e = target_horizontal(target)
    left_right = math.hypot(target_n - n, target_e - e)

    target_azi = math.radians(target.azi)
    cross_track = -n * math.sin(target_azi) + e * math.cos(target_azi)

    distance = math.hypot(above_below, left_right)

    dogleg = None
    if inc is not None:
        dogleg = _dogleg_needed(inc, azi, target.inc, target.azi, distance)

    return TargetLineResult(
        above_below=above_below,
        position=position,
        left_right=left_right,
        cross_track=cross_track,
        distance_to_target=distance,
        dogleg_needed=dogleg,
        status=get_status(distance, config.target),
        indicator=get_indicator(above_below, cross_track, config.target),
    )
