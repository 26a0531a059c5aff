"""
Advisory quality checks for raw survey readings.

A check never blocks the trajectory calculation, a failed station is still
integrated as-is and the returned ``QualityCheck`` is metadata for display
and alerting.
"""
import logging
import math
from typing import List, Optional, Sequence

from .config import DEFAULT_CONFIG, QualityLimits, get_course_length
from .station import QualityCheck, QualityStatus, SurveyStation
from .utils import get_dogleg, wrap_angle_difference

logger = logging.getLogger(__name__)

PASS_MESSAGE = "All parameters within acceptable ranges"


def _is_finite(value) -> bool:
    return value is not None and math.isfinite(value)


def _check_station(station, limits):
    issues = []

    for name, value in (
        ('Measured depth', station.md),
        ('Inclination', station.inc),
        ('Azimuth', station.azi)
    ):
        if not _is_finite(value):
            issues.append((QualityStatus.FAIL, f"{name} is not a number"))
    if issues:
        return issues

    if station.md < limits.min_depth:
        issues.append((
            QualityStatus.FAIL,
            f"Measured depth below {limits.min_depth:g}"
        ))
    if not limits.inc_min <= station.inc <= limits.inc_max:
        issues.append((
            QualityStatus.FAIL,
            "Inclination out of valid range "
            f"({limits.inc_min:g}-{limits.inc_max:g} degrees)"
        ))
    if not limits.azi_min <= station.azi <= limits.azi_max:
        issues.append((
            QualityStatus.FAIL,
            "Azimuth out of valid range "
            f"({limits.azi_min:g}-{limits.azi_max:g} degrees)"
        ))

    if limits.high_inc < station.inc <= limits.inc_max:
        issues.append((
            QualityStatus.WARNING,
            "Unusually high inclination value - verify sensor readings"
        ))
    if (
        limits.inc_min <= station.inc < limits.near_vertical_inc
        and station.azi != 0
    ):
        issues.append((
            QualityStatus.WARNING,
            "Near-vertical wellbore - azimuth readings may be unreliable"
        ))

    if _is_finite(station.tool_temp):
        if station.tool_temp > limits.tool_temp_max:
            issues.append((
                QualityStatus.FAIL,
                f"Tool temperature {station.tool_temp:g} exceeds "
                f"{limits.tool_temp_max:g}"
            ))
        elif station.tool_temp > limits.tool_temp_warning:
            issues.append((
                QualityStatus.WARNING,
                f"Tool temperature {station.tool_temp:g} above "
                f"{limits.tool_temp_warning:g}"
            ))

    return issues


def _check_interval(station, prior, limits, unit):
    issues = []
    if not all(
        _is_finite(v) for v in (
            prior.md, prior.inc, prior.azi
        )
    ):
        return issues

    delta_md = station.md - prior.md
    if delta_md <= 0:
        issues.append((
            QualityStatus.WARNING,
            "Measured depth does not increase from the previous survey - "
            "station is excluded from the trajectory"
        ))
        return issues

    dls = (
        get_dogleg(prior.inc, prior.azi, station.inc, station.azi)
        / delta_md * get_course_length(unit)
    )
    if dls > limits.max_dls:
        issues.append((
            QualityStatus.WARNING,
            f"Dogleg severity {dls:.2f} exceeds {limits.max_dls:g}"
        ))

    inc_jump = abs(station.inc - prior.inc)
    if inc_jump > limits.max_inc_jump:
        issues.append((
            QualityStatus.WARNING,
            f"Inclination changed {inc_jump:.2f} degrees since the previous "
            "survey"
        ))

    near_vertical = min(station.inc, prior.inc) < limits.near_vertical_inc
    azi_jump = abs(wrap_angle_difference(station.azi - prior.azi))
    if not near_vertical and azi_jump > limits.max_azi_jump:
        issues.append((
            QualityStatus.WARNING,
            f"Azimuth changed {azi_jump:.2f} degrees since the previous "
            "survey"
        ))

    return issues


def classify(
    station: SurveyStation,
    prior: Optional[SurveyStation] = None,
    limits: Optional[QualityLimits] = None,
    unit: str = 'feet'
) -> QualityCheck:
    """
    Classify a survey reading as pass, warning or fail.

    Parameters
    ----------
    station: SurveyStation
        The reading to check.
    prior: SurveyStation (default: None)
        The previous reading, if any, enabling the interval checks (dogleg
        severity and inclination/azimuth jumps).
    limits: QualityLimits (default: None)
        The limits to check against, defaults to the packaged limits.
    unit: str (default: 'feet')
        Depth unit, sets the course length of the dogleg severity limit.

    Returns
    -------
    check: QualityCheck
        The worst status found, the first message with that status and the
        messages of every issue found.

    Examples
    --------
    >>> from wellsteer.station import SurveyStation
    >>> classify(SurveyStation(md=1000, inc=185, azi=90)).status
    <QualityStatus.FAIL: 'fail'>
    """
    limits = DEFAULT_CONFIG.quality if limits is None else limits

    issues = _check_station(station, limits)
    if prior is not None and not any(
        status == QualityStatus.FAIL for status, _ in issues
    ):
        issues.extend(_check_interval(station, prior, limits, unit))

    if not issues:
        return QualityCheck(status=QualityStatus.PASS, message=PASS_MESSAGE)

    worst = max((status for status, _ in issues), key=lambda s: s.severity)
    message = next(msg for status, msg in issues if status == worst)
    if worst == QualityStatus.FAIL:
        logger.warning(f"Survey at md {station.md} failed: {message}")

    return QualityCheck(
        status=worst,
        message=message,
        details=tuple(msg for _, msg in issues)
    )


def classify_all(
    stations: Sequence[SurveyStation],
    limits: Optional[QualityLimits] = None,
    unit: str = 'feet'
) -> List[QualityCheck]:
    """
    Classify each station against its predecessor in the sequence.
    """
    return [
        classify(
            station, stations[i - 1] if i > 0 else None, limits, unit
        )
        for i, station in enumerate(stations)
    ]
