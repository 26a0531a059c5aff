"""
Slide and curve calculations used for steering a motor assembly.

Unless stated otherwise, angles are in degrees, lengths in feet and rates in
degrees per 100 ft; pass ``course_length=30`` for metric rates.
"""
import logging
import math
from typing import Optional, Sequence

from pydantic import BaseModel

from .config import DEFAULT_CONFIG, Config, CurveConfig, get_course_length
from .station import CurveParameters, SurveyStation
from .utils import get_dogleg, normalize_azimuth, wrap_angle_difference

logger = logging.getLogger(__name__)

COURSE_LENGTH = get_course_length("feet")


def _finite(*values) -> bool:
    return all(
        isinstance(v, (int, float)) and math.isfinite(v) for v in values
    )


def motor_yield(
    slide_distance: float,
    bend_angle: float,
    bit_to_bend: float,
    course_length: float = COURSE_LENGTH
) -> float:
    """
    Geometric motor yield, the expected rate of angle change per course
    length while sliding.

    The effective bend is the bend angle scaled by the proportion of the
    slide that is behind the bit. Returns 0 if the slide distance is 0.
    """
    if slide_distance == 0 or slide_distance + bit_to_bend == 0:
        return 0.
    effective_bend = bend_angle * (
        slide_distance / (slide_distance + bit_to_bend)
    )
    return effective_bend / slide_distance * course_length


def motor_yield_from_surveys(
    prev_inc: float,
    curr_inc: float,
    md_between: float,
    course_length: float = COURSE_LENGTH
) -> float:
    """
    Observed motor yield from the inclination change between two surveys.
    Returns 0 for a non-positive distance.
    """
    if not md_between > 0:
        return 0.
    return abs(curr_inc - prev_inc) / md_between * course_length


def select_motor_yield(
    prev: Optional[SurveyStation],
    curr: Optional[SurveyStation],
    params: CurveParameters,
    config: Optional[CurveConfig] = None,
    course_length: float = COURSE_LENGTH
) -> float:
    """
    Returns the survey based motor yield when a valid previous survey exists,
    otherwise the geometric yield from the bend model, otherwise the
    configured default. A previous survey is valid when it is at least
    ``config.min_distance_threshold`` shallower than the current one.
    """
    config = DEFAULT_CONFIG.curve if config is None else config

    if prev is not None and curr is not None and _finite(
        prev.inc, curr.inc, prev.md, curr.md
    ):
        md_between = curr.md - prev.md
        if md_between >= config.min_distance_threshold:
            result = motor_yield_from_surveys(
                prev.inc, curr.inc, md_between, course_length
            )
            if math.isfinite(result) and result > 0:
                return result

    result = motor_yield(
        params.slide_distance, params.bend_angle, params.bit_to_bend,
        course_length
    )
    if math.isfinite(result) and result > 0:
        logger.debug("Using the geometric motor yield")
        return result

    logger.debug("Using the default motor yield")
    return config.default_motor_yield


def build_rate(
    prev_inc: float,
    curr_inc: float,
    prev_depth: float,
    curr_depth: float,
    course_length: float = COURSE_LENGTH
) -> float:
    """
    Rate of inclination change per course length, 0 over a zero interval.
    """
    delta_md = curr_depth - prev_depth
    if delta_md == 0:
        return 0.
    return (curr_inc - prev_inc) / delta_md * course_length


def turn_rate(
    prev_azi: float,
    curr_azi: float,
    prev_depth: float,
    curr_depth: float,
    course_length: float = COURSE_LENGTH
) -> float:
    """
    Rate of azimuth change per course length, 0 over a zero interval. The
    azimuth change takes the short way round, so 350 to 10 degrees is a
    right turn of 20 degrees.
    """
    delta_md = curr_depth - prev_depth
    if delta_md == 0:
        return 0.
    return wrap_angle_difference(curr_azi - prev_azi) / delta_md * course_length


def moving_average_rates(
    stations: Sequence[SurveyStation],
    config: Optional[CurveConfig] = None,
    course_length: float = COURSE_LENGTH
) -> tuple:
    """
    Average build and turn rates over the most recent surveys.

    Parameters
    ----------
    stations: list of SurveyStation
        Survey stations ordered by measured depth; the last
        ``config.moving_average_count`` are used.
    config: CurveConfig (default: None)

    Returns
    -------
    (build_rate, turn_rate): tuple of floats
        The averages over the pairs whose depth increases by at least
        ``config.min_distance_threshold``, or the configured defaults
        if no pair qualifies.
    """
    config = DEFAULT_CONFIG.curve if config is None else config
    recent = list(stations)[-config.moving_average_count:]

    builds, turns = [], []
    for prev, curr in zip(recent[:-1], recent[1:]):
        if not _finite(prev.inc, curr.inc, prev.azi, curr.azi, prev.md, curr.md):
            continue
        md_diff = curr.md - prev.md
        if md_diff < config.min_distance_threshold:
            continue
        builds.append(
            build_rate(prev.inc, curr.inc, 0., md_diff, course_length)
        )
        turns.append(
            turn_rate(prev.azi, curr.azi, 0., md_diff, course_length)
        )

    if not builds:
        logger.debug("No valid survey pairs, using default build/turn rates")
        return (config.default_build_rate, config.default_turn_rate)

    return (sum(builds) / len(builds), sum(turns) / len(turns))


def slide_seen(
    motor_yield: float,
    slide_distance: float,
    is_rotating: bool = False,
    course_length: float = COURSE_LENGTH
) -> float:
    """
    Angle change already accrued over the slide, 0 while rotating.
    """
    if is_rotating or slide_distance == 0:
        return 0.
    return motor_yield * slide_distance / course_length


def slide_ahead(
    motor_yield: float,
    slide_distance: float,
    bit_to_bend: float,
    is_rotating: bool = False,
    course_length: float = COURSE_LENGTH
) -> float:
    """
    Angle change still to come from the part of the slide that the bend has
    not yet reached, 0 while rotating.
    """
    if is_rotating or slide_distance == 0:
        return 0.
    total = motor_yield * slide_distance / course_length
    denominator = slide_distance + bit_to_bend
    if denominator == 0:
        return 0.
    return total * (bit_to_bend / denominator)


def rotation_status(
    rotary_rpm: Optional[float], threshold: Optional[float] = None
) -> bool:
    threshold = (
        DEFAULT_CONFIG.curve.rotation_rpm_threshold if threshold is None
        else threshold
    )
    if rotary_rpm is None or not math.isfinite(rotary_rpm):
        return False
    return rotary_rpm > threshold


class RotationDebouncer:
    def __init__(self, interval: Optional[float] = None):
        """
        Debounces the rotating flag so that the slide calculations do not
        flicker between rotating and sliding.

        The caller supplies the timestamps (in seconds), a change in the raw
        flag is only adopted once it has been stable for ``interval``.

        Parameters
        ----------
        interval: float (default: None)
            Seconds the raw flag must hold before it is adopted, defaults to
            the configured ``debounce_interval``.
        """
        self.interval = (
            DEFAULT_CONFIG.curve.debounce_interval if interval is None
            else interval
        )
        self.state = False
        self._raw = False
        self._since = None

    def update(self, is_rotating: bool, now: float) -> bool:
        if is_rotating != self._raw or self._since is None:
            self._raw = is_rotating
            self._since = now
        if (
            self._raw != self.state
            and now - self._since >= self.interval
        ):
            self.state = self._raw
            logger.debug(f"Rotation state changed to {self.state}")
        return self.state


def projected_inclination(
    current_inc: float,
    build_rate: float,
    distance: float,
    course_length: float = COURSE_LENGTH
) -> float:
    return current_inc + build_rate * distance / course_length


def projected_azimuth(
    current_azi: float,
    turn_rate: float,
    distance: float,
    course_length: float = COURSE_LENGTH
) -> float:
    """
    Projected azimuth normalized to [0, 360).

    >>> projected_azimuth(350, 2, 1000)
    10.0
    """
    return normalize_azimuth(current_azi + turn_rate * distance / course_length)


def dogleg_severity(
    inc1: float,
    azi1: float,
    inc2: float,
    azi2: float,
    course_length: float,
    normaliser: float = COURSE_LENGTH
) -> float:
    """
    Dogleg severity between two attitudes over a course length, using the
    spherical law of cosines. Returns 0 for a non-positive course length.
    """
    if not course_length > 0:
        return 0.
    return get_dogleg(inc1, azi1, inc2, azi2) / course_length * normaliser


def dogleg_needed(
    current_inc: float,
    current_azi: float,
    target_inc: float,
    target_azi: float,
    distance: float,
    normaliser: float = COURSE_LENGTH
) -> float:
    """
    Dogleg severity required to turn from the current attitude to the target
    attitude over the distance to the target.
    """
    return dogleg_severity(
        current_inc, current_azi, target_inc, target_azi, distance, normaliser
    )


def nudge_projection(
    current_inc: float,
    current_azi: float,
    toolface: float,
    motor_yield: float,
    slide_distance: float,
    course_length: float = COURSE_LENGTH,
    min_inc: float = 0.1
) -> tuple:
    """
    Project the attitude after sliding with the bend at a toolface.

    Parameters
    ----------
    current_inc, current_azi: float
        Current attitude in degrees.
    toolface: float
        Toolface in degrees relative to high side.
    motor_yield: float
        Motor yield in degrees per course length.
    slide_distance: float
        The planned slide length.
    min_inc: float (default: 0.1)
        Below this inclination the azimuth change is undefined and skipped.

    Returns
    -------
    (projected_inc, projected_azi): tuple of floats
    """
    dogleg = motor_yield * slide_distance / course_length
    tf_rad = math.radians(toolface)

    projected_inc = current_inc + math.cos(tf_rad) * dogleg

    azi_change = 0.
    if current_inc > min_inc:
        azi_change = math.degrees(
            math.sin(tf_rad) * math.radians(dogleg)
            / math.sin(math.radians(current_inc))
        )

    return (projected_inc, normalize_azimuth(current_azi + azi_change))


class LiveData(BaseModel):
    """
    The subset of the live drilling feed used by the curve calculations.
    """
    rotary_rpm: Optional[float] = None
    inc: Optional[float] = None
    azi: Optional[float] = None


OVERRIDES = (
    'motor_yield', 'dogleg_needed', 'slide_seen', 'slide_ahead',
    'projected_inc', 'projected_azi'
)
PARAMETERS = (
    'build_rate', 'turn_rate', 'slide_distance', 'bit_to_bend', 'bend_angle'
)


class ManualInputs(BaseModel):
    """
    Operator entered values. An override left as None is calculated, a set
    override takes precedence over the calculated value.
    """
    motor_yield: Optional[float] = None
    dogleg_needed: Optional[float] = None
    slide_seen: Optional[float] = None
    slide_ahead: Optional[float] = None
    projected_inc: Optional[float] = None
    projected_azi: Optional[float] = None
    build_rate: Optional[float] = None
    turn_rate: Optional[float] = None
    slide_distance: Optional[float] = None
    bit_to_bend: Optional[float] = None
    bend_angle: Optional[float] = None

    def update(
        self,
        field: str,
        value: Optional[float],
        config: Optional[CurveConfig] = None
    ) -> "ManualInputs":
        """
        Set an operator value, clamped to the configured constraints.
        Passing None clears it and non-finite values are ignored.
        """
        if field not in OVERRIDES + PARAMETERS:
            raise ValueError(f"Unknown manual input: {field}")
        config = DEFAULT_CONFIG.curve if config is None else config

        if value is None:
            setattr(self, field, None)
            return self

        value = float(value)
        if not math.isfinite(value):
            logger.warning(f"Ignoring non-finite manual {field}")
            return self

        constraint = config.manual_input_constraints.get(field)
        if constraint is not None:
            lo, hi = constraint
            value = max(lo, min(hi, value))
        setattr(self, field, value)

        return self

    def apply(self, curve_data: "CurveData") -> "CurveData":
        """
        Returns a copy of ``curve_data`` with the set overrides applied.
        """
        updates = {
            k: getattr(self, k) for k in OVERRIDES
            if getattr(self, k) is not None
        }
        return curve_data.model_copy(update=updates)

    def curve_parameters(self, params: CurveParameters) -> CurveParameters:
        updates = {
            k: getattr(self, k)
            for k in ('slide_distance', 'bit_to_bend', 'bend_angle')
            if getattr(self, k) is not None
        }
        return params.model_copy(update=updates)


class CurveData(BaseModel):
    motor_yield: float = 0.
    dogleg_needed: float = 0.
    slide_seen: float = 0.
    slide_ahead: float = 0.
    projected_inc: float = 0.
    projected_azi: float = 0.
    is_rotating: bool = False
    build_rate: float = 0.
    turn_rate: float = 0.
    slide_distance: float = 0.
    bit_to_bend: float = 0.
    bend_angle: float = 0.
    target_distance: float = 0.
    target_inc: float = 0.
    target_azi: float = 0.


def _current_attitude(stations, live):
    latest = stations[-1] if stations else None
    attitude = []
    for field in ('inc', 'azi'):
        value = None if latest is None else getattr(latest, field)
        if not _finite(value):
            value = None if live is None else getattr(live, field)
        attitude.append(value if _finite(value) else 0.)
    return attitude


def calculate_curve_data(
    stations: Sequence[SurveyStation],
    params: Optional[CurveParameters] = None,
    live: Optional[LiveData] = None,
    manual: Optional[ManualInputs] = None,
    config: Optional[Config] = None,
    is_rotating: Optional[bool] = None,
    course_length: float = COURSE_LENGTH
) -> CurveData:
    """
    Calculate the steering numbers from the latest surveys.

    Parameters
    ----------
    stations: list of SurveyStation
        The accepted survey stations ordered by measured depth, the most
        recent last, e.g. ``Trajectory.points``. Raw input is not filtered
        here, pairs that do not increase in depth are skipped.
    params: CurveParameters (default: None)
        Slide and target parameters, manual parameters take precedence.
    live: LiveData (default: None)
        Live feed data, supplying the rotary RPM and a fallback attitude when
        there are no surveys.
    manual: ManualInputs (default: None)
        Operator overrides, which take precedence over calculated values.
    config: Config (default: None)
    is_rotating: bool (default: None)
        A (debounced) rotation state; if None it is derived from the live
        rotary RPM.

    Returns
    -------
    curve_data: CurveData
    """
    config = DEFAULT_CONFIG if config is None else config
    params = CurveParameters() if params is None else params
    manual = ManualInputs() if manual is None else manual
    params = manual.curve_parameters(params)
    stations = list(stations)

    current_inc, current_azi = _current_attitude(stations, live)

    if is_rotating is None:
        is_rotating = rotation_status(
            None if live is None else live.rotary_rpm,
            config.curve.rotation_rpm_threshold
        )

    avg_build, avg_turn = moving_average_rates(
        stations, config.curve, course_length
    )
    build = avg_build if manual.build_rate is None else manual.build_rate
    turn = avg_turn if manual.turn_rate is None else manual.turn_rate

    prev = stations[-2] if len(stations) > 1 else None
    curr = stations[-1] if stations else None
    yield_ = select_motor_yield(prev, curr, params, config.curve, course_length)
    if manual.motor_yield is not None:
        yield_ = manual.motor_yield

    curve_data = CurveData(
        motor_yield=yield_,
        dogleg_needed=dogleg_needed(
            current_inc, current_azi, params.target_inc, params.target_azi,
            params.projection_distance, course_length
        ),
        slide_seen=slide_seen(
            yield_, params.slide_distance, is_rotating, course_length
        ),
        slide_ahead=slide_ahead(
            yield_, params.slide_distance, params.bit_to_bend, is_rotating,
            course_length
        ),
        projected_inc=projected_inclination(
            current_inc, build, params.projection_distance, course_length
        ),
        projected_azi=projected_azimuth(
            current_azi, turn, params.projection_distance, course_length
        ),
        is_rotating=is_rotating,
        build_rate=build,
        turn_rate=turn,
        slide_distance=params.slide_distance,
        bit_to_bend=params.bit_to_bend,
        bend_angle=params.bend_angle,
        target_distance=params.projection_distance,
        target_inc=params.target_inc,
        target_azi=params.target_azi,
    )

    return manual.apply(curve_data)
