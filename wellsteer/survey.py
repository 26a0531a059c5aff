import logging
import math
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from .config import QualityLimits, get_course_length
from .quality import classify
from .station import SurveyStation, TrajectoryPoint, as_stations
from .utils import MinCurve

logger = logging.getLogger(__name__)

SURFACE = SurveyStation(md=0., inc=0., azi=0.)


def _accepted_stations(stations):
    """
    Scan front to back, keeping only stations with a finite attitude that are
    deeper than the last accepted one. The first accepted station is always
    the surface point, returned with an index of None.

    Returns the accepted (index, station) pairs and the number of stations
    dropped. A first station at md 0 is the surface tie-on and is replaced by
    the surface point without counting as dropped.
    """
    accepted = [(None, SURFACE)]
    dropped = 0

    for i, station in enumerate(stations):
        if i == 0 and station.md == 0:
            continue
        delta_md = station.md - accepted[-1][1].md
        # also rejects a nan md
        if not delta_md > 0:
            logger.debug(
                f"Dropping station at md {station.md}: delta md {delta_md}"
            )
            dropped += 1
            continue
        if not (math.isfinite(station.inc) and math.isfinite(station.azi)):
            logger.debug(
                f"Dropping station at md {station.md}: inc {station.inc}, "
                f"azi {station.azi}"
            )
            dropped += 1
            continue
        accepted.append((i, station))

    return (accepted, dropped)


def integrate(
    stations: Sequence[SurveyStation],
    unit: str = 'feet',
    limits: Optional[QualityLimits] = None,
    classify_stations: bool = True
) -> List[TrajectoryPoint]:
    """
    Calculate the well path from an ordered sequence of survey stations using
    the minimum curvature method.

    Parameters
    ----------
    stations: list of SurveyStation (or dicts or (md, inc, azi) rows)
        The surveys ordered by measured depth. A station whose measured depth
        does not increase on the previously accepted station, or with a
        non-finite inclination or azimuth, is dropped.
    unit: str (default: 'feet')
        Either "feet" or "meters", sets the course length of the dls.
    limits: QualityLimits (default: None)
        Limits for the quality check attached to each point.
    classify_stations: bool (default: True)
        If False, no quality check is attached to the points.

    Returns
    -------
    points: list of TrajectoryPoint
        The surface point (md, inc, azi, tvd, n and e all 0) followed by one
        point per accepted station. A first station at md 0 is the surface
        tie-on and is replaced by the surface point.

    Examples
    --------
    >>> points = integrate([(0, 0, 0), (1000, 30, 90)])
    >>> round(points[-1].tvd, 2), round(points[-1].e, 2)
    (954.93, 255.87)
    """
    stations = as_stations(stations)
    accepted, dropped = _accepted_stations(stations)

    mc = MinCurve(
        md=[s.md for _, s in accepted],
        inc=np.radians([s.inc for _, s in accepted]),
        azi=np.radians([s.azi for _, s in accepted]),
        unit=unit
    )

    points = []
    for (i, station), (n, e, tvd), dls in zip(accepted, mc.pos_nev, mc.dls):
        quality = None
        if classify_stations and i is not None:
            # checked against the previous input station, dropped or not
            quality = classify(
                station, stations[i - 1] if i > 0 else None, limits, unit
            )
        points.append(TrajectoryPoint(
            **{k: getattr(station, k) for k in SurveyStation.model_fields},
            n=n, e=e, tvd=tvd, dls=dls,
            quality=quality
        ))

    if dropped:
        logger.info(f"{dropped} station(s) excluded from the trajectory")

    return points


class Trajectory:
    def __init__(
        self,
        stations,
        unit: str = 'feet',
        vertical_section_azimuth: Optional[float] = None,
        limits: Optional[QualityLimits] = None,
        name: Optional[str] = None
    ):
        """
        A well trajectory integrated from survey stations.

        Parameters
        ----------
        stations: list of SurveyStation (or dicts or (md, inc, azi) rows)
            The survey listing ordered by measured depth.
        unit: str (default: 'feet')
            Either "feet" or "meters".
        vertical_section_azimuth: float (default: None)
            The azimuth in degrees along which the vertical section is
            calculated. If None, the azimuth from surface to the last
            station is used.
        limits: QualityLimits (default: None)
            Limits for the quality checks.
        name: str (default: None)
            The well name.
        """
        get_course_length(unit)
        self.unit = unit
        self.name = name
        self.stations = as_stations(stations)
        self.points = integrate(self.stations, unit=unit, limits=limits)

        self.md = np.array([p.md for p in self.points])
        self.inc_deg = np.array([p.inc for p in self.points])
        self.azi_deg = np.array([p.azi for p in self.points])
        self.n = np.array([p.n for p in self.points])
        self.e = np.array([p.e for p in self.points])
        self.tvd = np.array([p.tvd for p in self.points])
        self.dls = np.array([p.dls for p in self.points])

        if vertical_section_azimuth is None:
            vertical_section_azimuth = self._closure_azimuth()
        self.set_vertical_section(vertical_section_azimuth)

    def __len__(self):
        return len(self.points)

    def __getitem__(self, idx):
        return self.points[idx]

    @property
    def pos_nev(self) -> np.ndarray:
        return np.array([self.n, self.e, self.tvd]).T.reshape(-1, 3)

    @property
    def latest(self) -> TrajectoryPoint:
        return self.points[-1]

    @property
    def previous(self) -> Optional[TrajectoryPoint]:
        return self.points[-2] if len(self.points) > 1 else None

    def _closure_azimuth(self):
        if math.hypot(self.n[-1], self.e[-1]) == 0:
            return 0.
        return math.degrees(math.atan2(self.e[-1], self.n[-1])) % 360

    def get_vertical_section(self, vertical_section_azimuth, deg=True):
        """
        Calculate the vertical section, the horizontal displacement projected
        onto the vertical section azimuth.

        Parameters
        ----------
        vertical_section_azimuth: float
            The azimuth along which to project.
        deg: boolean (default: True)
            Indicates whether the azimuth is in degrees or radians.

        Returns
        -------
        result: (n,) ndarray
        """
        azi = (
            math.radians(vertical_section_azimuth) if deg
            else vertical_section_azimuth
        )
        return self.n * math.cos(azi) + self.e * math.sin(azi)

    def set_vertical_section(self, vertical_section_azimuth, deg=True):
        self.vertical_section_azimuth = (
            vertical_section_azimuth if deg
            else math.degrees(vertical_section_azimuth)
        )
        self.vertical_section = self.get_vertical_section(
            vertical_section_azimuth, deg
        )

    def to_df(self) -> pd.DataFrame:
        return trajectory_to_df(self)


def trajectory_to_df(trajectory: Trajectory) -> pd.DataFrame:
    unit = 'ft' if trajectory.unit == 'feet' else 'm'
    course = int(get_course_length(trajectory.unit))
    data = {
        f'MD ({unit})': trajectory.md,
        'INC (deg)': trajectory.inc_deg,
        'AZI (deg)': trajectory.azi_deg,
        f'TVD ({unit})': trajectory.tvd,
        f'NS ({unit})': trajectory.n,
        f'EW ({unit})': trajectory.e,
        f'VS ({unit})': trajectory.vertical_section,
        f'DLS (deg/{course}{unit})': trajectory.dls,
        'QUALITY': [
            None if p.quality is None else p.quality.status.value
            for p in trajectory.points
        ],
    }

    df = pd.DataFrame(data)

    return df
