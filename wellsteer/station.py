from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np
from pydantic import BaseModel, ConfigDict


class QualityStatus(Enum):
    PASS: str = "pass"
    WARNING: str = "warning"
    FAIL: str = "fail"

    @property
    def severity(self) -> int:
        return {
            QualityStatus.PASS: 0,
            QualityStatus.WARNING: 1,
            QualityStatus.FAIL: 2
        }[self]


class QualityCheck(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: QualityStatus
    message: str
    details: Tuple[str, ...] = ()


# alternate keys used by survey tables, WITS records and importers
STATION_KEYS = dict(
    md=('md', 'measuredDepth', 'measured_depth'),
    inc=('inc', 'inclination'),
    azi=('azi', 'az', 'azimuth'),
    toolface=('toolface', 'toolFace', 'tool_face'),
    gamma=('gamma',),
    vibration=('vibration',),
    tool_temp=('tool_temp', 'toolTemp'),
    timestamp=('timestamp',),
)


def _find_value(data, keys):
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


class SurveyStation(BaseModel):
    """
    A single directional survey reading taken while drilling.

    Parameters
    ----------
    md: float
        Measured depth along the well path.
    inc: float
        Inclination from vertical in degrees.
    azi: float
        Azimuth from north in degrees.
    toolface, gamma, vibration, tool_temp: float (default: None)
        Optional sensor readings carried with the survey.
    timestamp: datetime (default: None)

    Notes
    -----
    Readings are deliberately not range checked here; an out of range
    inclination or azimuth still takes part in the trajectory calculation and
    is flagged by ``wellsteer.quality.classify`` instead.
    """
    model_config = ConfigDict(frozen=True)

    md: float
    inc: float
    azi: float
    toolface: Optional[float] = None
    gamma: Optional[float] = None
    vibration: Optional[float] = None
    tool_temp: Optional[float] = None
    timestamp: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: dict) -> "SurveyStation":
        """
        Create a station from a record with any of the common key spellings,
        e.g. ``{'measuredDepth': 1000, 'inclination': 30, 'azimuth': 90}``.

        If no measured depth is present then ``bitDepth - sensorOffset`` is
        used.
        """
        kwargs = {
            field: _find_value(data, keys)
            for field, keys in STATION_KEYS.items()
        }
        if kwargs['md'] is None:
            bit_depth = data.get('bitDepth')
            sensor_offset = data.get('sensorOffset')
            if bit_depth is not None and sensor_offset is not None:
                kwargs['md'] = bit_depth - sensor_offset
        for field in ('inc', 'azi'):
            if kwargs[field] is None:
                kwargs[field] = 0.

        return cls(**{k: v for k, v in kwargs.items() if v is not None})

    @property
    def inc_rad(self) -> float:
        return np.radians(self.inc)

    @property
    def azi_rad(self) -> float:
        return np.radians(self.azi)


class TrajectoryPoint(SurveyStation):
    """
    A survey station with its minimum curvature position.

    ``n`` and ``e`` are the north-south and east-west displacements from the
    surface location and ``dls`` is the dogleg severity of the interval
    ending at this station.
    """
    tvd: float = 0.
    n: float = 0.
    e: float = 0.
    dls: float = 0.
    quality: Optional[QualityCheck] = None

    @property
    def pos_nev(self) -> np.ndarray:
        return np.array([self.n, self.e, self.tvd])

    @property
    def station(self) -> SurveyStation:
        return SurveyStation(**{
            k: getattr(self, k) for k in SurveyStation.model_fields
        })


class OffsetWell(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    color: str = '#ff0088'
    points: Tuple[TrajectoryPoint, ...] = ()


class CurveParameters(BaseModel):
    """
    Operator supplied slide and projection parameters (feet and degrees).
    """
    model_config = ConfigDict(frozen=True)

    slide_distance: float = 30.
    bend_angle: float = 2.
    bit_to_bend: float = 5.
    target_inc: float = 90.
    target_azi: float = 270.
    projection_distance: float = 100.


class TargetLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    tvd: float
    vertical_section: float = 0.
    inc: float = 90.
    azi: float = 0.


def as_stations(data) -> List[SurveyStation]:
    """
    Coerce a sequence of stations, dicts or (md, inc, azi) rows into
    ``SurveyStation`` instances.
    """
    stations = []
    for row in data:
        if isinstance(row, SurveyStation):
            stations.append(row)
        elif isinstance(row, dict):
            stations.append(SurveyStation.from_dict(row))
        else:
            md, inc, azi = row[:3]
            stations.append(SurveyStation(md=md, inc=inc, azi=azi))

    return stations
