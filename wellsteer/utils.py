import numpy as np

from .config import get_course_length


class MinCurve:
    def __init__(
        self,
        md,
        inc,
        azi,
        start_nev=[0., 0., 0.],
        unit="feet"
    ):
        """
        Generate positional data from a well bore survey using the minimum
        curvature method.

        Parameters
        ----------
        md: list or 1d array of floats
            Measured depth along well path from a datum, strictly increasing.
        inc: list or 1d array of floats
            Well path inclination (relative to the tvd axis where 0
            indicates down), in radians.
        azi: list or 1d array of floats
            Well path azimuth (relative to North), in radians.
        start_nev: (,3) list or array of floats
            The [north, east, tvd] position of the first station.
        unit: str
            Either "meters" or "feet" to determine the course length of the
            dogleg severity.
        """
        self.md = np.array(md, dtype=float)
        survey_length = len(self.md)
        assert survey_length > 0, "Survey must have at least one row"

        self.inc = np.array(inc, dtype=float)
        self.azi = np.array(azi, dtype=float)
        self.start_nev = np.array(start_nev, dtype=float)
        self.unit = unit

        # make two slices with a difference or 1 index to enable array
        # calculations
        inc_1, inc_2 = self._split_arr(self.inc)
        azi_1, azi_2 = self._split_arr(self.azi)

        self.dogleg = self._get_dogleg(
            survey_length, inc_1, azi_1, inc_2, azi_2
        )

        # calculate rf and assume rf is 1 where dogleg is 0
        self.rf = self._get_rf(survey_length, self.dogleg)

        self.delta_md = np.zeros(survey_length)
        self.delta_md[1:] = np.diff(self.md)

        args = (
            self.delta_md, inc_1, azi_1, inc_2, azi_2, self.rf, survey_length
        )

        self.delta_n = self._get_delta_n(*args)
        self.delta_e = self._get_delta_e(*args)
        self.delta_tvd = self._get_delta_tvd(*args)

        self.dls = self._get_dls(
            self.dogleg, self.delta_md, survey_length, unit
        )

        # cumulate the coordinates and add the tie-on position
        self.pos_nev = np.cumsum(
            np.array([self.delta_n, self.delta_e, self.delta_tvd]).T, axis=0
        ) + self.start_nev

    @staticmethod
    def _get_dogleg(survey_length, inc1, azi1, inc2, azi2):
        dogleg = np.zeros(survey_length)
        dogleg[1:] = np.arccos(np.clip(
            np.cos(inc2 - inc1)
            - (np.sin(inc1) * np.sin(inc2))
            * (1 - np.cos(azi2 - azi1)),
            -1., 1.
        ))
        return dogleg

    @staticmethod
    def _split_arr(arr):
        return (arr[:-1], arr[1:])

    @staticmethod
    def _get_rf(survey_length, dogleg):
        rf = np.ones(survey_length)
        idx = np.where(dogleg != 0)
        rf[idx] = np.tan(dogleg[idx] / 2) / (dogleg[idx] / 2)
        return rf

    @staticmethod
    def _get_delta_n(delta_md, inc_1, azi_1, inc_2, azi_2, rf, survey_length):
        delta_n = np.zeros(survey_length)
        delta_n[1:] = (
            delta_md[1:]
            / 2
            * (
                np.sin(inc_1) * np.cos(azi_1)
                + np.sin(inc_2) * np.cos(azi_2)
            )
            * rf[1:]
        )
        return delta_n

    @staticmethod
    def _get_delta_e(delta_md, inc_1, azi_1, inc_2, azi_2, rf, survey_length):
        delta_e = np.zeros(survey_length)
        delta_e[1:] = (
            delta_md[1:]
            / 2
            * (
                np.sin(inc_1) * np.sin(azi_1)
                + np.sin(inc_2) * np.sin(azi_2)
            )
            * rf[1:]
        )
        return delta_e

    @staticmethod
    def _get_delta_tvd(
        delta_md, inc_1, azi_1, inc_2, azi_2, rf, survey_length
    ):
        delta_tvd = np.zeros(survey_length)
        delta_tvd[1:] = (
            delta_md[1:]
            / 2
            * (np.cos(inc_1) + np.cos(inc_2))
            * rf[1:]
        )
        return delta_tvd

    @staticmethod
    def _get_dls(dogleg, delta_md, survey_length, unit):
        dls = np.zeros(survey_length)
        with np.errstate(divide='ignore', invalid='ignore'):
            temp = np.degrees(dogleg[1:]) / delta_md[1:]
        dls[1:] = np.nan_to_num(temp, nan=0., posinf=0., neginf=0.)

        return dls * get_course_length(unit)


def normalize_azimuth(azi):
    """
    Wrap an azimuth in degrees into the [0, 360) range.
    """
    azi = np.mod(azi, 360.)
    # np.mod(-1e-17, 360) rounds to 360.0
    return np.where(azi >= 360., 0., azi) if np.ndim(azi) else (
        0. if azi >= 360. else float(azi)
    )


def wrap_angle_difference(delta, period=360.):
    """
    Wrap an angular difference into the (-period/2, period/2] range, e.g. a
    turn from 350 to 10 degrees is +20 and not -340.
    """
    half = period / 2
    wrapped = half - np.mod(half - np.asarray(delta, dtype=float), period)
    return float(wrapped) if np.ndim(wrapped) == 0 else wrapped


def get_dogleg(inc1, azi1, inc2, azi2, deg=True):
    """
    Returns the dogleg between two attitudes using the spherical law of
    cosines, in the same angle unit as the inputs.
    """
    if deg:
        inc1, azi1, inc2, azi2 = np.radians([inc1, azi1, inc2, azi2])
    dogleg = np.arccos(np.clip(
        np.cos(inc1) * np.cos(inc2)
        + np.sin(inc1) * np.sin(inc2) * np.cos(azi1 - azi2),
        -1., 1.
    ))

    return float(np.degrees(dogleg)) if deg else float(dogleg)
