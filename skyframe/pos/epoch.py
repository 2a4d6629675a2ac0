"""
Epochs and Time Scales.

An Epoch is a two-part Julian date tagged with its time scale. Conversions
between scales are always explicit (Epoch.to_scale) and go through TAI
using ERFA's leap-second table. Arithmetic between epochs in different
scales is refused.

Supported scales: 'utc', 'tai', 'tt', 'ut1'.
"""

import datetime as _dt
from dataclasses import dataclass

import erfa

from skyframe.constants import (
    DAYSEC, DAYS_PER_JULIAN_YEAR, GPS_EPOCH_JD, J2000_JD, MJD_OFFSET, TAI_MINUS_GPS,
)
from skyframe.errors import TimeScaleError

SCALES = ("utc", "tai", "tt", "ut1")


def _check_scale(scale: str) -> str:
    scale = str(scale).lower()
    if scale not in SCALES:
        raise TimeScaleError(f"Unknown time scale '{scale}'. Known: {SCALES}", scale)
    return scale


@dataclass(frozen=True)
class Epoch:
    """
    Instant in a named time scale.

    Attributes
    ----------
    jd1, jd2 : float
        Two-part Julian date; jd1 + jd2 is the date. Keeping the parts
        separate preserves sub-microsecond precision.
    scale : str
        One of 'utc', 'tai', 'tt', 'ut1'
    """
    jd1: float
    jd2: float
    scale: str

    def __post_init__(self):
        object.__setattr__(self, "scale", _check_scale(self.scale))

    # -------------------------------------------------------------------------
    # Constructors
    # -------------------------------------------------------------------------

    @classmethod
    def from_jd(cls, jd: float, jd2: float = 0.0, scale: str = "utc") -> "Epoch":
        return cls(float(jd), float(jd2), scale)

    @classmethod
    def from_mjd(cls, mjd: float, scale: str = "utc") -> "Epoch":
        return cls(MJD_OFFSET, float(mjd), scale)

    @classmethod
    def from_datetime(cls, dt: _dt.datetime, scale: str = "utc") -> "Epoch":
        """
        From a calendar datetime. Naive values are read as already being in
        `scale`. Timezone-aware values are civil time: they are read as UTC
        and then converted to `scale`.
        """
        scale = _check_scale(scale)
        if dt.tzinfo is not None:
            utc = dt.astimezone(_dt.timezone.utc).replace(tzinfo=None)
            return cls.from_datetime(utc, "utc").to_scale(scale)
        sec = dt.second + dt.microsecond * 1e-6
        d1, d2 = erfa.dtf2d(scale.upper().encode("ascii"), dt.year, dt.month, dt.day,
                            dt.hour, dt.minute, sec)
        return cls(float(d1), float(d2), scale)

    @classmethod
    def from_iso(cls, text: str, scale: str = "utc") -> "Epoch":
        """Parse an ISO 8601 string, e.g. '2024-03-01T12:00:00'."""
        return cls.from_datetime(_dt.datetime.fromisoformat(text), scale)

    @classmethod
    def from_gps_seconds(cls, gps_seconds: float) -> "Epoch":
        """GPS seconds since 1980-01-06T00:00:00 UTC, returned in TAI."""
        return cls(GPS_EPOCH_JD, (gps_seconds + TAI_MINUS_GPS) / DAYSEC, "tai")

    @classmethod
    def from_julian_year(cls, year: float) -> "Epoch":
        """Julian epoch (e.g. 2000.0 for J2000.0), in TT."""
        d1, d2 = erfa.epj2jd(year)
        return cls(float(d1), float(d2), "tt")

    # -------------------------------------------------------------------------
    # Scale conversion
    # -------------------------------------------------------------------------

    def _to_tai(self, dut1: float):
        if self.scale == "tai":
            return self.jd1, self.jd2
        if self.scale == "utc":
            return erfa.utctai(self.jd1, self.jd2)
        if self.scale == "tt":
            return erfa.tttai(self.jd1, self.jd2)
        # ut1
        u1, u2 = erfa.ut1utc(self.jd1, self.jd2, dut1)
        return erfa.utctai(u1, u2)

    def to_scale(self, scale: str, dut1: float = 0.0) -> "Epoch":
        """
        Convert to another time scale.

        Parameters
        ----------
        scale : str
            Target scale
        dut1 : float
            UT1 - UTC in seconds, used only when UT1 is involved

        Returns
        -------
        epoch : Epoch
        """
        scale = _check_scale(scale)
        if scale == self.scale:
            return self

        tai1, tai2 = self._to_tai(dut1)
        if scale == "tai":
            d1, d2 = tai1, tai2
        elif scale == "tt":
            d1, d2 = erfa.taitt(tai1, tai2)
        else:
            u1, u2 = erfa.taiutc(tai1, tai2)
            if scale == "utc":
                d1, d2 = u1, u2
            else:
                d1, d2 = erfa.utcut1(u1, u2, dut1)
        return Epoch(float(d1), float(d2), scale)

    def to_tt(self, dut1: float = 0.0) -> "Epoch":
        return self.to_scale("tt", dut1)

    def to_ut1(self, dut1: float = 0.0) -> "Epoch":
        return self.to_scale("ut1", dut1)

    def to_utc(self, dut1: float = 0.0) -> "Epoch":
        return self.to_scale("utc", dut1)

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    @property
    def jd(self) -> float:
        return self.jd1 + self.jd2

    @property
    def mjd(self) -> float:
        return (self.jd1 - MJD_OFFSET) + self.jd2

    @property
    def julian_year(self) -> float:
        """Julian epoch of this instant, evaluated on TT."""
        tt = self.to_tt()
        return float(erfa.epj(tt.jd1, tt.jd2))

    @property
    def centuries_since_j2000(self) -> float:
        """Julian centuries of TT since J2000.0."""
        tt = self.to_tt()
        return ((tt.jd1 - J2000_JD) + tt.jd2) / (100.0 * DAYS_PER_JULIAN_YEAR)

    @property
    def gps_seconds(self) -> float:
        tai = self.to_scale("tai")
        return ((tai.jd1 - GPS_EPOCH_JD) + tai.jd2) * DAYSEC - TAI_MINUS_GPS

    # -------------------------------------------------------------------------
    # Arithmetic
    # -------------------------------------------------------------------------

    def __add__(self, seconds):
        if isinstance(seconds, Epoch):
            return NotImplemented
        return Epoch(self.jd1, self.jd2 + float(seconds) / DAYSEC, self.scale)

    def __sub__(self, other):
        if isinstance(other, Epoch):
            if other.scale != self.scale:
                raise TimeScaleError(
                    f"Cannot subtract a {other.scale} epoch from a {self.scale} epoch; "
                    "convert with to_scale() first",
                    (self.scale, other.scale),
                )
            return ((self.jd1 - other.jd1) + (self.jd2 - other.jd2)) * DAYSEC
        return self + (-float(other))

    def __str__(self):
        return f"{self.scale.upper()} JD {self.jd1 + self.jd2:.8f}"
