"""
Numeric Constants.

These values are part of the public contract; changing any of them changes
every derived position and is a breaking change.

Units:
    - lengths in metres
    - angles in radians
    - times in days (Julian dates) or seconds where noted
"""

from dataclasses import dataclass, field
import math


@dataclass(frozen=True)
class Ellipsoid:
    """
    Reference ellipsoid.

    Parameters
    ----------
    name : str
        Identifier, e.g. 'WGS84'
    a : float
        Semi-major (equatorial) axis in metres
    f : float
        Flattening
    """
    name: str
    a: float
    f: float
    b: float = field(init=False)
    e2: float = field(init=False)
    ep2: float = field(init=False)

    def __post_init__(self):
        if not (self.a > 0 and 0 <= self.f < 1):
            raise ValueError(f"Invalid ellipsoid parameters: a={self.a}, f={self.f}")
        b = self.a * (1.0 - self.f)
        e2 = self.f * (2.0 - self.f)
        # frozen dataclass: derived fields go through object.__setattr__
        object.__setattr__(self, "b", b)
        object.__setattr__(self, "e2", e2)
        object.__setattr__(self, "ep2", e2 / (1.0 - e2))


# =============================================================================
# Earth models
# =============================================================================

WGS84 = Ellipsoid("WGS84", 6378137.0, 1.0 / 298.257223563)
GRS80 = Ellipsoid("GRS80", 6378137.0, 1.0 / 298.257222101)

ELLIPSOIDS = {
    "WGS84": WGS84,
    "GRS80": GRS80,
}

# =============================================================================
# Physical and time constants
# =============================================================================

# Speed of light in vacuum [m/s]
VEL_C = 299_792_458.0

# Julian date of the J2000.0 epoch (2000-01-01T12:00:00 TT)
J2000_JD = 2451545.0

# JD - MJD
MJD_OFFSET = 2400000.5

# Seconds per day
DAYSEC = 86400.0

# Days per Julian century / year
DAYS_PER_JULIAN_CENTURY = 36525.0
DAYS_PER_JULIAN_YEAR = 365.25

# Ratio of a mean solar day to a mean sidereal day
SOLAR2SIDEREAL = 1.00274

# GPS epoch 1980-01-06T00:00:00 UTC as a Julian date (UTC == TAI - 19 s then)
GPS_EPOCH_JD = 2444244.5

# TAI - GPS [s], constant by definition
TAI_MINUS_GPS = 19.0

# Arcseconds to radians
ARCSEC2RAD = math.pi / (180.0 * 3600.0)

# =============================================================================
# Murchison Widefield Array site
# =============================================================================

MWA_LAT_DEG = -26.703319405555554
MWA_LONG_DEG = 116.67081523611111
MWA_LAT_RAD = math.radians(MWA_LAT_DEG)
MWA_LONG_RAD = math.radians(MWA_LONG_DEG)
MWA_HEIGHT_M = 377.827
