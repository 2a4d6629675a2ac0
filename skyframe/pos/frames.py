"""
Sky Coordinate Types.

Immutable value types for positions on the sky, plus the vectorised
spherical rotations between hour angle/declination and azimuth/elevation.

Conventions:
    - all angles in radians
    - azimuth is measured from north through east, in [0, 2π)
    - hour angle is positive to the west
    - at the zenith azimuth is undefined and reported as 0
"""

import math
from dataclasses import dataclass
from typing import Any, Optional

import numpy as np

from skyframe.constants import MWA_LAT_RAD
from skyframe.pos.angles import (
    HALF_PI, TWO_PI, check_azimuth, check_dec, check_finite, check_ra, wrap_2pi, wrap_pi,
)

# Horizontal distance from the pole of the rotated frame (in direction-cosine
# units) below which azimuth / hour angle are reported as 0.
POLE_EPS = 1e-14


# =============================================================================
# Vectorised rotations
# =============================================================================

def hadec_to_horizontal(ha, dec, latitude):
    """
    Hour angle / declination to azimuth / elevation.

    Parameters
    ----------
    ha, dec : float or ndarray
        Hour angle and declination in radians
    latitude : float or ndarray
        Observer geodetic latitude in radians

    Returns
    -------
    az : float or ndarray
        Azimuth in [0, 2π), north through east
    el : float or ndarray
        Elevation in [-π/2, π/2]
    """
    sh, ch = np.sin(ha), np.cos(ha)
    sd, cd = np.sin(dec), np.cos(dec)
    sp, cp = np.sin(latitude), np.cos(latitude)

    x = -ch * cd * sp + sd * cp
    y = -sh * cd
    z = ch * cd * cp + sd * sp

    r = np.hypot(x, y)
    az = np.where(r > POLE_EPS, np.arctan2(y, x), 0.0)
    az = np.mod(az, TWO_PI)
    az = np.where(az >= TWO_PI, 0.0, az)
    el = np.arctan2(z, r)

    if np.ndim(az) == 0:
        return float(az), float(el)
    return az, el


def horizontal_to_hadec(az, el, latitude):
    """
    Azimuth / elevation to hour angle / declination.

    Parameters
    ----------
    az, el : float or ndarray
        Azimuth (north through east) and elevation in radians
    latitude : float or ndarray
        Observer geodetic latitude in radians

    Returns
    -------
    ha : float or ndarray
        Hour angle in [-π, π]
    dec : float or ndarray
        Declination in [-π/2, π/2]
    """
    sa, ca = np.sin(az), np.cos(az)
    se, ce = np.sin(el), np.cos(el)
    sp, cp = np.sin(latitude), np.cos(latitude)

    x = -ca * ce * sp + se * cp
    y = -sa * ce
    z = ca * ce * cp + se * sp

    r = np.hypot(x, y)
    ha = np.where(r > POLE_EPS, np.arctan2(y, x), 0.0)
    dec = np.arctan2(z, r)

    if np.ndim(ha) == 0:
        return float(ha), float(dec)
    return ha, dec


def parallactic_angle(ha, dec, latitude):
    """
    Parallactic angle.

    tan(ψ) = cos(φ) sin(HA) / (sin(φ) cos(δ) - cos(φ) sin(δ) cos(HA))

    Written without tan(φ), so it is regular at the poles.

    Parameters
    ----------
    ha : float or ndarray
        Hour angle in radians
    dec : float or ndarray
        Source declination in radians
    latitude : float or ndarray
        Observatory latitude in radians

    Returns
    -------
    psi : float or ndarray
        Parallactic angle in radians; 0 where undefined (source at zenith)
    """
    cp = np.cos(latitude)
    sqsz = cp * np.sin(ha)
    cqsz = np.sin(latitude) * np.cos(dec) - cp * np.sin(dec) * np.cos(ha)
    psi = np.where((sqsz != 0) | (cqsz != 0), np.arctan2(sqsz, cqsz), 0.0)
    if np.ndim(psi) == 0:
        return float(psi)
    return psi


# =============================================================================
# Value types
# =============================================================================

@dataclass(frozen=True)
class LMN:
    """Direction cosines relative to a phase centre."""
    l: float
    m: float
    n: float

    def to_array(self) -> np.ndarray:
        return np.array([self.l, self.m, self.n])


@dataclass(frozen=True)
class HADec:
    """Hour angle and declination [radians]."""
    ha: float
    dec: float

    def __post_init__(self):
        check_finite(self.ha, "Hour angle")
        check_dec(self.dec)

    @classmethod
    def from_degrees(cls, ha_deg: float, dec_deg: float) -> "HADec":
        return cls(math.radians(ha_deg), math.radians(dec_deg))

    def to_horizontal(self, latitude: float) -> "HorizontalCoord":
        az, el = hadec_to_horizontal(self.ha, self.dec, latitude)
        return HorizontalCoord(az, el)

    def to_equatorial(self, lst: float, equinox: Optional[float] = None) -> "EquatorialCoord":
        return EquatorialCoord(wrap_2pi(lst - self.ha), self.dec, equinox)

    def parallactic_angle(self, latitude: float) -> float:
        return parallactic_angle(self.ha, self.dec, latitude)


@dataclass(frozen=True)
class EquatorialCoord:
    """
    Right ascension and declination [radians].

    Attributes
    ----------
    ra : float
        Right ascension in [0, 2π)
    dec : float
        Declination in [-π/2, π/2]
    equinox : float or None
        Julian epoch of the equator/equinox the coordinates refer to
        (2000.0 for J2000). None means "of date": already referred to the
        equator and equinox of whatever instant they are used at.
    """
    ra: float
    dec: float
    equinox: Optional[float] = 2000.0

    def __post_init__(self):
        check_ra(self.ra)
        check_dec(self.dec)

    @classmethod
    def from_degrees(cls, ra_deg: float, dec_deg: float,
                     equinox: Optional[float] = 2000.0) -> "EquatorialCoord":
        return cls(wrap_2pi(math.radians(ra_deg)), math.radians(dec_deg), equinox)

    def to_hadec(self, lst: float) -> HADec:
        """Hour angle for a local sidereal time, assuming compatible frames."""
        return HADec(wrap_pi(lst - self.ra), self.dec)

    def to_unit_vector(self) -> np.ndarray:
        cd = math.cos(self.dec)
        return np.array([cd * math.cos(self.ra), cd * math.sin(self.ra), math.sin(self.dec)])

    @classmethod
    def from_unit_vector(cls, v, equinox: Optional[float] = 2000.0) -> "EquatorialCoord":
        x, y, z = (float(c) for c in v)
        ra = wrap_2pi(math.atan2(y, x)) if (x != 0.0 or y != 0.0) else 0.0
        dec = math.atan2(z, math.hypot(x, y))
        return cls(ra, dec, equinox)

    def separation(self, other: "EquatorialCoord") -> float:
        """Great-circle distance in radians (Vincenty formula)."""
        d_ra = other.ra - self.ra
        s1, c1 = math.sin(self.dec), math.cos(self.dec)
        s2, c2 = math.sin(other.dec), math.cos(other.dec)
        num1 = c2 * math.sin(d_ra)
        num2 = c1 * s2 - s1 * c2 * math.cos(d_ra)
        den = s1 * s2 + c1 * c2 * math.cos(d_ra)
        return math.atan2(math.hypot(num1, num2), den)

    def to_lmn(self, phase_center: "EquatorialCoord") -> LMN:
        """Direction cosines of this position relative to `phase_center`."""
        d_ra = self.ra - phase_center.ra
        s_dec, c_dec = math.sin(self.dec), math.cos(self.dec)
        p_s_dec, p_c_dec = math.sin(phase_center.dec), math.cos(phase_center.dec)
        return LMN(
            c_dec * math.sin(d_ra),
            s_dec * p_c_dec - c_dec * p_s_dec * math.cos(d_ra),
            s_dec * p_s_dec + c_dec * p_c_dec * math.cos(d_ra),
        )

    def __str__(self):
        tag = "of date" if self.equinox is None else f"J{self.equinox:.3f}"
        return f"({math.degrees(self.ra):.4f}°, {math.degrees(self.dec):.4f}° {tag})"


@dataclass(frozen=True)
class HorizontalCoord:
    """
    Azimuth and elevation [radians], derived for a location and time.

    `location` and `epoch` record what the coordinates were computed for;
    they are None when built directly from angles.
    """
    az: float
    el: float
    location: Optional[Any] = None
    epoch: Optional[Any] = None

    def __post_init__(self):
        check_azimuth(self.az)
        check_dec(self.el, "Elevation")

    @classmethod
    def from_degrees(cls, az_deg: float, el_deg: float) -> "HorizontalCoord":
        return cls(wrap_2pi(math.radians(az_deg)), math.radians(el_deg))

    @property
    def za(self) -> float:
        """Zenith angle in radians."""
        return HALF_PI - self.el

    def to_hadec(self, latitude: float) -> HADec:
        ha, dec = horizontal_to_hadec(self.az, self.el, latitude)
        return HADec(ha, dec)

    def to_hadec_mwa(self) -> HADec:
        """Hour angle and declination as seen from the MWA site."""
        return self.to_hadec(MWA_LAT_RAD)

    def __str__(self):
        return f"({math.degrees(self.az):.4f}°, {math.degrees(self.el):.4f}°)"
