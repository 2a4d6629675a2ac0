"""
Angle Primitives.

Radians are canonical everywhere in skyframe. These helpers convert from
other units, wrap into the documented ranges and validate domains.

Ranges:
    - right ascension, azimuth, sidereal time: [0, 2π)
    - hour angle, longitude: [-π, π)
    - declination, elevation, latitude: [-π/2, π/2]
"""

import math
from dataclasses import dataclass

from skyframe.errors import InvalidCoordinate

TWO_PI = 2.0 * math.pi
HALF_PI = 0.5 * math.pi


def wrap_2pi(x: float) -> float:
    """Wrap an angle into [0, 2π)."""
    r = math.fmod(x, TWO_PI)
    if r < 0.0:
        r += TWO_PI
    # tiny negative inputs round up to exactly 2π
    if r >= TWO_PI:
        r = 0.0
    return r


def wrap_pi(x: float) -> float:
    """Wrap an angle into [-π, π)."""
    r = wrap_2pi(x + math.pi) - math.pi
    return r


def check_finite(value: float, what: str):
    if not math.isfinite(value):
        raise InvalidCoordinate(f"{what} must be finite, got {value}", value)


def check_ra(ra: float) -> float:
    check_finite(ra, "Right ascension")
    if not 0.0 <= ra < TWO_PI:
        raise InvalidCoordinate(f"Right ascension {ra} rad outside [0, 2π)", ra)
    return ra


def check_dec(dec: float, what: str = "Declination") -> float:
    check_finite(dec, what)
    if not -HALF_PI <= dec <= HALF_PI:
        raise InvalidCoordinate(f"{what} {dec} rad outside [-π/2, π/2]", dec)
    return dec


def check_latitude(lat: float) -> float:
    return check_dec(lat, "Latitude")


def check_azimuth(az: float) -> float:
    check_finite(az, "Azimuth")
    if not 0.0 <= az < TWO_PI:
        raise InvalidCoordinate(f"Azimuth {az} rad outside [0, 2π)", az)
    return az


@dataclass(frozen=True)
class Angle:
    """An angle stored in radians, with unit-explicit constructors."""
    radians: float

    @classmethod
    def from_radians(cls, value: float) -> "Angle":
        return cls(float(value))

    @classmethod
    def from_degrees(cls, value: float) -> "Angle":
        return cls(math.radians(value))

    @classmethod
    def from_hours(cls, value: float) -> "Angle":
        return cls(value * math.pi / 12.0)

    @classmethod
    def from_dms(cls, degrees: float, minutes: float = 0.0, seconds: float = 0.0) -> "Angle":
        """
        Sexagesimal degrees. The sign is taken from the first non-zero field,
        so (-0, 30, 0) is -0.5°.
        """
        sign = -1.0 if (math.copysign(1.0, degrees) < 0 or
                        (degrees == 0 and minutes < 0) or
                        (degrees == 0 and minutes == 0 and seconds < 0)) else 1.0
        total = abs(degrees) + abs(minutes) / 60.0 + abs(seconds) / 3600.0
        return cls.from_degrees(sign * total)

    @classmethod
    def from_hms(cls, hours: float, minutes: float = 0.0, seconds: float = 0.0) -> "Angle":
        return cls.from_hours(hours + minutes / 60.0 + seconds / 3600.0)

    @property
    def degrees(self) -> float:
        return math.degrees(self.radians)

    @property
    def hours(self) -> float:
        return self.radians * 12.0 / math.pi

    def wrapped(self) -> "Angle":
        return Angle(wrap_2pi(self.radians))

    def __float__(self):
        return self.radians

    def __str__(self):
        return f"{self.degrees:.6f}°"
