"""
skyframe - coordinate frames, baseline geometry and Jones algebra

Numerical core for radio-interferometric pipelines.

Components:
- Angle/time primitives: Epoch with explicit time scales, sidereal time
- Reference-frame transforms: equatorial <-> horizontal, precession/nutation
- Earth frames: geodetic <-> geocentric <-> tangent plane
- Baseline geometry: UVW per antenna pair and timestep
- Jones algebra: 2x2 complex polarisation matrices

All operations are pure functions of their inputs. Numeric configuration
(ellipsoid, precession provider, nutation policy) is passed explicitly as a
TransformConfig.
"""

__version__ = "0.1.0"

from skyframe.errors import (
    SkyframeError,
    InvalidCoordinate,
    InvalidPosition,
    ConvergenceFailure,
    SingularMatrix,
    TimeScaleError,
)
from skyframe.config import TransformConfig, DEFAULT_CONFIG, load_config
from skyframe.pos import (
    Epoch,
    EquatorialCoord,
    HorizontalCoord,
    GeodeticPosition,
    GeocentricPosition,
    TangentPlanePosition,
    UVW,
    to_horizontal,
    to_equatorial,
    precess,
    geodetic_to_geocentric,
    geocentric_to_geodetic,
    geocentric_to_tangent_plane,
    compute_uvw,
)
from skyframe.jones import JonesMatrix, IDENTITY, ZERO

__all__ = [
    "SkyframeError",
    "InvalidCoordinate",
    "InvalidPosition",
    "ConvergenceFailure",
    "SingularMatrix",
    "TimeScaleError",
    "TransformConfig",
    "DEFAULT_CONFIG",
    "load_config",
    "Epoch",
    "EquatorialCoord",
    "HorizontalCoord",
    "GeodeticPosition",
    "GeocentricPosition",
    "TangentPlanePosition",
    "UVW",
    "to_horizontal",
    "to_equatorial",
    "precess",
    "geodetic_to_geocentric",
    "geocentric_to_geodetic",
    "geocentric_to_tangent_plane",
    "compute_uvw",
    "JonesMatrix",
    "IDENTITY",
    "ZERO",
]
