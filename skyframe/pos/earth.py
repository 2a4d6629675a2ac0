"""
Geodetic / Geocentric Conversion.

Positions of the same physical point in four frames:

    GeodeticPosition      latitude, longitude [rad], height above ellipsoid [m]
    GeocentricPosition    X, Y, Z earth-centred earth-fixed [m]
    TangentPlanePosition  east, north, height about a geodetic origin [m]
    LocalXYZ              geocentric rotated by the origin longitude [m]:
                          X to (HA=0, dec=0), Y east, Z to the celestial pole

LocalXYZ is the frame baseline vectors are expressed in before projection
to UVW. All conversions between these frames are exact inverses up to
rounding; convert_position dispatches over every meaningful pair.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np

from skyframe.constants import (
    Ellipsoid, MWA_HEIGHT_M, MWA_LAT_RAD, MWA_LONG_RAD, WGS84,
)
from skyframe.errors import ConvergenceFailure, InvalidPosition
from skyframe.pos.angles import HALF_PI, check_latitude

logger = logging.getLogger(__name__)

# Bowring iteration defaults
GEODETIC_TOL = 1e-12
GEODETIC_MAX_ITER = 10


def _check_finite(values, what: str):
    arr = np.asarray(values, dtype=np.float64)
    if not np.all(np.isfinite(arr)):
        raise InvalidPosition(f"{what} must be finite, got {values}", values)


# =============================================================================
# Position types
# =============================================================================

@dataclass(frozen=True)
class GeodeticPosition:
    """Latitude, east longitude [radians] and height above the ellipsoid [m]."""
    latitude: float
    longitude: float
    height: float = 0.0

    def __post_init__(self):
        _check_finite((self.latitude, self.longitude, self.height), "Geodetic position")
        check_latitude(self.latitude)

    @classmethod
    def from_degrees(cls, lat_deg: float, long_deg: float, height: float = 0.0) -> "GeodeticPosition":
        return cls(math.radians(lat_deg), math.radians(long_deg), height)

    def to_array(self) -> np.ndarray:
        return np.array([self.latitude, self.longitude, self.height])


@dataclass(frozen=True)
class GeocentricPosition:
    """Earth-centred earth-fixed Cartesian position [m]."""
    x: float
    y: float
    z: float

    def __post_init__(self):
        _check_finite((self.x, self.y, self.z), "Geocentric position")

    def to_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z])

    def __sub__(self, other: "GeocentricPosition") -> np.ndarray:
        return self.to_array() - other.to_array()


@dataclass(frozen=True)
class TangentPlanePosition:
    """East, north, height [m] relative to a geodetic origin."""
    east: float
    north: float
    height: float

    def __post_init__(self):
        _check_finite((self.east, self.north, self.height), "Tangent-plane position")

    def to_array(self) -> np.ndarray:
        return np.array([self.east, self.north, self.height])


@dataclass(frozen=True)
class LocalXYZ:
    """Geocentric offset rotated to the origin meridian [m]."""
    x: float
    y: float
    z: float

    def __post_init__(self):
        _check_finite((self.x, self.y, self.z), "Local XYZ position")

    def to_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z])


MWA_LOCATION = GeodeticPosition(MWA_LAT_RAD, MWA_LONG_RAD, MWA_HEIGHT_M)


# =============================================================================
# Geodetic <-> geocentric
# =============================================================================

def geodetic_to_geocentric(
    pos: GeodeticPosition,
    ellipsoid: Ellipsoid = WGS84,
) -> GeocentricPosition:
    """
    Geodetic latitude/longitude/height to ECEF.

    Parameters
    ----------
    pos : GeodeticPosition
    ellipsoid : Ellipsoid

    Returns
    -------
    pos : GeocentricPosition
    """
    x, y, z = geodetic_to_geocentric_array(
        np.array([[pos.latitude, pos.longitude, pos.height]]), ellipsoid
    )[0]
    return GeocentricPosition(float(x), float(y), float(z))


def geodetic_to_geocentric_array(
    lat_lon_height: np.ndarray,
    ellipsoid: Ellipsoid = WGS84,
) -> np.ndarray:
    """
    Vectorised geodetic -> geocentric.

    Parameters
    ----------
    lat_lon_height : ndarray (..., 3)
        Latitude, longitude [rad], height [m]
    ellipsoid : Ellipsoid

    Returns
    -------
    xyz : ndarray (..., 3)
    """
    llh = np.asarray(lat_lon_height, dtype=np.float64)
    _check_finite(llh, "Geodetic positions")
    lat, lon, h = llh[..., 0], llh[..., 1], llh[..., 2]
    if np.any(np.abs(lat) > HALF_PI):
        check_latitude(float(lat[np.abs(lat) > HALF_PI].flat[0]))

    s_lat, c_lat = np.sin(lat), np.cos(lat)
    # prime-vertical radius of curvature
    n = ellipsoid.a / np.sqrt(1.0 - ellipsoid.e2 * s_lat ** 2)

    xyz = np.empty_like(llh)
    xyz[..., 0] = (n + h) * c_lat * np.cos(lon)
    xyz[..., 1] = (n + h) * c_lat * np.sin(lon)
    xyz[..., 2] = (n * (1.0 - ellipsoid.e2) + h) * s_lat
    return xyz


def geocentric_to_geodetic(
    pos: GeocentricPosition,
    ellipsoid: Ellipsoid = WGS84,
    tol: float = GEODETIC_TOL,
    max_iter: int = GEODETIC_MAX_ITER,
) -> GeodeticPosition:
    """
    ECEF to geodetic latitude/longitude/height (Bowring's method).

    Iterates on the parametric (reduced) latitude until successive values
    agree to `tol` radians. Two or three iterations suffice anywhere near
    the Earth's surface.

    Parameters
    ----------
    pos : GeocentricPosition
    ellipsoid : Ellipsoid
    tol : float
        Convergence tolerance in radians
    max_iter : int
        Iteration budget

    Returns
    -------
    pos : GeodeticPosition
        Longitude in [-π, π]

    Raises
    ------
    ConvergenceFailure
        The iteration budget was exhausted
    InvalidPosition
        The position is the geocentre, which has no geodetic representation
    """
    x, y, z = pos.x, pos.y, pos.z
    a, b, e2, ep2 = ellipsoid.a, ellipsoid.b, ellipsoid.e2, ellipsoid.ep2
    p = math.hypot(x, y)

    if p == 0.0:
        if z == 0.0:
            raise InvalidPosition("The geocentre has no geodetic representation", pos)
        # on the rotation axis: the pole is the limiting case
        lat = math.copysign(HALF_PI, z)
        return GeodeticPosition(lat, 0.0, abs(z) - b)

    lon = math.atan2(y, x)
    beta = math.atan2(z, (1.0 - ellipsoid.f) * p)

    for iteration in range(1, max_iter + 1):
        s_beta, c_beta = math.sin(beta), math.cos(beta)
        lat = math.atan2(z + ep2 * b * s_beta ** 3, p - e2 * a * c_beta ** 3)
        beta_new = math.atan2((1.0 - ellipsoid.f) * math.sin(lat), math.cos(lat))
        if abs(beta_new - beta) <= tol:
            break
        beta = beta_new
    else:
        raise ConvergenceFailure(
            f"Geodetic latitude did not converge to {tol} rad in {max_iter} iterations",
            pos, iterations=max_iter,
        )

    logger.debug("Bowring iteration converged after %d step(s)", iteration)

    s_lat, c_lat = math.sin(lat), math.cos(lat)
    # regular at the poles, unlike p / cos(lat) - N
    height = p * c_lat + z * s_lat - a * math.sqrt(1.0 - e2 * s_lat ** 2)
    return GeodeticPosition(lat, lon, height)


# =============================================================================
# Geocentric <-> tangent plane / local XYZ
# =============================================================================

def _enh_rotation(latitude: float, longitude: float) -> np.ndarray:
    """Rows are the east, north and up unit vectors in ECEF."""
    s_lat, c_lat = math.sin(latitude), math.cos(latitude)
    s_lon, c_lon = math.sin(longitude), math.cos(longitude)
    return np.array([
        [-s_lon, c_lon, 0.0],
        [-s_lat * c_lon, -s_lat * s_lon, c_lat],
        [c_lat * c_lon, c_lat * s_lon, s_lat],
    ])


def geocentric_to_tangent_plane_array(
    xyz: np.ndarray,
    origin: GeodeticPosition,
    ellipsoid: Ellipsoid = WGS84,
) -> np.ndarray:
    """
    Vectorised ECEF -> east/north/height about `origin`.

    Parameters
    ----------
    xyz : ndarray (..., 3)
    origin : GeodeticPosition
    ellipsoid : Ellipsoid

    Returns
    -------
    enh : ndarray (..., 3)
    """
    xyz = np.asarray(xyz, dtype=np.float64)
    _check_finite(xyz, "Geocentric positions")
    origin_xyz = geodetic_to_geocentric(origin, ellipsoid).to_array()
    rot = _enh_rotation(origin.latitude, origin.longitude)
    return (xyz - origin_xyz) @ rot.T


def tangent_plane_to_geocentric_array(
    enh: np.ndarray,
    origin: GeodeticPosition,
    ellipsoid: Ellipsoid = WGS84,
) -> np.ndarray:
    """Vectorised inverse of geocentric_to_tangent_plane_array."""
    enh = np.asarray(enh, dtype=np.float64)
    _check_finite(enh, "Tangent-plane positions")
    origin_xyz = geodetic_to_geocentric(origin, ellipsoid).to_array()
    rot = _enh_rotation(origin.latitude, origin.longitude)
    return enh @ rot + origin_xyz


def geocentric_to_tangent_plane(
    pos: GeocentricPosition,
    origin: GeodeticPosition,
    ellipsoid: Ellipsoid = WGS84,
) -> TangentPlanePosition:
    """ECEF -> east/north/height relative to a geodetic origin."""
    e, n, h = geocentric_to_tangent_plane_array(pos.to_array(), origin, ellipsoid)
    return TangentPlanePosition(float(e), float(n), float(h))


def tangent_plane_to_geocentric(
    enh: TangentPlanePosition,
    origin: GeodeticPosition,
    ellipsoid: Ellipsoid = WGS84,
) -> GeocentricPosition:
    """East/north/height relative to a geodetic origin -> ECEF."""
    x, y, z = tangent_plane_to_geocentric_array(enh.to_array(), origin, ellipsoid)
    return GeocentricPosition(float(x), float(y), float(z))


def geocentric_to_local_xyz_array(xyz: np.ndarray, longitude: float) -> np.ndarray:
    """
    Rotate ECEF vectors (or baselines) to the meridian at `longitude`.

    Parameters
    ----------
    xyz : ndarray (..., 3)
    longitude : float
        East longitude in radians

    Returns
    -------
    local : ndarray (..., 3)
    """
    xyz = np.asarray(xyz, dtype=np.float64)
    s_lon, c_lon = math.sin(longitude), math.cos(longitude)
    local = np.empty_like(xyz)
    local[..., 0] = c_lon * xyz[..., 0] + s_lon * xyz[..., 1]
    local[..., 1] = -s_lon * xyz[..., 0] + c_lon * xyz[..., 1]
    local[..., 2] = xyz[..., 2]
    return local


def local_xyz_to_geocentric_array(local: np.ndarray, longitude: float) -> np.ndarray:
    """Inverse of geocentric_to_local_xyz_array."""
    return geocentric_to_local_xyz_array(local, -longitude)


def geocentric_to_local_xyz(pos: GeocentricPosition, longitude: float) -> LocalXYZ:
    x, y, z = geocentric_to_local_xyz_array(pos.to_array(), longitude)
    return LocalXYZ(float(x), float(y), float(z))


def local_xyz_to_geocentric(pos: LocalXYZ, longitude: float) -> GeocentricPosition:
    x, y, z = local_xyz_to_geocentric_array(pos.to_array(), longitude)
    return GeocentricPosition(float(x), float(y), float(z))


def tangent_plane_to_local_xyz(enh: TangentPlanePosition, latitude: float) -> LocalXYZ:
    """
    East/north/height offsets to local XYZ offsets.

    Only directions are converted (no translation), so this is the form used
    for array layouts given as ENH offsets.
    """
    s_lat, c_lat = math.sin(latitude), math.cos(latitude)
    return LocalXYZ(
        -s_lat * enh.north + c_lat * enh.height,
        enh.east,
        c_lat * enh.north + s_lat * enh.height,
    )


def local_xyz_to_tangent_plane(pos: LocalXYZ, latitude: float) -> TangentPlanePosition:
    """Inverse of tangent_plane_to_local_xyz."""
    s_lat, c_lat = math.sin(latitude), math.cos(latitude)
    return TangentPlanePosition(
        pos.y,
        -s_lat * pos.x + c_lat * pos.z,
        c_lat * pos.x + s_lat * pos.z,
    )


# =============================================================================
# Frame dispatch
# =============================================================================

Position = Union[GeodeticPosition, GeocentricPosition, TangentPlanePosition, LocalXYZ]


def _need_origin(origin):
    if origin is None:
        raise ValueError("This conversion needs a geodetic origin")
    return origin


def _via_geocentric(pos, target, origin, ellipsoid):
    geocentric = convert_position(pos, GeocentricPosition, origin=origin, ellipsoid=ellipsoid)
    return convert_position(geocentric, target, origin=origin, ellipsoid=ellipsoid)


_CONVERSIONS = {
    (GeodeticPosition, GeocentricPosition):
        lambda p, o, e: geodetic_to_geocentric(p, e),
    (GeocentricPosition, GeodeticPosition):
        lambda p, o, e: geocentric_to_geodetic(p, e),
    (GeocentricPosition, TangentPlanePosition):
        lambda p, o, e: geocentric_to_tangent_plane(p, _need_origin(o), e),
    (TangentPlanePosition, GeocentricPosition):
        lambda p, o, e: tangent_plane_to_geocentric(p, _need_origin(o), e),
    (GeocentricPosition, LocalXYZ):
        lambda p, o, e: geocentric_to_local_xyz(
            GeocentricPosition(*(p - geodetic_to_geocentric(_need_origin(o), e))),
            o.longitude,
        ),
    (LocalXYZ, GeocentricPosition):
        lambda p, o, e: GeocentricPosition(*(
            local_xyz_to_geocentric_array(p.to_array(), _need_origin(o).longitude)
            + geodetic_to_geocentric(o, e).to_array()
        )),
    (TangentPlanePosition, LocalXYZ):
        lambda p, o, e: tangent_plane_to_local_xyz(p, _need_origin(o).latitude),
    (LocalXYZ, TangentPlanePosition):
        lambda p, o, e: local_xyz_to_tangent_plane(p, _need_origin(o).latitude),
    (GeodeticPosition, TangentPlanePosition):
        lambda p, o, e: _via_geocentric(p, TangentPlanePosition, o, e),
    (TangentPlanePosition, GeodeticPosition):
        lambda p, o, e: _via_geocentric(p, GeodeticPosition, o, e),
    (GeodeticPosition, LocalXYZ):
        lambda p, o, e: _via_geocentric(p, LocalXYZ, o, e),
    (LocalXYZ, GeodeticPosition):
        lambda p, o, e: _via_geocentric(p, GeodeticPosition, o, e),
}


def convert_position(
    pos: Position,
    target: type,
    *,
    origin: Optional[GeodeticPosition] = None,
    ellipsoid: Ellipsoid = WGS84,
) -> Position:
    """
    Convert a position to another frame.

    Parameters
    ----------
    pos : GeodeticPosition, GeocentricPosition, TangentPlanePosition or LocalXYZ
    target : type
        One of the four position classes
    origin : GeodeticPosition, optional
        Required whenever a tangent-plane or local-XYZ frame is involved
    ellipsoid : Ellipsoid

    Returns
    -------
    pos : instance of `target`
    """
    if type(pos) is target:
        return pos
    try:
        conversion = _CONVERSIONS[(type(pos), target)]
    except KeyError:
        raise TypeError(
            f"No conversion from {type(pos).__name__} to {getattr(target, '__name__', target)}"
        ) from None
    return conversion(pos, origin, ellipsoid)
