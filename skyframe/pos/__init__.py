"""
Positions, Frames and Baseline Geometry.

Handles:
- Angles, epochs and sidereal time
- Equatorial <-> horizontal transforms and precession
- Geodetic / geocentric / tangent-plane conversion
- UVW computation for antenna pairs
"""

from skyframe.pos.angles import Angle, wrap_2pi, wrap_pi
from skyframe.pos.epoch import Epoch
from skyframe.pos.sidereal import (
    greenwich_sidereal_time,
    local_sidereal_time,
    hour_angle,
)
from skyframe.pos.frames import (
    EquatorialCoord,
    HorizontalCoord,
    HADec,
    LMN,
    hadec_to_horizontal,
    horizontal_to_hadec,
    parallactic_angle,
)
from skyframe.pos.transform import (
    precess,
    precession_rotation,
    to_date,
    to_horizontal,
    to_equatorial,
)
from skyframe.pos.earth import (
    GeodeticPosition,
    GeocentricPosition,
    TangentPlanePosition,
    LocalXYZ,
    MWA_LOCATION,
    geodetic_to_geocentric,
    geocentric_to_geodetic,
    geocentric_to_tangent_plane,
    tangent_plane_to_geocentric,
    convert_position,
)
from skyframe.pos.uvw import (
    UVW,
    Baseline,
    baseline_pairs,
    get_baselines,
    compute_uvw,
    cross_uvws,
    uvw_timeseries,
)

__all__ = [
    "Angle",
    "wrap_2pi",
    "wrap_pi",
    "Epoch",
    "greenwich_sidereal_time",
    "local_sidereal_time",
    "hour_angle",
    # Sky frames
    "EquatorialCoord",
    "HorizontalCoord",
    "HADec",
    "LMN",
    "hadec_to_horizontal",
    "horizontal_to_hadec",
    "parallactic_angle",
    "precess",
    "precession_rotation",
    "to_date",
    "to_horizontal",
    "to_equatorial",
    # Earth frames
    "GeodeticPosition",
    "GeocentricPosition",
    "TangentPlanePosition",
    "LocalXYZ",
    "MWA_LOCATION",
    "geodetic_to_geocentric",
    "geocentric_to_geodetic",
    "geocentric_to_tangent_plane",
    "tangent_plane_to_geocentric",
    "convert_position",
    # Baselines
    "UVW",
    "Baseline",
    "baseline_pairs",
    "get_baselines",
    "compute_uvw",
    "cross_uvws",
    "uvw_timeseries",
]
