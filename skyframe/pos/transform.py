"""
Reference-Frame Transforms.

Equatorial <-> horizontal conversion for an observatory and time, and
precession (optionally with nutation) between equinoxes.

Precession between two epochs is the rotation

    R = M(to) @ M(from).T,    M = N @ P  (nutation on)  or  P  (off)

where P and N come from the configured EpochTransformProvider. Swapping the
epochs applies R.T, so precess() is its own inverse to rounding error.
"""

import logging
from typing import Optional

import numpy as np

from skyframe.config import DEFAULT_CONFIG, TransformConfig
from skyframe.pos.angles import check_latitude, wrap_2pi
from skyframe.pos.epoch import Epoch
from skyframe.pos.frames import (
    EquatorialCoord, HorizontalCoord, hadec_to_horizontal, horizontal_to_hadec,
)
from skyframe.pos.sidereal import hour_angle, local_sidereal_time

logger = logging.getLogger(__name__)


def epoch_rotation_matrix(epoch: Epoch, config: TransformConfig = DEFAULT_CONFIG) -> np.ndarray:
    """
    Rotation from the J2000/GCRS frame to the frame of date.

    Parameters
    ----------
    epoch : Epoch
        Instant in any scale (converted to TT)
    config : TransformConfig

    Returns
    -------
    M : ndarray (3, 3)
        Precession, or nutation @ precession when config.include_nutation
    """
    tt = epoch.to_tt(config.dut1)
    matrix = config.provider.precession_matrix(tt.jd1, tt.jd2)
    if config.include_nutation:
        matrix = config.provider.nutation_matrix(tt.jd1, tt.jd2) @ matrix
    return matrix


def precession_rotation(
    from_epoch: Epoch,
    to_epoch: Epoch,
    config: TransformConfig = DEFAULT_CONFIG,
) -> np.ndarray:
    """Rotation matrix taking vectors of `from_epoch` to vectors of `to_epoch`."""
    return epoch_rotation_matrix(to_epoch, config) @ epoch_rotation_matrix(from_epoch, config).T


def precess(
    coord: EquatorialCoord,
    from_epoch: Epoch,
    to_epoch: Epoch,
    config: TransformConfig = DEFAULT_CONFIG,
) -> EquatorialCoord:
    """
    Precess equatorial coordinates between two equinoxes.

    Parameters
    ----------
    coord : EquatorialCoord
        Position referred to the equator/equinox of `from_epoch`
    from_epoch, to_epoch : Epoch
        Source and target equinoxes
    config : TransformConfig
        include_nutation selects mean (False) or true (True) equator/equinox
        of date on both ends

    Returns
    -------
    coord : EquatorialCoord
        New position tagged with to_epoch's Julian epoch
    """
    rotation = precession_rotation(from_epoch, to_epoch, config)
    v = rotation @ coord.to_unit_vector()
    return EquatorialCoord.from_unit_vector(v, equinox=to_epoch.julian_year)


def to_date(
    coord: EquatorialCoord,
    time: Epoch,
    config: TransformConfig = DEFAULT_CONFIG,
) -> EquatorialCoord:
    """Refer coordinates to the equator/equinox of `time` (no-op when already of date)."""
    if coord.equinox is None:
        return coord
    logger.debug("Precessing %s to %s", coord, time)
    moved = precess(coord, Epoch.from_julian_year(coord.equinox), time, config)
    return EquatorialCoord(moved.ra, moved.dec, None)


def to_horizontal(
    equatorial: EquatorialCoord,
    observatory_location,
    time: Epoch,
    config: TransformConfig = DEFAULT_CONFIG,
) -> HorizontalCoord:
    """
    Equatorial to horizontal coordinates.

    Parameters
    ----------
    equatorial : EquatorialCoord
        Sky position; precessed to `time` first unless already of date
    observatory_location : GeodeticPosition
        Observer latitude/longitude in radians
    time : Epoch
        Observation instant
    config : TransformConfig

    Returns
    -------
    horizontal : HorizontalCoord
        Azimuth in [0, 2π) (0 at the zenith), elevation in [-π/2, π/2]
    """
    latitude = check_latitude(observatory_location.latitude)
    apparent = to_date(equatorial, time, config)
    ha = hour_angle(apparent.ra, observatory_location.longitude, time, config)
    az, el = hadec_to_horizontal(ha, apparent.dec, latitude)
    return HorizontalCoord(az, el, observatory_location, time)


def to_equatorial(
    horizontal: HorizontalCoord,
    observatory_location,
    time: Epoch,
    config: TransformConfig = DEFAULT_CONFIG,
    equinox: Optional[float] = 2000.0,
) -> EquatorialCoord:
    """
    Horizontal to equatorial coordinates (inverse of to_horizontal).

    Parameters
    ----------
    horizontal : HorizontalCoord
    observatory_location : GeodeticPosition
    time : Epoch
    config : TransformConfig
    equinox : float, optional
        Julian epoch to precess the result to. Defaults to J2000, the same
        frame EquatorialCoord assumes; pass None for coordinates of date.

    Returns
    -------
    equatorial : EquatorialCoord
    """
    latitude = check_latitude(observatory_location.latitude)
    ha, dec = horizontal_to_hadec(horizontal.az, horizontal.el, latitude)
    lst = local_sidereal_time(observatory_location.longitude, time, config)
    of_date = EquatorialCoord(wrap_2pi(lst - ha), dec, None)
    if equinox is None:
        return of_date
    return precess(of_date, time, Epoch.from_julian_year(equinox), config)
