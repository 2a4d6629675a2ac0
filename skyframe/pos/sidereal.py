"""
Sidereal Time.

The single source of local sidereal time for the package. Horizontal
coordinates and baseline projections both go through local_sidereal_time so
that pointing and UVW geometry always agree.
"""

from skyframe.config import DEFAULT_CONFIG, TransformConfig
from skyframe.pos.angles import wrap_2pi, wrap_pi
from skyframe.pos.epoch import Epoch


def greenwich_sidereal_time(epoch: Epoch, config: TransformConfig = DEFAULT_CONFIG) -> float:
    """
    Greenwich sidereal time in radians, [0, 2π).

    Apparent (GAST) when config.include_nutation, else mean (GMST).

    Parameters
    ----------
    epoch : Epoch
        Instant in any scale; converted explicitly to UT1 (using config.dut1)
        and TT
    config : TransformConfig

    Returns
    -------
    gst : float
    """
    if not isinstance(epoch, Epoch):
        raise TypeError(f"Expected an Epoch, got {type(epoch).__name__}")

    ut1 = epoch.to_ut1(config.dut1)
    tt = epoch.to_tt(config.dut1)
    provider = config.provider
    if config.include_nutation:
        gst = provider.apparent_sidereal_time(ut1.jd1, ut1.jd2, tt.jd1, tt.jd2)
    else:
        gst = provider.mean_sidereal_time(ut1.jd1, ut1.jd2, tt.jd1, tt.jd2)
    return wrap_2pi(gst)


def local_sidereal_time(
    longitude: float,
    epoch: Epoch,
    config: TransformConfig = DEFAULT_CONFIG,
) -> float:
    """
    Local sidereal time in radians, [0, 2π).

    Parameters
    ----------
    longitude : float
        East longitude of the observer in radians
    epoch : Epoch
    config : TransformConfig

    Returns
    -------
    lst : float
    """
    return wrap_2pi(greenwich_sidereal_time(epoch, config) + longitude)


def hour_angle(
    ra: float,
    longitude: float,
    epoch: Epoch,
    config: TransformConfig = DEFAULT_CONFIG,
) -> float:
    """Hour angle LST - RA in radians, [-π, π)."""
    return wrap_pi(local_sidereal_time(longitude, epoch, config) - ra)
