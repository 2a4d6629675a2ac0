"""
Baseline Geometry (UVW).

We follow the usual interferometric convention: UVW is a right-handed
system with W towards the phase centre, U east in the tangent plane and V
towards the celestial pole. Baselines are expressed in the local XYZ frame
(X to HA=0/dec=0, Y east, Z to the pole) and rotated by the hour angle and
declination of the phase centre:

    u =  sin(H) x + cos(H) y
    v = -sin(δ) cos(H) x + sin(δ) sin(H) y + cos(δ) z
    w =  cos(δ) cos(H) x - cos(δ) sin(H) y + sin(δ) z

Baseline convention: baseline(i, j) = position[i] - position[j], so
uvw(i, j) == -uvw(j, i) exactly and uvw(i, i) == 0.

All rotations here are written elementwise (no BLAS), which keeps the
antisymmetry bit-exact.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple, Union

import numpy as np

from skyframe.config import DEFAULT_CONFIG, TransformConfig
from skyframe.constants import VEL_C
from skyframe.errors import InvalidPosition
from skyframe.pos.angles import check_latitude
from skyframe.pos.earth import GeocentricPosition, geocentric_to_local_xyz_array
from skyframe.pos.epoch import Epoch
from skyframe.pos.frames import EquatorialCoord, HADec
from skyframe.pos.sidereal import hour_angle
from skyframe.pos.transform import to_date

logger = logging.getLogger(__name__)

AntennaPositions = Union[np.ndarray, Sequence[GeocentricPosition]]


@dataclass(frozen=True)
class UVW:
    """Baseline coordinates [m] in the frame of a phase centre."""
    u: float
    v: float
    w: float

    @classmethod
    def from_array(cls, arr) -> "UVW":
        u, v, w = arr
        return cls(float(u), float(v), float(w))

    def to_array(self) -> np.ndarray:
        return np.array([self.u, self.v, self.w])

    def to_wavelengths(self, freq_hz: float, c: float = VEL_C) -> "UVW":
        """UVW in units of wavelength at `freq_hz`."""
        scale = freq_hz / c
        return UVW(self.u * scale, self.v * scale, self.w * scale)

    def __neg__(self):
        return UVW(-self.u, -self.v, -self.w)

    def __add__(self, other):
        return UVW(self.u + other.u, self.v + other.v, self.w + other.w)

    def __sub__(self, other):
        return UVW(self.u - other.u, self.v - other.v, self.w - other.w)

    def __abs__(self):
        return float(np.sqrt(self.u ** 2 + self.v ** 2 + self.w ** 2))


@dataclass(frozen=True)
class Baseline:
    """Antenna pair and geocentric difference vector position[ant1] - position[ant2]."""
    ant1: int
    ant2: int
    vector: Tuple[float, float, float]

    def reversed(self) -> "Baseline":
        x, y, z = self.vector
        return Baseline(self.ant2, self.ant1, (-x, -y, -z))

    @property
    def length(self) -> float:
        return float(np.sqrt(sum(c * c for c in self.vector)))


# =============================================================================
# Helpers
# =============================================================================

def baseline_pairs(n_ant: int, include_autos: bool = False) -> List[Tuple[int, int]]:
    """
    Antenna pairs in the conventional order (0,1), (0,2), ..., (1,2), ...

    Parameters
    ----------
    n_ant : int
    include_autos : bool
        Include (i, i) pairs, placed before each antenna's cross pairs

    Returns
    -------
    pairs : list of (int, int)
    """
    offset = 0 if include_autos else 1
    return [(i, j) for i in range(n_ant) for j in range(i + offset, n_ant)]


def antenna_array(antenna_positions: AntennaPositions) -> np.ndarray:
    """
    Validate antenna positions as an (n_ant, 3) float array.

    Raises
    ------
    InvalidPosition
        A position is not finite; the whole batch is rejected
    """
    if len(antenna_positions) == 0:
        return np.empty((0, 3), dtype=np.float64)
    if isinstance(antenna_positions[0], GeocentricPosition):
        xyz = np.array([p.to_array() for p in antenna_positions], dtype=np.float64)
    else:
        xyz = np.asarray(antenna_positions, dtype=np.float64)

    if xyz.ndim != 2 or xyz.shape[1] != 3:
        raise ValueError(f"Expected antenna positions of shape (n_ant, 3), got {xyz.shape}")

    bad = ~np.all(np.isfinite(xyz), axis=1)
    if np.any(bad):
        i = int(np.flatnonzero(bad)[0])
        raise InvalidPosition(
            f"Antenna {i} position is not finite: {xyz[i].tolist()}", (i, xyz[i].tolist())
        )
    return xyz


def get_baselines(
    antenna_positions: AntennaPositions,
    include_autos: bool = False,
) -> List[Baseline]:
    """Geocentric baselines in baseline_pairs order."""
    xyz = antenna_array(antenna_positions)
    return [
        Baseline(i, j, tuple(float(c) for c in (xyz[i] - xyz[j])))
        for i, j in baseline_pairs(xyz.shape[0], include_autos)
    ]


def uvw_rotation_matrix(ha: float, dec: float) -> np.ndarray:
    """
    Rotation from local XYZ to UVW for a phase centre at (ha, dec).

    Built directly from sines and cosines, so it is regular for a phase
    centre at either celestial pole.

    Returns
    -------
    R : ndarray (3, 3)
        Rows are the u, v and w unit vectors in local XYZ
    """
    sh, ch = np.sin(ha), np.cos(ha)
    sd, cd = np.sin(dec), np.cos(dec)
    return np.array([
        [sh, ch, 0.0],
        [-sd * ch, sd * sh, cd],
        [cd * ch, -cd * sh, sd],
    ])


def xyz_to_uvw(xyz: np.ndarray, ha: float, dec: float) -> np.ndarray:
    """
    Project local-XYZ vectors to UVW.

    Parameters
    ----------
    xyz : ndarray (..., 3)
        Local XYZ baselines [m]
    ha, dec : float
        Phase centre hour angle and declination [rad]

    Returns
    -------
    uvw : ndarray (..., 3)
    """
    rot = uvw_rotation_matrix(ha, dec)
    x, y, z = xyz[..., 0], xyz[..., 1], xyz[..., 2]
    uvw = np.empty_like(xyz, dtype=np.float64)
    for k in range(3):
        uvw[..., k] = rot[k, 0] * x + rot[k, 1] * y + rot[k, 2] * z
    return uvw


def phase_center_hadec(
    phase_center: EquatorialCoord,
    observatory_location,
    time: Epoch,
    config: TransformConfig = DEFAULT_CONFIG,
) -> HADec:
    """Hour angle and declination of the phase centre, of date, at `time`."""
    apparent = to_date(phase_center, time, config)
    ha = hour_angle(apparent.ra, observatory_location.longitude, time, config)
    return HADec(ha, apparent.dec)


# =============================================================================
# Engine
# =============================================================================

def _local_baselines(xyz: np.ndarray, longitude: float, pairs=None) -> np.ndarray:
    if pairs is None:
        diff = xyz[:, np.newaxis, :] - xyz[np.newaxis, :, :]
    else:
        idx = np.asarray(pairs, dtype=np.int64).reshape(-1, 2)
        diff = xyz[idx[:, 0]] - xyz[idx[:, 1]]
    return geocentric_to_local_xyz_array(diff, longitude)


def compute_uvw(
    antenna_positions: AntennaPositions,
    phase_center: EquatorialCoord,
    observatory_location,
    time: Epoch,
    config: TransformConfig = DEFAULT_CONFIG,
) -> Dict[Tuple[int, int], UVW]:
    """
    UVW for every ordered antenna pair at one instant.

    Parameters
    ----------
    antenna_positions : ndarray (n_ant, 3) or sequence of GeocentricPosition
        Geocentric (ECEF) antenna positions [m]
    phase_center : EquatorialCoord
        Tracked direction; precessed to `time` unless already of date
    observatory_location : GeodeticPosition
        Array reference position (defines the local meridian)
    time : Epoch
    config : TransformConfig

    Returns
    -------
    uvws : dict
        (i, j) -> UVW for all i, j including i == j (always zero)

    Raises
    ------
    InvalidPosition
        Any antenna position is non-finite
    """
    xyz = antenna_array(antenna_positions)
    check_latitude(observatory_location.latitude)
    hadec = phase_center_hadec(phase_center, observatory_location, time, config)

    local = _local_baselines(xyz, observatory_location.longitude)
    uvw = xyz_to_uvw(local, hadec.ha, hadec.dec)

    n_ant = xyz.shape[0]
    logger.debug("Computed %d x %d UVWs at %s (ha=%.6f, dec=%.6f)",
                 n_ant, n_ant, time, hadec.ha, hadec.dec)
    return {
        (i, j): UVW(float(uvw[i, j, 0]), float(uvw[i, j, 1]), float(uvw[i, j, 2]))
        for i in range(n_ant)
        for j in range(n_ant)
    }


def cross_uvws(
    antenna_positions: AntennaPositions,
    phase_center: EquatorialCoord,
    observatory_location,
    time: Epoch,
    config: TransformConfig = DEFAULT_CONFIG,
    include_autos: bool = False,
) -> np.ndarray:
    """
    UVWs for the conventional baseline ordering, as an array.

    Returns
    -------
    uvw : ndarray (n_bl, 3)
        Rows follow baseline_pairs(n_ant, include_autos)
    """
    xyz = antenna_array(antenna_positions)
    check_latitude(observatory_location.latitude)
    pairs = baseline_pairs(xyz.shape[0], include_autos)
    hadec = phase_center_hadec(phase_center, observatory_location, time, config)
    local = _local_baselines(xyz, observatory_location.longitude, pairs)
    return xyz_to_uvw(local, hadec.ha, hadec.dec)


def uvw_timeseries(
    antenna_positions: AntennaPositions,
    phase_center: EquatorialCoord,
    observatory_location,
    times: Sequence[Epoch],
    config: TransformConfig = DEFAULT_CONFIG,
    include_autos: bool = False,
) -> np.ndarray:
    """
    UVWs over several timesteps.

    Each timestep is computed independently from the phase centre; nothing
    is carried between steps.

    Returns
    -------
    uvw : ndarray (n_time, n_bl, 3)
        Row-major by timestep, then baseline (baseline_pairs order)
    """
    xyz = antenna_array(antenna_positions)
    check_latitude(observatory_location.latitude)
    pairs = baseline_pairs(xyz.shape[0], include_autos)
    local = _local_baselines(xyz, observatory_location.longitude, pairs)

    out = np.empty((len(times), len(pairs), 3), dtype=np.float64)
    for t_idx, t in enumerate(times):
        hadec = phase_center_hadec(phase_center, observatory_location, t, config)
        out[t_idx] = xyz_to_uvw(local, hadec.ha, hadec.dec)

    logger.debug("Computed UVWs for %d timesteps x %d baselines", len(times), len(pairs))
    return out
