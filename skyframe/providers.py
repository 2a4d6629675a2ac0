"""
Epoch Transform Providers.

A provider supplies the rotation series behind precession, nutation and
sidereal time. Frame transforms only talk to the EpochTransformProvider
interface, so the series can come from ERFA or from the compact IAU 1976/1980
expressions below without changing any caller.

Convention:
    - all dates are two-part Julian dates (date1 + date2)
    - precession_matrix maps GCRS/J2000 vectors to mean-of-date
    - nutation_matrix maps mean-of-date to true-of-date
    - matrices are (3, 3) float64 arrays, applied as v_date = M @ v_j2000
"""

from abc import ABC, abstractmethod

import erfa
import numpy as np

from skyframe.constants import ARCSEC2RAD, DAYS_PER_JULIAN_CENTURY, J2000_JD

TWO_PI = 2.0 * np.pi


class EpochTransformProvider(ABC):
    """Interface for precession/nutation and sidereal-time series."""

    name = "abstract"

    @abstractmethod
    def precession_matrix(self, tt1: float, tt2: float) -> np.ndarray:
        """Precession (with frame bias where modelled) J2000 -> mean of date."""

    @abstractmethod
    def nutation_matrix(self, tt1: float, tt2: float) -> np.ndarray:
        """Nutation, mean of date -> true of date."""

    @abstractmethod
    def mean_sidereal_time(self, ut1: float, ut2: float, tt1: float, tt2: float) -> float:
        """Greenwich mean sidereal time in radians."""

    @abstractmethod
    def apparent_sidereal_time(self, ut1: float, ut2: float, tt1: float, tt2: float) -> float:
        """Greenwich apparent sidereal time in radians."""

    # providers are stateless; equal when they are the same series
    def __eq__(self, other):
        return type(self) is type(other)

    def __hash__(self):
        return hash(type(self))

    def __repr__(self):
        return f"{type(self).__name__}()"


# =============================================================================
# ERFA (IAU 2006/2000A)
# =============================================================================

class ErfaProvider(EpochTransformProvider):
    """IAU 2006 precession, IAU 2000A nutation and sidereal time via pyerfa."""

    name = "erfa"

    def precession_matrix(self, tt1, tt2):
        return np.asarray(erfa.pmat06(tt1, tt2), dtype=np.float64)

    def nutation_matrix(self, tt1, tt2):
        return np.asarray(erfa.num06a(tt1, tt2), dtype=np.float64)

    def mean_sidereal_time(self, ut1, ut2, tt1, tt2):
        return float(erfa.gmst06(ut1, ut2, tt1, tt2))

    def apparent_sidereal_time(self, ut1, ut2, tt1, tt2):
        return float(erfa.gst06a(ut1, ut2, tt1, tt2))


# =============================================================================
# IAU 1976 precession / truncated IAU 1980 nutation
# =============================================================================

def _rot_x(phi: float) -> np.ndarray:
    c, s = np.cos(phi), np.sin(phi)
    return np.array([[1.0, 0.0, 0.0], [0.0, c, s], [0.0, -s, c]])


def _rot_y(theta: float) -> np.ndarray:
    c, s = np.cos(theta), np.sin(theta)
    return np.array([[c, 0.0, -s], [0.0, 1.0, 0.0], [s, 0.0, c]])


def _rot_z(psi: float) -> np.ndarray:
    c, s = np.cos(psi), np.sin(psi)
    return np.array([[c, s, 0.0], [-s, c, 0.0], [0.0, 0.0, 1.0]])


def _centuries(d1: float, d2: float) -> float:
    return ((d1 - J2000_JD) + d2) / DAYS_PER_JULIAN_CENTURY


class IAU1976Provider(EpochTransformProvider):
    """
    Compact series without external dependencies.

    Precession: Lieske et al. (1977) angles zeta, z, theta from J2000.
    Nutation: the four leading IAU 1980 terms (~0.5 arcsec accuracy).
    Sidereal time: IAU 1982 GMST, plus the equation of the equinoxes.
    """

    name = "iau1976"

    def precession_matrix(self, tt1, tt2):
        t = _centuries(tt1, tt2)
        zeta = (2306.2181 + (0.30188 + 0.017998 * t) * t) * t * ARCSEC2RAD
        z = (2306.2181 + (1.09468 + 0.018203 * t) * t) * t * ARCSEC2RAD
        theta = (2004.3109 + (-0.42665 - 0.041833 * t) * t) * t * ARCSEC2RAD
        return _rot_z(-z) @ _rot_y(theta) @ _rot_z(-zeta)

    def _nutation_angles(self, tt1, tt2):
        t = _centuries(tt1, tt2)
        omega = np.radians(125.04452 - 1934.136261 * t)
        l_sun = np.radians(280.4665 + 36000.7698 * t)
        l_moon = np.radians(218.3165 + 481267.8813 * t)

        dpsi = (-17.20 * np.sin(omega) - 1.32 * np.sin(2 * l_sun)
                - 0.23 * np.sin(2 * l_moon) + 0.21 * np.sin(2 * omega))
        deps = (9.20 * np.cos(omega) + 0.57 * np.cos(2 * l_sun)
                + 0.10 * np.cos(2 * l_moon) - 0.09 * np.cos(2 * omega))
        # IAU 1980 mean obliquity
        eps0 = 84381.448 + (-46.8150 + (-0.00059 + 0.001813 * t) * t) * t

        return dpsi * ARCSEC2RAD, deps * ARCSEC2RAD, eps0 * ARCSEC2RAD

    def nutation_matrix(self, tt1, tt2):
        dpsi, deps, eps0 = self._nutation_angles(tt1, tt2)
        return _rot_x(-(eps0 + deps)) @ _rot_z(-dpsi) @ _rot_x(eps0)

    def mean_sidereal_time(self, ut1, ut2, tt1, tt2):
        t = _centuries(ut1, ut2)
        # IAU 1982 GMST expressed from the full UT1 date, in seconds of time
        gmst_sec = (67310.54841
                    + (876600.0 * 3600.0 + 8640184.812866) * t
                    + 0.093104 * t ** 2
                    - 6.2e-6 * t ** 3)
        return float((gmst_sec % 86400.0) * TWO_PI / 86400.0)

    def apparent_sidereal_time(self, ut1, ut2, tt1, tt2):
        dpsi, _deps, eps0 = self._nutation_angles(tt1, tt2)
        gast = self.mean_sidereal_time(ut1, ut2, tt1, tt2) + dpsi * np.cos(eps0)
        return float(gast % TWO_PI)


_PROVIDERS = {
    ErfaProvider.name: ErfaProvider,
    IAU1976Provider.name: IAU1976Provider,
}


def get_provider(name: str) -> EpochTransformProvider:
    """
    Resolve a provider by name.

    Parameters
    ----------
    name : str
        'erfa' or 'iau1976'

    Returns
    -------
    provider : EpochTransformProvider
    """
    try:
        return _PROVIDERS[name.lower()]()
    except KeyError:
        raise ValueError(
            f"Unknown epoch transform provider '{name}'. Known: {sorted(_PROVIDERS)}"
        ) from None
