"""
Transform Configuration.

A TransformConfig bundles every process-wide numeric choice (ellipsoid,
precession/sidereal-time provider, nutation policy, UT1-UTC offset). It is
immutable and passed explicitly into the functions that need it.

YAML format:

    transform:
      ellipsoid: WGS84            # or {name: custom, a: 6378137.0, f: 0.00335}
      provider: erfa              # erfa | iau1976
      include_nutation: true
      dut1: 0.0                   # UT1 - UTC in seconds
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict

import yaml

from skyframe.constants import Ellipsoid, ELLIPSOIDS, WGS84
from skyframe.providers import EpochTransformProvider, ErfaProvider, get_provider

logger = logging.getLogger(__name__)

_KNOWN_KEYS = {"ellipsoid", "provider", "include_nutation", "dut1"}


@dataclass(frozen=True)
class TransformConfig:
    """
    Immutable configuration injected into frame and baseline transforms.

    Attributes
    ----------
    ellipsoid : Ellipsoid
        Earth model for geodetic conversions
    provider : EpochTransformProvider
        Supplier of precession/nutation matrices and sidereal time
    include_nutation : bool
        If True, sidereal time is apparent (GAST) and precession also
        applies nutation, so coordinates of date are true-of-date.
        If False, mean sidereal time and mean-of-date coordinates are used.
    dut1 : float
        UT1 - UTC in seconds
    """
    ellipsoid: Ellipsoid = WGS84
    provider: EpochTransformProvider = field(default_factory=ErfaProvider)
    include_nutation: bool = True
    dut1: float = 0.0

    def replace(self, **changes) -> "TransformConfig":
        """Return a copy with the given fields substituted."""
        return replace(self, **changes)


DEFAULT_CONFIG = TransformConfig()


def _parse_ellipsoid(raw: Any) -> Ellipsoid:
    if isinstance(raw, str):
        try:
            return ELLIPSOIDS[raw.upper()]
        except KeyError:
            raise ValueError(
                f"Unknown ellipsoid '{raw}'. Known: {sorted(ELLIPSOIDS)}"
            ) from None
    if isinstance(raw, dict):
        if "a" not in raw or "f" not in raw:
            raise ValueError(f"Custom ellipsoid needs 'a' and 'f': {raw}")
        return Ellipsoid(str(raw.get("name", "custom")), float(raw["a"]), float(raw["f"]))
    raise ValueError(f"Cannot parse ellipsoid from {raw!r}")


def config_from_dict(raw: Dict[str, Any]) -> TransformConfig:
    """
    Build a TransformConfig from a plain mapping.

    Parameters
    ----------
    raw : dict
        Keys as in the YAML 'transform' section

    Returns
    -------
    config : TransformConfig
    """
    unknown = set(raw) - _KNOWN_KEYS
    if unknown:
        raise ValueError(f"Unknown transform config keys: {sorted(unknown)}")

    kwargs = {}
    if "ellipsoid" in raw:
        kwargs["ellipsoid"] = _parse_ellipsoid(raw["ellipsoid"])
    if "provider" in raw:
        kwargs["provider"] = get_provider(raw["provider"])
    if "include_nutation" in raw:
        kwargs["include_nutation"] = bool(raw["include_nutation"])
    if "dut1" in raw:
        kwargs["dut1"] = float(raw["dut1"])

    return TransformConfig(**kwargs)


def load_config(filepath: str) -> TransformConfig:
    """
    Load configuration from YAML file.

    Parameters
    ----------
    filepath : str
        Path to YAML configuration file

    Returns
    -------
    config : TransformConfig
    """
    with open(filepath, "r") as f:
        raw = yaml.safe_load(f) or {}

    section = raw.get("transform", {}) or {}
    config = config_from_dict(section)
    logger.debug(
        "Loaded transform config from %s: ellipsoid=%s provider=%s nutation=%s",
        filepath, config.ellipsoid.name, config.provider.name, config.include_nutation,
    )
    return config
