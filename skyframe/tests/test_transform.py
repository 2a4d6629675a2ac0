"""
Tests for sky frames: horizontal <-> equatorial and precession.
"""

import erfa
import numpy as np
import pytest
from numpy.testing import assert_allclose

from skyframe.config import TransformConfig
from skyframe.constants import MWA_LAT_RAD
from skyframe.errors import InvalidCoordinate
from skyframe.pos.angles import wrap_pi
from skyframe.pos.earth import GeodeticPosition, MWA_LOCATION
from skyframe.pos.epoch import Epoch
from skyframe.pos.frames import (
    EquatorialCoord, HorizontalCoord, HADec,
    hadec_to_horizontal, horizontal_to_hadec, parallactic_angle,
)
from skyframe.pos.sidereal import local_sidereal_time
from skyframe.pos.transform import (
    precess, precession_rotation, to_date, to_horizontal, to_equatorial,
)
from skyframe.providers import ErfaProvider, IAU1976Provider


@pytest.fixture
def obs_time():
    return Epoch.from_iso("2023-06-01T14:30:00")


CONFIGS = [
    TransformConfig(provider=ErfaProvider(), include_nutation=True),
    TransformConfig(provider=ErfaProvider(), include_nutation=False),
    TransformConfig(provider=IAU1976Provider(), include_nutation=True),
    TransformConfig(provider=IAU1976Provider(), include_nutation=False),
]


class TestHorizontalRotation:
    """Test the HA/Dec <-> Az/El rotations."""

    def test_azel_to_hadec(self):
        hadec = HorizontalCoord.from_degrees(45.0, 30.0).to_hadec(-0.4976)
        assert_allclose(hadec.ha, -0.6968754873551053, atol=1e-10)
        assert_allclose(hadec.dec, 0.3041176697804004, atol=1e-10)

    def test_azel_to_hadec_second_case(self):
        hadec = HorizontalCoord(0.2617, 0.7854).to_hadec(-0.8976)
        assert_allclose(hadec.ha, -0.185499449332533, atol=1e-10)
        assert_allclose(hadec.dec, -0.12732312479328656, atol=1e-10)

    def test_za(self):
        assert_allclose(HorizontalCoord(0.2617, 0.7854).za, 0.7853963267948966, atol=1e-12)

    def test_to_hadec_mwa(self):
        azel = HorizontalCoord(0.2617, 0.7854)
        assert azel.to_hadec_mwa() == azel.to_hadec(MWA_LAT_RAD)

    def test_matches_erfa(self):
        rng = np.random.default_rng(42)
        ha = rng.uniform(-np.pi, np.pi, 50)
        dec = rng.uniform(-1.5, 1.5, 50)
        lat = MWA_LOCATION.latitude
        az, el = hadec_to_horizontal(ha, dec, lat)
        az_ref, el_ref = erfa.hd2ae(ha, dec, lat)
        assert_allclose(np.angle(np.exp(1j * (az - az_ref))), 0.0, atol=1e-12)
        assert_allclose(el, el_ref, atol=1e-12)

    def test_inverse(self):
        rng = np.random.default_rng(1)
        ha = rng.uniform(-3.0, 3.0, 50)
        dec = rng.uniform(-1.4, 1.4, 50)
        lat = 0.6
        az, el = hadec_to_horizontal(ha, dec, lat)
        ha_back, dec_back = horizontal_to_hadec(az, el, lat)
        assert_allclose(ha_back, ha, atol=1e-12)
        assert_allclose(dec_back, dec, atol=1e-12)

    def test_zenith(self):
        lat = MWA_LOCATION.latitude
        az, el = hadec_to_horizontal(0.0, lat, lat)
        assert az == 0.0
        assert_allclose(el, np.pi / 2, atol=1e-15)

    def test_scalar_in_scalar_out(self):
        az, el = hadec_to_horizontal(0.3, 0.1, -0.4)
        assert isinstance(az, float)
        assert isinstance(el, float)
        assert 0.0 <= az < 2 * np.pi

    def test_hadec_type_round_trip(self):
        hadec = HADec.from_degrees(-20.0, -45.0)
        back = hadec.to_horizontal(MWA_LOCATION.latitude).to_hadec(MWA_LOCATION.latitude)
        assert_allclose([back.ha, back.dec], [hadec.ha, hadec.dec], atol=1e-12)


class TestParallacticAngle:
    """Test the parallactic angle."""

    def test_matches_erfa(self):
        ha = np.linspace(-3.0, 3.0, 25)
        dec = np.linspace(-1.4, 1.2, 25)
        lat = MWA_LOCATION.latitude
        assert_allclose(parallactic_angle(ha, dec, lat), erfa.hd2pa(ha, dec, lat), atol=1e-12)

    def test_zero_on_meridian(self):
        assert parallactic_angle(0.0, -1.0, MWA_LOCATION.latitude) == 0.0

    def test_antisymmetric_in_hour_angle(self):
        lat = MWA_LOCATION.latitude
        assert_allclose(parallactic_angle(0.7, -0.2, lat), -parallactic_angle(-0.7, -0.2, lat))

    def test_zenith_is_zero(self):
        assert parallactic_angle(0.0, 0.5, 0.5) == 0.0

    def test_via_hadec(self):
        hadec = HADec(0.4, -0.9)
        assert hadec.parallactic_angle(-0.3) == parallactic_angle(0.4, -0.9, -0.3)


class TestCoordinateTypes:
    """Test validation and helpers on the coordinate value types."""

    def test_invalid_ra(self):
        with pytest.raises(InvalidCoordinate):
            EquatorialCoord(7.0, 0.0)
        with pytest.raises(InvalidCoordinate):
            EquatorialCoord(-0.1, 0.0)

    def test_invalid_dec(self):
        with pytest.raises(InvalidCoordinate):
            EquatorialCoord(1.0, 2.0)

    def test_nan(self):
        with pytest.raises(InvalidCoordinate):
            EquatorialCoord(np.nan, 0.0)
        with pytest.raises(InvalidCoordinate):
            HorizontalCoord(0.0, np.nan)

    def test_invalid_azimuth(self):
        with pytest.raises(InvalidCoordinate):
            HorizontalCoord(2 * np.pi, 0.1)

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            EquatorialCoord(1.0, -3.0)

    def test_from_degrees_wraps_ra(self):
        coord = EquatorialCoord.from_degrees(-90.0, 10.0)
        assert_allclose(coord.ra, 1.5 * np.pi)
        assert coord.equinox == 2000.0

    def test_separation(self):
        a = EquatorialCoord(0.1, 0.0)
        assert_allclose(a.separation(EquatorialCoord(0.1, 0.5)), 0.5, atol=1e-15)
        assert_allclose(a.separation(EquatorialCoord(0.1 + np.pi, 0.0)), np.pi, atol=1e-15)
        assert a.separation(a) == 0.0

    def test_unit_vector_round_trip(self):
        coord = EquatorialCoord(4.2, -0.7)
        back = EquatorialCoord.from_unit_vector(coord.to_unit_vector())
        assert_allclose([back.ra, back.dec], [coord.ra, coord.dec], atol=1e-14)

    def test_unit_vector_pole(self):
        pole = EquatorialCoord.from_unit_vector([0.0, 0.0, 1.0])
        assert pole.ra == 0.0
        assert pole.dec == np.pi / 2

    def test_lmn(self):
        centre = EquatorialCoord(1.0, -0.5)
        assert_allclose(centre.to_lmn(centre).to_array(), [0.0, 0.0, 1.0], atol=1e-15)
        lmn = EquatorialCoord(1.01, -0.48).to_lmn(centre)
        assert_allclose(np.linalg.norm(lmn.to_array()), 1.0)
        assert lmn.l > 0
        assert lmn.m > 0


class TestPrecession:
    """Test precession (and nutation) between equinoxes."""

    @pytest.mark.parametrize("config", CONFIGS)
    def test_round_trip(self, config):
        e1 = Epoch.from_julian_year(1950.0)
        e2 = Epoch.from_julian_year(2050.0)
        coord = EquatorialCoord(1.3, 0.4, 1950.0)
        there = precess(coord, e1, e2, config)
        back = precess(there, e2, e1, config)
        assert coord.separation(back) < 1e-9
        assert_allclose(there.equinox, 2050.0, atol=1e-9)

    @pytest.mark.parametrize("config", CONFIGS)
    def test_rotation_orthonormal(self, config):
        R = precession_rotation(Epoch.from_julian_year(2000.0),
                                Epoch.from_iso("2023-06-01T14:30:00"), config)
        assert_allclose(R @ R.T, np.eye(3), atol=1e-14)

    def test_same_epoch_is_identity(self):
        e = Epoch.from_julian_year(2000.0)
        coord = EquatorialCoord(2.0, -0.3)
        assert coord.separation(precess(coord, e, e)) < 1e-12

    def test_general_precession_rate(self):
        # ~46.1"/yr in RA for a source on the equator
        config = TransformConfig(include_nutation=False)
        coord = EquatorialCoord(0.1, 0.0)
        moved = precess(coord, Epoch.from_julian_year(2000.0),
                        Epoch.from_julian_year(2050.0), config)
        assert 0.0110 < moved.ra - coord.ra < 0.0114

    def test_providers_agree(self):
        coord = EquatorialCoord(5.5, -0.9)
        e1, e2 = Epoch.from_julian_year(2000.0), Epoch.from_julian_year(2025.0)
        a = precess(coord, e1, e2, TransformConfig(provider=ErfaProvider(),
                                                   include_nutation=False))
        b = precess(coord, e1, e2, TransformConfig(provider=IAU1976Provider(),
                                                   include_nutation=False))
        assert a.separation(b) < 1e-5

    def test_to_date(self, obs_time):
        coord = EquatorialCoord(1.0, 0.2)
        of_date = to_date(coord, obs_time)
        assert of_date.equinox is None
        assert 0.0 < coord.separation(of_date) < 1e-2
        assert to_date(of_date, obs_time) is of_date


class TestHorizontalTransform:
    """Test equatorial <-> horizontal for an observatory and time."""

    def test_zenith(self, obs_time):
        lst = local_sidereal_time(MWA_LOCATION.longitude, obs_time)
        zenith = EquatorialCoord(lst, MWA_LOCATION.latitude, None)
        horizontal = to_horizontal(zenith, MWA_LOCATION, obs_time)
        assert horizontal.az == 0.0
        assert_allclose(horizontal.el, np.pi / 2, atol=1e-12)
        assert not np.isnan(horizontal.az)

    def test_carries_location_and_time(self, obs_time):
        horizontal = to_horizontal(EquatorialCoord(1.0, -0.5), MWA_LOCATION, obs_time)
        assert horizontal.location == MWA_LOCATION
        assert horizontal.epoch == obs_time

    @pytest.mark.parametrize("config", CONFIGS)
    def test_round_trip_of_date(self, obs_time, config):
        coord = EquatorialCoord.from_degrees(30.0, -40.0, equinox=None)
        horizontal = to_horizontal(coord, MWA_LOCATION, obs_time, config)
        back = to_equatorial(horizontal, MWA_LOCATION, obs_time, config, equinox=None)
        assert back.equinox is None
        assert coord.separation(back) < 1e-9

    @pytest.mark.parametrize("config", CONFIGS)
    def test_round_trip_j2000(self, obs_time, config):
        coord = EquatorialCoord(3.3, -0.6)
        horizontal = to_horizontal(coord, MWA_LOCATION, obs_time, config)
        back = to_equatorial(horizontal, MWA_LOCATION, obs_time, config, equinox=2000.0)
        assert_allclose(back.equinox, 2000.0, atol=1e-9)
        assert coord.separation(back) < 1e-9

    def test_round_trip_default_frame(self, obs_time):
        # no keywords: the result comes back in the J2000 frame it started in
        coord = EquatorialCoord(3.3, -0.6)
        back = to_equatorial(to_horizontal(coord, MWA_LOCATION, obs_time), MWA_LOCATION, obs_time)
        assert_allclose(back.equinox, coord.equinox, atol=1e-9)
        assert coord.separation(back) < 1e-9

    def test_transit_elevation(self, obs_time):
        # on the meridian, elevation is 90° - |dec - lat|
        lst = local_sidereal_time(MWA_LOCATION.longitude, obs_time)
        coord = EquatorialCoord(lst, -0.9, None)
        horizontal = to_horizontal(coord, MWA_LOCATION, obs_time)
        assert_allclose(horizontal.el, np.pi / 2 - abs(-0.9 - MWA_LOCATION.latitude),
                        atol=1e-12)
        assert_allclose(horizontal.az, np.pi, atol=1e-12)

    def test_pole_observatory(self, obs_time):
        pole = GeodeticPosition(np.pi / 2, 0.0, 0.0)
        horizontal = to_horizontal(EquatorialCoord(1.0, 0.3, None), pole, obs_time)
        assert_allclose(horizontal.el, 0.3, atol=1e-12)

    def test_nutation_changes_result(self, obs_time):
        coord = EquatorialCoord(1.0, -0.5)
        with_nut = to_horizontal(coord, MWA_LOCATION, obs_time,
                                 TransformConfig(include_nutation=True))
        without = to_horizontal(coord, MWA_LOCATION, obs_time,
                                TransformConfig(include_nutation=False))
        diff = np.hypot(wrap_pi(with_nut.az - without.az) * np.cos(with_nut.el),
                        with_nut.el - without.el)
        # nutation moves a source by well under an arcminute
        assert diff < np.radians(1.0 / 60.0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
