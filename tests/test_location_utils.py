"""Location provider and geocoding tests."""

import asyncio

import pytest

from moto_sos.config import Settings
from moto_sos.exceptions import LocationErrorCode, LocationUnavailable
from moto_sos.models.location import LocationAccuracy, LocationData
from moto_sos.utils.geocoding import (
    CoordinateGeocoder,
    NominatimGeocoder,
    build_geocoder,
    format_coordinates,
)
from moto_sos.utils.location_utils import (
    HTTPLocationProvider,
    StaticLocationProvider,
    UnsupportedLocationProvider,
    build_location_provider,
    validate_coordinates,
)


@pytest.mark.parametrize("accuracy,level", [
    (5, LocationAccuracy.HIGH),
    (10, LocationAccuracy.MEDIUM),
    (49.9, LocationAccuracy.MEDIUM),
    (50, LocationAccuracy.LOW),
    (None, LocationAccuracy.UNKNOWN),
])
def test_accuracy_level(accuracy, level):
    assert LocationData(lat=0, lng=0, accuracy=accuracy).accuracy_level is level


def test_validate_coordinates():
    assert validate_coordinates(19.4, -99.1)["valid"] is True
    result = validate_coordinates(91, 181)
    assert result["valid"] is False
    assert len(result["errors"]) == 2


def test_static_provider_reports_configured_position():
    location = asyncio.run(StaticLocationProvider(1.5, 2.5, 8.0).get_current_location())
    assert (location.lat, location.lng, location.accuracy) == (1.5, 2.5, 8.0)


def test_unsupported_provider_raises():
    with pytest.raises(LocationUnavailable) as exc:
        asyncio.run(UnsupportedLocationProvider().get_current_location())
    assert exc.value.code is LocationErrorCode.UNSUPPORTED
    assert str(exc.value) == "Geolocation is not supported on this device"


def test_slow_provider_times_out():
    class Slow(StaticLocationProvider):
        async def _acquire(self):
            await asyncio.sleep(1)

    with pytest.raises(LocationUnavailable) as exc:
        asyncio.run(Slow(0, 0, timeout=0.01).get_current_location())
    assert exc.value.code is LocationErrorCode.TIMEOUT


@pytest.mark.parametrize("payload", [
    {"lat": 19.4, "lon": -99.1},
    {"lat": 19.4, "lng": -99.1},
    {"latitude": 19.4, "longitude": -99.1},
])
def test_http_provider_parses_common_shapes(payload):
    location = HTTPLocationProvider("http://example.invalid", default_accuracy=30).parse_position(payload)
    assert (location.lat, location.lng, location.accuracy) == (19.4, -99.1, 30)


@pytest.mark.parametrize("payload", [
    {"status": "fail"},
    {"lat": 95, "lon": 0},
    {"lat": "abc", "lon": 1},
    {"lat": [19.4], "lon": -99.1},
    {"lat": 19.4, "lon": -99.1, "accuracy": "good"},
    {"lat": 19.4, "lon": -99.1, "accuracy": -5},
    ["not", "an", "object"],
])
def test_http_provider_rejects_bad_payload(payload):
    with pytest.raises(LocationUnavailable) as exc:
        HTTPLocationProvider("http://example.invalid").parse_position(payload)
    assert exc.value.code is LocationErrorCode.UNAVAILABLE


def test_build_location_provider():
    assert isinstance(build_location_provider(Settings(LOCATION_PROVIDER="static")), StaticLocationProvider)
    assert isinstance(build_location_provider(Settings(LOCATION_PROVIDER="http")), HTTPLocationProvider)
    assert isinstance(build_location_provider(Settings(LOCATION_PROVIDER="gps")), UnsupportedLocationProvider)


def test_watch_location_delivers_fixes_until_stopped():
    """The watcher keeps calling back until stopped."""
    fixes = []

    async def run():
        watch = StaticLocationProvider(1.0, 2.0).watch_location(fixes.append, interval=0)
        for _ in range(500):
            if len(fixes) >= 3:
                break
            await asyncio.sleep(0)
        watch.stop()
        for _ in range(50):
            if not watch.active:
                break
            await asyncio.sleep(0)
        return watch.active

    assert asyncio.run(run()) is False
    assert len(fixes) >= 3
    assert all(fix.lat == 1.0 for fix in fixes)


def test_coordinate_geocoder():
    address = asyncio.run(CoordinateGeocoder().reverse_geocode(19.4326, -99.1332))
    assert address == format_coordinates(19.4326, -99.1332) == "Lat: 19.432600, Lng: -99.133200"


def test_build_geocoder():
    assert isinstance(build_geocoder(Settings(GEOCODER="nominatim")), NominatimGeocoder)
    assert isinstance(build_geocoder(Settings()), CoordinateGeocoder)
