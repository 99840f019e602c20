"""Pytest fixtures."""

import pytest
from fastapi.testclient import TestClient

from moto_sos.core import (
    ContactStore,
    EmergencyController,
    MockFacilityLocator,
    NotificationDispatcher,
    SessionStore,
)
from moto_sos.database import MemoryKeyValueStore
from moto_sos.main import app
from moto_sos.models.location import LocationData
from moto_sos.utils.geocoding import CoordinateGeocoder
from moto_sos.utils.notifications import LogDialer

from tests.fakes import FakeLocationProvider, RecordingChannel


@pytest.fixture
def rider_location():
    return LocationData(lat=19.4326, lng=-99.1332, accuracy=12.0)


@pytest.fixture
def kv_store():
    return MemoryKeyValueStore()


@pytest.fixture
def session_store(kv_store):
    return SessionStore(kv_store)


@pytest.fixture
def contact_store(kv_store):
    return ContactStore(kv_store)


@pytest.fixture
def channel():
    return RecordingChannel()


@pytest.fixture
def make_controller(session_store, contact_store, channel, rider_location):
    """Build a controller over the in-memory stores; keyword overrides allowed."""

    def _make(**overrides):
        options = dict(
            session_store=session_store,
            contact_store=contact_store,
            location_provider=FakeLocationProvider(rider_location),
            facility_locator=MockFacilityLocator(),
            dispatcher=NotificationDispatcher(channel),
            geocoder=CoordinateGeocoder(),
            dialer=LogDialer(),
            countdown_ticks=3,
            tick_seconds=60,
        )
        options.update(overrides)
        return EmergencyController(**options)

    return _make


@pytest.fixture
def controller(make_controller):
    return make_controller()


@pytest.fixture
def client(controller):
    """Test client wired to the in-memory controller."""
    app.state.controller = controller
    with TestClient(app) as c:
        yield c
    app.state.controller = None
