"""Notification dispatcher tests."""

import asyncio
from datetime import datetime, timezone

from moto_sos.core.emergency_alert import NotificationDispatcher
from moto_sos.models.contact import EmergencyContact
from moto_sos.models.location import LocationData

from tests.fakes import RecordingChannel


def _contacts():
    return [
        EmergencyContact(name="Luis", phone="555-2"),
        EmergencyContact(name="Ana", phone="555-1", is_primary=True),
        EmergencyContact(name="Marta", phone="555-3"),
    ]


def test_message_contains_location_details():
    """Address, coordinates, time and map link are in the alert."""
    dispatcher = NotificationDispatcher(RecordingChannel())
    location = LocationData(lat=19.4326, lng=-99.1332, accuracy=10)
    sent_at = datetime(2026, 3, 1, 14, 5, tzinfo=timezone.utc)

    message = dispatcher.format_alert_message(location, "Av. Reforma 222", sent_at)

    assert "MOTORCYCLIST EMERGENCY" in message
    assert "Location: Av. Reforma 222" in message
    assert "Coordinates: 19.432600, -99.133200" in message
    assert "Time: 14:05 01/03/2026" in message
    assert "https://maps.google.com/?q=19.4326,-99.1332" in message


def test_custom_maps_url_template():
    """The map link follows the configured template."""
    dispatcher = NotificationDispatcher(
        RecordingChannel(), maps_url_template="https://osm.org/?mlat={lat}&mlon={lng}"
    )
    assert dispatcher.maps_url(LocationData(lat=1.5, lng=2.5)) == "https://osm.org/?mlat=1.5&mlon=2.5"


def test_every_contact_gets_the_alert(rider_location):
    """One delivery per contact, same message."""
    channel = RecordingChannel()
    report = asyncio.run(NotificationDispatcher(channel).send_alert(_contacts(), rider_location, "here"))

    assert sorted(phone for phone, _ in channel.sent) == ["555-1", "555-2", "555-3"]
    assert {message for _, message in channel.sent} == {report.message}
    assert report.all_delivered


def test_primary_contact_is_sent_first(rider_location):
    """The primary contact is alerted before the others."""
    channel = RecordingChannel()
    report = asyncio.run(NotificationDispatcher(channel).send_alert(_contacts(), rider_location, "here"))

    assert channel.sent[0][0] == "555-1"
    assert report.delivered == ["Ana", "Luis", "Marta"]


def test_failures_are_per_contact(rider_location):
    """A failed or raising delivery does not stop the others."""
    channel = RecordingChannel(fail_for={"555-2"}, raise_for={"555-3"})
    report = asyncio.run(NotificationDispatcher(channel).send_alert(_contacts(), rider_location, "here"))

    assert report.delivered == ["Ana"]
    assert report.failed == ["Luis", "Marta"]
    assert not report.all_delivered
    marta = next(r for r in report.results if r.contact_name == "Marta")
    assert "gateway down" in marta.error


def test_no_contacts_means_empty_report(rider_location):
    """Nobody to alert is not an error."""
    report = asyncio.run(NotificationDispatcher(RecordingChannel()).send_alert([], rider_location, "here"))
    assert report.results == []
    assert report.delivered == []
