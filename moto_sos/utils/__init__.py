"""
Utility modules for the Moto SOS rider safety app

This package contains the external collaborators:
- notifications: Alert delivery channels (log, SMS, WhatsApp) and dialing
- location_utils: Device location providers
- geocoding: Reverse geocoding of coordinates to addresses
"""

from .notifications import (
    NotificationService,
    LogNotificationService,
    SMSService,
    WhatsAppService,
    Dialer,
    LogDialer,
    build_notification_service
)

from .location_utils import (
    LocationProvider,
    LocationWatch,
    StaticLocationProvider,
    HTTPLocationProvider,
    UnsupportedLocationProvider,
    build_location_provider
)

from .geocoding import (
    ReverseGeocoder,
    CoordinateGeocoder,
    NominatimGeocoder,
    build_geocoder
)

__all__ = [
    # Notification services
    "NotificationService",
    "LogNotificationService",
    "SMSService",
    "WhatsAppService",
    "Dialer",
    "LogDialer",
    "build_notification_service",

    # Location
    "LocationProvider",
    "LocationWatch",
    "StaticLocationProvider",
    "HTTPLocationProvider",
    "UnsupportedLocationProvider",
    "build_location_provider",

    # Geocoding
    "ReverseGeocoder",
    "CoordinateGeocoder",
    "NominatimGeocoder",
    "build_geocoder"
]
