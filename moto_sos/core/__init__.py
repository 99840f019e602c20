"""
Core modules for the Moto SOS rider safety app

This package contains the core business logic:
- distance: Haversine great-circle distance
- facility_locator: Nearby medical facility lookup and ranking
- contact_store: Persisted emergency contacts
- session_store: Emergency session lifecycle and history
- emergency_alert: Alert formatting and per-contact dispatch
- controller: Activation countdown and emergency flow orchestration
"""

from .distance import calculate_distance

from .facility_locator import (
    FacilityLocator,
    MockFacilityLocator,
    rank_by_distance
)

from .contact_store import ContactStore
from .session_store import SessionStore

from .emergency_alert import (
    DeliveryResult,
    DispatchReport,
    NotificationDispatcher
)

from .controller import (
    ActivationState,
    ActiveTab,
    Countdown,
    CountdownOutcome,
    EmergencyController
)

__all__ = [
    # Distance and facilities
    "calculate_distance",
    "FacilityLocator",
    "MockFacilityLocator",
    "rank_by_distance",

    # Stores
    "ContactStore",
    "SessionStore",

    # Alerts
    "DeliveryResult",
    "DispatchReport",
    "NotificationDispatcher",

    # Controller
    "ActivationState",
    "ActiveTab",
    "Countdown",
    "CountdownOutcome",
    "EmergencyController"
]
