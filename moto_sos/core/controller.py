import asyncio
import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from moto_sos.core.contact_store import ContactStore
from moto_sos.core.emergency_alert import DispatchReport, NotificationDispatcher
from moto_sos.core.facility_locator import FacilityLocator
from moto_sos.core.session_store import SessionStore
from moto_sos.exceptions import (
    EmergencyStateError,
    LocationErrorCode,
    LocationUnavailable,
    StorageError,
)
from moto_sos.models.contact import EmergencyContact
from moto_sos.models.hospital import CallResult, Hospital
from moto_sos.models.location import LocationData
from moto_sos.models.session import EmergencySession, SessionStatus, SessionUpdate
from moto_sos.utils.geocoding import ReverseGeocoder, format_coordinates
from moto_sos.utils.location_utils import LocationProvider
from moto_sos.utils.notifications import Dialer

logger = logging.getLogger(__name__)

class ActivationState(str, Enum):
    NO_ACTIVE_SESSION = "no_active_session"
    ACTIVATION_PENDING = "activation_pending"
    ACTIVE_SESSION = "active_session"

class ActiveTab(str, Enum):
    EMERGENCY = "emergency"
    CONTACTS = "contacts"
    HISTORY = "history"
    SETTINGS = "settings"

class CountdownOutcome(str, Enum):
    FIRED = "fired"
    ABORTED = "aborted"

class Countdown:
    """Hold-to-confirm countdown. Ends either fired or aborted, never both."""

    def __init__(self, ticks: int = 3):
        self.ticks = ticks
        self.remaining = ticks
        self.outcome: Optional[CountdownOutcome] = None

    @property
    def finished(self) -> bool:
        return self.outcome is not None

    def tick(self) -> Optional[CountdownOutcome]:
        if self.outcome is None:
            self.remaining -= 1
            if self.remaining <= 0:
                self.remaining = 0
                self.outcome = CountdownOutcome.FIRED
        return self.outcome

    def abort(self) -> bool:
        if self.outcome is not None:
            return False
        self.outcome = CountdownOutcome.ABORTED
        return True

class EmergencyController:
    """
    Drives the emergency flow for one rider.

    Everything held here (contacts, active session, hospitals, location) is
    a cache of what the stores and providers report, refreshed after every
    change.
    """

    def __init__(
        self,
        session_store: SessionStore,
        contact_store: ContactStore,
        location_provider: LocationProvider,
        facility_locator: FacilityLocator,
        dispatcher: NotificationDispatcher,
        geocoder: ReverseGeocoder,
        dialer: Dialer,
        countdown_ticks: int = 3,
        tick_seconds: float = 1.0
    ):
        self.session_store = session_store
        self.contact_store = contact_store
        self.location_provider = location_provider
        self.facility_locator = facility_locator
        self.dispatcher = dispatcher
        self.geocoder = geocoder
        self.dialer = dialer
        self.countdown_ticks = countdown_ticks
        self.tick_seconds = tick_seconds

        self.active_tab = ActiveTab.EMERGENCY
        self.active_session: Optional[EmergencySession] = None
        self.contacts: List[EmergencyContact] = []
        self.nearby_hospitals: List[Hospital] = []
        self.location: Optional[LocationData] = None
        self.location_error: Optional[str] = None
        self.last_error: Optional[str] = None
        self.last_dispatch: Optional[DispatchReport] = None
        self.is_loading_location = False
        self.is_loading_hospitals = False
        self.countdown: Optional[Countdown] = None
        self._timer: Optional[asyncio.Task] = None

    @property
    def state(self) -> ActivationState:
        if self.active_session is not None:
            return ActivationState.ACTIVE_SESSION
        if self.countdown is not None:
            return ActivationState.ACTIVATION_PENDING
        return ActivationState.NO_ACTIVE_SESSION

    # Startup

    def load(self):
        """Load contacts and pick up a session left active by a previous run"""
        self.reload_contacts()
        active = self.session_store.get_active_session()
        if active is not None:
            self.active_session = active
            self.active_tab = ActiveTab.EMERGENCY
            logger.info(f"Resuming active emergency session {active.id}")

    async def start(self):
        self.load()
        await self.refresh_location()

    def reload_contacts(self) -> List[EmergencyContact]:
        self.contacts = self.contact_store.list_contacts()
        return self.contacts

    def set_active_tab(self, tab: ActiveTab):
        self.active_tab = ActiveTab(tab)

    # Location and facilities

    async def refresh_location(self) -> Optional[LocationData]:
        self.is_loading_location = True
        self.location_error = None
        try:
            self.location = await self.location_provider.get_current_location()
        except LocationUnavailable as e:
            self.location_error = str(e)
            logger.warning(f"Location unavailable ({e.code.value}): {e}")
            return None
        finally:
            self.is_loading_location = False

        if self.active_session is None:
            await self.find_nearby_hospitals()
        return self.location

    async def find_nearby_hospitals(self) -> List[Hospital]:
        if self.location is None:
            return self.nearby_hospitals

        self.is_loading_hospitals = True
        try:
            self.nearby_hospitals = await self.facility_locator.find_nearby(self.location)
        except Exception as e:
            # Facility lookup must never break the emergency flow
            logger.error(f"Error finding hospitals: {e}")
        finally:
            self.is_loading_hospitals = False
        return self.nearby_hospitals

    def get_hospital(self, hospital_id: str) -> Optional[Hospital]:
        return next((h for h in self.nearby_hospitals if h.id == hospital_id), None)

    # Activation

    def begin_activation(self) -> Countdown:
        if self.state is not ActivationState.NO_ACTIVE_SESSION:
            raise EmergencyStateError(f"Cannot start activation while {self.state.value}")

        self.last_error = None
        self.countdown = Countdown(self.countdown_ticks)
        logger.info(f"Activation countdown started ({self.countdown_ticks} ticks)")
        return self.countdown

    def press(self) -> Countdown:
        """Start the countdown and tick it on a timer until fired or released"""
        countdown = self.begin_activation()
        self._timer = asyncio.create_task(self._run_countdown(countdown))
        return countdown

    async def _run_countdown(self, countdown: Countdown):
        while self.countdown is countdown and not countdown.finished:
            await asyncio.sleep(self.tick_seconds)
            if self.countdown is not countdown:
                break
            await self.tick()

    def release(self) -> ActivationState:
        countdown = self.countdown
        if countdown is not None and countdown.abort():
            self.countdown = None
            if self._timer is not None and not self._timer.done():
                self._timer.cancel()
            self._timer = None
            logger.info(f"Activation released with {countdown.remaining} ticks left")
        return self.state

    async def tick(self) -> ActivationState:
        countdown = self.countdown
        if countdown is None or countdown.finished:
            return self.state

        if countdown.tick() is CountdownOutcome.FIRED:
            try:
                await self._activate()
            except (LocationUnavailable, EmergencyStateError, StorageError) as e:
                self.last_error = str(e)
                logger.error(f"Emergency activation failed: {e}")
            finally:
                self.countdown = None
                self._timer = None

        return self.state

    async def _activate(self) -> EmergencySession:
        location = self.location
        if location is None:
            raise LocationUnavailable(
                LocationErrorCode.UNAVAILABLE, "allow location access and try again"
            )
        if self.session_store.get_active_session() is not None:
            raise EmergencyStateError("An emergency session is already active")

        try:
            address = await self.geocoder.reverse_geocode(location.lat, location.lng)
        except Exception as e:
            logger.error(f"Reverse geocoding failed: {e}")
            address = format_coordinates(location.lat, location.lng)

        session = self.session_store.create_session(location, address)
        self.active_session = session
        self.active_tab = ActiveTab.EMERGENCY
        logger.critical(f"EMERGENCY ACTIVATED: session {session.id} at {address}")

        contacts = self.reload_contacts()
        if contacts:
            try:
                self.last_dispatch = await self.dispatcher.send_alert(contacts, location, address)
                if self.last_dispatch.delivered:
                    self.session_store.append_contacts_notified(
                        session.id, self.last_dispatch.delivered
                    )
            except Exception as e:
                # The session is recorded even when nobody could be alerted
                logger.error(f"Emergency alert dispatch failed: {e}")

        await self.find_nearby_hospitals()
        self._resync_active_session()
        return self.active_session

    # Active session

    def _resync_active_session(self):
        if self.active_session is None:
            return
        stored = self.session_store.get_session(self.active_session.id)
        if stored is not None:
            self.active_session = stored

    def resolve_emergency(self, confirmed: bool = False) -> Optional[EmergencySession]:
        return self._close_active_session(SessionStatus.RESOLVED, confirmed)

    def cancel_emergency(self, confirmed: bool = False) -> Optional[EmergencySession]:
        return self._close_active_session(SessionStatus.CANCELLED, confirmed)

    def _close_active_session(self, status: SessionStatus, confirmed: bool) -> Optional[EmergencySession]:
        if self.active_session is None:
            raise EmergencyStateError("No active emergency session")
        if not confirmed:
            return None

        session_id = self.active_session.id
        self.session_store.update_session(session_id, SessionUpdate(status=status))
        closed = self.session_store.get_session(session_id)
        if closed is None:
            # Stored history was lost; close the cached copy so the rider is not stuck
            logger.warning(f"Emergency session {session_id} missing from storage, closing cached copy")
            closed = self.active_session.model_copy(update={"status": status})

        self.active_session = None
        self.active_tab = ActiveTab.EMERGENCY
        logger.info(f"Emergency session {session_id} {status.value}")
        return closed

    async def call_hospital(self, hospital: Hospital) -> CallResult:
        dial_uri = await self.dialer.dial(hospital.phone)

        recorded = False
        if self.active_session is not None:
            self.session_store.append_hospital_contacted(self.active_session.id, hospital.name)
            self._resync_active_session()
            recorded = True

        return CallResult(hospital=hospital, dial_uri=dial_uri, recorded_on_session=recorded)

    def status_summary(self) -> Dict[str, Any]:
        """What the status bar shows"""
        return {
            "state": self.state.value,
            "active_tab": self.active_tab.value,
            "gps_active": self.location is not None,
            "contacts": len(self.contacts),
            "hospitals": len(self.nearby_hospitals),
            "countdown": self.countdown.remaining if self.countdown else None,
            "elapsed": self.active_session.elapsed() if self.active_session else None,
            "message": "Emergency in progress" if self.active_session else "System ready",
            "last_error": self.last_error,
            "location_error": self.location_error,
        }
