import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from moto_sos.config import settings
from moto_sos.models.contact import EmergencyContact
from moto_sos.models.location import LocationData
from moto_sos.utils.notifications import NotificationService, mask_phone

logger = logging.getLogger(__name__)

@dataclass
class DeliveryResult:
    contact_id: str
    contact_name: str
    phone: str
    success: bool
    error: Optional[str] = None

@dataclass
class DispatchReport:
    message: str
    sent_at: datetime
    results: List[DeliveryResult] = field(default_factory=list)

    @property
    def delivered(self) -> List[str]:
        """
        Names of contacts reached, in delivery order: the primary contact
        first, then the others in stored order
        """
        return [r.contact_name for r in self.results if r.success]

    @property
    def failed(self) -> List[str]:
        return [r.contact_name for r in self.results if not r.success]

    @property
    def all_delivered(self) -> bool:
        return all(r.success for r in self.results)

class NotificationDispatcher:
    """
    Sends the emergency alert to every contact.

    Each contact is a separate delivery attempt; one failing never stops
    the others. The primary contact goes first, the rest concurrently.
    """

    def __init__(
        self,
        channel: NotificationService,
        maps_url_template: str = settings.MAPS_URL_TEMPLATE
    ):
        self.channel = channel
        self.maps_url_template = maps_url_template

    def maps_url(self, location: LocationData) -> str:
        return self.maps_url_template.format(lat=location.lat, lng=location.lng)

    def format_alert_message(
        self,
        location: LocationData,
        address: str,
        sent_at: Optional[datetime] = None
    ) -> str:
        """Format the alert text sent to emergency contacts"""
        sent_at = sent_at or datetime.now(timezone.utc)

        return f"""🚨 MOTORCYCLIST EMERGENCY 🚨

Location: {address}
Coordinates: {location.lat:.6f}, {location.lng:.6f}
Time: {sent_at.strftime('%H:%M %d/%m/%Y')}

Google Maps: {self.maps_url(location)}"""

    async def send_alert(
        self,
        contacts: Sequence[EmergencyContact],
        location: LocationData,
        address: str
    ) -> DispatchReport:
        sent_at = datetime.now(timezone.utc)
        message = self.format_alert_message(location, address, sent_at)
        report = DispatchReport(message=message, sent_at=sent_at)

        primary = [c for c in contacts if c.is_primary]
        others = [c for c in contacts if not c.is_primary]

        for contact in primary:
            report.results.append(await self._deliver(contact, message))

        results = await asyncio.gather(
            *(self._deliver(contact, message) for contact in others)
        )
        report.results.extend(results)

        self._log_dispatch_summary(report)
        return report

    async def _deliver(self, contact: EmergencyContact, message: str) -> DeliveryResult:
        try:
            success = await self.channel.send_notification(contact.phone, message)
            error = None if success else f"{self.channel.channel} delivery failed"
        except Exception as e:
            # A channel that raises is a failed delivery, not a failed dispatch
            logger.error(f"Alert to {mask_phone(contact.phone)} raised: {e}")
            success, error = False, str(e)

        return DeliveryResult(
            contact_id=contact.id,
            contact_name=contact.name,
            phone=contact.phone,
            success=success,
            error=error
        )

    def _log_dispatch_summary(self, report: DispatchReport):
        sent = len(report.delivered)
        failed = len(report.failed)

        logger.critical(f"Emergency alert via {self.channel.channel}: {sent} sent, {failed} failed")
        for result in report.results:
            if not result.success:
                logger.error(f"FAILED to alert {result.contact_name} ({mask_phone(result.phone)})")
