import asyncio
import aiohttp
import base64
import logging
from typing import Any, Callable, Dict, List, Optional
from abc import ABC, abstractmethod
from dataclasses import dataclass
from moto_sos.config import Settings, settings

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30

def mask_phone(phone_number: str) -> str:
    return f"{phone_number[:6]}****"

def to_international(phone_number: str, country_code: str) -> str:
    """
    Normalize a phone number to +<country><number>.

    Numbers already starting with + are kept, a leading trunk 0 is dropped
    and a bare national number gets the default country code.
    """
    digits = ''.join(c for c in phone_number if c.isdigit())
    if phone_number.strip().startswith('+'):
        return '+' + digits

    country_digits = country_code.lstrip('+')
    if digits.startswith(country_digits) and len(digits) > 10:
        return '+' + digits
    if digits.startswith('0'):
        digits = digits[1:]
    return f"+{country_digits}{digits}"

class NotificationService(ABC):
    """A channel that can deliver one alert to one phone number"""

    channel = "generic"

    @abstractmethod
    async def send_notification(self, recipient: str, message: str, **kwargs) -> bool:
        pass

class LogNotificationService(NotificationService):
    """Writes alerts to the log instead of delivering them"""

    channel = "log"

    def __init__(self):
        self.sent: List[Dict[str, str]] = []

    async def send_notification(self, recipient: str, message: str, **kwargs) -> bool:
        self.sent.append({"recipient": recipient, "message": message})
        logger.info(f"Alert for {mask_phone(recipient)}:\n{message}")
        return True

@dataclass(frozen=True)
class SMSGateway:
    """How one SMS provider wants its request shaped and its reply read"""

    name: str
    payload: Callable[[str, str, str, str], Dict[str, Any]]
    accepted: Callable[[Dict[str, Any]], bool]
    auth_headers: Callable[[str], Dict[str, str]] = lambda api_key: {}

def _basic_auth(api_key: str) -> Dict[str, str]:
    credentials = base64.b64encode(f"{api_key}:token".encode()).decode()
    return {"Authorization": f"Basic {credentials}"}

# Matched against the configured API URL; "generic" is the fallback
SMS_GATEWAYS: Dict[str, SMSGateway] = {
    "termii": SMSGateway(
        name="termii",
        payload=lambda to, text, sender, key: {
            "to": to, "from": sender, "sms": text,
            "type": "plain", "channel": "generic", "api_key": key,
        },
        accepted=lambda data: data.get("message_id") is not None,
    ),
    "africastalking": SMSGateway(
        name="africastalking",
        payload=lambda to, text, sender, key: {
            "username": "sandbox", "to": to, "message": text, "from": sender,
        },
        accepted=lambda data: "SMSMessageData" in data,
        auth_headers=lambda key: {"apiKey": key},
    ),
    "twilio": SMSGateway(
        name="twilio",
        payload=lambda to, text, sender, key: {"To": to, "From": sender, "Body": text},
        accepted=lambda data: data.get("status") in ("queued", "sent"),
        auth_headers=_basic_auth,
    ),
    "generic": SMSGateway(
        name="generic",
        payload=lambda to, text, sender, key: {
            "to": to, "message": text, "from": sender, "api_key": key,
        },
        accepted=lambda data: bool(
            data.get("success") or data.get("status") == "success" or "message_id" in data
        ),
    ),
}

def detect_gateway(api_url: str) -> SMSGateway:
    url = api_url.lower()
    for name, gateway in SMS_GATEWAYS.items():
        if name != "generic" and name in url:
            return gateway
    return SMS_GATEWAYS["generic"]

class SMSService(NotificationService):
    """Emergency alerts by SMS through an HTTP gateway"""

    channel = "sms"

    def __init__(self, config: Settings = settings):
        self.api_key = config.SMS_API_KEY
        self.api_url = config.SMS_API_URL
        self.sender_id = config.SMS_SENDER_ID
        self.country_code = config.DEFAULT_COUNTRY_CODE
        self.gateway = detect_gateway(self.api_url)

    @property
    def provider(self) -> str:
        return self.gateway.name

    def format_phone_number(self, phone_number: str) -> str:
        return to_international(phone_number, self.country_code)

    async def send_sms(self, phone_number: str, message: str, sender_id: Optional[str] = None) -> bool:
        recipient = self.format_phone_number(phone_number)
        payload = self.gateway.payload(recipient, message, sender_id or self.sender_id, self.api_key)
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            **self.gateway.auth_headers(self.api_key)
        }

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self.api_url,
                    json=payload,
                    headers=headers,
                    timeout=aiohttp.ClientTimeout(total=REQUEST_TIMEOUT)
                ) as response:
                    if response.status != 200:
                        logger.error(f"SMS gateway error for {mask_phone(recipient)}: "
                                     f"{response.status} - {await response.text()}")
                        return False
                    accepted = self.gateway.accepted(await response.json())
        except asyncio.TimeoutError:
            logger.error(f"SMS to {mask_phone(recipient)} timed out")
            return False
        except aiohttp.ClientError as e:
            logger.error(f"SMS to {mask_phone(recipient)} failed: {e}")
            return False

        if accepted:
            logger.info(f"SMS accepted by {self.provider} for {mask_phone(recipient)}")
        else:
            logger.error(f"SMS rejected by {self.provider} for {mask_phone(recipient)}")
        return accepted

    async def send_notification(self, recipient: str, message: str, **kwargs) -> bool:
        return await self.send_sms(recipient, message, kwargs.get('sender_id'))

class WhatsAppService(NotificationService):
    """Emergency alerts as WhatsApp Business text messages"""

    channel = "whatsapp"

    def __init__(self, config: Settings = settings):
        self.api_key = config.WHATSAPP_API_KEY
        self.api_url = config.WHATSAPP_API_URL
        self.phone_number_id = config.WHATSAPP_PHONE_ID
        self.country_code = config.DEFAULT_COUNTRY_CODE

    @property
    def configured(self) -> bool:
        return all([self.api_key, self.api_url, self.phone_number_id])

    def format_phone_number(self, phone_number: str) -> str:
        # The Cloud API takes digits only
        return to_international(phone_number, self.country_code).lstrip('+')

    async def send_notification(self, recipient: str, message: str, **kwargs) -> bool:
        if not self.configured:
            logger.warning("WhatsApp channel is not configured, alert not sent")
            return False

        payload = {
            "messaging_product": "whatsapp",
            "to": self.format_phone_number(recipient),
            "type": "text",
            "text": {"body": message}
        }

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    f"{self.api_url}/{self.phone_number_id}/messages",
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    timeout=aiohttp.ClientTimeout(total=REQUEST_TIMEOUT)
                ) as response:
                    if response.status != 200:
                        logger.error(f"WhatsApp API error for {mask_phone(recipient)}: {response.status}")
                        return False
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"WhatsApp message to {mask_phone(recipient)} failed: {e}")
            return False

        logger.info(f"WhatsApp alert sent to {mask_phone(recipient)}")
        return True

def build_notification_service(config: Settings = settings) -> NotificationService:
    channel = config.NOTIFICATION_CHANNEL.lower()
    if channel == "sms":
        return SMSService(config)
    elif channel == "whatsapp":
        return WhatsAppService(config)
    elif channel != "log":
        logger.warning(f"Unknown notification channel {channel!r}, alerts will only be logged")
    return LogNotificationService()

class Dialer(ABC):
    """Places an outbound call"""

    @abstractmethod
    async def dial(self, phone_number: str) -> str:
        """Start a call and return the dial URI that was used"""

class LogDialer(Dialer):
    """Hands the tel: URI to the log; the device opens it"""

    def __init__(self):
        self.dialed: List[str] = []

    async def dial(self, phone_number: str) -> str:
        uri = f"tel:{phone_number}"
        self.dialed.append(uri)
        logger.info(f"Dialing {uri}")
        return uri
