import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

import aiohttp

from moto_sos.config import Settings, settings
from moto_sos.exceptions import LocationErrorCode, LocationUnavailable
from moto_sos.models.location import LocationData

logger = logging.getLogger(__name__)

LocationCallback = Callable[[LocationData], None]

def validate_coordinates(latitude: float, longitude: float) -> Dict[str, Any]:
    """
    Basic coordinate validation
    Returns validation result with details
    """
    result: Dict[str, Any] = {
        "valid": False,
        "errors": []
    }

    if not (-90 <= latitude <= 90):
        result["errors"].append("Invalid latitude: must be between -90 and 90")

    if not (-180 <= longitude <= 180):
        result["errors"].append("Invalid longitude: must be between -180 and 180")

    result["valid"] = not result["errors"]
    return result

class LocationWatch:
    """Handle for a running watch_location() subscription"""

    def __init__(self, task: asyncio.Task):
        self._task = task

    @property
    def active(self) -> bool:
        return not self._task.done()

    def stop(self):
        self._task.cancel()

class LocationProvider(ABC):
    """
    One-shot and continuous device position.

    Subclasses implement _acquire(); the timeout is enforced here and
    reported as LocationErrorCode.TIMEOUT.
    """

    def __init__(self, timeout: float = settings.LOCATION_TIMEOUT_SECONDS):
        self.timeout = timeout

    async def get_current_location(self) -> LocationData:
        try:
            return await asyncio.wait_for(self._acquire(), timeout=self.timeout)
        except asyncio.TimeoutError:
            raise LocationUnavailable(
                LocationErrorCode.TIMEOUT, f"no fix within {self.timeout:g}s"
            ) from None

    @abstractmethod
    async def _acquire(self) -> LocationData:
        pass

    def watch_location(
        self,
        callback: LocationCallback,
        interval: float = settings.LOCATION_WATCH_INTERVAL_SECONDS
    ) -> LocationWatch:
        """Call `callback` with a fresh fix every `interval` seconds until stopped"""
        return LocationWatch(asyncio.create_task(self._watch(callback, interval)))

    async def _watch(self, callback: LocationCallback, interval: float):
        while True:
            try:
                callback(await self.get_current_location())
            except LocationUnavailable as e:
                logger.error(f"Error watching location: {e}")
            await asyncio.sleep(interval)

class StaticLocationProvider(LocationProvider):
    """Reports a fixed position, e.g. one configured for a mounted device"""

    def __init__(self, lat: float, lng: float, accuracy: Optional[float] = None, **kwargs):
        super().__init__(**kwargs)
        self.lat = lat
        self.lng = lng
        self.accuracy = accuracy

    async def _acquire(self) -> LocationData:
        return LocationData(lat=self.lat, lng=self.lng, accuracy=self.accuracy)

class UnsupportedLocationProvider(LocationProvider):
    async def _acquire(self) -> LocationData:
        raise LocationUnavailable(LocationErrorCode.UNSUPPORTED)

class HTTPLocationProvider(LocationProvider):
    """
    Position from a JSON location endpoint (IP geolocation or a phone
    companion app). Accepts `lat`/`lon`, `lat`/`lng` or
    `latitude`/`longitude` keys and an optional `accuracy` in meters.
    """

    def __init__(self, api_url: str, default_accuracy: Optional[float] = None, **kwargs):
        super().__init__(**kwargs)
        self.api_url = api_url
        self.default_accuracy = default_accuracy

    async def _acquire(self) -> LocationData:
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(self.api_url) as response:
                    if response.status in (401, 403):
                        raise LocationUnavailable(LocationErrorCode.PERMISSION_DENIED)
                    if response.status != 200:
                        raise LocationUnavailable(
                            LocationErrorCode.UNAVAILABLE, f"HTTP {response.status}"
                        )
                    data = await response.json()
        except (aiohttp.ClientError, ValueError) as e:
            # ValueError covers a body that is not JSON
            raise LocationUnavailable(LocationErrorCode.UNAVAILABLE, str(e)) from e

        return self.parse_position(data)

    def parse_position(self, data: Dict[str, Any]) -> LocationData:
        if not isinstance(data, dict):
            raise LocationUnavailable(LocationErrorCode.UNAVAILABLE, "response is not a JSON object")

        lat = data.get("lat", data.get("latitude"))
        lng = data.get("lng", data.get("lon", data.get("longitude")))
        if lat is None or lng is None:
            raise LocationUnavailable(LocationErrorCode.UNAVAILABLE, "response has no coordinates")

        try:
            lat, lng = float(lat), float(lng)
            validation = validate_coordinates(lat, lng)
            if not validation["valid"]:
                raise LocationUnavailable(LocationErrorCode.UNAVAILABLE, "; ".join(validation["errors"]))

            return LocationData(
                lat=lat,
                lng=lng,
                accuracy=data.get("accuracy", self.default_accuracy)
            )
        except (TypeError, ValueError) as e:
            # pydantic ValidationError is a ValueError
            raise LocationUnavailable(LocationErrorCode.UNAVAILABLE, f"malformed position: {e}") from e

def build_location_provider(config: Settings = settings) -> LocationProvider:
    provider = config.LOCATION_PROVIDER.lower()
    if provider == "static":
        return StaticLocationProvider(
            config.DEFAULT_LATITUDE,
            config.DEFAULT_LONGITUDE,
            config.DEFAULT_ACCURACY,
            timeout=config.LOCATION_TIMEOUT_SECONDS
        )
    elif provider == "http":
        return HTTPLocationProvider(
            config.LOCATION_API_URL,
            default_accuracy=config.DEFAULT_ACCURACY,
            timeout=config.LOCATION_TIMEOUT_SECONDS
        )

    logger.warning(f"Unknown location provider {provider!r}")
    return UnsupportedLocationProvider(timeout=config.LOCATION_TIMEOUT_SECONDS)
