"""
Reverse geocoding

CoordinateGeocoder formats the coordinates themselves and never fails.
NominatimGeocoder asks OpenStreetMap for a street address and falls back to
the coordinate text when the lookup fails, so an emergency always gets an
address string.
"""

import asyncio
import logging
from abc import ABC, abstractmethod

import aiohttp

from moto_sos.config import Settings, settings

logger = logging.getLogger(__name__)

NOMINATIM_TIMEOUT = 5

def format_coordinates(lat: float, lng: float) -> str:
    return f"Lat: {lat:.6f}, Lng: {lng:.6f}"

class ReverseGeocoder(ABC):
    @abstractmethod
    async def reverse_geocode(self, lat: float, lng: float) -> str:
        pass

class CoordinateGeocoder(ReverseGeocoder):
    async def reverse_geocode(self, lat: float, lng: float) -> str:
        return format_coordinates(lat, lng)

class NominatimGeocoder(ReverseGeocoder):
    def __init__(self, url: str = settings.NOMINATIM_URL, user_agent: str = "moto-sos/1.0"):
        self.url = url
        self.user_agent = user_agent

    async def reverse_geocode(self, lat: float, lng: float) -> str:
        params = {"lat": f"{lat:.6f}", "lon": f"{lng:.6f}", "format": "jsonv2"}
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(
                    self.url,
                    params=params,
                    headers={"User-Agent": self.user_agent},
                    timeout=aiohttp.ClientTimeout(total=NOMINATIM_TIMEOUT)
                ) as response:
                    if response.status == 200:
                        data = await response.json()
                        if data.get("display_name"):
                            return data["display_name"]
                    logger.warning(f"Nominatim returned no address (HTTP {response.status})")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Nominatim lookup failed: {e}")

        return format_coordinates(lat, lng)

def build_geocoder(config: Settings = settings) -> ReverseGeocoder:
    if config.GEOCODER.lower() == "nominatim":
        return NominatimGeocoder(config.NOMINATIM_URL)
    return CoordinateGeocoder()
