import logging
from abc import ABC, abstractmethod
from typing import Iterable, List

from moto_sos.core.distance import calculate_distance
from moto_sos.models.hospital import FacilityType, Hospital
from moto_sos.models.location import LocationData

logger = logging.getLogger(__name__)

# Offsets (degrees) from the query point for the generated facilities
MOCK_FACILITIES = [
    {
        "id": "1",
        "name": "General Hospital",
        "address": "123 Main Avenue",
        "phone": "+52-555-123-4567",
        "lat_offset": 0.01,
        "lng_offset": 0.01,
        "type": FacilityType.HOSPITAL,
    },
    {
        "id": "2",
        "name": "Santa Maria Clinic",
        "address": "456 Reforma Street",
        "phone": "+52-555-987-6543",
        "lat_offset": -0.008,
        "lng_offset": 0.012,
        "type": FacilityType.CLINIC,
    },
    {
        "id": "3",
        "name": "Emergency Medical Center",
        "address": "789 Central Boulevard",
        "phone": "+52-555-456-7890",
        "lat_offset": 0.015,
        "lng_offset": -0.005,
        "type": FacilityType.EMERGENCY,
    },
]

def rank_by_distance(location: LocationData, facilities: Iterable[Hospital]) -> List[Hospital]:
    """
    Attach the distance from `location` to every facility and sort ascending.
    The sort is stable, so equal distances keep their input order.
    """
    ranked = [
        facility.model_copy(update={
            "distance": calculate_distance(location.lat, location.lng, facility.lat, facility.lng)
        })
        for facility in facilities
    ]
    ranked.sort(key=lambda x: x.distance)
    return ranked

class FacilityLocator(ABC):
    @abstractmethod
    async def find_nearby(self, location: LocationData) -> List[Hospital]:
        """Medical facilities near `location`, nearest first"""

class MockFacilityLocator(FacilityLocator):
    """Generates a fixed set of facilities around the query point"""

    async def find_nearby(self, location: LocationData) -> List[Hospital]:
        facilities = [
            Hospital(
                id=data["id"],
                name=data["name"],
                address=data["address"],
                phone=data["phone"],
                lat=location.lat + data["lat_offset"],
                lng=location.lng + data["lng_offset"],
                type=data["type"],
            )
            for data in MOCK_FACILITIES
        ]
        hospitals = rank_by_distance(location, facilities)
        logger.info(f"Found {len(hospitals)} facilities near {location.lat:.4f}, {location.lng:.4f}")
        return hospitals
