from pydantic import Field
from enum import Enum

from moto_sos.models.base import CamelModel

class FacilityType(str, Enum):
    HOSPITAL = "hospital"
    CLINIC = "clinic"
    EMERGENCY = "emergency"

class Hospital(CamelModel):
    id: str
    name: str
    address: str
    phone: str
    lat: float
    lng: float
    type: FacilityType
    distance: float = Field(default=0.0, ge=0)  # km from the query point, per lookup

class CallResult(CamelModel):
    hospital: Hospital
    dial_uri: str
    recorded_on_session: bool
