from pydantic import ConfigDict, Field
from datetime import datetime, timezone
from typing import Optional
from enum import Enum

from moto_sos.models.base import CamelModel

class LocationAccuracy(str, Enum):
    HIGH = "high"      # < 10 meters
    MEDIUM = "medium"  # 10-50 meters
    LOW = "low"        # > 50 meters
    UNKNOWN = "unknown"

class LocationData(CamelModel):
    """A single position fix. Replaced, never mutated."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    accuracy: Optional[float] = Field(default=None, ge=0)  # meters
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def accuracy_level(self) -> LocationAccuracy:
        if self.accuracy is None:
            return LocationAccuracy.UNKNOWN
        elif self.accuracy < 10:
            return LocationAccuracy.HIGH
        elif self.accuracy < 50:
            return LocationAccuracy.MEDIUM
        else:
            return LocationAccuracy.LOW

class LocationResponse(CamelModel):
    location: Optional[LocationData] = None
    accuracy_level: Optional[LocationAccuracy] = None
    error: Optional[str] = None
    is_loading: bool = False
