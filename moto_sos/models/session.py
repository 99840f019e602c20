from pydantic import Field
from datetime import datetime, timezone
from typing import Optional, List
from enum import Enum
import uuid

from moto_sos.models.base import CamelModel

class SessionStatus(str, Enum):
    ACTIVE = "active"
    RESOLVED = "resolved"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not SessionStatus.ACTIVE

    def can_transition_to(self, other: "SessionStatus") -> bool:
        if self is other:
            return True
        return self is SessionStatus.ACTIVE

class SessionLocation(CamelModel):
    lat: float
    lng: float
    accuracy: Optional[float] = None

class EmergencySession(CamelModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    location: SessionLocation
    address: str
    status: SessionStatus = SessionStatus.ACTIVE
    contacts_notified: List[str] = Field(default_factory=list)
    hospitals_contacted: List[str] = Field(default_factory=list)

    def elapsed(self, now: Optional[datetime] = None) -> str:
        """Elapsed time since activation as m:ss"""
        now = now or datetime.now(timezone.utc)
        start = self.timestamp
        if start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)
        seconds = max(int((now - start).total_seconds()), 0)
        return f"{seconds // 60}:{seconds % 60:02d}"

class SessionUpdate(CamelModel):
    """Partial update; only the fields that were set are applied."""

    timestamp: Optional[datetime] = None
    location: Optional[SessionLocation] = None
    address: Optional[str] = None
    status: Optional[SessionStatus] = None
    contacts_notified: Optional[List[str]] = None
    hospitals_contacted: Optional[List[str]] = None

class ConfirmRequest(CamelModel):
    confirmed: bool = False
