from pydantic import Field, field_validator
from typing import Optional
import uuid

from moto_sos.models.base import CamelModel

DEFAULT_RELATIONSHIP = "Contact"

def new_contact_id() -> str:
    return uuid.uuid4().hex

class EmergencyContactBase(CamelModel):
    name: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    relationship: str = DEFAULT_RELATIONSHIP
    is_primary: bool = False

    @field_validator("name", "phone", mode="before")
    @classmethod
    def strip_required(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("relationship", mode="before")
    @classmethod
    def default_relationship(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_RELATIONSHIP
        return value.strip() if isinstance(value, str) else value

class EmergencyContact(EmergencyContactBase):
    id: str = Field(default_factory=new_contact_id)

class EmergencyContactCreate(EmergencyContactBase):
    pass

class EmergencyContactUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    phone: Optional[str] = Field(default=None, min_length=1)
    relationship: Optional[str] = None
    is_primary: Optional[bool] = None

    @field_validator("name", "phone", mode="before")
    @classmethod
    def strip_required(cls, value):
        return value.strip() if isinstance(value, str) else value
