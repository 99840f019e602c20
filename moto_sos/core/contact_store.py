import json
import logging
from typing import List, Optional, Sequence, Union

from pydantic import TypeAdapter, ValidationError

from moto_sos.database import STORAGE_KEYS, KeyValueStore
from moto_sos.models.contact import (
    EmergencyContact,
    EmergencyContactCreate,
    EmergencyContactUpdate,
)

logger = logging.getLogger(__name__)

_contacts_adapter = TypeAdapter(List[EmergencyContact])

class ContactStore:
    """
    Persisted emergency contacts, kept in insertion order.

    At most one contact is primary. save_contacts() keeps the last flagged
    contact when handed more than one; add_contact() and update_contact()
    make the new or edited contact the primary one when it asks for it.
    """

    def __init__(self, kv_store: KeyValueStore):
        self.kv_store = kv_store
        self.key = STORAGE_KEYS["CONTACTS"]

    def list_contacts(self) -> List[EmergencyContact]:
        stored = self.kv_store.get(self.key)
        if not stored:
            return []

        try:
            return _contacts_adapter.validate_json(stored)
        except ValidationError as e:
            logger.warning(f"Stored contacts are unreadable, treating as empty: {e.error_count()} errors")
            return []

    def save_contacts(self, contacts: Sequence[EmergencyContact]) -> None:
        contacts = list(contacts)
        primaries = [c for c in contacts if c.is_primary]

        if len(primaries) > 1:
            keep = primaries[-1].id
            logger.warning(f"{len(primaries)} primary contacts given, keeping {keep}")
            contacts = [
                c if c.id == keep or not c.is_primary else c.model_copy(update={"is_primary": False})
                for c in contacts
            ]

        payload = [c.model_dump(mode="json", by_alias=True) for c in contacts]
        self.kv_store.set(self.key, json.dumps(payload))

    def get_contact(self, contact_id: str) -> Optional[EmergencyContact]:
        return next((c for c in self.list_contacts() if c.id == contact_id), None)

    def get_primary_contact(self) -> Optional[EmergencyContact]:
        return next((c for c in self.list_contacts() if c.is_primary), None)

    def add_contact(self, data: Union[EmergencyContactCreate, EmergencyContact]) -> EmergencyContact:
        contact = EmergencyContact.model_validate(data.model_dump())
        contacts = [*self.list_contacts(), contact]
        self.save_contacts(self._with_primary(contacts, contact))

        logger.info(f"Emergency contact {contact.id} added")
        return contact

    def update_contact(
        self,
        contact_id: str,
        data: Union[EmergencyContactUpdate, EmergencyContactCreate]
    ) -> Optional[EmergencyContact]:
        contacts = self.list_contacts()
        current = next((c for c in contacts if c.id == contact_id), None)
        if current is None:
            return None

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        # Re-validate so name/phone stripping and relationship defaults apply
        edited = EmergencyContact.model_validate({**current.model_dump(), **changes, "id": current.id})

        contacts = [edited if c.id == contact_id else c for c in contacts]
        self.save_contacts(self._with_primary(contacts, edited))
        return edited

    def delete_contact(self, contact_id: str) -> bool:
        contacts = self.list_contacts()
        remaining = [c for c in contacts if c.id != contact_id]
        if len(remaining) == len(contacts):
            return False

        # No automatic promotion when the primary is removed
        self.save_contacts(remaining)
        logger.info(f"Emergency contact {contact_id} deleted")
        return True

    @staticmethod
    def _with_primary(contacts: List[EmergencyContact], chosen: EmergencyContact) -> List[EmergencyContact]:
        if not chosen.is_primary:
            return contacts
        return [
            c if c.id == chosen.id or not c.is_primary else c.model_copy(update={"is_primary": False})
            for c in contacts
        ]
