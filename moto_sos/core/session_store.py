"""
Emergency session persistence

Sessions are kept as one JSON array under a single key, newest first, capped
at the history limit. Every mutation reads the whole collection, changes it
and writes it back. That is fine for a handful of records on one device; a
shared backend would need keyed upserts with a version check per session.
"""

import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import TypeAdapter, ValidationError

from moto_sos.database import STORAGE_KEYS, KeyValueStore
from moto_sos.exceptions import InvalidStatusTransition
from moto_sos.models.location import LocationData
from moto_sos.models.session import (
    EmergencySession,
    SessionLocation,
    SessionStatus,
    SessionUpdate,
)

logger = logging.getLogger(__name__)

_sessions_adapter = TypeAdapter(List[EmergencySession])

class SessionStore:
    def __init__(self, kv_store: KeyValueStore, history_limit: int = 10):
        self.kv_store = kv_store
        self.history_limit = history_limit
        self.key = STORAGE_KEYS["SESSIONS"]

    def create_session(self, location: LocationData, address: str) -> EmergencySession:
        session = EmergencySession(
            location=SessionLocation(
                lat=location.lat,
                lng=location.lng,
                accuracy=location.accuracy
            ),
            address=address,
            status=SessionStatus.ACTIVE,
        )

        sessions = self.list_sessions()
        self._save([session, *sessions[:self.history_limit - 1]])

        logger.info(f"Emergency session {session.id} created at {address}")
        return session

    def list_sessions(self) -> List[EmergencySession]:
        stored = self.kv_store.get(self.key)
        if not stored:
            return []

        try:
            return _sessions_adapter.validate_json(stored)
        except ValidationError as e:
            logger.warning(f"Stored sessions are unreadable, treating as empty: {e.error_count()} errors")
            return []

    def get_session(self, session_id: str) -> Optional[EmergencySession]:
        return next((s for s in self.list_sessions() if s.id == session_id), None)

    def get_active_session(self) -> Optional[EmergencySession]:
        return next(
            (s for s in self.list_sessions() if s.status is SessionStatus.ACTIVE),
            None
        )

    def update_session(
        self,
        session_id: str,
        updates: Union[SessionUpdate, Dict[str, Any]]
    ) -> None:
        """
        Merge the given fields onto a stored session. Each field is replaced
        as a whole. Unknown ids are ignored.

        Raises InvalidStatusTransition when the patch would move a session
        out of a terminal status.
        """
        if not isinstance(updates, SessionUpdate):
            updates = SessionUpdate.model_validate(updates)
        fields = {
            name: value
            for name, value in updates.model_dump(exclude_unset=True).items()
            if value is not None
        }

        sessions = self.list_sessions()
        updated = []
        found = False

        for session in sessions:
            if session.id == session_id:
                found = True
                if "status" in fields:
                    requested = SessionStatus(fields["status"])
                    if not session.status.can_transition_to(requested):
                        raise InvalidStatusTransition(session.status.value, requested.value)
                merged = {**session.model_dump(), **fields}
                session = EmergencySession.model_validate(merged)
            updated.append(session)

        if not found:
            logger.debug(f"Session {session_id} not found, update ignored")
            return

        self._save(updated)

    def append_contacts_notified(self, session_id: str, names: Iterable[str]) -> None:
        session = self.get_session(session_id)
        if session is None:
            return
        self.update_session(
            session_id,
            SessionUpdate(contacts_notified=[*session.contacts_notified, *names])
        )

    def append_hospital_contacted(self, session_id: str, name: str) -> None:
        session = self.get_session(session_id)
        if session is None:
            return
        self.update_session(
            session_id,
            SessionUpdate(hospitals_contacted=[*session.hospitals_contacted, name])
        )

    def _save(self, sessions: List[EmergencySession]) -> None:
        payload = [s.model_dump(mode="json", by_alias=True) for s in sessions]
        self.kv_store.set(self.key, json.dumps(payload))
