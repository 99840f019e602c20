import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, Field, Column, DateTime, Session, create_engine

from moto_sos.config import settings
from moto_sos.exceptions import StorageError

logger = logging.getLogger(__name__)

STORAGE_KEYS = {
    "CONTACTS": "emergency_contacts",
    "SESSIONS": "emergency_sessions",
    "CONFIG": "emergency_config",  # reserved
}

class KeyValueRecord(SQLModel, table=True):
    __tablename__ = "key_value_store"

    key: str = Field(primary_key=True)
    value: str
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True))
    )

class KeyValueStore(ABC):
    """Local persistent string store, one JSON document per key"""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass

class MemoryKeyValueStore(KeyValueStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

class SQLKeyValueStore(KeyValueStore):
    """Key-value records kept in a single SQL table"""

    def __init__(self, engine):
        self.engine = engine

    def get(self, key: str) -> Optional[str]:
        try:
            with Session(self.engine) as db:
                record = db.get(KeyValueRecord, key)
                return record.value if record else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to read {key}: {e}")
            raise StorageError(f"Failed to read {key}") from e

    def set(self, key: str, value: str) -> None:
        try:
            with Session(self.engine) as db:
                record = db.get(KeyValueRecord, key)
                if record is None:
                    record = KeyValueRecord(key=key, value=value)
                else:
                    record.value = value
                    record.updated_at = datetime.now(timezone.utc)
                db.add(record)
                db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to write {key}: {e}")
            raise StorageError(f"Failed to write {key}") from e

def make_engine(database_url: str = settings.DATABASE_URL, echo: bool = settings.DATABASE_ECHO):
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_engine(database_url, echo=echo, connect_args=connect_args)

def create_db_and_tables(engine) -> None:
    SQLModel.metadata.create_all(engine)
