"""Key-value backend tests."""

import pytest

from moto_sos.core.contact_store import ContactStore
from moto_sos.database import (
    STORAGE_KEYS,
    MemoryKeyValueStore,
    SQLKeyValueStore,
    create_db_and_tables,
    make_engine,
)
from moto_sos.exceptions import StorageError
from moto_sos.models.contact import EmergencyContactCreate


@pytest.fixture
def sql_store(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'moto_sos.db'}")
    create_db_and_tables(engine)
    return SQLKeyValueStore(engine)


def test_missing_key_reads_none(sql_store):
    assert sql_store.get(STORAGE_KEYS["SESSIONS"]) is None


def test_set_overwrites_value(sql_store):
    sql_store.set("k", "one")
    sql_store.set("k", "two")
    assert sql_store.get("k") == "two"


def test_records_survive_a_new_store(tmp_path):
    """Data written by one store instance is read back by another."""
    url = f"sqlite:///{tmp_path / 'moto_sos.db'}"
    engine = make_engine(url)
    create_db_and_tables(engine)
    ContactStore(SQLKeyValueStore(engine)).add_contact(EmergencyContactCreate(name="Ana", phone="555-1"))

    reopened = ContactStore(SQLKeyValueStore(make_engine(url)))
    assert [c.name for c in reopened.list_contacts()] == ["Ana"]


def test_missing_table_raises_storage_error(tmp_path):
    store = SQLKeyValueStore(make_engine(f"sqlite:///{tmp_path / 'empty.db'}"))
    with pytest.raises(StorageError):
        store.get("k")


def test_memory_store_initial_values():
    store = MemoryKeyValueStore({"k": "v"})
    assert store.get("k") == "v"
    assert store.get("other") is None
