"""HTTP API tests."""


def _add(client, name, phone, primary=False):
    response = client.post(
        "/api/contacts",
        json={"name": name, "phone": phone, "relationship": "Friend", "isPrimary": primary},
    )
    assert response.status_code == 201
    return response.json()


def test_root_and_health(client):
    assert client.get("/").json()["status"] == "active"

    health = client.get("/health").json()
    assert health["status"] == "healthy"
    assert health["gps_active"] is True
    assert health["emergency_active"] is False


def test_contacts_crud(client):
    ana = _add(client, "Ana", "555-1", primary=True)
    luis = _add(client, "Luis", "555-2")
    assert set(ana) == {"id", "name", "phone", "relationship", "isPrimary"}

    response = client.put(f"/api/contacts/{luis['id']}", json={"isPrimary": True})
    assert response.status_code == 200
    assert response.json()["isPrimary"] is True

    contacts = client.get("/api/contacts").json()
    assert [c["name"] for c in contacts if c["isPrimary"]] == ["Luis"]
    assert client.get("/api/contacts/primary").json()["id"] == luis["id"]

    assert client.delete(f"/api/contacts/{ana['id']}").status_code == 200
    assert [c["name"] for c in client.get("/api/contacts").json()] == ["Luis"]


def test_contact_validation_and_missing(client):
    assert client.post("/api/contacts", json={"name": " ", "phone": "555"}).status_code == 422
    assert client.put("/api/contacts/nope", json={"name": "X"}).status_code == 404
    assert client.delete("/api/contacts/nope").status_code == 404
    assert client.get("/api/contacts/primary").status_code == 404


def test_location_is_camel_case(client):
    body = client.get("/api/location").json()
    assert body["location"]["lat"] == 19.4326
    assert body["accuracyLevel"] == "medium"
    assert body["isLoading"] is False
    assert body["error"] is None


def test_refresh_location(client):
    assert client.post("/api/location/refresh").status_code == 200


def test_refresh_location_failure(client, controller):
    from moto_sos.exceptions import LocationErrorCode, LocationUnavailable

    controller.location_provider.error = LocationUnavailable(LocationErrorCode.PERMISSION_DENIED)
    response = client.post("/api/location/refresh")
    assert response.status_code == 503
    assert response.json()["detail"] == "Location permission denied"


def test_hospitals_sorted_by_distance(client):
    hospitals = client.get("/api/location/hospitals").json()
    assert len(hospitals) == 3
    distances = [h["distance"] for h in hospitals]
    assert distances == sorted(distances)
    assert client.post("/api/location/hospitals/refresh").json() == hospitals


def test_hospital_refresh_needs_location(client, controller):
    controller.location = None
    assert client.post("/api/location/hospitals/refresh").status_code == 409


def test_press_and_release(client):
    """Pressing starts the countdown; a second press is refused; release aborts."""
    response = client.post("/api/emergency/press")
    assert response.status_code == 202
    assert response.json()["state"] == "activation_pending"
    assert response.json()["countdown"] == 3

    assert client.post("/api/emergency/press").status_code == 409

    assert client.post("/api/emergency/release").json()["state"] == "no_active_session"
    assert client.get("/api/sessions").json() == []


def test_status_without_session(client):
    body = client.get("/api/emergency/status").json()
    assert body["state"] == "no_active_session"
    assert body["message"] == "System ready"
    assert body["active_session"] is None


def test_resolve_and_cancel_need_session(client):
    assert client.post("/api/emergency/resolve", json={"confirmed": True}).status_code == 409
    assert client.post("/api/emergency/cancel", json={"confirmed": True}).status_code == 409


def _seed_active_session(controller, rider_location):
    session = controller.session_store.create_session(rider_location, "Av. Reforma 222")
    controller.load()
    return session


def test_resolve_flow(client, controller, rider_location):
    session = _seed_active_session(controller, rider_location)

    status = client.get("/api/emergency/status").json()
    assert status["state"] == "active_session"
    assert status["active_session"]["id"] == session.id
    assert status["active_session"]["contactsNotified"] == []

    assert client.post("/api/emergency/resolve", json={"confirmed": False}).status_code == 400

    response = client.post("/api/emergency/resolve", json={"confirmed": True})
    assert response.status_code == 200
    assert response.json()["session"]["status"] == "resolved"
    assert client.get(f"/api/sessions/{session.id}").json()["status"] == "resolved"


def test_cancel_flow(client, controller, rider_location):
    _seed_active_session(controller, rider_location)
    response = client.post("/api/emergency/cancel", json={"confirmed": True})
    assert response.json()["session"]["status"] == "cancelled"


def test_call_hospital(client, controller, rider_location):
    session = _seed_active_session(controller, rider_location)

    response = client.post("/api/emergency/hospitals/1/call")

    assert response.status_code == 200
    body = response.json()
    assert body["dialUri"] == "tel:+52-555-123-4567"
    assert body["recordedOnSession"] is True
    stored = client.get(f"/api/sessions/{session.id}").json()
    assert stored["hospitalsContacted"] == ["General Hospital"]


def test_call_unknown_hospital(client):
    assert client.post("/api/emergency/hospitals/99/call").status_code == 404


def test_sessions_history(client, controller, rider_location):
    session = _seed_active_session(controller, rider_location)
    sessions = client.get("/api/sessions").json()
    assert [s["id"] for s in sessions] == [session.id]
    assert client.get("/api/sessions/nope").status_code == 404


def test_set_active_tab(client, controller):
    assert client.put("/api/tab", json={"tab": "history"}).json() == {"active_tab": "history"}
    assert controller.active_tab.value == "history"
    assert client.put("/api/tab", json={"tab": "garage"}).status_code == 422


def test_storage_failure_returns_500(client, controller):
    from moto_sos.database import MemoryKeyValueStore
    from moto_sos.exceptions import StorageError

    class UnreadableStore(MemoryKeyValueStore):
        def get(self, key):
            raise StorageError(f"Failed to read {key}")

    controller.contact_store.kv_store = UnreadableStore()
    response = client.get("/api/contacts")
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to read emergency_contacts"


def test_update_contact_rejects_blank_fields(client):
    """Blank name or phone on edit is a validation error, not a server error."""
    ana = _add(client, "Ana", "555-1")

    assert client.put(f"/api/contacts/{ana['id']}", json={"name": "   "}).status_code == 422
    assert client.put(f"/api/contacts/{ana['id']}", json={"phone": ""}).status_code == 422

    stored = client.get("/api/contacts").json()[0]
    assert (stored["name"], stored["phone"]) == ("Ana", "555-1")


def test_resolve_after_history_lost(client, controller, rider_location):
    """A confirmed resolve succeeds even if stored sessions became unreadable."""
    from moto_sos.database import STORAGE_KEYS

    session = _seed_active_session(controller, rider_location)
    controller.session_store.kv_store.set(STORAGE_KEYS["SESSIONS"], "garbage")

    response = client.post("/api/emergency/resolve", json={"confirmed": True})

    assert response.status_code == 200
    assert response.json()["session"]["id"] == session.id
    assert response.json()["session"]["status"] == "resolved"
    assert client.get("/api/emergency/status").json()["state"] == "no_active_session"
