"""Tests for the JSON API endpoints."""

from fastapi.testclient import TestClient

from presenceboard.client.mock import MockBackend

PHONE = "AA:BB:CC:11:22:33"
IPAD = "AA:BB:CC:77:88:99"


def test_health(client: TestClient):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_people(client: TestClient):
    resp = client.get("/api/people")
    assert resp.status_code == 200
    people = resp.json()
    assert len(people) == 1
    alex = people[0]
    assert alex["owner"] == {"id": 2, "name": "Alex", "kind": "person"}
    assert alex["isHome"] is True
    assert [d["mac"] for d in alex["primary"]] == [PHONE]
    assert [d["mac"] for d in alex["secondary"]] == [IPAD]
    assert alex["primary"][0]["presenceType"] == 1
    assert alex["primary"][0]["ownerName"] == "Alex"


def test_people_away_when_primary_untracked(client: TestClient):
    client.post(f"/devices/{PHONE}/presence-type", data={"presence_type": ""})
    alex = client.get("/api/people").json()[0]
    assert alex["isHome"] is False
    assert alex["primary"] == []


def test_devices(client: TestClient):
    resp = client.get("/api/devices")
    assert resp.status_code == 200
    devices = {d["mac"]: d for d in resp.json()}
    assert len(devices) == 6
    assert devices[PHONE]["consideredHome"] is True
    assert devices[PHONE]["label"] == "Alex's phone"
    assert devices["AA:BB:CC:AA:BB:CC"]["connected"] is False


def test_status(client: TestClient, backend: MockBackend):
    data = client.get("/api/status").json()
    assert data["status"] == "idle"
    assert data["error"] is None
    assert data["considerHomeSeconds"] == 300
    assert data["capturedAt"].startswith(backend.captured_at.strftime("%Y-%m-%dT%H:%M:%S"))


def test_status_reports_mutation_error(client: TestClient):
    client.delete("/owners/1")
    data = client.get("/api/status").json()
    assert data["status"] == "idle"
    assert data["error"] == "The house owner cannot be deleted"
