"""Local API tests: FastAPI TestClient over an AppState wired to fakes."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from boxscan.api import state as state_module
from boxscan.api.app import app
from boxscan.api.state import AppState
from fakes import BOX, ITEM, FakeInventory, FakeRecorder, FakeUploader, label


@pytest.fixture
def api(monkeypatch):
    inventory = FakeInventory(ITEM, BOX)
    uploader = FakeUploader()
    app_state = AppState(service=inventory, uploader=uploader, recorder=FakeRecorder())
    monkeypatch.setattr(state_module, "_state", app_state)
    with TestClient(app) as client:
        yield client, app_state, inventory, uploader


def test_view_decode_of_new_label_offers_create(api) -> None:
    client, _, _, _ = api

    r = client.post("/api/scan/decode", json={"payload": "c0h.de/99999999-9999-9999-9999-999999999999?c=ZZ"})

    assert r.status_code == 200
    body = r.json()
    assert body["outcome"] == "navigate"
    assert body["navigation"]["kind"] == "create"
    assert body["navigation"]["item_id"] == "99999999-9999-9999-9999-999999999999"

    nav = client.get("/api/scan/navigation").json()
    assert len(nav) == 1


def test_repeat_decode_hits_cooldown(api) -> None:
    client, _, inventory, _ = api

    first = client.post("/api/scan/decode", json={"payload": label(BOX)}).json()
    second = client.post("/api/scan/decode", json={"payload": label(BOX)}).json()

    assert first["outcome"] == "navigate"
    assert second["outcome"] == "cooldown"
    assert inventory.lookups == [BOX.id]
    assert client.get("/api/scan/status").json()["feedback"]["beep_seq"] == 1


def test_empty_payload_rejected(api) -> None:
    client, _, _, _ = api

    assert client.post("/api/scan/decode", json={"payload": ""}).status_code == 400


def test_place_in_over_api(api) -> None:
    client, _, inventory, _ = api

    assert client.put("/api/scan/mode", json={"mode": "place-in"}).json() == {"mode": "place-in"}
    assert client.post("/api/scan/decode", json={"payload": label(ITEM)}).json()["outcome"] == "held"
    assert client.post("/api/scan/decode", json={"payload": label(BOX)}).json()["outcome"] == "stored"

    status = client.get("/api/scan/status").json()
    assert status["mode"] == "place-in"
    assert status["holding"]["id"] == BOX.id
    assert inventory.stores == [(ITEM.id, BOX.id)]

    notices = client.get("/api/notices/").json()
    assert any(n["level"] == "info" for n in notices)

    client.put("/api/scan/mode", json={"mode": "view"})
    assert client.get("/api/scan/status").json()["holding"] is None


def test_invalid_mode_rejected(api) -> None:
    client, _, _, _ = api

    assert client.put("/api/scan/mode", json={"mode": "teleport"}).status_code == 422


def test_power_mode_capture_flow(api) -> None:
    client, app_state, _, uploader = api

    client.post("/api/capture/photos", json={"photo_id": "p1"})
    client.post("/api/capture/photos", json={"photo_id": "p2"})
    assert client.post("/api/capture/begin").json()["recording"] is True

    r = client.post("/api/capture/photos/p1/attach")
    assert r.json()["photos"][0]["photo_id"] == "p1"
    assert client.post("/api/capture/photos/p1/attach").status_code == 409

    client.patch("/api/capture/draft", json={"name": "Drill", "extra": {"color": "red"}})
    ended = client.post("/api/capture/end").json()
    assert ended["bundle"]["photos"] == ["p1"]
    assert ended["bundle"]["metadata"] == {"name": "Drill", "color": "red"}

    photos = client.get("/api/capture/photos").json()["photos"]
    assert [p["photo_id"] for p in photos] == ["p2"]

    draft = client.get("/api/capture/draft").json()
    assert draft["active"] is True and draft["photos"] == [] and draft["metadata"] == {}

    assert client.post("/api/capture/exit").json() == {"active": False}


def test_discard_returns_photos(api) -> None:
    client, _, _, _ = api

    client.post("/api/capture/photos", json={"photo_id": "p1"})
    client.post("/api/capture/begin")
    client.post("/api/capture/photos/p1/attach")

    assert client.post("/api/capture/discard").json() == {"returned_photos": 1}
    assert [p["photo_id"] for p in client.get("/api/capture/photos").json()["photos"]] == ["p1"]


def test_capture_state_errors(api) -> None:
    client, _, _, _ = api

    assert client.post("/api/capture/end").status_code == 409
    assert client.patch("/api/capture/draft", json={"name": "x"}).status_code == 409
    assert client.post("/api/capture/photos/nope/attach").status_code == 409


def test_assign_photo(api) -> None:
    client, _, inventory, _ = api

    client.post("/api/capture/photos", json={"photo_id": "p9"})
    r = client.post(f"/api/capture/photos/p9/assign/{ITEM.id}")

    assert r.status_code == 200
    assert inventory.assigned == [("p9", ITEM.id)]
    assert client.get("/api/capture/photos").json()["photos"] == []


def test_queue_status(api) -> None:
    client, _, _, _ = api

    body = client.get("/api/queue/").json()

    assert body["backlog"] == 0
    assert body["entries"] == []
    assert body["running"] is False


def test_decode_without_navigation_does_not_echo_previous_intent(api) -> None:
    client, _, _, _ = api

    first = client.post("/api/scan/decode", json={"payload": label(ITEM)}).json()
    assert first["navigation"]["item_id"] == ITEM.id

    ignored = client.post("/api/scan/decode", json={"payload": "hello world"}).json()
    assert ignored["outcome"] == "ignored"
    assert ignored["navigation"] is None

    cooled = client.post("/api/scan/decode", json={"payload": label(ITEM)}).json()
    assert cooled["outcome"] == "cooldown"
    assert cooled["navigation"] is None
