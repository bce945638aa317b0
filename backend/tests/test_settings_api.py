"""Tests for persisted viewer settings and their effect on new tours."""

import os
import sys
from datetime import timedelta
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

sys.path.append(str(Path(__file__).resolve().parents[1]))

from tourengine.main import app  # type: ignore
from tourengine.services.settings_store import ViewerSettingsRecord, reset_settings  # type: ignore


@pytest.fixture
def client() -> TestClient:
    reset_settings()
    yield TestClient(app)
    reset_settings()


def test_defaults_when_nothing_saved(client: TestClient) -> None:
    data = client.get("/api/settings").json()
    assert data["scrollSpeed"] == 0.1
    assert data["animationFrames"] == 120
    assert data["cameraMovementSpeed"] == 0.2
    assert data["cameraRotationSensitivity"] == 4000.0
    assert data["backgroundColor"] == "#7D7D7D"


def test_save_and_reset(client: TestClient) -> None:
    body = client.get("/api/settings").json()
    body.update({"scrollSpeed": 0.5, "backgroundColor": "#102030", "freeFly": True})
    assert client.put("/api/settings", json=body).status_code == 200
    stored = client.get("/api/settings").json()
    assert stored["scrollSpeed"] == 0.5
    assert stored["backgroundColor"] == "#102030"
    assert stored["freeFly"] is True

    assert client.delete("/api/settings").json()["scrollSpeed"] == 0.1
    assert client.get("/api/settings").json()["scrollSpeed"] == 0.1


def test_invalid_settings_rejected(client: TestClient) -> None:
    resp = client.put("/api/settings", json={"backgroundColor": "grey"})
    assert resp.status_code == 422
    resp = client.put("/api/settings", json={"animationFrames": 0})
    assert resp.status_code == 422


def test_new_tours_inherit_saved_scroll_speed(client: TestClient) -> None:
    client.put("/api/settings", json={"scrollSpeed": 0.5})
    tour_id = client.post("/api/tours", json={}).json()["tourId"]
    client.post(f"/api/tours/{tour_id}/events", json={"events": [{"kind": "wheel", "deltaY": 10}]})
    assert client.post(f"/api/tours/{tour_id}/tick").json()["target"] == pytest.approx(5.0)

    # An explicit override beats the stored value
    tour_id = client.post("/api/tours", json={"settings": {"scrollSpeed": 0.2}}).json()["tourId"]
    client.post(f"/api/tours/{tour_id}/events", json={"events": [{"kind": "wheel", "deltaY": 10}]})
    assert client.post(f"/api/tours/{tour_id}/tick").json()["target"] == pytest.approx(2.0)


def test_tests_use_scratch_database() -> None:
    from tourengine.services import db  # type: ignore

    assert db.STORAGE_DIR == Path(os.environ["TOUR_STORAGE_DIR"])
    assert db.STORAGE_DIR != Path(__file__).resolve().parents[1] / "storage"


def test_updated_at_is_timezone_aware() -> None:
    record = ViewerSettingsRecord()
    assert record.updated_at.tzinfo is not None
    assert record.updated_at.utcoffset() == timedelta(0)
