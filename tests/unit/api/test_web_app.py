"""Tests for the Flask control API."""

from __future__ import annotations

import numpy as np
import pytest

from scene_sentinel.models import Frame
from scene_sentinel.monitor import MonitorConfig, MonitoringScheduler
from scene_sentinel.vision import CaptureSource
from web import app as web_app


def _frame(value: int = 0) -> Frame:
    pixels = np.full((8, 16, 4), value, dtype=np.uint8)
    pixels[..., 3] = 255
    return Frame(pixels=pixels)


class _QueueCapture(CaptureSource):
    def __init__(self, *items) -> None:
        self.items = list(items)

    def capture(self):
        return self.items.pop(0) if len(self.items) > 1 else self.items[0]


@pytest.fixture
def monitor(tmp_path, monkeypatch):
    config = MonitorConfig.load(str(tmp_path / "monitor_config.json"))
    config.update(capture_interval_ms=60_000, log_dir=None)
    scheduler = MonitoringScheduler(_QueueCapture(_frame(), _frame(255)), None, config)
    monkeypatch.setattr(web_app, "monitor_service", scheduler)
    yield scheduler
    scheduler.shutdown()


@pytest.fixture
def client(monitor):
    web_app.app.config["TESTING"] = True
    return web_app.app.test_client()


def test_status_reports_idle(client) -> None:
    response = client.get("/api/status")
    body = response.get_json()

    assert response.status_code == 200
    assert body["success"] is True
    assert body["data"]["state"] == "idle"


def test_start_stop_cycle(client) -> None:
    assert client.post("/api/monitor/start").status_code == 200
    assert client.post("/api/monitor/start").status_code == 400
    assert client.post("/api/monitor/reset").status_code == 200
    assert client.post("/api/monitor/stop").status_code == 200
    assert client.post("/api/monitor/stop").status_code == 400


def test_start_failure_returns_conflict(client, monitor) -> None:
    monitor.capture_source = _QueueCapture(None)
    response = client.post("/api/monitor/start")

    assert response.status_code == 409
    assert response.get_json()["success"] is False


def test_region_crud(client, monitor) -> None:
    response = client.post("/api/regions", json={"x": 10, "y": 10, "width": 20, "height": 20, "name": "Desk"})
    assert response.status_code == 201
    region = response.get_json()["data"]
    assert region["name"] == "Desk"

    toggled = client.post(f"/api/regions/{region['id']}/toggle").get_json()
    assert toggled["data"]["is_active"] is False
    assert monitor.config.regions[0]["is_active"] is False

    assert client.delete(f"/api/regions/{region['id']}").status_code == 200
    assert client.get("/api/regions").get_json()["data"] == []
    assert client.delete(f"/api/regions/{region['id']}").status_code == 404


def test_invalid_region_is_rejected(client) -> None:
    response = client.post("/api/regions", json={"x": 10, "y": 10, "width": 0, "height": 20})
    assert response.status_code == 400


def test_config_update_and_validation(client, monitor) -> None:
    response = client.post("/api/config", json={"detection": {"sensitivity": 30}})
    assert response.status_code == 200
    assert monitor.settings.sensitivity == 30

    assert client.post("/api/config", json={"capture_interval_ms": -1}).status_code == 400
    assert client.get("/api/config").get_json()["data"]["capture_interval_ms"] == 60_000


def test_config_posts_merge_into_current_settings(client, monitor) -> None:
    client.post("/api/config", json={"detection": {"sensitivity": 30, "criteria": {"pixel": {"parameter": 10}}}})
    client.post("/api/config", json={"detection": {"criteria": {"color": {"enabled": True}}}})

    assert monitor.settings.sensitivity == 30
    assert monitor.settings.pixel.parameter == 10
    assert monitor.settings.color.enabled is True


def test_events_listing_and_export(client, monitor) -> None:
    client.post("/api/monitor/start")
    monitor.tick()

    events = client.get("/api/events").get_json()
    assert events["count"] == 1
    assert events["data"][0]["type"] == "pixel"

    export = client.get("/api/events/export?format=csv")
    assert export.status_code == 200
    assert export.mimetype == "text/csv"
    assert "attachment" in export.headers["Content-Disposition"]
    assert export.data.decode("utf-8").split(",")[1] == "pixel"

    assert client.get("/api/events/export?format=xml").status_code == 400

    assert client.delete("/api/events").status_code == 200
    assert client.get("/api/events").get_json()["count"] == 0
