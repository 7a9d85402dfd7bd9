"""Tests for alert payloads, adapters and delivery."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

import httpx
import pytest

from scene_sentinel.errors import DeliveryFailed
from scene_sentinel.messenger import (
    ALERT_TITLE,
    AlertPayload,
    AlertService,
    AlertServiceConfig,
    LogAdapter,
    MessageAdapter,
    TelegramAdapter,
    create_alert_service,
)
from scene_sentinel.models import ActionConfig, Criterion, DetectionEvent


def _event(screenshot_ref: Optional[str] = "data/captures/1.jpg") -> DetectionEvent:
    return DetectionEvent(
        timestamp=datetime(2024, 1, 1),
        criterion=Criterion.PIXEL,
        confidence=40,
        description="Pixel difference 40.00% > 25.00%",
        screenshot_ref=screenshot_ref,
    )


class _RecordingAdapter(MessageAdapter):
    def __init__(self, ok: bool = True, fail_with: Optional[Exception] = None) -> None:
        super().__init__("recording")
        self.ok = ok
        self.fail_with = fail_with
        self.texts: list[str] = []
        self.images: list[str] = []

    def initialize(self) -> bool:
        return True

    def shutdown(self):
        pass

    def send_text(self, content, recipient_id=None) -> bool:
        if self.fail_with:
            raise self.fail_with
        self.texts.append(content)
        return self.ok

    def send_image(self, image_path, recipient_id=None) -> bool:
        self.images.append(image_path)
        return self.ok


class _FakeResponse:
    def __init__(self, payload: dict) -> None:
        self._payload = payload

    def json(self) -> dict:
        return self._payload


def test_payload_follows_action_config() -> None:
    actions = ActionConfig.from_dict({
        "play_sound": {"enabled": True, "volume": 70},
        "vibrate": {"enabled": False},
        "screenshot": {"enabled": True, "quality": 60},
    })
    payload = AlertPayload.from_event(_event(), actions)

    assert payload.title == ALERT_TITLE
    assert "Pixel difference" in payload.body
    assert payload.push is True
    assert payload.sound.volume == 70
    assert payload.vibrate is None
    assert payload.screenshot.quality == 60
    assert payload.screenshot.ref == "data/captures/1.jpg"


def test_adapter_sends_text_and_screenshot() -> None:
    adapter = _RecordingAdapter()
    payload = AlertPayload.from_event(_event(), ActionConfig())

    assert adapter.send_alert(payload) is True
    assert adapter.texts == [payload.to_text()]
    assert adapter.images == ["data/captures/1.jpg"]


def test_adapter_with_nothing_to_send_succeeds() -> None:
    adapter = _RecordingAdapter(ok=False)
    payload = AlertPayload(push=False)
    assert adapter.send_alert(payload) is True
    assert adapter.texts == []


def test_deliver_reports_successful_platforms() -> None:
    service = AlertService([_RecordingAdapter(ok=False), LogAdapter()])
    result = service.deliver(AlertPayload())

    assert result.success is True
    assert result.delivered == ["log"]
    assert "recording" in result.errors


def test_deliver_raises_when_every_adapter_fails() -> None:
    service = AlertService([_RecordingAdapter(fail_with=RuntimeError("boom"))])
    with pytest.raises(DeliveryFailed):
        service.deliver(AlertPayload())

    with pytest.raises(DeliveryFailed):
        AlertService([]).deliver(AlertPayload())


def test_telegram_send_text_posts_to_bot_api(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []

    def fake_post(url, **kwargs):
        calls.append((url, kwargs))
        return _FakeResponse({"ok": True})

    monkeypatch.setattr(httpx, "post", fake_post)
    adapter = TelegramAdapter(bot_token="TOKEN", chat_id="42", timeout=5)

    assert adapter.send_text("hello") is True
    url, kwargs = calls[0]
    assert url == "https://api.telegram.org/botTOKEN/sendMessage"
    assert kwargs["json"] == {"chat_id": "42", "text": "hello"}
    assert kwargs["timeout"] == 5


def test_telegram_send_text_handles_http_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_post(url, **kwargs):
        raise httpx.ConnectError("offline")

    monkeypatch.setattr(httpx, "post", fake_post)
    assert TelegramAdapter(bot_token="TOKEN", chat_id="42").send_text("hello") is False


def test_telegram_send_image_requires_existing_file(tmp_path) -> None:
    adapter = TelegramAdapter(bot_token="TOKEN", chat_id="42")
    assert adapter.send_image(str(tmp_path / "missing.jpg")) is False


def test_factory_falls_back_to_log_adapter() -> None:
    service = create_alert_service(AlertServiceConfig(log_dir=None))
    assert [a.platform_name for a in service.adapters] == ["log"]

    empty = create_alert_service(AlertServiceConfig(fallback_to_log=False, log_dir=None))
    assert empty.has_adapters is False


def test_set_timeout_retargets_every_adapter() -> None:
    telegram = TelegramAdapter(bot_token="TOKEN", chat_id="42", timeout=30)
    recording = _RecordingAdapter()
    service = AlertService([telegram, recording])

    service.set_timeout(5)
    assert telegram.timeout == 5
    assert recording.timeout == 5
