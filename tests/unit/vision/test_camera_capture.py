"""Tests for the OpenCV camera capture source using a fake device."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import cv2
import numpy as np
import pytest

from scene_sentinel.common import Config
from scene_sentinel.monitor import MonitorConfig, MonitoringScheduler, TickOutcome
from scene_sentinel.vision import CameraCapture


class _FakeDevice:
    instances: list = []

    def __init__(self, index, opened: bool = True, value: Optional[int] = None) -> None:
        self.index = index
        self.opened = opened
        self.value = value
        self.reads = 0
        self.settings = {}
        self.released = False
        _FakeDevice.instances.append(self)

    def isOpened(self) -> bool:
        return self.opened and not self.released

    def set(self, prop, value) -> bool:
        self.settings[prop] = value
        return True

    def read(self):
        self.reads += 1
        value = self.value if self.value is not None else self.reads * 10
        image = np.full((4, 6, 3), value, dtype=np.uint8)
        return True, image

    def release(self) -> None:
        self.released = True


@pytest.fixture
def config(tmp_path) -> Config:
    config = Config()
    config.log_dir = None
    config.camera.camera_index = 3
    config.camera.capture_dir = str(tmp_path / "captures")
    return config


def _saved_files(config: Config) -> list:
    path = Path(config.camera.capture_dir)
    return sorted(path.glob("*.jpg")) if path.exists() else []


def test_capture_flushes_buffer_and_keeps_frame_in_memory(config, monkeypatch) -> None:
    _FakeDevice.instances = []
    monkeypatch.setattr(cv2, "VideoCapture", _FakeDevice)
    camera = CameraCapture(config)

    frame = camera.capture()

    device = _FakeDevice.instances[0]
    assert device.index == 3
    assert device.reads == CameraCapture.FLUSH_FRAMES + 1
    assert frame.size == (6, 4)
    assert frame.source is None
    assert _saved_files(config) == []

    camera.shutdown()
    assert device.released is True


def test_repeated_captures_write_no_files(config, monkeypatch) -> None:
    monkeypatch.setattr(cv2, "VideoCapture", lambda index: _FakeDevice(index, value=40))
    camera = CameraCapture(config)

    for _ in range(20):
        assert camera.capture() is not None
    assert _saved_files(config) == []


def test_save_screenshot_writes_jpeg(config, monkeypatch) -> None:
    monkeypatch.setattr(cv2, "VideoCapture", lambda index: _FakeDevice(index, value=40))
    camera = CameraCapture(config)
    frame = camera.capture()

    path = camera.save_screenshot(frame, quality=60)

    assert path is not None and path.endswith(".jpg")
    assert _saved_files(config) == [Path(path)]
    assert cv2.imread(path).shape == (4, 6, 3)


def test_save_screenshot_without_dir_returns_none(config, monkeypatch) -> None:
    config.camera.capture_dir = ""
    monkeypatch.setattr(cv2, "VideoCapture", lambda index: _FakeDevice(index, value=40))
    camera = CameraCapture(config)

    assert camera.save_screenshot(camera.capture(), quality=90) is None


def test_unopened_device_returns_none(config, monkeypatch) -> None:
    monkeypatch.setattr(cv2, "VideoCapture", lambda index: _FakeDevice(index, opened=False))
    assert CameraCapture(config).capture() is None


def test_ticks_without_change_write_no_files(config, monkeypatch) -> None:
    monkeypatch.setattr(cv2, "VideoCapture", lambda index: _FakeDevice(index, value=40))
    scheduler = MonitoringScheduler(
        CameraCapture(config), None,
        MonitorConfig(capture_interval_ms=60_000, capture_timeout=2, log_dir=None)
    )
    scheduler.start()
    try:
        for _ in range(5):
            assert scheduler.tick() == TickOutcome.NO_CHANGE
        assert _saved_files(config) == []
    finally:
        scheduler.shutdown()
