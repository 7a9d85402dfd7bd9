"""Tests for the JSON-backed monitor configuration."""

from __future__ import annotations

import json

import pytest

from scene_sentinel.monitor import MonitorConfig


def test_load_creates_default_file(tmp_path) -> None:
    config_file = tmp_path / "config" / "monitor_config.json"
    config = MonitorConfig.load(str(config_file))

    assert config_file.exists()
    assert config.capture_interval_ms == 2000
    assert config.capture_interval == 2.0
    assert config.detection_settings().pixel.parameter == 25
    assert json.loads(config_file.read_text(encoding="utf-8"))["regions"] == []


def test_update_coerces_strings_and_saves(tmp_path) -> None:
    config_file = tmp_path / "monitor_config.json"
    config = MonitorConfig.load(str(config_file))

    config.update(capture_interval_ms="500", capture_timeout="2.5",
                  detection={"sensitivity": 30, "criteria": {"pixel": {"enabled": True, "parameter": 140}}})

    reloaded = MonitorConfig.load(str(config_file))
    assert reloaded.capture_interval_ms == 500
    assert reloaded.capture_timeout == 2.5
    assert reloaded.detection_settings().sensitivity == 30
    assert reloaded.detection_settings().pixel.parameter == 100


def test_update_rejects_non_positive_interval(tmp_path) -> None:
    config = MonitorConfig.load(str(tmp_path / "monitor_config.json"))

    with pytest.raises(ValueError):
        config.update(capture_interval_ms=0)
    assert config.capture_interval_ms == 2000


def test_update_ignores_unknown_and_private_keys(tmp_path) -> None:
    config = MonitorConfig.load(str(tmp_path / "monitor_config.json"))
    config.update(unknown=1, _config_file="elsewhere.json")
    assert config._config_file == str(tmp_path / "monitor_config.json")


def test_from_dict_falls_back_on_bad_numbers() -> None:
    config = MonitorConfig.from_dict({"capture_interval_ms": "soon", "max_ledger_events": "10"})
    assert config.capture_interval_ms == 2000
    assert config.max_ledger_events == 10
    assert config.action_config().push_alert.enabled is True


def test_partial_detection_updates_keep_earlier_values(tmp_path) -> None:
    config = MonitorConfig.load(str(tmp_path / "monitor_config.json"))

    config.update(detection={"sensitivity": 30, "criteria": {"pixel": {"enabled": True, "parameter": 10}}})
    config.update(detection={"criteria": {"color": {"enabled": True}}})

    settings = config.detection_settings()
    assert settings.sensitivity == 30
    assert settings.pixel.parameter == 10
    assert settings.color.enabled is True
    assert settings.color.parameter == 50
    assert settings.text.enabled is False


def test_partial_updates_do_not_reenable_disabled_criteria(tmp_path) -> None:
    config = MonitorConfig.load(str(tmp_path / "monitor_config.json"))

    config.update(detection={"criteria": {"pixel": {"enabled": False}}})
    config.update(detection={"sensitivity": 70})

    assert config.detection_settings().pixel.enabled is False
    assert config.detection_settings().sensitivity == 70


def test_partial_action_updates_keep_earlier_values(tmp_path) -> None:
    config_file = tmp_path / "monitor_config.json"
    config = MonitorConfig.load(str(config_file))

    config.update(actions={"play_sound": {"enabled": False}})
    config.update(actions={"push_alert": {"enabled": True}, "screenshot": {"quality": 60}})

    reloaded = MonitorConfig.load(str(config_file)).action_config()
    assert reloaded.play_sound.enabled is False
    assert reloaded.play_sound.volume == 80
    assert reloaded.push_alert.enabled is True
    assert reloaded.screenshot.enabled is True
    assert reloaded.screenshot.quality == 60
