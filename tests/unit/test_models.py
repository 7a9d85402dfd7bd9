"""Tests for frame, region and settings models."""

from __future__ import annotations

import math

import numpy as np
import pytest

from scene_sentinel.errors import InvalidRegion
from scene_sentinel.models import (
    ActionConfig,
    Criterion,
    DetectionCriterionConfig,
    DetectionEvent,
    DetectionSettings,
    Frame,
    Region,
)


def _pixels(width: int = 4, height: int = 3, value: int = 0) -> np.ndarray:
    return np.full((height, width, 4), value, dtype=np.uint8)


def test_frame_is_read_only_copy() -> None:
    source = _pixels()
    frame = Frame(pixels=source)

    source[0, 0, 0] = 255
    assert frame.pixels[0, 0, 0] == 0
    with pytest.raises(ValueError):
        frame.pixels[0, 0, 0] = 1
    assert frame.size == (4, 3)


def test_frame_rejects_non_rgba_shape() -> None:
    with pytest.raises(ValueError):
        Frame(pixels=np.zeros((3, 4, 3), dtype=np.uint8))


def test_frame_from_rgba_bytes_checks_length() -> None:
    frame = Frame.from_rgba_bytes(bytes(2 * 2 * 4), 2, 2)
    assert frame.width == 2 and frame.height == 2

    with pytest.raises(ValueError):
        Frame.from_rgba_bytes(bytes(10), 2, 2)


def test_frame_from_bgr_swaps_channels() -> None:
    bgr = np.zeros((2, 2, 3), dtype=np.uint8)
    bgr[..., 0] = 200  # blue

    frame = Frame.from_bgr(bgr, source="a.jpg")
    assert frame.pixels[0, 0, 2] == 200
    assert frame.pixels[0, 0, 0] == 0
    assert frame.pixels[0, 0, 3] == 255
    assert frame.source == "a.jpg"


@pytest.mark.parametrize(
    "geometry",
    [
        (0, 0, 0, 10),
        (0, 0, 10, 0),
        (-1, 0, 10, 10),
        (95, 0, 10, 10),
        (0, 95, 10, 10),
        (0, 0, float("nan"), 10),
        (0, 0, "wide", 10),
    ],
)
def test_region_rejects_invalid_geometry(geometry) -> None:
    x, y, width, height = geometry
    with pytest.raises(InvalidRegion):
        Region(id="r", x=x, y=y, width=width, height=height)


def test_region_round_trips_through_dict() -> None:
    region = Region(id="r1", x=10, y=20, width=30, height=40, name="Door", is_active=False)
    assert Region.from_dict(region.to_dict()) == region
    assert region.with_active(True).is_active is True


def test_criterion_config_clamps_on_construction_and_assignment() -> None:
    config = DetectionCriterionConfig(enabled=True, parameter=150)
    assert config.parameter == 100

    config.parameter = -5
    assert config.parameter == 0

    config.parameter = "42"
    assert config.parameter == 42


def test_criterion_config_rejects_nan_and_non_numeric() -> None:
    config = DetectionCriterionConfig(enabled=True, parameter=25)
    with pytest.raises(ValueError):
        config.parameter = math.nan
    with pytest.raises(ValueError):
        config.parameter = "abc"
    assert config.parameter == 25


def test_detection_settings_defaults() -> None:
    settings = DetectionSettings()
    assert settings.sensitivity == 50
    assert settings.block_size == 16
    assert settings.pixel.enabled is True
    assert settings.pixel.parameter == 25
    assert settings.color.enabled is False
    assert settings.text.enabled is False


def test_detection_settings_from_partial_dict() -> None:
    settings = DetectionSettings.from_dict({
        "sensitivity": 120,
        "criteria": {"color": {"enabled": "true", "parameter": 10}},
    })
    assert settings.sensitivity == 100
    assert settings.color.enabled is True
    assert settings.color.parameter == 10
    assert settings.pixel.parameter == 25


def test_detection_settings_copy_is_independent() -> None:
    settings = DetectionSettings()
    snapshot = settings.copy()
    settings.pixel.parameter = 80
    assert snapshot.pixel.parameter == 25


def test_detection_settings_rejects_zero_block_size() -> None:
    with pytest.raises(ValueError):
        DetectionSettings(block_size=0)


def test_action_config_clamps_percentages() -> None:
    actions = ActionConfig.from_dict({
        "play_sound": {"enabled": True, "volume": 300},
        "screenshot": {"enabled": False, "quality": -3},
    })
    assert actions.play_sound.volume == 100
    assert actions.screenshot.quality == 0
    assert actions.screenshot.enabled is False
    assert ActionConfig.from_dict(actions.to_dict()) == actions


def test_detection_event_rounds_confidence() -> None:
    from datetime import datetime

    event = DetectionEvent(
        timestamp=datetime(2024, 1, 1, 12, 0, 0),
        criterion=Criterion.PIXEL,
        confidence=33.33333,
        description="Pixel difference 33.33% > 25.00%",
    )
    assert event.confidence == 33.33
    assert event.to_dict()["type"] == "pixel"
    assert len(event.id) == 32
