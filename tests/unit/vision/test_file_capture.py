"""Tests for file-backed capture sources."""

from __future__ import annotations

import cv2
import numpy as np
import pytest

from scene_sentinel.vision import FileCapture


def _write_image(path, value: int) -> str:
    image = np.full((6, 8, 3), value, dtype=np.uint8)
    assert cv2.imwrite(str(path), image)
    return str(path)


def test_capture_reads_image_as_rgba_frame(tmp_path) -> None:
    path = _write_image(tmp_path / "scene.png", 90)
    frame = FileCapture(path).capture()

    assert frame.size == (8, 6)
    assert frame.pixels.shape == (6, 8, 4)
    assert int(frame.pixels[0, 0, 0]) == 90
    assert frame.source == path


def test_capture_cycles_through_paths(tmp_path) -> None:
    first = _write_image(tmp_path / "a.png", 10)
    second = _write_image(tmp_path / "b.png", 200)
    capture = FileCapture([first, second])

    assert [capture.capture().source for _ in range(3)] == [first, second, first]


def test_capture_without_loop_repeats_last(tmp_path) -> None:
    first = _write_image(tmp_path / "a.png", 10)
    second = _write_image(tmp_path / "b.png", 200)
    capture = FileCapture([first, second], loop=False)

    assert [capture.capture().source for _ in range(3)] == [first, second, second]


def test_missing_file_returns_none(tmp_path) -> None:
    assert FileCapture(tmp_path / "missing.png").capture() is None


def test_requires_at_least_one_path() -> None:
    with pytest.raises(ValueError):
        FileCapture([])
