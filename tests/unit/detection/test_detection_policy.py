"""Tests for combining metrics into a detection verdict."""

from __future__ import annotations

from scene_sentinel.detection import ComparisonMetrics, DetectionPolicy
from scene_sentinel.models import Criterion, DetectionSettings


def _settings(**criteria: tuple[bool, float]) -> DetectionSettings:
    settings = DetectionSettings()
    for name, (enabled, parameter) in criteria.items():
        config = settings.criterion(Criterion(name))
        config.enabled = enabled
        config.parameter = parameter
    return settings


def test_threshold_is_strictly_greater_than() -> None:
    policy = DetectionPolicy()
    settings = _settings(pixel=(True, 25))

    assert policy.evaluate(ComparisonMetrics(pixel=25.0), settings).triggered is False
    assert policy.evaluate(ComparisonMetrics(pixel=25.01), settings).triggered is True


def test_disabled_criterion_never_fires() -> None:
    verdict = DetectionPolicy().evaluate(
        ComparisonMetrics(pixel=0.0, color=90.0, text=99.0),
        _settings(pixel=(True, 25), color=(False, 10), text=(False, 10)),
    )
    assert verdict.triggered is False
    assert verdict.fired == []
    assert verdict.primary is None


def test_all_fired_criteria_are_recorded() -> None:
    verdict = DetectionPolicy().evaluate(
        ComparisonMetrics(pixel=40.0, color=70.0),
        _settings(pixel=(True, 25), color=(True, 50)),
    )
    assert [r.criterion for r in verdict.fired] == [Criterion.PIXEL, Criterion.COLOR]
    assert verdict.primary.criterion == Criterion.COLOR
    assert verdict.describe() == (
        "Pixel difference 40.00% > 25.00%; Color block change 70.00% > 50.00%"
    )


def test_primary_tie_prefers_enum_order() -> None:
    verdict = DetectionPolicy().evaluate(
        ComparisonMetrics(pixel=60.0, color=60.0),
        _settings(pixel=(True, 25), color=(True, 50)),
    )
    assert verdict.primary.criterion == Criterion.PIXEL


def test_results_cover_every_criterion() -> None:
    verdict = DetectionPolicy().evaluate(ComparisonMetrics(), DetectionSettings())
    assert [r.criterion for r in verdict.results] == list(Criterion)
    assert verdict.to_dict()["triggered"] is False
