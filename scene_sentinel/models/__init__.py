"""
数据模型
"""

from .frame import Frame
from .region import Region
from .settings import (
    Criterion,
    DetectionCriterionConfig,
    DetectionSettings,
    SoundAction,
    VibrateAction,
    PushAction,
    ScreenshotAction,
    ActionConfig,
    clamp_percentage
)
from .event import DetectionEvent

__all__ = [
    'Frame',
    'Region',
    'Criterion',
    'DetectionCriterionConfig',
    'DetectionSettings',
    'SoundAction',
    'VibrateAction',
    'PushAction',
    'ScreenshotAction',
    'ActionConfig',
    'clamp_percentage',
    'DetectionEvent',
]
