"""
消息数据模型
"""

from .alert import (
    ALERT_TITLE,
    ALERT_BODY,
    SoundOptions,
    VibrateOptions,
    ScreenshotOptions,
    AlertPayload,
    DeliveryResult
)

__all__ = [
    'ALERT_TITLE',
    'ALERT_BODY',
    'SoundOptions',
    'VibrateOptions',
    'ScreenshotOptions',
    'AlertPayload',
    'DeliveryResult',
]
