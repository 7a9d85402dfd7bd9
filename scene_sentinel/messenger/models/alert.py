"""
告警数据模型
"""
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List

from scene_sentinel.models import ActionConfig, DetectionEvent

ALERT_TITLE = "🚨 Scene Change Detected!"
ALERT_BODY = "Significant changes detected in monitored area"


@dataclass
class SoundOptions:
    volume: float
    sound: str = "default"


@dataclass
class VibrateOptions:
    intensity: float


@dataclass
class ScreenshotOptions:
    quality: float
    ref: Optional[str] = None


@dataclass
class AlertPayload:
    """发给告警投递方的数据

    声音 / 振动 / 截图等选项由 ActionConfig 决定，未启用的为 None
    """
    title: str = ALERT_TITLE
    body: str = ALERT_BODY
    push: bool = True
    sound: Optional[SoundOptions] = None
    vibrate: Optional[VibrateOptions] = None
    screenshot: Optional[ScreenshotOptions] = None
    event_id: Optional[str] = None

    @classmethod
    def from_event(cls, event: DetectionEvent, actions: ActionConfig) -> "AlertPayload":
        """根据检测事件和动作设置构建告警

        Args:
            event: 检测事件
            actions: 动作设置

        Returns:
            AlertPayload 对象
        """
        return cls(
            body=f"{ALERT_BODY}: {event.description}",
            push=actions.push_alert.enabled,
            sound=SoundOptions(volume=actions.play_sound.volume) if actions.play_sound.enabled else None,
            vibrate=VibrateOptions(intensity=actions.vibrate.intensity) if actions.vibrate.enabled else None,
            screenshot=ScreenshotOptions(
                quality=actions.screenshot.quality,
                ref=event.screenshot_ref
            ) if actions.screenshot.enabled else None,
            event_id=event.id
        )

    def to_text(self) -> str:
        return f"{self.title}\n\n{self.body}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "body": self.body,
            "push": self.push,
            "sound": {"volume": self.sound.volume, "sound": self.sound.sound} if self.sound else None,
            "vibrate": {"intensity": self.vibrate.intensity} if self.vibrate else None,
            "screenshot": {"quality": self.screenshot.quality, "ref": self.screenshot.ref} if self.screenshot else None,
            "event_id": self.event_id
        }


@dataclass
class DeliveryResult:
    """投递结果

    Attributes:
        success: 是否有任一通道投递成功
        delivered: 投递成功的平台
        errors: 失败的平台 -> 原因
    """
    success: bool
    delivered: List[str] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)
