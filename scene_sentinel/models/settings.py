"""
检测设置与动作设置

所有百分比参数在创建和赋值时都会被限制到 [0, 100]，
非数字或 NaN 直接拒绝（ValueError）
"""
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, Optional


class Criterion(Enum):
    """检测准则（固定集合，顺序即并列时的优先级）"""
    PIXEL = "pixel"    # 像素差异
    COLOR = "color"    # 色块变化
    TEXT = "text"      # 文本内容变化


def clamp_percentage(value, name: str = "value") -> float:
    """把输入转换为 [0, 100] 之间的浮点数

    Raises:
        ValueError: 非数字或 NaN
    """
    if isinstance(value, bool):
        raise ValueError(f"{name} 必须是数字: {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} 必须是数字: {value!r}")

    if math.isnan(number):
        raise ValueError(f"{name} 不能是 NaN")
    return min(100.0, max(0.0, number))


def _to_bool(value) -> bool:
    if isinstance(value, str):
        return value.lower() in ('true', '1', 'yes')
    return bool(value)


class _PercentageFields:
    """赋值时自动限制百分比字段的 mixin"""

    _percentage_fields: tuple = ()

    def __setattr__(self, key, value):
        if key in self._percentage_fields:
            value = clamp_percentage(value, key)
        elif key == "enabled":
            value = _to_bool(value)
        super().__setattr__(key, value)


# ==================== 检测设置 ====================

@dataclass
class DetectionCriterionConfig(_PercentageFields):
    """单个检测准则的配置

    Attributes:
        enabled: 是否启用
        parameter: 触发阈值（百分比），指标严格大于该值才触发
    """
    enabled: bool = False
    parameter: float = 50.0

    _percentage_fields = ("parameter",)

    def to_dict(self) -> Dict[str, Any]:
        return {"enabled": self.enabled, "parameter": self.parameter}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]], default: "DetectionCriterionConfig") -> "DetectionCriterionConfig":
        data = data or {}
        return cls(
            enabled=data.get("enabled", default.enabled),
            parameter=data.get("parameter", default.parameter)
        )


def _default_criteria() -> Dict[Criterion, DetectionCriterionConfig]:
    return {
        Criterion.PIXEL: DetectionCriterionConfig(enabled=True, parameter=25),
        Criterion.COLOR: DetectionCriterionConfig(enabled=False, parameter=50),
        Criterion.TEXT: DetectionCriterionConfig(enabled=False, parameter=80),
    }


@dataclass
class DetectionSettings(_PercentageFields):
    """检测设置

    Attributes:
        sensitivity: 单像素 / 单色块的颜色距离判定阈值（百分比），
            距离大于 765 * sensitivity / 100 视为变化
        block_size: 色块边长（像素）
        criteria: 每个准则的配置
    """
    sensitivity: float = 50.0
    block_size: int = 16
    criteria: Dict[Criterion, DetectionCriterionConfig] = field(default_factory=_default_criteria)

    _percentage_fields = ("sensitivity",)

    def __post_init__(self):
        block_size = int(self.block_size)
        if block_size < 1:
            raise ValueError(f"block_size 必须 >= 1: {self.block_size}")
        self.block_size = block_size

        # 缺失的准则使用默认配置
        defaults = _default_criteria()
        for criterion in Criterion:
            self.criteria.setdefault(criterion, defaults[criterion])

    @property
    def pixel(self) -> DetectionCriterionConfig:
        return self.criteria[Criterion.PIXEL]

    @property
    def color(self) -> DetectionCriterionConfig:
        return self.criteria[Criterion.COLOR]

    @property
    def text(self) -> DetectionCriterionConfig:
        return self.criteria[Criterion.TEXT]

    def criterion(self, criterion: Criterion) -> DetectionCriterionConfig:
        return self.criteria[criterion]

    def copy(self) -> "DetectionSettings":
        """深拷贝（调度器每次比较前取快照）"""
        return DetectionSettings.from_dict(self.to_dict())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sensitivity": self.sensitivity,
            "block_size": self.block_size,
            "criteria": {c.value: cfg.to_dict() for c, cfg in self.criteria.items()}
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "DetectionSettings":
        """从字典创建（缺失字段使用默认值）"""
        data = data or {}
        defaults = _default_criteria()
        raw_criteria = data.get("criteria", {}) or {}

        criteria = {
            c: DetectionCriterionConfig.from_dict(raw_criteria.get(c.value), defaults[c])
            for c in Criterion
        }
        return cls(
            sensitivity=data.get("sensitivity", 50),
            block_size=data.get("block_size", 16),
            criteria=criteria
        )


# ==================== 动作设置 ====================

@dataclass
class SoundAction(_PercentageFields):
    """播放提示音"""
    enabled: bool = True
    volume: float = 80.0

    _percentage_fields = ("volume",)


@dataclass
class VibrateAction(_PercentageFields):
    """振动提醒"""
    enabled: bool = True
    intensity: float = 50.0

    _percentage_fields = ("intensity",)


@dataclass
class PushAction(_PercentageFields):
    """推送通知"""
    enabled: bool = True


@dataclass
class ScreenshotAction(_PercentageFields):
    """附带截图"""
    enabled: bool = True
    quality: float = 90.0

    _percentage_fields = ("quality",)


@dataclass
class ActionConfig:
    """触发告警时执行的动作（只透传给告警投递方）"""
    play_sound: SoundAction = field(default_factory=SoundAction)
    vibrate: VibrateAction = field(default_factory=VibrateAction)
    push_alert: PushAction = field(default_factory=PushAction)
    screenshot: ScreenshotAction = field(default_factory=ScreenshotAction)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "play_sound": {"enabled": self.play_sound.enabled, "volume": self.play_sound.volume},
            "vibrate": {"enabled": self.vibrate.enabled, "intensity": self.vibrate.intensity},
            "push_alert": {"enabled": self.push_alert.enabled},
            "screenshot": {"enabled": self.screenshot.enabled, "quality": self.screenshot.quality}
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ActionConfig":
        data = data or {}
        sound = data.get("play_sound") or {}
        vibrate = data.get("vibrate") or {}
        push = data.get("push_alert") or {}
        screenshot = data.get("screenshot") or {}

        return cls(
            play_sound=SoundAction(**sound),
            vibrate=VibrateAction(**vibrate),
            push_alert=PushAction(**push),
            screenshot=ScreenshotAction(**screenshot)
        )
