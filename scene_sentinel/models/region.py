"""
监控区域数据模型

坐标全部是相对于帧尺寸的百分比 [0, 100]
"""
import math
from dataclasses import dataclass, replace
from typing import Dict, Any

from scene_sentinel.errors import InvalidRegion

# 浮点误差容忍（x + width 允许略微超过 100）
_EPSILON = 1e-9


def _to_percentage(name: str, value) -> float:
    if isinstance(value, bool):
        raise InvalidRegion(f"{name} 必须是数字: {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidRegion(f"{name} 必须是数字: {value!r}")

    if math.isnan(number) or math.isinf(number):
        raise InvalidRegion(f"{name} 不能是 NaN/Inf")
    if number < 0 or number > 100:
        raise InvalidRegion(f"{name} 超出范围 [0, 100]: {number}")
    return number


@dataclass(frozen=True)
class Region:
    """矩形监控区域

    Attributes:
        id: 区域 ID
        x, y: 左上角（百分比）
        width, height: 宽高（百分比，必须大于 0）
        name: 区域名称
        is_active: 是否参与比较
    """
    id: str
    x: float
    y: float
    width: float
    height: float
    name: str = ""
    is_active: bool = True

    def __post_init__(self):
        for attr in ("x", "y", "width", "height"):
            object.__setattr__(self, attr, _to_percentage(attr, getattr(self, attr)))

        if self.width <= 0 or self.height <= 0:
            raise InvalidRegion(f"区域面积不能为 0: width={self.width}, height={self.height}")
        if self.x + self.width > 100 + _EPSILON:
            raise InvalidRegion(f"区域超出右边界: x + width = {self.x + self.width}")
        if self.y + self.height > 100 + _EPSILON:
            raise InvalidRegion(f"区域超出下边界: y + height = {self.y + self.height}")

    def with_active(self, is_active: bool) -> "Region":
        """返回切换激活状态后的新区域"""
        return replace(self, is_active=is_active)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "name": self.name,
            "is_active": self.is_active
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Region":
        """从字典创建区域"""
        is_active = data.get("is_active", True)
        if isinstance(is_active, str):
            is_active = is_active.lower() in ('true', '1', 'yes')

        return cls(
            id=str(data["id"]),
            x=data.get("x"),
            y=data.get("y"),
            width=data.get("width"),
            height=data.get("height"),
            name=data.get("name", ""),
            is_active=bool(is_active)
        )
