"""
检测事件数据模型
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Dict, Any

from .settings import Criterion


@dataclass(frozen=True)
class DetectionEvent:
    """一次通过去抖的变化告警

    Attributes:
        timestamp: 检测时间
        criterion: 主触发准则（指标最大的那个）
        confidence: 主准则的指标值（百分比，保留两位小数）
        description: 可读描述（列出所有触发的准则）
        region: 参与比较的区域名称（整帧比较时为 None）
        screenshot_ref: 截图引用
        id: 事件 ID
    """
    timestamp: datetime
    criterion: Criterion
    confidence: float
    description: str
    region: Optional[str] = None
    screenshot_ref: Optional[str] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self):
        object.__setattr__(self, "confidence", round(float(self.confidence), 2))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "type": self.criterion.value,
            "confidence": self.confidence,
            "description": self.description,
            "region": self.region,
            "screenshot": self.screenshot_ref
        }
