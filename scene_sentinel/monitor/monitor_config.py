"""
Monitor 配置

所有参数保存到一个 JSON 文件，update() 自动保存
"""
import json
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional
from pathlib import Path

from scene_sentinel.models import DetectionSettings, ActionConfig

# 数值字段（前端可能传字符串）
_INT_FIELDS = ("capture_interval_ms", "max_ledger_events")
_FLOAT_FIELDS = ("capture_timeout", "alert_timeout", "stop_join_timeout")


def _merge(current: Dict[str, Any], incoming: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """递归合并字典（incoming 覆盖 current，嵌套字典逐层合并）"""
    merged = dict(current or {})
    for key, value in (incoming or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


@dataclass
class MonitorConfig:
    """Monitor 统一配置"""

    # 监控参数
    capture_interval_ms: int = 2000     # 截图间隔（毫秒）
    capture_timeout: float = 10         # 单次截图超时（秒）
    alert_timeout: float = 30           # 告警投递超时（秒）
    stop_join_timeout: float = 5        # 停止时等待监控线程的时间（秒）

    # 检测事件最多保留条数（0 表示不限制）
    max_ledger_events: int = 0

    # 检测 / 动作设置（字典形式，见 DetectionSettings / ActionConfig）
    detection: Dict[str, Any] = field(default_factory=lambda: DetectionSettings().to_dict())
    actions: Dict[str, Any] = field(default_factory=lambda: ActionConfig().to_dict())

    # 监控区域
    regions: List[Dict[str, Any]] = field(default_factory=list)

    # 日志目录
    log_dir: Optional[str] = "logs"

    # 配置文件路径（内部使用）
    _config_file: Optional[str] = field(default=None, repr=False)

    def __post_init__(self):
        self.validate()

    def validate(self):
        """检查数值范围

        Raises:
            ValueError: 间隔 / 超时不是正数
        """
        if self.capture_interval_ms <= 0:
            raise ValueError(f"capture_interval_ms 必须为正数: {self.capture_interval_ms}")
        for key in _FLOAT_FIELDS:
            if getattr(self, key) <= 0:
                raise ValueError(f"{key} 必须为正数: {getattr(self, key)}")
        if self.max_ledger_events < 0:
            raise ValueError(f"max_ledger_events 不能为负数: {self.max_ledger_events}")

    @property
    def capture_interval(self) -> float:
        """截图间隔（秒）"""
        return self.capture_interval_ms / 1000

    def detection_settings(self) -> DetectionSettings:
        return DetectionSettings.from_dict(self.detection)

    def action_config(self) -> ActionConfig:
        return ActionConfig.from_dict(self.actions)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            "capture_interval_ms": self.capture_interval_ms,
            "capture_timeout": self.capture_timeout,
            "alert_timeout": self.alert_timeout,
            "stop_join_timeout": self.stop_join_timeout,
            "max_ledger_events": self.max_ledger_events,
            "detection": self.detection,
            "actions": self.actions,
            "regions": self.regions,
            "log_dir": self.log_dir
        }

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any], config_file: str = None) -> 'MonitorConfig':
        """从字典创建配置

        Args:
            config_dict: 配置字典
            config_file: 配置文件路径（用于后续自动保存）

        Returns:
            MonitorConfig 实例
        """
        default = cls()

        # 辅助函数：安全转换数值
        def to_number(value, default_value, cast):
            if value is None:
                return default_value
            try:
                return cast(value)
            except (ValueError, TypeError):
                return default_value

        # 校验检测 / 动作设置（非法值会被限制到合法范围）
        detection = DetectionSettings.from_dict(config_dict.get("detection")).to_dict()
        actions = ActionConfig.from_dict(config_dict.get("actions")).to_dict()

        return cls(
            capture_interval_ms=to_number(config_dict.get("capture_interval_ms"), default.capture_interval_ms, int),
            capture_timeout=to_number(config_dict.get("capture_timeout"), default.capture_timeout, float),
            alert_timeout=to_number(config_dict.get("alert_timeout"), default.alert_timeout, float),
            stop_join_timeout=to_number(config_dict.get("stop_join_timeout"), default.stop_join_timeout, float),
            max_ledger_events=to_number(config_dict.get("max_ledger_events"), default.max_ledger_events, int),
            detection=detection,
            actions=actions,
            regions=list(config_dict.get("regions") or []),
            log_dir=config_dict.get("log_dir", default.log_dir),
            _config_file=config_file
        )

    def save(self):
        """保存配置到文件"""
        if self._config_file:
            config_file = Path(self._config_file)
            config_file.parent.mkdir(parents=True, exist_ok=True)

            with open(config_file, "w", encoding="utf-8") as f:
                json.dump(self.to_dict(), f, ensure_ascii=False, indent=2)

    def update(self, **kwargs):
        """更新配置并自动保存

        非法值会抛出 ValueError，配置保持不变
        detection / actions 支持部分更新（与当前值合并），regions 整体替换

        Args:
            **kwargs: 要更新的配置项
        """
        values = {}
        for key, value in kwargs.items():
            if not hasattr(self, key) or key.startswith("_"):
                continue

            if key in _INT_FIELDS and value is not None and value != "":
                value = int(value)
            elif key in _FLOAT_FIELDS and value is not None and value != "":
                value = float(value)
            elif key == "detection":
                # 部分更新：未提供的字段保持当前值
                value = DetectionSettings.from_dict(_merge(self.detection, value)).to_dict()
            elif key == "actions":
                value = ActionConfig.from_dict(_merge(self.actions, value)).to_dict()
            elif key == "regions":
                value = list(value or [])

            values[key] = value

        previous = {key: getattr(self, key) for key in values}
        for key, value in values.items():
            setattr(self, key, value)

        try:
            self.validate()
        except ValueError:
            for key, value in previous.items():
                setattr(self, key, value)
            raise

        # 自动保存
        self.save()

    @classmethod
    def load(cls, config_file: str) -> 'MonitorConfig':
        """从文件加载配置（文件不存在时创建默认配置）

        Args:
            config_file: 配置文件路径

        Returns:
            MonitorConfig 实例
        """
        config_path = Path(config_file)

        if not config_path.exists():
            default_config = cls.get_default()
            default_config._config_file = config_file
            default_config.save()
            return default_config

        with open(config_path, "r", encoding="utf-8") as f:
            config_dict = json.load(f)

        return cls.from_dict(config_dict, config_file)

    @classmethod
    def get_default(cls) -> 'MonitorConfig':
        """获取默认配置"""
        return cls()
