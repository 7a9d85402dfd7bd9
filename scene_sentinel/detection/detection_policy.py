"""
检测策略

把比较指标和准则配置合并为判定结果：
- 每个准则统一规则：enabled 且 metric > parameter（严格大于）才触发
- 判定结果为所有启用准则的 OR
- 记录所有触发的准则，主准则取指标最大者（并列时按 Criterion 定义顺序）
"""
from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any

from scene_sentinel.common import Logger
from scene_sentinel.models import Criterion, DetectionSettings, DetectionCriterionConfig
from .frame_comparator import ComparisonMetrics


# 准则显示名称（用于事件描述）
CRITERION_LABELS = {
    Criterion.PIXEL: "Pixel difference",
    Criterion.COLOR: "Color block change",
    Criterion.TEXT: "Text content change",
}


@dataclass
class CriterionResult:
    """单个准则的判定结果"""
    criterion: Criterion
    metric: float
    threshold: float
    enabled: bool
    fired: bool

    def describe(self) -> str:
        return f"{CRITERION_LABELS[self.criterion]} {self.metric:.2f}% > {self.threshold:.2f}%"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "criterion": self.criterion.value,
            "metric": round(self.metric, 2),
            "threshold": self.threshold,
            "enabled": self.enabled,
            "fired": self.fired
        }


@dataclass
class PolicyVerdict:
    """判定结果

    Attributes:
        triggered: 是否有任一启用的准则触发
        results: 每个准则的结果（按 Criterion 定义顺序）
        fired: 触发的准则结果
    """
    triggered: bool
    results: List[CriterionResult] = field(default_factory=list)
    fired: List[CriterionResult] = field(default_factory=list)

    @property
    def primary(self) -> Optional[CriterionResult]:
        """主触发准则（指标最大，并列取定义顺序靠前者）"""
        if not self.fired:
            return None
        return max(self.fired, key=lambda r: (r.metric, -list(Criterion).index(r.criterion)))

    def describe(self) -> str:
        """所有触发准则的描述"""
        return "; ".join(r.describe() for r in self.fired)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "triggered": self.triggered,
            "fired": [r.criterion.value for r in self.fired],
            "results": [r.to_dict() for r in self.results]
        }


def criterion_fires(metric: float, config: DetectionCriterionConfig) -> bool:
    """单个准则的触发规则"""
    return config.enabled and metric > config.parameter


class DetectionPolicy:
    """检测策略（无状态）"""

    def __init__(self, log_dir: Optional[str] = None):
        self.logger = Logger(log_dir)

    def evaluate(self, metrics: ComparisonMetrics, settings: DetectionSettings) -> PolicyVerdict:
        """根据指标和设置给出判定

        Args:
            metrics: 比较器输出
            settings: 检测设置

        Returns:
            PolicyVerdict
        """
        results = []
        for criterion in Criterion:
            config = settings.criterion(criterion)
            metric = metrics.metric(criterion)
            results.append(CriterionResult(
                criterion=criterion,
                metric=metric,
                threshold=config.parameter,
                enabled=config.enabled,
                fired=criterion_fires(metric, config)
            ))

        fired = [r for r in results if r.fired]
        verdict = PolicyVerdict(triggered=bool(fired), results=results, fired=fired)

        if verdict.triggered:
            self.logger.log("policy", "info", f"检测到变化: {verdict.describe()}")

        return verdict
