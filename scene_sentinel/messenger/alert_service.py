"""
告警投递服务

┌─────────────────────────────────────┐
│   MonitoringScheduler (调用方)       │  ← 后台线程异步调用 deliver()
├─────────────────────────────────────┤
│   AlertService (业务层)             │  ← 广播到所有适配器，汇总结果
├─────────────────────────────────────┤
│   MessageAdapter (适配器层)         │  ← 平台实现
│   - TelegramAdapter                 │
│   - LogAdapter                      │
└─────────────────────────────────────┘
"""
from dataclasses import dataclass
from typing import List, Optional

from scene_sentinel.common import Logger
from scene_sentinel.errors import DeliveryFailed
from .adapters import MessageAdapter, TelegramAdapter, LogAdapter
from .models import AlertPayload, DeliveryResult


@dataclass
class AlertServiceConfig:
    """告警服务配置"""
    telegram_token: Optional[str] = None
    telegram_chat_id: Optional[str] = None

    # 单次请求超时（秒）
    timeout: float = 30

    # 没有可用平台时是否退化为日志输出
    fallback_to_log: bool = True

    log_dir: Optional[str] = "logs"


class AlertService:
    """告警投递服务"""

    def __init__(self, adapters: Optional[List[MessageAdapter]] = None, log_dir: Optional[str] = None):
        """
        Args:
            adapters: 适配器列表
            log_dir: 日志目录
        """
        self.adapters: List[MessageAdapter] = list(adapters or [])
        self.logger = Logger(log_dir)

        self.logger.log("alert", "info", f"AlertService 初始化 - 已加载 {len(self.adapters)} 个适配器")

    @property
    def has_adapters(self) -> bool:
        return len(self.adapters) > 0

    def deliver(self, payload: AlertPayload) -> DeliveryResult:
        """投递告警到所有平台

        Args:
            payload: 告警数据

        Returns:
            DeliveryResult（至少一个平台成功）

        Raises:
            DeliveryFailed: 所有平台都失败（或没有平台）
        """
        result = DeliveryResult(success=False)

        for adapter in self.adapters:
            try:
                if adapter.send_alert(payload):
                    result.delivered.append(adapter.platform_name)
                else:
                    result.errors[adapter.platform_name] = "发送失败"
            except Exception as e:
                self.logger.log("alert", "error", f"适配器 {adapter.platform_name} 异常: {e}")
                result.errors[adapter.platform_name] = str(e)

        result.success = len(result.delivered) > 0
        if not result.success:
            raise DeliveryFailed(f"告警投递失败: {result.errors or '没有可用的适配器'}")

        self.logger.log("alert", "info", f"告警已投递: {result.delivered}", event_id=payload.event_id)
        return result

    def set_timeout(self, timeout: float):
        """修改所有适配器的请求超时（秒）"""
        for adapter in self.adapters:
            adapter.timeout = timeout
        self.logger.log("alert", "info", f"告警投递超时已修改: {timeout}s")

    def shutdown(self):
        """关闭所有适配器"""
        for adapter in self.adapters:
            adapter.shutdown()


# ==================== 工厂函数 ====================

def create_alert_service(config: AlertServiceConfig) -> AlertService:
    """创建告警服务

    Args:
        config: 服务配置对象

    Returns:
        AlertService 实例
    """
    adapters: List[MessageAdapter] = []

    if config.telegram_token and config.telegram_chat_id:
        telegram = TelegramAdapter(
            bot_token=config.telegram_token,
            chat_id=config.telegram_chat_id,
            timeout=config.timeout,
            log_dir=config.log_dir
        )
        if telegram.initialize():
            adapters.append(telegram)

    if not adapters and config.fallback_to_log:
        adapters.append(LogAdapter(log_dir=config.log_dir))

    return AlertService(adapters, log_dir=config.log_dir)
