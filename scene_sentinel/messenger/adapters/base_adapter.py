"""
消息适配器基类

定义统一的接口，所有平台适配器都需要实现
"""
from abc import ABC, abstractmethod
from typing import Optional

from scene_sentinel.common import Logger
from ..models import AlertPayload


class MessageAdapter(ABC):
    """消息适配器基类

    只负责与平台交互，告警内容由 AlertService 组装
    """

    def __init__(self, platform_name: str,
                 default_recipient: Optional[str] = None,
                 timeout: float = 30,
                 log_dir: Optional[str] = None):
        """
        Args:
            platform_name: 平台名称
            default_recipient: 默认接收者 ID
            timeout: 单次请求超时（秒）
            log_dir: 日志目录
        """
        self.platform_name = platform_name
        self.default_recipient = default_recipient
        self.timeout = timeout
        self.logger = Logger(log_dir)

    # ==================== 发送消息 ====================

    @abstractmethod
    def send_text(self, content: str, recipient_id: Optional[str] = None) -> bool:
        """发送文本消息

        Args:
            content: 消息内容
            recipient_id: 接收者 ID（默认 default_recipient）

        Returns:
            是否发送成功
        """
        pass

    def send_image(self, image_path: str, recipient_id: Optional[str] = None) -> bool:
        """发送图片消息（可选实现）"""
        self.logger.log("alert", "warning", f"{self.platform_name} 不支持发送图片")
        return False

    # ==================== 生命周期 ====================

    @abstractmethod
    def initialize(self) -> bool:
        """初始化适配器

        Returns:
            是否初始化成功
        """
        pass

    @abstractmethod
    def shutdown(self):
        """关闭适配器"""
        pass

    # ==================== 统一入口 ====================

    def send_alert(self, payload: AlertPayload) -> bool:
        """发送告警（统一入口）

        1. push 启用时发送文本
        2. 有截图引用时发送图片
        3. 声音 / 振动由设备端处理，这里只记录

        Returns:
            是否有任一内容发送成功（没有需要发送的内容时返回 True）
        """
        attempted = False
        success = False

        if payload.push:
            attempted = True
            success = self.send_text(payload.to_text()) or success

        if payload.screenshot and payload.screenshot.ref:
            attempted = True
            success = self.send_image(payload.screenshot.ref) or success

        if payload.sound or payload.vibrate:
            self.logger.log("alert", "info",
                            f"{self.platform_name} 忽略设备端动作: "
                            f"sound={payload.sound is not None}, vibrate={payload.vibrate is not None}")

        return success if attempted else True
