"""
Telegram 消息适配器

支持发送文本消息和截图
"""
from pathlib import Path
from typing import Optional

import httpx

from .base_adapter import MessageAdapter

# Telegram 图片大小限制
MAX_PHOTO_BYTES = 10 * 1024 * 1024


class TelegramAdapter(MessageAdapter):
    """Telegram 适配器"""

    def __init__(self,
                 bot_token: str,
                 chat_id: Optional[str] = None,
                 timeout: float = 30,
                 log_dir: Optional[str] = None,
                 api_base: str = "https://api.telegram.org"):
        """
        Args:
            bot_token: Bot Token
            chat_id: 默认接收会话 ID
            timeout: 请求超时（秒）
            log_dir: 日志目录
            api_base: API 地址
        """
        super().__init__("telegram", default_recipient=chat_id, timeout=timeout, log_dir=log_dir)
        self.bot_token = bot_token
        self.api_base = api_base.rstrip("/")

    def _url(self, method: str) -> str:
        return f"{self.api_base}/bot{self.bot_token}/{method}"

    def initialize(self) -> bool:
        """初始化适配器（测试连接）"""
        if not self.bot_token:
            self.logger.log("alert", "warning", "Telegram 未配置 bot_token，跳过初始化")
            return False

        try:
            response = httpx.get(self._url("getMe"), timeout=self.timeout)
            result = response.json()

            if result.get("ok"):
                bot_info = result.get("result", {})
                self.logger.log("alert", "info", f"Telegram Bot 连接成功: @{bot_info.get('username')}")
                return True

            self.logger.log("alert", "error",
                            f"Telegram Bot 连接失败: {result.get('description', '未知错误')}")
            return False

        except (httpx.HTTPError, ValueError) as e:
            self.logger.log("alert", "error", f"Telegram Bot 连接异常: {e}")
            return False

    def shutdown(self):
        """关闭适配器"""
        self.logger.log("alert", "info", "Telegram 适配器已关闭")

    # ==================== 发送消息 ====================

    def send_text(self, content: str, recipient_id: Optional[str] = None) -> bool:
        """发送文本消息"""
        data = {
            "chat_id": recipient_id or self.default_recipient,
            "text": content
        }

        try:
            response = httpx.post(self._url("sendMessage"), json=data, timeout=self.timeout)
            result = response.json()

            if result.get("ok"):
                self.logger.log("alert", "info", "Telegram 消息发送成功")
                return True

            self.logger.log("alert", "error",
                            f"Telegram 消息发送失败: {result.get('description', '未知错误')}")
            return False

        except (httpx.HTTPError, ValueError) as e:
            self.logger.log("alert", "error", f"Telegram 消息发送异常: {e}")
            return False

    def send_image(self, image_path: str, recipient_id: Optional[str] = None) -> bool:
        """发送截图"""
        path = Path(image_path)
        if not path.exists():
            self.logger.log("alert", "error", f"图片文件不存在: {image_path}")
            return False

        file_size = path.stat().st_size
        if file_size > MAX_PHOTO_BYTES:
            self.logger.log("alert", "error", f"图片大小超过10MB限制: {file_size / 1024 / 1024:.2f}MB")
            return False

        try:
            with open(path, "rb") as f:
                files = {"photo": (path.name, f)}
                data = {"chat_id": recipient_id or self.default_recipient}
                response = httpx.post(self._url("sendPhoto"), data=data, files=files, timeout=self.timeout)
                result = response.json()

            if result.get("ok"):
                self.logger.log("alert", "info", "Telegram 图片发送成功")
                return True

            self.logger.log("alert", "error",
                            f"Telegram 图片发送失败: {result.get('description', '未知错误')}")
            return False

        except (httpx.HTTPError, OSError, ValueError) as e:
            self.logger.log("alert", "error", f"Telegram 图片发送异常: {e}")
            return False
