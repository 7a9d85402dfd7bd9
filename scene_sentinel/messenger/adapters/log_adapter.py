"""
日志适配器

没有配置任何推送平台时使用，只把告警写入日志
"""
from typing import Optional

from .base_adapter import MessageAdapter


class LogAdapter(MessageAdapter):
    """只写日志的适配器"""

    def __init__(self, log_dir: Optional[str] = None):
        super().__init__("log", log_dir=log_dir)

    def initialize(self) -> bool:
        return True

    def shutdown(self):
        pass

    def send_text(self, content: str, recipient_id: Optional[str] = None) -> bool:
        self.logger.log("alert", "warning", content.replace("\n\n", " - "))
        return True

    def send_image(self, image_path: str, recipient_id: Optional[str] = None) -> bool:
        self.logger.log("alert", "info", f"截图: {image_path}")
        return True
