"""
通用工具类
"""
import os
import json
from pathlib import Path
from datetime import datetime
from typing import Optional
from dotenv import load_dotenv
from dataclasses import dataclass

# 项目根目录
BASE_DIR = Path(__file__).parent.parent

# 加载 .env 文件
load_dotenv(os.path.join(BASE_DIR, '.env'))


class Logger:
    """简单日志工具

    控制台输出 + 按天写入 JSON 行日志文件（log_dir 为空时只输出到控制台）
    """

    def __init__(self, log_dir: Optional[str] = None):
        self.log_dir = Path(log_dir) if log_dir else None

    def log(self, module: str, level: str, message: str, **kwargs):
        """记录日志"""
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        log_entry = {
            "timestamp": timestamp,
            "module": module,
            "level": level,
            "message": message,
            **kwargs
        }

        # 输出到控制台
        print(f"[{timestamp}] [{module}] {level}: {message}")

        # 输出到文件（可选）
        if self.log_dir:
            log_file = self.log_dir / f"{datetime.now().strftime('%Y%m%d')}.log"
            try:
                self.log_dir.mkdir(parents=True, exist_ok=True)
                with open(log_file, "a", encoding="utf-8") as f:
                    f.write(json.dumps(log_entry, ensure_ascii=False, default=str) + "\n")
            except OSError as e:
                print(f"写入日志失败: {e}")


@dataclass
class CameraConfig:
    """摄像头配置"""
    camera_index: int = 0
    resolution: tuple = (1280, 720)  # 目标分辨率
    capture_dir: str = "data/captures"  # 截图保存目录（空字符串表示不保存）


@dataclass
class TelegramConfig:
    """Telegram 配置（可选）"""
    bot_token: str = ""
    chat_id: str = ""


class Config:
    """全局配置类（从环境变量 / .env 读取）"""

    def __init__(self):
        # 摄像头配置
        self.camera = CameraConfig(
            camera_index=int(os.getenv("CAMERA_INDEX", "0")),
            resolution=tuple(map(int, os.getenv("RESOLUTION", "1280,720").split(","))),
            capture_dir=os.getenv("CAPTURE_DIR", str(BASE_DIR / "data" / "captures"))
        )

        # Telegram 配置
        self.telegram = TelegramConfig(
            bot_token=os.getenv("TELEGRAM_BOT_TOKEN", ""),
            chat_id=os.getenv("TELEGRAM_CHAT_ID", "")
        )

        # 项目路径
        self.log_dir = os.getenv("LOG_DIR", str(BASE_DIR / "logs"))
        self.config_file = os.getenv("MONITOR_CONFIG", str(BASE_DIR / "config" / "monitor_config.json"))
