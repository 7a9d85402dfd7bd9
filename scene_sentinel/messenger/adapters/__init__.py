"""
消息适配器
"""

from .base_adapter import MessageAdapter
from .telegram_adapter import TelegramAdapter
from .log_adapter import LogAdapter

__all__ = [
    'MessageAdapter',
    'TelegramAdapter',
    'LogAdapter',
]
