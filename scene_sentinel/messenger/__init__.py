"""
Messenger 模块 - 告警投递

使用示例：
```python
config = AlertServiceConfig(
    telegram_token="...",
    telegram_chat_id="...",
    timeout=30
)
service = create_alert_service(config)
service.deliver(AlertPayload(body="..."))
```
"""

from .models import (
    AlertPayload,
    DeliveryResult,
    SoundOptions,
    VibrateOptions,
    ScreenshotOptions,
    ALERT_TITLE,
    ALERT_BODY
)

from .adapters import (
    MessageAdapter,
    TelegramAdapter,
    LogAdapter
)

from .alert_service import (
    AlertService,
    AlertServiceConfig,
    create_alert_service
)

__all__ = [
    # 数据模型
    'AlertPayload',
    'DeliveryResult',
    'SoundOptions',
    'VibrateOptions',
    'ScreenshotOptions',
    'ALERT_TITLE',
    'ALERT_BODY',

    # 适配器
    'MessageAdapter',
    'TelegramAdapter',
    'LogAdapter',

    # 服务
    'AlertService',
    'AlertServiceConfig',
    'create_alert_service',
]
