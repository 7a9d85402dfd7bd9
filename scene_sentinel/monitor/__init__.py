"""
Monitor 模块 - 监控调度

┌─────────────────────────────────────────────────┐
│        MonitoringScheduler (监控调度器)          │
├─────────────────────────────────────────────────┤
│  - IDLE / ACTIVE 状态机                          │
│  - 定时 tick：截图 -> 比较 -> 判定 -> 去抖        │
│  - 告警锁：只由 reset_reference() 清除           │
├─────────────────────────────────────────────────┤
│  MonitorConfig (统一配置)                        │
│  - 自动保存/加载（JSON）                          │
│  - 检测设置、动作设置、区域                        │
└─────────────────────────────────────────────────┘

使用示例：
```python
from scene_sentinel.monitor import create_monitoring_scheduler

monitor = create_monitoring_scheduler(
    capture_source=camera,
    alert_service=alerts,
    config_file="config/monitor_config.json"
)

monitor.add_region(10, 10, 50, 50, name="Door")
monitor.start()
...
monitor.reset_reference()
monitor.stop()
```
"""

from .monitor_config import MonitorConfig
from .monitoring_scheduler import (
    MonitoringScheduler,
    MonitoringState,
    MonitoringSession,
    MonitorStatus,
    TickOutcome,
    create_monitoring_scheduler
)

__all__ = [
    'MonitorConfig',
    'MonitoringScheduler',
    'MonitoringState',
    'MonitoringSession',
    'MonitorStatus',
    'TickOutcome',
    'create_monitoring_scheduler',
]
