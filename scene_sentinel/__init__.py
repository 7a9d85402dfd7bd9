"""
Scene Sentinel - 场景变化检测

模块：
- detection: 区域、帧比较、检测策略
- messenger: 告警投递
- monitor: 监控调度
- storage: 检测事件记录
- vision: 图像采集
"""

__version__ = "0.1.0"
