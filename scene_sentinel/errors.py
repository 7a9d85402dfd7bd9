"""
异常定义

只有操作者主动调用的操作（start / reset_reference / 区域编辑 / 导出）会把异常抛给调用方，
监控循环内部的异常只记录日志。
"""


class SceneSentinelError(Exception):
    """所有场景监控异常的基类"""


class CaptureFailed(SceneSentinelError):
    """图像采集失败或超时"""


class DimensionMismatch(SceneSentinelError):
    """两帧尺寸不一致，无法比较"""

    def __init__(self, reference_size: tuple, current_size: tuple):
        self.reference_size = reference_size
        self.current_size = current_size
        super().__init__(f"帧尺寸不一致: 参考帧 {reference_size[0]}x{reference_size[1]}, "
                         f"当前帧 {current_size[0]}x{current_size[1]}")


class DeliveryFailed(SceneSentinelError):
    """告警投递失败（所有通道都失败）"""


class InvalidRegion(SceneSentinelError, ValueError):
    """区域几何参数非法"""


class RegionNotFound(SceneSentinelError, KeyError):
    """区域 ID 不存在"""

    def __str__(self):
        return f"区域不存在: {self.args[0] if self.args else ''}"


class OperationCancelled(SceneSentinelError):
    """进行中的操作被取消（stop / cancel_pending）"""


class UnsupportedExportFormat(SceneSentinelError, ValueError):
    """不支持的导出格式"""
