"""
Vision 模块 - 图像采集
"""

from .capture_source import CaptureSource, FileCapture
from .camera_capture import CameraCapture

__all__ = [
    'CaptureSource',
    'FileCapture',
    'CameraCapture',
]
