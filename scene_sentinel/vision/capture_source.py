"""
图像采集接口

capture() 成功返回 Frame，失败返回 None 或抛出 CaptureFailed
save_screenshot() 只在生成告警事件时调用，返回截图路径
"""
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union, Sequence

import cv2

from scene_sentinel.common import Logger
from scene_sentinel.models import Frame


class CaptureSource(ABC):
    """图像采集来源"""

    @abstractmethod
    def capture(self) -> Optional[Frame]:
        """采集一帧

        Returns:
            Frame，失败返回 None
        """
        pass

    def save_screenshot(self, frame: Frame, quality: float) -> Optional[str]:
        """保存告警截图

        默认直接使用帧的来源路径（例如图片文件本身）

        Args:
            frame: 触发告警的帧
            quality: JPEG 质量（0-100）

        Returns:
            截图路径，没有则返回 None
        """
        return frame.source

    def shutdown(self):
        """释放资源"""
        pass


class FileCapture(CaptureSource):
    """从图片文件采集（模拟摄像头）

    给定多个文件时按顺序循环读取，可用于回放录制的场景
    """

    def __init__(self, paths: Union[str, Path, Sequence[Union[str, Path]]],
                 loop: bool = True,
                 log_dir: Optional[str] = None):
        """
        Args:
            paths: 单个图片路径或路径列表
            loop: 读到末尾后是否从头开始（否则一直返回最后一张）
            log_dir: 日志目录
        """
        if isinstance(paths, (str, Path)):
            paths = [paths]
        if not paths:
            raise ValueError("至少需要一个图片路径")

        self.paths = [Path(p) for p in paths]
        self.loop = loop
        self.logger = Logger(log_dir)

        self._index = 0
        self._lock = threading.Lock()

    def _next_path(self) -> Path:
        with self._lock:
            path = self.paths[self._index]
            if self._index + 1 < len(self.paths):
                self._index += 1
            elif self.loop:
                self._index = 0
            return path

    def capture(self) -> Optional[Frame]:
        path = self._next_path()

        image = cv2.imread(str(path), cv2.IMREAD_COLOR)
        if image is None:
            self.logger.log("capture", "error", f"无法读取图片: {path}")
            return None

        return Frame.from_bgr(image, source=str(path))
