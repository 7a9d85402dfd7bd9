"""
摄像头采集（OpenCV）
"""
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional

import cv2

from scene_sentinel.common import Config, Logger
from scene_sentinel.models import Frame
from .capture_source import CaptureSource


class CameraCapture(CaptureSource):
    """摄像头采集

    职责：
    1. 硬件管理（延迟打开、关闭摄像头）
    2. 采集单帧（先清空缓冲区，避免拿到旧画面），只保存在内存
    3. 告警时保存截图（save_screenshot，写入 capture_dir）
    """

    # 打开摄像头后丢弃的缓冲帧数
    FLUSH_FRAMES = 2

    def __init__(self, config: Config):
        """
        Args:
            config: 全局配置（使用 camera 和 log_dir）
        """
        self.config = config
        self.logger = Logger(config.log_dir)
        self.cap: Optional[cv2.VideoCapture] = None
        self._lock = threading.Lock()

    def _open(self) -> bool:
        """打开摄像头（调用方持有锁）"""
        if self.cap is not None and self.cap.isOpened():
            return True

        camera = self.config.camera
        self.cap = cv2.VideoCapture(camera.camera_index)
        if not self.cap.isOpened():
            self.logger.log("capture", "error", f"无法打开摄像头 (索引: {camera.camera_index})")
            self.cap.release()
            self.cap = None
            return False

        # 设置分辨率
        width, height = camera.resolution
        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)

        # 设置缓冲区大小
        self.cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)

        self.logger.log("capture", "info", f"摄像头已打开 - 索引: {camera.camera_index}, 分辨率: {width}x{height}")
        return True

    def capture(self) -> Optional[Frame]:
        """采集一帧（不落盘）

        Returns:
            Frame，失败返回 None
        """
        with self._lock:
            if not self._open():
                return None

            for _ in range(self.FLUSH_FRAMES):
                self.cap.read()

            ret, image = self.cap.read()

        if not ret or image is None:
            self.logger.log("capture", "error", "无法从摄像头读取图像")
            return None

        return Frame.from_bgr(image, captured_at=datetime.now())

    def save_screenshot(self, frame: Frame, quality: float) -> Optional[str]:
        """保存告警截图，返回文件路径（未配置目录或保存失败返回 None）"""
        capture_dir = self.config.camera.capture_dir
        if not capture_dir:
            return None

        output_path = Path(capture_dir) / f"{frame.captured_at.strftime('%Y%m%d_%H%M%S_%f')}.jpg"
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            image = cv2.cvtColor(frame.pixels, cv2.COLOR_RGBA2BGR)
            ok = cv2.imwrite(str(output_path), image, [int(cv2.IMWRITE_JPEG_QUALITY), int(quality)])
        except (OSError, cv2.error) as e:
            self.logger.log("capture", "error", f"保存截图失败: {e}")
            return None

        if not ok:
            self.logger.log("capture", "error", f"保存截图失败: {output_path}")
            return None

        self.logger.log("capture", "info", f"截图已保存: {output_path}")
        return str(output_path)

    def shutdown(self):
        """关闭摄像头"""
        with self._lock:
            if self.cap:
                self.cap.release()
                self.cap = None
        self.logger.log("capture", "info", "摄像头已关闭")
