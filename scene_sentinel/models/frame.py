"""
帧数据模型

Frame 是不可变的 RGBA 像素缓冲（numpy 只读数组），附带采集时间和来源引用
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import cv2
import numpy as np


@dataclass(frozen=True, eq=False)
class Frame:
    """一帧图像

    Attributes:
        pixels: (H, W, 4) 的 uint8 RGBA 数组，创建后只读
        captured_at: 采集时间
        source: 来源引用（例如保存的 JPEG 路径），用作截图引用
    """
    pixels: np.ndarray
    captured_at: datetime = field(default_factory=datetime.now)
    source: Optional[str] = None

    def __post_init__(self):
        pixels = np.array(self.pixels, dtype=np.uint8, copy=True)
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise ValueError(f"帧数据必须是 (H, W, 4) 的 RGBA 数组，实际: {pixels.shape}")
        if pixels.shape[0] == 0 or pixels.shape[1] == 0:
            raise ValueError("帧尺寸不能为 0")

        pixels.setflags(write=False)
        object.__setattr__(self, "pixels", pixels)

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def size(self) -> tuple:
        """(width, height)"""
        return self.width, self.height

    def __repr__(self) -> str:
        return f"Frame({self.width}x{self.height}, captured_at={self.captured_at.isoformat()}, source={self.source})"

    # ==================== 工厂方法 ====================

    @classmethod
    def from_rgba_bytes(cls, data: bytes, width: int, height: int,
                        captured_at: Optional[datetime] = None,
                        source: Optional[str] = None) -> "Frame":
        """从 RGBA 字节流创建帧

        Args:
            data: 长度为 width * height * 4 的 RGBA 字节
            width: 宽度
            height: 高度
            captured_at: 采集时间（默认当前时间）
            source: 来源引用

        Returns:
            Frame 对象
        """
        expected = width * height * 4
        if len(data) != expected:
            raise ValueError(f"RGBA 数据长度错误: 期望 {expected}, 实际 {len(data)}")

        pixels = np.frombuffer(data, dtype=np.uint8).reshape(height, width, 4)
        return cls(pixels=pixels, captured_at=captured_at or datetime.now(), source=source)

    @classmethod
    def from_bgr(cls, image: np.ndarray,
                 captured_at: Optional[datetime] = None,
                 source: Optional[str] = None) -> "Frame":
        """从 OpenCV 图像（BGR / BGRA / 灰度）创建帧"""
        if image.ndim == 2:
            rgba = cv2.cvtColor(image, cv2.COLOR_GRAY2RGBA)
        elif image.shape[2] == 4:
            rgba = cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)
        else:
            rgba = cv2.cvtColor(image, cv2.COLOR_BGR2RGBA)

        return cls(pixels=rgba, captured_at=captured_at or datetime.now(), source=source)
