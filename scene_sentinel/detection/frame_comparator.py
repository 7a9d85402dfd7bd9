"""
帧比较器

对一对等尺寸的帧计算三个独立指标（都是百分比）：
1. 像素差异比例：|ΔR|+|ΔG|+|ΔB| 超过 765 * sensitivity / 100 的像素占比
2. 色块变化比例：按 block_size 切块，块内平均颜色距离超过阈值的块所覆盖的像素占比
3. 文本变化置信度：交给 TextChangeDetector（默认恒为 0）

区域掩码：像素中心点落在任一区域 [x, x+width) x [y, y+height) 内才参与计算
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence, Dict, Any

import numpy as np

from scene_sentinel.common import Logger
from scene_sentinel.errors import DimensionMismatch
from scene_sentinel.models import Frame, Region, Criterion, clamp_percentage

# 三通道最大差值之和
MAX_CHANNEL_DISTANCE = 255 * 3


@dataclass
class ComparisonMetrics:
    """比较结果

    Attributes:
        pixel: 像素差异比例（百分比）
        color: 色块变化比例（百分比）
        text: 文本变化置信度（百分比）
        considered_pixels: 参与比较的像素数
    """
    pixel: float = 0.0
    color: float = 0.0
    text: float = 0.0
    considered_pixels: int = 0

    def metric(self, criterion: Criterion) -> float:
        if criterion == Criterion.PIXEL:
            return self.pixel
        elif criterion == Criterion.COLOR:
            return self.color
        return self.text

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pixel": round(self.pixel, 2),
            "color": round(self.color, 2),
            "text": round(self.text, 2),
            "considered_pixels": self.considered_pixels
        }


# ==================== 文本变化检测（外部协作者）====================

class TextChangeDetector(ABC):
    """文本内容变化检测接口

    实现方返回 [0, 100] 的置信度，超出范围会被截断
    """

    @abstractmethod
    def text_change(self, reference: Frame, current: Frame, mask: Optional[np.ndarray]) -> float:
        pass


class NullTextChangeDetector(TextChangeDetector):
    """默认实现：不做文字识别，置信度恒为 0"""

    def text_change(self, reference: Frame, current: Frame, mask: Optional[np.ndarray]) -> float:
        return 0.0


# ==================== 掩码 ====================

def build_region_mask(width: int, height: int, regions: Optional[Sequence[Region]]) -> Optional[np.ndarray]:
    """根据区域构建布尔掩码

    Args:
        width: 帧宽度
        height: 帧高度
        regions: None 表示整帧（返回 None）；列表表示只保留其中区域覆盖的像素

    Returns:
        (height, width) 布尔数组，或 None
    """
    if regions is None:
        return None

    centers_x = (np.arange(width) + 0.5) / width * 100
    centers_y = (np.arange(height) + 0.5) / height * 100

    mask = np.zeros((height, width), dtype=bool)
    for region in regions:
        cols = (centers_x >= region.x) & (centers_x < region.x + region.width)
        rows = (centers_y >= region.y) & (centers_y < region.y + region.height)
        mask |= rows[:, np.newaxis] & cols[np.newaxis, :]

    return mask


def _block_sum(values: np.ndarray, block_size: int) -> np.ndarray:
    """按 block_size 切块求和（前两个维度）"""
    rows = np.arange(0, values.shape[0], block_size)
    cols = np.arange(0, values.shape[1], block_size)
    return np.add.reduceat(np.add.reduceat(values, rows, axis=0), cols, axis=1)


class FrameComparator:
    """帧比较器（无状态，可在多个线程中复用）"""

    def __init__(self, text_detector: Optional[TextChangeDetector] = None, log_dir: Optional[str] = None):
        """
        Args:
            text_detector: 文本变化检测器（默认 NullTextChangeDetector）
            log_dir: 日志目录
        """
        self.text_detector = text_detector or NullTextChangeDetector()
        self.logger = Logger(log_dir)

    def compare(self,
                reference: Frame,
                current: Frame,
                regions: Optional[Sequence[Region]] = None,
                sensitivity: float = 50.0,
                block_size: int = 16) -> ComparisonMetrics:
        """比较两帧

        Args:
            reference: 参考帧
            current: 当前帧
            regions: 掩码区域（None 表示整帧）
            sensitivity: 颜色距离判定阈值（百分比）
            block_size: 色块边长（像素）

        Returns:
            ComparisonMetrics

        Raises:
            DimensionMismatch: 两帧尺寸不一致
        """
        if reference.size != current.size:
            raise DimensionMismatch(reference.size, current.size)

        cutoff = MAX_CHANNEL_DISTANCE * clamp_percentage(sensitivity, "sensitivity") / 100
        mask = build_region_mask(current.width, current.height, regions)

        considered = current.width * current.height if mask is None else int(mask.sum())
        if considered == 0:
            return ComparisonMetrics(considered_pixels=0)

        ref_rgb = reference.pixels[..., :3].astype(np.int32)
        cur_rgb = current.pixels[..., :3].astype(np.int32)

        pixel_ratio = self._pixel_ratio(ref_rgb, cur_rgb, mask, cutoff, considered)
        color_ratio = self._color_block_ratio(ref_rgb, cur_rgb, mask, cutoff, max(1, int(block_size)))
        text_confidence = clamp_percentage(
            self.text_detector.text_change(reference, current, mask), "text_confidence")

        return ComparisonMetrics(
            pixel=pixel_ratio,
            color=color_ratio,
            text=text_confidence,
            considered_pixels=considered
        )

    def _pixel_ratio(self, ref_rgb: np.ndarray, cur_rgb: np.ndarray,
                     mask: Optional[np.ndarray], cutoff: float, considered: int) -> float:
        """像素差异比例"""
        distance = np.abs(ref_rgb - cur_rgb).sum(axis=2)
        changed = distance > cutoff
        if mask is not None:
            changed &= mask

        return float(changed.sum()) / considered * 100

    def _color_block_ratio(self, ref_rgb: np.ndarray, cur_rgb: np.ndarray,
                           mask: Optional[np.ndarray], cutoff: float, block_size: int) -> float:
        """色块变化比例（按参与比较的像素数加权）"""
        if mask is None:
            weight = np.ones(ref_rgb.shape[:2], dtype=np.float64)
        else:
            weight = mask.astype(np.float64)

        counts = _block_sum(weight, block_size)
        ref_sum = _block_sum(ref_rgb * weight[..., np.newaxis], block_size)
        cur_sum = _block_sum(cur_rgb * weight[..., np.newaxis], block_size)

        divisor = counts[..., np.newaxis]
        valid = divisor > 0
        ref_mean = np.divide(ref_sum, divisor, out=np.zeros_like(ref_sum), where=valid)
        cur_mean = np.divide(cur_sum, divisor, out=np.zeros_like(cur_sum), where=valid)

        distance = np.abs(ref_mean - cur_mean).sum(axis=2)
        changed_blocks = (counts > 0) & (distance > cutoff)

        total = counts.sum()
        if total == 0:
            return 0.0
        return float(counts[changed_blocks].sum()) / float(total) * 100
