"""
Detection 模块 - 区域、比较、判定

┌──────────────┐   mask_regions()   ┌─────────────────┐   metrics   ┌──────────────────┐
│  RegionSet   │ ─────────────────▶ │ FrameComparator │ ──────────▶ │ DetectionPolicy  │
└──────────────┘                    └─────────────────┘             └──────────────────┘
"""

from .region_set import RegionSet
from .frame_comparator import (
    FrameComparator,
    ComparisonMetrics,
    TextChangeDetector,
    NullTextChangeDetector,
    build_region_mask
)
from .detection_policy import (
    DetectionPolicy,
    PolicyVerdict,
    CriterionResult,
    criterion_fires
)

__all__ = [
    'RegionSet',
    'FrameComparator',
    'ComparisonMetrics',
    'TextChangeDetector',
    'NullTextChangeDetector',
    'build_region_mask',
    'DetectionPolicy',
    'PolicyVerdict',
    'CriterionResult',
    'criterion_fires',
]
